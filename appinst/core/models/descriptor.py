"""
Descriptor models — the declarative description of one application.

A ``Descriptor`` is loaded from ``<descriptor_dir>/<app>.yml`` and holds
raw template strings (``%n-%v.tar.gz``).  Template resolution turns it
into a ``ResolvedDescriptor`` holding concrete values the engine acts on.
Applications may nest ``components``; a component inherits any scalar
field it leaves unset from its parent application.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from appinst.core.errors import ConfigurationError


class VerifyMethod(str, Enum):
    """Integrity-check method for a distribution file."""

    NONE = "none"
    MD5 = "checksum-md5"
    SHA1 = "checksum-sha1"
    SHA256 = "checksum-sha256"
    SIGNATURE = "signature"

    @classmethod
    def from_wire(cls, value: str | None) -> VerifyMethod:
        """Map a descriptor ``verify`` value (``md5``, ``sig``...) to a method.

        Empty or missing values mean no verification.

        Raises:
            ConfigurationError: If the value names no known method.
        """
        if not value:
            return cls.NONE
        key = value.strip().lower()
        if key in _WIRE_NAMES:
            return _WIRE_NAMES[key]
        try:
            return cls(key)
        except ValueError:
            raise ConfigurationError(
                f"Unknown verification method '{value}' "
                f"(expected one of: {', '.join(_WIRE_NAMES)})"
            ) from None

    @property
    def is_checksum(self) -> bool:
        return self in (VerifyMethod.MD5, VerifyMethod.SHA1, VerifyMethod.SHA256)


_WIRE_NAMES: dict[str, VerifyMethod] = {
    "none": VerifyMethod.NONE,
    "md5": VerifyMethod.MD5,
    "sha1": VerifyMethod.SHA1,
    "sha256": VerifyMethod.SHA256,
    "sig": VerifyMethod.SIGNATURE,
}


def _scalar_to_str(value: Any) -> Any:
    """YAML turns ``version: 1.0`` into a float and bare dates into dates; keep them textual."""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class Step(BaseModel):
    """One labelled shell action in a build/install sequence."""

    label: str = ""
    action: str = ""

    @field_validator("label", "action", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _scalar_to_str(value)


class VersionRecord(BaseModel):
    """A completed install: version, timestamp, and who ran it."""

    version: str
    date: str = ""
    user: str = "unknown"

    @field_validator("version", "date", "user", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _scalar_to_str(value)


class Descriptor(BaseModel):
    """An application or component as declared in storage.

    Every scalar is an optional template string.  ``None`` means the
    field is unset here and may be inherited from the parent.
    """

    name: str | None = None
    basedir: str | None = None
    workdir: str | None = None
    distfile: str | None = None
    durl: str | None = None
    verify: str | None = None
    vurl: str | None = None
    preextract: str | None = None
    postextract: str | None = None

    steps: list[Step] = Field(default_factory=list)
    components: list[Descriptor] = Field(default_factory=list)
    versions: list[VersionRecord] = Field(default_factory=list)

    @field_validator(
        "name", "basedir", "workdir", "distfile", "durl",
        "verify", "vurl", "preextract", "postextract",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _scalar_to_str(value)

    @field_validator("steps", "components", "versions", mode="before")
    @classmethod
    def empty_list(cls, value: Any) -> Any:
        # ``steps:`` with no entries loads as None
        return [] if value is None else value

    @property
    def has_components(self) -> bool:
        return bool(self.components)

    @property
    def latest_version(self) -> VersionRecord | None:
        """The most recently recorded install, if any."""
        return self.versions[-1] if self.versions else None


class ResolvedStep(BaseModel):
    """A step after placeholder substitution."""

    label: str
    action: str


class ResolvedDescriptor(BaseModel):
    """Concrete values for one unit of work (application or component).

    ``workdir`` and ``distfile`` are relative to ``basedir`` unless they
    are absolute paths.
    """

    name: str
    basedir: str
    workdir: str
    distfile: str
    durl: str | None = None
    verify: VerifyMethod = VerifyMethod.NONE
    vurl: str | None = None
    preextract: str | None = None
    postextract: str | None = None
    steps: list[ResolvedStep] = Field(default_factory=list)

    @property
    def base_path(self) -> Path:
        return Path(self.basedir)

    @property
    def distfile_path(self) -> Path:
        return self.base_path / self.distfile

    @property
    def work_path(self) -> Path:
        return self.base_path / self.workdir
