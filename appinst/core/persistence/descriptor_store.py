"""
Descriptor store — one YAML file per application.

    <descriptor_dir>/<app>.yml     (``.yaml`` also accepted)

The raw mapping is kept next to the validated model so that saving it
back (after appending history) preserves the author's key order and
any keys the model does not know about.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from appinst.core.errors import ConfigurationError
from appinst.core.models.descriptor import Descriptor

logger = logging.getLogger(__name__)

DESCRIPTOR_SUFFIXES = (".yml", ".yaml")


@dataclass
class DescriptorDocument:
    """A loaded descriptor file: where it lives, its raw data, its model."""

    name: str
    path: Path
    data: dict[str, Any]
    descriptor: Descriptor


class DescriptorStore:
    """Load descriptors by application name from a directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def names(self) -> list[str]:
        """All known application names, sorted."""
        if not self.directory.is_dir():
            logger.info("Descriptor directory %s does not exist", self.directory)
            return []
        found = {
            p.stem
            for p in self.directory.iterdir()
            if p.is_file() and p.suffix in DESCRIPTOR_SUFFIXES
        }
        return sorted(found)

    def path_for(self, name: str) -> Path | None:
        """The descriptor file for ``name``, or None if there is none."""
        if not name or "/" in name or name.startswith("."):
            return None
        for suffix in DESCRIPTOR_SUFFIXES:
            candidate = self.directory / f"{name}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def load(self, name: str) -> DescriptorDocument:
        """Load and validate the descriptor for ``name``.

        Raises:
            ConfigurationError: If the descriptor is missing, unreadable,
                not a YAML mapping, or fails validation.
        """
        path = self.path_for(name)
        if path is None:
            raise ConfigurationError(
                f"No descriptor for '{name}' in {self.directory}"
            )

        logger.debug("Loading descriptor %s", path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read {path}: {e}") from e

        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Expected a YAML mapping in {path}, got {type(data).__name__}"
            )

        try:
            descriptor = Descriptor.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid descriptor {path}: {e}") from e

        logger.info(
            "Loaded descriptor '%s' (%d steps, %d components)",
            name, len(descriptor.steps), len(descriptor.components),
        )
        return DescriptorDocument(name=name, path=path, data=data, descriptor=descriptor)
