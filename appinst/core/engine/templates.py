"""
Template resolution — expand ``%a %b %f %n %v %w`` placeholders.

Substitution sources:

    %a  application name argument
    %b  resolved basedir
    %f  resolved distfile
    %n  resolved name
    %v  version argument
    %w  resolved workdir

Fields are resolved in a FIXED order (``RESOLUTION_ORDER``, then steps).
A field may only see sources whose own field was resolved earlier; a
forward reference (``workdir: "%b/build"``, basedir comes later)
silently expands to the empty string.  Existing descriptors depend on
this ordering, so it is not replaced by dependency-graph resolution.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping

from appinst.core.errors import ConfigurationError
from appinst.core.models.descriptor import (
    Descriptor,
    ResolvedDescriptor,
    ResolvedStep,
    VerifyMethod,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"%([abfnvw])")

RESOLUTION_ORDER = (
    "name",
    "distfile",
    "workdir",
    "basedir",
    "durl",
    "preextract",
    "postextract",
    "verify",
    "vurl",
)

REQUIRED_FIELDS = ("basedir", "workdir", "distfile")

# placeholder letter → field whose resolved value it expands to
_FIELD_SOURCES = {"b": "basedir", "f": "distfile", "n": "name", "w": "workdir"}

# One accessor per inheritable scalar field.
_FIELD_ACCESSORS: dict[str, Callable[[Descriptor], str | None]] = {
    "name": lambda d: d.name,
    "distfile": lambda d: d.distfile,
    "workdir": lambda d: d.workdir,
    "basedir": lambda d: d.basedir,
    "durl": lambda d: d.durl,
    "preextract": lambda d: d.preextract,
    "postextract": lambda d: d.postextract,
    "verify": lambda d: d.verify,
    "vurl": lambda d: d.vurl,
}


def substitute(text: str, values: Mapping[str, str]) -> str:
    """Replace every known placeholder in ``text``.

    ``values`` maps placeholder letters to replacement text.  Letters
    missing from ``values`` expand to the empty string; ``%`` sequences
    that are not placeholders (``%d``, ``%%``) are left alone.
    """
    return PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), ""), text)


def field_value(
    descriptor: Descriptor,
    field: str,
    parent: Descriptor | None = None,
) -> str | None:
    """Look up a raw template, falling back from component to parent.

    The chain is component → parent application → None.  A component
    that defines the field (even as an empty string) overrides the parent.

    Raises:
        KeyError: If ``field`` is not an inheritable scalar field.
    """
    accessor = _FIELD_ACCESSORS[field]
    value = accessor(descriptor)
    if value is None and parent is not None:
        value = accessor(parent)
    return value


def resolve_fields(
    descriptor: Descriptor,
    app_name: str,
    version: str,
    parent: Descriptor | None = None,
) -> dict[str, str]:
    """Resolve the scalar fields in ``RESOLUTION_ORDER``.

    Returns:
        Field name → resolved text.  Unset fields resolve to ``""``.
    """
    sources: dict[str, str] = {"a": app_name, "v": version}
    resolved: dict[str, str] = {}

    for field in RESOLUTION_ORDER:
        template = field_value(descriptor, field, parent)
        if template is None and field == "name":
            # unnamed applications, and components under them, take the application name
            template = app_name
        value = substitute(template, sources) if template else ""
        resolved[field] = value

        for letter, source_field in _FIELD_SOURCES.items():
            if source_field == field:
                sources[letter] = value

    return resolved


def resolve_descriptor(
    descriptor: Descriptor,
    app_name: str,
    version: str,
    parent: Descriptor | None = None,
) -> ResolvedDescriptor:
    """Resolve every templated field of an application or component.

    Args:
        descriptor: The application, or one of its components.
        app_name: Application name argument (``%a``).
        version: Version argument (``%v``).
        parent: The owning application when ``descriptor`` is a component.

    Raises:
        ConfigurationError: If ``basedir``, ``workdir`` or ``distfile``
            resolves empty, or ``verify`` names an unknown method.
    """
    fields = resolve_fields(descriptor, app_name, version, parent)

    missing = [f for f in REQUIRED_FIELDS if not fields[f]]
    if missing:
        label = fields["name"] or app_name
        raise ConfigurationError(
            f"Descriptor '{label}' is missing required field(s): {', '.join(missing)}"
        )

    values = {
        "a": app_name,
        "b": fields["basedir"],
        "f": fields["distfile"],
        "n": fields["name"],
        "v": version,
        "w": fields["workdir"],
    }
    steps = [
        ResolvedStep(
            label=substitute(step.label, values),
            action=substitute(step.action, values),
        )
        for step in descriptor.steps
    ]

    resolved = ResolvedDescriptor(
        name=fields["name"],
        basedir=fields["basedir"],
        workdir=fields["workdir"],
        distfile=fields["distfile"],
        durl=fields["durl"] or None,
        verify=VerifyMethod.from_wire(fields["verify"]),
        vurl=fields["vurl"] or None,
        preextract=fields["preextract"] or None,
        postextract=fields["postextract"] or None,
        steps=steps,
    )
    logger.debug(
        "Resolved %s %s: distfile=%s workdir=%s basedir=%s",
        resolved.name, version, resolved.distfile, resolved.workdir, resolved.basedir,
    )
    return resolved
