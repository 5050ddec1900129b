"""
Catalog use cases — read-only views of the descriptor store.

    list_applications   every known application and its last install
    describe_steps      resolved steps, nothing executed, no history
    read_history        recorded installs of one application
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from appinst.core.config.settings import Settings
from appinst.core.engine.installer import resolve_units
from appinst.core.errors import ConfigurationError
from appinst.core.models.descriptor import ResolvedDescriptor, VersionRecord
from appinst.core.persistence.descriptor_store import DescriptorStore

logger = logging.getLogger(__name__)


@dataclass
class ApplicationSummary:
    name: str
    latest: VersionRecord | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {"name": self.name}
        if self.latest:
            result["latest"] = self.latest.model_dump()
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class StepListing:
    """Resolved units of one application, for display."""

    name: str
    version: str
    units: list[ResolvedDescriptor] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {"name": self.name, "version": self.version}
        if self.error:
            result["error"] = self.error
        else:
            result["units"] = [u.model_dump(mode="json") for u in self.units]
        return result


def list_applications(settings: Settings) -> list[ApplicationSummary]:
    """Every descriptor in the store, with its most recent install."""
    store = DescriptorStore(settings.descriptor_dir)
    summaries = []
    for name in store.names():
        try:
            document = store.load(name)
        except ConfigurationError as e:
            summaries.append(ApplicationSummary(name=name, error=str(e)))
            continue
        summaries.append(ApplicationSummary(name=name, latest=document.descriptor.latest_version))
    return summaries


def describe_steps(
    requests: Sequence[tuple[str, str]],
    settings: Settings,
) -> list[StepListing]:
    """Resolve each requested application without executing anything."""
    store = DescriptorStore(settings.descriptor_dir)
    listings = []
    for name, version in requests:
        listing = StepListing(name=name, version=version)
        try:
            listing.units = resolve_units(store.load(name), name, version)
        except ConfigurationError as e:
            logger.error("%s %s: %s", name, version, e)
            listing.error = str(e)
        listings.append(listing)
    return listings


def read_history(name: str, settings: Settings) -> list[VersionRecord]:
    """Recorded installs of ``name``, oldest first.

    Raises:
        ConfigurationError: If the descriptor is missing or invalid.
    """
    store = DescriptorStore(settings.descriptor_dir)
    return list(store.load(name).descriptor.versions)
