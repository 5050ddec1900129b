"""
History recorder — append an install record to a descriptor file.

The record goes into the descriptor's own ``versions`` list:

    versions:
      - version: "2.4.1"
        date: "2026-10-19T08:12:44+00:00"
        user: root

Writes are atomic: the whole document is written to a temp file next
to the original, the original's mode and ownership are copied onto it,
and it is renamed over the original only if it is non-empty.  A failure
here raises ``PersistenceError``; callers treat it as a warning since
the install itself already succeeded.
"""

from __future__ import annotations

import getpass
import logging
import os
import stat
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml

from appinst.core.errors import PersistenceError
from appinst.core.models.descriptor import VersionRecord
from appinst.core.persistence.descriptor_store import DescriptorDocument

logger = logging.getLogger(__name__)

UNKNOWN_USER = "unknown"


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


def resolve_user(explicit: str | None = None) -> str:
    """Who ran the install: explicit identity, else OS login, else "unknown"."""
    if explicit:
        return explicit
    try:
        return getpass.getuser() or UNKNOWN_USER
    except (OSError, KeyError):
        # no login name, no USER/LOGNAME and no passwd entry
        return UNKNOWN_USER


def record(
    document: DescriptorDocument,
    version: str,
    timestamp: str | None = None,
    user: str | None = None,
) -> VersionRecord:
    """Append a version record to ``document`` and persist it.

    Args:
        document: The loaded descriptor the install used.
        version: Installed version.
        timestamp: ISO timestamp; defaults to now (UTC).
        user: Explicit identity; defaults to the OS login name.

    Returns:
        The appended record.

    Raises:
        PersistenceError: If the descriptor could not be rewritten.
    """
    entry = VersionRecord(
        version=version,
        date=timestamp or _now_iso(),
        user=resolve_user(user),
    )

    versions = document.data.get("versions")
    if not isinstance(versions, list):
        # an empty ``versions:`` key keeps its position; a missing one is appended
        versions = []
        document.data["versions"] = versions
    versions.append(entry.model_dump())
    document.descriptor.versions.append(entry)

    save_document(document)
    logger.info("Recorded %s %s (by %s) in %s", document.name, version, entry.user, document.path)
    return entry


def _serialize(data: dict[str, Any]) -> str:
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False, allow_unicode=True)


def save_document(document: DescriptorDocument) -> None:
    """Atomically rewrite ``document.path`` from ``document.data``.

    Raises:
        PersistenceError: If serialization produced nothing or the
            write/rename failed.  The original file is left untouched.
    """
    path = document.path
    try:
        content = _serialize(document.data)
    except yaml.YAMLError as e:
        raise PersistenceError(f"Cannot serialize {path}: {e}") from e

    try:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    except OSError as e:
        raise PersistenceError(f"Cannot create temp file next to {path}: {e}") from e

    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        _copy_ownership(path, tmp)

        if tmp.stat().st_size == 0:
            raise PersistenceError(f"Refusing to replace {path} with an empty file")

        os.replace(tmp, path)
        logger.debug("Descriptor saved to %s", path)
    except PersistenceError:
        tmp.unlink(missing_ok=True)
        raise
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise PersistenceError(f"Failed to save {path}: {e}") from e


def _copy_ownership(original: Path, tmp: Path) -> None:
    """Give ``tmp`` the permission bits and owner/group of ``original``."""
    if not original.exists():
        return
    st = original.stat()
    os.chmod(tmp, stat.S_IMODE(st.st_mode))
    try:
        os.chown(tmp, st.st_uid, st.st_gid)
    except PermissionError:
        logger.warning("Cannot preserve ownership of %s (not permitted)", original)
