"""
Settings loader — static configuration consumed at startup.

Reads an optional ``appinst.yml`` into a Pydantic ``Settings`` model,
then applies ``APPINST_*`` environment overrides.  Nothing in the engine
mutates settings; the FTP passive flag is copied into a per-invocation
``TransferMode`` instead.

Search order when no explicit path is given:

    ./appinst.yml  →  ~/.config/appinst/config.yml  →  /etc/appinst.yml
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from appinst.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE = "appinst.yml"
DEFAULT_DESCRIPTOR_DIR = "/etc/appinst/apps"

_ENV_OVERRIDES = {
    "APPINST_DESCRIPTOR_DIR": "descriptor_dir",
    "APPINST_PROXY": "proxy",
    "APPINST_TIMEOUT": "timeout",
    "APPINST_PASSIVE_FTP": "passive_ftp",
    "APPINST_WORK_OWNER": "work_owner",
    "APPINST_WORK_GROUP": "work_group",
    "APPINST_USER": "user",
}


def _env_proxy() -> str | None:
    return os.environ.get("http_proxy") or os.environ.get("HTTP_PROXY") or None


class Settings(BaseModel):
    """Installer configuration."""

    descriptor_dir: Path = Path(DEFAULT_DESCRIPTOR_DIR)

    # Retrieval
    proxy: str | None = Field(default_factory=_env_proxy)
    timeout: float = 60.0          # seconds, network only
    passive_ftp: bool = False

    # Ownership applied to freshly extracted work directories
    work_owner: str | None = None
    work_group: str | None = None

    # Identity recorded in install history (else the OS login name)
    user: str | None = None


def config_search_paths() -> list[Path]:
    """Candidate config file locations, most specific first."""
    return [
        Path.cwd() / CONFIG_FILE,
        Path.home() / ".config" / "appinst" / "config.yml",
        Path("/etc") / CONFIG_FILE,
    ]


def find_config_file() -> Path | None:
    """Return the first existing config file, or None."""
    for candidate in config_search_paths():
        if candidate.is_file():
            return candidate
    return None


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from YAML plus environment overrides.

    Args:
        path: Explicit config file.  If None, the search paths are tried;
            finding nothing is fine and yields defaults.

    Raises:
        ConfigurationError: If an explicit file is missing, or any file
            is unreadable, not a mapping, or fails validation.
    """
    data: dict = {}

    if path is not None and not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")
    if path is None:
        path = find_config_file()

    if path is not None:
        logger.debug("Loading settings from %s", path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read {path}: {e}") from e
        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Expected a YAML mapping in {path}, got {type(loaded).__name__}"
            )
        data = dict(loaded or {})

    for env_var, key in _ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            data[key] = value

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e

    logger.debug("Descriptor directory: %s", settings.descriptor_dir)
    return settings
