"""
Tests for settings loading.
"""

from pathlib import Path

import pytest

from appinst.core.config.settings import Settings, load_settings
from appinst.core.errors import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in (
        "APPINST_DESCRIPTOR_DIR", "APPINST_PROXY", "APPINST_TIMEOUT",
        "APPINST_PASSIVE_FTP", "APPINST_WORK_OWNER", "APPINST_WORK_GROUP",
        "APPINST_USER", "http_proxy", "HTTP_PROXY",
    ):
        monkeypatch.delenv(var, raising=False)
    # keep the search path away from real config files
    monkeypatch.setattr(
        "appinst.core.config.settings.config_search_paths",
        lambda: [tmp_path / "appinst.yml"],
    )


class TestLoadSettings:
    def test_defaults(self):
        s = load_settings()
        assert s.descriptor_dir == Path("/etc/appinst/apps")
        assert s.proxy is None
        assert s.passive_ftp is False
        assert s.work_owner is None

    def test_found_on_search_path(self, tmp_path):
        (tmp_path / "appinst.yml").write_text("descriptor_dir: /srv/apps\ntimeout: 5\n")
        s = load_settings()
        assert s.descriptor_dir == Path("/srv/apps")
        assert s.timeout == 5.0

    def test_explicit_file(self, tmp_path):
        path = tmp_path / "custom.yml"
        path.write_text("passive_ftp: true\nwork_owner: build\n")
        s = load_settings(path)
        assert s.passive_ftp is True
        assert s.work_owner == "build"

    def test_explicit_missing(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_settings(tmp_path / "nope.yml")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_settings(path).timeout == 60.0

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("- 1\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_settings(path)

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("timeout: soon\n")
        with pytest.raises(ConfigurationError, match="Invalid settings"):
            load_settings(path)

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "s.yml"
        path.write_text("descriptor_dir: /from/file\n")
        monkeypatch.setenv("APPINST_DESCRIPTOR_DIR", "/from/env")
        monkeypatch.setenv("APPINST_PASSIVE_FTP", "true")
        s = load_settings(path)
        assert s.descriptor_dir == Path("/from/env")
        assert s.passive_ftp is True

    def test_proxy_from_environment(self, monkeypatch):
        monkeypatch.setenv("http_proxy", "http://proxy:3128")
        assert Settings().proxy == "http://proxy:3128"
        assert load_settings().proxy == "http://proxy:3128"
