"""
Tests for the service configuration loader and tool status checks.
"""

import json
import sys
from pathlib import Path

import pytest

from src.config.loader import PROJECT_ROOT, ServiceConfig, load_config
from src.config.system_status import check_tools
from src.tools.models import ToolProfile, ToolProfiles

ENV_VARS = (
    "CONVERTER_CONFIG",
    "CONVERTER_UPLOAD_DIR",
    "CONVERTER_MAX_UPLOAD_MB",
    "CONVERTER_TOOLS_FILE",
    "CONVERTER_TOOL_TIMEOUT",
    "CONVERTER_HOST",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestServiceConfig:
    """Tests for ServiceConfig defaults."""

    def test_defaults(self):
        config = ServiceConfig()
        assert config.upload_dir == PROJECT_ROOT / "uploads"
        assert config.max_upload_mb == 200
        assert config.tool_timeout is None
        assert config.port == 5000

    def test_max_upload_bytes(self):
        assert ServiceConfig(max_upload_mb=3).max_upload_bytes == 3 * 1024 * 1024

    def test_to_dict(self):
        d = ServiceConfig(upload_dir=Path("/tmp/x"), tools_file=None).to_dict()
        assert d["upload_dir"] == "/tmp/x"
        assert d["tools_file"] is None


class TestLoadConfig:
    """Tests for env var loading."""

    def test_no_env_gives_defaults(self):
        assert load_config() == ServiceConfig()

    def test_individual_vars(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CONVERTER_UPLOAD_DIR", str(tmp_path / "store"))
        monkeypatch.setenv("CONVERTER_MAX_UPLOAD_MB", "50")
        monkeypatch.setenv("CONVERTER_TOOL_TIMEOUT", "120")
        monkeypatch.setenv("CONVERTER_HOST", "0.0.0.0")
        monkeypatch.setenv("PORT", "8080")

        config = load_config()
        assert config.upload_dir == tmp_path / "store"
        assert config.max_upload_mb == 50
        assert config.tool_timeout == 120.0
        assert config.host == "0.0.0.0"
        assert config.port == 8080

    def test_master_json(self, monkeypatch):
        monkeypatch.setenv("CONVERTER_CONFIG", json.dumps({
            "upload_dir": "/var/tmp/conv",
            "tool_timeout": 300,
            "max_upload_mb": 10,
        }))
        config = load_config()
        assert config.upload_dir == Path("/var/tmp/conv")
        assert config.tool_timeout == 300.0
        assert config.max_upload_mb == 10

    def test_individual_overrides_master(self, monkeypatch):
        monkeypatch.setenv("CONVERTER_CONFIG", json.dumps({"max_upload_mb": 10}))
        monkeypatch.setenv("CONVERTER_MAX_UPLOAD_MB", "20")
        assert load_config().max_upload_mb == 20

    def test_invalid_master_json_ignored(self, monkeypatch):
        monkeypatch.setenv("CONVERTER_CONFIG", "{not json")
        assert load_config() == ServiceConfig()

    @pytest.mark.parametrize("value", ["lots", "-4", "0"])
    def test_bad_int_keeps_default(self, monkeypatch, value):
        monkeypatch.setenv("CONVERTER_MAX_UPLOAD_MB", value)
        assert load_config().max_upload_mb == 200

    @pytest.mark.parametrize("value", ["0", "none", "soon", "-1"])
    def test_timeout_disabled(self, monkeypatch, value):
        monkeypatch.setenv("CONVERTER_TOOL_TIMEOUT", value)
        assert load_config().tool_timeout is None


class TestCheckTools:
    """Tests for external tool detection."""

    def test_installed(self):
        profiles = ToolProfiles(
            transcoder=ToolProfile(binary=sys.executable, args=["{input}", "{output}"]),
        )
        status = {s.role: s for s in check_tools(profiles)}
        assert status["transcoder"].installed is True
        assert status["transcoder"].path
        assert status["transcoder"].install_hint is None

    def test_missing_carries_hint(self):
        profiles = ToolProfiles(
            document=ToolProfile(
                binary="no-such-office-suite",
                args=["{input}"],
                install_hint="apt install libreoffice-writer",
            ),
        )
        status = {s.role: s for s in check_tools(profiles)}
        assert status["document"].installed is False
        assert status["document"].path is None
        assert status["document"].to_dict()["install_hint"] == "apt install libreoffice-writer"
