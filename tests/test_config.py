"""
Tests for settings loading and logging setup.
"""

import logging
import textwrap
from pathlib import Path

import pytest

from onboard.core.config.settings import Settings, find_settings_file, load_settings
from onboard.core.errors import ConfigError
from onboard.core.observability.logging_config import resolve_level, setup_logging


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.python313_version == "3.13.2"
        assert settings.gate_interval == 5.0
        assert settings.package_index_host == "artifactory.oci.oraclecorp.com"
        assert settings.remote("nse/silencer") == (
            "ssh://git@bitbucket.oci.oraclecorp.com:7999/nse/silencer.git"
        )

    def test_no_file_means_defaults(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("ONBOARD_CONFIG", raising=False)
        assert load_settings(None, tmp_path) == Settings()

    def test_app_dir_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("ONBOARD_CONFIG", raising=False)
        (tmp_path / "config.yml").write_text("gate_interval: 1.5\n")
        assert load_settings(None, tmp_path).gate_interval == 1.5

    def test_wrapped_under_onboard_key(self, tmp_path: Path):
        path = tmp_path / "custom.yml"
        path.write_text(textwrap.dedent("""\
            onboard:
              private_endpoints:
                - mirror.internal:443
              venv_name: tools
        """))
        settings = load_settings(path)
        assert settings.private_endpoints == ["mirror.internal:443"]
        assert settings.venv_name == "tools"

    def test_precedence(self, tmp_path: Path, monkeypatch):
        explicit = tmp_path / "explicit.yml"
        env_file = tmp_path / "env.yml"
        monkeypatch.setenv("ONBOARD_CONFIG", str(env_file))
        assert find_settings_file(explicit, tmp_path) == explicit
        assert find_settings_file(None, tmp_path) == env_file

    def test_explicit_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "bad.yml"
        path.write_text("gate_interval: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(path)

    def test_invalid_values(self, tmp_path: Path):
        path = tmp_path / "bad.yml"
        path.write_text("private_endpoints:\n  - no-port-here\n")
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings(path)

    def test_non_positive_interval(self, tmp_path: Path):
        path = tmp_path / "bad.yml"
        path.write_text("gate_interval: 0\n")
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_settings(path) == Settings()


class TestLogging:
    def test_resolve_level(self, monkeypatch):
        monkeypatch.setenv("ONBOARD_LOG_LEVEL", "ERROR")
        assert resolve_level(debug=True) == "DEBUG"
        assert resolve_level(verbose=True) == "INFO"
        assert resolve_level() == "ERROR"
        monkeypatch.delenv("ONBOARD_LOG_LEVEL")
        assert resolve_level() == "WARNING"

    def test_setup_with_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("ONBOARD_LOG_FILE", raising=False)
        log_file = tmp_path / "debug.log"
        setup_logging("WARNING", str(log_file))
        logging.getLogger("onboard.test").debug("hello file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello file" in log_file.read_text()
        setup_logging("WARNING")

    def test_unknown_level_is_warning(self):
        setup_logging("LOUD")
        assert logging.getLogger().level == logging.WARNING
