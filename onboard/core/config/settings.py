"""
Settings loader — reads the optional config.yml into a Settings model.

Every value has a working default, so the file is optional.  It exists
for sites that mirror the internal hosts or pin different Python
versions.  The file is looked up in this order:

    --config PATH  >  $ONBOARD_CONFIG  >  <app dir>/config.yml
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from onboard.core.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.yml"


class Settings(BaseModel):
    """Tunable values used by the gate, preflight and installers."""

    python313_version: str = "3.13.2"
    python396_version: str = "3.9.6"
    venv_name: str = "ncpcli"

    private_endpoints: list[str] = Field(
        default_factory=lambda: [
            "artifactory.oci.oraclecorp.com:443",
            "bitbucket.oci.oraclecorp.com:7999",
        ],
    )
    gate_interval: float = 5.0
    gate_timeout: float = 3.0
    keepalive_interval: float = 60.0

    public_check_url: str = "https://github.com"
    public_check_timeout: float = 5.0

    git_base: str = "ssh://git@bitbucket.oci.oraclecorp.com:7999"
    package_index: str = (
        "https://artifactory.oci.oraclecorp.com/api/pypi/global-release-pypi/simple"
    )
    setuptools_pin: str = "81.0.0"

    @field_validator("private_endpoints")
    @classmethod
    def _endpoints_have_ports(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one private endpoint is required")
        for endpoint in value:
            host, sep, port = endpoint.rpartition(":")
            if not sep or not host or not port.isdigit():
                raise ValueError(f"endpoint must be host:port, got {endpoint!r}")
        return value

    @field_validator("gate_interval", "gate_timeout", "keepalive_interval", "public_check_timeout")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @property
    def package_index_host(self) -> str:
        """Host part of the package index (for ``--trusted-host``)."""
        rest = self.package_index.split("://", 1)[-1]
        return rest.split("/", 1)[0]

    def remote(self, repo: str) -> str:
        """Git remote for ``project/repo`` on the internal server."""
        return f"{self.git_base}/{repo}.git"


def find_settings_file(explicit: Path | None, app_dir: Path) -> Path | None:
    """Pick the settings file by precedence; None when none exists."""
    if explicit is not None:
        return explicit

    env_path = os.environ.get("ONBOARD_CONFIG")
    if env_path:
        return Path(env_path).expanduser()

    candidate = app_dir / CONFIG_FILE
    return candidate if candidate.is_file() else None


def load_settings(path: Path | None = None, app_dir: Path | None = None) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit settings file (from ``--config``).
        app_dir: Per-user application directory for the fallback lookup.

    Returns:
        Validated Settings (defaults when no file is found).

    Raises:
        ConfigError: If an explicitly named file is missing, or any
            file is unreadable or invalid.
    """
    if app_dir is None:
        found = path
    else:
        found = find_settings_file(path, app_dir)

    if found is None:
        logger.debug("No settings file — using defaults")
        return Settings()

    if not found.is_file():
        raise ConfigError(f"Config file not found: {found}")

    logger.debug("Loading settings from %s", found)

    try:
        raw = found.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {found}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {found}: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {found}, got {type(data).__name__}")

    # The YAML may wrap everything under an "onboard" key or be flat
    data = data.get("onboard", data)

    try:
        settings = Settings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid settings in {found}: {e}") from e

    logger.info("Loaded settings from %s", found)
    return settings
