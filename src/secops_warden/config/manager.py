"""Locate, read and initialise the SecOps Warden config file.

Values are layered lowest to highest: the built-in defaults, the TOML file,
then ``SECOPS_WARDEN_<SECTION>__<FIELD>`` environment variables.
"""

from __future__ import annotations

import copy
import logging
import os
import platform
import stat
import tomllib
from pathlib import Path

import tomli_w

from secops_warden.config.defaults import DEFAULT_CONFIG
from secops_warden.config.schema import WardenConfig

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "SECOPS_WARDEN_CONFIG_DIR"
CONFIG_FILE_NAME = "config.toml"


def default_config_dir() -> Path:
    """Directory holding ``config.toml``.

    ``SECOPS_WARDEN_CONFIG_DIR`` wins, then ``$XDG_CONFIG_HOME/secops-warden``,
    then ``~/.config/secops-warden``.
    """
    explicit = os.environ.get(CONFIG_DIR_ENV)
    if explicit:
        return Path(explicit).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path("~/.config").expanduser()
    return base / "secops-warden"


class ConfigManager:
    """Builds the effective :class:`WardenConfig` for the service and CLI."""

    def __init__(self, config_dir: Path | None = None) -> None:
        self._config_dir = config_dir or default_config_dir()

    def load(self) -> WardenConfig:
        """Build the effective configuration.

        A missing or unreadable file contributes nothing.  Environment
        overrides apply on top of whatever the file and defaults produced.
        """
        data = _deep_merge(DEFAULT_CONFIG, self._read_file())
        return WardenConfig(**data)

    def write_defaults(self, force: bool = False) -> bool:
        """Write the built-in defaults as a starting config file.

        Returns ``False`` without touching anything when the file already
        exists and *force* is not set.  On Linux and macOS the file is
        ``chmod 600`` since it holds credentials.
        """
        path = self.get_config_path()
        if path.exists() and not force:
            return False

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as fh:
            tomli_w.dump(DEFAULT_CONFIG, fh)
        if platform.system() in ("Linux", "Darwin"):
            os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)

        logger.info("Wrote default config to %s", path)
        return True

    def exists(self) -> bool:
        return self.get_config_path().is_file()

    def get_config_path(self) -> Path:
        return self._config_dir / CONFIG_FILE_NAME

    def _read_file(self) -> dict[str, object]:
        path = self.get_config_path()
        if not path.is_file():
            logger.debug("No config file at %s, using defaults", path)
            return {}
        try:
            with open(path, "rb") as fh:
                return tomllib.load(fh)
        except (tomllib.TOMLDecodeError, OSError) as exc:
            logger.error("Ignoring unreadable config at %s: %s", path, exc)
            return {}


def _deep_merge(base: dict[str, object], override: dict[str, object]) -> dict[str, object]:
    """Return a copy of *base* with *override* laid over it, table by table."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
