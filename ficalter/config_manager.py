"""Configuration management for the ficalter server."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_SERVER_BIND = "0.0.0.0"  # nosec B104 - service is meant to sit behind a proxy
DEFAULT_SERVER_PORT = 8080

_TRUTHY = ("1", "true", "yes", "on")


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []

        try:
            content = self.env_file_path.read_text(encoding="utf-8")
        except OSError:
            logger.warning(
                "Failed to read .env file for defaults (continuing): %s",
                str(self.env_file_path),
                exc_info=True,
            )
            return []

        for raw_line in content.splitlines():
            line = raw_line.strip()

            # Skip empty lines and comments
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, val = line.split("=", 1)
            key = key.strip()
            val = val.strip().strip('"').strip("'")

            if key and key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    @staticmethod
    def _int_from_env(cfg: dict[str, Any], key: str, *names: str) -> None:
        for name in names:
            raw = os.environ.get(name)
            if not raw:
                continue
            try:
                cfg[key] = int(raw)
            except ValueError:
                logger.warning("Invalid %s=%r; ignoring", name, raw)
            return

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration dictionary from environment variables.

        Recognizes:
        - FICALTER_UPSTREAM_URL -> 'upstream_url'
        - FICALTER_WEB_HOST or FICALTER_SERVER_BIND -> 'server_bind'
        - FICALTER_WEB_PORT or FICALTER_SERVER_PORT -> 'server_port' (int)
        - FICALTER_FOLD_WIDTH -> 'fold_width' (int)
        - FICALTER_REQUEST_TIMEOUT -> 'request_timeout' (int)
        - FICALTER_SELECTOR -> 'selector'
        - FICALTER_DEBUG -> 'debug_logging' (bool)

        Returns:
            Configuration dictionary compatible with start_server
        """
        cfg: dict[str, Any] = {}

        upstream = os.environ.get("FICALTER_UPSTREAM_URL")
        if upstream:
            cfg["upstream_url"] = upstream

        host = os.environ.get("FICALTER_WEB_HOST") or os.environ.get("FICALTER_SERVER_BIND")
        if host:
            cfg["server_bind"] = host

        self._int_from_env(cfg, "server_port", "FICALTER_WEB_PORT", "FICALTER_SERVER_PORT")
        self._int_from_env(cfg, "fold_width", "FICALTER_FOLD_WIDTH")
        self._int_from_env(cfg, "request_timeout", "FICALTER_REQUEST_TIMEOUT")

        if cfg.get("fold_width", 1) < 1:
            logger.warning("FICALTER_FOLD_WIDTH must be positive; ignoring %r", cfg["fold_width"])
            del cfg["fold_width"]

        selector = os.environ.get("FICALTER_SELECTOR")
        if selector:
            cfg["selector"] = selector

        debug = os.environ.get("FICALTER_DEBUG", "")
        if debug:
            cfg["debug_logging"] = debug.strip().lower() in _TRUTHY

        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """Load .env file and build configuration from environment.

        Returns:
            Configuration dictionary
        """
        self.load_env_file()
        return self.build_config_from_env()


def get_config_value(config: Any, key: str, default: Any = None) -> Any:
    """Get configuration value supporting both dict and dataclass-like objects.

    Args:
        config: Configuration object (dict or object with attributes)
        key: Configuration key to retrieve
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    if isinstance(config, dict):
        return config.get(key, default)
    return getattr(config, key, default)
