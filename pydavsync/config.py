"""Configuration management for pydavsync.

Settings are read from environment variables first, then from the
config file at ``~/.config/pydavsync/config`` (``KEY=value`` lines).
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .exceptions import DavConfigError
from .utils import (
    CONFIG_ENV_REMOTE_URL,
    CONFIG_ENV_TIMEOUT,
    CONFIG_ENV_WORKERS,
    DEFAULT_TIMEOUT,
)

logger = logging.getLogger(__name__)


class Config:
    """Configuration manager for pydavsync."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file. Defaults to
                ~/.config/pydavsync/
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "pydavsync"
        self.config_dir = config_dir
        self.config_file = config_dir / "config"

    def get_config_path(self) -> Path:
        """Get the path to the config file."""
        return self.config_file

    def _read_file(self) -> dict[str, str]:
        """Read KEY=value pairs from the config file."""
        values: dict[str, str] = {}
        if not self.config_file.exists():
            return values

        with open(self.config_file, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, _, value = line.partition("=")
                values[key.strip()] = value.strip().strip('"').strip("'")
        return values

    def _write_file(self, values: dict[str, str]) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w", encoding="utf-8") as f:
            for key, value in sorted(values.items()):
                f.write(f"{key}={value}\n")
        # Remote URLs may embed credentials
        self.config_file.chmod(0o600)
        logger.debug(f"Wrote config to {self.config_file}")

    def _get(self, key: str) -> Optional[str]:
        value = os.environ.get(key)
        if value:
            return value
        return self._read_file().get(key) or None

    @property
    def remote_url(self) -> Optional[str]:
        """Default remote root URL."""
        return self._get(CONFIG_ENV_REMOTE_URL)

    @property
    def timeout(self) -> float:
        """Request timeout in seconds."""
        value = self._get(CONFIG_ENV_TIMEOUT)
        if value is None:
            return DEFAULT_TIMEOUT
        try:
            timeout = float(value)
        except ValueError as e:
            raise DavConfigError(
                f"{CONFIG_ENV_TIMEOUT} must be a number, got {value!r}"
            ) from e
        if timeout <= 0:
            raise DavConfigError(f"{CONFIG_ENV_TIMEOUT} must be positive")
        return timeout

    @property
    def max_workers(self) -> Optional[int]:
        """Worker limit for parallel sync (None means one per task, up to 100)."""
        value = self._get(CONFIG_ENV_WORKERS)
        if value is None:
            return None
        try:
            workers = int(value)
        except ValueError as e:
            raise DavConfigError(
                f"{CONFIG_ENV_WORKERS} must be an integer, got {value!r}"
            ) from e
        if workers < 1:
            raise DavConfigError(f"{CONFIG_ENV_WORKERS} must be at least 1")
        return workers

    def is_configured(self) -> bool:
        """Check whether a remote URL is available."""
        return self.remote_url is not None

    def save_remote_url(self, remote_url: str) -> None:
        """Store the default remote URL in the config file."""
        values = self._read_file()
        values[CONFIG_ENV_REMOTE_URL] = remote_url
        self._write_file(values)


config = Config()
