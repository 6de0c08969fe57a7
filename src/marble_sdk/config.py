"""Client configuration loading.

Priority (highest to lowest):
1. Environment variables (``MARBLE_*``)
2. Project TOML config (``./marble.toml``)
3. XDG config (``$XDG_CONFIG_HOME/marble/config.toml``)
4. Default values

An explicit file (``config_file`` argument or ``MARBLE_CONFIG_FILE``)
replaces the layered TOML lookup.

Example ``marble.toml``::

    [client]
    base_url = "https://api.marblecms.com/v1/ws_123"
    api_key = "..."
    timeout = 30

    [retry]
    enabled = true
    max_retries = 3
    base_delay_ms = 250
    max_delay_ms = 8000

    [webhook]
    secret = "..."
    tolerance_seconds = 300

    [logging]
    level = "INFO"
    structured = false
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from marble_sdk.core.retry import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_MAX_DELAY_MS,
    DEFAULT_MAX_RETRIES,
    RetryPolicy,
)
from marble_sdk.core.transport import DEFAULT_TIMEOUT
from marble_sdk.core.webhook import DEFAULT_TOLERANCE_SECONDS

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAME = "marble.toml"
PACKAGE_LOGGER = "marble_sdk"


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


@dataclass
class ClientConfig:
    """Settings for building a ``MarbleClient`` and verifying webhooks."""

    base_url: Optional[str] = None
    api_key: Optional[str] = field(default=None, repr=False)
    timeout: float = DEFAULT_TIMEOUT

    # Retry settings
    retries_enabled: bool = True
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_base_delay_ms: int = DEFAULT_BASE_DELAY_MS
    retry_max_delay_ms: int = DEFAULT_MAX_DELAY_MS

    # Webhook settings
    webhook_secret: Optional[str] = field(default=None, repr=False)
    webhook_tolerance_seconds: float = DEFAULT_TOLERANCE_SECONDS

    # Logging
    log_level: str = "WARNING"
    structured_logging: bool = False

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> ClientConfig:
        """Create configuration from TOML files and environment variables."""
        config = cls()

        toml_path = config_file or os.environ.get("MARBLE_CONFIG_FILE")
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
            xdg_config = Path(xdg_config_home) / "marble" / "config.toml"
            if xdg_config.exists():
                config._load_toml(xdg_config)
                logger.debug("Loaded XDG config from %s", xdg_config)

            project_config = Path(PROJECT_CONFIG_NAME)
            if project_config.exists():
                config._load_toml(project_config)
                logger.debug("Loaded project config from %s", project_config)

        config._load_env()
        return config

    def _load_toml(self, path: Path) -> None:
        """Load configuration from a TOML file.

        Raises:
            ValueError: The file is not valid TOML.
        """
        if not path.exists():
            logger.warning("Config file not found: %s", path)
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {path}: {e}") from e

        if "client" in data:
            client = data["client"]
            if "base_url" in client:
                self.base_url = client["base_url"]
            if "api_key" in client:
                self.api_key = client["api_key"]
            if "timeout" in client:
                self.timeout = float(client["timeout"])

        if "retry" in data:
            retry = data["retry"]
            if "enabled" in retry:
                self.retries_enabled = _parse_bool(retry["enabled"])
            if "max_retries" in retry:
                self.max_retries = int(retry["max_retries"])
            if "base_delay_ms" in retry:
                self.retry_base_delay_ms = int(retry["base_delay_ms"])
            if "max_delay_ms" in retry:
                self.retry_max_delay_ms = int(retry["max_delay_ms"])

        if "webhook" in data:
            webhook = data["webhook"]
            if "secret" in webhook:
                self.webhook_secret = webhook["secret"]
            if "tolerance_seconds" in webhook:
                self.webhook_tolerance_seconds = float(webhook["tolerance_seconds"])

        if "logging" in data:
            log = data["logging"]
            if "level" in log:
                self.log_level = str(log["level"]).upper()
            if "structured" in log:
                self.structured_logging = _parse_bool(log["structured"])

    def _set_number(self, attr: str, env_var: str, convert: Callable[[str], Any]) -> None:
        raw = os.environ.get(env_var)
        if not raw:
            return
        try:
            setattr(self, attr, convert(raw))
        except ValueError:
            logger.warning("Ignoring invalid %s=%r", env_var, raw)

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if base_url := os.environ.get("MARBLE_BASE_URL"):
            self.base_url = base_url
        if api_key := os.environ.get("MARBLE_API_KEY"):
            self.api_key = api_key
        self._set_number("timeout", "MARBLE_TIMEOUT", float)

        if enabled := os.environ.get("MARBLE_RETRIES_ENABLED"):
            self.retries_enabled = _parse_bool(enabled)
        self._set_number("max_retries", "MARBLE_MAX_RETRIES", int)
        self._set_number("retry_base_delay_ms", "MARBLE_RETRY_BASE_DELAY_MS", int)
        self._set_number("retry_max_delay_ms", "MARBLE_RETRY_MAX_DELAY_MS", int)

        if secret := os.environ.get("MARBLE_WEBHOOK_SECRET"):
            self.webhook_secret = secret
        self._set_number("webhook_tolerance_seconds", "MARBLE_WEBHOOK_TOLERANCE", float)

        if level := os.environ.get("MARBLE_LOG_LEVEL"):
            self.log_level = level.upper()
        if structured := os.environ.get("MARBLE_STRUCTURED_LOGGING"):
            self.structured_logging = _parse_bool(structured)

    def build_retry_policy(self) -> Optional[RetryPolicy]:
        """Return the configured retry policy, or None when retries are disabled."""
        if not self.retries_enabled:
            return None
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay_ms=self.retry_base_delay_ms,
            max_delay_ms=self.retry_max_delay_ms,
        )

    def setup_logging(self) -> None:
        """Attach a stream handler to the ``marble_sdk`` logger."""
        level = getattr(logging, self.log_level, logging.WARNING)

        if self.structured_logging:
            # JSON-style structured logging
            formatter = logging.Formatter(
                '{"timestamp":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
            )
        else:
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)

        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.setLevel(level)
        package_logger.addHandler(handler)
