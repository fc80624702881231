"""Configuration management for the kintone client.

This module handles loading and validating client configuration from a config
file and environment variables, and wiring the configured log level into the
standard logging module.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union


# Default configuration values
DEFAULT_TIMEOUT = 30
DEFAULT_LOG_LEVEL = "info"
DEFAULT_CONFIG_PATH = Path.home() / ".kintone" / "config.json"
VALID_LOG_LEVELS = ["debug", "info", "warning", "error"]
MIN_TIMEOUT = 1
MAX_TIMEOUT = 300
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


@dataclass
class ClientConfig:
    """Configuration for the kintone client.

    Args:
        base_url: Base URL of the kintone domain (must use HTTPS)
        api_token: API token sent with every request (optional)
        guest_space_id: Guest space to scope all record paths to (optional)
        timeout: Request timeout in seconds (1-300, default: 30)
        log_level: Logging level (debug/info/warning/error, default: info)
    """

    base_url: str
    api_token: Optional[str] = None
    guest_space_id: Optional[Union[int, str]] = None
    timeout: int = DEFAULT_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.base_url:
            raise ValueError("base_url cannot be empty")

        # Allow localhost/127.0.0.1 for testing, but require HTTPS for all other URLs
        is_localhost = (
            "://localhost" in self.base_url or "://127.0.0.1" in self.base_url
        )
        if not self.base_url.startswith("https://") and not is_localhost:
            raise ValueError(
                "base_url must use HTTPS. " f"Got: {self.base_url[:20]}..."
            )

        if self.api_token is not None and not self.api_token:
            raise ValueError("api_token cannot be empty when provided")

        if self.guest_space_id is not None and not str(self.guest_space_id).strip():
            raise ValueError("guest_space_id cannot be empty when provided")

        if self.timeout < MIN_TIMEOUT or self.timeout > MAX_TIMEOUT:
            raise ValueError(
                f"timeout must be between {MIN_TIMEOUT} and {MAX_TIMEOUT} seconds. "
                f"Got: {self.timeout}"
            )

        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {VALID_LOG_LEVELS}. "
                f"Got: {self.log_level}"
            )

        self.base_url = self.base_url.rstrip("/")

    @property
    def api_path_prefix(self) -> str:
        """Path prefix for REST endpoints, scoped to the guest space if set."""
        if self.guest_space_id is not None:
            return f"/k/guest/{self.guest_space_id}/v1"
        return "/k/v1"

    def configure_logging(self) -> None:
        """Apply this configuration's log level to root logging."""
        setup_logging(self.log_level)


# Config field -> environment variable overriding it
ENV_OVERRIDES = {
    "base_url": "KINTONE_BASE_URL",
    "api_token": "KINTONE_API_TOKEN",
    "guest_space_id": "KINTONE_GUEST_SPACE_ID",
    "timeout": "KINTONE_TIMEOUT",
    "log_level": "KINTONE_LOG_LEVEL",
}


def load_config(
    config_path: Optional[str] = None, use_env: bool = False
) -> ClientConfig:
    """Load configuration from a JSON file, environment variables, or both.

    The file is read when a path is given, or from DEFAULT_CONFIG_PATH unless
    use_env is set. Environment variables listed in ENV_OVERRIDES take
    precedence over file values.

    Raises:
        FileNotFoundError: If config file not found
        ValueError: If base_url is missing or a value is invalid
    """
    config_data: Dict[str, Any] = {}

    if config_path is not None or not use_env:
        path = Path(config_path or DEFAULT_CONFIG_PATH).expanduser().resolve()
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        file_perms = os.stat(path).st_mode & 0o777
        if file_perms != 0o600:
            logger.warning(
                f"Configuration file {path} has insecure permissions {oct(file_perms)}. "
                f"Recommend setting to 0600: chmod 0600 {path}"
            )

        with open(path) as f:
            config_data = json.load(f)

    if use_env:
        for field_name, env_var in ENV_OVERRIDES.items():
            if env_var in os.environ:
                config_data[field_name] = os.environ[env_var]
        if isinstance(config_data.get("timeout"), str):
            config_data["timeout"] = int(config_data["timeout"])

    if "base_url" not in config_data:
        raise ValueError(
            f"Missing required field: base_url (set {ENV_OVERRIDES['base_url']} "
            f"or add it to {DEFAULT_CONFIG_PATH})"
        )

    return ClientConfig(**config_data)


def setup_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure root logging for applications embedding the client.

    Args:
        level: One of VALID_LOG_LEVELS
    """
    if level not in VALID_LOG_LEVELS:
        raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}. Got: {level}")

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )
