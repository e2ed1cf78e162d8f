"""Configuration loading and validation."""
from pathlib import Path
import logging
import re
from typing import Any

import voluptuous as vol
import yaml

from .const import (
    CONF_BASE_URL,
    CONF_CACHE_FILE,
    CONF_INFO_PATH,
    CONF_LOGIN_PATH,
    CONF_RETRY_DELAYS,
    CONF_STALE_DAYS,
    CONF_STUDENT_ID,
    DEFAULT_BASE_URL,
    DEFAULT_CACHE_FILE,
    DEFAULT_INFO_PATH,
    DEFAULT_LOGIN_PATH,
    DEFAULT_STALE_DAYS,
    IDENTITY_PATTERN,
)
from .exceptions import ConfigError

_LOGGER = logging.getLogger(__name__)

IDENTITY_SCHEMA = vol.All(
    vol.Coerce(str),
    vol.Strip,
    vol.Match(IDENTITY_PATTERN, msg="IDNP must be exactly 13 digits"),
)

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_STUDENT_ID): IDENTITY_SCHEMA,
        vol.Optional(CONF_BASE_URL, default=DEFAULT_BASE_URL): vol.All(str, vol.Url()),
        vol.Optional(CONF_LOGIN_PATH, default=DEFAULT_LOGIN_PATH): str,
        vol.Optional(CONF_INFO_PATH, default=DEFAULT_INFO_PATH): str,
        vol.Optional(CONF_CACHE_FILE, default=DEFAULT_CACHE_FILE): str,
        vol.Optional(CONF_RETRY_DELAYS, default=[]): [vol.All(vol.Coerce(float), vol.Range(min=0))],
        vol.Optional(CONF_STALE_DAYS, default=DEFAULT_STALE_DAYS): vol.All(int, vol.Range(min=1)),
    }
)


def is_valid_identity(identity: str | None) -> bool:
    """Return True for a 13 digit IDNP."""
    return bool(identity) and re.match(IDENTITY_PATTERN, identity) is not None


def validate_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Validate a config mapping and fill in defaults."""
    try:
        return CONFIG_SCHEMA(data or {})
    except vol.Invalid as err:
        raise ConfigError(f"Invalid configuration: {err}") from err


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load a YAML config file; a missing path gives the defaults."""
    if path is None:
        return validate_config({})

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    _LOGGER.debug("Loading config from %s", path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, OSError) as err:
        raise ConfigError(f"Failed to load config: {err}") from err

    if data is not None and not isinstance(data, dict):
        raise ConfigError("Config file must contain a mapping")

    return validate_config(data)
