"""Configuration file loading for aia.

Reads TOML config from ~/.config/aia/config.toml (or $XDG_CONFIG_HOME/aia/config.toml).
A commented template is written there on first run.
"""

import logging
import os
import tomllib

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CONFIG_TEMPLATE = """\
# AIA terminal assistant configuration.

# LLM provider and model, as understood by aisuite (e.g. "openai", "anthropic", "ollama").
provider = "openai"
model = "gpt-4o-mini"

# API key for the provider. When empty, the <PROVIDER>_API_KEY environment variable is used.
# Local providers such as "ollama" don't need one.
api_key = ""

# Shell used to run the commands you approve.
shell = "bash"

# Number of previous exchanges sent along with each request.
max_history_turns = 20

# Timeouts, in seconds.
request_timeout = 60
command_timeout = 120
"""


class ConfigError(Exception):
    """Raised when the configuration can't be loaded or is invalid."""


@dataclass
class Config:
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    api_key: str = ""
    shell: str = "bash"
    max_history_turns: int = 20
    request_timeout: float = 60
    command_timeout: float = 120

    @property
    def model_id(self) -> str:
        """The "<provider>:<model>" identifier aisuite expects."""
        return f"{self.provider}:{self.model}"

    def provider_configs(self) -> Dict[str, Dict[str, Any]]:
        provider_config: Dict[str, Any] = {"timeout": self.request_timeout}
        if self.api_key:
            provider_config["api_key"] = self.api_key
        return {self.provider: provider_config}


# Expected TOML types for each key
_KEY_TYPES = {
    "provider": (str,),
    "model": (str,),
    "api_key": (str,),
    "shell": (str,),
    "max_history_turns": (int,),
    "request_timeout": (int, float),
    "command_timeout": (int, float),
}

_POSITIVE_KEYS = {"request_timeout", "command_timeout"}

# Local providers that run without an API key
KEYLESS_PROVIDERS = {"ollama"}


def default_config_path() -> Path:
    """Return the config file path, respecting XDG_CONFIG_HOME."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "aia" / "config.toml"


def _ensure_config_file(path: Path):
    if path.exists():
        return
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to write default config file {path}: {e}") from e
    logger.info("Created default configuration at %s", path)


def _validate(data: Dict[str, Any], path: Path) -> Dict[str, Any]:
    values = {}
    for key, value in data.items():
        expected = _KEY_TYPES.get(key)
        if expected is None:
            logger.warning("Ignoring unknown config key '%s' in %s", key, path)
            continue
        # bool is a subclass of int, but `true` is never a valid number here.
        if isinstance(value, bool) or not isinstance(value, expected):
            names = " or ".join(t.__name__ for t in expected)
            raise ConfigError(f"{path}: '{key}' must be {names}, got {type(value).__name__}")
        if key in _POSITIVE_KEYS and value <= 0:
            raise ConfigError(f"{path}: '{key}' must be positive")
        if key == "max_history_turns" and value < 0:
            raise ConfigError(f"{path}: '{key}' can't be negative")
        values[key] = value
    return values


def load_config(path: Optional[Path] = None) -> Config:
    """
    Loads the configuration, creating the default file first if it doesn't exist.

    Raises:
        ConfigError: The file is unreadable, invalid, or no API key is available for a
            provider that needs one.
    """
    path = Path(path) if path is not None else default_config_path()
    _ensure_config_file(path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e

    config = Config(**_validate(data, path))

    if not config.api_key and config.provider not in KEYLESS_PROVIDERS:
        env_var = f"{config.provider.upper()}_API_KEY"
        config.api_key = os.environ.get(env_var, "")
        if not config.api_key:
            raise ConfigError(f"Please set your API key in {path} (or export {env_var}).")
        logger.debug("Using API key from %s", env_var)

    return config

