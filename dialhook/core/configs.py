"""Configuration management for dialhook.

Loads backend settings from ~/.config/dialhook/config.ini (section [api]),
falling back to a .env file beside it.
Provides RequestConfig, the read-only settings a single call runs with.
"""

import configparser
from dataclasses import asdict, dataclass
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import dotenv_values

from dialhook.core.errors import ConfigError

# Default location for user configuration; DIALHOOK_CONFIG overrides it.
CONFIG_PATH = Path.home() / ".config" / "dialhook" / "config.ini"

DEFAULT_BASE_URL = "https://localhost/api/index.php"
DEFAULT_TIMEOUT = 4
DEFAULT_CONNECT_TIMEOUT = 2

ENV_OVERRIDES = {
    "base_url": "DIALHOOK_BASE_URL",
    "timeout": "DIALHOOK_TIMEOUT_S",
    "connect_timeout": "DIALHOOK_CONNECT_TIMEOUT_S",
    "verify_ssl": "DIALHOOK_VERIFY_SSL",
    "ssl_cert_file": "DIALHOOK_SSL_CERT_FILE",
}


@dataclass(frozen=True)
class RequestConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: int = DEFAULT_TIMEOUT
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT
    verify_ssl: bool = True
    ssl_cert_file: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def get_config_path() -> Path:
    override = os.environ.get("DIALHOOK_CONFIG", "").strip()
    return Path(override).expanduser() if override else CONFIG_PATH


def load_raw_config(path: Optional[Path] = None) -> Dict[str, str]:
    """
    Load configuration values from the config file.
    Values are returned with lowercase keys for convenience.
    When the INI file is missing, a .env file in the same directory is used.
    """
    path = path or get_config_path()
    data: Dict[str, str] = {}

    if path.exists():
        cfg = configparser.ConfigParser()
        try:
            cfg.read(path)
        except configparser.Error as e:
            raise ConfigError(f"Cannot parse {path}: {e}") from e
        if "DEFAULT" in cfg:
            data.update({k.lower(): v for k, v in cfg["DEFAULT"].items()})
        if "api" in cfg:
            data.update({k.lower(): v for k, v in cfg["api"].items()})
        return data

    env_path = path.parent / ".env"
    if env_path.exists():
        env_values = dotenv_values(env_path)
        data.update({k.lower(): v for k, v in env_values.items() if v is not None})

    return data


def save_config(config: RequestConfig, path: Optional[Path] = None) -> Path:
    """Write ``config`` to the [api] section of the config file."""
    path = path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    cfg = configparser.ConfigParser()
    cfg["api"] = {
        "base_url": config.base_url,
        "timeout": str(config.timeout),
        "connect_timeout": str(config.connect_timeout),
        "verify_ssl": "true" if config.verify_ssl else "false",
        "ssl_cert_file": config.ssl_cert_file,
    }
    with open(path, "w") as handle:
        cfg.write(handle)
    return path


TRUE_WORDS = {"1", "true", "yes", "y", "on"}
FALSE_WORDS = {"0", "false", "no", "n", "off"}


def _get_bool(raw: Dict[str, str], key: str, default: bool = False) -> bool:
    value = raw.get(key)
    if isinstance(value, bool):
        return value
    if value is None or str(value).strip() == "":
        return default
    text = str(value).strip().lower()
    if text in TRUE_WORDS:
        return True
    if text in FALSE_WORDS:
        return False
    # unrecognised spelling: keep the default
    return default


def _get_seconds(raw: Dict[str, str], key: str, default: int) -> int:
    value = raw.get(key)
    if value is None or str(value).strip() == "":
        return default
    try:
        seconds = int(float(value))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for '{key}': {value!r}") from e
    if seconds <= 0:
        raise ConfigError(f"'{key}' must be a positive number of seconds, got {value!r}")
    return seconds


def get_request_config(raw: Optional[Dict[str, str]] = None) -> RequestConfig:
    """
    Build a RequestConfig from raw configuration values.
    Environment variables (DIALHOOK_*) take precedence over the file.
    Raises ConfigError if a timeout cannot be parsed.
    """
    raw = dict(load_raw_config() if raw is None else raw)

    for key, env_name in ENV_OVERRIDES.items():
        env_value = os.environ.get(env_name)
        if env_value is not None and str(env_value).strip() != "":
            raw[key] = env_value

    base_url = str(raw.get("base_url", "") or "").strip() or DEFAULT_BASE_URL

    return RequestConfig(
        base_url=base_url,
        timeout=_get_seconds(raw, "timeout", DEFAULT_TIMEOUT),
        connect_timeout=_get_seconds(raw, "connect_timeout", DEFAULT_CONNECT_TIMEOUT),
        verify_ssl=_get_bool(raw, "verify_ssl", True),
        ssl_cert_file=str(raw.get("ssl_cert_file", "") or "").strip(),
    )
