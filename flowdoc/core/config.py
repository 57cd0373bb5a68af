"""Runtime configuration for FlowDoc.

Resolution order (later wins):
  1. Built-in defaults
  2. YAML file at FLOWDOC_CONFIG (default: config/flowdoc.yaml at repo root)
  3. FLOWDOC_* environment variables (a .env file is loaded first)
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).parents[2] / "config" / "flowdoc.yaml"

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 9010
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    max_document_chars: int = 200_000


def get_config_path() -> Path:
    """Return the YAML config path (may not exist)."""
    env_path = os.getenv("FLOWDOC_CONFIG")
    return Path(env_path) if env_path else _DEFAULT_CONFIG_PATH


def _load_yaml_config(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config at {path}: expected a mapping")
        return {}
    section = data.get("flowdoc", data)
    return section if isinstance(section, dict) else {}


def _split_origins(value: Any) -> List[str]:
    if isinstance(value, str):
        return [o.strip() for o in value.split(",") if o.strip()]
    return [str(o) for o in value]


def _as_int(value: Any, default: int, source: str) -> int:
    """Coerce a config value to int, keeping ``default`` if it is malformed."""
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid integer {value!r} for {source}; using {default}")
        return default


def load_settings() -> Settings:
    """Build Settings from defaults, YAML file and environment.

    Malformed integers are logged and fall back to the previous value.
    """
    settings = Settings()

    file_config = _load_yaml_config(get_config_path())
    if "host" in file_config:
        settings.host = str(file_config["host"])
    if "port" in file_config:
        settings.port = _as_int(file_config["port"], settings.port, "port")
    if "log_level" in file_config:
        settings.log_level = str(file_config["log_level"]).upper()
    if "cors_origins" in file_config:
        settings.cors_origins = _split_origins(file_config["cors_origins"])
    if "max_document_chars" in file_config:
        settings.max_document_chars = _as_int(
            file_config["max_document_chars"], settings.max_document_chars, "max_document_chars"
        )

    settings.host = os.getenv("FLOWDOC_HOST", settings.host)
    settings.port = _as_int(os.getenv("FLOWDOC_PORT"), settings.port, "FLOWDOC_PORT")
    settings.log_level = os.getenv("FLOWDOC_LOG_LEVEL", settings.log_level).upper()
    origins = os.getenv("FLOWDOC_CORS_ORIGINS")
    if origins is not None:
        settings.cors_origins = _split_origins(origins)
    settings.max_document_chars = _as_int(
        os.getenv("FLOWDOC_MAX_DOCUMENT_CHARS"),
        settings.max_document_chars,
        "FLOWDOC_MAX_DOCUMENT_CHARS",
    )

    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return load_settings()
