"""
Configuration management for RelBoard.

Handles persistent configuration including:
- Storage backend selection (local JSON files or Supabase)
- Supabase credentials
- Server settings (port, storage secret, log level)

Values are read from environment variables first (a `.env` file is loaded by
app.py via python-dotenv), then from config.json next to the project root.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Tuple

from relboard.paths import get_config_path, get_db_dir

logger = logging.getLogger(__name__)

DEFAULT_BACKEND = "local"
DEFAULT_PORT = 8080
DEFAULT_LOG_LEVEL = "INFO"


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from config.json."""
    config_path = Path(config_path) if config_path else get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to read config from {config_path}: {e}")
            return {}
    return {}


def _get(env_name: str, key: str, default=None, config_path: Optional[Path] = None):
    value = os.environ.get(env_name)
    if value:
        return value
    return load_config(config_path).get(key, default)


def get_backend_type(config_path: Optional[Path] = None) -> str:
    """
    Get the storage backend type.

    Priority:
    1. Environment variable RELBOARD_BACKEND
    2. "storage_backend" in config.json
    3. "local"
    """
    backend = _get("RELBOARD_BACKEND", "storage_backend", DEFAULT_BACKEND, config_path)
    return str(backend).strip().lower()


def get_data_dir(config_path: Optional[Path] = None) -> Path:
    """Directory used by the local JSON backend."""
    data_dir = _get("RELBOARD_DATA_DIR", "data_dir", None, config_path)
    return Path(data_dir) if data_dir else get_db_dir()


def get_supabase_credentials(config_path: Optional[Path] = None) -> Tuple[Optional[str], Optional[str]]:
    """Return (url, key) for Supabase, either of which may be None."""
    url = _get("SUPABASE_URL", "supabase_url", None, config_path)
    key = _get("SUPABASE_KEY", "supabase_key", None, config_path)
    return url, key


def get_port(config_path: Optional[Path] = None) -> int:
    value = _get("RELBOARD_PORT", "port", DEFAULT_PORT, config_path)
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid port {value!r}, using {DEFAULT_PORT}")
        return DEFAULT_PORT


def get_log_level(config_path: Optional[Path] = None) -> str:
    return str(_get("LOG_LEVEL", "log_level", DEFAULT_LOG_LEVEL, config_path)).upper()


def get_storage_secret(config_path: Optional[Path] = None) -> str:
    return str(_get("STORAGE_SECRET", "storage_secret", "relboard_secret_key", config_path))
