"""
Backend Factory for RelBoard.

Creates the appropriate storage backend from configuration: a LocalBackend
over a data directory, or a SupabaseBackend using SUPABASE_URL/SUPABASE_KEY.
"""

import logging
from pathlib import Path
from typing import Optional, Union, TYPE_CHECKING

from relboard import config
from relboard.storage.local_backend import LocalBackend

if TYPE_CHECKING:
    from relboard.storage.protocol import StorageBackend

logger = logging.getLogger(__name__)

BACKEND_TYPES = ("local", "supabase")


def create_backend(
    backend_type: Optional[str] = None,
    data_dir: Optional[Union[str, Path]] = None,
    supabase_client=None,
    config_path: Optional[Path] = None,
) -> "StorageBackend":
    """
    Create a storage backend instance.

    Args:
        backend_type: 'local' or 'supabase'; read from configuration if None
        data_dir: Data directory for the local backend; read from configuration if None
        supabase_client: Optional pre-configured Supabase client
        config_path: Optional config.json override (used by tests)

    Returns:
        StorageBackend instance (LocalBackend or SupabaseBackend)
    """
    backend_type = (backend_type or config.get_backend_type(config_path)).lower()

    if backend_type not in BACKEND_TYPES:
        raise ValueError(f"Unknown storage backend '{backend_type}', expected one of {BACKEND_TYPES}")

    if backend_type == "supabase":
        # Imported here so the local backend works without Supabase configured
        from relboard.storage.supabase_backend import SupabaseBackend

        url, key = config.get_supabase_credentials(config_path)
        logger.info("Using Supabase storage backend")
        return SupabaseBackend(client=supabase_client, supabase_url=url, supabase_key=key)

    data_dir = Path(data_dir) if data_dir else config.get_data_dir(config_path)
    logger.info(f"Using local storage backend at {data_dir}")
    return LocalBackend(str(data_dir))
