"""Token store selection from configuration."""

import logging

from cardano_token_api.core.config import Settings
from cardano_token_api.core.enums import StorageBackend
from cardano_token_api.core.errors import ConfigurationError
from cardano_token_api.storage.base_store import TokenStore
from cardano_token_api.storage.file_store import FileTokenStore
from cardano_token_api.storage.supabase_store import SupabaseTokenStore

logger = logging.getLogger(__name__)


def build_token_store(config: Settings) -> TokenStore:
    """Pick the backend once, at construction time."""
    if config.storage_backend == StorageBackend.SUPABASE:
        if not config.supabase_url or not config.supabase_key:
            raise ConfigurationError("Supabase backend requires SUPABASE_URL and SUPABASE_KEY")
        logger.info("Using Supabase token store at %s", config.supabase_url)
        return SupabaseTokenStore(config)

    logger.info("Using file token store in %s", config.data_dir)
    return FileTokenStore(config.data_dir)
