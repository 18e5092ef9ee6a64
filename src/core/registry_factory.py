"""
Factory for the liveness store and work registry collaborators.
"""
import logging
from typing import Optional

from abstractions.liveness_store import LivenessStore
from abstractions.work_registry import WorkRegistry
from config.config import Config
from core.memory_liveness_store import MemoryLivenessStore
from core.memory_work_registry import MemoryWorkRegistry

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = ["memory", "redis"]


def _resolve_type(store_type: Optional[str]) -> str:
    store_type = (store_type or Config.STORE_TYPE).lower()
    if store_type not in SUPPORTED_TYPES:
        raise ValueError(
            f"Unsupported store type: {store_type}. "
            f"Supported types: {SUPPORTED_TYPES}"
        )
    return store_type


class RegistryFactory:
    """
    Factory class for creating collaborator instances from configuration.
    """

    @staticmethod
    def create_liveness_store(store_type: Optional[str] = None, **kwargs) -> LivenessStore:
        """
        Create a liveness store.

        Args:
            store_type (Optional[str]): "memory" or "redis". If None, uses Config.STORE_TYPE.
            **kwargs: redis_url, redis_db and key_prefix overrides for the redis store.

        Returns:
            LivenessStore: A liveness store instance.

        Raises:
            ValueError: If an unsupported store type is specified.
        """
        store_type = _resolve_type(store_type)
        logger.info(f"Creating {store_type} liveness store")

        if store_type == "memory":
            return MemoryLivenessStore()

        from core.redis_liveness_store import RedisLivenessStore

        return RedisLivenessStore(
            redis_url=kwargs.get("redis_url", Config.REDIS_URL),
            db=kwargs.get("redis_db", Config.REDIS_DB),
            key_prefix=kwargs.get("key_prefix", Config.LIVENESS_KEY_PREFIX),
        )

    @staticmethod
    def create_work_registry(store_type: Optional[str] = None, **kwargs) -> WorkRegistry:
        """
        Create a work registry.

        Args:
            store_type (Optional[str]): "memory" or "redis". If None, uses Config.STORE_TYPE.
            **kwargs: redis_url, redis_db and key_prefix overrides for the redis registry.

        Returns:
            WorkRegistry: A work registry instance.

        Raises:
            ValueError: If an unsupported store type is specified.
        """
        store_type = _resolve_type(store_type)
        logger.info(f"Creating {store_type} work registry")

        if store_type == "memory":
            return MemoryWorkRegistry()

        from core.redis_work_registry import RedisWorkRegistry

        return RedisWorkRegistry(
            redis_url=kwargs.get("redis_url", Config.REDIS_URL),
            db=kwargs.get("redis_db", Config.REDIS_DB),
            key_prefix=kwargs.get("key_prefix", ""),
        )
