"""Catalog store factory.

Centralizes creation of concrete ``CatalogStore`` backends so callers don't
depend on implementation details. New stores can be added without changing
call sites.
"""

from typing import Any, Dict
from enum import Enum
import structlog

from libs.common.config import BaseConfig
from .base import CatalogStore
from .memory import MemoryCatalogStore
from .opensearch import OpenSearchCatalogStore

logger = structlog.get_logger("catalog.factory")


class CatalogStoreType(Enum):
    """Supported catalog store types."""
    OPENSEARCH = "opensearch"
    MEMORY = "memory"


class CatalogStoreFactory:
    """Factory for creating catalog store instances."""

    @staticmethod
    def create(store_type: CatalogStoreType, config: Dict[str, Any]) -> CatalogStore:
        """Create a catalog store instance.

        Parameters
        - store_type: A ``CatalogStoreType`` enum value
        - config: Backend‑specific parameters (e.g., hosts for OpenSearch)
        """

        if store_type == CatalogStoreType.OPENSEARCH:
            hosts = config.get("hosts", ["http://localhost:9200"])
            if not hosts:
                raise ValueError("OpenSearch requires 'hosts' in config")

            return OpenSearchCatalogStore(
                hosts=hosts,
                index_name=config.get("index_name", "books"),
                vector_dimension=config.get("vector_dimension", 3072),
                username=config.get("username"),
                password=config.get("password"),
                verify_certs=config.get("verify_certs", False),
                ssl_assert_hostname=config.get("ssl_assert_hostname", False),
                ssl_show_warn=config.get("ssl_show_warn", False),
                timeout=config.get("timeout", 10.0),
            )

        elif store_type == CatalogStoreType.MEMORY:
            return MemoryCatalogStore(vector_dimension=config.get("vector_dimension"))

        else:
            raise ValueError(f"Unsupported catalog store type: {store_type}")

    @staticmethod
    def create_from_config(config: Dict[str, Any]) -> CatalogStore:
        """Create catalog store from configuration dictionary.

        Expects a ``type`` key and any implementation‑specific fields.
        """
        store_type_str = config.get("type", "opensearch")

        try:
            store_type = CatalogStoreType(store_type_str)
        except ValueError:
            raise ValueError(f"Unsupported catalog store type: {store_type_str}")

        return CatalogStoreFactory.create(store_type, config)


def create_catalog_store(config: BaseConfig) -> CatalogStore:
    """Create the catalog store selected by ``shelf_catalog_backend``."""
    store_config: Dict[str, Any] = {
        "type": config.shelf_catalog_backend,
        "vector_dimension": config.shelf_vector_dimension,
    }

    if config.shelf_catalog_backend == CatalogStoreType.OPENSEARCH.value:
        store_config.update({
            "hosts": [host.strip() for host in config.shelf_opensearch_hosts.split(",") if host.strip()],
            "index_name": config.shelf_opensearch_index,
            "username": config.shelf_opensearch_username,
            "password": config.shelf_opensearch_password,
            "verify_certs": config.shelf_opensearch_verify_certs,
            "ssl_assert_hostname": config.shelf_opensearch_ssl_assert_hostname,
            "ssl_show_warn": config.shelf_opensearch_ssl_show_warn,
            "timeout": config.shelf_opensearch_timeout,
        })

    logger.info("Creating catalog store", backend=config.shelf_catalog_backend)
    return CatalogStoreFactory.create_from_config(store_config)
