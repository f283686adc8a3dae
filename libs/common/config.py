"""Configuration management for the shelf search services.

This module centralizes environment-driven configuration for the catalog
store, the search service and its tuning knobs. It builds on
``pydantic_settings.BaseSettings`` so configuration can be provided via
environment variables, ``.env`` files, or defaults.

Highlights
- Strongly‑typed settings with sensible defaults
- One place to discover commonly used environment variables
- Ranking weights and fusion constants are plain settings, not literals

Usage
- Inject the appropriate config in your service entrypoint:
  ``config = SearchConfig()``
- Or select dynamically: ``config = get_config("search")``
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class for all services.

    Parameters are read from the process environment with the given names
    (``SHELF_LOG_LEVEL`` for ``shelf_log_level`` and so on).

    Notes
    - Add new shared settings here so downstream services inherit them.
    - Prefer a typed field over reading ``os.environ`` directly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    shelf_env: str = Field(default="local")

    # Logging
    shelf_log_level: str = Field(default="INFO")
    shelf_log_format: str = Field(default="json")

    # Catalog store
    shelf_catalog_backend: str = Field(default="opensearch")
    shelf_vector_dimension: int = Field(default=3072)

    # OpenSearch
    shelf_opensearch_hosts: str = Field(default="http://localhost:9200")
    shelf_opensearch_index: str = Field(default="books")
    shelf_opensearch_username: Optional[str] = Field(default=None)
    shelf_opensearch_password: Optional[str] = Field(default=None)
    shelf_opensearch_verify_certs: bool = Field(default=False)
    shelf_opensearch_ssl_assert_hostname: bool = Field(default=False)
    shelf_opensearch_ssl_show_warn: bool = Field(default=False)
    shelf_opensearch_timeout: float = Field(default=10.0)

    # Security
    shelf_jwt_secret_key: str = Field(default="dev-secret-key-change-in-production")
    shelf_jwt_algorithm: str = Field(default="HS256")


class SearchConfig(BaseConfig):
    """Configuration for the search service.

    Adds the API port, pagination limits, lexical boost weights, fusion
    constants and the policies for the two open behaviours of hybrid mode
    (total count and semantic stage failure).
    """

    shelf_search_port: int = Field(default=9007)

    # Pagination
    shelf_search_default_page_size: int = Field(default=50)
    shelf_search_max_page_size: int = Field(default=100)

    # Lexical boosts
    shelf_search_boost_phrase: float = Field(default=8.0)
    shelf_search_boost_publisher_exact: float = Field(default=5.0)
    shelf_search_boost_autocomplete: float = Field(default=3.0)
    shelf_search_boost_fuzzy: float = Field(default=2.0)
    shelf_search_boost_tags: float = Field(default=2.0)
    shelf_search_boost_description: float = Field(default=1.0)
    shelf_search_fuzzy_max_edits: int = Field(default=1)
    shelf_search_fuzzy_prefix_length: int = Field(default=2)

    # Fusion
    shelf_search_k_text: float = Field(default=1.0)
    shelf_search_k_vector: float = Field(default=60.0)
    shelf_search_num_candidates: int = Field(default=100)
    shelf_search_candidate_multiplier: int = Field(default=2)

    # Policies: "window" | "lexical", "fail" | "degrade"
    shelf_search_hybrid_count_mode: str = Field(default="window")
    shelf_search_semantic_failure_policy: str = Field(default="fail")
    shelf_search_timeout_seconds: Optional[float] = Field(default=10.0)

    # Embedding provider used by the HTTP layer for GET searches
    shelf_embedding_service_url: Optional[str] = Field(default=None)
    shelf_embedding_model: str = Field(default="text-embedding-3-large")
    shelf_embedding_timeout: float = Field(default=5.0)


def get_config(service_name: str) -> BaseConfig:
    """Get configuration for a specific service.

    Parameters
    - service_name: Literal name, currently only ``search``.

    Returns
    - A concrete ``BaseConfig`` subclass pre‑wired to read the right env vars.
    """
    config_map = {
        "search": SearchConfig,
    }

    # Default to ``BaseConfig`` to avoid surprising crashes for unknown names.
    config_class = config_map.get(service_name, BaseConfig)
    return config_class()
