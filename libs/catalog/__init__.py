"""Catalog store adapters and utilities.

Primary components:
- ``models``: the ``Book`` record and the ``PagedResult`` envelope.
- ``query``: store-facing lexical and vector query values.
- ``base``: abstract ``CatalogStore`` interface and common exceptions.
- ``opensearch``: OpenSearch implementation of the interface.
- ``memory``: in-process implementation for local runs and tests.
- ``embedding``: embedding provider client.
- ``factory``: helpers to construct a store from typed config.

Guidance:
- Prefer constructing via ``factory.create_catalog_store`` so runtime
  services remain decoupled from specific backends.
"""
