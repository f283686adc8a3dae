"""Search service package.

Layout:
- ``api``: HTTP endpoints for book search.
- ``hybrid``: query normalization and hybrid search orchestration.
- ``retrievers``: lexical and semantic search stages.
- ``ranking``: rank fusion.
- ``runtime``: service-local metrics and runtime helpers.
"""
