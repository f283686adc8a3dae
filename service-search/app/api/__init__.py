"""API subpackage for the search service.

Routers expose the book search endpoints. The transport layer remains thin
and delegates to ``SearchManager``.
"""
