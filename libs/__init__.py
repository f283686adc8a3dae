"""Shared libraries for the shelf search services.

Subpackages:
- ``libs.common``: configuration, logging, token verification, and metrics.
- ``libs.catalog``: catalog models, query values, and store backends.

Notes:
- Avoid service-specific logic; keep modules cohesive and broadly useful.
"""
