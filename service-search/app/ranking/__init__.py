"""Search ranking and result fusion components.

This package holds the fusion strategy (RRF with per-stage constants) that
combines lexical and semantic candidates for hybrid search.

Contents
- ``fusion``: candidates, fused results, and rank fusion
"""
