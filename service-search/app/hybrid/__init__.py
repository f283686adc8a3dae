"""Hybrid search components for semantic + lexical ranking.

Includes the ``QueryNormalizer`` that validates requests and the
``SearchManager`` which runs the search stages and assembles paged results.
"""
