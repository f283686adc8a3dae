"""Search stages that produce ranked candidates.

- ``lexical``: boosted, fuzzy, filtered full-text matching.
- ``semantic``: nearest-neighbour matching on the query embedding.
"""
