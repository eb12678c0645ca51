"""Services Layer — favour cache and the workflows that mutate favours.

Invariants:
    - Every workflow re-checks permissions through core/lifecycle before any IO
    - Every successful remote mutation is followed by a cache patch or removal

Design Decisions:
    - Workflows are plain async functions; FavourActions wires them to the viewer
"""
