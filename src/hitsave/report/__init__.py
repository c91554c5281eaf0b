"""Report module for saved interesting file sets.

This package contains:
- saved_items: SavedFile/SavedDirectory report nodes and the per-set XML report
"""
