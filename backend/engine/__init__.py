"""
Viewport-driven loading.

The loader turns "viewport settled" events into at most one Overpass fetch per
buffered region, backed by a bounded LRU of previous results.
"""
