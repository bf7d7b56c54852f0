"""In-memory typed key-value store: strings, bitmaps, hashes, sets, lists,
sorted sets, geo, Bloom filters and HyperLogLog."""

__version__ = "0.1.0"