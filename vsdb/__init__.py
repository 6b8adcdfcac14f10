"""In-memory layered key-value maps and order-preserving key encodings."""

__version__ = "0.1.0"
__all__ = ["ende", "dagmap", "dagmap_typed"]