"""capreg: wishlist/catalog registry and client SDK conformance checker."""

__version__ = "0.1.0"
