"""Track external sources and turn their changes into scored digests."""

__version__ = "0.1.0"
