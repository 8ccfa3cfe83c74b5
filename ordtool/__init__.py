"""Ordinal numbering of satoshis, an index of their locations, and signed NFTs."""

__version__ = "0.1.0"