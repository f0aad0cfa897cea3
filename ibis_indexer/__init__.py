"""Starknet event indexing: ABI decoding, query parsing, event bus and API handlers."""

__version__ = "0.1.0"