"""Reversal Rooms engine: module discovery, dependency resolution and storage."""

__version__ = "0.1.0"
