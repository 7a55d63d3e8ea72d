"""CLI command groups for reversal-rooms."""

__all__ = [
    "config",
    "modules",
]
