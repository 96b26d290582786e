"""
GLMMBench Utilities Package.
Internal utilities - not part of public API.
"""

from . import external_tables, formatters, validators, visualization

__all__ = [
    "external_tables",
    "formatters",
    "validators",
    "visualization",
]
