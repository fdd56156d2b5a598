"""
Utilities package for indexbench.

Exports shared helpers for logging and profiling. Keep this package
lightweight and free of domain-specific logic.
"""

from indexbench.utils.logging import configure_logging, get_logger
from indexbench.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
