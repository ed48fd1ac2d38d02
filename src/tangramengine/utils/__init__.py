"""Utility functions for tangramengine.

This module provides logging setup and the editor event logger.
"""

from tangramengine.utils.logging import (
    EditorLogger,
    EditorStats,
    configure_logging,
)

__all__ = [
    "EditorLogger",
    "EditorStats",
    "configure_logging",
]
