"""Configuration management for tangramengine.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments or defaults.

Key classes:
- GeometryConfig: Scale and tolerances for geometric predicates
- SnapConfig: Rotation and slide snapping
- CanvasConfig: Canvas size and bounds margin
- HistoryConfig: Undo/redo capacity
- LoggingConfig: Logging settings
- EngineSettings: Main engine settings
"""

from tangramengine.config.settings import (
    CanvasConfig,
    EngineSettings,
    GeometryConfig,
    HistoryConfig,
    LoggingConfig,
    SlideSnapPreset,
    SnapConfig,
    get_default_settings,
)

__all__ = [
    "CanvasConfig",
    "EngineSettings",
    "GeometryConfig",
    "HistoryConfig",
    "LoggingConfig",
    "SlideSnapPreset",
    "SnapConfig",
    "get_default_settings",
]
