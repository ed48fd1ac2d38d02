"""Configuration settings for Tangram Engine."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class SlideSnapPreset(str, Enum):
    """Stop positions available when sliding a piece along a track."""

    FIVE_STOP = "five_stop"
    THREE_STOP = "three_stop"

    @property
    def fractions(self) -> tuple[float, ...]:
        """Fractions of the slide range that are legal stop positions."""
        if self is SlideSnapPreset.THREE_STOP:
            return (0.0, 0.5, 1.0)
        return (0.0, 0.25, 0.5, 0.75, 1.0)


class GeometryConfig(BaseModel):
    """Configuration for geometry predicates.

    Tolerances are expressed in world units, i.e. after local piece
    coordinates have been multiplied by ``visual_scale``.
    """

    visual_scale: float = Field(
        default=50.0,
        gt=0.0,
        description="Factor applied to local piece coordinates before the transform",
    )
    overlap_tolerance: float = Field(
        default=0.1,
        ge=0.0,
        le=5.0,
        description="Projection overlap depth still treated as touching in the SAT test",
    )
    touch_vertex_tolerance: float = Field(
        default=1.0,
        ge=0.0,
        le=10.0,
        description="Distance under which two vertices count as shared when classifying touches",
    )
    connection_tolerance: float = Field(
        default=2.0,
        gt=0.0,
        le=10.0,
        description="Distance within which a declared connection counts as satisfied",
    )
    contact_tolerance: float = Field(
        default=0.01,
        gt=0.0,
        le=1.0,
        description="Tolerance for shared vertex and shared edge detection",
    )
    fine_tolerance: float = Field(
        default=0.0001,
        gt=0.0,
        le=0.01,
        description="Epsilon for parallel-line detection in segment intersection",
    )
    reprojection_threshold: float = Field(
        default=0.1,
        ge=0.0,
        le=5.0,
        description="Drift after which a rotated vertex is projected back onto its edge",
    )


class SnapConfig(BaseModel):
    """Configuration for snapping manipulations to legal positions."""

    rotation_step_degrees: float = Field(
        default=45.0,
        gt=0.0,
        le=180.0,
        description="Angular step between candidate rotation angles",
    )
    slide_preset: SlideSnapPreset = Field(
        default=SlideSnapPreset.FIVE_STOP,
        description="Stop positions used when sliding along a track",
    )
    slide_search_step: float = Field(
        default=2.0,
        gt=0.0,
        le=50.0,
        description="Step size used when searching overlap-free slide limits",
    )

    def rotation_candidates(self) -> list[float]:
        """Get candidate rotation angles from -180 to 180 degrees inclusive."""
        count = int(round(180.0 / self.rotation_step_degrees))
        return [i * self.rotation_step_degrees for i in range(-count, count + 1)]


class CanvasConfig(BaseModel):
    """Canvas dimensions used for placement and bounds checks."""

    width: float = Field(default=800.0, gt=0.0, description="Canvas width")
    height: float = Field(default=600.0, gt=0.0, description="Canvas height")
    bounds_margin: float = Field(
        default=50.0,
        ge=0.0,
        description="Distance a piece may extend beyond the canvas before it is out of bounds",
    )

    @property
    def size(self) -> tuple[float, float]:
        """Canvas size as a (width, height) tuple."""
        return (self.width, self.height)


class HistoryConfig(BaseModel):
    """Configuration for undo/redo history."""

    max_entries: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Maximum number of undo snapshots kept",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )


class EngineSettings(BaseModel):
    """Main engine settings."""

    geometry: GeometryConfig = Field(default_factory=GeometryConfig)
    snap: SnapConfig = Field(default_factory=SnapConfig)
    canvas: CanvasConfig = Field(default_factory=CanvasConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_settings() -> EngineSettings:
    """Get default engine settings."""
    return EngineSettings()
