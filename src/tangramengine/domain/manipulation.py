"""Manipulation modes derived for a placed piece.

A mode is recomputed from the current puzzle whenever pieces or connections
change and is never persisted.
"""

from dataclasses import dataclass
from typing import Any, TypeAlias

from tangramengine.domain.geometry import Point, Segment


@dataclass(frozen=True, slots=True)
class Locked:
    """The piece cannot move."""

    reason: str = "Position is fixed by connections"

    name = "locked"

    @property
    def description(self) -> str:
        return f"Locked: {self.reason}"

    def to_dict(self) -> dict[str, Any]:
        return {"mode": self.name, "reason": self.reason}


@dataclass(frozen=True, slots=True)
class Rotatable:
    """The piece may rotate about a pivot to one of the snap angles."""

    pivot: Point
    snap_angles: tuple[float, ...]

    name = "rotatable"

    @property
    def description(self) -> str:
        return "Rotate the piece around the connection point"

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.name,
            "pivot": self.pivot.to_dict(),
            "snapAngles": list(self.snap_angles),
        }


@dataclass(frozen=True, slots=True)
class Slidable:
    """The piece may slide along a track to one of the snap positions.

    Attributes:
        track: Stationary world edge the piece slides along
        range: (min, max) travel distance along the track
        snap_positions: Legal travel distances within the range
    """

    track: Segment
    range: tuple[float, float]
    snap_positions: tuple[float, ...]

    name = "slidable"

    @property
    def description(self) -> str:
        return "Slide the piece along the edge"

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.name,
            "track": self.track.to_dict(),
            "range": list(self.range),
            "snapPositions": list(self.snap_positions),
        }


@dataclass(frozen=True, slots=True)
class Free:
    """The piece has no connections and may be dragged anywhere."""

    name = "free"

    @property
    def description(self) -> str:
        return "Drag the piece freely"

    def to_dict(self) -> dict[str, Any]:
        return {"mode": self.name}


ManipulationMode: TypeAlias = Locked | Rotatable | Slidable | Free
