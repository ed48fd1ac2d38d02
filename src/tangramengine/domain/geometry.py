"""Core geometric value types.

This module defines the value types shared by every engine component:
- Point: A 2D point or vector in world or local space
- Segment: A directed line segment (edges and slide tracks)
- Transform: A 2D affine transform (rotation, translation, optional reflection)
"""

import math
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Point:
    """A point in 2D space, also used as a free vector.

    Immutable and hashable for use in sets/dicts.

    Attributes:
        x: X coordinate
        y: Y coordinate
    """

    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> "Point":
        """Multiply both coordinates by a factor."""
        return Point(self.x * factor, self.y * factor)

    def dot(self, other: "Point") -> float:
        """Dot product with another vector."""
        return self.x * other.x + self.y * other.y

    def cross(self, other: "Point") -> float:
        """Z component of the cross product with another vector."""
        return self.x * other.y - self.y * other.x

    @property
    def length(self) -> float:
        """Euclidean length when used as a vector."""
        return math.hypot(self.x, self.y)

    def normalized(self) -> "Point":
        """Unit vector in the same direction (zero vector stays zero)."""
        length = self.length
        if length == 0.0:
            return Point(0.0, 0.0)
        return Point(self.x / length, self.y / length)

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def is_finite(self) -> bool:
        """Check that both coordinates are finite numbers."""
        return math.isfinite(self.x) and math.isfinite(self.y)

    def to_tuple(self) -> tuple[float, float]:
        """Convert to simple (x, y) tuple.

        Returns:
            Tuple of (x, y) coordinates
        """
        return (self.x, self.y)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary.

        Returns:
            Dictionary with x and y fields
        """
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Point":
        """Deserialize from dictionary.

        Args:
            data: Dictionary with x and y fields

        Returns:
            Point instance
        """
        return cls(x=float(data["x"]), y=float(data["y"]))


@dataclass(frozen=True, slots=True)
class Segment:
    """A directed line segment between two points.

    Used for piece edges and for the track a piece slides along.

    Attributes:
        start: First endpoint
        end: Second endpoint
    """

    start: Point
    end: Point

    @property
    def vector(self) -> Point:
        """Vector from start to end."""
        return self.end - self.start

    @property
    def length(self) -> float:
        """Segment length."""
        return self.start.distance_to(self.end)

    @property
    def direction(self) -> Point:
        """Unit direction from start to end."""
        return self.vector.normalized()

    @property
    def midpoint(self) -> Point:
        """Midpoint of the segment."""
        return Point((self.start.x + self.end.x) / 2.0, (self.start.y + self.end.y) / 2.0)

    def point_at(self, fraction: float) -> Point:
        """Point at a fraction of the way from start to end."""
        return self.start + self.vector.scaled(fraction)

    def reversed(self) -> "Segment":
        """Same segment with endpoints swapped."""
        return Segment(self.end, self.start)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Segment":
        """Deserialize from dictionary."""
        return cls(start=Point.from_dict(data["start"]), end=Point.from_dict(data["end"]))


@dataclass(frozen=True, slots=True)
class Transform:
    """A 2D affine transform.

    Maps a point as ``x' = a*x + c*y + tx`` and ``y' = b*x + d*y + ty``.
    Piece transforms only combine rotation, translation and, for the
    parallelogram, a horizontal reflection.

    Attributes:
        a, b, c, d: Linear part (column-major)
        tx, ty: Translation
    """

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    tx: float = 0.0
    ty: float = 0.0

    @classmethod
    def identity(cls) -> "Transform":
        """The identity transform."""
        return cls()

    @classmethod
    def rotation(cls, degrees: float) -> "Transform":
        """Counter-clockwise rotation about the origin."""
        radians = math.radians(degrees)
        cos_r = math.cos(radians)
        sin_r = math.sin(radians)
        return cls(a=cos_r, b=sin_r, c=-sin_r, d=cos_r)

    @classmethod
    def translation(cls, tx: float, ty: float) -> "Transform":
        """Pure translation."""
        return cls(tx=tx, ty=ty)

    @classmethod
    def scale(cls, sx: float, sy: float) -> "Transform":
        """Axis-aligned scale (``scale(-1, 1)`` is a horizontal reflection)."""
        return cls(a=sx, d=sy)

    def then(self, other: "Transform") -> "Transform":
        """Compose so that this transform applies first, then ``other``.

        Args:
            other: Transform applied after this one

        Returns:
            Combined transform
        """
        return Transform(
            a=other.a * self.a + other.c * self.b,
            b=other.b * self.a + other.d * self.b,
            c=other.a * self.c + other.c * self.d,
            d=other.b * self.c + other.d * self.d,
            tx=other.a * self.tx + other.c * self.ty + other.tx,
            ty=other.b * self.tx + other.d * self.ty + other.ty,
        )

    def translated(self, dx: float, dy: float) -> "Transform":
        """Same transform followed by a translation."""
        return Transform(self.a, self.b, self.c, self.d, self.tx + dx, self.ty + dy)

    def with_translation(self, tx: float, ty: float) -> "Transform":
        """Same linear part with the translation replaced."""
        return Transform(self.a, self.b, self.c, self.d, tx, ty)

    def apply(self, point: Point) -> Point:
        """Map a point through the transform."""
        return Point(
            self.a * point.x + self.c * point.y + self.tx,
            self.b * point.x + self.d * point.y + self.ty,
        )

    @property
    def translation_point(self) -> Point:
        """Translation component as a point."""
        return Point(self.tx, self.ty)

    @property
    def determinant(self) -> float:
        """Determinant of the linear part."""
        return self.a * self.d - self.b * self.c

    @property
    def is_flipped(self) -> bool:
        """True when the transform contains a reflection."""
        return self.determinant < 0

    @property
    def rotation_degrees(self) -> float:
        """Rotation angle in degrees, in (-180, 180].

        For reflected transforms this is the rotation applied after the
        horizontal reflection.
        """
        return math.degrees(math.atan2(-self.c, self.d))

    def is_finite(self) -> bool:
        """Check that every component is a finite number."""
        return all(
            math.isfinite(value)
            for value in (self.a, self.b, self.c, self.d, self.tx, self.ty)
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "a": self.a,
            "b": self.b,
            "c": self.c,
            "d": self.d,
            "tx": self.tx,
            "ty": self.ty,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transform":
        """Deserialize from dictionary."""
        return cls(
            a=float(data["a"]),
            b=float(data["b"]),
            c=float(data["c"]),
            d=float(data["d"]),
            tx=float(data["tx"]),
            ty=float(data["ty"]),
        )


def rotation_about(pivot: Point, degrees: float) -> Transform:
    """Rotation by ``degrees`` that keeps ``pivot`` fixed."""
    return (
        Transform.translation(-pivot.x, -pivot.y)
        .then(Transform.rotation(degrees))
        .then(Transform.translation(pivot.x, pivot.y))
    )
