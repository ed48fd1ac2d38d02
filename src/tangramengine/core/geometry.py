"""Geometry kernel for piece polygons.

This module provides the pure geometric predicates the engine is built on:
- Transforming vertex lists
- Distances, angles and angle normalization
- Point-on-segment and segment intersection tests
- Point-in-polygon testing (ray casting, boundary excluded)
- Polygon overlap (Separating Axis Theorem with touch tolerance)
- Shared vertex / shared edge detection and contact classification
- Polygon area, centroid and bounding box

All functions are pure and stateless. Every tangram piece is convex, which is
what makes the SAT overlap test exact.
"""

import math
from enum import Enum

from tangramengine.domain import Point, Segment, Transform

DEFAULT_OVERLAP_TOLERANCE = 0.1
DEFAULT_TOUCH_TOLERANCE = 1.0
DEFAULT_CONTACT_TOLERANCE = 0.01
DEFAULT_FINE_TOLERANCE = 0.0001


class ContactType(Enum):
    """Relationship between two piece polygons, strongest first."""

    AREA_OVERLAP = "area_overlap"
    EDGE_CONTACT = "edge_contact"
    VERTEX_CONTACT = "vertex_contact"
    NONE = "none"


def transform_vertices(vertices: list[Point], transform: Transform) -> list[Point]:
    """Apply an affine transform to every vertex.

    Args:
        vertices: Points to transform
        transform: Transform to apply

    Returns:
        New list of transformed points in the same order
    """
    return [transform.apply(vertex) for vertex in vertices]


def distance(p1: Point, p2: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(p2.x - p1.x, p2.y - p1.y)


def angle_at(vertex: Point, p1: Point, p2: Point) -> float:
    """Angle in degrees at ``vertex`` between the rays towards ``p1`` and ``p2``.

    Returns:
        Angle in [0, 180]. Degenerate rays give 0.0.

    Examples:
        >>> angle_at(Point(0.0, 0.0), Point(1.0, 0.0), Point(0.0, 1.0))
        90.0
    """
    v1 = p1 - vertex
    v2 = p2 - vertex
    lengths = v1.length * v2.length
    if lengths == 0.0:
        return 0.0
    cosine = max(-1.0, min(1.0, v1.dot(v2) / lengths))
    return math.degrees(math.acos(cosine))


def normalize_angle(degrees: float) -> float:
    """Normalize an angle to the range [0, 360)."""
    normalized = math.fmod(degrees, 360.0)
    if normalized < 0:
        normalized += 360.0
    if normalized >= 360.0:
        normalized -= 360.0
    return normalized


def point_on_segment(
    point: Point,
    start: Point,
    end: Point,
    tolerance: float = DEFAULT_CONTACT_TOLERANCE,
) -> bool:
    """Check whether a point lies on a segment.

    Collinearity is tested with the cross product (as a perpendicular
    distance), then the dot-product projection must fall between the
    endpoints.

    Args:
        point: Point to test
        start: Segment start
        end: Segment end
        tolerance: Allowed distance from the segment

    Returns:
        True if the point lies on the segment within tolerance
    """
    segment = end - start
    length = segment.length
    offset = point - start
    if length <= tolerance:
        return offset.length <= tolerance

    if abs(segment.cross(offset)) / length > tolerance:
        return False

    along = segment.dot(offset) / length
    return -tolerance <= along <= length + tolerance


def segment_intersection(
    p1: Point,
    p2: Point,
    p3: Point,
    p4: Point,
    tolerance: float = DEFAULT_FINE_TOLERANCE,
) -> Point | None:
    """Find the intersection point of segments p1-p2 and p3-p4.

    Uses parametric line equations. Returns None if the segments are
    parallel or if the intersection lies outside either segment.

    Args:
        p1: First endpoint of segment 1
        p2: Second endpoint of segment 1
        p3: First endpoint of segment 2
        p4: Second endpoint of segment 2
        tolerance: Denominator magnitude under which lines count as parallel

    Returns:
        Point at intersection if segments intersect, None otherwise

    Examples:
        >>> segment_intersection(
        ...     Point(0.0, 0.0), Point(2.0, 2.0), Point(0.0, 2.0), Point(2.0, 0.0)
        ... )
        Point(x=1.0, y=1.0)
    """
    denom = (p1.x - p2.x) * (p3.y - p4.y) - (p1.y - p2.y) * (p3.x - p4.x)

    # Parallel or coincident
    if abs(denom) < tolerance:
        return None

    t = ((p1.x - p3.x) * (p3.y - p4.y) - (p1.y - p3.y) * (p3.x - p4.x)) / denom
    u = -((p1.x - p2.x) * (p1.y - p3.y) - (p1.y - p2.y) * (p1.x - p3.x)) / denom

    if 0.0 <= t <= 1.0 and 0.0 <= u <= 1.0:
        return Point(p1.x + t * (p2.x - p1.x), p1.y + t * (p2.y - p1.y))

    return None


def project_point_onto_segment(point: Point, start: Point, end: Point) -> float:
    """Parameter of the orthogonal projection of ``point`` onto a segment.

    0 is ``start`` and 1 is ``end``; the value is clamped to that range.
    A zero-length segment projects everything onto ``start``.
    """
    dx = end.x - start.x
    dy = end.y - start.y

    length_sq = dx * dx + dy * dy
    if length_sq < 1e-12:
        return 0.0

    t = ((point.x - start.x) * dx + (point.y - start.y) * dy) / length_sq
    return max(0.0, min(1.0, t))


def nearest_point_on_segment(point: Point, start: Point, end: Point) -> tuple[Point, float]:
    """Find the closest point on a segment to a given point.

    Args:
        point: The point to project
        start: Segment start
        end: Segment end

    Returns:
        Tuple of (nearest_point, distance)
    """
    t = project_point_onto_segment(point, start, end)
    nearest = Point(start.x + t * (end.x - start.x), start.y + t * (end.y - start.y))
    return nearest, distance(point, nearest)


def signed_area(points: list[Point]) -> float:
    """Signed polygon area (shoelace formula).

    Positive for counter-clockwise vertex order, negative for clockwise.
    Returns 0.0 for fewer than three points.
    """
    n = len(points)
    if n < 3:
        return 0.0

    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += points[i].x * points[j].y
        area -= points[j].x * points[i].y

    return area / 2.0


def polygon_area(points: list[Point]) -> float:
    """Unsigned polygon area.

    Examples:
        >>> polygon_area([Point(0, 0), Point(1, 0), Point(0, 1)])
        0.5
    """
    return abs(signed_area(points))


def polygon_centroid(points: list[Point]) -> Point:
    """Average of the polygon vertices."""
    n = len(points)
    if n == 0:
        return Point(0.0, 0.0)
    return Point(sum(p.x for p in points) / n, sum(p.y for p in points) / n)


def bounding_box(points: list[Point]) -> tuple[float, float, float, float]:
    """Axis-aligned bounds as (min_x, min_y, max_x, max_y)."""
    if not points:
        return (0.0, 0.0, 0.0, 0.0)
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return (min(xs), min(ys), max(xs), max(ys))


def point_on_polygon_boundary(
    point: Point,
    polygon: list[Point],
    tolerance: float = DEFAULT_CONTACT_TOLERANCE,
) -> bool:
    """Check whether a point lies on any polygon vertex or edge."""
    n = len(polygon)
    for i in range(n):
        if point_on_segment(point, polygon[i], polygon[(i + 1) % n], tolerance):
            return True
    return False


def point_in_polygon(point: Point, polygon: list[Point]) -> bool:
    """Ray-casting parity test.

    Casts a horizontal ray to the right and counts edge crossings.
    Boundary points give an unspecified answer; use
    ``polygon_contains_point`` when boundaries matter.
    """
    n = len(polygon)
    if n < 3:
        return False

    inside = False
    x, y = point.x, point.y
    j = n - 1

    for i in range(n):
        xi, yi = polygon[i].x, polygon[i].y
        xj, yj = polygon[j].x, polygon[j].y

        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside

        j = i

    return inside


def polygon_contains_point(
    point: Point,
    polygon: list[Point],
    tolerance: float = DEFAULT_CONTACT_TOLERANCE,
) -> bool:
    """Strict containment: True only for points in the polygon interior.

    Points on a vertex or edge (within tolerance) are not contained, so
    pieces that merely touch never contain each other's vertices.

    Examples:
        >>> square = [Point(0, 0), Point(2, 0), Point(2, 2), Point(0, 2)]
        >>> polygon_contains_point(Point(1, 1), square)
        True
        >>> polygon_contains_point(Point(2, 1), square)
        False
    """
    if point_on_polygon_boundary(point, polygon, tolerance):
        return False
    return point_in_polygon(point, polygon)


def _edge_normals(polygon: list[Point]) -> list[Point]:
    normals = []
    n = len(polygon)
    for i in range(n):
        edge = polygon[(i + 1) % n] - polygon[i]
        if edge.length == 0.0:
            continue
        normals.append(Point(-edge.y, edge.x).normalized())
    return normals


def _project(polygon: list[Point], axis: Point) -> tuple[float, float]:
    values = [axis.dot(p) for p in polygon]
    return min(values), max(values)


def has_separating_axis(
    a: list[Point],
    b: list[Point],
    tolerance: float = DEFAULT_OVERLAP_TOLERANCE,
) -> bool:
    """Separating Axis Theorem over the edge normals of both polygons.

    An axis separates the polygons when their projections overlap by no
    more than ``tolerance``, so touching or marginally separated polygons
    are found separated.
    """
    for axis in _edge_normals(a) + _edge_normals(b):
        min_a, max_a = _project(a, axis)
        min_b, max_b = _project(b, axis)
        depth = min(max_a, max_b) - max(min_a, min_b)
        if depth <= tolerance:
            return True
    return False


def _near_any(point: Point, polygons: tuple[list[Point], ...], tolerance: float) -> bool:
    return any(point.distance_to(v) <= tolerance for polygon in polygons for v in polygon)


def has_interior_penetration(
    a: list[Point],
    b: list[Point],
    tolerance: float = DEFAULT_OVERLAP_TOLERANCE,
) -> bool:
    """Detect genuine interior overlap between two polygons.

    Penetration means a vertex or centroid of one polygon strictly inside the
    other, or two edges crossing away from every vertex of either polygon.
    """
    for vertex in a:
        if polygon_contains_point(vertex, b, tolerance):
            return True
    for vertex in b:
        if polygon_contains_point(vertex, a, tolerance):
            return True

    if polygon_contains_point(polygon_centroid(a), b, tolerance):
        return True
    if polygon_contains_point(polygon_centroid(b), a, tolerance):
        return True

    n, m = len(a), len(b)
    for i in range(n):
        for j in range(m):
            crossing = segment_intersection(a[i], a[(i + 1) % n], b[j], b[(j + 1) % m])
            if crossing is not None and not _near_any(crossing, (a, b), tolerance):
                return True
    return False


def count_shared_vertices(
    a: list[Point],
    b: list[Point],
    tolerance: float = DEFAULT_TOUCH_TOLERANCE,
) -> int:
    """Count vertex pairs closer than ``tolerance``."""
    return sum(1 for va in a for vb in b if va.distance_to(vb) < tolerance)


def polygons_overlap(
    a: list[Point],
    b: list[Point],
    overlap_tolerance: float = DEFAULT_OVERLAP_TOLERANCE,
    touch_tolerance: float = DEFAULT_TOUCH_TOLERANCE,
) -> bool:
    """Check whether two convex polygons share interior area.

    First runs the SAT test; touching polygons are separated there. When no
    separating axis exists, polygons sharing one or two vertices are treated
    as touching unless there is genuine interior penetration, while three or
    more shared vertices always count as an overlap.

    The result is symmetric in ``a`` and ``b``.

    Args:
        a: Vertices of the first polygon
        b: Vertices of the second polygon
        overlap_tolerance: Projection overlap depth still treated as touching
        touch_tolerance: Distance under which two vertices count as shared

    Returns:
        True if the polygons overlap with positive area
    """
    if len(a) < 3 or len(b) < 3:
        return False

    if has_separating_axis(a, b, overlap_tolerance):
        return False

    shared = count_shared_vertices(a, b, touch_tolerance)
    if shared >= 3 or shared == 0:
        return True

    return has_interior_penetration(a, b, overlap_tolerance)


has_area_overlap = polygons_overlap


def shared_vertices(
    a: list[Point],
    b: list[Point],
    tolerance: float = DEFAULT_CONTACT_TOLERANCE,
) -> list[tuple[int, int]]:
    """Index pairs (i, j) where vertex i of ``a`` coincides with vertex j of ``b``."""
    return [
        (i, j)
        for i, va in enumerate(a)
        for j, vb in enumerate(b)
        if va.distance_to(vb) <= tolerance
    ]


def edges_coincide(
    first: Segment,
    second: Segment,
    tolerance: float = DEFAULT_CONTACT_TOLERANCE,
) -> bool:
    """Check whether two segments have the same endpoints in either order."""
    same = (
        first.start.distance_to(second.start) <= tolerance
        and first.end.distance_to(second.end) <= tolerance
    )
    opposite = (
        first.start.distance_to(second.end) <= tolerance
        and first.end.distance_to(second.start) <= tolerance
    )
    return same or opposite


def edge_partially_coincides(
    first: Segment,
    second: Segment,
    tolerance: float = DEFAULT_CONTACT_TOLERANCE,
) -> bool:
    """Check whether two segments are collinear and overlap over a positive length.

    The shorter segment is projected onto the longer one.
    """
    longer, shorter = (first, second) if first.length >= second.length else (second, first)
    if longer.length <= tolerance:
        return False

    direction = longer.direction
    for endpoint in (shorter.start, shorter.end):
        if abs(direction.cross(endpoint - longer.start)) > tolerance:
            return False

    t1 = direction.dot(shorter.start - longer.start)
    t2 = direction.dot(shorter.end - longer.start)
    overlap = min(max(t1, t2), longer.length) - max(min(t1, t2), 0.0)
    return overlap > tolerance


def _edges(polygon: list[Point]) -> list[Segment]:
    n = len(polygon)
    return [Segment(polygon[i], polygon[(i + 1) % n]) for i in range(n)]


def shared_edges(
    a: list[Point],
    b: list[Point],
    tolerance: float = DEFAULT_CONTACT_TOLERANCE,
) -> list[tuple[int, int]]:
    """Edge index pairs (i, j) whose segments fully or partially coincide."""
    pairs = []
    for i, edge_a in enumerate(_edges(a)):
        for j, edge_b in enumerate(_edges(b)):
            if edges_coincide(edge_a, edge_b, tolerance) or edge_partially_coincides(
                edge_a, edge_b, tolerance
            ):
                pairs.append((i, j))
    return pairs


def vertex_touches_edge(
    a: list[Point],
    b: list[Point],
    tolerance: float = DEFAULT_CONTACT_TOLERANCE,
) -> bool:
    """Check whether a vertex of either polygon lies on an edge of the other."""
    for polygon, other in ((a, b), (b, a)):
        for vertex in polygon:
            if point_on_polygon_boundary(vertex, other, tolerance):
                return True
    return False


def classify_contact(
    a: list[Point],
    b: list[Point],
    overlap_tolerance: float = DEFAULT_OVERLAP_TOLERANCE,
    touch_tolerance: float = DEFAULT_TOUCH_TOLERANCE,
    contact_tolerance: float = DEFAULT_CONTACT_TOLERANCE,
) -> ContactType:
    """Classify the relationship between two polygons.

    Checked in priority order: area overlap, edge contact, vertex contact.
    """
    if polygons_overlap(a, b, overlap_tolerance, touch_tolerance):
        return ContactType.AREA_OVERLAP
    if shared_edges(a, b, contact_tolerance):
        return ContactType.EDGE_CONTACT
    if shared_vertices(a, b, contact_tolerance) or vertex_touches_edge(a, b, contact_tolerance):
        return ContactType.VERTEX_CONTACT
    return ContactType.NONE
