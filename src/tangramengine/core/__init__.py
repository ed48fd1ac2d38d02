"""Core engine for tangramengine.

This module contains the algorithms for:

- Geometry predicates (overlap, containment, shared vertices and edges)
- Connection constraints and alignment of new pieces
- Transform calculation for place, rotate, slide and drag operations
- Manipulation mode classification and overlap-trimmed limits
- Whole-assembly validation
- Atomic placement, structural removal and undo/redo history

All services are designed to be:
- Deterministic (no hidden caches between calls)
- Free of I/O
- Configured through EngineSettings

Key classes:
- ConnectionService: Derives constraints and checks connections
- TransformEngine: Computes and validates piece transforms
- ManipulationClassifier: Decides how a piece may move
- ValidationEngine: Checks overlaps, contacts and connectivity
- PlacementService: Places and removes pieces
- UndoRedoManager: Snapshot history
"""

from tangramengine.core.connections import (
    ConnectionRoles,
    ConnectionService,
    resolve_roles,
)
from tangramengine.core.geometry import (
    ContactType,
    angle_at,
    bounding_box,
    classify_contact,
    distance,
    edge_partially_coincides,
    edges_coincide,
    has_area_overlap,
    normalize_angle,
    point_on_segment,
    polygon_area,
    polygon_centroid,
    polygon_contains_point,
    polygons_overlap,
    segment_intersection,
    shared_edges,
    shared_vertices,
    transform_vertices,
)
from tangramengine.core.history import UndoRedoManager
from tangramengine.core.manipulation import ManipulationClassifier, RotationLimits, SlideLimits
from tangramengine.core.placement import PlacementResult, PlacementService, RemovalResult
from tangramengine.core.transform import (
    Drag,
    Operation,
    Place,
    Rotate,
    Slide,
    SnapInfo,
    TransformEngine,
    TransformResult,
    Violation,
    ViolationKind,
)
from tangramengine.core.validation import ValidationEngine, ValidationReport

__all__ = [
    # Connection classes
    "ConnectionRoles",
    "ConnectionService",
    "resolve_roles",
    # Geometry functions
    "ContactType",
    "angle_at",
    "bounding_box",
    "classify_contact",
    "distance",
    "edge_partially_coincides",
    "edges_coincide",
    "has_area_overlap",
    "normalize_angle",
    "point_on_segment",
    "polygon_area",
    "polygon_centroid",
    "polygon_contains_point",
    "polygons_overlap",
    "segment_intersection",
    "shared_edges",
    "shared_vertices",
    "transform_vertices",
    # History
    "UndoRedoManager",
    # Manipulation classes
    "ManipulationClassifier",
    "RotationLimits",
    "SlideLimits",
    # Placement classes
    "PlacementResult",
    "PlacementService",
    "RemovalResult",
    # Transform classes
    "Drag",
    "Operation",
    "Place",
    "Rotate",
    "Slide",
    "SnapInfo",
    "TransformEngine",
    "TransformResult",
    "Violation",
    "ViolationKind",
    # Validation classes
    "ValidationEngine",
    "ValidationReport",
]
