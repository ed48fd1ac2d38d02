"""Whole-assembly validation.

An assembly is valid when no two pieces overlap, every edge contact between
two pieces is explained by a connection and every piece is reachable from the
first one through connections.
"""

import logging
from collections import Counter, deque
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from tangramengine.config import EngineSettings, get_default_settings
from tangramengine.core.geometry import ContactType, classify_contact
from tangramengine.domain import Connection, Piece, Puzzle

logger = logging.getLogger(__name__)

MAX_PIECES = 7


def reachable_piece_ids(
    piece_ids: Sequence[str],
    links: Iterable[tuple[str, str]],
) -> set[str]:
    """Breadth-first search from the first piece id.

    Args:
        piece_ids: Nodes, the first one being the start
        links: Undirected edges between piece ids

    Returns:
        Ids reachable from the first id (empty when there are no ids)
    """
    if not piece_ids:
        return set()

    known = set(piece_ids)
    adjacency: dict[str, set[str]] = {piece_id: set() for piece_id in piece_ids}
    for first, second in links:
        if first in known and second in known:
            adjacency[first].add(second)
            adjacency[second].add(first)

    start = piece_ids[0]
    visited = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for neighbour in adjacency[current]:
            if neighbour not in visited:
                visited.add(neighbour)
                queue.append(neighbour)
    return visited


@dataclass
class ValidationReport:
    """Detailed result of validating a puzzle.

    Attributes:
        errors: Human-readable problems (empty when valid)
        overlapping_pairs: Piece id pairs with area overlap
        unexplained_contacts: Piece id pairs sharing an edge without a connection
        unreachable_piece_ids: Pieces not reachable from the first piece
    """

    errors: list[str] = field(default_factory=list)
    overlapping_pairs: list[tuple[str, str]] = field(default_factory=list)
    unexplained_contacts: list[tuple[str, str]] = field(default_factory=list)
    unreachable_piece_ids: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


class ValidationEngine:
    """Checks overlap, contact and connectivity rules over a set of pieces."""

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self.settings = settings or get_default_settings()
        self.geometry = self.settings.geometry

    def classify(self, first: Piece, second: Piece) -> ContactType:
        """Contact type between two placed pieces."""
        scale = self.geometry.visual_scale
        return classify_contact(
            first.world_vertices(scale),
            second.world_vertices(scale),
            self.geometry.overlap_tolerance,
            self.geometry.touch_vertex_tolerance,
            self.geometry.contact_tolerance,
        )

    def _classified_pairs(self, pieces: Sequence[Piece]) -> list[tuple[Piece, Piece, ContactType]]:
        return [
            (first, second, self.classify(first, second))
            for i, first in enumerate(pieces)
            for second in pieces[i + 1 :]
        ]

    def overlapping_pairs(self, pieces: Sequence[Piece]) -> list[tuple[str, str]]:
        """Every pair of pieces with interior area overlap."""
        return [
            (first.id, second.id)
            for first, second, contact in self._classified_pairs(pieces)
            if contact is ContactType.AREA_OVERLAP
        ]

    def has_invalid_area_overlaps(self, pieces: Sequence[Piece]) -> bool:
        return bool(self.overlapping_pairs(pieces))

    def unexplained_contacts(
        self,
        pieces: Sequence[Piece],
        connections: Sequence[Connection],
    ) -> list[tuple[str, str]]:
        """Edge-contact pairs with no connection between them.

        Vertex contacts never need a connection.
        """
        connected = {frozenset(c.piece_ids) for c in connections}
        return [
            (first.id, second.id)
            for first, second, contact in self._classified_pairs(pieces)
            if contact is ContactType.EDGE_CONTACT
            and frozenset((first.id, second.id)) not in connected
        ]

    def has_unexplained_contacts(
        self,
        pieces: Sequence[Piece],
        connections: Sequence[Connection],
    ) -> bool:
        return bool(self.unexplained_contacts(pieces, connections))

    def unreachable_pieces(
        self,
        pieces: Sequence[Piece],
        connections: Sequence[Connection],
        include_touches: bool = False,
    ) -> list[str]:
        """Pieces not reachable from the first piece.

        Args:
            pieces: Pieces in placement order
            connections: Declared connections
            include_touches: Also traverse implicit vertex and edge contacts

        Returns:
            Ids of unreachable pieces in placement order
        """
        links = [c.piece_ids for c in connections]
        if include_touches:
            links.extend(
                (first.id, second.id)
                for first, second, contact in self._classified_pairs(pieces)
                if contact in (ContactType.EDGE_CONTACT, ContactType.VERTEX_CONTACT)
            )
        ids = [piece.id for piece in pieces]
        reached = reachable_piece_ids(ids, links)
        return [piece_id for piece_id in ids if piece_id not in reached]

    def is_connected(
        self,
        pieces: Sequence[Piece],
        connections: Sequence[Connection],
        include_touches: bool = False,
    ) -> bool:
        return not self.unreachable_pieces(pieces, connections, include_touches)

    def is_valid_assembly(
        self,
        pieces: Sequence[Piece],
        connections: Sequence[Connection],
        include_touches: bool = False,
    ) -> bool:
        """All three assembly rules: no overlaps, explained contacts, connectivity."""
        return (
            not self.has_invalid_area_overlaps(pieces)
            and not self.has_unexplained_contacts(pieces, connections)
            and self.is_connected(pieces, connections, include_touches)
        )

    def validate(self, puzzle: Puzzle, include_touches: bool = False) -> ValidationReport:
        """Validate puzzle rules and assembly rules, collecting every problem.

        Args:
            puzzle: Puzzle to check
            include_touches: Let implicit contacts count for connectivity

        Returns:
            ValidationReport listing every problem found
        """
        report = ValidationReport()
        pieces = puzzle.pieces

        if not puzzle.metadata.name.strip():
            report.errors.append("Puzzle name is required")
        if not pieces:
            report.errors.append("Puzzle must contain at least one piece")
        if len(pieces) > MAX_PIECES:
            report.errors.append(f"Puzzle cannot have more than {MAX_PIECES} pieces")

        for piece_type, count in Counter(p.piece_type for p in pieces).items():
            if count > 1:
                report.errors.append(f"Piece type '{piece_type.value}' is used {count} times")

        known = set(puzzle.piece_ids)
        for connection in puzzle.connections:
            if not all(piece_id in known for piece_id in connection.piece_ids):
                report.errors.append(f"Connection '{connection.id}' references a missing piece")

        report.overlapping_pairs = self.overlapping_pairs(pieces)
        for first, second in report.overlapping_pairs:
            report.errors.append(f"Pieces '{first}' and '{second}' overlap")

        report.unexplained_contacts = self.unexplained_contacts(pieces, puzzle.connections)
        for first, second in report.unexplained_contacts:
            report.errors.append(f"Pieces '{first}' and '{second}' share an edge without a connection")

        if len(pieces) > 1:
            report.unreachable_piece_ids = self.unreachable_pieces(
                pieces, puzzle.connections, include_touches
            )
            if report.unreachable_piece_ids:
                report.errors.append(
                    "Pieces not connected to the assembly: "
                    + ", ".join(report.unreachable_piece_ids)
                )

        logger.debug(
            "Validated puzzle %s: %d piece(s), %d error(s)",
            puzzle.metadata.id,
            len(pieces),
            len(report.errors),
        )
        return report
