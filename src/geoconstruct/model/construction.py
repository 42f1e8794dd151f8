"""
Construction Model
==================
This module defines the central data structure of a running construction.

Why is this file needed?
------------------------
1. State Management: It owns the points, finite lines, extended lines and
   circles together with the current selection.
2. Referential Integrity: Finite lines reference points by index. Every
   deletion compacts the point list and remaps the surviving lines in one
   pass, so no line is ever left pointing at a missing point.
3. Decoupling: Views read snapshots of this object; the controller writes to it.

Classes:
    ConstructionSnapshot: Immutable, view-friendly copy of the model.
    ConstructionModel: The main container class.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional, Sequence

from geoconstruct import config
from geoconstruct.model.entities import (
    Kind, Entity, PointEntity, LineEntity, ExtendedLineEntity, CircleEntity
)
from geoconstruct.model.geometry_primitives import Point, Segment, Circle, BoundingBox
from geoconstruct.model.geometry_utils import (
    clip_line_to_bounding_box, point_line_distance, point_segment_distance
)
from geoconstruct.model.selection import SelectionController

logger = logging.getLogger(__name__)

LABEL_PREFIXES: dict[Kind, str] = {
    Kind.POINT: config.POINT_PREFIX,
    Kind.LINE: config.LINE_PREFIX,
    Kind.EXTENDED_LINE: config.EXTENDED_LINE_PREFIX,
    Kind.CIRCLE: config.CIRCLE_PREFIX,
}


@dataclass(frozen=True)
class PointRecord:
    index: int
    pos: Point
    label: str
    selected: bool

@dataclass(frozen=True)
class LineRecord:
    index: int
    a: int
    b: int
    start: Point
    end: Point
    label: str
    selected: bool

@dataclass(frozen=True)
class ExtendedLineRecord:
    index: int
    start: Point
    end: Point
    label: str
    selected: bool

@dataclass(frozen=True)
class CircleRecord:
    index: int
    center: Point
    radius: float
    label: str
    selected: bool

@dataclass(frozen=True)
class ConstructionSnapshot:
    """Read-only copy of a model, with selection flags, for drawing and comparison."""
    points: tuple[PointRecord, ...]
    lines: tuple[LineRecord, ...]
    extended_lines: tuple[ExtendedLineRecord, ...]
    circles: tuple[CircleRecord, ...]


class ConstructionModel:
    """
    Arena of construction entities plus the selection over them.

    Every mutating method returns a success flag; a False return means the
    model is unchanged.
    """

    def __init__(self) -> None:
        self._points: list[PointEntity] = []
        self._lines: list[LineEntity] = []
        self._extended_lines: list[ExtendedLineEntity] = []
        self._circles: list[CircleEntity] = []
        self.selection = SelectionController()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def points(self) -> tuple[PointEntity, ...]:
        return tuple(self._points)

    @property
    def lines(self) -> tuple[LineEntity, ...]:
        return tuple(self._lines)

    @property
    def extended_lines(self) -> tuple[ExtendedLineEntity, ...]:
        return tuple(self._extended_lines)

    @property
    def circles(self) -> tuple[CircleEntity, ...]:
        return tuple(self._circles)

    def count(self, kind: Kind) -> int:
        return len(self._collection(kind))

    def is_empty(self) -> bool:
        return not (self._points or self._lines or self._extended_lines or self._circles)

    def entity(self, kind: Kind, index: int) -> Entity:
        return self._collection(kind)[index]

    def point_at(self, index: int) -> Point:
        return self._points[index].pos

    def line_segment(self, index: int) -> Optional[Segment]:
        """Geometry of a finite line, or None if it references a missing point."""
        line = self._lines[index]
        if not self._valid_point_index(line.a) or not self._valid_point_index(line.b):
            return None
        return Segment(start=self._points[line.a].pos, end=self._points[line.b].pos)

    def line_endpoints_at(self, index: int) -> Optional[tuple[Point, Point]]:
        if not 0 <= index < len(self._lines):
            return None
        segment = self.line_segment(index)
        return (segment.start, segment.end) if segment else None

    def extended_line_endpoints_at(self, index: int) -> Optional[tuple[Point, Point]]:
        if not 0 <= index < len(self._extended_lines):
            return None
        ext = self._extended_lines[index]
        return ext.start, ext.end

    def circle_at(self, index: int) -> Circle:
        return self._circles[index].circle

    def auto_label(self, kind: Kind) -> str:
        """Default label `<prefix><n+1>` for the next entity of a kind."""
        return f"{LABEL_PREFIXES[kind]}{self.count(kind) + 1}"

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def find_point(self, pos: Point, tol: float = config.POINT_EPS) -> Optional[int]:
        """Index of the point nearest to `pos` within `tol` on both axes."""
        best: Optional[int] = None
        best_dist = float("inf")
        for i, p in enumerate(self._points):
            if p.pos.is_close(pos, tol):
                dist = p.pos.distance_to(pos)
                if dist < best_dist:
                    best, best_dist = i, dist
        return best

    def has_point(self, pos: Point) -> bool:
        return self.find_point(pos) is not None

    def has_line(self, a: int, b: int) -> bool:
        return any(line.same_pair(a, b) for line in self._lines)

    def find_line(self, a: Point, b: Point, tol: float = config.MATCH_EPS) -> Optional[int]:
        """Finite line whose endpoints match a and b in either orientation."""
        for i in range(len(self._lines)):
            segment = self.line_segment(i)
            if segment is not None and _same_endpoints(segment.start, segment.end, a, b, tol):
                return i
        return None

    def find_extended_line(self, a: Point, b: Point, tol: float = config.MATCH_EPS) -> Optional[int]:
        for i, ext in enumerate(self._extended_lines):
            if _same_endpoints(ext.start, ext.end, a, b, tol):
                return i
        return None

    def find_circle(self, center: Point, radius: float, tol: float = config.MATCH_EPS) -> Optional[int]:
        for i, c in enumerate(self._circles):
            if c.center.is_close(center, tol) and abs(c.radius - radius) <= tol:
                return i
        return None

    def hit_test(self, pos: Point, tolerance: float) -> Optional[tuple[Kind, int]]:
        """
        Nearest entity within `tolerance` (model units) of `pos`.
        Points win over lines, lines over extended lines, those over circles.
        """
        candidates: list[tuple[Kind, int, float]] = []
        for i, p in enumerate(self._points):
            candidates.append((Kind.POINT, i, p.pos.distance_to(pos)))
        for i in range(len(self._lines)):
            segment = self.line_segment(i)
            if segment is not None:
                candidates.append((Kind.LINE, i, point_segment_distance(pos, segment.start, segment.end)))
        for i, ext in enumerate(self._extended_lines):
            candidates.append((Kind.EXTENDED_LINE, i, point_line_distance(pos, ext.start, ext.end)))
        for i, c in enumerate(self._circles):
            candidates.append((Kind.CIRCLE, i, abs(c.center.distance_to(pos) - c.radius)))

        for kind in Kind:
            hits = [(d, i) for k, i, d in candidates if k == kind and d <= tolerance]
            if hits:
                return kind, min(hits)[1]
        return None

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    def add_point(self, pos: Point, label: str = "", mark_selected: bool = False) -> bool:
        if self.has_point(pos):
            logger.debug(f"Point ({pos.x}, {pos.y}) already exists.")
            return False
        self._points.append(PointEntity(pos=pos, label=label or self.auto_label(Kind.POINT)))
        if mark_selected:
            self.selection.include(Kind.POINT, len(self._points) - 1)
        return True

    def add_line(self, a: int, b: int, label: str = "") -> bool:
        if a == b or not self._valid_point_index(a) or not self._valid_point_index(b):
            logger.debug(f"Invalid point pair for a line: {a}, {b}.")
            return False
        if self.has_line(a, b):
            logger.debug(f"Line between {a} and {b} already exists.")
            return False
        self._lines.append(LineEntity(a=a, b=b, label=label or self.auto_label(Kind.LINE)))
        return True

    def add_extended_line(self, start: Point, end: Point, label: str = "") -> bool:
        if start.is_close(end, config.POINT_EPS):
            logger.debug("Extended line with coincident endpoints rejected.")
            return False
        self._extended_lines.append(
            ExtendedLineEntity(start=start, end=end, label=label or self.auto_label(Kind.EXTENDED_LINE))
        )
        return True

    def add_circle(self, center: Point, radius: float, label: str = "") -> bool:
        if not radius > 0.0:
            logger.debug(f"Circle radius must be positive, got {radius}.")
            return False
        self._circles.append(
            CircleEntity(center=center, radius=radius, label=label or self.auto_label(Kind.CIRCLE))
        )
        return True

    def convert_lines_to_extended(
        self,
        indices: Sequence[int],
        box: BoundingBox = config.BOUNDING_BOX
    ) -> list[int]:
        """
        Replace finite lines by extended lines clipped to `box`, keeping their
        labels. The new extended lines become the selection.

        Returns:
            Indices of the created extended lines.
        """
        converted: list[tuple[Point, Point, str]] = []
        doomed: set[int] = set()
        for i in sorted(set(indices)):
            if not 0 <= i < len(self._lines):
                continue
            segment = self.line_segment(i)
            doomed.add(i)
            if segment is None or segment.length < config.POINT_EPS:
                continue
            start, end = clip_line_to_bounding_box(segment.start, segment.end, box)
            converted.append((start, end, self._lines[i].label))

        if not doomed:
            return []

        self._lines = [line for i, line in enumerate(self._lines) if i not in doomed]
        self.selection.clear()

        created: list[int] = []
        for start, end, label in converted:
            if self.add_extended_line(start, end, label):
                index = len(self._extended_lines) - 1
                created.append(index)
                self.selection.include(Kind.EXTENDED_LINE, index)
        logger.info(f"Extended {len(created)} line(s).")
        return created

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------
    def delete_selected(self) -> bool:
        """
        Delete every selected entity. Lines that reference a deleted point go
        with it; surviving lines are remapped onto the compacted point list.
        """
        removed_points = set(self.selection.selected(Kind.POINT))
        removed_lines = set(self.selection.selected(Kind.LINE))
        removed_ext = set(self.selection.selected(Kind.EXTENDED_LINE))
        removed_circles = set(self.selection.selected(Kind.CIRCLE))

        remap: dict[int, int] = {}
        points: list[PointEntity] = []
        for i, p in enumerate(self._points):
            if i in removed_points:
                continue
            remap[i] = len(points)
            points.append(p)

        lines: list[LineEntity] = []
        for i, line in enumerate(self._lines):
            if i in removed_lines or line.a not in remap or line.b not in remap:
                continue
            lines.append(LineEntity(a=remap[line.a], b=remap[line.b], label=line.label))

        ext = [e for i, e in enumerate(self._extended_lines) if i not in removed_ext]
        circles = [c for i, c in enumerate(self._circles) if i not in removed_circles]

        changed = (
            len(points) != len(self._points)
            or len(lines) != len(self._lines)
            or len(ext) != len(self._extended_lines)
            or len(circles) != len(self._circles)
        )
        self.selection.clear()
        if not changed:
            return False

        self._points, self._lines = points, lines
        self._extended_lines, self._circles = ext, circles
        logger.info(
            f"Deleted selection, remaining: {len(points)} points, {len(lines)} lines, "
            f"{len(ext)} extended lines, {len(circles)} circles."
        )
        return True

    def delete_all(self) -> bool:
        had_content = not self.is_empty()
        self._points, self._lines = [], []
        self._extended_lines, self._circles = [], []
        self.selection.clear()
        return had_content

    def replace_contents(
        self,
        points: list[PointEntity],
        lines: list[LineEntity],
        extended_lines: list[ExtendedLineEntity],
        circles: list[CircleEntity]
    ) -> None:
        """Swap in a whole construction at once (used by loading)."""
        self._points, self._lines = list(points), list(lines)
        self._extended_lines, self._circles = list(extended_lines), list(circles)
        self.selection.clear()

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------
    def set_label(self, text: str) -> bool:
        """Relabel the selected entity; requires exactly one selected object."""
        items = self.selection.items()
        if len(items) != 1:
            logger.debug(f"set_label needs exactly one selected object, got {len(items)}.")
            return False
        kind, index = items[0]
        if not 0 <= index < self.count(kind):
            return False
        self.entity(kind, index).label = text
        return True

    # ------------------------------------------------------------------
    # Selection by value
    # ------------------------------------------------------------------
    def select_point_by_position(self, pos: Point, additive: bool, tol: float = config.MATCH_EPS) -> bool:
        index = self.find_point(pos, tol)
        return index is not None and self._select(Kind.POINT, index, additive)

    def select_line_by_endpoints(self, a: Point, b: Point, additive: bool) -> bool:
        index = self.find_line(a, b)
        return index is not None and self._select(Kind.LINE, index, additive)

    def select_extended_line_by_endpoints(self, a: Point, b: Point, additive: bool) -> bool:
        index = self.find_extended_line(a, b)
        return index is not None and self._select(Kind.EXTENDED_LINE, index, additive)

    def select_circle_by_center_radius(self, center: Point, radius: float, additive: bool) -> bool:
        index = self.find_circle(center, radius)
        return index is not None and self._select(Kind.CIRCLE, index, additive)

    def _select(self, kind: Kind, index: int, additive: bool) -> bool:
        if not additive:
            self.selection.select(kind, index)
            return True
        if self.selection.is_selected(kind, index):
            return True
        return self.selection.toggle(kind, index)

    def selected_point_positions(self) -> list[Point]:
        """Selected point coordinates in selection order."""
        return [self._points[i].pos for i in self.selection.ordered_points() if self._valid_point_index(i)]

    def selected_line_endpoints(self) -> list[tuple[Point, Point]]:
        result = []
        for i in self.selection.selected(Kind.LINE):
            endpoints = self.line_endpoints_at(i)
            if endpoints is not None:
                result.append(endpoints)
        return result

    def selected_extended_line_endpoints(self) -> list[tuple[Point, Point]]:
        return [(self._extended_lines[i].start, self._extended_lines[i].end)
                for i in self.selection.selected(Kind.EXTENDED_LINE) if i < len(self._extended_lines)]

    def selected_circle_data(self) -> list[tuple[Point, float]]:
        return [(self._circles[i].center, self._circles[i].radius)
                for i in self.selection.selected(Kind.CIRCLE) if i < len(self._circles)]

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------
    def snapshot(self) -> ConstructionSnapshot:
        sel = self.selection
        lines = []
        for i, line in enumerate(self._lines):
            segment = self.line_segment(i)
            if segment is None:
                continue
            lines.append(LineRecord(i, line.a, line.b, segment.start, segment.end,
                                    line.label, sel.is_selected(Kind.LINE, i)))
        return ConstructionSnapshot(
            points=tuple(PointRecord(i, p.pos, p.label, sel.is_selected(Kind.POINT, i))
                         for i, p in enumerate(self._points)),
            lines=tuple(lines),
            extended_lines=tuple(ExtendedLineRecord(i, e.start, e.end, e.label,
                                                    sel.is_selected(Kind.EXTENDED_LINE, i))
                                 for i, e in enumerate(self._extended_lines)),
            circles=tuple(CircleRecord(i, c.center, c.radius, c.label, sel.is_selected(Kind.CIRCLE, i))
                          for i, c in enumerate(self._circles)),
        )

    # ------------------------------------------------------------------
    def _collection(self, kind: Kind) -> list:
        if kind == Kind.POINT:
            return self._points
        if kind == Kind.LINE:
            return self._lines
        if kind == Kind.EXTENDED_LINE:
            return self._extended_lines
        return self._circles

    def _valid_point_index(self, index: int) -> bool:
        return 0 <= index < len(self._points)


def _same_endpoints(p: Point, q: Point, a: Point, b: Point, tol: float) -> bool:
    return ((p.is_close(a, tol) and q.is_close(b, tol))
            or (p.is_close(b, tol) and q.is_close(a, tol)))
