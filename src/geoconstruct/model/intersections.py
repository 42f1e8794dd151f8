"""
Intersection Orchestrator
=========================
Decides which kernel computations to run for the current construction and
turns the results into points of the model.

Two modes:
1. Exhaustive: one line, extended line or circle against every other one.
   Running it for every primitive is the "recompute all" sweep. Order does not
   matter, because hits are merged with existing points by coordinate.
2. Selective: exactly two selected objects; the pair of kinds decides the
   operation (curve/curve intersection, foot of a perpendicular, point on circle).

Line extension and the normal construction live here too, since both have to
recompute intersections for the extended line they create.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Optional, Union

from geoconstruct import config
from geoconstruct.model.construction import ConstructionModel
from geoconstruct.model.entities import Kind
from geoconstruct.model.geometry_primitives import Point, Segment, Circle, BoundingBox
from geoconstruct.model.geometry_utils import (
    segment_intersection,
    segment_circle_intersections,
    circle_circle_intersections,
    project_point_onto_line,
)

logger = logging.getLogger(__name__)

CURVE_KINDS = (Kind.LINE, Kind.EXTENDED_LINE, Kind.CIRCLE)

Shape = Union[Segment, Circle]


@dataclass
class IntersectionResult:
    """Outcome of a selective intersection request."""
    handled: bool
    created: list[int] = field(default_factory=list)


class IntersectionOrchestrator:

    def __init__(self, model: ConstructionModel, box: BoundingBox = config.BOUNDING_BOX) -> None:
        self.model = model
        self.box = box

    # ------------------------------------------------------------------
    # Materialization
    # ------------------------------------------------------------------
    def materialize(self, pos: Point) -> Optional[int]:
        """Create a point at `pos` unless one already sits there. Returns the new index."""
        if self.model.find_point(pos, config.MERGE_EPS) is not None:
            return None
        if not self.model.add_point(pos):
            return None
        return self.model.count(Kind.POINT) - 1

    def _materialize_all(self, hits: list[Point]) -> list[int]:
        created = []
        for hit in hits:
            index = self.materialize(hit)
            if index is not None:
                created.append(index)
        return created

    # ------------------------------------------------------------------
    # Geometry helpers
    # ------------------------------------------------------------------
    def shape_of(self, kind: Kind, index: int) -> Optional[Shape]:
        if kind == Kind.LINE:
            return self.model.line_segment(index)
        if kind == Kind.EXTENDED_LINE:
            return self.model.extended_lines[index].segment
        if kind == Kind.CIRCLE:
            return self.model.circle_at(index)
        return None

    @staticmethod
    def hits_between(a: Shape, b: Shape) -> list[Point]:
        if isinstance(a, Segment) and isinstance(b, Segment):
            hit = segment_intersection(a.start, a.end, b.start, b.end, eps=config.PARALLEL_EPS)
            return [hit] if hit is not None else []
        if isinstance(a, Segment) and isinstance(b, Circle):
            return segment_circle_intersections(a.start, a.end, b.center, b.radius, eps=config.PARALLEL_EPS)
        if isinstance(a, Circle) and isinstance(b, Segment):
            return segment_circle_intersections(b.start, b.end, a.center, a.radius, eps=config.PARALLEL_EPS)
        return circle_circle_intersections(a.center, a.radius, b.center, b.radius, eps=config.PARALLEL_EPS)

    # ------------------------------------------------------------------
    # Exhaustive mode
    # ------------------------------------------------------------------
    def intersect_with_all(self, kind: Kind, index: int) -> list[int]:
        """Intersect one primitive with every other line, extended line and circle."""
        shape = self.shape_of(kind, index)
        if shape is None:
            return []

        hits: list[Point] = []
        for other_kind in CURVE_KINDS:
            for other in range(self.model.count(other_kind)):
                if other_kind == kind and other == index:
                    continue
                other_shape = self.shape_of(other_kind, other)
                if other_shape is not None:
                    hits.extend(self.hits_between(shape, other_shape))
        return self._materialize_all(hits)

    def recompute_all(self) -> list[int]:
        created: list[int] = []
        for kind in CURVE_KINDS:
            for index in range(self.model.count(kind)):
                created.extend(self.intersect_with_all(kind, index))
        logger.info(f"Recomputed all intersections, {len(created)} new point(s).")
        return created

    # ------------------------------------------------------------------
    # Selective mode
    # ------------------------------------------------------------------
    def intersect_selected(self) -> IntersectionResult:
        """
        Run the operation implied by exactly two selected objects:

        - two curves (line, extended line, circle): their intersection points
        - line + point: foot of the perpendicular, clamped to the segment
        - extended line + point: foot of the perpendicular, unclamped
        - circle + point: the point itself if it lies on the circle
        """
        items = self.model.selection.items()
        if len(items) != 2:
            return IntersectionResult(handled=False)

        (kind_a, index_a), (kind_b, index_b) = items
        if kind_a in CURVE_KINDS and kind_b in CURVE_KINDS:
            shape_a = self.shape_of(kind_a, index_a)
            shape_b = self.shape_of(kind_b, index_b)
            if shape_a is None or shape_b is None:
                return IntersectionResult(handled=False)
            created = self._materialize_all(self.hits_between(shape_a, shape_b))
            return IntersectionResult(handled=True, created=created)

        # Kind declaration order puts the point first
        if kind_a == Kind.POINT and kind_b != Kind.POINT:
            pos = self.model.point_at(index_a)
            if kind_b == Kind.CIRCLE:
                return self._point_on_circle(pos, self.model.circle_at(index_b))
            return self._foot_on_line(pos, kind_b, index_b)

        return IntersectionResult(handled=False)

    def _foot_on_line(self, pos: Point, kind: Kind, index: int) -> IntersectionResult:
        segment = self.shape_of(kind, index)
        if segment is None:
            return IntersectionResult(handled=False)
        foot = project_point_onto_line(
            pos, segment.start, segment.end, clamp=(kind == Kind.LINE), eps=config.PARALLEL_EPS
        )
        if foot is None:
            return IntersectionResult(handled=False)
        return IntersectionResult(handled=True, created=self._materialize_all([foot]))

    def _point_on_circle(self, pos: Point, circle: Circle) -> IntersectionResult:
        if abs(circle.center.distance_to(pos) - circle.radius) > config.MERGE_EPS:
            return IntersectionResult(handled=True)
        return IntersectionResult(handled=True, created=self._materialize_all([pos]))

    # ------------------------------------------------------------------
    # Constructions creating extended lines
    # ------------------------------------------------------------------
    def extend_selected_lines(self) -> list[int]:
        """
        Turn every selected finite line into an extended line clipped to the
        bounding box, then intersect the new lines with everything else.
        """
        created = self.model.convert_lines_to_extended(self.model.selection.selected(Kind.LINE), self.box)
        for index in created:
            self.intersect_with_all(Kind.EXTENDED_LINE, index)
        return created

    def add_normal(self, kind: Kind, index: int, through: Point) -> bool:
        """
        Add the line perpendicular to a (finite or extended) line passing
        through `through`, as an extended line of NORMAL_HALF_LENGTH each way.
        """
        if kind not in (Kind.LINE, Kind.EXTENDED_LINE):
            return False
        segment = self.shape_of(kind, index)
        if segment is None:
            return False
        direction = segment.to_vector()
        if direction.magnitude < config.PARALLEL_EPS:
            logger.debug("Cannot build a normal on a zero length line.")
            return False

        normal = direction.perpendicular().normalize() * config.NORMAL_HALF_LENGTH
        if not self.model.add_extended_line(through - normal, through + normal):
            return False
        self.intersect_with_all(Kind.EXTENDED_LINE, self.model.count(Kind.EXTENDED_LINE) - 1)
        return True
