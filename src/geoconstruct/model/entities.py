"""
Construction Entities
=====================
The four kinds of objects a construction is made of.

Points, finite lines, extended lines and circles form a tagged union: every
entity carries its own `label` and reports its `kind`, there is no shared
base class. Finite lines reference points by index into the owning model's
point list; the other kinds store their geometry by value.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Union

from geoconstruct.model.geometry_primitives import Point, Circle, Segment


class Kind(StrEnum):
    POINT = "point"
    LINE = "line"
    EXTENDED_LINE = "extended_line"
    CIRCLE = "circle"


@dataclass
class PointEntity:
    pos: Point
    label: str = ""

    @property
    def kind(self) -> Kind:
        return Kind.POINT


@dataclass
class LineEntity:
    """Finite line between the points with indices `a` and `b`."""
    a: int
    b: int
    label: str = ""

    @property
    def kind(self) -> Kind:
        return Kind.LINE

    def same_pair(self, a: int, b: int) -> bool:
        return (self.a == a and self.b == b) or (self.a == b and self.b == a)


@dataclass
class ExtendedLineEntity:
    """Conceptually infinite line, stored as its visible span."""
    start: Point
    end: Point
    label: str = ""

    @property
    def kind(self) -> Kind:
        return Kind.EXTENDED_LINE

    @property
    def segment(self) -> Segment:
        return Segment(start=self.start, end=self.end)


@dataclass
class CircleEntity:
    center: Point
    radius: float
    label: str = ""

    @property
    def kind(self) -> Kind:
        return Kind.CIRCLE

    @property
    def circle(self) -> Circle:
        return Circle(center=self.center, radius=self.radius)


Entity = Union[PointEntity, LineEntity, ExtendedLineEntity, CircleEntity]
