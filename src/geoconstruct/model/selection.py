"""
Selection Controller
====================
Tracks which entities of a construction are selected.

Rules:
1. A plain selection of an entity of kind K clears everything else and starts
   a fresh single-element selection in K.
2. An additive toggle flips one entity in or out. It is accepted when the
   selection is empty or entirely of kind K. Mixing kinds is accepted only up
   to two objects in total, which is what the two-object operations need
   (line + point for a normal, line + circle for an intersection, ...).
3. The order in which points entered the selection is kept separately, since
   some operations take the first selected point as a circle center.
"""
from __future__ import annotations

import logging
from typing import Optional

from geoconstruct.model.entities import Kind

logger = logging.getLogger(__name__)

# Largest selection that may contain more than one kind
MAX_MIXED_SELECTION = 2


class SelectionController:

    def __init__(self) -> None:
        self._selected: dict[Kind, set[int]] = {kind: set() for kind in Kind}
        self._point_order: list[int] = []

    # --- queries ---

    def is_selected(self, kind: Kind, index: int) -> bool:
        return index in self._selected[kind]

    def selected(self, kind: Kind) -> list[int]:
        """Selected indices of one kind, ascending."""
        return sorted(self._selected[kind])

    def count(self, kind: Optional[Kind] = None) -> int:
        if kind is None:
            return sum(len(s) for s in self._selected.values())
        return len(self._selected[kind])

    def kinds(self) -> list[Kind]:
        """Kinds with at least one selected entity, in declaration order."""
        return [kind for kind in Kind if self._selected[kind]]

    def is_empty(self) -> bool:
        return self.count() == 0

    def items(self) -> list[tuple[Kind, int]]:
        return [(kind, index) for kind in Kind for index in sorted(self._selected[kind])]

    def ordered_points(self) -> list[int]:
        """Point order if it covers the selection, ascending indices otherwise."""
        if len(self._point_order) == len(self._selected[Kind.POINT]):
            return list(self._point_order)
        return self.selected(Kind.POINT)

    # --- mutations ---

    def clear(self) -> None:
        for s in self._selected.values():
            s.clear()
        self._point_order.clear()

    def select(self, kind: Kind, index: int) -> None:
        """Plain selection: exactly this entity is selected afterwards."""
        self.clear()
        self._add(kind, index)

    def toggle(self, kind: Kind, index: int) -> bool:
        """
        Additive selection. Returns False (and changes nothing) when adding the
        entity would produce a mixed selection of more than two objects.
        """
        if self.is_selected(kind, index):
            self._remove(kind, index)
            return True

        others = sum(len(s) for k, s in self._selected.items() if k != kind)
        if others and self.count() + 1 > MAX_MIXED_SELECTION:
            logger.debug(f"Rejected toggle of {kind} {index}: would mix kinds.")
            return False
        self._add(kind, index)
        return True

    def include(self, kind: Kind, index: int) -> None:
        """
        Add an entity to a selection of its own kind, dropping other kinds.
        An already selected point moves to the end of the point order.
        """
        for k, s in self._selected.items():
            if k != kind:
                s.clear()
        if kind == Kind.POINT:
            self._point_order = [i for i in self._point_order if i != index]
        self._add(kind, index)

    def _add(self, kind: Kind, index: int) -> None:
        self._selected[kind].add(index)
        if kind == Kind.POINT and index not in self._point_order:
            self._point_order.append(index)

    def _remove(self, kind: Kind, index: int) -> None:
        self._selected[kind].discard(index)
        if kind == Kind.POINT:
            self._point_order = [i for i in self._point_order if i != index]
