"""
Construction Engine (Intent Controller)
=======================================
The single entry point a view talks to.

Why is this file needed?
------------------------
1. Intents: Each user action ("connect", "extend", "circle", "normal",
   "intersect", "label", "delete", "open", "save") is validated against the
   current selection and applied to the ConstructionModel.
2. Recording: While a recording is active, every completed intent is written
   to the macro log as a self-contained command.
3. Signals: The view redraws on `model_changed` / `selection_changed` and never
   touches the model directly.

Every intent returns True when it changed something, False when it was
rejected; nothing is raised past this class for expected failures.
"""
from __future__ import annotations

import logging
from typing import Optional, Union

from PySide6.QtCore import QObject, Signal

from geoconstruct.model.construction import ConstructionModel, ConstructionSnapshot
from geoconstruct.model.entities import Kind
from geoconstruct.model.geometry_primitives import Point
from geoconstruct.model.intersections import IntersectionOrchestrator
from geoconstruct.model.io import IOManager, ConstructionFileError
from geoconstruct.model.macro import (
    CommandName, MacroCommand, MacroParseError, MacroRecorder, SelectionPayload,
    load_macro, save_macro
)

logger = logging.getLogger(__name__)


class ConstructionEngine(QObject):
    """Intent façade over the model, the orchestrator and the macro recorder."""
    model_changed = Signal()
    selection_changed = Signal()
    command_recorded = Signal(str)
    recording_changed = Signal(bool)

    def __init__(self, storage_path: Optional[str] = None, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.model = ConstructionModel()
        self.orchestrator = IntersectionOrchestrator(self.model)
        self.recorder = MacroRecorder()
        self.storage_path = storage_path

    def snapshot(self) -> ConstructionSnapshot:
        return self.model.snapshot()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def select(self, kind: Kind, index: int, additive: bool = False) -> bool:
        if not 0 <= index < self.model.count(kind):
            return False
        if additive:
            accepted = self.model.selection.toggle(kind, index)
        else:
            self.model.selection.select(kind, index)
            accepted = True
        if accepted:
            self.selection_changed.emit()
        return accepted

    def click(self, pos: Point, tolerance: float, additive: bool = False) -> bool:
        """
        Select whatever lies under a model-space position. A plain click on
        empty space clears the selection.
        """
        hit = self.model.hit_test(pos, tolerance)
        if hit is None:
            if not additive and not self.model.selection.is_empty():
                self.clear_selection()
            return False
        return self.select(hit[0], hit[1], additive)

    def clear_selection(self) -> None:
        self.model.selection.clear()
        self.selection_changed.emit()

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------
    def add_point(self, pos: Point, label: str = "", mark_selected: bool = False) -> bool:
        if not self.model.add_point(pos, label, mark_selected):
            return False
        self._record(MacroCommand(CommandName.ADD_POINT, points=(pos,), text=label))
        self._commit()
        return True

    def connect_selected(self) -> bool:
        """Finite line between the first two selected points."""
        order = self.model.selection.ordered_points()
        if len(order) < 2:
            logger.info("Select at least two points to add a line.")
            return False
        a, b = order[0], order[1]
        if not self.model.add_line(a, b):
            logger.info("A line between those points already exists.")
            return False
        self._record(MacroCommand(
            CommandName.ADD_LINE, points=(self.model.point_at(a), self.model.point_at(b))
        ))
        self._commit()
        return True

    def extend_selected(self) -> bool:
        if self.model.selection.count(Kind.LINE) < 1:
            logger.info("Select at least one line to extend.")
            return False
        payload = self._selection_payload()
        if not self.orchestrator.extend_selected_lines():
            # Degenerate lines are dropped without a replacement
            self._commit()
            return False
        self._record(MacroCommand(CommandName.EXTEND_LINES, selection=payload))
        self._commit()
        return True

    def add_circle_from_selection(self) -> bool:
        """Circle around the first selected point through the second one."""
        if self.model.selection.kinds() != [Kind.POINT] or self.model.selection.count() != 2:
            logger.info("Select exactly two points to define center and radius.")
            return False
        first, second = self.model.selection.ordered_points()
        center = self.model.point_at(first)
        edge = self.model.point_at(second)
        if not self.model.add_circle(center, center.distance_to(edge)):
            return False
        self._record(MacroCommand(CommandName.ADD_CIRCLE, points=(center, edge)))
        self._commit()
        return True

    def add_normal(self) -> bool:
        """Perpendicular through the selected point onto the selected line."""
        items = self.model.selection.items()
        line = next(((k, i) for k, i in items if k in (Kind.LINE, Kind.EXTENDED_LINE)), None)
        point = next((i for k, i in items if k == Kind.POINT), None)
        if len(items) != 2 or line is None or point is None:
            logger.info("Select exactly one line and one point.")
            return False

        if line[0] == Kind.LINE:
            endpoints = self.model.line_endpoints_at(line[1])
        else:
            endpoints = self.model.extended_line_endpoints_at(line[1])
        through = self.model.point_at(point)
        if endpoints is None or not self.orchestrator.add_normal(line[0], line[1], through):
            logger.info("Could not add normal line.")
            return False
        self._record(MacroCommand(CommandName.ADD_NORMAL, points=(endpoints[0], endpoints[1], through)))
        self._commit()
        return True

    def recompute_intersections(self) -> bool:
        """
        With nothing selected every primitive is intersected with every other
        one; with exactly two selected objects only that pair is processed.
        """
        if self.model.selection.is_empty():
            self.orchestrator.recompute_all()
            self._record(MacroCommand(CommandName.INTERSECT_ALL))
            self._commit()
            return True

        payload = self._selection_payload()
        result = self.orchestrator.intersect_selected()
        if not result.handled:
            logger.info("Intersections need exactly two compatible objects selected.")
            return False
        self._record(MacroCommand(CommandName.INTERSECTIONS, selection=payload))
        self._commit()
        return True

    def set_label(self, text: str) -> bool:
        payload = self._selection_payload()
        if not self.model.set_label(text):
            logger.info("Select exactly one item to edit its label.")
            return False
        self._record(MacroCommand(CommandName.SET_LABEL, selection=payload, text=text))
        self._commit()
        return True

    def delete_selected(self) -> bool:
        payload = self._selection_payload()
        if not self.model.delete_selected():
            logger.info("No selected objects to delete.")
            self.selection_changed.emit()
            return False
        self._record(MacroCommand(CommandName.DELETE_SELECTED, selection=payload))
        self._commit()
        return True

    def delete_all(self) -> bool:
        self.model.delete_all()
        self._record(MacroCommand(CommandName.DELETE_ALL))
        self._commit()
        return True

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------
    def open_file(self, filepath: str) -> bool:
        try:
            IOManager.load_construction(self.model, filepath)
        except (OSError, ConstructionFileError) as e:
            logger.warning(f"Could not open '{filepath}': {e}")
            return False
        self._record(MacroCommand(CommandName.OPEN, text=filepath))
        self.model_changed.emit()
        self.selection_changed.emit()
        return True

    def save_file(self, filepath: str) -> bool:
        try:
            IOManager.save_construction(self.model, filepath)
        except OSError as e:
            logger.warning(f"Could not save '{filepath}': {e}")
            return False
        self._record(MacroCommand(CommandName.SAVE, text=filepath))
        return True

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------
    def start_recording(self) -> bool:
        if not self.recorder.start():
            return False
        self.recording_changed.emit(True)
        return True

    def stop_recording(self) -> None:
        if self.recorder.is_recording:
            self.recorder.stop()
            self.recording_changed.emit(False)

    def toggle_recording(self) -> bool:
        """Returns the new recording state."""
        if self.recorder.is_recording:
            self.stop_recording()
        else:
            self.start_recording()
        return self.recorder.is_recording

    def open_macro(self, filepath: str) -> bool:
        try:
            self.recorder.commands = load_macro(filepath)
        except OSError as e:
            logger.warning(f"Could not open macro '{filepath}': {e}")
            return False
        return True

    def save_macro(self, filepath: str) -> bool:
        try:
            save_macro(filepath, self.recorder.commands)
        except OSError as e:
            logger.warning(f"Could not save macro '{filepath}': {e}")
            return False
        return True

    # ------------------------------------------------------------------
    # Command interpreter
    # ------------------------------------------------------------------
    def execute_command(self, command: Union[str, MacroCommand]) -> bool:
        """
        Apply one macro command, resolving the objects it names by their
        coordinates in the current model.
        """
        if isinstance(command, str):
            try:
                command = MacroCommand.parse(command)
            except MacroParseError as e:
                logger.warning(f"Skipping macro command: {e}")
                return False

        name = command.name
        if name == CommandName.ADD_POINT:
            return self.add_point(command.points[0], label=command.text, mark_selected=True)

        if name == CommandName.ADD_LINE:
            a, b = command.points
            self.model.selection.clear()
            if not self.model.select_point_by_position(a, additive=False):
                self.model.add_point(a)
                self.model.select_point_by_position(a, additive=False)
            if not self.model.select_point_by_position(b, additive=True):
                self.model.add_point(b, mark_selected=True)
            return self.connect_selected()

        if name == CommandName.ADD_CIRCLE:
            if command.points:
                center, edge = command.points
                self.model.selection.clear()
                if not (self.model.select_point_by_position(center, additive=False)
                        and self.model.select_point_by_position(edge, additive=True)):
                    logger.warning("addCircle: center or edge point not found.")
                    return False
            return self.add_circle_from_selection()

        if name == CommandName.ADD_NORMAL:
            if command.points:
                a, b, p = command.points
                self.model.selection.clear()
                found_line = (self.model.select_line_by_endpoints(a, b, additive=False)
                              or self.model.select_extended_line_by_endpoints(a, b, additive=False))
                if not (found_line and self.model.select_point_by_position(p, additive=True)):
                    logger.warning("addNormal: line or point not found.")
                    return False
            return self.add_normal()

        if name == CommandName.INTERSECT_ALL:
            self.model.selection.clear()
            return self.recompute_intersections()

        if name == CommandName.DELETE_ALL:
            return self.delete_all()
        if name == CommandName.OPEN:
            return self.open_file(command.text)
        if name == CommandName.SAVE:
            return self.save_file(command.text)

        if command.selection is not None and not self._reselect(command.selection):
            logger.warning(f"{name}: recorded selection not found, command skipped.")
            return False
        if name == CommandName.EXTEND_LINES:
            return self.extend_selected()
        if name == CommandName.INTERSECTIONS:
            return self.recompute_intersections()
        if name == CommandName.DELETE_SELECTED:
            return self.delete_selected()
        if name == CommandName.SET_LABEL:
            return self.set_label(command.text)
        return False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _selection_payload(self) -> SelectionPayload:
        return SelectionPayload(
            points=tuple(self.model.selected_point_positions()),
            lines=tuple(self.model.selected_line_endpoints()),
            extended_lines=tuple(self.model.selected_extended_line_endpoints()),
            circles=tuple(self.model.selected_circle_data()),
        )

    def _reselect(self, payload: SelectionPayload) -> bool:
        """Select the recorded objects by value. Returns False unless all of them were found."""
        model = self.model
        model.selection.clear()
        found = [model.select_point_by_position(p, additive=True) for p in payload.points]
        found += [model.select_line_by_endpoints(a, b, additive=True) for a, b in payload.lines]
        found += [model.select_extended_line_by_endpoints(a, b, additive=True) for a, b in payload.extended_lines]
        found += [model.select_circle_by_center_radius(c, r, additive=True) for c, r in payload.circles]
        if not all(found):
            logger.debug(f"Resolved {sum(found)} of {len(found)} recorded selection entries.")
            model.selection.clear()
            return False
        return True

    def _record(self, command: MacroCommand) -> None:
        line = self.recorder.record(command)
        if line is not None:
            self.command_recorded.emit(line)

    def _commit(self) -> None:
        if self.storage_path:
            try:
                IOManager.save_construction(self.model, self.storage_path)
            except OSError as e:
                logger.warning(f"Auto-save to '{self.storage_path}' failed: {e}")
        self.model_changed.emit()
        self.selection_changed.emit()
