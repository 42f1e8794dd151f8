"""
Macro Commands
==============
Textual, replayable log of construction intents.

Every command carries the literal coordinates it acted on, so a log stays
valid after deletions have renumbered the entities. One command per line:

    addPoint:x,y[;label]
    addLine:ax,ay|bx,by
    addCircle:cx,cy|ex,ey
    addNormal:ax,ay|bx,by;px,py
    extendLines[;fields]
    intersections[;fields]
    intersectAll
    deleteSelected[;fields]
    deleteAll
    setLabel[;fields]:text
    open:path
    save:path

The optional selection fields are `P=x,y|x,y`, `L=ax,ay|bx,by#...`,
`E=ax,ay|bx,by#...` and `C=cx,cy,r#...`. A command without fields acts on the
current selection.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
import logging
import os
from typing import Optional

from geoconstruct import config
from geoconstruct.model.geometry_primitives import Point

logger = logging.getLogger(__name__)


class MacroParseError(ValueError):
    """A macro line that cannot be turned into a command."""


class CommandName(StrEnum):
    ADD_POINT = "addPoint"
    ADD_LINE = "addLine"
    ADD_CIRCLE = "addCircle"
    ADD_NORMAL = "addNormal"
    EXTEND_LINES = "extendLines"
    INTERSECTIONS = "intersections"
    INTERSECT_ALL = "intersectAll"
    DELETE_SELECTED = "deleteSelected"
    DELETE_ALL = "deleteAll"
    SET_LABEL = "setLabel"
    OPEN = "open"
    SAVE = "save"


# Commands whose payload is free text rather than coordinates
TEXT_COMMANDS = (CommandName.SET_LABEL, CommandName.OPEN, CommandName.SAVE)
# Commands that may carry selection fields
SELECTION_COMMANDS = (
    CommandName.EXTEND_LINES,
    CommandName.INTERSECTIONS,
    CommandName.DELETE_SELECTED,
    CommandName.SET_LABEL,
)
# Number of coordinate pairs in the payload (0 = the command acts on the selection)
POINT_ARITY = {
    CommandName.ADD_POINT: (1,),
    CommandName.ADD_LINE: (2,),
    CommandName.ADD_CIRCLE: (0, 2),
    CommandName.ADD_NORMAL: (0, 3),
}


def format_coord(value: float) -> str:
    return f"{value:.{config.COORD_DECIMALS}f}"


def format_point(p: Point) -> str:
    return f"{format_coord(p.x)},{format_coord(p.y)}"


def parse_point(text: str) -> Point:
    parts = text.split(",")
    if len(parts) != 2:
        raise MacroParseError(f"Expected 'x,y', got '{text}'.")
    try:
        return Point(x=float(parts[0]), y=float(parts[1]))
    except ValueError as e:
        raise MacroParseError(f"Invalid coordinates '{text}'.") from e


def _parse_pair(text: str) -> tuple[Point, Point]:
    parts = text.split("|")
    if len(parts) != 2:
        raise MacroParseError(f"Expected 'ax,ay|bx,by', got '{text}'.")
    return parse_point(parts[0]), parse_point(parts[1])


@dataclass(frozen=True)
class SelectionPayload:
    """Literal description of a selection, resolved again by value on replay."""
    points: tuple[Point, ...] = ()
    lines: tuple[tuple[Point, Point], ...] = ()
    extended_lines: tuple[tuple[Point, Point], ...] = ()
    circles: tuple[tuple[Point, float], ...] = ()

    def is_empty(self) -> bool:
        return not (self.points or self.lines or self.extended_lines or self.circles)

    def to_fields(self) -> list[str]:
        fields = []
        if self.points:
            fields.append("P=" + "|".join(format_point(p) for p in self.points))
        if self.lines:
            fields.append("L=" + "#".join(f"{format_point(a)}|{format_point(b)}" for a, b in self.lines))
        if self.extended_lines:
            fields.append("E=" + "#".join(f"{format_point(a)}|{format_point(b)}" for a, b in self.extended_lines))
        if self.circles:
            fields.append("C=" + "#".join(f"{format_point(c)},{format_coord(r)}" for c, r in self.circles))
        return fields

    @staticmethod
    def from_fields(fields: list[str]) -> SelectionPayload:
        points: list[Point] = []
        lines: list[tuple[Point, Point]] = []
        extended: list[tuple[Point, Point]] = []
        circles: list[tuple[Point, float]] = []
        for field in fields:
            key, sep, body = field.partition("=")
            if not sep:
                raise MacroParseError(f"Malformed selection field '{field}'.")
            items = [item for item in body.split("#" if key != "P" else "|") if item]
            if key == "P":
                points.extend(parse_point(item) for item in items)
            elif key == "L":
                lines.extend(_parse_pair(item) for item in items)
            elif key == "E":
                extended.extend(_parse_pair(item) for item in items)
            elif key == "C":
                for item in items:
                    parts = item.split(",")
                    if len(parts) != 3:
                        raise MacroParseError(f"Expected 'cx,cy,r', got '{item}'.")
                    center = parse_point(",".join(parts[:2]))
                    try:
                        radius = float(parts[2])
                    except ValueError as e:
                        raise MacroParseError(f"Invalid radius '{parts[2]}'.") from e
                    circles.append((center, radius))
            else:
                raise MacroParseError(f"Unknown selection field '{key}'.")
        return SelectionPayload(tuple(points), tuple(lines), tuple(extended), tuple(circles))


@dataclass(frozen=True)
class MacroCommand:
    """
    One recorded intent.

    `points` holds the literal coordinates of the geometric commands:
    addPoint (p), addLine (a, b), addCircle (center, edge), addNormal (a, b, p).
    `text` is the label for addPoint (optional) and setLabel, and the path
    for open/save.
    """
    name: CommandName
    points: tuple[Point, ...] = ()
    selection: Optional[SelectionPayload] = None
    text: str = ""

    def format(self) -> str:
        head = str(self.name)
        if self.selection is not None and not self.selection.is_empty():
            head = ";".join([head] + self.selection.to_fields())

        if self.name in TEXT_COMMANDS:
            return f"{head}:{self.text}"
        if not self.points:
            return head
        if self.name == CommandName.ADD_POINT:
            label = f";{self.text}" if self.text else ""
            return f"{head}:{format_point(self.points[0])}{label}"
        payload = f"{format_point(self.points[0])}|{format_point(self.points[1])}"
        if self.name == CommandName.ADD_NORMAL:
            payload += f";{format_point(self.points[2])}"
        return f"{head}:{payload}"

    @staticmethod
    def parse(line: str) -> MacroCommand:
        line = line.strip()
        if not line:
            raise MacroParseError("Empty command.")

        head, sep, payload = line.partition(":")
        head_parts = head.split(";")
        try:
            name = CommandName(head_parts[0].strip())
        except ValueError as e:
            raise MacroParseError(f"Unknown command '{head_parts[0]}'.") from e

        fields = [f for f in head_parts[1:] if f]
        if fields and name not in SELECTION_COMMANDS:
            raise MacroParseError(f"Command '{name}' takes no selection fields.")
        selection = SelectionPayload.from_fields(fields) if fields else None

        if name in TEXT_COMMANDS:
            if name != CommandName.SET_LABEL and not payload:
                raise MacroParseError(f"Command '{name}' needs a path.")
            return MacroCommand(name=name, selection=selection, text=payload)

        if name not in POINT_ARITY:
            if sep and payload:
                raise MacroParseError(f"Command '{name}' takes no arguments.")
            return MacroCommand(name=name, selection=selection)

        points: tuple[Point, ...] = ()
        text = ""
        if payload:
            if name == CommandName.ADD_POINT:
                # The label is everything after the first semicolon
                point_part, _, text = payload.partition(";")
                points = (parse_point(point_part),)
            elif name == CommandName.ADD_NORMAL:
                line_part, sep_p, point_part = payload.partition(";")
                if not sep_p:
                    raise MacroParseError(f"Expected 'ax,ay|bx,by;px,py', got '{payload}'.")
                points = (*_parse_pair(line_part), parse_point(point_part))
            else:
                points = _parse_pair(payload)
        if len(points) not in POINT_ARITY[name]:
            raise MacroParseError(f"Command '{name}' has the wrong number of coordinates.")
        return MacroCommand(name=name, points=points, text=text)


class MacroRecorder:
    """
    Holds the command log and the recording switch.

    Nothing is recorded while a replay is running, and a recording cannot be
    started during a replay.
    """

    def __init__(self) -> None:
        self.commands: list[str] = []
        self._recording = False
        self._replaying = False

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def is_replaying(self) -> bool:
        return self._replaying

    def start(self) -> bool:
        """Begin a fresh recording; the previous log is discarded."""
        if self._replaying:
            logger.info("Cannot start recording while a macro is running.")
            return False
        self.commands = []
        self._recording = True
        logger.info("Macro recording started.")
        return True

    def stop(self) -> None:
        if self._recording:
            logger.info(f"Macro recording stopped ({len(self.commands)} command(s)).")
        self._recording = False

    def record(self, command: MacroCommand) -> Optional[str]:
        """Append a command if recording. Returns the recorded line."""
        if not self._recording or self._replaying:
            return None
        line = command.format()
        self.commands.append(line)
        logger.debug(f"Recorded: {line}")
        return line

    def begin_replay(self) -> None:
        self.stop()
        self._replaying = True

    def end_replay(self) -> None:
        self._replaying = False


def load_macro(filepath: str) -> list[str]:
    """Read a macro file, skipping blank lines."""
    logger.info(f"Loading macro from: {filepath}")
    with open(filepath, "r", encoding="utf-8") as f:
        lines = [line.strip() for line in f]
    return [line for line in lines if line]


def save_macro(filepath: str, commands: list[str]) -> None:
    logger.info(f"Saving {len(commands)} macro command(s) to: {filepath}")
    directory = os.path.dirname(os.path.abspath(filepath))
    os.makedirs(directory, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        for command in commands:
            f.write(f"{command}\n")
