"""
Input/Output Manager (JSON)
Handles saving and loading a ConstructionModel to .json files.
"""
import json
import logging
import os
from importlib.metadata import version, PackageNotFoundError
from typing import Any

from geoconstruct.model.construction import ConstructionModel
from geoconstruct.model.geometry_primitives import Point

logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("geoconstruct")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"


class ConstructionFileError(ValueError):
    """The document is not a construction file."""


def _to_float(value: Any) -> float:
    # Unparsable numbers read as zero
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return 0.0


def _to_int(value: Any, default: int = -1) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return default


def _to_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _array(root: dict, key: str) -> list:
    value = root.get(key)
    return value if isinstance(value, list) else []


class IOManager:

    @staticmethod
    def to_dict(model: ConstructionModel) -> dict[str, Any]:
        points = [{"x": p.pos.x, "y": p.pos.y, "label": p.label} for p in model.points]
        lines = []
        for i, line in enumerate(model.lines):
            if model.line_segment(i) is None:
                continue
            lines.append({"a": line.a, "b": line.b, "label": line.label})
        extended = [
            {"ax": e.start.x, "ay": e.start.y, "bx": e.end.x, "by": e.end.y, "label": e.label}
            for e in model.extended_lines
        ]
        circles = [
            {"x": c.center.x, "y": c.center.y, "r": c.radius, "label": c.label}
            for c in model.circles
        ]
        return {
            "version": APP_VERSION,
            "points": points,
            "lines": lines,
            "extendedLines": extended,
            "circles": circles,
        }

    @staticmethod
    def from_dict(model: ConstructionModel, root: Any) -> None:
        """
        Replace the contents of `model` with the construction in `root`.

        Broken entries are skipped one by one; a document that is not an
        object raises ConstructionFileError and leaves `model` untouched.
        """
        if not isinstance(root, dict):
            raise ConstructionFileError("Top-level JSON value is not an object.")

        scratch = ConstructionModel()

        # File index -> model index; coincident points collapse onto the first one
        index_map: dict[int, int] = {}
        for file_index, value in enumerate(_array(root, "points")):
            if not isinstance(value, dict):
                continue
            pos = Point(x=_to_float(value.get("x")), y=_to_float(value.get("y")))
            existing = scratch.find_point(pos)
            if existing is not None:
                index_map[file_index] = existing
                continue
            scratch.add_point(pos, _to_str(value.get("label")))
            index_map[file_index] = len(scratch.points) - 1

        for value in _array(root, "lines"):
            if not isinstance(value, dict):
                continue
            label = _to_str(value.get("label"))
            if value.get("custom") is True:
                a = IOManager._ensure_point(scratch, _to_float(value.get("customAx")), _to_float(value.get("customAy")))
                b = IOManager._ensure_point(scratch, _to_float(value.get("customBx")), _to_float(value.get("customBy")))
                scratch.add_line(a, b, label)
                continue
            a = _to_int(value.get("a"))
            b = _to_int(value.get("b"))
            if a in index_map and b in index_map:
                scratch.add_line(index_map[a], index_map[b], label)
            else:
                logger.debug(f"Skipping line with dangling indices ({a}, {b}).")

        for value in _array(root, "extendedLines"):
            if not isinstance(value, dict):
                continue
            scratch.add_extended_line(
                Point(x=_to_float(value.get("ax")), y=_to_float(value.get("ay"))),
                Point(x=_to_float(value.get("bx")), y=_to_float(value.get("by"))),
                _to_str(value.get("label")),
            )

        for value in _array(root, "circles"):
            if not isinstance(value, dict):
                continue
            center = Point(x=_to_float(value.get("x")), y=_to_float(value.get("y")))
            if not scratch.add_circle(center, _to_float(value.get("r")), _to_str(value.get("label"))):
                logger.debug("Skipping circle with non-positive radius.")

        model.replace_contents(
            list(scratch.points), list(scratch.lines), list(scratch.extended_lines), list(scratch.circles)
        )

    @staticmethod
    def _ensure_point(model: ConstructionModel, x: float, y: float) -> int:
        pos = Point(x=x, y=y)
        index = model.find_point(pos)
        if index is None:
            model.add_point(pos)
            index = len(model.points) - 1
        return index

    @staticmethod
    def save_construction(model: ConstructionModel, filepath: str) -> None:
        logger.info(f"Saving construction to: {filepath}")
        try:
            directory = os.path.dirname(os.path.abspath(filepath))
            os.makedirs(directory, exist_ok=True)
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(IOManager.to_dict(model), f, indent=4)
        except OSError as e:
            logger.exception(f"Failed to save construction: {e}")
            raise e
        logger.info(
            f"Construction saved ({len(model.points)} points, {len(model.lines)} lines, "
            f"{len(model.extended_lines)} extended lines, {len(model.circles)} circles)."
        )

    @staticmethod
    def load_construction(model: ConstructionModel, filepath: str) -> None:
        logger.info(f"Loading construction from: {filepath}")
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                root = json.load(f)
        except json.JSONDecodeError as e:
            msg = f"File '{filepath}' is not valid JSON: {e}"
            logger.error(msg)
            raise ConstructionFileError(msg) from e
        except OSError as e:
            logger.error(f"Could not read '{filepath}': {e}")
            raise e

        try:
            IOManager.from_dict(model, root)
        except ConstructionFileError as e:
            logger.error(f"File '{filepath}' is not a construction: {e}")
            raise e
        logger.info(f"Construction loaded from: {filepath}")
