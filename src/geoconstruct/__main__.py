"""Command-line interface."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from PySide6.QtCore import QCoreApplication

from geoconstruct import config
from geoconstruct.controller.engine import ConstructionEngine
from geoconstruct.controller.macro_player import MacroPlayer
from geoconstruct.logging_config import setup_logging
from geoconstruct.model.construction import ConstructionModel
from geoconstruct.model.io import IOManager, ConstructionFileError
from geoconstruct.model.macro import load_macro

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="geoconstruct",
        description="Headless tools for compass-and-straightedge constructions.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    parser.add_argument("--log-file", default=None, help="also write the log to this file")
    sub = parser.add_subparsers(dest="command", required=True)

    replay = sub.add_parser("replay", help="run a macro file against a construction")
    replay.add_argument("macro", help="macro file, one command per line")
    replay.add_argument("--input", default=None, help="construction to start from (.json)")
    replay.add_argument("--output", default=None, help="where to save the resulting construction")
    replay.add_argument("--delay", type=int, default=0,
                        help=f"pause between commands in ms (the editor uses {config.MACRO_DELAY_MS})")

    info = sub.add_parser("info", help="print what a construction file contains")
    info.add_argument("file", help="construction file (.json)")
    return parser


def run_replay(args: argparse.Namespace) -> int:
    try:
        commands = load_macro(args.macro)
    except OSError as e:
        logger.error(f"Could not read macro '{args.macro}': {e}")
        return 1

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    engine = ConstructionEngine()
    if args.input and not engine.open_file(args.input):
        return 1

    player = MacroPlayer(engine, delay_ms=args.delay)
    player.finished.connect(app.quit)
    player.cancelled.connect(app.quit)
    if player.start(commands):
        app.exec()

    print(f"{_summary(engine.model)} ({player.failures} command(s) without effect)")
    if args.output and not engine.save_file(args.output):
        return 1
    return 0


def run_info(args: argparse.Namespace) -> int:
    model = ConstructionModel()
    try:
        IOManager.load_construction(model, args.file)
    except (OSError, ConstructionFileError):
        return 1
    for p in model.points:
        print(f"point   {p.label:>8}  ({p.pos.x:.6f}, {p.pos.y:.6f})")
    for line in model.lines:
        print(f"line    {line.label:>8}  {model.points[line.a].label} - {model.points[line.b].label}")
    for e in model.extended_lines:
        print(f"ext     {e.label:>8}  ({e.start.x:.6f}, {e.start.y:.6f}) - ({e.end.x:.6f}, {e.end.y:.6f})")
    for c in model.circles:
        print(f"circle  {c.label:>8}  ({c.center.x:.6f}, {c.center.y:.6f}) r={c.radius:.6f}")
    print(_summary(model))
    return 0


def _summary(model: ConstructionModel) -> str:
    return (
        f"{len(model.points)} points, {len(model.lines)} lines, "
        f"{len(model.extended_lines)} extended lines, {len(model.circles)} circles"
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING, log_file=args.log_file)
    if args.command == "replay":
        return run_replay(args)
    return run_info(args)


if __name__ == "__main__":
    sys.exit(main())
