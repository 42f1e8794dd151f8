"""
Macro Player
============
Replays a command log on the Qt event loop.

Why is this file needed?
------------------------
1. Pacing: Commands run one at a time with a fixed pause in between, so the
   view can repaint and the user can follow the construction.
2. Responsiveness: The pause is a single-shot QTimer, not a blocking sleep;
   control returns to the event loop between commands.
3. Safety: Each command is applied completely inside one timer callback, so
   cancelling can only happen between whole commands. Recording is switched
   off for the duration of the replay.

Classes:
    MacroPlayer: Drives a ConstructionEngine through a list of commands.
"""
import logging
from typing import Optional

from PySide6.QtCore import QObject, Qt, QTimer, Signal

from geoconstruct import config
from geoconstruct.controller.engine import ConstructionEngine

logger = logging.getLogger(__name__)


class MacroPlayer(QObject):
    # Signals to update the UI while replaying
    command_executed = Signal(int, str, bool)  # (position, command, succeeded)
    finished = Signal()
    cancelled = Signal()

    def __init__(
        self,
        engine: ConstructionEngine,
        delay_ms: int = config.MACRO_DELAY_MS,
        parent: Optional[QObject] = None
    ) -> None:
        super().__init__(parent)
        self.engine = engine
        self.delay_ms = delay_ms
        self._queue: list[str] = []
        self._position = 0
        self._running = False
        self._cancel_requested = False
        self.failures = 0

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setTimerType(Qt.TimerType.PreciseTimer)
        self._timer.timeout.connect(self._step)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def position(self) -> int:
        """Number of commands already executed in the current run."""
        return self._position

    def start(self, commands: Optional[list[str]] = None) -> bool:
        """
        Replay `commands` (default: the engine's recorded log). Any active
        recording is stopped first. Returns False if nothing can be played.
        """
        if self._running:
            logger.info("A macro is already running.")
            return False

        self.engine.stop_recording()
        queue = list(commands if commands is not None else self.engine.recorder.commands)
        if not queue:
            logger.info("No recorded commands to run.")
            return False

        self._queue = queue
        self._position = 0
        self._cancel_requested = False
        self.failures = 0
        self._running = True
        self.engine.recorder.begin_replay()
        logger.info(f"Replaying {len(queue)} macro command(s), {self.delay_ms} ms apart.")
        self._timer.start(0)
        return True

    def cancel(self) -> None:
        """Stop before the next command; the command in progress always completes."""
        if not self._running:
            return
        self._cancel_requested = True
        if self._timer.isActive():
            self._timer.stop()
            self._finish(cancelled=True)

    def _step(self) -> None:
        if self._cancel_requested:
            self._finish(cancelled=True)
            return

        command = self._queue[self._position]
        try:
            ok = self.engine.execute_command(command)
        except Exception as e:
            # A broken command counts as a failure; the replay goes on
            logger.exception(f"Error while replaying '{command}': {e}")
            ok = False
        if not ok:
            self.failures += 1
            logger.debug(f"Macro command had no effect: {command}")
        self._position += 1
        self.command_executed.emit(self._position, command, ok)
        self._schedule_next()

    def _schedule_next(self) -> None:
        if self._cancel_requested:
            self._finish(cancelled=True)
        elif self._position < len(self._queue):
            self._timer.start(self.delay_ms)
        else:
            self._finish(cancelled=False)

    def _finish(self, cancelled: bool) -> None:
        self._running = False
        self.engine.recorder.end_replay()
        if cancelled:
            logger.info(f"Macro cancelled after {self._position} of {len(self._queue)} command(s).")
            self.cancelled.emit()
        else:
            logger.info(f"Macro finished ({self.failures} command(s) without effect).")
            self.finished.emit()
