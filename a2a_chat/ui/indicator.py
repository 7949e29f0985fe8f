from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Sequence, Union

from ..runtime.status import LABEL_COMMUNICATING, LABEL_RUNNING_TOOL
from .console_ui import Console

_LOG = logging.getLogger("a2a_chat.indicator")

FRAMES: Sequence[str] = ("◌", "◍", "●", "◍")

_DISPLAY_TEXT = {
    LABEL_COMMUNICATING: "Communicating with agent",
    LABEL_RUNNING_TOOL: "Running tool",
}


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Active:
    label: str
    generation: int


IndicatorState = Union[Idle, Active]


@dataclass(slots=True)
class _Activation:
    label: str
    generation: int
    stop_event: threading.Event
    thread: threading.Thread


class BusyIndicator:
    """
    The "agent is busy" spinner. At most one activation is live at any time.

    Each activation runs its own repaint thread. `stop()` joins that thread before
    returning, so once it returns no frame of the retired activation can reach the
    console. Activations are numbered; a stop scoped to an older generation is ignored.
    """

    def __init__(self, console: Console, *, interval_s: float = 0.08, frames: Sequence[str] = FRAMES) -> None:
        self._console = console
        self._interval_s = float(interval_s)
        self._frames = tuple(frames) or FRAMES
        self._lock = threading.Lock()
        self._generation = 0
        self._active: _Activation | None = None

    @property
    def state(self) -> IndicatorState:
        with self._lock:
            act = self._active
            if act is None:
                return Idle()
            return Active(label=act.label, generation=act.generation)

    def activate(self, label: str) -> int:
        """Start a new activation, retiring any live one first. Returns its generation."""

        with self._lock:
            self._stop_locked()
            self._generation += 1
            stop_event = threading.Event()
            act = _Activation(
                label=label,
                generation=self._generation,
                stop_event=stop_event,
                thread=threading.Thread(
                    target=self._spin,
                    args=(label, stop_event),
                    name=f"a2a-chat-indicator-{self._generation}",
                    daemon=True,
                ),
            )
            self._active = act
            act.thread.start()
            _LOG.debug("indicator active label=%r generation=%d", label, act.generation)
            return act.generation

    def retarget(self, label: str) -> int:
        self.stop()
        return self.activate(label)

    def stop(self, generation: int | None = None) -> bool:
        """
        Retire the live activation. Returns True if one was stopped.

        With `generation`, only that activation is stopped; a stale generation is a no-op.
        """

        with self._lock:
            if self._active is None:
                return False
            if generation is not None and generation != self._active.generation:
                _LOG.debug("ignoring stale stop generation=%d (live=%d)", generation, self._active.generation)
                return False
            return self._stop_locked()

    def _stop_locked(self) -> bool:
        act = self._active
        if act is None:
            return False
        act.stop_event.set()
        act.thread.join()
        self._active = None
        self._console.clear_status()
        _LOG.debug("indicator idle (retired generation=%d)", act.generation)
        return True

    def _spin(self, label: str, stop_event: threading.Event) -> None:
        text = _DISPLAY_TEXT.get(label, label)
        frame = 0
        while not stop_event.is_set():
            ch = self._frames[frame % len(self._frames)]
            frame += 1
            self._console.paint_status(f"{ch} {text}…")
            stop_event.wait(self._interval_s)
