"""
Status message interpretation.

The protocol carries no structured phase field: tool activity is announced
through marker substrings inside free-text status messages. The markers are
matched exactly as agents emit them today, including the historical
"ToolsCalls" spelling of the completion marker.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Union

TOOL_STARTED_MARKER = "ToolCalls:InProgress"
TOOL_FINISHED_MARKER = "ToolsCalls:Completed"

LABEL_COMMUNICATING = "communicating"
LABEL_RUNNING_TOOL = "running tool"


class Phase(StrEnum):
    TOOL_STARTED = "tool_started"
    TOOL_FINISHED = "tool_finished"
    INFORMATIONAL = "informational"
    EMPTY = "empty"


@dataclass(frozen=True, slots=True)
class RetargetIndicator:
    label: str


@dataclass(frozen=True, slots=True)
class StopIndicator:
    pass


@dataclass(frozen=True, slots=True)
class PrintInformational:
    message: str


@dataclass(frozen=True, slots=True)
class NoOp:
    pass


Directive = Union[RetargetIndicator, StopIndicator, PrintInformational, NoOp]


def detect_phase(message: str) -> Phase:
    # Case-sensitive containment; tool-started wins if both markers appear.
    if TOOL_STARTED_MARKER in message:
        return Phase.TOOL_STARTED
    if TOOL_FINISHED_MARKER in message:
        return Phase.TOOL_FINISHED
    if message.strip():
        return Phase.INFORMATIONAL
    return Phase.EMPTY


def classify(message: str | None) -> Directive:
    msg = message or ""
    phase = detect_phase(msg)
    if phase is Phase.TOOL_STARTED:
        return RetargetIndicator(label=LABEL_RUNNING_TOOL)
    if phase is Phase.TOOL_FINISHED:
        return StopIndicator()
    if phase is Phase.INFORMATIONAL:
        return PrintInformational(message=msg)
    return NoOp()
