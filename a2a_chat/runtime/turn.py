from __future__ import annotations

import logging
from enum import StrEnum
from typing import Iterator

from ..ui.console_ui import Console
from ..ui.indicator import Active, BusyIndicator
from ..ui.render import ArtifactAssembler
from .client import ProtocolClient
from .errors import CancellationToken, ErrorCode, ProtocolClientError
from .protocol import ArtifactUpdate, ErrorNotice, StatusUpdate, StreamEvent, TurnRequest, UnknownEvent
from .status import (
    LABEL_COMMUNICATING,
    Directive,
    NoOp,
    PrintInformational,
    RetargetIndicator,
    StopIndicator,
    classify,
)

_LOG = logging.getLogger("a2a_chat.turn")

AGENT_PREFIX = "Agent> "


class TurnOutcome(StrEnum):
    COMPLETED = "completed"
    FAILED = "failed"
    # User abort: the session loop must exit.
    ABORTED = "aborted"


class TurnController:
    """
    Runs one request/response turn against the agent.

    Owns the busy indicator for the duration of the turn: it is active while
    waiting, retired before anything is printed, and always idle on return, with
    the cursor at the start of a fresh line.
    """

    def __init__(
        self,
        *,
        client: ProtocolClient,
        console: Console,
        indicator: BusyIndicator,
        assembler: ArtifactAssembler,
    ) -> None:
        self._client = client
        self._console = console
        self._indicator = indicator
        self._assembler = assembler

    def run_turn(self, request: TurnRequest) -> TurnOutcome:
        cancel = CancellationToken()
        self._indicator.activate(LABEL_COMMUNICATING)
        try:
            if request.streaming:
                self._run_streaming(request, cancel)
            else:
                self._run_once(request)
            return TurnOutcome.COMPLETED
        except KeyboardInterrupt:
            cancel.cancel()
            _LOG.debug("turn aborted by user")
            return TurnOutcome.ABORTED
        except ProtocolClientError as e:
            if e.code is ErrorCode.CANCELLED:
                return TurnOutcome.ABORTED
            self._indicator.stop()
            self._console.error(str(e))
            return TurnOutcome.FAILED
        except Exception as e:
            _LOG.debug("turn failed", exc_info=True)
            self._indicator.stop()
            self._console.error(str(e) or e.__class__.__name__)
            return TurnOutcome.FAILED
        finally:
            self._indicator.stop()
            self._console.ensure_newline()

    # --- streaming ---
    def _run_streaming(self, request: TurnRequest, cancel: CancellationToken) -> None:
        events = self._client.send_streaming(request, cancel)
        first_artifact = True
        try:
            for event in events:
                _LOG.debug("event %s", type(event).__name__)
                if self._dispatch(event, first_artifact=first_artifact):
                    first_artifact = False
        finally:
            _close(events)

    def _dispatch(self, event: StreamEvent, *, first_artifact: bool) -> bool:
        """Handle one stream event. Returns True if an artifact was rendered."""

        if isinstance(event, ErrorNotice):
            self._indicator.stop()
            self._console.error(event.message)
            return False

        if isinstance(event, ArtifactUpdate):
            self._indicator.stop()
            if first_artifact:
                self._console.ensure_newline()
                self._console.write(self._console.color(AGENT_PREFIX, "1;32"))
            self._assembler.render(event, is_first=first_artifact)
            if event.final:
                self._console.ensure_newline()
            return True

        if isinstance(event, StatusUpdate):
            self._apply(classify(event.message))
            if event.final:
                self._indicator.stop()
                self._console.ensure_newline()
            return False

        if isinstance(event, UnknownEvent):
            kind = event.kind
        else:
            kind = type(event).__name__
        self._indicator.stop()
        self._console.error(f"Unknown event type: {kind}")
        return False

    def _apply(self, directive: Directive) -> None:
        if isinstance(directive, RetargetIndicator):
            state = self._indicator.state
            if isinstance(state, Active) and state.label == directive.label:
                return
            self._indicator.retarget(directive.label)
        elif isinstance(directive, StopIndicator):
            self._indicator.stop()
        elif isinstance(directive, PrintInformational):
            self._indicator.stop()
            self._console.info(directive.message)
        elif isinstance(directive, NoOp):
            return

    # --- single response ---
    def _run_once(self, request: TurnRequest) -> None:
        response = self._client.send_once(request)
        self._indicator.stop()
        if response.error is not None:
            self._console.error(response.error.message)
            return
        if not response.artifacts:
            self._console.error("No artifacts found in response.")
            return
        self._console.write(self._console.color(AGENT_PREFIX, "1;32"))
        for i, artifact in enumerate(response.artifacts):
            self._assembler.render(ArtifactUpdate(artifact=artifact), is_first=i == 0)


def _close(events: Iterator[StreamEvent]) -> None:
    close = getattr(events, "close", None)
    if callable(close):
        close()
