from __future__ import annotations

import io
from dataclasses import dataclass, field

import pytest

from a2a_chat.runtime.protocol import TaskResponse
from a2a_chat.runtime.turn import TurnController
from a2a_chat.ui.console_ui import Console
from a2a_chat.ui.indicator import BusyIndicator
from a2a_chat.ui.render import ArtifactAssembler, PartRenderer


class RecordingConsole(Console):
    """Plain (non-TTY, no color) console that also logs every write into a shared list."""

    def __init__(self, log: list, **kwargs) -> None:
        self.buf = io.StringIO()
        kwargs.setdefault("enable_color", False)
        kwargs.setdefault("ansi", False)
        super().__init__(stream=self.buf, **kwargs)
        self.log = log

    def write(self, s: str) -> None:
        if s:
            self.log.append(("write", s))
        super().write(s)

    @property
    def text(self) -> str:
        return self.buf.getvalue()


class RecordingIndicator(BusyIndicator):
    def __init__(self, console: Console, log: list) -> None:
        super().__init__(console, interval_s=0.01)
        self.log = log

    def activate(self, label: str) -> int:
        gen = super().activate(label)
        self.log.append(("activate", label))
        return gen

    def stop(self, generation: int | None = None) -> bool:
        stopped = super().stop(generation)
        if stopped:
            self.log.append(("stop",))
        return stopped


@dataclass
class FakeClient:
    events: list = field(default_factory=list)
    response: TaskResponse | None = None
    card: object = None
    registry: list = field(default_factory=list)
    error: BaseException | None = None
    requests: list = field(default_factory=list)
    closed: bool = False

    def send_streaming(self, request, cancel=None):
        self.requests.append(request)
        try:
            for ev in self.events:
                if isinstance(ev, BaseException):
                    raise ev
                yield ev
        finally:
            self.closed = True

    def send_once(self, request):
        self.requests.append(request)
        if isinstance(self.error, BaseException):
            raise self.error
        return self.response if self.response is not None else TaskResponse()

    def fetch_agent_card(self):
        if isinstance(self.error, BaseException):
            raise self.error
        return self.card

    def fetch_registry(self):
        if isinstance(self.error, BaseException):
            raise self.error
        yield from self.registry


@dataclass
class TurnHarness:
    client: FakeClient
    console: RecordingConsole
    indicator: RecordingIndicator
    controller: TurnController
    log: list


@pytest.fixture
def harness(tmp_path):
    def _make(**client_kwargs) -> TurnHarness:
        log: list = []
        client = FakeClient(**client_kwargs)
        console = RecordingConsole(log)
        indicator = RecordingIndicator(console, log)
        assembler = ArtifactAssembler(console, PartRenderer(console, download_dir=tmp_path))
        controller = TurnController(client=client, console=console, indicator=indicator, assembler=assembler)
        return TurnHarness(client=client, console=console, indicator=indicator, controller=controller, log=log)

    return _make
