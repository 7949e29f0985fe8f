from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from ..ui.agent_card import print_agent_card
from ..ui.console_ui import Console
from .client import ProtocolClient
from .errors import ProtocolClientError
from .ids import new_session_id
from .protocol import Attachment, TurnRequest
from .turn import TurnController, TurnOutcome

_LOG = logging.getLogger("a2a_chat.session")

USER_PROMPT = "User> "
FILE_PROMPT = "File path (optional, <enter> to skip)> "

COMMANDS: tuple[tuple[str, str], ...] = (
    ("/agent", "Display the card of the targeted agent"),
    ("/registry | /agents", "Display the cards of all agents in the target's registry"),
    ("/reset", "Reset the chat session (erases history)"),
    ("/help", "Show this menu"),
    ("/exit | /quit | /q", "Quit"),
)

SLASH_COMMANDS = ["/agent", "/registry", "/agents", "/reset", "/help", "/exit", "/quit"]


@dataclass(slots=True)
class SessionContext:
    session_id: str = field(default_factory=new_session_id)
    turns: int = 0

    def reset(self) -> str:
        self.session_id = new_session_id()
        self.turns = 0
        return self.session_id


def is_exit_command(text: str) -> bool:
    return text in {"/exit", "/quit"} or text.startswith("/q") or text.startswith("/x")


class SessionLoop:
    """Read a prompt, run a turn, repeat until the user quits or aborts."""

    def __init__(
        self,
        *,
        controller: TurnController,
        client: ProtocolClient,
        console: Console,
        streaming: bool,
        prompt: Callable[[str], str] = input,
        context: SessionContext | None = None,
    ) -> None:
        self._controller = controller
        self._client = client
        self._console = console
        self._streaming = streaming
        self._prompt = prompt
        self.context = context if context is not None else SessionContext()

    def print_menu(self) -> None:
        c = self._console
        c.println(c.color("Menu", "1;35"))
        width = max(len(cmd) for cmd, _ in COMMANDS)
        for cmd, desc in COMMANDS:
            c.println(c.color(cmd.ljust(width), "1;33") + "  " + desc)
        c.println()
        c.println_dim("Type your prompts below.")

    def run(self) -> None:
        while True:
            try:
                text = self._prompt(USER_PROMPT)
            except (EOFError, KeyboardInterrupt):
                self._console.newline()
                return
            prompt = text.strip()
            if not prompt:
                self._console.warn("Please enter a prompt.")
                continue

            if prompt.startswith("/"):
                if is_exit_command(prompt):
                    return
                if self._handle_command(prompt):
                    continue

            try:
                attachment = self._ask_attachment()
            except (EOFError, KeyboardInterrupt):
                self._console.newline()
                return
            except OSError as e:
                self._console.error(f"Cannot read file: {e}")
                continue

            request = TurnRequest(
                session_id=self.context.session_id,
                prompt=text,
                attachment=attachment,
                streaming=self._streaming,
            )
            self.context.turns += 1
            outcome = self._controller.run_turn(request)
            _LOG.debug("turn %d finished: %s", self.context.turns, outcome)
            if outcome is TurnOutcome.ABORTED:
                return

    def _handle_command(self, cmd: str) -> bool:
        """Returns True if `cmd` was a known command."""

        if cmd == "/agent":
            self._show_agent()
            return True
        if cmd in {"/registry", "/agents"}:
            self._show_registry()
            return True
        if cmd == "/reset":
            self.context.reset()
            _LOG.info("session reset: %s", self.context.session_id)
            self._console.warn("Chat history reset.")
            return True
        if cmd == "/help":
            self.print_menu()
            return True
        return False

    def _ask_attachment(self) -> Attachment | None:
        raw = self._prompt(FILE_PROMPT).strip().strip('"')
        if not raw:
            return None
        path = Path(raw).expanduser()
        return Attachment(name=path.name, content=path.read_bytes())

    def _show_agent(self) -> None:
        try:
            card = self._client.fetch_agent_card()
        except ProtocolClientError as e:
            self._console.error(str(e))
            return
        if card is None:
            self._console.error("No agents found.")
            return
        print_agent_card(self._console, card)

    def _show_registry(self) -> None:
        found = False
        try:
            for card in self._client.fetch_registry():
                found = True
                print_agent_card(self._console, card)
        except ProtocolClientError as e:
            self._console.error(str(e))
            return
        if not found:
            self._console.error("No agents found.")
