from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Callable

from . import __version__
from .runtime.client import HttpProtocolClient
from .runtime.config import ClientConfig, build_config, parse_bool
from .runtime.errors import ConfigError
from .runtime.session import SLASH_COMMANDS, SessionLoop
from .runtime.turn import TurnController
from .ui.console_ui import Console
from .ui.indicator import BusyIndicator
from .ui.render import ArtifactAssembler, PartRenderer

EXIT_OK = 0
EXIT_CONFIG_ERROR = 5
EXIT_INTERRUPTED = 130

_LOG = logging.getLogger("a2a_chat.cli")
_LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s %(message)s"


def _configure_text_io() -> None:
    """
    Best-effort I/O normalization for interactive terminals.

    Invalid byte sequences read from the terminal would otherwise survive as surrogate
    codepoints and crash when the prompt is encoded for the request body.
    """

    try:
        if hasattr(sys.stdin, "reconfigure"):
            sys.stdin.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="backslashreplace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="backslashreplace")
    except (OSError, ValueError):
        return


def _setup_logging(*, level: str, log_file: Path | None) -> None:
    root = logging.getLogger("a2a_chat")
    root.setLevel(logging.DEBUG if log_file is not None else getattr(logging, level, logging.WARNING))
    root.propagate = False
    root.handlers.clear()

    fmt = logging.Formatter(fmt=_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    sh = logging.StreamHandler(stream=sys.stderr)
    sh.setLevel(getattr(logging, level, logging.WARNING))
    sh.setFormatter(fmt)
    root.addHandler(sh)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), mode="a", encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)


def _optional_bool(value: str) -> bool:
    try:
        return parse_bool(value, field_name="--streaming")
    except ConfigError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="a2a-chat",
        description="Interactive terminal chat with a remote A2A agent.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--server", dest="server_url", default=None, help="Agent JSON-RPC endpoint URL.")
    # `--streaming` alone means true; `--streaming false` is accepted too.
    parser.add_argument(
        "--streaming",
        nargs="?",
        const=True,
        default=None,
        type=_optional_bool,
        help="Stream agent output as it is produced (default: off).",
    )
    parser.add_argument("--config", dest="config_path", type=Path, default=None, help="JSON config file.")
    parser.add_argument(
        "--credential",
        default=None,
        help="Bearer token reference: env:NAME or inline:VALUE (default: env A2A_CHAT_TOKEN if set).",
    )
    parser.add_argument("--timeout", dest="timeout_s", default=None, help="HTTP timeout in seconds (default: none).")
    parser.add_argument("--download-dir", dest="download_dir", default=None, help="Where received files are saved.")
    parser.add_argument("--registry-path", dest="registry_path", default=None, help="Registry path on the server.")
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default=None,
        help="Colorize output (default: auto).",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=None,
        help="stderr log level: DEBUG, INFO, WARNING, ERROR (default: WARNING).",
    )
    parser.add_argument("--log-file", dest="log_file", default=None, help="Also write DEBUG logs to this file.")
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, object]:
    return {
        "server_url": args.server_url,
        "streaming": args.streaming,
        "credential": args.credential,
        "timeout_s": args.timeout_s,
        "download_dir": args.download_dir,
        "registry_path": args.registry_path,
        "color": args.color,
        "log_level": args.log_level,
        "log_file": args.log_file,
    }


def _is_tty() -> bool:
    try:
        return bool(sys.stdin.isatty() and sys.stdout.isatty())
    except (AttributeError, ValueError):
        return False


def _should_use_prompt_toolkit() -> bool:
    # Let callers (and tests) force plain input mode.
    if str(os.environ.get("A2A_CHAT_PLAIN_INPUT") or "").strip().lower() in {"1", "true", "yes", "on"}:
        return False
    return _is_tty()


def _build_prompt() -> Callable[[str], str]:
    if not _should_use_prompt_toolkit():
        return input

    from prompt_toolkit import PromptSession
    from prompt_toolkit.completion import Completer, Completion
    from prompt_toolkit.history import InMemoryHistory

    class _SlashCompleter(Completer):
        def get_completions(self, document, complete_event):
            text = document.text_before_cursor
            if not text.startswith("/"):
                return
            for c in SLASH_COMMANDS:
                if c.startswith(text):
                    yield Completion(c, start_position=-len(text))

    session = PromptSession(completer=_SlashCompleter(), history=InMemoryHistory())

    def _prompt(text: str) -> str:
        return session.prompt(text)

    return _prompt


def _enable_color(mode: str) -> bool:
    if mode == "never":
        return False
    if mode == "always":
        return True
    return _is_tty()


def run_chat(cfg: ClientConfig, *, prompt: Callable[[str], str] | None = None, stream=None) -> int:
    console = Console(stream=stream if stream is not None else sys.stdout, enable_color=_enable_color(cfg.color))
    indicator = BusyIndicator(console)
    assembler = ArtifactAssembler(console, PartRenderer(console, download_dir=cfg.download_dir))

    with HttpProtocolClient(
        base_url=cfg.server_url,
        token=cfg.token,
        timeout_s=cfg.timeout_s,
        registry_path=cfg.registry_path,
    ) as client:
        controller = TurnController(client=client, console=console, indicator=indicator, assembler=assembler)
        loop = SessionLoop(
            controller=controller,
            client=client,
            console=console,
            streaming=cfg.streaming,
            prompt=prompt if prompt is not None else _build_prompt(),
        )
        console.println(console.color("A2A Protocol Chat", "1;34"))
        console.println_dim(f"Server: {cfg.server_url} (streaming: {'on' if cfg.streaming else 'off'})")
        console.println_dim(f"Session: {loop.context.session_id}")
        loop.print_menu()
        try:
            loop.run()
        finally:
            indicator.stop()
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    _configure_text_io()
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = build_config(overrides=_overrides(args), config_path=args.config_path)
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        _setup_logging(level=cfg.log_level, log_file=cfg.log_file)
    except OSError as e:
        print(f"Cannot open log file: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    _LOG.debug("config: %r", cfg)

    try:
        return run_chat(cfg)
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    raise SystemExit(main())
