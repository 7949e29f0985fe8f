from __future__ import annotations

import logging
from pathlib import Path

from ..runtime.downloads import DownloadError, save_inline_file
from ..runtime.protocol import ArtifactUpdate, DataPart, FilePart, Part, TextPart, UnknownPart
from .console_ui import Console

_LOG = logging.getLogger("a2a_chat.render")


class PartRenderer:
    def __init__(self, console: Console, *, download_dir: Path) -> None:
        self._console = console
        self._download_dir = Path(download_dir)

    def render(self, part: Part) -> None:
        if isinstance(part, TextPart):
            # Text chunks concatenate into continuous prose; no line break of our own.
            self._console.write(part.text)
        elif isinstance(part, FilePart):
            self._render_file(part)
        elif isinstance(part, DataPart):
            self._render_data(part)
        elif isinstance(part, UnknownPart):
            self._console.error(f"Unknown part type: {part.kind}")
        else:
            self._console.error(f"Unknown part type: {type(part).__name__}")

    def _render_file(self, part: FilePart) -> None:
        c = self._console
        c.ensure_newline()
        c.println_green(f"File: {part.name or '(unnamed)'}")
        if part.uri:
            c.println_green(f"URI: {part.uri}")
            return
        if part.data is None:
            return
        try:
            path = save_inline_file(name=part.name, data=part.data, directory=self._download_dir)
        except DownloadError as e:
            _LOG.warning("could not save file part %r: %s", part.name, e)
            c.error(f"Could not save {part.name or 'file'}: {e}")
            return
        c.println_green(f"Downloaded to: {path}")

    def _render_data(self, part: DataPart) -> None:
        c = self._console
        c.ensure_newline()
        c.println_green(f"Data: {part.type_tag or 'unknown'}")
        for key, value in part.metadata.items():
            c.println_green(f"{key}: {value}")


class ArtifactAssembler:
    """
    Applies chunk boundaries for one turn's artifact stream.

    `append=False` starts a new line (except for the turn's first artifact);
    `last_chunk=True` closes the artifact with exactly one line break.
    """

    def __init__(self, console: Console, parts: PartRenderer) -> None:
        self._console = console
        self._parts = parts

    def render(self, update: ArtifactUpdate, *, is_first: bool) -> None:
        artifact = update.artifact
        if not artifact.append and not is_first:
            self._console.newline()
        for part in artifact.parts:
            self._parts.render(part)
        if artifact.last_chunk:
            self._console.newline()
