from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path

_LOG = logging.getLogger("a2a_chat.downloads")

DEFAULT_FILE_NAME = "download.bin"


class DownloadError(RuntimeError):
    pass


def safe_file_name(name: str | None) -> str:
    # Agents control the name; never let it escape the download directory.
    base = Path(str(name or "").replace("\\", "/")).name.strip()
    if base in {"", ".", ".."}:
        return DEFAULT_FILE_NAME
    return base


def save_inline_file(*, name: str | None, data: str, directory: Path) -> Path:
    """Decode a base64 file payload and write it under `directory`, named after the source file."""

    try:
        content = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DownloadError(f"invalid base64 content: {e}") from e

    target = Path(directory) / safe_file_name(name)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    except OSError as e:
        raise DownloadError(f"cannot write {target}: {e}") from e
    _LOG.info("saved %d bytes to %s", len(content), target)
    return target
