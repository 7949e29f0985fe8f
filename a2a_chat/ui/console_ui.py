from __future__ import annotations

import shutil
import sys
import threading
import unicodedata

_CLEAR_LINE = "\r\x1b[2K\r"


class Console:
    """
    Line-mode output sink shared by the turn controller and the busy indicator.

    - Every write goes through one lock, so indicator repaints never split a chunk of output.
    - Tracks whether the cursor sits at the start of a line.
    - Owns at most one transient status line, painted in place and erased before real output.
    """

    def __init__(self, *, stream=None, enable_color: bool = True, ansi: bool | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        if ansi is None:
            ansi = bool(getattr(self._stream, "isatty", lambda: False)())
        # `_ansi` gates in-place status painting; color is controlled separately.
        self._ansi = ansi
        self._enable_color = bool(enable_color)
        self._io_lock = threading.RLock()
        self._at_line_start = True
        self._status_painted = False

    @property
    def ansi(self) -> bool:
        return self._ansi

    @property
    def at_line_start(self) -> bool:
        with self._io_lock:
            return self._at_line_start

    # --- content ---
    def write(self, s: str) -> None:
        if not s:
            return
        with self._io_lock:
            self._erase_status_locked()
            self._stream.write(s)
            self._flush_locked()
            self._at_line_start = s.endswith("\n")

    def newline(self) -> None:
        self.write("\n")

    def ensure_newline(self) -> None:
        with self._io_lock:
            if not self._at_line_start:
                self.write("\n")

    def println(self, s: str = "") -> None:
        self.write(s + "\n")

    def println_dim(self, s: str) -> None:
        self.println(self.color(s, "2"))

    def println_red(self, s: str) -> None:
        self.println(self.color(s, "31"))

    def println_yellow(self, s: str) -> None:
        self.println(self.color(s, "33"))

    def println_green(self, s: str) -> None:
        self.println(self.color(s, "32"))

    def error(self, message: str) -> None:
        with self._io_lock:
            self.ensure_newline()
            self.println_red(f"[error] {message}")

    def warn(self, message: str) -> None:
        with self._io_lock:
            self.ensure_newline()
            self.println_yellow(f"[warn] {message}")

    def info(self, message: str) -> None:
        with self._io_lock:
            self.ensure_newline()
            self.println_dim(message)

    def color(self, s: str, code: str) -> str:
        if not self._enable_color:
            return s
        return f"\x1b[{code}m{s}\x1b[0m"

    # --- transient status line ---
    def paint_status(self, line: str) -> bool:
        """
        Paint `line` over the current status line. Returns False when nothing was painted.

        Skipped on non-TTY streams and while the cursor is mid-line, where clearing the
        line would wipe real output.
        """

        if not self._ansi:
            return False
        with self._io_lock:
            if not self._at_line_start:
                return False
            cols = shutil.get_terminal_size((80, 20)).columns
            line = truncate_to_width(line, max(20, int(cols) - 1))
            self._stream.write(_CLEAR_LINE + line)
            self._flush_locked()
            self._status_painted = True
            return True

    def clear_status(self) -> None:
        with self._io_lock:
            self._erase_status_locked()

    def _erase_status_locked(self) -> None:
        if not self._status_painted:
            return
        self._stream.write(_CLEAR_LINE)
        self._status_painted = False

    def _flush_locked(self) -> None:
        flush = getattr(self._stream, "flush", None)
        if callable(flush):
            flush()


def display_width(s: str) -> int:
    w = 0
    for ch in s:
        if unicodedata.combining(ch):
            continue
        eaw = unicodedata.east_asian_width(ch)
        w += 2 if eaw in {"W", "F"} else 1
    return w


def truncate_to_width(s: str, width: int) -> str:
    if width <= 0:
        return ""
    if display_width(s) <= width:
        return s
    out: list[str] = []
    used = 0
    for ch in s:
        if unicodedata.combining(ch):
            out.append(ch)
            continue
        eaw = unicodedata.east_asian_width(ch)
        cw = 2 if eaw in {"W", "F"} else 1
        if used + cw > width:
            break
        out.append(ch)
        used += cw
    return "".join(out)
