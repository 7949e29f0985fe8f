from __future__ import annotations

import time
import uuid


def new_id(prefix: str) -> str:
    ts = time.time_ns()
    rand = uuid.uuid4().hex
    return f"{prefix}_{ts:016x}_{rand}"


def new_session_id() -> str:
    """
    Opaque conversation scope id.

    Servers only compare it for equality, so a bare uuid4 hex is enough.
    """

    return uuid.uuid4().hex
