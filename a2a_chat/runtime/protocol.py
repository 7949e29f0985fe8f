from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Union

from .ids import new_id


# --- parts ---


@dataclass(frozen=True, slots=True)
class TextPart:
    text: str


@dataclass(frozen=True, slots=True)
class FilePart:
    """
    A file reference. Exactly one of `uri` / `data` is normally set.

    `data` is the base64 text as received; decoding happens at render time so a
    malformed payload only costs a diagnostic, never the whole artifact.
    """

    name: str | None = None
    uri: str | None = None
    data: str | None = None


@dataclass(frozen=True, slots=True)
class DataPart:
    type_tag: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UnknownPart:
    kind: str
    raw: dict[str, Any] = field(default_factory=dict)


Part = Union[TextPart, FilePart, DataPart, UnknownPart]


def part_from_dict(raw: dict[str, Any]) -> Part:
    kind = str(raw.get("type") or raw.get("kind") or "")
    if kind == "text":
        return TextPart(text=str(raw.get("text") or ""))
    if kind == "file":
        file_raw = raw.get("file")
        f = file_raw if isinstance(file_raw, dict) else {}
        return FilePart(
            name=_opt_str(f.get("name")),
            uri=_opt_str(f.get("uri")),
            data=_opt_str(f.get("bytes")),
        )
    if kind == "data":
        data_raw = raw.get("data")
        data = data_raw if isinstance(data_raw, dict) else {}
        meta_raw = raw.get("metadata")
        metadata = dict(meta_raw) if isinstance(meta_raw, dict) else {}
        return DataPart(type_tag=_opt_str(data.get("type")), metadata=metadata)
    return UnknownPart(kind=kind or "<missing>", raw=dict(raw))


def parts_from_list(raw: Any) -> list[Part]:
    """Decode a wire `parts` array. Entries that are not objects become `UnknownPart`s."""

    if not isinstance(raw, list):
        return []
    return [part_from_dict(item) if isinstance(item, dict) else UnknownPart(kind=type(item).__name__) for item in raw]


def part_text(parts: list[Part]) -> str:
    return "".join(p.text for p in parts if isinstance(p, TextPart))


# --- artifacts ---


@dataclass(frozen=True, slots=True)
class Artifact:
    parts: list[Part] = field(default_factory=list)
    # False starts a new visual line; absent on the wire means continuation.
    append: bool = True
    last_chunk: bool = False

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> "Artifact":
        return Artifact(
            parts=parts_from_list(raw.get("parts")),
            append=raw.get("append") is not False,
            last_chunk=raw.get("lastChunk") is True,
        )


# --- stream events ---


@dataclass(frozen=True, slots=True)
class StatusUpdate:
    message: str = ""
    final: bool = False


@dataclass(frozen=True, slots=True)
class ArtifactUpdate:
    artifact: Artifact
    # Distinct from StatusUpdate.final: an artifact stream may end without one.
    final: bool = False


@dataclass(frozen=True, slots=True)
class ErrorNotice:
    message: str
    code: int | None = None


@dataclass(frozen=True, slots=True)
class UnknownEvent:
    kind: str


StreamEvent = Union[StatusUpdate, ArtifactUpdate, ErrorNotice, UnknownEvent]


def event_from_dict(raw: dict[str, Any]) -> StreamEvent:
    """Decode one JSON-RPC streaming response object."""

    err = raw.get("error")
    if isinstance(err, dict):
        return ErrorNotice(message=str(err.get("message") or "Unknown error"), code=_opt_int(err.get("code")))

    result = raw.get("result")
    if not isinstance(result, dict):
        return UnknownEvent(kind=type(result).__name__ if result is not None else "empty")

    if isinstance(result.get("artifact"), dict):
        return ArtifactUpdate(artifact=Artifact.from_dict(result["artifact"]), final=result.get("final") is True)

    status = result.get("status")
    if isinstance(status, dict):
        return StatusUpdate(
            message=_status_text(status),
            final=result.get("final") is True,
        )

    kind = result.get("type") or result.get("kind") or "object"
    return UnknownEvent(kind=str(kind))


def _status_text(status: dict[str, Any]) -> str:
    msg = status.get("message")
    if not isinstance(msg, dict):
        return ""
    return part_text(parts_from_list(msg.get("parts")))


# --- non-streaming response ---


@dataclass(frozen=True, slots=True)
class RpcError:
    message: str
    code: int | None = None


@dataclass(frozen=True, slots=True)
class TaskResponse:
    error: RpcError | None = None
    artifacts: list[Artifact] = field(default_factory=list)

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> "TaskResponse":
        err = raw.get("error")
        if isinstance(err, dict):
            return TaskResponse(error=RpcError(message=str(err.get("message") or "Unknown error"), code=_opt_int(err.get("code"))))
        result = raw.get("result")
        artifacts: list[Artifact] = []
        if isinstance(result, dict) and isinstance(result.get("artifacts"), list):
            for item in result["artifacts"]:
                if isinstance(item, dict):
                    artifacts.append(Artifact.from_dict(item))
        return TaskResponse(artifacts=artifacts)


# --- request ---


@dataclass(frozen=True, slots=True)
class Attachment:
    name: str
    content: bytes


@dataclass(frozen=True, slots=True)
class TurnRequest:
    session_id: str
    prompt: str
    attachment: Attachment | None = None
    streaming: bool = False

    def __post_init__(self) -> None:
        if not self.prompt or not self.prompt.strip():
            raise ValueError("prompt must be a non-empty string.")
        if not self.session_id:
            raise ValueError("session_id must be a non-empty string.")

    def to_params(self, *, task_id: str | None = None) -> dict[str, Any]:
        parts: list[dict[str, Any]] = [{"type": "text", "text": self.prompt}]
        if self.attachment is not None:
            parts.append(
                {
                    "type": "file",
                    "file": {
                        "name": self.attachment.name,
                        "bytes": base64.b64encode(self.attachment.content).decode("ascii"),
                    },
                }
            )
        return {
            "id": task_id or new_id("task"),
            "sessionId": self.session_id,
            "message": {"role": "user", "parts": parts},
        }


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value)
    return s if s else None


def _opt_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None
