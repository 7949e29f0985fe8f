from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Iterator, Protocol

import httpx
from pydantic import ValidationError

from .errors import CancellationToken, ErrorCode, ProtocolClientError, wrap_httpx_exception
from .ids import new_id
from .models import AgentCard
from .protocol import StreamEvent, TaskResponse, TurnRequest, event_from_dict

_LOG = logging.getLogger("a2a_chat.client")

AGENT_CARD_PATH = "/.well-known/agent.json"


class ProtocolClient(Protocol):
    def send_streaming(self, request: TurnRequest, cancel: CancellationToken | None = None) -> Iterator[StreamEvent]: ...

    def send_once(self, request: TurnRequest) -> TaskResponse: ...

    def fetch_agent_card(self) -> AgentCard | None: ...

    def fetch_registry(self) -> Iterator[AgentCard]: ...


class HttpProtocolClient:
    """
    JSON-RPC over HTTP transport for the A2A task protocol.

    - `tasks/send` for single request/response turns.
    - `tasks/sendSubscribe` for turns streamed back as server-sent events.
    """

    def __init__(
        self,
        *,
        base_url: str,
        token: str | None = None,
        timeout_s: float | None = None,
        registry_path: str = "/agents",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._endpoint = httpx.URL(base_url)
        self._registry_path = registry_path
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        timeout = None if timeout_s is None else httpx.Timeout(float(timeout_s), read=float(timeout_s))
        self._http = httpx.Client(headers=headers, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "HttpProtocolClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # --- turns ---
    def send_streaming(self, request: TurnRequest, cancel: CancellationToken | None = None) -> Iterator[StreamEvent]:
        if cancel is not None and cancel.cancelled:
            return
        payload = _rpc_payload("tasks/sendSubscribe", request)
        try:
            with self._http.stream(
                "POST",
                self._endpoint,
                json=payload,
                headers={"Accept": "text/event-stream"},
            ) as resp:
                if resp.is_error:
                    resp.read()
                resp.raise_for_status()
                for raw in _iter_sse_json(resp.iter_lines()):
                    if cancel is not None and cancel.cancelled:
                        _LOG.debug("stream cancelled; closing response")
                        break
                    yield event_from_dict(raw)
        except httpx.HTTPError as e:
            _LOG.warning("streaming request failed: %s", e)
            raise wrap_httpx_exception(e, operation="stream") from e

    def send_once(self, request: TurnRequest) -> TaskResponse:
        payload = _rpc_payload("tasks/send", request)
        try:
            resp = self._http.post(self._endpoint, json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            _LOG.warning("request failed: %s", e)
            raise wrap_httpx_exception(e, operation="send") from e
        return TaskResponse.from_dict(_json_object(resp, operation="send"))

    # --- descriptors ---
    def fetch_agent_card(self) -> AgentCard | None:
        resp = self._get(self._endpoint.join(AGENT_CARD_PATH), operation="agent_card")
        if resp is None:
            return None
        return _validate_card(_json_object(resp, operation="agent_card"), operation="agent_card")

    def fetch_registry(self) -> Iterator[AgentCard]:
        resp = self._get(self._endpoint.join(self._registry_path), operation="registry")
        if resp is None:
            return
        try:
            body = resp.json()
        except ValueError as e:
            raise _protocol_error("Registry response is not JSON.", operation="registry", cause=e) from e
        items = body.get("agents") if isinstance(body, dict) else body
        if not isinstance(items, list):
            raise _protocol_error("Registry response must be a list of agent cards.", operation="registry")
        for item in items:
            if isinstance(item, dict):
                yield _validate_card(item, operation="registry")

    def _get(self, url: httpx.URL, *, operation: str) -> httpx.Response | None:
        try:
            resp = self._http.get(url)
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise wrap_httpx_exception(e, operation=operation) from e
        return resp


def _rpc_payload(method: str, request: TurnRequest) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": new_id("req"),
        "method": method,
        "params": request.to_params(),
    }


def _json_object(resp: httpx.Response, *, operation: str) -> dict[str, Any]:
    try:
        body = resp.json()
    except ValueError as e:
        raise _protocol_error("Response is not JSON.", operation=operation, cause=e) from e
    if not isinstance(body, dict):
        raise _protocol_error("Response must be a JSON object.", operation=operation)
    return body


def _validate_card(raw: dict[str, Any], *, operation: str) -> AgentCard:
    try:
        return AgentCard.model_validate(raw)
    except ValidationError as e:
        raise _protocol_error(f"Invalid agent card: {e}", operation=operation, cause=e) from e


def _protocol_error(message: str, *, operation: str, cause: BaseException | None = None) -> ProtocolClientError:
    return ProtocolClientError(
        message,
        code=ErrorCode.PROTOCOL,
        retryable=False,
        details={"operation": operation},
        cause=cause,
    )


def _iter_sse_json(lines: Iterable[str]) -> Iterator[dict[str, Any]]:
    """
    Yield JSON objects from an SSE-ish body.

    Supports:
    - standard SSE framing: `data: {...}` separated by blank lines
    - newline-delimited JSON objects (some gateways omit SSE framing)
    """
    buf: list[str] = []

    def _flush() -> dict[str, Any] | None:
        if not buf:
            return None
        raw = "\n".join(buf).strip()
        buf.clear()
        if not raw or raw == "[DONE]":
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            _LOG.warning("skipping malformed event payload: %.200s", raw)
            return None
        return data if isinstance(data, dict) else None

    for line in lines:
        if line is None:
            continue
        s = line.strip()
        if not s:
            data = _flush()
            if data is not None:
                yield data
            continue
        if s.startswith(":"):
            continue
        if s.startswith("data:"):
            buf.append(s[len("data:") :].lstrip())
            continue
        if s.startswith("event:") or s.startswith("id:") or s.startswith("retry:"):
            continue
        # Non-SSE mode: try parse immediately.
        if not buf and s.startswith("{"):
            try:
                loaded = json.loads(s)
            except json.JSONDecodeError:
                buf.append(s)
                continue
            if isinstance(loaded, dict):
                yield loaded
            continue
        buf.append(s)

    data = _flush()
    if data is not None:
        yield data
