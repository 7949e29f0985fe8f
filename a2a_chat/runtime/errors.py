from __future__ import annotations

import threading
from enum import StrEnum
from typing import Any

import httpx


class ConfigError(ValueError):
    pass


class CredentialResolutionError(RuntimeError):
    def __init__(self, message: str, *, credential_ref: str | None = None) -> None:
        super().__init__(message)
        self.credential_ref = credential_ref


class ErrorCode(StrEnum):
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    AUTH = "auth"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    BAD_REQUEST = "bad_request"
    PROTOCOL = "protocol"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ProtocolClientError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        status_code: int | None = None,
        retryable: bool | None = None,
        details: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code
        self.retryable = retryable
        self.details = details
        self.__cause__ = cause


def is_retryable_error_code(code: ErrorCode) -> bool:
    return code in {
        ErrorCode.TIMEOUT,
        ErrorCode.RATE_LIMIT,
        ErrorCode.SERVER_ERROR,
        ErrorCode.NETWORK_ERROR,
    }


def _code_for_status(status_code: int) -> ErrorCode:
    if status_code == 400:
        return ErrorCode.BAD_REQUEST
    if status_code == 401:
        return ErrorCode.AUTH
    if status_code == 403:
        return ErrorCode.PERMISSION
    if status_code == 404:
        return ErrorCode.NOT_FOUND
    if status_code == 429:
        return ErrorCode.RATE_LIMIT
    if 500 <= status_code <= 599:
        return ErrorCode.SERVER_ERROR
    return ErrorCode.UNKNOWN


def wrap_httpx_exception(exc: BaseException, *, operation: str) -> ProtocolClientError:
    status_code: int | None = None
    body_snippet: str | None = None
    if isinstance(exc, httpx.TimeoutException):
        code = ErrorCode.TIMEOUT
    elif isinstance(exc, httpx.NetworkError):
        code = ErrorCode.NETWORK_ERROR
    elif isinstance(exc, httpx.HTTPStatusError):
        status_code = int(exc.response.status_code)
        code = _code_for_status(status_code)
        try:
            text = exc.response.text
            if isinstance(text, str) and text.strip():
                body_snippet = text.strip()[:2000]
        except httpx.ResponseNotRead:
            # Streamed responses raise before the body was consumed.
            body_snippet = None
    else:
        code = ErrorCode.UNKNOWN

    message = str(exc) or exc.__class__.__name__
    if body_snippet:
        message = f"{message}\n\nServer response (truncated):\n{body_snippet}"
    return ProtocolClientError(
        message,
        code=code,
        status_code=status_code,
        retryable=is_retryable_error_code(code),
        details={"operation": operation},
        cause=exc,
    )
