from __future__ import annotations

import os
from dataclasses import dataclass

from .errors import CredentialResolutionError

DEFAULT_TOKEN_ENV = "A2A_CHAT_TOKEN"


@dataclass(frozen=True, slots=True)
class CredentialRef:
    kind: str
    identifier: str

    @staticmethod
    def parse(text: str) -> "CredentialRef":
        """
        Parse `env:NAME` or `inline:VALUE`.

        A bare value without a scheme is treated as an environment variable name.
        """

        raw = str(text or "").strip()
        if not raw:
            raise CredentialResolutionError("Empty credential reference.")
        kind, sep, ident = raw.partition(":")
        if not sep:
            return CredentialRef(kind="env", identifier=raw)
        return CredentialRef(kind=kind.strip().lower(), identifier=ident.strip())

    def to_redacted_string(self) -> str:
        if self.kind == "env":
            return f"env:{self.identifier}"
        return f"{self.kind}:***"


def resolve_credential(credential_ref: CredentialRef) -> str:
    if credential_ref.kind == "env":
        value = os.environ.get(credential_ref.identifier)
        if not value:
            raise CredentialResolutionError(
                f"Missing required environment variable '{credential_ref.identifier}'.",
                credential_ref=credential_ref.to_redacted_string(),
            )
        return value

    if credential_ref.kind in {"inline", "plaintext"}:
        if not credential_ref.identifier:
            raise CredentialResolutionError(
                "Missing inline credential value.",
                credential_ref=credential_ref.to_redacted_string(),
            )
        return credential_ref.identifier

    raise CredentialResolutionError(
        f"Unsupported credential_ref kind '{credential_ref.kind}'.",
        credential_ref=credential_ref.to_redacted_string(),
    )
