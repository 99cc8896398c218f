"""Audit record models for the auth trail (audit/auth.jsonl)."""

from __future__ import annotations

__all__ = [
    "AuthAuditRecord",
]

from typing import Literal

from pydantic import BaseModel, Field


class AuthAuditRecord(BaseModel):
    """One auth audit log entry.

    Token values never appear here; `token_fingerprint` is a SHA-256 prefix.

    'time' stays None here; JsonlFormatter stamps each line when it is written.
    """

    time: str | None = Field(
        None,
        description="ISO 8601 timestamp, added by formatter during serialization",
    )

    event_type: Literal[
        "token_stored",
        "token_cleared",
        "logged_out",
    ]
    status: Literal["Success", "Failure"] = "Success"
    message: str | None = None

    # logged_out only
    reason: str | None = None

    # token_stored only
    token_origin: str | None = None
    token_fingerprint: str | None = None

    model_config = {"extra": "forbid"}
