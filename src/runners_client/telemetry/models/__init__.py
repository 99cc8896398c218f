"""Pydantic models for telemetry records."""

from runners_client.telemetry.models.audit import AuthAuditRecord

__all__ = [
    "AuthAuditRecord",
]
