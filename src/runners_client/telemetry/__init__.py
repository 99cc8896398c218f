"""Telemetry domain: system operational logs and the auth audit trail.

Structure:
    system/         System operational logs (stderr + system.jsonl)
    audit/          Auth audit logging (auth.jsonl)
                    - AuthLogger: records logout events and token changes
"""

__all__: list[str] = []
