"""Logging helpers shared by the system log and the auth audit log.

Import from the submodule:
    from runners_client.utils.logging.jsonl import open_jsonl_logger
"""

__all__: list[str] = []
