"""Watcher that picks up token changes made by other processes.

Several processes (a CLI and a long-running client, or two clients) can share
one secret storage. The sync service periodically re-reads the persisted
access token and hands differences to TokenStore.apply_persisted(), which
notifies subscribers and reports a removed token as a remote logout.

Usage:
    sync = TokenSyncService(store, interval_seconds=5.0)
    await sync.start()
    ...
    await sync.stop()
"""

from __future__ import annotations

__all__ = [
    "TokenSyncService",
]

import asyncio

from runners_client.auth.token_store import TokenStore
from runners_client.constants import DEFAULT_SYNC_INTERVAL_SECONDS
from runners_client.telemetry.system.system_logger import get_system_logger


class TokenSyncService:
    """Polls secret storage and applies external token changes."""

    def __init__(
        self,
        store: TokenStore,
        interval_seconds: float = DEFAULT_SYNC_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._store = store
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start polling. Calling start() on a running service is a no-op."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._watch())

    async def stop(self) -> None:
        """Cancel the polling task and wait for it to finish."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def check_now(self) -> bool:
        """Re-read storage once.

        Only the storage read runs on a worker thread. The result is applied
        on the event loop, so token listeners and bus listeners always run on
        the loop thread.

        Returns:
            True if an external change was applied.
        """
        expected = self._store.get()
        persisted = await asyncio.to_thread(self._store.read_persisted)
        return self._store.apply_persisted(persisted, expected=expected)

    async def _watch(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                changed = await self.check_now()
            except Exception as e:
                get_system_logger().error(
                    {
                        "event": "token_sync_failed",
                        "message": f"Token sync check failed: {e}",
                        "error_type": type(e).__name__,
                        "error_message": str(e),
                    }
                )
                continue
            if changed:
                get_system_logger().info(
                    {
                        "event": "external_token_change",
                        "message": "Applied token change from shared storage",
                    }
                )
