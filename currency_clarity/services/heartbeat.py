"""
Keep-alive pinger.

Free-tier hosts put an idle instance to sleep. When enabled, this
service calls our own GET /api/heartbeat every `interval_minutes` so
the instance stays warm. A failed ping is logged and otherwise ignored:
the pinger must never take the application down with it.
"""

import asyncio
from typing import TYPE_CHECKING, Optional

import httpx
import structlog

from currency_clarity.config import HeartbeatSettings, get_settings

if TYPE_CHECKING:
    from currency_clarity.audit.logger import AuditLogger


logger = structlog.get_logger(__name__)


class HeartbeatService:
    """Periodic GET against the heartbeat endpoint, run as an asyncio task."""

    def __init__(
        self,
        settings: Optional[HeartbeatSettings] = None,
        audit_logger: Optional["AuditLogger"] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or get_settings().heartbeat
        self._audit_logger = audit_logger
        self._transport = transport
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval_seconds(self) -> int:
        return self._settings.interval_minutes * 60

    async def ping(self) -> bool:
        """
        Call the heartbeat endpoint once.

        Returns:
            True on a 2xx answer, False on any HTTP or network failure
        """
        url = self._settings.heartbeat_url
        error_message = None

        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            error_message = str(e) or e.__class__.__name__

        succeeded = error_message is None
        if succeeded:
            logger.info("heartbeat_ping", url=url)
        else:
            logger.warning("heartbeat_ping_failed", url=url, error=error_message)

        if self._audit_logger:
            await self._audit_logger.log_heartbeat(url, succeeded, error_message)

        return succeeded

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.ping()

    def start(self) -> bool:
        """
        Schedule the ping loop on the running event loop.

        Returns:
            False when disabled in settings or already running
        """
        if not self._settings.enabled:
            logger.info("heartbeat_disabled")
            return False
        if self.is_running:
            return False

        logger.info(
            "heartbeat_started",
            url=self._settings.heartbeat_url,
            interval_minutes=self._settings.interval_minutes,
        )
        self._task = asyncio.create_task(self._run())
        return True

    async def stop(self) -> None:
        """Cancel the ping loop and wait for it to finish."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("heartbeat_stopped")
