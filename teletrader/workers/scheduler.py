from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from teletrader.core.container import ServiceHub

logger = logging.getLogger(__name__)


class WorkerScheduler:
    def __init__(self, hub: ServiceHub) -> None:
        self.hub = hub
        self.settings = hub.settings
        self.scheduler = AsyncIOScheduler(timezone="UTC")

    async def _keepalive(self) -> None:
        # Deriv drops sockets that stay idle for two minutes. A dropped socket
        # is reopened and re-authorized on the next tick.
        deriv = self.hub.deriv
        try:
            if deriv.connected:
                await deriv.ping()
            else:
                await deriv.reconnect()
        except Exception as exc:  # noqa: BLE001
            logger.warning("deriv_keepalive_failed", extra={"event": "deriv_keepalive_failed", "error": str(exc)})

    def start(self) -> None:
        self.scheduler.add_job(
            self._keepalive,
            "interval",
            seconds=max(5, int(self.settings.keepalive_interval_sec)),
            max_instances=1,
        )
        self.scheduler.start()

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
