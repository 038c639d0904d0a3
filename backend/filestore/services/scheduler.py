"""APScheduler job re-publishing registry snapshots on outside changes.

Writes made through this process publish immediately. Writes from other
processes sharing the database (extra uvicorn workers, manual edits) are
only noticed by polling.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler

if TYPE_CHECKING:
    from filestore.services.registry import SqlFileRegistry

logger = logging.getLogger(__name__)


class RegistryPoller:
    """Periodically diffs the registry and publishes when it changed."""

    def __init__(self, registry: SqlFileRegistry, interval_seconds: int):
        self._registry = registry
        self._interval = interval_seconds
        self._scheduler = AsyncIOScheduler(
            job_defaults={"coalesce": True, "max_instances": 1}
        )

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> None:
        self._scheduler.add_job(
            self.poll,
            "interval",
            seconds=self._interval,
            id="poll_registry",
            name="Publish outside registry changes",
        )
        self._scheduler.start()
        logger.info("Registry poller started — every %ds", self._interval)

    async def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Registry poller stopped")

    async def poll(self) -> None:
        # Query failures are routed to subscribers' error callbacks by publish()
        if await self._registry.publish(only_if_changed=True):
            logger.debug("Registry changed outside this process — snapshot published")
