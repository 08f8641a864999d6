"""Independent polling loops for execution monitoring."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from nebula_console.client.plan_client import PlanClient
from nebula_console.core.config.models import PollingConfig
from nebula_console.core.contracts.status import ExecutionPlanStatus
from nebula_console.core.exceptions import EngineRequestError, Unauthorized

log = logging.getLogger("monitor")


class Poller:
    """Calls ``fetch`` every ``interval`` seconds and hands each result to ``on_result``.

    A failed poll is logged and the loop carries on; the client has already
    notified the operator. ``on_result`` returning True stops the loop, and so
    does a rejected credential.
    """

    def __init__(
        self,
        name: str,
        fetch: Callable[[], Awaitable[Any]],
        interval: float,
        on_result: Callable[[Any], bool | None],
    ):
        self.name = name
        self.fetch = fetch
        self.interval = interval
        self.on_result = on_result
        self.polls = 0
        self.failures = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._loop(), name=f"poll:{self.name}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def wait(self) -> None:
        if self._task is not None:
            await self._task

    async def _loop(self) -> None:
        while True:
            self.polls += 1
            try:
                result = await self.fetch()
            except Unauthorized:
                # the credential is gone; polling resumes only when restarted after login
                self.failures += 1
                log.warning("%s polling stopped: credential rejected", self.name)
                return
            except EngineRequestError as e:
                self.failures += 1
                log.warning("%s poll failed: %s", self.name, e)
            else:
                if self.on_result(result):
                    log.info("%s polling finished", self.name)
                    return
            await asyncio.sleep(self.interval)


class ExecutionMonitor:
    """Holds the latest polled snapshots. Each loop is independent and shares no state with the others."""

    def __init__(self, client: PlanClient, polling: PollingConfig | None = None):
        self.client = client
        self.polling = polling or client.config.polling
        self.active_executions: list[ExecutionPlanStatus] = []
        self.dashboard_stats = None
        self.plan_statuses: dict[str, ExecutionPlanStatus] = {}
        self.pollers: dict[str, Poller] = {}

    def start_dashboard(self) -> None:
        self._start(Poller("active-executions", self.client.active_executions, self.polling.active_executions, self._set_active))
        self._start(Poller("dashboard-stats", self.client.dashboard_stats, self.polling.dashboard_stats, self._set_stats))

    def watch_plan(
        self,
        plan_id: str,
        on_status: Callable[[ExecutionPlanStatus], None] | None = None,
    ) -> Poller:
        """Poll one plan's status until it reaches a terminal state."""

        def handle(status: ExecutionPlanStatus) -> bool:
            self.plan_statuses[plan_id] = status
            if on_status is not None:
                on_status(status)
            return status.is_terminal

        poller = Poller(f"status:{plan_id}", lambda: self.client.poll_status(plan_id), self.polling.plan_status, handle)
        return self._start(poller)

    async def stop(self) -> None:
        for poller in list(self.pollers.values()):
            await poller.stop()
        self.pollers.clear()

    def _start(self, poller: Poller) -> Poller:
        existing = self.pollers.get(poller.name)
        if existing is not None and existing.running:
            return existing
        self.pollers[poller.name] = poller
        poller.start()
        return poller

    def _set_active(self, statuses: list[ExecutionPlanStatus]) -> None:
        self.active_executions = statuses

    def _set_stats(self, stats: Any) -> None:
        self.dashboard_stats = stats
