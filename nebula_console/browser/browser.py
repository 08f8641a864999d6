"""Lists plans and hands the selected plan's flow to a FlowController."""
from __future__ import annotations

import logging

from nebula_console.client.plan_client import PlanClient
from nebula_console.core.contracts.plan import ExecutionPlan
from nebula_console.core.exceptions import EngineRequestError, ValidationError
from nebula_console.flow.controller import FlowController
from nebula_console.flow.store import StepInputStore

log = logging.getLogger("browser")


class PlanBrowser:
    """Owns the selected plan for as long as it is selected.

    Each selection bumps a generation counter; a flow response that arrives
    after a newer selection is discarded. Step inputs are scoped to the plan:
    selecting another plan starts from an empty store.
    """

    def __init__(self, client: PlanClient):
        self.client = client
        self.notifier = client.notifier
        self.plans: list[ExecutionPlan] = []
        self.selected_plan_id: str | None = None
        self.controller: FlowController | None = None
        self.error: str | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    async def refresh(self) -> list[ExecutionPlan]:
        """Reload the plan list. On failure the previous list is kept."""
        try:
            self.plans = await self.client.list_plans()
        except EngineRequestError as e:
            log.warning("plan list refresh failed: %s", e)
            self.error = e.message
            return self.plans
        log.info("PLANS: %s available", len(self.plans))
        return self.plans

    async def select(self, plan_id: str) -> FlowController | None:
        """Fetch, validate and open a plan. Returns None on failure or when superseded."""
        self._generation += 1
        generation = self._generation
        self.selected_plan_id = plan_id
        self._drop_controller()
        self.error = None
        log.info("SELECT %s (generation %s)", plan_id, generation)

        try:
            view = await self.client.get_flow(plan_id)
        except ValidationError as e:
            if self._is_stale(generation, plan_id):
                return None
            self.error = str(e)
            self.notifier.error(f"Plan {plan_id} cannot be displayed: {'; '.join(e.errors[:3])}")
            return None
        except EngineRequestError as e:
            if self._is_stale(generation, plan_id):
                return None
            self.error = e.message
            return None

        if self._is_stale(generation, plan_id):
            return None
        self.controller = FlowController(view, self.client, store=StepInputStore(), notifier=self.notifier)
        return self.controller

    def close(self) -> None:
        self._generation += 1
        self.selected_plan_id = None
        self._drop_controller()

    def _drop_controller(self) -> None:
        if self.controller is not None:
            self.controller.store.clear()
        self.controller = None

    def _is_stale(self, generation: int, plan_id: str) -> bool:
        if generation != self._generation:
            log.info("discarding stale flow response for %s (generation %s, now %s)", plan_id, generation, self._generation)
            return True
        return False
