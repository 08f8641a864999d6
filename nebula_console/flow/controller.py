"""Step-by-step operator flow over one plan."""
from __future__ import annotations

import json
import logging
from typing import Any

from nebula_console.client.notifications import Notifier
from nebula_console.client.plan_client import PlanClient
from nebula_console.core.contracts.console import ActionOutcome, StepInput
from nebula_console.core.contracts.engine import ApiResponse
from nebula_console.core.contracts.plan import Agent, ExecutionStep, FlowView
from nebula_console.core.exceptions import EngineRequestError, OperatorInputError
from nebula_console.flow.render import render_flow
from nebula_console.flow.store import StepInputStore
from nebula_console.schema.addressing import StepRef, find_step

log = logging.getLogger("flow")


class FlowController:
    """Wizard over a flow's top-level steps plus the two execution actions.

    Navigation clamps and never raises. Actions return an ActionOutcome, raise
    nothing, surface their result as a notification and leave ``active_step``
    where it was.
    """

    def __init__(
        self,
        view: FlowView,
        client: PlanClient,
        store: StepInputStore | None = None,
        notifier: Notifier | None = None,
    ):
        self.view = view
        self.client = client
        self.store = store if store is not None else StepInputStore()
        self.notifier = notifier if notifier is not None else client.notifier
        self.active_step = 0
        self._config_drafts: dict[StepRef, str] = {}

    @property
    def plan_id(self) -> str:
        return self.view.plan_id

    @property
    def steps(self) -> list[ExecutionStep]:
        return list(self.view.execution_flow.steps)

    @property
    def current_step(self) -> ExecutionStep | None:
        steps = self.steps
        return steps[self.active_step] if steps else None

    @property
    def current_ref(self) -> StepRef | None:
        step = self.current_step
        return StepRef((), step.step_id) if step is not None else None

    # -- navigation --------------------------------------------------------

    def advance(self) -> int:
        if self.active_step < len(self.steps) - 1:
            self.active_step += 1
        return self.active_step

    def retreat(self) -> int:
        if self.active_step > 0:
            self.active_step -= 1
        return self.active_step

    def go_to(self, index: int) -> int:
        self.active_step = max(0, min(index, len(self.steps) - 1))
        return self.active_step

    # -- lookup ------------------------------------------------------------

    def step(self, ref: StepRef | str) -> ExecutionStep | None:
        return find_step(self.view.execution_flow, ref)

    def agent_for(self, step: ExecutionStep) -> Agent | None:
        """Agent metadata for display. None for agent-less steps and unresolved ids."""
        if not step.agent_id:
            return None
        return self.view.get_agent(step.agent_id)

    # -- operator input ----------------------------------------------------

    def resolve_input(self, ref: StepRef | str) -> StepInput:
        """Stored input, falling back to the step's declared instruction and, until configuration is edited, its parameters."""
        ref = StepRef.coerce(ref)
        stored = self.store.get(ref)
        step = self.step(ref)
        if step is None:
            return stored
        update: dict[str, Any] = {}
        if not stored.instruction and step.instruction:
            update["instruction"] = step.instruction
        if not self.store.edited(ref, "configuration") and step.parameters:
            update["configuration"] = dict(step.parameters)
        return stored.model_copy(update=update) if update else stored

    def can_execute(self, ref: StepRef | str) -> bool:
        return bool(self.resolve_input(ref).instruction.strip())

    def edit(self, ref: StepRef | str, field: str, value: Any) -> StepInput:
        """Record one field of operator input. A rejected edit is notified and leaves the input unchanged."""
        try:
            return self.store.set(ref, field, value)
        except OperatorInputError as e:
            self.notifier.warning(str(e))
            return self.store.get(ref)

    def edit_configuration(self, ref: StepRef | str, text: str) -> bool:
        """Apply configuration JSON typed by the operator.

        Malformed text is kept as a draft and the last valid configuration stays
        in effect until the text parses to an object.
        """
        ref = StepRef.coerce(ref)
        self._config_drafts[ref] = text
        try:
            config = json.loads(text)
        except json.JSONDecodeError:
            return False
        if not isinstance(config, dict):
            return False
        self.store.set(ref, "configuration", config)
        del self._config_drafts[ref]
        return True

    def configuration_draft(self, ref: StepRef | str) -> str | None:
        return self._config_drafts.get(StepRef.coerce(ref))

    # -- actions -----------------------------------------------------------

    async def execute_step(self, ref: StepRef | str | None = None) -> ActionOutcome:
        """Send the resolved input of one step (the active one by default) to the engine."""
        ref = StepRef.coerce(ref) if ref is not None else self.current_ref
        action = f"execute step {ref}"
        step = self.step(ref) if ref is not None else None
        if step is None:
            return self._blocked(action, OperatorInputError(f"No step {ref} in plan {self.plan_id}"))
        step_input = self.resolve_input(ref)
        if not step_input.instruction.strip():
            return self._blocked(action, OperatorInputError(f"Step {ref} needs an instruction before it can be executed"))
        log.info("EXECUTE step %s of %s", ref, self.plan_id)
        try:
            resp = await self.client.execute_step(self.plan_id, ref, step_input)
        except EngineRequestError as e:
            # the client has already notified the operator
            return ActionOutcome(action=action, ok=False, message=e.message, error=type(e).__name__)
        return self._acknowledge(action, resp, f"Step {step.name or ref} submitted for execution")

    async def execute_flow(self) -> ActionOutcome:
        """Ask the engine to run the whole plan. Missing step inputs are the engine's concern."""
        action = f"execute flow {self.plan_id}"
        log.info("EXECUTE flow %s", self.plan_id)
        try:
            resp = await self.client.execute_flow(self.plan_id)
        except EngineRequestError as e:
            return ActionOutcome(action=action, ok=False, message=e.message, error=type(e).__name__)
        return self._acknowledge(action, resp, f"Execution of {self.view.plan_name} started")

    def render(self) -> str:
        return render_flow(self)

    def _blocked(self, action: str, error: OperatorInputError) -> ActionOutcome:
        self.notifier.warning(str(error))
        return ActionOutcome(action=action, ok=False, message=str(error), error=type(error).__name__)

    def _acknowledge(self, action: str, resp: ApiResponse, default_message: str) -> ActionOutcome:
        if resp.success:
            message = resp.message or default_message
            self.notifier.success(message)
            return ActionOutcome(action=action, ok=True, message=message)
        message = resp.message or resp.error or "The engine rejected the request"
        self.notifier.error(message)
        return ActionOutcome(action=action, ok=False, message=message, error="Rejected")
