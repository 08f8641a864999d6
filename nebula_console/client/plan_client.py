"""HTTP boundary with the execution engine (master agent + plan API)."""
from __future__ import annotations

import logging
import time
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
import pydantic

from nebula_console.client.notifications import Notifier
from nebula_console.client.session import Session
from nebula_console.core.config.models import ConsoleConfig
from nebula_console.core.contracts.engine import (
    ApiResponse,
    ApprovalRequest,
    DashboardStats,
    ProcessPromptRequest,
    ProcessPromptResponse,
)
from nebula_console.core.contracts.console import StepInput
from nebula_console.core.contracts.plan import Agent, ExecutionPlan, FlowView
from nebula_console.core.contracts.status import ExecutionPlanStatus
from nebula_console.core.exceptions import (
    EngineRequestError,
    NetworkError,
    NotFound,
    ServerError,
    Unauthorized,
    ValidationError,
)
from nebula_console.schema.addressing import StepRef
from nebula_console.schema.validation import parse_flow, parse_plan

log = logging.getLogger("plan_client")

SERVER_ERROR_MESSAGE = "Server error occurred. Please try again later."
GENERIC_ERROR_MESSAGE = "An unexpected error occurred."

M = TypeVar("M", bound=pydantic.BaseModel)


def _seg(value: str) -> str:
    return quote(value, safe="")


def _body_message(r: httpx.Response) -> str | None:
    try:
        body = r.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"].strip():
        return body["message"]
    return None


class PlanClient:
    """Translates console intents into engine requests.

    Every request carries the session's bearer token. Failures are reported
    once, here, following a fixed priority: 401 clears the credential, 5xx is a
    generic server error, a structured ``message`` is shown verbatim, anything
    else is a generic error. The typed exception is then raised to the caller.
    """

    def __init__(
        self,
        config: ConsoleConfig,
        session: Session | None = None,
        notifier: Notifier | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.session = session if session is not None else Session(config.auth_token)
        self.notifier = notifier if notifier is not None else Notifier()
        self._transport = transport

    # -- plans -------------------------------------------------------------

    async def list_plans(self) -> list[ExecutionPlan]:
        data = await self._request("GET", "/execution-plans")
        plans = []
        for raw in data or []:
            try:
                plans.append(parse_plan(raw))
            except ValidationError as e:
                plan_id = raw.get("planId") if isinstance(raw, dict) else None
                log.warning("skipping invalid plan %s: %s", plan_id or "?", e)
        return plans

    async def get_flow(self, plan_id: str) -> FlowView:
        """Fetch one plan's flow. Raises NotFound if the plan is gone, ValidationError if malformed."""
        data = await self._request("GET", self.config.flow_path(_seg(plan_id)))
        if data is None:
            raise NotFound(f"Plan {plan_id} not found", 404)
        return parse_flow(data)

    async def execute_step(self, plan_id: str, step: StepRef | str, step_input: StepInput) -> ApiResponse:
        """Forward one step's input to the engine.

        Provisional: the engine only acknowledges the request; whether it can
        run a single step in isolation is not confirmed.
        """
        ref = StepRef.coerce(step)
        payload = step_input.to_payload()
        if ref.path:
            payload["flowPath"] = list(ref.path)
        path = self.config.execute_step_path(_seg(plan_id), _seg(ref.step_id))
        return self._parse(ApiResponse, await self._request("POST", path, json=payload))

    async def execute_flow(self, plan_id: str) -> ApiResponse:
        """Ask the engine to run the whole plan. Success means accepted, not completed."""
        data = await self._request("POST", f"/execution-plans/{_seg(plan_id)}/execute")
        return self._parse(ApiResponse, data)

    # -- master agent ------------------------------------------------------

    async def process_prompt(self, prompt: str, context: dict[str, Any] | None = None) -> ProcessPromptResponse:
        body = ProcessPromptRequest(prompt=prompt, context=context or {}).model_dump(by_alias=True)
        return self._parse(ProcessPromptResponse, await self._request("POST", "/master-agent/process", json=body))

    async def poll_status(self, plan_id: str) -> ExecutionPlanStatus:
        data = await self._request("GET", f"/master-agent/execution/{_seg(plan_id)}/status")
        return self._parse(ExecutionPlanStatus, data)

    async def get_plan_agents(self, plan_id: str) -> list[Agent]:
        data = await self._request("GET", f"/master-agent/execution/{_seg(plan_id)}/agents")
        return [self._parse(Agent, a) for a in data or []]

    async def stop_execution(self, plan_id: str) -> ApiResponse:
        data = await self._request("POST", f"/master-agent/execution/{_seg(plan_id)}/stop")
        return self._parse(ApiResponse, data)

    async def submit_approval(self, plan_id: str, step_id: str, approved: bool, feedback: str | None = None) -> ApiResponse:
        body = ApprovalRequest(approved=approved, feedback=feedback).model_dump(by_alias=True, exclude_none=True)
        path = f"/master-agent/execution/{_seg(plan_id)}/steps/{_seg(step_id)}/approval"
        return self._parse(ApiResponse, await self._request("POST", path, json=body))

    async def health(self) -> ApiResponse:
        return self._parse(ApiResponse, await self._request("GET", "/master-agent/health"))

    # -- monitoring --------------------------------------------------------

    async def active_executions(self) -> list[ExecutionPlanStatus]:
        data = await self._request("GET", "/monitoring/active-executions")
        return [self._parse(ExecutionPlanStatus, s) for s in data or []]

    async def execution_history(self) -> list[ExecutionPlanStatus]:
        data = await self._request("GET", "/monitoring/execution-history")
        return [self._parse(ExecutionPlanStatus, s) for s in data or []]

    async def execution_logs(self, plan_id: str) -> list[str]:
        data = await self._request("GET", f"/monitoring/execution/{_seg(plan_id)}/logs")
        return [str(line) for line in data or []]

    async def dashboard_stats(self) -> DashboardStats:
        return self._parse(DashboardStats, await self._request("GET", "/analytics/dashboard-stats"))

    # -- transport ---------------------------------------------------------

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        token = self.session.token
        headers = self.session.auth_headers()
        log.info("→ %s %s", method, path)
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                base_url=self.config.api_base_url,
                timeout=self.config.request_timeout,
                transport=self._transport,
            ) as client:
                r = await client.request(method, path, json=json, headers=headers)
        except httpx.RequestError as e:
            latency_ms = int((time.perf_counter() - start) * 1000)
            log.warning("← %s %s: failed %s (%s ms)", method, path, e, latency_ms)
            self.notifier.error(GENERIC_ERROR_MESSAGE)
            raise NetworkError(str(e) or type(e).__name__) from e
        latency_ms = int((time.perf_counter() - start) * 1000)
        if r.status_code >= 400:
            log.warning("← %s %s: HTTP %s (%s ms)", method, path, r.status_code, latency_ms)
            raise self._failure(r, token)
        log.info("← %s %s: HTTP %s (%s ms)", method, path, r.status_code, latency_ms)
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            self.notifier.error(GENERIC_ERROR_MESSAGE)
            raise EngineRequestError("Engine returned a non-JSON body", r.status_code) from e

    def _failure(self, r: httpx.Response, token_used: str | None) -> EngineRequestError:
        status = r.status_code
        if status == 401:
            self.session.expire(token_used)
            return Unauthorized("Authentication required", status)
        if status >= 500:
            self.notifier.error(SERVER_ERROR_MESSAGE)
            return ServerError(_body_message(r) or SERVER_ERROR_MESSAGE, status)
        error_cls = NotFound if status == 404 else EngineRequestError
        message = _body_message(r)
        if message:
            self.notifier.error(message)
            return error_cls(message, status)
        self.notifier.error(GENERIC_ERROR_MESSAGE)
        return error_cls(GENERIC_ERROR_MESSAGE, status)

    def _parse(self, model: type[M], data: Any) -> M:
        if data is None and model is ApiResponse:
            # an empty 2xx body is a bare acknowledgement
            return model(success=True)
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as e:
            log.warning("unexpected %s payload: %s", model.__name__, e)
            self.notifier.error(GENERIC_ERROR_MESSAGE)
            raise EngineRequestError(f"Unexpected {model.__name__} payload from engine") from e
