from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_API_BASE_URL = "http://localhost:8080/nebula-control-plane/api/v1"
DEFAULT_WS_URL = "ws://localhost:8080/nebula-control-plane/ws"


class EndpointConfig(BaseModel):
    # Path templates relative to api_base_url; {plan_id} and {step_id} are substituted.
    flow: str = "/execution-plans/{plan_id}"
    execute_step: str = "/execution-plans/{plan_id}/steps/{step_id}/execute"


class PollingConfig(BaseModel):
    """Polling intervals in seconds. Each one drives its own loop."""

    active_executions: float = Field(default=5.0, gt=0)
    dashboard_stats: float = Field(default=30.0, gt=0)
    plan_status: float = Field(default=5.0, gt=0)


class ConsoleConfig(BaseModel):
    api_base_url: str = DEFAULT_API_BASE_URL
    ws_url: str = DEFAULT_WS_URL
    auth_token: str | None = Field(default=None, repr=False)
    request_timeout: float | None = 120.0  # None = wait indefinitely
    env_file_path: str | None = None
    endpoints: EndpointConfig = Field(default_factory=EndpointConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)

    def flow_path(self, plan_id: str) -> str:
        return self.endpoints.flow.format(plan_id=plan_id)

    def execute_step_path(self, plan_id: str, step_id: str) -> str:
        return self.endpoints.execute_step.format(plan_id=plan_id, step_id=step_id)
