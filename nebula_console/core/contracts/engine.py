from typing import Any

from pydantic import Field

from nebula_console.core.contracts.plan import ContractModel


class ApiResponse(ContractModel):
    success: bool
    message: str = ""
    data: Any = None
    error: str | None = None


class ProcessPromptRequest(ContractModel):
    prompt: str
    context: dict[str, Any] = Field(default_factory=dict)


class ProcessPromptResponse(ContractModel):
    success: bool
    message: str = ""
    result: str | None = None
    plan_id: str | None = None


class ApprovalRequest(ContractModel):
    approved: bool
    feedback: str | None = None


class DashboardStats(ContractModel):
    total_agents: int = 0
    active_executions: int = 0
    completed_executions: int = 0
    failed_executions: int = 0
    total_execution_time: float = 0
    average_execution_time: float = 0
