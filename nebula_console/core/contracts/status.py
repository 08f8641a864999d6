from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator

from nebula_console.core.contracts.plan import ContractModel

ExecutionStatus = Literal["pending", "running", "completed", "failed", "cancelled", "paused", "waiting_for_approval"]

TERMINAL_STATUSES = frozenset({"completed", "failed", "cancelled"})


class ExecutionPlanStatus(ContractModel):
    """Live snapshot of a plan execution, pulled from the engine. Never derived locally."""

    plan_id: str
    status: ExecutionStatus
    total_steps: int = 0
    completed_steps: int = 0
    total_agents: int = 0
    active_agents: int = 0
    current_step: str | None = None
    error: str | None = Field(default=None, validation_alias=AliasChoices("error", "errorMessage"))
    context: dict[str, Any] | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalise_status(cls, v: Any) -> Any:
        # the engine reports RUNNING, WAITING_FOR_APPROVAL, ...
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def progress(self) -> float:
        if self.total_steps <= 0:
            return 0.0
        return min(self.completed_steps / self.total_steps, 1.0)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
