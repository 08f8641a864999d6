from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import Field

from nebula_console.core.contracts.plan import ContractModel

NotificationType = Literal["info", "success", "warning", "error"]


class StepInput(ContractModel):
    """Operator-supplied execution input for one step. Lives only in the console."""

    instruction: str = ""
    configuration: dict[str, Any] = Field(default_factory=dict)
    external_api_url: str | None = None
    api_key: str | None = Field(default=None, repr=False)
    client_id: str | None = None
    client_secret: str | None = Field(default=None, repr=False)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ActionOutcome(ContractModel):
    """Result of an operator action (execute step/flow). Returned instead of raising."""

    action: str
    ok: bool
    message: str = ""
    error: str | None = None  # exception class name when ok is False


class Notification(ContractModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    type: NotificationType
    title: str = ""
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    read: bool = False
