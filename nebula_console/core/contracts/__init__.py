from nebula_console.core.contracts.plan import (
    Agent,
    Condition,
    ConditionalStep,
    ExecutionFlow,
    ExecutionPlan,
    ExecutionStep,
    ExitCondition,
    FlowView,
    HumanInTheLoop,
    LoopStep,
    ParallelAgent,
    ParallelStep,
    PlanMetadata,
    RetryPolicy,
    SequentialStep,
    Step,
    Tool,
)
from nebula_console.core.contracts.status import ExecutionPlanStatus
from nebula_console.core.contracts.engine import (
    ApiResponse,
    ApprovalRequest,
    DashboardStats,
    ProcessPromptRequest,
    ProcessPromptResponse,
)
from nebula_console.core.contracts.console import ActionOutcome, Notification, StepInput

__all__ = [
    "Agent",
    "Condition",
    "ConditionalStep",
    "ExecutionFlow",
    "ExecutionPlan",
    "ExecutionStep",
    "ExitCondition",
    "FlowView",
    "HumanInTheLoop",
    "LoopStep",
    "ParallelAgent",
    "ParallelStep",
    "PlanMetadata",
    "RetryPolicy",
    "SequentialStep",
    "Step",
    "Tool",
    "ExecutionPlanStatus",
    "ApiResponse",
    "ApprovalRequest",
    "DashboardStats",
    "ProcessPromptRequest",
    "ProcessPromptResponse",
    "ActionOutcome",
    "Notification",
    "StepInput",
]
