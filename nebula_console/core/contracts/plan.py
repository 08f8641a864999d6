"""Execution plan documents as served by the engine.

Wire names are camelCase; attributes are snake_case and either is accepted on
input. Steps form a tree: a flow holds steps, and a step may hold a nested
flow, conditional branches or a loop body. ``Step`` is the tagged union over
the step variants, discriminated on ``type``.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel

AgentType = Literal[
    "control",
    "data",
    "tool",
    "human-interface",
    # extended values used by the engine
    "control-plane",
    "data-plane",
    "data-agent",
    "tool-agent",
    "orchestration-agent",
]
ToolType = Literal["database", "api", "file", "notification", "integration", "function"]
FlowType = Literal["sequential", "parallel", "conditional", "loop", "hybrid", "hierarchical"]
LoopType = Literal["while", "for", "foreach"]

DURATION_PATTERN = r"^\d+(s|m|h)?$"
VARIANT_TAGS = ("sequential", "parallel", "conditional", "loop")


class ContractModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Tool(ContractModel):
    tool_id: str
    name: str
    type: ToolType
    description: str = ""
    configuration: dict[str, Any] = Field(default_factory=dict)


class Agent(ContractModel):
    agent_id: str
    name: str
    type: AgentType
    language: str = ""
    capabilities: list[str] = Field(default_factory=list)
    tools: list[Tool] = Field(default_factory=list)
    configuration: dict[str, Any] | None = None
    status: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RetryPolicy(ContractModel):
    """Informational only; the engine enforces retries."""

    max_attempts: int = Field(ge=1)
    delay: str = Field(pattern=DURATION_PATTERN)
    backoff_multiplier: float | None = Field(default=None, ge=1)


class Condition(ContractModel):
    expression: str
    variables: list[str] = Field(default_factory=list)


class ExitCondition(ContractModel):
    expression: str
    check_agent_id: str
    # advisory bound, surfaced but never enforced by the console
    max_iterations: Annotated[int, Field(strict=True, gt=0)] | None = None


class ParallelAgent(ContractModel):
    agent_id: str
    inputs: dict[str, Any] = Field(default_factory=dict)


class ExecutionStep(ContractModel):
    """Base step shape. Also used for steps whose type is not a variant tag (e.g. ``task``)."""

    step_id: str = Field(pattern=r"^[a-zA-Z0-9_-]+$")
    name: str = ""
    description: str = ""
    type: str = "task"
    agent_id: str | None = None
    instruction: str | None = None
    action: str | None = None
    input_mappings: dict[str, Any] = Field(default_factory=dict)
    output_mappings: dict[str, Any] = Field(default_factory=dict)
    parameters: dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True
    dependencies: list[str] = Field(default_factory=list)
    timeout: str | None = Field(default=None, pattern=DURATION_PATTERN)
    retry_policy: RetryPolicy | None = None
    human_approval_required: bool = False
    condition: str | None = None
    error_handling: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
    flow: ExecutionFlow | None = None


class SequentialStep(ExecutionStep):
    type: Literal["sequential"] = "sequential"
    agent_id: str
    inputs: dict[str, Any] = Field(default_factory=dict)
    outputs: list[str] = Field(default_factory=list)


class ParallelStep(ExecutionStep):
    type: Literal["parallel"] = "parallel"
    parallel_agents: list[ParallelAgent] = Field(min_length=1)
    wait_for_all: bool = True


class ConditionalStep(ExecutionStep):
    type: Literal["conditional"] = "conditional"
    condition: Condition
    then_step: Step
    else_step: Step | None = None


class LoopStep(ExecutionStep):
    type: Literal["loop"] = "loop"
    loop_type: LoopType
    body: list[Step] = Field(min_length=1)
    exit_condition: ExitCondition
    iteration_variable: str | None = None
    collection_variable: str | None = None


def step_tag(value: Any) -> str:
    """Discriminator for ``Step``: the variant tag, or ``task`` for any other type."""
    if isinstance(value, dict):
        kind = value.get("type")
    else:
        kind = getattr(value, "type", None)
    kind = kind.lower() if isinstance(kind, str) else ""
    return kind if kind in VARIANT_TAGS else "task"


Step = Annotated[
    Union[
        Annotated[SequentialStep, Tag("sequential")],
        Annotated[ParallelStep, Tag("parallel")],
        Annotated[ConditionalStep, Tag("conditional")],
        Annotated[LoopStep, Tag("loop")],
        Annotated[ExecutionStep, Tag("task")],
    ],
    Discriminator(step_tag),
]


class ExecutionFlow(ContractModel):
    """A typed container of steps. ``type`` is preserved as-is and interpreted only by the engine."""

    type: FlowType
    steps: list[Step] = Field(default_factory=list)
    max_concurrent: int | None = Field(default=None, gt=0)
    condition: str | None = None


class PlanMetadata(ContractModel):
    name: str
    description: str = ""
    created_by: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    tags: list[str] = Field(default_factory=list)


class HumanInTheLoop(ContractModel):
    enabled: bool = False
    # some engine builds name the list approvalRequired
    approval_steps: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("approvalSteps", "approvalRequired", "approval_steps"),
        serialization_alias="approvalSteps",
    )
    teams_integration: dict[str, Any] | None = None


class ExecutionPlan(ContractModel):
    plan_id: str
    version: str = ""
    metadata: PlanMetadata
    agents: list[Agent] = Field(default_factory=list)
    execution_flow: ExecutionFlow
    global_context: dict[str, Any] | None = None
    human_in_the_loop: HumanInTheLoop | None = None

    def get_agent(self, agent_id: str) -> Agent | None:
        for a in self.agents:
            if a.agent_id == agent_id:
                return a
        return None


class FlowView(ContractModel):
    """Payload of the flow endpoint: everything the flow controller needs for one plan."""

    plan_id: str
    plan_name: str
    execution_flow: ExecutionFlow
    agents: list[Agent] = Field(default_factory=list)

    @classmethod
    def from_plan(cls, plan: ExecutionPlan) -> FlowView:
        return cls(
            plan_id=plan.plan_id,
            plan_name=plan.metadata.name,
            execution_flow=plan.execution_flow,
            agents=plan.agents,
        )

    def get_agent(self, agent_id: str) -> Agent | None:
        for a in self.agents:
            if a.agent_id == agent_id:
                return a
        return None


for _model in (ExecutionStep, SequentialStep, ParallelStep, ConditionalStep, LoopStep, ExecutionFlow, ExecutionPlan, FlowView):
    _model.model_rebuild()
