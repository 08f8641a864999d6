"""Structural validation of plan documents before they are rendered.

Pydantic checks shapes and types; the checks here cover what a single model
cannot see: agent references, per-scope step identity, dependency cycles and
empty expressions. All problems are collected rather than stopping at the
first one. Expressions are never evaluated here; that is the engine's job.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

import pydantic
from pydantic import BaseModel, Field

from nebula_console.core.contracts.plan import (
    Agent,
    ConditionalStep,
    ExecutionFlow,
    ExecutionPlan,
    ExecutionStep,
    FlowView,
    LoopStep,
    ParallelStep,
)
from nebula_console.core.exceptions import ValidationError
from nebula_console.schema.addressing import StepRef, child_scopes, walk

log = logging.getLogger("schema")


class PlanCheck(BaseModel):
    """Non-raising validation result."""

    ok: bool
    document: ExecutionPlan | FlowView | None = None
    errors: list[str] = Field(default_factory=list)


def parse_plan(raw: Any) -> ExecutionPlan:
    """Validate a raw plan document (dict or JSON text). Raises ValidationError."""
    plan = _model_validate(ExecutionPlan, raw)
    errors: list[str] = []
    if not plan.plan_id.strip():
        errors.append("planId: must not be empty")
    if not plan.metadata.name.strip():
        errors.append("metadata.name: must not be empty")
    errors.extend(check_flow_structure(plan.execution_flow, plan.agents))
    if plan.human_in_the_loop is not None:
        known = {ref.step_id for ref, _ in walk(plan.execution_flow)}
        for step_id in plan.human_in_the_loop.approval_steps:
            if step_id not in known:
                errors.append(f"humanInTheLoop.approvalSteps: unknown step '{step_id}'")
    if errors:
        raise ValidationError(errors)
    return plan


def parse_flow(raw: Any) -> FlowView:
    """Validate a flow endpoint payload. A full plan document is accepted and projected."""
    if isinstance(raw, (str, bytes)):
        raw = _load_json(raw)
    if isinstance(raw, dict) and "metadata" in raw and "planName" not in raw and "plan_name" not in raw:
        return FlowView.from_plan(parse_plan(raw))
    view = _model_validate(FlowView, raw)
    errors: list[str] = []
    if not view.plan_id.strip():
        errors.append("planId: must not be empty")
    if not view.plan_name.strip():
        errors.append("planName: must not be empty")
    errors.extend(check_flow_structure(view.execution_flow, view.agents))
    if errors:
        raise ValidationError(errors)
    return view


def check_plan(raw: Any) -> PlanCheck:
    try:
        return PlanCheck(ok=True, document=parse_plan(raw))
    except ValidationError as e:
        return PlanCheck(ok=False, errors=e.errors)


def check_flow(raw: Any) -> PlanCheck:
    try:
        return PlanCheck(ok=True, document=parse_flow(raw))
    except ValidationError as e:
        return PlanCheck(ok=False, errors=e.errors)


def check_flow_structure(flow: ExecutionFlow, agents: Sequence[Agent]) -> list[str]:
    """Semantic checks over the whole step tree. Returns the problems found."""
    errors: list[str] = []
    agent_ids: set[str] = set()
    for a in agents:
        if a.agent_id in agent_ids:
            errors.append(f"agents: duplicate agentId '{a.agent_id}'")
        agent_ids.add(a.agent_id)
    _check_scope((), flow.steps, agent_ids, errors)
    return errors


def _check_scope(path: tuple[str, ...], steps: Sequence[ExecutionStep], agent_ids: set[str], errors: list[str]) -> None:
    scope_name = "/".join(path) or "executionFlow"
    seen: set[str] = set()
    for step in steps:
        if step.step_id in seen:
            errors.append(f"{scope_name}: duplicate stepId '{step.step_id}'")
        seen.add(step.step_id)

    graph: dict[str, list[str]] = {}
    for step in steps:
        where = f"step {StepRef(path, step.step_id)}"
        for agent_id, field in _agent_references(step):
            if agent_id not in agent_ids:
                errors.append(f"{where}: {field} '{agent_id}' does not match any declared agent")
        errors.extend(f"{where}: {problem}" for problem in _expression_problems(step))
        for dep in step.dependencies:
            if dep not in seen:
                errors.append(f"{where}: dependency '{dep}' is not a step of the same flow")
        graph[step.step_id] = [d for d in step.dependencies if d in seen]

    cycle = find_cycle(graph)
    if cycle:
        errors.append(f"{scope_name}: dependency cycle {' -> '.join(cycle)}")

    for step in steps:
        for scope, children in child_scopes(step):
            _check_scope(path + (f"{step.step_id}.{scope}",), children, agent_ids, errors)


def _agent_references(step: ExecutionStep) -> list[tuple[str, str]]:
    refs: list[tuple[str, str]] = []
    if step.agent_id:
        refs.append((step.agent_id, "agentId"))
    if isinstance(step, ParallelStep):
        refs.extend((p.agent_id, "parallelAgents.agentId") for p in step.parallel_agents)
    elif isinstance(step, LoopStep):
        refs.append((step.exit_condition.check_agent_id, "exitCondition.checkAgentId"))
    return refs


def _expression_problems(step: ExecutionStep) -> list[str]:
    if isinstance(step, ConditionalStep) and not step.condition.expression.strip():
        return ["condition.expression must not be empty"]
    if isinstance(step, LoopStep) and not step.exit_condition.expression.strip():
        return ["exitCondition.expression must not be empty"]
    return []


def find_cycle(graph: dict[str, list[str]]) -> list[str] | None:
    """Depth-first search with colouring. Returns one cycle as a closed path, or None."""
    white, grey, black = 0, 1, 2
    colour = {node: white for node in graph}
    stack: list[str] = []

    def visit(node: str) -> list[str] | None:
        colour[node] = grey
        stack.append(node)
        for nxt in graph.get(node, ()):
            if nxt not in colour:
                continue
            if colour[nxt] == grey:
                return stack[stack.index(nxt):] + [nxt]
            if colour[nxt] == white:
                found = visit(nxt)
                if found:
                    return found
        stack.pop()
        colour[node] = black
        return None

    for node in graph:
        if colour[node] == white:
            found = visit(node)
            if found:
                return found
    return None


def _load_json(raw: str | bytes) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError([f"document is not valid JSON: {e}"]) from e


def _model_validate(model: type[pydantic.BaseModel], raw: Any) -> Any:
    if isinstance(raw, (str, bytes)):
        raw = _load_json(raw)
    try:
        return model.model_validate(raw)
    except pydantic.ValidationError as e:
        errors = [f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()]
        log.debug("rejected %s document: %s", model.__name__, errors)
        raise ValidationError(errors) from e
