"""Plain-text rendering of a flow for the operator console."""
from __future__ import annotations

import json
from typing import TYPE_CHECKING

from nebula_console.core.contracts.console import StepInput
from nebula_console.core.contracts.plan import (
    Agent,
    ConditionalStep,
    ExecutionStep,
    LoopStep,
    ParallelStep,
    SequentialStep,
)
from nebula_console.schema.addressing import StepRef, child_scopes

if TYPE_CHECKING:
    from nebula_console.flow.controller import FlowController

INDENT = "    "
MASK = "********"


def render_flow(controller: FlowController) -> str:
    view = controller.view
    flow = view.execution_flow
    lines = [
        view.plan_name,
        f"Plan ID: {view.plan_id}",
        f"Type: {flow.type} | {len(flow.steps)} Steps | {len(view.agents)} Agents",
        "",
    ]
    if not flow.steps:
        lines.append("(no steps)")
    for index, step in enumerate(flow.steps):
        active = index == controller.active_step
        lines.append(f"{'>' if active else ' '} {index + 1}. {step_label(step, index, StepRef((), step.step_id))}")
        if active:
            lines.extend(_indented(render_step_detail(controller, StepRef((), step.step_id), step), 2))
    lines.append("")
    lines.append("Available agents:")
    for agent in view.agents:
        lines.append(f"  - {agent.name} [{agent.type}, {agent.language or 'n/a'}] ID: {agent.agent_id}")
    if not view.agents:
        lines.append("  (none)")
    return "\n".join(lines)


def step_label(step: ExecutionStep, index: int, ref: StepRef) -> str:
    """Name, address and type; the address is what ``StepRef.parse`` accepts."""
    label = f"{step.name or f'Step {index + 1}'} ({ref}) [{step.type}]"
    if step.agent_id:
        label += f" agent={step.agent_id}"
    if not step.enabled:
        label += " (disabled)"
    return label


def render_step_detail(controller: FlowController, ref: StepRef, step: ExecutionStep) -> list[str]:
    """Detail panel of one step: structure, operator input, agent metadata, nested scopes."""
    lines = [step.description or "No description provided"]
    lines.extend(describe_variant(step))
    lines.extend(_describe_policies(step))

    lines.append("Input:")
    lines.extend(INDENT + line for line in _describe_input(controller.resolve_input(ref), controller.configuration_draft(ref)))

    agent = controller.agent_for(step)
    if agent is not None:
        lines.append("Agent:")
        lines.extend(INDENT + line for line in describe_agent(agent))
    elif step.agent_id:
        lines.append(f"Agent: {step.agent_id} (no agent metadata)")

    ready = controller.can_execute(ref)
    lines.append(f"Execute step: {'ready' if ready else 'blocked (instruction required)'}")
    lines.extend(_render_scopes(step, ref))
    return lines


def describe_variant(step: ExecutionStep) -> list[str]:
    if isinstance(step, SequentialStep):
        lines = []
        if step.inputs:
            lines.append(f"Inputs: {json.dumps(step.inputs, sort_keys=True)}")
        if step.outputs:
            lines.append(f"Outputs: {', '.join(step.outputs)}")
        return lines
    if isinstance(step, ParallelStep):
        mode = "wait for all" if step.wait_for_all else "proceed on first completion"
        agents = ", ".join(p.agent_id for p in step.parallel_agents)
        return [f"Parallel agents: {agents} ({mode})"]
    if isinstance(step, ConditionalStep):
        line = f"If: {step.condition.expression}"
        if step.condition.variables:
            line += f" (variables: {', '.join(step.condition.variables)})"
        return [line]
    if isinstance(step, LoopStep):
        exit_ = step.exit_condition
        lines = [f"Loop ({step.loop_type}) until: {exit_.expression} (checked by {exit_.check_agent_id})"]
        if exit_.max_iterations is not None:
            lines.append(f"Bound: max {exit_.max_iterations} iterations")
        if step.iteration_variable or step.collection_variable:
            lines.append(f"Binding: {step.iteration_variable or '?'} in {step.collection_variable or '?'}")
        return lines
    if isinstance(step, ExecutionStep):
        return []
    raise TypeError(f"Unknown step variant: {type(step).__name__}")


def describe_agent(agent: Agent) -> list[str]:
    lines = [f"{agent.name} | type={agent.type} | language={agent.language or 'n/a'}"]
    if agent.capabilities:
        lines.append(f"Capabilities: {', '.join(agent.capabilities)}")
    if agent.tools:
        lines.append(f"Tools: {', '.join(f'{t.name} ({t.type})' for t in agent.tools)}")
    return lines


def _describe_policies(step: ExecutionStep) -> list[str]:
    lines = []
    if step.dependencies:
        lines.append(f"Depends on: {', '.join(step.dependencies)}")
    if step.timeout:
        lines.append(f"Timeout: {step.timeout}")
    if step.retry_policy is not None:
        rp = step.retry_policy
        line = f"Retry: {rp.max_attempts} attempts, delay {rp.delay}"
        if rp.backoff_multiplier:
            line += f", backoff x{rp.backoff_multiplier:g}"
        lines.append(line)
    if step.human_approval_required:
        lines.append("Human approval required")
    return lines


def _describe_input(step_input: StepInput, draft: str | None) -> list[str]:
    lines = [f"Instruction: {step_input.instruction or '(empty)'}"]
    config = json.dumps(step_input.configuration, sort_keys=True)
    lines.append(f"Configuration: {config}")
    if draft is not None:
        lines.append(f"Configuration draft (invalid JSON, not applied): {draft}")
    if step_input.external_api_url:
        lines.append(f"External API URL: {step_input.external_api_url}")
    if step_input.api_key:
        lines.append(f"API key: {MASK}")
    if step_input.client_id:
        lines.append(f"Client ID: {step_input.client_id}")
    if step_input.client_secret:
        lines.append(f"Client secret: {MASK}")
    return lines


def _render_scopes(step: ExecutionStep, ref: StepRef) -> list[str]:
    lines = []
    for scope, children in child_scopes(step):
        if scope == "flow" and step.flow is not None:
            lines.append(f"Nested flow ({step.flow.type}, {len(children)} steps):")
        else:
            lines.append(f"{scope.capitalize()}:")
        for index, child in enumerate(children):
            child_ref = ref.child(scope, child.step_id)
            lines.append(f"{INDENT}- {step_label(child, index, child_ref)}")
            body = describe_variant(child) + _describe_policies(child) + _render_scopes(child, child_ref)
            lines.extend(_indented(body, 2))
    return lines


def _indented(lines: list[str], levels: int) -> list[str]:
    pad = INDENT * levels
    return [pad + line for line in lines]
