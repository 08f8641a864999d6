"""Path-based addressing of steps inside a plan tree.

Step ids are unique only within their enclosing scope, so a step is addressed
by the chain of scopes leading to it plus its id. A scope segment is
``"<stepId>.flow"``, ``"<stepId>.then"``, ``"<stepId>.else"`` or
``"<stepId>.body"``.
"""
from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import NamedTuple

from nebula_console.core.contracts.plan import (
    ConditionalStep,
    ExecutionFlow,
    ExecutionStep,
    LoopStep,
    ParallelStep,
    SequentialStep,
)


class StepRef(NamedTuple):
    path: tuple[str, ...]
    step_id: str

    @classmethod
    def coerce(cls, ref: StepRef | str) -> StepRef:
        """A bare step id addresses a top-level step."""
        if isinstance(ref, StepRef):
            return ref
        return cls((), ref)

    @classmethod
    def parse(cls, text: str) -> StepRef:
        """Inverse of ``str()``: ``"S3.then/S3a"`` addresses S3a in S3's then branch."""
        *path, step_id = text.strip("/").split("/")
        return cls(tuple(path), step_id)

    def child(self, scope: str, step_id: str) -> StepRef:
        return StepRef(self.path + (f"{self.step_id}.{scope}",), step_id)

    def __str__(self) -> str:
        return "/".join(self.path + (self.step_id,))


def child_scopes(step: ExecutionStep) -> list[tuple[str, list[ExecutionStep]]]:
    """Nested scopes owned by a step, as (scope name, steps) pairs."""
    scopes: list[tuple[str, list[ExecutionStep]]] = []
    if isinstance(step, ConditionalStep):
        scopes.append(("then", [step.then_step]))
        if step.else_step is not None:
            scopes.append(("else", [step.else_step]))
    elif isinstance(step, LoopStep):
        scopes.append(("body", list(step.body)))
    elif isinstance(step, (SequentialStep, ParallelStep, ExecutionStep)):
        pass
    else:
        raise TypeError(f"Unknown step variant: {type(step).__name__}")
    if step.flow is not None:
        scopes.append(("flow", list(step.flow.steps)))
    return scopes


def walk(flow: ExecutionFlow) -> Iterator[tuple[StepRef, ExecutionStep]]:
    """Yield every step of the tree in pre-order with its address."""
    yield from _walk_scope((), flow.steps)


def _walk_scope(path: tuple[str, ...], steps: Sequence[ExecutionStep]) -> Iterator[tuple[StepRef, ExecutionStep]]:
    for step in steps:
        ref = StepRef(path, step.step_id)
        yield ref, step
        for scope, children in child_scopes(step):
            yield from _walk_scope(path + (f"{step.step_id}.{scope}",), children)


def find_step(flow: ExecutionFlow, ref: StepRef | str) -> ExecutionStep | None:
    ref = StepRef.coerce(ref)
    steps: Sequence[ExecutionStep] = flow.steps
    for segment in ref.path:
        owner_id, _, scope = segment.rpartition(".")
        owner = next((s for s in steps if s.step_id == owner_id), None)
        if owner is None:
            return None
        scoped = dict(child_scopes(owner))
        if scope not in scoped:
            return None
        steps = scoped[scope]
    return next((s for s in steps if s.step_id == ref.step_id), None)
