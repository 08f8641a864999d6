from nebula_console.schema.addressing import StepRef, child_scopes, find_step, walk
from nebula_console.schema.validation import (
    PlanCheck,
    check_flow,
    check_flow_structure,
    check_plan,
    find_cycle,
    parse_flow,
    parse_plan,
)

__all__ = [
    "StepRef",
    "child_scopes",
    "find_step",
    "walk",
    "PlanCheck",
    "check_flow",
    "check_flow_structure",
    "check_plan",
    "find_cycle",
    "parse_flow",
    "parse_plan",
]
