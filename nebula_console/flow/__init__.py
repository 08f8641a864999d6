from nebula_console.flow.controller import FlowController
from nebula_console.flow.render import render_flow
from nebula_console.flow.store import StepInputStore

__all__ = ["FlowController", "render_flow", "StepInputStore"]
