from nebula_console.browser import ExecutionMonitor, PlanBrowser
from nebula_console.client import Notifier, PlanClient, RealtimeChannel, Session
from nebula_console.core.config import ConsoleConfig, load_console_config
from nebula_console.flow import FlowController, StepInputStore
from nebula_console.schema import StepRef, check_plan, parse_flow, parse_plan

__all__ = [
    "ExecutionMonitor",
    "PlanBrowser",
    "Notifier",
    "PlanClient",
    "RealtimeChannel",
    "Session",
    "ConsoleConfig",
    "load_console_config",
    "FlowController",
    "StepInputStore",
    "StepRef",
    "check_plan",
    "parse_flow",
    "parse_plan",
]
