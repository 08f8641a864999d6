from nebula_console.client.notifications import Notifier
from nebula_console.client.plan_client import GENERIC_ERROR_MESSAGE, SERVER_ERROR_MESSAGE, PlanClient
from nebula_console.client.realtime import RealtimeChannel, parse_update
from nebula_console.client.session import Session

__all__ = [
    "Notifier",
    "PlanClient",
    "GENERIC_ERROR_MESSAGE",
    "SERVER_ERROR_MESSAGE",
    "RealtimeChannel",
    "parse_update",
    "Session",
]
