from nebula_console.browser.browser import PlanBrowser
from nebula_console.browser.monitor import ExecutionMonitor, Poller

__all__ = ["PlanBrowser", "ExecutionMonitor", "Poller"]
