import asyncio

import pytest

from nebula_console.browser import ExecutionMonitor, Poller
from nebula_console.core.exceptions import ServerError
from tests.fake_engine import status_doc


@pytest.mark.asyncio
async def test_watch_plan_stops_at_terminal_status(client, engine):
    engine.statuses["P1"] = [
        status_doc("P1", "running", 1),
        status_doc("P1", "RUNNING", 3),
        status_doc("P1", "COMPLETED", 4),
    ]
    monitor = ExecutionMonitor(client)
    seen = []

    poller = monitor.watch_plan("P1", on_status=lambda s: seen.append(s.status))
    await asyncio.wait_for(poller.wait(), timeout=2)

    assert seen == ["running", "running", "completed"]
    assert monitor.plan_statuses["P1"].progress == 1.0
    assert not poller.running


@pytest.mark.asyncio
async def test_failed_poll_does_not_stop_the_loop(client, engine):
    engine.fail("/master-agent/execution/P1/status", 503)
    monitor = ExecutionMonitor(client)
    poller = monitor.watch_plan("P1")

    while poller.failures < 2:
        await asyncio.sleep(0.01)
    assert poller.running

    del engine.failures["/master-agent/execution/P1/status"]
    engine.statuses["P1"] = [status_doc("P1", "failed", 2, errorMessage="agent crashed")]
    await asyncio.wait_for(poller.wait(), timeout=2)

    assert monitor.plan_statuses["P1"].error == "agent crashed"


@pytest.mark.asyncio
async def test_dashboard_loops_run_independently(client, engine):
    engine.statuses["P1"] = [status_doc("P1", "running", 1)]
    monitor = ExecutionMonitor(client)

    monitor.start_dashboard()
    monitor.start_dashboard()
    while monitor.dashboard_stats is None or not monitor.active_executions:
        await asyncio.sleep(0.01)
    await monitor.stop()

    assert monitor.pollers == {}
    assert [s.plan_id for s in monitor.active_executions] == ["P1"]
    assert monitor.dashboard_stats.total_agents == 2


@pytest.mark.asyncio
async def test_poller_stop_cancels():
    calls = []

    async def fetch():
        calls.append(1)
        raise ServerError("down", 500)

    poller = Poller("flaky", fetch, 0.01, lambda result: None)
    poller.start()
    await asyncio.sleep(0.05)
    await poller.stop()

    assert not poller.running
    assert poller.failures == len(calls) >= 1


@pytest.mark.asyncio
async def test_rejected_credential_stops_polling(client, engine, session):
    engine.statuses["P1"] = [status_doc("P1", "running", 1)]
    engine.token = "rotated"
    monitor = ExecutionMonitor(client)

    poller = monitor.watch_plan("P1")
    await asyncio.wait_for(poller.wait(), timeout=2)

    assert not poller.running
    assert poller.polls == 1
    assert session.token is None
    assert engine.count("GET", "/master-agent/execution/P1/status") == 1
