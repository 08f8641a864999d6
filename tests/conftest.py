"""Shared fixtures: a fake engine behind ASGITransport and a client wired to it."""
import httpx
import pytest

from nebula_console.client import Notifier, PlanClient, Session
from nebula_console.core.config import ConsoleConfig, PollingConfig
from tests.fake_engine import FakeEngine, sample_plan

TOKEN = "tok-1"


@pytest.fixture
def config():
    return ConsoleConfig(
        api_base_url="http://engine",
        ws_url="ws://engine/ws",
        auth_token=TOKEN,
        polling=PollingConfig(active_executions=0.01, dashboard_stats=0.01, plan_status=0.01),
    )


@pytest.fixture
def engine():
    return FakeEngine([sample_plan()], token=TOKEN)


@pytest.fixture
def session():
    return Session(TOKEN)


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def client(config, engine, session, notifier):
    return PlanClient(config, session=session, notifier=notifier, transport=httpx.ASGITransport(app=engine.app))
