"""Tests for the step wizard: navigation, operator input and the two execution actions."""
import pytest

from nebula_console.client import SERVER_ERROR_MESSAGE
from nebula_console.flow import FlowController, StepInputStore
from nebula_console.schema import StepRef, parse_flow
from tests.fake_engine import sample_plan

STEP_PATH = "/execution-plans/P1/steps/S1/execute"


@pytest.fixture
def plan_doc():
    return sample_plan()


@pytest.fixture
def controller(client, plan_doc):
    return FlowController(parse_flow(plan_doc), client, store=StepInputStore())


class TestNavigation:
    def test_starts_at_first_step(self, controller):
        assert controller.active_step == 0
        assert controller.current_ref == StepRef((), "S1")

    def test_bounds_are_clamped(self, controller):
        assert controller.retreat() == 0
        for _ in range(10):
            controller.advance()
        assert controller.active_step == 3
        assert controller.go_to(99) == 3
        assert controller.go_to(-4) == 0
        assert controller.go_to(2) == 2
        assert controller.current_step.step_id == "S3"

    def test_empty_flow(self, client):
        doc = sample_plan()
        doc["executionFlow"]["steps"] = []
        doc["humanInTheLoop"] = None
        controller = FlowController(parse_flow(doc), client)

        assert controller.advance() == 0
        assert controller.current_step is None
        assert "(no steps)" in controller.render()


class TestOperatorInput:
    def test_declared_instruction_is_the_fallback(self, controller):
        ref = StepRef(("S3.then",), "S3a")

        assert controller.resolve_input(ref).instruction == "Send the report"
        assert controller.can_execute(ref)

        controller.edit(ref, "instruction", "Send it to ops")
        assert controller.resolve_input(ref).instruction == "Send it to ops"

    def test_parameters_are_the_configuration_fallback(self, client, plan_doc):
        plan_doc["executionFlow"]["steps"][0]["parameters"] = {"limit": 10}
        controller = FlowController(parse_flow(plan_doc), client)

        assert controller.resolve_input("S1").configuration == {"limit": 10}
        controller.edit("S1", "configuration", {"limit": 3})
        assert controller.resolve_input("S1").configuration == {"limit": 3}

    def test_explicitly_emptied_configuration_is_not_replaced(self, client, plan_doc):
        plan_doc["executionFlow"]["steps"][0]["parameters"] = {"limit": 10}
        controller = FlowController(parse_flow(plan_doc), client)
        controller.edit("S1", "instruction", "go")
        assert controller.resolve_input("S1").configuration == {"limit": 10}

        controller.edit("S1", "configuration", {})

        assert controller.resolve_input("S1").configuration == {}

    def test_rejected_edit_is_notified(self, controller, notifier):
        controller.edit("S1", "instruction", "keep me")

        value = controller.edit("S1", "colour", "blue")

        assert value.instruction == "keep me"
        assert [n.type for n in notifier.items] == ["warning"]

    def test_malformed_configuration_is_kept_as_draft(self, controller):
        assert controller.edit_configuration("S1", '{"limit": 5}')

        assert not controller.edit_configuration("S1", '{"limit": ')
        assert controller.configuration_draft("S1") == '{"limit": '
        assert controller.resolve_input("S1").configuration == {"limit": 5}

        assert not controller.edit_configuration("S1", "[1, 2]")
        assert controller.resolve_input("S1").configuration == {"limit": 5}

        assert controller.edit_configuration("S1", '{"limit": 6}')
        assert controller.configuration_draft("S1") is None
        assert controller.resolve_input("S1").configuration == {"limit": 6}


class TestExecuteStep:
    @pytest.mark.asyncio
    async def test_blocked_without_instruction(self, controller, engine, notifier):
        outcome = await controller.execute_step()

        assert not outcome.ok
        assert outcome.error == "OperatorInputError"
        assert engine.count("POST", STEP_PATH) == 0
        assert [n.type for n in notifier.items] == ["warning"]

    @pytest.mark.asyncio
    async def test_whitespace_instruction_is_blocked(self, controller, engine):
        controller.edit("S1", "instruction", "   ")

        outcome = await controller.execute_step("S1")

        assert not outcome.ok
        assert engine.count("POST", STEP_PATH) == 0

    @pytest.mark.asyncio
    async def test_execute_active_step(self, controller, engine, notifier):
        controller.edit("S1", "instruction", "Pull yesterday's orders")
        controller.edit("S1", "apiKey", "sk-1")

        outcome = await controller.execute_step()

        assert outcome.ok
        assert outcome.message == "Step S1 accepted"
        assert engine.count("POST", STEP_PATH) == 1
        assert engine.bodies == [
            ("execute_step", "P1/S1", {"instruction": "Pull yesterday's orders", "configuration": {}, "apiKey": "sk-1"})
        ]
        assert [(n.type, n.message) for n in notifier.items] == [("success", "Step S1 accepted")]
        assert controller.active_step == 0

    @pytest.mark.asyncio
    async def test_nested_step_carries_its_path(self, controller, engine):
        outcome = await controller.execute_step(StepRef(("S3.then",), "S3a"))

        assert outcome.ok
        assert engine.count("POST", "/execution-plans/P1/steps/S3a/execute") == 1
        _, _, body = engine.bodies[0]
        assert body["flowPath"] == ["S3.then"]
        assert body["instruction"] == "Send the report"

    @pytest.mark.asyncio
    async def test_unknown_step_is_blocked(self, controller, engine, notifier):
        outcome = await controller.execute_step("S9")

        assert not outcome.ok
        assert "No step S9" in outcome.message
        assert engine.bodies == []

    @pytest.mark.asyncio
    async def test_engine_rejection(self, controller, engine, notifier):
        engine.fail(STEP_PATH, 200, {"success": False, "message": "Agent A1 is busy"})
        controller.edit("S1", "instruction", "go")

        outcome = await controller.execute_step()

        assert not outcome.ok
        assert outcome.error == "Rejected"
        assert [(n.type, n.message) for n in notifier.items] == [("error", "Agent A1 is busy")]

    @pytest.mark.asyncio
    async def test_server_error_is_notified_once(self, controller, engine, notifier):
        engine.fail(STEP_PATH, 503, {"message": "backend down"})
        controller.edit("S1", "instruction", "go")

        outcome = await controller.execute_step()

        assert not outcome.ok
        assert outcome.error == "ServerError"
        assert [(n.type, n.message) for n in notifier.items] == [("error", SERVER_ERROR_MESSAGE)]
        assert controller.active_step == 0


class TestExecuteFlow:
    @pytest.mark.asyncio
    async def test_execute_flow_needs_no_step_input(self, controller, engine, notifier):
        outcome = await controller.execute_flow()

        assert outcome.ok
        assert engine.count("POST", "/execution-plans/P1/execute") == 1
        assert notifier.items[-1].type == "success"


class TestRender:
    def test_header_and_agents(self, controller):
        text = controller.render()

        assert text.splitlines()[0] == "Data Pipeline"
        assert "Type: sequential | 4 Steps | 2 Agents" in text
        assert "Extractor [data, python] ID: A1" in text

    def test_loop_shows_its_bound(self, controller):
        controller.go_to(3)

        text = controller.render()

        assert "Bound: max 5 iterations" in text
        assert "Body:" in text
        assert "(S4.body/B1) [sequential]" in text

    def test_labels_show_addresses_the_step_command_accepts(self, controller):
        controller.go_to(2)

        text = controller.render()

        assert "1. Extract (S1) [sequential] agent=A1" in text
        assert "(S3.then/S3a) [task]" in text
        assert "Skip (S3.else/S3b) [task]" in text
        assert controller.step(StepRef.parse("S3.else/S3b")).name == "Skip"

    def test_conditional_shows_branches(self, controller):
        controller.go_to(2)

        text = controller.render()

        assert "If: rows > 0" in text
        assert "Then:" in text
        assert "Else:" in text
        assert "Human approval required" not in text

    def test_secrets_are_masked(self, controller):
        controller.edit("S1", "api_key", "sk-very-secret")
        controller.edit("S1", "client_secret", "hunter2")

        text = controller.render()

        assert "sk-very-secret" not in text
        assert "hunter2" not in text
        assert "API key: ********" in text

    def test_blocked_step_is_marked(self, controller):
        assert "Execute step: blocked (instruction required)" in controller.render()
        controller.edit("S1", "instruction", "go")
        assert "Execute step: ready" in controller.render()
