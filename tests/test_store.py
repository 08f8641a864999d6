import pytest

from nebula_console.core.contracts import StepInput
from nebula_console.core.exceptions import OperatorInputError
from nebula_console.flow import StepInputStore
from nebula_console.schema import StepRef


def test_untouched_step_reads_as_empty_input():
    store = StepInputStore()

    assert store.get("S1") == StepInput()
    assert not store.has("S1")
    assert len(store) == 0


def test_set_merges_fields_and_last_write_wins():
    store = StepInputStore()
    store.set("S1", "instruction", "first")
    store.set("S1", "configuration", {"limit": 5})
    store.set("S1", "instruction", "second")

    value = store.get("S1")
    assert value.instruction == "second"
    assert value.configuration == {"limit": 5}


def test_wire_and_attribute_field_names_are_equivalent():
    store = StepInputStore()
    store.set("S1", "apiKey", "k1")
    store.set("S1", "external_api_url", "https://api.example.com")

    payload = store.get("S1").to_payload()
    assert payload["apiKey"] == "k1"
    assert payload["externalApiUrl"] == "https://api.example.com"
    assert "clientSecret" not in payload


def test_same_id_in_different_scopes_is_kept_apart():
    store = StepInputStore()
    store.set(StepRef((), "S1"), "instruction", "top")
    store.set(StepRef(("S4.body",), "S1"), "instruction", "nested")

    assert store.get("S1").instruction == "top"
    assert store.get(StepRef(("S4.body",), "S1")).instruction == "nested"


def test_unknown_field_is_rejected():
    store = StepInputStore()
    with pytest.raises(OperatorInputError, match="Unknown step input field"):
        store.set("S1", "password", "x")
    assert not store.has("S1")


def test_invalid_value_is_rejected_and_previous_value_kept():
    store = StepInputStore()
    store.set("S1", "configuration", {"a": 1})

    with pytest.raises(OperatorInputError, match="Invalid value for configuration"):
        store.set("S1", "configuration", "not an object")

    assert store.get("S1").configuration == {"a": 1}


def test_secrets_are_not_in_repr():
    store = StepInputStore()
    value = store.set("S1", "client_secret", "hunter2")
    assert "hunter2" not in repr(value)


def test_clear():
    store = StepInputStore()
    store.set("S1", "instruction", "x")
    store.clear()
    assert len(store) == 0
    assert store.get("S1").instruction == ""


def test_edited_tracks_fields_written_even_when_empty():
    store = StepInputStore()
    store.set("S1", "instruction", "x")

    assert not store.edited("S1", "configuration")
    store.set("S1", "configuration", {})
    assert store.edited("S1", "configuration")
    assert store.edited("S1", "instruction")

    store.clear()
    assert not store.edited("S1", "instruction")
