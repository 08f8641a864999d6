from __future__ import annotations

from typing import Any

import pydantic
from pydantic.alias_generators import to_camel

from nebula_console.core.contracts.console import StepInput
from nebula_console.core.exceptions import OperatorInputError
from nebula_console.schema.addressing import StepRef

# accept both attribute names and wire names ("api_key" / "apiKey")
_FIELDS = {name: name for name in StepInput.model_fields} | {to_camel(name): name for name in StepInput.model_fields}


class StepInputStore:
    """Per-step operator input, keyed by step address. One store per selected plan.

    ``get`` never returns None; an untouched step reads as an empty StepInput.
    ``set`` merges one field into the existing value. Writes to the same step
    are applied in call order, last write wins.
    """

    def __init__(self) -> None:
        self._inputs: dict[StepRef, StepInput] = {}
        self._edited: dict[StepRef, set[str]] = {}

    def get(self, ref: StepRef | str) -> StepInput:
        return self._inputs.get(StepRef.coerce(ref)) or StepInput()

    def has(self, ref: StepRef | str) -> bool:
        return StepRef.coerce(ref) in self._inputs

    def edited(self, ref: StepRef | str, field: str) -> bool:
        """Whether the operator has written ``field`` for this step, even an empty value."""
        return _FIELDS.get(field, field) in self._edited.get(StepRef.coerce(ref), ())

    def set(self, ref: StepRef | str, field: str, value: Any) -> StepInput:
        ref = StepRef.coerce(ref)
        name = _FIELDS.get(field)
        if name is None:
            raise OperatorInputError(f"Unknown step input field: {field}")
        current = self.get(ref)
        try:
            updated = StepInput.model_validate({**current.model_dump(), name: value})
        except pydantic.ValidationError as e:
            raise OperatorInputError(f"Invalid value for {field}: {e.errors()[0]['msg']}") from e
        self._inputs[ref] = updated
        self._edited.setdefault(ref, set()).add(name)
        return updated

    def clear(self) -> None:
        self._inputs.clear()
        self._edited.clear()

    def __len__(self) -> int:
        return len(self._inputs)
