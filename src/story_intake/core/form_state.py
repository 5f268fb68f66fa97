"""Field registration, values and per-field validation errors."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import Literal

from story_intake.domain.models import (
    CATEGORY,
    DESCRIPTION,
    PRIORITY,
    PRODUCT,
    SOURCE_CODE_LINK,
    TITLE,
    FormValues,
)

logger = logging.getLogger(__name__)

ErrorKind = Literal["required", "invalid_choice"]
ValueListener = Callable[[str | None], None]


def is_missing(value: str | None) -> bool:
    return value is None or value == ""


@dataclass(frozen=True)
class FieldConstraints:
    """Validation rules for one field.

    An empty `choices` tuple means any value is accepted.
    """

    required: bool = True
    choices: tuple[str, ...] = ()

    def check(self, value: str | None) -> ErrorKind | None:
        if is_missing(value):
            return "required" if self.required else None
        if self.choices and value not in self.choices:
            return "invalid_choice"
        return None


class FormState:
    """Holds form values and errors.

    Any registered source may write a field: ordinary inputs and external
    widget adapters both go through `set_value`.
    """

    def __init__(self) -> None:
        self._constraints: dict[str, FieldConstraints] = {}
        self._values: dict[str, str | None] = {}
        self._errors: dict[str, ErrorKind] = {}
        self._listeners: dict[str, list[ValueListener]] = {}

    def register_field(
        self,
        name: str,
        *,
        required: bool = True,
        choices: Iterable[str] | None = None,
    ) -> None:
        self._constraints[name] = FieldConstraints(
            required=required, choices=tuple(choices or ())
        )
        self._values.setdefault(name, None)

    def is_registered(self, name: str) -> bool:
        return name in self._constraints

    def set_choices(self, name: str, choices: Iterable[str]) -> None:
        self._constraints[name] = replace(self._require(name), choices=tuple(choices))

    def set_value(self, name: str, value: str | None) -> None:
        self._require(name)
        self._values[name] = value
        if not is_missing(value):
            self._errors.pop(name, None)
        for listener in list(self._listeners.get(name, ())):
            listener(value)

    def watch(self, name: str, default: str | None = None) -> str | None:
        value = self._values.get(name)
        return default if value is None else value

    def subscribe(self, name: str, listener: ValueListener) -> None:
        self._require(name)
        self._listeners.setdefault(name, []).append(listener)

    def validate_on_submit(self) -> frozenset[str]:
        """Re-evaluate every registered field and replace the error mapping."""
        errors: dict[str, ErrorKind] = {}
        for name, constraints in self._constraints.items():
            kind = constraints.check(self._values.get(name))
            if kind is not None:
                errors[name] = kind
        self._errors = errors
        if errors:
            logger.info("form.invalid fields=%s", sorted(errors))
        return frozenset(errors)

    @property
    def errors(self) -> dict[str, ErrorKind]:
        return dict(self._errors)

    def values(self) -> dict[str, str | None]:
        return dict(self._values)

    def snapshot(self) -> FormValues:
        return FormValues.from_mapping(self._values)

    def _require(self, name: str) -> FieldConstraints:
        try:
            return self._constraints[name]
        except KeyError:
            raise KeyError(f"Field is not registered: {name}") from None


def new_story_form() -> FormState:
    """Form for the new-story page.

    `description` is registered up front with no constraint of its own; its
    value only ever arrives through the rich-text adapter and the submission
    controller owns its required check.
    """
    form = FormState()
    form.register_field(DESCRIPTION, required=False)
    for name in (TITLE, SOURCE_CODE_LINK, CATEGORY, PRIORITY, PRODUCT):
        form.register_field(name)
    return form


class RichTextAdapter:
    """Bridges the rich-text editor's change callback into the form."""

    def __init__(
        self,
        form: FormState,
        *,
        field_name: str = DESCRIPTION,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        if not form.is_registered(field_name):
            form.register_field(field_name, required=False)
        self._form = form
        self._field_name = field_name
        self._on_change = on_change

    def on_change(self, data: str) -> None:
        self._form.set_value(self._field_name, data)
        if self._on_change is not None:
            self._on_change()
