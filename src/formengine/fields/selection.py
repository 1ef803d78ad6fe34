"""
List-backed fields.

Values are checked against the list's item values after the raw payload
value is coerced to the list type ("true" -> True for boolean lists,
"3" -> 3 for number lists).
"""

from typing import Any, Callable, List, Literal, Optional

from pydantic import AfterValidator, BeforeValidator

from ..model import YES_NO_LIST, ListDef, ListItemDef
from .base import FormComponent, annotated, blank_to_none, required_check

BOOLEAN_STRINGS = {"true": True, "yes": True, "false": False, "no": False}


def coerce_list_value(value: Any, list_type: str) -> Any:
    if not isinstance(value, str):
        return value
    if list_type == "boolean":
        return BOOLEAN_STRINGS.get(value.lower(), value)
    if list_type == "number":
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            return value
    return value


class ListFormComponent(FormComponent):
    """
    Single choice from a list.

    The list is resolved through the owning form (`form.get_list`), so a
    component built without a form only knows the built-in yes/no list.
    """

    messages = {"required": "Select {lower_label}"}

    @property
    def list(self) -> Optional[ListDef]:
        if self.definition.list is None:
            return None
        if self.form is not None:
            return self.form.get_list(self.definition.list)
        if self.definition.list == YES_NO_LIST.name:
            return YES_NO_LIST
        return None

    @property
    def list_type(self) -> str:
        return self.list.type if self.list else "string"

    @property
    def items(self) -> List[ListItemDef]:
        return list(self.list.items) if self.list else []

    @property
    def values(self) -> List[Any]:
        return [item.value for item in self.items]

    def offered_items(self, is_true: Callable[[str], bool]) -> List[ListItemDef]:
        """Items whose condition (if any) currently holds."""
        return [item for item in self.items if not item.condition or is_true(item.condition)]

    def value_type(self) -> Any:
        values = self.values
        return Literal[tuple(values)] if values else str

    def coerce(self, value: Any) -> Any:
        return coerce_list_value(blank_to_none(value), self.list_type)

    def annotation(self):
        validators: List[Any] = [BeforeValidator(self.coerce)]
        if self.required:
            validators.append(AfterValidator(required_check))
        return annotated(Optional[self.value_type()], *validators)

    def is_value(self, value):
        return value in self.values

    def get_form_value_from_state(self, state):
        value = state.get(self.name)
        # Plain `in` would treat 1 and True as the same answer
        for item_value in self.values:
            if value == item_value and type(value) is type(item_value):
                return value
        return None

    def item_for(self, value: Any) -> Optional[ListItemDef]:
        for item in self.items:
            if item.value == value and type(item.value) is type(value):
                return item
        return None

    def get_display_string_from_state(self, state):
        value = self.get_form_value_from_state(state)
        item = self.item_for(value) if value is not None else None
        return item.text if item else ""

    def get_view_model(self, payload, errors=None):
        view_model = super().get_view_model(payload, errors)
        selected = payload.get(self.name)
        view_model["items"] = [
            {
                "text": item.text,
                "value": item.value,
                "hint": {"text": item.hint} if item.hint else None,
                "condition": item.condition,
                "selected": item.value == selected and type(item.value) is type(selected),
            }
            for item in self.items
        ]
        return view_model


class RadiosField(ListFormComponent):
    pass


class SelectField(ListFormComponent):
    pass


class AutocompleteField(SelectField):
    pass


class YesNoField(ListFormComponent):
    messages = {
        "required": "{label} - select yes or no",
        "literal_error": "{label} - select yes or no",
    }

    @property
    def list(self):
        return YES_NO_LIST


class CheckboxesField(ListFormComponent):
    """Multiple choice. Stored as a list of item values."""

    def coerce(self, value):
        value = blank_to_none(value)
        if value is None:
            return None
        if not isinstance(value, (list, tuple)):
            value = [value]
        return [coerce_list_value(v, self.list_type) for v in value if v not in (None, "")] or None

    def annotation(self):
        validators: List[Any] = [BeforeValidator(self.coerce)]
        if self.required:
            validators.append(AfterValidator(required_check))
        return annotated(Optional[List[self.value_type()]], *validators)

    def get_form_value_from_state(self, state):
        value = state.get(self.name)
        if not isinstance(value, list):
            return None
        kept = [v for v in value if self.item_for(v) is not None]
        return kept or None

    def get_context_value_from_state(self, state):
        value = self.get_form_value_from_state(state)
        if value is None and not self.required:
            return []
        return value

    def get_display_string_from_state(self, state):
        values = self.get_form_value_from_state(state) or []
        return ", ".join(self.item_for(v).text for v in values)

    def get_view_model(self, payload, errors=None):
        view_model = super().get_view_model(payload, errors)
        chosen = payload.get(self.name) or []
        for entry in view_model["items"]:
            entry.pop("selected")
            entry["checked"] = any(entry["value"] == v and type(entry["value"]) is type(v) for v in chosen)
        return view_model
