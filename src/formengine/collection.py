"""
Component Collection

Everything a page needs from its components as one unit:

    - one pydantic model covering every storage key on the page
    - key -> owning field lookup
    - ordered error reporting (declaration order, then part order)
    - view models in declaration order

ARCHITECTURAL RULE:
    Validation problems are returned, never raised. A payload is only
    written to state when `validate` returns no errors.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from .errors import FormSubmissionError
from .fields import ComponentBase, FormComponent, create_component
from .model import ComponentDef

logger = logging.getLogger(__name__)

ERROR_SUMMARY_TITLE = "There is a problem"


@dataclass
class ValidationResult:
    """
    Outcome of validating a payload.

    Properties:
        value: Cleaned payload (typed, blanks as None); the raw payload
               when there were errors
        errors: FormSubmissionErrors in display order
    """

    value: Dict[str, Any]
    errors: List[FormSubmissionError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class ComponentCollection:
    """
    The components of one page.

    Properties:
        components: Every component in declaration order
        fields: Only the form components
        key_owner: Storage key -> field that owns it
    """

    def __init__(self, definitions: Sequence[ComponentDef], form: Any = None):
        self.components: List[ComponentBase] = [create_component(d, form) for d in definitions]
        self.fields: List[FormComponent] = [c for c in self.components if c.is_form_component]
        self.key_owner: Dict[str, FormComponent] = {}
        for component in self.fields:
            for key in component.keys:
                self.key_owner[key] = component
        self._model = None

    @property
    def keys(self) -> List[str]:
        return [key for component in self.fields for key in component.keys]

    def get_field(self, name: str) -> Optional[FormComponent]:
        for component in self.fields:
            if component.name == name:
                return component
        return None

    @property
    def payload_model(self) -> type:
        if self._model is None:
            self._model = self.create_model()
        return self._model

    def create_model(self) -> type:
        # Python names are generated: storage keys may start with "_"
        # and would otherwise be treated as private attributes.
        definitions = {}
        index = 0
        for component in self.fields:
            for key, (annotation, default) in component.schema_keys().items():
                definitions[f"field_{index}"] = (annotation, Field(default=default, alias=key))
                index += 1

        config = ConfigDict(extra="ignore", validate_default=True, regex_engine="python-re")
        return create_model("PagePayload", __config__=config, **definitions)

    def validate(self, payload: Optional[Dict[str, Any]]) -> ValidationResult:
        payload = dict(payload or {})

        errors: List[FormSubmissionError] = []
        try:
            validated: BaseModel = self.payload_model.model_validate(payload)
            value = validated.model_dump(by_alias=True)
        except ValidationError as exc:
            value = {key: payload.get(key) for key in self.keys}
            for line in exc.errors():
                key = str(line["loc"][0]) if line["loc"] else ""
                owner = self.key_owner.get(key)
                if owner is None:
                    logger.debug("Validation error for unknown key %s: %s", key, line["msg"])
                    continue
                errors.append(owner.make_error(key, line["type"], **line.get("ctx", {})))

        failed = {error.name for error in errors}
        for component in self.fields:
            if not failed.intersection(component.keys):
                errors.extend(component.validate_composite(value))

        return ValidationResult(value=value, errors=self.sort_errors(errors))

    def sort_errors(self, errors: List[FormSubmissionError]) -> List[FormSubmissionError]:
        order = {key: position for position, key in enumerate(self.keys)}
        return sorted(errors, key=lambda error: order.get(error.name, len(order)))

    def get_state_from_valid_form(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        state: Dict[str, Any] = {}
        for component in self.fields:
            state.update(component.get_state_from_valid_form(payload))
        return state

    def get_form_data_from_state(self, state: Dict[str, Any]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for component in self.fields:
            payload.update(component.get_form_data_from_state(state))
        return payload

    def get_context_value_from_state(self, state: Dict[str, Any]) -> Dict[str, Any]:
        return {component.name: component.get_context_value_from_state(state) for component in self.fields}

    def get_view_model(
        self,
        payload: Dict[str, Any],
        errors: Optional[List[FormSubmissionError]] = None,
        is_shown: Optional[Callable[[ComponentBase], bool]] = None,
    ) -> List[Dict[str, Any]]:
        return [
            {
                "type": component.type.value,
                "isFormComponent": component.is_form_component,
                "model": component.get_view_model(payload, errors),
            }
            for component in self.components
            if is_shown is None or is_shown(component)
        ]

    @staticmethod
    def get_errors(errors: Optional[List[FormSubmissionError]]) -> Optional[Dict[str, Any]]:
        """Error summary for the rendering layer, or None when there are no errors."""
        if not errors:
            return None
        return {"title_text": ERROR_SUMMARY_TITLE, "error_list": [error.to_dict() for error in errors]}
