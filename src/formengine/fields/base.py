"""
Field contract shared by every component type.

A component converts between four shapes of the same answer:

    stored state  --get_form_data_from_state-->  payload (re-populates a page)
    payload       --get_state_from_valid_form--> state patch (after validation)
    stored state  --get_context_value_from_state--> value seen by conditions
    stored state  --get_display_string_from_state--> text for summaries

and contributes pydantic field definitions (one per storage key) to the
page's validation model.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Tuple

from pydantic import AfterValidator, BeforeValidator
from pydantic_core import PydanticCustomError

from ..errors import FormSubmissionError
from ..model import ComponentDef

OPTIONAL_TEXT = " (optional)"


class FieldType(Enum):
    """Registry tag: one value per component class."""

    TEXT = "TextField"
    MULTILINE_TEXT = "MultilineTextField"
    EMAIL_ADDRESS = "EmailAddressField"
    TELEPHONE_NUMBER = "TelephoneNumberField"
    NUMBER = "NumberField"
    YES_NO = "YesNoField"
    RADIOS = "RadiosField"
    SELECT = "SelectField"
    AUTOCOMPLETE = "AutocompleteField"
    CHECKBOXES = "CheckboxesField"
    DATE_PARTS = "DatePartsField"
    MONTH_YEAR = "MonthYearField"
    UK_ADDRESS = "UkAddressField"
    FILE_UPLOAD = "FileUploadField"
    HTML = "Html"
    PARA = "Para"
    INSET_TEXT = "InsetText"
    DETAILS = "Details"
    MARKDOWN = "Markdown"


# Message templates keyed by error type. Placeholders:
#   {label} / {lower_label}  field (or part) label
#   {title}                  owning field title, for composite parts
#   anything in the error context (max_length, ge, limit ...)
MESSAGES: Dict[str, str] = {
    "required": "Enter {lower_label}",
    "missing": "Enter {lower_label}",
    "string_type": "Enter {lower_label}",
    "string_too_short": "{label} must be {min_length} characters or more",
    "string_too_long": "{label} must be {max_length} characters or less",
    "string_pattern_mismatch": "Enter a valid {lower_label}",
    "max_words": "{label} must be {limit} words or fewer",
    "float_parsing": "{label} must be a number",
    "float_type": "{label} must be a number",
    "finite_number": "{label} must be a number",
    "int_parsing": "{label} must be a number",
    "int_type": "{label} must be a number",
    "int_from_float": "{label} must be a whole number",
    "number_precision": "{label} must have {limit} or fewer decimal places",
    "greater_than_equal": "{label} must be {ge} or higher",
    "less_than_equal": "{label} must be {le} or lower",
    "literal_error": "Select {lower_label}",
    "list_type": "Select {lower_label}",
    "too_short": "{label} must have at least {min_length} items",
    "too_long": "{label} must have no more than {max_length} items",
    "parts_missing": "{title} must include a {lower_label}",
    "date_invalid": "{title} must be a real date",
    "date_min": "{title} must be the same as or after {limit}",
    "date_max": "{title} must be the same as or before {limit}",
}


class _Blank(dict):
    def __missing__(self, key):
        return ""


def lower_first(text: str) -> str:
    return text[:1].lower() + text[1:]


def upper_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def custom_error(error_type: str, **context: Any) -> PydanticCustomError:
    return PydanticCustomError(error_type, error_type, context)


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, (list, tuple)) and not value:
        return None
    return value


def required_check(value: Any) -> Any:
    if value is None:
        raise custom_error("required")
    return value


def annotated(base: Any, *metadata: Any) -> Any:
    """Annotated[base, *metadata] for a runtime-built metadata list."""
    if not metadata:
        return base
    return Annotated[(base, *metadata)]


class ComponentBase:
    """
    Any component on a page, form field or content.

    Properties:
        definition: The ComponentDef this was built from
        type: FieldType tag
        name, title, hint, options, schema: copied from the definition
        form: The owning FormModel (used to resolve lists); may be None
    """

    is_form_component = False

    def __init__(self, definition: ComponentDef, form: Any = None):
        self.definition = definition
        self.type = FieldType(definition.type)
        self.name = definition.name
        self.title = definition.title
        self.hint = definition.hint
        self.options = dict(definition.options)
        self.schema = dict(definition.schema)
        self.form = form

    @property
    def condition(self) -> Optional[str]:
        return self.options.get("condition")

    def get_view_model(self, payload: Dict[str, Any], errors: Optional[List[FormSubmissionError]] = None) -> Dict[str, Any]:
        return {"attributes": {}}


class ContentComponent(ComponentBase):
    """Html, Para, InsetText, Markdown and Details. Never stored."""

    def get_view_model(self, payload, errors=None):
        view_model = super().get_view_model(payload, errors)
        view_model["content"] = self.definition.content
        if self.condition:
            view_model["condition"] = self.condition
        if self.type is FieldType.DETAILS:
            view_model["summaryHtml"] = self.title
            view_model["html"] = self.definition.content
        return view_model


class FormComponent(ComponentBase):
    """
    A component that stores an answer under its own name.

    Subclasses override `annotation()` for validation and the state
    conversions where the stored shape differs from the payload shape.
    """

    is_form_component = True

    # Context value for an optional field nobody answered
    empty_value: Any = None

    # Error type -> template overrides for this field type
    messages: Dict[str, str] = {}

    @property
    def keys(self) -> List[str]:
        return [self.name]

    @property
    def required(self) -> bool:
        return self.options.get("required") is not False

    def annotation(self) -> Any:
        validators: List[Any] = [BeforeValidator(blank_to_none)]
        if self.required:
            validators.append(AfterValidator(required_check))
        return annotated(Optional[str], *validators)

    def schema_keys(self) -> Dict[str, Tuple[Any, Any]]:
        return {self.name: (self.annotation(), None)}

    def is_value(self, value: Any) -> bool:
        return value is not None

    def get_form_value_from_state(self, state: Dict[str, Any]) -> Any:
        value = state.get(self.name)
        return value if self.is_value(value) else None

    def get_context_value_from_state(self, state: Dict[str, Any]) -> Any:
        value = self.get_form_value_from_state(state)
        if value is None and not self.required:
            return self.empty_value
        return value

    def get_state_value_from_valid_form(self, payload: Dict[str, Any]) -> Any:
        value = payload.get(self.name)
        if value is None or value == "" or value == []:
            return None
        return value

    def get_state_from_valid_form(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {self.name: self.get_state_value_from_valid_form(payload)}

    def get_form_data_from_state(self, state: Dict[str, Any]) -> Dict[str, Any]:
        return {self.name: self.get_form_value_from_state(state)}

    def get_display_string_from_state(self, state: Dict[str, Any]) -> str:
        value = self.get_form_value_from_state(state)
        return "" if value is None else str(value)

    def validate_composite(self, payload: Dict[str, Any]) -> List[FormSubmissionError]:
        """Checks spanning more than one storage key. Runs after key validation."""
        return []

    def label_for(self, key: str) -> str:
        return self.title

    def error_message(self, key: str, error_type: str, context: Optional[Dict[str, Any]] = None) -> str:
        custom = self.options.get("customValidationMessage")
        if custom:
            return custom

        template = self.messages.get(error_type) or MESSAGES.get(error_type, "{label} is not valid")
        label = self.label_for(key)
        values = _Blank(context or {})
        values.update(label=upper_first(label), lower_label=lower_first(label), title=upper_first(self.title))
        return template.format_map(values)

    def make_error(self, key: str, error_type: str, **context: Any) -> FormSubmissionError:
        return FormSubmissionError(
            name=key,
            href=f"#{key}",
            text=self.error_message(key, error_type, context),
            path=[key],
            context={"key": key, "type": error_type, **context},
        )

    def get_view_model(self, payload, errors=None):
        view_model = super().get_view_model(payload, errors)

        label = self.title
        if not self.required and not self.options.get("optionalText"):
            label = f"{label}{OPTIONAL_TEXT}"

        if self.hint:
            view_model["hint"] = {"html": self.hint}
        if "classes" in self.options:
            view_model["classes"] = self.options["classes"]
        if self.condition:
            view_model["condition"] = self.condition

        for error in errors or []:
            if error.name == self.name:
                view_model["errorMessage"] = {"text": error.text}

        view_model.update(
            label={"text": label},
            id=self.name,
            name=self.name,
            value=payload.get(self.name),
        )
        return view_model
