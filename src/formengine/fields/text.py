"""Single-key free entry fields: text, multiline text, email, telephone, number."""

from decimal import Decimal
from typing import Any, List, Optional

from pydantic import AfterValidator, BeforeValidator, confloat, constr

from .base import FormComponent, annotated, blank_to_none, custom_error, required_check

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
TELEPHONE_PATTERN = r"^[0-9\\\s+()-]*$"


class TextField(FormComponent):
    empty_value = ""

    pattern: Optional[str] = None

    def string_constraint(self) -> Any:
        schema = self.schema
        kwargs = {}
        if isinstance(schema.get("length"), int):
            kwargs["min_length"] = kwargs["max_length"] = schema["length"]
        else:
            if isinstance(schema.get("min"), int):
                kwargs["min_length"] = schema["min"]
            if isinstance(schema.get("max"), int):
                kwargs["max_length"] = schema["max"]
        pattern = schema.get("regex") or self.pattern
        if pattern:
            kwargs["pattern"] = pattern
        return constr(**kwargs) if kwargs else str

    def extra_validators(self) -> List[Any]:
        return []

    def annotation(self):
        validators: List[Any] = [BeforeValidator(blank_to_none)]
        if self.required:
            validators.append(AfterValidator(required_check))
        validators.extend(self.extra_validators())
        return annotated(Optional[self.string_constraint()], *validators)

    def is_value(self, value):
        return isinstance(value, str)

    def get_view_model(self, payload, errors=None):
        view_model = super().get_view_model(payload, errors)
        if self.pattern is EMAIL_PATTERN:
            view_model["type"] = "email"
            view_model["autocomplete"] = "email"
        elif self.pattern is TELEPHONE_PATTERN:
            view_model["type"] = "tel"
            view_model["autocomplete"] = "tel"
        return view_model


class EmailAddressField(TextField):
    pattern = EMAIL_PATTERN
    messages = {"string_pattern_mismatch": "Enter {lower_label} in the correct format"}


class TelephoneNumberField(TextField):
    pattern = TELEPHONE_PATTERN
    messages = {"string_pattern_mismatch": "Enter {lower_label} in the correct format"}


class MultilineTextField(TextField):
    def extra_validators(self):
        max_words = self.schema.get("maxWords")
        if not isinstance(max_words, int):
            return []

        def check_words(value):
            if value is not None and len(value.split()) > max_words:
                raise custom_error("max_words", limit=max_words)
            return value

        return [AfterValidator(check_words)]

    def get_view_model(self, payload, errors=None):
        view_model = super().get_view_model(payload, errors)
        view_model["rows"] = self.options.get("rows", 5)
        if isinstance(self.schema.get("maxWords"), int):
            view_model["maxwords"] = self.schema["maxWords"]
        elif isinstance(self.schema.get("max"), int):
            view_model["maxlength"] = self.schema["max"]
        return view_model


class NumberField(FormComponent):
    def annotation(self):
        schema = self.schema
        kwargs = {}
        if isinstance(schema.get("min"), (int, float)):
            kwargs["ge"] = schema["min"]
        if isinstance(schema.get("max"), (int, float)):
            kwargs["le"] = schema["max"]
        number = confloat(allow_inf_nan=False, **kwargs)

        validators: List[Any] = [BeforeValidator(blank_to_none)]
        if self.required:
            validators.append(AfterValidator(required_check))

        precision = schema.get("precision")
        if isinstance(precision, int):

            def check_precision(value):
                if value is not None and -Decimal(str(value)).normalize().as_tuple().exponent > precision:
                    raise custom_error("number_precision", limit=precision)
                return value

            validators.append(AfterValidator(check_precision))

        validators.append(AfterValidator(whole_numbers_as_int))
        return annotated(Optional[number], *validators)

    def is_value(self, value):
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    def get_view_model(self, payload, errors=None):
        view_model = super().get_view_model(payload, errors)
        view_model["type"] = "number"
        if self.options.get("prefix"):
            view_model["prefix"] = {"text": self.options["prefix"]}
        if self.options.get("suffix"):
            view_model["suffix"] = {"text": self.options["suffix"]}
        precision = self.schema.get("precision")
        if isinstance(precision, int) and precision > 0:
            view_model["attributes"]["step"] = "0." + "1".rjust(precision, "0")
        return view_model


def whole_numbers_as_int(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
