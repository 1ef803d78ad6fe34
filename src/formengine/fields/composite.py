"""
Composite fields: one answer spread over several storage keys.

    DatePartsField  dob  -> dob__day, dob__month, dob__year
    MonthYearField  exp  -> exp__month, exp__year
    UkAddressField  addr -> addr__addressLine1, addr__addressLine2,
                            addr__town, addr__postcode

The field name itself is never stored. Each part validates on its own key;
checks that need every part (a real date, a date window, a partially
answered optional field) run in `validate_composite`.
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from pydantic import AfterValidator, BeforeValidator, conint, constr

from .. import dates
from .base import FormComponent, annotated, blank_to_none, required_check


class CompositeField(FormComponent):
    """
    Base for multi-key fields.

    Properties:
        parts: (suffix, label, optional) triples in display order
    """

    parts: List[Tuple[str, str, bool]] = []

    def key(self, suffix: str) -> str:
        return f"{self.name}__{suffix}"

    @property
    def keys(self) -> List[str]:
        return [self.key(suffix) for suffix, _, _ in self.parts]

    def part_type(self, suffix: str) -> Any:
        return str

    def part_required(self, suffix: str) -> bool:
        for part_suffix, _, optional in self.parts:
            if part_suffix == suffix:
                return self.required and not optional
        return False

    def schema_keys(self):
        definitions = {}
        for suffix, _, _ in self.parts:
            validators: List[Any] = [BeforeValidator(blank_to_none)]
            if self.part_required(suffix):
                validators.append(AfterValidator(required_check))
            definitions[self.key(suffix)] = (annotated(Optional[self.part_type(suffix)], *validators), None)
        return definitions

    def label_for(self, key):
        for suffix, label, _ in self.parts:
            if self.key(suffix) == key:
                return label
        return self.title

    def part_values(self, source: Dict[str, Any]) -> Dict[str, Any]:
        return {suffix: blank_to_none(source.get(self.key(suffix))) for suffix, _, _ in self.parts}

    def get_form_value_from_state(self, state):
        values = self.part_values(state)
        if all(value is None for value in values.values()):
            return None
        return values

    def get_state_from_valid_form(self, payload):
        return {self.key(suffix): value for suffix, value in self.part_values(payload).items()}

    def get_form_data_from_state(self, state):
        return {self.key(suffix): value for suffix, value in self.part_values(state).items()}

    def missing_parts(self, payload: Dict[str, Any]) -> List[str]:
        """
        Keys left empty on an optional field that was partly answered.

        Required fields report missing parts through the per-key check.
        """
        if self.required:
            return []
        values = self.part_values(payload)
        if all(value is None for value in values.values()):
            return []
        return [
            self.key(suffix)
            for suffix, _, optional in self.parts
            if not optional and values[suffix] is None
        ]

    def validate_composite(self, payload):
        return [self.make_error(key, "parts_missing") for key in self.missing_parts(payload)]

    def get_view_model(self, payload, errors=None):
        view_model = super().get_view_model(payload, errors)
        error_keys = {error.name for error in errors or []}
        view_model["fieldset"] = {"legend": view_model["label"]}
        view_model["items"] = [
            {
                "label": label,
                "name": self.key(suffix),
                "id": self.key(suffix),
                "value": payload.get(self.key(suffix)),
                "error": self.key(suffix) in error_keys,
            }
            for suffix, label, _ in self.parts
        ]
        for error in errors or []:
            if error.name in self.keys and "errorMessage" not in view_model:
                view_model["errorMessage"] = {"text": error.text}
        return view_model


class DatePartsField(CompositeField):
    parts = [("day", "Day", False), ("month", "Month", False), ("year", "Year", False)]

    messages = {
        "required": "{title} must include a {lower_label}",
        "int_parsing": "{title} must be a real date",
        "int_type": "{title} must be a real date",
        "int_from_float": "{title} must be a real date",
        "greater_than_equal": "{title} must be a real date",
        "less_than_equal": "{title} must be a real date",
    }

    BOUNDS = {"day": (1, 31), "month": (1, 12), "year": (1000, 3000)}

    def part_type(self, suffix):
        low, high = self.BOUNDS[suffix]
        return conint(ge=low, le=high)

    def as_date(self, source: Dict[str, Any]):
        values = self.part_values(source)
        return dates.real_date(values["year"], values["month"], values["day"])

    def get_context_value_from_state(self, state):
        value = self.as_date(state)
        return value.isoformat() if value else None

    def get_display_string_from_state(self, state):
        value = self.as_date(state)
        return dates.format_display_date(value) if value else ""

    def validate_composite(self, payload):
        errors = super().validate_composite(payload)
        if errors:
            return errors

        values = self.part_values(payload)
        if all(value is None for value in values.values()):
            return []

        first_key = self.keys[0]
        value = self.as_date(payload)
        if value is None:
            return [self.make_error(first_key, "date_invalid")]

        today = dates.today()
        max_past = self.options.get("maxDaysInPast")
        if isinstance(max_past, int):
            limit = today - timedelta(days=max_past)
            if value < limit:
                return [self.make_error(first_key, "date_min", limit=dates.format_display_date(limit))]

        max_future = self.options.get("maxDaysInFuture")
        if isinstance(max_future, int):
            limit = today + timedelta(days=max_future)
            if value > limit:
                return [self.make_error(first_key, "date_max", limit=dates.format_display_date(limit))]

        return []


class MonthYearField(CompositeField):
    parts = [("month", "Month", False), ("year", "Year", False)]

    messages = {
        "required": "{title} must include a {lower_label}",
        "int_parsing": "{label} must be a number",
        "greater_than_equal": "{label} must be {ge} or higher",
        "less_than_equal": "{label} must be {le} or lower",
    }

    BOUNDS = {"month": (1, 12), "year": (1000, 3000)}

    def part_type(self, suffix):
        low, high = self.BOUNDS[suffix]
        return conint(ge=low, le=high)

    def valid_parts(self, source: Dict[str, Any]) -> Optional[Tuple[int, int]]:
        values = self.part_values(source)
        try:
            month, year = int(values["month"]), int(values["year"])
        except (TypeError, ValueError):
            return None
        if not 1 <= month <= 12 or not 1000 <= year <= 9999:
            return None
        return month, year

    def get_context_value_from_state(self, state):
        parts = self.valid_parts(state)
        if parts is None:
            return None
        month, year = parts
        return f"{year:04d}-{month:02d}"

    def get_display_string_from_state(self, state):
        values = self.part_values(state)
        if all(value is None for value in values.values()):
            return ""
        parts = self.valid_parts(state)
        if parts is not None:
            return dates.format_month_year(*parts)

        month = values["month"]
        year = values["year"]
        month_text = "Not supplied"
        if isinstance(month, int) and 1 <= month <= 12:
            month_text = dates.MONTH_NAMES[month - 1]
        year_text = str(year) if year is not None else "Not supplied"
        return f"{month_text} {year_text}"


class UkAddressField(CompositeField):
    parts = [
        ("addressLine1", "Address line 1", False),
        ("addressLine2", "Address line 2", True),
        ("town", "Town or city", False),
        ("postcode", "Postcode", False),
    ]

    LENGTHS = {"addressLine1": 100, "addressLine2": 100, "town": 100, "postcode": 10}

    def part_type(self, suffix):
        return constr(max_length=self.LENGTHS[suffix])

    def lines(self, source: Dict[str, Any]) -> List[str]:
        return [value for value in self.part_values(source).values() if isinstance(value, str) and value]

    def get_context_value_from_state(self, state):
        return self.lines(state) or None

    def get_display_string_from_state(self, state):
        return ", ".join(self.lines(state))
