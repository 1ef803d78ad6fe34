"""
Condition Evaluator

Compiles ConditionDefs into ExecutableConditions over an evaluation state.

Two entry points per condition:

    evaluate(state) -> EvalResult   value or error, nothing raised
    fn(state)       -> bool         errors become False (logged at debug)

Routing uses `fn`: a condition that cannot be decided (missing answer,
wrong type, unknown reference) never sends the user down its branch.

ARCHITECTURAL RULE:
    Relative dates resolve against `dates.today()` on every evaluation,
    never when the condition is compiled.
"""

import logging
import operator as op
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

from . import dates
from .errors import ConditionEvaluationError
from .expressions import (
    ConditionDef,
    ConditionNode,
    ConditionRef,
    Coordinator,
    DateDirection,
    Operator,
    RelativeDate,
)

logger = logging.getLogger(__name__)

BOOLEAN_STRINGS = {"true": True, "yes": True, "false": False, "no": False}

# (operator, direction) -> comparison of the field date with today +/- period
RELATIVE_COMPARISONS: Dict[Any, Callable[[Any, Any], bool]] = {
    (Operator.IS_AT_LEAST, DateDirection.PAST): op.le,
    (Operator.IS_AT_LEAST, DateDirection.FUTURE): op.ge,
    (Operator.IS_AT_MOST, DateDirection.PAST): op.ge,
    (Operator.IS_AT_MOST, DateDirection.FUTURE): op.le,
    (Operator.IS_LESS_THAN, DateDirection.PAST): op.gt,
    (Operator.IS_LESS_THAN, DateDirection.FUTURE): op.lt,
    (Operator.IS_MORE_THAN, DateDirection.PAST): op.lt,
    (Operator.IS_MORE_THAN, DateDirection.FUTURE): op.gt,
}

ORDERINGS: Dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.IS: op.eq,
    Operator.IS_NOT: op.ne,
    Operator.IS_MORE_THAN: op.gt,
    Operator.IS_LESS_THAN: op.lt,
    Operator.IS_AT_LEAST: op.ge,
    Operator.IS_AT_MOST: op.le,
    Operator.IS_BEFORE: op.lt,
    Operator.IS_AFTER: op.gt,
}

LENGTHS: Dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.IS_LONGER_THAN: op.gt,
    Operator.IS_SHORTER_THAN: op.lt,
    Operator.HAS_LENGTH: op.eq,
}


@dataclass(frozen=True)
class EvalResult:
    """
    Outcome of evaluating a condition or node.

    Exactly one of value / error is meaningful.
    """

    value: Optional[bool] = None
    error: Optional[ConditionEvaluationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: bool) -> bool:
        return bool(self.value) if self.ok else default


def failure(message: str) -> EvalResult:
    return EvalResult(error=ConditionEvaluationError(message))


def get_field_value(state: Dict[str, Any], path: str) -> Any:
    """
    Look up `path` in state.

    "section.field" follows the dot. A bare "field" that is not at the top
    level also matches a key nested one level down under a section.
    """
    if path in state:
        return state[path]
    if "." not in path:
        for value in state.values():
            if isinstance(value, dict) and path in value:
                return value[path]
        return None
    current: Any = state
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def coerce_literal(value: Any, actual: Any) -> Any:
    """Interpret a condition literal using the type of the answer."""
    if isinstance(actual, bool):
        if isinstance(value, str):
            return BOOLEAN_STRINGS.get(value.strip().lower(), value)
        return value
    if is_number(actual):
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError:
                return value
        return value
    if isinstance(actual, str) and is_number(value):
        return str(value)
    return value


def resolve_relative(value: RelativeDate):
    period = -value.period if value.direction is DateDirection.PAST else value.period
    return dates.shift(dates.today(), period, value.unit.value)


def compare(actual: Any, operator: Operator, value: Any) -> EvalResult:
    """Apply one operator to an answer and a literal."""
    if isinstance(value, RelativeDate):
        actual_date = dates.parse_iso_date(actual)
        if actual_date is None:
            return failure(f"{actual!r} is not a date")
        target = resolve_relative(value)
        comparison = RELATIVE_COMPARISONS.get((operator, value.direction)) or ORDERINGS.get(operator)
        if comparison is None:
            return failure(f"Operator {operator.value!r} cannot compare dates")
        return EvalResult(value=comparison(actual_date, target))

    if operator in (Operator.IS, Operator.IS_NOT):
        expected = coerce_literal(value, actual)
        if isinstance(actual, str) and isinstance(expected, str):
            actual_date, expected_date = dates.parse_iso_date(actual), dates.parse_iso_date(expected)
            if actual_date and expected_date and len(actual) == len(expected) == 10:
                return EvalResult(value=ORDERINGS[operator](actual_date, expected_date))
        return EvalResult(value=ORDERINGS[operator](actual, expected))

    if operator in (Operator.CONTAINS, Operator.DOES_NOT_CONTAIN):
        if actual is None:
            return failure(f"Cannot apply {operator.value!r} to a missing answer")
        if isinstance(actual, (list, tuple)):
            found = any(item == coerce_literal(value, item) for item in actual)
        elif isinstance(actual, str):
            found = str(value) in actual
        else:
            return failure(f"Cannot apply {operator.value!r} to {type(actual).__name__}")
        return EvalResult(value=found if operator is Operator.CONTAINS else not found)

    if operator in LENGTHS:
        if not isinstance(actual, (str, list, tuple)):
            return failure(f"Cannot measure the length of {actual!r}")
        try:
            limit = int(value)
        except (TypeError, ValueError):
            return failure(f"Length {value!r} is not a number")
        return EvalResult(value=LENGTHS[operator](len(actual), limit))

    if actual is None:
        return failure(f"Cannot apply {operator.value!r} to a missing answer")

    if operator in (Operator.IS_BEFORE, Operator.IS_AFTER):
        actual_date, expected_date = dates.parse_iso_date(actual), dates.parse_iso_date(value)
        if actual_date is None or expected_date is None:
            return failure(f"Cannot compare {actual!r} and {value!r} as dates")
        return EvalResult(value=ORDERINGS[operator](actual_date, expected_date))

    if is_number(actual):
        expected = coerce_literal(value, actual)
        if not is_number(expected):
            return failure(f"{value!r} is not a number")
        return EvalResult(value=ORDERINGS[operator](actual, expected))

    actual_date, expected_date = dates.parse_iso_date(actual), dates.parse_iso_date(value)
    if actual_date is not None and expected_date is not None:
        return EvalResult(value=ORDERINGS[operator](actual_date, expected_date))

    return failure(f"Cannot apply {operator.value!r} to {actual!r}")


class ExecutableCondition:
    """
    A compiled, named condition.

    Properties:
        name: Condition name
        display_name: Human readable description
        definition: The ConditionDef it was compiled from
    """

    def __init__(self, definition: ConditionDef, lookup: Callable[[str], Optional["ExecutableCondition"]]):
        self.definition = definition
        self.name = definition.name
        self.display_name = definition.display_name
        self._lookup = lookup

    def __repr__(self):
        return f"ExecutableCondition({self.name!r})"

    def evaluate(self, state: Dict[str, Any], _seen: Iterable[str] = ()) -> EvalResult:
        seen = set(_seen)
        if self.name in seen:
            return failure(f"Condition {self.name!r} references itself")
        seen.add(self.name)

        if not self.definition.nodes:
            return failure(f"Condition {self.name!r} has no nodes")

        result: Optional[bool] = None
        for index, node in enumerate(self.definition.nodes):
            outcome = self._evaluate_node(node, state, seen)
            if not outcome.ok:
                return outcome
            if index == 0:
                result = outcome.value
            elif node.coordinator is Coordinator.OR:
                result = bool(result or outcome.value)
            else:
                result = bool(result and outcome.value)

        return EvalResult(value=bool(result))

    def _evaluate_node(self, node: Any, state: Dict[str, Any], seen) -> EvalResult:
        if isinstance(node, ConditionRef):
            referenced = self._lookup(node.condition_name)
            if referenced is None:
                return failure(f"Unknown condition {node.condition_name!r}")
            return referenced.evaluate(state, seen)

        if isinstance(node, ConditionNode):
            return compare(get_field_value(state, node.field), node.operator, node.value)

        return failure(f"Unsupported condition node {node!r}")

    def fn(self, state: Dict[str, Any]) -> bool:
        result = self.evaluate(state)
        if not result.ok:
            logger.debug("Condition %s evaluated as false: %s", self.name, result.error)
            return False
        return bool(result.value)


def compile_conditions(definitions: Iterable[ConditionDef]) -> Dict[str, ExecutableCondition]:
    """Compile every condition; references resolve by name within the result."""
    compiled: Dict[str, ExecutableCondition] = {}
    for definition in definitions:
        compiled[definition.name] = ExecutableCondition(definition, compiled.get)
    return compiled


def compile_condition(
    definition: ConditionDef,
    conditions: Optional[Dict[str, ExecutableCondition]] = None,
) -> ExecutableCondition:
    lookup = (conditions or {}).get
    return ExecutableCondition(definition, lookup)
