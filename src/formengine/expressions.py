"""
Condition Model

All routing decisions (link conditions, page conditions, conditional list
items and content) are expressed as named conditions built from nodes,
never as strings of code.

A condition is a flat list of nodes folded LEFT TO RIGHT:

    ukPassport is false  OR  age is less than 18  AND  hasGuardian is true

evaluates as ((ukPassport is false) OR (age < 18)) AND (hasGuardian is true).
There is no precedence and no grouping; the coordinator on the first node is
ignored.

ARCHITECTURAL RULE:
    This module is structure only.
    Evaluation belongs in `formengine.evaluator`.
"""

from abc import ABC
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class Operator(Enum):
    """
    Comparison operators.

    Keep this minimal. Every operator here must be meaningful for
    a question answer and must have one evaluation rule.
    """

    IS = "is"
    IS_NOT = "is not"
    CONTAINS = "contains"
    DOES_NOT_CONTAIN = "does not contain"
    IS_LONGER_THAN = "is longer than"
    IS_SHORTER_THAN = "is shorter than"
    HAS_LENGTH = "has length"
    IS_MORE_THAN = "is more than"
    IS_LESS_THAN = "is less than"
    IS_AT_LEAST = "is at least"
    IS_AT_MOST = "is at most"
    IS_BEFORE = "is before"
    IS_AFTER = "is after"


class Coordinator(Enum):
    """Joins a node to the result of the nodes before it."""

    AND = "and"
    OR = "or"


class DateUnit(Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"


class DateDirection(Enum):
    PAST = "in the past"
    FUTURE = "in the future"


@dataclass(frozen=True)
class RelativeDate:
    """
    A date offset resolved against today when the condition is evaluated.

    Example:
        RelativeDate(period=2, unit=DateUnit.YEARS, direction=DateDirection.PAST)
        means "2 years before today".

    IMPORTANT:
        Resolution happens at evaluation time, never at definition time,
        so a long-lived FormModel keeps giving correct answers.
    """

    period: int
    unit: DateUnit
    direction: DateDirection = DateDirection.PAST


Value = Union[str, int, float, bool, RelativeDate]


class ConditionItem(ABC):
    """
    Base class for the nodes of a condition.

    Exists to give the node hierarchy one type. Structure only.
    """

    coordinator: Optional[Coordinator]


@dataclass(frozen=True)
class ConditionNode(ConditionItem):
    """
    Compares one field's condition value with a value.

    Properties:
        field: Storage key of the field, optionally prefixed by its
               section name ("applicantDetails.numberOfApplicants")
        operator: Operator enum
        value: Literal or RelativeDate
        coordinator: How this node joins the nodes before it
    """

    field: str
    operator: Operator
    value: Value
    coordinator: Optional[Coordinator] = None


@dataclass(frozen=True)
class ConditionRef(ConditionItem):
    """
    Embeds another named condition as a single node.

    Properties:
        condition_name: Name of the referenced condition
        coordinator: How this node joins the nodes before it
    """

    condition_name: str
    coordinator: Optional[Coordinator] = None


@dataclass(frozen=True)
class ConditionDef:
    """
    A named condition.

    Properties:
        name: Identifier referenced by links, pages, list items and content
        display_name: Human readable description
        nodes: Nodes folded left to right
    """

    name: str
    display_name: str = ""
    nodes: List[ConditionItem] = field(default_factory=list)

    def field_references(self) -> List[str]:
        """Field keys referenced directly by this condition's nodes."""
        return [node.field for node in self.nodes if isinstance(node, ConditionNode)]

    def condition_references(self) -> List[str]:
        return [node.condition_name for node in self.nodes if isinstance(node, ConditionRef)]
