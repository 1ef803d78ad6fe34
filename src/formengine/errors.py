"""
Errors raised and reported by the form engine.

Validation problems are data (FormSubmissionError) and are always shown to
the user. Everything else is an exception deriving from FormEngineError.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class FormSubmissionError:
    """
    One validation message for the user.

    Properties:
        name: Storage key the error belongs to ("" for list-level errors)
        href: Anchor for the error summary link, e.g. "#dob__day"
        text: Message shown to the user
        path: Location of the error within the payload
        context: Extra values used to build the message
    """

    name: str
    href: str
    text: str
    path: List[str] = field(default_factory=list)
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "href": self.href, "text": self.text, "path": list(self.path)}


class FormEngineError(Exception):
    """Base class for engine exceptions."""


class FormDefinitionError(FormEngineError):
    """Raised when a form definition cannot be loaded."""


class ItemNotFoundError(FormEngineError):
    """Raised when a repeat item id is not in the list."""

    def __init__(self, list_name: str, item_id: Optional[str]):
        super().__init__(f"Item {item_id!r} not found in list {list_name!r}")
        self.list_name = list_name
        self.item_id = item_id


class ConditionEvaluationError(FormEngineError):
    """Why a condition could not produce a boolean."""


class UploadServiceError(FormEngineError):
    """Raised when the upload service cannot be used to complete a request."""


class UploadStatusTimeoutError(UploadServiceError):
    """Raised when an upload did not settle within the retry cap."""

    def __init__(self, upload_id: str, attempts: int):
        super().__init__(f"Upload {upload_id} did not settle after {attempts} attempts")
        self.upload_id = upload_id
        self.attempts = attempts


class UnexpectedEmptyResponseError(UploadServiceError):
    """Raised when the upload service answers with no body."""
