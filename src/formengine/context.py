"""
Form Context Builder (Replay Engine)

Replays the stored answers from the start page to decide which pages
are still in play:

    start page
      -> add page, fold its answers into evaluation/relevant state
      -> stop at the requested page, at a stale list answer, or at a cycle
      -> otherwise follow get_next_path(evaluation_state)

Then every visited page except the requested one is validated against
the relevant state, and `paths` is cut after the first page with errors.
The requested page is reachable only when it is the last entry of
`paths`; callers redirect everything else to `get_relevant_path`.

ARCHITECTURAL RULE:
    build_form_context is pure. It copies the state it is given and
    never talks to a store.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import FormSubmissionError
from .model import Engine, PageType, normalise_path
from .state import merge

logger = logging.getLogger(__name__)


@dataclass
class FormContext:
    """
    Result of replaying a form's state.

    Properties:
        state: Stored state (plus the validated payload, when one was given)
        evaluation_state: Condition values of every visited page
        relevant_state: Raw stored answers of every visited page
        relevant_pages: Visited pages in visit order
        paths: Paths the user may currently reach, in order
        payload: Cleaned payload of the requested page, if any
        errors: Payload errors followed by errors of earlier pages
        is_force_access: Access checks were bypassed (preview mode)
    """

    state: Dict[str, Any]
    evaluation_state: Dict[str, Any] = field(default_factory=dict)
    relevant_state: Dict[str, Any] = field(default_factory=dict)
    relevant_pages: List[Any] = field(default_factory=list)
    paths: List[str] = field(default_factory=list)
    payload: Optional[Dict[str, Any]] = None
    errors: List[FormSubmissionError] = field(default_factory=list)
    is_force_access: bool = False

    def is_reachable(self, path: str) -> bool:
        return bool(self.paths) and normalise_path(self.paths[-1]) == normalise_path(path)


def initial_evaluation_state(model: Any) -> Dict[str, Any]:
    """V2 conditions may reference fields of pages not visited yet: start them at None."""
    if model.engine is not Engine.V2:
        return {}
    evaluation_state: Dict[str, Any] = {}
    for page in model.pages:
        if page.is_repeat:
            continue
        values = {component.name: None for component in page.collection.fields}
        evaluation_state = merge(evaluation_state, page.nest(values))
    return evaluation_state


def build_form_context(
    model: Any,
    state: Optional[Dict[str, Any]],
    path: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
    force: bool = False,
) -> FormContext:
    state = copy.deepcopy(state or {})
    target = model.get_page(path) if path else None
    context = FormContext(state=state, is_force_access=force)

    if payload is not None and target is not None:
        result = target.validate(payload)
        context.payload = result.value
        context.errors.extend(result.errors)
        if result.ok and not target.is_repeat:
            context.state = state = merge(state, target.get_state_from_valid_form(result.value))

    evaluation_state = initial_evaluation_state(model)
    relevant_state: Dict[str, Any] = {}
    page_errors: Dict[Any, List[FormSubmissionError]] = {}
    visited = set()

    page = model.get_page(model.start_path)
    while page is not None:
        context.relevant_pages.append(page)
        visited.add(normalise_path(page.path))

        if not page.is_repeat:
            evaluation_state = merge(evaluation_state, page.get_context_value_from_state(state))
        relevant_state = merge(relevant_state, page.get_relevant_state(state))

        stale = page.invalid_list_answers(state, evaluation_state)
        if stale:
            logger.debug("Replay stopped at %s: list answer no longer offered", page.path)
            page_errors[page] = stale
            break

        if page is target:
            break

        next_path = page.get_next_path(evaluation_state)
        next_page = model.get_page(next_path) if next_path else None
        if next_page is None or next_page.page_type is PageType.STATUS:
            break
        if normalise_path(next_page.path) in visited:
            logger.warning("Replay stopped at %s: %s was already visited", page.path, next_page.path)
            break
        page = next_page

    for visited_page in context.relevant_pages:
        if visited_page is target or visited_page in page_errors:
            continue
        errors = visited_page.validate_state(relevant_state)
        if errors:
            page_errors[visited_page] = errors

    for visited_page in context.relevant_pages:
        context.paths.append(visited_page.path)
        if visited_page in page_errors:
            context.errors.extend(page_errors[visited_page])
            break

    context.evaluation_state = evaluation_state
    context.relevant_state = relevant_state
    return context


def get_relevant_path(model: Any, context: FormContext) -> str:
    """Where to send a user whose requested page is not reachable."""
    return context.paths[-1] if context.paths else model.start_path
