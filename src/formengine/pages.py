"""
Page Graph

Runtime pages built from PageDefs. A page owns its ComponentCollection,
knows its section, and decides where the user goes next.

Next link resolution (V1 engine):

    /uk-passport
        next: [/how-many-people]                      <- unconditioned
              [/testconditions if doesntHaveUKPassport]

    ukPassport = False  -> /testconditions   (conditioned link true wins)
    ukPassport = True   -> /how-many-people  (last unconditioned link)

V2 engine: the first later page (declaration order) whose own condition
holds, or that has none.

ARCHITECTURAL RULE:
    Pages never read or write the state store. They transform the state
    they are handed and return new values.
"""

import logging
from typing import Any, Dict, List, Optional

from .collection import ComponentCollection, ValidationResult
from .errors import FormSubmissionError
from .fields import ComponentBase, ListFormComponent
from .model import Engine, PageDef, PageType, SUMMARY_PATH, normalise_path

logger = logging.getLogger(__name__)

OPTIONS_CHANGED = "Options are different because you changed a previous answer"


class QuestionPage:
    """
    A page that asks questions (the default controller).

    Properties:
        model: The owning FormModel
        definition: The PageDef it was built from
        path: Declared path
        title: Page heading
        section: Section object or None
        condition: Page condition name (V2 engine)
        collection: The page's ComponentCollection
    """

    page_type = PageType.QUESTION

    def __init__(self, model: Any, definition: PageDef):
        self.model = model
        self.definition = definition
        self.path = definition.path
        self.title = definition.title
        self.section = model.get_section(definition.section)
        self.condition = definition.condition
        self.collection = ComponentCollection(definition.components, model)
        self._links = None

    def __repr__(self):
        return f"{type(self).__name__}({self.path!r})"

    @property
    def keys(self) -> List[str]:
        return self.collection.keys

    @property
    def has_form_components(self) -> bool:
        return bool(self.collection.fields)

    @property
    def is_repeat(self) -> bool:
        return False

    def is_path(self, path: Optional[str]) -> bool:
        return path is not None and normalise_path(path) == normalise_path(self.path)

    @property
    def next(self):
        """Outgoing links whose target page exists."""
        if self._links is None:
            links = []
            for link in self.definition.next:
                if self.model.get_page(link.path) is None:
                    logger.warning("Ignoring link from %s to missing page %s", self.path, link.path)
                    continue
                links.append(link)
            self._links = links
        return self._links

    # State slicing

    def section_state(self, state: Dict[str, Any]) -> Dict[str, Any]:
        if self.section is None:
            return state
        value = state.get(self.section.name)
        return value if isinstance(value, dict) else {}

    def nest(self, values: Dict[str, Any]) -> Dict[str, Any]:
        if self.section is None:
            return values
        return {self.section.name: values}

    def get_relevant_state(self, state: Dict[str, Any]) -> Dict[str, Any]:
        source = self.section_state(state)
        return self.nest({key: source.get(key) for key in self.keys})

    def get_context_value_from_state(self, state: Dict[str, Any]) -> Dict[str, Any]:
        return self.nest(self.collection.get_context_value_from_state(self.section_state(state)))

    # Conversions

    def get_form_data_from_state(self, state: Dict[str, Any]) -> Dict[str, Any]:
        return self.collection.get_form_data_from_state(self.section_state(state))

    def get_state_from_valid_form(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.nest(self.collection.get_state_from_valid_form(payload))

    # Validation

    def validate(self, payload: Optional[Dict[str, Any]]) -> ValidationResult:
        return self.collection.validate(payload)

    def validate_state(self, state: Dict[str, Any]) -> List[FormSubmissionError]:
        """Errors for the answers already stored for this page."""
        return self.collection.validate(self.get_form_data_from_state(state)).errors

    def invalid_list_answers(self, state: Dict[str, Any], evaluation_state: Dict[str, Any]) -> List[FormSubmissionError]:
        """Answers that picked a list item whose condition no longer holds."""
        errors = []
        source = self.section_state(state)
        for component in self.collection.fields:
            if not isinstance(component, ListFormComponent):
                continue
            if not any(item.condition for item in component.items):
                continue

            answer = component.get_form_value_from_state(source)
            if answer is None:
                continue

            offered = component.offered_items(lambda name: self.model.is_true(name, evaluation_state))
            chosen = answer if isinstance(answer, list) else [answer]
            if any(not any(item.value == value for item in offered) for value in chosen):
                errors.append(
                    FormSubmissionError(
                        name=component.name,
                        href=f"#{component.name}",
                        text=OPTIONS_CHANGED,
                        path=[component.name],
                        context={"key": component.name, "type": "options_changed"},
                    )
                )
        return errors

    # Navigation

    def get_next_path(self, evaluation_state: Dict[str, Any]) -> Optional[str]:
        if self.model.engine is Engine.V2:
            return self._next_in_order(evaluation_state) or self.default_next_path()

        default_path = self.default_next_path()
        for link in self.next:
            if link.condition:
                if self.model.is_true(link.condition, evaluation_state):
                    return link.path
            else:
                default_path = link.path
        return default_path

    def default_next_path(self) -> Optional[str]:
        return None

    def _next_in_order(self, evaluation_state: Dict[str, Any]) -> Optional[str]:
        pages = self.model.pages
        index = pages.index(self)
        for page in pages[index + 1:]:
            if page.page_type is PageType.STATUS:
                continue
            if not page.condition or self.model.is_true(page.condition, evaluation_state):
                return page.path
        return None

    def get_summary_rows(self, state: Dict[str, Any]) -> List[Dict[str, Any]]:
        source = self.section_state(state)
        return [
            {
                "name": component.name,
                "title": component.title,
                "value": component.get_display_string_from_state(source),
                "href": f"{self.path}?returnUrl={SUMMARY_PATH}",
            }
            for component in self.collection.fields
        ]

    @staticmethod
    def get_back_link(progress: Optional[List[str]]) -> Optional[str]:
        progress = progress or []
        return progress[-2] if len(progress) >= 2 else None

    # Rendering

    def is_component_shown(self, component: ComponentBase, evaluation_state: Dict[str, Any]) -> bool:
        return not component.condition or self.model.is_true(component.condition, evaluation_state)

    def get_view_model(
        self,
        payload: Dict[str, Any],
        errors: Optional[List[FormSubmissionError]] = None,
        context: Any = None,
    ) -> Dict[str, Any]:
        evaluation_state = context.evaluation_state if context is not None else {}
        progress = context.state.get("progress", []) if context is not None else []

        components = self.collection.get_view_model(
            payload, errors, lambda component: self.is_component_shown(component, evaluation_state)
        )
        for entry in components:
            items = entry["model"].get("items")
            if items and any("condition" in item for item in items):
                entry["model"]["items"] = [
                    item
                    for item in items
                    if not item.get("condition") or self.model.is_true(item["condition"], evaluation_state)
                ]

        page_title = self.title
        show_title = True
        fields = self.collection.fields
        if len(fields) == 1 and not page_title:
            page_title = fields[0].title
            show_title = False

        section_title = None
        if self.section is not None and not self.section.hide_title:
            section_title = self.section.title

        return {
            "name": self.model.name,
            "path": self.path,
            "page_title": page_title,
            "section_title": section_title,
            "show_title": show_title,
            "components": components,
            "errors": self.collection.get_errors(errors),
            "back_link": self.get_back_link(progress),
            "next_path": self.get_next_path(evaluation_state) if context is not None else None,
            "has_form_components": self.has_form_components,
        }


class StartPage(QuestionPage):
    page_type = PageType.START


class TerminalPage(QuestionPage):
    """Ends the journey: there is never a next page."""

    page_type = PageType.TERMINAL

    def get_next_path(self, evaluation_state):
        return None


class StatusPage(QuestionPage):
    """Confirmation shown after submission. Never part of the replay."""

    page_type = PageType.STATUS

    def get_next_path(self, evaluation_state):
        return None


class SummaryPage(QuestionPage):
    """Check-your-answers page. Continues to the status page by default."""

    page_type = PageType.SUMMARY

    def default_next_path(self):
        return self.model.status_path

    def get_summary_view_model(self, context: Any) -> Dict[str, Any]:
        """One row per answered field on every relevant page."""
        sections: Dict[Optional[str], Dict[str, Any]] = {}
        for page in context.relevant_pages:
            if page is self or not page.has_form_components:
                continue

            key = page.section.name if page.section else None
            group = sections.setdefault(
                key,
                {"title": page.section.title if page.section else None, "rows": []},
            )
            group["rows"].extend(page.get_summary_rows(context.relevant_state))

        view_model = self.get_view_model({}, context.errors, context)
        view_model["details"] = list(sections.values())
        return view_model

