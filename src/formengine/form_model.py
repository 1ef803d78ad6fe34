"""
FormModel: a loaded definition ready to serve requests.

    FormDefinition (data)  ->  FormModel
                                 conditions  {name: ExecutableCondition}
                                 pages       [QuestionPage | RepeatPage | ...]
                                 status page (added when the definition has none)

A FormModel is built once per definition and shared by every request.
It holds no per-user data.
"""

import logging
from typing import Any, Dict, List, Optional, Type

from .config import EngineConfig
from .context import FormContext, build_form_context, get_relevant_path
from .errors import FormDefinitionError
from .evaluator import compile_conditions
from .fields import FieldType
from .model import (
    STATUS_PATH,
    SUMMARY_PATH,
    YES_NO_LIST,
    FormDefinition,
    ListDef,
    PageDef,
    PageType,
    Section,
    normalise_path,
)
from .pages import QuestionPage, StartPage, StatusPage, SummaryPage, TerminalPage
from .repeat import RepeatPage
from .upload import FileUploadPage

logger = logging.getLogger(__name__)

PAGE_TYPES: Dict[PageType, Type[QuestionPage]] = {
    PageType.QUESTION: QuestionPage,
    PageType.START: StartPage,
    PageType.SUMMARY: SummaryPage,
    PageType.STATUS: StatusPage,
    PageType.TERMINAL: TerminalPage,
    PageType.REPEAT: RepeatPage,
    PageType.FILE_UPLOAD: FileUploadPage,
}


def page_type_of(definition: PageDef) -> PageType:
    """Declared controller, else inferred from the page's contents."""
    if definition.controller is not None:
        return definition.controller
    if definition.repeat is not None:
        return PageType.REPEAT
    if any(c.type == FieldType.FILE_UPLOAD.value for c in definition.components):
        return PageType.FILE_UPLOAD
    if normalise_path(definition.path) == SUMMARY_PATH:
        return PageType.SUMMARY
    return PageType.QUESTION


def create_page(model: "FormModel", definition: PageDef) -> QuestionPage:
    return PAGE_TYPES[page_type_of(definition)](model, definition)


class FormModel:
    """
    Runtime form.

    Properties:
        definition: The FormDefinition it was built from
        name: Form name
        engine: Navigation engine
        base_path: URL prefix the form is served under
        config: EngineConfig
        conditions: Compiled conditions by name
        pages: Pages in declaration order (without an added status page)
        status_page: The status page
    """

    def __init__(self, definition: FormDefinition, base_path: str = "", config: Optional[EngineConfig] = None):
        if not definition.pages:
            raise FormDefinitionError(f"Form {definition.name!r} has no pages")

        self.definition = definition
        self.name = definition.name
        self.engine = definition.engine
        self.base_path = base_path
        self.config = config or EngineConfig()

        self.conditions = compile_conditions(definition.conditions)
        self._lists: Dict[str, ListDef] = {list_def.name: list_def for list_def in definition.lists}
        self._sections: Dict[str, Section] = {section.name: section for section in definition.sections}

        self.pages: List[QuestionPage] = []
        self._page_map: Dict[str, QuestionPage] = {}
        for page_def in definition.pages:
            key = normalise_path(page_def.path)
            if key in self._page_map:
                raise FormDefinitionError(f"Duplicate page path {page_def.path!r}")
            page = create_page(self, page_def)
            self.pages.append(page)
            self._page_map[key] = page

        status_pages = [page for page in self.pages if page.page_type is PageType.STATUS]
        if status_pages:
            self.status_page = status_pages[0]
        else:
            self.status_page = StatusPage(
                self, PageDef(path=STATUS_PATH, title="Form submitted", controller=PageType.STATUS)
            )
            self._page_map[normalise_path(STATUS_PATH)] = self.status_page

        if self.get_page(self.start_path) is None:
            raise FormDefinitionError(f"Start page {self.start_path!r} does not exist")

        logger.debug("Loaded form %s with %d pages", self.name, len(self.pages))

    def __repr__(self):
        return f"FormModel({self.name!r})"

    @property
    def start_path(self) -> str:
        return self.definition.start_path

    @property
    def status_path(self) -> str:
        return self.status_page.path

    @property
    def keys(self) -> List[str]:
        return [key for page in self.pages for key in page.keys]

    def get_page(self, path: Optional[str]) -> Optional[QuestionPage]:
        if path is None:
            return None
        return self._page_map.get(normalise_path(path))

    def get_list(self, name: str) -> Optional[ListDef]:
        if name in self._lists:
            return self._lists[name]
        if name == YES_NO_LIST.name:
            return YES_NO_LIST
        return None

    def get_section(self, name: Optional[str]) -> Optional[Section]:
        if name is None:
            return None
        return self._sections.get(name)

    def is_true(self, condition_name: str, evaluation_state: Dict[str, Any]) -> bool:
        condition = self.conditions.get(condition_name)
        if condition is None:
            logger.debug("Unknown condition %s evaluated as false", condition_name)
            return False
        return condition.fn(evaluation_state)

    def get_form_context(
        self,
        state: Optional[Dict[str, Any]],
        path: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
        force: bool = False,
    ) -> FormContext:
        return build_form_context(self, state, path, payload, force)

    def get_relevant_path(self, context: FormContext) -> str:
        return get_relevant_path(self, context)
