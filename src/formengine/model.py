"""
Core Form Definition Objects

Defines the fundamental data structures of a form definition.

These are pure data classes representing:
    - Sections (groupings of pages that nest their answers in state)
    - Lists (option sets for selection fields)
    - Components (fields and content on a page)
    - Links (movement between pages)
    - Pages (the nodes of the page graph)
    - FormDefinition (root container)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about HTTP, templates or storage
        - Are never mutated after load
        - Are fully serializable
        - Represent structure, not behavior

Behavior lives in `formengine.form_model`, `formengine.pages` and
`formengine.context`, which build their own runtime objects from these.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .expressions import ConditionDef


class Engine(Enum):
    """
    Navigation engine used by a definition.

    V1: pages are joined by explicit `next` links.
    V2: pages are visited in declaration order; a page's own
        condition decides whether it is shown.
    """

    V1 = "V1"
    V2 = "V2"


class PageType(Enum):
    """Page controller kinds a definition may request."""

    QUESTION = "QuestionPageController"
    START = "StartPageController"
    SUMMARY = "SummaryPageController"
    STATUS = "StatusPageController"
    TERMINAL = "TerminalPageController"
    REPEAT = "RepeatPageController"
    FILE_UPLOAD = "FileUploadPageController"


SUMMARY_PATH = "/summary"
STATUS_PATH = "/status"


@dataclass(frozen=True)
class Section:
    """
    Groups pages under a name.

    Answers on a page with a section are stored one level deep:
        {"checkBeforeYouStart": {"ukPassport": True}}

    Properties:
        name: State key the answers nest under
        title: Caption shown above the page title
        hide_title: Suppress the caption
    """

    name: str
    title: str = ""
    hide_title: bool = False


@dataclass(frozen=True)
class ListItemDef:
    """
    One option of a list.

    Properties:
        text: Label shown to the user
        value: Stored value (str, number or bool depending on the list type)
        hint: Optional description shown under the label
        condition: Optional condition name; the item is offered only
                   while the condition evaluates true
    """

    text: str
    value: Union[str, int, float, bool]
    hint: Optional[str] = None
    condition: Optional[str] = None


@dataclass(frozen=True)
class ListDef:
    """
    A named option set.

    Properties:
        name: Identifier referenced by components
        title: Human readable title
        type: "string", "number" or "boolean"
        items: Options in display order
    """

    name: str
    title: str = ""
    type: str = "string"
    items: List[ListItemDef] = field(default_factory=list)


YES_NO_LIST = ListDef(
    name="__yesNo",
    title="Yes/No",
    type="boolean",
    items=[ListItemDef(text="Yes", value=True), ListItemDef(text="No", value=False)],
)


@dataclass(frozen=True)
class ComponentDef:
    """
    Declares one component on a page.

    Properties:
        name:
            Storage key. Composite fields expand this into
            `name__day`, `name__month` ... and never store `name` itself.

        type:
            Field type tag (see `formengine.fields.FieldType`)

        title:
            Question text, also used as the label in error messages

        hint:
            Optional help text

        options:
            Presentation and behavior flags, e.g.
            {"required": False, "optionalText": True, "condition": "isAdult",
             "customValidationMessage": "Enter your name"}

        schema:
            Validation bounds, e.g. {"min": 1, "max": 100, "regex": "^[A-Z]+$"}

        list:
            Name of the ListDef for selection fields

        content:
            Body for content components (Html, Para, Details ...)
    """

    name: str
    type: str
    title: str = ""
    hint: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)
    schema: Dict[str, Any] = field(default_factory=dict)
    list: Optional[str] = None
    content: Optional[Any] = None


@dataclass(frozen=True)
class Link:
    """
    A directed edge from one page to another.

    Properties:
        path: Target page path
        condition: Optional condition name; None means unconditional

    ARCHITECTURAL RULE:
        Order matters. A conditioned link that evaluates true wins,
        and the LAST unconditioned link seen is the fallback.
    """

    path: str
    condition: Optional[str] = None


@dataclass(frozen=True)
class RepeatOptions:
    name: str
    title: str


@dataclass(frozen=True)
class RepeatSchema:
    min: int = 1
    max: int = 25


@dataclass(frozen=True)
class RepeatDef:
    """
    Marks a page as a repeating group.

    Properties:
        options: State key of the item list and the item title
        schema: Cardinality bounds for the list
    """

    options: RepeatOptions
    schema: RepeatSchema = field(default_factory=RepeatSchema)


@dataclass(frozen=True)
class PageDef:
    """
    Represents a single page of the form.

    Properties:
        path:
            Unique path, e.g. "/uk-passport"

        title:
            Page heading

        section:
            Optional section name; answers nest under it in state

        condition:
            Optional condition name (used by the V2 engine to skip pages)

        controller:
            Optional PageType; None means a question page

        components:
            Components in declaration order

        next:
            Ordered outgoing links (V1 engine)

        repeat:
            Repeat settings for PageType.REPEAT pages
    """

    path: str
    title: str = ""
    section: Optional[str] = None
    condition: Optional[str] = None
    controller: Optional[PageType] = None
    components: List[ComponentDef] = field(default_factory=list)
    next: List[Link] = field(default_factory=list)
    repeat: Optional[RepeatDef] = None


@dataclass
class FormDefinition:
    """
    Root container for a whole form.

    This is THE primary artifact handed to the engine.

    Properties:
        name: Form title
        start_page: Path of the entry page (defaults to the first page)
        pages: All pages
        conditions: All named conditions
        lists: All option lists
        sections: All sections
        engine: Navigation engine
        output_email: Address submissions and uploads are retrieved with
        metadata: Arbitrary key-value pairs

    INVARIANTS:
        - start_page and every link target should exist in pages
          (stale links are ignored at runtime and reported by the analyzer)
        - component names are unique across the form
    """

    name: str
    start_page: Optional[str] = None
    pages: List[PageDef] = field(default_factory=list)
    conditions: List[ConditionDef] = field(default_factory=list)
    lists: List[ListDef] = field(default_factory=list)
    sections: List[Section] = field(default_factory=list)
    engine: Engine = Engine.V1
    output_email: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def get_page(self, path: str) -> Optional[PageDef]:
        """
        Retrieve a page by path.

        Leading and trailing slashes are ignored when comparing.
        """
        wanted = normalise_path(path)
        for page in self.pages:
            if normalise_path(page.path) == wanted:
                return page
        return None

    def get_condition(self, name: str) -> Optional[ConditionDef]:
        for condition in self.conditions:
            if condition.name == name:
                return condition
        return None

    def get_list(self, name: str) -> Optional[ListDef]:
        for list_def in self.lists:
            if list_def.name == name:
                return list_def
        if name == YES_NO_LIST.name:
            return YES_NO_LIST
        return None

    def get_section(self, name: Optional[str]) -> Optional[Section]:
        for section in self.sections:
            if section.name == name:
                return section
        return None

    @property
    def start_path(self) -> Optional[str]:
        if self.start_page:
            return self.start_page
        if self.pages:
            return self.pages[0].path
        return None


def normalise_path(path: Optional[str]) -> str:
    """'/a/b/', 'a/b' and '/a/b' all compare equal."""
    return "/" + (path or "").strip("/")
