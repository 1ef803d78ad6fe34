"""
Repeat Section Handler

A repeat page asks the same questions once per item and stores the
answers as a list of items under `repeat.options.name`:

    {"pizza": [{"itemId": "5b1...", "toppings": "Ham", "quantity": 2},
               {"itemId": "a07...", "toppings": "Pepperoni", "quantity": 1}]}

Item ids are uuid4 strings. Editing an item keeps its id and position.

ARCHITECTURAL RULE:
    List operations return state patches ({name: new_list}); they never
    mutate the state they are handed.
"""

import copy
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError, conlist, create_model

from .errors import FormDefinitionError, FormSubmissionError, ItemNotFoundError
from .model import PageType
from .pages import QuestionPage

logger = logging.getLogger(__name__)

ITEM_ID = "itemId"


@dataclass
class RepeatItemRef:
    """An item and its position in the list."""

    value: Dict[str, Any]
    index: int


class RepeatPage(QuestionPage):
    """
    Page controller for repeating groups.

    Properties:
        list_name: State key of the item list
        item_title: Singular name of one item, e.g. "Pizza"
        min, max: Bounds on the number of items
    """

    page_type = PageType.REPEAT

    def __init__(self, model, definition):
        super().__init__(model, definition)
        if definition.repeat is None:
            raise FormDefinitionError(f"Repeat page {definition.path} has no repeat settings")
        self.repeat = definition.repeat
        self.list_name = definition.repeat.options.name
        self.item_title = definition.repeat.options.title
        self.min = definition.repeat.schema.min
        self.max = definition.repeat.schema.max

    @property
    def is_repeat(self):
        return True

    def plural(self, count: int) -> str:
        return self.item_title if count == 1 else f"{self.item_title}s"

    # Items

    def get_list_from_state(self, state: Dict[str, Any]) -> List[Dict[str, Any]]:
        value = self.section_state(state).get(self.list_name)
        if not isinstance(value, list):
            return []
        return [copy.deepcopy(item) for item in value if isinstance(item, dict) and item.get(ITEM_ID)]

    def get_item(self, state: Dict[str, Any], item_id: Optional[str]) -> RepeatItemRef:
        for index, item in enumerate(self.get_list_from_state(state)):
            if item[ITEM_ID] == item_id:
                return RepeatItemRef(value=item, index=index)
        raise ItemNotFoundError(self.list_name, item_id)

    def get_relevant_state(self, state):
        return self.nest({self.list_name: self.get_list_from_state(state)})

    def get_form_data_from_state(self, state, item_id: Optional[str] = None):
        """Payload for one item's form; an empty form when `item_id` is None."""
        if item_id is None:
            return self.collection.get_form_data_from_state({})
        return self.collection.get_form_data_from_state(self.get_item(state, item_id).value)

    def get_state_from_valid_form(self, state, payload=None, item_id: Optional[str] = None):
        """
        Save one item and return the patch for the whole list.

        An id already in the list replaces that item in place. Any other
        id (or a fresh uuid4 when none is given) is appended.
        """
        items = self.get_list_from_state(state)
        values = self.collection.get_state_from_valid_form(payload or {})

        if item_id is not None:
            for index, item in enumerate(items):
                if item[ITEM_ID] == item_id:
                    items[index] = {ITEM_ID: item_id, **values}
                    return self.nest({self.list_name: items})
        else:
            item_id = str(uuid.uuid4())

        items.append({ITEM_ID: item_id, **values})
        logger.info("Added item %s to %s", item_id, self.list_name)
        return self.nest({self.list_name: items})

    def delete_item(self, state: Dict[str, Any], item_id: str) -> Dict[str, Any]:
        self.get_item(state, item_id)
        items = [item for item in self.get_list_from_state(state) if item[ITEM_ID] != item_id]
        logger.info("Removed item %s from %s", item_id, self.list_name)
        return self.nest({self.list_name: items})

    def add_another(self, state: Dict[str, Any]) -> Optional[FormSubmissionError]:
        """Error when the list is already full, else None."""
        if len(self.get_list_from_state(state)) >= self.max:
            return self.list_error(f"You can only add up to {self.max} {self.plural(self.max)}")
        return None

    def list_error(self, text: str) -> FormSubmissionError:
        return FormSubmissionError(
            name=self.list_name,
            href=f"#{self.list_name}",
            text=text,
            path=[self.list_name],
            context={"key": self.list_name},
        )

    # Validation

    def validate_state(self, state):
        model = create_model(
            "RepeatList",
            items=(conlist(Dict[str, Any], min_length=self.min, max_length=self.max), ...),
        )
        try:
            model(items=self.get_list_from_state(state))
        except ValidationError as exc:
            errors = []
            for line in exc.errors():
                if line["type"] == "too_short":
                    errors.append(self.list_error(f"You must add at least {self.min} {self.plural(self.min)}"))
                elif line["type"] == "too_long":
                    errors.append(self.list_error(f"You can only add up to {self.max} {self.plural(self.max)}"))
            return errors
        return []

    # Rendering

    def get_summary_rows(self, state):
        count = len(self.get_list_from_state(state))
        return [
            {
                "name": self.list_name,
                "title": self.item_title,
                "value": f"You added {count} {self.plural(count)}",
                "href": f"{self.path}/summary",
            }
        ]

    def get_item_display(self, item: Dict[str, Any]) -> str:
        fields = self.collection.fields
        return fields[0].get_display_string_from_state(item) if fields else ""

    def get_list_summary_view_model(
        self,
        state: Dict[str, Any],
        errors: Optional[List[FormSubmissionError]] = None,
        context: Any = None,
    ) -> Dict[str, Any]:
        items = self.get_list_from_state(state)
        rows = []
        for index, item in enumerate(items):
            actions = [{"text": "Change", "href": f"{self.path}/{item[ITEM_ID]}"}]
            if len(items) > 1:
                actions.append({"text": "Remove", "href": f"{self.path}/{item[ITEM_ID]}/confirm-delete"})
            rows.append(
                {
                    "key": {"text": f"{self.item_title} {index + 1}"},
                    "value": {"text": self.get_item_display(item)},
                    "actions": {"items": actions},
                }
            )

        view_model = self.get_view_model({}, errors, context)
        view_model.update(
            page_title=f"You have added {len(items)} {self.plural(len(items))}",
            show_title=True,
            rows=rows,
            can_add_another=len(items) < self.max,
        )
        return view_model
