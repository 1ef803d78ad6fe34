"""
Tests for repeating groups in `formengine.repeat`.
"""

import pytest

from formengine.errors import FormDefinitionError, ItemNotFoundError
from formengine.examples import build_example_pizza_form
from formengine.form_model import FormModel
from formengine.model import FormDefinition, PageDef, PageType
from formengine.repeat import ITEM_ID, RepeatPage
from formengine.state import merge


@pytest.fixture
def page():
    return FormModel(build_example_pizza_form(max_items=2)).get_page("/pizza-order")


def add(page, state, **values):
    return merge(state, page.get_state_from_valid_form(state, values))


class TestRepeatPage:
    """Test adding, editing and removing items."""

    def test_page_type(self, page):
        """Should build a repeat page for the repeat controller."""
        assert isinstance(page, RepeatPage)
        assert page.is_repeat
        assert page.list_name == "pizza"

    def test_requires_repeat_settings(self):
        """Should reject a repeat controller without repeat settings."""
        definition = FormDefinition(
            name="Broken",
            pages=[PageDef(path="/a", controller=PageType.REPEAT)],
        )
        with pytest.raises(FormDefinitionError):
            FormModel(definition)

    def test_add_item(self, page):
        """Should append an item with a new id."""
        state = add(page, {}, toppings="Ham", quantity=2)
        items = page.get_list_from_state(state)
        assert len(items) == 1
        assert items[0]["toppings"] == "Ham"
        assert items[0]["quantity"] == 2
        assert items[0][ITEM_ID]

    def test_ids_are_unique(self, page):
        """Should give every new item its own id."""
        state = add(page, {}, toppings="Ham", quantity=1)
        state = add(page, state, toppings="Cheese", quantity=1)
        ids = [item[ITEM_ID] for item in page.get_list_from_state(state)]
        assert len(set(ids)) == 2

    def test_edit_keeps_id_and_position(self, page):
        """Should replace an existing item in place."""
        state = add(page, {}, toppings="Ham", quantity=1)
        state = add(page, state, toppings="Cheese", quantity=1)
        first = page.get_list_from_state(state)[0][ITEM_ID]

        state = merge(state, page.get_state_from_valid_form(state, {"toppings": "Olives", "quantity": 3}, first))
        items = page.get_list_from_state(state)
        assert len(items) == 2
        assert items[0] == {ITEM_ID: first, "toppings": "Olives", "quantity": 3}

    def test_unknown_id_appended(self, page):
        """Should append an item saved with an id that is not in the list."""
        state = merge({}, page.get_state_from_valid_form({}, {"toppings": "Ham", "quantity": 1}, "abc"))
        assert page.get_item(state, "abc").index == 0

    def test_get_missing_item(self, page):
        """Should raise for an id that is not in the list."""
        with pytest.raises(ItemNotFoundError):
            page.get_item({}, "nope")

    def test_delete_item(self, page):
        """Should remove only the chosen item."""
        state = add(page, {}, toppings="Ham", quantity=1)
        state = add(page, state, toppings="Cheese", quantity=1)
        first, second = [item[ITEM_ID] for item in page.get_list_from_state(state)]

        state = merge(state, page.delete_item(state, first))
        assert [item[ITEM_ID] for item in page.get_list_from_state(state)] == [second]

    def test_form_data_for_item(self, page):
        """Should refill the form from one item."""
        state = add(page, {}, toppings="Ham", quantity=2)
        item_id = page.get_list_from_state(state)[0][ITEM_ID]
        assert page.get_form_data_from_state(state, item_id) == {"toppings": "Ham", "quantity": 2}
        assert page.get_form_data_from_state(state) == {"toppings": None, "quantity": None}


class TestRepeatLimits:
    """Test the bounds on the number of items."""

    def test_add_another_at_max(self, page):
        """Should refuse a third item when the maximum is two."""
        state = add(page, {}, toppings="Ham", quantity=1)
        assert page.add_another(state) is None
        state = add(page, state, toppings="Cheese", quantity=1)

        error = page.add_another(state)
        assert error is not None
        assert error.text == "You can only add up to 2 Pizzas"
        assert len(page.get_list_from_state(state)) == 2

    def test_too_few_items(self, page):
        """Should require at least the minimum number of items."""
        errors = page.validate_state({})
        assert [error.text for error in errors] == ["You must add at least 1 Pizza"]

    def test_within_bounds(self, page):
        """Should accept a list within the bounds."""
        state = add(page, {}, toppings="Ham", quantity=1)
        assert page.validate_state(state) == []


class TestListSummary:
    """Test the list summary view model."""

    def test_rows_and_actions(self, page):
        """Should offer Remove only when there is more than one item."""
        one = add(page, {}, toppings="Ham", quantity=1)
        view = page.get_list_summary_view_model(one)
        assert view["page_title"] == "You have added 1 Pizza"
        assert view["rows"][0]["value"] == {"text": "Ham"}
        assert [a["text"] for a in view["rows"][0]["actions"]["items"]] == ["Change"]
        assert view["can_add_another"] is True

        two = add(page, one, toppings="Cheese", quantity=1)
        view = page.get_list_summary_view_model(two)
        assert [a["text"] for a in view["rows"][0]["actions"]["items"]] == ["Change", "Remove"]
        assert view["can_add_another"] is False

    def test_summary_row(self, page):
        """Should count the items on the check answers page."""
        state = add(page, {}, toppings="Ham", quantity=1)
        rows = page.get_summary_rows(state)
        assert rows[0]["value"] == "You added 1 Pizza"
        assert rows[0]["href"] == "/pizza-order/summary"
