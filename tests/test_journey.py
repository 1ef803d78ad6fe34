"""
Tests for GET/POST handling in `formengine.journey`.
"""

import pytest

from formengine.examples import (
    build_example_passport_form,
    build_example_pizza_form,
    build_example_upload_form,
)
from formengine.form_model import FormModel
from formengine.journey import REMOVE_FILE_KEY, FormJourney
from formengine.repeat import ITEM_ID
from formengine.state import InMemoryStateStore

KEY = "session"

APPLICANT_ONE_NAME = {"applicantOneFirstName": "Enrique", "applicantOneLastName": "Chase"}
APPLICANT_ONE_ADDRESS = {
    "applicantOneAddress__addressLine1": "1 Anywhere Street",
    "applicantOneAddress__town": "Anywhereville",
    "applicantOneAddress__postcode": "AN1 2WH",
}


def error_texts(response):
    return [error["text"] for error in response.view_model["errors"]["error_list"]]


@pytest.fixture
def store():
    return InMemoryStateStore()


@pytest.fixture
def journey(store):
    return FormJourney(FormModel(build_example_passport_form()), store)


def answer_all(journey):
    journey.post(KEY, "/uk-passport", {"ukPassport": "true"})
    journey.post(KEY, "/how-many-people", {"numberOfApplicants": "1"})
    journey.post(KEY, "/applicant-one-name", APPLICANT_ONE_NAME)
    return journey.post(KEY, "/applicant-one-address", APPLICANT_ONE_ADDRESS)


class TestGet:
    """Test rendering pages."""

    def test_start_page(self, journey):
        """Should render the start page for a new session."""
        response = journey.get(KEY, "/uk-passport")
        assert not response.is_redirect
        assert response.view_model["path"] == "/uk-passport"
        assert response.view_model["back_link"] is None

    def test_unreachable_redirects(self, journey):
        """Should send the user to the furthest page they can reach."""
        assert journey.get(KEY, "/applicant-one-name").redirect == "/uk-passport"

    def test_unknown_page_redirects_to_start(self, journey):
        """Should send unknown paths to the start page."""
        assert journey.get(KEY, "/nowhere").redirect == "/uk-passport"

    def test_force_access(self, journey):
        """Should render any page in preview mode."""
        response = journey.get(KEY, "/applicant-one-name", force=True)
        assert response.view_model["path"] == "/applicant-one-name"

    def test_progress_and_back_link(self, journey, store):
        """Should record visits and link back to the previous page."""
        journey.get(KEY, "/uk-passport")
        journey.post(KEY, "/uk-passport", {"ukPassport": "true"})
        response = journey.get(KEY, "/how-many-people")
        assert store.get_state(KEY)["progress"] == ["/uk-passport", "/how-many-people"]
        assert response.view_model["back_link"] == "/uk-passport"

    def test_form_refilled_from_state(self, journey):
        """Should show stored answers on the page."""
        journey.post(KEY, "/uk-passport", {"ukPassport": "true"})
        response = journey.get(KEY, "/uk-passport")
        items = response.view_model["components"][0]["model"]["items"]
        assert [item["selected"] for item in items] == [True, False]

    def test_base_path(self, store):
        """Should prefix redirects with the base path."""
        journey = FormJourney(FormModel(build_example_passport_form(), base_path="/passport"), store)
        assert journey.get(KEY, "/summary").redirect == "/passport/uk-passport"


class TestPost:
    """Test submitting pages."""

    def test_errors_rendered(self, journey, store):
        """Should render the page with errors and save nothing."""
        response = journey.post(KEY, "/uk-passport", {})
        assert error_texts(response) == ["Do you have a UK passport? - select yes or no"]
        assert "checkBeforeYouStart" not in store.get_state(KEY)

    def test_saved_and_redirected(self, journey, store):
        """Should save the answer under its section and move on."""
        response = journey.post(KEY, "/uk-passport", {"ukPassport": "true"})
        assert response.redirect == "/how-many-people"
        assert store.get_state(KEY)["checkBeforeYouStart"] == {"ukPassport": True}

    def test_conditional_branch(self, journey):
        """Should follow the link whose condition holds."""
        response = journey.post(KEY, "/uk-passport", {"ukPassport": "false"})
        assert response.redirect == "/testconditions"

    def test_custom_message(self, journey):
        """Should show the page's custom validation message."""
        journey.post(KEY, "/uk-passport", {"ukPassport": "true"})
        journey.post(KEY, "/how-many-people", {"numberOfApplicants": "1"})
        response = journey.post(KEY, "/applicant-one-name", {"applicantOneLastName": "Chase"})
        assert error_texts(response) == ["Enter your first name as it appears on your passport"]

    def test_full_journey_reaches_summary(self, journey):
        """Should reach the summary after the last question."""
        assert answer_all(journey).redirect == "/testconditions"
        assert journey.post(KEY, "/testconditions", {}).redirect == "/summary"

    def test_return_url(self, journey):
        """Should go back to the summary after a change when it is still reachable."""
        answer_all(journey)
        response = journey.post(KEY, "/uk-passport", {"ukPassport": "true"}, return_url="/summary")
        assert response.redirect == "/summary"

    def test_return_url_not_reachable(self, journey):
        """Should ignore the return url when the change opens new questions."""
        answer_all(journey)
        response = journey.post(KEY, "/how-many-people", {"numberOfApplicants": "2"}, return_url="/summary")
        assert response.redirect == "/applicant-one-name"

    def test_summary_post_goes_to_status(self, journey):
        """Should finish at the status page."""
        answer_all(journey)
        assert journey.post(KEY, "/summary").redirect == "/status"


class TestSummary:
    """Test the check answers page."""

    def test_rows(self, journey):
        """Should show one row per answered field, grouped by section."""
        answer_all(journey)
        view = journey.get(KEY, "/summary").view_model
        rows = {row["name"]: row["value"] for group in view["details"] for row in group["rows"]}
        assert rows["ukPassport"] == "Yes"
        assert rows["numberOfApplicants"] == "1"
        assert rows["applicantOneAddress"] == "1 Anywhere Street, Anywhereville, AN1 2WH"
        assert view["details"][0]["title"] == "Check before you start"

    def test_changed_answer_hides_rows(self, journey):
        """Should leave out answers on pages that are no longer visited."""
        answer_all(journey)
        journey.post(KEY, "/uk-passport", {"ukPassport": "false"})
        view = journey.get(KEY, "/summary").view_model
        names = [row["name"] for group in view["details"] for row in group["rows"]]
        assert names == ["ukPassport"]


class TestRepeatJourney:
    """Test the repeat page routes."""

    @pytest.fixture
    def pizza(self, store):
        return FormJourney(FormModel(build_example_pizza_form(max_items=2)), store)

    def items(self, store):
        return store.get_state(KEY).get("pizza", [])

    def test_add_item(self, pizza, store):
        """Should save the item and show the list summary."""
        response = pizza.post(KEY, "/pizza-order", {"toppings": "Ham", "quantity": "2"})
        assert response.redirect == "/pizza-order/summary"
        assert [(i["toppings"], i["quantity"]) for i in self.items(store)] == [("Ham", 2)]

    def test_add_another_limit(self, pizza, store):
        """Should refuse a third pizza."""
        pizza.post(KEY, "/pizza-order", {"toppings": "Ham", "quantity": "1"})
        assert pizza.post_list_summary(KEY, "/pizza-order", "add-another").redirect == "/pizza-order"
        pizza.post(KEY, "/pizza-order", {"toppings": "Cheese", "quantity": "1"})

        response = pizza.post_list_summary(KEY, "/pizza-order", "add-another")
        assert error_texts(response) == ["You can only add up to 2 Pizzas"]
        assert len(self.items(store)) == 2

    def test_edit_item(self, pizza, store):
        """Should update the item in place."""
        pizza.post(KEY, "/pizza-order", {"toppings": "Ham", "quantity": "1"})
        item_id = self.items(store)[0][ITEM_ID]
        pizza.post(KEY, "/pizza-order", {"toppings": "Olives", "quantity": "1"}, item_id=item_id)
        assert [(i[ITEM_ID], i["toppings"]) for i in self.items(store)] == [(item_id, "Olives")]

    def test_continue(self, pizza):
        """Should move on once the list is valid."""
        pizza.post(KEY, "/pizza-order", {"toppings": "Ham", "quantity": "1"})
        assert pizza.post_list_summary(KEY, "/pizza-order", "continue").redirect == "/delivery"

    def test_continue_empty(self, pizza):
        """Should not move on without any items."""
        response = pizza.post_list_summary(KEY, "/pizza-order", "continue")
        assert error_texts(response) == ["You must add at least 1 Pizza"]

    def test_delete(self, pizza, store):
        """Should remove the item once confirmed."""
        pizza.post(KEY, "/pizza-order", {"toppings": "Ham", "quantity": "1"})
        pizza.post(KEY, "/pizza-order", {"toppings": "Cheese", "quantity": "1"})
        item_id = self.items(store)[0][ITEM_ID]

        confirm = pizza.get_delete_confirmation(KEY, "/pizza-order", item_id)
        assert confirm.view_model["item"]["text"] == "Ham"

        pizza.post_delete(KEY, "/pizza-order", item_id, confirm=False)
        assert len(self.items(store)) == 2
        assert pizza.post_delete(KEY, "/pizza-order", item_id, confirm=True).redirect == "/pizza-order/summary"
        assert [i["toppings"] for i in self.items(store)] == ["Cheese"]

    def test_list_summary(self, pizza):
        """Should list the items added so far."""
        pizza.post(KEY, "/pizza-order", {"toppings": "Ham", "quantity": "1"})
        view = pizza.get_list_summary(KEY, "/pizza-order").view_model
        assert view["page_title"] == "You have added 1 Pizza"

    def test_not_a_repeat_page(self, pizza):
        """Should refuse list routes on other pages."""
        with pytest.raises(ValueError):
            pizza.get_list_summary(KEY, "/delivery")


class TestUploadJourney:
    """Test posting a file upload page."""

    @pytest.fixture
    def uploads(self, store):
        return FormJourney(FormModel(build_example_upload_form()), store)

    def seed(self, store, *file_ids):
        files = [
            {
                "uploadId": f"u-{file_id}",
                "status": {
                    "uploadStatus": "ready",
                    "form": {"file": {"fileId": file_id, "filename": f"{file_id}.pdf", "contentLength": 5, "fileStatus": "complete"}},
                },
            }
            for file_id in file_ids
        ]
        store.merge_state(KEY, {"upload": {"/evidence": {"upload": None, "files": files}}})

    def test_no_files(self, uploads):
        """Should ask for a file."""
        response = uploads.post(KEY, "/evidence", {})
        assert error_texts(response) == ["Select evidence"]

    def test_files_saved(self, uploads, store):
        """Should save the uploaded files as the answer."""
        self.seed(store, "f1")
        assert uploads.post(KEY, "/evidence", {}).redirect == "/summary"
        assert store.get_state(KEY)["evidence"] == [{"fileId": "f1", "filename": "f1.pdf", "contentLength": 5}]

    def test_remove_file(self, uploads, store):
        """Should remove a file and show the page again."""
        self.seed(store, "f1", "f2")
        assert uploads.post(KEY, "/evidence", {REMOVE_FILE_KEY: "f1"}).redirect == "/evidence"
        files = store.get_state(KEY)["upload"]["/evidence"]["files"]
        assert [record["uploadId"] for record in files] == ["u-f2"]
