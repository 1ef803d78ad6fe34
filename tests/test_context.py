"""
Tests for the replay engine in `formengine.context`.

Most cases use the UK passport journey:

    /uk-passport -> /how-many-people -> /applicant-one-name
                 -> /applicant-one-address -> (/applicant-two ...)
                 -> /testconditions -> /summary

with /uk-passport jumping straight to /testconditions for people
without a passport.
"""

import copy
from datetime import date

import pytest

from formengine import dates
from formengine.context import initial_evaluation_state
from formengine.examples import build_example_licence_form, build_example_passport_form
from formengine.form_model import FormModel
from formengine.model import FormDefinition, Link, PageDef
from formengine.pages import OPTIONS_CHANGED

APPLICANT_ONE = {
    "applicantOneFirstName": "Enrique",
    "applicantOneMiddleName": None,
    "applicantOneLastName": "Chase",
    "applicantOneAddress__addressLine1": "1 Anywhere Street",
    "applicantOneAddress__addressLine2": None,
    "applicantOneAddress__town": "Anywhereville",
    "applicantOneAddress__postcode": "AN1 2WH",
}

FULL_PATHS = [
    "/uk-passport",
    "/how-many-people",
    "/applicant-one-name",
    "/applicant-one-address",
    "/testconditions",
    "/summary",
]


@pytest.fixture
def passport():
    return FormModel(build_example_passport_form())


@pytest.fixture
def answered():
    return {
        "checkBeforeYouStart": {"ukPassport": True},
        "numberOfApplicants": 1,
        "applicantOneDetails": dict(APPLICANT_ONE),
        "progress": ["/uk-passport"],
    }


class TestReplay:
    """Test which pages a stored state reaches."""

    def test_empty_state(self, passport):
        """Should stop at the first page with missing answers."""
        context = passport.get_form_context({})
        assert context.paths == ["/uk-passport"]
        assert [error.text for error in context.errors] == ["Do you have a UK passport? - select yes or no"]

    def test_fully_answered(self, passport, answered):
        """Should reach every page on the chosen branch."""
        context = passport.get_form_context(answered)
        assert context.paths == FULL_PATHS
        assert context.errors == []

    def test_changing_an_early_answer_drops_later_answers(self, passport, answered):
        """Answers on pages that are no longer visited drop out of play."""
        answered["checkBeforeYouStart"]["ukPassport"] = False
        context = passport.get_form_context(answered)

        assert context.paths == ["/uk-passport", "/testconditions", "/summary"]
        assert context.evaluation_state == {"checkBeforeYouStart": {"ukPassport": False}}
        assert context.relevant_state == {"checkBeforeYouStart": {"ukPassport": False}}
        assert "applicantOneDetails" not in context.relevant_state
        # Stored answers are kept for when the user changes back
        assert context.state["applicantOneDetails"] == APPLICANT_ONE

    def test_stops_at_requested_page(self, passport, answered):
        """Should not replay beyond the requested page."""
        context = passport.get_form_context(answered, "/applicant-one-name")
        assert context.paths == ["/uk-passport", "/how-many-people", "/applicant-one-name"]
        assert context.is_reachable("/applicant-one-name")

    def test_requested_page_not_validated(self, passport):
        """Should let the user open the page they have yet to answer."""
        state = {"checkBeforeYouStart": {"ukPassport": True}}
        context = passport.get_form_context(state, "/how-many-people")
        assert context.is_reachable("/how-many-people")
        assert context.errors == []

    def test_unreachable_page(self, passport, answered):
        """Should not reach a branch the answers do not lead to."""
        context = passport.get_form_context(answered, "/applicant-two")
        assert not context.is_reachable("/applicant-two")
        assert passport.get_relevant_path(context) == "/summary"

    def test_second_applicant_branch(self, passport, answered):
        """Should take the second applicant branch for two applicants."""
        answered["numberOfApplicants"] = 2
        context = passport.get_form_context(answered, "/applicant-two")
        assert context.is_reachable("/applicant-two")

    def test_does_not_mutate_state(self, passport, answered):
        """Should work on a copy of the state it is given."""
        before = copy.deepcopy(answered)
        passport.get_form_context(answered, "/uk-passport", {"ukPassport": "false"})
        assert answered == before

    def test_idempotent(self, passport, answered):
        """Replaying the same state twice gives the same result."""
        first = passport.get_form_context(answered)
        second = passport.get_form_context(answered)
        assert first.paths == second.paths
        assert first.relevant_state == second.relevant_state
        assert first.evaluation_state == second.evaluation_state

    def test_answering_more_never_shrinks_paths(self, passport):
        """Each new valid answer keeps the pages already reachable."""
        state = {}
        previous = passport.get_form_context(state).paths
        answers = [
            {"checkBeforeYouStart": {"ukPassport": True}},
            {"numberOfApplicants": 1},
            {"applicantOneDetails": {k: v for k, v in APPLICANT_ONE.items() if "Address" not in k}},
            {"applicantOneDetails": dict(APPLICANT_ONE)},
        ]
        for patch in answers:
            state.update(patch)
            paths = passport.get_form_context(state).paths
            assert paths[: len(previous)] == previous
            assert len(paths) > len(previous)
            previous = paths


class TestPayload:
    """Test replay with a submitted payload."""

    def test_valid_payload_merged(self, passport):
        """Should replay as if the payload were already saved."""
        context = passport.get_form_context({}, "/uk-passport", {"ukPassport": "false"})
        assert context.errors == []
        assert context.payload == {"ukPassport": False}
        assert context.state["checkBeforeYouStart"] == {"ukPassport": False}

    def test_invalid_payload(self, passport):
        """Should report payload errors and leave the state alone."""
        context = passport.get_form_context({}, "/uk-passport", {"ukPassport": "maybe"})
        assert [error.name for error in context.errors] == ["ukPassport"]
        assert "checkBeforeYouStart" not in context.state


class TestCycles:
    """Test replay of definitions whose links loop."""

    def test_cycle_stops_replay(self):
        """Should stop instead of looping forever."""
        model = FormModel(
            FormDefinition(
                name="Loop",
                pages=[
                    PageDef(path="/a", title="A", next=[Link("/b")]),
                    PageDef(path="/b", title="B", next=[Link("/a")]),
                ],
            )
        )
        assert model.get_form_context({}).paths == ["/a", "/b"]


class TestLinearEngine:
    """Test replay of the V2 licence form."""

    @pytest.fixture
    def licence(self, monkeypatch):
        monkeypatch.setattr(dates, "today", lambda: date(2024, 6, 15))
        return FormModel(build_example_licence_form())

    def state(self, year, licence_type="salmon"):
        return {
            "dateOfBirth__day": 1,
            "dateOfBirth__month": 1,
            "dateOfBirth__year": year,
            "guardianName": "Sam",
            "licenceType": licence_type,
            "waters": ["rivers"],
        }

    def test_fields_start_as_none(self, licence):
        """Conditions may read fields of pages not reached yet."""
        evaluation_state = initial_evaluation_state(licence)
        assert evaluation_state == {
            "dateOfBirth": None,
            "guardianName": None,
            "licenceType": None,
            "waters": None,
            "licenceStart": None,
        }

    def test_adult_skips_junior_page(self, licence):
        """Should skip the page whose condition is false."""
        context = licence.get_form_context(self.state(1990))
        assert context.paths == ["/date-of-birth", "/licence-type", "/licence-start", "/summary"]
        assert context.evaluation_state["dateOfBirth"] == "1990-01-01"
        assert context.evaluation_state["waters"] == ["rivers"]

    def test_junior_sees_junior_page(self, licence):
        """Should include the page whose condition is true."""
        context = licence.get_form_context(self.state(2015, "trout"))
        assert "/junior-licence" in context.paths

    def test_answer_no_longer_offered(self, licence):
        """Should stop on a list answer whose item is no longer offered."""
        context = licence.get_form_context(self.state(2015, "salmon"))
        assert context.paths[-1] == "/licence-type"
        assert [error.text for error in context.errors] == [OPTIONS_CHANGED]
