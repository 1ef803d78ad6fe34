"""
Tests for loading definitions into a FormModel.
"""

import pytest

from formengine.config import EngineConfig
from formengine.errors import FormDefinitionError
from formengine.examples import build_example_passport_form
from formengine.form_model import FormModel, page_type_of
from formengine.model import ComponentDef, FormDefinition, PageDef, PageType
from formengine.pages import QuestionPage, StatusPage


class TestFormModel:
    """Test FormModel construction and lookups."""

    def test_no_pages(self):
        """Should refuse a form without pages."""
        with pytest.raises(FormDefinitionError):
            FormModel(FormDefinition(name="Empty"))

    def test_duplicate_paths(self):
        """Should refuse two pages with the same path."""
        definition = FormDefinition(name="Dupes", pages=[PageDef(path="/a"), PageDef(path="a/")])
        with pytest.raises(FormDefinitionError):
            FormModel(definition)

    def test_missing_start_page(self):
        """Should refuse a start page that does not exist."""
        definition = FormDefinition(name="Start", start_page="/nope", pages=[PageDef(path="/a")])
        with pytest.raises(FormDefinitionError):
            FormModel(definition)

    def test_unknown_component_type(self):
        """Should refuse unknown component types."""
        definition = FormDefinition(
            name="Types",
            pages=[PageDef(path="/a", components=[ComponentDef(name="x", type="Spinner")])],
        )
        with pytest.raises(FormDefinitionError):
            FormModel(definition)

    def test_declared_status_page_used(self):
        """Should use a declared status page instead of adding one."""
        definition = FormDefinition(
            name="Status",
            pages=[PageDef(path="/a"), PageDef(path="/done", controller=PageType.STATUS)],
        )
        model = FormModel(definition)
        assert model.status_path == "/done"
        assert model.get_page("/status") is None

    def test_lookups(self):
        """Should find pages, lists, sections and keys."""
        model = FormModel(build_example_passport_form())
        assert isinstance(model.get_page("uk-passport/"), QuestionPage)
        assert isinstance(model.get_page("/status"), StatusPage)
        assert model.get_list("numberOfApplicants").type == "number"
        assert model.get_section("applicantOneDetails").title == "Applicant 1"
        assert model.keys[:2] == ["ukPassport", "numberOfApplicants"]
        assert model.start_path == "/uk-passport"

    def test_is_true(self):
        """Should evaluate conditions by name."""
        model = FormModel(build_example_passport_form())
        state = {"checkBeforeYouStart": {"ukPassport": False}}
        assert model.is_true("doesntHaveUKPassport", state) is True
        assert model.is_true("hasUKPassport", state) is False
        assert model.is_true("unknown", state) is False

    def test_config(self):
        """Should default the configuration."""
        model = FormModel(build_example_passport_form())
        assert model.config == EngineConfig()


class TestPageTypeOf:
    """Test inference of page controllers."""

    def test_declared_controller(self):
        """Should use the declared controller."""
        assert page_type_of(PageDef(path="/summary", controller=PageType.TERMINAL)) is PageType.TERMINAL

    def test_inferred(self):
        """Should infer upload and summary pages."""
        upload = PageDef(path="/cv", components=[ComponentDef(name="cv", type="FileUploadField")])
        assert page_type_of(upload) is PageType.FILE_UPLOAD
        assert page_type_of(PageDef(path="/summary")) is PageType.SUMMARY
        assert page_type_of(PageDef(path="/name")) is PageType.QUESTION
