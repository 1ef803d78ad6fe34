"""
Journey: GET/POST handling for one form, without HTTP.

A web layer maps its routes onto these calls and renders the
returned view models:

    GET  /{path}                      -> get()
    POST /{path}                      -> post()
    GET  /{path}/{itemId}             -> get(item_id=...)      repeat pages
    GET  /{path}/summary              -> get_list_summary()
    POST /{path}/summary              -> post_list_summary()
    GET  /{path}/{itemId}/confirm-delete -> get_delete_confirmation()
    POST /{path}/{itemId}/confirm-delete -> post_delete()

Every handler replays the stored state first. A page that is not
reachable answers with a redirect to the furthest reachable page.

State writes are deep merges into the store (read-modify-write), never
whole-record overwrites.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .config import EngineConfig
from .form_model import FormModel
from .model import normalise_path
from .pages import QuestionPage, SummaryPage
from .repeat import RepeatPage
from .state import PROGRESS_KEY, StateStore, push_progress
from .upload import FileUploadPage, UploadService

logger = logging.getLogger(__name__)

REMOVE_FILE_KEY = "__remove"


@dataclass
class PageResponse:
    """
    What a handler wants the web layer to do.

    Exactly one of redirect / view_model is set.
    """

    redirect: Optional[str] = None
    view_model: Optional[Dict[str, Any]] = None

    @property
    def is_redirect(self) -> bool:
        return self.redirect is not None


class FormJourney:
    """
    Request handling over a FormModel and a StateStore.

    Properties:
        model: FormModel being served
        store: StateStore holding one state record per session key
        config: EngineConfig (defaults to the model's)
        upload_service: UploadService used by file upload pages, if any
    """

    def __init__(
        self,
        model: FormModel,
        store: StateStore,
        config: Optional[EngineConfig] = None,
        upload_service: Optional[UploadService] = None,
    ):
        self.model = model
        self.store = store
        self.config = config or model.config
        self.upload_service = upload_service

    def href(self, path: str) -> str:
        return f"{self.model.base_path}{path}"

    def redirect(self, path: str) -> PageResponse:
        return PageResponse(redirect=self.href(path))

    def _page(self, path: str) -> Optional[QuestionPage]:
        return self.model.get_page(path)

    def _record_visit(self, key: str, state: Dict[str, Any], path: str) -> Dict[str, Any]:
        progress = push_progress(state.get(PROGRESS_KEY), path, self.config.max_progress_entries)
        if progress != state.get(PROGRESS_KEY):
            state = self.store.merge_state(key, {PROGRESS_KEY: progress})
        return state

    def _replay(self, key: str, page: QuestionPage, state: Dict[str, Any], force: bool = False):
        context = self.model.get_form_context(state, page.path, force=force)
        if force or context.is_reachable(page.path):
            return context, None
        target = self.model.get_relevant_path(context)
        logger.debug("%s is not reachable for %s, redirecting to %s", page.path, key, target)
        return context, self.redirect(target)

    # Question pages

    def get(self, key: str, path: str, item_id: Optional[str] = None, force: bool = False) -> PageResponse:
        page = self._page(path)
        if page is None:
            return self.redirect(self.model.start_path)
        if page is self.model.status_page:
            return PageResponse(view_model=page.get_view_model({}, None, None))

        state = self.store.get_state(key)
        if isinstance(page, FileUploadPage) and self.upload_service is not None:
            retrieval_key = self.model.definition.output_email or key
            state = self.store.merge_state(key, page.refresh_upload(state, self.upload_service, retrieval_key))

        context, redirect = self._replay(key, page, state, force)
        if redirect is not None:
            return redirect

        state = self._record_visit(key, state, page.path)
        context.state[PROGRESS_KEY] = state.get(PROGRESS_KEY, [])

        if isinstance(page, SummaryPage):
            return PageResponse(view_model=page.get_summary_view_model(context))
        if isinstance(page, RepeatPage):
            payload = page.get_form_data_from_state(context.state, item_id)
        elif isinstance(page, FileUploadPage):
            payload = page.get_payload_from_upload_state(context.state)
        else:
            payload = page.get_form_data_from_state(context.state)
        return PageResponse(view_model=page.get_view_model(payload, None, context))

    def post(
        self,
        key: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        item_id: Optional[str] = None,
        return_url: Optional[str] = None,
    ) -> PageResponse:
        page = self._page(path)
        if page is None:
            return self.redirect(self.model.start_path)

        payload = dict(payload or {})
        state = self.store.get_state(key)

        if isinstance(page, FileUploadPage):
            if payload.get(REMOVE_FILE_KEY):
                self.store.merge_state(key, page.remove_file(state, payload[REMOVE_FILE_KEY]))
                return self.redirect(page.path)
            payload = page.get_payload_from_upload_state(state)

        if isinstance(page, SummaryPage):
            context, redirect = self._replay(key, page, state)
            if redirect is not None:
                return redirect
            logger.info("Form %s completed for %s", self.model.name, key)
            return self.redirect(page.get_next_path(context.evaluation_state) or self.model.status_path)

        context = self.model.get_form_context(state, page.path, payload)
        if not context.is_reachable(page.path):
            return self.redirect(self.model.get_relevant_path(context))

        if context.errors:
            context.state[PROGRESS_KEY] = state.get(PROGRESS_KEY, [])
            return PageResponse(view_model=page.get_view_model(payload, context.errors, context))

        if isinstance(page, RepeatPage):
            self.store.merge_state(key, page.get_state_from_valid_form(state, context.payload, item_id))
            return self.redirect(f"{page.path}/summary")

        state = self.store.merge_state(key, page.get_state_from_valid_form(context.payload))
        return self._proceed(state, page, return_url)

    def _proceed(self, state: Dict[str, Any], page: QuestionPage, return_url: Optional[str]) -> PageResponse:
        context = self.model.get_form_context(state)
        if return_url and any(normalise_path(p) == normalise_path(return_url) for p in context.paths):
            return self.redirect(return_url)
        next_path = page.get_next_path(context.evaluation_state)
        if next_path is None:
            return self.redirect(self.model.get_relevant_path(context))
        return self.redirect(next_path)

    # Repeat pages

    def _repeat_page(self, path: str) -> RepeatPage:
        page = self._page(path)
        if not isinstance(page, RepeatPage):
            raise ValueError(f"{path} is not a repeat page")
        return page

    def get_list_summary(self, key: str, path: str) -> PageResponse:
        page = self._repeat_page(path)
        state = self.store.get_state(key)
        context, redirect = self._replay(key, page, state)
        if redirect is not None:
            return redirect
        state = self._record_visit(key, state, f"{page.path}/summary")
        context.state[PROGRESS_KEY] = state.get(PROGRESS_KEY, [])
        return PageResponse(view_model=page.get_list_summary_view_model(state, None, context))

    def post_list_summary(self, key: str, path: str, action: str = "continue") -> PageResponse:
        """`action` is "add-another" or "continue"."""
        page = self._repeat_page(path)
        state = self.store.get_state(key)
        context, redirect = self._replay(key, page, state)
        if redirect is not None:
            return redirect

        if action == "add-another":
            error = page.add_another(state)
            if error is not None:
                return PageResponse(view_model=page.get_list_summary_view_model(state, [error], context))
            return self.redirect(page.path)

        errors = page.validate_state(state)
        if errors:
            return PageResponse(view_model=page.get_list_summary_view_model(state, errors, context))
        return self._proceed(state, page, None)

    def get_delete_confirmation(self, key: str, path: str, item_id: str) -> PageResponse:
        page = self._repeat_page(path)
        state = self.store.get_state(key)
        item = page.get_item(state, item_id)
        return PageResponse(
            view_model={
                "name": self.model.name,
                "path": page.path,
                "page_title": f"Are you sure you want to remove this {page.item_title.lower()}?",
                "item": {"text": page.get_item_display(item.value), "itemId": item_id},
                "back_link": self.href(f"{page.path}/summary"),
            }
        )

    def post_delete(self, key: str, path: str, item_id: str, confirm: bool) -> PageResponse:
        page = self._repeat_page(path)
        state = self.store.get_state(key)
        if confirm:
            self.store.merge_state(key, page.delete_item(state, item_id))
        return self.redirect(f"{page.path}/summary")

