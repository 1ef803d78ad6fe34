"""
File uploads.

The engine never receives file bytes. Users upload straight to the
uploader service; the engine only:

    - initiates an upload (and re-uses one that is still `initiated`)
    - asks the service for upload status, polling with exponential
      backoff while a file is still being scanned
    - keeps the file records in state["upload"][page_path]

Upload status payload, as returned by the service:

    {"uploadStatus": "ready",
     "form": {"file": {"fileId": "...", "filename": "cv.pdf",
                       "contentLength": 1234, "fileStatus": "complete",
                       "errorMessage": None}},
     "numberOfRejectedFiles": 0}
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

import httpx

from .config import EngineConfig
from .errors import FormDefinitionError, UnexpectedEmptyResponseError, UploadServiceError, UploadStatusTimeoutError
from .fields import FileUploadField
from .model import PageType
from .pages import QuestionPage

logger = logging.getLogger(__name__)

MAX_UPLOADS = 25


class UploadService:
    """Thin wrapper around httpx for the uploader service."""

    def __init__(
        self,
        base_url: str,
        bucket_name: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.bucket_name = bucket_name
        self._client = client or httpx.Client(base_url=base_url, timeout=httpx.Timeout(timeout, connect=5.0))

    @classmethod
    def from_config(cls, config: EngineConfig) -> "UploadService":
        return cls(config.uploader_url, config.uploader_bucket_name, config.http_timeout)

    def _json(self, response: httpx.Response) -> Any:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UploadServiceError(f"Uploader responded {response.status_code}") from exc
        if not response.content:
            return None
        return response.json()

    def initiate_upload(self, path: str, retrieval_key: str, accept: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "redirect": path,
            "metadata": {"retrievalKey": retrieval_key},
        }
        if accept:
            body["mimeTypes"] = [mime.strip() for mime in accept.split(",") if mime.strip()]
        if self.bucket_name:
            body["s3Bucket"] = self.bucket_name

        result = self._json(self._client.post("/initiate", json=body))
        if not result:
            raise UnexpectedEmptyResponseError("Unexpected empty response from initiateUpload")
        logger.info("Initiated upload %s for %s", result.get("uploadId"), path)
        return result

    def get_upload_status(self, upload_id: str) -> Dict[str, Any]:
        result = self._json(self._client.get(f"/status/{upload_id}"))
        if not result:
            raise UnexpectedEmptyResponseError(f"Unexpected empty response from getUploadStatus for {upload_id}")
        return result

    def close(self) -> None:
        self._client.close()


def file_of(status: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return ((status or {}).get("form") or {}).get("file") or {}


def is_pending(status: Dict[str, Any]) -> bool:
    return status.get("uploadStatus") == "pending" or file_of(status).get("fileStatus") == "pending"


def poll_upload_status(
    service: UploadService,
    upload_id: str,
    config: Optional[EngineConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
    cancel_event: Optional[threading.Event] = None,
) -> Dict[str, Any]:
    """
    Ask for an upload's status until it is no longer pending.

    Waits `initial_delay * backoff_factor ** attempt` between attempts
    and gives up after `upload_max_attempts`.

    Raises:
        UploadStatusTimeoutError: still pending after the last attempt,
            or cancelled through `cancel_event`
        UnexpectedEmptyResponseError: the service answered with nothing
    """
    config = config or EngineConfig()
    attempts = max(1, config.upload_max_attempts)

    for attempt in range(attempts):
        status = service.get_upload_status(upload_id)
        if not is_pending(status):
            return status

        if attempt == attempts - 1:
            break

        delay = config.upload_initial_delay * config.upload_backoff_factor ** attempt
        logger.debug("Upload %s pending, retrying in %.2fs", upload_id, delay)
        if cancel_event is not None:
            if cancel_event.wait(delay):
                raise UploadStatusTimeoutError(upload_id, attempt + 1)
        else:
            sleep(delay)

    raise UploadStatusTimeoutError(upload_id, attempts)


class FileUploadPage(QuestionPage):
    """
    Page controller for a page with one FileUploadField.

    Upload state lives outside the page's answers:
        state["upload"][path] = {"upload": {...initiated upload...} | None,
                                 "files": [{"uploadId": ..., "status": {...}}]}
    """

    page_type = PageType.FILE_UPLOAD

    def __init__(self, model, definition):
        super().__init__(model, definition)
        fields = [c for c in self.collection.fields if isinstance(c, FileUploadField)]
        if len(fields) != 1:
            raise FormDefinitionError(f"File upload page {definition.path} must have exactly one file upload field")
        self.file_field: FileUploadField = fields[0]

    @property
    def max_files(self) -> int:
        limit = self.model.config.upload_max_files
        schema_max = self.file_field.schema.get("max")
        if isinstance(schema_max, int):
            limit = min(limit, schema_max)
        return min(limit, MAX_UPLOADS)

    def get_upload_state(self, state: Dict[str, Any]) -> Dict[str, Any]:
        value = (state.get("upload") or {}).get(self.path) or {}
        return {"upload": value.get("upload"), "files": list(value.get("files") or [])}

    def upload_patch(self, upload: Optional[Dict[str, Any]], files: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {"upload": {self.path: {"upload": upload, "files": files}}}

    def get_payload_from_upload_state(self, state: Dict[str, Any]) -> Dict[str, Any]:
        """Payload for validating the page: one flat entry per uploaded file."""
        entries = []
        for record in self.get_upload_state(state)["files"]:
            file = file_of(record.get("status"))
            entries.append(
                {
                    "fileId": file.get("fileId"),
                    "filename": file.get("filename"),
                    "contentLength": file.get("contentLength"),
                    "fileStatus": file.get("fileStatus"),
                    "errorMessage": file.get("errorMessage"),
                }
            )
        return {self.file_field.name: entries}

    def refresh_upload(
        self,
        state: Dict[str, Any],
        service: UploadService,
        retrieval_key: str,
        sleep: Callable[[float], None] = time.sleep,
    ) -> Dict[str, Any]:
        """
        Bring the page's upload state up to date.

        Pending files are polled until they settle. A finished upload has
        its file added to the front of the list. A new upload is initiated
        while there is room for more files; one still `initiated` is kept.
        Returns the state patch.
        """
        config = self.model.config
        upload_state = self.get_upload_state(state)
        files = upload_state["files"]
        upload = upload_state["upload"]

        for index, record in enumerate(files):
            if file_of(record.get("status")).get("fileStatus") == "pending":
                status = poll_upload_status(service, record["uploadId"], config, sleep)
                files[index] = {"uploadId": record["uploadId"], "status": status}

        if upload is not None:
            status = service.get_upload_status(upload["uploadId"])
            if status.get("uploadStatus") != "initiated":
                if is_pending(status):
                    status = poll_upload_status(service, upload["uploadId"], config, sleep)
                if file_of(status):
                    files.insert(0, {"uploadId": upload["uploadId"], "status": status})
                upload = None

        if upload is None and len(files) < self.max_files:
            upload = service.initiate_upload(self.path, retrieval_key, self.file_field.options.get("accept"))

        return self.upload_patch(upload, files)

    def remove_file(self, state: Dict[str, Any], file_id: str) -> Dict[str, Any]:
        upload_state = self.get_upload_state(state)
        files = [
            record
            for record in upload_state["files"]
            if file_of(record.get("status")).get("fileId") != file_id
        ]
        if len(files) == len(upload_state["files"]):
            logger.debug("File %s not found on %s", file_id, self.path)
        return self.upload_patch(upload_state["upload"], files)

    def get_view_model(self, payload, errors=None, context=None):
        view_model = super().get_view_model(payload, errors, context)
        upload_state = self.get_upload_state(context.state if context is not None else {})
        upload = upload_state["upload"]
        view_model["upload"] = {
            "upload_url": upload.get("uploadUrl") if upload else None,
            "files": [file_of(record.get("status")) for record in upload_state["files"]],
            "can_upload": upload is not None,
        }
        return view_model
