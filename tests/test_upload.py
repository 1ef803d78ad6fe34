"""
Tests for file uploads in `formengine.upload`.

The upload service is replaced by a fake in most tests; UploadService
itself is tested against httpx.MockTransport.
"""

import json
import threading

import httpx
import pytest

from formengine.config import EngineConfig
from formengine.errors import UnexpectedEmptyResponseError, UploadServiceError, UploadStatusTimeoutError
from formengine.examples import build_example_upload_form
from formengine.form_model import FormModel
from formengine.state import merge
from formengine.upload import FileUploadPage, UploadService, poll_upload_status


def ready(file_id, filename="evidence.pdf", status="complete"):
    return {
        "uploadStatus": "ready",
        "form": {"file": {"fileId": file_id, "filename": filename, "contentLength": 10, "fileStatus": status}},
        "numberOfRejectedFiles": 0,
    }


PENDING = {"uploadStatus": "pending"}
INITIATED = {"uploadStatus": "initiated"}


class FakeUploadService:
    """Answers status requests from a script and counts initiated uploads."""

    def __init__(self, statuses=None):
        self.statuses = {key: list(value) for key, value in (statuses or {}).items()}
        self.initiated = []
        self.status_calls = 0

    def get_upload_status(self, upload_id):
        self.status_calls += 1
        script = self.statuses[upload_id]
        return script.pop(0) if len(script) > 1 else script[0]

    def initiate_upload(self, path, retrieval_key, accept=None):
        upload_id = f"u{len(self.initiated) + 1}"
        self.initiated.append((path, retrieval_key, accept))
        return {"uploadId": upload_id, "uploadUrl": f"/upload-and-scan/{upload_id}", "statusUrl": f"/status/{upload_id}"}


class TestPollUploadStatus:
    """Test polling with exponential backoff."""

    def test_returns_settled_status(self):
        """Should stop polling once the upload is no longer pending."""
        service = FakeUploadService({"u1": [PENDING, PENDING, ready("f1")]})
        sleeps = []
        status = poll_upload_status(service, "u1", EngineConfig(), sleeps.append)
        assert status == ready("f1")
        assert sleeps == [0.5, 1.0]

    def test_times_out_after_attempt_cap(self):
        """Should give up after the configured number of attempts."""
        service = FakeUploadService({"u1": [PENDING]})
        sleeps = []
        config = EngineConfig(upload_max_attempts=3, upload_initial_delay=0.1, upload_backoff_factor=3.0)

        with pytest.raises(UploadStatusTimeoutError) as excinfo:
            poll_upload_status(service, "u1", config, sleeps.append)

        assert excinfo.value.attempts == 3
        assert service.status_calls == 3
        assert sleeps == pytest.approx([0.1, 0.3])

    def test_pending_file_status(self):
        """Should keep polling while the file itself is pending."""
        service = FakeUploadService({"u1": [ready("f1", status="pending"), ready("f1")]})
        sleeps = []
        assert poll_upload_status(service, "u1", EngineConfig(), sleeps.append) == ready("f1")
        assert len(sleeps) == 1

    def test_cancelled(self):
        """Should stop waiting when cancelled."""
        service = FakeUploadService({"u1": [PENDING]})
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(UploadStatusTimeoutError) as excinfo:
            poll_upload_status(service, "u1", EngineConfig(), cancel_event=cancel)
        assert excinfo.value.attempts == 1


class TestUploadService:
    """Test the HTTP client for the uploader."""

    def service(self, handler):
        client = httpx.Client(base_url="http://uploader", transport=httpx.MockTransport(handler))
        return UploadService("http://uploader", bucket_name="bucket", client=client)

    def test_initiate_upload(self):
        """Should post the redirect, retrieval key and accepted types."""
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = request.read()
            return httpx.Response(200, json={"uploadId": "u1", "uploadUrl": "/upload-and-scan/u1"})

        result = self.service(handler).initiate_upload("/evidence", "me@example.com", "application/pdf, image/jpeg")
        assert result["uploadId"] == "u1"
        assert seen["path"] == "/initiate"
        body = json.loads(seen["body"])
        assert body["metadata"] == {"retrievalKey": "me@example.com"}
        assert body["mimeTypes"] == ["application/pdf", "image/jpeg"]
        assert body["s3Bucket"] == "bucket"

    def test_get_upload_status(self):
        """Should fetch the status of one upload."""

        def handler(request):
            assert request.url.path == "/status/u1"
            return httpx.Response(200, json=ready("f1"))

        assert self.service(handler).get_upload_status("u1") == ready("f1")

    def test_empty_status_response(self):
        """Should raise when the service answers with no body."""
        service = self.service(lambda request: httpx.Response(200, content=b""))
        with pytest.raises(UnexpectedEmptyResponseError, match="getUploadStatus for u1"):
            service.get_upload_status("u1")

    def test_empty_initiate_response(self):
        """Should raise when initiating returns no body."""
        service = self.service(lambda request: httpx.Response(200, content=b""))
        with pytest.raises(UnexpectedEmptyResponseError, match="initiateUpload"):
            service.initiate_upload("/evidence", "key")

    def test_http_error(self):
        """Should wrap error responses."""
        service = self.service(lambda request: httpx.Response(500))
        with pytest.raises(UploadServiceError):
            service.get_upload_status("u1")


class TestFileUploadPage:
    """Test upload state handling on a file upload page."""

    @pytest.fixture
    def page(self):
        return FormModel(build_example_upload_form(max_files=3)).get_page("/evidence")

    def test_page_type(self, page):
        """Should infer the upload controller from the field type."""
        assert isinstance(page, FileUploadPage)
        assert page.max_files == 3

    def test_first_visit_initiates_upload(self, page):
        """Should start an upload when there is none."""
        service = FakeUploadService()
        patch = page.refresh_upload({}, service, "forms@example.com")
        upload_state = page.get_upload_state(patch)
        assert upload_state["upload"]["uploadId"] == "u1"
        assert upload_state["files"] == []
        assert service.initiated == [("/evidence", "forms@example.com", "application/pdf,image/jpeg")]

    def test_initiated_upload_reused(self, page):
        """Should keep an upload the user has not used yet."""
        state = page.upload_patch({"uploadId": "u1"}, [])
        service = FakeUploadService({"u1": [INITIATED]})
        patch = page.refresh_upload(state, service, "key")
        assert page.get_upload_state(patch)["upload"] == {"uploadId": "u1"}
        assert service.initiated == []

    def test_finished_upload_added_first(self, page):
        """Should put the newest file first and start another upload."""
        state = page.upload_patch({"uploadId": "u2"}, [{"uploadId": "u1", "status": ready("f1", "old.pdf")}])
        service = FakeUploadService({"u2": [ready("f2", "new.pdf")]})
        patch = page.refresh_upload(state, service, "key", sleep=lambda delay: None)
        upload_state = page.get_upload_state(patch)
        assert [record["uploadId"] for record in upload_state["files"]] == ["u2", "u1"]
        assert upload_state["upload"]["uploadId"] == "u1"

    def test_no_new_upload_when_full(self, page):
        """Should not start another upload once the limit is reached."""
        state = page.upload_patch(
            {"uploadId": "u2"},
            [{"uploadId": "u1", "status": ready("f1")}, {"uploadId": "u0", "status": ready("f0")}],
        )
        service = FakeUploadService({"u2": [ready("f2")]})
        patch = page.refresh_upload(state, service, "key")
        upload_state = page.get_upload_state(patch)
        assert len(upload_state["files"]) == 3
        assert upload_state["upload"] is None
        assert service.initiated == []

    def test_remove_file(self, page):
        """Should drop the chosen file only."""
        state = page.upload_patch(
            None,
            [{"uploadId": "u1", "status": ready("f1")}, {"uploadId": "u2", "status": ready("f2")}],
        )
        patch = page.remove_file(state, "f1")
        assert [record["uploadId"] for record in page.get_upload_state(merge(state, patch))["files"]] == ["u2"]

    def test_payload_from_upload_state(self, page):
        """Should validate the uploaded files as the field's answer."""
        state = page.upload_patch(None, [{"uploadId": "u1", "status": ready("f1")}])
        payload = page.get_payload_from_upload_state(state)
        result = page.validate(payload)
        assert result.ok
        assert page.get_state_from_valid_form(result.value) == {
            "evidence": [{"fileId": "f1", "filename": "evidence.pdf", "contentLength": 10}]
        }
