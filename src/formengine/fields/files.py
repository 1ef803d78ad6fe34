"""
FileUploadField: answers are the files accepted by the upload service.

The upload page builds the payload from the files recorded in
state["upload"][path]; each entry looks like

    {"fileId": "...", "filename": "cv.pdf", "contentLength": 1234,
     "fileStatus": "complete", "errorMessage": None}

Only complete files without an error are accepted. State keeps
fileId, filename and contentLength.
"""

from typing import Any, Dict, List, Optional

from pydantic import AfterValidator, BeforeValidator, conlist

from .base import FormComponent, annotated, blank_to_none, custom_error, required_check

STORED_KEYS = ("fileId", "filename", "contentLength")


def check_files_complete(value: Optional[List[Dict[str, Any]]]):
    for entry in value or []:
        if entry.get("errorMessage"):
            raise custom_error("file_error", message=entry["errorMessage"])
        if entry.get("fileStatus", "complete") != "complete":
            raise custom_error("file_error", message="The selected file has not fully uploaded")
    return value


class FileUploadField(FormComponent):
    messages = {
        "required": "Select {lower_label}",
        "too_short": "You must upload {min_length} file{plural_min} or more",
        "too_long": "You can only upload {max_length} file{plural_max} or less",
        "file_error": "{message}",
    }

    def annotation(self):
        kwargs = {}
        if isinstance(self.schema.get("min"), int):
            kwargs["min_length"] = self.schema["min"]
        if isinstance(self.schema.get("max"), int):
            kwargs["max_length"] = self.schema["max"]
        if isinstance(self.schema.get("length"), int):
            kwargs["min_length"] = kwargs["max_length"] = self.schema["length"]

        validators: List[Any] = [BeforeValidator(blank_to_none)]
        if self.required:
            validators.append(AfterValidator(required_check))
        validators.append(AfterValidator(check_files_complete))
        return annotated(Optional[conlist(Dict[str, Any], **kwargs)], *validators)

    def error_message(self, key, error_type, context=None):
        context = dict(context or {})
        context["plural_min"] = "" if context.get("min_length") == 1 else "s"
        context["plural_max"] = "" if context.get("max_length") == 1 else "s"
        return super().error_message(key, error_type, context)

    def is_value(self, value):
        return isinstance(value, list) and bool(value)

    def get_state_value_from_valid_form(self, payload):
        files = payload.get(self.name) or []
        return [{key: entry.get(key) for key in STORED_KEYS} for entry in files] or None

    def get_context_value_from_state(self, state):
        files = self.get_form_value_from_state(state)
        if files is None:
            return [] if not self.required else None
        return [entry.get("fileId") for entry in files]

    def get_display_string_from_state(self, state):
        files = self.get_form_value_from_state(state) or []
        if not files:
            return ""
        return f"Uploaded {len(files)} file{'' if len(files) == 1 else 's'}"

    def get_view_model(self, payload, errors=None):
        view_model = super().get_view_model(payload, errors)
        view_model["type"] = "file"
        view_model["files"] = [
            {"fileId": entry.get("fileId"), "filename": entry.get("filename")}
            for entry in payload.get(self.name) or []
        ]
        return view_model
