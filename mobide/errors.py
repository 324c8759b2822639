"""Mobide error taxonomy.

Every error carries a stable ``code`` and an HTTP ``status_code`` so the API
layer can render it without knowing where it came from.
"""

from __future__ import annotations

from typing import Any


class MobideError(Exception):
    """Base class for all Mobide errors."""

    code: str = "internal_error"
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(MobideError):
    code = "validation_error"
    status_code = 400
    default_message = "Invalid request"


class InvalidSessionError(ValidationError):
    """Session identifier would escape the workspaces root."""

    code = "invalid_session"
    default_message = "Invalid session"


class InvalidPathError(ValidationError):
    """Target path would escape the session workspace."""

    code = "invalid_path"
    default_message = "Invalid path"


class FileOperationError(ValidationError):
    code = "file_operation_failed"
    default_message = "File operation failed"


class NotFoundError(MobideError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class ImageUnavailableError(MobideError):
    """Terminal image is missing and could not be obtained.

    Fatal for the current provisioning attempt only; callers may retry.
    """

    code = "image_unavailable"
    status_code = 503
    default_message = "Terminal image unavailable"


class ContainerIOError(MobideError):
    """Container create/start/attach or stream I/O failed."""

    code = "container_io"
    status_code = 502
    default_message = "Container I/O failed"


class TransientRuntimeError(MobideError):
    """Resize/stop failures. Logged and swallowed by callers."""

    code = "transient_runtime_error"
    status_code = 502
    default_message = "Container runtime call failed"
