"""
errors.py
---------

Exception taxonomy for the Feedback Co-Pilot service.

Every error carries the HTTP status it maps to at the request boundary,
where `copilot_error_handler` renders it as `{"error": message}`.
"""

from fastapi import Request
from fastapi.responses import JSONResponse


class CopilotError(Exception):
    """Base class for all errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(CopilotError):
    """Required request fields are missing or invalid."""

    status_code = 400


class UnsupportedType(CopilotError):
    """Unrecognised upload extension or malformed image data-URI."""

    status_code = 400


class InvalidLinkFormat(CopilotError):
    """Document link does not match a known document or presentation path."""

    status_code = 400

    def __init__(self, message: str = "Invalid Google Docs or Slides URL format"):
        super().__init__(message)


class FetchFailed(CopilotError):
    """Document export endpoint answered with a non-success status."""

    status_code = 400

    def __init__(self, kind: str, status: int, status_text: str):
        super().__init__(f"Failed to fetch {kind} content: {status} {status_text}")
        self.kind = kind
        self.status = status
        self.status_text = status_text


class ProcessingError(CopilotError):
    """A submission could not be turned into normalized content."""


class UpstreamError(CopilotError):
    """A remote service (document export, model provider, Airtable) failed."""


class ConfigurationError(CopilotError):
    """A required credential is not configured."""


async def copilot_error_handler(request: Request, exc: CopilotError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
