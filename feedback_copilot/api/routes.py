"""
routes.py
---------

Implements the REST endpoints of the Feedback Co-Pilot.

### Overview
- `GET  /health`                 service status and active model
- `POST /api/upload`             PDF / PNG / JPG upload -> normalized content
- `POST /api/analyze`            submission + assignment -> generated feedback
- `GET  /api/airtable/homeworks` assignments from Airtable
- `GET  /api/airtable/profiles`  student profiles from Airtable

Every failure is returned as `{"error": message}`; `CopilotError`
subclasses carry their own status and are rendered by the handler
registered in `main.py`. Services are provided through FastAPI
dependencies so tests can swap them out.
"""

from typing import Optional

import requests
from fastapi import APIRouter, Depends, File, UploadFile

from ..core.config import Settings, settings as app_settings
from ..core.errors import CopilotError, UpstreamError, ValidationError
from ..core.logger import get_logger
from ..schemas.requests import AnalyzeRequest
from ..schemas.responses import (
    AnalyzeResponse,
    HealthResponse,
    HomeworksResponse,
    ProfilesResponse,
    UploadResponse,
)
from ..services.airtable import AirtableClient
from ..services.content import ContentNormalizer, ImageContent, infer_content_type, save_upload
from ..services.feedback import FeedbackService

logger = get_logger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_settings() -> Settings:
    return app_settings


# Services are built per request, so each request gets its own HTTP session.

def get_normalizer(settings: Settings = Depends(get_settings)) -> ContentNormalizer:
    return ContentNormalizer(settings)


def get_feedback_service(settings: Settings = Depends(get_settings)) -> FeedbackService:
    return FeedbackService(settings)


def get_airtable(settings: Settings = Depends(get_settings)) -> AirtableClient:
    return AirtableClient(settings)


# ---------------------------------------------------------------------------
# Health Check
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
def health(settings: Settings = Depends(get_settings)):
    return HealthResponse(status="ok", llm=settings.llm_name)


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------

@router.post("/api/upload", response_model=UploadResponse)
def upload(
    file: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
    normalizer: ContentNormalizer = Depends(get_normalizer),
):
    """Store the upload temporarily, normalize it and remove the temp file."""
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    path = save_upload(file, settings.upload_dir, settings.max_upload_bytes)
    content = normalizer.normalize_upload(path, file.filename)
    content_type = infer_content_type(filename=file.filename)

    if isinstance(content, ImageContent):
        return UploadResponse(type="image", content=content.data_uri, content_type=content_type)
    return UploadResponse(type="text", content=content.text, content_type=content_type)


@router.post("/api/analyze", response_model=AnalyzeResponse)
def analyze(
    payload: AnalyzeRequest,
    service: FeedbackService = Depends(get_feedback_service),
):
    """Generate curator-style feedback for one submission."""
    try:
        feedback = service.handle(
            payload.task,
            payload.content,
            criteria=payload.criteria,
            content_type=payload.content_type,
            custom_template=payload.custom_prompt,
        )
    except CopilotError:
        raise
    except Exception as e:
        logger.exception("Analysis error")
        raise UpstreamError(f"Failed to generate feedback: {str(e) or 'Unknown error'}") from e
    return AnalyzeResponse(feedback=feedback)


# ---------------------------------------------------------------------------
# Airtable pass-through
# ---------------------------------------------------------------------------

@router.get("/api/airtable/homeworks", response_model=HomeworksResponse)
def airtable_homeworks(airtable: AirtableClient = Depends(get_airtable)):
    try:
        return HomeworksResponse(homeworks=airtable.list_homeworks())
    except requests.RequestException as e:
        logger.error("Error fetching from Airtable: %s", e)
        raise UpstreamError(f"Failed to fetch homeworks: {e}") from e


@router.get("/api/airtable/profiles", response_model=ProfilesResponse)
def airtable_profiles(airtable: AirtableClient = Depends(get_airtable)):
    try:
        return ProfilesResponse(profiles=airtable.list_profiles())
    except requests.RequestException as e:
        logger.error("Error fetching from Airtable: %s", e)
        raise UpstreamError(f"Failed to fetch profiles: {e}") from e
