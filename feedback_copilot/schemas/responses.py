"""
responses.py
-------------

Defines the **Pydantic response models** used across API endpoints in
the Feedback Co-Pilot service.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal


class HealthResponse(BaseModel):
    """
    Response for `/health`.

    Attributes:
        status (str): Service status ("ok" when healthy).
        llm (str): Active LLM identifier configured in settings.
    """
    status: str
    llm: str


class UploadResponse(BaseModel):
    """
    Response for `/api/upload`.

    Attributes:
        type (str): "text" for PDFs, "image" for PNG/JPG.
        content (str): Extracted text, or a `data:<mime>;base64,<data>` URI.
        content_type (str): Content-type tag to send back to `/api/analyze`.
    """
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["text", "image"]
    content: str
    content_type: str = Field(alias="contentType")


class AnalyzeResponse(BaseModel):
    feedback: str


class Homework(BaseModel):
    id: str
    name: str
    details: str = ""


class HomeworksResponse(BaseModel):
    homeworks: List[Homework]


class Profile(BaseModel):
    id: str
    profile: str
    recommendations: str = ""


class ProfilesResponse(BaseModel):
    profiles: List[Profile]
