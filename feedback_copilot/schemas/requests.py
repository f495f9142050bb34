"""
requests.py
------------

Defines the **Pydantic request models** for the Feedback Co-Pilot API.

### Supported Endpoints
- `/api/analyze`

Uploads (`/api/upload`) arrive as multipart form data and have no model.
Required-field checks are left to the feedback service so that a missing
task or content yields the service's own 400 message.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class AnalyzeRequest(BaseModel):
    """
    Request body for `/api/analyze`.

    Attributes:
        task (Optional[str]): Assignment description.
        criteria (Optional[str]): Evaluation criteria for the assignment.
        content (Optional[str]): Pasted text, image data-URI or document link.
        content_type (Optional[str]): "pdf", "image", "google-docs" or
            "google-slides" (JSON key `contentType`).
        custom_prompt (Optional[str]): Template with `{{task}}`,
            `{{content}}` and `{{criteria}}` placeholders (JSON key `customPrompt`).
    """
    model_config = ConfigDict(populate_by_name=True)

    task: Optional[str] = None
    criteria: Optional[str] = None
    content: Optional[str] = None
    content_type: Optional[str] = Field(default=None, alias="contentType")
    custom_prompt: Optional[str] = Field(default=None, alias="customPrompt")
