"""
content.py
----------

Implements the **ContentNormalizer**, which turns a raw submission into
normalized content the prompt composer can use.

### Submissions
- uploaded file (PDF, PNG, JPG/JPEG), saved to a temporary path first
- shared document link (Google Docs / Slides)
- image data-URI (`data:image/<type>;base64,<data>`)
- pasted text

### Normalized content
Either `TextContent` or `ImageContent`, never both. Uploaded temporary
files are removed on every exit path.
"""

import base64
import os
import string
import tempfile
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Union

import requests
from fastapi import UploadFile

from .base import ServiceBase
from .documents import DocumentResolver, infer_link_content_type, is_document_link
from ..core.errors import CopilotError, ProcessingError, UnsupportedType, UpstreamError, ValidationError

IMAGE_PREFIX = "data:image"
DATA_URI_HEAD = "data:image/"
DATA_URI_MARKER = ";base64,"
SUBTYPE_CHARS = frozenset(string.ascii_letters + string.digits + "_")
LINE_BREAKS = frozenset("\n\r\u2028\u2029")

LINK_FAILURE_PREFIX = "Failed to fetch Google Docs/Slides content: "

PDF_EXTENSIONS = (".pdf",)
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg")


class ContentType(str, Enum):
    PDF = "pdf"
    IMAGE = "image"
    GOOGLE_DOCS = "google-docs"
    GOOGLE_SLIDES = "google-slides"


@dataclass(frozen=True)
class TextContent:
    text: str


@dataclass(frozen=True)
class ImageContent:
    mime_type: str
    data: str

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


NormalizedContent = Union[TextContent, ImageContent]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def is_image_data_uri(value) -> bool:
    return isinstance(value, str) and value.startswith(IMAGE_PREFIX)


def parse_image_data_uri(value: str) -> ImageContent | None:
    """
    Strictly parse `data:image/<subtype>;base64,<payload>`.

    The subtype must be one or more word characters and the payload must be
    non-empty and free of line breaks. Anything else returns None.
    """
    if not isinstance(value, str) or not value.startswith(DATA_URI_HEAD):
        return None

    marker = value.find(DATA_URI_MARKER, len(DATA_URI_HEAD))
    if marker == -1:
        return None

    subtype = value[len(DATA_URI_HEAD):marker]
    payload = value[marker + len(DATA_URI_MARKER):]
    if not subtype or any(c not in SUBTYPE_CHARS for c in subtype):
        return None
    if not payload or any(c in LINE_BREAKS for c in payload):
        return None
    return ImageContent(mime_type=f"image/{subtype}", data=payload)


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def image_mime_type(filename: str) -> str:
    return "image/png" if file_extension(filename) == ".png" else "image/jpeg"


def infer_content_type(submission=None, filename: str | None = None) -> str | None:
    """
    Infer the content-type tag of a submission.

    File extensions win; then document link paths; then image data-URIs.
    Returns None when nothing applies.
    """
    if filename:
        ext = file_extension(filename)
        if ext in PDF_EXTENSIONS:
            return ContentType.PDF.value
        if ext in IMAGE_EXTENSIONS:
            return ContentType.IMAGE.value
    if is_document_link(submission):
        return infer_link_content_type(submission)
    if is_image_data_uri(submission):
        return ContentType.IMAGE.value
    return None


def load_pdf_text(path: str) -> str:
    """Extract the embedded text of every page of a PDF."""
    from langchain_community.document_loaders import PyPDFLoader

    pages = PyPDFLoader(path).load()
    return "\n".join(p.page_content for p in pages)


def remove_quietly(path: str | None) -> None:
    if not path:
        return
    try:
        os.remove(path)
    except OSError:
        pass


def save_upload(upload: UploadFile, upload_dir: str, max_bytes: int) -> str:
    """
    Stream an uploaded file to a temporary file inside `upload_dir`.

    Raises:
        ValidationError: The upload exceeds `max_bytes` (413, temp file removed).
    """
    os.makedirs(upload_dir, exist_ok=True)
    fd, path = tempfile.mkstemp(dir=upload_dir, prefix="upload-")
    try:
        written = 0
        with os.fdopen(fd, "wb") as f:
            while True:
                chunk = upload.file.read(64 * 1024)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise ValidationError("File too large", status_code=413)
                f.write(chunk)
    except Exception:
        remove_quietly(path)
        raise
    return path


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------

class ContentNormalizer(ServiceBase):
    """
    Converts submissions into `TextContent` or `ImageContent`.

    Attributes:
        resolver (DocumentResolver): Used for shared document links.
        pdf_loader (Callable[[str], str]): Extracts text from a PDF path.
    """

    def __init__(
        self,
        settings=None,
        resolver: DocumentResolver | None = None,
        pdf_loader: Callable[[str], str] = load_pdf_text,
    ):
        super().__init__(settings)
        self.resolver = resolver or DocumentResolver(self.settings)
        self.pdf_loader = pdf_loader

    def normalize_upload(self, path: str, filename: str) -> NormalizedContent:
        """
        Normalize an uploaded file stored at `path`.

        The file is deleted before this method returns or raises.

        Raises:
            UnsupportedType: Extension is not PDF, PNG, JPG or JPEG.
            ProcessingError: Extraction or reading failed (status 500).
        """
        try:
            ext = file_extension(filename)
            if ext in PDF_EXTENSIONS:
                text = self.pdf_loader(path)
                self.logger.info("Extracted %d characters from %s", len(text), filename)
                return TextContent(text)

            if ext in IMAGE_EXTENSIONS:
                with open(path, "rb") as f:
                    raw = f.read()
                data = base64.b64encode(raw).decode("ascii")
                return ImageContent(mime_type=image_mime_type(filename), data=data)

            self.logger.info("Rejected upload %s: unsupported extension '%s'", filename, ext)
            raise UnsupportedType("Unsupported file type")
        except CopilotError:
            raise
        except Exception as e:
            self.logger.exception("Upload processing failed for %s", filename)
            raise ProcessingError("Failed to process file", status_code=500) from e
        finally:
            remove_quietly(path)

    def resolve_link(self, link: str) -> TextContent:
        """
        Fetch the text behind a shared document link.

        Fetched text is never re-examined as a link or data-URI.

        Raises:
            UpstreamError: Link malformed or export failed (status 400).
        """
        self.logger.info("Fetching Google Docs/Slides content from: %s...", link[:50])
        try:
            text = self.resolver.resolve(link)
        except (CopilotError, requests.RequestException) as e:
            reason = e.message if isinstance(e, CopilotError) else str(e)
            self.logger.error("Document fetch failed: %s", reason)
            raise UpstreamError(f"{LINK_FAILURE_PREFIX}{reason}", status_code=400) from e

        self.logger.info("Google Docs content fetched, length: %d", len(text))
        return TextContent(text)

    def normalize_text(self, submission: str) -> NormalizedContent:
        """
        Normalize a string submission (document link, image data-URI or text).

        Raises:
            UpstreamError: Document link could not be resolved (status 400).
            UnsupportedType: Image data-URI is malformed.
        """
        if is_document_link(submission):
            return self.resolve_link(submission)

        if is_image_data_uri(submission):
            image = parse_image_data_uri(submission)
            if image is None:
                raise UnsupportedType("Invalid image format")
            return image

        return TextContent(submission)

