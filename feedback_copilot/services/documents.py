"""
documents.py
------------

Implements the **DocumentResolver**, which turns a shared Google Docs or
Google Slides link into the document's plain-text export.

### Recognised links
- `.../document/d/<ID>/...`      -> kind "document"
- `.../presentation/d/<ID>/...`  -> kind "presentation"

`<ID>` is the longest run of `[A-Za-z0-9_-]` directly after `d/`.

### Export
- presentations: `export?format=txt`, no fallback.
- documents: `export?format=txt`, then one retry with `export?format=plain`.

The response body is returned verbatim.
"""

import string
from typing import NamedTuple

import requests

from .base import ServiceBase
from ..core.errors import FetchFailed, InvalidLinkFormat

DOCS_HOST = "docs.google.com"
EXPORT_URL = "https://docs.google.com/{kind}/d/{doc_id}/export?format={fmt}"
USER_AGENT = "Mozilla/5.0 (compatible; FeedbackCoPilot/1.0)"

ID_CHARS = frozenset(string.ascii_letters + string.digits + "_-")

# Checked in order; a URL containing both shapes resolves as a document.
LINK_KINDS = ("document", "presentation")


class LinkMatch(NamedTuple):
    id: str
    kind: str


def _scan_id(url: str, start: int) -> str:
    end = start
    while end < len(url) and url[end] in ID_CHARS:
        end += 1
    return url[start:end]


def match_document_link(url: str) -> LinkMatch | None:
    """
    Extract the document id and kind from a sharing link.

    Returns:
        LinkMatch | None: `(id, kind)` for a recognised link, otherwise None.
    """
    for kind in LINK_KINDS:
        marker = f"/{kind}/d/"
        pos = url.find(marker)
        while pos != -1:
            doc_id = _scan_id(url, pos + len(marker))
            if doc_id:
                return LinkMatch(doc_id, kind)
            pos = url.find(marker, pos + 1)
    return None


def is_document_link(text) -> bool:
    return isinstance(text, str) and DOCS_HOST in text


def infer_link_content_type(url: str) -> str | None:
    """Content-type tag implied by the link path (slides are checked first)."""
    if "/presentation/" in url:
        return "google-slides"
    if "/document/" in url:
        return "google-docs"
    return None


class DocumentResolver(ServiceBase):
    """
    Fetches plain-text exports of shared documents.

    Attributes:
        session (requests.Session): HTTP session used for export calls.
    """

    def __init__(self, settings=None, session: requests.Session | None = None):
        super().__init__(settings)
        self.session = session or requests.Session()

    def _get(self, url: str) -> requests.Response:
        return self.session.get(
            url,
            headers={"User-Agent": USER_AGENT},
            timeout=self.settings.request_timeout,
        )

    def export_url(self, link: LinkMatch, fmt: str = "txt") -> str:
        return EXPORT_URL.format(kind=link.kind, doc_id=link.id, fmt=fmt)

    def resolve(self, url: str) -> str:
        """
        Fetch the text behind a document link.

        Raises:
            InvalidLinkFormat: The URL matches neither known path shape.
            FetchFailed: The export (and, for documents, its fallback) failed.
        """
        link = match_document_link(url)
        if link is None:
            raise InvalidLinkFormat()

        self.logger.info("Fetching %s %s via text export", link.kind, link.id)
        response = self._get(self.export_url(link, "txt"))
        if response.ok:
            return response.text

        if link.kind != "document":
            raise FetchFailed(link.kind, response.status_code, response.reason)

        self.logger.warning(
            "Text export of %s failed with %s, retrying as plain", link.id, response.status_code
        )
        fallback = self._get(self.export_url(link, "plain"))
        if not fallback.ok:
            raise FetchFailed(link.kind, response.status_code, response.reason)
        return fallback.text
