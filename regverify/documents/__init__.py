"""
RegVerify — Proof Documents

Maps an applicant-supplied document locator to a blob-store reference and
probes whether the object exists.

Accepted locators, tried in order:
  1. gs://<container>/<path...>
  2. https://<host>/v0/b/<container>/o/<percent-encoded path>?alt=media
Anything else (including empty input) is unresolved, which is a normal
outcome rather than an error.
"""
import re
from collections import namedtuple
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote, urlsplit

from regverify.config import DOCUMENT_SCHEME_PREFIX
from regverify.storage import BlobNotFound, BlobStore

DocumentReference = namedtuple("DocumentReference", ["container", "path"])

# "%" not followed by two hex digits
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")

# Probe outcomes
FOUND = "found"
NOT_FOUND = "not_found"
PROBE_ERROR = "error"


@dataclass
class ProbeResult:
    outcome: str
    reference: Optional[DocumentReference] = None
    size: Optional[object] = None
    error: Optional[str] = None

    @property
    def exists(self) -> bool:
        return self.outcome == FOUND


# ============================================================
# RESOLUTION
# ============================================================
def _resolve_scheme_form(url: str) -> DocumentReference:
    container, _, path = url[len(DOCUMENT_SCHEME_PREFIX):].partition("/")
    return DocumentReference(container, path)


def _segment_after(segs: list, marker: str) -> Optional[str]:
    if marker not in segs:
        return None
    i = segs.index(marker)
    return segs[i + 1] if i + 1 < len(segs) else None


def _resolve_download_form(url: str) -> Optional[DocumentReference]:
    try:
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            return None
        segs = parts.path.split("/")
        container = _segment_after(segs, "b")
        encoded = _segment_after(segs, "o")
        if not container or encoded is None:
            return None
        if _BAD_ESCAPE.search(encoded):
            return None
        return DocumentReference(container, unquote(encoded, errors="strict"))
    except ValueError:
        # Malformed URL or undecodable escape; UnicodeDecodeError is a ValueError.
        return None


def resolve_document_url(url) -> Optional[DocumentReference]:
    if not url or not isinstance(url, str):
        return None
    if url.startswith(DOCUMENT_SCHEME_PREFIX):
        return _resolve_scheme_form(url)
    return _resolve_download_form(url)


# ============================================================
# EXISTENCE PROBE
# ============================================================
def probe_document(url, blobs: BlobStore) -> ProbeResult:
    """Resolve and look up the document. Never raises."""
    try:
        ref = resolve_document_url(url)
        if ref is None or not ref.container or not ref.path:
            return ProbeResult(NOT_FOUND, reference=ref)
        meta = blobs.get_metadata(ref.container, ref.path)
        return ProbeResult(FOUND, reference=ref, size=meta.get("size"))
    except BlobNotFound as e:
        return ProbeResult(NOT_FOUND, reference=ref, error=str(e))
    except Exception as e:
        return ProbeResult(PROBE_ERROR, error=str(e) or type(e).__name__)
