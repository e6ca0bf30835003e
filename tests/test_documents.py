"""
Document locator resolution and blob existence probe.
"""

import pytest
from unittest.mock import MagicMock

from regverify.documents import (
    FOUND, NOT_FOUND, PROBE_ERROR,
    DocumentReference, probe_document, resolve_document_url,
)
from regverify.storage import BlobNotFound

DOWNLOAD_URL = "https://firebasestorage.googleapis.com/v0/b/mybucket/o/docs%2Fid1.pdf?alt=media&token=abc"


class TestSchemeForm:
    """gs://container/path"""

    def test_splits_at_first_slash(self):
        assert resolve_document_url("gs://mybucket/docs/id1.pdf") == DocumentReference("mybucket", "docs/id1.pdf")

    def test_deep_path_rejoined(self):
        ref = resolve_document_url("gs://b1/a/b/c/d.png")
        assert ref.container == "b1"
        assert ref.path == "a/b/c/d.png"

    def test_container_only_gives_empty_path(self):
        assert resolve_document_url("gs://mybucket") == DocumentReference("mybucket", "")

    def test_bare_prefix(self):
        assert resolve_document_url("gs://") == DocumentReference("", "")


class TestDownloadForm:
    """https://host/v0/b/<container>/o/<encoded path>"""

    def test_percent_decoded_path(self):
        assert resolve_document_url(DOWNLOAD_URL) == DocumentReference("mybucket", "docs/id1.pdf")

    def test_unicode_escape(self):
        ref = resolve_document_url("https://host/v0/b/bk/o/caf%C3%A9.pdf")
        assert ref.path == "café.pdf"

    @pytest.mark.parametrize("url", [
        "https://host/v0/x/mybucket/o/file.pdf",   # no b segment
        "https://host/v0/b/mybucket/x/file.pdf",   # no o segment
        "https://host/v0/b/mybucket/o",            # nothing after o
        "https://host/v0/b",                       # nothing after b
        "https://[::1/v0/b/mybucket/o/file.pdf",   # malformed host
        "https://host/v0/b/bk/o/%FF%FE",           # undecodable escape
        "https://host/v0/b/bk/o/x%zz.pdf",         # bad escape
        "https://host/v0/b/bk/o/x%2.pdf",          # truncated escape
        "/v0/b/mybucket/o/file.pdf",               # not a URL
    ])
    def test_unresolved_never_raises(self, url):
        assert resolve_document_url(url) is None


class TestOtherInput:
    @pytest.mark.parametrize("value", ["", None, 0, "s3://bucket/key", "just some text", ["gs://a/b"]])
    def test_unresolved(self, value):
        assert resolve_document_url(value) is None


class TestProbe:
    def test_found_reports_size(self, blobs, stored_document):
        result = probe_document("gs://mybucket/docs/id1.pdf", blobs)
        assert result.outcome == FOUND
        assert result.exists
        assert int(result.size) == len(b"%PDF-1.4 registration certificate")
        assert result.error is None

    def test_download_form_found(self, blobs, stored_document):
        assert probe_document(DOWNLOAD_URL, blobs).exists

    def test_missing_object_records_error(self, blobs):
        result = probe_document("gs://mybucket/docs/missing.pdf", blobs)
        assert result.outcome == NOT_FOUND
        assert "No such object" in result.error

    def test_unresolved_has_no_error(self, blobs):
        result = probe_document("not a locator", blobs)
        assert result.outcome == NOT_FOUND
        assert result.reference is None
        assert result.error is None

    def test_bad_escape_skips_lookup(self):
        fake = MagicMock()
        result = probe_document("https://host/v0/b/bk/o/x%zz.pdf", fake)
        assert result.outcome == NOT_FOUND
        assert result.error is None
        fake.get_metadata.assert_not_called()

    def test_empty_path_skips_lookup(self):
        fake = MagicMock()
        result = probe_document("gs://mybucket", fake)
        assert result.outcome == NOT_FOUND
        fake.get_metadata.assert_not_called()

    def test_store_failure_is_probe_error(self):
        fake = MagicMock()
        fake.get_metadata.side_effect = ConnectionError("storage unreachable")
        result = probe_document("gs://mybucket/docs/id1.pdf", fake)
        assert result.outcome == PROBE_ERROR
        assert not result.exists
        assert result.error == "storage unreachable"

    def test_path_escape_is_probe_error(self, blobs):
        result = probe_document("gs://mybucket/../../etc/passwd", blobs)
        assert result.outcome == PROBE_ERROR
        assert not result.exists

    def test_not_found_exception_from_fake(self):
        fake = MagicMock()
        fake.get_metadata.side_effect = BlobNotFound("b", "p")
        assert probe_document("gs://b/p", fake).outcome == NOT_FOUND
