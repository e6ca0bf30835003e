"""
Shared fixtures: in-memory store, temp-dir blob store, token issuer, API clients.
"""

import pytest
from fastapi.testclient import TestClient

from regverify.auth import IdentityProvider
from regverify.db import DocumentStore
from regverify.intake import submit_verification_request
from regverify.storage import BlobStore

TEST_SECRET = "test-secret-for-regverify"


@pytest.fixture
def store():
    """Fresh in-memory document store."""
    return DocumentStore()


@pytest.fixture
def blobs(tmp_path):
    """Blob store rooted in a temporary directory."""
    return BlobStore(tmp_path / "blobs")


@pytest.fixture
def idp():
    return IdentityProvider(secret=TEST_SECRET)


@pytest.fixture
def admin_headers(idp):
    return {"Authorization": f"Bearer {idp.create_token('admin-1', admin=True)}"}


@pytest.fixture
def valid_request():
    return {
        "ownerName": "Jo Smith",
        "ownerEmail": "jo@x.com",
        "ownerPhone": "(555) 123-4567",
        "documentUrl": "gs://mybucket/docs/id1.pdf",
    }


@pytest.fixture
def stored_document(blobs):
    """Proof document present at mybucket/docs/id1.pdf."""
    return blobs.put("mybucket", "docs/id1.pdf", b"%PDF-1.4 registration certificate")


def _client(store, blobs, idp, auto_approve):
    from regverify.server import create_app
    app = create_app(store=store, blobs=blobs, identity=idp, auto_approve=auto_approve)
    return TestClient(app)


@pytest.fixture
def client(store, blobs, idp):
    """API client with auto-approval disabled."""
    with _client(store, blobs, idp, False) as c:
        yield c


@pytest.fixture
def client_auto(store, blobs, idp):
    """API client with auto-approval enabled."""
    with _client(store, blobs, idp, True) as c:
        yield c


@pytest.fixture
def submit(store):
    """Create a verification request record, firing the intake trigger."""
    def _submit(business_id, req_id, data):
        return submit_verification_request(store, business_id, req_id, data)
    return _submit
