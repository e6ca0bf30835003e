"""
Identity normalization, admin gate, and the admin read route.
"""

import pytest
from fastapi import HTTPException

from regverify.auth import IdentityProvider, authenticate_admin, normalize_identity


class TestNormalizeIdentity:
    @pytest.mark.parametrize("decoded,expected", [
        ({"uid": "u1", "admin": True}, True),
        ({"uid": "u1", "claims": {"admin": True}}, True),
        ({"uid": "u1", "admin": "true"}, False),
        ({"uid": "u1", "claims": {"admin": 1}}, False),
        ({"uid": "u1", "claims": "admin"}, False),
        ({"uid": "u1"}, False),
    ])
    def test_admin_claim_locations(self, decoded, expected):
        assert normalize_identity(decoded).is_admin is expected

    def test_uid_falls_back_to_sub(self):
        assert normalize_identity({"sub": "s1"}).uid == "s1"


class TestAuthenticateAdmin:
    def test_round_trip(self, idp):
        identity = authenticate_admin(f"Bearer {idp.create_token('a1', admin=True)}", idp)
        assert identity.uid == "a1"
        assert identity.is_admin

    def test_foreign_signature_rejected(self, idp):
        other = IdentityProvider(secret="someone-else")
        with pytest.raises(HTTPException) as exc:
            authenticate_admin(f"Bearer {other.create_token('a1', admin=True)}", idp)
        assert exc.value.status_code == 401

    def test_empty_token(self, idp):
        with pytest.raises(HTTPException) as exc:
            authenticate_admin("Bearer   ", idp)
        assert exc.value.status_code == 401
        assert exc.value.detail == "Missing token"

    def test_none_header(self, idp):
        with pytest.raises(HTTPException) as exc:
            authenticate_admin(None, idp)
        assert exc.value.detail == "Missing Authorization header"


class TestVerificationReadRoute:
    def test_admin_reads_request_and_audit(self, client, admin_headers, stored_document,
                                           valid_request, submit):
        submit("b1", "r1", valid_request)
        resp = client.get("/api/businesses/b1/verification/r1", headers=admin_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["request"]["ownerEmail"] == "jo@x.com"
        assert body["audit"]["valid"] is True

    def test_non_admin_forbidden(self, client, idp):
        token = idp.create_token("user-1")
        resp = client.get("/api/businesses/b1/verification/r1",
                          headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 403

    def test_unknown_request(self, client, admin_headers):
        resp = client.get("/api/businesses/b1/verification/none", headers=admin_headers)
        assert resp.status_code == 404


class TestHealth:
    def test_health(self, client):
        body = client.get("/api/health").json()
        assert body["status"] == "ok"
        assert body["autoApprove"] is False
        assert body["store"] == "memory"
