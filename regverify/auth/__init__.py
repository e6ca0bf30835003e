"""
RegVerify — Authentication
Bearer-token verification (PyJWT), claim normalization, and the admin gate
shared by reviewer routes.
"""
from collections import namedtuple
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as pyjwt
from fastapi import HTTPException, Request

from regverify.config import ADMIN_CLAIM, JWT_ALGORITHM, JWT_EXPIRY_HOURS, JWT_SECRET

Identity = namedtuple("Identity", ["uid", "is_admin"])


# ============================================================
# IDENTITY PROVIDER
# ============================================================
class IdentityProvider:
    """Issues and verifies signed ID tokens."""

    def __init__(self, secret: str = JWT_SECRET, algorithm: str = JWT_ALGORITHM,
                 expiry_hours: int = JWT_EXPIRY_HOURS):
        self.secret = secret
        self.algorithm = algorithm
        self.expiry_hours = expiry_hours

    def create_token(self, uid: str, admin: bool = False, nest_claims: bool = False,
                     expires_in: timedelta = None) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": uid, "uid": uid, "iat": now,
            "exp": now + (expires_in if expires_in is not None else timedelta(hours=self.expiry_hours)),
        }
        if admin:
            if nest_claims:
                payload["claims"] = {ADMIN_CLAIM: True}
            else:
                payload[ADMIN_CLAIM] = True
        return pyjwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_id_token(self, token: str) -> dict:
        try:
            return pyjwt.decode(token, self.secret, algorithms=[self.algorithm])
        except pyjwt.ExpiredSignatureError:
            raise HTTPException(401, "Token expired")
        except pyjwt.InvalidTokenError:
            raise HTTPException(401, "Invalid token")


def normalize_identity(decoded: dict) -> Identity:
    """Collapse the places an admin claim may live into one Identity."""
    nested = decoded.get("claims")
    is_admin = decoded.get(ADMIN_CLAIM) is True or (
        isinstance(nested, dict) and nested.get(ADMIN_CLAIM) is True)
    return Identity(uid=decoded.get("uid") or decoded.get("sub"), is_admin=is_admin)


# ============================================================
# REQUEST HELPERS
# ============================================================
def authenticate_admin(authorization: Optional[str], idp: IdentityProvider) -> Identity:
    """Bearer header -> verified admin Identity, or HTTPException 401/403."""
    auth = authorization or ""
    if not auth.startswith("Bearer "):
        raise HTTPException(401, "Missing Authorization header")
    token = auth[len("Bearer "):].strip()
    if not token:
        raise HTTPException(401, "Missing token")
    identity = normalize_identity(idp.verify_id_token(token))
    if not identity.is_admin:
        raise HTTPException(403, "Admin claim required")
    return identity


async def require_admin(request: Request) -> Identity:
    """Dependency: require a verified admin caller."""
    return authenticate_admin(request.headers.get("Authorization"), request.app.state.identity)
