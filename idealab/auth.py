# Bearer-token auth for the dashboard API
# Tokens are Firebase ID tokens; the raw token is kept so remote functions run as the caller

import logging
import os
from typing import Optional

from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

import firebase_admin
from firebase_admin import auth, credentials

logger = logging.getLogger(__name__)

# Emails allowed into the CMS admin routes
ADMIN_EMAILS = {e.strip().lower() for e in os.getenv("ADMIN_EMAILS", "").split(",") if e.strip()}

bearer_scheme = HTTPBearer(auto_error=False)

_firebase_app = None


def get_firebase_app():
    """Firebase app shared by every token check, created on first use."""
    global _firebase_app
    if _firebase_app is None:
        try:
            _firebase_app = firebase_admin.get_app()
        except ValueError:
            _firebase_app = firebase_admin.initialize_app(credentials.ApplicationDefault())
    return _firebase_app


def is_admin_email(email: Optional[str]) -> bool:
    return bool(email) and email.lower() in ADMIN_EMAILS


class UserInfo:
    """The caller of a dashboard request."""
    def __init__(self, uid: str, email: Optional[str] = None,
                 display_name: Optional[str] = None, is_admin: bool = False,
                 access_token: Optional[str] = None):
        self.uid = uid
        self.email = email
        self.display_name = display_name
        self.is_admin = is_admin
        self.access_token = access_token

    @classmethod
    def from_claims(cls, claims: dict, access_token: str) -> "UserInfo":
        email = claims.get("email")
        return cls(uid=claims.get("uid") or claims.get("sub"),
                   email=email,
                   display_name=claims.get("name"),
                   is_admin=is_admin_email(email),
                   access_token=access_token)

    def to_dict(self) -> dict:
        # access_token stays server-side
        return {
            "uid": self.uid,
            "email": self.email,
            "display_name": self.display_name,
            "is_admin": self.is_admin
        }


async def get_current_user(
    token: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[UserInfo]:
    """The verified caller, or None for a missing or rejected token."""
    if token is None:
        return None

    try:
        get_firebase_app()
        claims = auth.verify_id_token(token.credentials)
    except Exception as e:
        logger.warning(f"Rejected bearer token: {e}")
        return None
    return UserInfo.from_claims(claims, token.credentials)


async def require_auth(
    token: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> UserInfo:
    """401 unless the request carries a valid token."""
    if token is None:
        raise HTTPException(status_code=401, detail="Authentication required")

    user = await get_current_user(token)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return user


async def require_admin(
    user: UserInfo = Depends(require_auth)
) -> UserInfo:
    """403 for signed-in users outside ADMIN_EMAILS."""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
