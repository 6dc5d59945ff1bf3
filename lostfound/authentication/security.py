"""
Resolves the calling actor from a bearer identity token.

Tokens are issued by the identity provider; this module only verifies them,
enforces the campus email domain and asks the injected AdminPolicy whether the
caller is an admin.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError

from lostfound.authentication.policy import AdminPolicy
from lostfound.authentication.schemas import Actor, TokenData
from lostfound.config import Settings, get_settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_admin_policy(settings: Settings = Depends(get_settings)) -> AdminPolicy:
    return AdminPolicy(settings.admin_email_set)


def create_access_token(email: str, name: str = "", settings: Optional[Settings] = None) -> str:
    """Mint an identity token (development and tests; production tokens come from the provider)."""
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": email.lower(),
        "email": email.lower(),
        "name": name,
        "iat": now,
        "exp": now + timedelta(minutes=settings.access_token_expire_minutes),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.token_algorithm)


def decode_token(token: str, settings: Settings) -> TokenData:
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.token_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.InvalidTokenError as e:
        logger.info("Rejected identity token: %s", e)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    if not payload.get("email"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token carries no email")
    return TokenData(sub=payload["sub"], email=payload["email"], name=payload.get("name") or "")


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
    policy: AdminPolicy = Depends(get_admin_policy),
) -> Actor:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing Authorization header")

    claims = decode_token(credentials.credentials, settings)
    email = claims.email.strip().lower()
    if not email.endswith("@" + settings.campus_email_domain.lower()):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Must use an @{settings.campus_email_domain} account",
        )

    try:
        return Actor(email=email, display_name=claims.name, is_admin=policy.is_admin(email))
    except ValidationError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token carries an invalid email")


def require_admin(current_user: Actor = Depends(get_current_user)) -> Actor:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user
