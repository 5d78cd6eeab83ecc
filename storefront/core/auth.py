# storefront/core/auth.py
from typing import Any

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from storefront.core.config import get_settings
from storefront.core.errors import GuestSessionRequiredError
from storefront.core.identity import RequestIdentity
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository
from storefront.services.user_service import UserService

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so we can support "guest" mode (unauthenticated).
bearer_scheme = HTTPBearer(auto_error=False)

user_service = UserService(UserRepository())


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify an identity-provider access token (JWT).

    Verification:
      - signature (JWT_ALG using JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified ('aud' varies per provider config)

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    """
    Resolve the current user from a bearer JWT.

    Flow:
      1. If no Authorization header => guest => return None.
      2. Decode JWT => extract 'sub' (provider user id) and 'email'.
      3. Create or refresh the profile row (admin flag, name, avatar).

    Raises:
        HTTPException(401): if token is malformed or missing required claims.
    """
    if credentials is None:
        return None  # guest mode

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    email = payload.get("email")

    if not sub or not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub/email",
        )

    return user_service.sync_profile(
        session,
        auth_id=sub,
        email=email,
        name=payload.get("name"),
        image_url=payload.get("picture"),
    )


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """
    Enforce authentication.

    Raises:
        HTTPException(401): if user is None.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user


def get_identity(
    user: User | None = Depends(get_current_user),
    x_guest_session: str | None = Header(default=None),
) -> RequestIdentity:
    """
    Build the request identity.

    Guests must send X-Guest-Session so their cart slot can be found.

    Raises:
        GuestSessionRequiredError(400): guest request without the header.
    """
    if user is None and not x_guest_session:
        raise GuestSessionRequiredError("X-Guest-Session header is required for guest carts")
    return RequestIdentity(user, x_guest_session)
