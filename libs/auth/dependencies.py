from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.errors import Unauthorized

settings = get_settings()
security = HTTPBearer()


async def get_current_user(
    token: Annotated[HTTPAuthorizationCredentials, Depends(security)]
) -> AuthUser:
    """
    Validate the bearer JWT and return the authenticated user.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            token.credentials,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_aud": False},
        )
        return AuthUser(**payload)
    except (JWTError, ValidationError):
        raise credentials_exception


async def require_admin(
    current_user: Annotated[AuthUser, Depends(get_current_user)]
) -> AuthUser:
    """Admin tokens only."""
    if not current_user.is_admin:
        raise Unauthorized("Admin privileges required")
    return current_user


async def require_operator(
    current_user: Annotated[AuthUser, Depends(get_current_user)]
) -> AuthUser:
    """Admins or internal service tokens."""
    if not current_user.is_operator:
        raise Unauthorized("Operator privileges required")
    return current_user


async def require_vendor(
    current_user: Annotated[AuthUser, Depends(get_current_user)]
) -> AuthUser:
    """Vendor tokens only; the vendor id is taken from the token subject."""
    if not current_user.is_vendor:
        raise Unauthorized("Vendor account required")
    try:
        current_user.vendor_id()
    except ValueError:
        raise Unauthorized("Vendor token carries an invalid vendor id")
    return current_user


def ensure_vendor_access(actor: AuthUser, vendor_id) -> None:
    """Raise Unauthorized unless ``actor`` may act on ``vendor_id``'s funds."""
    if not actor.can_act_for(vendor_id):
        raise Unauthorized(
            "Vendors may only act on their own wallet", vendor_id=vendor_id
        )


def ensure_admin(actor: AuthUser) -> None:
    if not actor.is_admin:
        raise Unauthorized("Admin privileges required")


def ensure_operator(actor: AuthUser) -> None:
    if not actor.is_operator:
        raise Unauthorized("Operator privileges required")
