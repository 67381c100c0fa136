"""
Authentication dependencies for the Storefront backend
Validates JWT session tokens issued by the storefront frontend and
provides user context to routes. Token issuance lives elsewhere.
"""
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel

from storefront.core.config import settings


# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)

JWT_ALGORITHM = "HS256"

# Role hierarchy: admin > distributor > customer
ROLE_HIERARCHY = {
    "admin": 3,
    "distributor": 2,
    "customer": 1,
}


class TokenUser(BaseModel):
    """User data extracted from JWT token"""
    id: str
    email: str
    name: Optional[str] = None
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_auth_secret() -> str:
    """Get the AUTH_SECRET from settings"""
    if not settings.AUTH_SECRET:
        raise ValueError("AUTH_SECRET is not configured")
    return settings.AUTH_SECRET


def decode_session_token(token: str) -> dict:
    """
    Decode and validate a session JWT.

    Expected payload:
    {
        "sub": "user_id",
        "id": "user_id",
        "email": "buyer@acme.com",
        "name": "Kim",
        "role": "customer",
        "exp": 1234567890
    }
    """
    try:
        return jwt.decode(
            token,
            get_auth_secret(),
            algorithms=[JWT_ALGORITHM],
            options={"verify_aud": False}
        )
    except JWTError as e:
        if "expired" in str(e).lower():
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"}
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"}
        )


def _user_from_payload(payload: dict) -> Optional[TokenUser]:
    user_id = payload.get("id") or payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        return None
    return TokenUser(
        id=str(user_id),
        email=email,
        name=payload.get("name"),
        role=payload.get("role", "customer")
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenUser:
    """
    Dependency that extracts and validates the current user from JWT.

    Usage:
        @router.get("/cart")
        async def cart(user: TokenUser = Depends(get_current_user)):
            ...
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    user = _user_from_payload(decode_session_token(credentials.credentials))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload: missing user id or email",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[TokenUser]:
    """
    Optional authentication - returns None if no valid token provided.
    """
    if not credentials:
        return None

    try:
        return _user_from_payload(decode_session_token(credentials.credentials))
    except HTTPException:
        return None


def require_role(required_role: str):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.put("/{id}/default-discount")
        async def update(user: TokenUser = Depends(require_role("admin"))):
            ...
    """
    async def role_checker(
        user: TokenUser = Depends(get_current_user)
    ) -> TokenUser:
        user_level = ROLE_HIERARCHY.get(user.role, 0)
        required_level = ROLE_HIERARCHY.get(required_role, 0)

        if user_level < required_level:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {required_role}, your role: {user.role}"
            )

        return user

    return role_checker


require_admin = require_role("admin")
