"""Firebase JWT verification and request-scoped user resolution."""

import hmac
from typing import Any, Optional
from uuid import UUID

import firebase_admin
from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth, credentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db

settings = get_settings()

# Initialize Firebase Admin SDK
if not settings.firebase_disabled and not firebase_admin._apps:
    if settings.google_application_credentials:
        cred = credentials.Certificate(settings.google_application_credentials)
        firebase_admin.initialize_app(cred, {"projectId": settings.firebase_project_id})
    else:
        firebase_admin.initialize_app(options={"projectId": settings.firebase_project_id})

security = HTTPBearer()


class AuthenticatedUser:
    """Represents an authenticated user from a Firebase ID token."""

    def __init__(
        self,
        uid: str,
        email: Optional[str] = None,
        email_verified: bool = False,
        claims: Optional[dict[str, Any]] = None,
    ):
        self.uid = uid
        self.email = email
        self.email_verified = email_verified
        self.claims = claims or {}
        self.db_user_id: Optional[UUID] = None
        self.first_name: Optional[str] = None
        self.last_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or (self.email or "Someone")


async def verify_firebase_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthenticatedUser:
    """Verify a Firebase ID token and return the authenticated user.

    Second factors are enforced by Firebase before the ID token is issued;
    this dependency only verifies tokens, it never mints them.
    """
    token = credentials.credentials

    try:
        decoded_token = auth.verify_id_token(token)
    except auth.ExpiredIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except auth.InvalidIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token verification failed: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthenticatedUser(
        uid=decoded_token["uid"],
        email=decoded_token.get("email"),
        email_verified=decoded_token.get("email_verified", False),
        claims=decoded_token,
    )


async def get_current_user(
    auth_user: AuthenticatedUser = Depends(verify_firebase_token),
    db: AsyncSession = Depends(get_db),
) -> AuthenticatedUser:
    """Attach the local user row (if registered) to the token identity."""
    from app.models.user import User

    result = await db.execute(
        select(User).where(User.firebase_uid == auth_user.uid, User.deleted_at.is_(None))
    )
    user = result.scalar_one_or_none()

    if user:
        auth_user.db_user_id = user.id
        auth_user.first_name = user.first_name
        auth_user.last_name = user.last_name
        auth_user.email = user.email

    return auth_user


def require_user(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Require a registered local user."""
    if not current_user.db_user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User registration required",
        )
    return current_user


def get_client_ip(request: Request) -> Optional[str]:
    """Best client IP: first X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def verify_cron_secret(x_cron_secret: Optional[str] = Header(None)) -> None:
    """Guard scheduled-job endpoints with a shared secret header."""
    expected = settings.cron_secret
    if not expected or not x_cron_secret or not hmac.compare_digest(x_cron_secret, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cron secret",
        )
