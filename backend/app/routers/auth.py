"""Auth router - local registration for Firebase identities."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user, require_user, AuthenticatedUser
from app.models.notification import NotificationPreference
from app.models.user import User
from app.schemas.auth import CurrentUserResponse, RegisterRequest, UserResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Create the local user row for the signed-in Firebase account."""
    if current_user.db_user_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already registered",
        )
    if not current_user.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Authentication token has no email address",
        )

    existing = await db.execute(select(User).where(User.email == current_user.email.lower()))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )

    user = User(
        firebase_uid=current_user.uid,
        email=current_user.email.lower(),
        first_name=data.first_name,
        last_name=data.last_name,
        email_verified=current_user.email_verified,
    )
    db.add(user)
    await db.flush()
    db.add(NotificationPreference(user_id=user.id))

    await db.commit()
    await db.refresh(user)

    return UserResponse.model_validate(user)


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Get current authenticated user info."""
    return CurrentUserResponse(
        uid=current_user.uid,
        email=current_user.email,
        email_verified=current_user.email_verified,
        db_user_id=current_user.db_user_id,
        first_name=current_user.first_name,
        last_name=current_user.last_name,
        registered=current_user.db_user_id is not None,
    )


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_user),
):
    """Registered user's profile."""
    result = await db.execute(select(User).where(User.id == current_user.db_user_id))
    return UserResponse.model_validate(result.scalar_one())
