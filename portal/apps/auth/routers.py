"""
Auth router.

Entry/exit only — no logic here. Calls auth services.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from portal.apps.auth.models import Role
from portal.apps.auth.schemas import (
    Caller,
    LoginRequest,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RefreshRequest,
    UserCreateRequest,
    UserUpdateRequest,
)
from portal.apps.auth.services import (
    change_password,
    create_user,
    delete_user,
    get_profile,
    get_user,
    list_users,
    login_user,
    refresh_tokens,
    update_profile,
    update_user,
    verify_user,
)
from portal.config.settings import settings
from portal.db.database import get_db
from portal.utils.responses import success_response, auth_response

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


@router.post("/login")
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    data: LoginRequest,
    session: AsyncSession = Depends(get_db),
):
    """Authenticate and receive JWT tokens."""
    result = await login_user(session=session, data=data)
    return auth_response(
        status_code=200,
        message="Login successful",
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
        data=result.user.model_dump(),
    )


@router.post("/refresh")
async def refresh(
    data: RefreshRequest,
    session: AsyncSession = Depends(get_db),
):
    """Trade a refresh token for a new token pair."""
    tokens = await refresh_tokens(session=session, refresh_token=data.refresh_token)
    return auth_response(
        status_code=200,
        message="Tokens refreshed",
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )


@router.get("/me")
async def me(
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    """Return the currently authenticated user's profile."""
    profile = await get_profile(session=session, caller=caller)
    return success_response(
        status_code=200,
        message="User profile",
        data=profile.model_dump(),
    )


@router.patch("/me")
async def edit_me(
    data: ProfileUpdateRequest,
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    profile = await update_profile(session=session, caller=caller, data=data)
    return success_response(status_code=200, message="Profile updated", data=profile.model_dump())


@router.post("/change-password")
async def change_own_password(
    data: PasswordChangeRequest,
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    """Change own password. Existing tokens stay valid until they expire."""
    await change_password(session=session, caller=caller, data=data)
    return success_response(status_code=200, message="Password changed")


@router.post("/users", status_code=201)
async def register(
    data: UserCreateRequest,
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    """Create a user account (admin only). Returns user profile."""
    user = await create_user(session=session, caller=caller, data=data)
    return success_response(
        status_code=201,
        message="Account created successfully",
        data=user.model_dump(),
    )


@router.get("/users")
async def users(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1),
    department_id: Optional[uuid.UUID] = None,
    role: Optional[Role] = None,
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    """User directory (admin only)."""
    result = await list_users(
        session=session,
        caller=caller,
        page=page,
        limit=limit,
        department_id=department_id,
        role=role,
    )
    return success_response(status_code=200, message="Users", data=result)


@router.get("/users/{user_id}")
async def user_detail(
    user_id: uuid.UUID,
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    user = await get_user(session=session, caller=caller, user_id=user_id)
    return success_response(status_code=200, message="User", data=user.model_dump())


@router.patch("/users/{user_id}")
async def edit_user(
    user_id: uuid.UUID,
    data: UserUpdateRequest,
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    """Edit or deactivate an account (admin only)."""
    user = await update_user(session=session, caller=caller, user_id=user_id, data=data)
    return success_response(status_code=200, message="User updated", data=user.model_dump())


@router.delete("/users/{user_id}", status_code=204)
async def remove_user(
    user_id: uuid.UUID,
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    """Delete an account with no content on record (admin only)."""
    await delete_user(session=session, caller=caller, user_id=user_id)
    return Response(status_code=204)
