"""
Auth business logic.

Handles login, token refresh, admin account management, self-service
profile and password changes, and JWT-based caller resolution. `verify_user` is the FastAPI dependency used by all secured
routes; it turns a bearer token into an explicit `Caller`.
"""

import uuid
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from portal.apps.auth.models import Role, User
from portal.apps.auth.schemas import (
    Caller,
    LoginRequest,
    LoginResponse,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    TokenPair,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
)
from portal.apps.content.models import CONTENT_MODELS, ReviewComment
from portal.apps.departments.models import Department
from portal.config.settings import settings
from portal.db.database import get_db
from portal.utils.exceptions import (
    ConflictError,
    EmptyFieldError,
    ForbiddenError,
    InvalidCredentialsException,
    NotFoundError,
    ValidationError,
)
from portal.utils.logger import get_logger
from portal.utils.security import (
    hash_password,
    verify_password,
    create_access_token,
    create_refresh_token,
    verify_token_type,
)

logger = get_logger(__name__)

_bearer = HTTPBearer()


# ── FastAPI Auth Dependency ───────────────────────────────────────────────────

async def verify_user(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer),
    session: AsyncSession = Depends(get_db),
) -> Caller:
    """
    FastAPI dependency: validates Bearer token and returns the active Caller.

    Raises HTTP 401 if the token is invalid, expired, or names an unknown
    user. Guards against inactive accounts.
    """
    payload = verify_token_type(credentials.credentials, expected_type="access")
    user = await _load_token_subject(session, payload)

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    logger.debug(f"Authenticated user: {user.email} role={user.role.value} dept={user.department_id}")
    return caller_for(user)


def caller_for(user: User) -> Caller:
    """Snapshot a user row into the immutable identity the engine consumes."""
    return Caller(id=user.id, role=user.role, department_id=user.department_id)


def ensure_admin(caller: Caller, action: str) -> None:
    """Guard: only admins may `action`."""
    if not caller.is_admin:
        raise ForbiddenError(f"Only administrators can {action}.")


async def _load_token_subject(session: AsyncSession, payload: Dict[str, Any]) -> User:
    try:
        user_id = uuid.UUID(payload.get("sub", ""))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

    user = await User.get_by_id(session, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def _issue_tokens(user: User) -> TokenPair:
    user_id = str(user.id)
    department_id = str(user.department_id) if user.department_id else None
    return TokenPair(
        access_token=create_access_token(
            user_id=user_id, role=user.role.value, department_id=department_id
        ),
        refresh_token=create_refresh_token(user_id=user_id, role=user.role.value),
    )


# ── Auth Services ─────────────────────────────────────────────────────────────

async def login_user(
    session: AsyncSession,
    data: LoginRequest,
) -> LoginResponse:
    """
    Authenticate user and return JWT token pair.

    Guard: Reject bad credentials with generic error (no oracle attack).
    Guard: Reject inactive accounts.
    """
    user = await User.find_one(session, email=data.email.lower())

    # Generic error — never reveal whether email exists
    if not user or not verify_password(data.password, user.hashed_password):
        raise InvalidCredentialsException()

    if not user.is_active:
        raise ForbiddenError("Account is deactivated. Contact an administrator.")

    logger.info(f"User logged in: {user.email}")
    return LoginResponse(
        user=UserResponse.model_validate(user),
        tokens=_issue_tokens(user),
    )


async def refresh_tokens(session: AsyncSession, refresh_token: str) -> TokenPair:
    """Exchange a valid refresh token for a fresh pair."""
    payload = verify_token_type(refresh_token, expected_type="refresh")
    user = await _load_token_subject(session, payload)

    if not user.is_active:
        raise ForbiddenError("Account is deactivated. Contact an administrator.")

    return _issue_tokens(user)


async def get_profile(session: AsyncSession, caller: Caller) -> UserResponse:
    """Current user's profile."""
    user = await User.get_by_id(session, caller.id)
    if not user:
        raise NotFoundError("User not found.")
    return UserResponse.model_validate(user)


async def create_user(
    session: AsyncSession,
    caller: Caller,
    data: UserCreateRequest,
) -> UserResponse:
    """
    Create a new account. Admin only.

    Guard: Reject duplicate emails.
    Guard: Non-admin accounts must belong to an existing department.
    Password is hashed before storage — never stored in plaintext.
    """
    ensure_admin(caller, "create user accounts")

    email = data.email.lower()
    if await User.exists(session, email=email):
        raise ConflictError("Email already registered.")

    if data.department_id is not None:
        if not await Department.get_by_id(session, data.department_id):
            raise NotFoundError("Department not found.")
    elif data.role is not Role.ADMIN:
        raise ValidationError("Department heads and employees need a department.")

    user = await User.create(
        db=session,
        email=email,
        name=data.name.strip(),
        hashed_password=hash_password(data.password),
        role=data.role,
        department_id=data.department_id,
        is_active=True,
    )

    logger.info(f"Created user: {user.email}, role={user.role.value}, dept={user.department_id}")
    return UserResponse.model_validate(user)


async def list_users(
    session: AsyncSession,
    caller: Caller,
    page: int = 1,
    limit: int = settings.DEFAULT_PAGE_SIZE,
    department_id: Optional[uuid.UUID] = None,
    role: Optional[Role] = None,
) -> Dict[str, Any]:
    """Paginated user directory. Admin only."""
    ensure_admin(caller, "list user accounts")

    filters: Dict[str, Any] = {}
    if department_id is not None:
        filters["department_id"] = department_id
    if role is not None:
        filters["role"] = role

    result = await User.paginate(
        session,
        page=page,
        per_page=limit,
        filters=filters,
        order_by="name",
        order_desc=False,
        max_per_page=settings.MAX_PAGE_SIZE,
    )
    return {
        "items": [UserResponse.model_validate(u) for u in result["items"]],
        "pagination": {k: result[k] for k in ("total", "page", "limit", "pages")},
    }


async def _get_user_or_404(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await User.get_by_id(session, user_id)
    if not user:
        raise NotFoundError("User not found.")
    return user


async def get_user(session: AsyncSession, caller: Caller, user_id: uuid.UUID) -> UserResponse:
    ensure_admin(caller, "view user accounts")
    return UserResponse.model_validate(await _get_user_or_404(session, user_id))


async def update_user(
    session: AsyncSession,
    caller: Caller,
    user_id: uuid.UUID,
    data: UserUpdateRequest,
) -> UserResponse:
    """
    Edit an account. Admin only.

    Guard: Email stays unique.
    Guard: Non-admin accounts must still belong to an existing department.
    Guard: Admins cannot deactivate or demote themselves.

    `is_active=false` deactivates; the user keeps their content but can no
    longer log in or use existing tokens.
    """
    ensure_admin(caller, "edit user accounts")
    user = await _get_user_or_404(session, user_id)
    changes = data.model_dump(exclude_unset=True)

    role = changes.get("role") or user.role
    is_active = changes.get("is_active")
    if user.id == caller.id and (is_active is False or role is not Role.ADMIN):
        raise ValidationError("You cannot deactivate or demote your own account.")

    email = changes.get("email")
    if email is not None:
        email = email.lower()
        if email != user.email and await User.exists(session, email=email):
            raise ConflictError("Email already registered.")

    department_id = changes.get("department_id", user.department_id)
    if "department_id" in changes and department_id is not None:
        if not await Department.get_by_id(session, department_id):
            raise NotFoundError("Department not found.")
    if department_id is None and role is not Role.ADMIN:
        raise ValidationError("Department heads and employees need a department.")

    # Validated; apply.
    user.role = role
    user.department_id = department_id
    if email is not None:
        user.email = email
    if changes.get("name") is not None:
        user.name = changes["name"].strip()
    if changes.get("password") is not None:
        user.hashed_password = hash_password(changes["password"])
    if is_active is not None:
        user.is_active = is_active

    await user.save(session)
    logger.info(f"Updated user {user.id} by {caller.id}: {sorted(changes)}")
    return UserResponse.model_validate(user)


async def delete_user(session: AsyncSession, caller: Caller, user_id: uuid.UUID) -> None:
    """
    Remove an account. Admin only.

    Guard: Admins cannot delete themselves.
    Guard: Users with authored or reviewed content, or review comments,
    are kept for the audit trail; deactivate them instead.
    """
    ensure_admin(caller, "delete user accounts")
    user = await _get_user_or_404(session, user_id)

    if user.id == caller.id:
        raise ValidationError("You cannot delete your own account.")

    for model in CONTENT_MODELS.values():
        if await model.exists(session, **{model.owner_column: user.id}) or await model.exists(
            session, reviewed_by_id=user.id
        ):
            raise ConflictError("User has content on record. Deactivate the account instead.")
    if await ReviewComment.exists(session, user_id=user.id):
        raise ConflictError("User has review comments on record. Deactivate the account instead.")

    await user.delete(session)
    logger.info(f"Deleted user {user_id} by {caller.id}")


async def update_profile(
    session: AsyncSession,
    caller: Caller,
    data: ProfileUpdateRequest,
) -> UserResponse:
    """Self-service profile edit. Only the display name is editable."""
    name = data.name.strip()
    if not name:
        raise EmptyFieldError("name")

    user = await _get_user_or_404(session, caller.id)
    user.name = name
    await user.save(session)
    return UserResponse.model_validate(user)


async def change_password(
    session: AsyncSession,
    caller: Caller,
    data: PasswordChangeRequest,
) -> None:
    """
    Replace the caller's password.

    Guard: The current password must match.
    Guard: The new password must differ from the current one.
    """
    user = await _get_user_or_404(session, caller.id)

    if not verify_password(data.current_password, user.hashed_password):
        raise ValidationError("Current password is incorrect.")
    if data.current_password == data.new_password:
        raise ValidationError("New password must differ from the current one.")

    user.hashed_password = hash_password(data.new_password)
    await user.save(session)
    logger.info(f"Password changed for user {user.id}")
