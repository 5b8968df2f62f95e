"""
Department directory services.

Reads are open to every authenticated caller; writes are admin only.
"""

import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from portal.apps.auth.models import User
from portal.apps.auth.schemas import Caller, UserResponse
from portal.apps.auth.services import ensure_admin
from portal.apps.content.models import CONTENT_MODELS
from portal.apps.departments.models import Department
from portal.apps.departments.schemas import DepartmentCreate, DepartmentResponse, DepartmentUpdate
from portal.utils.exceptions import ConflictError, EmptyFieldError, ForbiddenError, NotFoundError
from portal.utils.logger import get_logger

logger = get_logger(__name__)


async def get_department_or_404(session: AsyncSession, department_id: uuid.UUID) -> Department:
    department = await Department.get_by_id(session, department_id)
    if not department:
        raise NotFoundError("Department not found.")
    return department


async def list_departments(session: AsyncSession) -> List[DepartmentResponse]:
    """All departments, alphabetical. The directory is small."""
    departments = await Department.find_many(
        session, limit=1000, order_by="name", order_desc=False
    )
    return [DepartmentResponse.model_validate(d) for d in departments]


async def get_department(session: AsyncSession, department_id: uuid.UUID) -> DepartmentResponse:
    return DepartmentResponse.model_validate(await get_department_or_404(session, department_id))


async def _ensure_unique_name(
    session: AsyncSession, name: str, exclude_id: Optional[uuid.UUID] = None
) -> None:
    existing = await Department.find_one(session, name=name)
    if existing and existing.id != exclude_id:
        raise ConflictError(f"Department '{name}' already exists.")


async def create_department(
    session: AsyncSession, caller: Caller, data: DepartmentCreate
) -> DepartmentResponse:
    """
    Create a department.

    Guard: Admin only.
    Guard: Name must be non-blank and unique.
    """
    ensure_admin(caller, "create departments")

    name = data.name.strip()
    if not name:
        raise EmptyFieldError("name")
    await _ensure_unique_name(session, name)

    department = await Department.create(
        db=session,
        name=name,
        description=data.description.strip() if data.description else None,
    )
    logger.info(f"Created department: {department.name}")
    return DepartmentResponse.model_validate(department)


async def update_department(
    session: AsyncSession, caller: Caller, department_id: uuid.UUID, data: DepartmentUpdate
) -> DepartmentResponse:
    """Rename or re-describe a department. Admin only."""
    ensure_admin(caller, "edit departments")
    department = await get_department_or_404(session, department_id)

    if data.name is not None:
        name = data.name.strip()
        if not name:
            raise EmptyFieldError("name")
        await _ensure_unique_name(session, name, exclude_id=department.id)
        department.name = name

    if data.description is not None:
        department.description = data.description.strip() or None

    await department.save(session)
    logger.info(f"Updated department: {department.id}")
    return DepartmentResponse.model_validate(department)


async def delete_department(
    session: AsyncSession, caller: Caller, department_id: uuid.UUID
) -> None:
    """
    Delete an empty department. Admin only.

    Guard: Refuse while any user or content item still belongs to it.
    """
    ensure_admin(caller, "delete departments")
    department = await get_department_or_404(session, department_id)

    if await User.exists(session, department_id=department.id):
        raise ConflictError("Cannot delete a department that still has members.")

    for model in CONTENT_MODELS.values():
        if await model.exists(session, department_id=department.id):
            raise ConflictError("Cannot delete a department that still owns content.")

    await department.delete(session)
    logger.info(f"Deleted department: {department_id}")


async def list_department_users(
    session: AsyncSession, caller: Caller, department_id: uuid.UUID
) -> List[UserResponse]:
    """Members of a department. Visible to admins and that department's head."""
    department = await get_department_or_404(session, department_id)

    if not caller.is_admin and not (
        caller.is_department_head and caller.department_id == department.id
    ):
        raise ForbiddenError("You can only list members of your own department.")

    users = await User.find_many(
        session,
        limit=1000,
        filters={"department_id": department.id},
        order_by="name",
        order_desc=False,
    )
    return [UserResponse.model_validate(u) for u in users]
