"""
Departments router.

Entry/exit only — no logic here. Calls department services.
"""

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from portal.apps.auth.schemas import Caller
from portal.apps.auth.services import verify_user
from portal.apps.departments.schemas import DepartmentCreate, DepartmentUpdate
from portal.apps.departments import services
from portal.db.database import get_db
from portal.utils.responses import success_response

router = APIRouter(prefix="/api/v1/departments", tags=["Departments"])


@router.get("")
async def list_departments(
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    """Department directory."""
    departments = await services.list_departments(session)
    return success_response(status_code=200, message="Departments", data=departments)


@router.post("", status_code=201)
async def create_department(
    data: DepartmentCreate,
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    department = await services.create_department(session, caller, data)
    return success_response(status_code=201, message="Department created", data=department)


@router.get("/{department_id}")
async def get_department(
    department_id: uuid.UUID,
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    department = await services.get_department(session, department_id)
    return success_response(status_code=200, message="Department", data=department)


@router.patch("/{department_id}")
async def update_department(
    department_id: uuid.UUID,
    data: DepartmentUpdate,
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    department = await services.update_department(session, caller, department_id, data)
    return success_response(status_code=200, message="Department updated", data=department)


@router.delete("/{department_id}", status_code=204)
async def delete_department(
    department_id: uuid.UUID,
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    await services.delete_department(session, caller, department_id)
    return Response(status_code=204)


@router.get("/{department_id}/users")
async def department_users(
    department_id: uuid.UUID,
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    """Members of one department (admin or that department's head)."""
    users = await services.list_department_users(session, caller, department_id)
    return success_response(status_code=200, message="Department members", data=users)
