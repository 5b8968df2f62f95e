"""
Tests for department management.

Run with: PYTHONPATH=. uv run pytest tests/test_departments.py -v
"""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def test_admin_manages_departments(async_client: AsyncClient, auth):
    resp = await async_client.post(
        "/api/v1/departments", json={"name": " Kế toán ", "description": "Tài chính"}, headers=auth("admin")
    )
    assert resp.status_code == 201
    department = resp.json()["data"]
    assert department["name"] == "Kế toán"

    duplicate = await async_client.post(
        "/api/v1/departments", json={"name": "Kế toán"}, headers=auth("admin")
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["kind"] == "ConflictError"

    renamed = await async_client.patch(
        f"/api/v1/departments/{department['id']}", json={"name": "Tài chính - Kế toán"}, headers=auth("admin")
    )
    assert renamed.status_code == 200
    assert renamed.json()["data"]["name"] == "Tài chính - Kế toán"

    deleted = await async_client.delete(f"/api/v1/departments/{department['id']}", headers=auth("admin"))
    assert deleted.status_code == 204


async def test_blank_name_is_rejected(async_client: AsyncClient, auth):
    resp = await async_client.post("/api/v1/departments", json={"name": "  "}, headers=auth("admin"))
    assert resp.status_code == 400
    assert resp.json()["error"]["kind"] == "EmptyFieldError"


async def test_non_admin_cannot_create(async_client: AsyncClient, auth):
    resp = await async_client.post("/api/v1/departments", json={"name": "Pháp chế"}, headers=auth("head_hr"))
    assert resp.status_code == 403


async def test_department_with_members_cannot_be_deleted(async_client: AsyncClient, auth, org):
    resp = await async_client.delete(f"/api/v1/departments/{org.hr.id}", headers=auth("admin"))
    assert resp.status_code == 409


async def test_directory_is_visible_to_everyone(async_client: AsyncClient, auth):
    resp = await async_client.get("/api/v1/departments", headers=auth("emp_it"))
    assert resp.status_code == 200
    assert {d["name"] for d in resp.json()["data"]} == {"Nhân sự", "Công nghệ thông tin"}


async def test_department_members(async_client: AsyncClient, auth, org):
    resp = await async_client.get(f"/api/v1/departments/{org.hr.id}/users", headers=auth("head_hr"))
    assert resp.status_code == 200
    assert {u["email"] for u in resp.json()["data"]} == {"head.hr@portal.com.vn", "emp.hr@portal.com.vn"}

    denied = await async_client.get(f"/api/v1/departments/{org.hr.id}/users", headers=auth("head_it"))
    assert denied.status_code == 403
