"""
Authorization matrix for posts and documents.

Pure functions of (Caller, item). No database access.

    Action           ADMIN   DEPARTMENT_HEAD                   EMPLOYEE
    create           any     own department                    no
    view             all     own department or public          public, or own department
                                                               when department access is requested
                                                               (plus admin-authored items when asked)
    edit / delete    all     own department (or own item)      no
    approve/reject   yes     no                                no
    resubmit         yes     own item                          no

`can_*` answer the question; `ensure_*` raise ForbiddenError.
"""

import uuid
from typing import Optional, Protocol

from portal.apps.auth.models import Role
from portal.apps.auth.schemas import Caller
from portal.utils.exceptions import ForbiddenError


class Governed(Protocol):
    """What the policy needs to know about an item."""

    department_id: Optional[uuid.UUID]
    is_public: bool

    @property
    def owner_id(self) -> uuid.UUID: ...


def _in_own_department(caller: Caller, item: Governed) -> bool:
    return caller.department_id is not None and item.department_id == caller.department_id


def _is_owner(caller: Caller, item: Governed) -> bool:
    return item.owner_id == caller.id


# ── Questions ─────────────────────────────────────────────────────────────────

def can_create(caller: Caller, department_id: Optional[uuid.UUID]) -> bool:
    """Department heads publish into their own department only."""
    if caller.is_admin:
        return True
    if caller.is_department_head:
        return caller.department_id is not None and department_id == caller.department_id
    return False


def can_view(
    caller: Caller,
    item: Governed,
    department_access: Optional[uuid.UUID] = None,
    admin_authored: bool = False,
) -> bool:
    """
    `admin_authored` is only honoured inside a department-scoped read, the
    same place the listing union adds admin-authored items.
    """
    if caller.is_admin or item.is_public or _is_owner(caller, item):
        return True
    scoped = department_access is not None and department_access == caller.department_id
    if scoped and admin_authored:
        return True
    if caller.is_department_head:
        return _in_own_department(caller, item)
    return scoped and _in_own_department(caller, item)


def can_edit(caller: Caller, item: Governed) -> bool:
    if caller.is_admin:
        return True
    if caller.role is Role.EMPLOYEE:
        return False
    return _in_own_department(caller, item) or _is_owner(caller, item)


can_delete = can_edit


def can_review(caller: Caller) -> bool:
    """Approve and reject are admin decisions; nobody self-approves."""
    return caller.is_admin


def can_resubmit(caller: Caller, item: Governed) -> bool:
    if caller.is_admin:
        return True
    return caller.role is not Role.EMPLOYEE and _is_owner(caller, item)


def can_use_department_access(caller: Caller, department_access: uuid.UUID) -> bool:
    """Department-scoped listings may only name the caller's own department."""
    return caller.is_admin or department_access == caller.department_id


# ── Guards ────────────────────────────────────────────────────────────────────

def ensure_can_create(caller: Caller, department_id: Optional[uuid.UUID]) -> None:
    if caller.role is Role.EMPLOYEE:
        raise ForbiddenError("Only department heads and administrators can publish content.")
    if not can_create(caller, department_id):
        raise ForbiddenError("Department heads can only publish into their own department.")


def ensure_can_view(
    caller: Caller,
    item: Governed,
    department_access: Optional[uuid.UUID] = None,
    admin_authored: bool = False,
) -> None:
    if not can_view(caller, item, department_access, admin_authored):
        raise ForbiddenError("You do not have access to this item.")


def ensure_can_edit(caller: Caller, item: Governed) -> None:
    if not can_edit(caller, item):
        raise ForbiddenError("You can only change content from your own department.")


def ensure_can_delete(caller: Caller, item: Governed) -> None:
    if not can_delete(caller, item):
        raise ForbiddenError("You can only delete content from your own department.")


def ensure_can_review(caller: Caller) -> None:
    if not can_review(caller):
        raise ForbiddenError("Only administrators can approve or reject content.")


def ensure_can_resubmit(caller: Caller, item: Governed) -> None:
    if not can_resubmit(caller, item):
        raise ForbiddenError("Only the author or an administrator can resubmit this item.")


def ensure_department_access(caller: Caller, department_access: Optional[uuid.UUID]) -> None:
    if department_access is not None and not can_use_department_access(caller, department_access):
        raise ForbiddenError("Department access is limited to your own department.")
