"""
Listing predicates.

A listing filter is described as an immutable tree of nodes and handed to
the repository, which compiles it to SQL. Building never mutates a shared
options object; every helper returns a new tree.

Node types:
    Eq(field, value)        field == value (None means IS NULL)
    Contains(field, term)   case-insensitive substring match
    IsSet(field)            field IS NOT NULL
    AuthoredByRole(role)    item owner currently holds `role`
    And(children)           all children; And() matches everything
    Or(children)            any child;    Or() matches nothing
"""

import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Tuple, Union

from portal.apps.auth.models import Role
from portal.apps.auth.schemas import Caller
from portal.apps.content.models import ContentStatus


@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class Contains:
    field: str
    term: str


@dataclass(frozen=True)
class IsSet:
    field: str


@dataclass(frozen=True)
class AuthoredByRole:
    role: Role


@dataclass(frozen=True)
class And:
    children: Tuple["Predicate", ...] = ()


@dataclass(frozen=True)
class Or:
    children: Tuple["Predicate", ...] = ()


Predicate = Union[Eq, Contains, IsSet, AuthoredByRole, And, Or]

MATCH_ALL = And()
MATCH_NONE = Or()


def all_of(*predicates: Optional[Predicate]) -> Predicate:
    """Conjunction that drops `None`/match-all parts and flattens nested Ands."""
    parts: list[Predicate] = []
    for predicate in predicates:
        if predicate is None:
            continue
        if isinstance(predicate, And):
            parts.extend(predicate.children)
        else:
            parts.append(predicate)
    if not parts:
        return MATCH_ALL
    if len(parts) == 1:
        return parts[0]
    return And(tuple(parts))


def any_of(*predicates: Predicate) -> Predicate:
    if not predicates:
        return MATCH_NONE
    if len(predicates) == 1:
        return predicates[0]
    return Or(tuple(predicates))


def text_search(term: Optional[str], fields: Sequence[str]) -> Optional[Predicate]:
    """Match `term` in any of `fields`. Blank terms filter nothing."""
    term = (term or "").strip()
    if not term:
        return None
    return any_of(*(Contains(field, term) for field in fields))


def department_union(department_id: uuid.UUID, include_admin_authored: bool = False) -> Or:
    """Dashboard visibility: own department, anything public, optionally admin posts."""
    branches: list[Predicate] = [
        Eq("department_id", department_id),
        Eq("is_public", True),
    ]
    if include_admin_authored:
        branches.append(AuthoredByRole(Role.ADMIN))
    return Or(tuple(branches))


def distribute(union: Or, predicate: Optional[Predicate]) -> Or:
    """AND `predicate` into every branch of `union` instead of onto the whole."""
    if predicate is None:
        return union
    return Or(tuple(all_of(branch, predicate) for branch in union.children))


def visibility_for(
    caller: Caller,
    is_public: Optional[bool],
    department_scoped: bool,
) -> Optional[Predicate]:
    """
    Visibility clause for a listing.

    An explicit `is_public` replaces the role default. Non-admins asking
    for private items only get their own department's, and employees only
    inside a department-scoped listing. Without an explicit filter: admins
    see everything, department-scoped listings are already bounded by their
    union, department heads see public plus their own department, employees
    see public only.

    A caller without a department never gets a department clause; it would
    compile to `department_id IS NULL` and expose company-wide private items.
    """
    own_department = (
        Eq("department_id", caller.department_id) if caller.department_id is not None else None
    )

    if is_public is not None:
        if is_public or caller.is_admin:
            return Eq("is_public", is_public)
        may_see_private = caller.is_department_head or department_scoped
        if own_department is None or not may_see_private:
            return MATCH_NONE
        return all_of(Eq("is_public", False), own_department)

    if caller.is_admin or department_scoped:
        return None
    if caller.is_department_head and own_department is not None:
        return any_of(Eq("is_public", True), own_department)
    return Eq("is_public", True)


def build_list_predicate(
    caller: Caller,
    search_fields: Iterable[str],
    search: Optional[str] = None,
    department_id: Optional[uuid.UUID] = None,
    department_access: Optional[uuid.UUID] = None,
    include_admin_posts: bool = False,
    is_public: Optional[bool] = None,
    status: Optional[ContentStatus] = None,
) -> Predicate:
    """
    Full listing filter for one caller.

    1. department_access -> union of (that department | public | [admin-authored]);
       otherwise department_id -> equality. The union wins when both are given.
    2. search is ANDed into each union branch, or onto the whole when no union.
    3. visibility per `visibility_for`.
    4. status equality.
    """
    clauses: list[Optional[Predicate]] = []
    search_clause = text_search(search, tuple(search_fields))

    if department_access is not None:
        union = department_union(department_access, include_admin_posts)
        clauses.append(distribute(union, search_clause))
    else:
        if department_id is not None:
            clauses.append(Eq("department_id", department_id))
        clauses.append(search_clause)

    clauses.append(visibility_for(caller, is_public, department_scoped=department_access is not None))

    if status is not None:
        clauses.append(Eq("status", status))

    return all_of(*clauses)


def build_moderation_predicate(
    search_fields: Iterable[str],
    search: Optional[str] = None,
    status: Optional[ContentStatus] = None,
    reviewed_only: bool = False,
) -> Predicate:
    """Admin review queue / history filter. No visibility restriction."""
    return all_of(
        text_search(search, tuple(search_fields)),
        Eq("status", status) if status is not None else None,
        IsSet("reviewed_by_id") if reviewed_only else None,
    )
