"""
Persistence adapter for content listings.

Compiles predicate trees from `portal.apps.content.predicates` into
SQLAlchemy expressions and runs them through `BaseModel.paginate`.
"""

from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy import ColumnElement, and_, delete, false, or_, select, true
from sqlalchemy.ext.asyncio import AsyncSession

from portal.apps.auth.models import User
from portal.apps.content.models import ContentKind, ContentMixin, Document, Post, ReviewComment
from portal.apps.content.predicates import (
    And,
    AuthoredByRole,
    Contains,
    Eq,
    IsSet,
    Or,
    Predicate,
)

LIKE_ESCAPE = "\\"


def _escape_like(term: str) -> str:
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def compile_predicate(predicate: Predicate, model: type[ContentMixin]) -> ColumnElement[bool]:
    """Translate a predicate tree into a WHERE clause for `model`."""
    if isinstance(predicate, And):
        return and_(true(), *(compile_predicate(c, model) for c in predicate.children))
    if isinstance(predicate, Or):
        return or_(false(), *(compile_predicate(c, model) for c in predicate.children))
    if isinstance(predicate, Eq):
        column = getattr(model, predicate.field)
        if predicate.value is None:
            return column.is_(None)
        return column == predicate.value
    if isinstance(predicate, Contains):
        column = getattr(model, predicate.field)
        return column.ilike(f"%{_escape_like(predicate.term)}%", escape=LIKE_ESCAPE)
    if isinstance(predicate, IsSet):
        return getattr(model, predicate.field).is_not(None)
    if isinstance(predicate, AuthoredByRole):
        owner = getattr(model, model.owner_column)
        return owner.in_(select(User.id).where(User.role == predicate.role))
    raise TypeError(f"Unsupported predicate node: {predicate!r}")


async def fetch_page(
    session: AsyncSession,
    model: type[ContentMixin],
    predicate: Predicate,
    page: int,
    limit: int,
    max_limit: int,
    order_by: str = "updated_at",
) -> Dict[str, Any]:
    """One page plus the total counted against the same predicate."""
    return await model.paginate(  # type: ignore[attr-defined]
        session,
        page=page,
        per_page=limit,
        where=compile_predicate(predicate, model),
        order_by=order_by,
        order_desc=True,
        max_per_page=max_limit,
    )


async def fetch_merged_page(
    session: AsyncSession,
    sources: Sequence[Tuple[type[ContentMixin], Predicate]],
    page: int,
    limit: int,
    max_limit: int,
    order_by: str = "updated_at",
) -> Dict[str, Any]:
    """
    One page over several content tables, newest first by `order_by`.

    Each table contributes its first `page * limit` rows; the merged list
    is sorted and sliced. Cost grows with the page number, which is fine
    for review queues.
    """
    limit = max(min(limit, max_limit), 1)
    page = max(page, 1)
    window = page * limit

    total = 0
    rows: List[ContentMixin] = []
    for model, predicate in sources:
        where = compile_predicate(predicate, model)
        total += await model.count(session, where=where)  # type: ignore[attr-defined]
        rows.extend(
            await model.find_many(  # type: ignore[attr-defined]
                session, limit=window, where=where, order_by=order_by, order_desc=True
            )
        )

    rows.sort(key=lambda item: (getattr(item, order_by), str(item.id)), reverse=True)
    start = (page - 1) * limit

    return {
        "items": rows[start:start + limit],
        "total": total,
        "page": page,
        "limit": limit,
        "pages": (total + limit - 1) // limit,
    }


async def list_comments(
    session: AsyncSession, kind: ContentKind, item_id: Any
) -> List[ReviewComment]:
    """Review comments for one item, newest first."""
    target = {"post_id": item_id} if kind is ContentKind.POST else {"document_id": item_id}
    return await ReviewComment.find_many(
        session, limit=1000, filters=target, order_by="created_at", order_desc=True
    )


async def delete_comments(session: AsyncSession, item: Post | Document) -> None:
    """Remove an item's review comments ahead of the item itself."""
    column = ReviewComment.post_id if isinstance(item, Post) else ReviewComment.document_id
    await session.execute(delete(ReviewComment).where(column == item.id))
