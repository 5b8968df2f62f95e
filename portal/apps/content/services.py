"""
Content services.

Business logic for posts and documents: listing with department-based
visibility, create/edit/delete, and the approval workflow.

Every operation receives the caller explicitly and runs as one
transaction:
1. Load the item (NotFoundError)
2. Check the authorization matrix (ForbiddenError)
3. Validate input (EmptyFieldError)
4. Apply the change / status transition
5. Commit and log
"""

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from portal.apps.auth.models import Role, User
from portal.apps.auth.schemas import Caller
from portal.apps.content import policy, repository, workflow
from portal.apps.content.models import (
    CONTENT_MODELS,
    ContentKind,
    ContentStatus,
    Document,
    Post,
    ReviewComment,
)
from portal.apps.content.predicates import (
    Eq,
    all_of,
    build_list_predicate,
    build_moderation_predicate,
)
from portal.apps.content.schemas import (
    ContentListParams,
    DocumentCreate,
    DocumentUpdate,
    ModerationParams,
    PostCreate,
    PostUpdate,
    SearchParams,
)
from portal.apps.departments.models import Department
from portal.config.settings import settings
from portal.db.base_model import utcnow
from portal.utils.exceptions import EmptyFieldError, NotFoundError
from portal.utils.logger import get_logger
from portal.utils.metrics import (
    content_created,
    content_deleted,
    content_list_latency,
    content_transitions,
)

logger = get_logger(__name__)

ContentItem = Post | Document


def _model(kind: ContentKind) -> type[ContentItem]:
    return CONTENT_MODELS[kind]


def _search_fields(kind: ContentKind) -> tuple[str, str]:
    return ("title", _model(kind).body_column)


def _require_text(field: str, value: Optional[str]) -> str:
    """Guard: reject missing or whitespace-only text."""
    if value is None or not value.strip():
        raise EmptyFieldError(field)
    return value.strip()


async def get_item_or_404(
    session: AsyncSession, kind: ContentKind, item_id: uuid.UUID
) -> ContentItem:
    item = await _model(kind).get_by_id(session, item_id)
    if not item:
        raise NotFoundError(f"{kind.value.capitalize()} not found.")
    return item


# ── Listing ───────────────────────────────────────────────────────────────────

async def list_content(
    session: AsyncSession,
    caller: Caller,
    kind: ContentKind,
    params: ContentListParams,
) -> Dict[str, Any]:
    """
    List posts or documents visible to the caller.

    Ordered by `updated_at` descending. `total` is counted against the
    same predicate before paging.

    Raises:
        ForbiddenError: If department_access names another department
    """
    policy.ensure_department_access(caller, params.department_access)

    predicate = build_list_predicate(
        caller,
        search_fields=_search_fields(kind),
        search=params.search,
        department_id=params.department_id,
        department_access=params.department_access,
        include_admin_posts=params.include_admin_posts,
        is_public=params.is_public,
        status=params.status,
    )
    if kind is ContentKind.DOCUMENT and params.category is not None:
        predicate = all_of(predicate, Eq("category", params.category))

    with content_list_latency.labels(kind=kind.value).time():
        result = await repository.fetch_page(
            session,
            _model(kind),
            predicate,
            page=params.page,
            limit=params.limit,
            max_limit=settings.MAX_PAGE_SIZE,
        )

    logger.debug(
        f"Listed {kind.value}s: caller={caller.id} total={result['total']} page={result['page']}"
    )
    return result


# ── Single item ───────────────────────────────────────────────────────────────

async def get_content(
    session: AsyncSession,
    caller: Caller,
    kind: ContentKind,
    item_id: uuid.UUID,
    department_access: Optional[uuid.UUID] = None,
    include_admin_posts: bool = False,
) -> ContentItem:
    """
    One item, under the same rules as the listing that linked to it.

    With `department_access` and `include_admin_posts`, admin-authored
    items are readable just as the dashboard union lists them.
    """
    item = await get_item_or_404(session, kind, item_id)
    policy.ensure_department_access(caller, department_access)

    admin_authored = False
    if include_admin_posts and department_access is not None:
        owner = await User.get_by_id(session, item.owner_id)
        admin_authored = owner is not None and owner.role is Role.ADMIN

    policy.ensure_can_view(caller, item, department_access, admin_authored)
    return item


async def create_content(
    session: AsyncSession,
    caller: Caller,
    kind: ContentKind,
    data: PostCreate | DocumentCreate,
) -> ContentItem:
    """
    Create a post or document.

    Guard: Employees cannot publish.
    Guard: Department heads publish into their own department only.
    Guard: Title and body must be non-empty.

    Admin-created items start APPROVED with the admin as reviewer;
    everyone else's start PENDING.
    """
    department_id = data.department_id if caller.is_admin else (
        data.department_id or caller.department_id
    )
    policy.ensure_can_create(caller, department_id)

    model = _model(kind)
    fields = data.model_dump(exclude={"department_id"})
    fields["title"] = _require_text("title", fields.get("title"))
    fields[model.body_column] = _require_text(model.body_column, fields.get(model.body_column))

    if department_id is not None and not await Department.get_by_id(session, department_id):
        raise NotFoundError("Department not found.")

    now = utcnow()
    item = model(
        **fields,
        department_id=department_id,
        created_at=now,
        updated_at=now,
    )
    setattr(item, model.owner_column, caller.id)
    workflow.open_review(item, caller, now)

    session.add(item)
    await session.commit()
    await session.refresh(item)

    content_created.labels(kind=kind.value, status=item.status.value).inc()
    logger.info(
        f"Created {kind.value} {item.id} by {caller.id} "
        f"dept={item.department_id} status={item.status.value}"
    )
    return item


async def update_content(
    session: AsyncSession,
    caller: Caller,
    kind: ContentKind,
    item_id: uuid.UUID,
    data: PostUpdate | DocumentUpdate,
) -> ContentItem:
    """
    Edit fields of an item. Status is untouched; use review/resubmit.

    Guard: Admins, the item's department head, or its author.
    Guard: Title and body, when supplied, must be non-empty.
    """
    item = await get_item_or_404(session, kind, item_id)
    policy.ensure_can_edit(caller, item)

    changes = data.model_dump(exclude_unset=True)
    for field in ("title", item.body_column):
        if field in changes:
            changes[field] = _require_text(field, changes[field])

    for field, value in changes.items():
        if value is None and field in ("is_public", "category", "tags"):
            continue
        setattr(item, field, value)

    await item.save(session)
    logger.info(f"Updated {kind.value} {item.id} by {caller.id}: {sorted(changes)}")
    return item


async def delete_content(
    session: AsyncSession,
    caller: Caller,
    kind: ContentKind,
    item_id: uuid.UUID,
) -> None:
    """Hard delete an item together with its review comments."""
    item = await get_item_or_404(session, kind, item_id)
    policy.ensure_can_delete(caller, item)

    await repository.delete_comments(session, item)
    await item.delete(session)

    content_deleted.labels(kind=kind.value).inc()
    logger.info(f"Deleted {kind.value} {item_id} by {caller.id}")


# ── Approval workflow ─────────────────────────────────────────────────────────

async def review_content(
    session: AsyncSession,
    caller: Caller,
    kind: ContentKind,
    item_id: uuid.UUID,
    approved: bool,
    comment: Optional[str] = None,
) -> ContentItem:
    """
    Approve (`approved=True`) or reject an item. Admin only.

    Legal from any state. Concurrent decisions on the same item are
    last-write-wins. A non-blank comment is stored alongside.
    """
    policy.ensure_can_review(caller)
    item = await get_item_or_404(session, kind, item_id)

    workflow.decide(item, caller, approved, utcnow())
    session.add(item)
    if comment and comment.strip():
        session.add(_comment_for(item, caller, comment.strip()))

    await session.commit()
    await session.refresh(item)

    content_transitions.labels(kind=kind.value, status=item.status.value).inc()
    logger.info(f"Reviewed {kind.value} {item.id}: {item.status.value} by {caller.id}")
    return item


async def resubmit_content(
    session: AsyncSession,
    caller: Caller,
    kind: ContentKind,
    item_id: uuid.UUID,
) -> ContentItem:
    """Put an item back to PENDING. Author or admin."""
    item = await get_item_or_404(session, kind, item_id)
    policy.ensure_can_resubmit(caller, item)

    workflow.resubmit(item, utcnow())
    session.add(item)
    await session.commit()
    await session.refresh(item)

    content_transitions.labels(kind=kind.value, status=ContentStatus.PENDING.value).inc()
    logger.info(f"Resubmitted {kind.value} {item.id} by {caller.id}")
    return item


# ── Review comments ───────────────────────────────────────────────────────────

def _comment_for(item: ContentItem, caller: Caller, content: str) -> ReviewComment:
    target = "post_id" if item.kind is ContentKind.POST else "document_id"
    return ReviewComment(content=content, user_id=caller.id, **{target: item.id})


async def add_comment(
    session: AsyncSession,
    caller: Caller,
    kind: ContentKind,
    item_id: uuid.UUID,
    content: Optional[str],
) -> ReviewComment:
    """Append a review comment. Anyone who may edit the item may comment."""
    item = await get_item_or_404(session, kind, item_id)
    policy.ensure_can_edit(caller, item)
    text = _require_text("content", content)

    comment = _comment_for(item, caller, text)
    session.add(comment)
    await session.commit()
    await session.refresh(comment)

    logger.info(f"Comment {comment.id} on {kind.value} {item.id} by {caller.id}")
    return comment


async def get_comments(
    session: AsyncSession,
    caller: Caller,
    kind: ContentKind,
    item_id: uuid.UUID,
) -> List[ReviewComment]:
    item = await get_item_or_404(session, kind, item_id)
    policy.ensure_can_edit(caller, item)
    return await repository.list_comments(session, kind, item.id)


# ── Admin moderation views ────────────────────────────────────────────────────

async def moderation_queue(
    session: AsyncSession,
    caller: Caller,
    params: ModerationParams,
    reviewed_only: bool = False,
) -> Dict[str, Any]:
    """
    Posts and documents merged into one admin listing.

    Queue mode (default): status defaults to PENDING, newest activity first.
    History mode (`reviewed_only`): items that have been reviewed at least
    once, most recent review first.
    """
    policy.ensure_can_review(caller)

    status = params.status
    if status is None and not reviewed_only:
        status = ContentStatus.PENDING

    sources = [
        (
            _model(kind),
            build_moderation_predicate(
                _search_fields(kind),
                search=params.search,
                status=status,
                reviewed_only=reviewed_only,
            ),
        )
        for kind in params.kinds
    ]

    return await repository.fetch_merged_page(
        session,
        sources,
        page=params.page,
        limit=params.limit,
        max_limit=settings.MAX_PAGE_SIZE,
        order_by="reviewed_at" if reviewed_only else "updated_at",
    )


# ── Search ────────────────────────────────────────────────────────────────────

SEARCH_PREVIEW_SIZE = 5


async def search_content(
    session: AsyncSession,
    caller: Caller,
    params: SearchParams,
) -> Dict[str, Any]:
    """
    Search approved posts and documents the caller may see.

    `type=all` returns the newest few hits of each kind as a preview;
    a single type pages through that kind. A blank query finds nothing.
    """
    query = params.query.strip()
    results: Dict[str, Any] = {"query": query, "totals": {}, "page": params.page}

    single = params.type != "all"
    page = params.page if single else 1
    limit = params.limit if single else SEARCH_PREVIEW_SIZE

    for kind in params.kinds:
        if not query:
            results[f"{kind.value}s"] = []
            results["totals"][kind.value] = 0
            continue

        predicate = build_list_predicate(
            caller,
            search_fields=_search_fields(kind),
            search=query,
            status=ContentStatus.APPROVED,
        )
        page_result = await repository.fetch_page(
            session,
            _model(kind),
            predicate,
            page=page,
            limit=limit,
            max_limit=settings.MAX_PAGE_SIZE,
        )
        results[f"{kind.value}s"] = page_result["items"]
        results["totals"][kind.value] = page_result["total"]
        limit = page_result["limit"]

    results["limit"] = limit
    results["total"] = sum(results["totals"].values())
    logger.debug(f"Search by {caller.id}: query={query!r} type={params.type} total={results['total']}")
    return results
