"""
Content routers.

Entry/exit only — no logic here. Calls content services.

Posts and documents expose the same surface, so one factory builds both
routers. The admin router serves the cross-kind moderation views.
"""

import uuid
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from portal.apps.auth.schemas import Caller
from portal.apps.auth.services import verify_user
from portal.apps.content import services
from portal.apps.content.models import ContentKind, ContentStatus, DocumentCategory
from portal.apps.content.schemas import (
    RESPONSE_SCHEMAS,
    ContentListParams,
    DocumentCreate,
    DocumentUpdate,
    ModerationParams,
    Pagination,
    PostCreate,
    PostUpdate,
    ReviewCommentCreate,
    ReviewCommentResponse,
    ReviewDecision,
    SearchParams,
)
from portal.config.settings import settings
from portal.db.database import get_db
from portal.utils.responses import success_response


def list_params(
    search: Optional[str] = Query(None, description="Match in title or body"),
    department_id: Optional[uuid.UUID] = Query(None),
    department_access: Optional[uuid.UUID] = Query(
        None, description="Own department plus everything public"
    ),
    include_admin_posts: bool = Query(False),
    is_public: Optional[bool] = Query(None),
    status: Optional[ContentStatus] = Query(None),
    category: Optional[DocumentCategory] = Query(None, description="Documents only"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1),
) -> ContentListParams:
    return ContentListParams(
        search=search,
        department_id=department_id,
        department_access=department_access,
        include_admin_posts=include_admin_posts,
        is_public=is_public,
        status=status,
        category=category,
        page=page,
        limit=limit,
    )


def moderation_params(
    search: Optional[str] = Query(None),
    status: Optional[ContentStatus] = Query(None),
    type: Literal["all", "post", "document"] = Query("all"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1),
) -> ModerationParams:
    return ModerationParams(search=search, status=status, type=type, page=page, limit=limit)


def serialize(item: Any) -> Dict[str, Any]:
    data = RESPONSE_SCHEMAS[item.kind].model_validate(item).model_dump()
    data["type"] = item.kind.value
    return data


def serialize_page(result: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "items": [serialize(item) for item in result["items"]],
        "pagination": Pagination(**result).model_dump(),
    }


def build_content_router(kind: ContentKind, prefix: str, tag: str) -> APIRouter:
    """Wire the CRUD + approval routes for one content kind."""
    router = APIRouter(prefix=prefix, tags=[tag])
    label = kind.value.capitalize()
    create_schema = PostCreate if kind is ContentKind.POST else DocumentCreate
    update_schema = PostUpdate if kind is ContentKind.POST else DocumentUpdate

    @router.get("")
    async def list_items(
        params: ContentListParams = Depends(list_params),
        caller: Caller = Depends(verify_user),
        session: AsyncSession = Depends(get_db),
    ):
        """Paginated listing filtered to what the caller may see."""
        result = await services.list_content(session, caller, kind, params)
        return success_response(status_code=200, message=f"{label}s", data=serialize_page(result))

    @router.post("", status_code=201)
    async def create_item(
        data: create_schema,  # type: ignore[valid-type]
        caller: Caller = Depends(verify_user),
        session: AsyncSession = Depends(get_db),
    ):
        """Publish. Admin items go live immediately; others wait for review."""
        item = await services.create_content(session, caller, kind, data)
        return success_response(status_code=201, message=f"{label} created", data=serialize(item))

    @router.get("/{item_id}")
    async def get_item(
        item_id: uuid.UUID,
        department_access: Optional[uuid.UUID] = Query(None),
        include_admin_posts: bool = Query(False),
        caller: Caller = Depends(verify_user),
        session: AsyncSession = Depends(get_db),
    ):
        """Same visibility as the listing opened with the same query."""
        item = await services.get_content(
            session, caller, kind, item_id, department_access, include_admin_posts
        )
        return success_response(status_code=200, message=label, data=serialize(item))

    @router.patch("/{item_id}")
    async def update_item(
        item_id: uuid.UUID,
        data: update_schema,  # type: ignore[valid-type]
        caller: Caller = Depends(verify_user),
        session: AsyncSession = Depends(get_db),
    ):
        item = await services.update_content(session, caller, kind, item_id, data)
        return success_response(status_code=200, message=f"{label} updated", data=serialize(item))

    @router.delete("/{item_id}", status_code=204)
    async def delete_item(
        item_id: uuid.UUID,
        caller: Caller = Depends(verify_user),
        session: AsyncSession = Depends(get_db),
    ):
        await services.delete_content(session, caller, kind, item_id)
        return Response(status_code=204)

    @router.post("/{item_id}/approve")
    async def review_item(
        item_id: uuid.UUID,
        decision: ReviewDecision,
        caller: Caller = Depends(verify_user),
        session: AsyncSession = Depends(get_db),
    ):
        """Approve or reject (admin only)."""
        item = await services.review_content(
            session, caller, kind, item_id, decision.is_approved, decision.comment
        )
        verdict = "approved" if decision.is_approved else "rejected"
        return success_response(status_code=200, message=f"{label} {verdict}", data=serialize(item))

    @router.post("/{item_id}/resubmit")
    async def resubmit_item(
        item_id: uuid.UUID,
        caller: Caller = Depends(verify_user),
        session: AsyncSession = Depends(get_db),
    ):
        item = await services.resubmit_content(session, caller, kind, item_id)
        return success_response(
            status_code=200, message=f"{label} resubmitted for review", data=serialize(item)
        )

    @router.get("/{item_id}/comments")
    async def list_item_comments(
        item_id: uuid.UUID,
        caller: Caller = Depends(verify_user),
        session: AsyncSession = Depends(get_db),
    ):
        comments = await services.get_comments(session, caller, kind, item_id)
        return success_response(
            status_code=200,
            message="Review comments",
            data=[ReviewCommentResponse.model_validate(c).model_dump() for c in comments],
        )

    @router.post("/{item_id}/comments", status_code=201)
    async def add_item_comment(
        item_id: uuid.UUID,
        data: ReviewCommentCreate,
        caller: Caller = Depends(verify_user),
        session: AsyncSession = Depends(get_db),
    ):
        comment = await services.add_comment(session, caller, kind, item_id, data.content)
        return success_response(
            status_code=201,
            message="Comment added",
            data=ReviewCommentResponse.model_validate(comment).model_dump(),
        )

    return router


posts_router = build_content_router(ContentKind.POST, "/api/v1/posts", "Posts")
documents_router = build_content_router(ContentKind.DOCUMENT, "/api/v1/documents", "Documents")


# ── Admin moderation ──────────────────────────────────────────────────────────

admin_router = APIRouter(prefix="/api/v1/admin/content", tags=["Admin"])


@admin_router.get("/pending")
async def pending_queue(
    params: ModerationParams = Depends(moderation_params),
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    """Review queue across posts and documents. Defaults to PENDING."""
    result = await services.moderation_queue(session, caller, params)
    return success_response(status_code=200, message="Review queue", data=serialize_page(result))


@admin_router.get("/reviews")
async def review_history(
    params: ModerationParams = Depends(moderation_params),
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    """Items that have a reviewer on record, latest decision first."""
    result = await services.moderation_queue(session, caller, params, reviewed_only=True)
    return success_response(status_code=200, message="Review history", data=serialize_page(result))


# ── Search ────────────────────────────────────────────────────────────────────

search_router = APIRouter(prefix="/api/v1/search", tags=["Search"])


@search_router.get("")
async def search(
    query: str = Query("", description="Match in title or body"),
    type: Literal["all", "post", "document"] = Query("all"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1),
    caller: Caller = Depends(verify_user),
    session: AsyncSession = Depends(get_db),
):
    """Approved posts and documents matching `query`, within the caller's visibility."""
    params = SearchParams(query=query, type=type, page=page, limit=limit)
    result = await services.search_content(session, caller, params)
    data = {
        key: [serialize(item) for item in result[key]]
        for key in ("posts", "documents")
        if key in result
    }
    data.update(
        query=result["query"],
        totals=result["totals"],
        total=result["total"],
        page=result["page"],
        limit=result["limit"],
    )
    return success_response(status_code=200, message="Search results", data=data)
