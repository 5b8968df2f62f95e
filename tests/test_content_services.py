"""
Service-level tests for the content approval engine.

Run with: PYTHONPATH=. uv run pytest tests/test_content_services.py -v
"""

import uuid

import pytest

from portal.apps.auth.models import Role
from portal.apps.auth.schemas import Caller
from portal.apps.content import services
from portal.apps.content.models import ContentKind, ContentStatus, DocumentCategory, ReviewComment
from portal.apps.content.schemas import (
    ContentListParams,
    DocumentCreate,
    ModerationParams,
    PostCreate,
    PostUpdate,
    SearchParams,
)
from portal.utils.exceptions import (
    EmptyFieldError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)

pytestmark = pytest.mark.asyncio

POST = ContentKind.POST
DOCUMENT = ContentKind.DOCUMENT


async def make_post(session, caller, title="Thông báo", content="Nội dung", **kwargs):
    return await services.create_content(
        session, caller, POST, PostCreate(title=title, content=content, **kwargs)
    )


async def list_ids(session, caller, kind=POST, **filters):
    result = await services.list_content(session, caller, kind, ContentListParams(**filters))
    return {item.id for item in result["items"]}


# ── Create ────────────────────────────────────────────────────────────────────

async def test_create_is_role_gated(session, org):
    await make_post(session, org.caller("admin"), department_id=org.hr.id)
    await make_post(session, org.caller("head_hr"))

    with pytest.raises(ForbiddenError):
        await make_post(session, org.caller("emp_hr"))


async def test_admin_items_are_auto_approved(session, org):
    admin = org.caller("admin")
    post = await make_post(session, admin, department_id=org.hr.id)

    assert post.status is ContentStatus.APPROVED
    assert post.reviewed_by_id == admin.id
    assert post.reviewed_at is not None
    assert post.author_id == admin.id


async def test_head_items_start_pending_in_own_department(session, org):
    head = org.caller("head_hr")
    post = await make_post(session, head)

    assert post.status is ContentStatus.PENDING
    assert post.reviewed_by_id is None
    assert post.department_id == org.hr.id


async def test_head_cannot_publish_into_other_department(session, org):
    with pytest.raises(ForbiddenError):
        await make_post(session, org.caller("head_hr"), department_id=org.it.id)


@pytest.mark.parametrize("title, content", [("", "Nội dung"), ("   ", "Nội dung"), ("Tiêu đề", "")])
async def test_create_rejects_empty_fields(session, org, title, content):
    with pytest.raises(EmptyFieldError) as exc:
        await make_post(session, org.caller("head_hr"), title=title, content=content)
    assert isinstance(exc.value, ValidationError)
    assert exc.value.status_code == 400


async def test_create_document_requires_description(session, org):
    with pytest.raises(EmptyFieldError):
        await services.create_content(
            session, org.caller("head_it"), DOCUMENT,
            DocumentCreate(title="Mẫu đơn nghỉ phép", description=" "),
        )

    document = await services.create_content(
        session, org.caller("head_it"), DOCUMENT,
        DocumentCreate(title="Mẫu đơn nghỉ phép", description="Dùng cho nhân viên chính thức"),
    )
    assert document.uploaded_by_id == org.users["head_it"].id
    assert document.status is ContentStatus.PENDING


async def test_create_in_unknown_department_is_not_found(session, org):
    with pytest.raises(NotFoundError):
        await make_post(session, org.caller("admin"), department_id=uuid.uuid4())


# ── Approval workflow ─────────────────────────────────────────────────────────

async def test_example_flow_head_creates_admin_approves(session, org):
    admin = org.caller("admin")
    post = await make_post(session, org.caller("head_hr"), title="Quy chế lương 2026")
    assert post.status is ContentStatus.PENDING

    approved = await services.review_content(session, admin, POST, post.id, approved=True)
    assert approved.status is ContentStatus.APPROVED
    assert approved.reviewed_by_id == admin.id


async def test_approve_twice_keeps_latest_review_time(session, org):
    admin = org.caller("admin")
    post = await make_post(session, org.caller("head_hr"))

    first = await services.review_content(session, admin, POST, post.id, approved=True)
    first_at = first.reviewed_at
    second = await services.review_content(session, admin, POST, post.id, approved=True)

    assert second.status is ContentStatus.APPROVED
    assert second.reviewed_at >= first_at


async def test_only_admin_can_review(session, org):
    post = await make_post(session, org.caller("head_hr"))
    for key in ("head_hr", "emp_hr"):
        with pytest.raises(ForbiddenError):
            await services.review_content(session, org.caller(key), POST, post.id, approved=True)


async def test_review_with_comment_stores_comment(session, org):
    admin = org.caller("admin")
    post = await make_post(session, org.caller("head_hr"))

    rejected = await services.review_content(
        session, admin, POST, post.id, approved=False, comment="Thiếu số liệu quý 4"
    )
    assert rejected.status is ContentStatus.REJECTED

    comments = await services.get_comments(session, admin, POST, post.id)
    assert [c.content for c in comments] == ["Thiếu số liệu quý 4"]
    assert comments[0].user_id == admin.id


async def test_review_transition_does_not_change_visibility(session, org):
    post = await make_post(session, org.caller("head_hr"), is_public=False)
    approved = await services.review_content(session, org.caller("admin"), POST, post.id, approved=True)
    assert approved.is_public is False


async def test_resubmit_after_rejection(session, org):
    admin = org.caller("admin")
    head = org.caller("head_hr")
    post = await make_post(session, head)
    await services.review_content(session, admin, POST, post.id, approved=False)

    with pytest.raises(ForbiddenError):
        await services.resubmit_content(session, org.caller("head_it"), POST, post.id)

    resubmitted = await services.resubmit_content(session, head, POST, post.id)
    assert resubmitted.status is ContentStatus.PENDING
    assert resubmitted.reviewed_by_id == admin.id


async def test_unknown_id_is_not_found(session, org):
    missing = uuid.uuid4()
    admin = org.caller("admin")
    with pytest.raises(NotFoundError):
        await services.review_content(session, admin, POST, missing, approved=True)
    with pytest.raises(NotFoundError):
        await services.delete_content(session, admin, DOCUMENT, missing)
    with pytest.raises(NotFoundError):
        await services.get_content(session, admin, POST, missing)


# ── Edit / delete ─────────────────────────────────────────────────────────────

async def test_head_cannot_edit_or_delete_other_department(session, org):
    post = await make_post(session, org.caller("head_hr"))
    outsider = org.caller("head_it")

    with pytest.raises(ForbiddenError):
        await services.update_content(session, outsider, POST, post.id, PostUpdate(title="Sửa"))
    with pytest.raises(ForbiddenError):
        await services.delete_content(session, outsider, POST, post.id)


async def test_update_rejects_blank_title_and_keeps_status(session, org):
    head = org.caller("head_hr")
    post = await make_post(session, head)

    with pytest.raises(EmptyFieldError):
        await services.update_content(session, head, POST, post.id, PostUpdate(title=" "))

    updated = await services.update_content(
        session, head, POST, post.id, PostUpdate(title="Tiêu đề mới", tags=["nhân sự"])
    )
    assert updated.title == "Tiêu đề mới"
    assert updated.tags == ["nhân sự"]
    assert updated.status is ContentStatus.PENDING
    assert updated.updated_at >= post.created_at


async def test_delete_removes_item_and_comments(session, org):
    admin = org.caller("admin")
    post = await make_post(session, org.caller("head_hr"))
    await services.review_content(session, admin, POST, post.id, approved=False, comment="Chưa đạt")

    await services.delete_content(session, org.caller("head_hr"), POST, post.id)

    with pytest.raises(NotFoundError):
        await services.get_content(session, admin, POST, post.id)
    assert await ReviewComment.count(session, filters={"post_id": post.id}) == 0


# ── Listing ───────────────────────────────────────────────────────────────────

async def test_employee_default_listing_is_public_only(session, org):
    head = org.caller("head_hr")
    public = await make_post(session, head, is_public=True)
    await make_post(session, head, is_public=False)

    result = await services.list_content(session, org.caller("emp_hr"), POST, ContentListParams())
    assert {item.id for item in result["items"]} == {public.id}
    assert all(item.is_public for item in result["items"])


async def test_head_sees_public_and_own_department(session, org):
    own_private = await make_post(session, org.caller("head_hr"))
    other_private = await make_post(session, org.caller("head_it"))
    other_public = await make_post(session, org.caller("head_it"), is_public=True)

    ids = await list_ids(session, org.caller("head_hr"))
    assert ids == {own_private.id, other_public.id}
    assert other_private.id not in ids


async def test_union_search_does_not_leak_private_items(session, org):
    admin = org.caller("admin")
    a = await make_post(session, admin, title="Báo cáo nội bộ", department_id=org.hr.id)
    b = await make_post(session, admin, title="Lịch họp toàn công ty", department_id=org.it.id, is_public=True)
    c = await make_post(session, admin, title="Lịch họp phòng IT", department_id=org.it.id)

    ids = await list_ids(
        session, org.caller("emp_hr"), search="lịch họp", department_access=org.hr.id
    )
    assert ids == {b.id}
    assert a.id not in ids and c.id not in ids


async def test_department_access_union_with_admin_posts(session, org):
    admin = org.caller("admin")
    own = await make_post(session, org.caller("head_hr"))
    admin_private = await make_post(session, admin, department_id=org.it.id)
    other = await make_post(session, org.caller("head_it"))

    caller = org.caller("emp_hr")
    assert await list_ids(session, caller, department_access=org.hr.id) == {own.id}
    assert await list_ids(
        session, caller, department_access=org.hr.id, include_admin_posts=True
    ) == {own.id, admin_private.id}
    assert other.id not in await list_ids(session, caller, department_access=org.hr.id)


async def test_department_access_for_other_department_is_forbidden(session, org):
    with pytest.raises(ForbiddenError):
        await list_ids(session, org.caller("emp_hr"), department_access=org.it.id)


async def test_employee_private_filter_needs_department_access(session, org):
    own_private = await make_post(session, org.caller("head_hr"))
    caller = org.caller("emp_hr")

    assert await list_ids(session, caller, is_public=False) == set()
    assert await list_ids(
        session, caller, is_public=False, department_access=org.hr.id
    ) == {own_private.id}


async def test_caller_without_department_does_not_see_company_wide_private_items(session, org):
    admin = org.caller("admin")
    company_private = await make_post(session, admin)
    company_public = await make_post(session, admin, is_public=True)
    assert company_private.department_id is None

    for role in (Role.EMPLOYEE, Role.DEPARTMENT_HEAD):
        orphan = Caller(id=uuid.uuid4(), role=role)
        assert await list_ids(session, orphan) == {company_public.id}
        assert await list_ids(session, orphan, is_public=False) == set()


async def test_every_listed_item_can_be_opened_with_the_same_query(session, org):
    admin = org.caller("admin")
    await make_post(session, admin)
    await make_post(session, admin, department_id=org.hr.id)
    await make_post(session, admin, department_id=org.it.id)
    await make_post(session, admin, department_id=org.it.id, is_public=True)
    await make_post(session, org.caller("head_hr"))
    await make_post(session, org.caller("head_it"))
    await make_post(session, org.caller("head_it"), is_public=True)

    callers = [org.caller(key) for key in ("admin", "head_hr", "head_it", "emp_hr", "emp_it")]
    callers.append(Caller(id=uuid.uuid4(), role=Role.EMPLOYEE))

    for caller in callers:
        queries = [{}, {"is_public": False}, {"is_public": True}]
        if caller.department_id is not None:
            scoped = {"department_access": caller.department_id}
            queries += [
                scoped,
                {**scoped, "include_admin_posts": True},
                {**scoped, "is_public": False},
                {**scoped, "include_admin_posts": True, "is_public": False},
            ]

        for query in queries:
            listed = await services.list_content(
                session, caller, POST, ContentListParams(**query)
            )
            for item in listed["items"]:
                opened = await services.get_content(
                    session,
                    caller,
                    POST,
                    item.id,
                    department_access=query.get("department_access"),
                    include_admin_posts=query.get("include_admin_posts", False),
                )
                assert opened.id == item.id, (caller.role, query)


async def test_admin_private_item_opens_inside_department_access_with_admin_posts(session, org):
    admin_private = await make_post(session, org.caller("admin"), department_id=org.it.id)
    caller = org.caller("emp_hr")

    with pytest.raises(ForbiddenError):
        await services.get_content(session, caller, POST, admin_private.id)
    with pytest.raises(ForbiddenError):
        await services.get_content(
            session, caller, POST, admin_private.id, department_access=org.hr.id
        )

    item = await services.get_content(
        session,
        caller,
        POST,
        admin_private.id,
        department_access=org.hr.id,
        include_admin_posts=True,
    )
    assert item.id == admin_private.id


async def test_admin_posts_flag_does_not_open_other_heads_items(session, org):
    other = await make_post(session, org.caller("head_it"))

    with pytest.raises(ForbiddenError):
        await services.get_content(
            session,
            org.caller("emp_hr"),
            POST,
            other.id,
            department_access=org.hr.id,
            include_admin_posts=True,
        )


async def test_document_category_filter(session, org):
    head = org.caller("head_hr")
    policy_doc = await services.create_content(
        session,
        head,
        DOCUMENT,
        DocumentCreate(title="Nội quy", description="Nội quy lao động", category=DocumentCategory.POLICY),
    )
    await services.create_content(
        session,
        head,
        DOCUMENT,
        DocumentCreate(title="Mẫu đơn nghỉ phép", description="Biểu mẫu", category=DocumentCategory.FORM),
    )

    assert await list_ids(session, head, DOCUMENT, category=DocumentCategory.POLICY) == {policy_doc.id}
    assert len(await list_ids(session, head, DOCUMENT)) == 2


async def test_search_is_case_insensitive_and_literal(session, org):
    admin = org.caller("admin")
    hit = await make_post(session, admin, title="Voucher 50% canteen", department_id=org.hr.id)
    other = await make_post(session, admin, title="Voucher 500 nghin", department_id=org.hr.id)

    assert await list_ids(session, admin, search="50%") == {hit.id}
    assert await list_ids(session, admin, search="VOUCHER") == {hit.id, other.id}


async def test_status_and_department_filters(session, org):
    admin = org.caller("admin")
    pending = await make_post(session, org.caller("head_hr"))
    approved_hr = await make_post(session, admin, department_id=org.hr.id)
    await make_post(session, admin, department_id=org.it.id)

    assert await list_ids(session, admin, status=ContentStatus.PENDING) == {pending.id}
    assert await list_ids(session, admin, department_id=org.hr.id) == {pending.id, approved_hr.id}


async def test_pagination_is_deterministic(session, org):
    head = org.caller("head_hr")
    created = [await make_post(session, head, title=f"Bản tin số {i}") for i in range(23)]
    caller = org.caller("head_hr")

    first = await services.list_content(session, caller, POST, ContentListParams(limit=10))
    assert first["total"] == 23
    assert first["pages"] == 3

    seen = []
    for page in range(1, first["pages"] + 1):
        result = await services.list_content(
            session, caller, POST, ContentListParams(page=page, limit=10)
        )
        seen.extend(result["items"])

    assert len(seen) == 23
    assert {item.id for item in seen} == {item.id for item in created}
    stamps = [item.updated_at for item in seen]
    assert stamps == sorted(stamps, reverse=True)


async def test_limit_is_capped(session, org):
    await make_post(session, org.caller("head_hr"))
    result = await services.list_content(
        session, org.caller("admin"), POST, ContentListParams(limit=10_000)
    )
    assert result["limit"] == 100


# ── Comments ──────────────────────────────────────────────────────────────────

async def test_comments_require_edit_rights_and_text(session, org):
    post = await make_post(session, org.caller("head_hr"))

    with pytest.raises(ForbiddenError):
        await services.add_comment(session, org.caller("emp_hr"), POST, post.id, "Đồng ý")
    with pytest.raises(EmptyFieldError):
        await services.add_comment(session, org.caller("head_hr"), POST, post.id, "  ")

    comment = await services.add_comment(session, org.caller("head_hr"), POST, post.id, "Đã bổ sung")
    assert comment.post_id == post.id
    assert comment.document_id is None


# ── Moderation ────────────────────────────────────────────────────────────────

async def test_moderation_queue_merges_kinds(session, org):
    admin = org.caller("admin")
    post = await make_post(session, org.caller("head_hr"))
    document = await services.create_content(
        session, org.caller("head_it"), DOCUMENT,
        DocumentCreate(title="Quy trình cấp máy tính", description="Các bước đề xuất"),
    )
    await make_post(session, admin, department_id=org.hr.id)

    queue = await services.moderation_queue(session, admin, ModerationParams())
    assert queue["total"] == 2
    assert {item.id for item in queue["items"]} == {post.id, document.id}

    only_docs = await services.moderation_queue(session, admin, ModerationParams(type="document"))
    assert [item.id for item in only_docs["items"]] == [document.id]

    with pytest.raises(ForbiddenError):
        await services.moderation_queue(session, org.caller("head_hr"), ModerationParams())


async def test_review_history_lists_reviewed_items(session, org):
    admin = org.caller("admin")
    post = await make_post(session, org.caller("head_hr"))
    await make_post(session, org.caller("head_hr"))
    await services.review_content(session, admin, POST, post.id, approved=False)

    history = await services.moderation_queue(
        session, admin, ModerationParams(), reviewed_only=True
    )
    assert [item.id for item in history["items"]] == [post.id]
    assert history["items"][0].status is ContentStatus.REJECTED


# ── Search ────────────────────────────────────────────────────────────────────

async def test_search_returns_approved_items_the_caller_may_see(session, org):
    admin = org.caller("admin")
    public = await make_post(session, admin, title="Holiday schedule", department_id=org.hr.id, is_public=True)
    it_private = await make_post(session, admin, title="Holiday bonus", department_id=org.it.id)
    await make_post(session, org.caller("head_hr"), title="Holiday party", is_public=True)
    doc = await services.create_content(
        session,
        admin,
        DOCUMENT,
        DocumentCreate(title="Leave policy", description="Holiday rules", is_public=True),
    )

    result = await services.search_content(session, org.caller("emp_hr"), SearchParams(query="HOLIDAY"))
    assert [p.id for p in result["posts"]] == [public.id]
    assert [d.id for d in result["documents"]] == [doc.id]
    assert result["totals"] == {"post": 1, "document": 1}
    assert result["total"] == 2

    result = await services.search_content(session, admin, SearchParams(query="holiday", type="post"))
    assert {p.id for p in result["posts"]} == {public.id, it_private.id}
    assert "documents" not in result


async def test_search_with_blank_query_finds_nothing(session, org):
    await make_post(session, org.caller("admin"), is_public=True)

    result = await services.search_content(session, org.caller("emp_hr"), SearchParams(query="   "))
    assert result["posts"] == [] and result["documents"] == []
    assert result["total"] == 0


async def test_search_previews_all_kinds_and_pages_a_single_kind(session, org):
    admin = org.caller("admin")
    for i in range(7):
        await make_post(session, admin, title=f"Memo {i}", is_public=True)

    preview = await services.search_content(session, admin, SearchParams(query="memo"))
    assert len(preview["posts"]) == services.SEARCH_PREVIEW_SIZE
    assert preview["totals"]["post"] == 7

    paged = await services.search_content(
        session, admin, SearchParams(query="memo", type="post", page=2, limit=3)
    )
    assert len(paged["posts"]) == 3
    assert paged["page"] == 2 and paged["limit"] == 3
