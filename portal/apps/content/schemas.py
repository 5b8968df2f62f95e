"""
Content schemas.

Input/output contracts for posts, documents, reviews and listings.
Emptiness of title/body is checked by the services so it surfaces as
EmptyFieldError rather than a generic 422.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from portal.apps.content.models import ContentKind, ContentStatus, DocumentCategory


# ── Listing ───────────────────────────────────────────────────────────────────

class ContentListParams(BaseModel):
    """Filters accepted by every content listing."""
    search: Optional[str] = Field(None, description="Case-insensitive match on title and body")
    department_id: Optional[uuid.UUID] = Field(None, description="Restrict to one department")
    department_access: Optional[uuid.UUID] = Field(
        None, description="Caller's department: show it plus everything public"
    )
    include_admin_posts: bool = Field(
        False, description="With department_access, also show admin-authored items"
    )
    is_public: Optional[bool] = Field(None, description="Explicit visibility filter")
    status: Optional[ContentStatus] = None
    category: Optional[DocumentCategory] = Field(None, description="Documents only")
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)


class _CrossKindParams(BaseModel):
    type: Literal["all", "post", "document"] = "all"
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)

    @property
    def kinds(self) -> List[ContentKind]:
        if self.type == "all":
            return [ContentKind.POST, ContentKind.DOCUMENT]
        return [ContentKind(self.type)]


class ModerationParams(_CrossKindParams):
    """Filters for the admin review queue and review history."""
    search: Optional[str] = None
    status: Optional[ContentStatus] = None


class SearchParams(_CrossKindParams):
    """Cross-content search over approved items the caller may see."""
    query: str = ""


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


# ── Posts ─────────────────────────────────────────────────────────────────────

class PostCreate(BaseModel):
    title: str = Field(..., max_length=500)
    content: str = Field(..., description="Post body (HTML or markdown)")
    is_public: bool = False
    tags: List[str] = Field(default_factory=list)
    cover_image_url: Optional[str] = Field(None, max_length=1000)
    department_id: Optional[uuid.UUID] = Field(
        None, description="Admins only; defaults to the author's department"
    )


class PostUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = None
    is_public: Optional[bool] = None
    tags: Optional[List[str]] = None
    cover_image_url: Optional[str] = Field(None, max_length=1000)


class PostResponse(BaseModel):
    id: uuid.UUID
    title: str
    content: str
    tags: List[str]
    cover_image_url: Optional[str]
    is_public: bool
    status: ContentStatus
    department_id: Optional[uuid.UUID]
    author_id: uuid.UUID
    reviewed_by_id: Optional[uuid.UUID]
    reviewed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ── Documents ─────────────────────────────────────────────────────────────────

class DocumentCreate(BaseModel):
    title: str = Field(..., max_length=500)
    description: str = Field(..., description="What the document covers")
    is_public: bool = False
    category: DocumentCategory = DocumentCategory.OTHER
    file_path: Optional[str] = Field(None, max_length=1000, description="Reference to stored file")
    department_id: Optional[uuid.UUID] = Field(
        None, description="Admins only; defaults to the uploader's department"
    )


class DocumentUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    is_public: Optional[bool] = None
    category: Optional[DocumentCategory] = None
    file_path: Optional[str] = Field(None, max_length=1000)


class DocumentResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    category: DocumentCategory
    file_path: Optional[str]
    is_public: bool
    status: ContentStatus
    department_id: Optional[uuid.UUID]
    uploaded_by_id: uuid.UUID
    reviewed_by_id: Optional[uuid.UUID]
    reviewed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


RESPONSE_SCHEMAS: dict[ContentKind, type[PostResponse] | type[DocumentResponse]] = {
    ContentKind.POST: PostResponse,
    ContentKind.DOCUMENT: DocumentResponse,
}


# ── Review ────────────────────────────────────────────────────────────────────

class ReviewDecision(BaseModel):
    """`is_approved=true` approves, `false` rejects."""
    is_approved: bool
    comment: Optional[str] = Field(None, description="Optional note stored as a review comment")


class ReviewCommentCreate(BaseModel):
    content: str


class ReviewCommentResponse(BaseModel):
    id: uuid.UUID
    content: str
    user_id: uuid.UUID
    post_id: Optional[uuid.UUID]
    document_id: Optional[uuid.UUID]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
