"""
Content ORM models.

Posts and Documents share one approval lifecycle and visibility rule,
declared once on `ContentMixin`. Review comments attach to exactly one of
the two.
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from portal.db.base_model import BaseModel


class ContentStatus(str, enum.Enum):
    """Approval status. Transmitted as the literal member names."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ContentKind(str, enum.Enum):
    POST = "post"
    DOCUMENT = "document"


class DocumentCategory(str, enum.Enum):
    POLICY = "POLICY"
    PROCEDURE = "PROCEDURE"
    FORM = "FORM"
    REPORT = "REPORT"
    TEMPLATE = "TEMPLATE"
    OTHER = "OTHER"


class ContentMixin:
    """
    Columns and accessors shared by every approvable content item.

    Subclasses name their owner and body columns so the engine can treat
    both kinds uniformly. Each subclass also sets `kind`.
        owner_column  - user who created the item (never transfers)
        body_column   - required free text searched next to the title
    """

    owner_column = "author_id"
    body_column = "content"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("departments.id"), nullable=True, index=True
    )
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    status: Mapped[ContentStatus] = mapped_column(
        SAEnum(ContentStatus, name="content_status_enum"),
        default=ContentStatus.PENDING,
        nullable=False,
        index=True,
    )
    reviewed_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id"), nullable=True
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def owner_id(self) -> uuid.UUID:
        return getattr(self, self.owner_column)

    @property
    def body(self) -> str:
        return getattr(self, self.body_column)


class Post(ContentMixin, BaseModel):
    """News-feed style article written by a department head or admin."""

    __tablename__ = "posts"

    kind = ContentKind.POST
    owner_column = "author_id"
    body_column = "content"

    author_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    cover_image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    __table_args__ = (
        Index("idx_post_dept_public", "department_id", "is_public"),
    )


class Document(ContentMixin, BaseModel):
    """Uploaded document record. The file itself lives in external storage."""

    __tablename__ = "documents"

    kind = ContentKind.DOCUMENT
    owner_column = "uploaded_by_id"
    body_column = "description"

    uploaded_by_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[DocumentCategory] = mapped_column(
        SAEnum(DocumentCategory, name="document_category_enum"),
        default=DocumentCategory.OTHER,
        nullable=False,
    )
    file_path: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    __table_args__ = (
        Index("idx_document_dept_public", "department_id", "is_public"),
    )


class ReviewComment(BaseModel):
    """
    Reviewer annotation. Append-only.
    Belongs to a post XOR a document.
    """

    __tablename__ = "review_comments"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    post_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), nullable=True, index=True
    )
    document_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("documents.id", ondelete="CASCADE"), nullable=True, index=True
    )

    __table_args__ = (
        CheckConstraint(
            "(post_id IS NULL) <> (document_id IS NULL)",
            name="ck_review_comment_single_target",
        ),
    )


CONTENT_MODELS: dict[ContentKind, type[Post] | type[Document]] = {
    ContentKind.POST: Post,
    ContentKind.DOCUMENT: Document,
}
