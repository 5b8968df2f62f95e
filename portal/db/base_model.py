"""
Base model with production-grade query patterns.

Query Standards:
- Pagination is mandatory for list queries
- Filters arrive either as column=value kwargs or as compiled
  SQLAlchemy `where` expressions
- Every list is ordered explicitly so page boundaries are stable
"""

import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Sequence, TypeVar
from sqlalchemy import DateTime, select, func, desc, ColumnElement
from sqlalchemy.orm import Mapped, mapped_column, DeclarativeBase
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T", bound="BaseModel")


def utcnow() -> datetime:
    """Timezone-aware current time used for every timestamp column."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models"""

    pass


class BaseModel(Base):
    """
    Abstract base model with common fields and CRUD methods.

    All list queries enforce:
    - Explicit pagination
    - Deterministic ordering (requested column, then id)
    """

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        index=True,
    )

    # CREATE OPERATIONS

    @classmethod
    async def create(
        cls: type[T], db: AsyncSession, commit: bool = True, **kwargs
    ) -> T:
        """
        Create new instance and optionally commit.
        """
        instance = cls(**kwargs)
        db.add(instance)

        if commit:
            await db.commit()
            await db.refresh(instance)

        return instance

    # READ OPERATIONS

    @classmethod
    async def get_by_id(cls: type[T], db: AsyncSession, id: Any) -> Optional[T]:
        """
        Get single record by primary key.
        """
        return await db.get(cls, id)

    @classmethod
    async def find_one(
        cls: type[T],
        db: AsyncSession,
        filters: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> Optional[T]:
        """
        Get first matching record.
        """
        query = select(cls)
        if filters:
            query = query.filter_by(**filters)
        if kwargs:
            query = query.filter_by(**kwargs)
        result = await db.execute(query)
        return result.scalars().first()

    @classmethod
    async def find_many(
        cls: type[T],
        db: AsyncSession,
        limit: int = 100,
        offset: int = 0,
        where: Optional[ColumnElement[bool]] = None,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        order_desc: bool = True,
    ) -> List[T]:
        """
        Get a page of records.

        Ordering defaults to `created_at` and always falls back to `id`
        so equal timestamps never swap places between pages.
        """
        limit = min(limit, 1000)
        query = select(cls)

        if where is not None:
            query = query.where(where)
        if filters:
            query = query.filter_by(**filters)

        query = query.order_by(*cls._ordering(order_by, order_desc))
        query = query.offset(offset).limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    @classmethod
    async def count(
        cls: type[T],
        db: AsyncSession,
        where: Optional[ColumnElement[bool]] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Count matching records.
        """
        query = select(func.count()).select_from(cls)

        if where is not None:
            query = query.where(where)
        if filters:
            query = query.filter_by(**filters)

        result = await db.execute(query)
        return result.scalar_one()

    @classmethod
    async def exists(
        cls: type[T],
        db: AsyncSession,
        where: Optional[ColumnElement[bool]] = None,
        **kwargs,
    ) -> bool:
        """
        Check if matching record exists.
        """
        query = select(cls.id)

        if where is not None:
            query = query.where(where)
        if kwargs:
            query = query.filter_by(**kwargs)

        result = await db.execute(select(query.exists()))
        return bool(result.scalar())

    @classmethod
    def _ordering(cls, order_by: Optional[str], order_desc: bool) -> Sequence[Any]:
        column = getattr(cls, order_by) if order_by and hasattr(cls, order_by) else cls.created_at
        if order_desc:
            return [desc(column), desc(cls.id)]
        return [column, cls.id]

    # UPDATE OPERATIONS

    async def save(self: T, db: AsyncSession, commit: bool = True) -> T:
        """
        Save changes to existing instance, bumping `updated_at`.
        """
        self.updated_at = utcnow()
        db.add(self)

        if commit:
            await db.commit()
            await db.refresh(self)

        return self

    # DELETE OPERATIONS

    async def delete(self, db: AsyncSession, commit: bool = True) -> None:
        """
        Delete this instance.
        """
        await db.delete(self)

        if commit:
            await db.commit()

    # PAGINATION HELPERS

    @classmethod
    async def paginate(
        cls: type[T],
        db: AsyncSession,
        page: int = 1,
        per_page: int = 20,
        where: Optional[ColumnElement[bool]] = None,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        order_desc: bool = True,
        max_per_page: int = 100,
    ) -> Dict[str, Any]:
        """
        Get paginated results with metadata.

        `total` is counted against the same filter before paging.
        """
        per_page = max(min(per_page, max_per_page), 1)
        page = max(page, 1)

        offset = (page - 1) * per_page

        total = await cls.count(db, where=where, filters=filters)

        items = await cls.find_many(
            db,
            where=where,
            filters=filters,
            limit=per_page,
            offset=offset,
            order_by=order_by,
            order_desc=order_desc,
        )

        pages = (total + per_page - 1) // per_page

        return {
            "items": items,
            "total": total,
            "page": page,
            "limit": per_page,
            "pages": pages,
        }
