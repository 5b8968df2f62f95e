"""
Department ORM model.

Departments are the security boundary for content visibility.
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from portal.db.base_model import BaseModel


class Department(BaseModel):
    """Organisational unit that owns users and content."""

    __tablename__ = "departments"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
