from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from .base import Base
from .enums import coerce_priority
from .id_type import ID_TYPE, generate_id

if TYPE_CHECKING:
    from .group import Group
    from .user import User


class WishlistItem(Base):
    """Something the owner would like to receive, optionally tied to a group."""

    __tablename__ = "wishlists"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=generate_id)
    user_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("users.id"), nullable=False, index=True
    )
    group_id: Mapped[Optional[str]] = mapped_column(
        ID_TYPE, ForeignKey("groups.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    owner: Mapped["User"] = relationship(back_populates="wishlist_items")
    group: Mapped[Optional["Group"]] = relationship()

    __table_args__ = (
        CheckConstraint("priority IN ('low','medium','high')", name="priority_enum"),
        CheckConstraint("price IS NULL OR price >= 0", name="price_non_negative"),
    )

    def __init__(
        self,
        *,
        user_id: str,
        title: str,
        group_id: Optional[str] = None,
        description: Optional[str] = None,
        url: Optional[str] = None,
        price: Optional[float] = None,
        priority: Optional[str] = None,
        id: Optional[str] = None,
    ) -> None:
        if id is not None:
            self.id = id
        self.user_id = user_id
        self.title = title
        self.group_id = group_id
        self.description = description
        self.url = url
        self.price = price
        self.priority = priority

    @validates("priority")
    def _validate_priority(self, _key: str, value: Optional[str]) -> str:
        return coerce_priority(value)

    @validates("price")
    def _validate_price(self, _key: str, value: Optional[float]) -> Optional[float]:
        if value is not None and value < 0:
            raise ValueError("price must not be negative")
        return value

    def __repr__(self) -> str:
        return f"<WishlistItem(id={self.id}, user_id={self.user_id}, title='{self.title}')>"
