from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    String,
    Text,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from .base import Base
from .enums import coerce_price_range, coerce_priority
from .id_type import ID_TYPE, generate_id

if TYPE_CHECKING:
    from .friend import Friend


class GiftIdea(Base):
    """A gift the owner is considering for one of their friends."""

    __tablename__ = "gift_ideas"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=generate_id)
    friend_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("friends.id"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("users.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price_range: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    is_purchased: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
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

    friend: Mapped["Friend"] = relationship(back_populates="gift_ideas")

    __table_args__ = (
        CheckConstraint("priority IN ('low','medium','high')", name="priority_enum"),
        CheckConstraint(
            "price_range IS NULL OR price_range IN ('low','medium','high','luxury')",
            name="price_range_enum",
        ),
    )

    def __init__(
        self,
        *,
        friend_id: str,
        user_id: str,
        title: str,
        description: Optional[str] = None,
        price_range: Optional[str] = None,
        url: Optional[str] = None,
        image_url: Optional[str] = None,
        priority: Optional[str] = None,
        is_purchased: bool = False,
        id: Optional[str] = None,
    ) -> None:
        if id is not None:
            self.id = id
        self.friend_id = friend_id
        self.user_id = user_id
        self.title = title
        self.description = description
        self.price_range = price_range
        self.url = url
        self.image_url = image_url
        self.priority = priority
        self.is_purchased = is_purchased

    @validates("priority")
    def _validate_priority(self, _key: str, value: Optional[str]) -> str:
        return coerce_priority(value)

    @validates("price_range")
    def _validate_price_range(self, _key: str, value: Optional[str]) -> Optional[str]:
        return coerce_price_range(value)

    def __repr__(self) -> str:
        return (
            f"<GiftIdea(id={self.id}, friend_id={self.friend_id}, "
            f"title='{self.title}', is_purchased={self.is_purchased})>"
        )
