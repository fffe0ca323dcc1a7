from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from .base import Base
from .id_type import ID_TYPE, generate_id

if TYPE_CHECKING:
    from .friend import Friend
    from .group import Group
    from .wishlist import WishlistItem


class User(Base):
    """Platform account that owns friends, groups, gift ideas and wish lists."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=generate_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
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

    friends: Mapped[list["Friend"]] = relationship(back_populates="owner")
    groups: Mapped[list["Group"]] = relationship(back_populates="owner")
    wishlist_items: Mapped[list["WishlistItem"]] = relationship(back_populates="owner")

    def __init__(
        self,
        email: str,
        name: str,
        avatar_url: Optional[str] = None,
        id: Optional[str] = None,
    ):
        if id is not None:
            self.id = id
        self.email = email
        self.name = name
        self.avatar_url = avatar_url

    @validates("email")
    def _normalize_email(self, _key: str, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError("email must not be empty")
        return normalized

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', name='{self.name}')>"

    @classmethod
    def get_by_email(cls, session: Session, email: str) -> Optional["User"]:
        """Retrieve a user by email address."""

        return session.scalar(select(cls).where(cls.email == email.strip().lower()))
