from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE, generate_id

if TYPE_CHECKING:
    from .gift_idea import GiftIdea
    from .user import User


class Friend(Base):
    """Reusable contact in a user's friends list.

    Group members may be imported from a friend; the member keeps a
    non-owning reference back to it.
    """

    __tablename__ = "friends"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=generate_id)
    user_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("users.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
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

    owner: Mapped["User"] = relationship(back_populates="friends")
    gift_ideas: Mapped[list["GiftIdea"]] = relationship(back_populates="friend")

    def __init__(
        self,
        *,
        user_id: str,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        avatar_url: Optional[str] = None,
        notes: Optional[str] = None,
        id: Optional[str] = None,
    ) -> None:
        if id is not None:
            self.id = id
        self.user_id = user_id
        self.name = name
        self.email = email
        self.phone = phone
        self.avatar_url = avatar_url
        self.notes = notes

    def __repr__(self) -> str:
        return f"<Friend(id={self.id}, user_id={self.user_id}, name='{self.name}')>"

    @classmethod
    def list_for_user(cls, session: Session, user_id: str) -> list["Friend"]:
        """Return the user's friends ordered alphabetically by name."""

        stmt = select(cls).where(cls.user_id == user_id).order_by(cls.name.asc())
        return list(session.scalars(stmt).all())
