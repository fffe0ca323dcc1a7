"""Gift-exchange groups and their members."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any, Mapping, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    String,
    Text,
    false,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE, generate_id
from ..db.utils import dt_iso, parse_date, parse_dt

if TYPE_CHECKING:
    from .draw_result import DrawResult
    from .friend import Friend
    from .user import User

MIN_PARTICIPANTS = 3
"""Smallest member count for which a draw may run."""


def validate_budget(
    budget_min: Optional[float], budget_max: Optional[float]
) -> None:
    """Raise ``ValueError`` unless the budget bounds are non-negative and ordered."""

    for label, value in (("budget_min", budget_min), ("budget_max", budget_max)):
        if value is not None and value < 0:
            raise ValueError(f"{label} must not be negative")
    if budget_min is not None and budget_max is not None and budget_min > budget_max:
        raise ValueError("budget_min must not exceed budget_max")


class Group(Base):
    """A named gift-exchange event owned by a single user.

    The group exclusively owns its members and, once drawn, its draw
    results. Nothing cascades at the database level: callers delete members
    and results explicitly before deleting the group.
    """

    __tablename__ = "groups"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=generate_id)
    """Primary key (UUID string)."""

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    """Display name of the exchange."""

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    owner_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("users.id"), nullable=False, index=True
    )
    """User that created the group; all workflow access is scoped to it."""

    budget_min: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    budget_max: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    draw_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    exchange_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    is_drawn: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    """Set only after a complete draw has been written."""

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

    owner: Mapped["User"] = relationship(back_populates="groups")
    members: Mapped[list["GroupMember"]] = relationship(
        back_populates="group", order_by="GroupMember.created_at"
    )
    draw_results: Mapped[list["DrawResult"]] = relationship(back_populates="group")

    __table_args__ = (
        CheckConstraint(
            "budget_min IS NULL OR budget_max IS NULL OR budget_min <= budget_max",
            name="budget_range",
        ),
    )

    def __init__(
        self,
        *,
        name: str,
        owner_id: str,
        description: Optional[str] = None,
        budget_min: Optional[float] = None,
        budget_max: Optional[float] = None,
        draw_date: Optional[date] = None,
        exchange_date: Optional[date] = None,
        is_drawn: bool = False,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> None:
        validate_budget(budget_min, budget_max)
        if id is not None:
            self.id = id
        self.name = name
        self.owner_id = owner_id
        self.description = description
        self.budget_min = budget_min
        self.budget_max = budget_max
        self.draw_date = draw_date
        self.exchange_date = exchange_date
        self.is_drawn = is_drawn
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    def __repr__(self) -> str:
        return (
            f"<Group(id={self.id}, name='{self.name}', owner_id={self.owner_id}, "
            f"is_drawn={self.is_drawn})>"
        )

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def can_draw(self) -> bool:
        """Whether the group currently has enough members for a draw."""
        return self.member_count >= MIN_PARTICIPANTS

    def set_budget(
        self, budget_min: Optional[float], budget_max: Optional[float]
    ) -> None:
        """Replace both budget bounds after validating them together."""
        validate_budget(budget_min, budget_max)
        self.budget_min = budget_min
        self.budget_max = budget_max

    @classmethod
    def list_for_owner(cls, session: Session, owner_id: str) -> list["Group"]:
        """Return the owner's groups, newest first."""

        stmt = (
            select(cls)
            .where(cls.owner_id == owner_id)
            .order_by(cls.created_at.desc(), cls.id.desc())
        )
        return list(session.scalars(stmt).all())

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "owner_id": self.owner_id,
            "budget_min": self.budget_min,
            "budget_max": self.budget_max,
            "draw_date": self.draw_date.isoformat() if self.draw_date else None,
            "exchange_date": (
                self.exchange_date.isoformat() if self.exchange_date else None
            ),
            "is_drawn": self.is_drawn,
            "created_at": dt_iso(self.created_at),
            "updated_at": dt_iso(self.updated_at),
        }

    @classmethod
    def from_json(cls, row: Mapping[str, Any]) -> "Group":
        """Build a detached ``Group`` from a backend row."""

        return cls(
            id=row["id"],
            name=row["name"],
            owner_id=row["owner_id"],
            description=row.get("description"),
            budget_min=row.get("budget_min"),
            budget_max=row.get("budget_max"),
            draw_date=parse_date(row.get("draw_date")),
            exchange_date=parse_date(row.get("exchange_date")),
            is_drawn=bool(row.get("is_drawn", False)),
            created_at=parse_dt(row.get("created_at")),
            updated_at=parse_dt(row.get("updated_at")),
        )


class GroupMember(Base):
    """A participant record scoped to exactly one group."""

    __tablename__ = "group_members"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=generate_id)
    group_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("groups.id"), nullable=False, index=True
    )
    friend_id: Mapped[Optional[str]] = mapped_column(
        ID_TYPE, ForeignKey("friends.id", ondelete="SET NULL"), nullable=True
    )
    """Friend this member was imported from (lookup only)."""

    user_id: Mapped[Optional[str]] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    """Platform account of the participant, when they have one."""

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_confirmed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    group: Mapped["Group"] = relationship(back_populates="members")
    friend: Mapped[Optional["Friend"]] = relationship()

    def __init__(
        self,
        *,
        group_id: str,
        name: str,
        email: Optional[str] = None,
        friend_id: Optional[str] = None,
        user_id: Optional[str] = None,
        is_confirmed: bool = False,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        if id is not None:
            self.id = id
        self.group_id = group_id
        self.name = name
        self.email = email
        self.friend_id = friend_id
        self.user_id = user_id
        self.is_confirmed = is_confirmed
        if created_at is not None:
            self.created_at = created_at

    def __repr__(self) -> str:
        return f"<GroupMember(id={self.id}, group_id={self.group_id}, name='{self.name}')>"

    @classmethod
    def list_for_group(cls, session: Session, group_id: str) -> list["GroupMember"]:
        stmt = (
            select(cls)
            .where(cls.group_id == group_id)
            .order_by(cls.created_at.asc(), cls.id.asc())
        )
        return list(session.scalars(stmt).all())

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "group_id": self.group_id,
            "friend_id": self.friend_id,
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "is_confirmed": self.is_confirmed,
            "created_at": dt_iso(self.created_at),
        }

    @classmethod
    def from_json(cls, row: Mapping[str, Any]) -> "GroupMember":
        return cls(
            id=row["id"],
            group_id=row["group_id"],
            name=row["name"],
            email=row.get("email"),
            friend_id=row.get("friend_id"),
            user_id=row.get("user_id"),
            is_confirmed=bool(row.get("is_confirmed", False)),
            created_at=parse_dt(row.get("created_at")),
        )


__all__ = ["MIN_PARTICIPANTS", "Group", "GroupMember", "validate_budget"]
