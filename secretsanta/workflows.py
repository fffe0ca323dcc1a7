from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import logging
import random
from typing import Optional, Union

from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm import Session

from .context import OwnerContext
from .draw.engine import DrawEngine, DrawOutcome
from .draw.reveal import RevealState
from .draw.stores import SqlAlchemyAssignmentStore
from .draw.strategies import DEFAULT_STRATEGY_KEY, StrategyRegistry
from .errors import NotFoundError
from .models import (
    DrawResult,
    Friend,
    GiftIdea,
    Group,
    GroupMember,
    PriceRange,
    Priority,
    WishlistItem,
)

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"


def _required_text(value: Optional[str], label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValueError(f"{label} is required")
    return text


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _check_owner(owner_id: str, ctx: OwnerContext, label: str, obj_id: Optional[str]) -> None:
    # Rows owned by someone else are reported exactly like missing rows.
    if owner_id != ctx.user_id:
        raise NotFoundError(f"{label} {obj_id} not found")


# -------- groups --------


def create_group(
    session: Session,
    ctx: OwnerContext,
    name: str,
    *,
    description: Optional[str] = None,
    budget_min: Optional[float] = None,
    budget_max: Optional[float] = None,
    draw_date: Optional[date] = None,
    exchange_date: Optional[date] = None,
) -> Group:
    """Create a new gift-exchange group owned by ``ctx.user_id``.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    ctx : OwnerContext
        Authenticated owner of the new group.
    name : str
        Group name; surrounding whitespace is stripped and it must not be empty.
    description : Optional[str]
        Free text; blank values are stored as ``None``.
    budget_min, budget_max : Optional[float]
        Suggested spending range. Both must be non-negative and
        ``budget_min <= budget_max`` when both are given.
    draw_date, exchange_date : Optional[date]
        Planned dates of the draw and of the gift exchange.

    Returns
    -------
    Group
        The flushed group with its ``id`` populated and ``is_drawn`` False.
    """

    group = Group(
        name=_required_text(name, "Group name"),
        owner_id=ctx.user_id,
        description=_optional_text(description),
        budget_min=budget_min,
        budget_max=budget_max,
        draw_date=draw_date,
        exchange_date=exchange_date,
    )
    session.add(group)
    session.flush()
    logger.info(f"Created group {group.id} for owner {ctx.user_id}")
    return group


def get_group(session: Session, ctx: OwnerContext, group_id: str) -> Group:
    """Return the owner's group ``group_id`` or raise :class:`NotFoundError`."""

    group = session.get(Group, group_id)
    if group is None:
        raise NotFoundError(f"Group {group_id} not found")
    _check_owner(group.owner_id, ctx, "Group", group_id)
    return group


def list_groups(session: Session, ctx: OwnerContext) -> list[Group]:
    return Group.list_for_owner(session, ctx.user_id)


def update_group_details(
    session: Session,
    ctx: OwnerContext,
    group: Group,
    *,
    name: str,
    description: Optional[str] = None,
    budget_min: Optional[float] = None,
    budget_max: Optional[float] = None,
    draw_date: Optional[date] = None,
    exchange_date: Optional[date] = None,
) -> Group:
    """Overwrite the editable fields of ``group``.

    All fields are replaced, mirroring a full edit form; omitted optional
    fields are cleared. ``is_drawn`` and the members are untouched.
    """

    _check_owner(group.owner_id, ctx, "Group", group.id)
    name = _required_text(name, "Group name")
    group.set_budget(budget_min, budget_max)
    group.name = name
    group.description = _optional_text(description)
    group.draw_date = draw_date
    group.exchange_date = exchange_date
    session.flush()
    return group


def delete_group(session: Session, ctx: OwnerContext, group: Group) -> None:
    """Delete ``group`` together with its draw results and members.

    Nothing cascades in the database, so dependent rows are removed here in
    foreign-key order: draw results, members, then the group itself. Wish
    list items that pointed at the group are kept and unlinked.
    """

    _check_owner(group.owner_id, ctx, "Group", group.id)
    group_id = group.id

    session.execute(delete(DrawResult).where(DrawResult.group_id == group_id))
    session.execute(delete(GroupMember).where(GroupMember.group_id == group_id))
    session.execute(
        update(WishlistItem)
        .where(WishlistItem.group_id == group_id)
        .values(group_id=None)
    )
    session.execute(delete(Group).where(Group.id == group_id))
    session.flush()
    logger.info(f"Deleted group {group_id}")


# -------- members --------


def add_member(
    session: Session,
    ctx: OwnerContext,
    group: Group,
    name: str,
    email: Optional[str] = None,
) -> GroupMember:
    """Add an ad-hoc participant (not linked to a friend) to ``group``."""

    _check_owner(group.owner_id, ctx, "Group", group.id)
    member = GroupMember(
        group_id=group.id,
        name=_required_text(name, "Member name"),
        email=_optional_text(email),
    )
    session.add(member)
    session.flush()
    session.expire(group, ["members"])
    return member


def add_friend_as_member(
    session: Session, ctx: OwnerContext, group: Group, friend: Friend
) -> GroupMember:
    """Import ``friend`` into ``group`` as a new member.

    The member copies the friend's name and email and keeps a reference to
    the friend record.

    Raises
    ------
    NotFoundError
        If the group or the friend does not belong to the owner.
    ValueError
        If the friend is already a member of the group.
    """

    _check_owner(group.owner_id, ctx, "Group", group.id)
    _check_owner(friend.user_id, ctx, "Friend", friend.id)

    already_member = session.scalar(
        select(GroupMember.id).where(
            GroupMember.group_id == group.id,
            GroupMember.friend_id == friend.id,
        )
    )
    if already_member is not None:
        raise ValueError(f"{friend.name} is already a member of this group")

    member = GroupMember(
        group_id=group.id,
        friend_id=friend.id,
        name=friend.name,
        email=friend.email,
    )
    session.add(member)
    session.flush()
    session.expire(group, ["members"])
    return member


def remove_member(
    session: Session, ctx: OwnerContext, group: Group, member: GroupMember
) -> None:
    """Remove ``member`` from ``group``.

    Existing draw results reference every member, so removing someone from a
    drawn group discards the draw and resets ``is_drawn``; the owner has to
    draw again.
    """

    _check_owner(group.owner_id, ctx, "Group", group.id)
    if member.group_id != group.id:
        raise NotFoundError(f"Member {member.id} not found in group {group.id}")

    had_results = session.scalar(
        select(DrawResult.id).where(DrawResult.group_id == group.id).limit(1)
    )
    if group.is_drawn or had_results is not None:
        logger.warning(
            f"Removing member {member.id} invalidates the draw of group {group.id}"
        )
        session.execute(delete(DrawResult).where(DrawResult.group_id == group.id))
        group.is_drawn = False

    session.delete(member)
    session.flush()
    session.expire(group, ["members", "draw_results"])


# -------- draw --------


@dataclass(frozen=True)
class NamedDrawResult:
    """A draw result joined with the display names of both members."""

    result: DrawResult
    giver_name: str
    receiver_name: str

    @property
    def id(self) -> str:
        return self.result.id


def run_draw(
    session: Session,
    ctx: OwnerContext,
    group: Group,
    *,
    strategy_key: str = DEFAULT_STRATEGY_KEY,
    registry: Optional[StrategyRegistry] = None,
    rng: Optional[random.Random] = None,
) -> DrawOutcome:
    """Draw ``group`` using its current members and persist the result.

    This function essentially wraps :class:`~secretsanta.draw.engine.DrawEngine`
    with a :class:`~secretsanta.draw.stores.SqlAlchemyAssignmentStore`. Callers
    are expected to confirm with the user before re-drawing a group that is
    already drawn; the draw itself never refuses.

    Parameters
    ----------
    session : Session
        Active session used for member lookup and persistence.
    ctx : OwnerContext
        Authenticated owner; must own ``group``.
    group : Group
        Group to draw.
    strategy_key : str, default: "single_cycle"
        Assignment strategy to use.
    registry : Optional[StrategyRegistry], default: None
        Optional registry containing custom strategies.
    rng : Optional[random.Random], default: None
        Random generator override, mainly for tests.

    Returns
    -------
    DrawOutcome
        The new assignment set.

    Raises
    ------
    NotFoundError
        If ``group`` is not owned by ``ctx``.
    PreconditionError
        If the group has fewer than three members.
    PartialFailureError
        If writing the results failed; the savepoint has been rolled back.
    StorageUnavailableError
        If the database cannot be reached while loading the members.
    """

    _check_owner(group.owner_id, ctx, "Group", group.id)
    engine = DrawEngine(
        SqlAlchemyAssignmentStore(session),
        registry=registry,
        strategy_key=strategy_key,
        rng=rng,
    )
    return engine.perform_draw(group)


def load_draw_results(
    session: Session,
    ctx: OwnerContext,
    group: Group,
    reveal: Optional[RevealState] = None,
) -> list[NamedDrawResult]:
    """Return the group's draw results with member names, ordered by giver.

    Names of members that no longer exist are shown as ``"Unknown"``. When
    ``reveal`` is supplied it is reset for this group so every receiver
    starts hidden.
    """

    _check_owner(group.owner_id, ctx, "Group", group.id)
    names = {m.id: m.name for m in GroupMember.list_for_group(session, group.id)}
    named = [
        NamedDrawResult(
            result=result,
            giver_name=names.get(result.giver_id, UNKNOWN_NAME),
            receiver_name=names.get(result.receiver_id, UNKNOWN_NAME),
        )
        for result in DrawResult.list_for_group(session, group.id)
    ]
    named.sort(key=lambda item: (item.giver_name.lower(), item.id))

    if reveal is not None:
        reveal.load(group.id, [item.id for item in named])
    return named


def format_budget(
    budget_min: Optional[float], budget_max: Optional[float], currency: str = "€"
) -> Optional[str]:
    """Render a budget range for display, e.g. ``"10€ - 20€"``."""

    if not budget_min and not budget_max:
        return None
    if budget_min and budget_max:
        return f"{budget_min:g}{currency} - {budget_max:g}{currency}"
    if budget_min:
        return f"Min: {budget_min:g}{currency}"
    return f"Max: {budget_max:g}{currency}"


# -------- friends --------


def create_friend(
    session: Session,
    ctx: OwnerContext,
    name: str,
    *,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    notes: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> Friend:
    friend = Friend(
        user_id=ctx.user_id,
        name=_required_text(name, "Friend name"),
        email=_optional_text(email),
        phone=_optional_text(phone),
        notes=_optional_text(notes),
        avatar_url=_optional_text(avatar_url),
    )
    session.add(friend)
    session.flush()
    return friend


def get_friend(session: Session, ctx: OwnerContext, friend_id: str) -> Friend:
    friend = session.get(Friend, friend_id)
    if friend is None:
        raise NotFoundError(f"Friend {friend_id} not found")
    _check_owner(friend.user_id, ctx, "Friend", friend_id)
    return friend


def list_friends(session: Session, ctx: OwnerContext) -> list[Friend]:
    return Friend.list_for_user(session, ctx.user_id)


def update_friend(
    session: Session,
    ctx: OwnerContext,
    friend: Friend,
    *,
    name: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    notes: Optional[str] = None,
) -> Friend:
    _check_owner(friend.user_id, ctx, "Friend", friend.id)
    friend.name = _required_text(name, "Friend name")
    friend.email = _optional_text(email)
    friend.phone = _optional_text(phone)
    friend.notes = _optional_text(notes)
    session.flush()
    return friend


def delete_friend(session: Session, ctx: OwnerContext, friend: Friend) -> None:
    """Delete ``friend`` and their gift ideas.

    Group members imported from the friend stay in their groups; only the
    link back to the friend is cleared.
    """

    _check_owner(friend.user_id, ctx, "Friend", friend.id)
    session.execute(delete(GiftIdea).where(GiftIdea.friend_id == friend.id))
    session.execute(
        update(GroupMember)
        .where(GroupMember.friend_id == friend.id)
        .values(friend_id=None)
    )
    session.delete(friend)
    session.flush()


# -------- gift ideas --------


def create_gift_idea(
    session: Session,
    ctx: OwnerContext,
    friend: Friend,
    title: str,
    *,
    description: Optional[str] = None,
    price_range: Union[PriceRange, str, None] = None,
    url: Optional[str] = None,
    image_url: Optional[str] = None,
    priority: Union[Priority, str, None] = None,
) -> GiftIdea:
    """Record a gift idea for one of the owner's friends."""

    _check_owner(friend.user_id, ctx, "Friend", friend.id)
    gift = GiftIdea(
        friend_id=friend.id,
        user_id=ctx.user_id,
        title=_required_text(title, "Gift title"),
        description=_optional_text(description),
        price_range=price_range,
        url=_optional_text(url),
        image_url=_optional_text(image_url),
        priority=priority,
    )
    session.add(gift)
    session.flush()
    return gift


def get_gift_idea(session: Session, ctx: OwnerContext, gift_id: str) -> GiftIdea:
    gift = session.get(GiftIdea, gift_id)
    if gift is None:
        raise NotFoundError(f"Gift idea {gift_id} not found")
    _check_owner(gift.user_id, ctx, "Gift idea", gift_id)
    return gift


def update_gift_idea(
    session: Session,
    ctx: OwnerContext,
    gift: GiftIdea,
    *,
    friend: Friend,
    title: str,
    description: Optional[str] = None,
    price_range: Union[PriceRange, str, None] = None,
    url: Optional[str] = None,
    priority: Union[Priority, str, None] = None,
) -> GiftIdea:
    _check_owner(gift.user_id, ctx, "Gift idea", gift.id)
    _check_owner(friend.user_id, ctx, "Friend", friend.id)
    gift.friend_id = friend.id
    gift.title = _required_text(title, "Gift title")
    gift.description = _optional_text(description)
    gift.price_range = price_range
    gift.url = _optional_text(url)
    gift.priority = priority
    session.flush()
    return gift


def set_gift_purchased(
    session: Session, ctx: OwnerContext, gift: GiftIdea, purchased: bool = True
) -> GiftIdea:
    _check_owner(gift.user_id, ctx, "Gift idea", gift.id)
    gift.is_purchased = purchased
    session.flush()
    return gift


def list_gift_ideas(
    session: Session,
    ctx: OwnerContext,
    *,
    search: Optional[str] = None,
    friend_id: Optional[str] = None,
    purchased: Optional[bool] = None,
) -> list[GiftIdea]:
    """Return the owner's gift ideas, newest first.

    Parameters
    ----------
    search : Optional[str]
        Case-insensitive substring matched against the title, the
        description and the friend's name.
    friend_id : Optional[str]
        Only ideas for this friend.
    purchased : Optional[bool]
        ``True`` for purchased ideas, ``False`` for pending ones, ``None``
        for both.
    """

    stmt = (
        select(GiftIdea)
        .join(Friend, Friend.id == GiftIdea.friend_id)
        .where(GiftIdea.user_id == ctx.user_id)
    )
    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        stmt = stmt.where(
            or_(
                GiftIdea.title.ilike(pattern),
                GiftIdea.description.ilike(pattern),
                Friend.name.ilike(pattern),
            )
        )
    if friend_id is not None:
        stmt = stmt.where(GiftIdea.friend_id == friend_id)
    if purchased is not None:
        stmt = stmt.where(GiftIdea.is_purchased == purchased)
    stmt = stmt.order_by(GiftIdea.created_at.desc(), GiftIdea.id.desc())
    return list(session.scalars(stmt).all())


def delete_gift_idea(session: Session, ctx: OwnerContext, gift: GiftIdea) -> None:
    _check_owner(gift.user_id, ctx, "Gift idea", gift.id)
    session.delete(gift)
    session.flush()


# -------- wish list --------


def _resolve_wishlist_group(session: Session, group_id: Optional[str]) -> Optional[str]:
    if group_id is None:
        return None
    if session.get(Group, group_id) is None:
        raise NotFoundError(f"Group {group_id} not found")
    return group_id


def create_wishlist_item(
    session: Session,
    ctx: OwnerContext,
    title: str,
    *,
    description: Optional[str] = None,
    url: Optional[str] = None,
    price: Optional[float] = None,
    priority: Union[Priority, str, None] = None,
    group_id: Optional[str] = None,
) -> WishlistItem:
    """Add an entry to the owner's wish list, optionally tied to a group."""

    item = WishlistItem(
        user_id=ctx.user_id,
        title=_required_text(title, "Wish title"),
        group_id=_resolve_wishlist_group(session, group_id),
        description=_optional_text(description),
        url=_optional_text(url),
        price=price,
        priority=priority,
    )
    session.add(item)
    session.flush()
    return item


def get_wishlist_item(session: Session, ctx: OwnerContext, item_id: str) -> WishlistItem:
    item = session.get(WishlistItem, item_id)
    if item is None:
        raise NotFoundError(f"Wish list item {item_id} not found")
    _check_owner(item.user_id, ctx, "Wish list item", item_id)
    return item


def update_wishlist_item(
    session: Session,
    ctx: OwnerContext,
    item: WishlistItem,
    *,
    title: str,
    description: Optional[str] = None,
    url: Optional[str] = None,
    price: Optional[float] = None,
    priority: Union[Priority, str, None] = None,
    group_id: Optional[str] = None,
) -> WishlistItem:
    _check_owner(item.user_id, ctx, "Wish list item", item.id)
    item.title = _required_text(title, "Wish title")
    item.description = _optional_text(description)
    item.url = _optional_text(url)
    item.price = price
    item.priority = priority
    item.group_id = _resolve_wishlist_group(session, group_id)
    session.flush()
    return item


def list_wishlist_items(
    session: Session, ctx: OwnerContext, *, group_id: Optional[str] = None
) -> list[WishlistItem]:
    """Return the owner's wish list, newest first, optionally for one group."""

    stmt = select(WishlistItem).where(WishlistItem.user_id == ctx.user_id)
    if group_id is not None:
        stmt = stmt.where(WishlistItem.group_id == group_id)
    stmt = stmt.order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc())
    return list(session.scalars(stmt).all())


def delete_wishlist_item(session: Session, ctx: OwnerContext, item: WishlistItem) -> None:
    _check_owner(item.user_id, ctx, "Wish list item", item.id)
    session.delete(item)
    session.flush()
