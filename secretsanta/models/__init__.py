from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .user import User  # noqa: F401
from .friend import Friend  # noqa: F401
from .gift_idea import GiftIdea  # noqa: F401
from .group import MIN_PARTICIPANTS, Group, GroupMember  # noqa: F401
from .draw_result import DrawResult  # noqa: F401
from .wishlist import WishlistItem  # noqa: F401
from .enums import PriceRange, Priority  # noqa: F401

__all__ = [
    "Base",
    "User",
    "Friend",
    "GiftIdea",
    "Group",
    "GroupMember",
    "DrawResult",
    "WishlistItem",
    "PriceRange",
    "Priority",
    "MIN_PARTICIPANTS",
]
