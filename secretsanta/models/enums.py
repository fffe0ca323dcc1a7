from __future__ import annotations

from enum import Enum
from typing import Optional, Union


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PriceRange(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    LUXURY = "luxury"


def coerce_priority(value: Union[str, Priority, None]) -> str:
    """Return the stored string for ``value``; ``None`` means medium."""
    if value is None:
        return Priority.MEDIUM.value
    return Priority(value).value


def coerce_price_range(value: Union[str, PriceRange, None]) -> Optional[str]:
    if value is None or value == "":
        return None
    return PriceRange(value).value
