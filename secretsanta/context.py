from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OwnerContext:
    """Authenticated user on whose behalf a workflow runs.

    The identity provider resolves the session; workflows receive only the
    resulting user id and scope every query to it.
    """

    user_id: str

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("OwnerContext requires a user_id")
