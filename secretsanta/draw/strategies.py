"""Assignment strategies that turn a participant list into giver/receiver pairs."""

from __future__ import annotations

from dataclasses import dataclass
import random
from typing import Callable, Dict, Hashable, Optional, Sequence, TypeVar

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

Pair = tuple[K, K]
AssignmentBuilder = Callable[[Sequence[K], random.Random], list[Pair]]

MAX_DERANGEMENT_ATTEMPTS = 10_000


def fisher_yates_shuffle(items: Sequence[T], rng: random.Random) -> list[T]:
    """Return a uniformly shuffled copy of ``items`` (Durstenfeld variant).

    Every permutation is equally likely provided ``rng.randrange`` is
    uniform. ``items`` itself is left untouched.
    """
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randrange(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def _single_cycle(participants: Sequence[K], rng: random.Random) -> list[Pair]:
    """Shuffle, then let everyone give to the next person, wrapping around."""
    if len(participants) < 2:
        raise ValueError("a gift cycle needs at least two participants")
    order = fisher_yates_shuffle(participants, rng)
    n = len(order)
    return [(order[i], order[(i + 1) % n]) for i in range(n)]


def _derangement(participants: Sequence[K], rng: random.Random) -> list[Pair]:
    """Uniform random derangement by rejection sampling.

    Roughly ``e`` shuffles are needed on average, independent of ``n``.
    """
    if len(participants) < 2:
        raise ValueError("a derangement needs at least two participants")
    givers = list(participants)
    for _ in range(MAX_DERANGEMENT_ATTEMPTS):
        receivers = fisher_yates_shuffle(givers, rng)
        if all(g != r for g, r in zip(givers, receivers)):
            return list(zip(givers, receivers))
    raise RuntimeError(
        f"Unable to find a derangement after {MAX_DERANGEMENT_ATTEMPTS} attempts"
    )


@dataclass(frozen=True)
class AssignmentStrategy:
    """Definition of an assignment strategy.

    Attributes
    ----------
    key : str
        Registry key used to identify the strategy.
    builder : Callable[[Sequence, random.Random], list[tuple]]
        Callable that receives participant ids and a random generator and
        returns ``(giver, receiver)`` pairs.
    single_cycle : bool
        Whether every result of this strategy forms one cycle through all
        participants. Validation enforces the cycle when ``True``.
    description : Optional[str]
        Human-readable summary of the strategy.
    """

    key: str
    builder: AssignmentBuilder
    single_cycle: bool = False
    description: Optional[str] = None

    def build(self, participants: Sequence[K], rng: random.Random) -> list[Pair]:
        """Run the strategy for ``participants`` using ``rng``."""
        return self.builder(participants, rng)


class StrategyRegistry:
    """Mutable registry mapping strategy keys to definitions."""

    def __init__(self) -> None:
        self._strategies: Dict[str, AssignmentStrategy] = {}

    def register(self, strategy: AssignmentStrategy, *, replace: bool = False) -> None:
        """Register a strategy under its key.

        Parameters
        ----------
        strategy : AssignmentStrategy
            Strategy to add to the registry.
        replace : bool, default: False
            When ``True`` an existing registration with the same key is
            overwritten. Otherwise a duplicate raises :class:`ValueError`.
        """
        if not replace and strategy.key in self._strategies:
            raise ValueError(f"Strategy '{strategy.key}' is already registered")
        self._strategies[strategy.key] = strategy

    def get(self, key: str) -> AssignmentStrategy:
        """Return the strategy registered under ``key``."""
        try:
            return self._strategies[key]
        except KeyError as exc:
            raise KeyError(f"Unknown assignment strategy '{key}'") from exc

    def available_strategies(self) -> Dict[str, AssignmentStrategy]:
        """Return a copy of the registered strategies keyed by identifier."""
        return dict(self._strategies)


DEFAULT_STRATEGY_KEY = "single_cycle"

DEFAULT_STRATEGY_REGISTRY = StrategyRegistry()
DEFAULT_STRATEGY_REGISTRY.register(
    AssignmentStrategy(
        key=DEFAULT_STRATEGY_KEY,
        builder=_single_cycle,
        single_cycle=True,
        description=(
            "Fisher-Yates shuffle the participants and have each one give to "
            "the next, wrapping around into a single cycle."
        ),
    )
)
DEFAULT_STRATEGY_REGISTRY.register(
    AssignmentStrategy(
        key="derangement",
        builder=_derangement,
        single_cycle=False,
        description=(
            "Uniform random permutation without fixed points; may split the "
            "group into several smaller gift cycles."
        ),
    )
)

__all__ = [
    "AssignmentStrategy",
    "DEFAULT_STRATEGY_KEY",
    "DEFAULT_STRATEGY_REGISTRY",
    "StrategyRegistry",
    "fisher_yates_shuffle",
]
