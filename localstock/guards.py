"""Quality and eligibility guards applied to candidate offers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Protocol, TypeVar

from .config import Settings
from .entities import PICKUP


class GuardCandidate(Protocol):
    margin: float | None
    trust_score: float
    eta_minutes: int | None
    distance_miles: float | None
    availability_type: str
    in_stock: bool
    is_eligible: bool


C = TypeVar("C", bound=GuardCandidate)


@dataclass(frozen=True)
class GuardConfig:
    min_margin: float = 30
    min_trust_score: float = 80
    max_eta_minutes: float = 480
    # Applies to pickup offers only.
    max_distance_miles: float = 50

    @classmethod
    def from_settings(cls, settings: Settings) -> "GuardConfig":
        return cls(
            min_margin=settings.guard_min_margin,
            min_trust_score=settings.guard_min_trust_score,
            max_eta_minutes=settings.guard_max_eta_minutes,
            max_distance_miles=settings.guard_max_distance_miles,
        )


def passes_guards(offer: GuardCandidate, config: GuardConfig) -> bool:
    """Return True when ``offer`` clears every threshold in ``config``.

    A missing margin, ETA or distance is not disqualifying; only values that
    are present are compared.
    """
    if offer.margin is not None and offer.margin < config.min_margin:
        return False
    if offer.trust_score < config.min_trust_score:
        return False
    if offer.eta_minutes is not None and offer.eta_minutes > config.max_eta_minutes:
        return False
    if (
        offer.availability_type == PICKUP
        and offer.distance_miles is not None
        and offer.distance_miles > config.max_distance_miles
    ):
        return False
    return bool(offer.in_stock and offer.is_eligible)


def apply_guard_filters(offers: Iterable[C], config: GuardConfig) -> List[C]:
    """Keep the offers that pass every guard, preserving input order."""
    return [offer for offer in offers if passes_guards(offer, config)]
