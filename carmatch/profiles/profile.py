from __future__ import annotations

import math
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from ..recommendations.models import Listing
from ..recommendations.normalize import normalize_key

CATEGORICAL_DIMENSIONS = (
    "model",
    "category",
    "drivetrain",
    "fuel_type",
    "exterior_color",
    "interior_color",
)
NUMERIC_DIMENSIONS = ("doors", "seating")
PROFILE_DIMENSIONS = CATEGORICAL_DIMENSIONS + NUMERIC_DIMENSIONS

FEEDBACK_VALUES = ("like", "reject")


def _empty_counters() -> dict[str, Counter]:
    return {dim: Counter() for dim in PROFILE_DIMENSIONS}


@dataclass
class UserProfile:
    """Implicit taste learned from one session's like/reject feedback.

    Counters are keyed by normalized attribute value (lower-cased strings for
    categorical dimensions, ints for doors/seating). Budget statistics are a
    Welford accumulator over the prices of liked listings.
    """

    liked: dict[str, Counter] = field(default_factory=_empty_counters)
    rejected: dict[str, Counter] = field(default_factory=_empty_counters)
    total_likes: int = 0
    total_rejects: int = 0
    budget_mean: float | None = None
    budget_std_dev: float | None = None
    budget_m2: float = 0.0
    budget_sample_count: int = 0
    last_updated: float = field(default_factory=time.time)

    @property
    def budget_spread(self) -> float | None:
        """Sample std dev of liked prices, or ``None`` with fewer than two samples."""
        if self.budget_sample_count <= 1:
            return None
        return self.budget_std_dev

    def counts(self, dimension: str, key: Any) -> tuple[int, int]:
        return self.liked[dimension][key], self.rejected[dimension][key]


def listing_profile_keys(listing: Listing) -> dict[str, Any]:
    """Return the counter key for each profile dimension (``None`` when unknown)."""
    keys: dict[str, Any] = {
        "model": normalize_key(listing.model) or None,
        "category": normalize_key(listing.category) or None,
        "drivetrain": normalize_key(listing.drivetrain) or None,
        "fuel_type": normalize_key(listing.fuel_type) or None,
        "exterior_color": normalize_key(listing.exterior_color) or None,
        "interior_color": normalize_key(listing.interior_color) or None,
        "doors": listing.doors,
        "seating": listing.seating,
    }
    return keys


def _update_budget(profile: UserProfile, price: float) -> None:
    count = profile.budget_sample_count + 1
    mean = profile.budget_mean or 0.0
    delta = price - mean
    mean += delta / count
    delta2 = price - mean
    profile.budget_m2 += delta * delta2
    profile.budget_mean = mean
    profile.budget_sample_count = count
    profile.budget_std_dev = math.sqrt(max(profile.budget_m2 / (count - 1), 0.0)) if count > 1 else 0.0


def apply_feedback(profile: UserProfile, listing: Listing, feedback: str) -> None:
    """Fold one like/reject event into ``profile`` in place.

    Likes also feed the running budget statistics; rejects only touch the
    reject-side counters. History is never decayed.
    """
    if feedback not in FEEDBACK_VALUES:
        raise ValueError(f"feedback must be 'like' or 'reject', got {feedback!r}")

    is_like = feedback == "like"
    counters = profile.liked if is_like else profile.rejected
    for dimension, key in listing_profile_keys(listing).items():
        if key is not None:
            counters[dimension][key] += 1

    if is_like:
        profile.total_likes += 1
        _update_budget(profile, float(listing.price))
    else:
        profile.total_rejects += 1
    profile.last_updated = time.time()


def _top_keys(counter: Counter, limit: int) -> list[Any]:
    return [key for key, _ in counter.most_common(limit)]


def summarize_profile(profile: UserProfile) -> dict[str, Any]:
    return {
        "likes": profile.total_likes,
        "rejects": profile.total_rejects,
        "budget_mean": profile.budget_mean,
        "budget_std_dev": profile.budget_spread,
        "budget_samples": profile.budget_sample_count,
        "top_models": _top_keys(profile.liked["model"], 3),
        "top_categories": _top_keys(profile.liked["category"], 3),
    }
