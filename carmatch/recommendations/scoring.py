"""
Listing scorer.

A listing's score blends three sub-scores, each in [0, 1]:

    0.4 * budget fit + 0.4 * attribute match + 0.2 * learned preference

Budget and attribute scores are neutral (0.5) when there is nothing to
compare against. The preference score only averages over dimensions that
have like/reject history, and is 0 for a profile with no evidence.
"""
from __future__ import annotations

from typing import Any, Mapping

from ..config import DEFAULT_ENGINE_CONFIG
from ..profiles.profile import UserProfile, listing_profile_keys
from .models import Listing, UserFilter
from .normalize import (
    as_list,
    clamp,
    colors_roughly_match,
    normalize_category,
    normalize_color,
    normalize_key,
)
from .sanitize import sanitize_filter

BLEND_WEIGHTS = {"budget": 0.4, "attribute": 0.4, "preference": 0.2}

ATTRIBUTE_WEIGHTS = {
    "model": 0.18,
    "year": 0.10,
    "category": 0.12,
    "drivetrain": 0.08,
    "fuel": 0.08,
    "seating": 0.07,
    "doors": 0.05,
    "exterior_color": 0.12,
    "interior_color": 0.08,
    "mileage": 0.10,
    "transmission": 0.02,
}

PREFERENCE_WEIGHTS = {
    "price": 0.20,
    "model": 0.20,
    "category": 0.15,
    "drivetrain": 0.10,
    "fuel_type": 0.10,
    "exterior_color": 0.08,
    "interior_color": 0.05,
    "seating": 0.06,
    "doors": 0.06,
}

NEUTRAL_SCORE = 0.5
UNKNOWN_VALUE_SCORE = 0.2
ROUGH_COLOR_SCORE = 0.65
MIN_COLOR_SCORE = 0.35
TARGET_TOLERANCE_SHARE = 0.35

# A miss of YEAR_DECAY / 2 years or MILEAGE_DECAY / 2 miles halves the sub-score.
YEAR_DECAY = 10.0
MILEAGE_DECAY = 20000.0

MIN_BUDGET_TOLERANCE = DEFAULT_ENGINE_CONFIG.min_budget_tolerance


# ── Budget ──────────────────────────────────────────────────────────

def budget_target(f: UserFilter, profile: UserProfile | None = None) -> float | None:
    """Price the shopper is aiming for, from the filter first and the profile second."""
    if f.budget:
        return f.budget
    if f.budget_min and f.budget_max:
        return (f.budget_min + f.budget_max) / 2
    if f.budget_max:
        return f.budget_max * 0.9
    if f.budget_min:
        return f.budget_min * 1.1
    if profile is not None and profile.budget_mean:
        return profile.budget_mean
    return None


def budget_tolerance(f: UserFilter, profile: UserProfile | None, target: float) -> float:
    spread = profile.budget_spread if profile is not None else None
    profile_window = spread * 2 if spread else 0.0
    if f.budget_min is not None and f.budget_max is not None:
        half_window = abs(f.budget_max - f.budget_min) / 2
        return max(half_window, profile_window, MIN_BUDGET_TOLERANCE)
    return max(profile_window, target * TARGET_TOLERANCE_SHARE, MIN_BUDGET_TOLERANCE)


def budget_score(listing: Listing, f: UserFilter, profile: UserProfile | None = None) -> float:
    target = budget_target(f, profile)
    if not target or target <= 0:
        return NEUTRAL_SCORE
    tolerance = budget_tolerance(f, profile, target)
    return clamp(1 - abs(listing.price - target) / tolerance)


# ── Attribute match ─────────────────────────────────────────────────

def _model_queries(f: UserFilter) -> list[str]:
    queries = as_list(f.model) + as_list(f.model_keywords)
    return [q for q in (normalize_key(q) for q in queries) if q]


def model_match(model: str | None, queries: list[str]) -> float:
    normalized = normalize_key(model)
    if not normalized:
        return 0.0
    if normalized in queries:
        return 1.0
    if any(q in normalized for q in queries):
        return 0.75
    return UNKNOWN_VALUE_SCORE


def _range_match(value: float | None, low: float | None, high: float | None, decay: float) -> float:
    if value is None:
        return NEUTRAL_SCORE
    if low is not None and value < low:
        return clamp(1 - (low - value) / decay)
    if high is not None and value > high:
        return clamp(1 - (value - high) / decay)
    return 1.0


def seating_match(seating: int | None, target: float) -> float:
    if seating is None:
        return UNKNOWN_VALUE_SCORE
    if seating >= target:
        return 1.0
    return clamp(1 - (target - seating) / max(target, 1))


def doors_match(doors: int | None, target: float) -> float:
    if doors is None:
        return UNKNOWN_VALUE_SCORE
    if doors == target:
        return 1.0
    return 0.7 if doors > target else 0.1


def color_match(color: str | None, desired: list[str]) -> float:
    if not color:
        return UNKNOWN_VALUE_SCORE
    listing_color = normalize_color(color)
    if any(normalize_color(target) == listing_color for target in desired):
        return 1.0
    if any(colors_roughly_match(target, color) for target in desired):
        return ROUGH_COLOR_SCORE
    return MIN_COLOR_SCORE


def _contains_any(value: str | None, wanted: list[str]) -> float:
    key = normalize_key(value)
    if not key:
        return 0.0
    return 1.0 if any(normalize_key(w) in key for w in wanted) else 0.0


def attribute_breakdown(listing: Listing, f: UserFilter) -> dict[str, float]:
    """Sub-score per filter dimension that is actually present in ``f``."""
    parts: dict[str, float] = {}

    queries = _model_queries(f)
    if queries:
        parts["model"] = model_match(listing.model, queries)
    if f.year_min is not None or f.year_max is not None:
        parts["year"] = _range_match(listing.year or None, f.year_min, f.year_max, YEAR_DECAY)

    categories = as_list(f.vehicle_category)
    if categories:
        category = normalize_category(listing.category)
        parts["category"] = float(
            bool(category) and any(normalize_category(c) in category for c in categories)
        )

    drivetrains = as_list(f.drivetrain)
    if drivetrains:
        parts["drivetrain"] = _contains_any(listing.drivetrain, drivetrains)
    fuels = as_list(f.fuel_type)
    if fuels:
        parts["fuel"] = _contains_any(listing.fuel_type, fuels)

    if f.available_seating is not None:
        parts["seating"] = seating_match(listing.seating, f.available_seating)
    if f.doors is not None:
        parts["doors"] = doors_match(listing.doors, f.doors)

    exterior = as_list(f.exterior_color)
    if exterior:
        parts["exterior_color"] = color_match(listing.exterior_color, exterior)
    interior = as_list(f.interior_color)
    if interior:
        parts["interior_color"] = color_match(listing.interior_color, interior)

    if f.mileage_min is not None or f.mileage_max is not None:
        parts["mileage"] = _range_match(listing.mileage, f.mileage_min, f.mileage_max, MILEAGE_DECAY)

    transmissions = as_list(f.transmission)
    if transmissions:
        matched = _contains_any(listing.transmission, transmissions)
        parts["transmission"] = matched or UNKNOWN_VALUE_SCORE
    return parts


def _weighted_average(parts: dict[str, float], weights: dict[str, float]) -> float | None:
    total_weight = sum(weights[name] for name in parts)
    if not total_weight:
        return None
    return clamp(sum(weights[name] * value for name, value in parts.items()) / total_weight)


def attribute_score(listing: Listing, f: UserFilter) -> float:
    score = _weighted_average(attribute_breakdown(listing, f), ATTRIBUTE_WEIGHTS)
    return NEUTRAL_SCORE if score is None else score


# ── Learned preference ──────────────────────────────────────────────

def price_signal(price: float, profile: UserProfile) -> float | None:
    mean = profile.budget_mean
    if not mean or mean <= 0:
        return None
    spread = profile.budget_spread
    tolerance = max(
        spread * 2 if spread else 0.0,
        mean * TARGET_TOLERANCE_SHARE,
        MIN_BUDGET_TOLERANCE,
    )
    return clamp(1 - abs(price - mean) / tolerance)


def counter_signal(profile: UserProfile, dimension: str, key: Any) -> float | None:
    """Net-positive share of feedback for one attribute value, ``None`` without history."""
    if key is None:
        return None
    likes, rejects = profile.counts(dimension, key)
    total = likes + rejects
    if not total:
        return None
    net = likes - rejects
    return 0.0 if net <= 0 else clamp(net / total)


def preference_breakdown(listing: Listing, profile: UserProfile | None) -> dict[str, float]:
    if profile is None:
        return {}
    parts: dict[str, float] = {}
    signal = price_signal(listing.price, profile)
    if signal is not None:
        parts["price"] = signal
    for dimension, key in listing_profile_keys(listing).items():
        signal = counter_signal(profile, dimension, key)
        if signal is not None:
            parts[dimension] = signal
    return parts


def preference_score(listing: Listing, profile: UserProfile | None) -> float:
    score = _weighted_average(preference_breakdown(listing, profile), PREFERENCE_WEIGHTS)
    return 0.0 if score is None else score


# ── Blend ───────────────────────────────────────────────────────────

def blend(budget: float, attribute: float, preference: float) -> float:
    return clamp(
        BLEND_WEIGHTS["budget"] * clamp(budget)
        + BLEND_WEIGHTS["attribute"] * clamp(attribute)
        + BLEND_WEIGHTS["preference"] * clamp(preference)
    )


def score_listing(
    listing: Listing,
    user_filter: UserFilter | Mapping[str, Any] | None,
    profile: UserProfile | None = None,
    *,
    sanitized: bool = False,
) -> float:
    """Score one listing in [0, 1]. Pass ``sanitized=True`` to skip re-sanitizing."""
    f = user_filter if sanitized and isinstance(user_filter, UserFilter) else sanitize_filter(user_filter)
    return blend(
        budget_score(listing, f, profile),
        attribute_score(listing, f),
        preference_score(listing, profile),
    )
