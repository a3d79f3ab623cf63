from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Sequence

from ..config import DEFAULT_ENGINE_CONFIG
from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import generate_description
from ..profiles.profile import UserProfile, summarize_profile
from .cache import DescriptionCache
from .models import Listing, UserFilter
from .normalize import normalize_color
from .scoring import budget_target

logger = logging.getLogger(__name__)

OPENERS = ("Confident", "Road-trip ready", "City-smart", "Family-focused", "Adventure-tuned")
ON_BUDGET_MARGIN = 500

_DESCRIBE_EXECUTOR = ThreadPoolExecutor(
    max_workers=DEFAULT_ENGINE_CONFIG.description_workers,
    thread_name_prefix="carmatch-describe",
)


def format_currency(value: float) -> str:
    return f"${value:,.0f}"


def format_budget_delta(price: float, target: float | None) -> str:
    if not target or target <= 0:
        return "with room to negotiate"
    diff = price - target
    if abs(diff) < ON_BUDGET_MARGIN:
        return "right on budget"
    label = "over" if diff > 0 else "under"
    return f"{format_currency(abs(diff))} {label} budget"


def format_location(dealer: str | None, distance_miles: float | None) -> str:
    """Dealer name with its distance from Richardson, TX when known."""
    if dealer and distance_miles is not None:
        return f"{dealer} ({distance_miles:.1f} mi from Richardson)"
    if dealer:
        return dealer
    if distance_miles is not None:
        return f"a Toyota dealer {distance_miles:.1f} mi away"
    return "a Toyota dealer"


def fallback_description(
    listing: Listing,
    user_filter: UserFilter,
    profile: UserProfile | None = None,
) -> str:
    """Deterministic two-sentence pitch used when no generated text is available."""
    category = listing.category or "Toyota"
    mileage = f"{listing.mileage:,} miles" if listing.mileage is not None else "dealer-verified mileage"
    drivetrain = listing.drivetrain or "versatile drivetrain"
    fuel = listing.fuel_type or "fuel-friendly setup"
    exterior = normalize_color(listing.exterior_color) or "neutral"
    interior = normalize_color(listing.interior_color) or "easy-clean"
    seats = f"{listing.seating} seats" if listing.seating is not None else "flex seating"
    doors = f"{listing.doors} doors" if listing.doors is not None else "practical access"
    condition = listing.condition or ("Used" if listing.used else "New")
    dealer = format_location(listing.dealer or listing.dealer_city, listing.distance_miles)

    target = budget_target(user_filter, profile)
    if target is None and profile is not None:
        target = profile.budget_mean
    opener = OPENERS[listing.id % len(OPENERS)]
    name = f"{listing.year} {listing.model}" if listing.year else listing.model

    first = (
        f"{opener} {name} {category.lower()} comes in at {format_currency(listing.price)} "
        f"({format_budget_delta(listing.price, target)})."
    )
    second = (
        f"It brings {mileage}, {drivetrain} {fuel.lower()}, {exterior} outside with "
        f"{interior} inside, plus {seats}, {doors}, and a {condition.lower()} rating from {dealer}."
    )
    return f"{first} {second}"


def describe_listings(
    session_id: str,
    listings: Sequence[Listing],
    user_filter: UserFilter,
    profile: UserProfile | None,
    cache: DescriptionCache,
    llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> list[str]:
    """
    Return one description per listing, in order.

    Cached text is reused; otherwise Groq is asked in parallel and every call
    that fails, times out or comes back empty gets the fallback template.
    Never raises for upstream failures.
    """
    descriptions: list[str | None] = [cache.get(session_id, listing.id) for listing in listings]
    pending = [i for i, text in enumerate(descriptions) if not text]

    if pending and llm_config.active:
        filter_payload = user_filter.model_dump(exclude_none=True)
        profile_payload = summarize_profile(profile) if profile is not None else {}
        futures = {
            i: _DESCRIBE_EXECUTOR.submit(
                generate_description,
                listings[i].model_dump(exclude_none=True),
                filter_payload,
                profile_payload,
                llm_config,
            )
            for i in pending
        }
        deadline = time.monotonic() + llm_config.timeout
        for i, future in futures.items():
            try:
                descriptions[i] = future.result(timeout=max(deadline - time.monotonic(), 0.0))
            except FutureTimeoutError:
                future.cancel()
                logger.warning("Description for listing %s timed out", listings[i].id)

    results: list[str] = []
    for i, listing in enumerate(listings):
        text = descriptions[i]
        if not text:
            text = fallback_description(listing, user_filter, profile)
        if i in pending:
            cache.set(session_id, listing.id, text)
        results.append(text)
    return results
