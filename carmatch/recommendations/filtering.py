from __future__ import annotations

from typing import Iterable

from .models import Listing, UserFilter
from .normalize import (
    as_list,
    fuel_category,
    is_all_wheel_drive,
    normalize_category,
    normalize_key,
    parse_mpg,
)
from .notes import NoteConstraints, extract_note_constraints
from .sanitize import sanitize_filter

# Stated seating is compared one seat generously: a listing passes when
# ``seating + 1 >= requested``.
SEATING_SLACK = 1

# Note categories are coarser than the listing vocabulary.
_NOTE_CATEGORY_MATCHES = {
    "suv": ("suv", "crossover"),
    "truck": ("truck",),
    "car": ("car",),
    "van": ("minivan", "van"),
}


def max_price(f: UserFilter) -> float | None:
    if f.budget_max:
        return f.budget_max
    if f.price_max:
        return f.price_max
    if f.budget:
        return f.budget * 1.2
    return None


def _within(value: float | None, low: float | None, high: float | None) -> bool:
    if value is None:
        return True
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def _matches_condition(listing: Listing, wanted: list[str]) -> bool:
    wanted = [w.lower() for w in wanted if w.lower() != "any"]
    if not wanted:
        return True
    condition = normalize_key(listing.condition)
    used_label = "used" if listing.used else "new"
    return any(item in condition or item in used_label for item in wanted)


def passes_explicit_filter(listing: Listing, f: UserFilter) -> bool:
    """Check the structured filter bounds for one listing (``f`` must be sanitized)."""
    floor = f.price_min if f.price_min is not None else f.budget_min
    if floor is not None and listing.price < floor:
        return False
    ceiling = max_price(f)
    if ceiling is not None and listing.price > ceiling:
        return False
    if not _within(listing.year or None, f.year_min, f.year_max):
        return False
    if not _within(listing.mileage, f.mileage_min, f.mileage_max):
        return False
    if (
        f.available_seating is not None
        and listing.seating is not None
        and listing.seating + SEATING_SLACK < f.available_seating
    ):
        return False
    if f.doors is not None and listing.doors is not None and listing.doors < f.doors:
        return False

    categories = [normalize_category(c) for c in as_list(f.vehicle_category)]
    if categories:
        listing_category = normalize_category(listing.category)
        if not listing_category or not any(cat in listing_category for cat in categories):
            return False

    return _matches_condition(listing, as_list(f.condition))


def passes_note_constraints(listing: Listing, constraints: NoteConstraints) -> bool:
    """Check note-derived predicates. Unknown numeric values pass; unknown labels do not."""
    if constraints.min_mpg is not None:
        mpg = parse_mpg(listing.mpg)
        if mpg is not None and mpg < constraints.min_mpg:
            return False
    if constraints.require_awd and not is_all_wheel_drive(listing.drivetrain):
        return False
    if (
        constraints.min_seating is not None
        and listing.seating is not None
        and listing.seating < constraints.min_seating
    ):
        return False
    if (
        constraints.max_mileage is not None
        and listing.mileage is not None
        and listing.mileage > constraints.max_mileage
    ):
        return False
    if constraints.preferred_categories:
        listing_category = normalize_category(listing.category)
        accepted = {
            label
            for category in constraints.preferred_categories
            for label in _NOTE_CATEGORY_MATCHES.get(category, (category,))
        }
        if not listing_category or listing_category not in accepted:
            return False
    if constraints.preferred_fuel and fuel_category(listing.fuel_type) != constraints.preferred_fuel:
        return False
    return True


def filter_listings(
    catalog: Iterable[Listing],
    user_filter: UserFilter | None,
    constraints: NoteConstraints | None = None,
) -> list[Listing]:
    """Return exactly the listings that satisfy every applicable constraint.

    May return an empty list; falling back to the full catalog is the
    caller's decision.
    """
    f = sanitize_filter(user_filter)
    if constraints is None:
        constraints = extract_note_constraints(f.notes)
    return [
        listing
        for listing in catalog
        if passes_explicit_filter(listing, f) and passes_note_constraints(listing, constraints)
    ]
