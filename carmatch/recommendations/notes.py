"""
Free-text note parsing.

Turns shopper notes such as "need a roomy AWD hybrid, under 60k miles" into
structured constraints for the hard filter. Matching is keyword/regex based
and deliberately approximate; the keyword tables live in ``NoteKeywords`` so
new phrases can be added (or loaded from JSON) without touching the parser.
"""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

logger = logging.getLogger(__name__)

LOW_MILEAGE_DEFAULT = 60000
LARGE_VEHICLE_CATEGORIES = frozenset({"suv", "truck", "van"})
LARGE_VEHICLE_MIN_SEATING = 6

_MPG_RE = re.compile(r"(\d{1,3}(?:\.\d+)?)\s*\+?\s*(?:mpg|miles per gallon)\b")
_SEATS_RE = re.compile(r"\b(\d{1,2})\s*(?:\+\s*)?-?\s*(?:seats?|seater|passengers?)\b")
_MAX_MILES_RE = re.compile(
    r"\b(?:under|below|less than|fewer than|max(?:imum)?|no more than)\s+"
    r"(\d[\d,]*(?:\.\d+)?)\s*(k)?\s*(?:miles|mi)\b"
)


@dataclass(frozen=True)
class NoteKeywords:
    """Phrase tables driving ``extract_note_constraints``."""

    mpg_phrases: dict[str, float] = field(default_factory=lambda: {
        "great mpg": 35.0,
        "high mpg": 35.0,
        "excellent mpg": 35.0,
        "good mpg": 30.0,
        "fuel efficient": 30.0,
        "fuel-efficient": 30.0,
        "good gas mileage": 30.0,
        "great gas mileage": 35.0,
    })
    awd_patterns: tuple[str, ...] = (
        r"\bawd\b",
        r"\b4x4\b",
        r"\b4wd\b",
        r"\ball[- ]wheel",
        r"\bfour[- ]wheel[- ]drive\b",
    )
    category_patterns: dict[str, tuple[str, ...]] = field(default_factory=lambda: {
        "suv": (r"\bsuvs?\b",),
        "truck": (r"\btrucks?\b", r"\bpickups?\b"),
        "car": (r"\bsedans?\b", r"\bcars?\b"),
        "van": (r"\bvans?\b", r"\bminivans?\b"),
    })
    size_adjectives: tuple[str, ...] = (
        "large", "big", "bigger", "spacious", "roomy", "full-size", "full size",
        "fullsize", "huge", "oversized",
    )
    size_context_words: tuple[str, ...] = (
        "car", "vehicle", "family", "suv", "truck", "van", "ride", "cabin",
        "interior", "trunk", "cargo", "kids",
    )
    hauling_phrases: tuple[str, ...] = (
        "third row", "third-row", "3rd row", "3rd-row", "haul", "hauling",
        "tow", "towing", "carpool",
    )
    low_mileage_phrases: tuple[str, ...] = ("low mileage", "low miles")
    # Checked in order; the first fuel with a matching pattern wins.
    fuel_patterns: tuple[tuple[str, tuple[str, ...]], ...] = (
        ("hybrid", (r"\bhybrids?\b", r"\bplug-?in\b")),
        ("electric", (r"\belectric\b", r"\bevs?\b")),
        ("diesel", (r"\bdiesel\b",)),
        ("gas", (r"\bgasoline\b", r"\bgas\b(?!\s+mileage)")),
    )


DEFAULT_NOTE_KEYWORDS = NoteKeywords()


@dataclass(frozen=True)
class NoteConstraints:
    min_mpg: float | None = None
    require_awd: bool | None = None
    min_seating: int | None = None
    preferred_categories: frozenset[str] | None = None
    max_mileage: float | None = None
    preferred_fuel: str | None = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


def load_note_keywords(path: str | Path | None = None) -> NoteKeywords:
    """Load keyword tables from JSON, overriding only the keys present.

    Falls back to ``CARMATCH_NOTE_KEYWORDS`` and then to the built-in tables.
    """
    path = path or os.getenv("CARMATCH_NOTE_KEYWORDS")
    if not path:
        return DEFAULT_NOTE_KEYWORDS
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    overrides: dict = {}
    for f in fields(NoteKeywords):
        if f.name not in raw:
            continue
        value = raw[f.name]
        if f.name == "category_patterns":
            value = {k: tuple(v) for k, v in value.items()}
        elif f.name == "fuel_patterns":
            value = tuple((name, tuple(patterns)) for name, patterns in value)
        elif isinstance(value, list):
            value = tuple(value)
        overrides[f.name] = value
    logger.info("Loaded note keyword overrides from %s: %s", path, sorted(overrides))
    return replace(DEFAULT_NOTE_KEYWORDS, **overrides)


def _any_pattern(text: str, patterns: tuple[str, ...]) -> bool:
    return any(re.search(p, text) for p in patterns)


def _has_phrase(text: str, phrase: str) -> bool:
    return re.search(r"\b" + re.escape(phrase) + r"\b", text) is not None


def _any_phrase(text: str, phrases: tuple[str, ...]) -> bool:
    return any(_has_phrase(text, phrase) for phrase in phrases)


def _extract_min_mpg(text: str, keywords: NoteKeywords) -> float | None:
    floors = [value for phrase, value in keywords.mpg_phrases.items() if _has_phrase(text, phrase)]
    floors.extend(float(m) for m in _MPG_RE.findall(text))
    return max(floors) if floors else None


def _extract_max_mileage(text: str, keywords: NoteKeywords) -> float | None:
    ceilings = []
    for match in _MAX_MILES_RE.finditer(text):
        amount = float(match.group(1).replace(",", ""))
        if match.group(2):
            amount *= 1000
        ceilings.append(amount)
    if _any_phrase(text, keywords.low_mileage_phrases):
        ceilings.append(float(LOW_MILEAGE_DEFAULT))
    # More text can only tighten the ceiling.
    return min(ceilings) if ceilings else None


def extract_note_constraints(
    notes: str | None,
    keywords: NoteKeywords = DEFAULT_NOTE_KEYWORDS,
) -> NoteConstraints:
    """Parse free-text notes into hard constraints. Total on any input."""
    if not notes or not isinstance(notes, str) or not notes.strip():
        return NoteConstraints()

    text = notes.lower()

    min_mpg = _extract_min_mpg(text, keywords)
    require_awd = True if _any_pattern(text, keywords.awd_patterns) else None

    seat_counts = [int(n) for n in _SEATS_RE.findall(text)]
    min_seating = max(seat_counts) if seat_counts else None

    categories = {
        category
        for category, patterns in keywords.category_patterns.items()
        if _any_pattern(text, patterns)
    }

    wants_size = (
        _any_phrase(text, keywords.size_adjectives)
        and _any_phrase(text, keywords.size_context_words)
    )
    if wants_size or _any_phrase(text, keywords.hauling_phrases):
        categories |= LARGE_VEHICLE_CATEGORIES
        min_seating = max(min_seating or 0, LARGE_VEHICLE_MIN_SEATING)

    preferred_fuel = None
    for fuel, patterns in keywords.fuel_patterns:
        if _any_pattern(text, patterns):
            preferred_fuel = fuel
            break

    return NoteConstraints(
        min_mpg=min_mpg,
        require_awd=require_awd,
        min_seating=min_seating,
        preferred_categories=frozenset(categories) if categories else None,
        max_mileage=_extract_max_mileage(text, keywords),
        preferred_fuel=preferred_fuel,
    )


def describe_constraints(constraints: NoteConstraints) -> str:
    """Render constraints as a bullet list for prompts and debugging."""
    if constraints.is_empty():
        return "no additional hard constraints inferred"

    lines: list[str] = []
    if constraints.min_mpg is not None:
        lines.append(f"- At least {constraints.min_mpg:g} MPG")
    if constraints.require_awd:
        lines.append("- All-wheel / four-wheel drive required")
    if constraints.min_seating is not None:
        lines.append(f"- Seats {constraints.min_seating} or more")
    if constraints.preferred_categories:
        lines.append(f"- Body style: {', '.join(sorted(constraints.preferred_categories))}")
    if constraints.max_mileage is not None:
        lines.append(f"- Under {int(constraints.max_mileage):,} miles")
    if constraints.preferred_fuel:
        lines.append(f"- Fuel: {constraints.preferred_fuel}")
    return "\n".join(lines)
