from __future__ import annotations

import math
import re
from typing import Any

_CATEGORY_RULES: list[tuple[str, str]] = [
    ("suv", "suv"),
    ("truck", "truck"),
    ("mini", "minivan"),
    ("van", "minivan"),
    ("cross", "crossover"),
    ("sedan", "car"),
    ("car", "car"),
]

COLOR_PALETTE = [
    "black", "white", "gray", "silver", "red", "blue", "green", "gold",
    "yellow", "orange", "brown", "beige", "tan", "cream", "purple",
]

# Shades that read as "roughly the same colour" to a shopper.
COLOR_GROUPS: list[set[str]] = [
    {"black", "midnight", "graphite"},
    {"white", "pearl", "cream"},
    {"gray", "silver", "gunmetal"},
    {"red", "burgundy", "crimson"},
    {"blue", "navy", "steel"},
    {"green", "olive", "forest"},
    {"brown", "bronze", "beige", "tan"},
    {"gold", "yellow", "champagne"},
]

_NON_LETTERS_RE = re.compile(r"[^a-z]+")
_EV_TOKEN_RE = re.compile(r"\b(?:ev|bev)\b")
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def to_number(value: Any) -> float | None:
    """Coerce a number or numeric-looking string to a finite float, else ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        raw = value.strip().replace(",", "").replace("$", "")
        if not raw:
            return None
        try:
            number = float(raw)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def as_list(value: Any) -> list[str]:
    """Return the distinct, non-empty string values of a single-or-multi field."""
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple, set)) else [value]
    seen: list[str] = []
    for item in items:
        if item is None:
            continue
        text = str(item).strip()
        if text and text not in seen:
            seen.append(text)
    return seen


def normalize_key(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return min(max(value, low), high)


def normalize_category(value: Any) -> str:
    """Map free-form body-style labels onto suv/truck/minivan/crossover/car."""
    key = normalize_key(value)
    for needle, category in _CATEGORY_RULES:
        if needle in key:
            return category
    return key


def normalize_color(value: Any) -> str:
    key = normalize_key(value)
    if not key:
        return ""
    tokens = _NON_LETTERS_RE.sub(" ", key).split()
    for color in COLOR_PALETTE:
        if color in tokens:
            return color
    return tokens[0] if tokens else key


def colors_roughly_match(target: Any, actual: Any) -> bool:
    base_target = normalize_color(target)
    base_actual = normalize_color(actual)
    if not base_target or not base_actual:
        return False
    if base_target == base_actual:
        return True
    return any(base_target in group and base_actual in group for group in COLOR_GROUPS)


def fuel_category(value: Any) -> str:
    """Collapse a listing fuel label to hybrid/electric/diesel/gas ('' if unknown)."""
    key = normalize_key(value)
    if not key:
        return ""
    if "hybrid" in key:
        return "hybrid"
    if "electric" in key or _EV_TOKEN_RE.search(key):
        return "electric"
    if "diesel" in key:
        return "diesel"
    if any(word in key for word in ("gas", "fuel", "petrol", "regular", "premium")):
        return "gas"
    return "other"


def is_all_wheel_drive(value: Any) -> bool:
    key = normalize_key(value).replace("-", " ")
    if not key:
        return False
    return any(token in key for token in ("awd", "4wd", "4x4", "all wheel", "four wheel"))


def parse_mpg(value: Any) -> float | None:
    """Read a combined-ish MPG figure from strings like ``"25/33"`` or ``"41 mpg"``."""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return to_number(value)
    numbers = [float(n) for n in _NUMBER_RE.findall(str(value))]
    numbers = [n for n in numbers if 0 < n < 250]
    if not numbers:
        return None
    return sum(numbers) / len(numbers)
