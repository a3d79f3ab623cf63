"""
Diversity promotion.

Dealer inventories are dominated by trim variants of a handful of models
(a page of ten RAV4 XLEs is technically "relevant" but useless). Results are
bucketed by a canonical base-model key and interleaved round-robin so every
distinct model gets one slot before any model repeats.
"""
from __future__ import annotations

import re
from typing import Callable, Sequence, TypeVar

T = TypeVar("T")

# Multi-word models that must not collapse onto their first token.
MODEL_OVERRIDES: tuple[tuple[str, str], ...] = (
    ("grand highlander", "grand highlander"),
    ("land cruiser", "land cruiser"),
    ("gr corolla", "gr corolla"),
    ("corolla cross", "corolla cross"),
    ("crown signia", "crown signia"),
    ("gr supra", "supra"),
    ("gr 86", "gr86"),
    ("bz4x", "bz4x"),
    ("c-hr", "c-hr"),
)

BRAND_TOKENS = frozenset({"toyota", "lexus", "scion"})

TRIM_TOKENS = frozenset({
    "l", "le", "se", "xle", "xse", "ce", "sr", "sr5", "lx", "ltd", "limited",
    "platinum", "premium", "premier", "nightshade", "woodland", "capstone",
    "trd", "pro", "sport", "off-road", "offroad", "adventure", "1794",
    "hybrid", "plug-in", "prime", "awd", "fwd", "rwd", "4wd", "4x4", "2wd",
    "v6", "v8", "i-force", "max", "edition", "base", "cab", "crewmax",
    "double", "access", "xp", "gr", "sedan", "hatchback",
})

_YEAR_RE = re.compile(r"^(?:19|20)\d{2}$")
_PUNCTUATION_RE = re.compile(r"[^a-z0-9\- ]+")


def canonical_model_key(model: str | None) -> str:
    """Reduce a listing model name to its base model, e.g. ``"2023 RAV4 XLE Hybrid" -> "rav4"``."""
    text = " ".join((model or "").lower().split())
    if not text:
        return ""
    for needle, key in MODEL_OVERRIDES:
        if needle in text:
            return key

    tokens = _PUNCTUATION_RE.sub(" ", text).split()
    for token in tokens:
        if token in BRAND_TOKENS or token in TRIM_TOKENS or _YEAR_RE.match(token):
            continue
        return token
    # Nothing but trims and brand left: fall back to the cleaned name.
    return " ".join(tokens) or text


def promote_diversity(
    ranked: Sequence[T],
    limit: int,
    key: Callable[[T], str] | None = None,
) -> list[T]:
    """Interleave a score-sorted sequence across canonical model buckets.

    Pass ``d`` appends the ``d``-th best item of every bucket (buckets ordered
    by their best item) until ``limit`` items are taken or all buckets are
    exhausted. Pass 0 is therefore the best item per distinct model, in score
    order.
    """
    if limit <= 0 or not ranked:
        return []
    key = key or (lambda item: canonical_model_key(getattr(item, "model", None)))

    buckets: dict[str, list[T]] = {}
    for item in ranked:
        buckets.setdefault(key(item), []).append(item)

    promoted: list[T] = []
    depth = 0
    while len(promoted) < limit:
        took_any = False
        for bucket in buckets.values():
            if depth < len(bucket):
                promoted.append(bucket[depth])
                took_any = True
                if len(promoted) >= limit:
                    break
        if not took_any:
            break
        depth += 1
    return promoted
