from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import ValidationError

from .models import NUMERIC_FILTER_FIELDS, UserFilter
from .normalize import as_list, to_number

logger = logging.getLogger(__name__)

__all__ = ["as_list", "sanitize_filter", "to_number"]


def sanitize_filter(raw: UserFilter | Mapping[str, Any] | None) -> UserFilter:
    """
    Normalize a partially-populated filter into numeric-safe fields.

    Malformed numbers become ``None`` (no constraint) rather than errors, and
    ``budget_min``/``budget_max`` fall back to ``price_min``/``price_max``.
    Never raises.
    """
    if raw is None:
        base = UserFilter()
    elif isinstance(raw, UserFilter):
        base = raw
    else:
        try:
            base = UserFilter.model_validate(dict(raw))
        except (ValidationError, TypeError, ValueError):
            logger.warning("Discarding unparseable filter payload", exc_info=True)
            base = UserFilter()

    numbers = {name: to_number(getattr(base, name)) for name in NUMERIC_FILTER_FIELDS}
    if numbers["budget_min"] is None:
        numbers["budget_min"] = numbers["price_min"]
    if numbers["budget_max"] is None:
        numbers["budget_max"] = numbers["price_max"]

    return base.model_copy(update=numbers)
