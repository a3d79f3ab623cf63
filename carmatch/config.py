from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
    default_limit: int = 10
    max_limit: int = 40
    min_budget_tolerance: float = 2500.0
    description_workers: int = int(os.getenv("CARMATCH_DESCRIPTION_WORKERS", "4"))


DEFAULT_ENGINE_CONFIG = EngineConfig()


def clamp_limit(limit: int | None, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> int:
    """Clamp a requested result count into ``[1, max_limit]``."""
    if limit is None:
        return config.default_limit
    return min(max(1, int(limit)), config.max_limit)
