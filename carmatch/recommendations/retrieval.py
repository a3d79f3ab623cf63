from __future__ import annotations

import logging
import math
import time
from typing import Callable, Sequence

from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig, clamp_limit
from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..profiles.profile import FEEDBACK_VALUES
from ..profiles.store import ProfileStore, SessionStore
from .cache import DescriptionCache
from .data_store import find_listing, get_catalog
from .describe import describe_listings
from .diversity import canonical_model_key, promote_diversity
from .errors import FeedbackError, ListingNotFoundError
from .filtering import filter_listings
from .models import (
    FeedbackResponse,
    FeedbackTotals,
    Listing,
    RecommendationRequest,
    RecommendationResponse,
    ScoredResult,
    UserFilter,
)
from .notes import extract_note_constraints
from .sanitize import sanitize_filter
from .scoring import score_listing

logger = logging.getLogger(__name__)


class RecommendationEngine:
    """
    Ranks catalog listings for a session and learns from its feedback.

    Session state (profiles and cached descriptions) lives in injected
    ``SessionStore`` backends; the catalog comes from ``catalog_provider``.
    """

    def __init__(
        self,
        profiles: ProfileStore | None = None,
        description_backend: SessionStore | None = None,
        catalog_provider: Callable[[], Sequence[Listing]] = get_catalog,
        listing_lookup: Callable[[int], Listing | None] = find_listing,
        llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    ) -> None:
        self.profiles = profiles if profiles is not None else ProfileStore()
        self.descriptions = DescriptionCache(description_backend)
        self.catalog_provider = catalog_provider
        self.listing_lookup = listing_lookup
        self.llm_config = llm_config
        self.config = config

    def rank(
        self,
        session_id: str,
        user_filter: UserFilter | None,
        limit: int | None = None,
        catalog: Sequence[Listing] | None = None,
    ) -> list[tuple[Listing, float]]:
        """Filter, score, sort and diversify without generating descriptions."""
        catalog = self.catalog_provider() if catalog is None else catalog
        f = sanitize_filter(user_filter)
        constraints = extract_note_constraints(f.notes)
        profile = self.profiles.get_or_create(session_id)

        pool = filter_listings(catalog, f, constraints)
        if not pool:
            logger.info(
                "No listings passed the hard filter for session %s, scoring the full catalog",
                session_id,
            )
            pool = list(catalog)

        scored = [(listing, score_listing(listing, f, profile, sanitized=True)) for listing in pool]
        # sort() is stable, so equal scores keep catalog order.
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return promote_diversity(
            scored,
            clamp_limit(limit, self.config),
            key=lambda pair: canonical_model_key(pair[0].model),
        )

    def recommend(
        self,
        request: RecommendationRequest,
        catalog: Sequence[Listing] | None = None,
    ) -> RecommendationResponse:
        start_time = time.time()
        session_id = request.session_id
        f = sanitize_filter(request.user_filter)

        ranked = self.rank(session_id, f, request.limit, catalog)
        profile = self.profiles.get(session_id)
        texts = describe_listings(
            session_id,
            [listing for listing, _ in ranked],
            f,
            profile,
            self.descriptions,
            self.llm_config,
        )

        results = [
            ScoredResult(**listing.model_dump(), score=round(score, 4), generated_description=text)
            for (listing, score), text in zip(ranked, texts)
        ]

        elapsed_ms = round((time.time() - start_time) * 1000, 1)
        logger.info(
            "Recommended %d listings for session %s in %sms", len(results), session_id, elapsed_ms
        )
        return RecommendationResponse(session_id=session_id, results=results)

    def record_feedback(self, session_id: str, listing_id: int, feedback: str) -> FeedbackResponse:
        """
        Fold one like/reject into the session profile.

        Raises ``FeedbackError`` for malformed input and ``ListingNotFoundError``
        for an unknown listing; the profile is untouched in both cases.
        """
        session_id = (session_id or "").strip() if isinstance(session_id, str) else ""
        if not session_id:
            raise FeedbackError("sessionId is required")
        if (
            isinstance(listing_id, bool)
            or not isinstance(listing_id, (int, float))
            or not math.isfinite(listing_id)
        ):
            raise FeedbackError("listingId must be a finite number")
        if feedback not in FEEDBACK_VALUES:
            raise FeedbackError("feedback must be 'like' or 'reject'")

        listing = self.listing_lookup(int(listing_id))
        if listing is None:
            raise ListingNotFoundError(int(listing_id))

        profile = self.profiles.apply(session_id, listing, feedback)
        logger.info("Recorded %s for listing %s (session %s)", feedback, listing.id, session_id)
        return FeedbackResponse(
            session_id=session_id,
            totals=FeedbackTotals(likes=profile.total_likes, rejects=profile.total_rejects),
        )

