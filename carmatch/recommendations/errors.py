from __future__ import annotations


class RecommendationError(Exception):
    """Base class for errors reported back to API callers."""


class FeedbackError(RecommendationError, ValueError):
    """Malformed feedback event (empty session, bad listing id or feedback value)."""


class ListingNotFoundError(RecommendationError, LookupError):
    def __init__(self, listing_id: int) -> None:
        super().__init__(f"Listing {listing_id} not found")
        self.listing_id = listing_id
