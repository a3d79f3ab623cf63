from __future__ import annotations

from unittest.mock import patch

from carmatch.llm.config import LLMConfig
from carmatch.profiles.profile import UserProfile, apply_feedback
from carmatch.recommendations.cache import DescriptionCache
from carmatch.recommendations.describe import (
    describe_listings,
    fallback_description,
    format_budget_delta,
)
from carmatch.recommendations.models import Listing, UserFilter

ENABLED_CONFIG = LLMConfig(api_key="test-key", enabled=True, timeout=2.0)
DISABLED_CONFIG = LLMConfig(api_key="", enabled=False)


def _listing(listing_id: int = 10, **overrides) -> Listing:
    fields = {
        "id": listing_id,
        "model": "Highlander XLE",
        "price": 41200,
        "year": 2021,
        "mileage": 28450,
        "vehicle_category": "SUVs",
        "drivetrain": "AWD",
        "fuel_type": "Fuel",
        "exterior_color": "Midnight Black Metallic",
        "interior_color": "Graphite",
        "seating": 7,
        "doors": 4,
        "condition": "Good",
        "dealer": "Toyota of Plano",
    }
    fields.update(overrides)
    return Listing(**fields)


# ── Budget phrasing ──────────────────────────────────────────────────────


class TestBudgetDelta:
    def test_no_target(self):
        assert format_budget_delta(30000, None) == "with room to negotiate"

    def test_on_budget(self):
        assert format_budget_delta(30400, 30000) == "right on budget"

    def test_over_and_under(self):
        assert format_budget_delta(32500, 30000) == "$2,500 over budget"
        assert format_budget_delta(27000, 30000) == "$3,000 under budget"


# ── Fallback template ────────────────────────────────────────────────────


class TestFallbackDescription:
    def test_two_sentences_with_key_facts(self):
        text = fallback_description(_listing(), UserFilter(budget=40000))

        assert text.startswith("Confident 2021 Highlander XLE suvs comes in at $41,200 ($1,200 over budget).")
        assert "28,450 miles" in text
        assert "AWD fuel" in text
        assert "black outside with graphite inside" in text
        assert "7 seats, 4 doors" in text
        assert text.endswith("a good rating from Toyota of Plano.")

    def test_opener_rotates_with_id(self):
        assert fallback_description(_listing(11), UserFilter()).startswith("Road-trip ready")
        assert fallback_description(_listing(14), UserFilter()).startswith("Adventure-tuned")

    def test_is_deterministic(self):
        assert fallback_description(_listing(), UserFilter()) == fallback_description(_listing(), UserFilter())

    def test_missing_fields_use_placeholders(self):
        sparse = Listing(id=3, model="Camry", price=25000)
        text = fallback_description(sparse, UserFilter())

        assert "dealer-verified mileage" in text
        assert "flex seating" in text
        assert "a used rating from a Toyota dealer" in text
        assert "with room to negotiate" in text

    def test_dealer_distance_in_location(self):
        text = fallback_description(_listing(distance_miles=12.34), UserFilter())
        assert text.endswith("a good rating from Toyota of Plano (12.3 mi from Richardson).")

    def test_distance_without_dealer(self):
        text = fallback_description(_listing(dealer=None, distance_miles=4.0), UserFilter())
        assert text.endswith("from a Toyota dealer 4.0 mi away.")

    def test_profile_mean_as_budget(self):
        profile = UserProfile()
        apply_feedback(profile, _listing(price=41000), "like")
        text = fallback_description(_listing(price=41200), UserFilter(), profile)
        assert "right on budget" in text


# ── Decorator ────────────────────────────────────────────────────────────


class TestDescribeListings:
    def test_fallback_when_llm_disabled(self):
        cache = DescriptionCache()
        listings = [_listing(1), _listing(2)]

        texts = describe_listings("s1", listings, UserFilter(), None, cache, DISABLED_CONFIG)

        assert texts == [fallback_description(listing, UserFilter()) for listing in listings]

    @patch("carmatch.recommendations.describe.generate_description", return_value="Generated pitch.")
    def test_uses_generated_text(self, mock_generate):
        texts = describe_listings("s1", [_listing(1)], UserFilter(), None, DescriptionCache(), ENABLED_CONFIG)

        assert texts == ["Generated pitch."]
        mock_generate.assert_called_once()

    @patch("carmatch.recommendations.describe.generate_description", return_value="")
    def test_empty_generation_falls_back(self, mock_generate):
        texts = describe_listings("s1", [_listing(1)], UserFilter(), None, DescriptionCache(), ENABLED_CONFIG)

        assert texts == [fallback_description(_listing(1), UserFilter())]

    @patch("carmatch.recommendations.describe.generate_description", return_value="Generated pitch.")
    def test_cache_is_per_session(self, mock_generate):
        cache = DescriptionCache()
        describe_listings("s1", [_listing(1)], UserFilter(), None, cache, ENABLED_CONFIG)
        describe_listings("s1", [_listing(1)], UserFilter(), None, cache, ENABLED_CONFIG)
        assert mock_generate.call_count == 1

        describe_listings("s2", [_listing(1)], UserFilter(), None, cache, ENABLED_CONFIG)
        assert mock_generate.call_count == 2
        assert cache.stats()["hits"] == 1

    @patch("carmatch.llm.groq_client.Groq")
    def test_upstream_error_is_not_raised(self, mock_groq_cls):
        mock_groq_cls.return_value.chat.completions.create.side_effect = Exception("quota exceeded")

        texts = describe_listings("s1", [_listing(1)], UserFilter(), None, DescriptionCache(), ENABLED_CONFIG)

        assert texts == [fallback_description(_listing(1), UserFilter())]
