from __future__ import annotations

import math
import threading

import pytest

from carmatch.profiles.profile import UserProfile, apply_feedback, summarize_profile
from carmatch.profiles.store import ANONYMOUS_SESSION, InMemorySessionStore, ProfileStore
from carmatch.recommendations.models import Listing


def _listing(listing_id: int = 1, price: float = 30000, **overrides) -> Listing:
    fields = {
        "id": listing_id,
        "model": "Camry SE",
        "price": price,
        "vehicle_category": "Cars",
        "drivetrain": "FWD",
        "fuel_type": "Fuel",
        "exterior_color": "Celestial Silver",
        "interior_color": "Black",
        "seating": 5,
        "doors": 4,
    }
    fields.update(overrides)
    return Listing(**fields)


# ── Feedback updates ─────────────────────────────────────────────────────


class TestApplyFeedback:
    def test_like_updates_counters_and_budget(self):
        profile = UserProfile()
        apply_feedback(profile, _listing(), "like")

        assert profile.total_likes == 1
        assert profile.total_rejects == 0
        assert profile.liked["model"]["camry se"] == 1
        assert profile.liked["category"]["cars"] == 1
        assert profile.liked["seating"][5] == 1
        assert profile.budget_mean == 30000
        assert profile.budget_sample_count == 1

    def test_reject_skips_budget(self):
        profile = UserProfile()
        apply_feedback(profile, _listing(), "reject")

        assert profile.total_rejects == 1
        assert profile.rejected["drivetrain"]["fwd"] == 1
        assert profile.liked["drivetrain"]["fwd"] == 0
        assert profile.budget_mean is None
        assert profile.budget_sample_count == 0

    @pytest.mark.parametrize("n", [1, 2, 5])
    def test_identical_likes_have_zero_spread(self, n):
        profile = UserProfile()
        for _ in range(n):
            apply_feedback(profile, _listing(price=27500), "like")
        assert profile.budget_mean == pytest.approx(27500)
        assert profile.budget_std_dev == pytest.approx(0.0)

    def test_welford_matches_sample_std_dev(self):
        prices = [20000, 25000, 31000, 40000]
        profile = UserProfile()
        for i, price in enumerate(prices):
            apply_feedback(profile, _listing(i, price=price), "like")

        mean = sum(prices) / len(prices)
        variance = sum((p - mean) ** 2 for p in prices) / (len(prices) - 1)
        assert profile.budget_mean == pytest.approx(mean)
        assert profile.budget_std_dev == pytest.approx(math.sqrt(variance))
        assert profile.budget_spread == pytest.approx(math.sqrt(variance))

    def test_spread_absent_until_two_samples(self):
        profile = UserProfile()
        assert profile.budget_spread is None
        apply_feedback(profile, _listing(), "like")
        assert profile.budget_spread is None

    def test_invalid_feedback_leaves_profile_untouched(self):
        profile = UserProfile()
        with pytest.raises(ValueError):
            apply_feedback(profile, _listing(), "maybe")
        assert profile.total_likes == 0
        assert profile.total_rejects == 0
        assert not any(profile.liked.values())

    def test_unknown_attributes_are_not_counted(self):
        profile = UserProfile()
        apply_feedback(profile, _listing(drivetrain=None, seating=None), "like")
        assert sum(profile.liked["drivetrain"].values()) == 0
        assert sum(profile.liked["seating"].values()) == 0

    def test_history_accumulates(self):
        profile = UserProfile()
        apply_feedback(profile, _listing(), "like")
        apply_feedback(profile, _listing(), "reject")
        apply_feedback(profile, _listing(), "like")
        assert profile.counts("model", "camry se") == (2, 1)

    def test_summary(self):
        profile = UserProfile()
        apply_feedback(profile, _listing(1, model="RAV4"), "like")
        apply_feedback(profile, _listing(2, model="RAV4"), "like")
        apply_feedback(profile, _listing(3, model="Camry"), "like")
        summary = summarize_profile(profile)
        assert summary["likes"] == 3
        assert summary["top_models"][0] == "rav4"
        assert summary["budget_samples"] == 3


# ── Store ────────────────────────────────────────────────────────────────


class TestProfileStore:
    def test_get_or_create_is_idempotent(self):
        store = ProfileStore()
        first = store.get_or_create("abc")
        assert store.get_or_create("abc") is first
        assert first.total_likes == 0

    def test_empty_session_maps_to_anonymous(self):
        backend = InMemorySessionStore()
        store = ProfileStore(backend)
        store.get_or_create("  ")
        assert backend.get(ANONYMOUS_SESSION) is not None

    def test_apply_writes_back(self):
        store = ProfileStore()
        store.apply("abc", _listing(), "like")
        assert store.get("abc").total_likes == 1

    def test_sessions_are_isolated(self):
        store = ProfileStore()
        store.apply("a", _listing(), "like")
        assert store.get("b") is None

    def test_delete(self):
        store = ProfileStore()
        store.get_or_create("abc")
        store.delete("abc")
        assert store.get("abc") is None

    def test_concurrent_feedback_is_serialized(self):
        store = ProfileStore()
        prices = [20000 + 1000 * i for i in range(40)]

        def worker(chunk):
            for price in chunk:
                store.apply("busy", _listing(price=price), "like")

        threads = [threading.Thread(target=worker, args=(prices[i::4],)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        profile = store.get("busy")
        mean = sum(prices) / len(prices)
        variance = sum((p - mean) ** 2 for p in prices) / (len(prices) - 1)
        assert profile.total_likes == len(prices)
        assert profile.budget_sample_count == len(prices)
        assert profile.budget_mean == pytest.approx(mean)
        assert profile.budget_std_dev == pytest.approx(math.sqrt(variance))
