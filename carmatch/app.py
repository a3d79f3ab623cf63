from __future__ import annotations

from dataclasses import asdict

from fastapi import FastAPI, HTTPException

from .profiles.profile import summarize_profile
from .recommendations.data_store import get_catalog
from .recommendations.errors import FeedbackError, ListingNotFoundError
from .recommendations.models import (
    FeedbackRequest,
    FeedbackResponse,
    NotesRequest,
    RecommendationRequest,
    RecommendationResponse,
)
from .recommendations.notes import describe_constraints, extract_note_constraints
from .recommendations.retrieval import RecommendationEngine

app = FastAPI(title="CarMatch Recommendation API", version="1.0.0")

engine = RecommendationEngine()


def _distinct(values) -> list[str]:
    return sorted({v.strip() for v in values if v and v.strip()})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    catalog = get_catalog()
    return {
        "categories": _distinct(listing.category for listing in catalog),
        "models": _distinct(listing.model for listing in catalog),
        "fuel_types": _distinct(listing.fuel_type for listing in catalog),
        "drivetrains": _distinct(listing.drivetrain for listing in catalog),
        "total_listings": len(catalog),
    }


# ── Recommendation endpoints ─────────────────────────────────────────────


@app.post("/recommendations", response_model=RecommendationResponse)
def recommendations(body: RecommendationRequest) -> RecommendationResponse:
    return engine.recommend(body)


@app.post("/feedback", response_model=FeedbackResponse)
def feedback(body: FeedbackRequest) -> FeedbackResponse:
    try:
        return engine.record_feedback(body.session_id, body.listing_id, body.feedback)
    except ListingNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except FeedbackError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


# ── Debug endpoints ──────────────────────────────────────────────────────


@app.get("/profiles/{session_id}")
def profile_summary(session_id: str) -> dict:
    profile = engine.profiles.get(session_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Unknown session")
    return {"session_id": session_id, **summarize_profile(profile)}


@app.post("/notes/parse")
def parse_notes(body: NotesRequest) -> dict:
    constraints = extract_note_constraints(body.notes)
    parsed = asdict(constraints)
    if constraints.preferred_categories:
        parsed["preferred_categories"] = sorted(constraints.preferred_categories)
    return {"constraints": parsed, "summary": describe_constraints(constraints)}
