from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..config import DEFAULT_ENGINE_CONFIG, clamp_limit
from .normalize import to_number

NUMERIC_FILTER_FIELDS = (
    "budget",
    "budget_min",
    "budget_max",
    "price_min",
    "price_max",
    "year_min",
    "year_max",
    "mileage_min",
    "mileage_max",
    "available_seating",
    "doors",
)

CATEGORICAL_FILTER_FIELDS = (
    "model",
    "model_keywords",
    "vehicle_category",
    "drivetrain",
    "fuel_type",
    "transmission",
    "exterior_color",
    "interior_color",
    "condition",
)

FeedbackValue = Literal["like", "reject"]


class Listing(BaseModel):
    """A single dealer listing. Read-only once loaded into the catalog."""

    model_config = ConfigDict(frozen=True)

    id: int
    model: str
    price: float
    year: int | None = None
    mileage: int | None = None
    used: bool = True
    condition: str | None = None
    vehicle_category: str | None = None
    body_type: str | None = None
    drivetrain: str | None = None
    fuel_type: str | None = None
    transmission: str | None = None
    engine: str | None = None
    exterior_color: str | None = None
    interior_color: str | None = None
    seating: int | None = None
    doors: int | None = None
    mpg: str | None = None
    dealer: str | None = None
    dealer_city: str | None = None
    dealer_state: str | None = None
    dealer_zip: str | None = None
    dealer_website: str | None = None
    distance_miles: float | None = None

    @property
    def category(self) -> str | None:
        return self.vehicle_category or self.body_type


class UserFilter(BaseModel):
    """Explicit search constraints. Every field is optional; ``None`` means no constraint."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )

    budget: float | None = None
    budget_min: float | None = None
    budget_max: float | None = None
    price_min: float | None = None
    price_max: float | None = None
    year_min: float | None = None
    year_max: float | None = None
    mileage_min: float | None = None
    mileage_max: float | None = None
    available_seating: float | None = None
    doors: float | None = None

    model: str | list[str] | None = None
    model_keywords: str | list[str] | None = None
    vehicle_category: str | list[str] | None = None
    drivetrain: str | list[str] | None = None
    fuel_type: str | list[str] | None = None
    transmission: str | list[str] | None = None
    exterior_color: str | list[str] | None = None
    interior_color: str | list[str] | None = None
    condition: str | list[str] | None = None

    notes: str | None = None

    @field_validator(*NUMERIC_FILTER_FIELDS, mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> float | None:
        return to_number(value)

    @field_validator(*CATEGORICAL_FILTER_FIELDS, mode="before")
    @classmethod
    def _coerce_categorical(cls, value: Any) -> str | list[str] | None:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (list, tuple, set)):
            return [str(v) for v in value if v is not None and not isinstance(v, (dict, list))]
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return None

    @field_validator("model_keywords", mode="after")
    @classmethod
    def _keywords_as_list(cls, value: str | list[str] | None) -> list[str] | None:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("notes", mode="before")
    @classmethod
    def _coerce_notes(cls, value: Any) -> str | None:
        if value is None or isinstance(value, str):
            return value
        return None


class ScoredResult(Listing):
    score: float
    generated_description: str


class RecommendationRequest(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    session_id: str = Field(..., min_length=1)
    user_filter: UserFilter
    limit: int = Field(default=DEFAULT_ENGINE_CONFIG.default_limit)

    @field_validator("limit", mode="before")
    @classmethod
    def _clamp_limit(cls, value: Any) -> int:
        number = to_number(value)
        return clamp_limit(None if number is None else int(number))


class RecommendationResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str
    results: list[ScoredResult]


class FeedbackRequest(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    session_id: str = Field(..., min_length=1)
    listing_id: int
    feedback: FeedbackValue


class FeedbackTotals(BaseModel):
    likes: int
    rejects: int


class FeedbackResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    session_id: str
    totals: FeedbackTotals


class NotesRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=2000)
