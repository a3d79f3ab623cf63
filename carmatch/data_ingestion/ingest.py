from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List

import pandas as pd
from pydantic import ValidationError

from ..recommendations.models import Listing
from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig

logger = logging.getLogger(__name__)


CANONICAL_COLUMNS: List[str] = list(Listing.model_fields)
STRING_COLUMNS = ("engine", "mpg", "dealer_zip", "transmission", "drivetrain")


def _clean(value: Any) -> Any:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _format_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_fuel_label(raw: str | None) -> str:
    normalized = (raw or "").lower()
    if not normalized:
        return "Fuel"
    if "hybrid" in normalized:
        return "Hybrid"
    if "electric" in normalized or normalized == "ev":
        return "EV"
    if "diesel" in normalized:
        return "Diesel"
    if "hydrogen" in normalized:
        return "Other"
    if any(word in normalized for word in ("gas", "fuel", "petrol")):
        return "Fuel"
    return "Other"


def derive_condition(raw_condition: str | None, mileage: float | None) -> str:
    if (raw_condition or "").lower() == "new":
        return "Excellent"
    if mileage is None:
        return "Good"
    if mileage < 20000:
        return "Excellent"
    if mileage < 90000:
        return "Good"
    return "Fair"


def _includes_one(value: str, words: list[str]) -> bool:
    return any(word in value for word in words)


def infer_type(model: str | None) -> str:
    value = (model or "").lower()
    if _includes_one(value, ["tacoma", "tundra"]):
        return "Truck"
    if _includes_one(value, ["sienna"]):
        return "Van"
    if _includes_one(value, [
        "rav4", "4runner", "highlander", "land cruiser", "sequoia",
        "corolla cross", "grand highlander", "venza", "c-hr", "bz4x",
    ]):
        return "SUV"
    if _includes_one(value, ["prius", "corolla", "camry", "avalon", "crown", "mirai", "yaris"]):
        return "Sedan"
    return "Other"


def format_category_label(raw: str | None, model: str | None) -> str:
    value = (raw or "").strip() or infer_type(model)
    lower = value.lower()
    if "truck" in lower:
        return "Trucks"
    if "van" in lower:
        return "Minivan"
    if "suv" in lower:
        return "SUVs"
    if "cross" in lower:
        return "Crossovers"
    if _includes_one(lower, ["sedan", "car", "coupe", "hatch"]):
        return "Cars"
    return value


def derive_seating(model: str | None, category: str | None) -> int:
    value = (model or "").lower()
    if "sienna" in value:
        return 8
    if _includes_one(value, ["sequoia", "grand highlander", "land cruiser"]):
        return 8
    if _includes_one(value, ["highlander", "4runner"]):
        return 7
    if "supra" in value:
        return 2
    if _includes_one(value, ["gr86", "gr 86"]):
        return 4
    if _includes_one(value, ["tundra", "tacoma"]):
        return 5
    return {"Minivan": 8, "SUVs": 7, "Trucks": 5}.get(category or "", 5)


def normalize_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Map a raw dealer export (or an already processed file) onto the canonical
    listing columns. Rows without a numeric price are dropped.
    """

    # Raw exports and processed files name a few columns differently.
    def _first_present(columns: List[str]) -> str | None:
        for col in columns:
            if col in df.columns:
                return col
        return None

    def _column(candidates: List[str]) -> pd.Series:
        col = _first_present(candidates)
        if col is None:
            return pd.Series([None] * len(df), index=df.index, dtype=object)
        return df[col]

    canonical = pd.DataFrame(index=df.index)
    canonical["price"] = pd.to_numeric(_column(["price", "Price"]), errors="coerce").round()
    canonical["mileage"] = pd.to_numeric(_column(["mileage", "Mileage"]), errors="coerce").round()
    canonical["year"] = pd.to_numeric(_column(["year", "Year"]), errors="coerce")
    canonical["model"] = _column(["model", "Model"]).fillna("Toyota").astype(str).str.strip()

    raw_condition = _column(["condition", "Condition"]).fillna("").astype(str).str.strip()
    canonical["used"] = raw_condition.str.lower() != "new"
    if _first_present(["used"]) is not None:
        canonical["used"] = df["used"].astype(str).str.lower().isin(["true", "1", "yes"])
    canonical["condition"] = [
        cond if cond in {"Excellent", "Good", "Fair"} else derive_condition(cond, _clean(miles))
        for cond, miles in zip(raw_condition, canonical["mileage"])
    ]

    canonical["vehicle_category"] = [
        format_category_label(_clean(raw), model)
        for raw, model in zip(_column(["vehicle_category", "VehicleCategory"]), canonical["model"])
    ]
    canonical["body_type"] = _column(["body_type", "type", "Type"]).where(
        lambda s: s.notna(), canonical["model"].apply(infer_type)
    )
    canonical["fuel_type"] = _column(["fuel_type", "Fuel Type", "FuelType"]).apply(
        lambda v: format_fuel_label(_clean(v))
    )

    for name, candidates in {
        "drivetrain": ["drivetrain", "Drivetrain"],
        "transmission": ["transmission", "Transmission"],
        "engine": ["engine", "Engine"],
        "exterior_color": ["exterior_color", "ExteriorColor"],
        "interior_color": ["interior_color", "InteriorColor"],
        "mpg": ["mpg", "MPG"],
        "dealer": ["dealer", "dealership_name", "Dealer"],
        "dealer_city": ["dealer_city"],
        "dealer_state": ["dealer_state"],
        "dealer_zip": ["dealer_zip"],
        "dealer_website": ["dealer_website", "website"],
    }.items():
        canonical[name] = _column(candidates).apply(_clean)

    seating = pd.to_numeric(_column(["seating", "available_seating", "Seating"]), errors="coerce")
    canonical["seating"] = [
        int(seats) if _clean(seats) is not None else derive_seating(model, category)
        for seats, model, category in zip(seating, canonical["model"], canonical["vehicle_category"])
    ]
    canonical["doors"] = pd.to_numeric(_column(["doors", "Doors"]), errors="coerce")
    canonical["distance_miles"] = pd.to_numeric(
        _column(["distance_miles", "distance_from_richardson_mi", "DistanceMiles"]), errors="coerce"
    ).round(1)

    canonical = canonical[canonical["price"].notna()].copy()
    ids = pd.to_numeric(_column(["id", "Id"]), errors="coerce").reindex(canonical.index)
    if ids.notna().all() and ids.is_unique:
        canonical["id"] = ids.astype(int)
    else:
        canonical["id"] = range(1, len(canonical) + 1)

    return canonical[CANONICAL_COLUMNS]


def frame_to_listings(frame: pd.DataFrame) -> list[Listing]:
    listings: list[Listing] = []
    for record in frame.to_dict(orient="records"):
        payload = {key: _clean(value) for key, value in record.items()}
        for key in ("year", "mileage", "seating", "doors"):
            if payload.get(key) is not None:
                payload[key] = int(payload[key])
        for key in STRING_COLUMNS:
            if payload.get(key) is not None and not isinstance(payload[key], str):
                payload[key] = _format_text(payload[key])
        try:
            listings.append(Listing.model_validate(payload))
        except ValidationError:
            logger.warning("Skipping malformed listing row %s", payload.get("id"), exc_info=True)
    return listings


def load_listings(path: str | Path) -> list[Listing]:
    """Read a dealer CSV and return validated listings (empty when the file is missing)."""
    path = Path(path)
    if not path.exists():
        logger.warning("Catalog CSV not found at %s", path)
        return []
    frame = normalize_frame(pd.read_csv(path, dtype={"dealer_zip": str}))
    listings = frame_to_listings(frame)
    logger.info("Loaded %d listings from %s", len(listings), path)
    return listings


def run_ingestion(config: IngestionConfig = DEFAULT_INGESTION_CONFIG) -> Path:
    """
    Execute the ingestion pipeline.

    Steps:
    - Read the raw dealer CSV export.
    - Map raw fields into the canonical Listing schema.
    - Persist cleaned data as CSV for the API to load.
    """
    config.processed_data_dir.mkdir(parents=True, exist_ok=True)

    frame = normalize_frame(pd.read_csv(config.raw_csv_path, dtype={"dealer_zip": str}))

    output_path = config.processed_path
    frame.to_csv(output_path, index=False)
    return output_path


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    path = run_ingestion()
    print(f"Ingestion complete. Processed data saved to: {path}")
