from pathlib import Path

import pandas as pd
import pytest

from carmatch.data_ingestion.config import IngestionConfig
from carmatch.data_ingestion.ingest import (
    CANONICAL_COLUMNS,
    derive_condition,
    format_category_label,
    format_fuel_label,
    load_listings,
    run_ingestion,
)

RAW_ROWS = [
    {
        "price": 32450.4, "mileage": 15000, "year": 2022, "model": "RAV4 XLE", "condition": "Used",
        "fuel_type": "Gasoline", "vehicle_category": "SUV", "available_seating": 5,
        "dealership_name": "Toyota of Plano", "distance_from_richardson_mi": 8.26,
        "drivetrain": "AWD", "mpg": "27/35", "exterior_color": "Blueprint", "interior_color": "Black",
    },
    {
        "price": 44100, "mileage": 9000, "year": 2023, "model": "Sienna XLE", "condition": "New",
        "fuel_type": "Hybrid", "vehicle_category": None, "available_seating": None,
        "dealership_name": "Toyota of Richardson", "distance_from_richardson_mi": 1.0,
        "drivetrain": "FWD", "mpg": "36/36", "exterior_color": "Silver", "interior_color": "Gray",
    },
    {
        "price": None, "mileage": 40000, "year": 2020, "model": "Camry SE", "condition": "Used",
        "fuel_type": "Gasoline", "vehicle_category": "Sedan", "available_seating": 5,
        "dealership_name": "Toyota of Dallas", "distance_from_richardson_mi": 12.0,
        "drivetrain": "FWD", "mpg": "28/39", "exterior_color": "White", "interior_color": "Black",
    },
    {
        "price": 38900, "mileage": 96000, "year": 2017, "model": "Tundra SR5", "condition": "Used",
        "fuel_type": "Diesel", "vehicle_category": None, "available_seating": None,
        "dealership_name": "Toyota of Garland", "distance_from_richardson_mi": 6.5,
        "drivetrain": "4WD", "mpg": "13/17", "exterior_color": "Red", "interior_color": "Tan",
    },
]


@pytest.fixture
def raw_csv(tmp_path: Path) -> Path:
    path = tmp_path / "raw" / "CarData.csv"
    path.parent.mkdir(parents=True)
    pd.DataFrame(RAW_ROWS).to_csv(path, index=False)
    return path


# ── Pipeline ─────────────────────────────────────────────────────────────


def test_run_ingestion_writes_canonical_columns(tmp_path: Path, raw_csv: Path):
    cfg = IngestionConfig(raw_csv_path=raw_csv, processed_data_dir=tmp_path / "processed")

    output_path = run_ingestion(config=cfg)

    assert output_path.is_file(), "Processed CSV should be created"
    df = pd.read_csv(output_path)
    assert list(df.columns) == CANONICAL_COLUMNS
    # The row without a price is dropped
    assert len(df) == 3


def test_processed_file_reloads_unchanged(tmp_path: Path, raw_csv: Path):
    cfg = IngestionConfig(raw_csv_path=raw_csv, processed_data_dir=tmp_path / "processed")
    output_path = run_ingestion(config=cfg)

    assert load_listings(output_path) == load_listings(raw_csv)


def test_missing_file_returns_empty(tmp_path: Path):
    assert load_listings(tmp_path / "nope.csv") == []


# ── Normalization ────────────────────────────────────────────────────────


class TestLoadListings:
    def test_rows_are_normalized(self, raw_csv: Path):
        listings = {listing.model: listing for listing in load_listings(raw_csv)}
        assert set(listings) == {"RAV4 XLE", "Sienna XLE", "Tundra SR5"}

        rav4 = listings["RAV4 XLE"]
        assert rav4.price == 32450
        assert rav4.vehicle_category == "SUVs"
        assert rav4.fuel_type == "Fuel"
        assert rav4.condition == "Excellent"
        assert rav4.used is True
        assert rav4.seating == 5
        assert rav4.dealer == "Toyota of Plano"
        assert rav4.distance_miles == pytest.approx(8.3)
        assert rav4.mpg == "27/35"

    def test_missing_category_and_seating_are_inferred(self, raw_csv: Path):
        listings = {listing.model: listing for listing in load_listings(raw_csv)}

        sienna = listings["Sienna XLE"]
        assert sienna.vehicle_category == "Minivan"
        assert sienna.seating == 8
        assert sienna.used is False
        assert sienna.condition == "Excellent"
        assert sienna.fuel_type == "Hybrid"

        tundra = listings["Tundra SR5"]
        assert tundra.vehicle_category == "Trucks"
        assert tundra.seating == 5
        assert tundra.condition == "Fair"
        assert tundra.fuel_type == "Diesel"

    def test_ids_are_sequential(self, raw_csv: Path):
        assert [listing.id for listing in load_listings(raw_csv)] == [1, 2, 3]


# ── Label helpers ────────────────────────────────────────────────────────


class TestLabels:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, "Fuel"),
            ("Gasoline", "Fuel"),
            ("Plug-in Hybrid", "Hybrid"),
            ("Electric", "EV"),
            ("Diesel", "Diesel"),
            ("Hydrogen", "Other"),
        ],
    )
    def test_fuel_label(self, raw, expected):
        assert format_fuel_label(raw) == expected

    def test_category_label(self):
        assert format_category_label("Pickup Truck", None) == "Trucks"
        assert format_category_label(None, "Corolla Cross LE") == "SUVs"
        assert format_category_label(None, "Prius LE") == "Cars"
        assert format_category_label("Crossover", None) == "Crossovers"

    def test_condition(self):
        assert derive_condition("New", 50000) == "Excellent"
        assert derive_condition("Used", None) == "Good"
        assert derive_condition("Used", 19999) == "Excellent"
        assert derive_condition("Used", 90000) == "Fair"
