import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class IngestionConfig:
    """
    Configuration for the dealer inventory ingestion pipeline.
    """

    raw_csv_path: Path = Path(os.getenv("CARMATCH_CATALOG_CSV", "carmatch/data/raw/CarData.csv"))
    processed_data_dir: Path = Path("carmatch/data/processed")
    processed_filename: str = "listings.csv"

    @property
    def processed_path(self) -> Path:
        return self.processed_data_dir / self.processed_filename


DEFAULT_INGESTION_CONFIG = IngestionConfig()
