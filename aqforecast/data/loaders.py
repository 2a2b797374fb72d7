"""Ingestion of air-quality records and synthetic sample datasets."""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
from datetime import datetime
import logging

import numpy as np
import pandas as pd

from .structs import Series
from ..utils.error_handling import EmptyInputError

logger = logging.getLogger(__name__)

FEATURE_UNITS: Dict[str, str] = {
    "pm25": "μg/m³",
    "pm10": "μg/m³",
    "o3": "ppm",
    "no2": "ppb",
    "so2": "ppb",
    "co": "ppm",
    "aqi": "",
}

# name -> (base level, start year, location)
SAMPLE_DATASETS: Dict[str, tuple] = {
    "beijing": (80, 2013, "Beijing, China"),
    "london": (40, 2018, "London, UK"),
    "delhi": (100, 2019, "Delhi, India"),
    "sample": (60, 2020, "Sample City"),
}


def unit_for(feature: str) -> str:
    """Measurement unit of a known pollutant, or an empty string."""
    return FEATURE_UNITS.get(feature, "")


def _to_number(value: Any) -> Any:
    """Convert numeric-looking strings to float; blanks become NaN."""
    if value is None:
        return float("nan")
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, np.number)):
        return float(value)
    if isinstance(value, str):
        if not value.strip():
            return float("nan")
        try:
            return float(value.strip())
        except ValueError:
            return value
    return value


def series_from_records(
    records: Iterable[Mapping[str, Any]],
    date_key: str = "date",
    exclude: Sequence[str] = ("location",),
    source: Optional[str] = None,
) -> Series:
    """
    Build a Series from ``{feature: value, date: 'YYYY-MM-DD'}`` records.

    Numeric-looking strings become numbers and blank values become NaN;
    columns that are not numeric after conversion are dropped. The result is sorted chronologically.

    Args:
        records: Observations keyed by feature name plus a date
        date_key: Name of the timestamp field
        exclude: Fields that are never features
        source: Optional description stored in the metadata

    Raises:
        EmptyInputError: If there are no records
        ValueError: If a record lacks the date field
    """
    rows: List[Dict[str, Any]] = []
    dates = []
    for i, record in enumerate(records):
        if date_key not in record:
            raise ValueError(f"Record {i} has no '{date_key}' field")
        dates.append(pd.Timestamp(record[date_key]).normalize())
        rows.append({
            key: _to_number(value)
            for key, value in record.items()
            if key != date_key and key not in exclude
        })

    if not rows:
        raise EmptyInputError("No data found in the records")

    frame = pd.DataFrame(rows)
    numeric = [c for c in frame.columns if pd.api.types.is_numeric_dtype(frame[c])]
    dropped = set(frame.columns) - set(numeric)
    if dropped:
        logger.warning(f"Dropping non-numeric fields: {sorted(dropped)}")

    series = Series(
        timestamp=pd.DatetimeIndex(dates),
        values=frame[numeric].astype(float),
        metadata={"source": source or "records", "loaded_at": datetime.now().isoformat(), "freq": "D"},
    )
    logger.info(f"Loaded {len(series)} observations with features {series.features}")
    return series.sorted()


def generate_sample_series(
    kind: str = "sample",
    periods: int = 100,
    seed: Optional[int] = None,
) -> Series:
    """
    Generate a synthetic daily air-quality dataset.

    The level follows a yearly sine, drops on weekends and carries uniform
    noise; pm25 is 80% of pm10 and aqi tracks pm10.

    Args:
        kind: One of 'beijing', 'london', 'delhi', 'sample'
        periods: Number of days
        seed: Random seed for reproducible data
    """
    if kind not in SAMPLE_DATASETS:
        raise ValueError(f"Unknown sample dataset: {kind}. Available: {list(SAMPLE_DATASETS)}")
    if periods < 1:
        raise ValueError(f"periods must be positive, got {periods}")

    base_value, start_year, location = SAMPLE_DATASETS[kind]
    rng = np.random.default_rng(seed)
    dates = pd.date_range(start=f"{start_year}-01-01", periods=periods, freq="D")

    seasonal = np.sin(dates.dayofyear.to_numpy() / 365 * 2 * np.pi) * 30
    weekend = np.where(dates.dayofweek.to_numpy() >= 5, -15, 0)
    noise = rng.uniform(-10, 10, periods)
    level = np.maximum(10, np.round(base_value + seasonal + weekend + noise))

    values = pd.DataFrame({
        "pm25": np.round(level * 0.8),
        "pm10": level,
        "o3": np.round(rng.uniform(0.02, 0.06, periods), 3),
        "no2": np.round(rng.uniform(20, 50, periods)),
        "so2": np.round(rng.uniform(5, 15, periods)),
        "co": np.round(rng.uniform(0.5, 2.0, periods), 1),
        "aqi": level,
    })
    return Series(
        timestamp=dates,
        values=values,
        metadata={
            "source": f"sample:{kind}",
            "location": location,
            "loaded_at": datetime.now().isoformat(),
            "freq": "D",
        },
    )
