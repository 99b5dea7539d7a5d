"""Static ZIP geocoding and unit conversions."""
from __future__ import annotations

from typing import Dict, Optional, Tuple

KM_PER_MILE = 1.60934

# Minimal lookup table; extend as coverage grows.
ZIP_COORDINATES: Dict[str, Tuple[float, float]] = {
    "94103": (37.7725, -122.4091),
    "94107": (37.7609, -122.4015),
    "10001": (40.7506, -73.9970),
}


def zip_to_lat_lon(zip_code: str | None) -> Optional[Tuple[float, float]]:
    if not zip_code:
        return None
    return ZIP_COORDINATES.get(zip_code.strip())


def km_to_miles(km: float) -> float:
    return km / KM_PER_MILE