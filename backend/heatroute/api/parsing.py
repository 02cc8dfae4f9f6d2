"""
Query Parameter Parsing for the Routing API

Helpers shared by the endpoints to parse query parameters and to convert
paths into JSON friendly structures. Parsing functions raise `ValueError`
with a user facing message; endpoints collect these messages and answer
with a single 400 response.
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from shapely.geometry import Point

from heatroute.core.cache import StationaryData, stationary_data
from heatroute.core.data_types import Path

logger = logging.getLogger(__name__)


def get_stationary_data() -> StationaryData:
    """Dependency returning the loaded session data."""
    stationary_data.load()
    return stationary_data

StationaryDataDep = Depends(get_stationary_data)


def parse_point(value: Optional[str], name: str) -> Point:
    """Parses `lat,lon` into a Point (x = longitude, y = latitude)."""
    try:
        lat_str, lon_str = (value or "").split(",")
        lat, lon = float(lat_str), float(lon_str)
    except ValueError:
        raise ValueError(
            f"{name} ({value}) could not be parsed; '{name}' must be a pair of latitude "
            f"and longitude separated by a comma (','), e.g. '49.0118083,8.4251357'"
        ) from None
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        raise ValueError(f"{name} ({value}) is not a valid coordinate")
    return Point(lon, lat)


def parse_time(value: Optional[str], name: str = "time", nullable: bool = False) -> Optional[datetime]:
    """Parses `now`, an ISO date time (`2015-08-31T10:00:00`) or, if nullable, `null`."""
    if value is None or (nullable and value.strip().lower() in ("", "null")):
        if nullable:
            return None
        raise ValueError(f"'{name}' is required")
    if value.strip().lower() == "now":
        return datetime.now().replace(microsecond=0)
    try:
        # weather and opening hours are local wall clock times
        return datetime.fromisoformat(value.strip()).replace(tzinfo=None)
    except ValueError:
        allowed = "'now', 'null'" if nullable else "'now'"
        raise ValueError(
            f"'{name}' ({value}) could not be parsed; it must be either {allowed} "
            f"or in the form '2015-08-31T10:00:00'"
        ) from None


def parse_list(value: Optional[str]) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


def path_points(path: Path) -> List[List[float]]:
    """Path geometry as `[lat, lon]` pairs."""
    return [[p.y, p.x] for p in path.points]


class ErrorResponse(BaseModel):
    status: str
    status_code: int
    messages: List[str]


def bad_request(messages: List[str]) -> JSONResponse:
    """Single 400 response carrying every validation message."""
    logger.info(f"Bad request: {messages}")
    body = ErrorResponse(status="BAD_REQUEST", status_code=400, messages=messages)
    return JSONResponse(status_code=400, content=body.model_dump())


def check_time_range(t: datetime, first: datetime, last: datetime, name: str = "time") -> None:
    """Raises `ValueError` unless `first <= t < last`."""
    if not first <= t < last:
        raise ValueError(
            f"'{name}' ({t.isoformat()}) is not within the supported time range "
            f"({first.isoformat()} - {last.isoformat()}); use 'info' to receive the supported time range"
        )
