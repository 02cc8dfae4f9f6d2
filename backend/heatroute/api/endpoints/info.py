"""
API Endpoint for Service Information

`GET /info` reports the time range covered by the loaded weather data and
the place types the optimal time search accepts.
"""

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from heatroute.api.parsing import StationaryDataDep
from heatroute.core.cache import StationaryData
from heatroute.core.config import PLACE_TYPES
from heatroute.processing.weighting import WeightingType

logger = logging.getLogger(__name__)
router = APIRouter()


class TimeRangeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: datetime = Field(alias="from")
    to: datetime


class InfoResponse(BaseModel):
    """
    Response model of the info endpoint.

    Attributes:
        status (str): Always "OK".
        status_code (int): HTTP status code.
        time_range (TimeRangeModel): First and last supported time.
        place_types (List[str]): Accepted `place_type` values.
        weightings (List[str]): Accepted `weighting` values.
    """
    status: str = "OK"
    status_code: int = 200
    time_range: TimeRangeModel
    place_types: List[str]
    weightings: List[str]


@router.get("/info", response_model=InfoResponse)
def info(data: StationaryData = StationaryDataDep) -> InfoResponse:
    first, last = data.routing_helper.time_range()
    return InfoResponse(
        time_range=TimeRangeModel(from_=first, to=last),
        place_types=sorted(PLACE_TYPES),
        weightings=[w.value for w in WeightingType]
    )
