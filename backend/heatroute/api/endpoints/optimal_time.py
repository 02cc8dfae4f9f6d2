"""
API Endpoint for the Optimal Time Search

`GET /optimaltime` searches the places of the requested categories around a
start point and, for each of them, the departure time whose route causes the
least heat stress. Candidates are ranked by that value.

Query Parameters:
-----------------
- `start`: `lat,lon`
- `time`: `now` or `2015-08-31T10:00:00`; the current time of the search
- `place_type`: comma separated place types (see `info`)
- `max_results` (default 5), `max_distance` in meters (default 1000)
- `time_buffer`: minutes to stay at the place before it closes (default 15)
- `earliest_time`, `latest_time`: optional bounds of the departure time

Workflow:
---------
1. Parse and validate all parameters, collecting every problem.
2. Run a nearby search with the heuristic finder on the heat index weighting,
   using the shortest path as reference.
3. Serialize the ranked results, or answer `NO_RESULTS`.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from heatroute.api.parsing import (
    ErrorResponse, StationaryDataDep, bad_request, check_time_range,
    parse_list, parse_point, parse_time, path_points
)
from heatroute.core.cache import StationaryData
from heatroute.core.config import (
    DEFAULT_TIME_BUFFER, MAX_DISTANCE, MAX_RESULTS, OPENING_HOURS_KEY, PLACE_TYPES, FinderConfig
)
from heatroute.core.data_types import RankedCandidate
from heatroute.data.osm_data import place_type_filter
from heatroute.processing.nearby_search import NearbySearch, NearbySearchConfig, NearbySearchRequest
from heatroute.processing.objective import ObjectiveFunction, ObjectiveType
from heatroute.processing.optimal_time import FinderVariant, OptimalTimeFinder
from heatroute.processing.weighting import WeightingType

logger = logging.getLogger(__name__)
router = APIRouter()


class PlaceModel(BaseModel):
    id: int
    name: Optional[str] = None
    lat: float
    lon: float
    opening_hours: Optional[str] = None


class ReferencePathModel(BaseModel):
    distance: float
    duration: float
    points: List[List[float]]


class OptimalTimeResultModel(BaseModel):
    """
    One ranked place of the optimal time search.

    Attributes:
        rank (int): 1-based rank by ascending optimal value.
        score (float): Score of the place (lower is better).
        place (PlaceModel): The place.
        optimal_time (datetime): Recommended departure time.
        distance (float): Length of the recommended path in meters.
        duration (float): Walking duration in seconds.
        optimal_value (float): Heat index weighted cost of the path at `optimal_time`.
        path (List[List[float]]): Recommended path as `[lat, lon]` pairs.
        reference_path (Optional[ReferencePathModel]): The plain shortest path.
    """
    rank: int
    score: float
    place: PlaceModel
    optimal_time: datetime
    distance: float
    duration: float
    optimal_value: float
    path: List[List[float]]
    reference_path: Optional[ReferencePathModel] = None


class OptimalTimeResponse(BaseModel):
    status: str = "OK"
    status_code: int = 200
    results: List[OptimalTimeResultModel] = []
    errors: List[str] = []


def to_result_model(candidate: RankedCandidate) -> OptimalTimeResultModel:
    place = candidate.place
    result = candidate.result
    reference = result.reference_path
    return OptimalTimeResultModel(
        rank=candidate.rank,
        score=candidate.score,
        place=PlaceModel(
            id=place.id,
            name=place.name,
            lat=place.location.y,
            lon=place.location.x,
            opening_hours=place.tags.get(OPENING_HOURS_KEY)
        ),
        optimal_time=result.optimal_time,
        distance=result.distance,
        duration=result.duration.total_seconds(),
        optimal_value=result.optimal_value,
        path=path_points(result.optimal_path) if result.optimal_path is not None else [],
        reference_path=ReferencePathModel(
            distance=reference.distance,
            duration=reference.duration.total_seconds(),
            points=path_points(reference)
        ) if reference is not None else None
    )


@router.get("/optimaltime", response_model=OptimalTimeResponse, responses={400: {"model": ErrorResponse}})
def optimal_time(
    start: Optional[str] = None,
    time: Optional[str] = None,
    place_type: Optional[str] = None,
    max_results: int = MAX_RESULTS,
    max_distance: float = MAX_DISTANCE,
    time_buffer: int = int(DEFAULT_TIME_BUFFER.total_seconds() // 60),
    earliest_time: Optional[str] = None,
    latest_time: Optional[str] = None,
    data: StationaryData = StationaryDataDep
):
    helper = data.routing_helper
    first, last = helper.time_range()
    messages: List[str] = []

    start_point = None
    try:
        start_point = parse_point(start, "start")
    except ValueError as e:
        messages.append(str(e))

    now = None
    try:
        now = parse_time(time)
        check_time_range(now, first, last)
    except ValueError as e:
        messages.append(str(e))

    bounds = {}
    for name, value in (("earliest_time", earliest_time), ("latest_time", latest_time)):
        try:
            bounds[name] = parse_time(value, name, nullable=True)
        except ValueError as e:
            messages.append(str(e))

    place_types = parse_list(place_type)
    unknown = [p for p in place_types if p not in PLACE_TYPES]
    if not place_types:
        messages.append(f"'place_type' is required; supported are {', '.join(sorted(PLACE_TYPES))}")
    elif unknown:
        messages.append(
            f"unknown place type(s) {', '.join(unknown)}; supported are {', '.join(sorted(PLACE_TYPES))}"
        )

    if max_results < 1:
        messages.append(f"'max_results' ({max_results}) must be at least 1")
    if max_distance <= 0:
        messages.append(f"'max_distance' ({max_distance}) must be positive")
    if time_buffer < 0:
        messages.append(f"'time_buffer' ({time_buffer}) must be non negative")

    finder_config = None
    if time_buffer >= 0 and "earliest_time" in bounds and "latest_time" in bounds:
        try:
            finder_config = FinderConfig(
                time_buffer=timedelta(minutes=time_buffer),
                earliest_time=bounds["earliest_time"],
                latest_time=bounds["latest_time"]
            ).validate()
        except ValueError as e:
            messages.append(str(e))

    if messages:
        return bad_request(messages)

    objective = ObjectiveFunction(ObjectiveType.REFERENCE_PATH, helper, WeightingType.HEAT_INDEX)
    search = NearbySearch(OptimalTimeFinder(objective, FinderVariant.HEURISTIC))
    request = NearbySearchRequest(
        start=start_point,
        now=now,
        predicate=place_type_filter(place_types),
        max_results=max_results,
        config=NearbySearchConfig(max_distance=max_distance, finder_config=finder_config)
    )
    response = search.search(request)

    errors = [str(e) for e in response.errors]
    if not response.results:
        logger.info(f"No results for {place_types} around {start} at {now}.")
        return OptimalTimeResponse(status="NO_RESULTS", errors=errors)

    return OptimalTimeResponse(results=[to_result_model(c) for c in response.results], errors=errors)
