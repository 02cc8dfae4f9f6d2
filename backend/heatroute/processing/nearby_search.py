"""
Nearby Search

Finds the places of a category around a start point, searches the optimal
departure time for each of them and returns them ranked by objective value.

Key Responsibilities:
---------------------
- Query the place index for the nearest candidates passing a predicate
  (category match and declared opening hours).
- Run the optimal time finder per candidate, optionally on a thread pool.
- Drop candidates without a result; candidates whose routing fails are
  dropped too and their errors reported in the response.
- Rank the survivors by ascending objective value and score them.

Usage:
------
    search = NearbySearch(finder)
    results = search.find(start, place_type_filter(["supermarket"]), now, max_results=5)
    best = results[0] if results else None

Notes:
------
- Ranking is stable: candidates with equal values keep the distance order of
  the place index.
- Stores, graph and finder are only read, so candidate evaluations share them.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from typing import List, NamedTuple, Optional, Tuple

from shapely.geometry import Point

from heatroute.core.config import (
    MAX_DISTANCE, MAX_RESULTS, MAX_WORKERS, PARALLEL_NEARBY_SEARCH, FinderConfig
)
from heatroute.core.data_types import OptimalTimeResult, Place, RankedCandidate
from heatroute.core.errors import RoutingError
from heatroute.core.logger import set_place_context
from heatroute.data.osm_data import PlacePredicate, has_opening_hours
from heatroute.processing.objective import ObjectiveType
from heatroute.processing.optimal_time import OptimalTimeFinder
from heatroute.processing.scoring import (
    THERMAL_COMFORT, WEIGHTED_SUM, ScoreBounds, ScoreFunction
)

logger = logging.getLogger(__name__)


class NearbySearchConfig(NamedTuple):
    """
    Immutable settings for one nearby search.

    Attributes:
        max_distance (float): Search radius in meters.
        score_function (Optional[ScoreFunction]): Score function; None picks
            the default of the finder's objective.
        parallel (bool): Evaluate candidates on a thread pool.
        max_workers (int): Size of the thread pool.
        finder_config (FinderConfig): Settings passed to every finder call.
    """
    max_distance: float = MAX_DISTANCE
    score_function: Optional[ScoreFunction] = None
    parallel: bool = PARALLEL_NEARBY_SEARCH
    max_workers: int = MAX_WORKERS
    finder_config: FinderConfig = FinderConfig()


class NearbySearchRequest(NamedTuple):
    start: Point
    now: datetime
    predicate: PlacePredicate
    max_results: int = MAX_RESULTS
    config: NearbySearchConfig = NearbySearchConfig()


class NearbySearchResponse(NamedTuple):
    request: NearbySearchRequest
    results: List[RankedCandidate]
    errors: List[Exception]

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0


class NearbySearch:
    """
    Ranked optimal time search over the places around a start point.

    Attributes:
        finder (OptimalTimeFinder): Finder run for every candidate.
    """

    def __init__(self, finder: OptimalTimeFinder) -> None:
        self.finder = finder

    @property
    def osm_data(self):
        return self.finder.routing_helper.osm_data

    def default_score_function(self) -> ScoreFunction:
        if self.finder.objective.objective_type is ObjectiveType.THERMAL_COMFORT:
            return WEIGHTED_SUM
        return THERMAL_COMFORT

    def find(
        self,
        start: Point,
        predicate: PlacePredicate,
        now: datetime,
        max_results: int = MAX_RESULTS,
        config: NearbySearchConfig = NearbySearchConfig()
    ) -> List[RankedCandidate]:
        return self.search(NearbySearchRequest(start, now, predicate, max_results, config)).results

    def find_best(
        self,
        start: Point,
        predicate: PlacePredicate,
        now: datetime,
        max_results: int = MAX_RESULTS,
        config: NearbySearchConfig = NearbySearchConfig()
    ) -> Optional[RankedCandidate]:
        results = self.find(start, predicate, now, max_results, config)
        return results[0] if results else None

    def search(self, request: NearbySearchRequest) -> NearbySearchResponse:
        """
        Runs a nearby search.

        Args:
            request (NearbySearchRequest): Start, time, predicate and settings.

        Returns:
            NearbySearchResponse: Ranked results (possibly empty) and the
            routing errors of dropped candidates.
        """
        config = request.config
        logger.debug(f"Start = {request.start}, now = {request.now}, max_results = {request.max_results}")

        places = self.osm_data.k_nearest_neighbor(
            request.start, request.max_results, config.max_distance,
            lambda p: request.predicate(p) and has_opening_hours(p)
        )
        logger.debug(f"{len(places)} place(s) found")

        day = request.now.date()
        evaluate = lambda place: self._evaluate(place, request.start, day, request.now, config.finder_config)
        if config.parallel and len(places) > 1:
            with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
                evaluated = list(executor.map(evaluate, places))
        else:
            evaluated = [evaluate(place) for place in places]

        survivors: List[Tuple[Place, OptimalTimeResult]] = []
        errors: List[Exception] = []
        for place, result, error in evaluated:
            if error is not None:
                errors.append(error)
            elif result is not None:
                survivors.append((place, result))

        score_function = config.score_function or self.default_score_function()
        results = rank(survivors, score_function)
        logger.info(f"Nearby search: {len(places)} candidate(s), {len(results)} result(s), {len(errors)} error(s).")
        return NearbySearchResponse(request, results, errors)

    def _evaluate(
        self,
        place: Place,
        start: Point,
        day: date,
        now: datetime,
        finder_config: FinderConfig
    ) -> Tuple[Place, Optional[OptimalTimeResult], Optional[RoutingError]]:
        set_place_context(place.id)
        try:
            result = self.finder.find(start, place, day, now, finder_config)
            logger.debug(f"Optimal time result: {result}")
            return place, result, None
        except RoutingError as e:
            logger.warning(f"Dropping place {place.id}: {e}")
            return place, None, e
        finally:
            set_place_context(None)


def rank(candidates: List[Tuple[Place, OptimalTimeResult]], score_function: ScoreFunction) -> List[RankedCandidate]:
    """
    Ranks candidates by ascending optimal value and scores them.

    Args:
        candidates (List[Tuple[Place, OptimalTimeResult]]): Places with their results.
        score_function (ScoreFunction): Scoring applied with the bounds of all candidates.

    Returns:
        List[RankedCandidate]: Candidates ordered by optimal value, ranks 1..K;
        equal values keep their input order.
    """
    if not candidates:
        return []

    distances = [r.distance for _, r in candidates]
    values = [r.optimal_value for _, r in candidates]
    bounds = ScoreBounds(min(distances), max(distances), min(values), max(values))
    logger.debug(f"Score bounds: {bounds}")

    ordered = sorted(candidates, key=lambda c: c[1].optimal_value)
    return [
        RankedCandidate(place, i, score_function.score(result.distance, result.optimal_value, bounds), result)
        for i, (place, result) in enumerate(ordered, start=1)
    ]
