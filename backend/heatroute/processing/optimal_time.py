"""
Optimal Time Finder

Searches the departure time that minimizes an objective function for walking
from a start point to a place, subject to the place's opening hours.

Core Features
-------------
- OptimalTimeFinder: Per opening window, derives the feasible departure
  window, minimizes the objective over it with a multi-start bounded Brent
  search, and routes at the optimal time.
- FinderVariant: STANDARD routes at the optimal time of any objective.
  HEURISTIC minimizes the reference path objective and repairs an arrival
  that misses the opening window once by shifting the departure earlier.
- minimize_multi_start(...): The multi-start optimizer on a float interval.

Feasible Window
---------------
For an opening window [open, close]:

    lower = max(open, now, earliest_time)
    upper = min(close - time_buffer - shortest_walking_time, latest_time)

The window is searched if lower < upper and now <= upper. The result over
all windows is the one with the smallest objective value; no result is
`None`.

Usage
-----
    objective = ObjectiveFunction(ObjectiveType.THERMAL_COMFORT, routing_helper)
    finder = OptimalTimeFinder(objective)
    result = finder.find(start, place, date(2015, 7, 1), now)
"""

import logging
import math
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np
from scipy.optimize import minimize_scalar
from shapely.geometry import Point

from heatroute.core.config import ABSOLUTE_THRESHOLD, MAX_EVAL, FinderConfig
from heatroute.core.data_types import OptimalTimeResult, Path, Place
from heatroute.core.errors import RoutingError
from heatroute.processing.objective import ObjectiveFunction, ObjectiveType, TimeLimits

logger = logging.getLogger(__name__)


class FinderVariant(Enum):
    STANDARD = "standard"
    HEURISTIC = "heuristic"


def minimize_multi_start(
    f: Callable[[float], float],
    lower: float,
    upper: float,
    starts: int,
    rng: np.random.Generator,
    max_eval: int = MAX_EVAL,
    xatol: float = ABSOLUTE_THRESHOLD
) -> Tuple[float, float]:
    """
    Minimizes `f` on `[lower, upper]` with restarted bounded Brent searches.

    Every restart draws a start point uniformly from the interval, evaluates
    it, and runs a bounded Brent search on each side of it, so each restart
    stays within `max_eval` iterations.

    Args:
        f (Callable[[float], float]): Objective; `inf` marks infeasible points.
        lower (float): Lower bound.
        upper (float): Upper bound.
        starts (int): Number of restarts.
        rng (np.random.Generator): Source of the start points.
        max_eval (int): Iteration budget per restart.
        xatol (float): Absolute tolerance on the argument. The relative
            tolerance is fixed by the bounded method (square root of the
            machine epsilon) and cannot be set.

    Returns:
        Tuple[float, float]: The best point and its value; the first point
        found wins on ties.
    """
    best_x, best_value = lower, math.inf
    maxiter = max(max_eval // 2, 1)

    def consider(x: float, value: float) -> None:
        nonlocal best_x, best_value
        if value < best_value:
            best_x, best_value = x, value

    for _ in range(starts):
        s = float(rng.uniform(lower, upper))
        consider(s, f(s))
        for a, b in ((lower, s), (s, upper)):
            if b - a <= xatol:
                continue
            res = minimize_scalar(f, bounds=(a, b), method="bounded",
                                  options={"xatol": xatol, "maxiter": maxiter})
            consider(float(res.x), float(res.fun))

    return best_x, best_value


class OptimalTimeFinder:
    """
    Finds the optimal departure time to a place.

    The finder keeps no state between calls; every setting of a search is
    passed in a `FinderConfig`.

    Attributes:
        objective (ObjectiveFunction): Function to minimize.
        variant (FinderVariant): Search flow.
    """

    def __init__(self, objective: ObjectiveFunction, variant: FinderVariant = FinderVariant.STANDARD) -> None:
        if variant is FinderVariant.HEURISTIC and objective.objective_type is not ObjectiveType.REFERENCE_PATH:
            raise ValueError("the heuristic finder requires the reference path objective")
        self.objective = objective
        self.variant = variant

    @property
    def routing_helper(self):
        return self.objective.routing_helper

    def find(
        self,
        start: Point,
        place: Place,
        day: date,
        now: datetime,
        config: FinderConfig = FinderConfig()
    ) -> Optional[OptimalTimeResult]:
        """
        Searches the optimal departure time to `place` on `day`.

        Args:
            start (Point): Start location.
            place (Place): Destination place.
            day (date): Date whose opening hours are used.
            now (datetime): Current time; no departure before it.
            config (FinderConfig): Search settings.

        Returns:
            Optional[OptimalTimeResult]: The best result over all opening
            windows, or None if no window admits a feasible departure.

        Raises:
            RoutingError: If no shortest route to the place exists.
        """
        config = config.validate()
        helper = self.routing_helper
        opening_hours = helper.osm_data.opening_hours(place.id, day)
        if not opening_hours:
            logger.debug(f"No opening hours for place {place.id} on {day}.")
            return None

        shortest = helper.shortest_route(start, place.location)
        if shortest.path is None:
            raise RoutingError(shortest.errors)
        reference = shortest.path
        min_walking_time = reference.duration

        results: List[OptimalTimeResult] = []
        for time_open, time_close in opening_hours:
            candidates = [time_open, now, config.earliest_time]
            limit_lower = max(t for t in candidates if t is not None)
            candidates = [time_close - config.time_buffer - min_walking_time, config.latest_time]
            limit_upper = min(t for t in candidates if t is not None)
            logger.debug(f"Place = {place.id}, limit_lower = {limit_lower}, limit_upper = {limit_upper}, now = {now}")

            if not (limit_lower < limit_upper and now <= limit_upper):
                continue

            limits = TimeLimits(limit_lower, limit_upper)
            optimal_time, value = self._optimal_time(start, place.location, limits, min_walking_time, reference, config)
            if math.isinf(value):
                logger.debug(f"Place = {place.id}: no feasible departure within {limits}.")
                continue

            if self.variant is FinderVariant.HEURISTIC:
                result = self._repair(start, place.location, optimal_time, value, time_open, time_close, reference, config)
            else:
                result = self._standard(start, place.location, optimal_time, value, reference)
            if result is not None:
                results.append(result)

        if not results:
            return None
        return min(results, key=lambda r: r.optimal_value)

    def _optimal_time(
        self,
        start: Point,
        destination: Point,
        limits: TimeLimits,
        min_walking_time: timedelta,
        reference: Path,
        config: FinderConfig
    ) -> Tuple[datetime, float]:
        def f(x: float) -> float:
            t = limits.lower + timedelta(seconds=x)
            value = self.objective.value(t, start, destination, limits, min_walking_time, reference)
            if value is None:
                return math.inf
            return value

        rng = np.random.default_rng(config.seed)
        upper = limits.duration.total_seconds()
        x, value = minimize_multi_start(f, 0.0, upper, config.starts, rng)
        optimal_time = limits.lower + timedelta(seconds=x)
        logger.debug(f"Optimal time {optimal_time} with value {value} in {limits}.")
        return optimal_time, value

    def _standard(
        self,
        start: Point,
        destination: Point,
        optimal_time: datetime,
        value: float,
        reference: Path
    ) -> Optional[OptimalTimeResult]:
        response = self.routing_helper.route(start, destination, optimal_time, self.objective.routing_weighting)
        if response.path is None:
            logger.warning(f"No route at optimal time {optimal_time}: {response.errors}")
            return None
        path = response.path
        return OptimalTimeResult(optimal_time, path.distance, value, path.duration, path, reference)

    def _repair(
        self,
        start: Point,
        destination: Point,
        optimal_time: datetime,
        value: float,
        time_open: datetime,
        time_close: datetime,
        reference: Path,
        config: FinderConfig
    ) -> Optional[OptimalTimeResult]:
        helper = self.routing_helper
        weighting = self.objective.weighting_type

        response = helper.route(start, destination, optimal_time, weighting)
        if response.path is None:
            logger.warning(f"No route at optimal time {optimal_time}: {response.errors}")
            return None
        path = response.path

        arrival = optimal_time + path.duration + config.time_buffer
        if time_open <= arrival <= time_close:
            return OptimalTimeResult(optimal_time, path.distance, value, path.duration, path, reference)

        # shift the departure earlier by the amount the closing time is missed, once
        delta = path.duration + config.time_buffer - (time_close - optimal_time)
        shifted_time = optimal_time - delta
        shifted = helper.route(start, destination, shifted_time, weighting).path

        # checked with the walking time from before the shift
        arrival = shifted_time + path.duration + config.time_buffer
        if shifted is not None and time_open <= arrival <= time_close:
            return OptimalTimeResult(
                shifted_time, shifted.distance,
                helper.route_weight(shifted, shifted_time, weighting),
                shifted.duration, shifted, reference
            )

        # no route or still infeasible: the shifted time is reported with the route found before the shift
        logger.debug(f"No feasible route after shifting to {shifted_time}, keeping previous route.")
        return OptimalTimeResult(
            shifted_time, path.distance,
            helper.route_weight(path, shifted_time, weighting),
            path.duration, path, reference
        )
