"""
Score Functions for Ranked Nearby Search Results

A score function turns the distance and objective value of a candidate into a
single number, given the minima and maxima over all candidates of a search.
Lower scores are better.

- WEIGHTED_SUM: Normalizes distance and value to [0, 1] with the search
  bounds and combines them as `w_d * distance + w_v * value`.
- THERMAL_COMFORT: The raw objective value, for objectives that already
  price a concrete route.
"""

from enum import Enum
from typing import NamedTuple

from heatroute.core.config import WEIGHT_DISTANCE, WEIGHT_THERMAL_COMFORT


class ScoreBounds(NamedTuple):
    distance_min: float
    distance_max: float
    value_min: float
    value_max: float


class ScoreFunctionType(Enum):
    WEIGHTED_SUM = "weighted_sum"
    THERMAL_COMFORT = "thermal_comfort"


def normalize(x: float, lower: float, upper: float) -> float:
    """Maps `x` from [lower, upper] to [0, 1]; a degenerate range maps to 0."""
    if upper == lower:
        return 0.0
    return (x - lower) / (upper - lower)


class ScoreFunction(NamedTuple):
    """
    Score function of a nearby search.

    Attributes:
        score_type (ScoreFunctionType): Variant.
        weight_distance (float): Distance weight of WEIGHTED_SUM.
        weight_value (float): Objective value weight of WEIGHTED_SUM.
    """
    score_type: ScoreFunctionType = ScoreFunctionType.WEIGHTED_SUM
    weight_distance: float = WEIGHT_DISTANCE
    weight_value: float = WEIGHT_THERMAL_COMFORT

    def score(self, distance: float, value: float, bounds: ScoreBounds) -> float:
        if self.score_type is ScoreFunctionType.THERMAL_COMFORT:
            return value
        return (
            self.weight_distance * normalize(distance, bounds.distance_min, bounds.distance_max)
            + self.weight_value * normalize(value, bounds.value_min, bounds.value_max)
        )


WEIGHTED_SUM = ScoreFunction(ScoreFunctionType.WEIGHTED_SUM)
THERMAL_COMFORT = ScoreFunction(ScoreFunctionType.THERMAL_COMFORT)
