"""
Thermal Comfort Measures

This module provides the heat index approximation by Steadman and the
station-level thermal comfort values used by the weather-only objective.

Functions
---------
- heat_index(...): Steadman's heat index for a temperature/humidity pair.
- is_valid_temperature(...), is_valid_humidity(...): Validity domain checks.
- heat_index_or_temperature(...): Heat index, falling back to the raw temperature.
- thermal_comfort(...): Comfort value of the station weather at a point in time.

Key Concepts
------------
- The heat index is only defined for temperatures between 20 °C and 50 °C and
  relative humidity between 0 % and 100 %.
- Values below the comfort floor (20) are reported as the floor.

Usage
-----
    from heatroute.processing.thermal_comfort import heat_index
    heat_index(30.0, 60.0)
"""

import math
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from heatroute.core.config import (
    COMFORT_HEAT_INDEX, COMFORT_TEMPERATURE,
    HEAT_INDEX_MAX_HUMIDITY, HEAT_INDEX_MAX_TEMPERATURE,
    HEAT_INDEX_MIN_HUMIDITY, HEAT_INDEX_MIN_TEMPERATURE
)

if TYPE_CHECKING:
    from heatroute.data.weather import WeatherSeries


class ThermalComfortType(Enum):
    TEMPERATURE = "temperature"
    HEAT_INDEX = "heatindex"


def is_valid_temperature(temperature: float) -> bool:
    return HEAT_INDEX_MIN_TEMPERATURE <= temperature <= HEAT_INDEX_MAX_TEMPERATURE

def is_valid_humidity(humidity: float) -> bool:
    return HEAT_INDEX_MIN_HUMIDITY <= humidity <= HEAT_INDEX_MAX_HUMIDITY


def heat_index(temperature: float, humidity: float) -> float:
    """
    Computes the heat index after Steadman (1979).

    Args:
        temperature (float): Air temperature in °C (20 to 50).
        humidity (float): Relative humidity in percent (0 to 100).

    Returns:
        float: The apparent temperature.

    Raises:
        ValueError: If temperature or humidity are outside the validity domain.
    """
    if not is_valid_temperature(temperature):
        raise ValueError("heat index is only defined for temperatures between 20°C and 50°C")
    if not is_valid_humidity(humidity):
        raise ValueError("humidity must be a value between 0 and 100")

    er = 1.6  # reference vapor pressure in kPa
    tr = 0.8841 * temperature + 0.19
    p = 0.0196 * temperature + 0.9031
    es = 0.611 * math.exp(5423 * ((1 / 273.15) - (1 / (temperature + 273.15))))
    return tr + (temperature - tr) * ((humidity * es) / (100 * er)) ** p


def heat_index_or_temperature(temperature: float, humidity: float) -> float:
    """Heat index inside its validity domain, the raw temperature outside."""
    if is_valid_temperature(temperature) and is_valid_humidity(humidity):
        return heat_index(temperature, humidity)
    return temperature


def thermal_comfort(
    weather: "WeatherSeries",
    t: datetime,
    kind: ThermalComfortType = ThermalComfortType.TEMPERATURE
) -> Optional[float]:
    """
    Thermal comfort of the station weather at time `t`.

    Args:
        weather (WeatherSeries): Station weather series.
        t (datetime): Point in time.
        kind (ThermalComfortType): Measure to use.

    Returns:
        Optional[float]: The comfort value (never below the comfort floor),
        or None if `t` is not covered by the weather series.
    """
    if not weather.in_range(t):
        return None

    temperature = weather.temperature(t)
    if kind is ThermalComfortType.TEMPERATURE:
        return max(temperature, COMFORT_TEMPERATURE)

    value = heat_index_or_temperature(temperature, weather.relative_humidity(t))
    return max(value, COMFORT_HEAT_INDEX)
