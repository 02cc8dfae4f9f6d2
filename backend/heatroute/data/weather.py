"""
Weather Station Series

This module holds the time series of a weather station (air temperature and
relative humidity) and parses it from the hourly station CSV.

Features:
---------
- `WeatherSeries`: Time-ordered, read-only store of `WeatherSample`s with
  exact and linearly interpolated lookups and a derived heat index.
- `parse_weather_file(...)`: Reads the station CSV into a `WeatherSeries`.

File Format:
------------
Semicolon separated, one header line, surrounding spaces ignored:

    MESS_DATUM;LUFTTEMPERATUR;REL_FEUCHTE
    2015070112;  28.4;  41.0

`MESS_DATUM` uses the format `yyyyMMddHH`.

Usage:
------
    from heatroute.data.weather import parse_weather_file
    weather = parse_weather_file(WEATHER_FILE)
    weather.temperature(datetime(2015, 7, 1, 12, 30))
"""


import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from heatroute.core.data_types import WeatherSample
from heatroute.core.errors import WeatherParserError, WeatherRangeError
from heatroute.processing.thermal_comfort import (
    heat_index, is_valid_humidity, is_valid_temperature
)

logger = logging.getLogger(__name__)

DATE_COL = "MESS_DATUM"
TEMPERATURE_COL = "LUFTTEMPERATUR"
RELATIVE_HUMIDITY_COL = "REL_FEUCHTE"
DATE_FORMAT = "%Y%m%d%H"
DELIMITER = ";"


class WeatherSeries:
    """
    Read-only weather series of one station.

    Lookups are defined on the half-open interval from the first sample up to,
    but not including, the last one. A time matching a sample returns that
    sample's values unchanged; any other time is interpolated linearly
    between the two samples bracketing it.

    Attributes:
        samples (List[WeatherSample]): Samples in strictly increasing time order.
    """

    def __init__(self, samples: Iterable[WeatherSample]) -> None:
        unique = {}
        for sample in samples:
            # first sample wins on duplicate times
            unique.setdefault(sample.time, sample)

        if not unique:
            raise ValueError("a weather series needs at least one sample")

        self.samples: List[WeatherSample] = [unique[t] for t in sorted(unique)]
        self._index = {sample.time: sample for sample in self.samples}
        self._origin: datetime = self.samples[0].time
        self._x = np.array([self._seconds(s.time) for s in self.samples], dtype=float)
        self._temperature = np.array([s.temperature for s in self.samples], dtype=float)
        self._humidity = np.array([s.relative_humidity for s in self.samples], dtype=float)

    def __len__(self) -> int:
        return len(self.samples)

    def _seconds(self, t: datetime) -> float:
        return (t - self._origin).total_seconds()

    @property
    def first(self) -> datetime:
        return self.samples[0].time

    @property
    def last(self) -> datetime:
        return self.samples[-1].time

    def time_range(self) -> Tuple[datetime, datetime]:
        return self.first, self.last

    def in_range(self, t: Optional[datetime]) -> bool:
        return t is not None and self.first <= t < self.last

    def _check_range(self, t: datetime) -> None:
        if not self.in_range(t):
            raise WeatherRangeError(
                f"time {t} is not within time range ({self.first} - {self.last})"
            )

    def _interpolate(self, t: datetime, values: np.ndarray, field: str) -> float:
        self._check_range(t)
        sample = self._index.get(t)
        if sample is not None:
            return float(getattr(sample, field))
        return float(np.interp(self._seconds(t), self._x, values))

    def temperature(self, t: datetime) -> float:
        """Air temperature in °C at `t`. Raises `WeatherRangeError` outside the series."""
        return self._interpolate(t, self._temperature, "temperature")

    def relative_humidity(self, t: datetime) -> float:
        """Relative humidity in percent at `t`. Raises `WeatherRangeError` outside the series."""
        return self._interpolate(t, self._humidity, "relative_humidity")

    def heat_index(self, t: datetime) -> Optional[float]:
        """
        Heat index at `t`.

        Returns:
            Optional[float]: The heat index, or None if temperature or humidity
            are outside the heat index validity domain.

        Raises:
            WeatherRangeError: If `t` is not covered by the series.
        """
        temperature = self.temperature(t)
        humidity = self.relative_humidity(t)
        if is_valid_temperature(temperature) and is_valid_humidity(humidity):
            return heat_index(temperature, humidity)
        return None

    def weather_record(self, t: datetime) -> WeatherSample:
        return WeatherSample(t, self.temperature(t), self.relative_humidity(t))

    def __repr__(self) -> str:
        return f"WeatherSeries({len(self)} samples, {self.first} - {self.last})"


def parse_weather_file(path: Union[str, Path]) -> WeatherSeries:
    """
    Parses a weather station CSV file.

    Rows missing the date, temperature or humidity are skipped.

    Args:
        path (Union[str, Path]): Location of the CSV file.

    Returns:
        WeatherSeries: The parsed series.

    Raises:
        WeatherParserError: If the file lacks the required columns, contains
            malformed values, or yields no samples.
    """
    logger.info(f"Parsing weather data from {path}...")

    try:
        df = pd.read_csv(
            path,
            sep=DELIMITER,
            dtype=str,
            skipinitialspace=True,
            encoding="utf-8"
        )
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise WeatherParserError(f"could not read weather file {path}: {e}") from e

    df.columns = [c.strip() for c in df.columns]
    missing = {DATE_COL, TEMPERATURE_COL, RELATIVE_HUMIDITY_COL} - set(df.columns)
    if missing:
        raise WeatherParserError(f"weather file {path} is missing columns {sorted(missing)}")

    df = df[[DATE_COL, TEMPERATURE_COL, RELATIVE_HUMIDITY_COL]].apply(lambda col: col.str.strip())
    complete = df.replace("", np.nan).dropna()
    skipped = len(df) - len(complete)
    if skipped:
        logger.warning(f"{skipped} record(s) skipped while parsing")

    try:
        times = pd.to_datetime(complete[DATE_COL], format=DATE_FORMAT)
        temperatures = complete[TEMPERATURE_COL].astype(float)
        humidities = complete[RELATIVE_HUMIDITY_COL].astype(float)
    except ValueError as e:
        raise WeatherParserError(f"malformed record in weather file {path}: {e}") from e

    samples = [
        WeatherSample(ts.to_pydatetime(), float(temp), float(rh))
        for ts, temp, rh in zip(times, temperatures, humidities)
    ]
    if not samples:
        raise WeatherParserError(f"weather file {path} contains no records")

    series = WeatherSeries(samples)
    logger.info(f"Weather data parsed (time range: {series.first} - {series.last}).")
    return series
