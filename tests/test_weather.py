from datetime import datetime, timedelta

import pytest

from heatroute.core.data_types import WeatherSample
from heatroute.core.errors import WeatherParserError, WeatherRangeError
from heatroute.data.weather import WeatherSeries, parse_weather_file


def test_parse_weather_file(weather):
    assert len(weather) == 6
    assert weather.time_range() == (datetime(2015, 8, 1, 0), datetime(2015, 8, 1, 23))


def test_sample_values_are_returned_verbatim(weather):
    t = datetime(2015, 8, 1, 14)
    assert weather.temperature(t) == 34.0
    assert weather.relative_humidity(t) == 35.0


def test_interpolated_values_lie_between_neighbours(weather):
    t = datetime(2015, 8, 1, 12)
    assert weather.temperature(t) == pytest.approx(31.0)
    assert 28.0 < weather.temperature(datetime(2015, 8, 1, 12, 59)) < 34.0
    assert 35.0 < weather.relative_humidity(t) < 55.0


def test_range_excludes_last_sample(weather):
    assert weather.in_range(weather.first)
    assert not weather.in_range(weather.last)
    assert weather.in_range(weather.last - timedelta(seconds=1))
    assert not weather.in_range(datetime(2015, 7, 31, 23, 59))
    assert not weather.in_range(None)


def test_lookup_at_last_sample_raises():
    series = WeatherSeries([
        WeatherSample(datetime(2015, 8, 1, 0), 21.0, 80.0),
        WeatherSample(datetime(2015, 8, 1, 1), 22.0, 75.0),
    ])
    assert series.temperature(datetime(2015, 8, 1, 0)) == 21.0
    with pytest.raises(WeatherRangeError):
        series.temperature(datetime(2015, 8, 1, 1))


def test_lookup_outside_range_raises(weather):
    with pytest.raises(WeatherRangeError):
        weather.temperature(datetime(2015, 8, 2, 0, 1))


def test_heat_index_outside_domain_is_none():
    series = WeatherSeries([
        WeatherSample(datetime(2015, 8, 1, 0), 15.0, 50.0),
        WeatherSample(datetime(2015, 8, 1, 1), 16.0, 50.0),
    ])
    assert series.heat_index(datetime(2015, 8, 1, 0)) is None


def test_first_duplicate_sample_wins():
    t = datetime(2015, 8, 1, 0)
    series = WeatherSeries([
        WeatherSample(t, 25.0, 50.0),
        WeatherSample(t, 30.0, 60.0),
        WeatherSample(datetime(2015, 8, 1, 1), 26.0, 50.0),
    ])
    assert len(series) == 2
    assert series.temperature(t) == 25.0


def test_incomplete_rows_are_skipped(tmp_path):
    path = tmp_path / "weather.csv"
    path.write_text(
        "STATIONS_ID;MESS_DATUM;LUFTTEMPERATUR;REL_FEUCHTE\n"
        "4177;2015080100;21.0;80.0\n"
        "4177;2015080101;;80.0\n"
        "4177;2015080102;22.0;75.0\n",
        encoding="utf-8"
    )
    series = parse_weather_file(path)
    assert len(series) == 2


def test_missing_column_raises(tmp_path):
    path = tmp_path / "weather.csv"
    path.write_text("MESS_DATUM;LUFTTEMPERATUR\n2015080100;21.0\n", encoding="utf-8")
    with pytest.raises(WeatherParserError):
        parse_weather_file(path)


def test_malformed_value_raises(tmp_path):
    path = tmp_path / "weather.csv"
    path.write_text("MESS_DATUM;LUFTTEMPERATUR;REL_FEUCHTE\n2015080100;warm;80\n", encoding="utf-8")
    with pytest.raises(WeatherParserError):
        parse_weather_file(path)
