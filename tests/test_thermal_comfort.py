from datetime import datetime

import pytest

from heatroute.processing.thermal_comfort import (
    ThermalComfortType, heat_index, heat_index_or_temperature, thermal_comfort
)


def test_heat_index_at_reference_humidity():
    # at the reference vapor pressure the apparent temperature is close to the air temperature
    assert heat_index(30.0, 40.0) == pytest.approx(30.0, abs=1.5)


def test_heat_index_grows_with_humidity():
    assert heat_index(30.0, 20.0) < heat_index(30.0, 50.0) < heat_index(30.0, 90.0)


@pytest.mark.parametrize("temperature, humidity", [(19.9, 50.0), (50.1, 50.0), (30.0, -1.0), (30.0, 100.5)])
def test_heat_index_outside_domain_raises(temperature, humidity):
    with pytest.raises(ValueError):
        heat_index(temperature, humidity)


def test_heat_index_or_temperature_falls_back():
    assert heat_index_or_temperature(15.0, 50.0) == 15.0
    assert heat_index_or_temperature(30.0, 50.0) == heat_index(30.0, 50.0)


def test_thermal_comfort(weather):
    assert thermal_comfort(weather, datetime(2015, 8, 1, 14)) == 34.0
    # 20.5 °C at 06:00 is above the comfort floor, 19 °C would not be
    assert thermal_comfort(weather, datetime(2015, 8, 1, 6)) == 20.5
    assert thermal_comfort(weather, datetime(2015, 8, 1, 14), ThermalComfortType.HEAT_INDEX) == \
        pytest.approx(heat_index(34.0, 35.0))
    assert thermal_comfort(weather, datetime(2015, 8, 2, 14)) is None
