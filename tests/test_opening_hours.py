from datetime import date, datetime

from heatroute.data.opening_hours import parse_opening_hours

SATURDAY = date(2015, 8, 1)
SUNDAY = date(2015, 8, 2)
MONDAY = date(2015, 8, 3)


def test_weekday_ranges_and_off():
    hours = parse_opening_hours("Mo-Fr 08:00-18:00; Sa 09:00-13:00; Su off")
    assert hours.windows(MONDAY) == [(datetime(2015, 8, 3, 8), datetime(2015, 8, 3, 18))]
    assert hours.windows(SATURDAY) == [(datetime(2015, 8, 1, 9), datetime(2015, 8, 1, 13))]
    assert hours.windows(SUNDAY) == []


def test_split_day():
    hours = parse_opening_hours("Mo-Sa 09:00-12:00,14:00-20:00")
    assert hours.windows(SATURDAY) == [
        (datetime(2015, 8, 1, 9), datetime(2015, 8, 1, 12)),
        (datetime(2015, 8, 1, 14), datetime(2015, 8, 1, 20)),
    ]
    assert hours.is_open(datetime(2015, 8, 1, 11, 59))
    assert not hours.is_open(datetime(2015, 8, 1, 12, 0))


def test_always_open():
    hours = parse_opening_hours("24/7")
    assert hours.windows(SUNDAY) == [(datetime(2015, 8, 2), datetime(2015, 8, 3))]


def test_wrapping_weekday_range():
    hours = parse_opening_hours("Fr-Mo 10:00-16:00")
    assert hours.windows(SUNDAY) and hours.windows(MONDAY)
    assert hours.windows(date(2015, 8, 4)) == []


def test_span_past_midnight_is_clipped():
    hours = parse_opening_hours("Sa 18:00-02:00")
    assert hours.windows(SATURDAY) == [(datetime(2015, 8, 1, 18), datetime(2015, 8, 2))]


def test_overlapping_spans_are_merged():
    hours = parse_opening_hours("08:00-12:00,11:00-14:00")
    assert hours.windows(MONDAY) == [(datetime(2015, 8, 3, 8), datetime(2015, 8, 3, 14))]


def test_unparsable_rules_are_skipped():
    hours = parse_opening_hours("Mo-Su 08:00-20:00; PH off; sunrise-sunset")
    assert len(hours.windows(SUNDAY)) == 1
    assert parse_opening_hours("by appointment") is None
