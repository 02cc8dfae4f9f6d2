"""
OSM Opening Hours Parser

Parses the commonly used subset of the OSM `opening_hours` syntax into
per-weekday time spans and resolves them into concrete opening windows for a
given date.

Supported Syntax:
-----------------
- Rules separated by `;`
- Weekday selectors: `Mo`, `Mo-Fr`, `Mo,We,Fr`, `Sa-Su`, wraparound `Fr-Mo`
- Time spans: `08:00-12:00,14:00-18:30` (`24:00` allowed as end)
- `off` / `closed`
- `24/7`

A rule without weekday selector applies to every day. A later rule replaces
the spans of the weekdays it names. Rules outside this subset (month or
holiday selectors, comments, ...) are skipped.

Usage:
------
    from heatroute.data.opening_hours import parse_opening_hours
    hours = parse_opening_hours("Mo-Fr 08:00-20:00; Sa 08:00-14:00")
    hours.windows(date(2015, 7, 4))  # [(2015-07-04 08:00, 2015-07-04 14:00)]
"""

import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

WEEKDAYS: List[str] = ["Mo", "Tu", "We", "Th", "Fr", "Sa", "Su"]

_DAY_SELECTOR = re.compile(r"^(?:Mo|Tu|We|Th|Fr|Sa|Su)(?:-(?:Mo|Tu|We|Th|Fr|Sa|Su))?"
                           r"(?:,(?:Mo|Tu|We|Th|Fr|Sa|Su)(?:-(?:Mo|Tu|We|Th|Fr|Sa|Su))?)*$")
_SPAN = re.compile(r"^(\d{1,2}):(\d{2})-(\d{1,2}):(\d{2})$")

# span in minutes since midnight, end exclusive, end <= 24 * 60
Span = Tuple[int, int]
MINUTES_PER_DAY = 24 * 60


class OpeningHours:
    """
    Weekly opening hours of a place.

    Attributes:
        text (str): The raw `opening_hours` tag value.
        days (Dict[int, List[Span]]): Disjoint, sorted spans per weekday (0 = Monday).
    """

    def __init__(self, text: str, days: Dict[int, List[Span]]) -> None:
        self.text = text
        self.days = days

    def windows(self, day: date) -> List[Tuple[datetime, datetime]]:
        """
        Resolves the opening windows on `day`.

        Args:
            day (date): The date to resolve.

        Returns:
            List[Tuple[datetime, datetime]]: Disjoint (open, close) pairs in
            chronological order; empty if the place is closed.
        """
        midnight = datetime.combine(day, time.min)
        return [
            (midnight + timedelta(minutes=start), midnight + timedelta(minutes=end))
            for start, end in self.days.get(day.weekday(), [])
        ]

    def is_open(self, t: datetime) -> bool:
        return any(start <= t < end for start, end in self.windows(t.date()))

    def __repr__(self) -> str:
        return f"OpeningHours({self.text!r})"


def parse_opening_hours(text: str) -> Optional[OpeningHours]:
    """
    Parses an OSM `opening_hours` value.

    Args:
        text (str): Value of the `opening_hours` tag.

    Returns:
        Optional[OpeningHours]: Parsed opening hours, or None if no rule
        could be parsed.
    """
    days: Dict[int, List[Span]] = {}
    parsed_any = False

    for rule in (r.strip() for r in text.split(";")):
        if not rule:
            continue
        parsed = _parse_rule(rule)
        if parsed is None:
            logger.debug(f"Skipping unsupported opening hours rule '{rule}' in '{text}'.")
            continue
        weekdays, spans = parsed
        for weekday in weekdays:
            days[weekday] = spans
        parsed_any = True

    if not parsed_any:
        return None
    return OpeningHours(text, {d: s for d, s in days.items() if s})


def _parse_rule(rule: str) -> Optional[Tuple[List[int], List[Span]]]:
    if rule == "24/7":
        return list(range(7)), [(0, MINUTES_PER_DAY)]

    parts = rule.split(None, 1)
    if _DAY_SELECTOR.match(parts[0]):
        weekdays = _parse_weekdays(parts[0])
        rest = parts[1].strip() if len(parts) > 1 else ""
    else:
        weekdays = list(range(7))
        rest = rule

    if rest in ("off", "closed"):
        return weekdays, []
    if not rest:
        return None

    spans: List[Span] = []
    for token in (t.strip() for t in rest.split(",")):
        span = _parse_span(token)
        if span is None:
            return None
        spans.append(span)
    return weekdays, _merge(spans)


def _parse_weekdays(selector: str) -> List[int]:
    weekdays: List[int] = []
    for part in selector.split(","):
        if "-" in part:
            first, last = (WEEKDAYS.index(d) for d in part.split("-"))
            # Fr-Mo wraps around the week
            length = (last - first) % 7 + 1
            weekdays.extend((first + i) % 7 for i in range(length))
        else:
            weekdays.append(WEEKDAYS.index(part))
    return sorted(set(weekdays))


def _parse_span(token: str) -> Optional[Span]:
    match = _SPAN.match(token)
    if match is None:
        return None
    h1, m1, h2, m2 = (int(g) for g in match.groups())
    if h1 > 24 or h2 > 24 or m1 > 59 or m2 > 59:
        return None
    start = h1 * 60 + m1
    end = h2 * 60 + m2
    if start >= MINUTES_PER_DAY:
        return None
    if end <= start or end > MINUTES_PER_DAY:
        # spans past midnight are clipped to the end of the day
        end = MINUTES_PER_DAY
    return start, end


def _merge(spans: List[Span]) -> List[Span]:
    merged: List[Span] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged
