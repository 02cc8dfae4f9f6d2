"""
Error Taxonomy for Heat Stress Routing

Coverage gaps (no segment match, no weather for a time) are not errors: they
are recovered where they occur by falling back to plain distance. Infeasible
searches return `None` or empty lists. The exceptions below cover the rest.

- Malformed input (segment weather rows, weather CSV, OSM XML) aborts loading.
- A negative edge cost means a matcher or store bug and aborts the request.
- Routing failures of the path engine travel up as a typed error list.
"""

from typing import List, Sequence


class HeatRouteError(Exception):
    """Base class of all errors raised by this package."""


class WeatherRangeError(HeatRouteError, ValueError):
    """A weather lookup was requested outside the covered time range."""


class WeatherParserError(HeatRouteError, ValueError):
    """The weather station file could not be parsed."""


class SegmentParserError(HeatRouteError, ValueError):
    """A row of the segment weather file could not be parsed."""


class UnsupportedTimeRangeError(SegmentParserError):
    """A segment row carries a time range label other than morning/evening."""


class OSMDataError(HeatRouteError, ValueError):
    """The OSM extract could not be read."""


class NegativeCostError(HeatRouteError, RuntimeError):
    """An edge cost came out negative; the segment data or matcher is inconsistent."""


class RoutingError(HeatRouteError):
    """
    The path engine failed to produce a route.

    Attributes:
        errors (List[Exception]): Errors reported by the path engine.
    """

    def __init__(self, errors: Sequence[Exception]) -> None:
        self.errors: List[Exception] = list(errors)
        message = "; ".join(str(e) for e in self.errors) or "routing failed"
        super().__init__(message)
