"""
Segment Weather Store and Parser

This module loads the precomputed segment weather file and provides indexed,
direction-insensitive access to the measured temperature deltas per way segment.

Features:
---------
- `SegmentStore`: Multi-map from `SegmentId` to `SegmentRecord`s.
- `parse_segment_file(...)`: Reads the pipe separated file into a `SegmentStore`.
- `parse_time_range(...)`: Maps a time range label to its half-day window.

File Format:
------------
Pipe separated with a header line. Canonical column names:

    way_id|from_node_id|to_node_id|distance|temperature_delta|time_range

The legacy names `from.osm.id`, `to.osm.id`, `dist` and `delta_temp` are
accepted as well. Consecutive rows sharing way, nodes and time range form one
record whose slices keep the row order.

Time Ranges:
------------
- `morning` (or `morgen`): 00:00 to 12:00
- `evening` (or `abend`): 12:00 to end of day

Usage:
------
    from heatroute.data.segments import parse_segment_file
    store = parse_segment_file(SEGMENTS_FILE)
    record = store.segment(SegmentId(4711, (1, 2)), time(14, 30))
"""


import logging
from collections import defaultdict
from datetime import time
from pathlib import Path
from typing import DefaultDict, Dict, Iterable, List, Optional, Union

import pandas as pd

from heatroute.core.data_types import SegmentId, SegmentRecord, TimeWindow
from heatroute.core.errors import SegmentParserError, UnsupportedTimeRangeError

logger = logging.getLogger(__name__)

DELIMITER = "|"

WAY_ID_COL = "way_id"
FROM_COL = "from_node_id"
TO_COL = "to_node_id"
DIST_COL = "distance"
TEMPERATURE_DELTA_COL = "temperature_delta"
TIME_COL = "time_range"

LEGACY_COLUMNS: Dict[str, str] = {
    "from.osm.id": FROM_COL,
    "to.osm.id": TO_COL,
    "dist": DIST_COL,
    "delta_temp": TEMPERATURE_DELTA_COL,
}
REQUIRED_COLUMNS = [WAY_ID_COL, FROM_COL, TO_COL, DIST_COL, TEMPERATURE_DELTA_COL, TIME_COL]

MORNING = TimeWindow(time.min, time(12, 0))
EVENING = TimeWindow(time(12, 0), None)

TIME_RANGES: Dict[str, TimeWindow] = {
    "morning": MORNING,
    "morgen": MORNING,
    "evening": EVENING,
    "abend": EVENING,
}


class SegmentStore:
    """
    Read-only multi-map from `SegmentId` to `SegmentRecord`.

    Records are kept in insertion order per id. Lookups are direction
    insensitive: the records stored under the swapped id are returned after
    the records stored under the id itself.
    """

    def __init__(self, records: Iterable[SegmentRecord] = ()) -> None:
        segments: DefaultDict[SegmentId, List[SegmentRecord]] = defaultdict(list)
        for record in records:
            segments[record.id].append(record)
        self._segments: Dict[SegmentId, List[SegmentRecord]] = dict(segments)

    def __len__(self) -> int:
        return sum(len(v) for v in self._segments.values())

    def __contains__(self, segment_id: SegmentId) -> bool:
        return segment_id in self._segments or segment_id.swapped() in self._segments

    def ids(self) -> List[SegmentId]:
        return list(self._segments)

    def segments(self, segment_id: SegmentId) -> List[SegmentRecord]:
        """Returns all records of the segment, direct direction first."""
        result = list(self._segments.get(segment_id, []))
        swapped = segment_id.swapped()
        if swapped != segment_id:
            result.extend(self._segments.get(swapped, []))
        return result

    def segment(self, segment_id: SegmentId, time_of_day: time) -> Optional[SegmentRecord]:
        """
        Returns the first record of the segment valid at `time_of_day`.

        Args:
            segment_id (SegmentId): Segment to look up (either direction).
            time_of_day (time): Time of day the record must be valid for.

        Returns:
            Optional[SegmentRecord]: The matching record or None.
        """
        for record in self.segments(segment_id):
            if record.valid_at(time_of_day):
                return record
        return None

    def min_temperature_delta(self) -> Optional[float]:
        deltas = [min(r.temperature_deltas) for rs in self._segments.values() for r in rs if r.temperature_deltas]
        return min(deltas) if deltas else None


def parse_time_range(label: str) -> TimeWindow:
    window = TIME_RANGES.get(label.strip().lower())
    if window is None:
        raise UnsupportedTimeRangeError(
            f"unsupported time range '{label}', only 'morning' and 'evening' are supported"
        )
    return window


def parse_segment_file(path: Union[str, Path]) -> SegmentStore:
    """
    Parses the segment weather file.

    Args:
        path (Union[str, Path]): Location of the pipe separated file.

    Returns:
        SegmentStore: Store holding one record per group of consecutive rows.

    Raises:
        SegmentParserError: If a column is missing or a row cannot be parsed.
        UnsupportedTimeRangeError: If a row has an unknown time range label.
    """
    logger.info(f"Parsing segment weather data from {path}...")

    try:
        df = pd.read_csv(path, sep=DELIMITER, dtype=str, keep_default_na=False, encoding="utf-8")
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise SegmentParserError(f"could not read segment file {path}: {e}") from e

    df = df.rename(columns=lambda c: LEGACY_COLUMNS.get(c.strip(), c.strip()))
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise SegmentParserError(f"segment file {path} is missing columns {missing}")

    records = list(_group_records(df[REQUIRED_COLUMNS]))
    store = SegmentStore(records)
    logger.info(f"Parsed {len(df)} rows into {len(store)} segment records.")
    return store


def _group_records(df: pd.DataFrame) -> Iterable[SegmentRecord]:
    current_key = None
    distances: List[float] = []
    deltas: List[float] = []

    # header is line 1
    for line, row in enumerate(df.itertuples(index=False, name=None), start=2):
        try:
            way_id, from_id, to_id = (int(v) for v in row[:3])
            distance = float(row[3])
            delta = float(row[4])
        except ValueError as e:
            raise SegmentParserError(f"could not parse line {line}: {'|'.join(row)}") from e
        window = parse_time_range(row[5])

        key = (way_id, from_id, to_id, window)
        if key != current_key and current_key is not None:
            yield _make_record(current_key, distances, deltas)
            distances, deltas = [], []
        current_key = key
        distances.append(distance)
        deltas.append(delta)

    if current_key is not None:
        yield _make_record(current_key, distances, deltas)


def _make_record(key, distances: List[float], deltas: List[float]) -> SegmentRecord:
    way_id, from_id, to_id, window = key
    return SegmentRecord(
        id=SegmentId(way_id, (from_id, to_id)),
        window=window,
        distances=tuple(distances),
        temperature_deltas=tuple(deltas)
    )
