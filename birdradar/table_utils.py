"""
Shared helpers for time windows and column checks on extract tables.
"""

import pandas as pd

from birdradar import config
from birdradar.errors import InvalidArgument

# A time of day followed by a UTC offset, e.g. "23:00+01:00" or "03:00:00Z".
_UTC_OFFSET = r"\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?\s*(?:Z|[+-]\d{2}:?\d{2})$"


def require_columns(df, columns, table):
    """Raise InvalidArgument if *df* lacks any of *columns*."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise InvalidArgument(f"{table} is missing required column(s): {missing}")


def _to_timestamp(value, target_time_zone):
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        raise InvalidArgument("time range bounds must not be null")
    try:
        if isinstance(value, str):
            ts = pd.to_datetime(value, format=config.TIME_RANGE_FORMAT)
        else:
            ts = pd.Timestamp(value)
    except (ValueError, TypeError) as exc:
        raise InvalidArgument(
            f"cannot parse time range bound {value!r}; expected '{config.TIME_RANGE_FORMAT}'"
        ) from exc
    try:
        if ts.tzinfo is not None:
            return ts.tz_convert(target_time_zone)
        localized = ts.tz_localize(target_time_zone, ambiguous="NaT", nonexistent="NaT")
    except KeyError as exc:
        # pytz and zoneinfo both raise KeyError subclasses for unknown zones
        raise InvalidArgument(f"unknown time zone {target_time_zone!r}") from exc
    if pd.isna(localized):
        raise InvalidArgument(
            f"time range bound {value!r} is ambiguous or does not exist in "
            f"{target_time_zone} (daylight-saving change)"
        )
    return localized


def parse_time_range(time_range, target_time_zone=config.DEFAULT_TARGET_TIME_ZONE):
    """Return the (start, stop) window as tz-aware Timestamps.

    Parameters
    ----------
    time_range : sequence of two str or datetime-like
        Start and end of the window, interpreted in *target_time_zone*
        when they carry no zone of their own. Strings use
        ``config.TIME_RANGE_FORMAT``.
    target_time_zone : str

    Raises
    ------
    InvalidArgument
        If the range is missing, does not hold exactly two bounds, a
        bound cannot be parsed, or start is not before stop.
    """
    if time_range is None:
        raise InvalidArgument("time_range_target_tz is required (start and end)")
    if isinstance(time_range, str):
        raise InvalidArgument("time_range_target_tz needs two bounds, got a single string")
    bounds = list(time_range)
    if len(bounds) != 2:
        raise InvalidArgument(
            f"time_range_target_tz needs exactly two bounds, got {len(bounds)}"
        )
    start, stop = (_to_timestamp(b, target_time_zone) for b in bounds)
    if start >= stop:
        raise InvalidArgument(f"time range start {start} is not before stop {stop}")
    return start, stop


def parse_timestamps(values, target_time_zone=config.DEFAULT_TARGET_TIME_ZONE):
    """Parse a Series of timestamps, keeping datetime Series as they are.

    Values that carry a UTC offset are parsed through UTC and converted to
    *target_time_zone*, so a column whose offset changes across a
    daylight-saving switch yields one tz-aware Series. Values without an
    offset stay naive (wall-clock time in the target zone).
    """
    if pd.api.types.is_datetime64_any_dtype(values):
        return values
    text = values.dropna().astype(str).str.strip()
    if text.str.contains(_UTC_OFFSET, regex=True).any():
        return pd.to_datetime(values, utc=True).dt.tz_convert(target_time_zone)
    return pd.to_datetime(values)


def timestamps(df, column, target_time_zone=config.DEFAULT_TARGET_TIME_ZONE):
    """Column *column* of *df* as a datetime Series."""
    return parse_timestamps(df[column], target_time_zone)


def _align(bound, values):
    # Naive columns hold wall-clock time in the target zone.
    if values.dt.tz is None:
        return bound.tz_localize(None)
    return bound


def match_zone(values, reference, target_time_zone):
    """Express datetime Series *values* with the zone handling of *reference*."""
    if reference.dt.tz is None and values.dt.tz is not None:
        return values.dt.tz_convert(target_time_zone).dt.tz_localize(None)
    if reference.dt.tz is not None and values.dt.tz is None:
        return values.dt.tz_localize(target_time_zone)
    return values


def overlap_mask(df, start_col, stop_col, window_start, window_stop):
    """Rows whose [start, stop] interval overlaps the window.

    Uses ``start < window_stop AND stop > window_start``, so intervals that
    only touch the window at a boundary are excluded. Rows with a missing
    start or stop never match.
    """
    starts = timestamps(df, start_col, window_start.tz)
    stops = timestamps(df, stop_col, window_start.tz)
    return (starts < _align(window_stop, starts)) & (stops > _align(window_start, stops))


def within_mask(values, window_start, window_stop):
    """``window_start <= values < window_stop`` for a datetime Series."""
    return (values >= _align(window_start, values)) & (values < _align(window_stop, values))
