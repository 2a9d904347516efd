"""
Protocol and echo filters applied during data compilation.

filter_protocol_data() narrows measurement periods by pulse type and
antenna rotation; filter_echo_data() narrows detections by time window,
protocol membership, class, class probability, altitude, manual blind
times and the echo-validator label.
"""

import numpy as np
import pandas as pd

from birdradar import config
from birdradar.errors import InvalidArgument
from birdradar.logging_config import get_pipeline_logger, log_filter_counts
from birdradar.table_utils import (
    match_zone,
    parse_time_range,
    require_columns,
    timestamps,
    within_mask,
)

log = get_pipeline_logger(__name__)


def _selection(value):
    # np.isscalar covers numpy scalars such as np.int64 as well as str/int
    if np.isscalar(value):
        return [value.item() if isinstance(value, np.generic) else value]
    return list(value)


def filter_protocol_data(protocol_data, pulse_type_selection=None, rotation_selection=None):
    """Keep protocols with the selected pulse types and rotation modes.

    Parameters
    ----------
    protocol_data : pd.DataFrame
        Protocol table with ``pulseType`` and ``rotate`` columns.
    pulse_type_selection : str or iterable of str, optional
        Any of "S", "M", "L". None keeps all pulse types.
    rotation_selection : int or iterable of int, optional
        Any of 0, 1. None keeps all rotation modes.

    Returns
    -------
    pd.DataFrame
        New frame with a fresh index; the input is left untouched.
    """
    mask = pd.Series(True, index=protocol_data.index)

    if pulse_type_selection is not None:
        pulses = _selection(pulse_type_selection)
        unknown = sorted(set(pulses) - set(config.PULSE_TYPES))
        if unknown:
            raise InvalidArgument(f"unknown pulse type(s): {unknown}")
        require_columns(protocol_data, ["pulseType"], "protocol data")
        mask &= protocol_data["pulseType"].isin(pulses)

    if rotation_selection is not None:
        rotations = _selection(rotation_selection)
        unknown = sorted(set(rotations) - set(config.ROTATION_MODES))
        if unknown:
            raise InvalidArgument(f"unknown rotation mode(s): {unknown}")
        require_columns(protocol_data, ["rotate"], "protocol data")
        mask &= protocol_data["rotate"].isin(rotations)

    subset = protocol_data.loc[mask].reset_index(drop=True)
    log_filter_counts(log, "protocol (pulse type/rotation)", len(protocol_data), len(subset))
    return subset


def _manual_blind_time_mask(echo_times, manual_blind_times, target_time_zone):
    """True for echoes that fall inside any manual blind interval."""
    require_columns(manual_blind_times, list(config.BLIND_TIME_INTERVAL), "manual blind times")
    start_col, stop_col = config.BLIND_TIME_INTERVAL
    starts = match_zone(
        timestamps(manual_blind_times, start_col, target_time_zone), echo_times, target_time_zone
    )
    stops = match_zone(
        timestamps(manual_blind_times, stop_col, target_time_zone), echo_times, target_time_zone
    )

    blind = np.zeros(len(echo_times), dtype=bool)
    for start, stop in zip(starts, stops):
        if pd.isna(start) or pd.isna(stop):
            continue
        blind |= ((echo_times >= start) & (echo_times < stop)).to_numpy()
    return pd.Series(blind, index=echo_times.index)


def filter_echo_data(
    echo_data,
    time_range_target_tz,
    target_time_zone=config.DEFAULT_TARGET_TIME_ZONE,
    protocol_data=None,
    class_selection=None,
    class_prob_cutoff=None,
    altitude_range_agl=None,
    manual_blind_times=None,
    echo_validator=False,
):
    """Keep echoes that pass every requested criterion.

    An echo is kept when its ``time_stamp_targetTZ`` lies in
    ``[start, stop)`` of the time range, its ``protocolID`` belongs to
    *protocol_data*, its class is selected, its class probability is at
    least the cutoff, its altitude lies within the inclusive altitude
    range, it is outside every manual blind time, and, with
    *echo_validator*, it is not labelled as a non-bio scatterer.
    Criteria left as None are not applied.

    Returns
    -------
    pd.DataFrame
        New frame with a fresh index.
    """
    window_start, window_stop = parse_time_range(time_range_target_tz, target_time_zone)
    require_columns(echo_data, [config.ECHO_TIME_COLUMN], "echo data")

    echo_times = timestamps(echo_data, config.ECHO_TIME_COLUMN, window_start.tz)
    mask = within_mask(echo_times, window_start, window_stop)

    if protocol_data is not None:
        require_columns(echo_data, ["protocolID"], "echo data")
        require_columns(protocol_data, ["protocolID"], "protocol data")
        mask &= echo_data["protocolID"].isin(protocol_data["protocolID"])

    if class_selection is not None:
        require_columns(echo_data, [config.ECHO_CLASS_COLUMN], "echo data")
        mask &= echo_data[config.ECHO_CLASS_COLUMN].isin(_selection(class_selection))

    if class_prob_cutoff is not None:
        require_columns(echo_data, [config.ECHO_CLASS_PROB_COLUMN], "echo data")
        mask &= echo_data[config.ECHO_CLASS_PROB_COLUMN] >= class_prob_cutoff

    if altitude_range_agl is not None:
        lo, hi = altitude_range_agl
        require_columns(echo_data, [config.ECHO_ALTITUDE_COLUMN], "echo data")
        mask &= echo_data[config.ECHO_ALTITUDE_COLUMN].between(lo, hi, inclusive="both")

    if manual_blind_times is not None and len(manual_blind_times) > 0:
        mask &= ~_manual_blind_time_mask(echo_times, manual_blind_times, window_start.tz)

    if echo_validator:
        if config.ECHO_VALIDATOR_COLUMN in echo_data.columns:
            mask &= echo_data[config.ECHO_VALIDATOR_COLUMN] != config.ECHO_VALIDATOR_NON_BIO
        else:
            log.warning(
                "The '%s' column is missing in the echo data; "
                "echo validator filtering was not applied.",
                config.ECHO_VALIDATOR_COLUMN,
            )

    subset = echo_data.loc[mask].reset_index(drop=True)
    log_filter_counts(log, "echo", len(echo_data), len(subset))
    return subset
