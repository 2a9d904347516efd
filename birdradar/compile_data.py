"""
Compile filtered database extracts for the migration-traffic-rate stage.

compile_data() narrows the echo, protocol, blind-time and twilight
tables to a time window and filter set, projects the site/radar table
onto the columns needed for the selected pulse type, and packages the
results with the filter parameters and column metadata into a
CompiledBundle. It is a pure transform: inputs are never modified.
"""

from birdradar import config
from birdradar.errors import InvalidArgument
from birdradar.filters import filter_echo_data, filter_protocol_data
from birdradar.logging_config import get_pipeline_logger, log_filter_counts
from birdradar.metadata import build_meta_data
from birdradar.pipeline_types import CompiledBundle, FilterParameters
from birdradar.table_utils import overlap_mask, parse_time_range, require_columns

log = get_pipeline_logger(__name__)


def filter_by_window(df, interval, window_start, window_stop, table):
    """Keep rows of *df* whose *interval* columns overlap the window."""
    require_columns(df, list(interval), table)
    start_col, stop_col = interval
    subset = df.loc[overlap_mask(df, start_col, stop_col, window_start, window_stop)]
    subset = subset.reset_index(drop=True)
    log_filter_counts(log, table, len(df), len(subset))
    return subset


def radar_site_columns(pulse_type_selection=None):
    """Output columns of the site/radar table for a pulse type (or None)."""
    columns = config.SITE_COLUMNS + config.RADAR_COLUMNS
    if pulse_type_selection is not None:
        columns = columns + config.PULSE_CALIBRATION_COLUMNS[pulse_type_selection]
    return columns


def project_radar_site(radar_site_data, pulse_type_selection=None,
                       target_time_zone=config.DEFAULT_TARGET_TIME_ZONE):
    """Project the site/radar table onto the columns used downstream.

    The fixed site and radar columns are always kept; the calibration
    block of *pulse_type_selection* is added when one is selected. The
    target time zone is attached as ``timeZone_targetTZ`` on the returned
    copy.
    """
    if (pulse_type_selection is not None
            and pulse_type_selection not in config.PULSE_CALIBRATION_COLUMNS):
        raise InvalidArgument(f"unknown pulse type {pulse_type_selection!r}")

    columns = radar_site_columns(pulse_type_selection)
    require_columns(
        radar_site_data,
        [c for c in columns if c != config.SITE_TIME_ZONE_COLUMN],
        "radar/site data",
    )
    projected = radar_site_data.assign(**{config.SITE_TIME_ZONE_COLUMN: target_time_zone})
    return projected[columns].reset_index(drop=True)


def check_data_quality(blind_times_data, radar_site_data):
    """Return data-quality warnings for the blind-time and site tables.

    Neither condition stops compilation: a missing or empty ``timeShift``
    on the site table, and a missing ``type`` column on the blind times
    (needed downstream to classify blind periods).
    """
    warnings_list = []

    time_shift = config.SITE_TIME_SHIFT_COLUMN
    if (time_shift not in radar_site_data.columns
            or radar_site_data[time_shift].isna().any()):
        warnings_list.append(
            f"The '{time_shift}' parameter is missing. Edit the site table!"
        )

    if "type" not in blind_times_data.columns:
        warnings_list.append(
            "The 'type' column is missing in the blind times data. Use the "
            "blind times merged from visibility and manual blind times."
        )

    return warnings_list


def compile_data(
    echo_data,
    protocol_data,
    blind_times_data,
    sunrise_sunset_data,
    radar_site_data,
    filters,
    target_time_zone=config.DEFAULT_TARGET_TIME_ZONE,
    manual_blind_times=None,
):
    """Filter database extracts to a time window and filter set.

    Parameters
    ----------
    echo_data, protocol_data, blind_times_data, sunrise_sunset_data : pd.DataFrame
        Raw extract tables.
    radar_site_data : pd.DataFrame
        Site/radar table, usually a single row.
    filters : FilterParameters
        Filter criteria; ``time_range_target_tz`` is required.
    target_time_zone : str
        Zone of the time range and of the ``*_targetTZ`` columns.
    manual_blind_times : pd.DataFrame, optional
        Intervals during which echoes are dropped.

    Returns
    -------
    CompiledBundle

    Raises
    ------
    InvalidArgument
        If the time range is missing or malformed, or a table lacks a
        column needed for filtering.
    """
    if filters is None:
        raise InvalidArgument("filters are required; time_range_target_tz must be set")
    if not isinstance(filters, FilterParameters):
        raise InvalidArgument(
            f"filters must be FilterParameters, got {type(filters).__name__}"
        )

    window_start, window_stop = parse_time_range(filters.time_range_target_tz, target_time_zone)
    log.info("Compiling data for %s to %s (%s)", window_start, window_stop, target_time_zone)

    # Protocols
    protocol_subset = filter_protocol_data(
        protocol_data,
        pulse_type_selection=filters.pulse_type_selection,
        rotation_selection=filters.rotation_selection,
    )
    protocol_subset = filter_by_window(
        protocol_subset, config.PROTOCOL_INTERVAL, window_start, window_stop, "protocol data",
    )

    # Site & radar
    radar_site_subset = project_radar_site(
        radar_site_data, filters.pulse_type_selection, target_time_zone,
    )

    for message in check_data_quality(blind_times_data, radar_site_data):
        log.warning(message)

    # Blind times
    blind_times_subset = filter_by_window(
        blind_times_data, config.BLIND_TIME_INTERVAL, window_start, window_stop,
        "blind times data",
    )

    # Twilight
    sunrise_sunset_subset = filter_by_window(
        sunrise_sunset_data, config.TWILIGHT_INTERVAL, window_start, window_stop,
        "sunrise/sunset data",
    )

    # Echoes
    echo_subset = filter_echo_data(
        echo_data,
        time_range_target_tz=(window_start, window_stop),
        target_time_zone=target_time_zone,
        protocol_data=protocol_subset,
        class_selection=filters.class_selection,
        class_prob_cutoff=filters.class_prob_cutoff,
        altitude_range_agl=filters.altitude_range_agl,
        manual_blind_times=manual_blind_times,
        echo_validator=filters.echo_validator,
    )

    bundle = CompiledBundle(
        echo_data=echo_subset,
        protocol_data=protocol_subset,
        blind_times_data=blind_times_subset,
        sunrise_sunset_data=sunrise_sunset_subset,
        radar_site_data=radar_site_subset,
        filter_parameters=filters,
        meta_data=build_meta_data(filters.pulse_type_selection),
    )
    log.info("Compiled bundle: %s", bundle.summary())
    return bundle
