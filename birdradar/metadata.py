"""
Column metadata for the tables of a compiled bundle.

Each output table is documented by an ordered tuple of ColumnSpec
(name, declared type, description). These are static schema constants,
not derived from the data; build_meta_data() renders them as DataFrames
with the columns ``colname``, ``type`` and ``description``.
"""

from typing import NamedTuple

import pandas as pd

from birdradar import config


class ColumnSpec(NamedTuple):
    name: str
    type: str
    description: str


META_COLUMNS = ["colname", "type", "description"]


# ── Echo data ────────────────────────────────────────────────────────────

ECHO_METADATA = (
    ColumnSpec("echoID", "int", "Incremental ID of the echo."),
    ColumnSpec("protocolID", "int",
               "ID of the measurement period the echo was detected in - linked to the protocol table."),
    ColumnSpec("time_stamp_originTZ", "POSIXct",
               "Detection time. Time zone as given in the database."),
    ColumnSpec("time_stamp_targetTZ", "POSIXct",
               "Detection time. Time zone used for the analyses."),
    ColumnSpec("feature1.altitude_AGL", "num", "Altitude of the echo above ground level [m]."),
    ColumnSpec("class", "char", "Class assigned by the classifier."),
    ColumnSpec("class_probability", "num", "Probability of the assigned class."),
    ColumnSpec("echoValidationTypeDescription", "char",
               'Label set by the post-hoc echo validator, e.g. "non-bio scatterer".'),
)

# ── Protocol data ────────────────────────────────────────────────────────

PROTOCOL_METADATA = (
    ColumnSpec("protocolID", "int",
               "Incremental ID of measurement periods - linked to echo data and blind times."),
    ColumnSpec("siteID", "int", "Site ID - linked to the site & radar data."),
    ColumnSpec("startTime_originTZ", "POSIXct",
               "Start of the measurement period. Time zone as given in the database."),
    ColumnSpec("startTime_targetTZ", "POSIXct",
               "Start of the measurement period. Time zone used for the analyses, usually UTC."),
    ColumnSpec("stopTime_originTZ", "POSIXct",
               "End of the measurement period. Time zone as given in the database."),
    ColumnSpec("stopTime_targetTZ", "POSIXct",
               "End of the measurement period. Time zone used for the analyses, usually UTC."),
    ColumnSpec("pulseType", "char",
               '"S" for short pulse, "M" for medium pulse, "L" for long pulse. '
               "See the radar table for the pulse duration."),
    ColumnSpec("rotate", "int",
               '"0" when the antenna is static, "1" when it rotates on its vertical axis. '
               "Flight speed and direction are only available while rotating."),
    ColumnSpec("stc", "num",
               "Sensitivity time control distance [m]; sets the minimal detected object size. "
               "Used for the MTR factor of the echo."),
    ColumnSpec("threshold", "num",
               "Detection threshold [dBm]. Used for the MTR factor of the echo."),
    ColumnSpec("softwareVersion", "char",
               "Software version at detection time. Can differ from the classifier version."),
)

# ── Blind times ──────────────────────────────────────────────────────────

BLIND_TIMES_METADATA = (
    ColumnSpec("type", "char",
               "Type of blind time, used for the effective observation time of an MTR bin. "
               '"protocolChange": blind time after the start of a new measurement period; '
               '"technical": technical malfunction of the radar; '
               '"rain": precipitation.'),
    ColumnSpec("start_targetTZ", "POSIXct", "Start of the blind period."),
    ColumnSpec("stop_targetTZ", "POSIXct", "End of the blind period."),
    ColumnSpec("protocolID", "char", "ID of the measurement period - linked to the protocol table."),
)

# ── Sunrise / sunset ─────────────────────────────────────────────────────

SUNRISE_SUNSET_METADATA = (
    ColumnSpec("is_night", "int", '"0" during daytime, "1" during nighttime.'),
    ColumnSpec("date", "POSIXct", "Date of the event (UTC)."),
    ColumnSpec("sunStart", "POSIXct", "Sunrise (UTC) - see the site table for the location."),
    ColumnSpec("sunStop", "POSIXct", "Sunset (UTC) - see the site table for the location."),
    ColumnSpec("civilStart", "POSIXct", "Civil dawn, sun 6° below the horizon (UTC)."),
    ColumnSpec("civilStop", "POSIXct", "Civil dusk, sun 6° below the horizon (UTC)."),
    ColumnSpec("nauticalStart", "POSIXct", "Nautical dawn, sun 12° below the horizon (UTC)."),
    ColumnSpec("nauticalStop", "POSIXct", "Nautical dusk, sun 12° below the horizon (UTC)."),
)

# ── Site & radar ─────────────────────────────────────────────────────────

SITE_METADATA = (
    ColumnSpec("radarID", "int", "Serial number of the radar unit, abbreviated."),
    ColumnSpec("siteID", "int", "Radar location: site ID given by the radar operator."),
    ColumnSpec("siteCode", "char", "Radar location: three-letter site code given by the radar operator."),
    ColumnSpec("siteName", "char", "Radar location: full name."),
    ColumnSpec("siteDesc", "char", "Radar location: optional further description."),
    ColumnSpec("timeZone_targetTZ", "char", "Time zone used for the analyses, usually UTC."),
    ColumnSpec("projectStart_originTZ", "POSIXct",
               "Start of data collection, in the time zone set on the radar."),
    ColumnSpec("projectStart_targetTZ", "POSIXct",
               'Start of data collection, in the analysis time zone (see "timeZone_targetTZ").'),
    ColumnSpec("projectEnd_originTZ", "POSIXct",
               "End of data collection, in the time zone set on the radar."),
    ColumnSpec("projectEnd_targetTZ", "POSIXct",
               'End of data collection, in the analysis time zone (see "timeZone_targetTZ").'),
    ColumnSpec("longitude", "num", "Radar location: longitude [decimal degrees]."),
    ColumnSpec("latitude", "num", "Radar location: latitude [decimal degrees]."),
    ColumnSpec("altitude", "int", "Radar location: altitude above sea level [m]."),
    ColumnSpec("customer", "char", "Radar operator."),
)

RADAR_METADATA = (
    ColumnSpec("type", "char", 'Model of the radar unit, e.g. "BirdScan MR1".'),
    ColumnSpec("serialNo", "int", "Serial number of the radar unit, full."),
    ColumnSpec("northOffset", "num", "Radar parameter: north offset."),
    ColumnSpec("delta", "num", "Radar parameter: delta."),
    ColumnSpec("tiltAngle", "num", "Radar parameter: tilt angle; constant for BirdScan MR1."),
    ColumnSpec("transmitPower", "num",
               "Radar parameter: transmitted power [W]; can change between years when the magnetron is replaced."),
    ColumnSpec("antennaGainInDBi", "num",
               "Radar parameter: antenna gain [dBi]; constant for BirdScan MR1."),
    ColumnSpec("waveGuideAttenuation", "num",
               "Radar parameter: wave guide attenuation; constant for BirdScan MR1."),
)


def calibration_metadata(pulse_type):
    """Column specs of the calibration block for *pulse_type* ("S", "M" or "L")."""
    label = config.PULSE_TYPES[pulse_type]
    zero_v, sat_lower, steepness, sat_upper, pulse_length = (
        config.PULSE_CALIBRATION_COLUMNS[pulse_type]
    )
    return (
        ColumnSpec(zero_v, "num", f"{label.capitalize()}-pulse calibration: 0V point."),
        ColumnSpec(sat_lower, "num", f"{label.capitalize()}-pulse calibration: lower saturation bound."),
        ColumnSpec(steepness, "num", f"{label.capitalize()}-pulse calibration: steepness."),
        ColumnSpec(sat_upper, "num", f"{label.capitalize()}-pulse calibration: upper saturation bound."),
        ColumnSpec(pulse_length, "num",
                   f"Duration of the {label} pulse; defines the range resolution."),
    )


def radar_site_metadata(pulse_type=None):
    """Column specs of the projected site/radar table for *pulse_type*."""
    specs = SITE_METADATA + RADAR_METADATA
    if pulse_type is not None:
        specs = specs + calibration_metadata(pulse_type)
    return specs


# ── Filter parameters ────────────────────────────────────────────────────

FILTER_PARAMETERS_METADATA = (
    ColumnSpec("timeRangeTargetTZ", "POSIXct",
               "Time range (start and end) of the data, in the time zone used for the analyses."),
    ColumnSpec("pulseTypeSelection", "char",
               '"S" for short pulse, "M" for medium pulse, or "L" for long pulse. '
               "See the radar table for the pulse duration."),
    ColumnSpec("rotationSelection", "integer",
               '"0" when the antenna is static, "1" when it rotates on its vertical axis.'),
    ColumnSpec("classSelection", "char", "Classes kept - can be a subset of all available classes."),
    ColumnSpec("classProbCutOff", "num",
               "Post-hoc filter on classification: echoes with a class probability "
               "below the cutoff are dropped; 0 keeps all echoes."),
    ColumnSpec("altitudeRange_AGL", "num", "Altitude range above ground level, lowest to highest."),
    ColumnSpec("echoValidator", "logical",
               "Whether the post-hoc echo validator is used as additional filter. Default FALSE."),
)


def metadata_table(specs):
    """Render a tuple of ColumnSpec as a colname/type/description DataFrame."""
    return pd.DataFrame([tuple(s) for s in specs], columns=META_COLUMNS)


def build_meta_data(pulse_type=None):
    """Metadata tables for every member of a compiled bundle."""
    return {
        "echoData": metadata_table(ECHO_METADATA),
        "protocolData": metadata_table(PROTOCOL_METADATA),
        "blindTimesData": metadata_table(BLIND_TIMES_METADATA),
        "sunriseSunsetData": metadata_table(SUNRISE_SUNSET_METADATA),
        "radarSiteData": metadata_table(radar_site_metadata(pulse_type)),
        "filterParameters": metadata_table(FILTER_PARAMETERS_METADATA),
    }
