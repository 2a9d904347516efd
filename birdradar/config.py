"""
Centralized configuration for the bird-radar data compilation step.

Column sets, code lists and defaults shared by the filters, the
compiler, the validation schemas and the CSV runner are defined here.
"""

# ─── TIME HANDLING ───────────────────────────────────────────────────────
# Analyses since 2020 are usually run in UTC; "Etc/GMT0" is the zone name
# used in the database extracts.
DEFAULT_TARGET_TIME_ZONE = "Etc/GMT0"

# Format of the user-supplied time range bounds, e.g. "2021-01-01 03:00".
TIME_RANGE_FORMAT = "%Y-%m-%d %H:%M"

# ─── PROTOCOL SETTINGS ───────────────────────────────────────────────────
# Pulse duration classes. The pulse length defines the range resolution
# and selects the calibration block of the radar table.
PULSE_TYPES = {
    "S": "short",
    "M": "medium",
    "L": "long",
}

# Antenna operation modes: 0 = static, 1 = rotating on its vertical axis.
# Flight speed and direction are only available while rotating.
ROTATION_MODES = (0, 1)

# ─── ECHO VALIDATOR ──────────────────────────────────────────────────────
ECHO_VALIDATOR_COLUMN = "echoValidationTypeDescription"
ECHO_VALIDATOR_NON_BIO = "non-bio scatterer"

# ─── SITE & RADAR COLUMN SETS ────────────────────────────────────────────
# timeZone_targetTZ is attached by the compiler, not read from the input.
SITE_TIME_ZONE_COLUMN = "timeZone_targetTZ"
SITE_TIME_SHIFT_COLUMN = "timeShift"

SITE_COLUMNS = [
    "radarID", "siteID", "siteCode", "siteName", "siteDesc",
    SITE_TIME_ZONE_COLUMN,
    "projectStart_originTZ", "projectStart_targetTZ",
    "projectEnd_originTZ", "projectEnd_targetTZ",
    "longitude", "latitude", "altitude",
    "customer",
]

RADAR_COLUMNS = [
    "type", "serialNo", "northOffset", "delta", "tiltAngle",
    "transmitPower", "antennaGainInDBi", "waveGuideAttenuation",
]

PULSE_CALIBRATION_COLUMNS = {
    "S": ["short0V", "shortSatLower", "shortSteepness", "shortSatUpper",
          "pulseLengthShort"],
    "M": ["medium0V", "mediumSatLower", "mediumSteepness", "mediumSatUpper",
          "pulseLengthMedium"],
    "L": ["long0V", "longSatLower", "longSteepness", "longSatUpper",
          "pulseLengthLong"],
}

# ─── INTERVAL COLUMNS ────────────────────────────────────────────────────
# (start, stop) column pairs used for the window overlap test.
PROTOCOL_INTERVAL = ("startTime_targetTZ", "stopTime_targetTZ")
BLIND_TIME_INTERVAL = ("start_targetTZ", "stop_targetTZ")
TWILIGHT_INTERVAL = ("sunStart", "sunStop")

# ─── ECHO COLUMNS ────────────────────────────────────────────────────────
ECHO_TIME_COLUMN = "time_stamp_targetTZ"
ECHO_ALTITUDE_COLUMN = "feature1.altitude_AGL"
ECHO_CLASS_COLUMN = "class"
ECHO_CLASS_PROB_COLUMN = "class_probability"

# ─── CSV LOADING ─────────────────────────────────────────────────────────
# Timestamp columns parsed when reading database extracts from CSV.
TIMESTAMP_COLUMNS = {
    "echo": ["time_stamp_originTZ", "time_stamp_targetTZ"],
    "protocol": ["startTime_originTZ", "startTime_targetTZ",
                 "stopTime_originTZ", "stopTime_targetTZ"],
    "blind_times": ["start_targetTZ", "stop_targetTZ"],
    "sunrise_sunset": ["date", "sunStart", "sunStop", "civilStart",
                       "civilStop", "nauticalStart", "nauticalStop"],
    "radar_site": ["projectStart_originTZ", "projectStart_targetTZ",
                   "projectEnd_originTZ", "projectEnd_targetTZ"],
}
