"""
Pandera DataFrame schemas for the database extract tables.

Used as validation gates by the command-line runner before compilation:
they check structure (required columns) and plausibility (code lists,
value ranges, interval ordering). compile_data() itself does not depend
on them.

Usage:
    from birdradar.schemas import ProtocolSchema
    ProtocolSchema.validate(df)  # raises pa.errors.SchemaError on failure
"""

import pandera as pa
from pandera import Column, Check, DataFrameSchema

from birdradar import config
from birdradar.table_utils import parse_timestamps


def _start_before_stop(start_col, stop_col):
    def check(df):
        starts = parse_timestamps(df[start_col])
        stops = parse_timestamps(df[stop_col])
        return (starts < stops) | starts.isna() | stops.isna()
    return Check(check, name=f"{start_col}_before_{stop_col}")


# ── Protocol data ────────────────────────────────────────────────────────

ProtocolSchema = DataFrameSchema(
    columns={
        "protocolID": Column(int, nullable=False, unique=True, coerce=True),
        "siteID": Column(int, nullable=False, coerce=True),
        "startTime_targetTZ": Column(nullable=False),
        "stopTime_targetTZ": Column(nullable=False),
        "pulseType": Column(str, Check.isin(list(config.PULSE_TYPES)), nullable=False),
        "rotate": Column(int, Check.isin(list(config.ROTATION_MODES)), nullable=False, coerce=True),
    },
    checks=[_start_before_stop("startTime_targetTZ", "stopTime_targetTZ")],
    strict=False,
    coerce=False,
    name="ProtocolSchema",
)


# ── Echo data ────────────────────────────────────────────────────────────

EchoSchema = DataFrameSchema(
    columns={
        "protocolID": Column(int, nullable=False, coerce=True),
        config.ECHO_TIME_COLUMN: Column(nullable=False),
        config.ECHO_ALTITUDE_COLUMN: Column(float, nullable=True, coerce=True),
        config.ECHO_CLASS_COLUMN: Column(str, nullable=True, required=False),
        config.ECHO_CLASS_PROB_COLUMN: Column(
            float, Check.in_range(0.0, 1.0), nullable=True, required=False, coerce=True,
        ),
    },
    strict=False,
    coerce=False,
    name="EchoSchema",
)


# ── Blind times ──────────────────────────────────────────────────────────

BlindTimesSchema = DataFrameSchema(
    columns={
        "type": Column(str, nullable=True, required=False),
        "start_targetTZ": Column(nullable=False),
        "stop_targetTZ": Column(nullable=False),
    },
    checks=[_start_before_stop("start_targetTZ", "stop_targetTZ")],
    strict=False,
    coerce=False,
    name="BlindTimesSchema",
)


# ── Sunrise / sunset ─────────────────────────────────────────────────────

SunriseSunsetSchema = DataFrameSchema(
    columns={
        "sunStart": Column(nullable=False),
        "sunStop": Column(nullable=False),
        "is_night": Column(int, Check.isin([0, 1]), nullable=True, required=False, coerce=True),
    },
    strict=False,
    coerce=False,
    name="SunriseSunsetSchema",
)


# ── Site & radar ─────────────────────────────────────────────────────────

RadarSiteSchema = DataFrameSchema(
    columns={
        "radarID": Column(nullable=False),
        "siteID": Column(int, nullable=False, coerce=True),
        "longitude": Column(float, Check.in_range(-180.0, 180.0), nullable=False, coerce=True),
        "latitude": Column(float, Check.in_range(-90.0, 90.0), nullable=False, coerce=True),
    },
    strict=False,
    coerce=False,
    name="RadarSiteSchema",
)


# ── Convenience validation function ─────────────────────────────────────

def validate_schema(df, schema, step_name, strict=False, allow_empty=False):
    """Validate a DataFrame against a Pandera schema.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to validate.
    schema : pa.DataFrameSchema
        Schema to validate against.
    step_name : str
        Step name for messages.
    strict : bool
        If True, raise on failure. If False, return warnings list.
    allow_empty : bool
        If True, a frame with no rows is not reported.

    Returns
    -------
    list[str]
        Validation warning messages (empty if all pass).

    Raises
    ------
    ValueError
        Only if strict=True and validation fails.
    """
    warnings_list = []

    if df is None:
        msg = f"[{step_name}] DataFrame is None"
        if strict:
            raise ValueError(msg)
        return [msg]

    if len(df) == 0 and not allow_empty:
        msg = f"[{step_name}] DataFrame is empty (0 rows)"
        if strict:
            raise ValueError(msg)
        return [msg]

    try:
        schema.validate(df, lazy=True)
    except pa.errors.SchemaErrors as exc:
        for failure in exc.failure_cases.itertuples():
            msg = (
                f"[{step_name}] Schema violation: "
                f"column='{failure.column}' check='{failure.check}' "
                f"failure_case={failure.failure_case}"
            )
            warnings_list.append(msg)

        if strict:
            raise ValueError(
                f"[{step_name}] Schema validation failed with "
                f"{len(warnings_list)} errors"
            ) from exc

    return warnings_list


INPUT_SCHEMAS = {
    "echo": EchoSchema,
    "protocol": ProtocolSchema,
    "blind_times": BlindTimesSchema,
    "sunrise_sunset": SunriseSunsetSchema,
    "radar_site": RadarSiteSchema,
}
