#!/usr/bin/env python3
"""
Command-line runner: compile CSV database extracts into a bundle.

Loads the five extract tables (plus optional manual blind times) from
CSV, runs the Pandera validation gates, compiles the bundle and writes
every table, its column metadata and the run provenance to an output
directory.

Usage:
    python3 -m birdradar.pipeline_runner \\
        --echo echo.csv --protocol protocol.csv --blind-times blind.csv \\
        --sunrise-sunset twilight.csv --radar-site site.csv \\
        --time-range "2021-01-01 00:00" "2021-01-08 00:00" \\
        --pulse-type S --rotation 1 --output-dir out/

    # Abort on schema violations instead of warning
    python3 -m birdradar.pipeline_runner ... --strict-validation
"""

import argparse
import json
import os
import sys
import time

import pandas as pd

from birdradar import config
from birdradar.compile_data import check_data_quality, compile_data
from birdradar.logging_config import get_pipeline_logger, set_run_id, setup_logging
from birdradar.pipeline_types import CompileRunResult, FilterParameters
from birdradar.schemas import INPUT_SCHEMAS, validate_schema
from birdradar.step_runner import run_step
from birdradar.table_utils import parse_timestamps

log = get_pipeline_logger(__name__)

INPUT_TABLES = ("echo", "protocol", "blind_times", "sunrise_sunset", "radar_site")


# ── Loading ──────────────────────────────────────────────────────────────


def read_table(path, timestamp_columns=(), target_time_zone=config.DEFAULT_TARGET_TIME_ZONE):
    """Read a CSV extract, parsing the timestamp columns it contains.

    Columns written with UTC offsets come back tz-aware in
    *target_time_zone*; columns without offsets stay naive.
    """
    df = pd.read_csv(path)
    for col in timestamp_columns:
        if col in df.columns:
            df[col] = parse_timestamps(df[col], target_time_zone)
    return df


def load_inputs(paths, manual_blind_times_path=None,
                target_time_zone=config.DEFAULT_TARGET_TIME_ZONE):
    """Read every extract table named in *paths* (table key -> CSV path)."""
    tables = {
        key: read_table(path, config.TIMESTAMP_COLUMNS.get(key, ()), target_time_zone)
        for key, path in paths.items()
    }
    if manual_blind_times_path:
        tables["manual_blind_times"] = read_table(
            manual_blind_times_path, config.TIMESTAMP_COLUMNS["blind_times"],
            target_time_zone,
        )
    return tables


def validate_inputs(tables, strict=False):
    """Run the Pandera gates over the input tables; return warnings."""
    warnings_list = []
    for key, schema in INPUT_SCHEMAS.items():
        if key in tables:
            warnings_list.extend(
                validate_schema(tables[key], schema, key, strict=strict, allow_empty=True)
            )
    for msg in warnings_list:
        log.warning(msg)
    return warnings_list


# ── Saving ───────────────────────────────────────────────────────────────


def save_bundle(bundle, output_dir):
    """Write bundle tables, metadata and filter parameters; return paths."""
    os.makedirs(os.path.join(output_dir, "meta"), exist_ok=True)
    written = []

    for name, df in bundle.tables().items():
        path = os.path.join(output_dir, f"{name}.csv")
        df.to_csv(path, index=False)
        written.append(path)

    for name, meta in bundle.meta_data.items():
        path = os.path.join(output_dir, "meta", f"{name}.csv")
        meta.to_csv(path, index=False)
        written.append(path)

    path = os.path.join(output_dir, "filter_parameters.json")
    with open(path, "w") as f:
        json.dump(bundle.filter_parameters.to_dict(), f, indent=2, default=str)
    written.append(path)

    log.info("Bundle written to %s (%d files)", output_dir, len(written))
    return written


def save_run_result(run_result, output_dir):
    """Save CompileRunResult as JSON for provenance."""
    os.makedirs(output_dir, exist_ok=True)
    result_path = os.path.join(output_dir, "run_result.json")
    with open(result_path, "w") as f:
        json.dump(run_result.to_dict(), f, indent=2, default=str)
    log.info("Run result saved: %s", result_path)
    return result_path


# ── CLI ──────────────────────────────────────────────────────────────────


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Compile bird-radar database extracts for MTR computation"
    )
    parser.add_argument("--echo", required=True, help="Echo data CSV")
    parser.add_argument("--protocol", required=True, help="Protocol data CSV")
    parser.add_argument("--blind-times", required=True, dest="blind_times",
                        help="Blind times CSV")
    parser.add_argument("--sunrise-sunset", required=True, dest="sunrise_sunset",
                        help="Sunrise/sunset CSV")
    parser.add_argument("--radar-site", required=True, dest="radar_site",
                        help="Site & radar CSV")
    parser.add_argument("--manual-blind-times", default=None, dest="manual_blind_times",
                        help="Optional manual blind times CSV")
    parser.add_argument(
        "--time-range",
        nargs=2,
        required=True,
        metavar=("START", "STOP"),
        dest="time_range",
        help=f"Time window in the target time zone, formatted '{config.TIME_RANGE_FORMAT}'",
    )
    parser.add_argument(
        "--target-tz",
        default=config.DEFAULT_TARGET_TIME_ZONE,
        dest="target_tz",
        help=f"Target time zone (default: {config.DEFAULT_TARGET_TIME_ZONE})",
    )
    parser.add_argument("--pulse-type", choices=sorted(config.PULSE_TYPES), default=None,
                        dest="pulse_type", help="Pulse type selection")
    parser.add_argument("--rotation", type=int, nargs="+", choices=list(config.ROTATION_MODES),
                        default=None, help="Rotation mode selection")
    parser.add_argument("--class-selection", nargs="+", default=None, dest="class_selection",
                        help="Echo classes to keep")
    parser.add_argument("--class-prob-cutoff", type=float, default=None,
                        dest="class_prob_cutoff", help="Minimum class probability")
    parser.add_argument("--altitude-range", type=float, nargs=2, default=None,
                        metavar=("LOW", "HIGH"), dest="altitude_range",
                        help="Altitude range above ground level [m]")
    parser.add_argument("--echo-validator", action="store_true", default=False,
                        dest="echo_validator",
                        help="Drop echoes labelled as non-bio scatterers")
    parser.add_argument(
        "--strict-validation",
        action="store_true",
        default=False,
        dest="strict_validation",
        help="Abort on schema validation failures (default: warn only)",
    )
    parser.add_argument("--output-dir", required=True, dest="output_dir",
                        help="Directory for the compiled bundle")
    return parser.parse_args(argv)


def build_filters(args):
    return FilterParameters(
        time_range_target_tz=args.time_range,
        pulse_type_selection=args.pulse_type,
        rotation_selection=args.rotation,
        class_selection=args.class_selection,
        class_prob_cutoff=args.class_prob_cutoff,
        altitude_range_agl=args.altitude_range,
        echo_validator=args.echo_validator,
    )


def run_compile(args):
    """Run load, validation, compilation and save steps; return CompileRunResult."""
    run_result = CompileRunResult(output_dir=args.output_dir, target_time_zone=args.target_tz)
    start_time = time.time()

    def finish():
        run_result.total_time_seconds = time.time() - start_time
        return run_result

    step, filters = run_step("build_filters", build_filters, args)
    run_result.step_results.append(step)
    if filters is None:
        return finish()
    run_result.filter_parameters = filters.to_dict()

    paths = {key: getattr(args, key) for key in INPUT_TABLES}
    step, tables = run_step(
        "load_inputs", load_inputs, paths, args.manual_blind_times, args.target_tz,
        input_summary=paths,
        output_summary_fn=lambda t: {k: len(v) for k, v in t.items()},
    )
    run_result.step_results.append(step)
    if tables is None:
        return finish()

    step, schema_warnings = run_step(
        "validate_inputs", validate_inputs, tables, strict=args.strict_validation,
    )
    if schema_warnings:
        step.warnings = schema_warnings
    run_result.step_results.append(step)
    if not step.ok:
        return finish()

    step, bundle = run_step(
        "compile_data",
        compile_data,
        tables["echo"],
        tables["protocol"],
        tables["blind_times"],
        tables["sunrise_sunset"],
        tables["radar_site"],
        filters,
        target_time_zone=args.target_tz,
        manual_blind_times=tables.get("manual_blind_times"),
        input_summary={k: len(v) for k, v in tables.items()},
        output_summary_fn=lambda b: b.summary(),
        warnings_list=check_data_quality(tables["blind_times"], tables["radar_site"]),
    )
    run_result.step_results.append(step)
    if bundle is None:
        return finish()

    step, written = run_step("save_bundle", save_bundle, bundle, args.output_dir,
                             output_summary_fn=lambda w: {"files": len(w)})
    run_result.step_results.append(step)
    if written:
        run_result.output_files.extend(written)

    return finish()


def main(argv=None):
    args = parse_args(argv)

    run_id = set_run_id()
    setup_logging(run_dir=args.output_dir)
    log.info("Compile runner (run_id=%s)", run_id)

    result = run_compile(args)
    save_run_result(result, args.output_dir)

    log.info("Compilation finished in %.1fs", result.total_time_seconds)
    if result.failed_steps:
        log.warning("Failed steps: %s", [s.step_name for s in result.failed_steps])
        return 1
    log.info("All steps succeeded.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
