"""
End-to-end tests for the command-line runner (birdradar/pipeline_runner.py).

Each test writes the synthetic extracts to CSV, runs main() and inspects
the written bundle and run_result.json.
"""

import json
import os

import pandas as pd
import pytest

from birdradar import config
from birdradar.compile_data import compile_data
from birdradar.pipeline_runner import main, read_table
from birdradar.pipeline_types import FilterParameters


@pytest.fixture
def csv_inputs(tmp_path, raw_tables):
    names = ["echo", "protocol", "blind_times", "sunrise_sunset", "radar_site"]
    paths = {}
    for name, df in zip(names, raw_tables):
        path = tmp_path / f"{name}.csv"
        df.to_csv(path, index=False)
        paths[name] = str(path)
    return paths


def _argv(paths, output_dir, *extra):
    return [
        "--echo", paths["echo"],
        "--protocol", paths["protocol"],
        "--blind-times", paths["blind_times"],
        "--sunrise-sunset", paths["sunrise_sunset"],
        "--radar-site", paths["radar_site"],
        "--time-range", "2021-01-01 00:00", "2021-01-02 00:00",
        "--output-dir", str(output_dir),
        *extra,
    ]


def _run_result(output_dir):
    with open(os.path.join(output_dir, "run_result.json")) as f:
        return json.load(f)


class TestSuccessfulRun:

    def test_bundle_written(self, csv_inputs, tmp_path):
        out = tmp_path / "out"
        assert main(_argv(csv_inputs, out, "--pulse-type", "S")) == 0

        protocols = pd.read_csv(out / "protocolData.csv")
        assert protocols["protocolID"].tolist() == [1, 2]
        echoes = pd.read_csv(out / "echoData.csv")
        assert echoes["echoID"].tolist() == [101, 102, 103, 104]
        site = pd.read_csv(out / "radarSiteData.csv")
        assert "pulseLengthShort" in site.columns
        assert "pulseLengthMedium" not in site.columns

        meta = pd.read_csv(out / "meta" / "radarSiteData.csv")
        assert meta["colname"].tolist() == list(site.columns)

        with open(out / "filter_parameters.json") as f:
            params = json.load(f)
        assert params["pulseTypeSelection"] == "S"
        assert params["timeRangeTargetTZ"] == ["2021-01-01 00:00", "2021-01-02 00:00"]

    def test_run_result_records_steps(self, csv_inputs, tmp_path):
        out = tmp_path / "out"
        main(_argv(csv_inputs, out, "--rotation", "1", "--echo-validator"))
        result = _run_result(out)
        assert result["all_ok"] is True
        assert [s["step_name"] for s in result["steps"]] == [
            "build_filters", "load_inputs", "validate_inputs", "compile_data", "save_bundle",
        ]
        compile_step = result["steps"][3]
        assert compile_step["output_summary"]["protocolData"] == 3
        assert result["filter_parameters"]["rotationSelection"] == [1]
        assert len(result["output_files"]) == 12

    def test_data_quality_warnings_recorded(self, csv_inputs, tmp_path, blind_times_df):
        blind_times_df.drop(columns=["type"]).to_csv(csv_inputs["blind_times"], index=False)
        out = tmp_path / "out"
        assert main(_argv(csv_inputs, out)) == 0
        compile_step = _run_result(out)["steps"][3]
        assert len(compile_step["warnings"]) == 1
        assert "'type'" in compile_step["warnings"][0]

    def test_lenient_validation_continues(self, csv_inputs, tmp_path, protocol_df):
        bad = protocol_df.copy()
        bad.loc[0, "pulseType"] = "X"
        bad.to_csv(csv_inputs["protocol"], index=False)
        out = tmp_path / "out"
        assert main(_argv(csv_inputs, out, "--pulse-type", "S")) == 0
        result = _run_result(out)
        assert result["steps"][2]["warnings"]
        assert pd.read_csv(out / "protocolData.csv")["protocolID"].tolist() == [2]


class TestFailedRun:

    def test_missing_input_file(self, csv_inputs, tmp_path):
        csv_inputs["echo"] = str(tmp_path / "does_not_exist.csv")
        out = tmp_path / "out"
        assert main(_argv(csv_inputs, out)) == 1
        result = _run_result(out)
        assert result["all_ok"] is False
        assert result["steps"][-1]["step_name"] == "load_inputs"
        assert result["steps"][-1]["status"] == "error"

    def test_strict_validation_aborts(self, csv_inputs, tmp_path, protocol_df):
        bad = protocol_df.copy()
        bad.loc[0, "pulseType"] = "X"
        bad.to_csv(csv_inputs["protocol"], index=False)
        out = tmp_path / "out"
        assert main(_argv(csv_inputs, out, "--strict-validation")) == 1
        assert _run_result(out)["steps"][-1]["step_name"] == "validate_inputs"
        assert not (out / "protocolData.csv").exists()

    def test_reversed_time_range(self, csv_inputs, tmp_path):
        out = tmp_path / "out"
        argv = _argv(csv_inputs, out)
        i = argv.index("--time-range")
        argv[i + 1:i + 3] = ["2021-01-02 00:00", "2021-01-01 00:00"]
        assert main(argv) == 1
        failed = _run_result(out)["steps"][-1]
        assert failed["step_name"] == "compile_data"
        assert "InvalidArgument" in failed["error"]


def test_read_table_parses_known_timestamp_columns(tmp_path):
    path = tmp_path / "blind.csv"
    pd.DataFrame({
        "type": ["rain"],
        "start_targetTZ": ["2021-01-01 09:00:00"],
        "stop_targetTZ": ["2021-01-01 10:00:00"],
    }).to_csv(path, index=False)
    df = read_table(path, ["start_targetTZ", "stop_targetTZ", "not_present"])
    assert pd.api.types.is_datetime64_any_dtype(df["start_targetTZ"])
    assert df["type"].tolist() == ["rain"]


class TestDaylightSavingOffsets:
    """Protocol extracts written with Europe/Zurich offsets across 2021-03-28."""

    @pytest.fixture
    def zurich_protocol_csv(self, tmp_path):
        path = tmp_path / "protocol_zurich.csv"
        pd.DataFrame({
            "protocolID": [1, 2],
            "siteID": [7, 7],
            "startTime_targetTZ": ["2021-03-27 23:00:00+01:00", "2021-03-28 12:00:00+02:00"],
            "stopTime_targetTZ": ["2021-03-28 12:00:00+02:00", "2021-03-28 18:00:00+02:00"],
            "pulseType": ["S", "S"],
            "rotate": [1, 1],
        }).to_csv(path, index=False)
        return path

    def test_read_table_then_compile(self, zurich_protocol_csv, raw_tables):
        protocol = read_table(zurich_protocol_csv, config.TIMESTAMP_COLUMNS["protocol"],
                              "Europe/Zurich")
        assert str(protocol["startTime_targetTZ"].dt.tz) == "Europe/Zurich"
        assert protocol["startTime_targetTZ"].dt.hour.tolist() == [23, 12]

        echo, _, blind, twilight, site = raw_tables
        filters = FilterParameters(time_range_target_tz=("2021-03-28 00:00", "2021-03-28 06:00"))
        bundle = compile_data(echo, protocol, blind, twilight, site, filters,
                              target_time_zone="Europe/Zurich")
        assert bundle.protocol_data["protocolID"].tolist() == [1]

    def test_main_with_target_zone(self, zurich_protocol_csv, csv_inputs, tmp_path):
        paths = dict(csv_inputs, protocol=str(zurich_protocol_csv))
        out = tmp_path / "out"
        argv = _argv(paths, out, "--target-tz", "Europe/Zurich")
        i = argv.index("--time-range")
        argv[i + 1:i + 3] = ["2021-03-28 00:00", "2021-03-28 06:00"]
        assert main(argv) == 0
        written = pd.read_csv(out / "protocolData.csv")
        assert written["protocolID"].tolist() == [1]
