"""
Shared fixtures for the compilation tests.

Provides one synthetic day of BirdScan extracts (2021-01-01, UTC wall
clock, naive timestamps): four consecutive protocols, echoes spread over
them, blind times, three days of twilight and a single site/radar row.
"""

import os
import tempfile

import pandas as pd
import pytest

# Keep the rotating log file out of the working tree during tests.
os.environ.setdefault("BIRDRADAR_LOG_DIR", tempfile.mkdtemp(prefix="birdradar_logs_"))


def ts(value):
    return pd.Timestamp(value)


@pytest.fixture
def protocol_df():
    """Four back-to-back six-hour protocols on 2021-01-01.

    1: 00-06 S rotating, 2: 06-12 S static, 3: 12-18 M rotating,
    4: 18-24 L rotating.
    """
    starts = [ts("2021-01-01 00:00"), ts("2021-01-01 06:00"),
              ts("2021-01-01 12:00"), ts("2021-01-01 18:00")]
    stops = [ts("2021-01-01 06:00"), ts("2021-01-01 12:00"),
             ts("2021-01-01 18:00"), ts("2021-01-02 00:00")]
    return pd.DataFrame({
        "protocolID": [1, 2, 3, 4],
        "siteID": [7, 7, 7, 7],
        "startTime_originTZ": [s + pd.Timedelta(hours=1) for s in starts],
        "startTime_targetTZ": starts,
        "stopTime_originTZ": [s + pd.Timedelta(hours=1) for s in stops],
        "stopTime_targetTZ": stops,
        "pulseType": ["S", "S", "M", "L"],
        "rotate": [1, 0, 1, 1],
        "stc": [7.5, 7.5, 7.5, 7.5],
        "threshold": [-78.0, -78.0, -80.0, -82.0],
        "softwareVersion": ["2.4.1", "2.4.1", "2.4.1", "2.4.1"],
    })


@pytest.fixture
def echo_df():
    times = [ts("2021-01-01 01:00"), ts("2021-01-01 03:00"), ts("2021-01-01 05:30"),
             ts("2021-01-01 07:00"), ts("2021-01-01 13:00"), ts("2021-01-01 20:00")]
    return pd.DataFrame({
        "echoID": [101, 102, 103, 104, 105, 106],
        "protocolID": [1, 1, 1, 2, 3, 4],
        "time_stamp_originTZ": [t + pd.Timedelta(hours=1) for t in times],
        "time_stamp_targetTZ": times,
        "feature1.altitude_AGL": [100.0, 200.0, 600.0, 300.0, 1500.0, 50.0],
        "class": ["passerine_type", "passerine_type", "wader_type",
                  "insect", "passerine_type", "large_bird"],
        "class_probability": [0.9, 0.6, 0.3, 0.8, 0.7, 0.95],
        "echoValidationTypeDescription": ["bio scatterer", "bio scatterer", None,
                                          "non-bio scatterer", "bio scatterer",
                                          "bio scatterer"],
    })


@pytest.fixture
def blind_times_df():
    return pd.DataFrame({
        "type": ["protocolChange", "protocolChange", "rain", "technical"],
        "start_targetTZ": [ts("2021-01-01 00:00"), ts("2021-01-01 06:00"),
                           ts("2021-01-01 09:00"), ts("2021-01-01 14:00")],
        "stop_targetTZ": [ts("2021-01-01 00:05"), ts("2021-01-01 06:05"),
                          ts("2021-01-01 10:00"), ts("2021-01-01 15:00")],
        "protocolID": [1, 2, 2, 3],
    })


@pytest.fixture
def sunrise_sunset_df():
    dates = [ts("2020-12-31"), ts("2021-01-01"), ts("2021-01-02")]
    return pd.DataFrame({
        "is_night": [0, 0, 0],
        "date": dates,
        "sunStart": [d + pd.Timedelta(hours=7, minutes=45) for d in dates],
        "sunStop": [d + pd.Timedelta(hours=16, minutes=40) for d in dates],
        "civilStart": [d + pd.Timedelta(hours=7, minutes=10) for d in dates],
        "civilStop": [d + pd.Timedelta(hours=17, minutes=15) for d in dates],
        "nauticalStart": [d + pd.Timedelta(hours=6, minutes=35) for d in dates],
        "nauticalStop": [d + pd.Timedelta(hours=17, minutes=50) for d in dates],
    })


@pytest.fixture
def radar_site_df():
    """Single site/radar row carrying all three calibration blocks."""
    row = {
        "radarID": "MR1-101",
        "siteID": 7,
        "siteCode": "SEM",
        "siteName": "Sempach",
        "siteDesc": "Roof of the observatory",
        "timeShift": 1,
        "radarOrientation": 0,
        "projectStart_originTZ": ts("2020-12-01 01:00"),
        "projectStart_targetTZ": ts("2020-12-01 00:00"),
        "projectEnd_originTZ": ts("2021-03-01 01:00"),
        "projectEnd_targetTZ": ts("2021-03-01 00:00"),
        "longitude": 8.19,
        "latitude": 47.13,
        "altitude": 520,
        "customer": "Swiss Ornithological Institute",
        "type": "BirdScan MR1",
        "serialNo": 101,
        "northOffset": 0.0,
        "delta": 0.5,
        "tiltAngle": 90.0,
        "transmitPower": 25000.0,
        "antennaGainInDBi": 31.0,
        "waveGuideAttenuation": 1.2,
        "short0V": 0.11, "shortSatLower": -95.0, "shortSteepness": 0.9,
        "shortSatUpper": -20.0, "pulseLengthShort": 65.0,
        "medium0V": 0.12, "mediumSatLower": -97.0, "mediumSteepness": 0.8,
        "mediumSatUpper": -22.0, "pulseLengthMedium": 130.0,
        "long0V": 0.13, "longSatLower": -99.0, "longSteepness": 0.7,
        "longSatUpper": -24.0, "pulseLengthLong": 250.0,
    }
    return pd.DataFrame([row])


@pytest.fixture
def raw_tables(echo_df, protocol_df, blind_times_df, sunrise_sunset_df, radar_site_df):
    """Positional inputs of compile_data(), in order."""
    return echo_df, protocol_df, blind_times_df, sunrise_sunset_df, radar_site_df
