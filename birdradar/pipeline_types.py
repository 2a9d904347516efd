"""
Typed containers for the compilation step.

FilterParameters and CompiledBundle form the interchange contract with
the migration-traffic-rate stage; StepResult and CompileRunResult carry
step provenance for structured logging and the run report.
"""

import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

import numpy as np
import pandas as pd

from birdradar import config
from birdradar.errors import InvalidArgument


class StepStatus(str, Enum):
    """Pipeline step outcome status."""
    SUCCESS = "success"
    ERROR = "error"


def now_iso():
    return datetime.now(timezone.utc).isoformat()


def _get_git_sha():
    """Return the short git SHA of the current HEAD, or None."""
    try:
        return subprocess.check_output(
            ["git", "rev-parse", "--short", "HEAD"],
            stderr=subprocess.DEVNULL,
            text=True,
        ).strip()
    except (subprocess.SubprocessError, FileNotFoundError):
        return None


def _plain(value):
    if isinstance(value, np.generic) and not isinstance(value, np.datetime64):
        return value.item()
    return value


def _as_tuple(value):
    """Normalise a scalar or collection selection to a tuple (None stays None).

    numpy scalars count as scalars and are unwrapped to Python values.
    """
    if value is None:
        return None
    if np.isscalar(value) or isinstance(value, datetime):
        return (_plain(value),)
    return tuple(_plain(v) for v in value)


# ── Filter parameters ────────────────────────────────────────────────────


@dataclass(frozen=True)
class FilterParameters:
    """Filter criteria applied by compile_data().

    Every field except the time range is optional; ``None`` means no
    filtering on that criterion. The time range is checked when the
    window is parsed, so a missing range surfaces as InvalidArgument at
    compile time.
    """

    time_range_target_tz: Optional[tuple] = None
    pulse_type_selection: Optional[str] = None
    rotation_selection: Optional[tuple] = None
    class_selection: Optional[tuple] = None
    class_prob_cutoff: Optional[float] = None
    altitude_range_agl: Optional[tuple] = None
    echo_validator: bool = False

    def __post_init__(self):
        # frozen: normalise through object.__setattr__
        for name in ("time_range_target_tz", "rotation_selection",
                     "class_selection", "altitude_range_agl"):
            object.__setattr__(self, name, _as_tuple(getattr(self, name)))

        if (self.pulse_type_selection is not None
                and self.pulse_type_selection not in config.PULSE_TYPES):
            raise InvalidArgument(
                f"pulse_type_selection must be one of {sorted(config.PULSE_TYPES)}, "
                f"got {self.pulse_type_selection!r}"
            )
        if self.rotation_selection is not None:
            bad = [r for r in self.rotation_selection if r not in config.ROTATION_MODES]
            if bad:
                raise InvalidArgument(
                    f"rotation_selection values must be in {config.ROTATION_MODES}, got {bad}"
                )
        if self.class_prob_cutoff is not None and not 0.0 <= self.class_prob_cutoff <= 1.0:
            raise InvalidArgument(
                f"class_prob_cutoff must be within [0, 1], got {self.class_prob_cutoff}"
            )
        if self.altitude_range_agl is not None:
            if len(self.altitude_range_agl) != 2:
                raise InvalidArgument("altitude_range_agl needs exactly two values")
            lo, hi = self.altitude_range_agl
            if lo > hi:
                raise InvalidArgument(
                    f"altitude_range_agl lower bound {lo} exceeds upper bound {hi}"
                )

    def to_dict(self):
        """Serialise with the interchange key names."""
        def _list(v):
            return None if v is None else list(v)

        return {
            "timeRangeTargetTZ": _list(self.time_range_target_tz),
            "pulseTypeSelection": self.pulse_type_selection,
            "rotationSelection": _list(self.rotation_selection),
            "classSelection": _list(self.class_selection),
            "classProbCutOff": self.class_prob_cutoff,
            "altitudeRange_AGL": _list(self.altitude_range_agl),
            "echoValidator": self.echo_validator,
        }

    @classmethod
    def from_dict(cls, d):
        """Reconstruct FilterParameters from a to_dict() payload."""
        return cls(
            time_range_target_tz=d.get("timeRangeTargetTZ"),
            pulse_type_selection=d.get("pulseTypeSelection"),
            rotation_selection=d.get("rotationSelection"),
            class_selection=d.get("classSelection"),
            class_prob_cutoff=d.get("classProbCutOff"),
            altitude_range_agl=d.get("altitudeRange_AGL"),
            echo_validator=bool(d.get("echoValidator", False)),
        )


# ── Compiled bundle ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class CompiledBundle:
    """Output of compile_data(): filtered tables, parameters and metadata."""

    echo_data: pd.DataFrame
    protocol_data: pd.DataFrame
    blind_times_data: pd.DataFrame
    sunrise_sunset_data: pd.DataFrame
    radar_site_data: pd.DataFrame
    filter_parameters: FilterParameters
    meta_data: dict

    def tables(self):
        """Return the data tables keyed by their interchange names."""
        return {
            "echoData": self.echo_data,
            "protocolData": self.protocol_data,
            "blindTimesData": self.blind_times_data,
            "sunriseSunsetData": self.sunrise_sunset_data,
            "radarSiteData": self.radar_site_data,
        }

    def to_dict(self):
        """Return the bundle as a plain mapping with the interchange keys."""
        out = self.tables()
        out["filterParameters"] = self.filter_parameters.to_dict()
        out["metaData"] = dict(self.meta_data)
        return out

    def summary(self):
        """Row counts per table, for step summaries."""
        return {name: len(df) for name, df in self.tables().items()}


# ── Step provenance ──────────────────────────────────────────────────────


@dataclass
class StepResult:
    """Result of a single step execution."""

    step_name: str
    status: str  # "success" or "error"
    input_summary: dict = field(default_factory=dict)
    output_summary: dict = field(default_factory=dict)
    timing_seconds: float = 0.0
    warnings: list = field(default_factory=list)
    error: Optional[str] = None
    started_at: str = field(default_factory=now_iso)
    completed_at: Optional[str] = None

    @property
    def ok(self):
        return self.status == StepStatus.SUCCESS.value

    def to_dict(self):
        return {
            "step_name": self.step_name,
            "status": self.status,
            "input_summary": self.input_summary,
            "output_summary": self.output_summary,
            "timing_seconds": self.timing_seconds,
            "warnings": self.warnings,
            "error": self.error,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
        }

    @classmethod
    def from_dict(cls, d):
        """Reconstruct a StepResult from a serialized dict."""
        return cls(
            step_name=d["step_name"],
            status=d["status"],
            input_summary=d.get("input_summary", {}),
            output_summary=d.get("output_summary", {}),
            timing_seconds=d.get("timing_seconds", 0.0),
            warnings=d.get("warnings", []),
            error=d.get("error"),
            started_at=d.get("started_at", ""),
            completed_at=d.get("completed_at"),
        )


@dataclass
class CompileRunResult:
    """Provenance of one command-line compilation run."""

    output_dir: str = ""
    target_time_zone: str = config.DEFAULT_TARGET_TIME_ZONE
    filter_parameters: dict = field(default_factory=dict)
    step_results: list = field(default_factory=list)
    total_time_seconds: float = 0.0
    output_files: list = field(default_factory=list)
    git_sha: Optional[str] = field(default_factory=_get_git_sha)
    started_at: str = field(default_factory=now_iso)

    @property
    def all_ok(self):
        return all(s.ok for s in self.step_results)

    @property
    def failed_steps(self):
        return [s for s in self.step_results if not s.ok]

    def to_dict(self):
        return {
            "output_dir": self.output_dir,
            "target_time_zone": self.target_time_zone,
            "filter_parameters": self.filter_parameters,
            "steps": [s.to_dict() for s in self.step_results],
            "total_time_seconds": self.total_time_seconds,
            "output_files": self.output_files,
            "all_ok": self.all_ok,
            "git_sha": self.git_sha,
            "started_at": self.started_at,
        }

    @classmethod
    def from_dict(cls, d):
        """Reconstruct a CompileRunResult from a serialized dict."""
        result = cls(
            output_dir=d.get("output_dir", ""),
            target_time_zone=d.get("target_time_zone", config.DEFAULT_TARGET_TIME_ZONE),
            filter_parameters=d.get("filter_parameters", {}),
            total_time_seconds=d.get("total_time_seconds", 0.0),
            output_files=d.get("output_files", []),
            git_sha=d.get("git_sha"),
            started_at=d.get("started_at", ""),
        )
        result.step_results = [
            StepResult.from_dict(s) for s in d.get("steps", [])
        ]
        return result
