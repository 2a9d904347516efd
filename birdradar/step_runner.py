"""
Generic step executor.

Wraps a work function with timing, error capture, structured logging and
StepResult construction, so the runner's steps only supply the work and
its metadata.
"""

import traceback
from typing import Callable, TypeVar

import pandas as pd

from birdradar.logging_config import StepTimer, get_pipeline_logger, log_step_summary
from birdradar.pipeline_types import StepResult, StepStatus, now_iso

T = TypeVar("T")

log = get_pipeline_logger(__name__)

# InvalidArgument is a ValueError.
_DEFAULT_EXPECTED = (
    FileNotFoundError,
    ValueError,
    KeyError,
    pd.errors.EmptyDataError,
    pd.errors.ParserError,
)


def run_step(
    step_name: str,
    fn: Callable[..., T],
    *args,
    input_summary: dict | None = None,
    output_summary_fn: Callable[[T], dict] | None = None,
    warnings_list: list[str] | None = None,
    expected_exceptions: tuple[type[Exception], ...] = _DEFAULT_EXPECTED,
    **kwargs,
) -> tuple[StepResult, T | None]:
    """Execute a step with standardised error handling and timing.

    Parameters
    ----------
    step_name : str
        Name stored in the StepResult.
    fn : Callable
        The work function, called as ``fn(*args, **kwargs)``.
    input_summary : dict, optional
        Metadata about inputs.
    output_summary_fn : callable, optional
        Maps *fn*'s return value to an output-summary dict. Skipped when
        *fn* raises or returns None.
    warnings_list : list[str], optional
        Data-quality warnings known before the step ran; recorded on the
        StepResult either way.
    expected_exceptions : tuple
        Exception types logged as known failures (no "unexpectedly").

    Returns
    -------
    tuple[StepResult, T | None]
    """
    result_data = None
    error_tb = None
    warnings_list = list(warnings_list or [])

    with StepTimer() as timer:
        try:
            result_data = fn(*args, **kwargs)
        except expected_exceptions as exc:
            error_tb = traceback.format_exc()
            log.error("%s failed: %s", step_name, exc, exc_info=True)
        except Exception:
            error_tb = traceback.format_exc()
            log.error("%s failed unexpectedly", step_name, exc_info=True)

    if error_tb:
        log_step_summary(log, step_name, StepStatus.ERROR.value,
                         timing_seconds=timer.elapsed, warnings_list=warnings_list)
        return StepResult(
            step_name=step_name,
            status=StepStatus.ERROR.value,
            input_summary=input_summary or {},
            warnings=warnings_list,
            error=error_tb,
            timing_seconds=timer.elapsed,
            completed_at=now_iso(),
        ), None

    out_summary = {}
    if output_summary_fn is not None and result_data is not None:
        out_summary = output_summary_fn(result_data)

    log_step_summary(
        log, step_name, StepStatus.SUCCESS.value,
        input_summary=input_summary or {},
        output_summary=out_summary,
        timing_seconds=timer.elapsed,
        warnings_list=warnings_list,
    )
    return StepResult(
        step_name=step_name,
        status=StepStatus.SUCCESS.value,
        input_summary=input_summary or {},
        output_summary=out_summary,
        timing_seconds=timer.elapsed,
        warnings=warnings_list,
        completed_at=now_iso(),
    ), result_data
