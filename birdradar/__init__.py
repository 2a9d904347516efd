"""
Data compilation for bird-radar (BirdScan) database extracts.

Narrows echo, protocol, blind-time, twilight and site/radar tables to a
time window and filter set, producing the bundle consumed by the
migration-traffic-rate computation.
"""

from birdradar.compile_data import compile_data
from birdradar.errors import InvalidArgument
from birdradar.pipeline_types import CompiledBundle, FilterParameters

__all__ = [
    "compile_data",
    "CompiledBundle",
    "FilterParameters",
    "InvalidArgument",
]
