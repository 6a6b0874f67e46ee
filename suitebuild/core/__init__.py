"""
suitebuild.core - Foundation layer for suitebuild.

Exports logging, subprocess and timing utilities.
"""

from suitebuild.core.utils import (
    log,
    Logger,
    run_cmd,
    copy_file,
)
from suitebuild.core.timing import StepTimings

__all__ = [
    # Logging
    "log",
    "Logger",
    # Runtime utilities
    "run_cmd",
    "copy_file",
    # Timing
    "StepTimings",
]
