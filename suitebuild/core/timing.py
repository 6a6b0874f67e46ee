"""Per-step timings for one coordinator run."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator


class StepTimings:
    """Wall-clock seconds spent in each coordinator step, in run order.

    A step is recorded even when it raises, so a failed build still shows
    where the time went.

    Usage:
        timings = StepTimings()
        with timings.step("sub_builds"):
            run_sub_builds(...)
        log.success(timings.done_message())
    """

    def __init__(self) -> None:
        self.steps: dict[str, float] = {}
        self.started = time.monotonic()

    @contextmanager
    def step(self, name: str) -> Iterator[None]:
        start = time.monotonic()
        try:
            yield
        finally:
            self.steps[name] = self.steps.get(name, 0.0) + time.monotonic() - start

    def elapsed(self) -> float:
        """Seconds since the run started, including time between steps."""
        return time.monotonic() - self.started

    def report_lines(self) -> list[str]:
        """One aligned ``step  1.23s`` line per step."""
        if not self.steps:
            return ["(no steps ran)"]
        width = max(len(name) for name in self.steps)
        return [f"{name:<{width}}  {seconds:.2f}s" for name, seconds in self.steps.items()]

    def done_message(self) -> str:
        return f"Done, build took: {self.elapsed():.2f} seconds."
