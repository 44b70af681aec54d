"""
Timing Utilities

Step timers for the analysis pipeline. Durations are logged under the
``[TIMING]`` tag and kept on the timer so callers can report them.
"""

import logging
import time
from contextlib import asynccontextmanager, contextmanager
from typing import Optional

logger = logging.getLogger(__name__)


def log_timing(scope: str, action: str, duration_ms: Optional[float] = None):
    """Log a timing event in standard format."""
    if duration_ms is not None:
        logger.info("[TIMING] %s: %s duration=%.0fms", scope, action, duration_ms)
    else:
        logger.info("[TIMING] %s: %s", scope, action)


class StepTimer:
    """
    Times the named steps of one pipeline run.

    Usage:
        timer = StepTimer("analysis")
        with timer.step("score"):
            signals = detector.analyze_fragments(fragments)
        async with timer.async_step("classify"):
            signals = await classifier.classify(signals)
        timer.summary()
    """

    def __init__(self, scope: str):
        self.scope = scope
        self.steps: dict[str, float] = {}
        self.start_time = time.perf_counter()

    def _record(self, step_name: str, start: float):
        duration_ms = (time.perf_counter() - start) * 1000
        self.steps[step_name] = duration_ms
        log_timing(self.scope, step_name, duration_ms)

    @contextmanager
    def step(self, step_name: str):
        """Time a single step."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self._record(step_name, start)

    @asynccontextmanager
    async def async_step(self, step_name: str):
        """Time a single async step."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self._record(step_name, start)

    def summary(self) -> float:
        """Log and return the total elapsed time."""
        total_ms = (time.perf_counter() - self.start_time) * 1000
        log_timing(self.scope, "TOTAL", total_ms)
        return total_ms
