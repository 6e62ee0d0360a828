"""Progress reporting as a 0-100 percentage.

The initial load moves through fixed checkpoints; an extension fills the
remaining span, split between second-degree fetching and stub hydration
and subdivided per API batch.
"""

import logging
from typing import Callable, Optional

from .events import GraphEvent, ProgressEvent

logger = logging.getLogger(__name__)

# Checkpoints of the initial load (percent reached when the step finishes)
INITIAL_LOAD_WEIGHTS = {
    "initializing": 0,
    "first_degree": 10,
    "semantic_scholar": 40,
    "hydrate_master": 50,
    "reconcile_authors": 55,
    "complete": 70,
}

# Shares of the extension span, summing to 100
EXTENSION_WEIGHTS = {
    "second_degree": 80,
    "hydrate_stubs": 20,
}

EXTENSION_START = INITIAL_LOAD_WEIGHTS["complete"]
EXTENSION_SPAN = 100 - EXTENSION_START


class ProgressTracker:
    """Tracks the current percentage and emits progress-update events."""

    def __init__(self, emit: Optional[Callable[[GraphEvent], None]] = None):
        self._emit = emit
        self.percent = 0.0

    def set(self, percent: float, message: Optional[str] = None) -> None:
        self.percent = max(0.0, min(100.0, percent))
        if self._emit:
            self._emit(ProgressEvent(percent=round(self.percent, 2), message=message))

    def checkpoint(self, name: str, message: Optional[str] = None) -> None:
        """Jump to a named initial-load checkpoint."""
        self.set(INITIAL_LOAD_WEIGHTS[name], message)

    def advance(self, delta: float, message: Optional[str] = None) -> None:
        self.set(self.percent + delta, message)

    def extension_step(self, step: str, total_batches: int) -> float:
        """Percent to add per batch for an extension step."""
        share = EXTENSION_SPAN * EXTENSION_WEIGHTS[step] / 100
        return share / total_batches if total_batches else share
