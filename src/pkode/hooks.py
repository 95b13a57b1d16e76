# src/pkode/hooks.py
"""
Observability hooks for solve calls.

Callers pass an observer into solve_model / solve_regimen; nothing is
counted or logged globally.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolveEvent:
    """One finished solve_model call."""
    model_id: str
    method: str
    n_samples: int
    n_states: int


class SolveObserver(Protocol):
    def __call__(self, event: SolveEvent) -> None:
        ...


class SolveCounter:
    """Thread-safe count of solve calls, optionally broken down by model."""

    def __init__(self):
        self._lock = threading.Lock()
        self.total = 0
        self.by_model: dict[str, int] = {}

    def __call__(self, event: SolveEvent) -> None:
        with self._lock:
            self.total += 1
            self.by_model[event.model_id] = self.by_model.get(event.model_id, 0) + 1


class LoggingObserver:
    """Log each solve at the given level."""

    def __init__(self, level: int = logging.INFO, log: logging.Logger = logger):
        self.level = level
        self.log = log

    def __call__(self, event: SolveEvent) -> None:
        self.log.log(self.level, "simulation run model=%s method=%s samples=%d states=%d",
                     event.model_id, event.method, event.n_samples, event.n_states)
