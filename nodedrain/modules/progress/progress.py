"""
Progress Module for nodedrain.

Keeps diagnostic bookkeeping about the drain currently in flight: which event
is active, the last eviction error per pod and the counts from the last sweep.

Design Principles:
- Addressable by event id and generation: a sweep writes only into the
  record it was launched for
- At most one active drain per driver instance; a new drain replaces it
- Diagnostic only: completion is always derived from live cluster state
- Process-local: a restart loses everything, which is safe
"""

import threading
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any, Dict, Optional


@dataclass
class SweepResult:
    """Outcome of one eviction sweep."""

    evicted: int = 0
    failed: int = 0
    total: int = 0


@dataclass
class DrainProgress:
    """Bookkeeping for a single drain event."""

    event: str
    node: str
    started_at: str
    eviction_errors: Dict[str, str] = field(default_factory=dict)
    last_sweep: Optional[SweepResult] = None
    completed_at: Optional[str] = None
    generation: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


class ProgressStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._active_event: Optional[str] = None
        self._drains: Dict[str, DrainProgress] = {}
        self._generation = 0

    @property
    def active_event(self) -> Optional[str]:
        """Event currently being drained, or None when idle."""
        with self._lock:
            return self._active_event

    def begin_drain(self, event: str, node: str) -> DrainProgress:
        """
        Start tracking a drain event.

        Any previously tracked event (and its per-pod errors) is dropped. The
        returned record carries a fresh generation, so a sweep started for an
        earlier attempt of the same event can no longer write into it.
        """
        with self._lock:
            self._generation += 1
            progress = DrainProgress(
                event=event,
                node=node,
                started_at=datetime.now(UTC).isoformat(),
                generation=self._generation,
            )
            self._active_event = event
            self._drains = {event: progress}
        return progress

    def _current(self, event: str, generation: Optional[int]) -> Optional[DrainProgress]:
        progress = self._drains.get(event)
        if progress is None:
            return None
        if generation is not None and progress.generation != generation:
            return None
        return progress

    def record_eviction_error(
        self, event: str, pod_key: str, message: str, generation: Optional[int] = None
    ) -> bool:
        """
        Remember the last eviction error for a pod.

        Args:
            generation: When given, the write only lands in that exact record

        Returns:
            False if the event (or that generation of it) is no longer tracked
        """
        with self._lock:
            progress = self._current(event, generation)
            if progress is None:
                return False
            progress.eviction_errors[pod_key] = message
            return True

    def record_sweep(self, event: str, result: SweepResult, generation: Optional[int] = None) -> bool:
        """Store the counts of a finished sweep."""
        with self._lock:
            progress = self._current(event, generation)
            if progress is None:
                return False
            progress.last_sweep = result
            return True

    def complete(self, event: str) -> None:
        """Mark a drain as complete and clear it as the active event."""
        with self._lock:
            progress = self._drains.get(event)
            if progress is not None and progress.completed_at is None:
                progress.completed_at = datetime.now(UTC).isoformat()
            if self._active_event == event:
                self._active_event = None

    def get(self, event: str) -> Optional[DrainProgress]:
        """Get a copy of an event's progress."""
        with self._lock:
            progress = self._drains.get(event)
            if progress is None:
                return None
            return DrainProgress(**{**asdict(progress), "last_sweep": progress.last_sweep})

    def snapshot(self) -> Dict[str, Any]:
        """Dump the whole store for diagnostics."""
        with self._lock:
            return {
                "active_event": self._active_event,
                "drains": {event: p.to_dict() for event, p in self._drains.items()},
            }
