"""Lifecycle condition labels and the closed set of transition phases."""

from enum import Enum

# Drain transition conditions
DRAIN_STARTED = "drain-started"
DRAIN_COMPLETE = "drain-complete"

# Uncordon transition conditions
UNCORDONING = "uncordoning"
MAINTENANCE_COMPLETE = "maintenance-complete"


class UnsupportedTransitionError(Exception):
    """
    A request named a condition this driver does not publish.

    This is a protocol/configuration mismatch, not a retryable failure.
    """

    def __init__(self, label: str, operation: str):
        super().__init__(f"driver does not support transition {label!r} in {operation}")
        self.label = label
        self.operation = operation


class TransitionKind(str, Enum):
    """The two transitions this driver implements."""

    DRAIN = "drain"
    UNCORDON = "uncordon"

    @property
    def start(self) -> str:
        return _CONDITIONS[self][0]

    @property
    def end(self) -> str:
        return _CONDITIONS[self][1]


_CONDITIONS = {
    TransitionKind.DRAIN: (DRAIN_STARTED, DRAIN_COMPLETE),
    TransitionKind.UNCORDON: (UNCORDONING, MAINTENANCE_COMPLETE),
}


class TransitionPhase(str, Enum):
    """Every (transition, phase) pair a request can resolve to."""

    DRAIN_START = "drain-start"
    DRAIN_END = "drain-end"
    UNCORDON_START = "uncordon-start"
    UNCORDON_END = "uncordon-end"

    @property
    def kind(self) -> TransitionKind:
        if self in (TransitionPhase.DRAIN_START, TransitionPhase.DRAIN_END):
            return TransitionKind.DRAIN
        return TransitionKind.UNCORDON


_START_PHASES = {
    DRAIN_STARTED: TransitionPhase.DRAIN_START,
    UNCORDONING: TransitionPhase.UNCORDON_START,
}

_END_PHASES = {
    DRAIN_COMPLETE: TransitionPhase.DRAIN_END,
    MAINTENANCE_COMPLETE: TransitionPhase.UNCORDON_END,
}


def resolve_start(label: str) -> TransitionPhase:
    """
    Resolve a StartTransition condition label.

    Raises:
        UnsupportedTransitionError: Unknown label
    """
    try:
        return _START_PHASES[label]
    except KeyError:
        raise UnsupportedTransitionError(label, "StartTransition") from None


def resolve_end(label: str) -> TransitionPhase:
    """
    Resolve an EndTransition condition label.

    Raises:
        UnsupportedTransitionError: Unknown label
    """
    try:
        return _END_PHASES[label]
    except KeyError:
        raise UnsupportedTransitionError(label, "EndTransition") from None
