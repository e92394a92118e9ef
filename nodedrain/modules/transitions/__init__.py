"""
Transitions Module - Black Box Interface

Purpose: Drive a node through drain and uncordon lifecycle transitions
Interface: TransitionService.start_transition(), TransitionService.end_transition(),
           build_definitions(), publish_definitions()
Hidden: Phase dispatch, cordon/evict/uncordon sequencing

Completion is always derived from live cluster state, never from memory.
"""

from .conditions import (
    DRAIN_COMPLETE,
    DRAIN_STARTED,
    MAINTENANCE_COMPLETE,
    UNCORDONING,
    TransitionKind,
    TransitionPhase,
    UnsupportedTransitionError,
    resolve_end,
    resolve_start,
)
from .definitions import TransitionDefinition, build_definitions, format_duration, publish_definitions
from .service import TransitionService

__all__ = [
    "DRAIN_COMPLETE",
    "DRAIN_STARTED",
    "MAINTENANCE_COMPLETE",
    "UNCORDONING",
    "TransitionDefinition",
    "TransitionKind",
    "TransitionPhase",
    "TransitionService",
    "UnsupportedTransitionError",
    "build_definitions",
    "format_duration",
    "publish_definitions",
    "resolve_end",
    "resolve_start",
]
