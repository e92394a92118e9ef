"""
Progress Module - Black Box Interface

Purpose: Track the drain currently in flight
Interface: begin_drain(), record_eviction_error(), record_sweep(), complete(),
           active_event, get(), snapshot()
Hidden: Locking, per-event records

Never authoritative for completion; the live cluster is.
"""

from .progress import DrainProgress, ProgressStore, SweepResult

__all__ = ["DrainProgress", "ProgressStore", "SweepResult"]
