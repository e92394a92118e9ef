"""
Eviction Module - Black Box Interface

Purpose: Evict a node's pods in a bounded background sweep
Interface: list_evictable(), sweep(), launch(), shutdown()
Hidden: Task supervision, deadlines, per-pod error recording

Can be replaced with a parallel or rate-limited evictor without affecting
the transition state machine.
"""

from .eviction import EvictionCoordinator

__all__ = ["EvictionCoordinator"]
