"""
Pods Module - Black Box Interface

Purpose: Decide which pods a drain must evict
Interface: is_evictable(), filter_evictable(), skip_reason()
Hidden: The individual skip rules

Pure functions over PodRecord. Results are never cached because pod state
changes continuously.
"""

from .eligibility import filter_evictable, is_evictable, skip_reason

__all__ = ["filter_evictable", "is_evictable", "skip_reason"]
