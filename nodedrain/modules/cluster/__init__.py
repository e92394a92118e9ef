"""
Cluster Module - Black Box Interface

Purpose: Kubernetes API access for the drain driver
Interface: get_node(), set_unschedulable(), list_pods_on_node(), evict(),
           create_or_update_transition()
Hidden: kubernetes client objects, threading, exception translation

Can be replaced with any backend that honours optimistic concurrency
(a stale write is rejected, not merged).
"""

from .cluster import (
    MIRROR_POD_ANNOTATION,
    ClusterError,
    ClusterModule,
    ConflictError,
    NodeRecord,
    NotFoundError,
    PodRecord,
)
from .factory import ClusterFactory

__all__ = [
    "MIRROR_POD_ANNOTATION",
    "ClusterError",
    "ClusterFactory",
    "ClusterModule",
    "ConflictError",
    "NodeRecord",
    "NotFoundError",
    "PodRecord",
]
