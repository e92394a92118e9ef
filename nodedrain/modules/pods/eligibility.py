"""Pod eviction eligibility rules."""

from typing import Iterable, List, Optional

from ..cluster import PodRecord

DAEMONSET_KIND = "DaemonSet"
TERMINAL_PHASES = frozenset({"Succeeded", "Failed"})


def skip_reason(pod: PodRecord) -> Optional[str]:
    """
    Explain why a pod is not evicted.

    Returns:
        A short reason string, or None if the pod should be evicted
    """
    # Static pods are owned by the kubelet, not the scheduler
    if pod.is_mirror:
        return "mirror pod"

    # Would be recreated on this node straight away
    if DAEMONSET_KIND in pod.owner_kinds:
        return "daemonset pod"

    if pod.deletion_timestamp is not None:
        return "already terminating"

    if pod.phase in TERMINAL_PHASES:
        return f"phase {pod.phase}"

    return None


def is_evictable(pod: PodRecord) -> bool:
    """Check whether a pod should be evicted when draining its node."""
    return skip_reason(pod) is None


def filter_evictable(pods: Iterable[PodRecord]) -> List[PodRecord]:
    """Keep only evictable pods, preserving order."""
    return [pod for pod in pods if is_evictable(pod)]
