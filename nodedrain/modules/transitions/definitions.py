"""
LifecycleTransition definitions published at startup.

The driver advertises two cluster-wide transitions, usable on all nodes:
  1. drain-started -> drain-complete        (cordon + evict)
  2. uncordoning   -> maintenance-complete  (uncordon)

Publishing is an idempotent create-or-update and is not part of the
recurring request path.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from ..cluster import ClusterModule
from ..cluster.cluster import LIFECYCLE_GROUP, LIFECYCLE_VERSION
from .conditions import TransitionKind

logger = logging.getLogger("nodedrain.transitions")


def format_duration(seconds: float) -> str:
    """Render seconds the way Kubernetes serializes durations (e.g. 5m0s)."""
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


@dataclass
class TransitionDefinition:
    """A LifecycleTransition object owned by this driver."""

    name: str
    start: str
    end: str
    driver: str
    sla_seconds: float
    all_nodes: bool = True

    def to_manifest(self) -> Dict[str, Any]:
        """Build the Kubernetes object for this definition."""
        return {
            "apiVersion": f"{LIFECYCLE_GROUP}/{LIFECYCLE_VERSION}",
            "kind": "LifecycleTransition",
            "metadata": {"name": self.name},
            "spec": {
                "start": self.start,
                "end": self.end,
                "allNodes": self.all_nodes,
                "driver": self.driver,
                # Informational for the kubelet; not enforced by the driver
                "sla": format_duration(self.sla_seconds),
            },
        }


def build_definitions(driver_name: str, sla_seconds: float) -> List[TransitionDefinition]:
    """The two transitions this driver supports."""
    return [
        TransitionDefinition(
            name=f"{driver_name}-drain",
            start=TransitionKind.DRAIN.start,
            end=TransitionKind.DRAIN.end,
            driver=driver_name,
            sla_seconds=sla_seconds,
        ),
        TransitionDefinition(
            name=f"{driver_name}-maintenance-complete",
            start=TransitionKind.UNCORDON.start,
            end=TransitionKind.UNCORDON.end,
            driver=driver_name,
            sla_seconds=sla_seconds,
        ),
    ]


async def publish_definitions(cluster: ClusterModule, definitions: List[TransitionDefinition]) -> None:
    """
    Create or update every definition.

    Raises:
        ClusterError: Publishing failed (fatal at startup)
    """
    for definition in definitions:
        name, created = await cluster.create_or_update_transition(definition.to_manifest())
        logger.info(f"Published LifecycleTransition {name} ({'created' if created else 'updated'})")
