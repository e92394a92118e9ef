import logging
from typing import Optional

from ..cluster import ClusterModule

logger = logging.getLogger("nodedrain.nodes")


class NodeStateModule:
    def __init__(self, cluster: ClusterModule):
        """
        Initialize node state module.

        Args:
            cluster: Cluster access facade
        """
        self.cluster = cluster

    async def cordon(self, name: str, timeout: Optional[float] = None) -> bool:
        """
        Mark a node unschedulable.

        Returns:
            True if the node was updated, False if it was already cordoned
        """
        return await self._set_unschedulable(name, True, timeout)

    async def uncordon(self, name: str, timeout: Optional[float] = None) -> bool:
        """
        Mark a node schedulable.

        Returns:
            True if the node was updated, False if it was already schedulable
        """
        return await self._set_unschedulable(name, False, timeout)

    async def _set_unschedulable(self, name: str, unschedulable: bool, timeout: Optional[float]) -> bool:
        """
        Single read-modify-write cycle.

        No retry on conflict: ConflictError propagates and the kubelet's
        next poll re-attempts the whole phase.
        """
        node = await self.cluster.get_node(name, timeout=timeout)
        if node.unschedulable == unschedulable:
            return False

        await self.cluster.set_unschedulable(
            name,
            unschedulable,
            resource_version=node.resource_version,
            timeout=timeout,
        )
        logger.debug(f"Set unschedulable={unschedulable} on node {name}")
        return True
