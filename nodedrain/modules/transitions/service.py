"""
Transition Service for nodedrain.

The state machine behind StartTransition and EndTransition.

Drain (drain-started -> drain-complete):
- Start: cordon the node, launch a background eviction sweep and return
  drain-started immediately.
- End: list evictable pods; none left gives drain-complete, otherwise
  drain-started ("still in progress, call again").

Uncordon (uncordoning -> maintenance-complete):
- Start: uncordon the node and return uncordoning.
- End: node schedulable gives maintenance-complete; otherwise uncordon again
  and return uncordoning.

Every End decision is re-derived from the live cluster, so End is safe to
call any number of times and on a freshly restarted driver.
"""

import logging
from typing import Awaitable, Callable, Dict, Optional

from ..api.models import EndTransitionRequest, StartTransitionRequest, TransitionResponse
from ..cluster import ClusterError, ClusterModule
from ..eviction import EvictionCoordinator
from ..nodes import NodeStateModule
from ..progress import ProgressStore
from .conditions import TransitionKind, TransitionPhase, resolve_end, resolve_start

logger = logging.getLogger("nodedrain.transitions")

Handler = Callable[[str, str, Optional[float]], Awaitable[TransitionResponse]]


class TransitionService:
    def __init__(
        self,
        cluster: ClusterModule,
        nodes: NodeStateModule,
        eviction: EvictionCoordinator,
        progress: ProgressStore,
        node_name: str,
    ):
        """
        Initialize transition service.

        Args:
            cluster: Cluster access facade
            nodes: Cordon/uncordon primitives
            eviction: Background eviction coordinator
            progress: Drain bookkeeping
            node_name: Node managed by this driver instance
        """
        self.cluster = cluster
        self.nodes = nodes
        self.eviction = eviction
        self.progress = progress
        self.node_name = node_name

        self._handlers: Dict[TransitionPhase, Handler] = {
            TransitionPhase.DRAIN_START: self._start_drain,
            TransitionPhase.DRAIN_END: self._end_drain,
            TransitionPhase.UNCORDON_START: self._start_uncordon,
            TransitionPhase.UNCORDON_END: self._end_uncordon,
        }
        missing = set(TransitionPhase) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for transition phases: {sorted(p.value for p in missing)}")

    def _target(self, node_name: str) -> str:
        return node_name or self.node_name

    async def start_transition(
        self, request: StartTransitionRequest, timeout: Optional[float] = None
    ) -> TransitionResponse:
        """
        Handle StartTransition.

        Raises:
            UnsupportedTransitionError: Unknown start condition
        """
        logger.info(
            f"StartTransition called: transition={request.transition_name} "
            f"event={request.event_name} node={request.node_name} start={request.start}"
        )
        phase = resolve_start(request.start)
        return await self._handlers[phase](request.event_name, self._target(request.node_name), timeout)

    async def end_transition(
        self, request: EndTransitionRequest, timeout: Optional[float] = None
    ) -> TransitionResponse:
        """
        Handle EndTransition.

        Raises:
            UnsupportedTransitionError: Unknown end condition
        """
        logger.info(
            f"EndTransition called: transition={request.transition_name} "
            f"event={request.event_name} node={request.node_name} end={request.end}"
        )
        phase = resolve_end(request.end)
        return await self._handlers[phase](request.event_name, self._target(request.node_name), timeout)

    # Drain

    async def _start_drain(self, event: str, node: str, timeout: Optional[float]) -> TransitionResponse:
        try:
            await self.nodes.cordon(node, timeout=timeout)
        except ClusterError as e:
            logger.warning(f"Cordon of node {node} failed: {e}")
            return TransitionResponse(node_name=node, error=f"cordon node: {e}")
        logger.info(f"Node {node} cordoned")

        drain = self.progress.begin_drain(event, node)
        self.eviction.launch(node, event, generation=drain.generation)

        return TransitionResponse(node_name=node, lifecycle_condition=TransitionKind.DRAIN.start)

    async def _end_drain(self, event: str, node: str, timeout: Optional[float]) -> TransitionResponse:
        try:
            pods = await self.eviction.list_evictable(node, timeout=timeout)
        except ClusterError as e:
            logger.warning(f"Listing pods on node {node} failed: {e}")
            return TransitionResponse(node_name=node, error=f"list pods: {e}")

        if not pods:
            logger.info(f"All pods evicted, drain complete: node={node}")
            self.progress.complete(event)
            return TransitionResponse(node_name=node, lifecycle_condition=TransitionKind.DRAIN.end)

        drain = self.progress.get(event)
        failures = len(drain.eviction_errors) if drain else 0
        logger.info(f"Waiting for drain to complete: node={node} remaining={len(pods)} eviction_errors={failures}")
        return TransitionResponse(node_name=node, lifecycle_condition=TransitionKind.DRAIN.start)

    # Uncordon

    async def _start_uncordon(self, event: str, node: str, timeout: Optional[float]) -> TransitionResponse:
        try:
            await self.nodes.uncordon(node, timeout=timeout)
        except ClusterError as e:
            logger.warning(f"Uncordon of node {node} failed: {e}")
            return TransitionResponse(node_name=node, error=f"uncordon node: {e}")
        logger.info(f"Node {node} uncordoned")

        return TransitionResponse(node_name=node, lifecycle_condition=TransitionKind.UNCORDON.start)

    async def _end_uncordon(self, event: str, node: str, timeout: Optional[float]) -> TransitionResponse:
        try:
            record = await self.cluster.get_node(node, timeout=timeout)
        except ClusterError as e:
            return TransitionResponse(node_name=node, error=f"get node: {e}")

        if not record.unschedulable:
            logger.info(f"Node {node} is schedulable, maintenance complete")
            return TransitionResponse(node_name=node, lifecycle_condition=TransitionKind.UNCORDON.end)

        # Earlier uncordon lost a race or never ran in this process
        logger.info(f"Node {node} still unschedulable, retrying uncordon")
        try:
            await self.nodes.uncordon(node, timeout=timeout)
        except ClusterError as e:
            return TransitionResponse(node_name=node, error=f"uncordon node: {e}")

        return TransitionResponse(node_name=node, lifecycle_condition=TransitionKind.UNCORDON.start)
