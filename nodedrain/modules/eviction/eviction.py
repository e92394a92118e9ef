"""
Eviction Module for nodedrain.

Runs the pod eviction sweep that follows a successful cordon. The sweep is
launched in the background and outlives the request that started it, so it
carries its own deadline instead of the request's.

Design Principles:
- Sequential evictions bound the rate of disruption
- One stuck pod never blocks the others
- Silent on abandonment: the kubelet learns about progress by polling
  the live pod list, not from the sweep
"""

import asyncio
import logging
from typing import List, Optional, Set

from ..cluster import ClusterError, ClusterModule, PodRecord
from ..pods import filter_evictable, skip_reason
from ..progress import ProgressStore, SweepResult

logger = logging.getLogger("nodedrain.eviction")


class EvictionCoordinator:
    # Upper bound on a single background sweep
    SWEEP_TIMEOUT = 600

    def __init__(
        self,
        cluster: ClusterModule,
        progress: ProgressStore,
        grace_period: Optional[int] = None,
        eviction_timeout: float = 30.0,
        sweep_timeout: float = SWEEP_TIMEOUT,
    ):
        """
        Initialize eviction coordinator.

        Args:
            cluster: Cluster access facade
            progress: Store receiving per-pod errors and sweep counts
            grace_period: Termination grace period override, None for pod default
            eviction_timeout: Timeout for each eviction call in seconds
            sweep_timeout: Wall-clock bound for a background sweep in seconds
        """
        self.cluster = cluster
        self.progress = progress
        self.grace_period = grace_period
        self.eviction_timeout = eviction_timeout
        self.sweep_timeout = sweep_timeout
        self._tasks: Set[asyncio.Task] = set()

    async def list_evictable(self, node: str, timeout: Optional[float] = None) -> List[PodRecord]:
        """
        List pods on a node that still need evicting.

        Raises:
            ClusterError: Listing failed
        """
        pods = await self.cluster.list_pods_on_node(node, timeout=timeout)
        if logger.isEnabledFor(logging.DEBUG):
            for pod in pods:
                reason = skip_reason(pod)
                if reason:
                    logger.debug(f"Skipping pod {pod.key}: {reason}")
        return filter_evictable(pods)

    async def sweep(self, node: str, event: str, generation: Optional[int] = None) -> SweepResult:
        """
        Evict every evictable pod on a node, one at a time.

        Args:
            node: Node to sweep
            event: Drain event the results are recorded under
            generation: Progress record generation the results belong to

        Returns:
            SweepResult with evicted, failed and total counts
        """
        try:
            pods = await self.list_evictable(node)
        except ClusterError as e:
            logger.error(f"Failed to list pods for eviction on node {node}: {e}")
            return SweepResult()

        result = SweepResult(total=len(pods))
        for pod in pods:
            try:
                await self.cluster.evict(pod, grace_period=self.grace_period, timeout=self.eviction_timeout)
            except ClusterError as e:
                logger.debug(f"Eviction failed for pod {pod.key}: {e}")
                self.progress.record_eviction_error(event, pod.key, str(e), generation=generation)
                result.failed += 1
            except Exception as e:
                logger.warning(f"Unexpected error evicting pod {pod.key}: {e!r}", exc_info=True)
                self.progress.record_eviction_error(event, pod.key, repr(e), generation=generation)
                result.failed += 1
            else:
                logger.debug(f"Pod {pod.key} evicted")
                result.evicted += 1

        self.progress.record_sweep(event, result, generation=generation)
        return result

    async def _run(self, node: str, event: str, generation: Optional[int]) -> Optional[SweepResult]:
        try:
            result = await asyncio.wait_for(self.sweep(node, event, generation), timeout=self.sweep_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Eviction sweep for event {event} on node {node} abandoned after {self.sweep_timeout}s"
            )
            return None
        except Exception:
            logger.exception(f"Eviction sweep for event {event} on node {node} failed")
            return None

        logger.info(
            f"Background eviction pass complete: node={node} event={event} "
            f"total={result.total} evicted={result.evicted} failed={result.failed}"
        )
        return result

    def launch(self, node: str, event: str, generation: Optional[int] = None) -> asyncio.Task:
        """
        Start a sweep in the background and return without waiting.

        The task is not tied to the calling request: finishing or cancelling
        the request leaves the sweep running until it completes or hits
        sweep_timeout.
        """
        task = asyncio.create_task(self._run(node, event, generation), name=f"evict-{node}-{event}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def running(self) -> int:
        """Number of sweeps still in flight."""
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every in-flight sweep has finished or been abandoned."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel in-flight sweeps (process shutdown)."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} eviction sweep(s)")
