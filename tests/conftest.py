"""
Shared pytest fixtures for nodedrain tests.

This module provides common fixtures including:
- FakeCluster: In-memory stand-in for ClusterModule with call recording
  and failure injection
- Pod and node builders
- Wired driver modules (progress, eviction, transition service)
"""

import asyncio
import dataclasses
import os
import sys
from datetime import UTC, datetime
from typing import Dict, List, Optional, Tuple

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nodedrain.modules.cluster import (
    MIRROR_POD_ANNOTATION,
    ClusterError,
    ConflictError,
    NodeRecord,
    NotFoundError,
    PodRecord,
)
from nodedrain.modules.eviction import EvictionCoordinator
from nodedrain.modules.nodes import NodeStateModule
from nodedrain.modules.progress import ProgressStore
from nodedrain.modules.transitions import TransitionService


# =============================================================================
# Builders
# =============================================================================

def make_pod(
    name: str,
    namespace: str = "default",
    owner_kind: Optional[str] = None,
    mirror: bool = False,
    terminating: bool = False,
    phase: str = "Running",
) -> PodRecord:
    """Build a PodRecord with the attributes the eligibility rules look at."""
    return PodRecord(
        name=name,
        namespace=namespace,
        owner_kinds=[owner_kind] if owner_kind else [],
        deletion_timestamp=datetime.now(UTC) if terminating else None,
        phase=phase,
        annotations={MIRROR_POD_ANNOTATION: "abc123"} if mirror else {},
    )


# =============================================================================
# Fake cluster
# =============================================================================

@dataclasses.dataclass
class EvictionCall:
    """Record of an eviction made during testing."""
    pod: str
    grace_period: Optional[int]
    timeout: Optional[float]


class FakeCluster:
    """
    In-memory cluster implementing the ClusterModule interface.

    Usage:
        async def test_cordon(fake_cluster):
            fake_cluster.add_node("w1")
            fake_cluster.fail_next("get_node", ClusterError("boom"))
            ...
            assert fake_cluster.writes == [("w1", True)]
    """

    def __init__(self):
        self.nodes: Dict[str, NodeRecord] = {}
        self.pods: Dict[str, Tuple[str, PodRecord]] = {}
        self.writes: List[Tuple[str, bool]] = []
        self.evictions: List[EvictionCall] = []
        self.evict_errors: Dict[str, Exception] = {}
        self.evict_delay: float = 0.0
        self.transitions: Dict[str, dict] = {}
        self._failures: Dict[str, List[ClusterError]] = {}
        self._version = 0

    # Setup helpers

    def add_node(self, name: str, unschedulable: bool = False) -> NodeRecord:
        self._version += 1
        node = NodeRecord(name=name, unschedulable=unschedulable, resource_version=str(self._version))
        self.nodes[name] = node
        return node

    def add_pod(self, node: str, pod: PodRecord) -> PodRecord:
        self.pods[pod.key] = (node, pod)
        return pod

    def fail_next(self, operation: str, error: ClusterError, times: int = 1) -> "FakeCluster":
        """Make the next `times` calls of an operation raise `error`."""
        self._failures.setdefault(operation, []).extend([error] * times)
        return self

    def pods_on(self, node: str) -> List[PodRecord]:
        return [pod for (bound, pod) in self.pods.values() if bound == node]

    def _maybe_fail(self, operation: str) -> None:
        pending = self._failures.get(operation)
        if pending:
            raise pending.pop(0)

    # ClusterModule interface

    async def get_node(self, name: str, timeout: Optional[float] = None) -> NodeRecord:
        self._maybe_fail("get_node")
        if name not in self.nodes:
            raise NotFoundError("404 Not Found", status=404)
        return dataclasses.replace(self.nodes[name])

    async def set_unschedulable(
        self,
        name: str,
        unschedulable: bool,
        resource_version: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> NodeRecord:
        self._maybe_fail("set_unschedulable")
        if name not in self.nodes:
            raise NotFoundError("404 Not Found", status=404)
        current = self.nodes[name]
        if resource_version and resource_version != current.resource_version:
            raise ConflictError("409 Conflict", status=409)
        self._version += 1
        self.nodes[name] = NodeRecord(name=name, unschedulable=unschedulable, resource_version=str(self._version))
        self.writes.append((name, unschedulable))
        return dataclasses.replace(self.nodes[name])

    async def list_pods_on_node(self, name: str, timeout: Optional[float] = None) -> List[PodRecord]:
        self._maybe_fail("list_pods_on_node")
        return self.pods_on(name)

    async def evict(self, pod: PodRecord, grace_period: Optional[int] = None, timeout: Optional[float] = None) -> None:
        self.evictions.append(EvictionCall(pod=pod.key, grace_period=grace_period, timeout=timeout))
        if self.evict_delay:
            await asyncio.sleep(self.evict_delay)
        if pod.key in self.evict_errors:
            raise self.evict_errors[pod.key]
        self.pods.pop(pod.key, None)

    async def create_or_update_transition(self, manifest: dict) -> Tuple[str, bool]:
        self._maybe_fail("create_or_update_transition")
        name = manifest["metadata"]["name"]
        created = name not in self.transitions
        self.transitions[name] = manifest
        return name, created


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_cluster():
    """Fake cluster with a single schedulable node named w1."""
    cluster = FakeCluster()
    cluster.add_node("w1")
    return cluster


@pytest.fixture
def progress():
    return ProgressStore()


@pytest.fixture
def eviction(fake_cluster, progress):
    return EvictionCoordinator(fake_cluster, progress, grace_period=None, eviction_timeout=5.0)


@pytest.fixture
def service(fake_cluster, progress, eviction):
    """Transition service for node w1 backed by the fake cluster."""
    return TransitionService(
        cluster=fake_cluster,
        nodes=NodeStateModule(fake_cluster),
        eviction=eviction,
        progress=progress,
        node_name="w1",
    )


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring infrastructure"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests requiring a real cluster"
    )
