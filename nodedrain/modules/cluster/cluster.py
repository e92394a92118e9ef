"""
Cluster Module for nodedrain.

Thin asynchronous facade over the Kubernetes API. The driver core only needs
four operations on core resources (get node, update node scheduling, list pods
by node, evict pod) plus one startup operation for publishing
LifecycleTransition objects.

Design Principles:
- The official client is synchronous: every call runs in a worker thread
- Every call is bounded by a request timeout
- Kubernetes exceptions never leave this module; they are translated into
  ClusterError and its subclasses
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple

import urllib3
from kubernetes import client
from kubernetes.client.exceptions import ApiException

logger = logging.getLogger("nodedrain.cluster")

MIRROR_POD_ANNOTATION = "kubernetes.io/config.mirror"

LIFECYCLE_GROUP = "lifecycle.k8s.io"
LIFECYCLE_VERSION = "v1alpha1"
LIFECYCLE_TRANSITIONS = "lifecycletransitions"


class ClusterError(Exception):
    """A Kubernetes API call failed. Always retryable by the caller."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NotFoundError(ClusterError):
    """The requested object does not exist."""


class ConflictError(ClusterError):
    """A write was rejected (stale resourceVersion or object already exists)."""


@dataclass
class NodeRecord:
    """The slice of a Node the driver cares about."""

    name: str
    unschedulable: bool
    resource_version: Optional[str] = None

    @classmethod
    def from_api(cls, node: Any) -> "NodeRecord":
        spec = node.spec
        return cls(
            name=node.metadata.name,
            unschedulable=bool(spec.unschedulable) if spec is not None else False,
            resource_version=node.metadata.resource_version,
        )


@dataclass
class PodRecord:
    """The slice of a Pod the driver cares about. Read-only."""

    name: str
    namespace: str
    owner_kinds: List[str] = field(default_factory=list)
    deletion_timestamp: Optional[datetime] = None
    phase: Optional[str] = None
    annotations: Dict[str, str] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    @property
    def is_mirror(self) -> bool:
        return MIRROR_POD_ANNOTATION in self.annotations

    @classmethod
    def from_api(cls, pod: Any) -> "PodRecord":
        metadata = pod.metadata
        return cls(
            name=metadata.name,
            namespace=metadata.namespace,
            owner_kinds=[ref.kind for ref in (metadata.owner_references or [])],
            deletion_timestamp=metadata.deletion_timestamp,
            phase=pod.status.phase if pod.status is not None else None,
            annotations=dict(metadata.annotations or {}),
        )


def _status_message(body: Any) -> Optional[str]:
    """Extract the message of a metav1.Status response body, if there is one."""
    if not body:
        return None
    try:
        status = json.loads(body)
    except (TypeError, ValueError):
        return None
    if isinstance(status, dict):
        return status.get("message") or None
    return None


def _translate(exc: Exception) -> ClusterError:
    """Map a client exception onto the module's error types."""
    if isinstance(exc, ApiException):
        message = f"{exc.status} {exc.reason}".strip()
        detail = _status_message(exc.body)
        if detail:
            message = f"{message}: {detail}"
        if exc.status == 404:
            return NotFoundError(message, status=404)
        if exc.status == 409:
            return ConflictError(message, status=409)
        return ClusterError(message, status=exc.status)
    return ClusterError(str(exc) or exc.__class__.__name__)


class ClusterModule:
    """
    Kubernetes API facade.

    Follows the same shape as the other modules:
    - Receives its client objects in __init__ (easy to mock)
    - Async public interface
    - Typed records in, typed records out
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        core_api: client.CoreV1Api,
        custom_api: Optional[client.CustomObjectsApi] = None,
        request_timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize cluster module.

        Args:
            core_api: CoreV1Api instance (nodes, pods, evictions)
            custom_api: CustomObjectsApi instance (LifecycleTransitions)
            request_timeout: Default per-call timeout in seconds
        """
        self.core = core_api
        self.custom = custom_api
        self.request_timeout = request_timeout

    async def _call(self, fn: Callable, *args, timeout: Optional[float] = None, **kwargs) -> Any:
        kwargs["_request_timeout"] = timeout or self.request_timeout
        try:
            return await asyncio.to_thread(partial(fn, *args, **kwargs))
        except (ApiException, urllib3.exceptions.HTTPError, OSError) as e:
            raise _translate(e) from e

    async def get_node(self, name: str, timeout: Optional[float] = None) -> NodeRecord:
        """
        Read a node.

        Raises:
            NotFoundError: Node does not exist
            ClusterError: Any other API failure
        """
        node = await self._call(self.core.read_node, name, timeout=timeout)
        return NodeRecord.from_api(node)

    async def set_unschedulable(
        self,
        name: str,
        unschedulable: bool,
        resource_version: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> NodeRecord:
        """
        Set spec.unschedulable on a node.

        When resource_version is given the write is conditional on it, so a
        write based on a stale read is rejected with ConflictError instead
        of being merged.
        """
        body: Dict[str, Any] = {"spec": {"unschedulable": unschedulable}}
        if resource_version:
            body["metadata"] = {"resourceVersion": resource_version}

        node = await self._call(self.core.patch_node, name, body, timeout=timeout)
        return NodeRecord.from_api(node)

    async def list_pods_on_node(self, name: str, timeout: Optional[float] = None) -> List[PodRecord]:
        """List pods bound to a node across all namespaces."""
        pod_list = await self._call(
            self.core.list_pod_for_all_namespaces,
            field_selector=f"spec.nodeName={name}",
            timeout=timeout,
        )
        return [PodRecord.from_api(pod) for pod in pod_list.items]

    async def evict(
        self,
        pod: PodRecord,
        grace_period: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Request eviction of a pod.

        A pod that is already gone counts as evicted. A grace period of
        None (or negative) leaves the pod's own terminationGracePeriodSeconds
        in effect.
        """
        delete_options = client.V1DeleteOptions()
        if grace_period is not None and grace_period >= 0:
            delete_options.grace_period_seconds = grace_period

        body = client.V1Eviction(
            metadata=client.V1ObjectMeta(name=pod.name, namespace=pod.namespace),
            delete_options=delete_options,
        )
        try:
            await self._call(
                self.core.create_namespaced_pod_eviction,
                pod.name,
                pod.namespace,
                body,
                timeout=timeout,
            )
        except NotFoundError:
            logger.debug(f"Pod {pod.key} already gone")

    async def create_or_update_transition(self, manifest: Dict[str, Any]) -> Tuple[str, bool]:
        """
        Create a cluster-scoped LifecycleTransition or replace its spec.

        Args:
            manifest: Full object manifest (apiVersion, kind, metadata, spec)

        Returns:
            Tuple of (name, created)
        """
        if self.custom is None:
            raise ClusterError("CustomObjectsApi not configured")

        name = manifest["metadata"]["name"]
        try:
            await self._call(
                self.custom.create_cluster_custom_object,
                LIFECYCLE_GROUP,
                LIFECYCLE_VERSION,
                LIFECYCLE_TRANSITIONS,
                manifest,
            )
            return name, True
        except ConflictError:
            pass

        existing = await self._call(
            self.custom.get_cluster_custom_object,
            LIFECYCLE_GROUP,
            LIFECYCLE_VERSION,
            LIFECYCLE_TRANSITIONS,
            name,
        )
        existing["spec"] = manifest["spec"]
        await self._call(
            self.custom.replace_cluster_custom_object,
            LIFECYCLE_GROUP,
            LIFECYCLE_VERSION,
            LIFECYCLE_TRANSITIONS,
            name,
            existing,
        )
        return name, False
