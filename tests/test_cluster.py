"""
Tests for the Kubernetes API facade.

The official client objects are replaced with MagicMocks; only the
translation between client models and records is exercised here.
"""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from kubernetes.client.exceptions import ApiException

from conftest import make_pod
from nodedrain.modules.cluster import (
    ClusterError,
    ClusterModule,
    ConflictError,
    NotFoundError,
    PodRecord,
)


def api_node(name="w1", unschedulable=None, resource_version="100"):
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, resource_version=resource_version),
        spec=SimpleNamespace(unschedulable=unschedulable),
    )


def api_pod(name, namespace="default", owners=(), annotations=None, deletion=None, phase="Running"):
    return SimpleNamespace(
        metadata=SimpleNamespace(
            name=name,
            namespace=namespace,
            owner_references=[SimpleNamespace(kind=k) for k in owners] or None,
            annotations=annotations,
            deletion_timestamp=deletion,
        ),
        status=SimpleNamespace(phase=phase),
    )


@pytest.fixture
def core_api():
    return MagicMock()


@pytest.fixture
def custom_api():
    return MagicMock()


@pytest.fixture
def cluster(core_api, custom_api):
    return ClusterModule(core_api, custom_api, request_timeout=12)


class TestNodes:
    """Node reads and scheduling writes."""

    @pytest.mark.asyncio
    async def test_get_node(self, cluster, core_api):
        core_api.read_node.return_value = api_node(unschedulable=True)

        node = await cluster.get_node("w1")

        assert node.name == "w1"
        assert node.unschedulable is True
        assert node.resource_version == "100"
        core_api.read_node.assert_called_once_with("w1", _request_timeout=12)

    @pytest.mark.asyncio
    async def test_unset_unschedulable_reads_as_false(self, cluster, core_api):
        core_api.read_node.return_value = api_node(unschedulable=None)

        assert (await cluster.get_node("w1")).unschedulable is False

    @pytest.mark.asyncio
    async def test_explicit_timeout_overrides_default(self, cluster, core_api):
        core_api.read_node.return_value = api_node()

        await cluster.get_node("w1", timeout=3)

        core_api.read_node.assert_called_once_with("w1", _request_timeout=3)

    @pytest.mark.asyncio
    async def test_missing_node(self, cluster, core_api):
        core_api.read_node.side_effect = ApiException(status=404, reason="Not Found")

        with pytest.raises(NotFoundError) as exc_info:
            await cluster.get_node("nope")
        assert exc_info.value.status == 404

    @pytest.mark.asyncio
    async def test_set_unschedulable_is_conditional(self, cluster, core_api):
        core_api.patch_node.return_value = api_node(unschedulable=True, resource_version="101")

        node = await cluster.set_unschedulable("w1", True, resource_version="100")

        assert node.unschedulable is True
        core_api.patch_node.assert_called_once_with(
            "w1",
            {"spec": {"unschedulable": True}, "metadata": {"resourceVersion": "100"}},
            _request_timeout=12,
        )

    @pytest.mark.asyncio
    async def test_set_unschedulable_without_version(self, cluster, core_api):
        core_api.patch_node.return_value = api_node()

        await cluster.set_unschedulable("w1", False)

        body = core_api.patch_node.call_args.args[1]
        assert body == {"spec": {"unschedulable": False}}

    @pytest.mark.asyncio
    async def test_stale_write_is_conflict(self, cluster, core_api):
        core_api.patch_node.side_effect = ApiException(status=409, reason="Conflict")

        with pytest.raises(ConflictError, match="409 Conflict"):
            await cluster.set_unschedulable("w1", True, resource_version="99")


class TestPods:
    """Pod listing and eviction."""

    @pytest.mark.asyncio
    async def test_list_pods_uses_node_field_selector(self, cluster, core_api):
        core_api.list_pod_for_all_namespaces.return_value = SimpleNamespace(
            items=[
                api_pod("web", owners=["ReplicaSet"]),
                api_pod("etcd-w1", "kube-system", annotations={"kubernetes.io/config.mirror": "abc"}),
            ]
        )

        pods = await cluster.list_pods_on_node("w1")

        core_api.list_pod_for_all_namespaces.assert_called_once_with(
            field_selector="spec.nodeName=w1", _request_timeout=12
        )
        assert [p.key for p in pods] == ["default/web", "kube-system/etcd-w1"]
        assert pods[0].owner_kinds == ["ReplicaSet"]
        assert pods[1].is_mirror

    def test_pod_record_without_status(self):
        pod = api_pod("web")
        pod.status = None

        assert PodRecord.from_api(pod).phase is None

    @pytest.mark.asyncio
    async def test_evict_builds_eviction_body(self, cluster, core_api):
        await cluster.evict(make_pod("web", namespace="shop"), grace_period=10, timeout=5)

        name, namespace, body = core_api.create_namespaced_pod_eviction.call_args.args
        assert (name, namespace) == ("web", "shop")
        assert body.metadata.name == "web"
        assert body.metadata.namespace == "shop"
        assert body.delete_options.grace_period_seconds == 10
        assert core_api.create_namespaced_pod_eviction.call_args.kwargs == {"_request_timeout": 5}

    @pytest.mark.asyncio
    async def test_evict_without_override_keeps_pod_grace(self, cluster, core_api):
        await cluster.evict(make_pod("web"), grace_period=None)

        body = core_api.create_namespaced_pod_eviction.call_args.args[2]
        assert body.delete_options.grace_period_seconds is None

    @pytest.mark.asyncio
    async def test_evict_gone_pod_succeeds(self, cluster, core_api):
        core_api.create_namespaced_pod_eviction.side_effect = ApiException(status=404, reason="Not Found")

        await cluster.evict(make_pod("web"))

    @pytest.mark.asyncio
    async def test_evict_blocked_by_budget(self, cluster, core_api):
        core_api.create_namespaced_pod_eviction.side_effect = ApiException(
            status=429, reason="Too Many Requests"
        )

        with pytest.raises(ClusterError) as exc_info:
            await cluster.evict(make_pod("web"))
        assert exc_info.value.status == 429
        assert not isinstance(exc_info.value, NotFoundError)

    @pytest.mark.asyncio
    async def test_budget_block_keeps_server_message(self, cluster, core_api):
        error = ApiException(status=429, reason="Too Many Requests")
        error.body = json.dumps(
            {
                "kind": "Status",
                "status": "Failure",
                "message": "Cannot evict pod as it would violate the pod's disruption budget.",
                "reason": "TooManyRequests",
                "code": 429,
            }
        )
        core_api.create_namespaced_pod_eviction.side_effect = error

        with pytest.raises(ClusterError) as exc_info:
            await cluster.evict(make_pod("web"))
        assert str(exc_info.value) == (
            "429 Too Many Requests: Cannot evict pod as it would violate the pod's disruption budget."
        )

    @pytest.mark.asyncio
    async def test_non_json_body_is_ignored(self, cluster, core_api):
        error = ApiException(status=500, reason="Internal Server Error")
        error.body = b"<html>upstream error</html>"
        core_api.read_node.side_effect = error

        with pytest.raises(ClusterError) as exc_info:
            await cluster.get_node("w1")
        assert str(exc_info.value) == "500 Internal Server Error"

    @pytest.mark.asyncio
    async def test_transport_failure_is_cluster_error(self, cluster, core_api):
        core_api.list_pod_for_all_namespaces.side_effect = ConnectionRefusedError("connection refused")

        with pytest.raises(ClusterError, match="connection refused"):
            await cluster.list_pods_on_node("w1")


class TestTransitions:
    """LifecycleTransition publishing."""

    MANIFEST = {
        "apiVersion": "lifecycle.k8s.io/v1alpha1",
        "kind": "LifecycleTransition",
        "metadata": {"name": "drain.slm.k8s.io-drain"},
        "spec": {"start": "drain-started", "end": "drain-complete"},
    }

    @pytest.mark.asyncio
    async def test_creates_new_object(self, cluster, custom_api):
        name, created = await cluster.create_or_update_transition(self.MANIFEST)

        assert (name, created) == ("drain.slm.k8s.io-drain", True)
        args = custom_api.create_cluster_custom_object.call_args.args
        assert args == ("lifecycle.k8s.io", "v1alpha1", "lifecycletransitions", self.MANIFEST)
        custom_api.replace_cluster_custom_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_replaces_spec_of_existing_object(self, cluster, custom_api):
        custom_api.create_cluster_custom_object.side_effect = ApiException(status=409, reason="Conflict")
        custom_api.get_cluster_custom_object.return_value = {
            "metadata": {"name": "drain.slm.k8s.io-drain", "resourceVersion": "7"},
            "spec": {"start": "old", "end": "old"},
        }

        name, created = await cluster.create_or_update_transition(self.MANIFEST)

        assert created is False
        replaced = custom_api.replace_cluster_custom_object.call_args.args[4]
        assert replaced["spec"] == self.MANIFEST["spec"]
        assert replaced["metadata"]["resourceVersion"] == "7"

    @pytest.mark.asyncio
    async def test_other_create_failures_propagate(self, cluster, custom_api):
        custom_api.create_cluster_custom_object.side_effect = ApiException(status=403, reason="Forbidden")

        with pytest.raises(ClusterError, match="403 Forbidden"):
            await cluster.create_or_update_transition(self.MANIFEST)

    @pytest.mark.asyncio
    async def test_requires_custom_objects_api(self, core_api):
        cluster = ClusterModule(core_api)

        with pytest.raises(ClusterError):
            await cluster.create_or_update_transition(self.MANIFEST)
