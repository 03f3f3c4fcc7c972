"""
Lifecycle hook handlers for the Cluster API runtime extension.
"""

import logging
from typing import Any, Callable, Dict

from gate import UpgradeGate
from models import Hook, HookRequest, HookResponse

logger = logging.getLogger(__name__)


def parse_request(hook: Hook, payload: Dict[str, Any]) -> HookRequest:
    """
    Decode a runtime SDK <Hook>Request body.

    The cluster is read from cluster.metadata (the full Cluster object the
    runtime SDK sends) or from a flat cluster.name / cluster.namespace.

    Raises:
        ValueError: If the body does not identify a cluster
    """
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object")

    cluster = payload.get("cluster") or {}
    if not isinstance(cluster, dict):
        raise ValueError("cluster must be an object")
    metadata = cluster.get("metadata") or {}
    name = metadata.get("name") or cluster.get("name") or ""
    namespace = metadata.get("namespace") or cluster.get("namespace") or ""
    if not name:
        raise ValueError("cluster name is required")
    if not namespace:
        raise ValueError("cluster namespace is required")

    if hook is Hook.BEFORE_CLUSTER_UPGRADE:
        version = payload.get("toKubernetesVersion") or ""
        if not version:
            raise ValueError("toKubernetesVersion is required")
    else:
        version = payload.get("kubernetesVersion") or ""
        if hook is Hook.AFTER_CLUSTER_UPGRADE and not version:
            raise ValueError("kubernetesVersion is required")

    return HookRequest(
        hook=hook,
        cluster_name=name,
        cluster_namespace=namespace,
        kubernetes_version=version,
        from_kubernetes_version=payload.get("fromKubernetesVersion") or "",
    )


class LifecycleHookHandler:
    """Routes lifecycle hooks to the upgrade gate or to an unconditional allow."""

    def __init__(self, gate: UpgradeGate):
        self.gate = gate
        self._routes: Dict[Hook, Callable[[HookRequest], HookResponse]] = {
            Hook.BEFORE_CLUSTER_CREATE: self.do_before_cluster_create,
            Hook.AFTER_CONTROL_PLANE_INITIALIZED: self.do_after_control_plane_initialized,
            Hook.BEFORE_CLUSTER_UPGRADE: self.do_before_cluster_upgrade,
            Hook.AFTER_CONTROL_PLANE_UPGRADE: self.do_after_control_plane_upgrade,
            Hook.AFTER_CLUSTER_UPGRADE: self.do_after_cluster_upgrade,
            Hook.BEFORE_CLUSTER_DELETE: self.do_before_cluster_delete,
        }

    def handle(self, hook: Hook, payload: Dict[str, Any]) -> HookResponse:
        """
        Decode and dispatch a hook call.

        Raises:
            ValueError: If the request body is malformed
        """
        request = parse_request(hook, payload)
        try:
            return self._routes[hook](request)
        except Exception as e:
            logger.exception(f"{hook.value} failed for cluster {request.cluster_name}: {e}")
            return HookResponse.fail(f"{hook.value} failed: {e}")

    def do_before_cluster_create(self, request: HookRequest) -> HookResponse:
        logger.info("BeforeClusterCreate is called")
        return HookResponse.allow()

    def do_after_control_plane_initialized(self, request: HookRequest) -> HookResponse:
        logger.info("AfterControlPlaneInitialized is called")
        return HookResponse.allow()

    def do_before_cluster_upgrade(self, request: HookRequest) -> HookResponse:
        """Block until the out-of-band executor reports the upgrade Successful."""
        logger.info(
            f"BeforeClusterUpgrade is called for {request.cluster_namespace}/{request.cluster_name} "
            f"({request.from_kubernetes_version or '?'} -> {request.kubernetes_version})"
        )
        return self.gate.evaluate_before_upgrade(
            request.cluster_name, request.cluster_namespace, request.kubernetes_version
        )

    def do_after_control_plane_upgrade(self, request: HookRequest) -> HookResponse:
        logger.info("AfterControlPlaneUpgrade is called")
        return HookResponse.allow()

    def do_after_cluster_upgrade(self, request: HookRequest) -> HookResponse:
        """Mark the ClusterUpgrade of the reached version as upgraded."""
        logger.info(
            f"AfterClusterUpgrade is called for {request.cluster_namespace}/{request.cluster_name} "
            f"at {request.kubernetes_version}"
        )
        return self.gate.evaluate_after_upgrade(
            request.cluster_name, request.cluster_namespace, request.kubernetes_version
        )

    def do_before_cluster_delete(self, request: HookRequest) -> HookResponse:
        logger.info("BeforeClusterDelete is called")
        return HookResponse.allow()
