"""
Data models for the upgrade-gating lifecycle hooks.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

CLUSTER_UPGRADE_GROUP = "cluster.aruba.it"
CLUSTER_UPGRADE_KIND = "ClusterUpgrade"
CLUSTER_UPGRADE_VERSION = "v1alpha1"
CLUSTER_UPGRADE_PLURAL = "clusterupgrades"

SUCCESSFUL_CONDITION = "Successful"


@dataclass(frozen=True)
class GroupVersionResource:
    """Addressing triple for a namespaced Kubernetes resource."""

    group: str
    version: str
    resource: str

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


CLUSTER_UPGRADE_GVR = GroupVersionResource(
    group=CLUSTER_UPGRADE_GROUP,
    version=CLUSTER_UPGRADE_VERSION,
    resource=CLUSTER_UPGRADE_PLURAL,
)

OPENSTACK_MACHINE_GVR = GroupVersionResource(
    group="infrastructure.cluster.x-k8s.io",
    version="v1alpha6",
    resource="openstackmachines",
)


def record_name(cluster_name: str, target_version: str) -> str:
    """Deterministic ClusterUpgrade name for a (cluster, version) pair."""
    return f"{cluster_name}-{target_version}"


def _parse_status(value) -> bool:
    # Kubernetes conditions carry "True"/"False"; the executor may also write booleans
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


@dataclass
class Condition:
    """Status condition written by the upgrade executor."""

    type: str
    status: bool = False
    reason: str = ""
    message: str = ""

    @classmethod
    def from_dict(cls, data: Dict) -> "Condition":
        return cls(
            type=str(data.get("type", "")),
            status=_parse_status(data.get("status", False)),
            reason=str(data.get("reason", "") or ""),
            message=str(data.get("message", "") or ""),
        )


@dataclass
class UpgradeRecord:
    """
    Typed view of a ClusterUpgrade resource.

    One record exists per (cluster, namespace, target version); the name is
    derived from cluster and version so the API server enforces uniqueness.
    """

    cluster_name: str
    namespace: str
    target_version: str
    node_ips: List[str] = field(default_factory=list)
    upgraded: bool = False
    conditions: List[Condition] = field(default_factory=list)
    name: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            self.name = record_name(self.cluster_name, self.target_version)

    def to_resource(self) -> Dict:
        """Render the record as a ClusterUpgrade object for the API server."""
        return {
            "apiVersion": CLUSTER_UPGRADE_GVR.api_version,
            "kind": CLUSTER_UPGRADE_KIND,
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
            },
            "spec": {
                "nodes_ip": list(self.node_ips),
                "upgraded": self.upgraded,
            },
        }

    @classmethod
    def from_resource(
        cls, obj: Dict, cluster_name: str, target_version: str
    ) -> "UpgradeRecord":
        """
        Build a record from a ClusterUpgrade object returned by the API server.

        Args:
            obj: Resource as decoded JSON
            cluster_name: Cluster the record was looked up for
            target_version: Kubernetes version the record was looked up for

        Returns:
            UpgradeRecord instance
        """
        metadata = obj.get("metadata") or {}
        spec = obj.get("spec") or {}
        status = obj.get("status") or {}
        return cls(
            cluster_name=cluster_name,
            namespace=metadata.get("namespace", ""),
            target_version=target_version,
            node_ips=list(spec.get("nodes_ip") or []),
            upgraded=_parse_status(spec.get("upgraded", False)),
            conditions=[
                Condition.from_dict(c)
                for c in (status.get("conditions") or [])
                if isinstance(c, dict)
            ],
            name=metadata.get("name"),
        )


@dataclass
class Machine:
    """Infrastructure machine as reported by the inventory."""

    name: str
    labels: Dict[str, str] = field(default_factory=dict)
    addresses: List[str] = field(default_factory=list)

    @classmethod
    def from_resource(cls, obj: Dict) -> "Machine":
        metadata = obj.get("metadata") or {}
        status = obj.get("status") or {}
        return cls(
            name=metadata.get("name", ""),
            labels=dict(metadata.get("labels") or {}),
            addresses=[
                str(a.get("address", ""))
                for a in (status.get("addresses") or [])
                if isinstance(a, dict)
            ],
        )


class Hook(Enum):
    """Cluster API lifecycle hooks served by this extension."""

    BEFORE_CLUSTER_CREATE = "BeforeClusterCreate"
    AFTER_CONTROL_PLANE_INITIALIZED = "AfterControlPlaneInitialized"
    BEFORE_CLUSTER_UPGRADE = "BeforeClusterUpgrade"
    AFTER_CONTROL_PLANE_UPGRADE = "AfterControlPlaneUpgrade"
    AFTER_CLUSTER_UPGRADE = "AfterClusterUpgrade"
    BEFORE_CLUSTER_DELETE = "BeforeClusterDelete"

    @property
    def supports_retry(self) -> bool:
        """Whether the runtime SDK response type carries retryAfterSeconds."""
        return self in (
            Hook.BEFORE_CLUSTER_CREATE,
            Hook.BEFORE_CLUSTER_UPGRADE,
            Hook.AFTER_CONTROL_PLANE_UPGRADE,
            Hook.BEFORE_CLUSTER_DELETE,
        )


class ResponseStatus(Enum):
    """Runtime SDK response status."""

    SUCCESS = "Success"
    FAILURE = "Failure"


@dataclass
class HookRequest:
    """Decoded lifecycle hook request."""

    hook: Hook
    cluster_name: str
    cluster_namespace: str
    kubernetes_version: str = ""  # target for BeforeClusterUpgrade, current otherwise
    from_kubernetes_version: str = ""


@dataclass
class HookResponse:
    """Decision returned to the orchestrator."""

    status: ResponseStatus
    message: str = ""
    retry_after_seconds: Optional[int] = None

    @classmethod
    def allow(cls, message: str = "") -> "HookResponse":
        return cls(status=ResponseStatus.SUCCESS, message=message)

    @classmethod
    def block(cls, retry_after_seconds: int, message: str = "") -> "HookResponse":
        return cls(
            status=ResponseStatus.SUCCESS,
            message=message,
            retry_after_seconds=retry_after_seconds,
        )

    @classmethod
    def fail(cls, message: str) -> "HookResponse":
        return cls(status=ResponseStatus.FAILURE, message=message)

    @property
    def succeeded(self) -> bool:
        return self.status is ResponseStatus.SUCCESS

    def to_wire(self, hook: Hook) -> Dict:
        """Render as a runtime SDK <Hook>Response body."""
        body = {
            "apiVersion": "hooks.runtime.cluster.x-k8s.io/v1alpha1",
            "kind": f"{hook.value}Response",
            "status": self.status.value,
        }
        if self.message:
            body["message"] = self.message
        if hook.supports_retry and self.retry_after_seconds:
            body["retryAfterSeconds"] = int(self.retry_after_seconds)
        return body
