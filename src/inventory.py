"""
Control-plane address discovery from the infrastructure machine inventory.

Membership of a machine in a cluster's control plane is decided by a
pluggable predicate. The default matches on machine name, which is a
heuristic: a name containing both the control-plane marker and the cluster
name is assumed to belong to that cluster's control plane. The label
predicate uses the labels Cluster API stamps on owned machines instead.
"""

import logging
from typing import Callable, List, Optional

from clients import KubernetesClient
from errors import InventoryUnavailable, StoreError
from models import OPENSTACK_MACHINE_GVR, GroupVersionResource, Machine

logger = logging.getLogger(__name__)

CLUSTER_NAME_LABEL = "cluster.x-k8s.io/cluster-name"
CONTROL_PLANE_LABEL = "cluster.x-k8s.io/control-plane"

MembershipPredicate = Callable[[Machine, str], bool]


def name_membership(marker: str = "control-plane") -> MembershipPredicate:
    """Match machines whose name contains both the marker and the cluster name."""

    def predicate(machine: Machine, cluster_name: str) -> bool:
        return marker in machine.name and cluster_name in machine.name

    return predicate


def label_membership() -> MembershipPredicate:
    """Match machines labelled as control plane of exactly this cluster."""

    def predicate(machine: Machine, cluster_name: str) -> bool:
        return (
            machine.labels.get(CLUSTER_NAME_LABEL) == cluster_name
            and CONTROL_PLANE_LABEL in machine.labels
        )

    return predicate


def filter_addresses(addresses: List[str], reserved_prefix: str) -> List[str]:
    """Drop blank addresses and those inside the reserved subnet."""
    return [
        addr
        for addr in (a.strip() for a in addresses)
        if addr and not (reserved_prefix and addr.startswith(reserved_prefix))
    ]


class NodeInventory:
    """Lists control-plane member addresses for a cluster."""

    def __init__(
        self,
        client: KubernetesClient,
        namespace: str = "default",
        membership: Optional[MembershipPredicate] = None,
        reserved_prefix: str = "10.6.",
        gvr: GroupVersionResource = OPENSTACK_MACHINE_GVR,
    ):
        self.client = client
        self.namespace = namespace
        self.membership = membership or name_membership()
        self.reserved_prefix = reserved_prefix
        self.gvr = gvr

    def list_machines(self) -> List[Machine]:
        """
        List all machines in the inventory namespace.

        Raises:
            InventoryUnavailable: If the list call fails or returns nothing
        """
        try:
            items = self.client.list_namespaced(self.gvr, self.namespace)
        except StoreError as e:
            raise InventoryUnavailable(
                f"Failed to list {self.gvr.resource} in {self.namespace}: {e}"
            ) from e

        if not items:
            raise InventoryUnavailable(
                f"No {self.gvr.resource} found in namespace {self.namespace}"
            )
        return [Machine.from_resource(item) for item in items]

    def list_control_plane_addresses(self, cluster_name: str) -> List[str]:
        """
        Return control-plane addresses of a cluster in inventory order.

        Args:
            cluster_name: Name of the workload cluster

        Returns:
            Flattened list of addresses outside the reserved subnet

        Raises:
            ValueError: If cluster_name is empty
            InventoryUnavailable: If the inventory cannot be listed or is empty
        """
        if not cluster_name:
            raise ValueError("cluster_name is required")

        addresses: List[str] = []
        for machine in self.list_machines():
            if not self.membership(machine, cluster_name):
                continue
            logger.debug(f"Machine {machine.name} is a control-plane member of {cluster_name}")
            addresses.extend(filter_addresses(machine.addresses, self.reserved_prefix))

        logger.info(
            f"Found {len(addresses)} control-plane address(es) for cluster {cluster_name}"
        )
        return addresses
