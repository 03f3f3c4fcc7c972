"""
Upgrade gate for Cluster API lifecycle hooks.

The gate keeps no state between invocations. Every decision is recomputed
from the ClusterUpgrade record of the (cluster, namespace, version) triple:

- NONE: no record. Before-upgrade creates one and blocks.
- PENDING: record exists, no Successful condition. Before-upgrade blocks.
- READY: record carries a Successful condition. Before-upgrade allows.
- COMPLETED: spec.upgraded is true, set by after-upgrade.

Concurrent first-touch is arbitrated by the API server: only one create of
the deterministic record name succeeds, the others see AlreadyExists and
block like any other pending poll.
"""

import logging
from enum import Enum
from typing import List, Optional

from errors import (
    AlreadyExists,
    InventoryUnavailable,
    ProtocolViolation,
    StoreError,
)
from inventory import NodeInventory
from models import HookResponse, UpgradeRecord
from store import UpgradeRecordStore

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 30


class GateState(Enum):
    """Progress of an upgrade as read from its record."""

    NONE = "none"
    PENDING = "pending"
    READY = "ready"
    COMPLETED = "completed"


class UpgradeGate:
    """Decides whether a cluster upgrade may proceed."""

    def __init__(
        self,
        store: UpgradeRecordStore,
        inventory: NodeInventory,
        retry_after_seconds: int = DEFAULT_RETRY_AFTER_SECONDS,
    ):
        """
        Initialize the gate.

        Args:
            store: ClusterUpgrade record store
            inventory: Control-plane address inventory
            retry_after_seconds: Poll interval handed to the orchestrator while blocked
        """
        self.store = store
        self.inventory = inventory
        self.retry_after_seconds = retry_after_seconds

    def state_of(self, records: List[UpgradeRecord]) -> GateState:
        """Classify the lookup result of a triple."""
        if not records:
            return GateState.NONE
        record = records[0]
        if record.upgraded:
            return GateState.COMPLETED
        if self.store.is_successful(record):
            return GateState.READY
        return GateState.PENDING

    def _block(self, message: str) -> HookResponse:
        return HookResponse.block(self.retry_after_seconds, message=message)

    def evaluate_before_upgrade(
        self, cluster_name: str, namespace: str, target_version: str
    ) -> HookResponse:
        """
        Gate the start of an upgrade to target_version.

        Returns:
            Success with a retry hint while the upgrade is pending, success
            without one once the executor reported Successful, failure on
            store or inventory errors
        """
        try:
            records = self.store.find(cluster_name, namespace, target_version)
        except StoreError as e:
            logger.error(f"Error retrieving ClusterUpgrade list: {e}")
            return HookResponse.fail("Error retrieving ClusterUpgrade list")

        state = self.state_of(records)
        logger.info(
            f"ClusterUpgrade for {namespace}/{cluster_name} at {target_version}: {state.value}"
        )

        if state is not GateState.NONE:
            # COMPLETED without a Successful condition stays blocked
            if self.store.is_successful(records[0]):
                return HookResponse.allow()
            return self._block(f"Upgrade of {cluster_name} to {target_version} in progress")

        return self._start_upgrade(cluster_name, namespace, target_version)

    def _start_upgrade(
        self, cluster_name: str, namespace: str, target_version: str
    ) -> HookResponse:
        try:
            node_ips = self.inventory.list_control_plane_addresses(cluster_name)
        except InventoryUnavailable as e:
            logger.error(f"Error retrieving Machine list: {e}")
            return HookResponse.fail("Error retrieving Machine list")

        if not node_ips:
            logger.error(f"No control-plane addresses found for cluster {cluster_name}")
            return HookResponse.fail(
                f"No control-plane addresses found for cluster {cluster_name}"
            )

        record = UpgradeRecord(
            cluster_name=cluster_name,
            namespace=namespace,
            target_version=target_version,
            node_ips=node_ips,
        )
        try:
            self.store.create(record)
        except AlreadyExists:
            logger.info(
                f"ClusterUpgrade {namespace}/{record.name} created concurrently, waiting"
            )
            return self._block(f"Upgrade of {cluster_name} to {target_version} in progress")
        except StoreError as e:
            logger.error(f"Error creating ClusterUpgrade {namespace}/{record.name}: {e}")
            return HookResponse.fail("Error creating ClusterUpgrade")

        return self._block(f"Upgrade of {cluster_name} to {target_version} requested")

    def _require_record(
        self, records: List[UpgradeRecord], cluster_name: str, version: str
    ) -> UpgradeRecord:
        """
        Return the record an after-upgrade call refers to.

        Raises:
            ProtocolViolation: If before-upgrade never created one
        """
        if self.state_of(records) is GateState.NONE:
            raise ProtocolViolation(
                f"There are no ClusterUpgrade resource for cluster {cluster_name} "
                f"and version: {version}"
            )
        return records[0]

    def evaluate_after_upgrade(
        self, cluster_name: str, namespace: str, completed_version: str
    ) -> HookResponse:
        """
        Record that the upgrade to completed_version finished.

        Fails without touching the store when no record exists, since the
        before-upgrade step never ran for this version.
        """
        try:
            records = self.store.find(cluster_name, namespace, completed_version)
        except StoreError as e:
            logger.error(f"Error retrieving ClusterUpgrade list: {e}")
            return HookResponse.fail("Error retrieving ClusterUpgrade list")

        try:
            record = self._require_record(records, cluster_name, completed_version)
        except ProtocolViolation as e:
            logger.warning(str(e))
            return HookResponse.fail(str(e))

        try:
            self.store.mark_upgraded(record)
        except StoreError as e:
            logger.error(f"Failed to patch ClusterUpgrade {namespace}/{record.name}: {e}")
            return HookResponse.fail(
                f"Failed to mark ClusterUpgrade {record.name} as upgraded"
            )
        return HookResponse.allow()

    def current_state(
        self, cluster_name: str, namespace: str, target_version: str
    ) -> Optional[GateState]:
        """Read-only state lookup; None when the store cannot be read."""
        try:
            return self.state_of(self.store.find(cluster_name, namespace, target_version))
        except StoreError as e:
            logger.error(f"Error retrieving ClusterUpgrade list: {e}")
            return None
