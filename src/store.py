"""
Typed access to ClusterUpgrade records on the Kubernetes API server.
"""

import logging
from typing import List

from clients import KubernetesClient
from models import (
    CLUSTER_UPGRADE_GVR,
    SUCCESSFUL_CONDITION,
    UpgradeRecord,
    record_name,
)

logger = logging.getLogger(__name__)


class UpgradeRecordStore:
    """Find, create and complete ClusterUpgrade records."""

    def __init__(self, client: KubernetesClient):
        self.client = client
        self.gvr = CLUSTER_UPGRADE_GVR

    def find(
        self, cluster_name: str, namespace: str, target_version: str
    ) -> List[UpgradeRecord]:
        """
        Look up the record for a (cluster, namespace, version) triple.

        The lookup goes through a field-selected list, so the result is a list
        holding zero or one record.

        Raises:
            StoreError: If the API call fails
        """
        name = record_name(cluster_name, target_version)
        logger.debug(f"Looking up ClusterUpgrade {namespace}/{name}")
        items = self.client.list_namespaced(
            self.gvr, namespace, field_selector=f"metadata.name={name}"
        )
        return [
            UpgradeRecord.from_resource(item, cluster_name, target_version)
            for item in items
        ]

    def create(self, record: UpgradeRecord) -> UpgradeRecord:
        """
        Create a record.

        Raises:
            AlreadyExists: If the name is already taken in the namespace
            StoreUnavailable: On transport or API errors
        """
        created = self.client.create_namespaced(
            self.gvr, record.namespace, record.to_resource()
        )
        logger.info(f"Created ClusterUpgrade {record.namespace}/{record.name}")
        return UpgradeRecord.from_resource(
            created or record.to_resource(), record.cluster_name, record.target_version
        )

    def mark_upgraded(self, record: UpgradeRecord) -> None:
        """
        Set spec.upgraded on the exact record previously found.

        Raises:
            NotFound: If the record disappeared
            StoreUnavailable: On transport or API errors
        """
        self.client.patch_namespaced(
            self.gvr, record.namespace, record.name, {"spec": {"upgraded": True}}
        )
        record.upgraded = True
        logger.info(f"Marked ClusterUpgrade {record.namespace}/{record.name} as upgraded")

    @staticmethod
    def is_successful(record: UpgradeRecord) -> bool:
        # Presence of the condition is the signal; its status value is not inspected
        return any(c.type == SUCCESSFUL_CONDITION for c in record.conditions)
