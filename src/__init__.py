"""
Cluster API runtime extension gating cluster upgrades on ClusterUpgrade records.
"""

from clients import KubernetesClient
from config import HookServerConfig
from gate import GateState, UpgradeGate
from hooks import LifecycleHookHandler
from inventory import NodeInventory
from log_utils import setup_logging
from models import HookResponse, UpgradeRecord
from store import UpgradeRecordStore

__all__ = [
    "KubernetesClient",
    "HookServerConfig",
    "GateState",
    "UpgradeGate",
    "LifecycleHookHandler",
    "NodeInventory",
    "setup_logging",
    "HookResponse",
    "UpgradeRecord",
    "UpgradeRecordStore",
]
