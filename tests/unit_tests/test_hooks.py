"""
Unit tests for the lifecycle hook dispatcher.
"""

import unittest
from unittest.mock import MagicMock

from hooks import LifecycleHookHandler, parse_request
from models import Hook, HookResponse, ResponseStatus


def upgrade_request(**overrides):
    payload = {
        "apiVersion": "hooks.runtime.cluster.x-k8s.io/v1alpha1",
        "kind": "BeforeClusterUpgradeRequest",
        "cluster": {"metadata": {"name": "c1", "namespace": "ns1"}, "spec": {}},
        "fromKubernetesVersion": "v1.28.5",
        "toKubernetesVersion": "1.29.0",
    }
    payload.update(overrides)
    return payload


class TestParseRequest(unittest.TestCase):
    """Test runtime SDK request decoding."""

    def test_before_upgrade(self):
        request = parse_request(Hook.BEFORE_CLUSTER_UPGRADE, upgrade_request())
        self.assertEqual(request.cluster_name, "c1")
        self.assertEqual(request.cluster_namespace, "ns1")
        self.assertEqual(request.kubernetes_version, "1.29.0")
        self.assertEqual(request.from_kubernetes_version, "v1.28.5")

    def test_after_upgrade_uses_kubernetes_version(self):
        payload = {"cluster": {"name": "c1", "namespace": "ns1"}, "kubernetesVersion": "1.29.0"}
        request = parse_request(Hook.AFTER_CLUSTER_UPGRADE, payload)
        self.assertEqual(request.cluster_name, "c1")
        self.assertEqual(request.kubernetes_version, "1.29.0")

    def test_missing_cluster(self):
        with self.assertRaises(ValueError):
            parse_request(Hook.BEFORE_CLUSTER_CREATE, {"cluster": {}})

    def test_missing_target_version(self):
        with self.assertRaises(ValueError):
            parse_request(Hook.BEFORE_CLUSTER_UPGRADE, upgrade_request(toKubernetesVersion=""))

    def test_missing_completed_version(self):
        with self.assertRaises(ValueError):
            parse_request(
                Hook.AFTER_CLUSTER_UPGRADE, {"cluster": {"name": "c1", "namespace": "ns1"}}
            )

    def test_non_object_body(self):
        with self.assertRaises(ValueError):
            parse_request(Hook.BEFORE_CLUSTER_CREATE, None)

    def test_missing_namespace(self):
        """Test a cluster without a namespace is rejected, not defaulted."""
        with self.assertRaises(ValueError) as ctx:
            parse_request(
                Hook.BEFORE_CLUSTER_UPGRADE,
                upgrade_request(cluster={"metadata": {"name": "c1"}}),
            )
        self.assertIn("namespace", str(ctx.exception))

    def test_empty_namespace(self):
        with self.assertRaises(ValueError):
            parse_request(
                Hook.AFTER_CLUSTER_UPGRADE,
                {"cluster": {"name": "c1", "namespace": ""}, "kubernetesVersion": "1.29.0"},
            )


class TestLifecycleHookHandler(unittest.TestCase):
    """Test routing of each hook."""

    def setUp(self):
        self.gate = MagicMock()
        self.handler = LifecycleHookHandler(self.gate)

    def test_pass_through_hooks_always_allow(self):
        payload = {"cluster": {"metadata": {"name": "c1", "namespace": "ns1"}}}
        for hook in (
            Hook.BEFORE_CLUSTER_CREATE,
            Hook.AFTER_CONTROL_PLANE_INITIALIZED,
            Hook.AFTER_CONTROL_PLANE_UPGRADE,
            Hook.BEFORE_CLUSTER_DELETE,
        ):
            response = self.handler.handle(hook, payload)
            self.assertEqual(response.status, ResponseStatus.SUCCESS)
            self.assertIsNone(response.retry_after_seconds)
        self.gate.assert_not_called()
        self.gate.evaluate_before_upgrade.assert_not_called()
        self.gate.evaluate_after_upgrade.assert_not_called()

    def test_before_upgrade_routes_to_gate(self):
        self.gate.evaluate_before_upgrade.return_value = HookResponse.block(30)

        response = self.handler.handle(Hook.BEFORE_CLUSTER_UPGRADE, upgrade_request())

        self.gate.evaluate_before_upgrade.assert_called_once_with("c1", "ns1", "1.29.0")
        self.assertEqual(response.retry_after_seconds, 30)

    def test_after_upgrade_routes_to_gate(self):
        self.gate.evaluate_after_upgrade.return_value = HookResponse.allow()
        payload = {
            "cluster": {"metadata": {"name": "c1", "namespace": "ns1"}},
            "kubernetesVersion": "1.29.0",
        }

        response = self.handler.handle(Hook.AFTER_CLUSTER_UPGRADE, payload)

        self.gate.evaluate_after_upgrade.assert_called_once_with("c1", "ns1", "1.29.0")
        self.assertTrue(response.succeeded)

    def test_unexpected_error_becomes_failure(self):
        self.gate.evaluate_before_upgrade.side_effect = KeyError("status")

        response = self.handler.handle(Hook.BEFORE_CLUSTER_UPGRADE, upgrade_request())

        self.assertEqual(response.status, ResponseStatus.FAILURE)
        self.assertIn("BeforeClusterUpgrade failed", response.message)


if __name__ == "__main__":
    unittest.main()
