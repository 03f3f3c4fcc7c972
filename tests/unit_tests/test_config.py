"""
Unit tests for configuration.
"""

import unittest
from argparse import Namespace
from config import HookServerConfig


class TestHookServerConfig(unittest.TestCase):
    """Test HookServerConfig data model."""

    def test_config_defaults(self):
        """Test default configuration values."""
        config = HookServerConfig()
        self.assertIsNone(config.kubeconfig)
        self.assertIsNone(config.context)
        self.assertEqual(config.inventory_namespace, "default")
        self.assertEqual(config.reserved_prefix, "10.6.")
        self.assertEqual(config.control_plane_marker, "control-plane")
        self.assertEqual(config.membership, "name")
        self.assertEqual(config.retry_after_seconds, 30)
        self.assertEqual(config.request_timeout, 5)
        self.assertEqual(config.max_retries, 0)
        self.assertEqual(config.port, 9443)
        self.assertEqual(config.hook_timeout_seconds, 5)
        self.assertFalse(config.verbose)
        self.assertIsNone(config.log_file)

    def test_invalid_membership(self):
        """Test unknown membership predicates are rejected."""
        with self.assertRaises(ValueError):
            HookServerConfig(membership="owner")

    def test_invalid_retry_after(self):
        with self.assertRaises(ValueError):
            HookServerConfig(retry_after_seconds=0)

    def test_config_from_args(self):
        """Test creating config from command-line arguments."""
        args = Namespace(
            kubeconfig="/home/ops/.kube/mgmt",
            context="mgmt-admin",
            inventory_namespace="capi",
            reserved_prefix="10.9.",
            control_plane_marker="cp",
            membership="label",
            retry_after=15,
            request_timeout=3,
            api_retries=2,
            host="127.0.0.1",
            webhook_port=8443,
            webhook_cert_dir="/certs",
            verbose=True,
            log_file="hooks.log",
        )
        config = HookServerConfig.from_args(args)

        self.assertEqual(config.kubeconfig, "/home/ops/.kube/mgmt")
        self.assertEqual(config.context, "mgmt-admin")
        self.assertEqual(config.inventory_namespace, "capi")
        self.assertEqual(config.reserved_prefix, "10.9.")
        self.assertEqual(config.control_plane_marker, "cp")
        self.assertEqual(config.membership, "label")
        self.assertEqual(config.retry_after_seconds, 15)
        self.assertEqual(config.request_timeout, 3)
        self.assertEqual(config.max_retries, 2)
        self.assertEqual(config.port, 8443)
        self.assertEqual(config.cert_dir, "/certs")
        self.assertTrue(config.verbose)
        self.assertEqual(config.log_file, "hooks.log")

    def test_config_from_env(self):
        """Test creating config from environment variables."""
        env = {
            "KUBECONFIG": "/etc/kube/config",
            "KUBE_CONTEXT": "mgmt",
            "INVENTORY_NAMESPACE": "capi",
            "MEMBERSHIP": "label",
            "RETRY_AFTER_SECONDS": "45",
            "API_RETRIES": "1",
            "PORT": "8080",
            "VERBOSE": "yes",
        }
        config = HookServerConfig.from_env(env)
        self.assertEqual(config.kubeconfig, "/etc/kube/config")
        self.assertEqual(config.context, "mgmt")
        self.assertEqual(config.inventory_namespace, "capi")
        self.assertEqual(config.membership, "label")
        self.assertEqual(config.retry_after_seconds, 45)
        self.assertEqual(config.max_retries, 1)
        self.assertEqual(config.port, 8080)
        self.assertTrue(config.verbose)
        self.assertEqual(config.reserved_prefix, "10.6.")

    def test_config_from_empty_env(self):
        """Test an empty environment yields the defaults."""
        config = HookServerConfig.from_env({})
        self.assertIsNone(config.kubeconfig)
        self.assertIsNone(config.context)
        self.assertEqual(config.retry_after_seconds, 30)
        self.assertFalse(config.verbose)


if __name__ == "__main__":
    unittest.main()
