"""
Configuration management for the upgrade-gating runtime extension.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass
class HookServerConfig:
    """Configuration for the lifecycle hook server."""

    kubeconfig: Optional[str] = None
    context: Optional[str] = None
    inventory_namespace: str = "default"
    reserved_prefix: str = "10.6."
    control_plane_marker: str = "control-plane"
    membership: str = "name"
    retry_after_seconds: int = 30
    request_timeout: int = 5
    max_retries: int = 0
    host: str = "0.0.0.0"
    port: int = 9443
    cert_dir: str = "/tmp/k8s-webhook-server/serving-certs/"
    hook_timeout_seconds: int = 5
    verbose: bool = False
    log_file: Optional[str] = None

    def __post_init__(self):
        if self.membership not in ("name", "label"):
            raise ValueError(
                f"membership must be 'name' or 'label', got {self.membership!r}"
            )
        if self.retry_after_seconds <= 0:
            raise ValueError("retry_after_seconds must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")

    @classmethod
    def from_args(cls, args) -> "HookServerConfig":
        """
        Create configuration from command-line arguments.

        Args:
            args: Parsed argparse arguments

        Returns:
            HookServerConfig instance
        """
        return cls(
            kubeconfig=args.kubeconfig,
            context=args.context,
            inventory_namespace=args.inventory_namespace,
            reserved_prefix=args.reserved_prefix,
            control_plane_marker=args.control_plane_marker,
            membership=args.membership,
            retry_after_seconds=args.retry_after,
            request_timeout=args.request_timeout,
            max_retries=args.api_retries,
            host=args.host,
            port=args.webhook_port,
            cert_dir=args.webhook_cert_dir,
            verbose=args.verbose,
            log_file=args.log_file,
        )

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "HookServerConfig":
        """
        Create configuration from environment variables.

        Unset variables fall back to the dataclass defaults.
        """
        env = os.environ if env is None else env
        defaults = cls()

        def get_str(key: str, default: str) -> str:
            return env.get(key, "") or default

        def get_int(key: str, default: int) -> int:
            value = env.get(key, "")
            return int(value) if value else default

        def get_bool(key: str, default: bool) -> bool:
            value = env.get(key, "").lower()
            if value in ("true", "1", "yes"):
                return True
            if value in ("false", "0", "no"):
                return False
            return default

        return cls(
            kubeconfig=env.get("KUBECONFIG") or None,
            context=env.get("KUBE_CONTEXT") or None,
            inventory_namespace=get_str(
                "INVENTORY_NAMESPACE", defaults.inventory_namespace
            ),
            reserved_prefix=get_str("RESERVED_PREFIX", defaults.reserved_prefix),
            control_plane_marker=get_str(
                "CONTROL_PLANE_MARKER", defaults.control_plane_marker
            ),
            membership=get_str("MEMBERSHIP", defaults.membership),
            retry_after_seconds=get_int(
                "RETRY_AFTER_SECONDS", defaults.retry_after_seconds
            ),
            request_timeout=get_int("REQUEST_TIMEOUT", defaults.request_timeout),
            max_retries=get_int("API_RETRIES", defaults.max_retries),
            host=get_str("HOST", defaults.host),
            port=get_int("PORT", defaults.port),
            cert_dir=get_str("WEBHOOK_CERT_DIR", defaults.cert_dir),
            hook_timeout_seconds=get_int(
                "HOOK_TIMEOUT_SECONDS", defaults.hook_timeout_seconds
            ),
            verbose=get_bool("VERBOSE", defaults.verbose),
            log_file=env.get("LOG_FILE") or None,
        )
