"""Console entry point for the upgrade-gating runtime extension."""

from __future__ import annotations

import argparse
import logging
from typing import List

from config import HookServerConfig
from log_utils import setup_logging
from server import build_handler, create_app, tls_context

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Cluster API runtime extension gating cluster upgrades"
    )
    parser.add_argument(
        "--kubeconfig",
        help="Kubeconfig path (default: in-cluster config, then $KUBECONFIG or ~/.kube/config)",
    )
    parser.add_argument("--context", help="Kubeconfig context to use")
    parser.add_argument(
        "--inventory-namespace",
        default="default",
        help="Namespace holding the OpenStackMachine inventory",
    )
    parser.add_argument(
        "--reserved-prefix",
        default="10.6.",
        help="Addresses with this prefix are never recorded as node IPs",
    )
    parser.add_argument("--control-plane-marker", default="control-plane")
    parser.add_argument(
        "--membership",
        choices=["name", "label"],
        default="name",
        help="How machines are matched to a cluster's control plane",
    )
    parser.add_argument("--retry-after", type=int, default=30)
    parser.add_argument("--request-timeout", type=int, default=5)
    parser.add_argument("--api-retries", type=int, default=0)
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--webhook-port", type=int, default=9443)
    parser.add_argument(
        "--webhook-cert-dir", default="/tmp/k8s-webhook-server/serving-certs/"
    )

    status = parser.add_argument_group("status mode")
    status.add_argument(
        "--status",
        action="store_true",
        help="Print the upgrade state of a cluster instead of serving hooks",
    )
    status.add_argument("--cluster", help="Cluster name (status mode)")
    status.add_argument("--namespace", default="default")
    status.add_argument("--kubernetes-version", help="Target version (status mode)")

    parser.add_argument("--log-file")
    parser.add_argument("--verbose", action="store_true")
    return parser


def main(argv: List[str] | None = None) -> int:
    """CLI main for console_scripts entry point."""
    parser = build_parser()
    args = parser.parse_args(args=argv)

    setup_logging(verbose=args.verbose, log_file=args.log_file)
    config = HookServerConfig.from_args(args)
    handler = build_handler(config)

    if args.status:
        if not args.cluster or not args.kubernetes_version:
            parser.error("--status requires --cluster and --kubernetes-version")
        state = handler.gate.current_state(
            args.cluster, args.namespace, args.kubernetes_version
        )
        if state is None:
            return 1
        print(f"{args.namespace}/{args.cluster} {args.kubernetes_version}: {state.value}")
        return 0

    app = create_app(handler, config)
    ssl_context = tls_context(config.cert_dir)
    if ssl_context is None:
        logger.warning(f"No serving certificate in {config.cert_dir}, serving plain HTTP")
    logger.info(f"Starting RuntimeExtension on {config.host}:{config.port}")
    app.run(host=config.host, port=config.port, ssl_context=ssl_context, threaded=True)
    return 0
