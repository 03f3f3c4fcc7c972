"""
HTTP surface of the runtime extension.

Implements the Cluster API runtime SDK wire format:
- POST /hooks.runtime.cluster.x-k8s.io/v1alpha1/discovery
- POST /hooks.runtime.cluster.x-k8s.io/v1alpha1/<hook>/<handler-name>
- GET  /healthz
"""

import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, Request, request as flask_request

from clients import KubernetesClient
from config import HookServerConfig
from gate import UpgradeGate
from hooks import LifecycleHookHandler
from inventory import NodeInventory, label_membership, name_membership
from models import Hook
from store import UpgradeRecordStore

logger = logging.getLogger(__name__)

HOOKS_API_VERSION = "hooks.runtime.cluster.x-k8s.io/v1alpha1"
HOOKS_PREFIX = f"/{HOOKS_API_VERSION}"

# (hook, handler name) pairs advertised through discovery
HANDLERS: List[Tuple[Hook, str]] = [
    (Hook.BEFORE_CLUSTER_CREATE, "before-cluster-create"),
    (Hook.AFTER_CONTROL_PLANE_INITIALIZED, "after-control-plane-initialized"),
    (Hook.BEFORE_CLUSTER_UPGRADE, "before-cluster-upgrade"),
    (Hook.AFTER_CONTROL_PLANE_UPGRADE, "after-control-plane-upgrade"),
    (Hook.AFTER_CLUSTER_UPGRADE, "after-cluster-upgrade"),
    (Hook.BEFORE_CLUSTER_DELETE, "before-cluster-delete"),
]


def handler_path(hook: Hook, name: str) -> str:
    """URL path the runtime SDK calls for a registered handler."""
    return f"{HOOKS_PREFIX}/{hook.value.lower()}/{name}"


def build_handler(
    config: HookServerConfig, client: Optional[KubernetesClient] = None
) -> LifecycleHookHandler:
    """Wire client, store, inventory and gate into a hook handler."""
    if client is None:
        client = KubernetesClient(
            kubeconfig=config.kubeconfig,
            context=config.context,
            timeout_s=config.request_timeout,
            max_retries=config.max_retries,
        )
    if config.membership == "label":
        membership = label_membership()
    else:
        membership = name_membership(config.control_plane_marker)

    inventory = NodeInventory(
        client,
        namespace=config.inventory_namespace,
        membership=membership,
        reserved_prefix=config.reserved_prefix,
    )
    gate = UpgradeGate(
        UpgradeRecordStore(client),
        inventory,
        retry_after_seconds=config.retry_after_seconds,
    )
    return LifecycleHookHandler(gate)


def discovery_response(config: HookServerConfig) -> Dict[str, Any]:
    """Build the DiscoveryResponse listing every handler."""
    return {
        "apiVersion": HOOKS_API_VERSION,
        "kind": "DiscoveryResponse",
        "status": "Success",
        "handlers": [
            {
                "name": name,
                "requestHook": {"apiVersion": HOOKS_API_VERSION, "hook": hook.value},
                "timeoutSeconds": config.hook_timeout_seconds,
                "failurePolicy": "Fail",
            }
            for hook, name in HANDLERS
        ],
    }


def _failure(kind: str, message: str, status_code: int) -> Tuple[Dict[str, Any], int]:
    return {
        "apiVersion": HOOKS_API_VERSION,
        "kind": kind,
        "status": "Failure",
        "message": message,
    }, status_code


def route_request(
    request: Request, handler: LifecycleHookHandler, config: HookServerConfig
) -> Tuple[Dict[str, Any], int]:
    """
    Route an HTTP request to discovery, health or a lifecycle hook.

    Hook outcomes, including failures, are returned with HTTP 200 so the
    runtime SDK reads the status from the body. Only malformed requests and
    unknown paths get an HTTP error status.
    """
    path = request.path.rstrip("/")

    if path == "/healthz":
        return {"status": "ok"}, 200

    if path == f"{HOOKS_PREFIX}/discovery":
        return discovery_response(config), 200

    routes = {handler_path(hook, name): hook for hook, name in HANDLERS}
    hook = routes.get(path)
    if hook is None:
        return _failure("Status", f"Unknown endpoint: {path}", 404)

    if request.method != "POST":
        return _failure(f"{hook.value}Response", "Use POST for hook calls", 405)

    payload = request.get_json(silent=True)
    try:
        response = handler.handle(hook, payload)
    except ValueError as e:
        logger.error(f"Invalid {hook.value} request: {e}")
        return _failure(f"{hook.value}Response", str(e), 400)

    if not response.succeeded:
        logger.warning(f"{hook.value} responded Failure: {response.message}")
    return response.to_wire(hook), 200


def create_app(handler: LifecycleHookHandler, config: HookServerConfig) -> Flask:
    """Create the Flask application serving every runtime extension path."""
    app = Flask(__name__)

    def dispatch(path: str = ""):
        return route_request(flask_request, handler, config)

    app.add_url_rule("/", "dispatch", dispatch, methods=["GET", "POST"])
    app.add_url_rule("/<path:path>", "dispatch_path", dispatch, methods=["GET", "POST"])
    return app


def tls_context(cert_dir: str) -> Optional[Tuple[str, str]]:
    """Return (cert, key) paths if the serving certificate exists in cert_dir."""
    cert = os.path.join(cert_dir, "tls.crt")
    key = os.path.join(cert_dir, "tls.key")
    if os.path.exists(cert) and os.path.exists(key):
        return cert, key
    return None
