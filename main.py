"""
Functions Framework entry point for the upgrade-gating runtime extension.

Serves the same paths as the standalone server:
- POST /hooks.runtime.cluster.x-k8s.io/v1alpha1/discovery
- POST /hooks.runtime.cluster.x-k8s.io/v1alpha1/<hook>/<handler-name>
- GET  /healthz

All configuration is done via environment variables.
"""

import os
import sys
from typing import Any, Dict, Optional, Tuple

import functions_framework
from flask import Request

# Add src/ to path to import modules directly
REPO_ROOT = os.path.dirname(os.path.abspath(__file__))
SRC_PATH = os.path.join(REPO_ROOT, "src")
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from config import HookServerConfig
from hooks import LifecycleHookHandler
from log_utils import setup_logging
from server import build_handler, route_request

CONFIG = HookServerConfig.from_env()
setup_logging(verbose=CONFIG.verbose, log_file=CONFIG.log_file, json_format=True)

_handler: Optional[LifecycleHookHandler] = None


def get_handler() -> LifecycleHookHandler:
    """Build the hook handler on first use."""
    global _handler
    if _handler is None:
        _handler = build_handler(CONFIG)
    return _handler


@functions_framework.http
def main(request: Request) -> Tuple[Dict[str, Any], int]:
    """Route a runtime extension request."""
    return route_request(request, get_handler(), CONFIG)
