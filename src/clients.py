"""
Kubernetes client for namespaced custom resources.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from errors import AlreadyExists, NotFound, StoreUnavailable
from models import GroupVersionResource

logger = logging.getLogger(__name__)

MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"


def load_configuration(
    kubeconfig: Optional[str] = None, context: Optional[str] = None
) -> client.Configuration:
    """
    Load API server configuration.

    The in-cluster service account is tried first unless a kubeconfig is
    given explicitly; otherwise the kubeconfig ($KUBECONFIG or
    ~/.kube/config) is used.

    Raises:
        ConfigException: If neither source is usable
    """
    configuration = client.Configuration()
    if not kubeconfig:
        try:
            config.load_incluster_config(client_configuration=configuration)
            logger.debug("Loaded in-cluster Kubernetes configuration")
            return configuration
        except ConfigException:
            logger.debug("Not running in a cluster, falling back to kubeconfig")

    config.load_kube_config(
        config_file=kubeconfig, context=context, client_configuration=configuration
    )
    logger.debug(f"Loaded kubeconfig {kubeconfig or '(default)'}")
    return configuration


class KubernetesClient:
    """List, create and patch namespaced custom objects."""

    def __init__(
        self,
        kubeconfig: Optional[str] = None,
        context: Optional[str] = None,
        timeout_s: int = 5,
        max_retries: int = 0,
        page_size: int = 500,
        api: Optional[client.CustomObjectsApi] = None,
    ):
        """
        Initialize the Kubernetes client.

        Args:
            kubeconfig: Optional kubeconfig path (skips in-cluster config)
            context: Optional kubeconfig context
            timeout_s: Request timeout in seconds
            max_retries: urllib3 retries for connection errors
            page_size: Items requested per list page
            api: Preconfigured CustomObjectsApi
        """
        self.timeout_s = timeout_s
        self.page_size = page_size

        if api is None:
            configuration = load_configuration(kubeconfig, context)
            if max_retries:
                configuration.retries = max_retries
            api = client.CustomObjectsApi(client.ApiClient(configuration))
        self.api = api

    @staticmethod
    def _error_message(e: ApiException) -> str:
        """Extract the message of a metav1.Status error body."""
        try:
            body = json.loads(e.body)
        except (TypeError, ValueError):
            return str(e.reason)
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return str(e.reason)

    def _call(self, action: str, fn: Callable[..., Any], **kwargs) -> Dict:
        """
        Invoke an API method and map failures onto store errors.

        Raises:
            NotFound: On HTTP 404
            AlreadyExists: On HTTP 409
            StoreUnavailable: On any other API, transport or decoding failure
        """
        try:
            result = fn(_request_timeout=self.timeout_s, **kwargs)
        except ApiException as e:
            message = f"{action} failed ({e.status}): {self._error_message(e)}"
            if e.status == 404:
                raise NotFound(message) from e
            if e.status == 409:
                raise AlreadyExists(message) from e
            raise StoreUnavailable(message) from e
        except (urllib3.exceptions.HTTPError, OSError, ValueError) as e:
            raise StoreUnavailable(f"{action} failed: {e}") from e

        # Non-JSON bodies (e.g. an intercepting proxy) come back as strings
        if not isinstance(result, dict):
            raise StoreUnavailable(f"{action} returned an unexpected response")
        return result

    def list_namespaced(
        self,
        gvr: GroupVersionResource,
        namespace: str,
        field_selector: Optional[str] = None,
        label_selector: Optional[str] = None,
    ) -> List[Dict]:
        """
        List objects of a resource in a namespace.

        Args:
            gvr: Resource to list
            namespace: Namespace to list in
            field_selector: Optional field selector (e.g. metadata.name=foo)
            label_selector: Optional label selector

        Returns:
            List of objects as dictionaries

        Raises:
            StoreError: If the API call fails
        """
        items: List[Dict] = []
        continue_token: Optional[str] = None

        while True:
            params = {"limit": self.page_size}
            if field_selector:
                params["field_selector"] = field_selector
            if label_selector:
                params["label_selector"] = label_selector
            if continue_token:
                params["_continue"] = continue_token

            data = self._call(
                f"List {gvr.resource}",
                self.api.list_namespaced_custom_object,
                group=gvr.group,
                version=gvr.version,
                namespace=namespace,
                plural=gvr.resource,
                **params,
            )
            items.extend(data.get("items") or [])

            continue_token = (data.get("metadata") or {}).get("continue")
            if not continue_token:
                break

        return items

    def create_namespaced(
        self, gvr: GroupVersionResource, namespace: str, body: Dict
    ) -> Dict:
        """
        Create an object in a namespace.

        Raises:
            AlreadyExists: If an object with the same name exists
            StoreError: If the API call fails otherwise
        """
        return self._call(
            f"Create {gvr.resource}",
            self.api.create_namespaced_custom_object,
            group=gvr.group,
            version=gvr.version,
            namespace=namespace,
            plural=gvr.resource,
            body=body,
        )

    def patch_namespaced(
        self, gvr: GroupVersionResource, namespace: str, name: str, patch: Dict
    ) -> Dict:
        """
        Apply a JSON merge patch to a named object.

        Raises:
            NotFound: If the object does not exist
            StoreError: If the API call fails otherwise
        """
        return self._call(
            f"Patch {gvr.resource}/{name}",
            self.api.patch_namespaced_custom_object,
            group=gvr.group,
            version=gvr.version,
            namespace=namespace,
            plural=gvr.resource,
            name=name,
            body=patch,
            _content_type=MERGE_PATCH_CONTENT_TYPE,
        )
