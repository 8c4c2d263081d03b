"""Per-cluster Kubernetes client bundle.

A K8sClient binds one kubeconfig context to its typed, dynamic and
schema-discovery clients. Clients are never shared between clusters: every
context gets its own ApiClient so no global kubernetes configuration is
mutated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from kubernetes import client, config  # type: ignore[import-untyped]
from kubernetes.dynamic import DynamicClient  # type: ignore[import-untyped]
from kubernetes.dynamic.exceptions import NotFoundError  # type: ignore[import-untyped]

from kubectl_multi.clients.discovery import DiscoveryClient
from kubectl_multi.config import resolve_kubeconfig_path
from kubectl_multi.utils.errors import ClientBuildError, ResourceNotFoundError

logger = logging.getLogger(__name__)

UNKNOWN_CLUSTER = "<unknown>"

# urllib3 retries connection errors 3 times by default
DEFAULT_CONNECT_RETRIES = 1


@dataclass(frozen=True)
class CRDDefinition:
    """Addressing information for a custom resource type."""

    group: str
    version: str
    plural: str
    kind: str

    @property
    def api_version(self) -> str:
        """Get the apiVersion string (e.g. 'cluster.open-cluster-management.io/v1')."""
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"


class RequestTimeoutApiClient(client.ApiClient):  # type: ignore[misc]
    """ApiClient that applies a default deadline to every request.

    Calls that pass their own _request_timeout keep it. The dynamic client
    issues discovery requests without one, so this is what bounds them.
    """

    def __init__(
        self,
        configuration: client.Configuration | None = None,
        request_timeout: float | None = None,
    ) -> None:
        super().__init__(configuration)
        self.request_timeout = request_timeout

    def call_api(self, *args: Any, **kwargs: Any) -> Any:
        if kwargs.get("_request_timeout") is None and self.request_timeout is not None:
            kwargs["_request_timeout"] = self.request_timeout
        return super().call_api(*args, **kwargs)


def load_kubeconfig(path: Path) -> dict[str, Any]:
    """Read and parse a kubeconfig document.

    Raises:
        ClientBuildError: If the file cannot be read or is not a mapping.
    """
    try:
        document = yaml.safe_load(path.read_text())
    except OSError as e:
        raise ClientBuildError("load kubeconfig", None, f"{path}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise ClientBuildError("parse kubeconfig", None, f"{path}: {e}") from e

    if not isinstance(document, dict):
        raise ClientBuildError("parse kubeconfig", None, f"{path}: not a kubeconfig document")
    return document


def resolve_context(document: dict[str, Any], override: str | None = None) -> tuple[str, str]:
    """Resolve the effective context name and the cluster name it points at.

    Args:
        document: Parsed kubeconfig.
        override: Context to use instead of current-context.

    Returns:
        Tuple of (context name, cluster name). The cluster name is
        '<unknown>' when the context entry names no cluster.

    Raises:
        ClientBuildError: If no context can be resolved.
    """
    context_name = override or document.get("current-context") or ""
    if not context_name:
        raise ClientBuildError("resolve context", override, "no current-context set")

    for entry in document.get("contexts") or []:
        if isinstance(entry, dict) and entry.get("name") == context_name:
            details = entry.get("context") or {}
            return context_name, details.get("cluster") or UNKNOWN_CLUSTER

    raise ClientBuildError("resolve context", context_name, f"context '{context_name}' not found")


class K8sClient:
    """Typed, dynamic and discovery clients bound to one cluster context.

    Connecting makes no network calls. The dynamic client reads the server
    version when created, so it is built on first use, inside the operation
    that needs it. Every request is bounded by request_timeout when set.
    """

    def __init__(
        self,
        kubeconfig_path: str | Path | None = None,
        context: str | None = None,
        request_timeout: float | None = None,
    ) -> None:
        self._kubeconfig_path = resolve_kubeconfig_path(
            str(kubeconfig_path) if kubeconfig_path else None
        )
        self._context_override = context
        self._request_timeout = request_timeout
        self._context: str | None = None
        self._cluster_name: str | None = None
        self._api_client: client.ApiClient | None = None
        self._core_v1: client.CoreV1Api | None = None
        self._apps_v1: client.AppsV1Api | None = None
        self._batch_v1: client.BatchV1Api | None = None
        self._dynamic_client: DynamicClient | None = None
        self._discovery: DiscoveryClient | None = None
        self._crd_cache: dict[str, Any] = {}

    def connect(self) -> None:
        """Load the kubeconfig and construct every client kind.

        Each step fails independently with a ClientBuildError naming it.
        """
        document = load_kubeconfig(self._kubeconfig_path)
        context_name, cluster_name = resolve_context(document, self._context_override)

        try:
            configuration = client.Configuration()
            config.load_kube_config(
                config_file=str(self._kubeconfig_path),
                context=context_name,
                client_configuration=configuration,
                persist_config=False,
            )
        except Exception as e:
            raise ClientBuildError("create connection config", context_name, e) from e

        # a retried connect would overrun the deadline
        configuration.retries = 0 if self._request_timeout else DEFAULT_CONNECT_RETRIES
        api_client = RequestTimeoutApiClient(configuration, request_timeout=self._request_timeout)

        try:
            core_v1 = client.CoreV1Api(api_client)
            apps_v1 = client.AppsV1Api(api_client)
            batch_v1 = client.BatchV1Api(api_client)
        except Exception as e:
            raise ClientBuildError("create kubernetes client", context_name, e) from e

        try:
            discovery = DiscoveryClient(api_client)
        except Exception as e:
            raise ClientBuildError("create discovery client", context_name, e) from e

        self._context = context_name
        self._cluster_name = cluster_name
        self._api_client = api_client
        self._core_v1 = core_v1
        self._apps_v1 = apps_v1
        self._batch_v1 = batch_v1
        self._discovery = discovery
        logger.debug(f"Connected to context {context_name} (cluster {cluster_name})")

    def close(self) -> None:
        """Release the underlying connection pool."""
        if self._api_client is not None:
            self._api_client.close()
        self._api_client = None
        self._core_v1 = None
        self._apps_v1 = None
        self._batch_v1 = None
        self._dynamic_client = None
        self._discovery = None
        self._crd_cache.clear()

    @property
    def is_connected(self) -> bool:
        return self._core_v1 is not None

    @property
    def kubeconfig_path(self) -> Path:
        return self._kubeconfig_path

    @property
    def context(self) -> str:
        if self._context is None:
            raise RuntimeError("Client is not connected")
        return self._context

    @property
    def cluster_name(self) -> str:
        if self._cluster_name is None:
            raise RuntimeError("Client is not connected")
        return self._cluster_name

    @property
    def api_client(self) -> client.ApiClient:
        if self._api_client is None:
            raise RuntimeError("Client is not connected")
        return self._api_client

    @property
    def core_v1(self) -> client.CoreV1Api | None:
        """Typed core API. None means the cluster is unreachable."""
        return self._core_v1

    @property
    def apps_v1(self) -> client.AppsV1Api | None:
        return self._apps_v1

    @property
    def batch_v1(self) -> client.BatchV1Api | None:
        return self._batch_v1

    @property
    def request_timeout(self) -> float | None:
        return self._request_timeout

    @property
    def dynamic(self) -> DynamicClient:
        """Dynamic client, created on first access.

        Raises:
            ClientBuildError: If the server cannot be reached to create it.
        """
        if self._dynamic_client is None:
            if self._api_client is None:
                raise RuntimeError("Client is not connected")
            try:
                self._dynamic_client = DynamicClient(self._api_client)
            except Exception as e:
                raise ClientBuildError("create dynamic client", self._context, e) from e
        return self._dynamic_client

    @property
    def discovery(self) -> DiscoveryClient:
        if self._discovery is None:
            raise RuntimeError("Client is not connected")
        return self._discovery

    # -------------------------------------------------------------------------
    # Generic resource operations
    # -------------------------------------------------------------------------

    def get_resource(self, crd: CRDDefinition) -> Any:
        """Get the dynamic resource handle for a CRD."""
        cache_key = f"{crd.api_version}/{crd.plural}"
        if cache_key not in self._crd_cache:
            self._crd_cache[cache_key] = self.dynamic.resources.get(
                api_version=crd.api_version, name=crd.plural
            )
        return self._crd_cache[cache_key]

    def list_resources(
        self,
        crd: CRDDefinition,
        namespace: str | None = None,
        label_selector: str | None = None,
        field_selector: str | None = None,
        timeout: float | None = None,
    ) -> list[Any]:
        """List resources of a type, optionally scoped to a namespace."""
        kwargs: dict[str, Any] = {}
        if timeout is not None:
            kwargs["_request_timeout"] = timeout
        resource = self.get_resource(crd)
        result = resource.get(
            namespace=namespace,
            label_selector=label_selector,
            field_selector=field_selector,
            **kwargs,
        )
        return list(result.items or [])

    def get(self, crd: CRDDefinition, name: str, namespace: str | None = None) -> Any:
        """Get a single resource by name."""
        resource = self.get_resource(crd)
        try:
            return resource.get(name=name, namespace=namespace)
        except NotFoundError as e:
            raise ResourceNotFoundError(crd.kind, name, namespace) from e

    def create(
        self,
        crd: CRDDefinition,
        body: dict[str, Any],
        namespace: str | None = None,
    ) -> Any:
        """Create a resource."""
        resource = self.get_resource(crd)
        return resource.create(body=body, namespace=namespace)

    def delete(self, crd: CRDDefinition, name: str, namespace: str | None = None) -> None:
        """Delete a resource by name."""
        resource = self.get_resource(crd)
        try:
            resource.delete(name=name, namespace=namespace)
        except NotFoundError as e:
            raise ResourceNotFoundError(crd.kind, name, namespace) from e

    def patch(
        self,
        crd: CRDDefinition,
        name: str,
        body: dict[str, Any],
        namespace: str | None = None,
    ) -> Any:
        """Merge-patch a resource."""
        resource = self.get_resource(crd)
        try:
            return resource.patch(
                body=body,
                name=name,
                namespace=namespace,
                content_type="application/merge-patch+json",
            )
        except NotFoundError as e:
            raise ResourceNotFoundError(crd.kind, name, namespace) from e


def build_cluster_client(
    kubeconfig_path: str | Path | None = None,
    context: str | None = None,
    request_timeout: float | None = None,
) -> K8sClient | None:
    """Build a connected client bundle for one context.

    Never raises for configuration or construction problems: the failing
    step is logged as a warning and None is returned so that other clusters
    can still be tried.

    Args:
        kubeconfig_path: Kubeconfig file, or None for the default location.
        context: Context override, or None for current-context.
        request_timeout: Deadline in seconds for each request the bundle makes.

    Returns:
        Connected K8sClient, or None if any step failed.
    """
    k8s = K8sClient(kubeconfig_path, context, request_timeout=request_timeout)
    try:
        k8s.connect()
    except ClientBuildError as e:
        logger.warning(f"Warning: {e}")
        return None
    return k8s
