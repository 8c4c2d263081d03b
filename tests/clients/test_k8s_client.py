"""Tests for the per-cluster client bundle."""

import logging
from pathlib import Path
from typing import Any
from unittest.mock import ANY, MagicMock, patch

import pytest
from kubernetes import client  # type: ignore[import-untyped]
from kubernetes.client import ApiException  # type: ignore[import-untyped]
from kubernetes.dynamic.exceptions import NotFoundError  # type: ignore[import-untyped]

from kubectl_multi.clients.base import (
    DEFAULT_CONNECT_RETRIES,
    UNKNOWN_CLUSTER,
    CRDDefinition,
    K8sClient,
    RequestTimeoutApiClient,
    build_cluster_client,
    load_kubeconfig,
    resolve_context,
)
from kubectl_multi.utils.errors import ClientBuildError, ResourceNotFoundError

MANAGED_CLUSTER = CRDDefinition(
    group="cluster.open-cluster-management.io",
    version="v1",
    plural="managedclusters",
    kind="ManagedCluster",
)


class TestCRDDefinition:
    """Tests for CRDDefinition."""

    def test_api_version_with_group(self) -> None:
        """Group resources use group/version."""
        assert MANAGED_CLUSTER.api_version == "cluster.open-cluster-management.io/v1"

    def test_api_version_core_group(self) -> None:
        """Core resources use the bare version."""
        crd = CRDDefinition(group="", version="v1", plural="pods", kind="Pod")
        assert crd.api_version == "v1"


class TestLoadKubeconfig:
    """Tests for load_kubeconfig."""

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file fails the load step."""
        with pytest.raises(ClientBuildError) as exc_info:
            load_kubeconfig(tmp_path / "missing")
        assert exc_info.value.step == "load kubeconfig"

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Unparsable YAML fails the parse step."""
        path = tmp_path / "kubeconfig"
        path.write_text("contexts: [unclosed")
        with pytest.raises(ClientBuildError) as exc_info:
            load_kubeconfig(path)
        assert exc_info.value.step == "parse kubeconfig"

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        """A YAML scalar is not a kubeconfig."""
        path = tmp_path / "kubeconfig"
        path.write_text("just a string")
        with pytest.raises(ClientBuildError):
            load_kubeconfig(path)

    def test_valid_file(self, kubeconfig_file: Path) -> None:
        """A valid kubeconfig loads as a mapping."""
        document = load_kubeconfig(kubeconfig_file)
        assert document["current-context"] == "kind-hub"


class TestResolveContext:
    """Tests for resolve_context."""

    @pytest.fixture
    def document(self) -> dict[str, Any]:
        return {
            "current-context": "kind-hub",
            "contexts": [
                {"name": "kind-hub", "context": {"cluster": "hub"}},
                {"name": "cluster1", "context": {"cluster": "cluster1"}},
                {"name": "orphan", "context": {"user": "admin"}},
            ],
        }

    def test_current_context(self, document: dict[str, Any]) -> None:
        """Without an override the current context is used."""
        assert resolve_context(document) == ("kind-hub", "hub")

    def test_override(self, document: dict[str, Any]) -> None:
        """An override selects another context."""
        assert resolve_context(document, "cluster1") == ("cluster1", "cluster1")

    def test_context_without_cluster(self, document: dict[str, Any]) -> None:
        """A context naming no cluster resolves to '<unknown>'."""
        assert resolve_context(document, "orphan") == ("orphan", UNKNOWN_CLUSTER)

    def test_unknown_context(self, document: dict[str, Any]) -> None:
        """An override naming no context fails the resolve step."""
        with pytest.raises(ClientBuildError) as exc_info:
            resolve_context(document, "nope")
        assert exc_info.value.step == "resolve context"
        assert "nope" in str(exc_info.value)

    def test_no_current_context(self) -> None:
        """A kubeconfig without current-context cannot resolve."""
        with pytest.raises(ClientBuildError):
            resolve_context({"contexts": []})


class TestConnect:
    """Tests for K8sClient.connect and build_cluster_client."""

    @pytest.fixture
    def mock_load(self) -> Any:
        with patch("kubectl_multi.clients.base.config.load_kube_config") as mock:
            yield mock

    @pytest.fixture
    def mock_api_client(self) -> Any:
        with patch("kubectl_multi.clients.base.RequestTimeoutApiClient") as mock:
            mock.side_effect = lambda *args, **kwargs: MagicMock()
            yield mock

    @pytest.fixture
    def mock_dynamic(self) -> Any:
        with patch("kubectl_multi.clients.base.DynamicClient") as mock:
            yield mock

    def test_connect_builds_all_clients(
        self,
        kubeconfig_file: Path,
        mock_load: MagicMock,
        mock_api_client: MagicMock,
        mock_dynamic: MagicMock,
    ) -> None:
        """Connecting resolves names and builds typed and discovery clients."""
        k8s = K8sClient(kubeconfig_file, "cluster1")
        k8s.connect()

        assert k8s.is_connected
        assert k8s.context == "cluster1"
        assert k8s.cluster_name == "cluster1"
        assert k8s.core_v1 is not None
        assert k8s.apps_v1 is not None
        assert k8s.batch_v1 is not None
        assert k8s.discovery is not None
        mock_load.assert_called_once_with(
            config_file=str(kubeconfig_file),
            context="cluster1",
            client_configuration=ANY,
            persist_config=False,
        )

    def test_connect_makes_no_server_calls(
        self,
        kubeconfig_file: Path,
        mock_load: MagicMock,
        mock_api_client: MagicMock,
        mock_dynamic: MagicMock,
    ) -> None:
        """The dynamic client, which reads /version, is only built on first use."""
        k8s = build_cluster_client(kubeconfig_file, "cluster1")
        assert k8s is not None
        mock_dynamic.assert_not_called()

        assert k8s.dynamic is mock_dynamic.return_value
        assert k8s.dynamic is mock_dynamic.return_value
        mock_dynamic.assert_called_once_with(k8s.api_client)

    def test_request_timeout_disables_retries(
        self, kubeconfig_file: Path, mock_load: MagicMock, mock_api_client: MagicMock
    ) -> None:
        """A deadline is handed to the ApiClient and connection retries are dropped."""
        k8s = build_cluster_client(kubeconfig_file, "cluster1", request_timeout=4.0)

        assert k8s is not None
        assert k8s.request_timeout == 4.0
        configuration = mock_api_client.call_args.args[0]
        assert configuration.retries == 0
        assert mock_api_client.call_args.kwargs["request_timeout"] == 4.0

    def test_default_retries(
        self, kubeconfig_file: Path, mock_load: MagicMock, mock_api_client: MagicMock
    ) -> None:
        build_cluster_client(kubeconfig_file, "cluster1")

        configuration = mock_api_client.call_args.args[0]
        assert configuration.retries == DEFAULT_CONNECT_RETRIES
        assert mock_api_client.call_args.kwargs["request_timeout"] is None

    def test_each_context_gets_its_own_api_client(
        self, kubeconfig_file: Path, mock_load: MagicMock, mock_api_client: MagicMock
    ) -> None:
        """Bundles for different contexts never share an ApiClient."""
        first = build_cluster_client(kubeconfig_file, "cluster1")
        second = build_cluster_client(kubeconfig_file, "cluster2")

        assert first is not None and second is not None
        assert first.api_client is not second.api_client

    def test_build_uses_current_context(
        self, kubeconfig_file: Path, mock_load: MagicMock, mock_api_client: MagicMock
    ) -> None:
        """Without an override the current context and its cluster name are used."""
        k8s = build_cluster_client(kubeconfig_file)

        assert k8s is not None
        assert k8s.context == "kind-hub"
        assert k8s.cluster_name == "hub"

    def test_build_missing_file_returns_none(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A missing kubeconfig yields None and a warning naming the step."""
        with caplog.at_level(logging.WARNING):
            assert build_cluster_client(tmp_path / "missing", "cluster1") is None
        assert "load kubeconfig" in caplog.text

    def test_build_unknown_context_returns_none(
        self, kubeconfig_file: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """An unknown context yields None and a warning naming the context."""
        with caplog.at_level(logging.WARNING):
            assert build_cluster_client(kubeconfig_file, "ghost") is None
        assert "ghost" in caplog.text

    def test_build_connection_config_failure(
        self,
        kubeconfig_file: Path,
        mock_load: MagicMock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A connection config failure is reported as its own step."""
        mock_load.side_effect = ValueError("bad certificate")
        with caplog.at_level(logging.WARNING):
            assert build_cluster_client(kubeconfig_file, "cluster1") is None
        assert "create connection config" in caplog.text
        assert "bad certificate" in caplog.text

    def test_dynamic_client_failure_names_step(
        self,
        kubeconfig_file: Path,
        mock_load: MagicMock,
        mock_api_client: MagicMock,
        mock_dynamic: MagicMock,
    ) -> None:
        """An unreachable server surfaces when the dynamic client is first used."""
        mock_dynamic.side_effect = RuntimeError("connection refused")
        k8s = build_cluster_client(kubeconfig_file, "cluster2")
        assert k8s is not None

        with pytest.raises(ClientBuildError) as exc_info:
            _ = k8s.dynamic
        assert "create dynamic client" in str(exc_info.value)
        assert "cluster2" in str(exc_info.value)

    def test_close_releases_clients(
        self, kubeconfig_file: Path, mock_load: MagicMock, mock_api_client: MagicMock
    ) -> None:
        """Closing drops every client."""
        k8s = build_cluster_client(kubeconfig_file, "cluster1")
        assert k8s is not None
        api_client = k8s.api_client

        k8s.close()

        api_client.close.assert_called_once()
        assert not k8s.is_connected
        assert k8s.core_v1 is None

    def test_unconnected_accessors_raise(self, kubeconfig_file: Path) -> None:
        """Accessing the dynamic client before connect is an error."""
        k8s = K8sClient(kubeconfig_file)
        with pytest.raises(RuntimeError, match="not connected"):
            _ = k8s.dynamic


class TestRequestTimeoutApiClient:
    """Tests for the default request deadline."""

    @pytest.fixture
    def base_call(self) -> Any:
        with patch.object(client.ApiClient, "call_api") as mock:
            yield mock

    def test_default_applied(self, base_call: MagicMock) -> None:
        api = RequestTimeoutApiClient(client.Configuration(), request_timeout=5)

        api.call_api("/version", "GET", _request_timeout=None)

        assert base_call.call_args.args == ("/version", "GET")
        assert base_call.call_args.kwargs["_request_timeout"] == 5
        api.close()

    def test_explicit_timeout_kept(self, base_call: MagicMock) -> None:
        api = RequestTimeoutApiClient(client.Configuration(), request_timeout=5)

        api.call_api("/api/v1", "GET", _request_timeout=1)

        assert base_call.call_args.kwargs["_request_timeout"] == 1
        api.close()

    def test_no_default(self, base_call: MagicMock) -> None:
        api = RequestTimeoutApiClient(client.Configuration())

        api.call_api("/api/v1", "GET")

        assert "_request_timeout" not in base_call.call_args.kwargs
        api.close()


class TestResourceOperations:
    """Tests for the generic resource helpers."""

    @pytest.fixture
    def k8s(self, kubeconfig_file: Path) -> K8sClient:
        k8s = K8sClient(kubeconfig_file, "its1")
        k8s._dynamic_client = MagicMock()
        return k8s

    @pytest.fixture
    def resource(self, k8s: K8sClient) -> MagicMock:
        resource = MagicMock()
        k8s._dynamic_client.resources.get.return_value = resource  # type: ignore[union-attr]
        return resource

    def _not_found(self) -> NotFoundError:
        return NotFoundError(ApiException(status=404, reason="Not Found"))

    def test_resource_lookup_is_cached(self, k8s: K8sClient, resource: MagicMock) -> None:
        """The dynamic resource is looked up once per type."""
        k8s.get_resource(MANAGED_CLUSTER)
        k8s.get_resource(MANAGED_CLUSTER)

        k8s.dynamic.resources.get.assert_called_once_with(
            api_version="cluster.open-cluster-management.io/v1", name="managedclusters"
        )

    def test_list_resources(self, k8s: K8sClient, resource: MagicMock) -> None:
        """Listing returns the items and forwards the timeout."""
        resource.get.return_value.items = ["a", "b"]

        items = k8s.list_resources(MANAGED_CLUSTER, label_selector="env=prod", timeout=5)

        assert items == ["a", "b"]
        resource.get.assert_called_once_with(
            namespace=None, label_selector="env=prod", field_selector=None, _request_timeout=5
        )

    def test_get_not_found(self, k8s: K8sClient, resource: MagicMock) -> None:
        """A missing object raises ResourceNotFoundError."""
        resource.get.side_effect = self._not_found()

        with pytest.raises(ResourceNotFoundError) as exc_info:
            k8s.get(MANAGED_CLUSTER, "cluster9")
        assert exc_info.value.name == "cluster9"

    def test_delete_not_found(self, k8s: K8sClient, resource: MagicMock) -> None:
        """Deleting a missing object raises ResourceNotFoundError."""
        resource.delete.side_effect = self._not_found()

        with pytest.raises(ResourceNotFoundError):
            k8s.delete(MANAGED_CLUSTER, "cluster9")

    def test_patch_uses_merge_patch(self, k8s: K8sClient, resource: MagicMock) -> None:
        """Patches are sent as JSON merge patches."""
        k8s.patch(MANAGED_CLUSTER, "cluster1", {"metadata": {"labels": {"a": "b"}}})

        kwargs = resource.patch.call_args.kwargs
        assert kwargs["content_type"] == "application/merge-patch+json"
        assert kwargs["name"] == "cluster1"
