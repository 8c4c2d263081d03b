"""Shared fixtures for kubectl-multi tests."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest
import yaml

from kubectl_multi.cluster.discovery import ClusterHandle
from kubectl_multi.config import MultiClusterConfig
from kubectl_multi.output.sink import OutputSink
from kubectl_multi.session import MultiClusterSession


def make_kubeconfig(contexts: dict[str, str | None], current: str | None) -> dict[str, Any]:
    """Build a kubeconfig document mapping context names to cluster names."""
    clusters = sorted({c for c in contexts.values() if c})
    document: dict[str, Any] = {
        "apiVersion": "v1",
        "kind": "Config",
        "clusters": [
            {"name": c, "cluster": {"server": f"https://{c}.example.com:6443"}} for c in clusters
        ],
        "users": [{"name": "admin", "user": {"token": "test-token"}}],
        "contexts": [
            {
                "name": name,
                "context": {"cluster": cluster, "user": "admin"} if cluster else {"user": "admin"},
            }
            for name, cluster in contexts.items()
        ],
    }
    if current:
        document["current-context"] = current
    return document


@pytest.fixture
def kubeconfig_file(tmp_path: Path) -> Path:
    """Write a kubeconfig with an inventory context and two execution clusters."""
    path = tmp_path / "kubeconfig"
    document = make_kubeconfig(
        {"its1": "its1-cluster", "cluster1": "cluster1", "cluster2": "cluster2", "kind-hub": "hub"},
        current="kind-hub",
    )
    path.write_text(yaml.safe_dump(document))
    return path


def make_client(context: str, cluster_name: str | None = None) -> MagicMock:
    """Create a mock K8sClient bound to one context."""
    client = MagicMock()
    client.context = context
    client.cluster_name = cluster_name or context
    client.core_v1 = MagicMock()
    return client


@pytest.fixture
def handle_factory() -> Callable[..., ClusterHandle]:
    """Factory for cluster handles backed by mock clients."""

    def factory(name: str, context: str | None = None, reachable: bool = True) -> ClusterHandle:
        client = make_client(context or name, name)
        if not reachable:
            client.core_v1 = None
        return ClusterHandle(name=name, context=context or name, client=client)

    return factory


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def sink(output: io.StringIO) -> OutputSink:
    """Sink writing into the `output` buffer."""
    return OutputSink(output)


@pytest.fixture
def client_factory() -> Callable[..., MagicMock]:
    """Factory for mock K8sClients."""
    return make_client


@pytest.fixture
def kubeconfig_factory(tmp_path: Path) -> Callable[..., Path]:
    """Write a kubeconfig with the given contexts and return its path."""

    def factory(contexts: dict[str, str | None], current: str | None = None) -> Path:
        path = tmp_path / "custom-kubeconfig"
        path.write_text(yaml.safe_dump(make_kubeconfig(contexts, current)))
        return path

    return factory


def make_inventory_client(cluster_names: list[str], context: str = "its1") -> MagicMock:
    """Mock inventory client listing one ManagedCluster per name."""
    client = make_client(context, f"{context}-cluster")
    client.list_resources.return_value = [
        {"metadata": {"name": name, "labels": {}}, "spec": {}, "status": {}}
        for name in cluster_names
    ]
    return client


@pytest.fixture
def session_factory(kubeconfig_file: Path, sink: OutputSink) -> Callable[..., MultiClusterSession]:
    """Factory for sessions whose clients come from a context-keyed mapping.

    The None key stands for the kubeconfig's current context.
    """

    def factory(
        clients: dict[str | None, Any],
        runner: Any = None,
        **settings: Any,
    ) -> MultiClusterSession:
        config = MultiClusterConfig(kubeconfig_path=str(kubeconfig_file), **settings)

        def builder(path: Any, context: str | None) -> Any:
            return clients.get(context)

        return MultiClusterSession(config, sink=sink, runner=runner, builder=builder)

    return factory


@pytest.fixture
def two_cluster_clients() -> dict[str | None, Any]:
    """Inventory on its1 registering cluster1 and cluster2, local cluster hub."""
    return {
        "its1": make_inventory_client(["cluster1", "cluster2"]),
        "cluster1": make_client("cluster1"),
        "cluster2": make_client("cluster2"),
        None: make_client("kind-hub", "hub"),
    }
