"""Tests for the get command."""

import argparse
import io
import logging
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest

from kubectl_multi.clients.discovery import APIResourceInfo
from kubectl_multi.commands.get import GetCommand, list_resources
from kubectl_multi.session import MultiClusterSession
from kubectl_multi.utils.errors import PreconditionError

SERVED = [
    APIResourceInfo("v1", "pods", "Pod", True, "pod", ("po",)),
    APIResourceInfo("v1", "services", "Service", True, "service", ("svc",)),
    APIResourceInfo("v1", "nodes", "Node", False, "node", ("no",)),
    APIResourceInfo("apps/v1", "deployments", "Deployment", True, "deployment", ("deploy",)),
]


def pod(name: str) -> dict[str, Any]:
    return {
        "kind": "Pod",
        "metadata": {"name": name, "namespace": "default"},
        "spec": {"containers": [{"name": "main"}]},
        "status": {"phase": "Running", "containerStatuses": [{"ready": True}]},
    }


def get_args(resource_type: str = "pods", **overrides: Any) -> argparse.Namespace:
    values: dict[str, Any] = {
        "resource_type": resource_type,
        "name": None,
        "selector": None,
        "show_labels": False,
        "watch": False,
        "watch_only": False,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


@pytest.fixture
def clients(two_cluster_clients: dict[str | None, Any]) -> dict[str | None, Any]:
    for key in ("cluster1", "cluster2", None):
        two_cluster_clients[key].discovery.server_resources.return_value = SERVED
        two_cluster_clients[key].list_resources.return_value = []
    two_cluster_clients["cluster1"].list_resources.return_value = [pod("web-1"), pod("web-2")]
    two_cluster_clients[None].list_resources.return_value = [pod("db-0")]
    return two_cluster_clients


class TestGetCommand:
    """Tests for GetCommand.run."""

    def test_merged_table(
        self,
        session_factory: Callable[..., MultiClusterSession],
        clients: dict[str | None, Any],
        output: io.StringIO,
    ) -> None:
        """One header, then rows from every non-empty cluster in discovery order."""
        session = session_factory(clients)

        assert GetCommand().run(get_args(), session) == 0

        lines = output.getvalue().splitlines()
        assert lines[0].split() == ["CLUSTER", "NAME", "READY", "STATUS", "RESTARTS", "AGE"]
        assert [line.split()[:2] for line in lines[1:]] == [
            ["cluster1", "web-1"],
            ["cluster1", "web-2"],
            ["hub", "db-0"],
        ]

    def test_namespace_scope(
        self,
        session_factory: Callable[..., MultiClusterSession],
        clients: dict[str | None, Any],
    ) -> None:
        session = session_factory(clients, namespace="prod")

        GetCommand().run(get_args("po", selector="app=web"), session)

        kwargs = clients["cluster1"].list_resources.call_args.kwargs
        assert kwargs["namespace"] == "prod"
        assert kwargs["label_selector"] == "app=web"

    def test_cluster_scoped_type_ignores_namespace(
        self,
        session_factory: Callable[..., MultiClusterSession],
        clients: dict[str | None, Any],
    ) -> None:
        session = session_factory(clients, namespace="prod")

        GetCommand().run(get_args("nodes"), session)

        assert clients["cluster1"].list_resources.call_args.kwargs["namespace"] is None

    def test_all_empty(
        self,
        session_factory: Callable[..., MultiClusterSession],
        clients: dict[str | None, Any],
        output: io.StringIO,
    ) -> None:
        session = session_factory(clients)

        GetCommand().run(get_args("deployments"), session)

        assert output.getvalue() == "No resources found in default namespace.\n"

    def test_all_types(
        self,
        session_factory: Callable[..., MultiClusterSession],
        clients: dict[str | None, Any],
        output: io.StringIO,
    ) -> None:
        """'all' prints pods, services and deployments sections."""
        session = session_factory(clients)

        GetCommand().run(get_args("all"), session)

        sections = output.getvalue().split("\n\n")
        assert len(sections) == 3
        assert sections[0].startswith("CLUSTER")

    def test_failing_cluster(
        self,
        session_factory: Callable[..., MultiClusterSession],
        clients: dict[str | None, Any],
        output: io.StringIO,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A failing cluster is reported and the others still list."""
        clients["cluster2"].list_resources.side_effect = RuntimeError("connection refused")
        session = session_factory(clients)

        with caplog.at_level(logging.WARNING):
            assert GetCommand().run(get_args(), session) == 0

        assert "cluster2" in caplog.text
        assert "web-1" in output.getvalue()

    @pytest.mark.parametrize("flag", ["watch", "watch_only"])
    def test_watch_refused(
        self,
        session_factory: Callable[..., MultiClusterSession],
        clients: dict[str | None, Any],
        flag: str,
    ) -> None:
        session = session_factory(clients)

        with pytest.raises(PreconditionError, match="watch"):
            GetCommand().run(get_args(**{flag: True}), session)

        clients["its1"].list_resources.assert_not_called()


class TestListResources:
    """Tests for the per-cluster list operation."""

    def test_by_name(self, handle_factory: Callable[..., Any]) -> None:
        handle = handle_factory("cluster1")
        handle.client.discovery.server_resources.return_value = SERVED
        handle.client.get.return_value = pod("web-1")

        envelopes = list_resources(handle, "pod", namespace="default", name="web-1")

        assert [e.name for e in envelopes] == ["web-1"]
        crd = handle.client.get.call_args.args[0]
        assert crd.plural == "pods"

    def test_custom_type(self, handle_factory: Callable[..., Any]) -> None:
        handle = handle_factory("cluster1")
        handle.client.discovery.server_resources.return_value = [
            APIResourceInfo("example.io/v2", "widgets", "Widget", True, "widget", ())
        ]
        handle.client.list_resources.return_value = [{"metadata": {"name": "w"}}]

        envelopes = list_resources(handle, "widget", namespace="default")

        crd = handle.client.list_resources.call_args.args[0]
        assert crd.api_version == "example.io/v2"
        assert envelopes[0].group == "example.io"

    def test_no_client(self) -> None:
        handle = MagicMock()
        handle.client = None
        assert list_resources(handle, "pods") == []
