"""Tests for the merged multi-cluster table."""

import io
from typing import Any

import pytest

from kubectl_multi.dispatch.results import OperationResult
from kubectl_multi.output.sink import OutputSink
from kubectl_multi.output.table import (
    TableAggregator,
    align_rows,
    build_columns,
    empty_message,
)
from kubectl_multi.resources.models import ResourceEnvelope
from kubectl_multi.resources.resolver import static_resolution

PODS = static_resolution("pods")


def pod(name: str, namespace: str = "default", **status: Any) -> ResourceEnvelope:
    document = {
        "kind": "Pod",
        "metadata": {"name": name, "namespace": namespace, "labels": {"app": name}},
        "spec": {"containers": [{"name": "main"}]},
        "status": {
            "phase": "Running",
            "containerStatuses": [{"ready": True, "restartCount": 2}],
            **status,
        },
    }
    return ResourceEnvelope.from_resource(PODS, document)


def header_of(lines: list[str]) -> list[str]:
    return lines[0].split()


class TestBuildColumns:
    """Tests for column selection."""

    def test_namespaced_default(self) -> None:
        headers = [c.header for c in build_columns("pods")]
        assert headers == ["NAME", "READY", "STATUS", "RESTARTS", "AGE"]

    def test_all_namespaces(self) -> None:
        headers = [c.header for c in build_columns("pods", all_namespaces=True)]
        assert headers[0] == "NAMESPACE"

    def test_cluster_scoped_never_gets_namespace(self) -> None:
        headers = [c.header for c in build_columns("nodes", namespaced=False, all_namespaces=True)]
        assert headers == ["NAME", "STATUS", "ROLES", "VERSION", "AGE"]

    def test_show_labels(self) -> None:
        headers = [c.header for c in build_columns("deployments", show_labels=True)]
        assert headers[-1] == "LABELS"

    def test_unknown_type(self) -> None:
        headers = [c.header for c in build_columns("widgets")]
        assert headers == ["NAME", "AGE"]


class TestAlignRows:
    """Tests for align_rows."""

    def test_alignment(self) -> None:
        lines = align_rows([["CLUSTER", "NAME"], ["cluster1", "a"], ["c2", "longer-name"]])
        assert lines == [
            "CLUSTER   NAME",
            "cluster1  a",
            "c2        longer-name",
        ]

    def test_empty(self) -> None:
        assert align_rows([]) == []


class TestEmptyMessage:
    def test_namespaced(self) -> None:
        assert empty_message("default") == "No resources found in default namespace."

    def test_cluster_scoped(self) -> None:
        assert empty_message("default", namespaced=False) == "No resources found"


class TestTableAggregator:
    """Tests for TableAggregator."""

    @pytest.fixture
    def table(self, sink: OutputSink) -> TableAggregator:
        return TableAggregator(build_columns("pods"), sink)

    def test_lazy_header(self, table: TableAggregator, output: io.StringIO) -> None:
        """Five clusters, three empty: one header then three rows."""
        table.add(OperationResult("cluster1", output=[]))
        table.add(OperationResult("cluster2", output=[pod("a"), pod("b")]))
        table.add(OperationResult("cluster3", output=[]))
        table.add(OperationResult("cluster4", output=[pod("c")]))
        table.add(OperationResult("cluster5", output=None))
        table.flush()

        lines = output.getvalue().splitlines()
        assert len(lines) == 4
        assert header_of(lines) == ["CLUSTER", "NAME", "READY", "STATUS", "RESTARTS", "AGE"]
        assert [line.split()[0] for line in lines[1:]] == ["cluster2", "cluster2", "cluster4"]
        assert sum(1 for line in lines if line.startswith("CLUSTER")) == 1

    def test_all_empty_sentinel(self, sink: OutputSink, output: io.StringIO) -> None:
        table = TableAggregator(build_columns("pods"), sink, empty_message("default"))
        table.add(OperationResult("cluster1", output=[]))
        table.add(OperationResult("cluster2", output=[]))
        table.flush()

        assert output.getvalue() == "No resources found in default namespace.\n"

    def test_failed_results_ignored(self, table: TableAggregator) -> None:
        assert table.add(OperationResult.failed("cluster1", RuntimeError("boom"))) == 0
        assert table.lines() == ["No resources found"]

    def test_unsupported_results_ignored(self, table: TableAggregator) -> None:
        assert table.add(OperationResult.not_supported("its1")) == 0

    def test_row_values(self, table: TableAggregator) -> None:
        table.add(OperationResult("cluster1", output=[pod("web")]))
        row = table.lines()[1].split()
        assert row[:5] == ["cluster1", "web", "1/1", "Running", "2"]

    def test_waiting_reason_wins(self, table: TableAggregator) -> None:
        broken = pod(
            "broken",
            containerStatuses=[
                {
                    "ready": False,
                    "restartCount": 5,
                    "state": {"waiting": {"reason": "CrashLoopBackOff"}},
                }
            ],
        )
        table.add(OperationResult("cluster1", output=[broken]))
        assert "CrashLoopBackOff" in table.lines()[1]

    def test_missing_values_render_none(self, sink: OutputSink) -> None:
        """Cells without data render as '<none>'."""
        table = TableAggregator(build_columns("services"), sink)
        service = ResourceEnvelope.from_resource(
            static_resolution("svc"),
            {"metadata": {"name": "api"}, "spec": {"type": "ClusterIP"}},
        )
        table.add(OperationResult("cluster1", output=[service]))

        row = table.lines()[1].split()
        assert row[:6] == ["cluster1", "api", "ClusterIP", "<none>", "<none>", "<none>"]

    def test_failing_extractor(self, sink: OutputSink) -> None:
        table = TableAggregator(build_columns("pods"), sink)
        odd = ResourceEnvelope.from_resource(
            PODS, {"metadata": {"name": "odd"}, "status": {"containerStatuses": "garbage"}}
        )
        table.add(OperationResult("cluster1", output=[odd]))
        assert "<none>" in table.lines()[1]

    def test_row_count(self, table: TableAggregator) -> None:
        table.add(OperationResult("cluster1", output=[pod("a"), pod("b")]))
        assert table.row_count == 2

    def test_flush_resets(self, table: TableAggregator, output: io.StringIO) -> None:
        table.add(OperationResult("cluster1", output=[pod("a")]))
        table.flush()
        table.flush()
        assert output.getvalue().splitlines()[-1] == "No resources found"
