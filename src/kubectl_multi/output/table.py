"""Merged multi-cluster tables.

Every cluster contributes rows to one table whose columns are fixed for the
whole run. The header is written once, before the first row of the first
non-empty cluster; a run where every cluster is empty prints a single
'No resources found' line instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from kubectl_multi.dispatch.results import OperationResult
from kubectl_multi.output.formatting import NONE, format_age, format_labels, or_none
from kubectl_multi.output.sink import OutputSink
from kubectl_multi.resources.models import ResourceEnvelope

logger = logging.getLogger(__name__)

GUTTER = "  "


@dataclass(frozen=True)
class Column:
    """A table column and how to read its value from a resource."""

    header: str
    extract: Callable[[ResourceEnvelope], str]


def _pod_ready(obj: ResourceEnvelope) -> str:
    statuses = obj.field("status", "containerStatuses", default=[])
    total = len(obj.field("spec", "containers", default=[])) or len(statuses)
    ready = sum(1 for s in statuses if s.get("ready"))
    return f"{ready}/{total}"


def _pod_status(obj: ResourceEnvelope) -> str:
    if obj.field("metadata", "deletionTimestamp"):
        return "Terminating"
    for status in obj.field("status", "containerStatuses", default=[]):
        waiting = (status.get("state") or {}).get("waiting") or {}
        if waiting.get("reason"):
            return waiting["reason"]
    return obj.field("status", "reason") or obj.field("status", "phase", default="Unknown")


def _pod_restarts(obj: ResourceEnvelope) -> str:
    statuses = obj.field("status", "containerStatuses", default=[])
    return str(sum(s.get("restartCount", 0) for s in statuses))


def _node_status(obj: ResourceEnvelope) -> str:
    status = "Unknown"
    for condition in obj.field("status", "conditions", default=[]):
        if condition.get("type") == "Ready":
            status = "Ready" if condition.get("status") == "True" else "NotReady"
    if obj.field("spec", "unschedulable"):
        status += ",SchedulingDisabled"
    return status


def _node_roles(obj: ResourceEnvelope) -> str:
    prefix = "node-role.kubernetes.io/"
    roles = sorted(k[len(prefix) :] for k in obj.labels if k.startswith(prefix) and k != prefix)
    return ",".join(roles) if roles else NONE


def _service_external_ip(obj: ResourceEnvelope) -> str:
    ingress = obj.field("status", "loadBalancer", "ingress", default=[])
    addresses = [i.get("ip") or i.get("hostname") for i in ingress]
    addresses = [a for a in addresses if a]
    if addresses:
        return ",".join(addresses)
    external = obj.field("spec", "externalIPs", default=[])
    if external:
        return ",".join(external)
    if obj.field("spec", "type") == "LoadBalancer":
        return "<pending>"
    return NONE


def _service_ports(obj: ResourceEnvelope) -> str:
    ports = []
    for port in obj.field("spec", "ports", default=[]):
        text = str(port.get("port"))
        if port.get("nodePort"):
            text += f":{port['nodePort']}"
        ports.append(f"{text}/{port.get('protocol', 'TCP')}")
    return ",".join(ports) if ports else NONE


def _count(*path: str) -> Callable[[ResourceEnvelope], str]:
    return lambda obj: str(obj.field(*path, default=0))


def _value(*path: str) -> Callable[[ResourceEnvelope], str]:
    return lambda obj: or_none(obj.field(*path))


KIND_COLUMNS: dict[str, list[Column]] = {
    "pods": [
        Column("READY", _pod_ready),
        Column("STATUS", _pod_status),
        Column("RESTARTS", _pod_restarts),
    ],
    "deployments": [
        Column(
            "READY",
            lambda o: f"{o.field('status', 'readyReplicas', default=0)}/"
            f"{o.field('spec', 'replicas', default=0)}",
        ),
        Column("UP-TO-DATE", _count("status", "updatedReplicas")),
        Column("AVAILABLE", _count("status", "availableReplicas")),
    ],
    "nodes": [
        Column("STATUS", _node_status),
        Column("ROLES", _node_roles),
        Column("VERSION", _value("status", "nodeInfo", "kubeletVersion")),
    ],
    "services": [
        Column("TYPE", _value("spec", "type")),
        Column("CLUSTER-IP", _value("spec", "clusterIP")),
        Column("EXTERNAL-IP", _service_external_ip),
        Column("PORT(S)", _service_ports),
    ],
    "jobs": [
        Column(
            "COMPLETIONS",
            lambda o: f"{o.field('status', 'succeeded', default=0)}/"
            f"{o.field('spec', 'completions', default=1)}",
        ),
    ],
    "namespaces": [
        Column("STATUS", _value("status", "phase")),
    ],
    "configmaps": [
        Column(
            "DATA",
            lambda o: str(
                len(o.field("data", default={})) + len(o.field("binaryData", default={}))
            ),
        ),
    ],
}


def build_columns(
    resource: str,
    namespaced: bool = True,
    all_namespaces: bool = False,
    show_labels: bool = False,
) -> list[Column]:
    """Build the column set for one run.

    The CLUSTER column is not included; TableAggregator always prepends it.
    """
    columns: list[Column] = []
    if all_namespaces and namespaced:
        columns.append(Column("NAMESPACE", lambda o: o.namespace or NONE))
    columns.append(Column("NAME", lambda o: o.name or NONE))
    columns.extend(KIND_COLUMNS.get(resource, []))
    columns.append(Column("AGE", lambda o: format_age(o.creation_timestamp)))
    if show_labels:
        columns.append(Column("LABELS", lambda o: format_labels(o.labels)))
    return columns


def align_rows(rows: list[list[str]]) -> list[str]:
    """Pad cells into left-aligned columns separated by a two-space gutter."""
    if not rows:
        return []
    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
    return [
        GUTTER.join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip() for row in rows
    ]


def empty_message(namespace: str | None = None, namespaced: bool = True) -> str:
    if namespace and namespaced:
        return f"No resources found in {namespace} namespace."
    return "No resources found"


class TableAggregator:
    """Collects per-cluster results into one aligned table.

    Usage:
        table = TableAggregator(build_columns("pods"), sink)
        for result in dispatcher.run_sequential(list_pods):
            table.add(result)
        table.flush()
    """

    def __init__(
        self,
        columns: list[Column],
        sink: OutputSink,
        empty_text: str = "No resources found",
    ) -> None:
        self._columns = columns
        self._sink = sink
        self._empty_text = empty_text
        self._header: list[str] | None = None
        self._rows: list[list[str]] = []

    @property
    def headers(self) -> list[str]:
        return ["CLUSTER", *(c.header for c in self._columns)]

    @property
    def row_count(self) -> int:
        return len(self._rows)

    def add(self, result: OperationResult) -> int:
        """Add the rows of one cluster's result.

        Failed and empty results add nothing; failures were already reported
        by the dispatcher.

        Returns:
            Number of rows added.
        """
        if not result.ok or result.is_empty:
            return 0
        if self._header is None:
            self._header = self.headers
        added = 0
        for item in result.output:
            self._rows.append(self.render_row(result.cluster_name, item))
            added += 1
        return added

    def render_row(self, cluster_name: str, item: ResourceEnvelope) -> list[str]:
        row = [cluster_name]
        for column in self._columns:
            try:
                value = column.extract(item)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.debug(f"Column {column.header} unavailable on {cluster_name}: {e}")
                value = NONE
            row.append(value if value not in (None, "") else NONE)
        return row

    def lines(self) -> list[str]:
        """Render the table as aligned lines."""
        if self._header is None:
            return [self._empty_text]
        return align_rows([self._header, *self._rows])

    def flush(self) -> None:
        """Write the table, or the empty sentinel, to the sink."""
        self._sink.write_lines(self.lines())
        self._header = None
        self._rows = []
