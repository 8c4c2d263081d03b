"""clusters: inspect and manage the registered-cluster inventory."""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

from kubernetes.client import ApiException  # type: ignore[import-untyped]
from kubernetes.dynamic.exceptions import (  # type: ignore[import-untyped]
    ResourceNotFoundError as DynamicResourceNotFoundError,
)

from kubectl_multi.cluster.inventory import (
    DEFAULT_CLUSTER_TYPE,
    ClusterInventory,
    ClusterRegistryEntry,
)
from kubectl_multi.output.table import align_rows
from kubectl_multi.plugin import BaseCommand, CommandMetadata
from kubectl_multi.utils.errors import MultiClusterError, PreconditionError

if TYPE_CHECKING:
    from kubectl_multi.session import MultiClusterSession


def parse_label_args(items: list[str]) -> tuple[dict[str, str], list[str]]:
    """Split 'k=v' additions from 'k-' removals.

    Raises:
        PreconditionError: For an item that is neither form.
    """
    add: dict[str, str] = {}
    remove: list[str] = []
    for item in items:
        if "=" in item:
            key, value = item.split("=", 1)
            if not key:
                raise PreconditionError(f"invalid label '{item}'")
            add[key] = value
        elif item.endswith("-") and len(item) > 1:
            remove.append(item[:-1])
        else:
            raise PreconditionError(f"invalid label '{item}': expected KEY=VALUE or KEY-")
    return add, remove


def render_entries(entries: list[ClusterRegistryEntry]) -> list[str]:
    rows = [["NAME", "TYPE", "STATUS", "ENDPOINT"]]
    rows.extend([e.name, e.cluster_type, e.status, e.endpoint] for e in entries)
    return align_rows(rows)


def render_entry(entry: ClusterRegistryEntry, inventory_context: str) -> list[str]:
    lines = [
        f"Cluster: {entry.name}",
        f"ITS Context: {inventory_context}",
        f"Type: {entry.cluster_type}",
        f"Status: {entry.status}",
        f"Endpoint: {entry.endpoint}",
    ]
    if entry.labels:
        lines.append("Labels:")
        lines.extend(f"  {k}: {entry.labels[k]}" for k in sorted(entry.labels))
    return lines


class ClustersCommand(BaseCommand):
    """List, register, inspect, label and remove execution clusters."""

    def __init__(self) -> None:
        super().__init__(
            CommandMetadata(
                name="clusters",
                description="Manage clusters registered with the inventory cluster",
            )
        )

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        actions = parser.add_subparsers(dest="action", metavar="ACTION", required=True)

        list_parser = actions.add_parser("list", help="List registered clusters")
        list_parser.add_argument(
            "--include-wds",
            action="store_true",
            help="Also show workload-definition staging clusters",
        )

        add_parser = actions.add_parser("add", help="Register a cluster")
        add_parser.add_argument("name", help="Cluster name")
        add_parser.add_argument("--endpoint", default="", help="Cluster API server URL")
        add_parser.add_argument(
            "--type",
            dest="cluster_type",
            default=DEFAULT_CLUSTER_TYPE,
            help="Cluster type tag (default: wec)",
        )
        add_parser.add_argument(
            "--labels",
            nargs="*",
            default=[],
            metavar="KEY=VALUE",
            help="Extra labels",
        )

        remove_parser = actions.add_parser("remove", help="Unregister a cluster")
        remove_parser.add_argument("name", help="Cluster name")

        info_parser = actions.add_parser("info", help="Show details of a registered cluster")
        info_parser.add_argument("name", help="Cluster name")

        label_parser = actions.add_parser("label", help="Add or remove cluster labels")
        label_parser.add_argument("name", help="Cluster name")
        label_parser.add_argument(
            "labels", nargs="*", metavar="KEY=VALUE|KEY-", help="Labels to set or remove"
        )
        label_parser.add_argument(
            "--remove",
            nargs="*",
            default=[],
            metavar="KEY",
            help="Label keys to remove",
        )

    def run(self, args: argparse.Namespace, session: MultiClusterSession) -> int:
        inventory = session.inventory()
        try:
            return self._run_action(args, session, inventory)
        except (ApiException, DynamicResourceNotFoundError) as e:
            raise MultiClusterError(
                f"inventory request to '{inventory.context}' failed: {e}"
            ) from e

    def _run_action(
        self,
        args: argparse.Namespace,
        session: MultiClusterSession,
        inventory: ClusterInventory,
    ) -> int:
        sink = session.sink

        if args.action == "list":
            entries = inventory.list_entries(
                include_staging=args.include_wds, timeout=session.config.cluster_timeout
            )
            if not entries:
                sink.write_line(f"No clusters registered with ITS '{inventory.context}'")
            else:
                sink.write_lines(render_entries(entries))
        elif args.action == "add":
            labels, _ = parse_label_args(args.labels)
            entry = inventory.register(
                args.name, args.endpoint, labels=labels, cluster_type=args.cluster_type
            )
            sink.write_line(
                f"Cluster '{entry.name}' registered successfully with ITS '{inventory.context}'"
            )
        elif args.action == "remove":
            inventory.remove(args.name)
            sink.write_line(
                f"Cluster '{args.name}' removed successfully from ITS '{inventory.context}'"
            )
        elif args.action == "info":
            sink.write_lines(render_entry(inventory.get_entry(args.name), inventory.context))
        elif args.action == "label":
            add, remove = parse_label_args(args.labels)
            remove.extend(args.remove)
            if not add and not remove:
                raise PreconditionError("at least one label change is required")
            entry = inventory.update_labels(args.name, add=add, remove=remove)
            sink.write_line(
                f"Cluster '{entry.name}' labels updated successfully in ITS '{inventory.context}'"
            )
        return 0
