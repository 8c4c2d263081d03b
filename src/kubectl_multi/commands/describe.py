"""describe: kubectl describe on every cluster, one block per cluster."""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

from kubectl_multi.cluster.discovery import ClusterHandle
from kubectl_multi.commands.common import namespace_args
from kubectl_multi.output.report import block_header
from kubectl_multi.plugin import BaseCommand, CommandMetadata

if TYPE_CHECKING:
    from kubectl_multi.session import MultiClusterSession

DEFAULT_CHUNK_SIZE = 500


def build_describe_args(args: argparse.Namespace, ns_args: list[str]) -> list[str]:
    kubectl_args = ["describe", args.resource_type, *args.names]
    if args.selector:
        kubectl_args.extend(["-l", args.selector])
    kubectl_args.extend(ns_args)
    if not args.show_events:
        kubectl_args.append("--show-events=false")
    if args.chunk_size != DEFAULT_CHUNK_SIZE:
        kubectl_args.extend(["--chunk-size", str(args.chunk_size)])
    return kubectl_args


class DescribeCommand(BaseCommand):
    """Show details of resources on every cluster, in discovery order."""

    def __init__(self) -> None:
        super().__init__(
            CommandMetadata(
                name="describe",
                description="Show details of resources across all managed clusters",
                requires_kubectl=True,
            )
        )

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("resource_type", metavar="TYPE", help="Resource type, e.g. pods")
        parser.add_argument("names", nargs="*", metavar="NAME", help="Resource names")
        parser.add_argument("-l", "--selector", default=None, help="Label selector")
        parser.add_argument(
            "--show-events",
            action=argparse.BooleanOptionalAction,
            default=True,
            help="Display events related to the described object",
        )
        parser.add_argument(
            "--chunk-size",
            type=int,
            default=DEFAULT_CHUNK_SIZE,
            help="Return large lists in chunks rather than all at once",
        )

    def run(self, args: argparse.Namespace, session: MultiClusterSession) -> int:
        config = session.config
        sink = session.sink
        dispatcher = session.dispatcher()
        kubectl_args = build_describe_args(args, namespace_args(config))
        contexts = {h.name: h.context for h in dispatcher.handles}

        def describe_on_cluster(handle: ClusterHandle) -> str:
            return session.runner.run(
                kubectl_args, context=handle.context, timeout=config.cluster_timeout
            )

        sink.write_line(
            f"Describing {args.resource_type} across {len(dispatcher.handles)} clusters..."
        )
        sink.write_line()

        any_output = False
        for result in dispatcher.run_sequential(describe_on_cluster):
            lines = [block_header(result.cluster_name, contexts.get(result.cluster_name))]
            if result.error is not None:
                lines.append(
                    f"Error describing {args.resource_type} in cluster "
                    f"{result.cluster_name}: {result.error}"
                )
            elif result.is_empty:
                lines.append(f"No {args.resource_type} found in cluster {result.cluster_name}")
            else:
                lines.append(str(result.output).rstrip("\n"))
                any_output = True
            lines.append("")
            sink.write_lines(lines)

        if not any_output:
            sink.write_line(f"No {args.resource_type} found in any cluster")
        return 0
