"""Helpers shared by the command implementations."""

from __future__ import annotations

from typing import Callable

from kubectl_multi.cluster.discovery import ClusterHandle
from kubectl_multi.config import MultiClusterConfig
from kubectl_multi.dispatch.results import OperationResult
from kubectl_multi.output.report import render_block
from kubectl_multi.output.sink import OutputSink
from kubectl_multi.session import MultiClusterSession


def namespace_args(config: MultiClusterConfig) -> list[str]:
    """kubectl namespace flags for the configured scope."""
    if config.all_namespaces:
        return ["-A"]
    if config.namespace:
        return ["-n", config.namespace]
    return []


def block_printer(sink: OutputSink) -> Callable[[OperationResult], None]:
    """Result callback printing each cluster's block as it completes."""

    def print_block(result: OperationResult) -> None:
        sink.write_lines(render_block(result))

    return print_block


def run_pooled_kubectl(
    session: MultiClusterSession,
    build_args: Callable[[ClusterHandle], list[str]],
) -> list[OperationResult]:
    """Run one kubectl command on every cluster through the bounded pool.

    Each cluster's block is printed as soon as it completes.
    """
    runner = session.runner

    async def operation(handle: ClusterHandle) -> str:
        return await runner.run_async(build_args(handle), context=handle.context)

    dispatcher = session.dispatcher()
    return dispatcher.run_pooled(operation, on_result=block_printer(session.sink))
