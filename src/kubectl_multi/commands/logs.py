"""logs: print or follow container logs from every cluster.

Without --follow, clusters are read one after another and each cluster's
logs are printed as a block. With --follow, every cluster streams at once
and each line is prefixed with its cluster name.
"""

from __future__ import annotations

import argparse
import asyncio
import fnmatch
import logging
from typing import TYPE_CHECKING, Any

from kubectl_multi.cluster.discovery import ClusterHandle
from kubectl_multi.commands.common import namespace_args
from kubectl_multi.config import DEFAULT_NAMESPACE
from kubectl_multi.dispatch.dispatcher import LineEmitter
from kubectl_multi.output.report import render_block
from kubectl_multi.plugin import BaseCommand, CommandMetadata
from kubectl_multi.utils.errors import PreconditionError

if TYPE_CHECKING:
    from kubectl_multi.session import MultiClusterSession

logger = logging.getLogger(__name__)


def build_logs_flags(args: argparse.Namespace, ns_args: list[str]) -> list[str]:
    """kubectl logs flags shared by every target on every cluster."""
    flags: list[str] = []
    if args.previous:
        flags.append("-p")
    if args.container:
        flags.extend(["-c", args.container])
    if args.all_containers:
        flags.append("--all-containers=true")
    if args.tail is not None and args.tail >= 0:
        flags.append(f"--tail={args.tail}")
    if args.since_time:
        flags.append(f"--since-time={args.since_time}")
    if args.since:
        since = args.since
        flags.append(f"--since={since}s" if since.isdigit() else f"--since={since}")
    if args.timestamps:
        flags.append("--timestamps=true")
    if args.selector:
        flags.extend(["-l", args.selector])
    flags.extend(ns_args)
    return flags


def expand_targets(
    handle: ClusterHandle,
    target: str | None,
    namespace: str | None,
    timeout: float | None = None,
) -> list[str]:
    """Expand a pod name pattern against the pods of one cluster.

    Targets without '*' are returned unchanged. A pattern matching no pod
    yields an empty list. Blocks for up to timeout seconds on the pod list.
    """
    if not target:
        return []
    if "*" not in target:
        return [target]
    k8s = handle.client
    if k8s is None or k8s.core_v1 is None:
        return []
    kwargs: dict[str, Any] = {}
    if timeout is not None:
        kwargs["_request_timeout"] = timeout
    if namespace is None:
        pods = k8s.core_v1.list_pod_for_all_namespaces(**kwargs)
    else:
        pods = k8s.core_v1.list_namespaced_pod(namespace, **kwargs)
    return sorted(
        pod.metadata.name for pod in pods.items if fnmatch.fnmatchcase(pod.metadata.name, target)
    )


class LogsCommand(BaseCommand):
    """Print the logs for a container in a pod on every cluster."""

    def __init__(self) -> None:
        super().__init__(
            CommandMetadata(
                name="logs",
                description="Print the logs for a container in a pod across all managed clusters",
                requires_kubectl=True,
            )
        )

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "target",
            nargs="?",
            default=None,
            metavar="POD|TYPE/NAME",
            help="Pod name (wildcards allowed) or TYPE/NAME",
        )
        parser.add_argument("-f", "--follow", action="store_true", help="Stream the logs")
        parser.add_argument(
            "-p", "--previous", action="store_true", help="Logs of the previous container instance"
        )
        parser.add_argument("-c", "--container", default=None, help="Container name")
        parser.add_argument(
            "--all-containers", action="store_true", help="Logs of all containers in the pod(s)"
        )
        parser.add_argument("--tail", type=int, default=None, help="Lines of recent log to show")
        parser.add_argument("--since", default=None, help="Relative duration like 5s, 2m or 3h")
        parser.add_argument("--since-time", default=None, help="RFC3339 timestamp")
        parser.add_argument(
            "--timestamps", action="store_true", help="Include timestamps on each line"
        )
        parser.add_argument("-l", "--selector", default=None, help="Label selector")

    def run(self, args: argparse.Namespace, session: MultiClusterSession) -> int:
        if not args.target and not args.selector:
            raise PreconditionError("POD or TYPE/NAME is required")

        config = session.config
        runner = session.runner
        flags = build_logs_flags(args, namespace_args(config))
        pod_namespace = None if config.all_namespaces else (config.namespace or DEFAULT_NAMESPACE)
        dispatcher = session.dispatcher()

        def targets_for(handle: ClusterHandle) -> list[str | None]:
            if not args.target:
                return [None]
            return list(
                expand_targets(handle, args.target, pod_namespace, timeout=config.cluster_timeout)
            )

        def command_for(target: str | None) -> list[str]:
            if target is None:
                return ["logs", *flags]
            return ["logs", target, *flags]

        if args.follow:

            async def follow(handle: ClusterHandle, emit: LineEmitter) -> None:
                # the pod list blocks, keep it off the loop shared with other clusters
                targets = await asyncio.to_thread(targets_for, handle)
                if not targets:
                    emit(f"No pods matching {args.target}")
                    return
                # one kubectl process per matched pod; a failed pod leaves its siblings running
                outcomes = await asyncio.gather(
                    *(
                        runner.stream([*command_for(target), "-f"], handle.context, emit)
                        for target in targets
                    ),
                    return_exceptions=True,
                )
                for outcome in outcomes:
                    if isinstance(outcome, BaseException):
                        raise outcome

            dispatcher.run_streaming(follow, session.sink)
            return 0

        def read_logs(handle: ClusterHandle) -> str:
            outputs = []
            for target in targets_for(handle):
                output = runner.run(
                    command_for(target), context=handle.context, timeout=config.cluster_timeout
                )
                if target and target != args.target:
                    outputs.append(f"--- {target} ---")
                outputs.append(output.rstrip("\n"))
            return "\n".join(outputs)

        for result in dispatcher.run_sequential(read_logs):
            session.sink.write_lines(render_block(result))
        return 0
