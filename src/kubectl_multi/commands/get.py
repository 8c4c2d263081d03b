"""get: list resources across every cluster into one table."""

from __future__ import annotations

import argparse
import logging
from typing import TYPE_CHECKING

from kubectl_multi.clients.base import CRDDefinition
from kubectl_multi.cluster.discovery import ClusterHandle
from kubectl_multi.output.table import TableAggregator, build_columns, empty_message
from kubectl_multi.plugin import BaseCommand, CommandMetadata
from kubectl_multi.resources.models import ResourceEnvelope
from kubectl_multi.resources.resolver import resolve_resource_type, static_resolution
from kubectl_multi.utils.errors import PreconditionError

if TYPE_CHECKING:
    from kubectl_multi.dispatch.dispatcher import FanOutDispatcher
    from kubectl_multi.session import MultiClusterSession

logger = logging.getLogger(__name__)

ALL_TYPES = ("pods", "services", "deployments")
WATCH_UNSUPPORTED = "watch operations are not supported in multi-cluster mode"


class GetCommand(BaseCommand):
    """List resources of one type from every cluster.

    The resource type is resolved separately on each cluster, so a custom
    resource served under different API groups still lists everywhere.
    """

    def __init__(self) -> None:
        super().__init__(
            CommandMetadata(
                name="get",
                description="Display one or many resources across all managed clusters",
            )
        )

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("resource_type", metavar="TYPE", help="Resource type, e.g. pods")
        parser.add_argument("name", nargs="?", default=None, help="Resource name")
        parser.add_argument("-l", "--selector", default=None, help="Label selector")
        parser.add_argument(
            "--show-labels",
            action="store_true",
            help="Show all labels as the last column",
        )
        parser.add_argument("-w", "--watch", action="store_true", help=argparse.SUPPRESS)
        parser.add_argument("--watch-only", action="store_true", help=argparse.SUPPRESS)

    def run(self, args: argparse.Namespace, session: MultiClusterSession) -> int:
        if args.watch or args.watch_only:
            raise PreconditionError(WATCH_UNSUPPORTED)

        dispatcher = session.dispatcher()
        token = args.resource_type
        if token.lower() == "all":
            for index, resource_type in enumerate(ALL_TYPES):
                if index:
                    session.sink.write_line()
                self._list_type(dispatcher, session, resource_type, args)
        else:
            self._list_type(dispatcher, session, token, args)
        return 0

    def _list_type(
        self,
        dispatcher: FanOutDispatcher,
        session: MultiClusterSession,
        token: str,
        args: argparse.Namespace,
    ) -> None:
        config = session.config
        static = static_resolution(token)
        table = TableAggregator(
            build_columns(
                static.resource,
                namespaced=static.namespaced,
                all_namespaces=config.all_namespaces,
                show_labels=args.show_labels,
            ),
            session.sink,
            empty_text=empty_message(config.target_namespace, static.namespaced),
        )

        def list_on_cluster(handle: ClusterHandle) -> list[ResourceEnvelope]:
            return list_resources(
                handle,
                token,
                namespace=config.target_namespace,
                name=args.name,
                selector=args.selector,
                timeout=config.cluster_timeout,
            )

        for result in dispatcher.run_sequential(list_on_cluster):
            table.add(result)
        table.flush()


def list_resources(
    handle: ClusterHandle,
    token: str,
    namespace: str | None = None,
    name: str | None = None,
    selector: str | None = None,
    timeout: float | None = None,
) -> list[ResourceEnvelope]:
    """List (or get by name) resources of one type on one cluster.

    Args:
        handle: Target cluster.
        token: Resource type token, resolved against this cluster.
        namespace: Namespace scope, or None for all namespaces.
        name: Single resource name.
        selector: Label selector.
        timeout: Request timeout in seconds.

    Raises:
        ResourceNotFoundError: If a named resource does not exist.
        ResourceDiscoveryError: If the cluster's schema could not be read.
    """
    k8s = handle.client
    if k8s is None:
        return []
    resolution = resolve_resource_type(k8s.discovery, token, timeout=timeout)
    crd = CRDDefinition(
        group=resolution.group,
        version=resolution.version,
        plural=resolution.resource,
        kind=resolution.kind,
    )
    scope = namespace if resolution.namespaced else None

    if name:
        items = [k8s.get(crd, name, namespace=scope)]
    else:
        items = k8s.list_resources(crd, namespace=scope, label_selector=selector, timeout=timeout)
    return [ResourceEnvelope.from_resource(resolution, item) for item in items]
