"""Per-invocation state shared by command handlers."""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING

from kubectl_multi.clients.base import build_cluster_client, load_kubeconfig
from kubectl_multi.cluster.discovery import ClientBuilder, ClusterDiscovery, ClusterHandle
from kubectl_multi.cluster.inventory import ClusterInventory
from kubectl_multi.config import MultiClusterConfig
from kubectl_multi.dispatch.dispatcher import FanOutDispatcher
from kubectl_multi.dispatch.kubectl import KubectlRunner
from kubectl_multi.output.sink import OutputSink
from kubectl_multi.utils.errors import (
    ClientBuildError,
    ConfigurationError,
    NoClustersDiscoveredError,
)

if TYPE_CHECKING:
    from kubectl_multi.clients.base import K8sClient

logger = logging.getLogger(__name__)


class MultiClusterSession:
    """Configuration, output and clusters for one CLI invocation.

    Built once at the entry point and handed to the selected command. Nothing
    here outlives the invocation: clusters are discovered at most once per
    session and their clients are closed by close().
    """

    def __init__(
        self,
        config: MultiClusterConfig,
        sink: OutputSink | None = None,
        runner: KubectlRunner | None = None,
        builder: ClientBuilder | None = None,
    ) -> None:
        self._config = config
        self._sink = sink or OutputSink()
        self._runner = runner or KubectlRunner(
            config.resolved_kubeconfig_path(), binary=config.kubectl_binary
        )
        self._builder: ClientBuilder = builder or partial(
            build_cluster_client, request_timeout=config.cluster_timeout
        )
        self._handles: list[ClusterHandle] | None = None
        self._inventory_client: K8sClient | None = None

    @property
    def config(self) -> MultiClusterConfig:
        return self._config

    @property
    def sink(self) -> OutputSink:
        return self._sink

    @property
    def runner(self) -> KubectlRunner:
        return self._runner

    def discover(self) -> list[ClusterHandle]:
        """Discover target clusters.

        Raises:
            ConfigurationError: If the base kubeconfig cannot be parsed.
            NoClustersDiscoveredError: If no cluster could be reached.
        """
        if self._handles is None:
            path = self._config.resolved_kubeconfig_path()
            try:
                load_kubeconfig(path)
            except ClientBuildError as e:
                raise ConfigurationError(str(e)) from e

            discovery = ClusterDiscovery(
                kubeconfig_path=path,
                inventory_context=self._config.remote_context,
                builder=self._builder,
                timeout=self._config.cluster_timeout,
            )
            self._handles = discovery.discover()

        if not self._handles:
            raise NoClustersDiscoveredError(self._config.remote_context)
        return self._handles

    def dispatcher(self) -> FanOutDispatcher:
        """Build a dispatcher over the discovered clusters."""
        return FanOutDispatcher(
            self.discover(),
            inventory_context=self._config.remote_context,
            max_concurrency=self._config.max_concurrency,
            cluster_timeout=self._config.cluster_timeout,
        )

    def inventory(self) -> ClusterInventory:
        """Connect to the inventory cluster.

        Raises:
            ConfigurationError: If no inventory context is configured or it
                cannot be reached.
        """
        context = self._config.remote_context
        if not context:
            raise ConfigurationError("no inventory context configured (--remote-context)")
        if self._inventory_client is None:
            self._inventory_client = self._builder(
                self._config.resolved_kubeconfig_path(), context
            )
        if self._inventory_client is None:
            raise ConfigurationError(f"failed to connect to inventory context '{context}'")
        return ClusterInventory(self._inventory_client)

    def close(self) -> None:
        for handle in self._handles or []:
            if handle.client is not None:
                handle.client.close()
        if self._inventory_client is not None:
            self._inventory_client.close()
        self._handles = None
        self._inventory_client = None
