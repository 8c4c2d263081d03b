"""Cluster discovery.

Combines the registered-cluster inventory on the inventory context with the
local current context into one ordered, deduplicated list of cluster handles.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from kubectl_multi.clients.base import K8sClient, build_cluster_client
from kubectl_multi.cluster.inventory import ClusterInventory, is_staging_cluster

logger = logging.getLogger(__name__)

ClientBuilder = Callable[[str | Path | None, str | None], K8sClient | None]


@dataclass
class ClusterHandle:
    """A discovered cluster and the client bundle bound to it."""

    name: str
    context: str
    client: K8sClient | None = field(default=None, repr=False, compare=False)

    @property
    def is_reachable(self) -> bool:
        """False when the bundle has no typed client."""
        return self.client is not None and self.client.core_v1 is not None


class ClusterDiscovery:
    """Discovers execution-target clusters for one invocation.

    Handles are built fresh on every call to discover() and are never cached
    across runs. Discovery never raises: a cluster whose client cannot be
    built is dropped with a warning and an empty result is valid.
    """

    def __init__(
        self,
        kubeconfig_path: str | Path | None = None,
        inventory_context: str | None = None,
        builder: ClientBuilder = build_cluster_client,
        timeout: float | None = None,
    ) -> None:
        self._kubeconfig_path = kubeconfig_path
        self._inventory_context = inventory_context
        self._builder = builder
        self._timeout = timeout

    @property
    def inventory_context(self) -> str | None:
        return self._inventory_context

    def discover(self) -> list[ClusterHandle]:
        """Discover every reachable, non-staging cluster.

        Registered clusters come first, sorted by name. The local current
        context is appended last unless a handle with the same resolved
        cluster name is already present.
        """
        handles: list[ClusterHandle] = []

        if self._inventory_context:
            for name in self._registered_names():
                k8s = self._builder(self._kubeconfig_path, name)
                if k8s is None or k8s.core_v1 is None:
                    logger.warning(f"Warning: skipping cluster {name}: client could not be built")
                    continue
                handles.append(ClusterHandle(name=name, context=k8s.context, client=k8s))

        local = self._builder(self._kubeconfig_path, None)
        if local is not None and local.core_v1 is not None:
            name = local.cluster_name
            if is_staging_cluster(name):
                logger.debug(f"Skipping local cluster {name}: staging cluster")
            elif any(h.name == name for h in handles):
                logger.debug(f"Local cluster {name} already discovered via inventory")
            else:
                handles.append(ClusterHandle(name=name, context=local.context, client=local))

        logger.info(f"Discovered {len(handles)} clusters")
        return handles

    def _registered_names(self) -> list[str]:
        """Names of registered, non-staging clusters; empty on any failure."""
        inventory_client = self._builder(self._kubeconfig_path, self._inventory_context)
        if inventory_client is None:
            logger.warning(
                f"Warning: could not connect to inventory context {self._inventory_context}"
            )
            return []

        try:
            entries = ClusterInventory(inventory_client).list_entries(timeout=self._timeout)
        except Exception as e:
            logger.warning(
                f"Warning: failed to list managed clusters on {self._inventory_context}: {e}"
            )
            return []
        finally:
            inventory_client.close()

        return [entry.name for entry in entries]
