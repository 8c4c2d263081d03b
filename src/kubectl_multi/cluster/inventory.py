"""Registered-cluster inventory on the inventory (control) cluster.

Execution-target clusters are recorded as ManagedCluster objects. This
module reads and writes those records through the dynamic client of the
inventory context.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from kubectl_multi.clients.base import CRDDefinition, K8sClient

logger = logging.getLogger(__name__)

MANAGED_CLUSTER = CRDDefinition(
    group="cluster.open-cluster-management.io",
    version="v1",
    plural="managedclusters",
    kind="ManagedCluster",
)

TYPE_LABEL = "type"
KUBESTELLAR_TYPE_LABEL = "cluster.kubestellar.io/type"
DEFAULT_CLUSTER_TYPE = "wec"
AVAILABLE_CONDITION = "ManagedClusterConditionAvailable"


def is_staging_cluster(name: str) -> bool:
    """Check whether a cluster name marks a workload-definition staging cluster.

    The 'wds' token is matched as a bare substring for the infix forms, so a
    name such as 'prod-wds-east' or 'my_wds_x' is excluded just like 'wds1'.
    """
    lowered = name.lower()
    return lowered.startswith("wds") or "-wds-" in lowered or "_wds_" in lowered


class ClusterRegistryEntry(BaseModel):
    """One registered execution-target cluster."""

    name: str = Field(..., description="ManagedCluster name")
    endpoint: str = Field("none", description="First client config URL")
    labels: dict[str, str] = Field(default_factory=dict, description="Cluster labels")
    cluster_type: str = Field(DEFAULT_CLUSTER_TYPE, description="Type tag")
    status: str = Field("Unknown", description="Ready, NotReady or Unknown")

    @classmethod
    def from_resource(cls, obj: Any) -> ClusterRegistryEntry:
        """Build an entry from a ManagedCluster object (dynamic or dict)."""
        if hasattr(obj, "to_dict"):
            obj = obj.to_dict()
        metadata = obj.get("metadata") or {}
        spec = obj.get("spec") or {}
        status = obj.get("status") or {}
        labels = dict(metadata.get("labels") or {})

        endpoint = "none"
        client_configs = spec.get("managedClusterClientConfigs") or []
        if client_configs and client_configs[0].get("url"):
            endpoint = client_configs[0]["url"]

        cluster_type = labels.get(TYPE_LABEL) or labels.get(KUBESTELLAR_TYPE_LABEL)

        return cls(
            name=metadata.get("name", ""),
            endpoint=endpoint,
            labels=labels,
            cluster_type=cluster_type or DEFAULT_CLUSTER_TYPE,
            status=_availability(status.get("conditions") or []),
        )

    @property
    def is_staging(self) -> bool:
        return is_staging_cluster(self.name)


def _availability(conditions: list[dict[str, Any]]) -> str:
    for condition in conditions:
        if condition.get("type") == AVAILABLE_CONDITION:
            return "Ready" if condition.get("status") == "True" else "NotReady"
    return "Unknown"


class ClusterInventory:
    """Registration operations against the inventory cluster."""

    def __init__(self, k8s: K8sClient) -> None:
        self._k8s = k8s

    @property
    def context(self) -> str:
        return self._k8s.context

    def list_entries(
        self,
        include_staging: bool = False,
        timeout: float | None = None,
    ) -> list[ClusterRegistryEntry]:
        """List registered clusters sorted by name.

        Args:
            include_staging: Keep clusters matching the staging naming predicate.
            timeout: Request timeout in seconds.

        Returns:
            Registry entries ordered by name.
        """
        items = self._k8s.list_resources(MANAGED_CLUSTER, timeout=timeout)
        entries = [ClusterRegistryEntry.from_resource(item) for item in items]
        if not include_staging:
            entries = [e for e in entries if not e.is_staging]
        return sorted(entries, key=lambda e: e.name)

    def get_entry(self, name: str) -> ClusterRegistryEntry:
        """Get one registered cluster.

        Raises:
            ResourceNotFoundError: If no cluster with that name is registered.
        """
        return ClusterRegistryEntry.from_resource(self._k8s.get(MANAGED_CLUSTER, name))

    def register(
        self,
        name: str,
        endpoint: str,
        labels: dict[str, str] | None = None,
        cluster_type: str = DEFAULT_CLUSTER_TYPE,
    ) -> ClusterRegistryEntry:
        """Register a new execution-target cluster."""
        all_labels = {
            "name": name,
            TYPE_LABEL: cluster_type,
            KUBESTELLAR_TYPE_LABEL: cluster_type,
        }
        all_labels.update(labels or {})

        body = {
            "apiVersion": MANAGED_CLUSTER.api_version,
            "kind": MANAGED_CLUSTER.kind,
            "metadata": {"name": name, "labels": all_labels},
            "spec": {
                "hubAcceptsClient": True,
                "managedClusterClientConfigs": [{"url": endpoint}],
            },
        }
        created = self._k8s.create(MANAGED_CLUSTER, body=body)
        logger.info(f"Registered cluster {name} ({cluster_type}) at {endpoint}")
        return ClusterRegistryEntry.from_resource(created if created is not None else body)

    def remove(self, name: str) -> None:
        """Remove a registered cluster.

        Raises:
            ResourceNotFoundError: If no cluster with that name is registered.
        """
        self._k8s.delete(MANAGED_CLUSTER, name)
        logger.info(f"Removed cluster {name}")

    def update_labels(
        self,
        name: str,
        add: dict[str, str] | None = None,
        remove: list[str] | None = None,
    ) -> ClusterRegistryEntry:
        """Add or remove labels on a registered cluster.

        A merge patch with a null value deletes the label.
        """
        changes: dict[str, str | None] = dict(add or {})
        for key in remove or []:
            changes[key] = None
        if not changes:
            return self.get_entry(name)

        patched = self._k8s.patch(MANAGED_CLUSTER, name, {"metadata": {"labels": changes}})
        logger.info(f"Updated labels on cluster {name}")
        return ClusterRegistryEntry.from_resource(patched)
