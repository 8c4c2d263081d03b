"""Cluster discovery and registered-cluster inventory."""

from kubectl_multi.cluster.discovery import ClusterDiscovery, ClusterHandle
from kubectl_multi.cluster.inventory import (
    MANAGED_CLUSTER,
    ClusterInventory,
    ClusterRegistryEntry,
    is_staging_cluster,
)

__all__ = [
    "MANAGED_CLUSTER",
    "ClusterDiscovery",
    "ClusterHandle",
    "ClusterInventory",
    "ClusterRegistryEntry",
    "is_staging_cluster",
]
