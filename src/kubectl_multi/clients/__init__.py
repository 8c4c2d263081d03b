"""Kubernetes client infrastructure for kubectl-multi."""

from kubectl_multi.clients.base import (
    CRDDefinition,
    K8sClient,
    build_cluster_client,
)
from kubectl_multi.clients.discovery import APIResourceInfo, DiscoveryClient

__all__ = [
    "APIResourceInfo",
    "CRDDefinition",
    "DiscoveryClient",
    "K8sClient",
    "build_cluster_client",
]
