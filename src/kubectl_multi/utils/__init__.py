"""Utility functions and helpers for kubectl-multi."""

from kubectl_multi.utils.errors import (
    ClientBuildError,
    ClusterTimeoutError,
    ConfigurationError,
    KubectlError,
    MultiClusterError,
    NoClustersDiscoveredError,
    OperationNotAllowedError,
    PreconditionError,
    ResourceDiscoveryError,
    ResourceNotFoundError,
)

__all__ = [
    "ClientBuildError",
    "ClusterTimeoutError",
    "ConfigurationError",
    "KubectlError",
    "MultiClusterError",
    "NoClustersDiscoveredError",
    "OperationNotAllowedError",
    "PreconditionError",
    "ResourceDiscoveryError",
    "ResourceNotFoundError",
]
