"""Error types for multi-cluster operations."""

from __future__ import annotations

# kubectl reports a missing object or an empty list with exactly these phrases
NOT_FOUND_MARKERS = ("Error from server (NotFound)", "No resources found")


class MultiClusterError(Exception):
    """Base error for kubectl-multi."""

    pass


class ConfigurationError(MultiClusterError):
    """The base configuration could not be loaded or is invalid."""

    pass


class NoClustersDiscoveredError(MultiClusterError):
    """Discovery produced no reachable clusters."""

    def __init__(self, inventory_context: str | None = None) -> None:
        self.inventory_context = inventory_context
        message = "no clusters discovered"
        if inventory_context:
            message += f" (inventory context: {inventory_context})"
        super().__init__(message)


class PreconditionError(MultiClusterError):
    """The requested operation cannot be fanned out as asked."""

    pass


class ResourceNotFoundError(MultiClusterError):
    """A resource or resource type does not exist on a cluster."""

    def __init__(self, kind: str, name: str | None = None, namespace: str | None = None) -> None:
        self.kind = kind
        self.name = name
        self.namespace = namespace
        message = f"{kind} not found" if not name else f"{kind} '{name}' not found"
        if namespace:
            message += f" in namespace '{namespace}'"
        super().__init__(message)


class ResourceDiscoveryError(MultiClusterError):
    """The live API schema of a cluster could not be read."""

    pass


class KubectlError(MultiClusterError):
    """The kubectl subprocess exited with a non-zero status."""

    def __init__(self, returncode: int | None, output: str = "") -> None:
        self.returncode = returncode
        self.output = output
        detail = output.strip()
        message = f"kubectl exited with status {returncode}"
        if detail:
            message += f": {detail}"
        super().__init__(message)

    @property
    def not_found(self) -> bool:
        """Whether kubectl reported that the resource does not exist."""
        return any(marker in self.output for marker in NOT_FOUND_MARKERS)


class OperationNotAllowedError(MultiClusterError):
    """The operation is not permitted on the target cluster."""

    pass


class ClientBuildError(MultiClusterError):
    """One step of building a cluster's client bundle failed."""

    def __init__(self, step: str, context: str | None, cause: Exception | str) -> None:
        self.step = step
        self.context = context
        self.cause = cause
        target = f"context '{context}'" if context else "current context"
        super().__init__(f"failed to {step} for {target}: {cause}")


class ClusterTimeoutError(MultiClusterError, TimeoutError):
    """A cluster did not answer within its deadline."""

    def __init__(self, cluster_name: str, timeout: float) -> None:
        self.cluster_name = cluster_name
        self.timeout = timeout
        super().__init__(f"cluster {cluster_name} timed out after {timeout:g}s")
