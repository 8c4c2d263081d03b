"""Per-cluster operation results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from kubectl_multi.utils.errors import OperationNotAllowedError


@dataclass
class OperationResult:
    """The outcome of one operation against one cluster.

    Produced once per cluster per dispatch and handed to the aggregator;
    never mutated after delivery.
    """

    cluster_name: str
    output: Any = None
    error: Exception | None = None
    unsupported: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.unsupported

    @property
    def is_empty(self) -> bool:
        """True for a successful result carrying nothing to report."""
        if not self.ok:
            return False
        if self.output is None:
            return True
        if isinstance(self.output, str):
            return not self.output.strip()
        try:
            return len(self.output) == 0
        except TypeError:
            return False

    @classmethod
    def empty(cls, cluster_name: str) -> OperationResult:
        return cls(cluster_name=cluster_name)

    @classmethod
    def failed(cls, cluster_name: str, error: Exception) -> OperationResult:
        return cls(cluster_name=cluster_name, error=error)

    @classmethod
    def not_supported(cls, cluster_name: str) -> OperationResult:
        return cls(
            cluster_name=cluster_name,
            error=OperationNotAllowedError(
                f"operation not supported on control cluster {cluster_name}"
            ),
            unsupported=True,
        )
