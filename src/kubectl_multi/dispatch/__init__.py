"""Fan-out of one operation across discovered clusters."""

from kubectl_multi.dispatch.dispatcher import (
    DEFAULT_MAX_CONCURRENCY,
    FanOutDispatcher,
    is_not_found,
)
from kubectl_multi.dispatch.kubectl import KubectlRunner
from kubectl_multi.dispatch.results import OperationResult

__all__ = [
    "DEFAULT_MAX_CONCURRENCY",
    "FanOutDispatcher",
    "KubectlRunner",
    "OperationResult",
    "is_not_found",
]
