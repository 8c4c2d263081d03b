"""Fan-out dispatcher.

Runs one logical operation against every discovered cluster under one of
three strategies:

- sequential: read operations, discovery order, one cluster at a time
- pooled: mutating operations, at most max_concurrency clusters at once,
  results in completion order
- streaming: follow operations, one long-lived task per cluster writing
  cluster-prefixed lines to the shared sink until every stream ends

One cluster's failure never stops the others. Every failure is logged as a
warning naming the cluster.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from typing import Any, Awaitable, Callable, Iterator

from kubernetes.client import ApiException  # type: ignore[import-untyped]

from kubectl_multi.cluster.discovery import ClusterHandle
from kubectl_multi.dispatch.results import OperationResult
from kubectl_multi.output.sink import OutputSink
from kubectl_multi.utils.errors import (
    ClusterTimeoutError,
    KubectlError,
    ResourceNotFoundError,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 5

SyncOperation = Callable[[ClusterHandle], Any]
AsyncOperation = Callable[[ClusterHandle], Awaitable[Any]]
LineEmitter = Callable[[str], None]
StreamOperation = Callable[[ClusterHandle, LineEmitter], Awaitable[Any]]


def is_not_found(error: BaseException) -> bool:
    """Check whether an error means 'nothing there' rather than a failure."""
    if isinstance(error, ResourceNotFoundError):
        return True
    if isinstance(error, ApiException):
        return error.status == 404
    if isinstance(error, KubectlError):
        return error.not_found
    return False


class FanOutDispatcher:
    """Executes one operation against a list of cluster handles.

    Unreachable handles are skipped by every strategy. Handles whose context
    is the inventory context are never called by pooled (mutating)
    operations; they get an unsupported result instead.
    """

    def __init__(
        self,
        handles: list[ClusterHandle],
        inventory_context: str | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        cluster_timeout: float | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._handles = list(handles)
        self._inventory_context = inventory_context
        self._max_concurrency = max_concurrency
        self._cluster_timeout = cluster_timeout

    @property
    def handles(self) -> list[ClusterHandle]:
        return list(self._handles)

    @property
    def cluster_timeout(self) -> float | None:
        return self._cluster_timeout

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    def reachable_handles(self) -> list[ClusterHandle]:
        reachable = []
        for handle in self._handles:
            if handle.is_reachable:
                reachable.append(handle)
            else:
                logger.warning(f"Warning: skipping cluster {handle.name}: no client available")
        return reachable

    def is_control_cluster(self, handle: ClusterHandle) -> bool:
        return bool(self._inventory_context) and handle.context == self._inventory_context

    # -------------------------------------------------------------------------
    # Sequential
    # -------------------------------------------------------------------------

    def run_sequential(self, operation: SyncOperation) -> Iterator[OperationResult]:
        """Run a read operation cluster by cluster in discovery order.

        Results are yielded as each cluster finishes so the caller can render
        incrementally. The operation receives the handle and should honor
        cluster_timeout for its own calls; timeouts it raises are reported
        as failures of that cluster.
        """
        for handle in self.reachable_handles():
            try:
                output = operation(handle)
            except Exception as e:
                yield self._failure(handle, e)
                continue
            yield OperationResult(cluster_name=handle.name, output=output)

    # -------------------------------------------------------------------------
    # Bounded pool
    # -------------------------------------------------------------------------

    def run_pooled(
        self,
        operation: AsyncOperation,
        on_result: Callable[[OperationResult], None] | None = None,
    ) -> list[OperationResult]:
        """Run a mutating operation on a bounded pool, blocking until done."""
        return asyncio.run(self.run_pooled_async(operation, on_result))

    async def run_pooled_async(
        self,
        operation: AsyncOperation,
        on_result: Callable[[OperationResult], None] | None = None,
    ) -> list[OperationResult]:
        """Run a mutating operation with at most max_concurrency clusters active.

        Every reachable cluster yields exactly one result. Results are
        returned (and passed to on_result) in completion order.
        """
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run_one(handle: ClusterHandle) -> OperationResult:
            if self.is_control_cluster(handle):
                logger.info(f"Skipping control cluster {handle.name}")
                return OperationResult.not_supported(handle.name)
            async with semaphore:
                try:
                    if self._cluster_timeout is None:
                        output = await operation(handle)
                    else:
                        output = await asyncio.wait_for(operation(handle), self._cluster_timeout)
                except asyncio.TimeoutError:
                    return self._failure(
                        handle, ClusterTimeoutError(handle.name, self._cluster_timeout or 0)
                    )
                except Exception as e:
                    return self._failure(handle, e, normalize_not_found=False)
                return OperationResult(cluster_name=handle.name, output=output)

        tasks = [asyncio.create_task(run_one(h)) for h in self.reachable_handles()]
        results: list[OperationResult] = []
        try:
            for next_done in asyncio.as_completed(tasks):
                result = await next_done
                results.append(result)
                if on_result is not None:
                    on_result(result)
        finally:
            for task in tasks:
                task.cancel()
        return results

    # -------------------------------------------------------------------------
    # Streaming
    # -------------------------------------------------------------------------

    def run_streaming(
        self,
        operation: StreamOperation,
        sink: OutputSink,
    ) -> list[OperationResult]:
        """Stream from every cluster until all streams end.

        KeyboardInterrupt cancels every stream and terminates its process.
        """
        return asyncio.run(self.run_streaming_async(operation, sink))

    async def run_streaming_async(
        self,
        operation: StreamOperation,
        sink: OutputSink,
        stop: asyncio.Event | None = None,
    ) -> list[OperationResult]:
        """Run one streaming task per cluster and wait for all of them.

        Each task receives an emitter that writes '[cluster] line' to the
        sink. A task ending or failing does not affect its siblings. Setting
        stop, or cancelling this coroutine, cancels every task.
        """
        handles = self.reachable_handles()
        tasks = [
            asyncio.create_task(self._stream_one(h, operation, sink), name=f"stream-{h.name}")
            for h in handles
        ]
        if not tasks:
            return []

        everything = asyncio.gather(*tasks, return_exceptions=True)
        try:
            if stop is not None:
                stopper = asyncio.create_task(stop.wait())
                await asyncio.wait({everything, stopper}, return_when=asyncio.FIRST_COMPLETED)
                if not everything.done():
                    logger.info("Stop requested, terminating streams")
                    for task in tasks:
                        task.cancel()
                stopper.cancel()
            outcomes = await everything
        except asyncio.CancelledError:
            everything.cancel()
            raise

        results = []
        for handle, outcome in zip(handles, outcomes):
            if isinstance(outcome, OperationResult):
                results.append(outcome)
            else:
                results.append(OperationResult.empty(handle.name))
        return results

    async def _stream_one(
        self,
        handle: ClusterHandle,
        operation: StreamOperation,
        sink: OutputSink,
    ) -> OperationResult:
        prefix = f"[{handle.name}] "

        def emit(line: str) -> None:
            sink.write_line(prefix + line)

        try:
            output = await operation(handle, emit)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            return self._failure(handle, e)
        return OperationResult(cluster_name=handle.name, output=output)

    # -------------------------------------------------------------------------
    # Failures
    # -------------------------------------------------------------------------

    def _failure(
        self,
        handle: ClusterHandle,
        error: Exception,
        normalize_not_found: bool = True,
    ) -> OperationResult:
        if normalize_not_found and is_not_found(error):
            logger.debug(f"Nothing found on cluster {handle.name}: {error}")
            return OperationResult.empty(handle.name)
        if isinstance(error, subprocess.TimeoutExpired) and error.timeout:
            error = ClusterTimeoutError(handle.name, error.timeout)
        logger.warning(f"Warning: cluster {handle.name}: {error}")
        return OperationResult.failed(handle.name, error)
