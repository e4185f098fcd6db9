"""Deduplicating request queue.

This module schedules metadata fetches for the link preview pipeline:

- At most one fetch per URL is queued or in flight; every caller asking
  for that URL shares one future.
- At most ``max_concurrent`` fetches run at a time.
- Each attempt runs under a hard timeout and is cancelled when it expires.
- Transient failures are retried up to ``max_retries`` times through a
  retry lane that is drained before any new work.

A request never raises to its caller. It settles into an ``Ok`` or a
``Failed`` outcome.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

from linkpreview.core.statistics import PreviewMetrics
from linkpreview.services.cache import PreviewCache
from linkpreview.services.enricher import merge_preview
from linkpreview.shared.constants import NetworkConfig
from linkpreview.shared.errors import (
    DomainError,
    ErrorCode,
    ErrorContext,
    InfrastructureError,
    LinkPreviewError,
    MalformedResponseError,
    PreviewNetworkError,
    create_timeout_error,
)
from linkpreview.shared.logging import (
    log_operation_error,
    log_operation_start,
    log_operation_success,
)
from linkpreview.shared.models.metadata import LinkMetadata
from linkpreview.shared.protocols.services import MetadataFetcherProtocol
from linkpreview.shared.types.outcome import Failed, FetchOutcome, Ok, OutcomeSource

logger = logging.getLogger(__name__)


class Priority(IntEnum):
    """Request priority. Higher values are served first."""

    PREFETCH = 0
    INTERACTIVE = 1


class TaskState(str, Enum):
    """Lifecycle of a queued request."""

    QUEUED = "queued"
    IN_FLIGHT = "in_flight"
    SETTLED = "settled"


@dataclass(eq=False)
class QueueTask:
    """One URL's pending fetch, shared by every caller of that URL.

    Attributes:
        url: Requested URL
        future: Future resolved with the final outcome
        priority: Lane the task was submitted to
        retry_count: Retries performed so far
        attempts: Network attempts started so far
        state: Current lifecycle state
        worker: The asyncio task running the current attempt
    """

    url: str
    future: asyncio.Future[FetchOutcome]
    priority: Priority = Priority.INTERACTIVE
    retry_count: int = 0
    attempts: int = 0
    state: TaskState = TaskState.QUEUED
    worker: asyncio.Task[None] | None = field(default=None, repr=False)


class RequestQueue:
    """Bounded-concurrency fetch queue with dedup and retries.

    Args:
        fetcher: Metadata endpoint client
        cache: Cache that receives successful results
        metrics: Shared metrics, the cache's instance when omitted
        max_concurrent: Maximum number of attempts in flight
        max_retries: Retries allowed after the first attempt
        timeout: Hard timeout per attempt in seconds
        clock: Monotonic time source in seconds, used for latency
    """

    def __init__(
        self,
        fetcher: MetadataFetcherProtocol,
        cache: PreviewCache,
        metrics: PreviewMetrics | None = None,
        *,
        max_concurrent: int = NetworkConfig.MAX_CONCURRENT,
        max_retries: int = NetworkConfig.MAX_RETRIES,
        timeout: float = NetworkConfig.REQUEST_TIMEOUT,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        if max_concurrent <= 0:
            raise DomainError(
                code=ErrorCode.VALIDATION_ERROR,
                message=f"max_concurrent must be positive, got {max_concurrent}",
                context=ErrorContext(operation="request_queue_init"),
            )

        self.fetcher = fetcher
        self.cache = cache
        self.metrics = metrics if metrics is not None else cache.metrics
        self.max_concurrent = max_concurrent
        self.max_retries = max_retries
        self.timeout = timeout
        self._clock = clock

        self._index: dict[str, QueueTask] = {}
        self._retry_lane: deque[QueueTask] = deque()
        self._lanes: dict[Priority, deque[QueueTask]] = {
            Priority.INTERACTIVE: deque(),
            Priority.PREFETCH: deque(),
        }
        self._active = 0
        self._workers: set[asyncio.Task[None]] = set()
        self._closed = False

        logger.debug(
            "RequestQueue initialized (max_concurrent=%d, max_retries=%d, timeout=%.1fs)",
            max_concurrent,
            max_retries,
            timeout,
        )

    # ------------------------------------------------------------- submission

    def submit(
        self,
        url: str,
        priority: Priority = Priority.INTERACTIVE,
    ) -> asyncio.Future[FetchOutcome]:
        """Schedule a fetch, or join the one already pending for the URL.

        Must be called from a running event loop.

        Args:
            url: URL to fetch
            priority: Lane of a new task; a higher priority promotes a task
                that is still queued

        Returns:
            The future shared by every caller of this URL
        """
        loop = asyncio.get_running_loop()

        if self._closed:
            future: asyncio.Future[FetchOutcome] = loop.create_future()
            future.set_result(Failed(ErrorCode.QUEUE_CLOSED, "Request queue is closed"))
            return future

        task = self._index.get(url)
        if task is not None:
            self._promote(task, priority)
            logger.debug("Joined pending request for %s (%s)", url, task.state.value)
            return task.future

        task = QueueTask(url=url, future=loop.create_future(), priority=priority)
        self._index[url] = task
        self._lanes[priority].append(task)
        logger.debug("Queued %s with priority %s", url, priority.name)

        self._drain()
        return task.future

    async def fetch(
        self,
        url: str,
        priority: Priority = Priority.INTERACTIVE,
    ) -> FetchOutcome:
        """Await the outcome of a URL's fetch.

        Cancelling the awaiting coroutine does not cancel the shared fetch.
        """
        return await asyncio.shield(self.submit(url, priority))

    async def enqueue(
        self,
        url: str,
        priority: Priority = Priority.INTERACTIVE,
    ) -> LinkMetadata | None:
        """Await a URL's metadata.

        Returns:
            The metadata, or None when the fetch failed
        """
        outcome = await self.fetch(url, priority)
        return outcome.metadata

    def _promote(self, task: QueueTask, priority: Priority) -> None:
        if task.state is not TaskState.QUEUED or priority <= task.priority:
            return
        lane = self._lanes[task.priority]
        if task in lane:
            lane.remove(task)
            self._lanes[priority].append(task)
            logger.debug("Promoted %s to %s", task.url, priority.name)
        task.priority = priority

    # ---------------------------------------------------------------- draining

    def _next_task(self) -> QueueTask | None:
        if self._retry_lane:
            return self._retry_lane.popleft()
        for priority in (Priority.INTERACTIVE, Priority.PREFETCH):
            lane = self._lanes[priority]
            if lane:
                return lane.popleft()
        return None

    def _drain(self) -> None:
        while not self._closed and self._active < self.max_concurrent:
            task = self._next_task()
            if task is None:
                break
            task.state = TaskState.IN_FLIGHT
            self._active += 1
            worker = asyncio.get_running_loop().create_task(self._execute(task))
            task.worker = worker
            self._workers.add(worker)
            worker.add_done_callback(functools.partial(self._on_worker_done, task))

    # --------------------------------------------------------------- execution

    async def _execute(self, task: QueueTask) -> None:
        task.attempts += 1
        self.metrics.record_request()
        start = self._clock()
        context = ErrorContext(
            operation="fetch_preview",
            url=task.url,
            additional_data={"attempt": task.attempts, "retry_count": task.retry_count},
        )
        log_operation_start(logger, "fetch_preview", context.safe_dict())

        try:
            data = await asyncio.wait_for(self.fetcher.fetch(task.url), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            self._handle_failure(task, create_timeout_error(task.url, self.timeout, e), retryable=True)
        except PreviewNetworkError as e:
            self._handle_failure(task, e, retryable=True)
        except MalformedResponseError as e:
            self._handle_failure(task, e, retryable=False)
        except LinkPreviewError as e:
            self._handle_failure(task, e, retryable=False)
        except asyncio.CancelledError:
            if self._settle(task, Failed(ErrorCode.OPERATION_CANCELLED, "Request cancelled", task.attempts)):
                self.metrics.record_error()
            raise
        except Exception as e:
            error = InfrastructureError(
                code=ErrorCode.APPLICATION_ERROR,
                message=f"Unexpected fetcher failure: {e!s}",
                context=context,
                original_error=e,
            )
            self._handle_failure(task, error, retryable=False)
        else:
            duration_ms = (self._clock() - start) * 1000
            self.metrics.record_load_time(duration_ms)

            if task.state is TaskState.SETTLED:
                logger.debug("Discarding late result for %s", task.url)
            else:
                metadata = merge_preview(task.url, data)
                self.cache.set(task.url, metadata)
                self._settle(task, Ok(metadata, OutcomeSource.NETWORK))
                log_operation_success(
                    logger=logger,
                    operation="fetch_preview",
                    duration_ms=round(duration_ms, 1),
                    result_info={"hit_rate": self.metrics.hit_rate_display},
                    context=context,
                )

    def _on_worker_done(self, task: QueueTask, worker: asyncio.Task[None]) -> None:
        self._active -= 1
        self._workers.discard(worker)

        # A worker cancelled before its first step never ran _execute
        if task.worker is worker and task.state is TaskState.IN_FLIGHT:
            if self._settle(task, Failed(ErrorCode.OPERATION_CANCELLED, "Request cancelled", task.attempts)):
                self.metrics.record_error()

        self._drain()

    def _handle_failure(self, task: QueueTask, error: LinkPreviewError, *, retryable: bool) -> None:
        if task.state is TaskState.SETTLED:
            return

        if retryable and task.retry_count < self.max_retries and not self._closed:
            task.retry_count += 1
            task.state = TaskState.QUEUED
            self._retry_lane.append(task)
            logger.warning(
                "Retrying %s (%d/%d) after %s",
                task.url,
                task.retry_count,
                self.max_retries,
                error.code.value,
            )
            return

        log_operation_error(
            logger=logger,
            error=error,
            operation="fetch_preview",
            additional_context={"attempts": task.attempts, "retryable": retryable},
            level=logging.WARNING,
        )
        self.metrics.record_error()
        self._settle(task, Failed(error.code, error.message, task.attempts))

    def _settle(self, task: QueueTask, outcome: FetchOutcome) -> bool:
        """Resolve a task once and drop it from the index.

        Returns:
            False if the task had already settled
        """
        if task.state is TaskState.SETTLED:
            return False
        task.state = TaskState.SETTLED
        if self._index.get(task.url) is task:
            del self._index[task.url]
        if not task.future.done():
            task.future.set_result(outcome)
        return True

    # ------------------------------------------------------------ cancellation

    def cancel(self, url: str) -> bool:
        """Cancel the pending fetch of a URL.

        Every caller sharing the fetch receives a ``Failed`` outcome with
        ``OPERATION_CANCELLED``.

        Returns:
            True if a pending fetch was cancelled
        """
        task = self._index.get(url)
        if task is None:
            return False

        if task.state is TaskState.QUEUED:
            self._discard_queued(task)

        self._settle(task, Failed(ErrorCode.OPERATION_CANCELLED, "Request cancelled", task.attempts))
        self.metrics.record_error()
        if task.worker is not None and not task.worker.done():
            task.worker.cancel()

        logger.info("Cancelled request for %s", url)
        return True

    def _discard_queued(self, task: QueueTask) -> None:
        if task in self._retry_lane:
            self._retry_lane.remove(task)
            return
        for lane in self._lanes.values():
            if task in lane:
                lane.remove(task)
                return

    async def close(self) -> None:
        """Stop the queue.

        Pending fetches settle as ``Failed`` with ``QUEUE_CLOSED``, running
        attempts are cancelled and awaited. Later submissions fail at once.
        """
        self._closed = True

        for task in list(self._index.values()):
            self._settle(task, Failed(ErrorCode.QUEUE_CLOSED, "Request queue is closed", task.attempts))
        self._retry_lane.clear()
        for lane in self._lanes.values():
            lane.clear()

        workers = list(self._workers)
        for worker in workers:
            worker.cancel()
        if workers:
            await asyncio.gather(*workers, return_exceptions=True)

        logger.debug("RequestQueue closed (%d running attempts cancelled)", len(workers))

    # ------------------------------------------------------------------ stats

    @property
    def active(self) -> int:
        """Number of attempts in flight."""
        return self._active

    @property
    def queued(self) -> int:
        """Number of tasks waiting in any lane."""
        return len(self._retry_lane) + sum(len(lane) for lane in self._lanes.values())

    def is_pending(self, url: str) -> bool:
        """Check whether a URL is queued or in flight."""
        return url in self._index

    def stats(self) -> dict[str, Any]:
        """Return queue state for the debug surface."""
        return {
            "active": self._active,
            "max_concurrent": self.max_concurrent,
            "queued": self.queued,
            "retry_queued": len(self._retry_lane),
            "pending_urls": len(self._index),
            "in_flight": sorted(
                task.url for task in self._index.values() if task.state is TaskState.IN_FLIGHT
            ),
            "closed": self._closed,
        }
