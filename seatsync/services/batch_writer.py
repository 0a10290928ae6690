"""
Chunked batch writes with retry and partial-failure accounting.

Firestore caps a single commit at 500 writes, so large change sets are cut
into consecutive chunks and each chunk is committed atomically on its own.
A failed chunk never stops the others; the caller gets back how many
operations landed and one error entry per failed chunk.

When chunks run concurrently, ``BatchResult.errors`` is in completion
order, not chunk order.
"""

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence, TypeVar

from seatsync.core.config import settings
from seatsync.core.errors import ErrorCode, SeatingError, TransientStoreError
from seatsync.schemas.batch import BatchResult, ChunkError, GuestChange, TableChange
from seatsync.services.repositories import GUESTS, TABLES, SeatingStore, WriteOp

logger = logging.getLogger(__name__)

T = TypeVar("T")


def guest_change_operations(changes: Sequence[GuestChange]) -> List[WriteOp]:
    return [WriteOp.update(GUESTS, c.guest_id, {"table_id": c.table_id or None}) for c in changes]


def table_change_operations(changes: Sequence[TableChange]) -> List[WriteOp]:
    return [WriteOp.update(TABLES, c.table_id, c.updates) for c in changes]


def build_operations(
    guest_changes: Sequence[GuestChange],
    table_changes: Sequence[TableChange] = (),
) -> List[WriteOp]:
    """Guest changes first, then table changes, each in submission order"""
    return guest_change_operations(guest_changes) + table_change_operations(table_changes)


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class _ResultCollector:
    """Accumulates chunk outcomes from worker threads"""

    def __init__(self):
        self._lock = threading.Lock()
        self._processed = 0
        self._errors: List[ChunkError] = []

    def record_success(self, size: int) -> None:
        with self._lock:
            self._processed += size

    def record_failure(self, chunk_index: int, message: str, reason: ErrorCode) -> None:
        with self._lock:
            self._errors.append(ChunkError(chunk_index=chunk_index, message=message, reason=reason.value))

    def result(self) -> BatchResult:
        with self._lock:
            return BatchResult(
                success=not self._errors,
                total_processed=self._processed,
                errors=list(self._errors),
            )


class ChunkedMutationApplier:
    """Applies change sets to a ``SeatingStore`` in bounded atomic chunks"""

    def __init__(
        self,
        store: SeatingStore,
        chunk_size: Optional[int] = None,
        max_concurrency: Optional[int] = None,
        max_attempts: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
        retry_max_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.chunk_size = chunk_size or settings.BATCH_CHUNK_SIZE
        self.max_concurrency = max_concurrency or min(settings.BATCH_MAX_CONCURRENCY, os.cpu_count() or 1)
        self.max_attempts = max_attempts or settings.BATCH_MAX_ATTEMPTS
        self.retry_base_delay = settings.BATCH_RETRY_BASE_DELAY if retry_base_delay is None else retry_base_delay
        self.retry_max_delay = settings.BATCH_RETRY_MAX_DELAY if retry_max_delay is None else retry_max_delay
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retrying after failed attempt number ``attempt`` (1-based)"""
        return min(self.retry_base_delay * (2 ** (attempt - 1)), self.retry_max_delay)

    def apply(
        self,
        guest_changes: Sequence[GuestChange],
        table_changes: Sequence[TableChange] = (),
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> BatchResult:
        logger.info(f"Saving {len(guest_changes)} guest assignments and {len(table_changes)} table updates")
        operations = build_operations(guest_changes, table_changes)
        return self.apply_operations(operations, cancel_event=cancel_event, timeout=timeout)

    def apply_operations(
        self,
        operations: Sequence[WriteOp],
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> BatchResult:
        """Commit ``operations`` chunk by chunk.

        Setting ``cancel_event`` or running past ``timeout`` seconds abandons
        chunks that have not started yet; they are reported as cancelled.
        Commits already sent to the store are allowed to finish.
        """
        if not operations:
            return BatchResult(success=True, total_processed=0)

        chunks = chunked(operations, self.chunk_size)
        deadline = time.monotonic() + timeout if timeout is not None else None

        def is_cancelled() -> bool:
            if cancel_event is not None and cancel_event.is_set():
                return True
            return deadline is not None and time.monotonic() >= deadline

        collector = _ResultCollector()
        workers = min(self.max_concurrency, len(chunks))
        logger.info(f"Processing {len(operations)} operations in {len(chunks)} chunks ({workers} workers)")

        if workers == 1:
            for index, chunk in enumerate(chunks):
                self._commit_chunk(index, len(chunks), chunk, collector, is_cancelled)
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="seatsync-batch") as pool:
                futures = [
                    pool.submit(self._commit_chunk, index, len(chunks), chunk, collector, is_cancelled)
                    for index, chunk in enumerate(chunks)
                ]
                for future in as_completed(futures):
                    future.result()

        result = collector.result()
        logger.info(
            f"Batch operation completed. Success: {result.success}, "
            f"Processed: {result.total_processed}/{len(operations)}"
        )
        return result

    def _commit_chunk(
        self,
        index: int,
        total: int,
        chunk: List[WriteOp],
        collector: _ResultCollector,
        is_cancelled: Callable[[], bool],
    ) -> None:
        if is_cancelled():
            logger.warning(f"Chunk {index + 1}/{total} abandoned before commit")
            collector.record_failure(index, "Cancelled before commit", ErrorCode.CANCELLED)
            return

        attempt = 1
        while True:
            try:
                self.store.commit_batch(chunk)
            except TransientStoreError as e:
                if attempt >= self.max_attempts:
                    logger.error(f"Chunk {index + 1}/{total} failed after {attempt} attempts: {e.message}")
                    collector.record_failure(index, f"Failed after {attempt} attempts: {e.message}", e.code)
                    return
                if is_cancelled():
                    logger.warning(f"Chunk {index + 1}/{total} not retried, operation cancelled")
                    collector.record_failure(index, f"Cancelled while retrying: {e.message}", e.code)
                    return
                delay = self.backoff_delay(attempt)
                logger.warning(
                    f"Chunk {index + 1}/{total} failed (attempt {attempt}), retrying in {delay:.2f}s: {e.message}"
                )
                self._sleep(delay)
                attempt += 1
            except SeatingError as e:
                logger.error(f"Chunk {index + 1}/{total} failed permanently: {e.message}")
                collector.record_failure(index, e.message, e.code)
                return
            except Exception as e:
                logger.exception(f"Chunk {index + 1}/{total} failed with unexpected error")
                collector.record_failure(index, f"Unexpected error: {e}", ErrorCode.INTERNAL)
                return
            else:
                logger.debug(f"Chunk {index + 1}/{total} committed ({len(chunk)} operations)")
                collector.record_success(len(chunk))
                return
