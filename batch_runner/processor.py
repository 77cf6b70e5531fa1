"""
Batch Processor for email verification

Resilient batch processing engine with error isolation and concurrency
control. Runs one VerificationJob per input record and returns exactly one
JobResult per record, in input order.
"""
import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from core.config import get_settings
from core.exceptions import ValidationError
from core.logging import get_logger
from gateway.providers.bounceban import BounceBanClient
from gateway.retry import RetryPolicy
from verification.job import VerificationJob
from verification.models import JobResult, VerificationQuery

from .schemas import CANCELLED, RESULT_FIELD, Operation

logger = get_logger("batch_processor")


@dataclass
class BatchProcessingResult:
    """Statistics of a finished batch"""

    total: int
    completed: int
    failed: int
    duration_seconds: float
    cancelled: bool = False


class BatchProcessor:
    """Main batch processing engine"""

    def __init__(
        self,
        client: Optional[BounceBanClient] = None,
        max_concurrent_jobs: Optional[int] = None,
        retry_policy: Optional[RetryPolicy] = None,
        max_poll_attempts: Optional[int] = None,
        min_poll_wait_seconds: Optional[float] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.settings = get_settings()
        self.client = client

        # Processing configuration; 0 means unbounded fan-out
        self.max_concurrent_jobs = (
            self.settings.max_concurrent_jobs if max_concurrent_jobs is None else max_concurrent_jobs
        )
        self.retry_policy = retry_policy
        self._job_options: Dict[str, Any] = {
            "max_poll_attempts": max_poll_attempts,
            "min_poll_wait_seconds": min_poll_wait_seconds,
            "sleep": sleep,
            "clock": clock,
        }

        self.last_summary: Optional[BatchProcessingResult] = None
        self._tasks: List[asyncio.Task] = []
        self._cancelled = False

    def cancel(self) -> None:
        """
        Stop the running batch

        Jobs not yet started are never dispatched and in-flight jobs are
        abandoned; both are recorded as failed with "cancelled".
        """
        logger.warning(f"Cancelling batch with {len(self._tasks)} jobs")
        self._cancelled = True
        for task in self._tasks:
            task.cancel()

    async def run(
        self, records: Sequence[Mapping[str, Any]], operation: str = Operation.VALIDATE_EMAIL.value
    ) -> List[JobResult]:
        """
        Verify every record concurrently

        Args:
            records: Ordered input records, each with at least ``email``
            operation: Default operation for records without their own

        Returns:
            One JobResult per record, in input order

        Raises:
            TypeError: If records is not a sequence of mappings
        """
        records = list(records)
        for position, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise TypeError(f"Record {position} is {type(record).__name__}, expected a mapping")

        start_time = time.time()
        self._cancelled = False
        self._tasks = []
        results: List[Optional[JobResult]] = [None] * len(records)

        # Validate up front; invalid items never reach the network
        queries: Dict[int, VerificationQuery] = {}
        for index, record in enumerate(records):
            prepared = self._prepare(index, record, operation)
            if isinstance(prepared, JobResult):
                results[index] = prepared
            else:
                queries[index] = prepared

        logger.info(f"Processing {len(records)} records ({len(records) - len(queries)} rejected before dispatch)")

        if queries:
            owns_client = self.client is None
            client = self.client or BounceBanClient()
            try:
                await self._run_jobs(client, queries, results)
            finally:
                if owns_client:
                    await client.aclose()

        final = self._collect(results)
        self.last_summary = self._summarize(final, time.time() - start_time)
        return final

    async def run_records(
        self, records: Sequence[Mapping[str, Any]], operation: str = Operation.VALIDATE_EMAIL.value
    ) -> List[Dict[str, Any]]:
        """Verify records and return each one augmented with its result"""
        records = list(records)
        results = await self.run(records, operation)
        return [{**record, RESULT_FIELD: result.to_output()} for record, result in zip(records, results)]

    def _prepare(self, index: int, record: Mapping[str, Any], operation: str):
        """Turn a record into a query, or a failed result when it cannot run"""
        requested = record.get("operation") or operation
        if requested != Operation.VALIDATE_EMAIL.value:
            return JobResult.failed(index, f"Unknown operation: {requested}")

        try:
            return VerificationQuery.from_record(record)
        except ValidationError as e:
            logger.warning(f"Record {index} rejected: {e.message}")
            return JobResult.failed(index, e.message)

    async def _run_jobs(
        self, client: BounceBanClient, queries: Dict[int, VerificationQuery], results: List[Optional[JobResult]]
    ) -> None:
        """Process jobs with controlled concurrency and store results by index"""
        semaphore = asyncio.Semaphore(self.max_concurrent_jobs) if self.max_concurrent_jobs > 0 else None

        tasks: Dict[int, asyncio.Task] = {}
        for index, query in queries.items():
            job = VerificationJob(client, query, index=index, retry_policy=self.retry_policy, **self._job_options)
            tasks[index] = asyncio.create_task(self._run_job_with_semaphore(semaphore, job))
        self._tasks = list(tasks.values())

        try:
            await asyncio.wait(self._tasks)
        except asyncio.CancelledError:
            # The whole batch was cancelled from outside; take the jobs down too
            for task in self._tasks:
                task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)
            raise

        for index, task in tasks.items():
            if task.cancelled():
                results[index] = JobResult.failed(index, CANCELLED)
            elif task.exception() is not None:
                exc = task.exception()
                logger.error(f"Error processing record {index}: {exc}")
                results[index] = JobResult.failed(index, str(exc) or type(exc).__name__)
            else:
                results[index] = task.result()

    async def _run_job_with_semaphore(self, semaphore: Optional[asyncio.Semaphore], job: VerificationJob) -> JobResult:
        """Process single job with concurrency control"""
        if semaphore is None:
            return await job.run()
        async with semaphore:
            if self._cancelled:
                return JobResult.failed(job.index, CANCELLED)
            return await job.run()

    @staticmethod
    def _collect(results: List[Optional[JobResult]]) -> List[JobResult]:
        """Return the filled result slots, failing if any slot is empty"""
        missing = [index for index, result in enumerate(results) if result is None]
        if missing:
            raise RuntimeError(f"No result recorded for records {missing}")
        return list(results)

    def _summarize(self, results: List[JobResult], duration: float) -> BatchProcessingResult:
        completed = sum(1 for r in results if r.is_completed)
        summary = BatchProcessingResult(
            total=len(results),
            completed=completed,
            failed=len(results) - completed,
            duration_seconds=duration,
            cancelled=self._cancelled,
        )
        logger.info(
            f"Batch finished: {summary.completed} completed, {summary.failed} failed "
            f"in {summary.duration_seconds:.1f}s"
        )
        return summary
