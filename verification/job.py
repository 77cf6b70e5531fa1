"""
Verification job: the lifecycle of one email

Submitting -> Completed | Failed | Polling
Polling    -> Completed | Failed

A submit answer with status "verifying" or "queue" and a task id means the
backend is still probing (typically a catch-all domain). The job then polls
the status endpoint, waiting at least ``min_poll_wait_seconds`` and otherwise
until the server's ``try_again_at``, for at most ``max_poll_attempts`` polls.
"""
import asyncio
import time
from typing import Any, Awaitable, Callable, Optional

from core.config import get_settings
from core.exceptions import PollExhaustedError, VerifierError
from core.logging import get_logger
from gateway.exceptions import ApiFailure
from gateway.metrics import GatewayMetrics
from gateway.providers.bounceban import BounceBanClient
from gateway.retry import RetryPolicy

from .models import JobOutcome, JobResult, PollState, VerificationQuery, parse_try_again_at

PENDING_STATUSES = frozenset({"verifying", "queue"})

logger = get_logger("verification.job", domain="verification")


def is_pending(payload: Any) -> bool:
    return isinstance(payload, dict) and payload.get("status") in PENDING_STATUSES


class VerificationJob:
    """Drives one email from submission to a terminal JobResult"""

    def __init__(
        self,
        client: BounceBanClient,
        query: VerificationQuery,
        index: int = 0,
        retry_policy: Optional[RetryPolicy] = None,
        max_poll_attempts: Optional[int] = None,
        min_poll_wait_seconds: Optional[float] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        settings = get_settings()
        self.client = client
        self.query = query
        self.index = index
        self.retry_policy = retry_policy
        self.max_poll_attempts = max_poll_attempts or settings.max_poll_attempts
        self.min_poll_wait_seconds = (
            settings.min_poll_wait_seconds if min_poll_wait_seconds is None else min_poll_wait_seconds
        )
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.time
        self.metrics = GatewayMetrics()
        self.logger = logger.with_context(item_index=index)

    async def run(self) -> JobResult:
        """
        Run the job to completion

        Never raises for data or API errors; those become a failed result.
        Cancellation propagates to the caller.
        """
        self.logger.info(f"Start verify[{self.index}]: {self.query.to_params()}")
        try:
            payload = await self._submit_and_poll()
            result = JobResult.completed(self.index, payload)
        except ApiFailure as e:
            self.logger.error(f"Verify[{self.index}] failed: HTTP {e.status_code} {e.message}")
            result = JobResult.failed(self.index, e.message)
        except VerifierError as e:
            self.logger.warning(f"Verify[{self.index}] failed: {e.message}")
            result = JobResult.failed(self.index, e.message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.exception(f"Unexpected error in verify[{self.index}]")
            result = JobResult.failed(self.index, str(e) or type(e).__name__)

        self.metrics.record_job(result.outcome.value)
        if result.outcome == JobOutcome.COMPLETED:
            self.logger.info(f"Verify[{self.index}] completed")
        return result

    async def _submit_and_poll(self) -> Any:
        submitted = await self.client.verify_single(self.query.to_params(), self.retry_policy)

        task_id = submitted.get("id") if isinstance(submitted, dict) else None
        if not is_pending(submitted) or not task_id:
            return submitted

        state = PollState(
            task_id=str(task_id),
            next_eligible_at=parse_try_again_at(submitted.get("try_again_at"), self._clock()),
        )
        self.logger = self.logger.with_context(task_id=state.task_id)
        self.logger.info(f"Verify[{self.index}] pending as task {state.task_id}, polling")
        return await self._poll(state)

    async def _poll(self, state: PollState) -> Any:
        while state.attempts_made < self.max_poll_attempts:
            wait_seconds = max(self.min_poll_wait_seconds, state.next_eligible_at - self._clock())
            self.logger.debug(f"Task {state.task_id}: sleeping {wait_seconds:.1f}s before poll")
            await self._sleep(wait_seconds)

            response = await self.client.verify_status(state.task_id, self.retry_policy)
            self.metrics.record_poll()

            if not is_pending(response):
                return response

            state.record_attempt(parse_try_again_at(response.get("try_again_at"), self._clock()))

        raise PollExhaustedError(state.task_id, state.attempts_made)
