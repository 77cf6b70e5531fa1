"""
Data-driven retry policy for gateway calls

One table maps failure classes (sets of HTTP status codes) to a retry budget
and a wait strategy. The policy itself is immutable; every call to
``execute`` keeps its own failure counter per retry class.
"""
import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, Optional, Tuple, TypeVar

from core.logging import get_logger

from .exceptions import ApiFailure
from .metrics import GatewayMetrics
from .types import RetryDecision

T = TypeVar("T")

WaitFn = Callable[[int], int]
SleepFn = Callable[[float], Awaitable[None]]

logger = get_logger("gateway.retry", domain="gateway")


def linear_backoff(step_ms: int) -> WaitFn:
    """Wait attempt * step_ms milliseconds"""

    def wait(attempt: int) -> int:
        return attempt * step_ms

    return wait


def fixed_wait(wait_ms: int) -> WaitFn:
    """Wait the same number of milliseconds after every attempt"""

    def wait(attempt: int) -> int:
        return wait_ms

    return wait


@dataclass(frozen=True)
class RetryRule:
    """Retry budget for one class of failures"""

    name: str
    status_codes: frozenset
    max_retries: int
    wait: WaitFn

    def matches(self, failure: ApiFailure) -> bool:
        return failure.status_code in self.status_codes


class RetryPolicy:
    """Decides whether a failed API call is retried, and after how long"""

    def __init__(self, rules: Iterable[RetryRule], sleep: Optional[SleepFn] = None):
        self.rules: Tuple[RetryRule, ...] = tuple(rules)
        self._sleep = sleep or asyncio.sleep
        self.metrics = GatewayMetrics()

    @classmethod
    def default(cls, sleep: Optional[SleepFn] = None) -> "RetryPolicy":
        """Policy with the documented production budgets"""
        return cls(
            [
                RetryRule("rate_limited_or_server", frozenset({429, 500}), 3, linear_backoff(2000)),
                RetryRule("timeout", frozenset({408}), 30, fixed_wait(6000)),
            ],
            sleep=sleep,
        )

    @classmethod
    def from_settings(cls, settings, sleep: Optional[SleepFn] = None) -> "RetryPolicy":
        """Build the policy from application settings"""
        return cls(
            [
                RetryRule(
                    "rate_limited_or_server",
                    frozenset({429, 500}),
                    settings.retry_server_max_retries,
                    linear_backoff(settings.retry_server_backoff_ms),
                ),
                RetryRule(
                    "timeout",
                    frozenset({408}),
                    settings.retry_timeout_max_retries,
                    fixed_wait(settings.retry_timeout_wait_ms),
                ),
            ],
            sleep=sleep,
        )

    def rule_for(self, failure: ApiFailure) -> Optional[RetryRule]:
        for rule in self.rules:
            if rule.matches(failure):
                return rule
        return None

    def should_retry(self, failure: ApiFailure, attempt: int) -> RetryDecision:
        """
        Decide what to do after a failure

        ``attempt`` is the 1-based count of failures of this failure's class
        so far. A rule allowing N retries permits N + 1 failures of its class.
        """
        rule = self.rule_for(failure)
        if rule is None:
            return RetryDecision(retry=False)
        if attempt > rule.max_retries:
            return RetryDecision(retry=False, rule=rule.name)
        return RetryDecision(retry=True, wait_ms=max(0, rule.wait(attempt)), rule=rule.name)

    async def execute(self, call: Callable[[], Awaitable[T]], operation: str = "request") -> T:
        """
        Await ``call`` until it succeeds or the policy gives up

        Each retry class spends its own budget; a run of timeouts does not
        use up the retries allowed for rate limiting.

        Raises:
            ApiFailure: the last failure once retries are exhausted or the
                failure is not retryable
        """
        calls = 0
        failures_by_rule: Dict[str, int] = {}
        while True:
            calls += 1
            try:
                return await call()
            except ApiFailure as failure:
                rule = self.rule_for(failure)
                attempt = 1
                if rule is not None:
                    attempt = failures_by_rule.get(rule.name, 0) + 1
                    failures_by_rule[rule.name] = attempt

                decision = self.should_retry(failure, attempt)
                if not decision.retry:
                    if decision.rule:
                        logger.warning(
                            f"Retries exhausted for {operation} after {calls} calls "
                            f"(HTTP {failure.status_code}, class {decision.rule}): {failure.message}"
                        )
                    raise

                logger.info(
                    f"Retrying {operation} in {decision.wait_ms}ms "
                    f"(call {calls}, {decision.rule} failure {attempt}, HTTP {failure.status_code})"
                )
                self.metrics.record_retry(decision.rule)
                await self._sleep(decision.wait_ms / 1000)
