"""
Prometheus metrics for gateway and verification monitoring
"""

from prometheus_client import Counter, Histogram, Info

from core.config import get_settings
from core.logging import get_logger


class GatewayMetrics:
    """Prometheus metrics collector for the gateway"""

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.logger = get_logger("gateway.metrics", domain="gateway")
        self.enabled = get_settings().prometheus_enabled

        # API call metrics
        self.api_calls_total = Counter(
            "bounceban_api_calls_total",
            "Total number of API calls made through the gateway",
            ["provider", "endpoint", "status_code"],
        )

        self.api_latency_seconds = Histogram(
            "bounceban_api_latency_seconds",
            "API call latency in seconds",
            ["provider", "endpoint"],
            buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
        )

        # Retry metrics
        self.retries_total = Counter(
            "bounceban_api_retries_total",
            "Total number of retried API calls",
            ["retry_class"],
        )

        # Verification job metrics
        self.polls_total = Counter(
            "bounceban_status_polls_total",
            "Total number of status polls issued",
        )

        self.jobs_total = Counter(
            "bounceban_verification_jobs_total",
            "Total number of finished verification jobs",
            ["outcome"],
        )

        self.gateway_info = Info("bounceban_gateway", "Gateway version and configuration info")
        self.gateway_info.info({"version": get_settings().app_version, "domain": "gateway"})

        # Mark as initialized
        self.__class__._initialized = True

    def record_api_call(self, provider: str, endpoint: str, status_code: int, duration: float) -> None:
        """Record an API call with metrics"""
        if not self.enabled:
            return
        try:
            self.api_calls_total.labels(provider=provider, endpoint=endpoint, status_code=str(status_code)).inc()
            self.api_latency_seconds.labels(provider=provider, endpoint=endpoint).observe(duration)

            self.logger.debug(f"Recorded API call: {provider}/{endpoint} status={status_code} duration={duration:.3f}s")

        except Exception as e:
            self.logger.error(f"Failed to record API call metrics: {e}")

    def record_retry(self, retry_class: str) -> None:
        """Record a retried call"""
        if not self.enabled:
            return
        try:
            self.retries_total.labels(retry_class=retry_class).inc()
        except Exception as e:
            self.logger.error(f"Failed to record retry: {e}")

    def record_poll(self) -> None:
        """Record a status poll"""
        if not self.enabled:
            return
        try:
            self.polls_total.inc()
        except Exception as e:
            self.logger.error(f"Failed to record poll: {e}")

    def record_job(self, outcome: str) -> None:
        """Record a finished verification job"""
        if not self.enabled:
            return
        try:
            self.jobs_total.labels(outcome=outcome).inc()
        except Exception as e:
            self.logger.error(f"Failed to record job outcome: {e}")
