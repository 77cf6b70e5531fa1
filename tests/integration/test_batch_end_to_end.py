"""
End-to-end batch run against a mocked BounceBan HTTP API

Exercises the full stack: BatchProcessor -> VerificationJob -> RetryPolicy
-> BounceBanClient -> httpx, with only the transport replaced.
"""
from collections import defaultdict

import httpx
import pytest

from batch_runner.processor import BatchProcessor
from batch_runner.schemas import RESULT_FIELD
from gateway.providers.bounceban import BounceBanClient
from gateway.retry import RetryPolicy


class FakeBounceBan:
    """In-memory BounceBan API keyed by email address"""

    def __init__(self, clock):
        self.clock = clock
        self.calls = defaultdict(int)
        self.seen_headers = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.seen_headers.append(dict(request.headers))
        params = request.url.params

        if request.url.path == "/v1/verify/single":
            email = params["email"]
            self.calls[email] += 1
            return self.submit(email)

        if request.url.path == "/v1/verify/single/status":
            task_id = params["id"]
            self.calls[task_id] += 1
            return httpx.Response(200, json={"id": task_id, "status": "deliverable", "result": "catchall-ok"})

        return httpx.Response(404, json={"message": "Not found"})

    def submit(self, email: str) -> httpx.Response:
        if email.startswith("flaky"):
            # Rate limited once, then fine
            if self.calls[email] == 1:
                return httpx.Response(429, json={"message": "Too many requests"})
        if email.startswith("broken"):
            return httpx.Response(500, json={"message": "Internal error"})
        if email.startswith("catchall"):
            return httpx.Response(
                200, json={"id": f"task-{email}", "status": "verifying", "try_again_at": self.clock.now + 15}
            )
        if email.startswith("missing"):
            return httpx.Response(404, json={"message": "Email not found"})
        return httpx.Response(200, json={"email": email, "status": "deliverable", "score": 97})


@pytest.mark.asyncio
async def test_mixed_batch(fake_sleep, fake_clock):
    api = FakeBounceBan(fake_clock)
    client = BounceBanClient(
        api_key="integration-key",
        transport=httpx.MockTransport(api),
        retry_policy=RetryPolicy.default(sleep=fake_sleep),
    )
    processor = BatchProcessor(client=client, max_concurrent_jobs=3, sleep=fake_sleep, clock=fake_clock)
    records = [
        {"email": "ok@example.com", "crm_id": 1},
        {"email": "flaky@example.com", "crm_id": 2},
        {"email": "", "crm_id": 3},
        {"email": "catchall@example.com", "mode": "deepverify", "crm_id": 4},
        {"email": "broken@example.com", "crm_id": 5},
        {"email": "missing@example.com", "crm_id": 6},
    ]

    async with client:
        output = await processor.run_records(records)

    assert [row["crm_id"] for row in output] == [1, 2, 3, 4, 5, 6]
    results = [row[RESULT_FIELD] for row in output]
    assert results[0]["status"] == "deliverable"
    assert results[1]["status"] == "deliverable"
    assert results[2] == {"error": "Email address is required"}
    assert results[3] == {"id": "task-catchall@example.com", "status": "deliverable", "result": "catchall-ok"}
    assert results[4] == {"error": "Internal error"}
    assert results[5] == {"error": "Email not found"}

    assert api.calls["ok@example.com"] == 1
    assert api.calls["flaky@example.com"] == 2
    assert api.calls["catchall@example.com"] == 1
    assert api.calls["task-catchall@example.com"] == 1
    assert api.calls["broken@example.com"] == 4
    assert api.calls["missing@example.com"] == 1

    assert all(headers["authorization"] == "integration-key" for headers in api.seen_headers)
    assert all(headers["bb-utc-source"] == "test_suite" for headers in api.seen_headers)

    summary = processor.last_summary
    assert (summary.total, summary.completed, summary.failed) == (6, 3, 3)
