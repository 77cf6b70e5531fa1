"""
Shared test doubles for gateway and verification tests
"""
from typing import Any, Callable, Dict, List, Union

import httpx

Reply = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class FakeSleep:
    """Async sleep replacement that records requested durations"""

    def __init__(self, clock: "FakeClock" = None):
        self.calls: List[float] = []
        self.clock = clock

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.clock is not None:
            self.clock.now += seconds


class FakeClock:
    """Deterministic epoch clock"""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class ScriptedTransport(httpx.MockTransport):
    """MockTransport answering requests from a queue of scripted replies"""

    def __init__(self, replies: List[Reply]):
        self.replies = list(replies)
        self.requests: List[httpx.Request] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.replies:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return reply


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


def pending(task_id: str = "task-1", status: str = "verifying", **extra) -> Dict[str, Any]:
    return {"id": task_id, "status": status, **extra}
