import time
from collections import defaultdict, deque
from typing import Deque, Dict
from fastapi import HTTPException
from starlette.requests import Request


class SimpleRateLimiter:
    """Sliding-window rate limiter keyed by client IP; in-memory (per process).
    Why available: Job submission spawns containers, so each client gets a bounded number of requests per window."""

    def __init__(self, max_requests: int, window_seconds: int):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.storage: Dict[str, Deque[float]] = defaultdict(deque)

    def check(self, request: Request) -> None:
        """Raise 429 if the client has exceeded the rate limit; otherwise record the request."""
        now = time.time()
        ip = request.client.host if request.client else "unknown"
        hits = self.storage[ip]

        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()

        if len(hits) >= self.max_requests:
            raise HTTPException(
                status_code=429,
                detail="Rate limit exceeded. Please retry later.",
            )
        hits.append(now)

    def reset(self) -> None:
        self.storage.clear()
