"""
Rate limiting middleware for API endpoints
"""
import time
from collections import defaultdict, deque
from fastapi import Request, HTTPException
from typing import Deque, Dict
import logging

from app.config import settings

logger = logging.getLogger(__name__)

MINUTE = 60
HOUR = 3600


class RateLimiter:
    """
    In-memory sliding window rate limiter, keyed by user when the request
    names one and by client IP otherwise

    Limits are per process; each API worker counts separately.
    """

    def __init__(self, requests_per_minute: int = 60, requests_per_hour: int = 1000):
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour

        # {client_id: request timestamps within the last hour, oldest first}
        self.requests: Dict[str, Deque[float]] = defaultdict(deque)

    def _get_client_id(self, request: Request) -> str:
        """Extract client identifier from request"""
        user_id = request.query_params.get("user_id")
        if user_id:
            return f"user:{user_id}"

        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"

    def _reject(self, client_id: str, limit: int, window: str, retry_after: int):
        logger.warning(f"Rate limit exceeded ({window}): {client_id}")
        raise HTTPException(
            status_code=429,
            detail={
                "error": "rate_limit_exceeded",
                "message": f"Too many requests. Limit: {limit} requests per {window}",
                "retry_after": retry_after
            }
        )

    def check(self, client_id: str, now: float = None) -> None:
        """
        Count one request for client_id

        Raises:
            HTTPException: 429 if a limit is exceeded
        """
        now = time.time() if now is None else now
        timestamps = self.requests[client_id]

        while timestamps and timestamps[0] <= now - HOUR:
            timestamps.popleft()

        last_minute = sum(1 for ts in timestamps if ts > now - MINUTE)
        if last_minute >= self.requests_per_minute:
            self._reject(client_id, self.requests_per_minute, "minute", MINUTE)

        if len(timestamps) >= self.requests_per_hour:
            self._reject(client_id, self.requests_per_hour, "hour", HOUR)

        timestamps.append(now)

    async def check_rate_limit(self, request: Request) -> None:
        """Apply limits to an incoming request"""
        self.check(self._get_client_id(request))

    def reset(self) -> None:
        self.requests.clear()


# Global instance
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR
)
