import asyncio
import time


class RateLimiter:
    """
    Spaces out Steam Web API calls made from one event loop.
    Every acquire() returns at least `interval` seconds after the previous one.
    """

    def __init__(self, requests_per_second: float = 4.0):
        self.interval = 1.0 / requests_per_second if requests_per_second > 0 else 0.0
        self.last_call: float | None = None
        self._lock = asyncio.Lock()

    async def acquire(self):
        async with self._lock:
            if self.last_call is not None:
                wait = self.interval - (time.monotonic() - self.last_call)
                if wait > 0:
                    await asyncio.sleep(wait)
            self.last_call = time.monotonic()
