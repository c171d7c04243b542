from __future__ import annotations

import time
from collections import deque
from threading import Lock

from fastapi import HTTPException, status


class SlidingWindowRateLimiter:
    """
    Limite di richieste per chiave (IP client) su finestra mobile, in memoria.

    Le chiavi senza richieste nella finestra vengono rimosse: la mappa contiene
    solo i client attivi negli ultimi ``window_seconds``.
    """

    def __init__(self, max_requests: int, window_seconds: int) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: dict[str, deque[float]] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._hits)

    def hit(self, key: str) -> None:
        now = time.time()
        with self._lock:
            self._sweep(now)
            hits = self._hits.setdefault(key, deque())
            if len(hits) >= self.max_requests:
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail="Muitas requisições, tente novamente mais tarde",
                )
            hits.append(now)

    def _sweep(self, now: float) -> None:
        cutoff = now - self.window_seconds
        for key in list(self._hits):
            hits = self._hits[key]
            while hits and hits[0] < cutoff:
                hits.popleft()
            if not hits:
                del self._hits[key]

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


def enforce_rate_limit(limiter: SlidingWindowRateLimiter, key: str) -> None:
    limiter.hit(key)
