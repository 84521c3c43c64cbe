"""
sap_odata.core.cache - Shared HTTP response cache
=================================================

Small in-process cache for successful GET responses. Responses are only
stored when the server allows it through ``Cache-Control: max-age``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
import threading
import time

from requests import Response


def _max_age(response: Response) -> Optional[int]:
    header = response.headers.get("Cache-Control") or ""
    directives = [d.strip().lower() for d in header.split(",") if d.strip()]
    if "no-store" in directives or "no-cache" in directives or "private" in directives:
        return None
    for d in directives:
        if d.startswith("max-age="):
            try:
                return max(int(d.split("=", 1)[1]), 0)
            except ValueError:
                return None
    return None


@dataclass
class _Entry:
    response: Response
    expires_at: float


class ResponseCache:
    """
    Thread-safe URL-keyed cache of GET responses.

    Parameters
    ----------
    clock : callable, optional
        Monotonic time source, replaceable in tests
    """

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, url: str) -> Optional[Response]:
        with self._lock:
            entry = self._entries.get(url)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[url]
                return None
            return entry.response

    def store(self, url: str, response: Response) -> bool:
        """Cache ``response`` if it is a 2xx the server marked cacheable."""
        if not 200 <= response.status_code <= 299:
            return False
        max_age = _max_age(response)
        if not max_age:
            return False
        # Read the body now so the cached object never touches the connection again
        response.content
        with self._lock:
            self._entries[url] = _Entry(response, self._clock() + max_age)
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
