"""Cover art lookups against the RAWG video game database."""

from __future__ import annotations

import logging
import threading
import time

import requests

logger = logging.getLogger(__name__)

RAWG_SEARCH_URL = "https://api.rawg.io/api/games"


class ThumbnailLookupError(Exception):
    """Raised when a thumbnail could not be retrieved."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimiter:
    """Simple time-based rate limiter for external API calls."""

    def __init__(self, min_interval: float) -> None:
        self.min_interval = max(0.0, float(min_interval))
        self._lock = threading.Lock()
        self._last_call = 0.0

    def wait(self) -> None:
        if self.min_interval <= 0:
            return
        with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_call
            if elapsed < self.min_interval:
                time.sleep(self.min_interval - elapsed)
                now = time.monotonic()
            self._last_call = now


rawg_rate_limiter = RateLimiter(0.35)


def lookup_thumbnail(
    name: str, api_key: str | None, rate_limiter: RateLimiter | None = None
) -> str | None:
    """Return the background image of the best RAWG match for ``name``.

    An exact (case-insensitive) title match wins over the first result.
    Returns ``None`` when RAWG has no match or no image for it.
    """

    query = (name or "").strip()
    if not query:
        raise ThumbnailLookupError("Game name is required for a thumbnail lookup.")
    if not api_key:
        raise ThumbnailLookupError("RAWG API key is not configured.", 503)

    params = {"key": api_key, "search": query, "page_size": 5}
    try:
        (rate_limiter or rawg_rate_limiter).wait()
        response = requests.get(RAWG_SEARCH_URL, params=params, timeout=10)
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.error("RAWG search for %r failed: %s", query, exc)
        raise ThumbnailLookupError(f"RAWG search failed: {exc}", 502) from exc

    try:
        payload = response.json()
    except ValueError as exc:
        logger.error("RAWG returned invalid JSON for %r", query)
        raise ThumbnailLookupError("Invalid response from RAWG.", 502) from exc

    results = payload.get("results") if isinstance(payload, dict) else None
    if not isinstance(results, list):
        return None

    normalized = query.lower()
    fallback: str | None = None
    for item in results:
        if not isinstance(item, dict):
            continue
        image = (item.get("background_image") or "").strip()
        if not image:
            continue
        if (item.get("name") or "").strip().lower() == normalized:
            return image
        if fallback is None:
            fallback = image
    return fallback
