"""uscf_lookup.fetch

Page retrieval for member lookups.

Design principles:
  - Conservative / polite: exactly one in-flight request, a base delay with
    jitter between consecutive requests, exponential backoff on failures.
  - Retry only transient failures: transport errors, HTTP 429 and 5xx.
  - Anything else (or exhausted retries) raises RetrievalError; the lookup
    orchestrator decides whether to absorb or propagate it.

FilePageFetcher serves previously saved pages from a directory so results
can be re-evaluated offline.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

import requests

from uscf_lookup.config import LookupSettings
from uscf_lookup.shared import LookupRunCounters, RetrievalError

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rate limiter
# ---------------------------------------------------------------------------

DEFAULT_SAFE_STOP = 5
MAX_BACKOFF_MULT = 32.0


@dataclass
class RateLimiter:
    """Delay between member page requests.

    Failures double the delay (up to MAX_BACKOFF_MULT) and count towards a
    safe-stop. The failure count covers one member page: begin_page()
    clears it, while the backoff carries over until a page succeeds.
    """

    base_delay: float = 1.0
    jitter: float = 0.5
    max_consecutive_failures: int = DEFAULT_SAFE_STOP
    failures: int = field(default=0, init=False)
    backoff_mult: float = field(default=1.0, init=False)

    def sleep(self) -> None:
        delay = self.base_delay * self.backoff_mult + random.uniform(-self.jitter, self.jitter)
        time.sleep(max(0.0, delay))

    def begin_page(self) -> None:
        self.failures = 0

    def on_success(self) -> None:
        self.failures = 0
        self.backoff_mult = 1.0

    def on_failure(self, reason: str = "") -> bool:
        """Record a failed request; True once the safe-stop is reached."""
        self.failures += 1
        self.backoff_mult = min(self.backoff_mult * 2.0, MAX_BACKOFF_MULT)
        log.debug("member page request failed (%s); failures=%d", reason, self.failures)
        return self.failures >= self.max_consecutive_failures


# ---------------------------------------------------------------------------
# Fetchers
# ---------------------------------------------------------------------------

class PageFetcher(Protocol):
    def fetch(self, member_id: str) -> str:
        """Return the member page markup. Raise RetrievalError on failure."""
        ...


def member_page_url(base_url: str, member_id: str) -> str:
    """The directory takes the member id as the bare query string."""
    return f"{base_url}?{quote(member_id, safe='')}"


class HttpPageFetcher:
    """Fetch member pages over HTTP with a shared requests.Session."""

    def __init__(
        self,
        settings: LookupSettings | None = None,
        session: requests.Session | None = None,
        rate_limiter: RateLimiter | None = None,
        counters: LookupRunCounters | None = None,
    ) -> None:
        self.settings = settings or LookupSettings()
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": self.settings.user_agent})
        # the safe-stop never cuts a member's configured attempts short
        self.rate_limiter = rate_limiter or RateLimiter(
            base_delay=self.settings.request_delay_seconds,
            jitter=self.settings.request_jitter_seconds,
            max_consecutive_failures=max(DEFAULT_SAFE_STOP, self.settings.max_attempts),
        )
        self.counters = counters or LookupRunCounters()
        self._requests_made = 0

    def fetch(self, member_id: str) -> str:
        url = member_page_url(self.settings.base_url, member_id)
        max_attempts = self.settings.max_attempts
        self.rate_limiter.begin_page()

        for attempt in range(max_attempts):
            if self._requests_made > 0:
                self.rate_limiter.sleep()
            self._requests_made += 1

            try:
                resp = self.session.get(url, timeout=self.settings.timeout_seconds)
            except requests.RequestException as exc:
                self.counters.network_errors += 1
                log.warning("Network error fetching %s (attempt %d/%d): %s",
                            url, attempt + 1, max_attempts, exc)
                if self.rate_limiter.on_failure("transport"):
                    raise RetrievalError(
                        f"{self.rate_limiter.failures} consecutive failures fetching {url}"
                    ) from exc
                continue

            if resp.status_code == 429 or resp.status_code >= 500:
                self.counters.rate_limit_hits += 1
                log.warning("HTTP %s fetching %s (attempt %d/%d)",
                            resp.status_code, url, attempt + 1, max_attempts)
                if self.rate_limiter.on_failure(str(resp.status_code)):
                    raise RetrievalError(
                        f"{self.rate_limiter.failures} consecutive failures fetching {url}"
                    )
                continue

            if resp.status_code != 200:
                self.rate_limiter.on_failure(str(resp.status_code))
                raise RetrievalError(f"HTTP {resp.status_code} fetching {url}")

            self.rate_limiter.on_success()
            self.counters.pages_fetched += 1
            return resp.text

        raise RetrievalError(f"giving up on {url} after {max_attempts} attempts")


@dataclass
class FilePageFetcher:
    """Serve saved pages named <member_id>.html from base_dir."""

    base_dir: Path
    counters: LookupRunCounters = field(default_factory=LookupRunCounters)

    def fetch(self, member_id: str) -> str:
        if "/" in member_id or "\\" in member_id or member_id.startswith("."):
            raise RetrievalError(f"invalid member id for file lookup: {member_id!r}")
        path = self.base_dir / f"{member_id}.html"
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise RetrievalError(f"could not read {path}") from exc
        self.counters.pages_fetched += 1
        return content
