"""uscf_lookup.shared

Shared constants and utilities used by the extractor, the lookup
orchestrator and the CLI. Includes the absence sentinel, reason codes,
exceptions, run counters, and report-writing support.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Placeholder for any field the extractor could not locate.
SENTINEL = "--"

REASON_PLAYER_NOT_FOUND = "player_not_found"
REASON_PLAYER_EXPIRED = "player_expired"
REASON_PLAYER_INVALID = "player_invalid"
REASON_PLAYER_INSUFFICIENT_INFO = "player_insufficient_info"
REASON_PLAYER_VALID = "player_valid"
REASON_PLAYER_MISSING_ID = "player_missing_id"
REASON_ERROR = "error"

VALID_REASONS = (
    REASON_PLAYER_NOT_FOUND,
    REASON_PLAYER_EXPIRED,
    REASON_PLAYER_INVALID,
    REASON_PLAYER_INSUFFICIENT_INFO,
    REASON_PLAYER_VALID,
    REASON_PLAYER_MISSING_ID,
    REASON_ERROR,
)

# Error policy for retrieval failures: absorb into an 'error' result, or raise.
ERROR_POLICY_ABSORB = "absorb"
ERROR_POLICY_RAISE = "raise"
VALID_ERROR_POLICIES = frozenset({ERROR_POLICY_ABSORB, ERROR_POLICY_RAISE})


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class MemberLookupError(Exception):
    """Raised when a member lookup cannot be completed (strict policy)."""


class RetrievalError(MemberLookupError):
    """Raised when the member page could not be fetched."""


class BatchTooLargeError(MemberLookupError, ValueError):
    """Raised when a batch exceeds the configured max_batch_size."""

    def __init__(self, count: int, limit: int) -> None:
        super().__init__(
            f"Too many memberIds provided. Can process up to {limit} per request."
        )
        self.count = count
        self.limit = limit


# ---------------------------------------------------------------------------
# LookupRunCounters
# ---------------------------------------------------------------------------

@dataclass
class LookupRunCounters:
    lookups_requested: int = 0
    missing_ids: int = 0
    pages_fetched: int = 0
    retrieval_errors: int = 0
    network_errors: int = 0
    rate_limit_hits: int = 0
    eligible: int = 0
    ineligible: int = 0
    reasons: dict[str, int] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def record_reason(self, reason: str) -> None:
        self.reasons[reason] = self.reasons.get(reason, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        d = {k: v for k, v in self.__dict__.items() if k != "warnings"}
        d["warnings"] = self.warnings[:50]
        return d


# ---------------------------------------------------------------------------
# Report builder
# ---------------------------------------------------------------------------

def build_lookup_report(counters: LookupRunCounters) -> str:
    lines = [
        "=== Member Lookup Run Report ===",
        f"lookups_requested: {counters.lookups_requested}",
        f"missing_ids      : {counters.missing_ids}",
        f"pages_fetched    : {counters.pages_fetched}",
        "",
        "--- Eligibility ---",
        f"eligible         : {counters.eligible}",
        f"ineligible       : {counters.ineligible}",
    ]
    for reason in VALID_REASONS:
        if reason in counters.reasons:
            lines.append(f"  {reason:<25}: {counters.reasons[reason]}")
    lines += [
        "",
        "--- Errors ---",
        f"retrieval_errors : {counters.retrieval_errors}",
        f"network_errors   : {counters.network_errors}",
        f"rate_limit_hits  : {counters.rate_limit_hits}",
    ]
    if counters.warnings:
        lines += ["", "--- Warnings (first 10) ---"]
        lines += [f"  {w}" for w in counters.warnings[:10]]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Report writer
# ---------------------------------------------------------------------------

def write_run_report(
    run_id: str,
    started_at: str,
    member_ids: list[str],
    counters: LookupRunCounters,
    report_dir: Path = Path("./artifacts/reports"),
) -> Path:
    report = {
        "run_id": run_id,
        "started_at": started_at,
        "finished_at": datetime.now(timezone.utc).isoformat(),
        "member_ids": member_ids,
        "counters": counters.to_dict(),
    }
    report_path = report_dir / f"{run_id}.json"
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(json.dumps(report, indent=2, default=str))
    return report_path
