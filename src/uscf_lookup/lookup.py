"""uscf_lookup.lookup

Lookup orchestration: fetch → extract → membership status → eligibility.

Processing order per member id:
  1.  Trim the requested id; blank → player_missing_id (no fetch).
  2.  Fetch the member page through the PageFetcher.
  3.  Extract the MemberRecord (never raises).
  4.  Derive MembershipStatus from the expiration date.
  5.  Evaluate eligibility against the requested id.

Retrieval failures follow settings.error_policy:
  - absorb → LookupResult(id=None, reason=error, all-sentinel data)
  - raise  → MemberLookupError chained from the cause
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from uscf_lookup.config import LookupSettings
from uscf_lookup.eligibility import (
    EligibilityResult,
    MembershipStatus,
    evaluate,
    membership_status,
)
from uscf_lookup.extract import MemberRecord, extract
from uscf_lookup.fetch import PageFetcher
from uscf_lookup.normalize import trim
from uscf_lookup.shared import (
    ERROR_POLICY_RAISE,
    REASON_ERROR,
    REASON_PLAYER_MISSING_ID,
    BatchTooLargeError,
    LookupRunCounters,
    MemberLookupError,
)

log = logging.getLogger(__name__)

_UNKNOWN_STATUS = MembershipStatus(expired=False, expires_in_millis=None)


# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LookupResult:
    id: str | None
    eligibility: EligibilityResult
    data: MemberRecord
    status: MembershipStatus = _UNKNOWN_STATUS

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "eligibility": self.eligibility.to_dict(),
            "data": self.data.to_dict(),
            "status": self.status.to_dict(),
        }


@dataclass(frozen=True)
class BatchLookupResult:
    ids: tuple[str, ...]
    members: tuple[LookupResult, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ids": list(self.ids),
            "members": [m.to_dict() for m in self.members],
        }


def _failed_result(reason: str, sentinel: str) -> LookupResult:
    return LookupResult(
        id=None,
        eligibility=EligibilityResult(False, reason),
        data=MemberRecord.absent(sentinel),
    )


# ---------------------------------------------------------------------------
# Single lookup
# ---------------------------------------------------------------------------

def lookup_member(
    member_id: str | None,
    fetcher: PageFetcher,
    settings: LookupSettings | None = None,
    now: datetime | None = None,
    counters: LookupRunCounters | None = None,
) -> LookupResult:
    settings = settings or LookupSettings()
    counters = counters if counters is not None else LookupRunCounters()
    sentinel = settings.sentinel
    counters.lookups_requested += 1

    requested_id = trim(member_id)
    if requested_id is None:
        counters.missing_ids += 1
        result = _failed_result(REASON_PLAYER_MISSING_ID, sentinel)
        _tally(counters, result)
        return result

    try:
        page = fetcher.fetch(requested_id)
        record = extract(page, sentinel=sentinel)
    except Exception as exc:
        counters.retrieval_errors += 1
        counters.warnings.append(f"lookup failed member_id={requested_id}: {exc}")
        if settings.error_policy == ERROR_POLICY_RAISE:
            raise MemberLookupError(f"lookup failed for member {requested_id}") from exc
        log.warning("Lookup failed for member_id=%s: %s", requested_id, exc)
        result = _failed_result(REASON_ERROR, sentinel)
        _tally(counters, result)
        return result

    status = membership_status(record.expiration_date, now=now, sentinel=sentinel)
    eligibility = evaluate(requested_id, record, status, sentinel=sentinel)
    log.debug("member_id=%s eligible=%s reason=%s",
              requested_id, eligibility.eligible, eligibility.reason)

    result = LookupResult(id=requested_id, eligibility=eligibility, data=record, status=status)
    _tally(counters, result)
    return result


def _tally(counters: LookupRunCounters, result: LookupResult) -> None:
    if result.eligibility.eligible:
        counters.eligible += 1
    else:
        counters.ineligible += 1
    counters.record_reason(result.eligibility.reason)


# ---------------------------------------------------------------------------
# Batch lookup
# ---------------------------------------------------------------------------

def split_member_ids(raw: str) -> list[str]:
    """Split a comma-separated memberIds value, keeping positions (blanks included)."""
    return [part.strip() for part in raw.split(",")]


def lookup_members(
    member_ids: list[str],
    fetcher: PageFetcher,
    settings: LookupSettings | None = None,
    now: datetime | None = None,
    counters: LookupRunCounters | None = None,
) -> BatchLookupResult:
    """Look up each id in caller order; members[i] answers ids[i].

    Raises:
        BatchTooLargeError: more than settings.max_batch_size ids.
        MemberLookupError: a lookup failed under the 'raise' error policy.
    """
    settings = settings or LookupSettings()
    if len(member_ids) > settings.max_batch_size:
        raise BatchTooLargeError(len(member_ids), settings.max_batch_size)

    members = [
        lookup_member(mid, fetcher, settings=settings, now=now, counters=counters)
        for mid in member_ids
    ]
    return BatchLookupResult(ids=tuple(member_ids), members=tuple(members))
