"""uscf_lookup.eligibility

Membership status derivation and the eligibility rules.

Rules are evaluated in strict priority order; the first match wins:
  1. player id is the sentinel          → player_not_found
  2. membership expired                 → player_expired
  3. requested id != scraped player id  → player_invalid
  4. name / regular rating / expiration
     date is the sentinel               → player_insufficient_info
  5. otherwise                          → player_valid

State, quick rating and blitz rating never gate eligibility.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from uscf_lookup.extract import MemberRecord
from uscf_lookup.normalize import parse_expiration_date
from uscf_lookup.shared import (
    REASON_PLAYER_EXPIRED,
    REASON_PLAYER_INSUFFICIENT_INFO,
    REASON_PLAYER_INVALID,
    REASON_PLAYER_NOT_FOUND,
    REASON_PLAYER_VALID,
    SENTINEL,
    VALID_REASONS,
)


@dataclass(frozen=True)
class MembershipStatus:
    expired: bool
    expires_in_millis: int | None

    def to_dict(self) -> dict[str, Any]:
        return {"expired": self.expired, "expiresInMillis": self.expires_in_millis}


@dataclass(frozen=True)
class EligibilityResult:
    eligible: bool
    reason: str

    def __post_init__(self) -> None:
        if self.reason not in VALID_REASONS:
            raise ValueError(f"unknown eligibility reason: {self.reason!r}")

    def to_dict(self) -> dict[str, Any]:
        return {"eligible": self.eligible, "reason": self.reason}


def membership_status(
    expiration_date: str,
    now: datetime | None = None,
    sentinel: str = SENTINEL,
) -> MembershipStatus:
    """Derive expiry from the published expiration date.

    A sentinel or unparsable date is treated as not expired with an
    unknown remaining time.
    """
    if expiration_date == sentinel:
        return MembershipStatus(expired=False, expires_in_millis=None)
    expires_at = parse_expiration_date(expiration_date)
    if expires_at is None:
        return MembershipStatus(expired=False, expires_in_millis=None)
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    delta = expires_at - now
    return MembershipStatus(
        expired=expires_at < now,
        expires_in_millis=int(delta.total_seconds() * 1000),
    )


def evaluate(
    requested_id: str,
    record: MemberRecord,
    status: MembershipStatus,
    sentinel: str = SENTINEL,
) -> EligibilityResult:
    if record.player_id == sentinel:
        return EligibilityResult(False, REASON_PLAYER_NOT_FOUND)
    if status.expired:
        return EligibilityResult(False, REASON_PLAYER_EXPIRED)
    if requested_id != record.player_id:
        return EligibilityResult(False, REASON_PLAYER_INVALID)
    if sentinel in (record.player_name, record.regular_rating, record.expiration_date):
        return EligibilityResult(False, REASON_PLAYER_INSUFFICIENT_INFO)
    return EligibilityResult(True, REASON_PLAYER_VALID)
