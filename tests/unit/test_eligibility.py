"""Unit tests for membership status and eligibility rules."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from uscf_lookup.eligibility import (
    EligibilityResult,
    MembershipStatus,
    evaluate,
    membership_status,
)
from uscf_lookup.extract import MemberRecord
from uscf_lookup.shared import SENTINEL

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)

VALID_RECORD = MemberRecord(
    player_name="Jane Doe",
    player_id="12345678",
    player_state="NY",
    regular_rating="1500",
    quick_rating="1400",
    blitz_rating="1300",
    expiration_date="2099-01-01",
)
CURRENT = MembershipStatus(expired=False, expires_in_millis=86_400_000)
EXPIRED = MembershipStatus(expired=True, expires_in_millis=-86_400_000)


# ---------------------------------------------------------------------------
# membership_status
# ---------------------------------------------------------------------------

class TestMembershipStatus:
    def test_future_date_not_expired(self):
        status = membership_status("2099-01-01", now=NOW)
        assert status.expired is False
        assert status.expires_in_millis > 0

    def test_past_date_expired(self):
        status = membership_status("2020-01-31", now=NOW)
        assert status.expired is True
        assert status.expires_in_millis < 0

    def test_exact_millis(self):
        status = membership_status("2026-06-02", now=NOW)
        assert status.expires_in_millis == 12 * 3600 * 1000

    def test_same_instant_is_not_expired(self):
        now = datetime(2026, 6, 1, tzinfo=timezone.utc)
        status = membership_status("2026-06-01", now=now)
        assert status.expired is False
        assert status.expires_in_millis == 0

    def test_us_style_date(self):
        status = membership_status("01/31/2020", now=NOW)
        assert status.expired is True

    def test_month_name_date(self):
        status = membership_status("Jan 31, 2099", now=NOW)
        assert status.expired is False

    def test_naive_now_treated_as_utc(self):
        status = membership_status("2026-06-02", now=datetime(2026, 6, 1, 12, 0))
        assert status.expires_in_millis == 12 * 3600 * 1000

    def test_sentinel_date(self):
        status = membership_status(SENTINEL, now=NOW)
        assert status == MembershipStatus(expired=False, expires_in_millis=None)

    def test_unparsable_date(self):
        status = membership_status("Life", now=NOW)
        assert status == MembershipStatus(expired=False, expires_in_millis=None)

    def test_to_dict(self):
        assert EXPIRED.to_dict() == {"expired": True, "expiresInMillis": -86_400_000}


# ---------------------------------------------------------------------------
# evaluate
# ---------------------------------------------------------------------------

class TestEvaluate:
    def test_valid_member(self):
        result = evaluate("12345678", VALID_RECORD, CURRENT)
        assert result == EligibilityResult(True, "player_valid")

    def test_not_found(self):
        record = replace(VALID_RECORD, player_id=SENTINEL)
        assert evaluate("12345678", record, CURRENT).reason == "player_not_found"

    def test_not_found_dominates_expired_and_mismatch(self):
        record = replace(VALID_RECORD, player_id=SENTINEL)
        result = evaluate("99999999", record, EXPIRED)
        assert result == EligibilityResult(False, "player_not_found")

    def test_expired_dominates_mismatch(self):
        result = evaluate("99999999", VALID_RECORD, EXPIRED)
        assert result == EligibilityResult(False, "player_expired")

    def test_mismatch(self):
        record = replace(VALID_RECORD, player_id="222")
        result = evaluate("111", record, CURRENT)
        assert result == EligibilityResult(False, "player_invalid")

    def test_mismatch_dominates_insufficient_info(self):
        record = replace(VALID_RECORD, player_id="222", player_name=SENTINEL)
        assert evaluate("111", record, CURRENT).reason == "player_invalid"

    @pytest.mark.parametrize("field", ["player_name", "regular_rating", "expiration_date"])
    def test_insufficient_info(self, field):
        record = replace(VALID_RECORD, **{field: SENTINEL})
        result = evaluate("12345678", record, CURRENT)
        assert result == EligibilityResult(False, "player_insufficient_info")

    @pytest.mark.parametrize("field", ["player_state", "quick_rating", "blitz_rating"])
    def test_non_critical_fields_never_gate(self, field):
        record = replace(VALID_RECORD, **{field: SENTINEL})
        assert evaluate("12345678", record, CURRENT).eligible is True

    def test_custom_sentinel(self):
        record = replace(VALID_RECORD, regular_rating="Not found")
        result = evaluate("12345678", record, CURRENT, sentinel="Not found")
        assert result.reason == "player_insufficient_info"

    def test_unknown_reason_rejected(self):
        with pytest.raises(ValueError):
            EligibilityResult(False, "banned")
