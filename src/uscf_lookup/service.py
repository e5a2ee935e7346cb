"""uscf_lookup.service

Query-parameter boundary for member lookups.

Accepts exactly one of:
  memberId   : a single member id
  memberIds  : comma-separated ids, at most settings.max_batch_size

and maps the outcome to an HTTP-style (status, body, content_type):
  200  application/json  pretty-printed LookupResult / BatchLookupResult
  400  text/plain        invalid caller input
  500  text/plain        lookup failed under the 'raise' error policy
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import parse_qsl

from uscf_lookup.config import LookupSettings
from uscf_lookup.fetch import PageFetcher
from uscf_lookup.lookup import lookup_member, lookup_members, split_member_ids
from uscf_lookup.shared import BatchTooLargeError, LookupRunCounters, MemberLookupError

log = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain"

MSG_NO_PARAMS = "No memberId or memberIds query parameter provided"
MSG_BOTH_PARAMS = (
    "Both memberId and memberIds query parameters provided. Please provide only one."
)
MSG_LOOKUP_FAILED = "Member lookup failed"


@dataclass(frozen=True)
class ServiceResponse:
    status: int
    body: str
    content_type: str

    @property
    def ok(self) -> bool:
        return self.status == 200


def _text(status: int, message: str) -> ServiceResponse:
    return ServiceResponse(status=status, body=message, content_type=TEXT_CONTENT_TYPE)


def parse_query_string(query: str) -> dict[str, str]:
    """Parse a raw query string; a repeated key keeps its last value."""
    return dict(parse_qsl(query.lstrip("?"), keep_blank_values=True))


def handle_query(
    params: Mapping[str, str],
    fetcher: PageFetcher,
    settings: LookupSettings | None = None,
    now: datetime | None = None,
    counters: LookupRunCounters | None = None,
) -> ServiceResponse:
    settings = settings or LookupSettings()
    member_id = params.get("memberId") or None
    member_ids = params.get("memberIds") or None

    if member_id is None and member_ids is None:
        return _text(400, MSG_NO_PARAMS)
    if member_id is not None and member_ids is not None:
        return _text(400, MSG_BOTH_PARAMS)

    try:
        if member_id is not None:
            result = lookup_member(
                member_id, fetcher, settings=settings, now=now, counters=counters
            )
        else:
            result = lookup_members(
                split_member_ids(member_ids), fetcher,
                settings=settings, now=now, counters=counters,
            )
    except BatchTooLargeError as exc:
        return _text(400, str(exc))
    except MemberLookupError:
        log.exception("Member lookup failed")
        return _text(500, MSG_LOOKUP_FAILED)

    body = json.dumps(result.to_dict(), indent=2)
    return ServiceResponse(status=200, body=body, content_type=JSON_CONTENT_TYPE)
