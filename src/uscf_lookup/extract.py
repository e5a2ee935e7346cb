"""uscf_lookup.extract

Field extractor for the US Chess member detail page (MbrDtlMain.php).

The page is a legacy table layout:
  - error banner      <font color=#ff0000>Could not retrieve data ...</font>
  - header            <font size=+1><b>12345678: JANE DOE</b></font>
  - rating rows       <tr><td>Regular Rating</td><td><b>1500 (12)</b></td></tr>
  - labelled cells    <td>State</td><td><b>State\\nNY</b></td>
                      <td>Expiration Dt.</td><td><b>2099-01-01</b></td>

The extractor never raises: anything it cannot locate is set to the
sentinel, and an error banner short-circuits to an all-sentinel record.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass

from bs4 import BeautifulSoup, ParserRejectedMarkup, Tag

from uscf_lookup.normalize import first_token, second_line, trim
from uscf_lookup.shared import SENTINEL

log = logging.getLogger(__name__)

ERROR_BANNER_COLORS = frozenset({"#ff0000", "ff0000", "red"})
ERROR_MARKERS = ("Error", "Could not retrieve data")

RATING_LABELS = ("Regular Rating", "Quick Rating", "Blitz Rating")
STATE_LABEL = "State"
EXPIRATION_LABEL = "Expiration Dt."

_LINE_BREAKS = re.compile(r"\s*\n\s*")

_JSON_FIELD_NAMES = {
    "player_name": "playerName",
    "player_id": "playerId",
    "player_state": "playerState",
    "regular_rating": "regularRating",
    "quick_rating": "quickRating",
    "blitz_rating": "blitzRating",
    "expiration_date": "expirationDate",
}


# ---------------------------------------------------------------------------
# MemberRecord
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MemberRecord:
    player_name: str
    player_id: str
    player_state: str
    regular_rating: str
    quick_rating: str
    blitz_rating: str
    expiration_date: str  # free-form text as published; may be unparsable

    @classmethod
    def absent(cls, sentinel: str = SENTINEL) -> MemberRecord:
        """Record with every field set to the sentinel."""
        return cls(
            player_name=sentinel,
            player_id=sentinel,
            player_state=sentinel,
            regular_rating=sentinel,
            quick_rating=sentinel,
            blitz_rating=sentinel,
            expiration_date=sentinel,
        )

    def to_dict(self) -> dict[str, str]:
        return {_JSON_FIELD_NAMES[k]: v for k, v in asdict(self).items()}


# ---------------------------------------------------------------------------
# Page structure helpers
# ---------------------------------------------------------------------------

def _has_error_banner(soup: BeautifulSoup) -> bool:
    for font in soup.find_all("font"):
        color = (font.get("color") or "").strip().lower()
        if color not in ERROR_BANNER_COLORS:
            continue
        text = font.get_text()
        if any(marker in text for marker in ERROR_MARKERS):
            return True
    return False


def _parse_header(soup: BeautifulSoup) -> tuple[str | None, str | None]:
    """Return (player_id, player_name) from the '<id>: <name>' header."""
    for font in soup.find_all("font", attrs={"size": "+1"}):
        bold = font.find("b")
        if bold is None:
            continue
        text = bold.get_text()
        if ": " not in text:
            return None, None
        player_id, player_name = text.split(": ", 1)
        return trim(player_id), trim(player_name)
    return None, None


def _bold_text(cell: Tag | None) -> str | None:
    if cell is None:
        return None
    bold = cell.find("b")
    if bold is None:
        return None
    return bold.get_text()


def _bold_lines(cell: Tag | None) -> str | None:
    """Bold text with <br> read as a line break and blank lines dropped.

    Inline markup such as <font> around the label does not start a new line.
    """
    if cell is None:
        return None
    bold = cell.find("b")
    if bold is None:
        return None
    for br in bold.find_all("br"):
        br.replace_with("\n")
    return _LINE_BREAKS.sub("\n", bold.get_text())


def _parse_rating_rows(soup: BeautifulSoup) -> dict[str, str]:
    ratings: dict[str, str] = {}
    for tr in soup.find_all("tr"):
        cells = tr.find_all("td", recursive=False)
        if len(cells) < 2:
            continue
        label = cells[0].get_text().strip()
        if label not in RATING_LABELS:
            continue
        value = first_token(_bold_text(cells[1]))
        if value:
            ratings[label] = value
    return ratings


def _find_label_cell(soup: BeautifulSoup, label: str) -> Tag | None:
    """Return the innermost <td> whose text contains label.

    Layout tables wrap the whole page in outer cells, so a cell that
    contains nested cells is never the label itself. A cell whose text is
    exactly the label is preferred over one that merely contains it.
    """
    leaves = [td for td in soup.find_all("td") if td.find("td") is None]
    for td in leaves:
        if td.get_text().strip() == label:
            return td
    for td in leaves:
        if label in td.get_text():
            return td
    return None


def _labelled_cell(soup: BeautifulSoup, label: str) -> Tag | None:
    cell = _find_label_cell(soup, label)
    if cell is None:
        return None
    return cell.find_next_sibling("td")


def _parse(page_content: str) -> BeautifulSoup | None:
    # lone surrogates cannot be encoded by the tree builder
    markup = page_content.encode("utf-8", "replace").decode("utf-8")
    try:
        return BeautifulSoup(markup, "html.parser")
    except ParserRejectedMarkup as exc:
        log.warning("Member page rejected by parser: %s", exc)
        return None


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------

def extract(page_content: str | None, sentinel: str = SENTINEL) -> MemberRecord:
    """Extract a MemberRecord from member detail page HTML.

    Never raises. Missing fields take the sentinel; a page carrying the
    red error banner yields the all-sentinel record.
    """
    if not isinstance(page_content, str):
        page_content = ""
    soup = _parse(page_content)
    if soup is None:
        return MemberRecord.absent(sentinel)

    if _has_error_banner(soup):
        log.debug("Error banner present; returning absent record")
        return MemberRecord.absent(sentinel)

    player_id, player_name = _parse_header(soup)
    ratings = _parse_rating_rows(soup)
    state = second_line(_bold_lines(_labelled_cell(soup, STATE_LABEL)))
    expiration = trim(_bold_text(_labelled_cell(soup, EXPIRATION_LABEL)))

    return MemberRecord(
        player_name=player_name or sentinel,
        player_id=player_id or sentinel,
        player_state=state or sentinel,
        regular_rating=ratings.get("Regular Rating") or sentinel,
        quick_rating=ratings.get("Quick Rating") or sentinel,
        blitz_rating=ratings.get("Blitz Rating") or sentinel,
        expiration_date=expiration or sentinel,
    )
