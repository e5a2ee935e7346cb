"""Member detail page HTML builders shared by unit and integration tests."""

from __future__ import annotations


def member_page(
    member_id: str = "12345678",
    name: str = "JANE DOE",
    regular: str | None = "1500 (12)",
    quick: str | None = "1400 (5)",
    blitz: str | None = "1300",
    state: str | None = "State\nNY",
    expiration: str | None = "2099-01-01",
    header: str | None = None,
) -> str:
    """Return a member detail page laid out like MbrDtlMain.php."""
    if header is None:
        header = f"{member_id}: {name}"
    rows = [
        f'<tr><td colspan="2"><font size="+1"><b>{header}</b></font></td></tr>',
    ]
    for label, value in (
        ("Regular Rating", regular),
        ("Quick Rating", quick),
        ("Blitz Rating", blitz),
        ("State", state),
        ("Expiration Dt.", expiration),
    ):
        if value is not None:
            rows.append(f"<tr><td>{label}</td><td><b>{value}</b></td></tr>")
    body = "\n".join(rows)
    return (
        "<html><head><title>USCF MSA - Member Details</title></head><body>\n"
        '<table bgcolor="FFFFFF" width="764"><tr><td>\n'
        '<table cellspacing="9">\n'
        f"{body}\n"
        "</table>\n"
        "</td></tr></table>\n"
        "</body></html>"
    )


def error_page(message: str = "Could not retrieve data for member 99999999") -> str:
    return (
        "<html><body>\n"
        f'<font color="#ff0000"><b>{message}</b></font>\n'
        "</body></html>"
    )
