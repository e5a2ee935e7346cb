"""uscf_lookup.cli

CLI entrypoint for US Chess member eligibility lookups.

Usage (single member, live directory):
    python -m uscf_lookup.cli --member-id 12345678

Usage (batch, strict error policy, custom settings):
    python -m uscf_lookup.cli \\
        --member-ids 12345678,87654321 \\
        --config config/lookup.yml \\
        --error-policy raise

Usage (re-evaluate saved pages offline):
    python -m uscf_lookup.cli \\
        --query "memberIds=12345678,87654321" \\
        --html-dir artifacts/pages \\
        --report

The response body goes to stdout; progress and reports go to stderr.
Exit code is 0 for a 200 response, 1 otherwise.
"""

from __future__ import annotations

import logging
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

import click

from uscf_lookup.config import SettingsValidationError, load_settings
from uscf_lookup.fetch import FilePageFetcher, HttpPageFetcher, PageFetcher
from uscf_lookup.lookup import split_member_ids
from uscf_lookup.service import handle_query, parse_query_string
from uscf_lookup.shared import (
    ERROR_POLICY_ABSORB,
    ERROR_POLICY_RAISE,
    LookupRunCounters,
    build_lookup_report,
    write_run_report,
)


def _build_params(
    member_id: str | None,
    member_ids: str | None,
    query: str | None,
    run_id: str,
) -> dict[str, str]:
    if query is not None:
        if member_id is not None or member_ids is not None:
            click.echo(
                f"[{run_id}] FATAL: --query cannot be combined with --member-id/--member-ids",
                err=True,
            )
            sys.exit(1)
        return parse_query_string(query)
    params: dict[str, str] = {}
    if member_id is not None:
        params["memberId"] = member_id
    if member_ids is not None:
        params["memberIds"] = member_ids
    return params


@click.command()
@click.option("--member-id", default=None, help="Single member id to look up")
@click.option("--member-ids", default=None, help="Comma-separated member ids (batch)")
@click.option("--query", default=None, help="Raw query string, e.g. 'memberId=12345678'")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False), help="YAML settings file")
@click.option(
    "--error-policy",
    default=None,
    type=click.Choice([ERROR_POLICY_ABSORB, ERROR_POLICY_RAISE]),
    help="absorb: retrieval errors give reason=error; raise: fail with status 500",
)
@click.option("--html-dir", default=None, type=click.Path(file_okay=False), help="Read saved <member_id>.html pages instead of fetching")
@click.option("--timeout", default=None, type=float, help="HTTP timeout in seconds")
@click.option("--request-delay-seconds", default=None, type=float, help="Base delay between requests in seconds")
@click.option("--run-id", default=None, help="Override UUID for log correlation")
@click.option("--report/--no-report", default=False, show_default=True, help="Print a run report to stderr")
@click.option("--report-dir", default=None, type=click.Path(file_okay=False), help="Also write a JSON run report into this directory")
@click.option("-v", "--verbose", is_flag=True, default=False, help="DEBUG logging")
def main(
    member_id: str | None,
    member_ids: str | None,
    query: str | None,
    config_path: str | None,
    error_policy: str | None,
    html_dir: str | None,
    timeout: float | None,
    request_delay_seconds: float | None,
    run_id: str | None,
    report: bool,
    report_dir: str | None,
    verbose: bool,
) -> None:
    """Look up US Chess members and report eligibility as JSON."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    run_id = run_id or str(uuid.uuid4())
    started_at = datetime.now(timezone.utc).isoformat()

    params = _build_params(member_id, member_ids, query, run_id)

    try:
        settings = load_settings(Path(config_path) if config_path else None)
        settings = settings.with_overrides(
            error_policy=error_policy,
            timeout_seconds=timeout,
            request_delay_seconds=request_delay_seconds,
        )
    except SettingsValidationError as exc:
        click.echo(f"[{run_id}] FATAL: invalid settings: {exc}", err=True)
        sys.exit(1)

    counters = LookupRunCounters()
    fetcher: PageFetcher
    if html_dir:
        fetcher = FilePageFetcher(base_dir=Path(html_dir), counters=counters)
    else:
        fetcher = HttpPageFetcher(settings=settings, counters=counters)

    click.echo(f"[{run_id}] Starting lookup (policy={settings.error_policy})", err=True)
    response = handle_query(params, fetcher, settings=settings, counters=counters)
    click.echo(response.body)

    if report:
        click.echo(build_lookup_report(counters), err=True)
    if report_dir:
        requested: list[str] = []
        if params.get("memberId"):
            requested.append(params["memberId"])
        if params.get("memberIds"):
            requested.extend(split_member_ids(params["memberIds"]))
        report_path = write_run_report(
            run_id, started_at, requested, counters, report_dir=Path(report_dir)
        )
        click.echo(f"[{run_id}] Run report: {report_path}", err=True)

    if not response.ok:
        click.echo(f"[{run_id}] Lookup finished with status {response.status}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
