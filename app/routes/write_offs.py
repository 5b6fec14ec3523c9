from __future__ import annotations

import hmac
import logging
import os

import click
from flask import Blueprint, abort, current_app, jsonify, request
from flask.cli import with_appcontext

from services.config_bridge import where_cfg
from services.write_offs.runner import build_monitor

write_offs_bp = Blueprint("write_offs", __name__, url_prefix="/tools/write_offs")

logger = logging.getLogger(__name__)


def _monitor_factory():
    # tests swap this via app.extensions
    return current_app.extensions.get("write_off_monitor_factory", build_monitor)


# missing spreadsheet id, unreadable config.json, or no service-account file
_SETUP_ERRORS = (RuntimeError, FileNotFoundError)


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _check_trigger_token() -> None:
    expected = os.getenv("WRITE_OFFS_TRIGGER_TOKEN")
    if not expected:
        return
    supplied = request.headers.get("X-Trigger-Token", "")
    if not hmac.compare_digest(supplied.encode(), expected.encode()):
        abort(403)


@write_offs_bp.post("/check")
def check():
    """Run one write-off check. ?dry_run=1 classifies and logs without dispatching or painting."""
    _check_trigger_token()
    dry_run = _truthy(request.args.get("dry_run"))
    try:
        monitor = _monitor_factory()(dispatch=not dry_run, paint=not dry_run)
    except _SETUP_ERRORS as exc:
        logger.error(f"Write-off monitor not configured: {exc} ({where_cfg()})")
        return jsonify({"ok": False, "error": str(exc)}), 500

    result = monitor.run()
    return jsonify({"ok": True, "dry_run": dry_run, **result.summary()}), 200


@click.command("check-write-offs")
@click.option("--no-dispatch", is_flag=True, help="Do not send events to the event sink.")
@click.option("--no-paint", is_flag=True, help="Do not colour grid cells.")
@with_appcontext
def check_write_offs_command(no_dispatch, no_paint):
    """Run one write-off check (for cron / external schedulers)."""
    try:
        monitor = _monitor_factory()(dispatch=not no_dispatch, paint=not no_paint)
    except _SETUP_ERRORS as exc:
        logger.error(f"Write-off monitor not configured: {exc} ({where_cfg()})")
        raise click.ClickException(str(exc))
    result = monitor.run()
    click.echo(
        f"{len(result.occurrences)} event(s), {len(result.payload)} unit(s), "
        f"dispatched={result.dispatched}, painted={result.painted_cells}"
    )
    for err in result.errors:
        click.echo(f"- {err}", err=True)
