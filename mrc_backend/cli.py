"""
Command line entry point: report, cleanup, verify, migrate, status.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import CLEANUP_REQUIRE_CONFIRM
from .deps import build_services
from .features.health import migration_status
from .features.reconcile import render_report_lines
from .features.references import ALL_SOURCES, source_by_name
from .shared import ErrorCode, sanitize_error_message

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mrc",
        description="Reconcile an append-only remote media store with the references held in the document database.",
    )
    p.add_argument("--db", type=str, default=None, help="Document database path (default: MRC_DB_PATH)")
    sub = p.add_subparsers(dest="command", required=True)

    rep = sub.add_parser("report", help="Read-only duplicate report")
    rep.add_argument("--prefix", type=str, default=None, help="Folder prefix to scan (default: root folder)")
    rep.add_argument("--output", type=str, default="", help="Also write the report as JSON to this file")

    cln = sub.add_parser("cleanup", help="Delete removal candidates (destructive)")
    cln.add_argument("--prefix", type=str, default=None, help="Folder prefix to scan (default: root folder)")
    cln.add_argument("--yes", action="store_true", help="Confirm deletion")

    ver = sub.add_parser("verify", help="Check reference URLs against HTTP and the store")
    ver.add_argument("urls", nargs="*", help="URLs to check (default: every remote reference)")

    mig = sub.add_parser("migrate", help="Upload embedded and local references to the store")
    mig.add_argument(
        "--source",
        type=str,
        default="",
        choices=[""] + [s.name for s in ALL_SOURCES],
        help="Only migrate this source",
    )

    sub.add_parser("status", help="Count reference kinds per source")
    return p


def _emit(lines: List[str]) -> None:
    for line in lines:
        print(line)


def _emit_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


async def _cmd_report(services: dict, args: argparse.Namespace) -> int:
    res = await services["reconciler"].report(args.prefix)
    if not res.ok or res.data is None:
        print(f"Report failed [{res.code}]: {res.error}", file=sys.stderr)
        return EXIT_FAILED
    _emit(render_report_lines(res.data))
    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(res.data.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        print(f"Report written to {out}")
    return EXIT_OK


async def _cmd_cleanup(services: dict, args: argparse.Namespace) -> int:
    if CLEANUP_REQUIRE_CONFIRM and not args.yes:
        print("Cleanup deletes remote assets. Run `report` first, then re-run with --yes.", file=sys.stderr)
        return EXIT_FAILED
    res = await services["reconciler"].cleanup(args.prefix)
    if not res.ok or res.data is None:
        print(f"Cleanup aborted [{res.code}]: {res.error}", file=sys.stderr)
        return EXIT_FAILED
    summary = res.data
    _emit_json(summary.to_dict())
    return EXIT_FAILED if summary.error_count or summary.skipped_count else EXIT_OK


async def _cmd_verify(services: dict, args: argparse.Namespace) -> int:
    verifier = services["verifier"]
    if args.urls:
        res = await verifier.verify_many(args.urls)
        if not res.ok:
            print(f"Verification failed [{res.code}]: {res.error}", file=sys.stderr)
            return EXIT_FAILED
        verdicts = res.data or []
        _emit_json({"results": [v.to_dict() for v in verdicts]})
        return EXIT_OK if all(v.verdict == "healthy" for v in verdicts) else EXIT_FAILED
    res = await verifier.verify_references()
    if not res.ok or res.data is None:
        print(f"Verification failed [{res.code}]: {res.error}", file=sys.stderr)
        return EXIT_FAILED
    _emit_json(res.data.to_dict())
    return EXIT_OK if not res.data.problems else EXIT_FAILED


async def _cmd_migrate(services: dict, args: argparse.Namespace) -> int:
    migrator = services["migrator"]
    source = source_by_name(args.source) if args.source else None
    res = await migrator.migrate_all([source] if source else None)
    if not res.ok:
        print(f"Migration stopped [{res.code}]: {res.error}", file=sys.stderr)
        return EXIT_FAILED
    summaries = res.data or []
    _emit_json({"sources": [s.to_dict() for s in summaries]})
    return EXIT_FAILED if any(s.failed for s in summaries) else EXIT_OK


async def _cmd_status(services: dict, args: argparse.Namespace) -> int:
    res = await services["references"].scan_references()
    if not res.ok:
        print(f"Status failed [{res.code}]: {res.error}", file=sys.stderr)
        return EXIT_FAILED
    _emit_json(migration_status(res.data or []))
    return EXIT_OK


_COMMANDS = {
    "report": _cmd_report,
    "cleanup": _cmd_cleanup,
    "verify": _cmd_verify,
    "migrate": _cmd_migrate,
    "status": _cmd_status,
}


async def _run(args: argparse.Namespace) -> int:
    svc_res = await build_services(args.db)
    if not svc_res.ok or svc_res.data is None:
        print(f"[mrc] {svc_res.error}", file=sys.stderr)
        return EXIT_CONFIG if svc_res.code == ErrorCode.CONFIG_MISSING.value else EXIT_FAILED
    services = svc_res.data
    try:
        return await _COMMANDS[args.command](services, args)
    finally:
        await services["db"].aclose()


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        print("[mrc] Interrupted", file=sys.stderr)
        return EXIT_FAILED
    except OSError as exc:
        print(f"[mrc] {sanitize_error_message(exc, 'I/O error')}", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
