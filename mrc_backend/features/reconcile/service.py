"""
Reconciler - two-phase (report, then cleanup) sweep of duplicate remote assets.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ...adapters.remote import RemoteStore
from ...config import StoreConfig
from ...shared import ErrorCode, Result, get_logger, log_structured, log_success, run_id_var, timer
from ..duplicates import DuplicateGrouper
from ..inventory import RemoteInventoryScanner
from ..references import LiveReferenceScanner
from .report import ReconciliationReport

logger = get_logger(__name__)


@dataclass
class CleanupSummary:
    deleted_count: int = 0
    kept_count: int = 0
    error_count: int = 0
    not_found_count: int = 0
    skipped_count: int = 0
    failures: List[Dict[str, str]] = field(default_factory=list)
    report: Optional[ReconciliationReport] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deleted_count": self.deleted_count,
            "kept_count": self.kept_count,
            "error_count": self.error_count,
            "not_found_count": self.not_found_count,
            "skipped_count": self.skipped_count,
            "failures": list(self.failures),
        }


class Reconciler:
    """
    Orchestrates scan -> live scan -> group -> classify, then either reports
    or deletes removal candidates.

    Every run recomputes everything from scratch. Deletes are strictly serial
    with a fixed delay between calls; a failed delete is tallied and the run
    goes on.
    """

    def __init__(
        self,
        store: RemoteStore,
        inventory: RemoteInventoryScanner,
        references: LiveReferenceScanner,
        grouper: DuplicateGrouper,
        config: StoreConfig,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._store = store
        self._inventory = inventory
        self._references = references
        self._grouper = grouper
        self._config = config
        self._sleep = sleep
        self._status: Dict[str, Any] = {"stage": "idle", "run_id": "", "mode": ""}

    def get_status(self) -> Dict[str, Any]:
        return dict(self._status)

    def _set_stage(self, stage: str) -> None:
        self._status["stage"] = stage
        logger.debug("Reconcile stage -> %s", stage)

    def _begin_run(self, mode: str):
        run_id = uuid.uuid4().hex[:8]
        self._status.update({"stage": "idle", "run_id": run_id, "mode": mode})
        return run_id_var.set(run_id)

    async def _classify(self, prefix: Optional[str]) -> Result[ReconciliationReport]:
        self._set_stage("scan_remote")
        with timer("remote inventory scan", logger):
            inv_res = await self._inventory.scan(prefix)
        if not inv_res.ok:
            self._set_stage("failed")
            return Result.Err(inv_res.code or ErrorCode.SCAN_FAILED, inv_res.error or "Inventory scan failed", **inv_res.meta)
        assets = inv_res.data or []

        self._set_stage("scan_live")
        live_res = await self._references.scan_live()
        if not live_res.ok:
            self._set_stage("failed")
            return Result.Err(live_res.code or ErrorCode.SCAN_FAILED, live_res.error or "Reference scan failed", **live_res.meta)
        live = live_res.data or set()

        self._set_stage("group")
        singletons = self._grouper.singletons(assets)

        self._set_stage("classify")
        groups = self._grouper.group(assets, live)

        referenced_removals = sorted(
            c.asset.asset_id for g in groups for c in g.removal_candidates if c.asset.asset_id in live
        )
        if referenced_removals:
            logger.warning(
                "%d removal candidate(s) are still referenced by documents; deleting them breaks those references",
                len(referenced_removals),
            )

        report = ReconciliationReport(
            total_remote=len(assets),
            total_live=len(live),
            groups=groups,
            unused_singletons=[a for a in singletons if a.asset_id not in live],
            referenced_removals=referenced_removals,
            prefix=str(inv_res.meta.get("prefix") or prefix or ""),
        )
        return Result.Ok(report)

    async def report(self, prefix: Optional[str] = None) -> Result[ReconciliationReport]:
        """Read-only run. Either returns a complete report or fails as a whole."""
        token = self._begin_run("report")
        try:
            res = await self._classify(prefix)
            if not res.ok or res.data is None:
                logger.error("Report run failed: %s", res.error)
                return res
            report = res.data
            self._set_stage("report")
            log_structured(
                logger,
                logging.INFO,
                "reconcile.report",
                total_remote=report.total_remote,
                total_live=report.total_live,
                groups=len(report.groups),
                removal_candidates=report.removal_count,
                unused_singletons=len(report.unused_singletons),
            )
            self._set_stage("done")
            return Result.Ok(report)
        finally:
            run_id_var.reset(token)

    async def _delete_one(self, asset_id: str, summary: CleanupSummary) -> None:
        try:
            res = await self._store.delete_asset(asset_id)
        except Exception as exc:
            res = Result.Err(ErrorCode.DELETE_FAILED, str(exc))
        if res.ok:
            summary.deleted_count += 1
            if res.data == "not_found":
                summary.not_found_count += 1
                logger.info("Already gone: %s", asset_id)
            else:
                logger.info("Deleted: %s", asset_id)
            return
        summary.error_count += 1
        summary.failures.append({"asset_id": asset_id, "error": str(res.error or res.code)})
        logger.warning("Delete failed for %s: %s", asset_id, res.error)

    async def cleanup(self, prefix: Optional[str] = None) -> Result[CleanupSummary]:
        """
        Destructive run: delete every removal candidate, one at a time.

        Unused singletons are never deleted. A scan failure aborts before any
        delete is issued; per-asset failures only increase `error_count`.
        """
        token = self._begin_run("cleanup")
        try:
            res = await self._classify(prefix)
            if not res.ok or res.data is None:
                logger.error("Cleanup aborted before any delete: %s", res.error)
                return Result.Err(res.code, res.error or "Classification failed", **res.meta)
            report = res.data

            self._set_stage("clean")
            protected = {g.retain.asset_id for g in report.groups}
            summary = CleanupSummary(kept_count=len(report.groups), report=report)
            delay = max(0.0, float(self._config.delete_delay))
            issued = 0
            for group in report.groups:
                for candidate in group.removal_candidates:
                    asset_id = candidate.asset.asset_id
                    if asset_id in protected:
                        summary.skipped_count += 1
                        logger.error("Refusing to delete retained asset %s", asset_id)
                        continue
                    if issued and delay:
                        await self._sleep(delay)
                    logger.info("Removing %s (%s, group %s)", asset_id, candidate.reason, group.logical_key)
                    await self._delete_one(asset_id, summary)
                    issued += 1

            if report.unused_singletons:
                logger.warning(
                    "%d unused singleton(s) left in place for manual review", len(report.unused_singletons)
                )
            log_structured(logger, logging.INFO, "reconcile.cleanup", **summary.to_dict())
            if summary.error_count or summary.skipped_count:
                logger.warning(
                    "Cleanup finished with %d error(s): deleted=%d kept=%d skipped=%d",
                    summary.error_count,
                    summary.deleted_count,
                    summary.kept_count,
                    summary.skipped_count,
                )
            else:
                log_success(logger, f"Cleanup finished: deleted={summary.deleted_count} kept={summary.kept_count}")
            self._set_stage("done")
            return Result.Ok(summary)
        finally:
            run_id_var.reset(token)
