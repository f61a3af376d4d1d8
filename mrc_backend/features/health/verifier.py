"""
URL health verifier - is a recorded reference reachable, and does the store still hold it?
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from ...adapters.remote import RemoteStore
from ...config import StoreConfig
from ...shared import ErrorCode, Result, Verdict, get_logger, log_structured
from ..references import LiveReference, LiveReferenceScanner, extract_asset_id

logger = get_logger(__name__)


@dataclass(frozen=True)
class HealthVerdict:
    url: str
    accessible: bool
    status: Optional[int]
    exists_in_store: Optional[bool]
    asset_id: Optional[str]
    verdict: Verdict
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "accessible": self.accessible,
            "status": self.status,
            "exists_in_store": self.exists_in_store,
            "asset_id": self.asset_id,
            "verdict": self.verdict,
            "reason": self.reason,
        }


@dataclass
class HealthSummary:
    checked: int = 0
    healthy: int = 0
    remote_404: int = 0
    unknown: int = 0
    problems: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checked": self.checked,
            "healthy": self.healthy,
            "remote_404": self.remote_404,
            "unknown": self.unknown,
            "problems": list(self.problems),
        }


def classify_health(accessible: bool, exists_in_store: Optional[bool]) -> Verdict:
    """
    Combine the two independent observations.

    Both positive is healthy, both negative is remote-404. Any disagreement,
    or a store lookup that could not decide, is unknown.
    """
    if exists_in_store is None:
        return "unknown"
    if accessible and exists_in_store:
        return "healthy"
    if not accessible and not exists_in_store:
        return "remote-404"
    return "unknown"


class UrlHealthVerifier:
    """
    Verifies recorded reference URLs.

    An `unknown` verdict is surfaced for manual inspection only; nothing here
    ever rewrites a reference or touches the store.
    """

    def __init__(self, store: RemoteStore, config: StoreConfig, references: Optional[LiveReferenceScanner] = None):
        """
        Initialize the verifier.

        Args:
            store: Remote store used for the resource lookup
            config: Store settings (probe timeout)
            references: Scanner used by `verify_references`
        """
        self._store = store
        self._config = config
        self._references = references

    async def _probe(self, url: str) -> tuple[bool, Optional[int], str]:
        """Single bounded GET. Returns (accessible, http status, failure reason)."""
        timeout = ClientTimeout(total=float(self._config.probe_timeout))
        try:
            async with ClientSession() as session:
                async with session.get(url, timeout=timeout, allow_redirects=True) as resp:
                    status = int(resp.status)
        except asyncio.TimeoutError:
            return False, None, "timeout"
        except (ClientError, ValueError) as exc:
            return False, None, str(exc) or exc.__class__.__name__
        return 200 <= status < 400, status, "" if status < 400 else f"HTTP {status}"

    async def _lookup(self, asset_id: Optional[str]) -> tuple[Optional[bool], str]:
        if not asset_id:
            return None, "identifier not extractable from URL"
        try:
            res = await self._store.get_asset(asset_id)
        except Exception as exc:
            return None, f"store lookup raised: {exc}"
        if res.ok:
            return True, ""
        if res.code == ErrorCode.NOT_FOUND.value:
            return False, "not in store"
        return None, f"store lookup failed: {res.error}"

    async def verify(self, url: str) -> Result[HealthVerdict]:
        """
        Verify one URL.

        Returns:
            Result with a HealthVerdict; errors only for invalid input.
        """
        if not isinstance(url, str) or not url.strip():
            return Result.Err(ErrorCode.INVALID_INPUT, "url is required")
        url = url.strip()
        accessible, status, probe_reason = await self._probe(url)
        asset_id = extract_asset_id(url)
        exists, lookup_reason = await self._lookup(asset_id)
        verdict = classify_health(accessible, exists)
        reason = "; ".join(r for r in (probe_reason, lookup_reason) if r)
        if verdict != "healthy":
            logger.warning("%s: %s (%s)", verdict, url, reason or "n/a")
        return Result.Ok(
            HealthVerdict(
                url=url,
                accessible=accessible,
                status=status,
                exists_in_store=exists,
                asset_id=asset_id,
                verdict=verdict,
                reason=reason,
            )
        )

    async def verify_many(self, urls: List[str]) -> Result[List[HealthVerdict]]:
        out: List[HealthVerdict] = []
        for url in urls:
            res = await self.verify(url)
            if not res.ok or res.data is None:
                return Result.Err(res.code, res.error or "Verification failed", url=url)
            out.append(res.data)
        return Result.Ok(out)

    async def verify_references(self) -> Result[HealthSummary]:
        """
        Verify every remote-store reference across all sources, one at a time.

        Returns:
            Result with a HealthSummary; `problems` lists every non-healthy entry
            with the document it came from.
        """
        if self._references is None:
            return Result.Err(ErrorCode.SERVICE_UNAVAILABLE, "No reference scanner configured")
        scan = await self._references.scan_references()
        if not scan.ok:
            return Result.Err(scan.code, scan.error or "Reference scan failed", **scan.meta)

        summary = HealthSummary()
        refs: List[LiveReference] = [r for r in (scan.data or []) if r.kind == "remote" and r.url]
        for ref in refs:
            res = await self.verify(ref.url or "")
            summary.checked += 1
            if not res.ok or res.data is None:
                summary.unknown += 1
                problem = ref.to_dict()
                problem.update(verdict="unknown", reason=str(res.error or res.code))
                summary.problems.append(problem)
                continue
            verdict = res.data
            if verdict.verdict == "healthy":
                summary.healthy += 1
                continue
            if verdict.verdict == "remote-404":
                summary.remote_404 += 1
            else:
                summary.unknown += 1
            problem = verdict.to_dict()
            problem.update(ref.to_dict())
            problem["verdict"] = verdict.verdict
            summary.problems.append(problem)

        log_structured(
            logger,
            logging.INFO,
            "health.references",
            checked=summary.checked,
            healthy=summary.healthy,
            remote_404=summary.remote_404,
            unknown=summary.unknown,
        )
        return Result.Ok(summary)
