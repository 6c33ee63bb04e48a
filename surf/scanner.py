from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable, Optional

import anyio

from .classify import is_private_ip
from .prober import DomainProber
from .resolver import Resolver
from .state import (
    EXTERNAL,
    FAILED,
    INTERNAL,
    CompleteCallback,
    ProgressCallback,
    ScanRegistry,
    ScanResults,
    ScanState,
    ScanStatus,
)
from .errors import ScanNotComplete, ScanNotFound

logger = logging.getLogger(__name__)


class Scanner:
    """
    Orchestrates scans:
      - probe every domain over HTTP(S), at most ``concurrency`` at a time
      - resolve the ones that do not answer
      - file each resolvable candidate as internal (any private address) or
        external (all public), and unresolvable ones as failed

    Each scan runs as a background task on the current event loop. Progress is
    pushed to ``on_progress`` on every task start and settle; ``on_complete``
    fires exactly once, either when every task has settled or as soon as the
    scan is cancelled.

    Cancellation is cooperative. It is checked before a task starts, before the
    probe, before the resolve and at commit time. The commit check and the
    write happen in one synchronous step, so nothing is written after the
    cancellation snapshot is taken. Probes and lookups already in progress run
    to completion and their verdicts are dropped.
    """

    def __init__(
        self,
        prober: DomainProber,
        resolver: Resolver,
        is_private: Callable[[str], bool] = is_private_ip,
        registry: Optional[ScanRegistry] = None,
    ):
        self.prober = prober
        self.resolver = resolver
        self.is_private = is_private
        self.registry = registry if registry is not None else ScanRegistry()

    def start(
        self,
        scan_id: str,
        domains: Iterable[str],
        timeout_ms: int,
        concurrency: int,
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
    ) -> None:
        """Register a scan and begin processing it. Must be called from inside a running event loop."""
        state = ScanState(
            scan_id=scan_id,
            domains=tuple(domains),
            timeout_ms=timeout_ms,
            concurrency=concurrency,
        )
        if on_progress is not None:
            state.on_progress = on_progress
        if on_complete is not None:
            state.on_complete = on_complete
        self.registry.add(state)
        logger.info(
            "Scan %s started: %d domains, timeout=%dms, concurrency=%d",
            scan_id, state.total, timeout_ms, concurrency,
        )
        state.task = asyncio.get_running_loop().create_task(self._run(state), name=f"surf-scan-{scan_id}")

    def cancel(self, scan_id: str) -> bool:
        try:
            state = self.registry.get(scan_id)
        except ScanNotFound:
            logger.info("cancel: scan %s not found", scan_id)
            return False
        if state.cancelled:
            logger.info("cancel: scan %s already cancelled", scan_id)
            return False
        if state.is_complete:
            logger.info("cancel: scan %s already completed", scan_id)
            return False

        logger.info("Cancelling scan %s (%d/%d completed)", scan_id, state.completed, state.total)
        state.finish(cancelled=True)
        if state.launch_scope is not None:
            state.launch_scope.cancel()
        results = state.results()
        logger.info(
            "Scan %s cancelled: %d internal, %d external, %d total (partial results)",
            scan_id, len(results.internal), len(results.external), len(results.combined),
        )
        self._notify(state, state.on_complete, results)
        return True

    def get_status(self, scan_id: str) -> ScanStatus:
        return self.registry.get(scan_id).status()

    def get_results(self, scan_id: str) -> ScanResults:
        state = self.registry.get(scan_id)
        if not state.is_complete:
            raise ScanNotComplete(scan_id)
        return state.results()

    async def join(self, scan_id: str) -> None:
        """Wait until every task launched for ``scan_id`` has settled, including after a cancel."""
        state = self.registry.get(scan_id)
        if state.task is not None:
            await state.task

    # ----------------- internals -----------------

    async def _run(self, state: ScanState) -> None:
        slots = anyio.Semaphore(state.concurrency)
        launched = 0
        async with anyio.create_task_group() as tg:
            with anyio.CancelScope() as scope:
                state.launch_scope = scope
                for domain in state.domains:
                    if state.cancelled:
                        break
                    await slots.acquire()
                    if state.cancelled:
                        slots.release()
                        break
                    tg.start_soon(self._process, state, domain, slots, name=f"surf-{domain}")
                    launched += 1
            state.launch_scope = None
            if state.cancelled:
                logger.info("Scan %s: stopping domain queue (scan cancelled)", state.scan_id)
            logger.debug("Scan %s: %d domain tasks started, waiting for completion", state.scan_id, launched)

        if state.cancelled:
            logger.info("Scan %s was cancelled; %d launched task(s) drained", state.scan_id, launched)
            return

        state.finish()
        results = state.results()
        logger.info(
            "Scan %s completed: %d internal, %d external, %d total, %d failed",
            state.scan_id, len(results.internal), len(results.external),
            len(results.combined), len(results.failed),
        )
        self._notify(state, state.on_complete, results)

    async def _process(self, state: ScanState, domain: str, slots: anyio.Semaphore) -> None:
        try:
            if state.cancelled:
                logger.debug("Skipping %s (scan cancelled)", domain)
                return
            state.in_flight.append(domain)
            self._notify(state, state.on_progress, state.status())
            try:
                await self._classify(state, domain)
            except Exception:
                logger.exception("Scan %s: unexpected error processing %s, recording as failed", state.scan_id, domain)
                state.record(domain, FAILED)
            finally:
                if domain in state.in_flight:
                    state.in_flight.remove(domain)
                if not state.cancelled:
                    state.completed += 1
                    if state.completed % 10 == 0 or state.completed == state.total:
                        logger.info(
                            "Scan %s: progress %d/%d (%d%%)",
                            state.scan_id, state.completed, state.total,
                            round(state.completed / state.total * 100),
                        )
                self._notify(state, state.on_progress, state.status())
        finally:
            slots.release()

    async def _classify(self, state: ScanState, domain: str) -> Optional[str]:
        """Probe, resolve and commit one domain. Returns the bucket written, if any."""
        if state.cancelled:
            return None
        probe = await self.prober.probe(domain, state.timeout_ms)
        if probe.reachable:
            logger.debug("%s is reachable via %s, not a candidate", domain, probe.scheme)
            return None

        if state.cancelled:
            return None
        logger.debug("%s probe failed (%s), resolving", domain, probe.error)
        ips = await self.resolver.resolve(domain)
        if not ips:
            logger.debug("%s did not resolve, adding to failed hosts", domain)
            return FAILED if state.record(domain, FAILED) else None

        bucket = INTERNAL if any(self.is_private(ip) for ip in ips) else EXTERNAL
        logger.debug("%s resolved to %s, classified %s", domain, ", ".join(ips), bucket.upper())
        return bucket if state.record(domain, bucket, ips) else None

    @staticmethod
    def _notify(state: ScanState, callback: Callable, payload: object) -> None:
        try:
            callback(payload)
        except Exception:
            logger.exception("Scan %s: callback %r failed", state.scan_id, callback)
