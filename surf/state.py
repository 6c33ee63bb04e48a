"""Per-scan mutable state, the immutable snapshots handed to consumers, and the scan registry.

``internal`` and ``external`` are plain dicts used as insertion-ordered maps:
their iteration order is the order classifications were written, and that is
the order exported lists come out in.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .errors import DuplicateScan, ScanNotFound

logger = logging.getLogger(__name__)

INTERNAL = "internal"
EXTERNAL = "external"
FAILED = "failed"


@dataclass(frozen=True)
class ScanStatus:
    scan_id: str
    total: int
    completed: int
    in_flight: Tuple[str, ...]
    internal_count: int
    external_count: int
    failed_count: int
    is_complete: bool
    cancelled: bool


@dataclass(frozen=True)
class ScanResults:
    scan_id: str
    internal: Tuple[str, ...]
    external: Tuple[str, ...]
    combined: Tuple[str, ...]
    total_domains: int
    internal_hosts: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    external_hosts: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    failed: Tuple[str, ...] = ()
    cancelled: bool = False

    def hosts(self, kind: str) -> Tuple[str, ...]:
        if kind not in ("internal", "external", "combined"):
            raise ValueError(f"unknown result list: {kind!r}")
        return getattr(self, kind)


ProgressCallback = Callable[[ScanStatus], Any]
CompleteCallback = Callable[[ScanResults], Any]


def _noop(_: Any) -> None:
    return None


@dataclass(eq=False)
class ScanState:
    scan_id: str
    domains: Tuple[str, ...]
    timeout_ms: int
    concurrency: int
    on_progress: ProgressCallback = _noop
    on_complete: CompleteCallback = _noop
    completed: int = 0
    in_flight: List[str] = field(default_factory=list)
    internal: Dict[str, List[str]] = field(default_factory=dict)
    external: Dict[str, List[str]] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)
    cancelled: bool = False
    is_complete: bool = False
    created_at: float = field(default_factory=time.monotonic)
    finished_at: Optional[float] = None
    # set by the scanner while the scan runs
    task: Any = None
    launch_scope: Any = None

    @property
    def total(self) -> int:
        return len(self.domains)

    @property
    def accepting_writes(self) -> bool:
        return not (self.cancelled or self.is_complete)

    @property
    def task_done(self) -> bool:
        return self.task is None or self.task.done()

    def record(self, domain: str, bucket: str, ips: Optional[List[str]] = None) -> bool:
        """Commit one domain's verdict. Returns False (and writes nothing) once the scan is finished."""
        if not self.accepting_writes:
            logger.debug("scan %s: dropping late %s verdict for %s", self.scan_id, bucket, domain)
            return False
        if bucket == INTERNAL:
            self.internal[domain] = list(ips or [])
        elif bucket == EXTERNAL:
            self.external[domain] = list(ips or [])
        elif bucket == FAILED:
            self.failed.append(domain)
        else:
            raise ValueError(f"unknown bucket: {bucket!r}")
        return True

    def finish(self, *, cancelled: bool = False, now: Optional[float] = None) -> None:
        if cancelled:
            self.cancelled = True
        self.is_complete = True
        self.in_flight.clear()
        if self.finished_at is None:
            self.finished_at = time.monotonic() if now is None else now

    def status(self) -> ScanStatus:
        return ScanStatus(
            scan_id=self.scan_id,
            total=self.total,
            completed=self.completed,
            in_flight=tuple(self.in_flight),
            internal_count=len(self.internal),
            external_count=len(self.external),
            failed_count=len(self.failed),
            is_complete=self.is_complete,
            cancelled=self.cancelled,
        )

    def results(self) -> ScanResults:
        internal = tuple(self.internal)
        external = tuple(self.external)
        return ScanResults(
            scan_id=self.scan_id,
            internal=internal,
            external=external,
            combined=internal + external,
            total_domains=self.total,
            internal_hosts={d: tuple(ips) for d, ips in self.internal.items()},
            external_hosts={d: tuple(ips) for d, ips in self.external.items()},
            failed=tuple(self.failed),
            cancelled=self.cancelled,
        )


class ScanRegistry:
    """Owns every ScanState by id.

    Finished scans are evicted once they have been finished for longer than
    ``ttl_s`` seconds; ``ttl_s=0`` keeps them forever. Running scans are never
    evicted.
    """

    def __init__(self, ttl_s: float = 0, clock: Callable[[], float] = time.monotonic):
        self.ttl_s = ttl_s
        self.clock = clock
        self._scans: Dict[str, ScanState] = {}

    def add(self, state: ScanState) -> None:
        self.evict_expired()
        if state.scan_id in self._scans:
            raise DuplicateScan(state.scan_id)
        self._scans[state.scan_id] = state

    def get(self, scan_id: str) -> ScanState:
        try:
            return self._scans[scan_id]
        except KeyError:
            raise ScanNotFound(scan_id) from None

    def evict_expired(self, now: Optional[float] = None) -> List[str]:
        if not self.ttl_s:
            return []
        now = self.clock() if now is None else now
        expired = [
            sid
            for sid, s in self._scans.items()
            if s.finished_at is not None and s.task_done and now - s.finished_at >= self.ttl_s
        ]
        for sid in expired:
            del self._scans[sid]
        if expired:
            logger.info("Evicted %d finished scan(s)", len(expired))
        return expired

    def __contains__(self, scan_id: object) -> bool:
        return scan_id in self._scans

    def __len__(self) -> int:
        return len(self._scans)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._scans))
