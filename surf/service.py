"""API surface over :class:`~surf.scanner.Scanner`.

Validates requests, assigns scan ids, translates scanner callbacks into
``scan-progress`` / ``scan-complete`` events for whatever transport the caller
wires in, and renders result lists for download or export.
"""

from __future__ import annotations

import logging
import random
import string
import time
from pathlib import Path
from typing import Any, Callable, Dict, Sequence

from .errors import InvalidScanParameters
from .export import format_hosts, write_export
from .scanner import Scanner
from .state import ScanResults, ScanStatus

logger = logging.getLogger(__name__)

EventSink = Callable[[str, Dict[str, Any]], Any]

SCAN_PROGRESS = "scan-progress"
SCAN_COMPLETE = "scan-complete"

_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_scan_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"scan-{int(time.time() * 1000)}-{suffix}"


def progress_event(status: ScanStatus) -> Dict[str, Any]:
    return {
        "scanId": status.scan_id,
        "current": status.completed,
        "total": status.total,
        "currentDomains": list(status.in_flight),
    }


def complete_event(results: ScanResults) -> Dict[str, Any]:
    return {
        "scanId": results.scan_id,
        "results": {
            "internalCount": len(results.internal),
            "externalCount": len(results.external),
            "combinedCount": len(results.combined),
            "totalDomains": results.total_domains,
        },
    }


def _discard(name: str, payload: Dict[str, Any]) -> None:
    return None


class ScanService:
    def __init__(self, scanner: Scanner, emit: EventSink = _discard):
        self.scanner = scanner
        self.emit = emit

    def start_scan(self, domains: Sequence[str], timeout_ms: int, concurrency: int) -> str:
        logger.info(
            "start_scan called with %d domains, timeout=%sms, concurrency=%s",
            len(domains), timeout_ms, concurrency,
        )
        if len(domains) == 0:
            raise InvalidScanParameters("No domains provided")
        if timeout_ms <= 0:
            raise InvalidScanParameters("Timeout must be greater than 0")
        if concurrency <= 0:
            raise InvalidScanParameters("Concurrency must be greater than 0")

        scan_id = new_scan_id()
        self.scanner.start(
            scan_id,
            list(domains),
            timeout_ms,
            concurrency,
            on_progress=lambda status: self.emit(SCAN_PROGRESS, progress_event(status)),
            on_complete=self._completed,
        )
        return scan_id

    def _completed(self, results: ScanResults) -> None:
        logger.info(
            "Scan %s completed: %d internal, %d external, %d total",
            results.scan_id, len(results.internal), len(results.external), len(results.combined),
        )
        self.emit(SCAN_COMPLETE, complete_event(results))

    def get_scan_status(self, scan_id: str) -> ScanStatus:
        return self.scanner.get_status(scan_id)

    def get_scan_results(self, scan_id: str) -> ScanResults:
        return self.scanner.get_results(scan_id)

    def cancel_scan(self, scan_id: str) -> bool:
        return self.scanner.cancel(scan_id)

    def download(self, scan_id: str, kind: str, prepend_protocol: bool = False) -> str:
        return format_hosts(self.get_scan_results(scan_id).hosts(kind), prepend_protocol)

    def export_to_file(self, scan_id: str, kind: str, prepend_protocol: bool, outdir: str | Path) -> Path:
        hosts = self.get_scan_results(scan_id).hosts(kind)
        path = write_export(outdir, kind, hosts, prepend_protocol)
        logger.info(
            "Wrote %s list for scan %s: %s (%d %s)",
            kind, scan_id, path.name,
            len(hosts) * 2 if prepend_protocol else len(hosts),
            "URLs" if prepend_protocol else "hosts",
        )
        return path
