from __future__ import annotations


class SurfError(Exception):
    """Base class for errors raised by the scan engine and its API surface."""


class InvalidScanParameters(SurfError, ValueError):
    pass


class ScanNotFound(SurfError, KeyError):
    def __init__(self, scan_id: str, message: str = "not found"):
        super().__init__(scan_id)
        self.scan_id = scan_id
        self.message = message

    def __str__(self) -> str:
        return f"Scan {self.scan_id}: {self.message}"


class ScanNotComplete(ScanNotFound):
    def __init__(self, scan_id: str):
        super().__init__(scan_id, "not found or not complete")


class DuplicateScan(SurfError):
    pass
