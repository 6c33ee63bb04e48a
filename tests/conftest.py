"""Shared fakes for scan engine tests."""

from typing import Dict, Iterable, List, Optional, Union

import anyio
import pytest

from surf.prober import ProbeResult
from surf.scanner import Scanner
from surf.state import ScanRegistry


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeProber:
    """Reports the configured domains reachable; everything else fails like a refused connection."""

    def __init__(
        self,
        reachable: Iterable[str] = (),
        delays: Optional[Dict[str, float]] = None,
        gates: Optional[Dict[str, anyio.Event]] = None,
    ):
        self.reachable = set(reachable)
        self.delays = delays or {}
        self.gates = gates or {}
        self.calls: List[str] = []

    async def probe(self, domain: str, timeout_ms: int) -> ProbeResult:
        self.calls.append(domain)
        gate = self.gates.get(domain)
        if gate is not None:
            await gate.wait()
        delay = self.delays.get(domain, 0)
        if delay:
            await anyio.sleep(delay)
        if domain in self.reachable:
            return ProbeResult(reachable=True, scheme="https")
        return ProbeResult(reachable=False, error="https: ConnectError: refused")


class FakeResolver:
    def __init__(self, table: Optional[Dict[str, Union[List[str], Exception]]] = None):
        self.table = table or {}
        self.calls: List[str] = []

    async def resolve(self, domain: str) -> List[str]:
        self.calls.append(domain)
        value = self.table.get(domain, [])
        if isinstance(value, Exception):
            raise value
        return list(value)


class Recorder:
    """Collects progress snapshots and completion results."""

    def __init__(self):
        self.progress = []
        self.completions = []

    def on_progress(self, status):
        self.progress.append(status)

    def on_complete(self, results):
        self.completions.append(results)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_scanner():
    def _make(prober=None, resolver=None, **kwargs):
        return Scanner(
            prober or FakeProber(),
            resolver or FakeResolver(),
            registry=kwargs.pop("registry", ScanRegistry()),
            **kwargs,
        )

    return _make
