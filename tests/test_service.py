"""Tests for the scan service API surface."""

import re

import anyio
import pytest

from surf.errors import InvalidScanParameters, ScanNotComplete, ScanNotFound
from surf.service import SCAN_COMPLETE, SCAN_PROGRESS, ScanService, new_scan_id

from conftest import FakeProber, FakeResolver

pytestmark = pytest.mark.anyio


@pytest.fixture
def events():
    return []


@pytest.fixture
def service(make_scanner, events):
    resolver = FakeResolver({
        "intra.example": ["10.1.2.3"],
        "pub.example": ["93.184.216.34"],
    })
    scanner = make_scanner(FakeProber(reachable=["up.example"]), resolver)
    return ScanService(scanner, lambda name, payload: events.append((name, payload)))


def test_scan_id_format():
    assert re.fullmatch(r"scan-\d{13,}-[0-9a-z]{7}", new_scan_id())
    assert new_scan_id() != new_scan_id()


@pytest.mark.parametrize("domains,timeout,concurrency,message", [
    ([], 1000, 5, "No domains"),
    (["a.example"], 0, 5, "Timeout"),
    (["a.example"], -1, 5, "Timeout"),
    (["a.example"], 1000, 0, "Concurrency"),
])
async def test_invalid_parameters_create_no_state(service, domains, timeout, concurrency, message):
    with pytest.raises(InvalidScanParameters, match=message):
        service.start_scan(domains, timeout, concurrency)
    assert len(service.scanner.registry) == 0


async def test_events_and_results(service, events):
    domains = ["up.example", "intra.example", "pub.example", "nowhere.invalid"]
    scan_id = service.start_scan(domains, 1000, 2)
    with anyio.fail_after(5):
        await service.scanner.join(scan_id)

    progress = [p for name, p in events if name == SCAN_PROGRESS]
    complete = [p for name, p in events if name == SCAN_COMPLETE]
    assert all(p["scanId"] == scan_id and p["total"] == 4 for p in progress)
    assert progress[-1]["current"] == 4
    assert progress[-1]["currentDomains"] == []
    assert complete == [{
        "scanId": scan_id,
        "results": {"internalCount": 1, "externalCount": 1, "combinedCount": 2, "totalDomains": 4},
    }]

    status = service.get_scan_status(scan_id)
    assert (status.internal_count, status.external_count, status.failed_count) == (1, 1, 1)
    results = service.get_scan_results(scan_id)
    assert results.combined == ("intra.example", "pub.example")


async def test_cancel_emits_single_completion(make_scanner, events):
    gate = anyio.Event()
    scanner = make_scanner(FakeProber(gates={"a.example": gate}))
    service = ScanService(scanner, lambda name, payload: events.append((name, payload)))
    scan_id = service.start_scan(["a.example", "b.example"], 1000, 1)
    await anyio.sleep(0.01)

    assert service.cancel_scan(scan_id) is True
    assert service.cancel_scan(scan_id) is False
    gate.set()
    with anyio.fail_after(5):
        await scanner.join(scan_id)

    assert [name for name, _ in events].count(SCAN_COMPLETE) == 1


async def test_unknown_and_incomplete_scans(make_scanner):
    gate = anyio.Event()
    service = ScanService(make_scanner(FakeProber(gates={"a.example": gate})))

    with pytest.raises(ScanNotFound):
        service.get_scan_status("scan-0-missing")
    with pytest.raises(ScanNotFound):
        service.get_scan_results("scan-0-missing")
    assert service.cancel_scan("scan-0-missing") is False

    scan_id = service.start_scan(["a.example"], 1000, 1)
    with pytest.raises(ScanNotComplete):
        service.download(scan_id, "internal")
    gate.set()
    with anyio.fail_after(5):
        await service.scanner.join(scan_id)


async def test_download_and_export(service, tmp_path):
    scan_id = service.start_scan(["intra.example", "pub.example"], 1000, 2)
    with anyio.fail_after(5):
        await service.scanner.join(scan_id)

    assert service.download(scan_id, "internal") == "intra.example"
    assert service.download(scan_id, "external", prepend_protocol=True) == "https://pub.example\nhttp://pub.example"
    assert service.download(scan_id, "combined").splitlines() == ["intra.example", "pub.example"]

    path = service.export_to_file(scan_id, "combined", True, tmp_path)
    assert path.parent == tmp_path
    assert re.fullmatch(r"surf-combined-[0-9T-]+Z\.txt", path.name)
    assert len(path.read_text().splitlines()) == 4
