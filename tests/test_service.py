"""Tests for the end-to-end scan service and CLI."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from linkscan import main as cli
from linkscan.config import Config
from linkscan.scanner.errors import (
    AnalysisFailedError,
    InvalidInputError,
    ScanCancelledError,
    UnsupportedOperationError,
)
from linkscan.scanner.models import PollOptions, Verdict
from linkscan.scanner.service import ScanService

COMPLETED = {
    "data": {
        "attributes": {
            "status": "completed",
            "stats": {"malicious": 2, "suspicious": 0, "harmless": 60, "undetected": 8},
            "results": {
                "Alpha": {"category": "malicious", "result": "phishing"},
                "Beta": {"category": "harmless", "result": "clean"},
            },
        }
    }
}


class _FakeTransport:
    def __init__(self, statuses: list[dict], submit_payload: dict | None = None):
        self._statuses = list(statuses)
        self._submit_payload = submit_payload or {"data": {"id": "u-77"}}
        self.calls: list[tuple[str, str]] = []

    async def post_json(self, path: str, payload: dict) -> dict:
        self.calls.append(("POST", path))
        return self._submit_payload

    async def get_json(self, path: str) -> dict:
        self.calls.append(("GET", path))
        return self._statuses.pop(0) if len(self._statuses) > 1 else self._statuses[0]


class _RecordingSleep:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.mark.asyncio
async def test_scan_submits_waits_then_polls():
    transport = _FakeTransport([{"data": {"attributes": {"status": "queued"}}}, COMPLETED])
    sleep = _RecordingSleep()
    service = ScanService(transport, sleep=sleep)

    report = await service.scan("https://example.com")

    assert report.verdict is Verdict.MALICIOUS
    assert report.analysis_id == "u-77"
    assert transport.calls == [
        ("POST", "/api/scan-url"),
        ("GET", "/api/analyses/u-77"),
        ("GET", "/api/analyses/u-77"),
    ]
    # settle delay, then one backoff wait
    assert sleep.calls == [3.0, 3.0]


@pytest.mark.asyncio
async def test_scan_uses_configured_poll_options():
    transport = _FakeTransport([{"data": {"attributes": {"status": "failed"}}}])
    service = ScanService(
        transport,
        poll_options=PollOptions(max_attempts=2),
        status_path="/status/{job_id}",
        settle_delay=0,
        sleep=_RecordingSleep(),
    )

    with pytest.raises(AnalysisFailedError):
        await service.scan("https://example.com")

    assert transport.calls[-1] == ("GET", "/status/u-77")


@pytest.mark.asyncio
async def test_scan_rejects_invalid_url_without_requests():
    transport = _FakeTransport([COMPLETED])

    with pytest.raises(InvalidInputError):
        await ScanService(transport, sleep=_RecordingSleep()).scan("example.com")

    assert transport.calls == []


@pytest.mark.asyncio
async def test_scan_cancelled_after_submission():
    transport = _FakeTransport([COMPLETED])
    cancel = asyncio.Event()
    cancel.set()

    with pytest.raises(ScanCancelledError):
        await ScanService(transport, sleep=_RecordingSleep()).scan(
            "https://example.com", cancel_event=cancel
        )

    assert transport.calls == [("POST", "/api/scan-url")]


@pytest.mark.asyncio
async def test_scan_file_is_unsupported():
    service = ScanService(_FakeTransport([COMPLETED]))

    with pytest.raises(UnsupportedOperationError):
        await service.scan_file(Path("sample.exe"))


def test_from_config_wires_transport():
    config = Config(proxy_url="https://scan.example/", request_timeout=12, settle_delay=1.5)
    service = ScanService.from_config(config)

    assert service.transport.base_url == "https://scan.example"
    assert service.transport.timeout == 12
    assert service.settle_delay == 1.5
    assert service.poll_options is config.poll


# =============================================================================
# CLI
# =============================================================================


@pytest.fixture
def no_env(monkeypatch, tmp_path):
    for name in ("VIRUSTOTAL_API_KEY", "VT_API_KEY", "LINKSCAN_STATUS_PATH", "LINKSCAN_MAX_ATTEMPTS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path / "config"))


def test_cli_scan_prints_summary(monkeypatch, capsys, no_env):
    transport = _FakeTransport([COMPLETED])

    def fake_from_config(config):
        return ScanService(transport, settle_delay=0, sleep=_RecordingSleep())

    monkeypatch.setattr(cli.ScanService, "from_config", staticmethod(fake_from_config))

    assert cli.main(["scan", "https://example.com", "--full"]) == cli.EXIT_OK

    out = capsys.readouterr().out
    assert "Malicious" in out
    assert "Detection Rate: 2.9%" in out
    assert "Full Report Details" in out
    assert "Alpha" in out


def test_cli_scan_json_output(monkeypatch, capsys, no_env):
    transport = _FakeTransport([COMPLETED])
    monkeypatch.setattr(
        cli.ScanService,
        "from_config",
        staticmethod(lambda config: ScanService(transport, settle_delay=0, sleep=_RecordingSleep())),
    )

    assert cli.main(["scan", "https://example.com", "--json"]) == cli.EXIT_OK

    out = capsys.readouterr().out
    data = json.loads(out[out.index("{"):out.rindex("}") + 1])
    assert data["verdict"] == "malicious"
    assert data["engines"]["Beta"]["category"] == "harmless"


def test_cli_scan_reports_errors(capsys, no_env):
    assert cli.main(["scan", "not a url"]) == cli.EXIT_SCAN_FAILED
    assert "Error: Please enter a valid URL" in capsys.readouterr().out


def test_cli_proxy_requires_api_key(no_env):
    assert cli.main(["proxy"]) == cli.EXIT_CONFIG
