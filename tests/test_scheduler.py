from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest

from teletrader.adapters.deriv import DerivClient
from teletrader.core.errors import UpstreamError
from teletrader.workers.scheduler import WorkerScheduler


class DummyDeriv:
    def __init__(self, connected: bool = True, fail: Exception | None = None) -> None:
        self.connected = connected
        self.fail = fail
        self.pings = 0
        self.reconnects = 0

    async def ping(self) -> None:
        self.pings += 1
        if self.fail is not None:
            raise self.fail

    async def reconnect(self) -> None:
        self.reconnects += 1
        if self.fail is not None:
            raise self.fail
        self.connected = True


def _scheduler(deriv) -> WorkerScheduler:
    hub = SimpleNamespace(deriv=deriv, settings=SimpleNamespace(keepalive_interval_sec=30))
    return WorkerScheduler(hub)


@pytest.mark.asyncio
async def test_keepalive_pings_deriv() -> None:
    deriv = DummyDeriv()
    await _scheduler(deriv)._keepalive()
    assert (deriv.pings, deriv.reconnects) == (1, 0)


@pytest.mark.asyncio
async def test_keepalive_reopens_dropped_socket() -> None:
    deriv = DummyDeriv(connected=False)
    scheduler = _scheduler(deriv)
    await scheduler._keepalive()
    assert (deriv.pings, deriv.reconnects) == (0, 1)
    await scheduler._keepalive()
    assert (deriv.pings, deriv.reconnects) == (1, 1)


@pytest.mark.asyncio
async def test_keepalive_restores_requests_on_real_client(monkeypatch: pytest.MonkeyPatch) -> None:
    client = DerivClient(app_id="1089", api_token="token")
    connects: list[int] = []

    async def fake_connect() -> None:
        connects.append(1)
        client._ws = SimpleNamespace(closed=False)

    monkeypatch.setattr(client, "connect", fake_connect)
    with pytest.raises(UpstreamError, match="not connected"):
        await client.get_balance()

    await _scheduler(client)._keepalive()
    assert connects == [1]
    assert client.connected


@pytest.mark.asyncio
async def test_keepalive_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    deriv = DummyDeriv(fail=ConnectionError("socket closed"))
    with caplog.at_level(logging.WARNING):
        await _scheduler(deriv)._keepalive()
    assert deriv.pings == 1
    assert any(r.getMessage() == "deriv_keepalive_failed" for r in caplog.records)


@pytest.mark.asyncio
async def test_failed_reconnect_is_retried_next_tick(caplog: pytest.LogCaptureFixture) -> None:
    deriv = DummyDeriv(connected=False, fail=UpstreamError("failed to connect"))
    scheduler = _scheduler(deriv)
    with caplog.at_level(logging.WARNING):
        await scheduler._keepalive()
        deriv.fail = None
        await scheduler._keepalive()
    assert deriv.reconnects == 2
    assert deriv.connected
    assert [r.getMessage() for r in caplog.records].count("deriv_keepalive_failed") == 1


def test_stop_before_start_is_noop() -> None:
    _scheduler(DummyDeriv()).stop()
