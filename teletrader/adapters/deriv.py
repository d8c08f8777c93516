from __future__ import annotations

import asyncio
import itertools
import logging
import time
from typing import Any

import aiohttp
import orjson

from teletrader.core.errors import UpstreamError, ValidationError
from teletrader.core.types import (
    BalanceInfo,
    DataStyle,
    HistoricalDataPoint,
    HistoricalDataRequest,
    TimeInterval,
)

logger = logging.getLogger(__name__)

INTERVAL_SECONDS = {
    TimeInterval.HOUR: 3600,
    TimeInterval.DAY: 86400,
    TimeInterval.WEEK: 604800,
    TimeInterval.MONTH: 2592000,
}
CANDLE_GRANULARITY = 60


class DerivClient:
    """Deriv websocket API client.

    One socket, one request in flight at a time. Each request carries a
    ``req_id`` and the reply with the same id is returned; anything else on
    the socket (stray subscription ticks) is dropped.
    """

    def __init__(
        self,
        app_id: str,
        api_token: str,
        endpoint: str = "wss://ws.binaryws.com/websockets/v3",
        symbols: list[str] | None = None,
        currency: str = "USD",
        duration: int = 5,
        duration_unit: str = "t",
        timeout: float = 30.0,
    ) -> None:
        try:
            self.app_id = int(app_id)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid app ID: {app_id!r}") from exc
        self.api_token = api_token
        self.endpoint = endpoint
        self.symbols = list(symbols or [])
        self.currency = currency
        self.duration = duration
        self.duration_unit = duration_unit
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._lock = asyncio.Lock()
        self._req_ids = itertools.count(1)

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def connect(self) -> None:
        self._session = aiohttp.ClientSession()
        try:
            self._ws = await self._session.ws_connect(f"{self.endpoint}?app_id={self.app_id}&l=EN")
        except aiohttp.ClientError as exc:
            await self.close()
            raise UpstreamError(f"failed to connect: {exc}") from exc

        try:
            await self._request({"authorize": self.api_token})
        except UpstreamError:
            await self.close()
            raise
        logger.info("deriv_connected", extra={"event": "deriv_connected"})

    async def close(self) -> None:
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._ws = None
        self._session = None

    async def reconnect(self) -> None:
        await self.close()
        await self.connect()
        logger.info("deriv_reconnected", extra={"event": "deriv_reconnected"})

    async def _receive(self, req_id: int) -> dict[str, Any]:
        ws = self._ws
        if ws is None:
            raise UpstreamError("not connected to Deriv API")
        while True:
            msg = await ws.receive()
            if msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.CLOSING):
                raise UpstreamError("connection closed by server")
            if msg.type == aiohttp.WSMsgType.ERROR:
                raise UpstreamError(f"websocket error: {ws.exception()}")
            if msg.type not in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                continue
            data = orjson.loads(msg.data)
            if data.get("req_id") == req_id:
                return data
            logger.debug("deriv_unmatched_message", extra={"event": "deriv_unmatched_message"})

    async def _request(self, payload: dict[str, Any]) -> dict[str, Any]:
        if not self.connected:
            raise UpstreamError("not connected to Deriv API")

        async with self._lock:
            req_id = next(self._req_ids)
            await self._ws.send_str(orjson.dumps({**payload, "req_id": req_id}).decode("utf-8"))
            try:
                data = await asyncio.wait_for(self._receive(req_id), timeout=self.timeout)
            except asyncio.TimeoutError as exc:
                raise UpstreamError(f"request {req_id} timed out") from exc

        error = data.get("error")
        if error:
            code = error.get("code", "Error")
            raise UpstreamError(f"{code}: {error.get('message', 'unknown error')}")
        return data

    async def ping(self) -> None:
        await self._request({"ping": 1})

    async def get_available_symbols(self) -> list[str]:
        return list(self.symbols)

    async def get_balance(self) -> BalanceInfo:
        data = await self._request({"balance": 1})
        balance = data.get("balance") or {}
        return BalanceInfo(amount=float(balance.get("balance", 0.0)), currency=str(balance.get("currency", "")))

    async def get_price(self, symbol: str) -> float:
        data = await self._request({"ticks_history": symbol, "end": "latest", "count": 1, "style": "ticks"})
        prices = (data.get("history") or {}).get("prices") or []
        if not prices:
            raise UpstreamError(f"no quote available for {symbol}")
        return float(prices[-1])

    async def get_historical_data(self, req: HistoricalDataRequest) -> list[HistoricalDataPoint]:
        try:
            span = INTERVAL_SECONDS[TimeInterval(req.interval)]
        except (KeyError, ValueError) as exc:
            raise ValidationError(f"invalid interval: {req.interval}") from exc

        payload: dict[str, Any] = {
            "ticks_history": req.symbol,
            "end": "latest",
            "start": int(time.time()) - span,
            "style": DataStyle(req.style).value,
            "count": req.count,
        }
        if payload["style"] == DataStyle.CANDLES.value:
            payload["granularity"] = CANDLE_GRANULARITY
        data = await self._request(payload)

        points: list[HistoricalDataPoint] = []
        if payload["style"] == DataStyle.TICKS.value:
            history = data.get("history") or {}
            for ts, price in zip(history.get("times") or [], history.get("prices") or []):
                points.append(HistoricalDataPoint(timestamp=int(ts), price=float(price)))
            return points

        for candle in data.get("candles") or []:
            if candle.get("epoch") is None or candle.get("close") is None:
                continue
            close = float(candle["close"])
            points.append(
                HistoricalDataPoint(
                    timestamp=int(candle["epoch"]),
                    price=close,
                    open=float(candle.get("open") or 0.0),
                    high=float(candle.get("high") or 0.0),
                    low=float(candle.get("low") or 0.0),
                    close=close,
                )
            )
        return points

    async def place_trade(self, symbol: str, amount: float, direction: str) -> dict:
        if direction not in ("CALL", "PUT"):
            raise ValidationError(f"invalid direction: {direction}")
        proposal = await self._request(
            {
                "proposal": 1,
                "amount": amount,
                "basis": "stake",
                "contract_type": direction,
                "currency": self.currency,
                "duration": self.duration,
                "duration_unit": self.duration_unit,
                "symbol": symbol,
            }
        )
        proposal_id = (proposal.get("proposal") or {}).get("id")
        if not proposal_id:
            raise UpstreamError("proposal returned no id")

        bought = await self._request({"buy": proposal_id, "price": amount})
        contract = bought.get("buy") or {}
        logger.info(
            "deriv_contract_bought",
            extra={"event": "deriv_contract_bought", "command": direction},
        )
        return contract

    async def get_position(self) -> str:
        data = await self._request({"proposal_open_contract": 1})
        contract = data.get("proposal_open_contract")
        if not contract:
            return "No open positions"
        return (
            f"Contract ID: {contract.get('contract_id')}\n"
            f"Type: {contract.get('contract_type')}\n"
            f"Entry Spot: {float(contract.get('entry_spot') or 0.0):.2f}\n"
            f"Current Spot: {float(contract.get('current_spot') or 0.0):.2f}\n"
            f"Profit: {float(contract.get('profit') or 0.0):.2f}"
        )
