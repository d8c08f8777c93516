from __future__ import annotations

import pytest

from teletrader.core.errors import ToolCallError
from teletrader.core.types import DataStyle, FunctionCall, HistoricalDataPoint, TimeInterval
from teletrader.services.tools import (
    MARKET_DATA_FUNCTIONS,
    MAX_COUNT,
    execute_function,
    parse_function_call,
)


class DummyProvider:
    def __init__(self) -> None:
        self.requests = []

    async def get_price(self, symbol: str) -> float:
        return 1234.5

    async def get_historical_data(self, req) -> list[HistoricalDataPoint]:
        self.requests.append(req)
        if req.style is DataStyle.TICKS:
            return [HistoricalDataPoint(timestamp=1700000000, price=100.123)]
        return [
            HistoricalDataPoint(timestamp=1700000000, price=101.0, open=100.0, high=102.5, low=99.25, close=101.0),
        ]


def test_catalog_names() -> None:
    assert [fn.name for fn in MARKET_DATA_FUNCTIONS] == ["get_price", "get_historical_data"]
    hist = MARKET_DATA_FUNCTIONS[1].parameters
    assert hist["required"] == ["symbol", "interval"]
    assert hist["properties"]["count"]["maximum"] == MAX_COUNT


def test_parse_function_call() -> None:
    call = parse_function_call({"function": "get_price", "arguments": {"symbol": "R_50"}})
    assert call == FunctionCall(name="get_price", arguments={"symbol": "R_50"})
    assert parse_function_call({}) is None
    assert parse_function_call({"function": ""}) is None
    assert parse_function_call({"function": "get_price", "arguments": "R_50"}).arguments == {}


@pytest.mark.asyncio
async def test_get_price_result_text() -> None:
    result = await execute_function(FunctionCall("get_price", {"symbol": "R_50"}), DummyProvider())
    assert result == "Current price for R_50: 1234.50"


@pytest.mark.asyncio
async def test_historical_candles_text() -> None:
    provider = DummyProvider()
    result = await execute_function(
        FunctionCall("get_historical_data", {"symbol": "R_50", "interval": "day", "style": "candles", "count": 3}),
        provider,
    )
    assert result.splitlines() == [
        "Historical data for R_50 (day, candles):",
        "Time: 1700000000, Open: 100.00, High: 102.50, Low: 99.25, Close: 101.00",
    ]
    req = provider.requests[0]
    assert (req.interval, req.style, req.count) == (TimeInterval.DAY, DataStyle.CANDLES, 3)


@pytest.mark.asyncio
async def test_historical_ticks_text() -> None:
    result = await execute_function(
        FunctionCall("get_historical_data", {"symbol": "R_10", "interval": "hour", "style": "ticks"}),
        DummyProvider(),
    )
    assert result.endswith("Time: 1700000000, Price: 100.12")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("arguments", "expected"),
    [
        ({"symbol": "R_50"}, (TimeInterval.HOUR, DataStyle.CANDLES, 10)),
        ({"symbol": "R_50", "interval": "fortnight", "style": "bars"}, (TimeInterval.HOUR, DataStyle.CANDLES, 10)),
        ({"symbol": "R_50", "interval": "WEEK", "count": "25"}, (TimeInterval.WEEK, DataStyle.CANDLES, 25)),
        ({"symbol": "R_50", "count": 50000}, (TimeInterval.HOUR, DataStyle.CANDLES, MAX_COUNT)),
        ({"symbol": "R_50", "count": 0}, (TimeInterval.HOUR, DataStyle.CANDLES, 10)),
        ({"symbol": "R_50", "count": True}, (TimeInterval.HOUR, DataStyle.CANDLES, 10)),
    ],
)
async def test_historical_argument_defaults(arguments: dict, expected: tuple) -> None:
    provider = DummyProvider()
    await execute_function(FunctionCall("get_historical_data", arguments), provider)
    req = provider.requests[0]
    assert (req.interval, req.style, req.count) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("arguments", [{}, {"symbol": ""}, {"symbol": 50}])
async def test_missing_symbol_is_rejected(arguments: dict) -> None:
    with pytest.raises(ToolCallError, match="invalid symbol"):
        await execute_function(FunctionCall("get_price", arguments), DummyProvider())


@pytest.mark.asyncio
async def test_unknown_function_is_rejected() -> None:
    with pytest.raises(ToolCallError, match="unknown function: place_trade"):
        await execute_function(FunctionCall("place_trade", {"symbol": "R_50"}), DummyProvider())
