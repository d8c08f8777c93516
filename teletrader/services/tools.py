from __future__ import annotations

import logging
from typing import Any

from teletrader.core.errors import ToolCallError
from teletrader.core.types import (
    DataStyle,
    FunctionCall,
    FunctionSpec,
    HistoricalDataRequest,
    MarketDataProvider,
    TimeInterval,
)

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = TimeInterval.HOUR
DEFAULT_STYLE = DataStyle.CANDLES
DEFAULT_COUNT = 10
MAX_COUNT = 1000

MARKET_DATA_FUNCTIONS: tuple[FunctionSpec, ...] = (
    FunctionSpec(
        name="get_price",
        description="Get current price for a trading symbol",
        parameters={
            "type": "object",
            "properties": {
                "symbol": {"type": "string", "description": "The trading symbol to get price for"},
            },
            "required": ["symbol"],
        },
    ),
    FunctionSpec(
        name="get_historical_data",
        description="Get historical market data for a symbol",
        parameters={
            "type": "object",
            "properties": {
                "symbol": {"type": "string", "description": "The trading symbol to get data for"},
                "interval": {
                    "type": "string",
                    "description": "Time interval (hour, day, week, month)",
                    "enum": [i.value for i in TimeInterval],
                },
                "style": {
                    "type": "string",
                    "description": "Data style (ticks or candles)",
                    "enum": [s.value for s in DataStyle],
                },
                "count": {
                    "type": "integer",
                    "description": "Number of data points to return",
                    "minimum": 1,
                    "maximum": MAX_COUNT,
                },
            },
            "required": ["symbol", "interval"],
        },
    ),
)


def parse_function_call(payload: dict) -> FunctionCall | None:
    """Turn a decoded backend reply into a FunctionCall, or None when it is plain text."""
    name = payload.get("function")
    if not isinstance(name, str) or not name.strip():
        return None
    arguments = payload.get("arguments")
    if not isinstance(arguments, dict):
        arguments = {}
    return FunctionCall(name=name.strip(), arguments=arguments)


def _require_symbol(arguments: dict[str, Any]) -> str:
    symbol = arguments.get("symbol")
    if not isinstance(symbol, str) or not symbol.strip():
        raise ToolCallError("invalid symbol argument")
    return symbol.strip()


def _as_interval(value: Any) -> TimeInterval:
    try:
        return TimeInterval(str(value).lower())
    except ValueError:
        return DEFAULT_INTERVAL


def _as_style(value: Any) -> DataStyle:
    try:
        return DataStyle(str(value).lower())
    except ValueError:
        return DEFAULT_STYLE


def _as_count(value: Any) -> int:
    if isinstance(value, bool):
        return DEFAULT_COUNT
    try:
        count = int(value)
    except (TypeError, ValueError):
        return DEFAULT_COUNT
    if count < 1:
        return DEFAULT_COUNT
    return min(count, MAX_COUNT)


async def _get_price(provider: MarketDataProvider, arguments: dict[str, Any]) -> str:
    symbol = _require_symbol(arguments)
    price = await provider.get_price(symbol)
    return f"Current price for {symbol}: {price:.2f}"


async def _get_historical_data(provider: MarketDataProvider, arguments: dict[str, Any]) -> str:
    req = HistoricalDataRequest(
        symbol=_require_symbol(arguments),
        interval=_as_interval(arguments.get("interval")),
        style=_as_style(arguments.get("style")),
        count=_as_count(arguments.get("count")),
    )
    points = await provider.get_historical_data(req)

    lines = [f"Historical data for {req.symbol} ({req.interval.value}, {req.style.value}):"]
    for point in points:
        if req.style is DataStyle.CANDLES:
            lines.append(
                f"Time: {point.timestamp}, Open: {point.open:.2f}, High: {point.high:.2f}, "
                f"Low: {point.low:.2f}, Close: {point.close:.2f}"
            )
        else:
            lines.append(f"Time: {point.timestamp}, Price: {point.price:.2f}")
    return "\n".join(lines)


_EXECUTORS = {
    "get_price": _get_price,
    "get_historical_data": _get_historical_data,
}


async def execute_function(call: FunctionCall, provider: MarketDataProvider) -> str:
    executor = _EXECUTORS.get(call.name)
    if executor is None:
        raise ToolCallError(f"unknown function: {call.name}")
    logger.info("tool_call", extra={"event": "tool_call", "command": call.name})
    return await executor(provider, call.arguments)
