from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, Sequence


class TimeInterval(str, Enum):
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class DataStyle(str, Enum):
    TICKS = "ticks"
    CANDLES = "candles"


@dataclass(frozen=True)
class InboundMessage:
    chat_id: int
    message_id: int
    username: str = ""
    command: str | None = None
    args: tuple[str, ...] = ()
    callback_data: str | None = None


@dataclass(frozen=True)
class Button:
    text: str
    callback_data: str


@dataclass(frozen=True)
class OutboundResponse:
    text: str
    chat_id: int
    reply_to_message_id: int
    buttons: tuple[tuple[Button, ...], ...] = ()
    photo_path: str | None = None


@dataclass(frozen=True)
class BalanceInfo:
    amount: float
    currency: str


@dataclass(frozen=True)
class HistoricalDataRequest:
    symbol: str
    interval: TimeInterval = TimeInterval.HOUR
    style: DataStyle = DataStyle.CANDLES
    count: int = 10


@dataclass(frozen=True)
class HistoricalDataPoint:
    timestamp: int
    price: float
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    close: float = 0.0


@dataclass(frozen=True)
class FunctionSpec:
    """Tool descriptor advertised to the language backend."""

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FunctionCall:
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


class MarketDataProvider(Protocol):
    async def get_price(self, symbol: str) -> float: ...

    async def get_historical_data(self, req: HistoricalDataRequest) -> list[HistoricalDataPoint]: ...


class BrokerageClient(MarketDataProvider, Protocol):
    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    async def get_balance(self) -> BalanceInfo: ...

    async def place_trade(self, symbol: str, amount: float, direction: str) -> dict: ...

    async def get_position(self) -> str: ...

    async def get_available_symbols(self) -> list[str]: ...


class LanguageBackend(Protocol):
    async def process_text(self, text: str) -> str: ...

    async def process_with_functions(
        self, text: str, provider: MarketDataProvider, functions: Sequence[FunctionSpec]
    ) -> str: ...


def reply_to(
    msg: InboundMessage,
    text: str,
    buttons: Sequence[Sequence[Button]] = (),
    photo_path: str | None = None,
) -> OutboundResponse:
    """Build the single reply for ``msg``, keeping its chat and message ids."""
    return OutboundResponse(
        text=text,
        chat_id=msg.chat_id,
        reply_to_message_id=msg.message_id,
        buttons=tuple(tuple(row) for row in buttons),
        photo_path=photo_path,
    )
