from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable, Mapping, Sequence

from teletrader.bot.templates import (
    EMPTY_TEXT,
    PRICE_USAGE_TEXT,
    UNAUTHORIZED_TEXT,
    UNKNOWN_COMMAND_TEXT,
    balance_text,
    error_text,
    help_text,
    position_text,
    price_text,
    symbols_text,
    welcome_text,
)
from teletrader.core.callback import CallbackToken, decode_token
from teletrader.core.errors import ValidationError, guard_upstream
from teletrader.core.types import (
    BrokerageClient,
    FunctionSpec,
    InboundMessage,
    LanguageBackend,
    OutboundResponse,
    reply_to,
)
from teletrader.services.auth import AllowList
from teletrader.services.tools import MARKET_DATA_FUNCTIONS
from teletrader.services.trade import TradeFlow

logger = logging.getLogger(__name__)

CommandHandler = Callable[[InboundMessage], Awaitable[OutboundResponse]]


class CommandRouter:
    """Turns one inbound chat message into exactly one reply.

    User mistakes (bad arguments, unknown commands, foreign buttons) come back
    as ordinary ``❌`` replies. Brokerage and language backend failures are
    raised as ``UpstreamError`` and left to the transport to report.
    """

    def __init__(
        self,
        brokerage: BrokerageClient,
        llm: LanguageBackend,
        allowed_usernames: Iterable[str],
        symbols: Sequence[str],
        functions: Sequence[FunctionSpec] = MARKET_DATA_FUNCTIONS,
        callback_secret: str = "",
    ) -> None:
        self.brokerage = brokerage
        self.llm = llm
        self.allow_list = AllowList(allowed_usernames)
        self.symbols = tuple(symbols)
        self.functions = tuple(functions)
        self.callback_secret = callback_secret
        self.trades = TradeFlow(brokerage, callback_secret)
        self._handlers: Mapping[str, CommandHandler] = {
            "start": self._handle_start,
            "help": self._handle_help,
            "symbols": self._handle_symbols,
            "balance": self._handle_balance,
            "price": self._handle_price,
            "buy": self._handle_buy,
            "position": self._handle_position,
        }

    @property
    def commands(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    async def dispatch(self, msg: InboundMessage) -> OutboundResponse:
        if not self.allow_list.is_allowed(msg.username):
            logger.warning(
                "unauthorized_access",
                extra={"event": "unauthorized_access", "chat_id": msg.chat_id, "username": msg.username},
            )
            return reply_to(msg, UNAUTHORIZED_TEXT)

        try:
            if msg.callback_data:
                return await self._handle_callback(msg)
            if msg.command:
                handler = self._handlers.get(msg.command)
                if handler is None:
                    return reply_to(msg, UNKNOWN_COMMAND_TEXT)
                return await handler(msg)
            return await self._handle_text(msg)
        except ValidationError as exc:
            return reply_to(msg, error_text(str(exc)))

    async def _handle_callback(self, msg: InboundMessage) -> OutboundResponse:
        # Button clicks resume the /buy dialogue with the decoded token.
        token = decode_token(msg.callback_data or "", self.callback_secret)
        return await self._handle_buy(msg, token)

    async def _handle_text(self, msg: InboundMessage) -> OutboundResponse:
        text = " ".join(msg.args).strip()
        if not text:
            return reply_to(msg, EMPTY_TEXT)
        answer = await guard_upstream(
            "process text", self.llm.process_with_functions(text, self.brokerage, self.functions)
        )
        return reply_to(msg, answer)

    async def _handle_start(self, msg: InboundMessage) -> OutboundResponse:
        return reply_to(msg, welcome_text())

    async def _handle_help(self, msg: InboundMessage) -> OutboundResponse:
        return reply_to(msg, help_text())

    async def _handle_symbols(self, msg: InboundMessage) -> OutboundResponse:
        return reply_to(msg, symbols_text(self.symbols))

    async def _handle_balance(self, msg: InboundMessage) -> OutboundResponse:
        balance = await guard_upstream("get balance", self.brokerage.get_balance())
        return reply_to(msg, balance_text(balance))

    async def _handle_price(self, msg: InboundMessage) -> OutboundResponse:
        if not msg.args:
            return reply_to(msg, PRICE_USAGE_TEXT)
        symbol = msg.args[0]
        price = await guard_upstream("get price", self.brokerage.get_price(symbol))
        return reply_to(msg, price_text(symbol, price))

    async def _handle_buy(self, msg: InboundMessage, token: CallbackToken | None = None) -> OutboundResponse:
        if token is None:
            return self.trades.propose(msg)
        return await self.trades.confirm(msg, token)

    async def _handle_position(self, msg: InboundMessage) -> OutboundResponse:
        summary = await guard_upstream("get position", self.brokerage.get_position())
        return reply_to(msg, position_text(summary))
