from __future__ import annotations

import logging
import math
import re

from teletrader.bot.templates import (
    BUY_USAGE_TEXT,
    INVALID_AMOUNT_TEXT,
    direction_prompt_text,
    trade_placed_text,
)
from teletrader.core.callback import TRADE_ACTION, CallbackToken, encode_token
from teletrader.core.errors import CallbackError, guard_upstream
from teletrader.core.types import BrokerageClient, Button, InboundMessage, OutboundResponse, reply_to

logger = logging.getLogger(__name__)

CONTRACT_TYPES = {"up": "CALL", "down": "PUT"}
_AMOUNT_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def parse_amount(raw: str) -> float | None:
    """Stake in cents precision, or None unless it is a plain positive decimal."""
    if not _AMOUNT_RE.fullmatch((raw or "").strip()):
        return None
    amount = round(float(raw), 2)
    if not math.isfinite(amount) or amount <= 0:
        return None
    return amount


class TradeFlow:
    """Two-step trade dialogue.

    ``/buy <symbol> <amount>`` answers with Up/Down buttons and touches no
    brokerage API. The pending trade lives entirely inside the buttons'
    callback data, so a click can be served by any process at any time;
    ``confirm`` then places exactly one trade.
    """

    def __init__(self, brokerage: BrokerageClient, callback_secret: str = "") -> None:
        self.brokerage = brokerage
        self.callback_secret = callback_secret

    def propose(self, msg: InboundMessage) -> OutboundResponse:
        if len(msg.args) < 2:
            return reply_to(msg, BUY_USAGE_TEXT)

        symbol = msg.args[0]
        amount = parse_amount(msg.args[1])
        if amount is None:
            return reply_to(msg, INVALID_AMOUNT_TEXT)

        buttons = [
            Button(
                text=label,
                callback_data=encode_token(
                    CallbackToken(action=TRADE_ACTION, symbol=symbol, amount=amount, direction=direction),
                    self.callback_secret,
                ),
            )
            for label, direction in (("Up", "up"), ("Down", "down"))
        ]
        return reply_to(msg, direction_prompt_text(symbol, amount), buttons=[buttons])

    async def confirm(self, msg: InboundMessage, token: CallbackToken) -> OutboundResponse:
        if token.action != TRADE_ACTION:
            raise CallbackError(f"Unsupported button action: {token.action}")
        if token.amount <= 0:
            raise CallbackError("Trade amount must be positive.")
        contract_type = CONTRACT_TYPES[token.direction]

        await guard_upstream("place trade", self.brokerage.place_trade(token.symbol, token.amount, contract_type))
        logger.info(
            "trade_placed",
            extra={"event": "trade_placed", "chat_id": msg.chat_id, "username": msg.username, "command": contract_type},
        )
        return reply_to(msg, trade_placed_text(token.symbol, token.amount, token.direction))
