from __future__ import annotations

import hashlib
import hmac
import math
from dataclasses import dataclass

from teletrader.core.errors import CallbackError, ValidationError

TRADE_ACTION = "trade"
DIRECTIONS = ("up", "down")
# Telegram rejects inline buttons whose callback_data exceeds 64 bytes.
MAX_CALLBACK_BYTES = 64
_SIGNATURE_CHARS = 10


@dataclass(frozen=True)
class CallbackToken:
    action: str
    symbol: str
    amount: float
    direction: str


def _sign(body: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()
    return digest[:_SIGNATURE_CHARS]


def encode_token(token: CallbackToken, secret: str = "") -> str:
    if ":" in token.symbol or not token.symbol:
        raise ValidationError(f"Invalid symbol: {token.symbol!r}")
    if token.direction not in DIRECTIONS:
        raise ValidationError(f"Invalid direction: {token.direction!r}")
    body = f"{token.action}:{token.symbol}:{token.amount:.2f}:{token.direction}"
    data = f"{body}:{_sign(body, secret)}" if secret else body
    if len(data.encode("utf-8")) > MAX_CALLBACK_BYTES:
        raise ValidationError("Trade details are too long for a button.")
    return data


def decode_token(data: str, secret: str = "") -> CallbackToken:
    """Parse ``action:symbol:amount:direction[:signature]`` back into a token.

    With a secret configured the trailing signature is mandatory and checked
    in constant time; without one, signed and unsigned tokens are both
    accepted and the signature field is ignored.
    """
    parts = (data or "").split(":")
    if len(parts) not in (4, 5):
        raise CallbackError("Malformed button data.")

    body = ":".join(parts[:4])
    if secret:
        if len(parts) != 5 or not hmac.compare_digest(parts[4], _sign(body, secret)):
            raise CallbackError("This button is not valid anymore.")

    action, symbol, raw_amount, direction = parts[:4]
    if not action or not symbol:
        raise CallbackError("Malformed button data.")
    if direction not in DIRECTIONS:
        raise CallbackError(f"Unknown direction: {direction}")
    try:
        amount = float(raw_amount)
    except ValueError as exc:
        raise CallbackError("Malformed amount in button data.") from exc
    if not math.isfinite(amount):
        raise CallbackError("Malformed amount in button data.")
    return CallbackToken(action=action, symbol=symbol, amount=amount, direction=direction)
