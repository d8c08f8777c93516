from __future__ import annotations

from teletrader.core.types import BalanceInfo

UNAUTHORIZED_TEXT = "⚠️ You are not authorized to use this bot."
UNKNOWN_COMMAND_TEXT = "❌ Unknown command. Type /help for available commands."
EMPTY_TEXT = "❌ Please provide some text for me to process."
GENERIC_ERROR_TEXT = "❌ Error executing command. Please try again later."
PRICE_USAGE_TEXT = "❌ Please provide a symbol. Example: /price R_50"
BUY_USAGE_TEXT = "❌ Please provide symbol and amount. Example: /buy R_50 10.50"
INVALID_AMOUNT_TEXT = "❌ Invalid amount format. Please provide a number."

_ARROWS = {"up": "⬆️", "down": "⬇️"}


def welcome_text() -> str:
    return "👋 Welcome to Deriv Trading Bot!\n\nUse /help to see available commands."


def help_text() -> str:
    return (
        "Available commands:\n\n"
        "/symbols - List available trading symbols\n"
        "/balance - Show account balance\n"
        "/price <symbol> - Get current price for a symbol\n"
        "/buy <symbol> <amount> - Place a trade, then pick Up or Down\n"
        "/position - Show current positions\n\n"
        "Or just ask a question about the market in plain text."
    )


def symbols_text(symbols: tuple[str, ...]) -> str:
    return "Available symbols:\n\n" + "\n".join(symbols)


def balance_text(balance: BalanceInfo) -> str:
    return f"💰 Balance: {balance.amount:.2f} {balance.currency}"


def price_text(symbol: str, price: float) -> str:
    return f"💹 {symbol} price: {price:.2f}"


def position_text(summary: str) -> str:
    return f"📊 Current positions:\n\n{summary}"


def direction_prompt_text(symbol: str, amount: float) -> str:
    return f"🎯 {symbol} for ${amount:.2f}\n\nWhich way do you expect the price to move?"


def trade_placed_text(symbol: str, amount: float, direction: str) -> str:
    arrow = _ARROWS.get(direction, "")
    return f"✅ {arrow} {direction.capitalize()} trade placed for {symbol}: ${amount:.2f}"


def error_text(reason: str) -> str:
    return f"❌ {reason}"
