from __future__ import annotations

from typing import Sequence

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from teletrader.core.types import Button


def button_grid(rows: Sequence[Sequence[Button]]) -> InlineKeyboardMarkup | None:
    """Render a reply's button grid as an inline keyboard, keeping its row layout."""
    if not rows:
        return None
    kb = InlineKeyboardBuilder()
    for row in rows:
        for btn in row:
            kb.button(text=btn.text, callback_data=btn.callback_data)
    kb.adjust(*[len(row) for row in rows if row])
    return kb.as_markup()
