from __future__ import annotations

import asyncio
import logging
import time
from contextlib import suppress

from aiogram import F, Router
from aiogram.enums import ChatAction
from aiogram.types import CallbackQuery, FSInputFile, Message

from teletrader.bot.keyboards import button_grid
from teletrader.bot.templates import GENERIC_ERROR_TEXT
from teletrader.core.container import ServiceHub
from teletrader.core.types import InboundMessage, OutboundResponse, reply_to

router = Router()
_hub: ServiceHub | None = None
_CHAT_LOCKS: dict[int, asyncio.Lock] = {}
_CHAT_LOCKS_MAX = 2000
_MAX_TEXT = 4000
logger = logging.getLogger(__name__)


def init_handlers(hub: ServiceHub) -> None:
    global _hub
    _hub = hub


def _require_hub() -> ServiceHub:
    if _hub is None:
        raise RuntimeError("handlers are not initialised")
    return _hub


def _chat_lock(chat_id: int) -> asyncio.Lock:
    lock = _CHAT_LOCKS.get(chat_id)
    if lock is None:
        # Prune idle locks when dict grows too large to prevent unbounded memory growth
        if len(_CHAT_LOCKS) >= _CHAT_LOCKS_MAX:
            idle = [k for k, v in list(_CHAT_LOCKS.items()) if not v.locked()]
            for k in idle[: len(idle) // 2 + 1]:
                _CHAT_LOCKS.pop(k, None)
        lock = asyncio.Lock()
        _CHAT_LOCKS[chat_id] = lock
    return lock


async def _typing_loop(bot, chat_id: int, stop: asyncio.Event, interval: float = 4.0) -> None:
    while not stop.is_set():
        with suppress(Exception):
            await bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass


async def _run_with_typing_lock(bot, chat_id: int, runner, typing: bool = True, interval: float = 4.0) -> None:
    stop = asyncio.Event()
    typing_task = asyncio.create_task(_typing_loop(bot, chat_id, stop, interval)) if typing else None
    lock = _chat_lock(chat_id)
    try:
        async with lock:
            await runner()
    finally:
        stop.set()
        if typing_task is not None:
            typing_task.cancel()
            with suppress(asyncio.CancelledError):
                await typing_task


def _split_command(text: str) -> tuple[str | None, tuple[str, ...]]:
    """``/price@MyBot R_50`` -> ("price", ("R_50",)); plain text -> (None, (text,))."""
    raw = (text or "").strip()
    if not raw.startswith("/"):
        return None, ((raw,) if raw else ())
    head, *rest = raw.split()
    command = head[1:].split("@", 1)[0]
    return command, tuple(rest)


def inbound_from_message(message: Message) -> InboundMessage:
    command, args = _split_command(message.text or "")
    return InboundMessage(
        chat_id=message.chat.id,
        message_id=message.message_id,
        username=(message.from_user.username or "") if message.from_user else "",
        command=command,
        args=args,
    )


def inbound_from_callback(callback: CallbackQuery) -> InboundMessage | None:
    if callback.message is None:
        return None
    return InboundMessage(
        chat_id=callback.message.chat.id,
        message_id=callback.message.message_id,
        username=(callback.from_user.username or "") if callback.from_user else "",
        callback_data=callback.data or "",
    )


async def deliver(bot, response: OutboundResponse) -> None:
    markup = button_grid(response.buttons)
    text = response.text[:_MAX_TEXT]
    if response.photo_path:
        await bot.send_photo(
            chat_id=response.chat_id,
            photo=FSInputFile(response.photo_path),
            caption=text[:1024],
            reply_to_message_id=response.reply_to_message_id,
            reply_markup=markup,
        )
        return
    await bot.send_message(
        chat_id=response.chat_id,
        text=text,
        reply_to_message_id=response.reply_to_message_id,
        reply_markup=markup,
    )


async def process_inbound(bot, inbound: InboundMessage, typing: bool = True) -> None:
    """Dispatch one message and send its reply; failures become a generic error reply."""
    hub = _require_hub()

    async def runner() -> None:
        started = time.monotonic()
        try:
            response = await hub.command_router.dispatch(inbound)
        except Exception:  # noqa: BLE001
            logger.exception(
                "dispatch_failed",
                extra={
                    "event": "dispatch_failed",
                    "chat_id": inbound.chat_id,
                    "username": inbound.username,
                    "command": inbound.command or ("callback" if inbound.callback_data else "text"),
                },
            )
            response = reply_to(inbound, GENERIC_ERROR_TEXT)
        logger.info(
            "dispatch_done",
            extra={
                "event": "dispatch_done",
                "chat_id": inbound.chat_id,
                "command": inbound.command,
                "latency_ms": int((time.monotonic() - started) * 1000),
            },
        )
        await deliver(bot, response)

    await _run_with_typing_lock(
        bot, inbound.chat_id, runner, typing=typing, interval=hub.settings.typing_interval_sec
    )


@router.callback_query()
async def trade_callback(callback: CallbackQuery) -> None:
    # Clear the client's loading spinner before doing any work.
    with suppress(Exception):
        await callback.answer()
    inbound = inbound_from_callback(callback)
    if inbound is None:
        return
    await process_inbound(callback.bot, inbound, typing=False)


@router.message(F.text)
async def route_text(message: Message) -> None:
    await process_inbound(message.bot, inbound_from_message(message))
