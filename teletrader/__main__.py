from __future__ import annotations

import argparse
import asyncio
import logging

from aiogram import Bot, Dispatcher

from teletrader.adapters.deriv import DerivClient
from teletrader.adapters.llm import LLMClient
from teletrader.bot.handlers import init_handlers, router
from teletrader.core.config import Settings, get_settings
from teletrader.core.container import ServiceHub
from teletrader.core.logging import setup_logging
from teletrader.services.router import CommandRouter
from teletrader.workers.scheduler import WorkerScheduler

logger = logging.getLogger(__name__)


async def run(settings: Settings) -> None:
    deriv = DerivClient(
        app_id=settings.deriv_app_id,
        api_token=settings.deriv_api_token,
        endpoint=settings.deriv_endpoint,
        symbols=settings.deriv_symbols_list(),
        currency=settings.deriv_currency,
        duration=settings.trade_duration,
        duration_unit=settings.trade_duration_unit,
    )
    await deriv.connect()
    try:
        llm = LLMClient(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            max_output_tokens=settings.openai_max_output_tokens,
            temperature=settings.openai_temperature,
        )
        command_router = CommandRouter(
            brokerage=deriv,
            llm=llm,
            allowed_usernames=settings.allowed_usernames_list(),
            symbols=await deriv.get_available_symbols(),
            callback_secret=settings.callback_secret,
        )
        bot = Bot(token=settings.telegram_token)
        hub = ServiceHub(settings=settings, bot=bot, deriv=deriv, llm=llm, command_router=command_router)
        init_handlers(hub)

        dp = Dispatcher()
        dp.include_router(router)
        scheduler = WorkerScheduler(hub)
        scheduler.start()
        logger.info(
            "bot_starting",
            extra={"event": "bot_starting", "command": ",".join(command_router.commands)},
        )
        try:
            await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
        finally:
            scheduler.stop()
            await bot.session.close()
    finally:
        await deriv.close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="teletrader",
        description="Telegram bot for trading on Deriv with an AI market assistant.",
    )
    parser.add_argument("--env-file", default=None, help="settings file (default is ./.env)")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parser.add_argument("--plain-logs", action="store_true", help="human-readable logs instead of JSON")
    args = parser.parse_args(argv)

    settings = Settings(_env_file=args.env_file) if args.env_file else get_settings()
    setup_logging(
        "DEBUG" if args.debug or settings.debug else settings.log_level,
        json_output=not args.plain_logs,
    )
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
