from __future__ import annotations

from dataclasses import dataclass

from aiogram import Bot

from teletrader.adapters.deriv import DerivClient
from teletrader.adapters.llm import LLMClient
from teletrader.core.config import Settings
from teletrader.services.router import CommandRouter


@dataclass
class ServiceHub:
    settings: Settings
    bot: Bot
    deriv: DerivClient
    llm: LLMClient
    command_router: CommandRouter
