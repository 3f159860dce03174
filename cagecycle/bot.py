"""Точка входа для Discord-бота."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Optional

import discord
from discord.ext import commands

from .storage import get_config

log = logging.getLogger("cagecycle")

EXTENSIONS = ("cagecycle.cogs.core",)


def resolve_guild_id(config: dict[str, Any]) -> Optional[int]:
    """ID гильдии для синхронизации команд или ``None`` для глобальной."""

    raw = (config.get("discord") or {}).get("guild_id")
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        log.warning("Некорректный discord.guild_id в config.json: %r", raw)
        return None


class CageCycleBot(commands.Bot):
    def __init__(self) -> None:
        intents = discord.Intents.default()
        intents.message_content = False
        super().__init__(command_prefix="!", intents=intents)

    async def setup_hook(self) -> None:
        for extension in EXTENSIONS:
            await self.load_extension(extension)
        guild_id = resolve_guild_id(get_config())
        if guild_id is not None:
            guild = discord.Object(id=guild_id)
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            log.info("Синхронизировано %d команд с гильдией %s", len(synced), guild_id)
        else:
            synced = await self.tree.sync()
            log.info("Синхронизировано %d команд глобально", len(synced))

    async def on_ready(self) -> None:
        log.info("Бот авторизован как %s", self.user)


def load_token(config: dict[str, Any]) -> str:
    token = ((config.get("discord") or {}).get("token"))
    if not token:
        raise RuntimeError("В config.json не указан discord.token")
    return token


async def run_bot(bot: CageCycleBot, token: str) -> None:
    async with bot:
        await bot.start(token)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s: %(message)s")
    config = get_config()
    try:
        token = load_token(config)
    except RuntimeError as exc:
        log.error("%s", exc)
        sys.exit(1)
    try:
        asyncio.run(run_bot(CageCycleBot(), token))
    except discord.LoginFailure as exc:
        log.error("Не удалось авторизоваться: %s. Проверьте discord.token в config.json.", exc)
        sys.exit(1)
    except discord.HTTPException as exc:
        log.error("API Discord вернул ошибку при запуске бота: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
