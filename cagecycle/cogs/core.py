"""Основной ког с игровыми командами."""

from __future__ import annotations

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from ..game import InvalidProfileName
from ..game.embeds import build_stats_embeds, build_status_embed, describe_result
from ..game.utils import normalize_choice
from ..game.views import Paginator
from ..models import (
    ACTION_BATHROOM,
    ACTION_BUY,
    ACTION_COMMAND,
    ACTION_COMPLETE,
    ACTION_FAIL,
    ACTION_PHOTO,
    ACTION_REFUSE,
    Profile,
)
from ..storage import load_or_create_profile, perform_action

log = logging.getLogger(__name__)

CAGE_MODES = (ACTION_COMMAND, ACTION_BUY)
UNCAGE_MODES = (ACTION_COMPLETE, ACTION_FAIL)


def normalize_cage_mode(mode: app_commands.Choice[str] | None) -> str:
    return normalize_choice(mode, CAGE_MODES, ACTION_COMMAND)


def normalize_uncage_mode(mode: app_commands.Choice[str] | None) -> str:
    return normalize_choice(mode, UNCAGE_MODES, ACTION_COMPLETE)


class Core(commands.Cog):
    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    async def _send_response(
        self,
        interaction: discord.Interaction,
        *,
        content: Optional[str] = None,
        embed: Optional[discord.Embed] = None,
        view: Optional[discord.ui.View] = None,
        ephemeral: bool = True,
    ) -> None:
        sender = interaction.response.send_message
        if interaction.response.is_done():
            sender = interaction.followup.send
        payload = {"ephemeral": ephemeral}
        if content is not None:
            payload["content"] = content
        if embed is not None:
            payload["embed"] = embed
        if view is not None:
            payload["view"] = view
        await sender(**payload)

    async def _load_profile(self, interaction: discord.Interaction) -> Optional[Profile]:
        try:
            return load_or_create_profile(interaction.user.name)
        except InvalidProfileName:
            log.warning("Rejected profile name for user %s", interaction.user.id)
            await self._send_response(
                interaction,
                content="Your user name cannot be used as a profile name.",
            )
            return None

    async def _run_action(self, interaction: discord.Interaction, action: str) -> None:
        profile = await self._load_profile(interaction)
        if profile is None:
            return
        result = perform_action(profile, action)
        lines = describe_result(result)
        if result.get("eliminated"):
            await self._send_response(interaction, content="\n".join(lines))
            return
        embed = build_status_embed(interaction.user.display_name, profile)
        await self._send_response(interaction, content="\n".join(lines), embed=embed)

    @app_commands.command(name="status", description="Show your tokens, caging state and cycle")
    async def status(self, interaction: discord.Interaction) -> None:
        profile = await self._load_profile(interaction)
        if profile is None:
            return
        await self._send_response(interaction, embed=build_status_embed(interaction.user.display_name, profile))

    @app_commands.command(name="cage", description="Start caging for the current turn")
    @app_commands.choices(
        mode=[
            app_commands.Choice(name="Command (free)", value=ACTION_COMMAND),
            app_commands.Choice(name="Purchase", value=ACTION_BUY),
        ]
    )
    async def cage(
        self,
        interaction: discord.Interaction,
        mode: Optional[app_commands.Choice[str]] = None,
    ) -> None:
        await self._run_action(interaction, normalize_cage_mode(mode))

    @app_commands.command(name="uncage", description="Resolve the current caging")
    @app_commands.choices(
        outcome=[
            app_commands.Choice(name="Complete", value=ACTION_COMPLETE),
            app_commands.Choice(name="Fail", value=ACTION_FAIL),
        ]
    )
    async def uncage(
        self,
        interaction: discord.Interaction,
        outcome: Optional[app_commands.Choice[str]] = None,
    ) -> None:
        await self._run_action(interaction, normalize_uncage_mode(outcome))

    @app_commands.command(name="refuse", description="Spend a refusal to try to skip the current caging")
    async def refuse(self, interaction: discord.Interaction) -> None:
        await self._run_action(interaction, ACTION_REFUSE)

    @app_commands.command(name="bathroom", description="Purchase a bathroom break")
    async def bathroom(self, interaction: discord.Interaction) -> None:
        await self._run_action(interaction, ACTION_BATHROOM)

    @app_commands.command(name="photo", description="Redeem a phallic photo")
    async def photo(self, interaction: discord.Interaction) -> None:
        await self._run_action(interaction, ACTION_PHOTO)

    @app_commands.command(name="stats", description="Detailed statistics")
    async def stats(self, interaction: discord.Interaction) -> None:
        profile = await self._load_profile(interaction)
        if profile is None:
            return
        embeds = build_stats_embeds(interaction.user.display_name, profile)
        view = Paginator(embeds=embeds, invoker_id=interaction.user.id)
        await self._send_response(interaction, embed=view.current(), view=view)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(Core(bot))


__all__ = ["Core", "normalize_cage_mode", "normalize_uncage_mode", "setup"]
