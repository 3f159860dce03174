import asyncio
from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
from discord import app_commands

from cagecycle.cogs.core import Core, normalize_cage_mode, normalize_uncage_mode
from cagecycle.game.repository import InvalidProfileName
from cagecycle.game.views import Paginator
from cagecycle.models import Count, Cycle, Profile


def _make_interaction(**overrides):
    response = SimpleNamespace(send_message=AsyncMock(), is_done=MagicMock(return_value=False))
    followup = SimpleNamespace(send=AsyncMock())
    data = {
        "user": SimpleNamespace(id=1, name="tester", display_name="Tester"),
        "response": response,
        "followup": followup,
        "guild": None,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def _make_core():
    core = Core.__new__(Core)
    core.bot = MagicMock()
    return core


def _make_profile(**fields):
    cycle = Cycle(price_modifier=5, portions=[2, 3])
    return Profile.create("tester", cycle=cycle, **fields)


def _sent_message(async_mock: AsyncMock) -> str | None:
    call = async_mock.await_args
    if call is None:
        return None
    return call.kwargs.get("content")


def test_normalize_modes_fall_back_to_defaults():
    assert normalize_cage_mode(None) == "command"
    assert normalize_cage_mode(app_commands.Choice(name="Purchase", value="buy")) == "buy"
    assert normalize_cage_mode(SimpleNamespace(value="dance")) == "command"
    assert normalize_uncage_mode(None) == "complete"
    assert normalize_uncage_mode(SimpleNamespace(value="FAIL")) == "fail"


def test_status_shows_profile_embed(monkeypatch):
    core = _make_core()
    profile = _make_profile(tokens=Count(12))
    seen = []

    def _load(name):
        seen.append(name)
        return profile

    monkeypatch.setattr("cagecycle.cogs.core.load_or_create_profile", _load)
    interaction = _make_interaction()

    asyncio.run(core.status.callback(core, interaction))

    args = interaction.response.send_message.await_args
    embed: discord.Embed = args.kwargs["embed"]
    assert seen == ["tester"]
    assert args.kwargs["ephemeral"] is True
    assert embed.title.endswith("Tester's Stats")
    assert "Tokens: **12**" in embed.fields[0].value


def test_cage_runs_selected_action(monkeypatch):
    core = _make_core()
    profile = _make_profile(tokens=Count(20))
    calls = []

    def _perform(prof, action):
        calls.append(action)
        return {"ok": True, "action": action, "cost": 16, "period": timedelta(minutes=30)}

    monkeypatch.setattr("cagecycle.cogs.core.load_or_create_profile", lambda name: profile)
    monkeypatch.setattr("cagecycle.cogs.core.perform_action", _perform)
    interaction = _make_interaction()

    choice = app_commands.Choice(name="Purchase", value="buy")
    asyncio.run(core.cage.callback(core, interaction, choice))

    assert calls == ["buy"]
    message = _sent_message(interaction.response.send_message)
    assert "Successfully purchased caging for 16 tokens!" in message
    assert "You must cage for 30 minutes!" in message
    assert isinstance(interaction.response.send_message.await_args.kwargs["embed"], discord.Embed)


def test_uncage_defaults_to_complete(monkeypatch):
    core = _make_core()
    profile = _make_profile()
    calls = []

    def _perform(prof, action):
        calls.append(action)
        return {"ok": False, "reason": "not_caged"}

    monkeypatch.setattr("cagecycle.cogs.core.load_or_create_profile", lambda name: profile)
    monkeypatch.setattr("cagecycle.cogs.core.perform_action", _perform)
    interaction = _make_interaction()

    asyncio.run(core.uncage.callback(core, interaction, None))

    assert calls == ["complete"]
    assert "You are not caged right now." in _sent_message(interaction.response.send_message)


def test_elimination_sends_message_without_embed(monkeypatch):
    core = _make_core()
    profile = _make_profile()
    monkeypatch.setattr("cagecycle.cogs.core.load_or_create_profile", lambda name: profile)
    monkeypatch.setattr(
        "cagecycle.cogs.core.perform_action",
        lambda prof, action: {"ok": True, "action": "fail", "successful": False, "eliminated": True},
    )
    interaction = _make_interaction()

    asyncio.run(core.uncage.callback(core, interaction, app_commands.Choice(name="Fail", value="fail")))

    kwargs = interaction.response.send_message.await_args.kwargs
    assert "embed" not in kwargs
    assert "Your profile has been deleted." in kwargs["content"]


def test_single_actions_route_to_service(monkeypatch):
    core = _make_core()
    profile = _make_profile()
    calls = []

    def _perform(prof, action):
        calls.append(action)
        return {"ok": False, "reason": "insufficient_refusals"}

    monkeypatch.setattr("cagecycle.cogs.core.load_or_create_profile", lambda name: profile)
    monkeypatch.setattr("cagecycle.cogs.core.perform_action", _perform)

    for command in (core.refuse, core.bathroom, core.photo):
        asyncio.run(command.callback(core, _make_interaction()))

    assert calls == ["refuse", "bathroom", "photo"]


def test_invalid_name_is_reported(monkeypatch):
    core = _make_core()

    def _load(name):
        raise InvalidProfileName(name)

    perform = MagicMock()
    monkeypatch.setattr("cagecycle.cogs.core.load_or_create_profile", _load)
    monkeypatch.setattr("cagecycle.cogs.core.perform_action", perform)
    interaction = _make_interaction(user=SimpleNamespace(id=2, name="???", display_name="???"))

    asyncio.run(core.refuse.callback(core, interaction))

    perform.assert_not_called()
    assert _sent_message(interaction.response.send_message) == (
        "Your user name cannot be used as a profile name."
    )


def test_followup_used_when_response_is_done(monkeypatch):
    core = _make_core()
    profile = _make_profile()
    monkeypatch.setattr("cagecycle.cogs.core.load_or_create_profile", lambda name: profile)
    interaction = _make_interaction()
    interaction.response.is_done.return_value = True

    asyncio.run(core.status.callback(core, interaction))

    interaction.response.send_message.assert_not_awaited()
    interaction.followup.send.assert_awaited_once()


def test_stats_sends_paginated_view(monkeypatch):
    core = _make_core()
    profile = _make_profile()
    monkeypatch.setattr("cagecycle.cogs.core.load_or_create_profile", lambda name: profile)
    interaction = _make_interaction()

    asyncio.run(core.stats.callback(core, interaction))

    kwargs = interaction.response.send_message.await_args.kwargs
    view = kwargs["view"]
    assert isinstance(view, Paginator)
    assert view.invoker_id == 1
    assert kwargs["embed"] is view.embeds[0]
    assert kwargs["embed"].fields[0].name == "Token Stats"
