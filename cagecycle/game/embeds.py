"""Формирование Discord Embed."""

from __future__ import annotations

from typing import Any, Dict

import discord

from ..models import (
    REASON_ALREADY_CAGED,
    REASON_INSUFFICIENT_PHOTOS,
    REASON_INSUFFICIENT_REFUSALS,
    REASON_INSUFFICIENT_TOKENS,
    REASON_NOT_CAGED,
    Profile,
)
from .constants import (
    ACTION_LABELS,
    EMOJI_BONUS,
    EMOJI_CLOCK,
    EMOJI_CROWN,
    EMOJI_CYCLE,
    EMOJI_LOCK,
    EMOJI_OK,
    EMOJI_PHOTO,
    EMOJI_PROFILE,
    EMOJI_REFUSAL,
    EMOJI_SKULL,
    EMOJI_STATS,
    EMOJI_TOKEN,
    EMOJI_UNLOCK,
    EMOJI_X,
)
from .utils import format_duration, format_moment, format_percent

REASON_MESSAGES = {
    REASON_INSUFFICIENT_TOKENS: "You do not have enough Tokens for this currently!",
    REASON_INSUFFICIENT_REFUSALS: "You do not have enough Refusals to do this currently!",
    REASON_INSUFFICIENT_PHOTOS: "You do not have enough Phallic Photos to redeem this currently!",
    REASON_NOT_CAGED: "You are not caged right now.",
    REASON_ALREADY_CAGED: "You are already caged.",
}


def profile_overview_lines(profile: Profile) -> list[str]:
    completed, total, fraction = profile.cycle_completion()
    return [
        f"{EMOJI_TOKEN} Tokens: **{profile.get_tokens()}**",
        f"{EMOJI_PHOTO} Phallic Photos: **{profile.get_photos()}**",
        f"{EMOJI_REFUSAL} Refusals: **{profile.get_refusals()}**",
        f"{EMOJI_BONUS} Coin Bonus: **{profile.get_coin_bonus():.0f}%**",
        f"{EMOJI_TOKEN} Caging cost: **{profile.caging_cost()}** tokens",
        f"{EMOJI_TOKEN} Bathroom break cost: **{profile.bathroom_break_cost()}** tokens",
        f"{EMOJI_CYCLE} Cycle: **{completed} of {total}** portions ({fraction * 100:.0f}%)",
    ]


def caging_lines(profile: Profile) -> list[str]:
    if not profile.is_caged():
        return [f"{EMOJI_UNLOCK} Not caged"]
    return [
        f"{EMOJI_LOCK} Caged at: {format_moment(profile.caging_started)}",
        f"{EMOJI_CLOCK} Period: {format_duration(profile.caging_period)}",
        f"{EMOJI_CLOCK} Estimated end: {format_moment(profile.caging_end_estimate())}",
    ]


def describe_result(result: Dict[str, Any]) -> list[str]:
    """Сообщения для игрока по результату действия."""

    if not result.get("ok"):
        reason = result.get("reason")
        message = REASON_MESSAGES.get(reason, "That action is not available.")
        if "cost" in result:
            message += f" (cost: {result['cost']})"
        return [f"{EMOJI_X} {message}"]

    lines: list[str] = []
    action = result.get("action")
    if action in ("command", "buy"):
        if "cost" in result:
            lines.append(f"{EMOJI_OK} Successfully purchased caging for {result['cost']} tokens!")
        lines.append(f"{EMOJI_LOCK} You must cage for {format_duration(result['period'])}!")
    elif action == "bathroom":
        lines.append(f"{EMOJI_OK} Successfully purchased a bathroom break for {result['cost']} tokens!")
    elif action == "photo":
        lines.append(f"{EMOJI_OK} Successfully redeemed a Phallic Photo!")
    elif action == "refuse":
        if result.get("refused"):
            lines.append(f"{EMOJI_OK} Successfully refused caging!")
        else:
            lines.append(f"{EMOJI_X} Failed to refuse! Try again or be forced to cage!")
    elif result.get("successful"):
        lines.append(f"{EMOJI_OK} Caging completed successfully!")
    else:
        lines.append(f"{EMOJI_X} Caging FAILED!")

    if result.get("eliminated"):
        lines.append(f"{EMOJI_SKULL} You lost! Your profile has been deleted.")
        return lines

    if result.get("cycle_completed"):
        lines.append(f"{EMOJI_CYCLE} You completed a Cycle! Difficulty is now {result.get('level')}.")
    if result.get("refusals_earned"):
        lines.append(f"+ You've been rewarded {result['refusals_earned']} refusals!")
    if result.get("tokens_earned") is not None:
        lines.append(f"+ You earned {result['tokens_earned']} tokens!")
    if result.get("photo_earned"):
        lines.append("+ You earned a phallic photo!")
    if result.get("coin_bonus_announced"):
        lines.append(f"+ Your coin bonus has increased by {result['coin_bonus_gained']:.0f}%!")
    if result.get("prestige_earned"):
        lines.append(f"+ {EMOJI_CROWN} You earned a crown!")
    if result.get("tokens_lost") is not None:
        lines.append(f"- You lost {result['tokens_lost']} tokens!")
    if result.get("refusals_lost"):
        lines.append(f"- You lost {result['refusals_lost']} refusals!")
    if result.get("photos_lost") is not None:
        lines.append(f"- You lost all ({result['photos_lost']}) your phallic photos!")
    return lines


def build_status_embed(user_name: str, profile: Profile, notes: list[str] | None = None) -> discord.Embed:
    embed = discord.Embed(title=f"{EMOJI_PROFILE} {user_name}'s Stats")
    embed.add_field(name="Overview", value="\n".join(profile_overview_lines(profile)), inline=False)
    embed.add_field(name="Caging", value="\n".join(caging_lines(profile)), inline=False)
    if profile.is_max_difficulty():
        embed.add_field(name="Crowns", value=f"{EMOJI_CROWN} {profile.get_prestige()}", inline=False)
    actions = [ACTION_LABELS.get(action, action) for action in profile.available_actions()]
    embed.add_field(name="Available actions", value="\n".join(actions), inline=False)
    if notes:
        embed.add_field(name="Notes", value="\n".join(notes), inline=False)
    return embed


def detailed_stats_sections(profile: Profile) -> list[tuple[str, list[str]]]:
    stats = profile.stats
    tokens = stats.tokens
    refusals = stats.refusals
    p = format_percent
    t = format_duration

    sections = [
        ("Token Stats", [
            f"Tokens Earned: {tokens.earned.value}",
            f"Tokens Spent: {tokens.spent.total} ({p(stats.tokens_spent_percent())})",
            f"Tokens Spent Begging: {tokens.spent.begging.value} ({p(stats.tokens_spent_begging_percent())})",
            f"Tokens Spent Bathroom Break: {tokens.spent.bathroom_break.value} "
            f"({p(stats.tokens_spent_bathroom_percent())})",
            f"Tokens Lost: {tokens.lost.value} ({p(stats.tokens_lost_percent())})",
        ]),
        ("Phallic Photo Stats", [
            f"Phallic Photos Earned: {stats.photos.earned.value}",
            f"Phallic Photos Spent: {stats.photos.spent.value} ({p(stats.photos_spent_percent())})",
        ]),
        ("Refusal Stats", [
            f"Refusals Earned: {refusals.earned.value}",
            f"Refusals Spent: {refusals.spent} ({p(stats.refusals_spent_percent())})",
            f"Refusals Successful: {refusals.successfully.value} ({p(stats.successful_refusal_percent())})",
            f"Refusals Unsuccessful: {refusals.unsuccessfully.value}",
        ]),
        ("Time Stats", [
            f"Assigned Time Total: {t(stats.time.total)}",
            f"Purchased: {t(stats.time.purchased.value)} ({p(stats.time_purchased_percent())})",
            f"Commanded: {t(stats.time.commanded.value)} ({p(stats.time_commanded_percent())})",
            f"Failed Total: {t(stats.time_failed.total)} ({p(stats.time_total_failed_percent())})",
            f"Failed Purchased: {t(stats.time_failed.purchased.value)} ({p(stats.time_purchased_failed_percent())})",
            f"Failed Commanded: {t(stats.time_failed.commanded.value)} ({p(stats.time_commanded_failed_percent())})",
            f"Refused Attempted: {t(stats.time_refused.attempted)} ({p(stats.time_attempted_refused_percent())})",
            f"Refused Successful: {t(stats.time_refused.successfully.value)} "
            f"({p(stats.time_successfully_refused_percent())})",
            f"Refused Unsuccessful: {t(stats.time_refused.unsuccessfully.value)}",
            f"Refusal Weight (attempted): {t(stats.time_refused_weight())}",
            f"Refusal Weight (successful): {t(stats.time_refused_weight(successful_only=True))}",
        ]),
        ("Turn and Cycle Stats", [
            f"Cycles Completed: {stats.cycles_completed}",
            f"Turns Attempted: {stats.turns.attempted}",
            f"Turns Successful: {stats.turns.successfully.value}",
            f"Turns Failed: {stats.turns.unsuccessfully.value} ({p(stats.turns_failed_percent())})",
            f"Cycle Completion Turns: {p(stats.cycle_turn_percent())}",
            f"Turns Failed or Refused (attempted): {p(stats.turns_failed_or_refused_percent())}",
            f"Turns Failed or Refused (successful): {p(stats.turns_failed_or_refused_percent(True))}",
            f"Time Failed or Refused (attempted): {p(stats.time_failed_or_refused_percent())}",
            f"Time Failed or Refused (successful): {p(stats.time_failed_or_refused_percent(True))}",
        ]),
        ("Difficulty Stats", [
            f"Current Difficulty: {profile.cycle.level}",
            f"Current Minimum Difficulty: {profile.min_portion()}",
            f"Average Time Difficulty: {t(profile.average_time_difficulty())}",
            f"Portion of Max Difficulty: {p(profile.max_difficulty_fraction())}",
        ]),
    ]
    if profile.is_max_difficulty():
        sections[-1][1].append(
            f"Max Difficulty Time Completed: {t(stats.time.max_difficulty_successful.value)}"
        )
    return sections


def build_stats_embeds(user_name: str, profile: Profile) -> list[discord.Embed]:
    embeds = []
    for title, lines in detailed_stats_sections(profile):
        embed = discord.Embed(title=f"{EMOJI_STATS} {user_name}'s Detailed Stats")
        embed.add_field(name=title, value="\n".join(lines), inline=False)
        embeds.append(embed)
    return embeds


__all__ = [
    "build_stats_embeds",
    "build_status_embed",
    "caging_lines",
    "describe_result",
    "detailed_stats_sections",
    "profile_overview_lines",
]
