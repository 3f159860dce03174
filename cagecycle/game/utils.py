"""Вспомогательные функции."""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from .constants import MOMENT_FORMAT


def choice_value(choice: Any, default: Optional[str] = None) -> Optional[str]:
    """Безопасно извлечь значение из ``discord.app_commands.Choice``."""

    if choice is None:
        return default
    value = getattr(choice, "value", None)
    if value in (None, ""):
        return default
    return str(value)


def normalize_choice(choice: Any, allowed: Iterable[str], default: str) -> str:
    raw = (choice_value(choice, default=default) or default).lower()
    if raw not in set(allowed):
        return default
    return raw


def format_percent(value: float) -> str:
    """Процент с точностью до двух знаков (усечение), без лишних нулей."""

    scaled = math.trunc(value * 10000) / 100
    text = f"{scaled:.2f}".rstrip("0").rstrip(".")
    return f"{text}%"


def format_duration(value: timedelta) -> str:
    total_minutes = int(value.total_seconds() // 60)
    days, remainder = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(remainder, 60)
    parts = [
        f"{amount} {unit}{'s' if amount > 1 else ''}"
        for amount, unit in ((days, "day"), (hours, "hour"), (minutes, "minute"))
        if amount > 0
    ]
    if not parts:
        return "None"
    if len(parts) == 1:
        return parts[0]
    return ", ".join(parts[:-1]) + " and " + parts[-1]


def format_moment(value: Optional[datetime]) -> str:
    if value is None:
        return "—"
    return value.strftime(MOMENT_FORMAT)


__all__ = ["choice_value", "normalize_choice", "format_percent", "format_duration", "format_moment"]
