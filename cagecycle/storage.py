"""Фасад для доступа к игровому сервису из когов."""
from __future__ import annotations

from typing import Any, Dict

from .game import DataStore, GameService
from .models import Profile

__all__ = [
    "get_config",
    "load_or_create_profile",
    "perform_action",
]

_STORE = DataStore()
_SERVICE = GameService(_STORE)


def get_config() -> dict:
    return _SERVICE.config


def load_or_create_profile(name: str) -> Profile:
    return _SERVICE.load_or_create(name)


def perform_action(profile: Profile, action: str) -> Dict[str, Any]:
    return _SERVICE.perform(profile, action)
