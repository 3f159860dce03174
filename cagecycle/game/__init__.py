"""Пакет игровых сервисов.

Объединяет репозиторий профилей и игровую логику для удобства импорта.
"""
from .repository import DataStore, InvalidProfileName
from .services import GameService

__all__ = ["DataStore", "GameService", "InvalidProfileName"]
