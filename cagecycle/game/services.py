"""High level game logic built on top of the data store."""

from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .repository import DataStore, normalize_profile_name
from ..balance import BalanceProfile, load_balance_profile
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

log = logging.getLogger(__name__)

REASON_INVALID_ACTION = "invalid_action"


class GameService:
    """Encapsulates profile persistence and routes player actions."""

    def __init__(self, store: DataStore | None = None, rng: random.Random | None = None):
        self.store = store or DataStore()
        self.rng = rng or random.Random()
        self._config_cache: dict | None = None
        self._config_cache_key: tuple[str, int | None] | None = None
        self._config_path: Path | None = None
        self._config_default_base = self.store.base_dir
        self._balance_cache: BalanceProfile | None = None

    def _load_config(self) -> dict:
        candidates: list[Path] = []
        if self._config_path is not None:
            candidates.append(self._config_path)

        default_path = (self._config_default_base / "config.json").resolve()
        if default_path not in candidates:
            candidates.append(default_path)

        current_path = (self.store.base_dir / "config.json").resolve()
        if current_path not in candidates:
            candidates.append(current_path)

        path = candidates[0]
        mtime: int | None = None
        for candidate in candidates:
            try:
                current_mtime = candidate.stat().st_mtime_ns
            except FileNotFoundError:
                continue

            path = candidate
            mtime = current_mtime
            if self._config_path != candidate:
                self._config_path = candidate
            break

        cache_key = (str(path), mtime)

        if self._config_cache is not None and self._config_cache_key == cache_key:
            return self._config_cache

        if mtime is None:
            data = {}
        else:
            try:
                with path.open("r", encoding="utf-8") as handle:
                    data = json.load(handle)
            except (FileNotFoundError, json.JSONDecodeError):
                log.warning("Ignoring unreadable config file %s", path)
                data = {}

        if not isinstance(data, dict):
            data = {}

        paths_cfg = data.get("paths")
        self.store.configure_paths(paths_cfg if isinstance(paths_cfg, dict) else None)

        self._config_cache = data
        self._config_cache_key = cache_key
        self._balance_cache = None
        return self._config_cache

    def get_config(self) -> dict:
        return self._load_config()

    @property
    def config(self) -> dict:
        return self._load_config()

    def get_balance_profile(self) -> BalanceProfile:
        config = self._load_config()
        if self._balance_cache is None:
            balance_cfg = config.get("balance") if isinstance(config, dict) else None
            mapping = balance_cfg if isinstance(balance_cfg, dict) else None
            self._balance_cache = load_balance_profile(mapping)
        return self._balance_cache

    # ------------------------------------------------------------------
    # Profile persistence
    # ------------------------------------------------------------------
    def save_profile(self, profile: Profile) -> None:
        self._load_config()
        payload = profile.model_dump(mode="json", by_alias=True)
        path = self.store.profile_path(profile.name)
        try:
            self.store.write_json(path, payload)
        except OSError:
            log.error("Failed to save profile %s to %s", profile.name, path)
            raise

    def load_profile(self, name: str) -> Optional[Profile]:
        balance = self.get_balance_profile()
        raw = self.store.read_json(self.store.profile_path(name))
        if not raw:
            return None
        profile = Profile.model_validate(raw)
        return profile.bind(rng=self.rng, balance=balance)

    def delete_profile(self, name: str) -> bool:
        self._load_config()
        return self.store.delete_json(self.store.profile_path(name))

    def create_profile(self, name: str, **fields: Any) -> Profile:
        profile = Profile.create(
            normalize_profile_name(name),
            rng=self.rng,
            balance=self.get_balance_profile(),
            **fields,
        )
        self.save_profile(profile)
        log.info("Created profile %s", profile.name)
        return profile

    def load_or_create(self, name: str) -> Profile:
        profile = self.load_profile(name)
        if profile is None:
            profile = self.create_profile(name)
        return profile

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def _handlers(self, profile: Profile) -> Dict[str, Callable[[], Dict[str, Any]]]:
        return {
            ACTION_COMMAND: profile.command_caging,
            ACTION_BUY: profile.buy_caging,
            ACTION_COMPLETE: lambda: profile.uncage(True),
            ACTION_FAIL: lambda: profile.uncage(False),
            ACTION_REFUSE: profile.refuse_caging,
            ACTION_BATHROOM: profile.buy_bathroom_break,
            ACTION_PHOTO: profile.buy_phallic_photo_redeem,
        }

    def perform(self, profile: Profile, action: str) -> Dict[str, Any]:
        """Run one action, then save the profile or delete it when eliminated."""
        handler = self._handlers(profile).get(action)
        if handler is None:
            return {"ok": False, "reason": REASON_INVALID_ACTION, "action": action}

        result = handler()
        if result.get("eliminated"):
            log.info("Profile %s was eliminated", profile.name)
            self.delete_profile(profile.name)
            return result

        if result.get("cycle_completed"):
            log.info("Profile %s completed a cycle, now at level %s", profile.name, result.get("level"))
        self.save_profile(profile)
        return result
