"""Filesystem-backed persistence for player profiles."""

from __future__ import annotations

import json
import os
import string
import tempfile
from pathlib import Path
from typing import Optional

_VALID_NAME_CHARS = set(string.ascii_lowercase + string.digits + "_-")


class InvalidProfileName(ValueError):
    """Raised when a profile name has no usable characters."""


def normalize_profile_name(name: str) -> str:
    cleaned = "".join(ch for ch in str(name or "").strip().lower() if ch in _VALID_NAME_CHARS)
    if not cleaned:
        raise InvalidProfileName(f"Profile names must contain letters or numbers: {name!r}")
    return cleaned


class DataStore:
    """Utility wrapper around the project's data directories."""

    def __init__(self, base_dir: Path | str | None = None):
        default_base = Path(__file__).resolve().parents[2]
        if base_dir is None:
            resolved_base = default_base
        else:
            resolved_base = Path(base_dir).expanduser()
            if not resolved_base.is_absolute():
                resolved_base = default_base / resolved_base
        resolved_base = resolved_base.resolve()
        self.base_dir = resolved_base
        self._base_anchor = resolved_base
        self.data_dir = self.base_dir / "data"
        self.profiles_dir = self.data_dir / "profiles"
        self._ensure_dirs()

    def _coerce_path(self, value: Path | str, relative_to: Path) -> Path:
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = relative_to / path
        return path.resolve()

    def _ensure_dirs(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.profiles_dir.mkdir(parents=True, exist_ok=True)

    def configure_paths(self, paths: dict | None) -> None:
        """Apply path overrides from configuration."""

        if not isinstance(paths, dict):
            self._ensure_dirs()
            return

        base_override = paths.get("base_dir")
        if base_override is not None:
            base_dir = self._coerce_path(base_override, self._base_anchor)
        else:
            base_dir = self._base_anchor
        self.base_dir = base_dir

        data_dir = base_dir / "data"
        data_dir_value = paths.get("data_dir")
        if data_dir_value is not None:
            data_dir = self._coerce_path(data_dir_value, base_dir)

        profiles_dir = data_dir / "profiles"
        profiles_value = paths.get("profiles_dir") or paths.get("profiles")
        if profiles_value is not None:
            profiles_dir = self._coerce_path(profiles_value, base_dir)

        self.data_dir = data_dir
        self.profiles_dir = profiles_dir
        self._ensure_dirs()

    # ------------------------------------------------------------------
    # Generic JSON helpers
    # ------------------------------------------------------------------
    def read_json(self, path: Path) -> Optional[dict]:
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    def write_json(self, path: Path, data: dict) -> None:
        """Write ``data`` through a temporary file so a failed save keeps the old file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", delete=False, dir=path.parent, prefix=path.name, suffix=".tmp", encoding="utf-8"
            ) as handle:
                tmp_path = Path(handle.name)
                json.dump(data, handle, ensure_ascii=False, indent=2)
            os.replace(str(tmp_path), str(path))
        except BaseException:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise

    def delete_json(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    # ------------------------------------------------------------------
    # Domain specific helpers
    # ------------------------------------------------------------------
    def profile_path(self, name: str) -> Path:
        return self.profiles_dir / f"{normalize_profile_name(name)}.json"
