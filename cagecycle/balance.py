"""Centralised balance configuration for the progression formulas."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass, replace
from typing import Any, Mapping, Sequence


class ConfigurationError(ValueError):
    """Raised when balance parameters cannot produce a valid cycle."""


@dataclass(frozen=True)
class CycleBalance:
    """Parameters that shape the difficulty cycle generator."""

    base_level: int = 1
    max_difficulty: int = 16
    price_range: tuple[int, int] = (5, 105)
    portion_range: tuple[int, int] = (1, 4)
    price_shift_per_level: int = 10
    # 1 in 4 to escalate, then 1 in 3 for a double step
    escalate_chance: tuple[float, float] = (1.0, 4.0)
    double_step_chance: tuple[float, float] = (1.0, 3.0)


@dataclass(frozen=True)
class EconomyBalance:
    """Prices, rewards and penalties of the token economy."""

    caging_price: int = 15
    bathroom_break_price: int = 8
    minutes_per_portion: int = 15
    turns_per_caging: float = 4.0
    coin_bonus_max: float = 200.0
    coin_bonus_per_cycle: float = 5.0
    refusal_reward_rate: float = 1.0 / 7.0
    reward_guaranteed: float = 0.5
    penalty_guaranteed: float = 0.0
    refusal_fail_chance: tuple[float, float] = (1.0, 4.0)
    photo_chance_out_of: float = 4.0
    refusals_lost_on_failure: int = 2


@dataclass(frozen=True)
class BalanceProfile:
    """Bundle of all tunable balance parameters."""

    cycle: CycleBalance = field(default_factory=CycleBalance)
    economy: EconomyBalance = field(default_factory=EconomyBalance)


def _coerce_scalar(template: Any, raw: Any) -> Any:
    """Attempt to coerce ``raw`` into the type of ``template``."""

    if isinstance(template, float):
        try:
            return float(raw)
        except (TypeError, ValueError):
            return template
    if isinstance(template, int) and not isinstance(template, bool):
        try:
            return int(raw)
        except (TypeError, ValueError):
            return template
    if isinstance(template, tuple) and len(template) == 2:
        if isinstance(raw, Sequence) and not isinstance(raw, str) and len(raw) == 2:
            first = _coerce_scalar(template[0], raw[0])
            second = _coerce_scalar(template[1], raw[1])
            return (first, second)
        return template
    return raw


def _merge_dataclass(instance: Any, overrides: Mapping[str, Any]) -> Any:
    if not is_dataclass(instance) or not isinstance(overrides, Mapping):
        return instance

    updates: dict[str, Any] = {}
    for field_info in fields(instance):
        name = field_info.name
        if name not in overrides:
            continue
        current_value = getattr(instance, name)
        override_value = overrides[name]
        if is_dataclass(current_value):
            updates[name] = _merge_dataclass(current_value, override_value)
        else:
            updates[name] = _coerce_scalar(current_value, override_value)
    if not updates:
        return instance
    return replace(instance, **updates)


def check_range(name: str, bounds: tuple[int, int], *, allow_equal: bool = False) -> tuple[int, int]:
    """Validate an inclusive ``(min, max)`` range used for random draws."""

    low, high = bounds
    if high < low or (not allow_equal and abs(high - low) < 1):
        raise ConfigurationError(
            f"Cannot draw randoms for {name}: min {low}, max {high}"
        )
    return int(low), int(high)


def load_balance_profile(raw: Mapping[str, Any] | None) -> BalanceProfile:
    """Return a :class:`BalanceProfile` with optional overrides applied."""

    profile = BalanceProfile()
    if not isinstance(raw, Mapping):
        return profile
    return _merge_dataclass(profile, raw)


__all__ = [
    "BalanceProfile",
    "ConfigurationError",
    "CycleBalance",
    "EconomyBalance",
    "check_range",
    "load_balance_profile",
]
