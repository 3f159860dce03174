from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict, PrivateAttr, RootModel
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime, timedelta
import math
import random

from .balance import BalanceProfile, ConfigurationError, CycleBalance, EconomyBalance, check_range

# -----------------------------------------------------------------------------
# Constants
# -----------------------------------------------------------------------------

ACTION_COMMAND  = "command"    # start caging for free
ACTION_BUY      = "buy"        # start caging with tokens
ACTION_COMPLETE = "complete"   # mark caging as complete
ACTION_FAIL     = "fail"       # mark caging as failed
ACTION_REFUSE   = "refuse"     # spend a refusal to try to skip the turn
ACTION_BATHROOM = "bathroom"
ACTION_PHOTO    = "photo"

UNCAGED_ACTIONS: Tuple[str, ...] = (ACTION_COMMAND, ACTION_BUY, ACTION_PHOTO)
CAGED_ACTIONS: Tuple[str, ...] = (ACTION_COMPLETE, ACTION_FAIL, ACTION_REFUSE, ACTION_BATHROOM, ACTION_PHOTO)

REASON_INSUFFICIENT_TOKENS   = "insufficient_tokens"
REASON_INSUFFICIENT_REFUSALS = "insufficient_refusals"
REASON_INSUFFICIENT_PHOTOS   = "insufficient_photos"
REASON_NOT_CAGED             = "not_caged"
REASON_ALREADY_CAGED         = "already_caged"

# -----------------------------------------------------------------------------
# Time / math helpers
# -----------------------------------------------------------------------------

def now_dt() -> datetime:
    return datetime.now()


def _as_number(value: Any) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


def divide(numerator: Any, denominator: Any) -> float:
    """Divide two numbers (or durations), yielding 0 instead of NaN/infinity."""
    top = _as_number(numerator)
    bottom = _as_number(denominator)
    if bottom == 0:
        return 0.0
    result = top / bottom
    if not math.isfinite(result):
        return 0.0
    return result


def chance_of(chance: float, out_of: float, rng: random.Random) -> bool:
    """Weighted coin flip: ``True`` with probability ``chance / out_of``."""
    if chance < 0 or out_of < 0:
        raise ValueError(f"chance and out_of must not be negative: chance {chance}, out_of {out_of}")
    if chance >= out_of:
        raise ValueError(f"chance must be smaller than out_of: chance {chance}, out_of {out_of}")
    return rng.random() * out_of <= chance


def different_random(last: Optional[int], bounds: Tuple[int, int], rng: random.Random) -> int:
    """Draw from ``bounds`` (inclusive) a value that differs from ``last``.

    On a collision the draw is repeated over the range without its top value
    and shifted up by one when it lands at or above ``last``; this excludes
    ``last`` without retrying.
    """
    low, high = bounds
    value = rng.randint(low, high)
    if last is not None and value == last:
        value = rng.randint(low, high - 1)
        if last - value <= 0:
            value += 1
    return value

# -----------------------------------------------------------------------------
# Counters
# -----------------------------------------------------------------------------

class Count(RootModel[float]):
    """Resource balance that the mutation API never drives below zero.

    Serializes as a bare number. ``get_int`` uses Python's ``round`` (banker's
    rounding).
    """

    root: float = 0.0

    def get_int(self) -> int:
        return int(round(self.root))

    def get_float(self) -> float:
        return float(self.root)

    def is_positive(self) -> bool:
        # zero counts as both positive and negative
        return self.root >= 0

    def is_negative(self) -> bool:
        return self.root <= 0

    def add(self, num: float) -> None:
        if num < 0:
            raise ValueError(f"Cannot add a negative amount to a counter: {num}")
        self.root += num

    def increment(self, direction: int = 1) -> None:
        if direction not in (1, -1):
            raise ValueError(f"direction must be 1 or -1, got {direction}")
        self.root += direction

    def clear(self) -> None:
        self.root = 0.0

    def purchase(self, cost: float) -> bool:
        if self.root - cost < 0:
            return False
        self.root -= cost
        return True

    def subtract_above_zero(self, cost: float) -> None:
        self.root = 0.0 if cost >= self.root else self.root - cost


class AddOnlyInt(RootModel[int]):
    """Statistic that can only grow."""

    root: int = 0

    @property
    def value(self) -> int:
        return int(self.root)

    def add(self, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Add-only value cannot take a negative delta: {amount}")
        self.root += int(amount)


class AddOnlyDuration(RootModel[timedelta]):
    """Duration statistic that can only grow. Serializes as ISO-8601."""

    root: timedelta = timedelta(0)

    @property
    def value(self) -> timedelta:
        return self.root

    def minutes(self) -> float:
        return self.root.total_seconds() / 60.0

    def add(self, amount: timedelta) -> None:
        if amount < timedelta(0):
            raise ValueError(f"Add-only duration cannot take a negative delta: {amount}")
        self.root += amount

# -----------------------------------------------------------------------------
# Difficulty cycle
# -----------------------------------------------------------------------------

class Cycle(BaseModel):
    """Random portions of one progression cycle plus its price modifier.

    The difficulty level is the number of portions. ``completed_index`` counts
    resolved turns and never exceeds ``len(portions)``.
    """

    price_modifier: int
    portions: List[int]
    completed_index: Count = Field(default_factory=Count)

    @classmethod
    def generate(
        cls,
        level: Optional[int] = None,
        price_range: Optional[Tuple[int, int]] = None,
        portion_range: Optional[Tuple[int, int]] = None,
        *,
        rng: random.Random,
        rules: Optional[CycleBalance] = None,
    ) -> "Cycle":
        rules = rules or CycleBalance()
        level = rules.base_level if level is None else int(level)
        if level < 1:
            raise ConfigurationError(f"Cycle level must be at least 1, got {level}")
        price_bounds = check_range("price_range", tuple(price_range or rules.price_range), allow_equal=True)
        portion_bounds = check_range("portion_range", tuple(portion_range or rules.portion_range))

        price_modifier = rng.randint(*price_bounds)
        portions: List[int] = []
        last: Optional[int] = None
        for _ in range(level):
            last = different_random(last, portion_bounds, rng)
            portions.append(last)
        return cls(price_modifier=price_modifier, portions=portions)

    @property
    def level(self) -> int:
        return len(self.portions)

    def completed(self) -> int:
        return self.completed_index.get_int()

    def is_complete(self) -> bool:
        return self.completed() >= len(self.portions)

    def completion_fraction(self) -> float:
        return divide(self.completed(), self.level)

    def current_portion(self) -> int:
        if self.is_complete():
            raise RuntimeError("Cycle is complete; generate the next cycle first")
        return self.portions[self.completed()]

    def advance(self) -> None:
        if self.is_complete():
            raise RuntimeError("Cycle is already complete")
        self.completed_index.increment()

    def nums_max(self, difficulty: Optional[int] = None, rules: Optional[CycleBalance] = None) -> int:
        """Largest portion at ``difficulty``: one step per level above the base."""
        rules = rules or CycleBalance()
        difficulty = self.level if difficulty is None else difficulty
        return rules.portion_range[1] + (difficulty - rules.base_level)

    def nums_min(self, difficulty: Optional[int] = None, rules: Optional[CycleBalance] = None) -> int:
        """Smallest portion at ``difficulty``: one step per four levels."""
        rules = rules or CycleBalance()
        difficulty = self.level if difficulty is None else difficulty
        return rules.portion_range[0] + int(round((difficulty - rules.base_level) / 4))

    def is_max_difficulty(self, rules: Optional[CycleBalance] = None) -> bool:
        rules = rules or CycleBalance()
        return self.level >= rules.max_difficulty

    def replace_random(
        self,
        rng: random.Random,
        index: Optional[int] = None,
        rules: Optional[CycleBalance] = None,
    ) -> int:
        """Redraw one portion so it differs from its current value."""
        index = self.completed() if index is None else index
        bounds = (self.nums_min(rules=rules), self.nums_max(rules=rules))
        self.portions[index] = different_random(self.portions[index], bounds, rng)
        return self.portions[index]

    def escalate(self, rng: random.Random, rules: Optional[CycleBalance] = None) -> "Cycle":
        """Build the next cycle, possibly one or two levels harder."""
        rules = rules or CycleBalance()
        level = self.level
        if not self.is_max_difficulty(rules):
            if chance_of(*rules.escalate_chance, rng):
                level += 2 if chance_of(*rules.double_step_chance, rng) else 1
        level = min(level, max(rules.max_difficulty, self.level))

        shift = (level - rules.base_level) * rules.price_shift_per_level
        price_range = (rules.price_range[0] + shift, rules.price_range[1] + shift)
        portion_range = (self.nums_min(level, rules), self.nums_max(level, rules))
        return Cycle.generate(level, price_range, portion_range, rng=rng, rules=rules)

# -----------------------------------------------------------------------------
# Statistics ledger
# -----------------------------------------------------------------------------

class TokenSpendStats(BaseModel):
    begging: AddOnlyInt = Field(default_factory=AddOnlyInt)
    bathroom_break: AddOnlyInt = Field(default_factory=AddOnlyInt)

    @property
    def total(self) -> int:
        return self.begging.value + self.bathroom_break.value


class TokenStats(BaseModel):
    earned: AddOnlyInt = Field(default_factory=AddOnlyInt)
    spent: TokenSpendStats = Field(default_factory=TokenSpendStats)
    lost: AddOnlyInt = Field(default_factory=AddOnlyInt)


class PhotoStats(BaseModel):
    earned: AddOnlyInt = Field(default_factory=AddOnlyInt)
    spent: AddOnlyInt = Field(default_factory=AddOnlyInt)


class RefusalStats(BaseModel):
    earned: AddOnlyInt = Field(default_factory=AddOnlyInt)
    successfully: AddOnlyInt = Field(default_factory=AddOnlyInt)
    unsuccessfully: AddOnlyInt = Field(default_factory=AddOnlyInt)

    @property
    def attempted(self) -> int:
        return self.successfully.value + self.unsuccessfully.value

    @property
    def spent(self) -> int:
        # every attempt consumes a refusal
        return self.attempted


class TimeStats(BaseModel):
    purchased: AddOnlyDuration = Field(default_factory=AddOnlyDuration)
    commanded: AddOnlyDuration = Field(default_factory=AddOnlyDuration)
    max_difficulty_successful: AddOnlyDuration = Field(default_factory=AddOnlyDuration)

    @property
    def total(self) -> timedelta:
        return self.purchased.value + self.commanded.value


class TimeFailedStats(BaseModel):
    purchased: AddOnlyDuration = Field(default_factory=AddOnlyDuration)
    commanded: AddOnlyDuration = Field(default_factory=AddOnlyDuration)

    @property
    def total(self) -> timedelta:
        return self.purchased.value + self.commanded.value


class TimeRefusedStats(BaseModel):
    successfully: AddOnlyDuration = Field(default_factory=AddOnlyDuration)
    unsuccessfully: AddOnlyDuration = Field(default_factory=AddOnlyDuration)

    @property
    def attempted(self) -> timedelta:
        return self.successfully.value + self.unsuccessfully.value


class TurnStats(BaseModel):
    successfully: AddOnlyInt = Field(default_factory=AddOnlyInt)
    unsuccessfully: AddOnlyInt = Field(default_factory=AddOnlyInt)

    @property
    def attempted(self) -> int:
        return self.successfully.value + self.unsuccessfully.value


class ProgressLedger(BaseModel):
    """Append-only statistics. Totals and percentages are derived on read."""

    tokens: TokenStats = Field(default_factory=TokenStats)
    photos: PhotoStats = Field(default_factory=PhotoStats)
    refusals: RefusalStats = Field(default_factory=RefusalStats)
    time: TimeStats = Field(default_factory=TimeStats)
    time_failed: TimeFailedStats = Field(default_factory=TimeFailedStats)
    time_refused: TimeRefusedStats = Field(default_factory=TimeRefusedStats)
    turns: TurnStats = Field(default_factory=TurnStats)

    @property
    def cycles_completed(self) -> int:
        """Alias of refusals earned, which only grows on cycle completion."""
        return self.refusals.earned.value

    # tokens
    def tokens_spent_percent(self) -> float:
        return divide(self.tokens.spent.total, self.tokens.earned.value)

    def tokens_spent_begging_percent(self) -> float:
        return divide(self.tokens.spent.begging.value, self.tokens.spent.total)

    def tokens_spent_bathroom_percent(self) -> float:
        return divide(self.tokens.spent.bathroom_break.value, self.tokens.spent.total)

    def tokens_lost_percent(self) -> float:
        return divide(self.tokens.lost.value, self.tokens.earned.value)

    # photos
    def photos_spent_percent(self) -> float:
        return divide(self.photos.spent.value, self.photos.earned.value)

    # refusals
    def refusals_spent_percent(self) -> float:
        return divide(self.refusals.spent, self.refusals.earned.value)

    def successful_refusal_percent(self) -> float:
        return divide(self.refusals.successfully.value, self.refusals.attempted)

    # time
    def time_purchased_percent(self) -> float:
        return divide(self.time.purchased.value, self.time.total)

    def time_commanded_percent(self) -> float:
        return divide(self.time.commanded.value, self.time.total)

    def time_purchased_failed_percent(self) -> float:
        return divide(self.time_failed.purchased.value, self.time.purchased.value)

    def time_commanded_failed_percent(self) -> float:
        return divide(self.time_failed.commanded.value, self.time.commanded.value)

    def time_total_failed_percent(self) -> float:
        return divide(self.time_failed.total, self.time.total)

    def time_attempted_refused_percent(self) -> float:
        return divide(self.time_refused.attempted, self.time.total)

    def time_successfully_refused_percent(self) -> float:
        return divide(self.time_refused.successfully.value, self.time.total)

    def time_refused_weight(self, successful_only: bool = False) -> timedelta:
        """Average caging time one refusal was worth, truncated to minutes."""
        if successful_only:
            minutes = divide(self.time_refused.successfully.minutes(), self.refusals.successfully.value)
        else:
            minutes = divide(self.time_refused.attempted.total_seconds() / 60.0, self.refusals.attempted)
        return timedelta(minutes=int(minutes))

    def time_failed_or_refused_percent(self, successful_only: bool = False) -> float:
        refused = self.time_refused.successfully.value if successful_only else self.time_refused.attempted
        return divide(self.time_failed.total + refused, self.time.total)

    # turns
    def cycle_turn_percent(self) -> float:
        return divide(self.cycles_completed, self.turns.successfully.value)

    def turns_failed_percent(self) -> float:
        return divide(self.turns.unsuccessfully.value, self.turns.attempted)

    def turns_failed_or_refused_percent(self, successful_only: bool = False) -> float:
        refused = self.refusals.successfully.value if successful_only else self.refusals.attempted
        return divide(self.turns.unsuccessfully.value + refused, self.turns.attempted)

# -----------------------------------------------------------------------------
# Profile
# -----------------------------------------------------------------------------

class Profile(BaseModel):
    """One player's economy, caging state, cycle and statistics.

    Randomness and balance are bound at runtime via :meth:`bind` and are never
    persisted. Actions return result dicts; ``ok`` is ``False`` when nothing
    changed.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    tokens: Count = Field(default_factory=Count)
    photos: Count = Field(default_factory=Count)
    coin_bonus: Count = Field(default_factory=Count)
    refusals: Count = Field(default_factory=Count)
    prestige: Count = Field(default_factory=Count, alias="crowns", serialization_alias="crowns")

    caging_started: Optional[datetime] = None
    caging_period: timedelta = timedelta(0)
    last_caging_was_purchased: bool = False

    cycle: Cycle
    stats: ProgressLedger = Field(default_factory=ProgressLedger)

    _rng: random.Random = PrivateAttr(default_factory=random.Random)
    _balance: BalanceProfile = PrivateAttr(default_factory=BalanceProfile)

    @classmethod
    def create(
        cls,
        name: str,
        *,
        rng: Optional[random.Random] = None,
        balance: Optional[BalanceProfile] = None,
        **fields: Any,
    ) -> "Profile":
        """Fresh profile with a newly generated base-level cycle."""
        rng = rng or random.Random()
        balance = balance or BalanceProfile()
        if "cycle" not in fields:
            fields["cycle"] = Cycle.generate(rng=rng, rules=balance.cycle)
        profile = cls(name=name, **fields)
        return profile.bind(rng=rng, balance=balance)

    def bind(
        self,
        rng: Optional[random.Random] = None,
        balance: Optional[BalanceProfile] = None,
    ) -> "Profile":
        if rng is not None:
            self._rng = rng
        if balance is not None:
            self._balance = balance
        return self

    @property
    def rng(self) -> random.Random:
        return self._rng

    @property
    def balance(self) -> BalanceProfile:
        return self._balance

    @property
    def rules(self) -> CycleBalance:
        return self._balance.cycle

    @property
    def economy(self) -> EconomyBalance:
        return self._balance.economy

    # ------------------------------------------------------------------
    # Read-only getters
    # ------------------------------------------------------------------

    def get_tokens(self) -> int:
        return self.tokens.get_int()

    def get_photos(self) -> int:
        return self.photos.get_int()

    def get_refusals(self) -> int:
        return self.refusals.get_int()

    def get_prestige(self) -> int:
        return self.prestige.get_int()

    def get_coin_bonus(self) -> float:
        return self.coin_bonus.get_float()

    def is_caged(self) -> bool:
        return self.caging_started is not None

    def caging_end_estimate(self) -> Optional[datetime]:
        if self.caging_started is None:
            return None
        return self.caging_started + self.caging_period

    def cycle_completion(self) -> Tuple[int, int, float]:
        return self.cycle.completed(), self.cycle.level, self.cycle.completion_fraction()

    def is_max_difficulty(self) -> bool:
        return self.cycle.is_max_difficulty(self.rules)

    def min_portion(self) -> int:
        return self.cycle.nums_min(rules=self.rules)

    def max_difficulty_fraction(self) -> float:
        return divide(self.cycle.level, self.rules.max_difficulty)

    def average_time_difficulty(self) -> timedelta:
        """Expected caging period at the current level (half of the worst case)."""
        worst = self.cycle.nums_max(rules=self.rules)
        return timedelta(minutes=int(round(self.economy.minutes_per_portion * (worst / 2.0))))

    def available_actions(self) -> Tuple[str, ...]:
        return CAGED_ACTIONS if self.is_caged() else UNCAGED_ACTIONS

    def _scaled_price(self, base: int) -> int:
        return int(round(base * (1 + self.cycle.price_modifier / 100.0)))

    def caging_cost(self) -> int:
        return self._scaled_price(self.economy.caging_price)

    def bathroom_break_cost(self) -> int:
        return self._scaled_price(self.economy.bathroom_break_price)

    def average_caging_cost(self) -> int:
        """Caging cost at the midpoint of the base price-modifier range."""
        low, high = self.rules.price_range
        return int(round(self.economy.caging_price * (1 + ((high - low) // 2) / 100.0)))

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    def time_difficulty_percent(self, index: Optional[int] = None) -> float:
        """How long the portion at ``index`` is relative to the level's range."""
        index = self.cycle.completed() if index is None else index
        spread = self.cycle.nums_max(rules=self.rules) - self.cycle.nums_min(rules=self.rules)
        return divide(self.cycle.portions[index], spread)

    def scaled_time_difficulty(self, index: Optional[int] = None) -> float:
        # 0 -> 0.5, 0.5 -> 1, 1 -> 2
        percent = self.time_difficulty_percent(index)
        return percent ** 2 + 0.5 * percent + 0.5

    def random_price(self, guaranteed: float, index: Optional[int] = None) -> int:
        """Random token amount averaging a quarter of a caging, scaled by the slot.

        ``guaranteed`` sets the share of the amount that is paid out
        deterministically; the rest is drawn uniformly.
        """
        alteration = self.time_difficulty_percent(index) + 0.5
        average_cost = self.average_caging_cost() / self.economy.turns_per_caging
        altered = average_cost * alteration
        guaranteed_amount = int(math.floor(altered * guaranteed * 2))
        random_span = int(math.ceil(altered * (1 - guaranteed)))
        return guaranteed_amount + self._rng.randint(0, random_span)

    def apply_coin_bonus(self, amount: int) -> int:
        return int(math.floor(amount * (1 + self.coin_bonus.get_float() / 100.0)))

    # ------------------------------------------------------------------
    # Caging state machine
    # ------------------------------------------------------------------

    def cage(self) -> timedelta:
        minutes = self.economy.minutes_per_portion * self.cycle.current_portion()
        self.caging_period = timedelta(minutes=minutes)

        current = now_dt()
        started = current.replace(second=0, microsecond=0)
        if current.second >= 30:
            started += timedelta(minutes=1)
        self.caging_started = started
        return self.caging_period

    def _caging_result(self, action: str, **extra: Any) -> Dict[str, Any]:
        result = {
            "ok": True,
            "action": action,
            "period": self.caging_period,
            "started": self.caging_started,
            "ends": self.caging_end_estimate(),
        }
        result.update(extra)
        return result

    def command_caging(self) -> Dict[str, Any]:
        if self.is_caged():
            return {"ok": False, "reason": REASON_ALREADY_CAGED}
        self.last_caging_was_purchased = False
        self.cage()
        return self._caging_result(ACTION_COMMAND)

    def buy_caging(self) -> Dict[str, Any]:
        if self.is_caged():
            return {"ok": False, "reason": REASON_ALREADY_CAGED}
        price = self.caging_cost()
        if not self.tokens.purchase(price):
            return {"ok": False, "reason": REASON_INSUFFICIENT_TOKENS, "cost": price}
        self.stats.tokens.spent.begging.add(price)
        self.last_caging_was_purchased = True
        self.cage()
        return self._caging_result(ACTION_BUY, cost=price)

    def buy_bathroom_break(self) -> Dict[str, Any]:
        if not self.is_caged():
            return {"ok": False, "reason": REASON_NOT_CAGED}
        price = self.bathroom_break_cost()
        if not self.tokens.purchase(price):
            return {"ok": False, "reason": REASON_INSUFFICIENT_TOKENS, "cost": price}
        self.stats.tokens.spent.bathroom_break.add(price)
        return {"ok": True, "action": ACTION_BATHROOM, "cost": price}

    def buy_phallic_photo_redeem(self) -> Dict[str, Any]:
        if not self.photos.purchase(1):
            return {"ok": False, "reason": REASON_INSUFFICIENT_PHOTOS}
        self.stats.photos.spent.add(1)
        return {"ok": True, "action": ACTION_PHOTO, "cost": 1}

    def refuse_caging(self) -> Dict[str, Any]:
        """Spend a refusal; on success the turn completes without the turn reward."""
        if not self.is_caged():
            return {"ok": False, "reason": REASON_NOT_CAGED}
        if not self.refusals.purchase(1):
            return {"ok": False, "reason": REASON_INSUFFICIENT_REFUSALS}

        if chance_of(*self.economy.refusal_fail_chance, self._rng):
            self.stats.refusals.unsuccessfully.add(1)
            self.stats.time_refused.unsuccessfully.add(self.caging_period)
            return {"ok": True, "action": ACTION_REFUSE, "refused": False, "period": self.caging_period}

        self.stats.refusals.successfully.add(1)
        self.stats.time_refused.successfully.add(self.caging_period)
        result = self.uncage(True, reward_user=False)
        result["action"] = ACTION_REFUSE
        result["refused"] = True
        return result

    def uncage(self, successful: bool, reward_user: bool = True) -> Dict[str, Any]:
        if not self.is_caged():
            return {"ok": False, "reason": REASON_NOT_CAGED}

        # built first so a bad balance aborts before anything changes
        next_cycle: Optional[Cycle] = None
        if successful and self.cycle.completed() + 1 >= self.cycle.level:
            next_cycle = self.cycle.escalate(self._rng, self.rules)

        period = self.caging_period
        time_stats = self.stats.time
        (time_stats.purchased if self.last_caging_was_purchased else time_stats.commanded).add(period)

        result: Dict[str, Any] = {
            "ok": True,
            "action": ACTION_COMPLETE if successful else ACTION_FAIL,
            "successful": successful,
            "period": period,
            "eliminated": False,
            "cycle_completed": False,
        }

        if successful:
            self.cycle.advance()
            self.stats.turns.successfully.add(1)
            if next_cycle is not None:
                # reward against the finished cycle before it is replaced
                result.update(self._reward(reward_refusal=True, reward_user=reward_user))
                self.cycle = next_cycle
                result["cycle_completed"] = True
                result["level"] = self.cycle.level
            else:
                result.update(self._reward(reward_refusal=False, reward_user=reward_user))
        else:
            result.update(self._apply_failure_loss())
            if result["eliminated"]:
                return result
            self.cycle.replace_random(self._rng, rules=self.rules)
            self.stats.turns.unsuccessfully.add(1)
            failed = self.stats.time_failed
            (failed.purchased if self.last_caging_was_purchased else failed.commanded).add(period)

        self.caging_period = timedelta(0)
        self.caging_started = None
        return result

    # ------------------------------------------------------------------
    # Rewards and penalties
    # ------------------------------------------------------------------

    def _reward(self, reward_refusal: bool, reward_user: bool = True) -> Dict[str, Any]:
        economy = self.economy
        index = self.cycle.completed() - 1
        scaled = self.scaled_time_difficulty(index)
        out: Dict[str, Any] = {}

        if reward_refusal:
            amount = int(round(economy.refusal_reward_rate * scaled * self.cycle.level))
            amount = max(1, amount)
            self.refusals.add(amount)
            self.stats.refusals.earned.add(amount)
            out["refusals_earned"] = amount

        if not reward_user:
            return out

        coins = self.apply_coin_bonus(self.random_price(economy.reward_guaranteed, index))
        self.tokens.add(coins)
        self.stats.tokens.earned.add(coins)
        out["tokens_earned"] = coins

        out_of = economy.photo_chance_out_of
        photo = scaled >= out_of or chance_of(scaled, out_of, self._rng)
        if photo:
            self.photos.increment()
            self.stats.photos.earned.add(1)
        out["photo_earned"] = photo

        if not self.is_max_difficulty():
            current = self.coin_bonus.get_float()
            if current < economy.coin_bonus_max:
                gain = min(economy.coin_bonus_per_cycle / self.cycle.level, economy.coin_bonus_max - current)
                self.coin_bonus.add(gain)
                out["coin_bonus_gained"] = gain
                out["coin_bonus_announced"] = math.floor(gain) != 0
        else:
            self.stats.time.max_difficulty_successful.add(self.caging_period)
            self.prestige.increment()
            out["prestige_earned"] = 1
        return out

    def _apply_failure_loss(self) -> Dict[str, Any]:
        """Take the failure penalty from the first resource that can pay it."""
        economy = self.economy
        penalty = self.apply_coin_bonus(self.random_price(economy.penalty_guaranteed))
        out: Dict[str, Any] = {"penalty": penalty, "eliminated": False}

        if self.tokens.get_float() > 0 and self.tokens.purchase(penalty):
            self.stats.tokens.lost.add(penalty)
            out["tokens_lost"] = penalty
        elif self.tokens.get_int() != 0:
            lost = self.tokens.get_int()
            self.tokens.clear()
            self.stats.tokens.lost.add(lost)
            out["tokens_lost"] = lost
        elif self.refusals.purchase(economy.refusals_lost_on_failure):
            out["refusals_lost"] = economy.refusals_lost_on_failure
        elif self.photos.get_float() > 0:
            out["photos_lost"] = self.photos.get_int()
            self.photos.clear()
        else:
            out["eliminated"] = True
        return out


__all__ = [
    "ACTION_BATHROOM",
    "ACTION_BUY",
    "ACTION_COMMAND",
    "ACTION_COMPLETE",
    "ACTION_FAIL",
    "ACTION_PHOTO",
    "ACTION_REFUSE",
    "AddOnlyDuration",
    "AddOnlyInt",
    "CAGED_ACTIONS",
    "Count",
    "Cycle",
    "Profile",
    "ProgressLedger",
    "REASON_ALREADY_CAGED",
    "REASON_INSUFFICIENT_PHOTOS",
    "REASON_INSUFFICIENT_REFUSALS",
    "REASON_INSUFFICIENT_TOKENS",
    "REASON_NOT_CAGED",
    "UNCAGED_ACTIONS",
    "chance_of",
    "different_random",
    "divide",
    "now_dt",
]
