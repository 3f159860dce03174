import unittest
from datetime import datetime, timedelta

from cagecycle.balance import BalanceProfile, CycleBalance
from cagecycle.game.embeds import (
    build_stats_embeds,
    build_status_embed,
    describe_result,
    detailed_stats_sections,
)
from cagecycle.game.utils import format_duration, format_moment, format_percent
from cagecycle.models import Count, Cycle, Profile


def _profile(portions=(2, 3), balance=None, **fields):
    cycle = Cycle(price_modifier=5, portions=list(portions))
    return Profile.create("tester", cycle=cycle, balance=balance, **fields)


class FormatTests(unittest.TestCase):
    def test_format_percent_truncates(self):
        self.assertEqual(format_percent(0.5), "50%")
        self.assertEqual(format_percent(0.12345), "12.34%")
        self.assertEqual(format_percent(1 / 3), "33.33%")
        self.assertEqual(format_percent(0), "0%")
        self.assertEqual(format_percent(1.25), "125%")

    def test_format_duration(self):
        self.assertEqual(format_duration(timedelta(0)), "None")
        self.assertEqual(format_duration(timedelta(minutes=1)), "1 minute")
        self.assertEqual(format_duration(timedelta(minutes=90)), "1 hour and 30 minutes")
        self.assertEqual(format_duration(timedelta(days=1, minutes=1)), "1 day and 1 minute")
        self.assertEqual(
            format_duration(timedelta(days=2, hours=3, minutes=4)),
            "2 days, 3 hours and 4 minutes",
        )

    def test_format_moment(self):
        self.assertEqual(format_moment(datetime(2024, 3, 1, 14, 5)), "02:05 PM (on 03/01/2024)")
        self.assertEqual(format_moment(None), "—")


class DescribeResultTests(unittest.TestCase):
    def test_failure_reason_includes_cost(self):
        lines = describe_result({"ok": False, "reason": "insufficient_tokens", "cost": 16})
        self.assertEqual(len(lines), 1)
        self.assertIn("You do not have enough Tokens for this currently! (cost: 16)", lines[0])

    def test_unknown_reason_has_fallback(self):
        lines = describe_result({"ok": False, "reason": "invalid_action"})
        self.assertIn("That action is not available.", lines[0])

    def test_cycle_completion_lists_rewards(self):
        lines = describe_result(
            {
                "ok": True,
                "action": "complete",
                "successful": True,
                "cycle_completed": True,
                "level": 2,
                "refusals_earned": 1,
                "tokens_earned": 8,
                "photo_earned": True,
                "coin_bonus_gained": 5.0,
                "coin_bonus_announced": True,
            }
        )
        text = "\n".join(lines)
        self.assertIn("Caging completed successfully!", text)
        self.assertIn("Difficulty is now 2.", text)
        self.assertIn("+ You've been rewarded 1 refusals!", text)
        self.assertIn("+ You earned 8 tokens!", text)
        self.assertIn("+ You earned a phallic photo!", text)
        self.assertIn("+ Your coin bonus has increased by 5%!", text)

    def test_small_coin_bonus_is_not_announced(self):
        lines = describe_result(
            {"ok": True, "action": "complete", "successful": True, "coin_bonus_gained": 0.3125,
             "coin_bonus_announced": False, "tokens_earned": 4}
        )
        self.assertFalse(any("coin bonus" in line for line in lines))

    def test_failure_losses(self):
        lines = describe_result(
            {"ok": True, "action": "fail", "successful": False, "eliminated": False, "tokens_lost": 3}
        )
        self.assertIn("Caging FAILED!", lines[0])
        self.assertEqual(lines[1], "- You lost 3 tokens!")

        lines = describe_result(
            {"ok": True, "action": "fail", "successful": False, "eliminated": False, "photos_lost": 2}
        )
        self.assertEqual(lines[1], "- You lost all (2) your phallic photos!")

    def test_refusal_outcomes(self):
        failed = describe_result({"ok": True, "action": "refuse", "refused": False})
        self.assertIn("Failed to refuse!", failed[0])
        refused = describe_result({"ok": True, "action": "refuse", "refused": True, "successful": True})
        self.assertIn("Successfully refused caging!", refused[0])

    def test_elimination_stops_further_lines(self):
        lines = describe_result(
            {"ok": True, "action": "fail", "successful": False, "eliminated": True, "penalty": 7}
        )
        self.assertEqual(len(lines), 2)
        self.assertIn("You lost!", lines[1])


class StatusEmbedTests(unittest.TestCase):
    def test_uncaged_status(self):
        profile = _profile(tokens=Count(20))
        embed = build_status_embed("Tester", profile, notes=["hello"])
        names = [field.name for field in embed.fields]

        self.assertEqual(names, ["Overview", "Caging", "Available actions", "Notes"])
        self.assertIn("Caging cost: **16** tokens", embed.fields[0].value)
        self.assertIn("Cycle: **0 of 2** portions (0%)", embed.fields[0].value)
        self.assertIn("Not caged", embed.fields[1].value)
        self.assertIn("Start caging (purchase)", embed.fields[2].value)

    def test_caged_status_shows_times(self):
        profile = _profile()
        profile.caging_started = datetime(2024, 3, 1, 9, 0)
        profile.caging_period = timedelta(minutes=30)
        embed = build_status_embed("Tester", profile)

        self.assertIn("09:30 AM (on 03/01/2024)", embed.fields[1].value)
        self.assertIn("Mark caging as failed", embed.fields[2].value)

    def test_max_difficulty_shows_crowns(self):
        balance = BalanceProfile(cycle=CycleBalance(max_difficulty=2))
        profile = _profile(balance=balance, prestige=Count(3))
        embed = build_status_embed("Tester", profile)
        self.assertIn("Crowns", [field.name for field in embed.fields])


class StatsEmbedTests(unittest.TestCase):
    def test_sections_cover_all_groups(self):
        profile = _profile()
        titles = [title for title, _ in detailed_stats_sections(profile)]
        self.assertEqual(
            titles,
            [
                "Token Stats",
                "Phallic Photo Stats",
                "Refusal Stats",
                "Time Stats",
                "Turn and Cycle Stats",
                "Difficulty Stats",
            ],
        )
        embeds = build_stats_embeds("Tester", profile)
        self.assertEqual(len(embeds), 6)

    def test_ledger_values_are_rendered(self):
        profile = _profile()
        profile.stats.tokens.earned.add(40)
        profile.stats.tokens.spent.begging.add(20)
        sections = dict(detailed_stats_sections(profile))
        self.assertIn("Tokens Spent: 20 (50%)", sections["Token Stats"])
        self.assertIn("Current Difficulty: 2", sections["Difficulty Stats"])
        self.assertFalse(any("Max Difficulty Time" in line for line in sections["Difficulty Stats"]))
