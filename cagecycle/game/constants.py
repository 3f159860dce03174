"""Константы оформления."""

EMOJI_PROFILE = "👤"
EMOJI_TOKEN = "🪙"
EMOJI_PHOTO = "📸"
EMOJI_REFUSAL = "🙅"
EMOJI_BONUS = "📈"
EMOJI_CROWN = "👑"
EMOJI_LOCK = "🔒"
EMOJI_UNLOCK = "🔓"
EMOJI_CLOCK = "⏰"
EMOJI_CYCLE = "🔁"
EMOJI_STATS = "📊"
EMOJI_OK = "✅"
EMOJI_X = "❌"
EMOJI_SKULL = "💀"

MOMENT_FORMAT = "%I:%M %p (on %m/%d/%Y)"

ACTION_LABELS = {
    "command": "Start caging (free)",
    "buy": "Start caging (purchase)",
    "complete": "Mark caging as complete",
    "fail": "Mark caging as failed",
    "refuse": "Try to refuse caging",
    "bathroom": "Purchase a bathroom break",
    "photo": "Redeem a phallic photo",
}

__all__ = [name for name in globals().keys() if name.startswith("EMOJI_")] + ["MOMENT_FORMAT", "ACTION_LABELS"]
