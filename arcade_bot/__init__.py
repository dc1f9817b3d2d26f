"""
Arcade bot core.

Three pieces matter here:
- arcade_bot.discord: descriptor registry, event bus, command sync, bot runtime
- arcade_bot.migrations: online schema rebuilds for the persisted store
- arcade_bot.health: passive /health endpoint served next to the bot
"""

__version__ = "1.0.0"
