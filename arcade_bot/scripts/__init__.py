"""
One-shot maintenance scripts.

Run with:
  python -m arcade_bot.scripts.register_commands --help
  python -m arcade_bot.scripts.clear_commands --help
  python -m arcade_bot.scripts.add_guild_columns --help
  python -m arcade_bot.scripts.migrate_roles --help
  python -m arcade_bot.scripts.init_database

Exit code 0 on success, 1 on any fatal error.
"""
