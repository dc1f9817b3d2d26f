"""
Bot entrypoint.

Operator notes:
- This file should remain extremely small and boring.
- Settings are built once here and passed down; validation happens inside run_bot().
- If this file crashes, the error should be immediately obvious to the operator.
"""

import logging
import sys

from arcade_bot.config import load_settings
from arcade_bot.discord.bot import run_bot


def main() -> None:
    try:
        run_bot(load_settings())
    except Exception:
        logging.basicConfig(level=logging.ERROR)
        logging.exception("Discord bot failed to start.")
        print("\n❌ Discord bot failed to start.")
        print("   See error above. Most common causes:")
        print("   - DISCORD_TOKEN or CLIENT_ID missing or not loaded into the environment")
        print("   - Database path/URL invalid (DATABASE_URL or DATABASE_PATH)")
        print("   - Health check port already in use (PORT)\n")
        sys.exit(1)


if __name__ == "__main__":
    main()
