"""
Chatglass Moderation Console
============================

Starts an interactive console that sends messages for a single user through
the moderation engine, so the filter and the warn/report/mute escalation can
be exercised by hand.
"""

import os
import sys
from pathlib import Path

def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. CHATGLASS_HOME environment variable, if set.
    2. If running in a frozen/compiled context, use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("CHATGLASS_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


def load_environment(base_dir: Path) -> None:
    """Load ``.env`` from the base directory so CHATGLASS_* variables apply."""
    from dotenv import load_dotenv

    load_dotenv(dotenv_path=base_dir / ".env")


async def async_main() -> int:
    """Build the moderation engine from config and run the console.

    Returns
    -------
    int
        Process exit code: 0 on a clean exit, 1 if the configuration is invalid.
    """
    from chatglass.configuration.app_configuration import app_config
    from chatglass.datatypes.user_datatypes import User
    from chatglass.moderation.classification import LexicalClassifier
    from chatglass.moderation.glass_moderation import GlassModeration
    from chatglass.ui.console import ConsoleControl, run_console
    from chatglass.util.logger import get_logger

    logger = get_logger("main")

    settings = app_config.moderation_settings
    try:
        engine = GlassModeration(
            classifier=LexicalClassifier(settings.build_lexicon()),
            policy=settings.policy,
        )
    except ValueError as exc:
        logger.critical("Invalid moderation configuration: %s", exc)
        return 1

    name, user_id = app_config.console_user
    control = ConsoleControl(engine=engine, user=User.new(name, user_id))
    logger.info("Moderating as %s (ID: %s)", name, user_id)

    await run_console(control)
    logger.info("Console closed.")
    return 0


def main() -> int:
    """Entrypoint that prepares the environment and runs the async console.

    Returns
    -------
    int
        Exit code propagated to the operating system.
    """
    base_dir = resolve_base_dir()
    os.chdir(base_dir)
    load_environment(base_dir)

    import asyncio

    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
