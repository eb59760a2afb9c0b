"""
chirpbot - A Twitch chat bot for sounds, achievements and terminal emotes.

This package provides:
- !chirp with the rubber chicken escalation loop
- Per-mate arrival sounds and achievements
- Configured text responders
- Emote effects for the Tattoy terminal plugin
- Raid and follow alerts
"""

from chirpbot.bot import TwitchBot
from chirpbot.config import Config, load_config

__version__ = "0.1.0"
__all__ = ["TwitchBot", "Config", "load_config", "main"]


def main() -> None:
    """
    Run the bot until it is stopped.

    Exits with status 1 when the environment or the sound catalogue is
    unusable, before any connection to Twitch is made.
    """
    import asyncio
    import signal
    import sys

    from chirpbot.utils.logging import setup_logging, get_logger
    from chirpbot.utils.sound_pool import SoundPoolError

    try:
        config = load_config()
    except ValueError as e:
        sys.exit(f"chirpbot: {e}")

    setup_logging(config)
    logger = get_logger("main")

    try:
        bot = TwitchBot(config)
    except SoundPoolError as e:
        logger.error("Refusing to start, bad chirp sounds: %s", e)
        sys.exit(1)

    def stop(signum: int, _frame: object) -> None:
        logger.info("Got %s, closing connection", signal.Signals(signum).name)
        asyncio.create_task(bot.close())

    for signum in (signal.SIGINT, signal.SIGTERM):
        signal.signal(signum, stop)

    logger.info("chirpbot %s joining %s", __version__, ", ".join(config.channels))
    try:
        bot.run()
    except KeyboardInterrupt:
        pass
    except Exception:
        logger.exception("Bot stopped unexpectedly")
        sys.exit(1)
    logger.info("Bot stopped")
