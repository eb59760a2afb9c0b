"""
Sound playback through an external player.

The bot never decodes audio. It spawns the configured player (mpv by
default) and moves on without waiting for it.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from chirpbot.utils.logging import get_logger

logger = get_logger(__name__)


class SoundPlayer:
    """
    Fire-and-forget sound player.

    Args:
        command: Player executable
        volume: Volume passed as ``--volume=N``
    """

    def __init__(self, command: str = "mpv", volume: int = 50) -> None:
        self.command = command
        self.volume = volume

    def build_args(self, path: Path) -> list[str]:
        return [self.command, f"--volume={self.volume}", "--no-video", str(path)]

    def play(self, path: str | Path) -> Optional[subprocess.Popen]:
        """
        Start playing a file.

        Returns:
            The player process, or None if nothing could be played
        """
        path = Path(path)
        if not path.is_file():
            logger.warning("Sound file not found: %s", path)
            return None

        try:
            process = subprocess.Popen(
                self.build_args(path),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning("Could not start %s for %s: %s", self.command, path.name, e)
            return None

        logger.debug("Playing %s (pid %d)", path.name, process.pid)
        return process
