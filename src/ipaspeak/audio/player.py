"""Audio player for pronunciation playback using pygame."""

# ruff: noqa: E402
import os

# Suppress pygame's welcome message BEFORE any pygame import
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"

import warnings

warnings.filterwarnings("ignore", category=UserWarning, module="pygame.pkgdata")

import asyncio
import io
import logging
import threading
from pathlib import Path

import pygame

logger = logging.getLogger(__name__)

# Seconds between checks for a stop request while audio is playing
POLL_INTERVAL = 0.05


class AudioPlayer:
    """Single-slot audio player.

    Only one clip plays at a time: a playback holds the device lock until it
    finishes or ``stop()`` is called. The loaded track is unloaded and its
    buffer closed on every exit path.
    """

    def __init__(self) -> None:
        """Initialize the audio player with pygame mixer.

        Raises:
            RuntimeError: If pygame mixer fails to initialize.
        """
        try:
            pygame.mixer.init()
        except pygame.error as e:
            raise RuntimeError(f"Failed to initialize pygame audio mixer: {e}") from e

        self._device_lock = threading.Lock()
        # Bumped by stop(); a playback ends once the generation moves past
        # the one it was started under
        self._generation = 0
        self._changed = threading.Condition()

    def _stopped_since(self, generation: int) -> bool:
        return self._generation != generation

    def _play(self, audio_data: bytes, generation: int) -> bool:
        with self._device_lock:
            if self._stopped_since(generation):
                return False

            audio_file = io.BytesIO(audio_data)
            try:
                pygame.mixer.music.load(audio_file)
                pygame.mixer.music.play()

                while pygame.mixer.music.get_busy():
                    with self._changed:
                        stopped = self._changed.wait_for(
                            lambda: self._stopped_since(generation), POLL_INTERVAL
                        )
                    if stopped:
                        pygame.mixer.music.stop()
                        logger.debug("Playback stopped")
                        return False
                return True
            except pygame.error as e:
                raise RuntimeError(f"Failed to play audio: {e}") from e
            finally:
                try:
                    pygame.mixer.music.unload()
                except pygame.error as e:
                    logger.warning(f"Failed to unload audio: {e}")
                audio_file.close()

    def play_bytes(self, audio_data: bytes) -> bool:
        """Play audio from bytes through system speakers (blocking).

        Args:
            audio_data: Audio data in MP3 or WAV format.

        Returns:
            True if playback ran to the end, False if it was stopped.

        Raises:
            ValueError: If no audio data provided.
            RuntimeError: If audio playback fails.
        """
        if not audio_data:
            raise ValueError("No audio data provided")
        return self._play(audio_data, self._generation)

    async def play_bytes_async(self, audio_data: bytes) -> bool:
        """Play audio from bytes without blocking the event loop.

        Cancelling the awaiting task stops the device before the
        cancellation propagates, including when the worker thread has not
        started playing yet.

        Returns:
            True if playback ran to the end, False if it was stopped.

        Raises:
            ValueError: If no audio data provided.
            RuntimeError: If audio playback fails.
        """
        if not audio_data:
            raise ValueError("No audio data provided")

        generation = self._generation
        try:
            return await asyncio.to_thread(self._play, audio_data, generation)
        except asyncio.CancelledError:
            self.stop()
            raise

    def stop(self) -> None:
        """Stop the current playback and any playback not yet started."""
        with self._changed:
            self._generation += 1
            self._changed.notify_all()
        try:
            pygame.mixer.music.stop()
        except pygame.error as e:
            logger.debug(f"Mixer stop ignored: {e}")

    @staticmethod
    def save_to_file(audio_data: bytes, filepath: str | Path) -> None:
        """Save audio bytes to a file.

        Args:
            audio_data: Audio data to save.
            filepath: Path where the audio file should be saved.

        Raises:
            ValueError: If no audio data provided.
            OSError: If file cannot be written.
        """
        if not audio_data:
            raise ValueError("No audio data provided")

        filepath = Path(filepath)

        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            filepath.write_bytes(audio_data)
        except OSError as e:
            raise OSError(f"Failed to save audio to {filepath}: {e}") from e
