"""Audio playback package for ipaspeak.

This package provides single-slot audio playback using pygame.
"""

from .player import AudioPlayer

__all__ = ["AudioPlayer"]
