"""Abstract base class for pronunciation synthesis providers.

This module defines the interface that all providers must implement,
ensuring consistent behavior across different speech backends.
"""

from abc import ABC, abstractmethod


class TTSProvider(ABC):
    """Abstract base class for speech synthesis providers.

    Providers receive SSML produced by ``ipaspeak.phonetics.markup`` and
    must honor its ``<phoneme alphabet="ipa">`` tag rather than guessing a
    pronunciation from the spelling.

    Voice Dictionary Structure:
        Each voice returned by list_voices() should follow this structure:
        {
            "id": str,       # Unique identifier for the voice
            "name": str,     # Human-readable name for the voice
            "provider": str  # Name of the provider (e.g., "google", "elevenlabs")
        }
    """

    @abstractmethod
    async def synthesize(self, markup: str, voice: str) -> bytes:
        """Convert SSML markup to audio bytes.

        Args:
            markup: SSML with an embedded IPA pronunciation
            voice: Voice ID or name to use for synthesis

        Returns:
            Audio data as MP3 bytes

        Raises:
            TTSAuthError: Credentials or project configuration are wrong
            TTSQuotaError: Backend quota or rate limit exhausted
            TTSUnavailableError: Backend temporarily unreachable
            TTSInputError: Backend rejected the markup
        """
        pass

    @abstractmethod
    async def list_voices(self) -> list[dict]:
        """Return available voices for this provider.

        Returns:
            List of voice dictionaries, each containing:
            - id: Unique voice identifier
            - name: Human-readable voice name
            - provider: Provider name

        Raises:
            TTSError: If voice listing fails
        """
        pass
