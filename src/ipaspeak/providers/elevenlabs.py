"""ElevenLabs text-to-speech provider implementation."""

import asyncio
import logging
import os

from elevenlabs.client import ElevenLabs

from ..phonetics.markup import strip_speak_wrapper
from ..tts.errors import (
    TTSAPIError,
    TTSAuthError,
    TTSInputError,
    TTSQuotaError,
    TTSUnavailableError,
)
from ..tts.models import VoiceSettings
from .base import TTSProvider

logger = logging.getLogger(__name__)

# Models that honor inline <phoneme> tags
PHONEME_MODEL = "eleven_flash_v2"


def classify_elevenlabs_error(error: Exception) -> Exception:
    """Map an ElevenLabs SDK failure onto the TTS error taxonomy.

    Uses the HTTP status code when the SDK exposes one. Without one, only
    explicit authentication and quota wording in the message is recognized.
    """
    status = getattr(error, "status_code", None)
    message = str(error)
    lowered = message.lower()

    if status in (401, 403) or "unauthorized" in lowered or "401" in message:
        return TTSAuthError(f"Authentication failed: {error}", error)
    if status == 429 or "429" in message or "quota" in lowered:
        return TTSQuotaError(f"Rate limit exceeded: {error}", 429, error)
    if status in (400, 422):
        return TTSInputError(f"Markup rejected: {error}", status, error)
    if isinstance(status, int) and status >= 500:
        return TTSUnavailableError(f"Server error: {error}", status, error)
    return TTSAPIError(f"API call failed: {error}", status, error)


class ElevenLabsProvider(TTSProvider):
    """ElevenLabs TTS provider implementation.

    ElevenLabs rejects a ``<speak>`` root, so only the inner ``<phoneme>``
    element is sent, with a model that supports it.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_id: str = PHONEME_MODEL,
        voice_settings: VoiceSettings | None = None,
    ) -> None:
        """Initialize ElevenLabs provider.

        Args:
            api_key: ElevenLabs API key. If not provided, reads from
                    ELEVENLABS_API_KEY environment variable.
            model_id: Phoneme-capable ElevenLabs model
            voice_settings: Voice settings, defaults tuned for single words

        Raises:
            TTSAuthError: If API key is not provided or invalid.
        """
        self._api_key = api_key or os.getenv("ELEVENLABS_API_KEY")
        if not self._api_key:
            raise TTSAuthError(
                "ElevenLabs API key not found. Set ELEVENLABS_API_KEY environment "
                "variable or provide api_key parameter."
            )

        try:
            self._client = ElevenLabs(api_key=self._api_key)
        except Exception as e:
            raise TTSAuthError(f"Failed to initialize ElevenLabs client: {e}") from e

        self.model_id = model_id
        self.voice_settings = voice_settings or VoiceSettings()
        self._voices_cache: list[dict] | None = None

    async def synthesize(self, markup: str, voice: str) -> bytes:
        """Convert SSML markup to MP3 bytes.

        Args:
            markup: SSML document with a <phoneme> element
            voice: Voice ID to use for synthesis (empty for the first available)

        Returns:
            Audio data as bytes (MP3 format)

        Raises:
            ValueError: If markup is empty
            TTSError: Classified backend failure
        """
        if not markup or not markup.strip():
            raise ValueError("Markup cannot be empty")

        text = strip_speak_wrapper(markup)

        if not voice:
            voices = await self.list_voices()
            if not voices:
                raise TTSAPIError("No voices available")
            voice = voices[0]["id"]

        def _sync_convert() -> bytes:
            audio_generator = self._client.text_to_speech.convert(
                text=text,
                voice_id=voice,
                model_id=self.model_id,
                output_format="mp3_44100_128",
                voice_settings=self.voice_settings.to_dict(),
            )
            return b"".join(audio_generator)

        try:
            audio_bytes = await asyncio.to_thread(_sync_convert)
        except Exception as e:
            classified = classify_elevenlabs_error(e)
            logger.error(f"ElevenLabs synthesis failed: {classified}")
            raise classified from e

        if not audio_bytes:
            raise TTSAPIError("No audio data received from API")

        logger.info(f"ElevenLabs produced {len(audio_bytes)} bytes")
        return audio_bytes

    async def list_voices(self) -> list[dict]:
        """Get list of available voices.

        Results are cached after first call to avoid repeated API requests.
        """
        if self._voices_cache is not None:
            return self._voices_cache

        def _sync_get_voices() -> list[dict]:
            response = self._client.voices.get_all()
            return [
                {"id": v.voice_id, "name": v.name, "provider": "elevenlabs"}
                for v in response.voices
            ]

        try:
            voices = await asyncio.to_thread(_sync_get_voices)
        except Exception as e:
            raise classify_elevenlabs_error(e) from e

        self._voices_cache = voices
        return voices
