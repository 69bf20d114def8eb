"""Google Cloud Text-to-Speech provider implementation."""

import asyncio
import json
import logging
import os

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import texttospeech
from google.oauth2 import service_account

from ..tts.errors import (
    TTSAPIError,
    TTSAuthError,
    TTSInputError,
    TTSQuotaError,
    TTSUnavailableError,
)
from .base import TTSProvider

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "en-US-Neural2-J"
DEFAULT_LANGUAGE_CODE = "en-US"
# Slightly slower than normal for learners
DEFAULT_SPEAKING_RATE = 0.9

REQUIRED_CREDENTIAL_FIELDS = ("type", "project_id", "private_key", "client_email")

# USD per million characters
COST_PER_MILLION_CHARS = {"Standard": 4.0}
DEFAULT_COST_PER_MILLION_CHARS = 16.0


def voice_type(voice: str) -> str:
    """Voice family (Standard, Wavenet, Neural2, ...) from a voice name like en-US-Neural2-J."""
    parts = voice.split("-")
    return parts[2] if len(parts) >= 4 else "Neural2"


def estimate_cost(characters: int, voice_type: str = "Neural2") -> float:
    """Estimated synthesis cost in USD for a number of billed characters.

    Standard voices bill $4 per million characters; WaveNet, Neural2 and
    newer families bill $16.
    """
    rate = COST_PER_MILLION_CHARS.get(voice_type, DEFAULT_COST_PER_MILLION_CHARS)
    return (characters / 1_000_000) * rate


def load_credentials(
    key_file: str | None = None, credentials_json: str | None = None
) -> service_account.Credentials:
    """Load service account credentials.

    Tried in order:
    1. A key file path (argument, then GOOGLE_APPLICATION_CREDENTIALS)
    2. An inline JSON document (argument, then GOOGLE_CLOUD_TTS_CREDENTIALS)

    Raises:
        TTSAuthError: If no credentials are configured or they cannot be loaded
    """
    key_file = key_file or os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    credentials_json = credentials_json or os.getenv("GOOGLE_CLOUD_TTS_CREDENTIALS")

    if key_file:
        try:
            credentials = service_account.Credentials.from_service_account_file(
                key_file
            )
        except (OSError, ValueError) as e:
            raise TTSAuthError(
                f"Failed to read Google Cloud key file {key_file}: {e}", e
            ) from e
        logger.debug(f"Loaded Google Cloud credentials from {key_file}")
        return credentials

    if credentials_json:
        try:
            info = json.loads(credentials_json)
        except json.JSONDecodeError as e:
            raise TTSAuthError(
                f"GOOGLE_CLOUD_TTS_CREDENTIALS is not valid JSON: {e}", e
            ) from e
        if not isinstance(info, dict):
            raise TTSAuthError("GOOGLE_CLOUD_TTS_CREDENTIALS must be a JSON object")

        missing = [field for field in REQUIRED_CREDENTIAL_FIELDS if not info.get(field)]
        if missing:
            raise TTSAuthError(
                f"Service account JSON is missing required fields: {', '.join(missing)}"
            )

        try:
            credentials = service_account.Credentials.from_service_account_info(info)
        except ValueError as e:
            raise TTSAuthError(f"Invalid service account credentials: {e}", e) from e
        logger.debug("Loaded Google Cloud credentials from JSON")
        return credentials

    raise TTSAuthError(
        "Google Cloud credentials not found. Set GOOGLE_APPLICATION_CREDENTIALS "
        "to a service account key file or GOOGLE_CLOUD_TTS_CREDENTIALS to its "
        "JSON contents."
    )


def classify_google_error(error: Exception) -> Exception:
    """Map a Google client exception onto the TTS error taxonomy."""
    if isinstance(error, auth_exceptions.GoogleAuthError):
        return TTSAuthError(f"Authentication failed: {error}", error)
    if isinstance(
        error, (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied)
    ):
        # Covers a disabled API as well as a missing IAM role
        return TTSAuthError(f"Not authorized to use Text-to-Speech: {error}", error)
    if isinstance(error, google_exceptions.ResourceExhausted):
        return TTSQuotaError(f"Quota exceeded: {error}", 429, error)
    if isinstance(error, google_exceptions.InvalidArgument):
        return TTSInputError(f"Markup rejected: {error}", 400, error)
    if isinstance(
        error,
        (
            google_exceptions.ServiceUnavailable,
            google_exceptions.DeadlineExceeded,
            google_exceptions.InternalServerError,
            google_exceptions.RetryError,
        ),
    ):
        code = getattr(error, "code", None)
        return TTSUnavailableError(
            f"Service unavailable: {error}", code if isinstance(code, int) else 503, error
        )
    if isinstance(error, google_exceptions.GoogleAPICallError):
        code = error.code if isinstance(error.code, int) else None
        return TTSAPIError(f"API call failed: {error}", code, error)
    return TTSAPIError(f"API call failed: {error}", None, error)


class GoogleCloudProvider(TTSProvider):
    """Google Cloud Text-to-Speech provider.

    Sends SSML input and returns MP3 audio. IPA in ``<phoneme>`` tags is
    honored by WaveNet, Neural2 and Standard voices.
    """

    def __init__(
        self,
        credentials: service_account.Credentials | None = None,
        language_code: str = DEFAULT_LANGUAGE_CODE,
        speaking_rate: float = DEFAULT_SPEAKING_RATE,
        client: texttospeech.TextToSpeechClient | None = None,
    ) -> None:
        """Initialize the Google Cloud provider.

        Args:
            credentials: Service account credentials. If not provided, loaded
                from GOOGLE_APPLICATION_CREDENTIALS or GOOGLE_CLOUD_TTS_CREDENTIALS.
            language_code: BCP-47 language code for voice selection
            speaking_rate: Speaking rate (0.25-4.0)
            client: Preconstructed client, mainly for tests

        Raises:
            TTSAuthError: If credentials are missing or invalid
        """
        self.language_code = language_code
        self.speaking_rate = speaking_rate

        if client is not None:
            self._client = client
        else:
            creds = credentials or load_credentials()
            try:
                self._client = texttospeech.TextToSpeechClient(credentials=creds)
            except Exception as e:
                raise TTSAuthError(
                    f"Failed to initialize Google Cloud TTS client: {e}", e
                ) from e

        self._voices_cache: list[dict] | None = None

    async def synthesize(self, markup: str, voice: str) -> bytes:
        """Synthesize SSML to MP3 bytes.

        Args:
            markup: SSML document
            voice: Voice name, e.g. en-US-Neural2-J (empty for the default)

        Returns:
            MP3 audio bytes

        Raises:
            ValueError: If markup is empty
            TTSError: Classified backend failure
        """
        if not markup or not markup.strip():
            raise ValueError("Markup cannot be empty")

        voice = voice or DEFAULT_VOICE
        logger.debug(f"Google TTS synthesize voice={voice} ssml={markup[:100]}")

        def _sync_synthesize() -> bytes:
            response = self._client.synthesize_speech(
                input=texttospeech.SynthesisInput(ssml=markup),
                voice=texttospeech.VoiceSelectionParams(
                    language_code=self.language_code, name=voice
                ),
                audio_config=texttospeech.AudioConfig(
                    audio_encoding=texttospeech.AudioEncoding.MP3,
                    speaking_rate=self.speaking_rate,
                    pitch=0.0,
                    volume_gain_db=0.0,
                ),
            )
            return response.audio_content

        try:
            audio_bytes = await asyncio.to_thread(_sync_synthesize)
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError,
                auth_exceptions.GoogleAuthError) as e:
            classified = classify_google_error(e)
            logger.error(f"Google TTS synthesis failed: {classified}")
            raise classified from e

        if not audio_bytes:
            raise TTSAPIError("No audio data received from API")

        logger.info(
            f"Google TTS produced {len(audio_bytes)} bytes "
            f"(~${estimate_cost(len(markup), voice_type(voice)):.6f})"
        )
        return audio_bytes

    async def list_voices(self) -> list[dict]:
        """Get voices for the configured language.

        Results are cached after first call.
        """
        if self._voices_cache is not None:
            return self._voices_cache

        def _sync_list() -> list[dict]:
            response = self._client.list_voices(language_code=self.language_code)
            return [
                {"id": v.name, "name": v.name, "provider": "google"}
                for v in response.voices
            ]

        try:
            voices = await asyncio.to_thread(_sync_list)
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError,
                auth_exceptions.GoogleAuthError) as e:
            raise classify_google_error(e) from e

        self._voices_cache = voices
        return voices
