"""Request and response schemas for the HTTP API."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..tts.models import MAX_IPA_LENGTH, MAX_PHONEME_LENGTH, MAX_WORD_LENGTH


class PronunciationBody(BaseModel):
    """Fields shared by synthesis and report requests."""

    word: str = Field(min_length=1, max_length=MAX_WORD_LENGTH)
    ipa: str = Field(min_length=1, max_length=MAX_IPA_LENGTH)
    phoneme: str | None = Field(default=None, max_length=MAX_PHONEME_LENGTH)

    @field_validator("word", "ipa")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class SynthesisBody(PronunciationBody):
    """Body of POST /tts."""

    part_of_speech: str | None = Field(default=None, max_length=50)
    bypass_cache: bool = False


class ReportBody(PronunciationBody):
    """Body of POST /tts/report."""


class Envelope(BaseModel):
    """Every JSON response: {success, message, data}."""

    success: bool
    message: str
    data: Any | None = None
