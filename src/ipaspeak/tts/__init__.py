"""Pronunciation synthesis package for ipaspeak.

This package provides the server-side pipeline that turns a word and its
IPA transcription into cached pronunciation audio.
"""

from .errors import (
    TTSAPIError,
    TTSAuthError,
    TTSError,
    TTSInputError,
    TTSQuotaError,
    TTSUnavailableError,
)
from .models import (
    CacheStatus,
    ReportRequest,
    ReportResult,
    SynthesisRequest,
    SynthesisResult,
    VoiceSettings,
)
from .pipeline import PronunciationService

__all__ = [
    "CacheStatus",
    "PronunciationService",
    "ReportRequest",
    "ReportResult",
    "SynthesisRequest",
    "SynthesisResult",
    "TTSAPIError",
    "TTSAuthError",
    "TTSError",
    "TTSInputError",
    "TTSQuotaError",
    "TTSUnavailableError",
    "VoiceSettings",
]
