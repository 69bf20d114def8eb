"""Phonetics package for ipaspeak.

This package segments IPA transcriptions into phonemes, classifies them,
detects heteronyms and builds pronunciation markup for synthesis.
"""

from .classifier import classify, is_consonant, is_vowel, strip_stress
from .heteronyms import detect_heteronyms, is_heteronym, needs_resolution
from .markup import build_ssml
from .models import HeteronymGroup, PhonemeClass, PhonemeToken, PhoneticEntry
from .segmenter import clean_transcription, segment, split_phonemes

__all__ = [
    "HeteronymGroup",
    "PhonemeClass",
    "PhonemeToken",
    "PhoneticEntry",
    "build_ssml",
    "classify",
    "clean_transcription",
    "detect_heteronyms",
    "is_consonant",
    "is_heteronym",
    "is_vowel",
    "needs_resolution",
    "segment",
    "split_phonemes",
    "strip_stress",
]
