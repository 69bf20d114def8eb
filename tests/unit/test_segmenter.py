"""Unit tests for IPA transcription segmentation."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from ipaspeak.phonetics.models import PhonemeClass
from ipaspeak.phonetics.segmenter import clean_transcription, segment, split_phonemes


class TestCleanTranscription:
    """Test delimiter stripping."""

    def test_strips_slashes(self) -> None:
        assert clean_transcription("/ˈrɛkərd/") == "ˈrɛkərd"

    def test_strips_brackets_and_whitespace(self) -> None:
        assert clean_transcription("  [ˈtɛst]  ") == "ˈtɛst"

    def test_empty_input(self) -> None:
        assert clean_transcription("") == ""


class TestSplitPhonemes:
    """Test splitting transcriptions into phoneme tokens."""

    def test_stress_attaches_to_following_symbol(self) -> None:
        """Test stress marks ride on the next symbol and r joins schwa."""
        assert split_phonemes("/pərˈmɪt/") == ["p", "ər", "ˈm", "ɪ", "t"]

    def test_record_noun(self) -> None:
        assert split_phonemes("/ˈrɛkərd/") == ["ˈr", "ɛ", "k", "ər", "d"]

    def test_record_verb(self) -> None:
        assert split_phonemes("/rɪˈkɔrd/") == ["r", "ɪ", "ˈk", "ɔr", "d"]

    def test_length_mark_stays_with_vowel(self) -> None:
        assert split_phonemes("/ˈfɑːðər/") == ["ˈf", "ɑː", "ð", "ər"]

    def test_tie_bar_joins_affricate(self) -> None:
        assert split_phonemes("/t͡ʃɜrt͡ʃ/") == ["t͡ʃ", "ɜr", "t͡ʃ"]

    def test_combining_diacritic_stays_with_symbol(self) -> None:
        tokens = split_phonemes("/bɑ̃/")
        assert tokens == ["b", "ɑ̃"]

    def test_whitespace_between_words_is_skipped(self) -> None:
        assert split_phonemes("/ðə kæt/") == ["ð", "ə", "k", "æ", "t"]

    @pytest.mark.parametrize("ipa", ["/pərˈmɪt/", "/ˈrɛkərd/", "/ˌɪntərˈnæʃənəl/"])
    def test_tokens_reconstruct_transcription(self, ipa: str) -> None:
        """Test concatenated tokens give back the cleaned transcription."""
        assert "".join(split_phonemes(ipa)) == clean_transcription(ipa)

    @pytest.mark.parametrize("ipa", ["", "//", "[]", "   ", "ˈ", "/ˈˌ/"])
    def test_empty_or_mark_only_input_yields_no_tokens(self, ipa: str) -> None:
        assert split_phonemes(ipa) == []


class TestSegment:
    """Test segmentation with classification."""

    def test_tokens_are_classified(self) -> None:
        tokens = segment("/pərˈmɪt/")

        assert [t.stripped for t in tokens] == ["p", "ər", "m", "ɪ", "t"]
        assert [t.classification for t in tokens] == [
            PhonemeClass.CONSONANT,
            PhonemeClass.VOWEL,
            PhonemeClass.CONSONANT,
            PhonemeClass.VOWEL,
            PhonemeClass.CONSONANT,
        ]

    def test_stressed_flag(self) -> None:
        tokens = segment("/rɪˈkɔrd/")

        assert [t.stressed for t in tokens] == [False, False, True, False, False]
        assert tokens[2].raw == "ˈk"

    def test_unknown_symbols_are_unmatched_not_errors(self) -> None:
        tokens = segment("/kæ7/")

        assert tokens[-1].raw == "7"
        assert tokens[-1].classification is PhonemeClass.UNMATCHED

    def test_empty_transcription(self) -> None:
        assert segment("") == []
