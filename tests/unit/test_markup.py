"""Unit tests for SSML construction."""

import sys
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from ipaspeak.phonetics.markup import (
    build_ssml,
    phoneme_pronunciation,
    strip_speak_wrapper,
)


class TestFullWordMarkup:
    """Test markup for whole-word pronunciation."""

    def test_record_noun(self) -> None:
        assert build_ssml("record", "/ˈrɛkərd/") == (
            '<speak><phoneme alphabet="ipa" ph="ˈrɛkərd">record</phoneme></speak>'
        )

    def test_heteronym_pair_differs(self) -> None:
        """Test the transcription, not the spelling, drives the markup."""
        noun = build_ssml("record", "/ˈrɛkərd/")
        verb = build_ssml("record", "/rɪˈkɔrd/")

        assert noun != verb
        assert 'ph="rɪˈkɔrd"' in verb

    @pytest.mark.parametrize("ipa", ["", "//", "  ", "[]"])
    def test_empty_transcription_falls_back_to_word(self, ipa: str) -> None:
        assert build_ssml("record", ipa) == "<speak>record</speak>"

    def test_special_characters_are_escaped(self) -> None:
        ssml = build_ssml("a<b&c", '/x"y/')

        assert ssml == (
            '<speak><phoneme alphabet="ipa" ph="x&quot;y">a&lt;b&amp;c</phoneme></speak>'
        )

    def test_invalid_xml_characters_are_dropped(self) -> None:
        ssml = build_ssml("ab\x00c\x1f", "/æ\x0b/")

        assert ssml == '<speak><phoneme alphabet="ipa" ph="æ">abc</phoneme></speak>'


class TestPhonemeMarkup:
    """Test markup for single phonemes."""

    @pytest.mark.parametrize("plosive", ["p", "t", "k", "b", "d", "g", "ɡ"])
    def test_plosives_get_neutral_vowel(self, plosive: str) -> None:
        assert build_ssml("pit", "/pɪt/", plosive) == (
            f'<speak><phoneme alphabet="ipa" ph="{plosive}ə">{plosive}</phoneme></speak>'
        )

    def test_non_plosive_is_sent_as_is(self) -> None:
        assert build_ssml("sit", "/sɪt/", "s") == (
            '<speak><phoneme alphabet="ipa" ph="s">s</phoneme></speak>'
        )

    def test_plosive_and_fricative_differ(self) -> None:
        assert build_ssml("pit", "/pɪt/", "p") != build_ssml("pit", "/pɪt/", "s")

    def test_multi_character_phoneme_uses_placeholder_text(self) -> None:
        assert build_ssml("church", "/tʃɜrtʃ/", "tʃ") == (
            '<speak><phoneme alphabet="ipa" ph="tʃ">sound</phoneme></speak>'
        )

    def test_stress_is_removed_from_phoneme(self) -> None:
        assert build_ssml("permit", "/pərˈmɪt/", "ˈm") == (
            '<speak><phoneme alphabet="ipa" ph="m">m</phoneme></speak>'
        )

    def test_blank_phoneme_means_full_word(self) -> None:
        assert build_ssml("pit", "/pɪt/", "  ") == build_ssml("pit", "/pɪt/")

    def test_phoneme_pronunciation(self) -> None:
        assert phoneme_pronunciation("ˈk") == "kə"
        assert phoneme_pronunciation("ʃ") == "ʃ"


class TestWellFormedness:
    """Test every output parses as XML."""

    @pytest.mark.parametrize(
        "word,ipa,phoneme",
        [
            ("record", "/ˈrɛkərd/", None),
            ("a<b", '/"/', None),
            ("x", "", None),
            ("pit", "/pɪt/", "p"),
            ("tom & jerry", "/tɑm/", '"'),
            ("\x01", "\x02", "\x03"),
        ],
    )
    def test_output_parses(self, word: str, ipa: str, phoneme: str | None) -> None:
        root = ET.fromstring(build_ssml(word, ipa, phoneme))

        assert root.tag == "speak"

    def test_strip_speak_wrapper(self) -> None:
        ssml = build_ssml("record", "/ˈrɛkərd/")

        assert strip_speak_wrapper(ssml) == (
            '<phoneme alphabet="ipa" ph="ˈrɛkərd">record</phoneme>'
        )
        assert strip_speak_wrapper("plain") == "plain"
