"""Unit tests for CLI commands."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from ipaspeak.cli import app
from ipaspeak.dictionary import DictionaryError
from ipaspeak.phonetics.models import HeteronymGroup, PhoneticEntry
from ipaspeak.server.client import (
    PronunciationUnavailableError,
    RateLimitedError,
    ReportNotRecordedError,
)

runner = CliRunner()


class TestPhonemesCommand:
    """Test phoneme segmentation output."""

    def test_lists_classified_phonemes(self) -> None:
        result = runner.invoke(app, ["phonemes", "/pərˈmɪt/"])

        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "p\tconsonant",
            "ər\tvowel",
            "m\tconsonant (stressed)",
            "ɪ\tvowel",
            "t\tconsonant",
        ]

    def test_empty_transcription(self) -> None:
        result = runner.invoke(app, ["phonemes", "//"])

        assert result.exit_code == 0
        assert "No phonemes found" in result.output


class TestVariantsCommand:
    """Test heteronym lookup output."""

    def test_heteronym_groups(self) -> None:
        groups = [
            HeteronymGroup("noun", "/ˈrɛkərd/"),
            HeteronymGroup("verb", "/rɪˈkɔrd/"),
        ]
        with patch(
            "ipaspeak.cli.lookup_variants", AsyncMock(return_value=([], groups))
        ):
            result = runner.invoke(app, ["variants", "record"])

        assert result.exit_code == 0
        assert "record is a heteronym:" in result.output
        assert "noun: /ˈrɛkərd/" in result.output
        assert "verb: /rɪˈkɔrd/" in result.output

    def test_placeholder_groups_need_resolution(self) -> None:
        groups = [HeteronymGroup("noun", ""), HeteronymGroup("verb", "")]
        entries = [PhoneticEntry("/ˈpɜrmɪt/")]
        with patch(
            "ipaspeak.cli.lookup_variants", AsyncMock(return_value=(entries, groups))
        ):
            result = runner.invoke(app, ["variants", "permit"])

        assert result.exit_code == 0
        assert "does not distinguish its pronunciations" in result.output

    def test_single_pronunciation(self) -> None:
        entries = [PhoneticEntry("/kæt/"), PhoneticEntry("/kæt/")]
        with patch(
            "ipaspeak.cli.lookup_variants", AsyncMock(return_value=(entries, []))
        ):
            result = runner.invoke(app, ["variants", "cat"])

        assert result.exit_code == 0
        assert "cat: /kæt/" in result.output

    def test_unknown_word(self) -> None:
        with patch("ipaspeak.cli.lookup_variants", AsyncMock(return_value=([], []))):
            result = runner.invoke(app, ["variants", "qwzx"])

        assert "No pronunciations found for 'qwzx'" in result.output

    def test_dictionary_failure(self) -> None:
        with patch(
            "ipaspeak.cli.lookup_variants",
            AsyncMock(side_effect=DictionaryError("Dictionary lookup failed with status 500", 500)),
        ):
            result = runner.invoke(app, ["variants", "record"])

        assert result.exit_code == 1
        assert "Error: Dictionary lookup failed" in result.output


class TestSpeakCommand:
    """Test speak command error reporting."""

    def test_saves_to_file(self) -> None:
        outcome = {"played": False, "saved": "record.mp3", "source": "local", "key": "v1-abc"}
        with patch("ipaspeak.cli.load_config", MagicMock()):
            with patch("ipaspeak.cli.speak_word", AsyncMock(return_value=outcome)) as mock_speak:
                result = runner.invoke(
                    app, ["speak", "record", "--ipa", "/ˈrɛkərd/", "-o", "record.mp3"]
                )

        assert result.exit_code == 0
        assert "Audio saved to record.mp3" in result.output
        assert mock_speak.call_args.kwargs["bypass_cache"] is False
        assert mock_speak.call_args.kwargs["phoneme"] is None

    def test_passes_phoneme_and_no_cache(self) -> None:
        outcome = {"played": True, "saved": None, "source": "server-miss", "key": "v1-abc"}
        with patch("ipaspeak.cli.load_config", MagicMock()):
            with patch("ipaspeak.cli.speak_word", AsyncMock(return_value=outcome)) as mock_speak:
                result = runner.invoke(
                    app,
                    ["speak", "pit", "--ipa", "/pɪt/", "--phoneme", "p", "--no-cache"],
                )

        assert result.exit_code == 0
        assert mock_speak.call_args.kwargs["phoneme"] == "p"
        assert mock_speak.call_args.kwargs["bypass_cache"] is True

    def test_rate_limited(self) -> None:
        with patch("ipaspeak.cli.load_config", MagicMock()):
            with patch(
                "ipaspeak.cli.speak_word",
                AsyncMock(side_effect=RateLimitedError("Too many requests", 30)),
            ):
                result = runner.invoke(app, ["speak", "record", "--ipa", "/ˈrɛkərd/"])

        assert result.exit_code == 1
        assert "Error: Rate limited, try again later" in result.output

    def test_unavailable(self) -> None:
        with patch("ipaspeak.cli.load_config", MagicMock()):
            with patch(
                "ipaspeak.cli.speak_word",
                AsyncMock(side_effect=PronunciationUnavailableError("backend down")),
            ):
                result = runner.invoke(app, ["speak", "record", "--ipa", "/ˈrɛkərd/"])

        assert result.exit_code == 1
        assert "Error: Pronunciation unavailable, try again: backend down" in result.output

    def test_invalid_request(self) -> None:
        with patch("ipaspeak.cli.load_config", MagicMock()):
            with patch(
                "ipaspeak.cli.speak_word",
                AsyncMock(side_effect=ValueError("word cannot be empty")),
            ):
                result = runner.invoke(app, ["speak", " ", "--ipa", "/a/"])

        assert result.exit_code == 1
        assert "Error: Invalid request: word cannot be empty" in result.output

    def test_debug_shows_repr(self) -> None:
        with patch("ipaspeak.cli.load_config", MagicMock()):
            with patch(
                "ipaspeak.cli.speak_word",
                AsyncMock(side_effect=RuntimeError("mixer busy")),
            ):
                result = runner.invoke(
                    app, ["--debug", "speak", "record", "--ipa", "/ˈrɛkərd/"]
                )

        assert result.exit_code == 1
        assert "Debug - Failed to play audio: RuntimeError('mixer busy')" in result.output


class TestReportAndPruneCommands:
    """Test report and prune commands."""

    def test_report_success(self) -> None:
        with patch("ipaspeak.cli.load_config", MagicMock()):
            with patch("ipaspeak.cli.report_word", AsyncMock(return_value="v1-abc")):
                result = runner.invoke(app, ["report", "record", "--ipa", "/ˈrɛkərd/"])

        assert result.exit_code == 0
        assert "Reported record /ˈrɛkərd/" in result.output

    def test_report_not_recorded(self) -> None:
        with patch("ipaspeak.cli.load_config", MagicMock()):
            with patch(
                "ipaspeak.cli.report_word",
                AsyncMock(side_effect=ReportNotRecordedError("Report not recorded: down")),
            ):
                result = runner.invoke(app, ["report", "record", "--ipa", "/ˈrɛkərd/"])

        assert result.exit_code == 1
        assert "Error: Report not recorded" in result.output

    def test_prune(self) -> None:
        counts = {"expired": 2, "old_versions": 1, "remaining": 7}
        with patch("ipaspeak.cli.load_config", MagicMock()):
            with patch("ipaspeak.cli.prune_client_store", return_value=counts):
                result = runner.invoke(app, ["prune"])

        assert result.exit_code == 0
        assert "Removed 2 expired and 1 outdated entries (7 remaining)" in result.output

    def test_voices(self) -> None:
        voices = [{"id": "en-US-Neural2-J", "name": "en-US-Neural2-J", "provider": "google"}]
        with patch(
            "ipaspeak.cli.list_available_voices", AsyncMock(return_value=voices)
        ):
            result = runner.invoke(app, ["voices", "-p", "google"])

        assert result.exit_code == 0
        assert "en-US-Neural2-J: en-US-Neural2-J" in result.output

    def test_voices_unknown_provider(self) -> None:
        with patch(
            "ipaspeak.cli.list_available_voices",
            AsyncMock(side_effect=KeyError("Provider 'nope' not found")),
        ):
            result = runner.invoke(app, ["voices", "-p", "nope"])

        assert result.exit_code == 1
        assert "Error: Unknown provider" in result.output
