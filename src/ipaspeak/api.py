"""High-level API for ipaspeak library usage."""

from pathlib import Path

from .core import report_word, speak_word


async def speak(
    word: str,
    ipa: str,
    phoneme: str | None = None,
    output: str | Path | None = None,
    bypass_cache: bool = False,
) -> bytes | None:
    """Pronounce a word (or one of its phonemes) from its IPA transcription.

    Args:
        word: Word to pronounce
        ipa: IPA transcription, e.g. "/ˈrɛkərd/"
        phoneme: Single phoneme to pronounce instead of the whole word
        output: File path to save audio (if None, plays audio)
        bypass_cache: Skip local and server caches

    Returns:
        Audio bytes if output specified, None if played

    Raises:
        ValueError: If request fields are invalid
        ClientError: If the server rejects or cannot serve the request
        RuntimeError: If audio playback fails
        OSError: If file save fails
    """
    await speak_word(
        word, ipa, phoneme=phoneme, bypass_cache=bypass_cache, output=output
    )

    if output:
        output_path = Path(output)
        if output_path.exists():
            return output_path.read_bytes()

    return None


async def report(word: str, ipa: str, phoneme: str | None = None) -> str:
    """Report a bad pronunciation. Returns the invalidated cache key."""
    return await report_word(word, ipa, phoneme=phoneme)
