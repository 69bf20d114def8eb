"""Typer CLI definition for ipaspeak."""

import asyncio
import logging
from pathlib import Path

import typer

from .config import load_config
from .core import (
    list_available_voices,
    lookup_variants,
    prune_client_store,
    report_word,
    speak_word,
)
from .dictionary import DictionaryError
from .phonetics.heteronyms import needs_resolution
from .phonetics.segmenter import segment
from .server.client import (
    ClientError,
    PronunciationUnavailableError,
    RateLimitedError,
)
from .tts.errors import TTSError

app = typer.Typer(help="Pronounce words from their IPA transcriptions")

_state = {"debug": False}


def _fail(message: str, error: Exception) -> None:
    """Print an error and exit with status 1."""
    if _state["debug"]:
        typer.echo(f"Debug - {message}: {error!r}", err=True)
    else:
        typer.echo(f"Error: {message}: {error}", err=True)
    raise typer.Exit(1)


@app.callback()
def main(
    debug: bool = typer.Option(
        False, "--debug", help="Show verbose error messages and cache activity"
    ),
) -> None:
    """Pronounce words from their IPA transcriptions."""
    _state["debug"] = debug
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )


@app.command()
def speak(
    word: str = typer.Argument(..., help="Word to pronounce"),
    ipa: str = typer.Option(..., "--ipa", help="IPA transcription, e.g. /ˈrɛkərd/"),
    phoneme: str | None = typer.Option(
        None, "--phoneme", help="Pronounce a single phoneme of the word instead"
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Bypass local and server caches"
    ),
    output: Path | None = typer.Option(
        None, "-o", "--output", help="Save audio to file instead of playing"
    ),
) -> None:
    """Play (or save) the pronunciation of a word or one of its phonemes."""
    try:
        result = asyncio.run(
            speak_word(
                word,
                ipa,
                phoneme=phoneme,
                bypass_cache=no_cache,
                output=output,
                config=load_config(),
            )
        )
    except RateLimitedError as e:
        _fail("Rate limited, try again later", e)
    except PronunciationUnavailableError as e:
        _fail("Pronunciation unavailable, try again", e)
    except ClientError as e:
        _fail("Request rejected", e)
    except ValueError as e:
        _fail("Invalid request", e)
    except OSError as e:
        _fail("Failed to save audio file", e)
    except RuntimeError as e:
        _fail("Failed to play audio", e)

    if output:
        typer.echo(f"Audio saved to {output}")
    if _state["debug"]:
        typer.echo(f"Source: {result['source']} ({result['key']})", err=True)


@app.command()
def report(
    word: str = typer.Argument(..., help="Word whose pronunciation is wrong"),
    ipa: str = typer.Option(..., "--ipa", help="IPA transcription that was played"),
    phoneme: str | None = typer.Option(None, "--phoneme", help="Phoneme that was played"),
) -> None:
    """Report a bad pronunciation so it is regenerated on next playback."""
    try:
        key = asyncio.run(report_word(word, ipa, phoneme=phoneme, config=load_config()))
    except ClientError as e:
        _fail("Report not recorded", e)
    except ValueError as e:
        _fail("Invalid request", e)

    typer.echo(f"Reported {word} {ipa}; next playback regenerates the audio")
    if _state["debug"]:
        typer.echo(f"Key: {key}", err=True)


@app.command()
def phonemes(
    ipa: str = typer.Argument(..., help="IPA transcription to segment"),
) -> None:
    """Segment a transcription and classify each phoneme."""
    tokens = segment(ipa)
    if not tokens:
        typer.echo("No phonemes found")
        return
    for token in tokens:
        stress = " (stressed)" if token.stressed else ""
        typer.echo(f"{token.stripped}\t{token.classification.value}{stress}")


@app.command()
def variants(
    word: str = typer.Argument(..., help="Word to look up"),
) -> None:
    """Look up a word's pronunciations and show heteronym groups."""
    try:
        entries, groups = asyncio.run(lookup_variants(word))
    except DictionaryError as e:
        _fail("Dictionary lookup failed", e)
    except ValueError as e:
        _fail("Invalid word", e)

    if not entries and not groups:
        typer.echo(f"No pronunciations found for '{word}'")
        return

    if not groups:
        transcriptions = sorted({e.transcription for e in entries})
        typer.echo(f"{word}: {', '.join(transcriptions)}")
        return

    if needs_resolution(groups):
        parts = ", ".join(g.part_of_speech for g in groups)
        typer.echo(
            f"{word} is a heteronym ({parts}) but the dictionary does not "
            "distinguish its pronunciations"
        )
        return

    typer.echo(f"{word} is a heteronym:")
    for group in groups:
        typer.echo(f"  {group.part_of_speech}: {group.transcription}")


@app.command()
def voices(
    provider: str | None = typer.Option(
        None, "-p", "--provider", help="Provider (from config if omitted)"
    ),
) -> None:
    """List voices offered by a synthesis provider."""
    name = provider or load_config().synthesis.provider
    try:
        available = asyncio.run(list_available_voices(name))
    except KeyError as e:
        _fail("Unknown provider", e)
    except TTSError as e:
        _fail("Failed to list voices", e)

    for voice in available:
        typer.echo(f"{voice['name']}: {voice['id']}")


@app.command()
def prune() -> None:
    """Remove expired and outdated entries from the local audio store."""
    try:
        counts = prune_client_store(load_config())
    except OSError as e:
        _fail("Failed to prune local store", e)

    typer.echo(
        f"Removed {counts['expired']} expired and {counts['old_versions']} "
        f"outdated entries ({counts['remaining']} remaining)"
    )


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", help="Port to listen on"),
) -> None:
    """Run the pronunciation HTTP server."""
    from .server.app import run_server

    if not _state["debug"]:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    run_server(
        host=host,
        port=port,
        config=load_config(),
        log_level="debug" if _state["debug"] else "info",
    )
