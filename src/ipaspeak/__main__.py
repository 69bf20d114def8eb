"""Entry point for running ipaspeak as a module."""

from .cli import app


def main() -> None:
    """Main entry point for the ipaspeak CLI application."""
    app()


if __name__ == "__main__":
    main()
