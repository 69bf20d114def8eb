"""ipaspeak - pronunciation audio from IPA transcriptions."""

__version__ = "0.1.0"
__all__ = ["report", "speak"]


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name in ("speak", "report"):
        from . import api

        return getattr(api, name)
    raise AttributeError(f"module 'ipaspeak' has no attribute {name!r}")
