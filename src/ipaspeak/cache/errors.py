"""Cache tier exceptions."""


class CacheWriteError(Exception):
    """Raised when audio cannot be persisted to the filesystem tier.

    Reads degrade to a miss, but a failed write is always surfaced so that
    nothing is later mistaken for a stored entry.
    """

    def __init__(
        self, message: str, key: str, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.key = key
        self.original_error = original_error
