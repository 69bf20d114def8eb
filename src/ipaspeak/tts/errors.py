"""Custom TTS exceptions."""


class TTSError(Exception):
    """Base exception for TTS-related errors.

    ``retryable`` tells callers whether the same request may succeed later
    (quota, outage) or needs a configuration or input fix first.
    """

    retryable = False

    def __init__(
        self, message: str, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_error = original_error


class TTSAuthError(TTSError):
    """Exception raised for authentication and configuration failures.

    This typically occurs when:
    - Credentials are missing, unreadable or invalid
    - The synthesis API is not enabled for the project
    - The service account lacks permission to call the API
    """

    pass


class TTSAPIError(TTSError):
    """Exception raised for API communication errors.

    This typically occurs when:
    - API server is unavailable (5xx errors)
    - Rate limits or quotas are exceeded (429 error)
    - Request format is invalid (4xx errors)
    - Network connectivity issues
    """

    retryable = True

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.status_code = status_code


class TTSQuotaError(TTSAPIError):
    """Quota or rate limit exhausted on the backend. Retry later."""

    retryable = True


class TTSUnavailableError(TTSAPIError):
    """Backend temporarily unavailable or timed out. Retry later."""

    retryable = True


class TTSInputError(TTSAPIError):
    """Backend rejected the markup as malformed. Retrying will not help."""

    retryable = False
