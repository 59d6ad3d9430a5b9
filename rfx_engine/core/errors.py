"""Exception taxonomy for remote completion calls.

Only ``MissingCredentialsError`` is meant to reach the caller of the pipeline;
the others are caught by the summarizer and the generation engine and turned into
their fallback paths.
"""


class RfxEngineError(Exception):
    """Base class for RFx Engine errors."""


class MissingCredentialsError(RfxEngineError):
    """Raised when a model tier is used without its API key configured."""

    def __init__(self, setting_name: str):
        super().__init__(f"{setting_name} is not configured")
        self.setting_name = setting_name


class RemoteCallFailedError(RfxEngineError):
    """Non-retryable provider failure (auth, malformed request, server error)."""

    def __init__(self, message: str, provider: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class RateLimitedError(RfxEngineError):
    """Provider signalled rate limiting (HTTP 429). Transient, retried."""

    def __init__(self, message: str, provider: str | None = None, retry_after: float | None = None):
        super().__init__(message)
        self.provider = provider
        self.retry_after = retry_after


class RetriesExhaustedError(RemoteCallFailedError):
    """Raised after the retry budget is spent on retryable failures."""

    def __init__(self, label: str, attempts: int):
        super().__init__(f"{label} failed after {attempts} attempts")
        self.label = label
        self.attempts = attempts
