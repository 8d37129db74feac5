"""Exception classes for video job handling."""


class VideoRelayError(Exception):
    """Base exception for all video job errors."""

    pass


class JobValidationError(VideoRelayError):
    """Job options failed validation (e.g. empty prompt)."""

    pass


class JobNotFoundError(VideoRelayError):
    """Referenced job does not exist."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job {job_id} not found")


class InvalidTransitionError(VideoRelayError):
    """Requested status change is not allowed by the job lifecycle."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move job from {current} to {requested}")


class ProviderError(VideoRelayError):
    """Errors from the active video provider."""

    pass


class ProviderConfigError(ProviderError):
    """Provider is missing required configuration (e.g. API key)."""

    pass


class ProviderUnavailableError(ProviderError):
    """Upstream provider could not be reached or returned garbage."""

    pass
