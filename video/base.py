import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from video.errors import InvalidTransitionError, JobValidationError

QUEUED = "queued"
PROCESSING = "processing"
SUCCEEDED = "succeeded"
FAILED = "failed"
CANCELED = "canceled"

TERMINAL_STATUSES = frozenset({SUCCEEDED, FAILED, CANCELED})

# Allowed lifecycle moves; terminal states have none.
TRANSITIONS = {
    QUEUED: frozenset({PROCESSING, FAILED, CANCELED}),
    PROCESSING: frozenset({SUCCEEDED, FAILED, CANCELED}),
    SUCCEEDED: frozenset(),
    FAILED: frozenset(),
    CANCELED: frozenset(),
}


def can_transition(current: str, requested: str) -> bool:
    return requested in TRANSITIONS.get(current, frozenset())


def format_timestamp(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with milliseconds, e.g. 2025-01-01T00:00:00.000Z"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    return math.isfinite(value)


@dataclass
class JobOptions:
    """
    Generation parameters supplied by the caller.

    aspect_ratio and width/height are alternative ways to size the video;
    both may be given and neither is checked against the other.
    """
    prompt: str
    duration: Optional[float] = None
    aspect_ratio: Optional[str] = None
    width: Optional[float] = None
    height: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> "JobOptions":
        """
        Build options from a client request body.

        Accepts both aspectRatio (browser form) and aspect_ratio keys.
        Optional fields of the wrong type are dropped rather than rejected.

        Raises:
            JobValidationError: If prompt is missing, not text or blank
        """
        payload = payload or {}
        aspect_ratio = payload.get("aspectRatio", payload.get("aspect_ratio"))

        options = cls(prompt=payload.get("prompt"))
        if _is_number(payload.get("duration")):
            options.duration = payload["duration"]
        if isinstance(aspect_ratio, str) and aspect_ratio.strip():
            options.aspect_ratio = aspect_ratio
        if _is_number(payload.get("width")):
            options.width = payload["width"]
        if _is_number(payload.get("height")):
            options.height = payload["height"]

        options.validate()
        return options

    def validate(self) -> None:
        if not isinstance(self.prompt, str) or not self.prompt.strip():
            raise JobValidationError("Prompt is required")

    def to_dict(self) -> dict:
        """Only the options that were actually supplied."""
        data = {
            "prompt": self.prompt,
            "duration": self.duration,
            "aspect_ratio": self.aspect_ratio,
            "width": self.width,
            "height": self.height,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class VideoJob:
    """
    Standardized video job contract.
    The simulator tracks jobs with this structure; to_dict() is the
    projection returned to clients.
    """
    id: str
    status: str  # "queued" | "processing" | "succeeded" | "failed" | "canceled"
    created_at: datetime
    updated_at: datetime
    options: JobOptions
    result: Optional[Dict[str, str]] = None
    error: Optional[str] = None
    # Handle of the next scheduled lifecycle step, never exposed
    pending: Optional[Any] = field(default=None, repr=False, compare=False)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def transition(
        self,
        status: str,
        at: datetime,
        result: Optional[Dict[str, str]] = None,
        error: Optional[str] = None
    ) -> None:
        """
        Move the job to a new lifecycle state.

        Args:
            status: Target status
            at: Time of the transition, becomes updated_at
            result: Required when status is "succeeded", forbidden otherwise
            error: Required when status is "failed", forbidden otherwise

        Raises:
            InvalidTransitionError: If the move is not allowed from the current state
        """
        if not can_transition(self.status, status):
            raise InvalidTransitionError(self.status, status)
        if (status == SUCCEEDED) != (result is not None):
            raise ValueError("result must be set exactly when a job succeeds")
        if (status == FAILED) != (error is not None):
            raise ValueError("error must be set exactly when a job fails")

        self.status = status
        self.updated_at = max(at, self.created_at)
        self.result = result
        self.error = error

    def to_dict(self) -> dict:
        """Convert VideoJob to dictionary for API responses."""
        data = {
            "id": self.id,
            "status": self.status,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "options": self.options.to_dict(),
        }
        if self.result is not None:
            data["result"] = dict(self.result)
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class ProviderResponse:
    """
    What a provider hands back to the router: an HTTP status and a JSON body.

    The body is opaque for the upstream proxy (relayed as received) and a
    VideoJob projection for the simulator. body is None only for 204.
    """
    status_code: int
    body: Optional[Any] = None


class VideoProvider(ABC):
    """
    Abstract interface for video generation providers.
    All providers must implement create_video, check_status and cancel_video.
    """

    @abstractmethod
    async def create_video(self, options: JobOptions) -> ProviderResponse:
        """
        Create a new video generation job.

        Args:
            options: Validated generation parameters

        Returns:
            ProviderResponse: Status and body describing the new job

        Raises:
            ProviderError: If the job could not be submitted
        """
        pass

    @abstractmethod
    async def check_status(self, job_id: str) -> ProviderResponse:
        """
        Check the status of a video generation job.

        Args:
            job_id: The job identifier

        Returns:
            ProviderResponse: The current job state

        Raises:
            JobNotFoundError: If the provider tracks jobs locally and has no such job
            ProviderError: If the lookup could not be performed
        """
        pass

    @abstractmethod
    async def cancel_video(self, job_id: str) -> ProviderResponse:
        """
        Cancel a video generation job.

        Args:
            job_id: The job identifier

        Returns:
            ProviderResponse: The job after cancellation (body may be None for 204)

        Raises:
            JobNotFoundError: If the provider tracks jobs locally and has no such job
            ProviderError: If the cancellation could not be performed
        """
        pass
