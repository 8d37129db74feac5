"""
Mock video provider for development without network access or credentials.

Emulates the upstream job lifecycle entirely in memory: jobs are queued,
start processing after a short delay and succeed a few seconds later with
a synthesized video URL.
"""
import logging
from typing import Optional

from video.base import JobOptions, ProviderResponse, VideoProvider
from video.errors import JobNotFoundError
from video.polling import JobRegistry

logger = logging.getLogger(__name__)


class MockProvider(VideoProvider):
    """
    Simulated video provider backed by a JobRegistry.

    Responses carry the same status codes the router uses for the upstream
    API: 202 on creation, 200 for reads and cancellations.
    """

    def __init__(self, registry: Optional[JobRegistry] = None):
        self.registry = registry or JobRegistry()

    async def create_video(self, options: JobOptions) -> ProviderResponse:
        """
        Create a simulated video job.

        Raises:
            JobValidationError: If the prompt is missing or blank
        """
        job = self.registry.create(options)
        return ProviderResponse(status_code=202, body=job.to_dict())

    async def check_status(self, job_id: str) -> ProviderResponse:
        """
        Raises:
            JobNotFoundError: If job doesn't exist
        """
        job = self.registry.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return ProviderResponse(status_code=200, body=job.to_dict())

    async def cancel_video(self, job_id: str) -> ProviderResponse:
        """
        Cancel a simulated job. Already finished jobs come back unchanged.

        Raises:
            JobNotFoundError: If job doesn't exist
        """
        job = self.registry.cancel(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return ProviderResponse(status_code=200, body=job.to_dict())
