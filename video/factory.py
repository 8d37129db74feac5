"""
Video provider factory.

Picks the simulator or the upstream proxy from MOCK_MODE so the router
never needs to know which one is active.
"""
import logging
from typing import Optional

from core.config import Settings, get_settings
from video.base import VideoProvider
from video.mock import MockProvider
from video.polling import JobRegistry
from video.sora import SoraProvider

logger = logging.getLogger(__name__)


def get_video_provider(settings: Optional[Settings] = None) -> VideoProvider:
    """
    Get video provider based on the MOCK_MODE setting.

    Returns:
        VideoProvider: MockProvider in simulation mode, SoraProvider otherwise
    """
    settings = settings or get_settings()

    if settings.mock_mode:
        logger.info("MOCK_MODE enabled - simulating video jobs in memory")
        registry = JobRegistry(
            processing_delay=settings.mock_processing_delay,
            completion_delay=settings.mock_completion_delay,
            failure_rate=settings.mock_failure_rate,
            retention_seconds=settings.mock_retention_seconds,
        )
        return MockProvider(registry)

    logger.info(f"Relaying video jobs to {settings.sora_api_base_url}")
    return SoraProvider(
        api_key=settings.sora_api_key,
        base_url=settings.sora_api_base_url,
        timeout=settings.request_timeout,
    )
