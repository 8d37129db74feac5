"""Tests for the job data model and lifecycle state machine."""

from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given, settings, strategies as st

from video.base import (
    CANCELED,
    FAILED,
    PROCESSING,
    QUEUED,
    SUCCEEDED,
    TERMINAL_STATUSES,
    JobOptions,
    VideoJob,
    can_transition,
    format_timestamp,
)
from video.errors import InvalidTransitionError, JobValidationError

ALL_STATUSES = [QUEUED, PROCESSING, SUCCEEDED, FAILED, CANCELED]
START = datetime(2025, 1, 1, tzinfo=timezone.utc)


def make_job(status: str = QUEUED) -> VideoJob:
    return VideoJob(
        id="job-1",
        status=status,
        created_at=START,
        updated_at=START,
        options=JobOptions(prompt="a cat"),
    )


class TestStateMachine:
    def test_allowed_paths(self) -> None:
        assert can_transition(QUEUED, PROCESSING)
        assert can_transition(QUEUED, CANCELED)
        assert can_transition(QUEUED, FAILED)
        assert can_transition(PROCESSING, SUCCEEDED)
        assert can_transition(PROCESSING, FAILED)
        assert can_transition(PROCESSING, CANCELED)

    def test_queued_cannot_skip_to_succeeded(self) -> None:
        assert not can_transition(QUEUED, SUCCEEDED)

    def test_processing_cannot_go_back(self) -> None:
        assert not can_transition(PROCESSING, QUEUED)

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES))
    @pytest.mark.parametrize("target", ALL_STATUSES)
    def test_no_way_out_of_terminal_states(self, terminal: str, target: str) -> None:
        assert not can_transition(terminal, target)

    def test_transition_sets_updated_at(self) -> None:
        job = make_job()
        later = START + timedelta(seconds=1)
        job.transition(PROCESSING, later)
        assert job.status == PROCESSING
        assert job.updated_at == later
        assert job.created_at == START

    def test_invalid_transition_raises(self) -> None:
        job = make_job(CANCELED)
        with pytest.raises(InvalidTransitionError):
            job.transition(PROCESSING, START)
        assert job.status == CANCELED

    def test_succeeded_requires_result(self) -> None:
        job = make_job(PROCESSING)
        with pytest.raises(ValueError):
            job.transition(SUCCEEDED, START)

    def test_failed_requires_error(self) -> None:
        job = make_job(PROCESSING)
        with pytest.raises(ValueError):
            job.transition(FAILED, START)

    def test_result_not_allowed_on_cancel(self) -> None:
        job = make_job(PROCESSING)
        with pytest.raises(ValueError):
            job.transition(CANCELED, START, result={"video_url": "x"})

    def test_updated_at_never_before_created_at(self) -> None:
        job = make_job()
        job.transition(PROCESSING, START - timedelta(seconds=5))
        assert job.updated_at >= job.created_at


class TestProjection:
    def test_queued_projection_has_no_result_or_error(self) -> None:
        data = make_job().to_dict()
        assert data == {
            "id": "job-1",
            "status": "queued",
            "created_at": "2025-01-01T00:00:00.000Z",
            "updated_at": "2025-01-01T00:00:00.000Z",
            "options": {"prompt": "a cat"},
        }

    def test_pending_handle_is_not_exposed(self) -> None:
        job = make_job()
        job.pending = object()
        assert "pending" not in job.to_dict()

    def test_succeeded_projection_includes_result(self) -> None:
        job = make_job(PROCESSING)
        job.transition(SUCCEEDED, START, result={"video_url": "https://example.com/v.mp4"})
        data = job.to_dict()
        assert data["result"] == {"video_url": "https://example.com/v.mp4"}
        assert "error" not in data

    def test_failed_projection_includes_error(self) -> None:
        job = make_job(PROCESSING)
        job.transition(FAILED, START, error="boom")
        data = job.to_dict()
        assert data["error"] == "boom"
        assert "result" not in data

    def test_timestamp_format(self) -> None:
        value = datetime(2025, 3, 4, 5, 6, 7, 890000, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2025-03-04T05:06:07.890Z"

    def test_naive_timestamp_treated_as_utc(self) -> None:
        assert format_timestamp(datetime(2025, 1, 1)) == "2025-01-01T00:00:00.000Z"


class TestJobOptions:
    def test_from_payload_accepts_camel_case_aspect_ratio(self, sample_payload: dict) -> None:
        options = JobOptions.from_payload(sample_payload)
        assert options.to_dict() == {"prompt": "a cat", "duration": 8, "aspect_ratio": "16:9"}

    def test_from_payload_accepts_snake_case_aspect_ratio(self) -> None:
        options = JobOptions.from_payload({"prompt": "a cat", "aspect_ratio": "9:16"})
        assert options.aspect_ratio == "9:16"

    def test_width_and_height_kept_alongside_aspect_ratio(self) -> None:
        options = JobOptions.from_payload(
            {"prompt": "a cat", "aspectRatio": "16:9", "width": 1280, "height": 720}
        )
        assert options.to_dict() == {
            "prompt": "a cat",
            "aspect_ratio": "16:9",
            "width": 1280,
            "height": 720,
        }

    def test_wrong_typed_options_are_dropped(self) -> None:
        options = JobOptions.from_payload(
            {"prompt": "a cat", "duration": "8", "width": True, "height": None, "aspectRatio": "  "}
        )
        assert options.to_dict() == {"prompt": "a cat"}

    def test_non_finite_numbers_are_dropped(self) -> None:
        options = JobOptions.from_payload(
            {"prompt": "a cat", "duration": float("nan"), "width": float("inf"), "height": 720}
        )
        assert options.to_dict() == {"prompt": "a cat", "height": 720}

    @pytest.mark.parametrize("payload", [None, {}, {"prompt": ""}, {"prompt": "   "}, {"prompt": 42}])
    def test_missing_or_empty_prompt_rejected(self, payload) -> None:
        with pytest.raises(JobValidationError):
            JobOptions.from_payload(payload)

    @given(prompt=st.text(min_size=1, max_size=200).filter(lambda x: x.strip()))
    @settings(max_examples=50)
    def test_any_non_blank_prompt_accepted(self, prompt: str) -> None:
        assert JobOptions.from_payload({"prompt": prompt}).prompt == prompt
