"""Tests for feedback submission validation."""

import json
from datetime import UTC, datetime
from unittest.mock import Mock

import pytest

from models.feedback import FeedbackStatus, FeedbackSubmission, UserProfile
from services.feedback_form import (
    FeedbackSubmissionService,
    FeedbackValidationError,
    ValidationErrorCode,
    check_submission,
    generate_feedback_id,
    validate,
)
from services.feedback_store import FeedbackStorageError, FeedbackStore

NOW = datetime(2026, 1, 20, 8, 0, 0, tzinfo=UTC)


@pytest.fixture
def valid_submission():
    """A submission that passes every rule."""
    return FeedbackSubmission(
        category="feature",
        subject="Dark mode please",
        message="Would love a dark theme for late night task planning.",
        rating=5,
    )


@pytest.fixture
def profile():
    """Submitter identity."""
    return UserProfile(name="Jane Doe", email="jane@example.com")


class TestCheckSubmission:
    """Test rule order and codes."""

    @pytest.mark.parametrize(
        "subject,message,rating,code",
        [
            ("", "A long enough message", 3, ValidationErrorCode.SUBJECT_REQUIRED),
            ("    ", "A long enough message", 3, ValidationErrorCode.SUBJECT_REQUIRED),
            ("abcd", "A long enough message", 3, ValidationErrorCode.SUBJECT_TOO_SHORT),
            ("  abc  ", "A long enough message", 3, ValidationErrorCode.SUBJECT_TOO_SHORT),
            ("Valid subject", "", 3, ValidationErrorCode.MESSAGE_REQUIRED),
            ("Valid subject", "  \n ", 3, ValidationErrorCode.MESSAGE_REQUIRED),
            ("Valid subject", "too short", 3, ValidationErrorCode.MESSAGE_TOO_SHORT),
            ("Valid subject", "A long enough message", 0, ValidationErrorCode.RATING_REQUIRED),
            ("x" * 101, "A long enough message", 3, ValidationErrorCode.SUBJECT_TOO_LONG),
            ("Valid subject", "x" * 1001, 3, ValidationErrorCode.MESSAGE_TOO_LONG),
            ("Valid subject", "A long enough message", 6, ValidationErrorCode.RATING_OUT_OF_RANGE),
        ],
    )
    def test_failing_rule(self, subject, message, rating, code):
        """Test each rule reports its own code."""
        submission = FeedbackSubmission(subject=subject, message=message, rating=rating)

        with pytest.raises(FeedbackValidationError) as exc_info:
            check_submission(submission)

        assert exc_info.value.code == code

    def test_first_failure_wins(self):
        """Test only the first failing rule is reported."""
        submission = FeedbackSubmission(subject="abc", message="", rating=0)

        with pytest.raises(FeedbackValidationError) as exc_info:
            check_submission(submission)

        assert exc_info.value.code == ValidationErrorCode.SUBJECT_TOO_SHORT

    def test_lower_bounds_checked_before_upper_bounds(self):
        """Test a missing rating is reported before an over-long subject."""
        submission = FeedbackSubmission(subject="x" * 200, message="A long enough message", rating=0)

        with pytest.raises(FeedbackValidationError) as exc_info:
            check_submission(submission)

        assert exc_info.value.code == ValidationErrorCode.RATING_REQUIRED

    def test_messages(self):
        """Test human-readable messages."""
        with pytest.raises(FeedbackValidationError, match="Subject is required"):
            check_submission(FeedbackSubmission())

        with pytest.raises(FeedbackValidationError, match="Please provide a rating"):
            check_submission(
                FeedbackSubmission(subject="Valid subject", message="A long enough message")
            )

    def test_is_value_error(self):
        """Test validation errors are ValueErrors."""
        with pytest.raises(ValueError):
            check_submission(FeedbackSubmission())

    def test_minimums_pass(self):
        """Test exactly-minimum lengths pass."""
        check_submission(FeedbackSubmission(subject="abcde", message="0123456789", rating=1))


class TestValidate:
    """Test record construction."""

    def test_builds_pending_record(self, valid_submission, profile):
        """Test a valid submission becomes a pending record with equal timestamps."""
        record = validate(valid_submission, profile, now=NOW)

        assert record.status == FeedbackStatus.PENDING
        assert record.created_at == record.updated_at
        assert record.created_at == NOW.isoformat()
        assert record.category == "feature"
        assert record.rating == 5

    def test_uses_profile_identity(self, valid_submission, profile):
        """Test identity is copied from the profile."""
        record = validate(valid_submission, profile, now=NOW)

        assert record.user_name == "Jane Doe"
        assert record.user_email == "jane@example.com"

    def test_trims_text(self, profile):
        """Test subject and message are stored trimmed."""
        submission = FeedbackSubmission(
            subject="  Dark mode please  ",
            message="\nWould love a dark theme.\n",
            rating=4,
        )

        record = validate(submission, profile, now=NOW)

        assert record.subject == "Dark mode please"
        assert record.message == "Would love a dark theme."

    def test_id_is_epoch_millis(self, valid_submission, profile):
        """Test the ID comes from the creation time."""
        record = validate(valid_submission, profile, now=NOW)

        assert record.feedback_id == str(int(NOW.timestamp() * 1000))

    def test_invalid_raises(self, profile):
        """Test invalid input never produces a record."""
        with pytest.raises(FeedbackValidationError):
            validate(FeedbackSubmission(subject="abcd"), profile, now=NOW)


class TestGenerateFeedbackId:
    """Test ID generation."""

    def test_unused(self):
        """Test the millisecond timestamp is used when free."""
        assert generate_feedback_id(NOW, set()) == "1768896000000"

    def test_collision_bumps(self):
        """Test taken IDs are skipped."""
        taken = {"1768896000000", "1768896000001"}

        assert generate_feedback_id(NOW, taken) == "1768896000002"


class TestFeedbackSubmissionService:
    """Test submission through the store."""

    @pytest.fixture
    def store(self, slot_store):
        return FeedbackStore(slot_store)

    def test_submit_appends(self, store, valid_submission, profile):
        """Test a submission lands in the store."""
        service = FeedbackSubmissionService(store)

        record = service.submit(valid_submission, profile=profile, now=NOW)

        stored = store.load_all()
        assert len(stored) == 1
        assert stored[0].feedback_id == record.feedback_id
        assert stored[0].status == "pending"

    def test_submit_uses_profile_service(self, store, valid_submission):
        """Test identity is looked up by role when not given."""
        profile_service = Mock()
        profile_service.get_profile.return_value = UserProfile(
            name="Admin", email="admin@example.com"
        )
        service = FeedbackSubmissionService(store, profile_service)

        record = service.submit(valid_submission, role="admin", now=NOW)

        profile_service.get_profile.assert_called_once_with("admin")
        assert record.user_email == "admin@example.com"

    def test_submit_without_profile(self, store, valid_submission):
        """Test submissions without any identity source get blank identity."""
        record = FeedbackSubmissionService(store).submit(valid_submission, now=NOW)

        assert record.user_name == ""
        assert record.user_email == ""

    def test_same_millisecond_gets_unique_ids(self, store, valid_submission, profile):
        """Test two submissions at the same instant keep IDs unique."""
        service = FeedbackSubmissionService(store)

        first = service.submit(valid_submission, profile=profile, now=NOW)
        second = service.submit(valid_submission, profile=profile, now=NOW)

        assert first.feedback_id != second.feedback_id
        assert len(store.load_all()) == 2

    def test_invalid_submission_writes_nothing(self, store, mock_slot_table, profile):
        """Test validation failures never touch storage."""
        service = FeedbackSubmissionService(store)

        with pytest.raises(FeedbackValidationError):
            service.submit(FeedbackSubmission(subject="abcd"), profile=profile, now=NOW)

        mock_slot_table.put_item.assert_not_called()

    def test_submit_keeps_records_that_fail_validation(
        self, store, mock_slot_table, seed_slot, sample_feedback, valid_submission, profile
    ):
        """Test a stored record with an unknown category is never overwritten."""
        data = [r.to_storage() for r in sample_feedback]
        data.append({**data[0], "id": "1769241600000", "category": "praise"})
        seed_slot(json.dumps(data))

        with pytest.raises(FeedbackStorageError):
            FeedbackSubmissionService(store).submit(valid_submission, profile=profile, now=NOW)

        stored = json.loads(mock_slot_table.items["userFeedback"]["value"])
        assert len(stored) == 5
        assert stored[-1]["category"] == "praise"
