"""Feedback submission: validation and record construction."""

import logging
from datetime import UTC, datetime
from enum import Enum

from models.feedback import Feedback, FeedbackStatus, FeedbackSubmission, UserProfile
from services.feedback_store import FeedbackStore
from utils.constants import (
    MESSAGE_MAX_LENGTH,
    MESSAGE_MIN_LENGTH,
    RATING_MAX,
    RATING_MIN,
    SUBJECT_MAX_LENGTH,
    SUBJECT_MIN_LENGTH,
)

logger = logging.getLogger(__name__)


class ValidationErrorCode(str, Enum):
    """Which submission rule failed."""

    SUBJECT_REQUIRED = "SubjectRequired"
    SUBJECT_TOO_SHORT = "SubjectTooShort"
    MESSAGE_REQUIRED = "MessageRequired"
    MESSAGE_TOO_SHORT = "MessageTooShort"
    RATING_REQUIRED = "RatingRequired"
    SUBJECT_TOO_LONG = "SubjectTooLong"
    MESSAGE_TOO_LONG = "MessageTooLong"
    RATING_OUT_OF_RANGE = "RatingOutOfRange"


VALIDATION_MESSAGES: dict[ValidationErrorCode, str] = {
    ValidationErrorCode.SUBJECT_REQUIRED: "Subject is required",
    ValidationErrorCode.SUBJECT_TOO_SHORT: (
        f"Subject must be at least {SUBJECT_MIN_LENGTH} characters long"
    ),
    ValidationErrorCode.MESSAGE_REQUIRED: "Message is required",
    ValidationErrorCode.MESSAGE_TOO_SHORT: (
        f"Message must be at least {MESSAGE_MIN_LENGTH} characters long"
    ),
    ValidationErrorCode.RATING_REQUIRED: "Please provide a rating",
    ValidationErrorCode.SUBJECT_TOO_LONG: (
        f"Subject must be at most {SUBJECT_MAX_LENGTH} characters long"
    ),
    ValidationErrorCode.MESSAGE_TOO_LONG: (
        f"Message must be at most {MESSAGE_MAX_LENGTH} characters long"
    ),
    ValidationErrorCode.RATING_OUT_OF_RANGE: (
        f"Rating must be between {RATING_MIN} and {RATING_MAX}"
    ),
}


class FeedbackValidationError(ValueError):
    """A submission broke one of the form rules."""

    def __init__(self, code: ValidationErrorCode):
        self.code = code
        super().__init__(VALIDATION_MESSAGES[code])

    @property
    def message(self) -> str:
        return VALIDATION_MESSAGES[self.code]


def check_submission(submission: FeedbackSubmission) -> None:
    """Raise for the first rule the submission breaks.

    Order: subject present, subject long enough, message present, message
    long enough, rating given; then the upper bounds.

    Raises:
        FeedbackValidationError: With the code of the first failing rule
    """
    subject = submission.subject.strip()
    message = submission.message.strip()

    if not subject:
        raise FeedbackValidationError(ValidationErrorCode.SUBJECT_REQUIRED)
    if len(subject) < SUBJECT_MIN_LENGTH:
        raise FeedbackValidationError(ValidationErrorCode.SUBJECT_TOO_SHORT)
    if not message:
        raise FeedbackValidationError(ValidationErrorCode.MESSAGE_REQUIRED)
    if len(message) < MESSAGE_MIN_LENGTH:
        raise FeedbackValidationError(ValidationErrorCode.MESSAGE_TOO_SHORT)
    if submission.rating < RATING_MIN:
        raise FeedbackValidationError(ValidationErrorCode.RATING_REQUIRED)

    if len(subject) > SUBJECT_MAX_LENGTH:
        raise FeedbackValidationError(ValidationErrorCode.SUBJECT_TOO_LONG)
    if len(message) > MESSAGE_MAX_LENGTH:
        raise FeedbackValidationError(ValidationErrorCode.MESSAGE_TOO_LONG)
    if submission.rating > RATING_MAX:
        raise FeedbackValidationError(ValidationErrorCode.RATING_OUT_OF_RANGE)


def generate_feedback_id(now: datetime, existing_ids: set[str]) -> str:
    """Epoch-millisecond ID, bumped past any ID already in use."""
    candidate = int(now.timestamp() * 1000)
    while str(candidate) in existing_ids:
        candidate += 1
    return str(candidate)


def validate(
    submission: FeedbackSubmission,
    profile: UserProfile,
    now: datetime | None = None,
    existing_ids: set[str] | None = None,
) -> Feedback:
    """Validate a submission and build the pending record it becomes.

    Args:
        submission: Form input
        profile: Submitter identity, taken as-is
        now: Creation time (defaults to the current UTC time)
        existing_ids: IDs already in the collection

    Returns:
        A new Feedback with status pending and createdAt == updatedAt

    Raises:
        FeedbackValidationError: If any form rule fails
    """
    check_submission(submission)

    now = now or datetime.now(UTC)
    timestamp = now.isoformat()
    return Feedback(
        feedback_id=generate_feedback_id(now, existing_ids or set()),
        category=submission.category,
        subject=submission.subject.strip(),
        message=submission.message.strip(),
        rating=submission.rating,
        user_name=profile.name,
        user_email=profile.email,
        status=FeedbackStatus.PENDING,
        created_at=timestamp,
        updated_at=timestamp,
    )


class FeedbackSubmissionService:
    """Validates submissions and appends them to the feedback store."""

    def __init__(self, store: FeedbackStore, profile_service=None):
        """Initialize the service.

        Args:
            store: Feedback persistence
            profile_service: Optional ProfileService for identity prefill
        """
        self.store = store
        self.profile_service = profile_service

    def submit(
        self,
        submission: FeedbackSubmission,
        role: str | None = None,
        profile: UserProfile | None = None,
        now: datetime | None = None,
    ) -> Feedback:
        """Validate and store a submission.

        Identity comes from ``profile`` when given, otherwise from the
        profile slot for ``role``.

        Raises:
            FeedbackValidationError: If any form rule fails
            FeedbackStorageError: If the collection could not be written
        """
        if profile is None:
            profile = self.profile_service.get_profile(role) if self.profile_service else UserProfile()

        existing_ids = {r.feedback_id for r in self.store.load_all()}
        record = validate(submission, profile, now=now, existing_ids=existing_ids)
        self.store.append(record)

        logger.info("Feedback %s submitted (category=%s)", record.feedback_id, record.category)
        return record
