"""Feedback data models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.constants import (
    CATEGORY_LABELS,
    FILTER_ALL,
    MESSAGE_MAX_LENGTH,
    MESSAGE_MIN_LENGTH,
    RATING_MAX,
    RATING_MIN,
    STATUS_LABELS,
    SUBJECT_MAX_LENGTH,
    SUBJECT_MIN_LENGTH,
)


class FeedbackCategory(str, Enum):
    """Feedback category enum."""

    BUG = "bug"
    FEATURE = "feature"
    GENERAL = "general"
    UI = "ui"
    PERFORMANCE = "performance"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self.value]


class FeedbackStatus(str, Enum):
    """Review state of a feedback record."""

    PENDING = "pending"  # Waiting for an admin to look at it
    REVIEWED = "reviewed"  # Admin has seen it
    RESOLVED = "resolved"  # Addressed; can be reopened

    @property
    def label(self) -> str:
        return STATUS_LABELS[self.value]


# Admin actions: mark reviewed, mark resolved, reset to pending.
# pending -> resolved and resolved -> reviewed are not offered.
ALLOWED_STATUS_TRANSITIONS: dict[FeedbackStatus, frozenset[FeedbackStatus]] = {
    FeedbackStatus.PENDING: frozenset({FeedbackStatus.REVIEWED}),
    FeedbackStatus.REVIEWED: frozenset({FeedbackStatus.RESOLVED, FeedbackStatus.PENDING}),
    FeedbackStatus.RESOLVED: frozenset({FeedbackStatus.PENDING}),
}


def is_transition_allowed(current: str, new: str) -> bool:
    """Check whether an admin may move a record from ``current`` to ``new``."""
    return FeedbackStatus(new) in ALLOWED_STATUS_TRANSITIONS[FeedbackStatus(current)]


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting the trailing ``Z`` JS emits.

    Naive timestamps are taken as UTC so all records stay comparable.
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class Feedback(BaseModel):
    """Stored feedback record.

    Serialized with the camelCase keys the web client wrote, so
    ``model_dump(by_alias=True)`` is the persisted shape. Keys this model
    does not know about are kept and written back untouched.
    """

    feedback_id: str = Field(..., alias="id", min_length=1)
    category: FeedbackCategory = Field(default=FeedbackCategory.GENERAL)
    subject: str = Field(..., min_length=SUBJECT_MIN_LENGTH, max_length=SUBJECT_MAX_LENGTH)
    message: str = Field(..., min_length=MESSAGE_MIN_LENGTH, max_length=MESSAGE_MAX_LENGTH)
    rating: int = Field(..., ge=RATING_MIN, le=RATING_MAX)
    user_name: str = Field(default="", alias="userName")
    user_email: str = Field(default="", alias="userEmail")
    status: FeedbackStatus = Field(default=FeedbackStatus.PENDING)
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True, extra="allow")

    @field_validator("created_at", "updated_at")
    @classmethod
    def validate_timestamp(cls, v: str) -> str:
        """Validate timestamps are ISO-8601."""
        try:
            parse_timestamp(v)
            return v
        except ValueError:
            raise ValueError("Timestamp must be in ISO-8601 format")

    @property
    def created_datetime(self) -> datetime:
        return parse_timestamp(self.created_at)

    @property
    def updated_datetime(self) -> datetime:
        return parse_timestamp(self.updated_at)

    def to_storage(self) -> dict:
        """Dump in the persisted camelCase shape."""
        return self.model_dump(by_alias=True, mode="json")


class FeedbackSubmission(BaseModel):
    """Request model for submitting feedback.

    Fields are unconstrained here; the submission form checks them in a
    fixed order and reports only the first failure.
    """

    category: FeedbackCategory = Field(default=FeedbackCategory.GENERAL)
    subject: str = Field(default="")
    message: str = Field(default="")
    rating: int = Field(default=0, description="Star rating, 0 means not rated")

    model_config = ConfigDict(use_enum_values=True)


class StatusUpdate(BaseModel):
    """Request model for an admin status change."""

    status: FeedbackStatus

    model_config = ConfigDict(use_enum_values=True)


class SortKey(str, Enum):
    """Fields the admin list can be sorted by."""

    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    USER_NAME = "userName"
    USER_EMAIL = "userEmail"
    RATING = "rating"
    CATEGORY = "category"
    STATUS = "status"
    SUBJECT = "subject"


class SortDirection(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class FeedbackFilters(BaseModel):
    """Admin list filters; ``"all"`` disables a filter."""

    category: FeedbackCategory | Literal["all"] = FILTER_ALL
    status: FeedbackStatus | Literal["all"] = FILTER_ALL
    rating: int | Literal["all"] = FILTER_ALL
    search: str = ""

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v: int | str) -> int | str:
        """Validate a rating filter is within the star range."""
        if v != FILTER_ALL and not RATING_MIN <= v <= RATING_MAX:
            raise ValueError(f"Rating filter must be between {RATING_MIN} and {RATING_MAX}")
        return v


class SortConfig(BaseModel):
    """Sort key and direction for the admin list."""

    key: SortKey = Field(default=SortKey.CREATED_AT)
    direction: SortDirection = Field(default=SortDirection.DESC)

    model_config = ConfigDict(use_enum_values=True)


class FeedbackQuery(BaseModel):
    """Filter and sort state of one admin view."""

    filters: FeedbackFilters = Field(default_factory=FeedbackFilters)
    sort: SortConfig = Field(default_factory=SortConfig)


class FeedbackStatistics(BaseModel):
    """Aggregate counts over a feedback collection."""

    total: int = 0
    pending: int = 0
    reviewed: int = 0
    resolved: int = 0
    average_rating: float = Field(default=0, alias="averageRating")

    model_config = ConfigDict(populate_by_name=True)


class UserProfile(BaseModel):
    """Identity used to prefill a feedback submission."""

    name: str = ""
    email: str = ""
