"""Data models for the TaskFlow feedback backend."""

from .feedback import (
    Feedback,
    FeedbackCategory,
    FeedbackFilters,
    FeedbackQuery,
    FeedbackStatistics,
    FeedbackStatus,
    FeedbackSubmission,
    SortConfig,
    SortDirection,
    SortKey,
    StatusUpdate,
    UserProfile,
)

__all__ = [
    "Feedback",
    "FeedbackCategory",
    "FeedbackFilters",
    "FeedbackQuery",
    "FeedbackStatistics",
    "FeedbackStatus",
    "FeedbackSubmission",
    "SortConfig",
    "SortDirection",
    "SortKey",
    "StatusUpdate",
    "UserProfile",
]
