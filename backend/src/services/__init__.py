"""Services for the TaskFlow feedback backend."""

from .auth_service import AuthService
from .feedback_form import FeedbackSubmissionService
from .feedback_management_service import FeedbackManagementService
from .feedback_store import FeedbackStore
from .profile_service import ProfileService

__all__ = [
    "AuthService",
    "FeedbackStore",
    "FeedbackSubmissionService",
    "FeedbackManagementService",
    "ProfileService",
]
