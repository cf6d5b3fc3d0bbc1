"""Shared constants for the TaskFlow feedback backend."""

# Slot keys in the app-state table.
# Must match the keys the web client used in local storage.
FEEDBACK_SLOT_KEY = "userFeedback"
USER_PROFILE_SLOT_KEY = "userProfile"
ADMIN_PROFILE_SLOT_KEY = "adminProfile"

PROFILE_SLOT_KEYS: dict[str, str] = {
    "user": USER_PROFILE_SLOT_KEY,
    "admin": ADMIN_PROFILE_SLOT_KEY,
}

# Feedback field bounds
SUBJECT_MIN_LENGTH = 5
SUBJECT_MAX_LENGTH = 100
MESSAGE_MIN_LENGTH = 10
MESSAGE_MAX_LENGTH = 1000
RATING_MIN = 1
RATING_MAX = 5

# Sentinel for "no filter" in admin queries
FILTER_ALL = "all"

# Fallback display name when a profile has an email but no name
DEFAULT_PROFILE_NAME = "User"

EXPORT_FILENAME_PREFIX = "feedback-export"

CATEGORY_LABELS: dict[str, str] = {
    "bug": "Bug Report",
    "feature": "Feature Request",
    "general": "General Feedback",
    "ui": "UI/UX Feedback",
    "performance": "Performance Issue",
}

STATUS_LABELS: dict[str, str] = {
    "pending": "Pending Review",
    "reviewed": "Under Review",
    "resolved": "Resolved",
}
