"""Admin-side feedback management: views, status transitions and export."""

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from models.feedback import (
    Feedback,
    FeedbackQuery,
    FeedbackStatistics,
    FeedbackStatus,
    SortKey,
    is_transition_allowed,
)
from services import feedback_query
from services.feedback_store import FeedbackStore
from utils.constants import EXPORT_FILENAME_PREFIX

logger = logging.getLogger(__name__)


class InvalidStatusTransitionError(ValueError):
    """The requested status change is not one of the admin actions."""

    def __init__(self, feedback_id: str, current: str, requested: str):
        self.feedback_id = feedback_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move feedback {feedback_id} from {current} to {requested}"
        )


@dataclass
class FeedbackView:
    """One admin view: the filtered records plus whole-collection stats."""

    feedback: list[Feedback]
    total: int
    statistics: FeedbackStatistics
    query: FeedbackQuery = field(default_factory=FeedbackQuery)

    @property
    def count(self) -> int:
        return len(self.feedback)

    def next_sort(self) -> dict[str, dict]:
        """Sort state each column header switches to when clicked."""
        return {
            key.value: feedback_query.toggle_sort(self.query.sort, key).model_dump()
            for key in SortKey
        }

    def to_dict(self) -> dict:
        """Convert to a response dictionary."""
        return {
            "feedback": [record.to_storage() for record in self.feedback],
            "count": self.count,
            "total": self.total,
            "statistics": self.statistics.model_dump(by_alias=True),
            "filters": self.query.filters.model_dump(),
            "sort": self.query.sort.model_dump(),
            "next_sort": self.next_sort(),
        }


def export_feedback(records: list[Feedback]) -> str:
    """Serialize records as a pretty-printed JSON array."""
    return json.dumps([record.to_storage() for record in records], indent=2)


def export_filename(now: datetime | None = None) -> str:
    """Download name for an export, e.g. ``feedback-export-2026-01-20.json``."""
    now = now or datetime.now(UTC)
    return f"{EXPORT_FILENAME_PREFIX}-{now.date().isoformat()}.json"


class FeedbackManagementService:
    """Service behind the admin feedback screen."""

    def __init__(self, store: FeedbackStore):
        """Initialize the service with the feedback store."""
        self.store = store

    def load_view(self, query: FeedbackQuery | None = None) -> FeedbackView:
        """Build the admin view from the latest persisted snapshot.

        Statistics always cover the whole collection, not just the
        filtered records.
        """
        query = query or FeedbackQuery()
        records = self.store.load_all()
        return FeedbackView(
            feedback=feedback_query.apply(records, query.filters, query.sort),
            total=len(records),
            statistics=feedback_query.compute_statistics(records),
            query=query,
        )

    def get_statistics(self) -> FeedbackStatistics:
        """Statistics over the whole collection."""
        return feedback_query.compute_statistics(self.store.load_all())

    def transition(
        self,
        feedback_id: str,
        new_status: FeedbackStatus | str,
        now: datetime | None = None,
    ) -> Feedback | None:
        """Apply an admin status change.

        Returns:
            The updated record, or None if no record has that ID

        Raises:
            InvalidStatusTransitionError: If the change is not an admin action
            FeedbackStorageError: On write failure
        """
        new_status = FeedbackStatus(new_status)
        record = self.store.get(feedback_id)
        if record is None:
            return None

        if not is_transition_allowed(record.status, new_status):
            raise InvalidStatusTransitionError(feedback_id, record.status, new_status.value)

        now = now or datetime.now(UTC)
        return self.store.update_status(feedback_id, new_status, now.isoformat())

    def mark_reviewed(self, feedback_id: str, now: datetime | None = None) -> Feedback | None:
        return self.transition(feedback_id, FeedbackStatus.REVIEWED, now)

    def mark_resolved(self, feedback_id: str, now: datetime | None = None) -> Feedback | None:
        return self.transition(feedback_id, FeedbackStatus.RESOLVED, now)

    def reset_to_pending(self, feedback_id: str, now: datetime | None = None) -> Feedback | None:
        return self.transition(feedback_id, FeedbackStatus.PENDING, now)

    def export(self, query: FeedbackQuery | None = None) -> str:
        """Export the filtered view (not the whole collection) as JSON."""
        view = self.load_view(query)
        logger.info("Exporting %d of %d feedback records", view.count, view.total)
        return export_feedback(view.feedback)
