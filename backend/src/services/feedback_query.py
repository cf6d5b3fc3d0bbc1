"""Filtering, sorting and statistics over a feedback collection."""

import math
from typing import Any

from models.feedback import (
    Feedback,
    FeedbackFilters,
    FeedbackStatistics,
    FeedbackStatus,
    SortConfig,
    SortDirection,
    SortKey,
)
from utils.constants import FILTER_ALL

# Stored (camelCase) key -> model attribute
_SORT_ATTRIBUTES: dict[str, str] = {
    SortKey.CREATED_AT.value: "created_datetime",
    SortKey.UPDATED_AT.value: "updated_datetime",
    SortKey.USER_NAME.value: "user_name",
    SortKey.USER_EMAIL.value: "user_email",
    SortKey.RATING.value: "rating",
    SortKey.CATEGORY.value: "category",
    SortKey.STATUS.value: "status",
    SortKey.SUBJECT.value: "subject",
}


def matches_search(record: Feedback, term: str) -> bool:
    """Case-insensitive substring match on subject, message, name and email."""
    needle = term.lower()
    return any(
        needle in (value or "").lower()
        for value in (record.subject, record.message, record.user_name, record.user_email)
    )


def apply_filters(records: list[Feedback], filters: FeedbackFilters) -> list[Feedback]:
    """Narrow ``records`` by every active filter (logical AND)."""
    result = list(records)

    if filters.category != FILTER_ALL:
        result = [r for r in result if r.category == filters.category]

    if filters.status != FILTER_ALL:
        result = [r for r in result if r.status == filters.status]

    if filters.rating != FILTER_ALL:
        result = [r for r in result if r.rating == filters.rating]

    if filters.search.strip():
        result = [r for r in result if matches_search(r, filters.search)]

    return result


def sort_value(record: Feedback, key: SortKey | str) -> Any:
    """Value a record is ordered by for ``key``.

    ``createdAt`` and ``updatedAt`` compare as datetimes; everything else by
    its stored value.
    """
    return getattr(record, _SORT_ATTRIBUTES[SortKey(key).value])


def sort_feedback(records: list[Feedback], sort: SortConfig) -> list[Feedback]:
    """Order records by the sort key and direction.

    Ties are broken by ID ascending, in both directions.
    """
    ordered = sorted(records, key=lambda r: r.feedback_id)
    # Python's sort is stable even with reverse=True, so the ID order of
    # equal keys survives the second pass.
    ordered.sort(
        key=lambda r: sort_value(r, sort.key),
        reverse=sort.direction == SortDirection.DESC,
    )
    return ordered


def apply(
    records: list[Feedback], filters: FeedbackFilters, sort: SortConfig
) -> list[Feedback]:
    """Filtered and sorted view of ``records``."""
    return sort_feedback(apply_filters(records, filters), sort)


def toggle_sort(current: SortConfig, key: SortKey | str) -> SortConfig:
    """Next sort state after the admin clicks a column header.

    Clicking the column that is already sorted ascending flips it to
    descending; anything else sorts the clicked column ascending.
    """
    key = SortKey(key)
    if current.key == key and current.direction == SortDirection.ASC:
        return SortConfig(key=key, direction=SortDirection.DESC)
    return SortConfig(key=key, direction=SortDirection.ASC)


def round_half_up(value: float, digits: int = 1) -> float:
    """Round like JavaScript's ``Math.round(x * 10) / 10``."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def compute_statistics(records: list[Feedback]) -> FeedbackStatistics:
    """Count records per status and average their ratings.

    The average is rounded half-up to one decimal and is 0 for an empty
    collection.
    """
    total = len(records)
    counts = {status.value: 0 for status in FeedbackStatus}
    for record in records:
        counts[record.status] += 1

    average = sum(r.rating for r in records) / total if total else 0

    return FeedbackStatistics(
        total=total,
        pending=counts[FeedbackStatus.PENDING.value],
        reviewed=counts[FeedbackStatus.REVIEWED.value],
        resolved=counts[FeedbackStatus.RESOLVED.value],
        average_rating=round_half_up(average),
    )
