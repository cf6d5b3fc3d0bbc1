"""Whole-collection feedback persistence."""

import json
import logging

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from models.feedback import Feedback, FeedbackStatus
from utils.constants import FEEDBACK_SLOT_KEY
from utils.slot_store import SlotStore

logger = logging.getLogger(__name__)


class FeedbackStorageError(Exception):
    """Raised when the feedback collection could not be written."""

    pass


class FeedbackStore:
    """Service for reading and writing the feedback collection.

    The whole collection lives in a single slot as a JSON array. Every write
    replaces the slot entirely; there is no locking, so concurrent writers
    race and the last ``save_all`` wins.
    """

    def __init__(self, slot_store: SlotStore, slot_key: str = FEEDBACK_SLOT_KEY):
        """Initialize the store.

        Args:
            slot_store: Key-value slot storage
            slot_key: Slot holding the collection
        """
        self.slot_store = slot_store
        self.slot_key = slot_key

    def _load(self) -> list[Feedback]:
        """Load the collection ahead of a write.

        A missing slot, malformed JSON or a non-array value loads as empty.

        Raises:
            FeedbackStorageError: If the slot could not be read, or holds an
                array with records that fail validation
        """
        try:
            raw = self.slot_store.get(self.slot_key)
        except (ClientError, BotoCoreError) as e:
            raise FeedbackStorageError(f"Failed to read {self.slot_key}: {str(e)}")

        if raw is None:
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Malformed JSON in %s, treating as empty: %s", self.slot_key, e)
            return []

        if not isinstance(data, list):
            logger.warning(
                "Expected a JSON array in %s, got %s; treating as empty",
                self.slot_key,
                type(data).__name__,
            )
            return []

        try:
            return [Feedback.model_validate(item) for item in data]
        except ValidationError as e:
            raise FeedbackStorageError(f"Invalid feedback record in {self.slot_key}: {str(e)}")

    def load_all(self) -> list[Feedback]:
        """Load the full collection.

        Returns an empty list when the slot is missing, unreadable or holds
        anything other than a JSON array of valid records. Never raises.
        """
        try:
            return self._load()
        except FeedbackStorageError as e:
            logger.warning("%s; treating as empty", e)
            return []

    def save_all(self, records: list[Feedback]) -> None:
        """Overwrite the persisted collection with ``records``.

        Raises:
            FeedbackStorageError: If the slot could not be written
        """
        payload = json.dumps([record.to_storage() for record in records])
        try:
            self.slot_store.put(self.slot_key, payload)
        except (ClientError, BotoCoreError) as e:
            raise FeedbackStorageError(f"Failed to save feedback: {str(e)}")

    def append(self, record: Feedback) -> Feedback:
        """Add one record to the end of the collection.

        Raises:
            ValueError: If a record with the same ID already exists
            FeedbackStorageError: If the stored collection is unreadable or
                invalid, or on write failure
        """
        records = self._load()
        if any(r.feedback_id == record.feedback_id for r in records):
            raise ValueError(f"Feedback {record.feedback_id} already exists")

        records.append(record)
        self.save_all(records)
        logger.info("Stored feedback %s (%d total)", record.feedback_id, len(records))
        return record

    def get(self, feedback_id: str) -> Feedback | None:
        """Get a single record by ID from the latest snapshot."""
        for record in self.load_all():
            if record.feedback_id == feedback_id:
                return record
        return None

    def update_status(
        self, feedback_id: str, new_status: FeedbackStatus | str, now: str
    ) -> Feedback | None:
        """Set the status and ``updatedAt`` of one record.

        Args:
            feedback_id: Record to update
            new_status: New status value
            now: ISO timestamp to store as ``updatedAt``

        Returns:
            The updated record, or None if no record has that ID (nothing is
            written in that case)

        Raises:
            FeedbackStorageError: If the stored collection is unreadable or
                invalid, or on write failure
        """
        status = FeedbackStatus(new_status)
        records = self._load()

        updated = None
        for index, record in enumerate(records):
            if record.feedback_id == feedback_id:
                updated = record.model_copy(update={"status": status.value, "updated_at": now})
                records[index] = updated
                break

        if updated is None:
            logger.info("Feedback %s not found, status unchanged", feedback_id)
            return None

        self.save_all(records)
        logger.info("Feedback %s status set to %s", feedback_id, status.value)
        return updated
