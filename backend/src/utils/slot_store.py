"""Key-value slot storage on top of a DynamoDB table.

Each slot is one item in the app-state table:

    {"slot_key": "userFeedback", "value": "<json document>", "updated_at": "..."}

The value is kept as an opaque string so the stored documents stay
byte-for-byte what the web client used to keep in local storage.
"""

import logging
from datetime import UTC, datetime

from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class SlotStore:
    """Reads and overwrites whole slots in a DynamoDB table."""

    KEY_ATTRIBUTE = "slot_key"
    VALUE_ATTRIBUTE = "value"

    def __init__(self, table):
        """Initialize the store with a DynamoDB table."""
        self.table = table

    def get(self, key: str) -> str | None:
        """Return the raw value stored under ``key``.

        Returns None if the slot does not exist or holds a non-string value.

        Raises:
            ClientError: On DynamoDB errors
        """
        response = self.table.get_item(Key={self.KEY_ATTRIBUTE: key})
        item = response.get("Item")
        if not item:
            return None

        value = item.get(self.VALUE_ATTRIBUTE)
        if not isinstance(value, str):
            logger.warning("Slot %s holds a non-string value, ignoring it", key)
            return None
        return value

    def put(self, key: str, value: str) -> None:
        """Overwrite the slot ``key`` with ``value``.

        Raises:
            ClientError: On DynamoDB errors
        """
        self.table.put_item(
            Item={
                self.KEY_ATTRIBUTE: key,
                self.VALUE_ATTRIBUTE: value,
                "updated_at": datetime.now(UTC).isoformat(),
            }
        )

    def exists(self, key: str) -> bool:
        """Check whether a slot has been written."""
        try:
            return self.get(key) is not None
        except (ClientError, BotoCoreError) as e:
            logger.warning("Failed to check slot %s: %s", key, e)
            return False
