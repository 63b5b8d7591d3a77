"""Append-only local record stores for zbdw.

Each store is a JSON array in a single file, rewritten in full on every
append. Writes go through a temporary sibling file and an atomic rename, so
an interrupted write leaves the previous file intact. There is no
cross-process lock: run one zbdw invocation at a time per wallet directory.
"""

import json
import logging
from pathlib import Path
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ValidationError

from .models.ledger import PaymentRecord
from .models.paylink import PaylinkMetadataRecord

logger = logging.getLogger(__name__)


class RecordStore:
    """JSON-array record store keyed by ``id``.

    Subclasses set ``record_model`` to the pydantic model stored in the file.
    """

    record_model: ClassVar[type[BaseModel]]

    def __init__(self, path: Path):
        """Initialize the store.

        Args:
            path: Path to the backing JSON file (need not exist yet)
        """
        self.path = path

    def read_all(self) -> list[Any]:
        """Read every record in insertion order.

        Never raises: a missing or unparseable file reads as an empty store,
        and entries that fail validation are skipped with a warning.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return []

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unparseable store {self.path}: {e}")
            return []

        if not isinstance(parsed, list):
            logger.warning(f"Ignoring store {self.path}: expected a JSON array")
            return []

        records = []
        skipped = 0
        for item in parsed:
            if not isinstance(item, dict):
                skipped += 1
                continue
            try:
                records.append(self.record_model.model_validate(item))
            except ValidationError as e:
                skipped += 1
                logger.debug(f"Skipping invalid record in {self.path}: {e}")

        if skipped:
            logger.warning(f"Skipped {skipped} invalid record(s) in {self.path}")

        return records

    def append(self, record: Any) -> None:
        """Append a record unconditionally.

        Used for locally-initiated events whose id was just minted upstream.
        """
        current = self.read_all()
        current.append(record)
        self._write(current)

    def append_if_absent(self, record: Any) -> bool:
        """Append a record unless one with the same id is already stored.

        Returns:
            True if the record was inserted, False if the id already existed
        """
        current = self.read_all()
        if any(item.id == record.id for item in current):
            logger.debug(f"Record {record.id} already present in {self.path}")
            return False

        current.append(record)
        self._write(current)
        return True

    def find_by_id(self, record_id: str) -> Optional[Any]:
        """Return the first record with ``record_id``, or None."""
        for item in self.read_all():
            if item.id == record_id:
                return item
        return None

    def _write(self, records: list[Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = [record.to_json_dict() for record in records]

        temp_file = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                f.write(json.dumps(data, indent=2, ensure_ascii=False) + "\n")
            temp_file.replace(self.path)
        except OSError as e:
            logger.error(f"Failed to write {self.path}: {e}")
            temp_file.unlink(missing_ok=True)
            raise

        logger.debug(f"Wrote {len(records)} record(s) to {self.path}")


class PaymentLedger(RecordStore):
    """Payment history (payments.json).

    Plain Lightning sends/receives, paylink settlements and onchain payouts
    share this file and are told apart by ``source``.
    """

    record_model = PaymentRecord

    def read_all(self) -> list[PaymentRecord]:
        return super().read_all()

    def find_by_id(self, record_id: str) -> Optional[PaymentRecord]:
        return super().find_by_id(record_id)


class PaylinkCache(RecordStore):
    """Local paylink metadata cache (paylinks.json)."""

    record_model = PaylinkMetadataRecord

    def read_all(self) -> list[PaylinkMetadataRecord]:
        return super().read_all()

    def find_by_id(self, record_id: str) -> Optional[PaylinkMetadataRecord]:
        return super().find_by_id(record_id)
