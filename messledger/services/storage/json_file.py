"""
JSON File Storage Implementation

One JSON document holds the whole ledger, one key per collection:

    {
      "mode": "shared",
      "language": "en",
      "members": [...],
      "deposits": [...],
      "expenses": [...],
      "mealMap": {...},
      "expenseCategories": [...]
    }

Records use their camelCase field names (memberId, shopperName, roomNo,
joinedDate). mealMap is keyed by ISO date; in shared mode each date maps
member ids to entries, in personal mode each date maps straight to an
entry. Only toggled entries are ever present.

Writes are atomic: the document goes to a temp file in the same
directory which then replaces the target.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from messledger.log import get_logger
from messledger.models.ledger import (
    Deposit,
    Expense,
    Language,
    LedgerMode,
    Member,
)
from messledger.models.snapshot import LedgerSnapshot, MealRecord
from messledger.services.storage.interface import (
    LedgerStorageInterface,
    StorageError,
)


logger = get_logger(__name__)


MEAL_FLAGS = ("breakfast", "lunch", "dinner")


def _entry_dict(record: MealRecord) -> dict[str, bool]:
    return {flag: getattr(record, flag) for flag in MEAL_FLAGS}


def meal_map_from_records(records: list[MealRecord], mode: LedgerMode) -> dict[str, Any]:
    """Nest meal records into the persisted mealMap shape for `mode`."""
    meal_map: dict[str, Any] = {}
    for record in records:
        day = record.date.isoformat()
        if mode == LedgerMode.SHARED:
            meal_map.setdefault(day, {})[str(record.member_id)] = _entry_dict(record)
        else:
            meal_map[day] = _entry_dict(record)
    return meal_map


def _looks_like_entry(value: Any) -> bool:
    return isinstance(value, dict) and "breakfast" in value


def is_legacy_meal_map(meal_map: Any, mode: LedgerMode) -> bool:
    """
    True for a mealMap written before per-meal flags existed.

    Only the first entry is inspected; such a map is discarded whole.
    """
    if not isinstance(meal_map, dict):
        return True
    if not meal_map:
        return False
    first = next(iter(meal_map.values()))
    if mode == LedgerMode.PERSONAL:
        return not _looks_like_entry(first)
    if not isinstance(first, dict) or not first:
        return True
    return not _looks_like_entry(next(iter(first.values())))


def meal_records_from_map(meal_map: dict[str, Any], mode: LedgerMode) -> list[MealRecord]:
    """Flatten a persisted mealMap back into meal records."""
    records = []
    for day, value in meal_map.items():
        if mode == LedgerMode.SHARED:
            for member_id, entry in value.items():
                records.append(MealRecord(date=day, member_id=member_id, **entry))
        else:
            records.append(MealRecord(date=day, **value))
    return records


class JsonFileLedgerStorage(LedgerStorageInterface):
    """
    Ledger snapshot in a local JSON file.

    A file without a "mode" key is read in `default_mode`.
    """

    def __init__(
        self,
        path: Union[str, Path],
        default_mode: LedgerMode = LedgerMode.SHARED,
        default_language: Language = Language.ENGLISH,
    ):
        self.path = Path(path)
        self._default_mode = LedgerMode(default_mode)
        self._default_language = Language(default_language)

    def to_document(self, snapshot: LedgerSnapshot) -> dict[str, Any]:
        """The JSON document for a snapshot."""
        return {
            "mode": snapshot.mode.value,
            "language": snapshot.language.value,
            "members": [m.to_storage_dict() for m in snapshot.members],
            "deposits": [d.to_storage_dict() for d in snapshot.deposits],
            "expenses": [e.to_storage_dict() for e in snapshot.expenses],
            "mealMap": meal_map_from_records(snapshot.meals, snapshot.mode),
            "expenseCategories": list(snapshot.categories),
        }

    def from_document(self, data: dict[str, Any]) -> LedgerSnapshot:
        """Parse a JSON document into a snapshot."""
        mode = LedgerMode(data.get("mode") or self._default_mode)

        meal_map = data.get("mealMap") or {}
        if is_legacy_meal_map(meal_map, mode):
            logger.warning("legacy_meal_map_discarded", path=str(self.path))
            meal_map = {}

        return LedgerSnapshot(
            mode=mode,
            language=Language(data.get("language") or self._default_language),
            members=[Member.model_validate(m) for m in data.get("members") or []],
            deposits=[Deposit.model_validate(d) for d in data.get("deposits") or []],
            expenses=[Expense.model_validate(e) for e in data.get("expenses") or []],
            meals=meal_records_from_map(meal_map, mode),
            categories=list(data.get("expenseCategories") or []),
        )

    def load_snapshot(self) -> Optional[LedgerSnapshot]:
        if not self.path.exists():
            logger.info("snapshot_missing", path=str(self.path))
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read ledger file {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(f"Ledger file {self.path} does not hold a JSON object")

        try:
            snapshot = self.from_document(data)
        except (ValidationError, ValueError, AttributeError, TypeError) as e:
            raise StorageError(f"Ledger file {self.path} is malformed: {e}") from e

        logger.info(
            "snapshot_loaded",
            path=str(self.path),
            deposits=len(snapshot.deposits),
            expenses=len(snapshot.expenses),
        )
        return snapshot

    def save_snapshot(self, snapshot: LedgerSnapshot) -> None:
        document = self.to_document(snapshot)
        target = self.path.resolve()

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # atomic write: write to temp file then replace
            fd, tmp_path = tempfile.mkstemp(
                prefix="tmp_ledger_", dir=target.parent, text=True
            )
        except OSError as e:
            raise StorageError(f"Failed to save ledger file {target}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, target)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageError(f"Failed to save ledger file {target}: {e}") from e

        logger.info(
            "snapshot_saved",
            path=str(target),
            deposits=len(snapshot.deposits),
            expenses=len(snapshot.expenses),
        )
