"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a storage backend because:
1. Mess members can view the ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

Each collection lives in its own worksheet with a header row.
A save rewrites every worksheet from the snapshot; the ledger is small
and this keeps the sheets an exact mirror of the store.

TRADEOFFS:
- No transactions: a failure halfway through a save leaves some sheets
  updated and others not. The next successful save repairs them.
- Every save is several API calls, wrapped in retries.
"""

from datetime import date
from typing import Any, Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from messledger.config import GoogleSheetsSettings, get_settings
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
    ConnectionError,
    LedgerStorageInterface,
    StorageError,
)


logger = get_logger(__name__)


# Column mappings, one worksheet per collection
MEMBER_COLUMNS = ["id", "name", "roomNo", "joinedDate"]
DEPOSIT_COLUMNS = ["id", "amount", "date", "memberId", "notes"]
EXPENSE_COLUMNS = ["id", "amount", "date", "items", "shopperName", "notes"]
MEAL_COLUMNS = ["date", "memberId", "breakfast", "lunch", "dinner"]
CATEGORY_COLUMNS = ["name"]
META_COLUMNS = ["key", "value"]

COLLECTIONS = {
    "members": MEMBER_COLUMNS,
    "deposits": DEPOSIT_COLUMNS,
    "expenses": EXPENSE_COLUMNS,
    "meals": MEAL_COLUMNS,
    "categories": CATEGORY_COLUMNS,
    "meta": META_COLUMNS,
}


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def sheet_title(self, collection: str) -> str:
        return getattr(self._settings, f"{collection}_sheet_name")

    def get_sheet(self, collection: str) -> gspread.Worksheet:
        """Get or create the worksheet for one collection."""
        columns = COLLECTIONS[collection]
        title = self.sheet_title(collection)
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().upper() == "TRUE"


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of ledger storage.

    Records are stored as rows, one record per row, in the column order
    given by the *_COLUMNS lists. Mode and language live in the Meta sheet.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        default_mode: LedgerMode = LedgerMode.SHARED,
    ):
        self._client = client or GoogleSheetsClient()
        self._default_mode = LedgerMode(default_mode)

    # -------------------------------------------------------------------------
    # Row conversion
    # -------------------------------------------------------------------------

    @staticmethod
    def _record_to_row(record: Any, columns: list[str]) -> list[str]:
        data = record.to_storage_dict()
        return [str(data.get(column, "")) for column in columns]

    @staticmethod
    def _row_to_dict(row: list, columns: list[str]) -> dict[str, str]:
        """Map a row onto column names, dropping empty cells."""
        values = {}
        for index, column in enumerate(columns):
            if index < len(row) and row[index] != "":
                values[column] = row[index]
        return values

    def _snapshot_to_rows(self, snapshot: LedgerSnapshot) -> dict[str, list[list]]:
        return {
            "members": [self._record_to_row(m, MEMBER_COLUMNS) for m in snapshot.members],
            "deposits": [self._record_to_row(d, DEPOSIT_COLUMNS) for d in snapshot.deposits],
            "expenses": [self._record_to_row(e, EXPENSE_COLUMNS) for e in snapshot.expenses],
            "meals": [
                [
                    record.date.isoformat(),
                    str(record.member_id) if record.member_id else "",
                    "TRUE" if record.breakfast else "FALSE",
                    "TRUE" if record.lunch else "FALSE",
                    "TRUE" if record.dinner else "FALSE",
                ]
                for record in snapshot.meals
            ],
            "categories": [[name] for name in snapshot.categories],
            "meta": [
                ["mode", snapshot.mode.value],
                ["language", snapshot.language.value],
            ],
        }

    def _rows_to_snapshot(self, rows: dict[str, list[list]]) -> LedgerSnapshot:
        meta = {row[0]: row[1] for row in rows["meta"] if len(row) >= 2}

        def records(collection: str, model: Any) -> list:
            columns = COLLECTIONS[collection]
            return [
                model.model_validate(self._row_to_dict(row, columns))
                for row in rows[collection]
            ]

        meals = []
        for row in rows["meals"]:
            values = self._row_to_dict(row, MEAL_COLUMNS)
            meals.append(MealRecord(
                date=date.fromisoformat(values["date"]),
                member_id=UUID(values["memberId"]) if values.get("memberId") else None,
                breakfast=_flag(values.get("breakfast", True)),
                lunch=_flag(values.get("lunch", True)),
                dinner=_flag(values.get("dinner", True)),
            ))

        return LedgerSnapshot(
            mode=LedgerMode(meta.get("mode") or self._default_mode),
            language=Language(meta.get("language") or Language.ENGLISH),
            members=records("members", Member),
            deposits=records("deposits", Deposit),
            expenses=records("expenses", Expense),
            meals=meals,
            categories=[row[0] for row in rows["categories"]],
        )

    # -------------------------------------------------------------------------
    # Storage interface
    # -------------------------------------------------------------------------

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _read_rows(self) -> dict[str, list[list]]:
        rows = {}
        for collection in COLLECTIONS:
            sheet = self._client.get_sheet(collection)
            # Skip header and empty rows
            rows[collection] = [
                row for row in sheet.get_all_values()[1:]
                if row and row[0]
            ]
        return rows

    def load_snapshot(self) -> Optional[LedgerSnapshot]:
        """Read every worksheet. Returns None when all of them are empty."""
        try:
            rows = self._read_rows()
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read ledger from Google Sheets: {e}")

        if not any(rows.values()):
            logger.info("snapshot_missing", backend="google_sheets")
            return None

        try:
            snapshot = self._rows_to_snapshot(rows)
        except Exception as e:
            raise StorageError(f"Ledger sheets are malformed: {e}")

        logger.info(
            "snapshot_loaded",
            backend="google_sheets",
            deposits=len(snapshot.deposits),
            expenses=len(snapshot.expenses),
        )
        return snapshot

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write_rows(self, rows: dict[str, list[list]]) -> None:
        for collection, columns in COLLECTIONS.items():
            sheet = self._client.get_sheet(collection)
            sheet.clear()
            sheet.update(
                range_name="A1",
                values=[columns] + rows[collection],
                value_input_option="RAW",
            )

    def save_snapshot(self, snapshot: LedgerSnapshot) -> None:
        """Rewrite every worksheet from the snapshot."""
        rows = self._snapshot_to_rows(snapshot)
        try:
            self._write_rows(rows)
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save ledger to Google Sheets: {e}")

        logger.info(
            "snapshot_saved",
            backend="google_sheets",
            deposits=len(snapshot.deposits),
            expenses=len(snapshot.expenses),
        )

