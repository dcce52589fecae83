"""
Google Sheets Ledger Store

DESIGN DECISION: Google Sheets is offered as a backend because:
1. Users can view and back up their ledger directly in Sheets
2. No database setup required
3. Data survives a lost phone

TRADEOFFS:
- Not suitable for high-volume data (fine for a personal ledger)
- No transactions across worksheets (same as every other backend)
- Whole-collection overwrite means one bulk update plus a resize per write

Each collection lives in its own worksheet with two columns:
the record id and the record serialized as JSON.
"""

import json
from typing import Any, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from moneysaver.config import get_settings
from moneysaver.services.storage.interface import (
    Collection,
    LedgerStoreInterface,
    StorageUnavailableError,
)


SHEET_COLUMNS = ["id", "record_json"]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet lookup.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

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
                raise StorageUnavailableError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageUnavailableError(f"Failed to connect to Google Sheets: {e}")

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
                raise StorageUnavailableError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def sheet_name_for(self, name: Collection) -> str:
        """Configured worksheet title for a collection."""
        return {
            Collection.TRANSACTIONS: self._settings.transactions_sheet_name,
            Collection.GOALS: self._settings.goals_sheet_name,
            Collection.RECURRING_RULES: self._settings.recurring_sheet_name,
        }[Collection(name)]

    def get_collection_sheet(self, name: Collection) -> gspread.Worksheet:
        """Get or create the worksheet backing a collection."""
        spreadsheet = self.get_spreadsheet()
        title = self.sheet_name_for(name)
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(SHEET_COLUMNS),
            )
            sheet.append_row(SHEET_COLUMNS)
        return sheet


class GoogleSheetsLedgerStore(LedgerStoreInterface):
    """
    Google Sheets implementation of the ledger store.

    Row 1 is the header; each following row is one record. Blank rows are
    ignored. Any other row that doesn't hold a JSON object makes the
    collection unreadable, so an overwrite can never drop it silently.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _record_to_row(self, record: dict[str, Any]) -> list:
        """Convert a record to a spreadsheet row."""
        return [
            str(record.get("id", "")),
            json.dumps(record, sort_keys=True),
        ]

    def _row_to_record(self, row: list) -> Optional[dict[str, Any]]:
        """
        Convert a spreadsheet row to a record (None for blank rows).

        Raises:
            ValueError: If the row holds something other than a JSON object
        """
        if not any(str(cell).strip() for cell in row):
            return None
        if len(row) < 2 or not row[1]:
            raise ValueError("missing record_json")
        record = json.loads(row[1])
        if not isinstance(record, dict):
            raise ValueError("record_json is not an object")
        return record

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _read_rows(self, name: Collection) -> list[list]:
        try:
            sheet = self._client.get_collection_sheet(name)
            return sheet.get_all_values()[1:]  # Skip header
        except StorageUnavailableError:
            raise
        except Exception as e:
            raise StorageUnavailableError(f"Failed to read {Collection(name).value}: {e}")

    async def read_collection(self, name: Collection) -> list[dict[str, Any]]:
        """
        Read all records of a collection.

        Raises:
            StorageUnavailableError: If the sheet can't be read or a row
                is malformed
        """
        records = []
        for row_number, row in enumerate(await self._read_rows(name), start=2):
            try:
                record = self._row_to_record(row)
            except ValueError as e:
                raise StorageUnavailableError(
                    f"Failed to read {Collection(name).value}: row {row_number}: {e}"
                )
            if record is not None:
                records.append(record)
        return records

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def write_collection(
        self,
        name: Collection,
        records: list[dict[str, Any]],
    ) -> bool:
        """
        Overwrite a collection.

        Rows are written over the old ones first and the leftover tail is
        trimmed afterwards, so a failed update leaves the previous content.
        """
        values = [SHEET_COLUMNS] + [self._record_to_row(r) for r in records]
        try:
            sheet = self._client.get_collection_sheet(name)
            if sheet.row_count < len(values):
                sheet.resize(rows=len(values), cols=len(SHEET_COLUMNS))
            sheet.update(
                range_name="A1",
                values=values,
                value_input_option="RAW",
            )
            sheet.resize(rows=len(values), cols=len(SHEET_COLUMNS))
            return True
        except StorageUnavailableError:
            raise
        except Exception as e:
            raise StorageUnavailableError(f"Failed to write {Collection(name).value}: {e}")
