"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the persistent backend because:
1. The expense book stays readable (and fixable) by hand in a browser
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for one person's expenses)
- No multi-row transactions: bulk label operations are sent as ONE batch
  request so a rename or delete either lands as a whole or fails as a whole
- Limited query capabilities (the view engine filters in Python anyway)

Amounts are written as plain FMG integers with value_input_option RAW so
Sheets never reformats them.
"""

import json
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterator, Optional
from uuid import UUID, uuid4

import gspread
import structlog
from google.auth.exceptions import TransportError
from google.oauth2.service_account import Credentials
from gspread.utils import rowcol_to_a1
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from currency_clarity.config import GoogleSheetsSettings, get_settings
from currency_clarity.models.audit import AuditEvent, AuditEventType, AuditSeverity
from currency_clarity.models.currency import Currency
from currency_clarity.models.expense import (
    BalanceStatus,
    Expense,
    ExpenseUpdate,
    NewExpense,
    apply_update,
    utc_now,
)
from currency_clarity.services.storage.interface import (
    AuditStorageInterface,
    ExpenseStoreInterface,
    NotFoundError,
    StorageError,
    StoreUnavailableError,
)


logger = structlog.get_logger(__name__)

# Column mappings for Expenses sheet
EXPENSE_COLUMNS = [
    "id",
    "created_at",
    "updated_at",
    "expense_date",
    "label",
    "amount_fmg",
    "currency",
    "remark",
    "balance_status",
    "balance_amount_fmg",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

# Sheets answers these with "try again later"
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

sheets_retry = retry(
    retry=retry_if_exception_type(StoreUnavailableError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Re-raise gspread and transport failures as storage errors."""
    try:
        yield
    except StorageError:
        raise
    except gspread.exceptions.APIError as e:
        status = e.response.status_code if e.response is not None else None
        if status in RETRYABLE_STATUS_CODES:
            raise StoreUnavailableError(f"Google Sheets unavailable during {operation}: {e}") from e
        raise StorageError(f"Failed to {operation}: {e}") from e
    except (TransportError, OSError) as e:
        raise StoreUnavailableError(f"Could not reach Google Sheets during {operation}: {e}") from e


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet bootstrap. Connection attempts
    are retried; a missing credentials file is not.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @sheets_retry
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            scopes = [
                "https://www.googleapis.com/auth/spreadsheets",
                "https://www.googleapis.com/auth/drive",
            ]
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
            except FileNotFoundError as e:
                raise StorageError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except ValueError as e:
                raise StorageError(f"Invalid Google credentials: {e}") from e

            with translate_errors("connect"):
                self._client = gspread.authorize(credentials)

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                with translate_errors("open spreadsheet"):
                    self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound as e:
                raise StorageError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        with translate_errors(f"open worksheet {title}"):
            try:
                return spreadsheet.worksheet(title)
            except gspread.WorksheetNotFound:
                sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
                sheet.append_row(columns)
                return sheet

    def get_expenses_sheet(self) -> gspread.Worksheet:
        """Get or create the Expenses worksheet."""
        return self._get_or_create_sheet(self._settings.expenses_sheet_name, EXPENSE_COLUMNS, 1000)

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, 5000)


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def _row_range(row_number: int) -> str:
    return f"A{row_number}:{rowcol_to_a1(row_number, len(EXPENSE_COLUMNS))}"


class GoogleSheetsExpenseStore(ExpenseStoreInterface):
    """
    Google Sheets implementation of the expense store.

    One expense per row, row 1 is the header. Rows are located by id
    on every call; the sheet itself is the only state.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _expense_to_row(self, expense: Expense) -> list:
        """Convert an Expense to a spreadsheet row."""
        return [
            str(expense.id),
            expense.created_at.isoformat(),
            expense.updated_at.isoformat(),
            expense.expense_date.isoformat(),
            expense.label,
            str(expense.amount),
            expense.currency.value,
            expense.remark or "",
            expense.balance_status.value,
            str(expense.balance_amount),
        ]

    def _row_to_expense(self, row: list) -> Expense:
        """Convert a spreadsheet row to an Expense."""
        return Expense(
            id=UUID(_safe_get(row, 0)),
            created_at=datetime.fromisoformat(_safe_get(row, 1)),
            updated_at=datetime.fromisoformat(_safe_get(row, 2)),
            expense_date=date.fromisoformat(_safe_get(row, 3)),
            label=_safe_get(row, 4),
            amount=int(_safe_get(row, 5, "0")),
            currency=Currency(_safe_get(row, 6, Currency.FMG.value)),
            remark=_safe_get(row, 7) or None,
            balance_status=BalanceStatus(_safe_get(row, 8, BalanceStatus.PAID.value)),
            balance_amount=int(_safe_get(row, 9, "0")),
        )

    def _parse_row(self, row_number: int, row: list) -> Expense:
        """Like `_row_to_expense`, but a malformed row is a StorageError."""
        try:
            return self._row_to_expense(row)
        except ValueError as e:
            raise StorageError(f"Malformed expense in sheet row {row_number}: {e}") from e

    def _load_rows(self) -> tuple[gspread.Worksheet, list[tuple[int, list]]]:
        """Worksheet plus (sheet row number, values) for every non-empty data row."""
        sheet = self._client.get_expenses_sheet()
        with translate_errors("read expenses"):
            values = sheet.get_all_values()
        rows = [
            (row_number, row)
            for row_number, row in enumerate(values[1:], start=2)
            if row and row[0]
        ]
        return sheet, rows

    def _find_row(self, rows: list[tuple[int, list]], expense_id: UUID) -> Optional[tuple[int, list]]:
        key = str(expense_id)
        for row_number, row in rows:
            if row[0] == key:
                return row_number, row
        return None

    @sheets_retry
    async def list_expenses(self) -> list[Expense]:
        """List every expense, newest day first."""
        _, rows = self._load_rows()

        expenses = []
        for row_number, row in rows:
            try:
                expenses.append(self._row_to_expense(row))
            except ValueError as e:
                logger.warning("malformed_expense_row", row_number=row_number, error=str(e))

        expenses.sort(key=lambda e: e.expense_date, reverse=True)
        return expenses

    @sheets_retry
    async def get_expense(self, expense_id: UUID) -> Optional[Expense]:
        _, rows = self._load_rows()
        found = self._find_row(rows, expense_id)
        return self._parse_row(*found) if found else None

    @sheets_retry
    async def create_expense(self, data: NewExpense) -> Expense:
        """Append a new expense row."""
        now = utc_now()
        expense = Expense(id=uuid4(), created_at=now, updated_at=now, **data.model_dump())

        sheet = self._client.get_expenses_sheet()
        with translate_errors("save expense"):
            sheet.append_row(self._expense_to_row(expense), value_input_option="RAW")
        return expense

    @sheets_retry
    async def update_expense(self, expense_id: UUID, changes: ExpenseUpdate) -> Expense:
        """Rewrite the expense's row with the merged values."""
        sheet, rows = self._load_rows()
        found = self._find_row(rows, expense_id)
        if found is None:
            raise NotFoundError(f"Expense not found: {expense_id}")

        row_number, row = found
        updated = apply_update(self._parse_row(row_number, row), changes)

        with translate_errors("update expense"):
            sheet.batch_update(
                [{"range": _row_range(row_number), "values": [self._expense_to_row(updated)]}],
                value_input_option="RAW",
            )
        return updated

    @sheets_retry
    async def delete_expense(self, expense_id: UUID) -> bool:
        sheet, rows = self._load_rows()
        found = self._find_row(rows, expense_id)
        if found is None:
            return False

        with translate_errors("delete expense"):
            sheet.delete_rows(found[0])
        return True

    @sheets_retry
    async def rename_label(self, old_label: str, new_label: str) -> int:
        """Rewrite every matching row in a single batch request."""
        sheet, rows = self._load_rows()
        update = ExpenseUpdate(label=new_label)
        now = utc_now()

        data = []
        for row_number, row in rows:
            if _safe_get(row, 4) != old_label:
                continue
            renamed = apply_update(self._parse_row(row_number, row), update, now=now)
            data.append({"range": _row_range(row_number), "values": [self._expense_to_row(renamed)]})

        if data:
            with translate_errors("rename label"):
                sheet.batch_update(data, value_input_option="RAW")
        return len(data)

    @sheets_retry
    async def delete_by_label(self, label: str) -> int:
        """Delete every matching row in a single batch request."""
        sheet, rows = self._load_rows()
        row_numbers = [row_number for row_number, row in rows if _safe_get(row, 4) == label]
        if not row_numbers:
            return 0

        # Bottom-up so earlier deletions don't shift later indices
        requests = [
            {
                "deleteDimension": {
                    "range": {
                        "sheetId": sheet.id,
                        "dimension": "ROWS",
                        "startIndex": row_number - 1,
                        "endIndex": row_number,
                    }
                }
            }
            for row_number in sorted(row_numbers, reverse=True)
        ]
        with translate_errors("delete label"):
            sheet.spreadsheet.batch_update({"requests": requests})
        return len(row_numbers)


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_safe_get(row, 0)),
            timestamp=datetime.fromisoformat(_safe_get(row, 1)),
            event_type=AuditEventType(_safe_get(row, 2)),
            severity=AuditSeverity(_safe_get(row, 3)),
            entity_type=_safe_get(row, 4) or None,
            entity_id=UUID(_safe_get(row, 5)) if _safe_get(row, 5) else None,
            correlation_id=UUID(_safe_get(row, 6)) if _safe_get(row, 6) else None,
            description=_safe_get(row, 7),
            details=json.loads(_safe_get(row, 8)) if _safe_get(row, 8) else {},
            error_message=_safe_get(row, 9) or None,
            is_user_action=_safe_get(row, 10).lower() == "true",
        )

    def _load_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        with translate_errors("read audit log"):
            values = sheet.get_all_values()[1:]

        events = []
        for row in values:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError as e:
                logger.warning("malformed_audit_row", event_id=row[0], error=str(e))
        return events

    @sheets_retry
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        sheet = self._client.get_audit_sheet()
        with translate_errors("append audit event"):
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
        return True

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        events = [
            event for event in self._load_events()
            if event.entity_type == entity_type and event.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        events = self._load_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
