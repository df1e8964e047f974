"""
Google Sheets exporter.

Pushes onboarding rows to a Google Apps Script web app. The script clears and
rewrites the sheet on 'syncAll' and appends one row on 'append'. Its responses
are often unreadable (redirects, HTML error pages), so a completed call whose
body cannot be read is reported as 'uncertain' rather than as success.
No retries: callers re-send the full data set if they need to.
"""
import json
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import requests
from pydantic import BaseModel

from config import get_sheets_config
from models import OnboardingRecord
from services.normalization import normalize_record

logger = logging.getLogger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets/{spreadsheet_id}/values/{range}"
SHEET_COLUMNS = ["Date", "Employee", "Client Name", "Account Number", "Session #", "Attendance"]


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    UNCERTAIN = "uncertain"
    FAILED = "failed"


class DeliveryResult(BaseModel):
    """Outcome of one push to the sheet"""
    status: DeliveryStatus
    message: str = ""
    synced_count: int = 0

    @property
    def accepted(self) -> bool:
        """Delivered, or at least not known to have failed"""
        return self.status != DeliveryStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "accepted": self.accepted,
            "message": self.message,
            "synced_count": self.synced_count,
        }


def record_to_sheet_row(record: OnboardingRecord) -> Dict[str, Any]:
    """Payload shape the Apps Script reads for one row"""
    return {
        "date": record.date or "",
        "employeeName": record.employee_name or "",
        "clientName": record.client_name or "",
        "accountNumber": record.account_number or "",
        "sessionNumber": record.session_number,
        "attendance": record.attendance.value,
    }


class SheetsExporter:
    """Client for the Apps Script web app and the Sheets values API"""

    def __init__(self, config: Optional[Dict[str, Any]] = None, session: Optional[requests.Session] = None):
        self.config = config if config is not None else get_sheets_config()
        self.session = session or requests.Session()

    @property
    def web_app_url(self) -> Optional[str]:
        return self.config.get("apps_script_url")

    @property
    def timeout(self) -> float:
        return float(self.config.get("timeout") or 30)

    def _submit(self, action: str, data: Dict[str, Any], count: int = 0) -> DeliveryResult:
        """POST one action to the web app as form fields"""
        if not self.web_app_url:
            logger.warning("Google Apps Script Web App URL not configured")
            return DeliveryResult(status=DeliveryStatus.FAILED, message="Web App URL not configured")

        logger.info(f"Submitting '{action}' to Google Sheets ({count} rows)")
        try:
            response = self.session.post(
                self.web_app_url,
                data={"action": action, "data": json.dumps(data)},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Error submitting '{action}' to Google Sheets: {e}")
            return DeliveryResult(status=DeliveryStatus.FAILED, message=f"Failed to submit data: {e}")

        if response.status_code >= 400:
            logger.error(f"Google Sheets '{action}' returned HTTP {response.status_code}")
            return DeliveryResult(status=DeliveryStatus.FAILED,
                                  message=f"HTTP {response.status_code}: {response.reason}")

        try:
            body = response.json()
        except ValueError:
            logger.warning(f"Google Sheets '{action}' response unreadable, delivery unconfirmed")
            return DeliveryResult(
                status=DeliveryStatus.UNCERTAIN,
                message="Request sent but the response could not be read. Check the sheet.",
                synced_count=count,
            )

        if not isinstance(body, dict):
            return DeliveryResult(status=DeliveryStatus.UNCERTAIN,
                                  message="Unexpected response from Google Sheets", synced_count=count)

        if body.get("success"):
            return DeliveryResult(
                status=DeliveryStatus.DELIVERED,
                message=body.get("message") or "Delivered",
                synced_count=int(body.get("syncedCount") or count),
            )

        error = body.get("error") or "Google Sheets reported a failure"
        logger.error(f"Google Sheets '{action}' failed: {error}")
        return DeliveryResult(status=DeliveryStatus.FAILED, message=error)

    def push_all(self, records: List[OnboardingRecord]) -> DeliveryResult:
        """
        Replace the sheet contents with `records`.
        Session numbers must already be recomputed by the caller.
        """
        rows = [record_to_sheet_row(r) for r in records]
        return self._submit("syncAll", {"onboardings": rows}, count=len(rows))

    def push_one(self, record: OnboardingRecord) -> DeliveryResult:
        """Append a single row; its session number must already be final"""
        return self._submit("append", {"onboarding": record_to_sheet_row(record)}, count=1)

    def test_connection(self) -> DeliveryResult:
        """Ask the web app to confirm it can reach the sheet"""
        return self._submit("test", {})

    def import_from_sheet(self, resolve_employee: Optional[Callable[[str], Any]] = None) -> List[OnboardingRecord]:
        """
        Read rows from the sheet through the Sheets values API.

        Args:
            resolve_employee: Maps an employee display name to an employee id

        Returns:
            Normalized records (session numbers as found in the sheet)

        Raises:
            ValueError: if the API key or spreadsheet id is not configured
            requests.HTTPError: if the API call fails
        """
        api_key = self.config.get("api_key")
        spreadsheet_id = self.config.get("spreadsheet_id")
        if not api_key or not spreadsheet_id:
            raise ValueError("Google Sheets API key or spreadsheet id not configured")

        sheet_range = f"{self.config.get('sheet_name') or 'Onboarding-Tracker'}!A2:F"
        url = SHEETS_API_URL.format(spreadsheet_id=spreadsheet_id, range=sheet_range)

        logger.info("📥 Fetching data from Google Sheets API...")
        response = self.session.get(url, params={"key": api_key}, timeout=self.timeout)
        response.raise_for_status()
        values = response.json().get("values") or []

        records = []
        for row in values:
            cells = list(row) + [""] * (len(SHEET_COLUMNS) - len(row))
            date, employee_name, client_name, account_number, session_number, attendance = cells[:6]

            # Skip empty rows
            if not str(date).strip() and not str(employee_name).strip() and not str(client_name).strip():
                continue

            employee_name = str(employee_name).strip()
            records.append(normalize_record({
                "date": date,
                "employee_name": employee_name,
                "employee_id": resolve_employee(employee_name) if resolve_employee else None,
                "client_name": client_name,
                "account_number": account_number,
                "session_number": session_number,
                "attendance": attendance,
            }))

        logger.info(f"✅ Read {len(records)} onboardings from Google Sheets")
        return records


# Global exporter instance
_exporter: Optional[SheetsExporter] = None


def get_sheets_exporter() -> SheetsExporter:
    """Get global sheets exporter instance"""
    global _exporter
    if _exporter is None:
        _exporter = SheetsExporter()
    return _exporter
