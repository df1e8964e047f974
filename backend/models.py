"""
Typed onboarding record schema shared by services and routes.
"""
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Attendance(str, Enum):
    """Attendance status of an onboarding session"""
    PENDING = "pending"
    PENDING_APPROVAL = "pending_approval"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"
    NO_SHOW = "no-show"


ATTENDANCE_VALUES = {a.value for a in Attendance}


class Role(str, Enum):
    """Dashboard role of a signed-in user"""
    ADMIN = "admin"
    TEAM = "team"
    SALES = "sales"


RecordId = Union[int, str]


class OnboardingRecord(BaseModel):
    """
    One onboarding session.

    session_number is derived: it must always equal the record's chronological
    rank among records sharing the same trimmed account_number.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    id: Optional[RecordId] = None
    employee_id: Optional[RecordId] = None
    employee_name: Optional[str] = None
    client_name: str = ""
    account_number: Optional[str] = None
    date: str = ""
    month: str = ""
    session_number: int = 1
    attendance: Attendance = Attendance.PENDING
    notes: Optional[str] = None

    # No-show follow-up tracking
    no_show_reached_out: bool = False
    no_show_reached_out_date: Optional[str] = None
    no_show_notes: Optional[str] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_api(self) -> dict:
        """camelCase dict for the web client"""
        return self.model_dump(by_alias=True, mode="json")
