"""
Domain exceptions for the onboarding tracker.
Routes translate these into HTTP responses.
"""
from typing import List, Optional


class OnboardingError(Exception):
    """Base class for onboarding tracker errors"""


class ValidationError(OnboardingError):
    """A record is missing required fields or has a malformed value"""

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = fields or []


class NotFoundError(OnboardingError):
    """An operation referenced a record id that does not exist"""

    def __init__(self, record_id):
        super().__init__(f"Onboarding not found: {record_id}")
        self.record_id = record_id


class InvalidTransitionError(OnboardingError):
    """An attendance action is not allowed from the record's current status"""

    def __init__(self, action: str, current_status: str):
        super().__init__(f"Cannot '{action}' an onboarding in status '{current_status}'")
        self.action = action
        self.current_status = current_status
