"""
User directory.
Maps a login identity (email) to its role and employee, from configuration.
"""
import logging
from typing import Any, Dict, List, Optional

from config import get_users_db
from models import Role

logger = logging.getLogger(__name__)


class UserDirectory:
    """Lookup over the configured users table"""

    def __init__(self, users: Optional[Dict[str, Dict[str, Any]]] = None):
        raw = users if users is not None else get_users_db()
        # Identities are matched case-insensitively
        self._users = {k.strip().lower(): dict(v) for k, v in raw.items()}

    def lookup_user(self, identity: str) -> Optional[Dict[str, Any]]:
        """
        Role and employee for an identity.

        Returns:
            {identity, role, employee_id, employee_name, display_name, password} or None
        """
        if not identity:
            return None
        entry = self._users.get(identity.strip().lower())
        if entry is None:
            return None

        role = str(entry.get("role") or Role.TEAM.value).lower()
        if role not in {r.value for r in Role}:
            logger.warning(f"Unknown role '{role}' for {identity}, treating as team")
            role = Role.TEAM.value

        return {
            "identity": identity.strip().lower(),
            "role": role,
            "employee_id": entry.get("employee_id"),
            "employee_name": entry.get("employee_name"),
            "display_name": entry.get("display_name") or entry.get("employee_name") or identity,
            "password": entry.get("password"),
        }

    def list_employees(self) -> List[Dict[str, Any]]:
        """Employees that can own sessions, ordered by id"""
        employees = {}
        for entry in self._users.values():
            employee_id = entry.get("employee_id")
            if employee_id is None:
                continue
            employees[employee_id] = {
                "id": employee_id,
                "name": entry.get("employee_name") or entry.get("display_name") or "",
                "color": entry.get("color"),
            }
        return sorted(
            employees.values(),
            key=lambda e: (0, int(e["id"]), "") if str(e["id"]).isdigit() else (1, 0, str(e["id"])),
        )

    def employee_id_for_name(self, name: str) -> Optional[Any]:
        """Employee id for a display name (case-insensitive), used on sheet import"""
        wanted = (name or "").strip().lower()
        if not wanted:
            return None
        for employee in self.list_employees():
            if employee["name"].strip().lower() == wanted:
                return employee["id"]
        return None


# Global directory instance
_directory: Optional[UserDirectory] = None


def get_user_directory() -> UserDirectory:
    """Get global user directory instance"""
    global _directory
    if _directory is None:
        _directory = UserDirectory()
    return _directory
