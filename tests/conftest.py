"""
Shared fixtures: an in-memory stand-in for the Supabase table API, and
store/exporter/directory instances wired to it.
"""
import copy
import json
import random
from types import SimpleNamespace

import pytest
import requests

from database import DatabaseClient
from services.onboarding_store import OnboardingStore
from services.sheets_exporter import SheetsExporter
from services.user_directory import UserDirectory


def _matches(row, column, value):
    if value is None:
        return row.get(column) is None
    return str(row.get(column)) == str(value)


def _sort_value(value):
    if value is None:
        return (1, 0, "")
    if isinstance(value, (int, float)):
        return (0, value, "")
    return (0, 0, str(value))


class FakeQuery:
    """Chainable query over one in-memory table"""

    def __init__(self, backend, table):
        self.backend = backend
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.orders = []
        self.start = None
        self.end = None
        self.max_rows = None

    def select(self, columns="*"):
        self.op = "select"
        return self

    def insert(self, data):
        self.op, self.payload = "insert", data
        return self

    def update(self, data):
        self.op, self.payload = "update", data
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def match(self, criteria):
        self.filters.extend(criteria.items())
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def range(self, start, end):
        self.start, self.end = start, end
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def _selected(self):
        rows = self.backend.tables.setdefault(self.table, [])
        return [r for r in rows if all(_matches(r, c, v) for c, v in self.filters)]

    def execute(self):
        self.backend.calls.append((self.table, self.op))
        if self.backend.fail_on == self.op:
            raise RuntimeError(f"simulated {self.op} failure")

        rows = self.backend.tables.setdefault(self.table, [])

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = [self.backend.new_row(item) for item in items]
            rows.extend(created)
            return SimpleNamespace(data=copy.deepcopy(created))

        if self.op == "update":
            hits = self._selected()
            for row in hits:
                row.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=copy.deepcopy(hits))

        if self.op == "delete":
            hits = self._selected()
            self.backend.tables[self.table] = [r for r in rows if r not in hits]
            return SimpleNamespace(data=copy.deepcopy(hits))

        result = self._selected()
        if self.backend.shuffle_ties:
            # Postgres gives no tie order between separate requests
            random.Random(len(self.backend.calls)).shuffle(result)
        for column, desc in reversed(self.orders):
            result = sorted(result, key=lambda r: _sort_value(r.get(column)), reverse=desc)
        if self.start is not None:
            result = result[self.start:self.end + 1]
        if self.max_rows is not None:
            result = result[:self.max_rows]
        return SimpleNamespace(data=copy.deepcopy(result))


class FakeSupabase:
    """Minimal Supabase client: table(name) -> FakeQuery"""

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.fail_on = None
        self.shuffle_ties = False
        self._next_id = 1

    def new_row(self, item):
        row = copy.deepcopy(item)
        row["id"] = self._next_id
        stamp = f"2025-01-01T00:00:00.{self._next_id:06d}+00:00"
        row.setdefault("created_at", stamp)
        row.setdefault("updated_at", stamp)
        self._next_id += 1
        return row

    def table(self, name):
        return FakeQuery(self, name)


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    def json(self):
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} {self.reason}")


class FakeSession:
    """Records requests and replays queued responses (or raises queued errors)"""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.posts = []
        self.gets = []

    def _next(self):
        response = self.responses.pop(0) if self.responses else FakeResponse(body={"success": True})
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url, data=None, timeout=None):
        self.posts.append({"url": url, "action": data["action"], "data": json.loads(data["data"]),
                           "timeout": timeout})
        return self._next()

    def get(self, url, params=None, timeout=None):
        self.gets.append({"url": url, "params": params, "timeout": timeout})
        return self._next()


USERS = {
    "admin@example.com": {
        "password": "admin-pass",
        "role": "admin",
        "display_name": "Admin",
    },
    "alice@example.com": {
        "password": "alice-pass",
        "role": "team",
        "employee_id": 1,
        "employee_name": "Alice",
        "color": "#4f46e5",
    },
    "bob@example.com": {
        "password": "bob-pass",
        "role": "team",
        "employee_id": 2,
        "employee_name": "Bob",
    },
    "sam@example.com": {
        "password": "sam-pass",
        "role": "sales",
    },
}

SHEETS_CONFIG = {
    "apps_script_url": "https://script.example.com/exec",
    "api_key": "test-key",
    "spreadsheet_id": "sheet-123",
    "sheet_name": "Onboarding-Tracker",
    "timeout": 5,
}


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def store(fake_supabase):
    return OnboardingStore(db=DatabaseClient(client=fake_supabase))


@pytest.fixture
def sheets_session():
    return FakeSession()


@pytest.fixture
def exporter(sheets_session):
    return SheetsExporter(config=dict(SHEETS_CONFIG), session=sheets_session)


@pytest.fixture
def directory():
    return UserDirectory(users=copy.deepcopy(USERS))


@pytest.fixture
def make_row():
    """Raw submission dict with sensible defaults"""
    def _make(**overrides):
        row = {
            "employee_id": 1,
            "employee_name": "Alice",
            "client_name": "Client",
            "account_number": "ACC-1",
            "date": "2025-01-10",
        }
        row.update(overrides)
        return row
    return _make
