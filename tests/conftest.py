"""Pytest configuration and shared fixtures."""

import copy
from datetime import datetime

import pytest

from core.errors import TransportError
from core.models import Attachment, TransferFilter
from services.transfer_service import ApprovalWorkflowCoordinator

FIXED_NOW = datetime(2026, 3, 14, 9, 26, 53)


def make_item(item_id, transfer_id, type_id=5, **extra):
    item = {
        "id": item_id,
        "transfer_id": transfer_id,
        "effective_date": "2026-03-10",
        "asset": {
            "register_number": f"REG-{item_id:04d}",
            "type": {"id": type_id, "name": "Laptop"},
            "brand": {"name": "Dell"},
            "model": {"name": "Latitude 5440"},
        },
        "current_owner": {"full_name": "Bala Kumar", "ramco_id": "000200"},
        "new_owner": {"full_name": "Chen Wei", "ramco_id": "000300"},
        "current_department": {"code": "IT"},
        "new_department": {"code": "FIN"},
    }
    item.update(extra)
    return item


def make_batch(transfer_id, item_ids, **extra):
    batch = {
        "id": transfer_id,
        "transfer_date": "2026-03-01T08:00:00.000Z",
        "transfer_by_user": {"full_name": "Alice Tan", "ramco_id": "000111"},
        "transfer_status": "submitted",
        "total_items": len(item_ids),
        "items": [make_item(i, transfer_id) for i in item_ids],
    }
    batch.update(extra)
    return batch


class FakeApi:
    """
    In-memory stand-in for TransferApiClient.

    Records every call in order. Successful submissions remove the
    dispositioned items/transfers, like the real backend does.
    """

    def __init__(self, batches=None):
        self.batches = batches if batches is not None else []
        self.calls = []
        self.errors = {}
        self.fail_acceptance_at = None
        self.checklists = {}

    def _record(self, name, **kwargs):
        self.calls.append((name, kwargs))
        error = self.errors.get(name)
        if error is not None:
            raise error

    def calls_to(self, name):
        return [kwargs for called, kwargs in self.calls if called == name]

    @property
    def call_names(self):
        return [name for name, _ in self.calls]

    # ---------- reads ----------
    def list_transfers(self, department, status="pending"):
        self._record("list_transfers", department=department, status=status)
        return copy.deepcopy(self.batches)

    def get_transfer(self, transfer_id):
        self._record("get_transfer", transfer_id=transfer_id)
        return [copy.deepcopy(b) for b in self.batches if str(b["id"]) == str(transfer_id)]

    def get_transfer_items(self, transfer_id, new_owner):
        self._record("get_transfer_items", transfer_id=transfer_id, new_owner=new_owner)
        items = []
        for batch in self.batches:
            if str(batch["id"]) == str(transfer_id):
                items.extend(copy.deepcopy(batch["items"]))
        return items

    def get_transfer_checklist(self, type_id):
        self._record("get_transfer_checklist", type_id=type_id)
        return self.checklists.get(type_id, [])

    # ---------- writes ----------
    def submit_approval(self, status, approved_by, approved_date, transfer_ids):
        self._record("submit_approval", status=status, approved_by=approved_by,
                     approved_date=approved_date, transfer_ids=list(transfer_ids))
        self.batches = [b for b in self.batches if b["id"] not in transfer_ids]

    def submit_acceptance(self, transfer_id, item_ids, status, acceptance_by, acceptance_date,
                          remarks="", attachments=None, checklist_items=""):
        attempt = len(self.calls_to("submit_acceptance")) + 1
        self._record("submit_acceptance", transfer_id=transfer_id, item_ids=list(item_ids),
                     status=status, acceptance_by=acceptance_by, acceptance_date=acceptance_date,
                     remarks=remarks, attachments=list(attachments or []))
        if self.fail_acceptance_at == attempt:
            raise TransportError("PUT acceptance returned HTTP 500", status_code=500)
        for batch in self.batches:
            if batch["id"] == transfer_id:
                batch["items"] = [it for it in batch["items"] if it["id"] not in item_ids]
        self.batches = [b for b in self.batches if b["items"]]


class FakeAuth:
    def __init__(self, token="token-abc", user=None, password="secret"):
        self.token = token
        self.user = user if user is not None else {"ramco_id": "000123", "username": "jdoe"}
        self.password = password
        self.reauth_calls = []

    def get_token(self):
        return self.token

    def current_user(self):
        return self.user

    def is_authenticated(self):
        return bool(self.token)

    def reauthenticate(self, username, password):
        self.reauth_calls.append(username)
        if password != self.password:
            return False, "Invalid username or password"
        self.token = "token-renewed"
        return True, "Logged in"


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def success(self, message):
        self.messages.append(("success", message))

    def error(self, message):
        self.messages.append(("error", message))

    def info(self, message):
        self.messages.append(("info", message))

    def warning(self, message):
        self.messages.append(("warning", message))

    def levels(self):
        return [level for level, _ in self.messages]


def photo(name="photo.png"):
    # Non-decodable image bytes pass through compression unchanged
    return Attachment(filename=name, content=b"not-really-an-image", content_type="image/png")


@pytest.fixture
def api():
    return FakeApi([make_batch(10, [1, 2]), make_batch(11, [3])])


@pytest.fixture
def auth():
    return FakeAuth()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def make_coordinator(api, auth, notifier, clock):
    def factory(mode="acceptance", transfer_filter=None, **kwargs):
        return ApprovalWorkflowCoordinator(
            api=api,
            auth=auth,
            notifier=notifier,
            mode=mode,
            transfer_filter=transfer_filter or TransferFilter(department="IT", status="pending"),
            clock=clock,
            **kwargs
        )
    return factory


@pytest.fixture
def loaded(make_coordinator, api, notifier):
    """Acceptance coordinator with the default list loaded and call logs reset."""
    coordinator = make_coordinator()
    coordinator.load_batches()
    api.calls.clear()
    notifier.messages.clear()
    return coordinator
