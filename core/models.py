"""
Domain records for the transfer approval workflow.
Built from backend payloads; nothing here is persisted locally.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from config.constants import DISPLAY_DATE_FORMAT


class CoordinatorState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    SUBMITTING = "submitting"


class ActionResult:
    """Result of an action validation or execution."""
    def __init__(self, success: bool, message: str, data: dict = None):
        self.success = success
        self.message = message
        self.data = data or {}

    def __bool__(self):
        return self.success

    def __repr__(self):
        return f"ActionResult(success={self.success!r}, message={self.message!r})"


def item_key(transfer_id, item_id) -> str:
    """Selection key for one transfer line."""
    return f"{transfer_id}:{item_id}"


def parse_date(value) -> Optional[date]:
    """Parse a backend date/datetime string; None when missing or malformed."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def fmt_date(value) -> str:
    """Format a backend date for display (dd/mm/yyyy), '-' when unusable."""
    parsed = parse_date(value)
    if parsed is None:
        return "-"
    return parsed.strftime(DISPLAY_DATE_FORMAT)


def _name(ref) -> Optional[str]:
    if not ref:
        return None
    if isinstance(ref, dict):
        return ref.get("full_name") or ref.get("name") or ref.get("code") or ref.get("ramco_id")
    return str(ref)


def resolve_person(ref) -> str:
    """Display name for an owner/requester reference (object, list or plain id)."""
    if isinstance(ref, list):
        return ", ".join(n for n in (_name(r) for r in ref) if n)
    return _name(ref) or ""


@dataclass
class AssetRef:
    register_number: str = ""
    type_id: Optional[int] = None
    type_name: str = ""
    category: str = ""
    brand: str = ""
    model: str = ""

    @classmethod
    def from_api(cls, raw: Optional[dict]) -> "AssetRef":
        if isinstance(raw, str):
            return cls(register_number=raw)
        raw = raw if isinstance(raw, dict) else {}
        type_ref = raw.get("type") or raw.get("types") or {}
        return cls(
            register_number=str(raw.get("register_number") or ""),
            type_id=type_ref.get("id") if isinstance(type_ref, dict) else None,
            type_name=_name(type_ref) or "",
            category=_name(raw.get("category") or raw.get("categories")) or "",
            brand=_name(raw.get("brand") or raw.get("brands")) or "",
            model=_name(raw.get("model")) or "",
        )


@dataclass
class TransferItem:
    """One line of a transfer request awaiting disposition."""

    transfer_id: int
    item_id: int
    effective_date: Optional[date] = None
    asset: AssetRef = field(default_factory=AssetRef)
    current_owner: Optional[dict] = None
    new_owner: Optional[dict] = None
    current_costcenter: Optional[dict] = None
    new_costcenter: Optional[dict] = None
    current_department: Optional[dict] = None
    new_department: Optional[dict] = None
    current_location: Optional[dict] = None
    new_location: Optional[dict] = None
    reason: str = ""
    acceptance_date: Optional[str] = None
    acceptance_by: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def key(self) -> str:
        return item_key(self.transfer_id, self.item_id)

    @classmethod
    def from_api(cls, raw: dict, transfer_id=None) -> "TransferItem":
        owning_transfer = raw.get("transfer_id") or transfer_id
        return cls(
            transfer_id=int(owning_transfer),
            item_id=int(raw["id"]),
            effective_date=parse_date(raw.get("effective_date")),
            asset=AssetRef.from_api(raw.get("asset")),
            current_owner=raw.get("current_owner"),
            new_owner=raw.get("new_owner"),
            current_costcenter=raw.get("current_costcenter"),
            new_costcenter=raw.get("new_costcenter"),
            current_department=raw.get("current_department"),
            new_department=raw.get("new_department"),
            current_location=raw.get("current_location"),
            new_location=raw.get("new_location"),
            reason=raw.get("reason") or "",
            acceptance_date=raw.get("acceptance_date"),
            acceptance_by=raw.get("acceptance_by"),
            raw=raw,
        )


@dataclass
class TransferBatch:
    """Parent transfer request; read-only grouping for its items."""

    id: int
    transfer_date: Optional[date] = None
    requested_by: str = "-"
    transfer_status: str = ""
    costcenter: str = ""
    department: str = ""
    total_items: int = 0
    items: List[TransferItem] = field(default_factory=list)

    @classmethod
    def from_api(cls, raw: dict) -> "TransferBatch":
        batch_id = int(raw["id"])
        items = [TransferItem.from_api(it, batch_id) for it in raw.get("items") or []]
        requester = (
            _name(raw.get("transfer_by_user"))
            or _name(raw.get("transfer_by"))
            or "-"
        )
        return cls(
            id=batch_id,
            transfer_date=parse_date(raw.get("transfer_date")),
            requested_by=requester,
            transfer_status=raw.get("transfer_status") or "",
            costcenter=_name(raw.get("costcenter")) or "",
            department=_name(raw.get("department")) or "",
            total_items=raw.get("total_items") or len(items),
            items=items,
        )


@dataclass
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


@dataclass
class PendingAction:
    """A disposition awaiting the operator's confirmation."""

    kind: str  # approve | reject
    scope: str  # single | bulk
    target_key: Optional[str] = None
    count: int = 1
    requested_at: str = field(default_factory=lambda: datetime.now().isoformat())


@dataclass
class TransferFilter:
    """Which transfers to load. Exactly one identifying parameter drives the read."""

    transfer_id: Optional[str] = None
    new_owner: str = ""
    department: str = ""
    status: str = ""
    authorize: str = ""  # approver id override from the portal link

    @property
    def mode(self) -> str:
        if self.new_owner:
            return "new_owner"
        if self.department:
            return "department"
        return "transfer"
