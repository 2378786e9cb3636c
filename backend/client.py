"""
REST client for the asset transfer backend.
Thin wrapper over requests.Session; every failure surfaces as TransportError.
"""
import logging
from datetime import datetime
from typing import Any, Callable, List, Optional, Sequence
from urllib.parse import quote

import requests

from config.constants import ATTACHMENT_FIELDS, BACKEND_DATETIME_FORMAT, ENDPOINTS, MAX_ATTACHMENTS
from core.errors import AuthenticationRequired, TransportError

logger = logging.getLogger("TransferPortal")


# ============================================
# RESPONSE NORMALIZATION
# ============================================
def unwrap(payload: Any) -> List[Any]:
    """
    Normalize any backend response shape to a list.

    The backend answers with a bare list, a bare object, or either of those
    wrapped in {"data": ...}. Empty or missing payloads become [].
    """
    if payload is None:
        return []
    if isinstance(payload, dict) and "data" in payload:
        payload = payload["data"]
        if payload is None:
            return []
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        return [payload] if payload else []
    return []


def normalize_batch(raw: dict) -> dict:
    """Copy of a transfer record whose 'items' is always a list of dicts."""
    batch = dict(raw)
    items = batch.get("items")
    batch["items"] = [it for it in items if isinstance(it, dict)] if isinstance(items, list) else []
    return batch


def format_backend_datetime(dt: datetime) -> str:
    """Local wall-clock timestamp in the format the backend stores."""
    return dt.strftime(BACKEND_DATETIME_FORMAT)


# ============================================
# CLIENT
# ============================================
class TransferApiClient:
    """HTTP access to transfer, checklist, asset and auth endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        session: requests.Session = None,
        token_provider: Callable[[], Optional[str]] = None,
        verify: bool = True,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.token_provider = token_provider
        self.verify = verify

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        token = self.token_provider() if self.token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                headers=self._headers(),
                timeout=self.timeout,
                verify=self.verify,
                **kwargs
            )
        except requests.Timeout as e:
            raise TransportError(f"{method} {path} timed out: {e}") from e
        except requests.RequestException as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        if response.status_code == 401:
            raise AuthenticationRequired(f"{method} {path} unauthorized", status_code=401)
        if response.status_code >= 400:
            raise TransportError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"{method} {path} returned invalid JSON") from e

    # ---------- transfers (read) ----------
    def list_transfers(self, department: str, status: str = "pending") -> List[dict]:
        payload = self._request(
            "GET", ENDPOINTS["transfers"], params={"dept": department, "status": status}
        )
        return [normalize_batch(t) for t in unwrap(payload) if isinstance(t, dict)]

    def get_transfer(self, transfer_id) -> List[dict]:
        path = ENDPOINTS["transfer"].format(transfer_id=quote(str(transfer_id), safe=""))
        return [normalize_batch(t) for t in unwrap(self._request("GET", path)) if isinstance(t, dict)]

    def get_transfer_items(self, transfer_id, new_owner: str) -> List[dict]:
        path = ENDPOINTS["transfer_items"].format(transfer_id=quote(str(transfer_id), safe=""))
        payload = self._request("GET", path, params={"new_owner": new_owner})
        return [it for it in unwrap(payload) if isinstance(it, dict)]

    def get_transfer_checklist(self, type_id) -> List[Any]:
        return unwrap(self._request("GET", ENDPOINTS["checklist"], params={"type": type_id}))

    # ---------- assets (read, used by exports) ----------
    def get_assets(self, manager=None) -> List[dict]:
        params = {"manager": manager} if manager is not None else None
        return unwrap(self._request("GET", ENDPOINTS["assets"], params=params))

    def get_asset_managers(self) -> List[dict]:
        return unwrap(self._request("GET", ENDPOINTS["managers"]))

    def get_asset_types(self) -> List[dict]:
        return [t for t in unwrap(self._request("GET", ENDPOINTS["types"])) if isinstance(t, dict)]

    # ---------- transfers (write) ----------
    def submit_approval(self, status: str, approved_by: str, approved_date: str,
                        transfer_ids: Sequence[int]) -> Any:
        """Approve/reject whole transfers."""
        payload = {
            "status": status,
            "approved_by": approved_by,
            "approved_date": approved_date,
            "transfer_id": list(transfer_ids),
        }
        logger.info(f"Submitting approval status={status} transfers={payload['transfer_id']}")
        return self._request("PUT", ENDPOINTS["approval"], json=payload)

    def submit_acceptance(self, transfer_id, item_ids: Sequence[int], status: str,
                          acceptance_by: str, acceptance_date: str, remarks: str = "",
                          attachments: Sequence = None, checklist_items: str = "") -> Any:
        """
        Accept/reject transfer items.

        Sends multipart form data when attachments are present (at most
        MAX_ATTACHMENTS, extra files are dropped), otherwise a JSON body.
        """
        path = ENDPOINTS["acceptance"].format(transfer_id=quote(str(transfer_id), safe=""))
        files_to_send = list(attachments or [])[:MAX_ATTACHMENTS]
        logger.info(
            f"Submitting acceptance status={status} transfer={transfer_id} "
            f"items={list(item_ids)} attachments={len(files_to_send)}"
        )

        if files_to_send:
            form = [
                ("acceptance_by", acceptance_by),
                ("acceptance_date", acceptance_date),
                ("acceptance_remarks", remarks or ""),
                ("checklist-items", checklist_items),
            ]
            form.extend(("item_ids[]", str(i)) for i in item_ids)
            form.append(("status", status))
            files = []
            for field_name, attachment in zip(ATTACHMENT_FIELDS, files_to_send):
                files.append((
                    field_name,
                    (attachment.filename or field_name, attachment.content, attachment.content_type),
                ))
            return self._request("PUT", path, data=form, files=files)

        payload = {
            "acceptance_by": acceptance_by,
            "acceptance_date": acceptance_date,
            "acceptance_remarks": remarks or "",
            "checklist-items": checklist_items,
            "status": status,
            "item_ids": [int(i) for i in item_ids],
        }
        return self._request("PUT", path, json=payload)

    # ---------- auth ----------
    def login(self, username: str, password: str) -> Any:
        return self._request("POST", ENDPOINTS["login"], json={"username": username, "password": password})

    def refresh_token(self) -> Any:
        return self._request("POST", ENDPOINTS["refresh_token"])
