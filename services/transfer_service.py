"""
Transfer approval/acceptance workflow.
Tracks the pending list, selection and per-item drafts, gates every
disposition behind local validation, and re-fetches after each write.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from backend.client import format_backend_datetime
from config.constants import (
    DEFAULT_TRANSFER_STATUS, DISPOSITION_KINDS, DISPOSITION_STATUS, MAX_ATTACHMENTS,
    MODE_LABELS, NOTIFICATION_MESSAGES, WORKFLOW_MODES,
)
from core.errors import AuthenticationRequired, TransportError, ValidationError, log_error
from core.models import (
    ActionResult, Attachment, CoordinatorState, PendingAction, TransferBatch,
    TransferFilter, TransferItem,
)
from services.attachment_service import compress_image, merge_attachments

logger = logging.getLogger("TransferPortal")

CHECKLIST_LABEL_FIELDS = ("name", "title", "label", "description", "item", "checklist_item")


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def checklist_label(entry, index: int) -> str:
    """Display text for one checklist entry (plain string or object)."""
    if entry is None:
        return ""
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        for field_name in CHECKLIST_LABEL_FIELDS:
            if entry.get(field_name):
                return str(entry[field_name])
        return f"Item {index + 1}"
    return str(entry)


class ApprovalWorkflowCoordinator:
    """
    Orchestrates disposition of pending transfer items.

    Collaborators are injected:
        api       -- TransferApiClient (or anything with the same methods)
        auth      -- provides get_token(), current_user(), is_authenticated()
                     and reauthenticate(username, password) -> (ok, message)
        notifier  -- success/error/info/warning(message) for user feedback

    All requests run one at a time on the caller's thread. The list shown to
    the operator is only ever the backend's last answer: successful writes are
    followed by a full reload, failed ones leave everything as it was.
    """

    def __init__(self, api, auth, notifier, mode: str = "approval",
                 transfer_filter: TransferFilter = None,
                 clock: Callable[[], datetime] = None,
                 refresh_channel=None):
        if mode not in WORKFLOW_MODES:
            raise ValueError(f"Unknown workflow mode: {mode}")

        self.api = api
        self.auth = auth
        self.notifier = notifier
        self.mode = mode
        self.transfer_filter = transfer_filter or TransferFilter()
        self.clock = clock or datetime.now

        self.batches: List[TransferBatch] = []
        self.loaded = False
        self.state = CoordinatorState.IDLE

        # dict keys keep insertion order, so this doubles as an ordered set
        self.selection: Dict[str, None] = {}
        self.remarks: Dict[str, str] = {}
        self.attachments: Dict[str, List[Attachment]] = {}
        self.checklists: Dict[str, List[str]] = {}

        self.pending_action: Optional[PendingAction] = None
        self.last_validation_error: Optional[ValidationError] = None
        self.login_required = False
        self.load_error_id: Optional[str] = None

        # UI disables triggers while either flag is set
        self.action_loading: Optional[Tuple[str, str]] = None
        self.bulk_loading: Optional[str] = None

        self._refresh_channel = None
        self._unsubscribe = None
        if refresh_channel is not None:
            self.attach_refresh_channel(refresh_channel)

    # ============================================
    # READ-ONLY VIEWS
    # ============================================
    @property
    def labels(self) -> dict:
        return MODE_LABELS[self.mode]

    @property
    def is_busy(self) -> bool:
        return self.action_loading is not None or self.bulk_loading is not None

    @property
    def selected_keys(self) -> List[str]:
        return list(self.selection)

    def flat_items(self) -> List[Tuple[TransferBatch, TransferItem]]:
        return [(batch, item) for batch in self.batches for item in batch.items]

    def find_item(self, key: str) -> Optional[Tuple[TransferBatch, TransferItem]]:
        for batch, item in self.flat_items():
            if item.key == key:
                return batch, item
        return None

    def has_attachments(self, key: str) -> bool:
        return len(self.attachments.get(key, [])) > 0

    @property
    def selected_missing_attachments(self) -> bool:
        if self.mode != "acceptance":
            return False
        return any(not self.has_attachments(key) for key in self.selection)

    # ============================================
    # LOADING
    # ============================================
    def load_batches(self, transfer_filter: TransferFilter = None) -> List[TransferBatch]:
        """
        Replace the list with the backend's current answer for the filter.

        Fail-closed: any failure leaves an empty list, never stale data.
        Without a token no request is sent; the filter is remembered and
        replayed by sign_in().
        """
        if transfer_filter is not None:
            self.transfer_filter = transfer_filter

        if not self.auth.is_authenticated():
            self.login_required = True
            self.notifier.info(NOTIFICATION_MESSAGES["sign_in_required"])
            return self.batches

        self.state = CoordinatorState.LOADING
        try:
            raw_batches = self._fetch(self.transfer_filter)
            batches = [TransferBatch.from_api(raw) for raw in raw_batches]
        except AuthenticationRequired as e:
            self.load_error_id = log_error(e, "load_batches", self._user_label())
            self.login_required = True
            self.batches = []
            self.notifier.error(NOTIFICATION_MESSAGES["sign_in_required"])
        except (TransportError, KeyError, TypeError, ValueError, AttributeError) as e:
            self.load_error_id = log_error(e, "load_batches", self._user_label())
            self.batches = []
            self.notifier.error(NOTIFICATION_MESSAGES["load_failed"])
        else:
            self.batches = batches
            self.load_error_id = None
            self._prune_drafts()

        self.loaded = True
        self.prune_selection()
        self.state = self._settled_state()
        logger.info(
            f"Loaded {len(self.batches)} transfer(s) / {len(self.flat_items())} item(s) "
            f"mode={self.mode} filter={self.transfer_filter.mode}"
        )
        return self.batches

    def _fetch(self, f: TransferFilter) -> List[dict]:
        if f.mode == "new_owner":
            if not f.transfer_id:
                raise ValueError("new_owner filter requires a transfer id")
            items = self.api.get_transfer_items(f.transfer_id, f.new_owner)
            # Items-only endpoint: wrap them in a synthetic parent transfer
            return [{"id": f.transfer_id, "items": items}]
        if f.mode == "department":
            return self.api.list_transfers(f.department, f.status or DEFAULT_TRANSFER_STATUS)
        if not f.transfer_id:
            return []
        return self.api.get_transfer(f.transfer_id)

    def _settled_state(self) -> CoordinatorState:
        if self.pending_action is not None:
            return CoordinatorState.AWAITING_CONFIRMATION
        return CoordinatorState.READY if self.flat_items() else CoordinatorState.EMPTY

    # ============================================
    # SELECTION & DRAFTS
    # ============================================
    def prune_selection(self, current_items: Iterable = None) -> None:
        """Drop selected keys whose item is not in the current list."""
        if current_items is None:
            present = {item.key for _, item in self.flat_items()}
        else:
            present = {getattr(i, "key", i) for i in current_items}
        stale = [key for key in self.selection if key not in present]
        for key in stale:
            del self.selection[key]
        if stale:
            logger.debug(f"Pruned stale selection keys: {stale}")

    def _prune_drafts(self) -> None:
        present = {item.key for _, item in self.flat_items()}
        for drafts in (self.remarks, self.attachments):
            for key in [k for k in drafts if k not in present]:
                del drafts[key]

    def toggle_selected(self, key: str, checked: bool) -> None:
        if checked:
            if self.find_item(key) is not None:
                self.selection[key] = None
        else:
            self.selection.pop(key, None)

    def select_all(self) -> None:
        for _, item in self.flat_items():
            self.selection[item.key] = None

    def clear_selection(self) -> None:
        self.selection.clear()

    def set_remark(self, key: str, text: str) -> None:
        self.remarks[key] = text or ""

    def add_attachments(self, key: str, incoming: Iterable[Attachment]) -> List[Attachment]:
        """Compress and append files; anything beyond the cap is dropped with a notice."""
        prepared = [compress_image(a) for a in incoming]
        combined, dropped = merge_attachments(self.attachments.get(key, []), prepared, MAX_ATTACHMENTS)
        self.attachments[key] = combined
        if dropped:
            self.notifier.info(NOTIFICATION_MESSAGES["attachment_limit"])
        return combined

    def remove_attachment(self, key: str, index: int) -> None:
        current = self.attachments.get(key, [])
        if 0 <= index < len(current):
            self.attachments[key] = current[:index] + current[index + 1:]

    # ============================================
    # VALIDATION & CONFIRMATION
    # ============================================
    def validate_for_disposition(self, keys: Iterable[str], kind: str) -> None:
        """
        Raise ValidationError unless every key may be submitted.

        Rejections need a non-blank remark. Acceptance needs at least one
        attachment. Approval mode has no attachment rule. One failing item
        blocks the whole set.
        """
        if kind not in DISPOSITION_KINDS:
            raise ValueError(f"Unknown disposition: {kind}")
        keys = list(keys)
        if not keys:
            raise ValidationError("no_selection", NOTIFICATION_MESSAGES["no_selection"], 0)

        if kind == "reject":
            rule = "remarks_required"
            missing = [k for k in keys if not self.remarks.get(k, "").strip()]
        elif self.mode == "acceptance":
            rule = "attachments_required"
            missing = [k for k in keys if not self.has_attachments(k)]
        else:
            return

        if missing:
            message = NOTIFICATION_MESSAGES[rule]
            if len(keys) > 1:
                message = f"{message} ({_plural(len(missing), 'item')} of {len(keys)} not ready)"
            raise ValidationError(rule, message, len(missing))

    def request_confirmation(self, kind: str, scope: str,
                             target_key: str = None) -> Optional[PendingAction]:
        """Validate, then hold the action until the operator confirms it."""
        if scope not in ("single", "bulk"):
            raise ValueError(f"Unknown scope: {scope}")
        if self.is_busy:
            self.notifier.warning(NOTIFICATION_MESSAGES["busy"])
            return None

        if scope == "single":
            if target_key is None or self.find_item(target_key) is None:
                logger.warning(f"Confirmation requested for unknown item {target_key}")
                return None
            keys = [target_key]
        else:
            keys = self.selected_keys

        try:
            self.validate_for_disposition(keys, kind)
        except ValidationError as e:
            self.last_validation_error = e
            self.notifier.error(e.message)
            return None

        self.last_validation_error = None
        self.pending_action = PendingAction(
            kind=kind,
            scope=scope,
            target_key=target_key if scope == "single" else None,
            count=len(keys),
        )
        self.state = CoordinatorState.AWAITING_CONFIRMATION
        return self.pending_action

    def cancel_confirmation(self) -> None:
        self.pending_action = None
        self.state = self._settled_state()

    def confirm_pending_action(self) -> ActionResult:
        action = self.pending_action
        if action is None:
            return ActionResult(False, "Nothing to confirm")
        self.pending_action = None
        if action.scope == "single":
            return self.dispose_single(action.target_key, action.kind)
        return self.dispose_bulk(action.kind)

    # ============================================
    # DISPOSITION
    # ============================================
    def dispose_single(self, key: str, kind: str) -> ActionResult:
        """Submit one item, then reload. Failures leave the list untouched."""
        if self.is_busy:
            self.notifier.warning(NOTIFICATION_MESSAGES["busy"])
            return ActionResult(False, NOTIFICATION_MESSAGES["busy"])

        entry = self.find_item(key)
        if entry is None:
            logger.warning(f"Transfer item {key} is no longer pending")
            self.notifier.error(NOTIFICATION_MESSAGES["item_gone"])
            return ActionResult(False, NOTIFICATION_MESSAGES["item_gone"], {"key": key})

        blocked = self._precheck([key], kind)
        if blocked is not None:
            return blocked

        _batch, item = entry
        self.action_loading = (key, kind)
        self.state = CoordinatorState.SUBMITTING
        try:
            if self.mode == "acceptance":
                self._submit_acceptance(key, item, kind)
            else:
                self._submit_approval([item.transfer_id], kind)
        except TransportError as e:
            return self._fail(e, f"Failed to {kind}", "dispose_single", {"key": key})
        finally:
            self.action_loading = None

        self.selection.pop(key, None)
        self.load_batches()
        message = f"Transfer {self._past_tense(kind)}"
        self.notifier.success(message)
        self._publish_refresh()
        return ActionResult(True, message, {"key": key, "kind": kind})

    def dispose_bulk(self, kind: str) -> ActionResult:
        """
        Submit every selected item.

        Acceptance: one request per item, strictly in selection order, and the
        first failure stops the run. Approval: a single request carrying the
        distinct transfer ids of the selection.
        """
        if self.is_busy:
            self.notifier.warning(NOTIFICATION_MESSAGES["busy"])
            return ActionResult(False, NOTIFICATION_MESSAGES["busy"])

        keys = self.selected_keys
        if not keys:
            self.notifier.error(NOTIFICATION_MESSAGES["no_selection"])
            return ActionResult(False, NOTIFICATION_MESSAGES["no_selection"])

        blocked = self._precheck(keys, kind)
        if blocked is not None:
            return blocked

        entries = [(key, self.find_item(key)) for key in keys]
        processed = 0
        self.bulk_loading = kind
        self.state = CoordinatorState.SUBMITTING
        try:
            if self.mode == "acceptance":
                for key, (_batch, item) in entries:
                    self._submit_acceptance(key, item, kind)
                    processed += 1
                count_text = _plural(processed, "item")
            else:
                transfer_ids = list(dict.fromkeys(item.transfer_id for _, (_b, item) in entries))
                self._submit_approval(transfer_ids, kind)
                processed = len(transfer_ids)
                count_text = _plural(processed, "transfer")
        except TransportError as e:
            return self._fail(e, f"Failed to {kind} selected items", "dispose_bulk",
                              {"processed": processed, "requested": len(keys)})
        finally:
            self.bulk_loading = None

        self.clear_selection()
        self.load_batches()
        message = f"Selected items {self._past_tense(kind)} ({count_text})"
        self.notifier.success(message)
        self._publish_refresh()
        return ActionResult(True, message, {"processed": processed, "kind": kind})

    def _precheck(self, keys: List[str], kind: str) -> Optional[ActionResult]:
        try:
            self.validate_for_disposition(keys, kind)
        except ValidationError as e:
            self.last_validation_error = e
            self.notifier.error(e.message)
            return ActionResult(False, e.message, {"rule": e.rule, "failing": e.failing_count})
        self.last_validation_error = None

        if not self.auth.is_authenticated():
            self.login_required = True
            self.notifier.info(NOTIFICATION_MESSAGES["sign_in_required"])
            return ActionResult(False, NOTIFICATION_MESSAGES["sign_in_required"])

        if not self._actor_id():
            self.notifier.error(NOTIFICATION_MESSAGES["missing_identity"])
            return ActionResult(False, NOTIFICATION_MESSAGES["missing_identity"])
        return None

    def _fail(self, error: TransportError, message: str, context: str, data: dict) -> ActionResult:
        error_id = log_error(error, f"{context}:{self.mode}", self._user_label())
        if isinstance(error, AuthenticationRequired):
            self.login_required = True
            message = NOTIFICATION_MESSAGES["sign_in_required"]
        self.notifier.error(message)
        self.state = self._settled_state()
        return ActionResult(False, message, dict(data, error_id=error_id))

    def _submit_acceptance(self, key: str, item: TransferItem, kind: str) -> None:
        self.api.submit_acceptance(
            transfer_id=item.transfer_id,
            item_ids=[item.item_id],
            status=DISPOSITION_STATUS["acceptance"][kind],
            acceptance_by=self._acceptor_id(),
            acceptance_date=format_backend_datetime(self.clock()),
            remarks=self.remarks.get(key, ""),
            attachments=self.attachments.get(key, [])[:MAX_ATTACHMENTS],
        )

    def _submit_approval(self, transfer_ids: List[int], kind: str) -> None:
        self.api.submit_approval(
            status=DISPOSITION_STATUS["approval"][kind],
            approved_by=self._approver_id(),
            approved_date=format_backend_datetime(self.clock()),
            transfer_ids=transfer_ids,
        )

    def _past_tense(self, kind: str) -> str:
        return DISPOSITION_STATUS[self.mode][kind]

    # ============================================
    # IDENTITY
    # ============================================
    def _approver_id(self) -> str:
        user = self.auth.current_user() or {}
        return self.transfer_filter.authorize or user.get("ramco_id") or ""

    def _acceptor_id(self) -> str:
        user = self.auth.current_user() or {}
        return self.transfer_filter.new_owner or user.get("ramco_id") or user.get("username") or ""

    def _actor_id(self) -> str:
        return self._acceptor_id() if self.mode == "acceptance" else self._approver_id()

    def _user_label(self) -> str:
        user = self.auth.current_user() or {}
        return user.get("username") or user.get("ramco_id") or "link-token"

    def sign_in(self, username: str, password: str) -> ActionResult:
        """Re-authenticate, then resume the fetch that was waiting for it."""
        ok, message = self.auth.reauthenticate(username, password)
        if not ok:
            return ActionResult(False, message)
        self.login_required = False
        self.notifier.success(NOTIFICATION_MESSAGES["signed_in"])
        self.load_batches()
        return ActionResult(True, message)

    # ============================================
    # CHECKLISTS
    # ============================================
    def load_checklist(self, type_id) -> List[str]:
        """Acceptance checklist for an asset type, fetched once per type."""
        if not type_id:
            return []
        cache_key = str(type_id)
        if cache_key in self.checklists:
            return self.checklists[cache_key]

        try:
            raw = self.api.get_transfer_checklist(type_id)
        except TransportError as e:
            log_error(e, "load_checklist", self._user_label())
            self.notifier.error(NOTIFICATION_MESSAGES["checklist_failed"])
            self.checklists[cache_key] = []
            return []

        labels = [checklist_label(entry, idx) for idx, entry in enumerate(raw)]
        self.checklists[cache_key] = [label for label in labels if label.strip()]
        return self.checklists[cache_key]

    # ============================================
    # REFRESH SIGNAL
    # ============================================
    def attach_refresh_channel(self, channel) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._refresh_channel = channel
        self._unsubscribe = channel.subscribe(self._on_refresh_signal)

    def detach_refresh_channel(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self._refresh_channel = None

    def poll_refresh(self) -> bool:
        """Reload if another session signalled a change. Returns True if it did."""
        if self._refresh_channel is None:
            return False
        return self._refresh_channel.poll()

    def _on_refresh_signal(self) -> None:
        if self.is_busy:
            return
        logger.info("Refresh signal received, reloading transfers")
        self.load_batches()

    def _publish_refresh(self) -> None:
        if self._refresh_channel is not None:
            self._refresh_channel.publish()
