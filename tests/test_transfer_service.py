"""Tests for the transfer approval/acceptance workflow coordinator."""

import pytest

from core.errors import AuthenticationRequired, TransportError, ValidationError
from core.events import RefreshChannel
from core.models import CoordinatorState, PendingAction, TransferFilter
from services.transfer_service import ApprovalWorkflowCoordinator, checklist_label
from tests.conftest import FakeApi, make_batch, photo


def keys_of(coordinator):
    return [item.key for _, item in coordinator.flat_items()]


# ═══════════════════════════════════════════════════════════════════════
# Loading
# ═══════════════════════════════════════════════════════════════════════


class TestLoadBatches:
    """Loading replaces the list wholesale and fails closed."""

    def test_department_filter_loads_all_batches(self, make_coordinator, api):
        coordinator = make_coordinator()
        batches = coordinator.load_batches()

        assert [b.id for b in batches] == [10, 11]
        assert keys_of(coordinator) == ["10:1", "10:2", "11:3"]
        assert api.calls == [("list_transfers", {"department": "IT", "status": "pending"})]
        assert coordinator.state == CoordinatorState.READY

    def test_requester_and_dates_are_resolved(self, make_coordinator):
        coordinator = make_coordinator()
        batch = coordinator.load_batches()[0]

        assert batch.requested_by == "Alice Tan"
        assert batch.transfer_date.isoformat() == "2026-03-01"
        assert batch.items[0].asset.register_number == "REG-0001"
        assert batch.items[0].asset.type_id == 5

    def test_default_status_is_pending(self, make_coordinator, api):
        coordinator = make_coordinator(transfer_filter=TransferFilter(department="IT"))
        coordinator.load_batches()
        assert api.calls_to("list_transfers") == [{"department": "IT", "status": "pending"}]

    def test_missing_items_become_empty_list(self, make_coordinator, api):
        api.batches = [{"id": 20, "transfer_date": None}]
        coordinator = make_coordinator()
        batches = coordinator.load_batches()

        assert batches[0].items == []
        assert batches[0].total_items == 0
        assert coordinator.state == CoordinatorState.EMPTY

    def test_single_transfer_filter(self, make_coordinator, api):
        coordinator = make_coordinator(transfer_filter=TransferFilter(transfer_id="11"))
        coordinator.load_batches()

        assert api.call_names == ["get_transfer"]
        assert keys_of(coordinator) == ["11:3"]

    def test_new_owner_filter_wraps_items_in_parent_transfer(self, make_coordinator, api):
        f = TransferFilter(transfer_id="10", new_owner="000300")
        coordinator = make_coordinator(transfer_filter=f)
        batches = coordinator.load_batches()

        assert api.calls == [("get_transfer_items", {"transfer_id": "10", "new_owner": "000300"})]
        assert len(batches) == 1
        assert batches[0].id == 10
        assert keys_of(coordinator) == ["10:1", "10:2"]

    def test_new_owner_filter_without_transfer_fails_closed(self, make_coordinator, api, notifier):
        coordinator = make_coordinator(transfer_filter=TransferFilter(new_owner="000300"))
        assert coordinator.load_batches() == []
        assert api.calls == []
        assert notifier.messages == [("error", "Failed to load transfer details")]

    def test_fetch_failure_empties_previous_list(self, loaded, api, notifier):
        assert len(loaded.flat_items()) == 3
        api.errors["list_transfers"] = TransportError("GET /api/assets/transfers timed out")

        assert loaded.load_batches() == []
        assert loaded.flat_items() == []
        assert loaded.state == CoordinatorState.EMPTY
        assert loaded.load_error_id is not None
        assert notifier.messages == [("error", "Failed to load transfer details")]

    def test_malformed_record_fails_closed(self, make_coordinator, api, notifier):
        api.batches = [{"items": []}]
        coordinator = make_coordinator()

        assert coordinator.load_batches() == []
        assert notifier.messages == [("error", "Failed to load transfer details")]

    def test_non_dict_item_fails_closed(self, make_coordinator, api, notifier):
        batch = make_batch(10, [1])
        batch["items"].append("garbage")
        api.batches = [batch]
        coordinator = make_coordinator()

        assert coordinator.load_batches() == []
        assert coordinator.load_error_id is not None
        assert notifier.messages == [("error", "Failed to load transfer details")]

    def test_asset_given_as_register_number(self, make_coordinator, api, notifier):
        batch = make_batch(10, [1])
        batch["items"][0]["asset"] = "REG-0001"
        api.batches = [batch]
        coordinator = make_coordinator()

        coordinator.load_batches()

        _batch, item = coordinator.flat_items()[0]
        assert item.asset.register_number == "REG-0001"
        assert notifier.messages == []

    def test_successful_reload_clears_error_reference(self, loaded, api):
        api.errors["list_transfers"] = TransportError("boom")
        loaded.load_batches()
        del api.errors["list_transfers"]
        loaded.load_batches()

        assert loaded.load_error_id is None
        assert len(loaded.flat_items()) == 3

    def test_unknown_mode_rejected(self, api, auth, notifier):
        with pytest.raises(ValueError):
            ApprovalWorkflowCoordinator(api, auth, notifier, mode="review")


# ═══════════════════════════════════════════════════════════════════════
# Selection
# ═══════════════════════════════════════════════════════════════════════


class TestSelection:
    """Selection keeps insertion order and never holds stale keys."""

    def test_reload_prunes_removed_items(self, loaded, api):
        loaded.toggle_selected("10:1", True)
        loaded.toggle_selected("10:2", True)
        api.batches = [make_batch(10, [1])]

        loaded.load_batches()

        assert loaded.selected_keys == ["10:1"]

    def test_prune_with_explicit_items(self, loaded):
        loaded.select_all()
        loaded.prune_selection(["11:3", "10:1"])
        assert loaded.selected_keys == ["10:1", "11:3"]

    def test_prune_is_idempotent(self, loaded):
        loaded.select_all()
        loaded.prune_selection(["10:2"])
        loaded.prune_selection(["10:2"])
        assert loaded.selected_keys == ["10:2"]

    def test_failed_reload_clears_selection(self, loaded, api):
        loaded.select_all()
        api.errors["list_transfers"] = TransportError("boom")
        loaded.load_batches()
        assert loaded.selected_keys == []

    def test_unknown_key_is_not_selected(self, loaded):
        loaded.toggle_selected("99:1", True)
        assert loaded.selected_keys == []

    def test_toggle_off_and_order(self, loaded):
        loaded.toggle_selected("11:3", True)
        loaded.toggle_selected("10:1", True)
        loaded.toggle_selected("10:2", True)
        loaded.toggle_selected("10:1", False)
        assert loaded.selected_keys == ["11:3", "10:2"]

    def test_clear_selection(self, loaded):
        loaded.select_all()
        loaded.clear_selection()
        assert loaded.selected_keys == []

    def test_reload_drops_drafts_of_removed_items(self, loaded, api):
        loaded.set_remark("10:2", "wrong unit")
        loaded.add_attachments("10:2", [photo()])
        api.batches = [make_batch(10, [1])]

        loaded.load_batches()

        assert "10:2" not in loaded.remarks
        assert "10:2" not in loaded.attachments

    def test_failed_reload_keeps_drafts(self, loaded, api):
        loaded.set_remark("10:2", "wrong unit")
        api.errors["list_transfers"] = TransportError("boom")
        loaded.load_batches()
        assert loaded.remarks["10:2"] == "wrong unit"


# ═══════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════


class TestValidation:
    """Local rules are checked before any request is issued."""

    @pytest.mark.parametrize("remark", ["", "   ", "\n\t"])
    def test_reject_needs_remark(self, loaded, api, notifier, remark):
        loaded.set_remark("10:1", remark)

        assert loaded.request_confirmation("reject", "single", "10:1") is None
        assert loaded.pending_action is None
        assert loaded.last_validation_error.rule == "remarks_required"
        assert api.calls == []
        assert notifier.messages == [("error", "Remarks are required when rejecting.")]

    def test_direct_reject_without_remark_sends_nothing(self, loaded, api):
        result = loaded.dispose_single("10:1", "reject")
        assert not result
        assert result.data["rule"] == "remarks_required"
        assert api.calls == []

    def test_reject_needs_remark_in_approval_mode(self, make_coordinator, api):
        coordinator = make_coordinator(mode="approval")
        coordinator.load_batches()
        api.calls.clear()

        with pytest.raises(ValidationError) as exc:
            coordinator.validate_for_disposition(["10:1"], "reject")
        assert exc.value.rule == "remarks_required"
        assert api.calls == []

    def test_accept_needs_attachment(self, loaded, api):
        with pytest.raises(ValidationError) as exc:
            loaded.validate_for_disposition(["10:1"], "approve")
        assert exc.value.rule == "attachments_required"
        assert api.calls == []

    @pytest.mark.parametrize("count", [1, 2])
    def test_accept_with_one_or_two_attachments_passes(self, loaded, count):
        loaded.add_attachments("10:1", [photo(f"p{i}.png") for i in range(count)])
        loaded.validate_for_disposition(["10:1"], "approve")

    def test_reject_in_acceptance_mode_needs_no_attachment(self, loaded):
        loaded.set_remark("10:1", "damaged screen")
        loaded.validate_for_disposition(["10:1"], "reject")

    def test_approval_mode_has_no_attachment_rule(self, make_coordinator):
        coordinator = make_coordinator(mode="approval")
        coordinator.load_batches()
        coordinator.validate_for_disposition(["10:1", "11:3"], "approve")

    def test_bulk_reports_how_many_items_fail(self, loaded):
        loaded.select_all()
        loaded.set_remark("10:1", "not mine")

        with pytest.raises(ValidationError) as exc:
            loaded.validate_for_disposition(loaded.selected_keys, "reject")

        assert exc.value.failing_count == 2
        assert "(2 items of 3 not ready)" in exc.value.message

    def test_empty_key_list(self, loaded):
        with pytest.raises(ValidationError) as exc:
            loaded.validate_for_disposition([], "approve")
        assert exc.value.rule == "no_selection"

    def test_unknown_kind(self, loaded):
        with pytest.raises(ValueError):
            loaded.validate_for_disposition(["10:1"], "escalate")


# ═══════════════════════════════════════════════════════════════════════
# Attachments
# ═══════════════════════════════════════════════════════════════════════


class TestAttachments:
    """Each item holds at most two attachments."""

    def test_third_attachment_is_dropped_with_notice(self, loaded, notifier):
        loaded.add_attachments("10:1", [photo("a.png"), photo("b.png")])
        kept = loaded.add_attachments("10:1", [photo("c.png")])

        assert [a.filename for a in kept] == ["a.png", "b.png"]
        assert notifier.messages == [("info", "Only 2 attachments are allowed.")]

    def test_oversized_upload_batch_is_capped(self, loaded, notifier):
        kept = loaded.add_attachments("10:1", [photo("a.png"), photo("b.png"), photo("c.png")])
        assert len(kept) == 2
        assert len(notifier.messages) == 1

    def test_within_cap_has_no_notice(self, loaded, notifier):
        loaded.add_attachments("10:1", [photo()])
        assert notifier.messages == []

    def test_remove_attachment(self, loaded):
        loaded.add_attachments("10:1", [photo("a.png"), photo("b.png")])
        loaded.remove_attachment("10:1", 0)
        assert [a.filename for a in loaded.attachments["10:1"]] == ["b.png"]

    def test_remove_out_of_range_is_ignored(self, loaded):
        loaded.add_attachments("10:1", [photo("a.png")])
        loaded.remove_attachment("10:1", 5)
        assert len(loaded.attachments["10:1"]) == 1

    def test_selected_missing_attachments(self, loaded):
        loaded.toggle_selected("10:1", True)
        assert loaded.selected_missing_attachments
        loaded.add_attachments("10:1", [photo()])
        assert not loaded.selected_missing_attachments


# ═══════════════════════════════════════════════════════════════════════
# Confirmation
# ═══════════════════════════════════════════════════════════════════════


class TestConfirmation:
    """Actions are held for confirmation only when they are valid."""

    def test_valid_request_creates_pending_action(self, loaded, api):
        loaded.add_attachments("10:1", [photo()])
        action = loaded.request_confirmation("approve", "single", "10:1")

        assert isinstance(action, PendingAction)
        assert (action.kind, action.scope, action.target_key, action.count) == ("approve", "single", "10:1", 1)
        assert loaded.state == CoordinatorState.AWAITING_CONFIRMATION
        assert api.calls == []

    def test_bulk_request_counts_selection(self, loaded):
        loaded.select_all()
        for key in loaded.selected_keys:
            loaded.set_remark(key, "not ours")
        action = loaded.request_confirmation("reject", "bulk")

        assert action.count == 3
        assert action.target_key is None

    def test_bulk_request_without_selection(self, loaded, notifier):
        assert loaded.request_confirmation("approve", "bulk") is None
        assert notifier.messages == [("error", "No items selected.")]

    def test_cancel_returns_to_ready_without_side_effects(self, loaded, api):
        loaded.add_attachments("10:1", [photo()])
        loaded.request_confirmation("approve", "single", "10:1")
        loaded.cancel_confirmation()

        assert loaded.pending_action is None
        assert loaded.state == CoordinatorState.READY
        assert api.calls == []

    def test_confirm_runs_single_disposition(self, loaded, api):
        loaded.add_attachments("10:1", [photo()])
        loaded.request_confirmation("approve", "single", "10:1")

        result = loaded.confirm_pending_action()

        assert result.success
        assert loaded.pending_action is None
        assert api.call_names == ["submit_acceptance", "list_transfers"]

    def test_confirm_without_pending_action(self, loaded, api):
        result = loaded.confirm_pending_action()
        assert not result
        assert api.calls == []

    def test_unknown_single_target(self, loaded, notifier):
        assert loaded.request_confirmation("approve", "single", "99:9") is None
        assert notifier.messages == []

    def test_request_refused_while_busy(self, loaded, notifier):
        loaded.bulk_loading = "approve"
        loaded.add_attachments("10:1", [photo()])

        assert loaded.request_confirmation("approve", "single", "10:1") is None
        assert notifier.messages == [("warning", "Another action is still in progress.")]

    def test_unknown_scope(self, loaded):
        with pytest.raises(ValueError):
            loaded.request_confirmation("approve", "everything")


# ═══════════════════════════════════════════════════════════════════════
# Single disposition
# ═══════════════════════════════════════════════════════════════════════


class TestDisposeSingle:
    """One request, then a full reload on success only."""

    def test_acceptance_end_to_end(self, make_coordinator, api, notifier):
        api.batches = [make_batch(5, [12])]
        coordinator = make_coordinator(transfer_filter=TransferFilter(transfer_id="5", new_owner="000300"))
        coordinator.load_batches()
        coordinator.set_remark("5:12", "looks good")
        coordinator.add_attachments("5:12", [photo()])
        coordinator.request_confirmation("approve", "single", "5:12")
        api.calls.clear()
        notifier.messages.clear()

        result = coordinator.confirm_pending_action()

        assert result.success
        assert api.call_names == ["submit_acceptance", "get_transfer_items"]
        sent = api.calls_to("submit_acceptance")[0]
        assert sent["transfer_id"] == 5
        assert sent["item_ids"] == [12]
        assert sent["status"] == "accepted"
        assert sent["remarks"] == "looks good"
        assert sent["acceptance_by"] == "000300"
        assert sent["acceptance_date"] == "2026-03-14 09:26:53"
        assert len(sent["attachments"]) == 1
        assert notifier.messages == [("success", "Transfer accepted")]
        assert coordinator.flat_items() == []
        assert coordinator.state == CoordinatorState.EMPTY

    def test_acceptor_falls_back_to_signed_in_user(self, loaded, api):
        loaded.add_attachments("10:1", [photo()])
        loaded.dispose_single("10:1", "approve")
        assert api.calls_to("submit_acceptance")[0]["acceptance_by"] == "000123"

    def test_reject_sends_rejected_status(self, loaded, api, notifier):
        loaded.set_remark("10:2", "wrong serial")
        loaded.dispose_single("10:2", "reject")

        sent = api.calls_to("submit_acceptance")[0]
        assert sent["status"] == "rejected"
        assert sent["remarks"] == "wrong serial"
        assert sent["attachments"] == []
        assert notifier.messages[-1] == ("success", "Transfer rejected")

    def test_success_removes_item_from_selection(self, loaded):
        loaded.add_attachments("10:1", [photo()])
        loaded.toggle_selected("10:1", True)
        loaded.toggle_selected("10:2", True)

        loaded.dispose_single("10:1", "approve")

        assert loaded.selected_keys == ["10:2"]
        assert keys_of(loaded) == ["10:2", "11:3"]

    def test_failure_keeps_state_and_skips_reload(self, loaded, api, notifier):
        loaded.add_attachments("10:1", [photo()])
        loaded.set_remark("10:1", "ok")
        api.errors["submit_acceptance"] = TransportError("HTTP 500", status_code=500)

        result = loaded.dispose_single("10:1", "approve")

        assert not result
        assert "error_id" in result.data
        assert api.call_names == ["submit_acceptance"]
        assert notifier.messages == [("error", "Failed to approve")]
        assert keys_of(loaded) == ["10:1", "10:2", "11:3"]
        assert loaded.remarks["10:1"] == "ok"
        assert loaded.action_loading is None
        assert loaded.state == CoordinatorState.READY

    def test_unauthorized_response_asks_for_sign_in(self, loaded, api, notifier):
        loaded.add_attachments("10:1", [photo()])
        api.errors["submit_acceptance"] = AuthenticationRequired("unauthorized", status_code=401)

        result = loaded.dispose_single("10:1", "approve")

        assert not result
        assert loaded.login_required
        assert notifier.messages == [("error", "Please sign in to continue.")]

    def test_no_token_sends_nothing(self, loaded, api, auth):
        loaded.add_attachments("10:1", [photo()])
        auth.token = None

        result = loaded.dispose_single("10:1", "approve")

        assert not result
        assert api.calls == []
        assert loaded.login_required

    def test_stale_key(self, loaded, api):
        result = loaded.dispose_single("42:1", "approve")
        assert not result
        assert api.calls == []

    def test_item_removed_while_confirming(self, loaded, api, notifier):
        loaded.set_remark("10:1", "not mine")
        loaded.request_confirmation("reject", "single", "10:1")
        api.batches = [make_batch(11, [3])]
        loaded.load_batches()
        api.calls.clear()
        notifier.messages.clear()

        result = loaded.confirm_pending_action()

        assert not result
        assert result.message == "This item is no longer pending."
        assert api.calls == []
        assert notifier.messages == [("error", "This item is no longer pending.")]

    def test_acceptance_without_identity_sends_nothing(self, loaded, api, auth, notifier):
        loaded.add_attachments("10:1", [photo()])
        auth.user = {}

        result = loaded.dispose_single("10:1", "approve")

        assert not result
        assert api.calls == []
        assert notifier.messages == [("error", "Your account has no staff ID to record this action.")]

    def test_approval_without_staff_id_sends_nothing(self, make_coordinator, api, auth, notifier):
        coordinator = make_coordinator(mode="approval")
        coordinator.load_batches()
        api.calls.clear()
        auth.user = {"username": "jdoe"}

        result = coordinator.dispose_single("10:2", "approve")

        assert not result
        assert api.calls == []
        assert notifier.messages == [("error", "Your account has no staff ID to record this action.")]

    def test_link_authorizer_counts_as_identity(self, make_coordinator, api, auth):
        coordinator = make_coordinator(
            mode="approval", transfer_filter=TransferFilter(department="IT", authorize="000900"))
        coordinator.load_batches()
        auth.user = {}

        assert coordinator.dispose_single("10:2", "approve").success
        assert api.calls_to("submit_approval")[0]["approved_by"] == "000900"

    def test_approval_mode_submits_transfer_id(self, make_coordinator, api, notifier):
        coordinator = make_coordinator(mode="approval")
        coordinator.load_batches()
        api.calls.clear()

        result = coordinator.dispose_single("10:2", "approve")

        assert result.success
        assert api.calls_to("submit_approval") == [{
            "status": "approved",
            "approved_by": "000123",
            "approved_date": "2026-03-14 09:26:53",
            "transfer_ids": [10],
        }]
        assert notifier.messages[-1] == ("success", "Transfer approved")
        assert keys_of(coordinator) == ["11:3"]

    def test_approver_from_link_overrides_user(self, make_coordinator, api):
        f = TransferFilter(department="IT", status="pending", authorize="000999")
        coordinator = make_coordinator(mode="approval", transfer_filter=f)
        coordinator.load_batches()

        coordinator.dispose_single("11:3", "approve")

        assert api.calls_to("submit_approval")[0]["approved_by"] == "000999"


# ═══════════════════════════════════════════════════════════════════════
# Bulk disposition
# ═══════════════════════════════════════════════════════════════════════


class TestDisposeBulk:
    """Sequential per-item requests, stop on first failure, one reload."""

    def _ready_all(self, coordinator, order):
        for key in order:
            coordinator.add_attachments(key, [photo()])
            coordinator.toggle_selected(key, True)

    def test_requests_follow_selection_order(self, loaded, api, notifier):
        self._ready_all(loaded, ["11:3", "10:1", "10:2"])

        result = loaded.dispose_bulk("approve")

        assert result.success
        assert api.call_names == ["submit_acceptance"] * 3 + ["list_transfers"]
        assert [c["item_ids"] for c in api.calls_to("submit_acceptance")] == [[3], [1], [2]]
        assert loaded.selected_keys == []
        assert loaded.flat_items() == []
        assert notifier.messages == [("success", "Selected items accepted (3 items)")]

    def test_first_failure_stops_the_run(self, loaded, api, notifier):
        self._ready_all(loaded, ["10:1", "10:2", "11:3"])
        api.fail_acceptance_at = 2

        result = loaded.dispose_bulk("approve")

        assert not result
        assert result.data["processed"] == 1
        assert api.call_names == ["submit_acceptance", "submit_acceptance"]
        assert notifier.messages == [("error", "Failed to approve selected items")]
        assert loaded.selected_keys == ["10:1", "10:2", "11:3"]
        assert loaded.bulk_loading is None

    def test_one_invalid_item_blocks_everything(self, loaded, api, notifier):
        self._ready_all(loaded, ["10:1", "10:2"])
        loaded.toggle_selected("11:3", True)

        result = loaded.dispose_bulk("approve")

        assert not result
        assert result.data["failing"] == 1
        assert api.calls == []
        assert len(notifier.messages) == 1

    def test_empty_selection(self, loaded, api, notifier):
        result = loaded.dispose_bulk("reject")
        assert not result
        assert api.calls == []
        assert notifier.messages == [("error", "No items selected.")]

    def test_approval_bulk_reject_deduplicates_transfers(self, make_coordinator, api, notifier):
        api.batches = [make_batch(7, [1, 2]), make_batch(8, [3])]
        coordinator = make_coordinator(mode="approval")
        coordinator.load_batches()
        for key in ("7:1", "7:2"):
            coordinator.toggle_selected(key, True)
            coordinator.set_remark(key, "budget not approved")
        coordinator.request_confirmation("reject", "bulk")
        api.calls.clear()
        notifier.messages.clear()

        result = coordinator.confirm_pending_action()

        assert result.success
        assert api.call_names == ["submit_approval", "list_transfers"]
        sent = api.calls_to("submit_approval")[0]
        assert sent["status"] == "rejected"
        assert sent["transfer_ids"] == [7]
        assert coordinator.selected_keys == []
        assert keys_of(coordinator) == ["8:3"]
        assert notifier.messages == [("success", "Selected items rejected (1 transfer)")]

    def test_refused_while_busy(self, loaded, api, notifier):
        self._ready_all(loaded, ["10:1"])
        loaded.action_loading = ("10:2", "approve")

        assert not loaded.dispose_bulk("approve")
        assert api.calls == []
        assert notifier.messages == [("warning", "Another action is still in progress.")]


# ═══════════════════════════════════════════════════════════════════════
# Reload consistency
# ═══════════════════════════════════════════════════════════════════════


class TestReloadConsistency:
    """After a successful write the list equals a fresh load."""

    def test_single_disposition_matches_fresh_load(self, loaded, make_coordinator):
        loaded.add_attachments("10:2", [photo()])
        loaded.dispose_single("10:2", "approve")

        fresh = make_coordinator()
        fresh.load_batches()

        assert loaded.batches == fresh.batches

    def test_bulk_disposition_matches_fresh_load(self, loaded, make_coordinator):
        for key in ("10:1", "11:3"):
            loaded.set_remark(key, "duplicate request")
            loaded.toggle_selected(key, True)
        loaded.dispose_bulk("reject")

        fresh = make_coordinator()
        fresh.load_batches()

        assert loaded.batches == fresh.batches
        assert keys_of(loaded) == ["10:2"]


# ═══════════════════════════════════════════════════════════════════════
# Authentication gating
# ═══════════════════════════════════════════════════════════════════════


class TestAuthGating:
    """No request without a token; sign-in resumes the remembered load."""

    def test_load_without_token_prompts_sign_in(self, make_coordinator, api, auth, notifier):
        auth.token = None
        coordinator = make_coordinator()

        coordinator.load_batches()

        assert api.calls == []
        assert coordinator.login_required
        assert coordinator.state == CoordinatorState.IDLE
        assert notifier.messages == [("info", "Please sign in to continue.")]

    def test_sign_in_resumes_fetch(self, make_coordinator, api, auth, notifier):
        auth.token = None
        coordinator = make_coordinator()
        coordinator.load_batches()

        result = coordinator.sign_in("jdoe", "secret")

        assert result.success
        assert not coordinator.login_required
        assert api.calls == [("list_transfers", {"department": "IT", "status": "pending"})]
        assert ("success", "Logged in") in notifier.messages
        assert len(coordinator.flat_items()) == 3

    def test_failed_sign_in_loads_nothing(self, make_coordinator, api, auth):
        auth.token = None
        coordinator = make_coordinator()
        coordinator.load_batches()

        result = coordinator.sign_in("jdoe", "wrong")

        assert not result
        assert result.message == "Invalid username or password"
        assert coordinator.login_required
        assert api.calls == []

    def test_unauthorized_load_fails_closed(self, loaded, api, notifier):
        api.errors["list_transfers"] = AuthenticationRequired("unauthorized", status_code=401)

        loaded.load_batches()

        assert loaded.flat_items() == []
        assert loaded.login_required
        assert notifier.messages == [("error", "Please sign in to continue.")]


# ═══════════════════════════════════════════════════════════════════════
# Refresh signal
# ═══════════════════════════════════════════════════════════════════════


class TestRefreshSignal:
    """Successful writes tell other sessions to reload."""

    def test_other_session_reloads_once(self, make_coordinator, api):
        store = {}
        writer = make_coordinator(refresh_channel=RefreshChannel(store=store))
        reader = make_coordinator(refresh_channel=RefreshChannel(store=store))
        writer.load_batches()
        reader.load_batches()
        writer.add_attachments("10:1", [photo()])
        api.calls.clear()

        writer.dispose_single("10:1", "approve")

        assert api.call_names == ["submit_acceptance", "list_transfers"]
        assert writer.poll_refresh() is False
        assert reader.poll_refresh() is True
        assert api.call_names == ["submit_acceptance", "list_transfers", "list_transfers"]
        assert keys_of(reader) == ["10:2", "11:3"]
        assert reader.poll_refresh() is False

    def test_failed_write_publishes_nothing(self, make_coordinator, api):
        store = {}
        coordinator = make_coordinator(refresh_channel=RefreshChannel(store=store))
        coordinator.load_batches()
        coordinator.add_attachments("10:1", [photo()])
        api.errors["submit_acceptance"] = TransportError("boom")

        coordinator.dispose_single("10:1", "approve")

        assert store == {}

    def test_busy_session_ignores_signal(self, make_coordinator, api):
        store = {}
        reader = make_coordinator(refresh_channel=RefreshChannel(store=store))
        reader.load_batches()
        RefreshChannel(store=store).publish()
        reader.bulk_loading = "approve"
        api.calls.clear()

        reader.poll_refresh()

        assert api.calls == []

    def test_detached_channel_is_silent(self, make_coordinator, api):
        store = {}
        reader = make_coordinator(refresh_channel=RefreshChannel(store=store))
        reader.detach_refresh_channel()
        RefreshChannel(store=store).publish()

        assert reader.poll_refresh() is False
        assert api.calls == []


# ═══════════════════════════════════════════════════════════════════════
# Checklists
# ═══════════════════════════════════════════════════════════════════════


class TestChecklist:
    """Acceptance checklists are fetched once per asset type."""

    def test_entries_are_labelled_and_cached(self, loaded, api):
        api.checklists[5] = ["Screen intact", {"name": "Charger"}, {"foo": 1}, None, ""]

        assert loaded.load_checklist(5) == ["Screen intact", "Charger", "Item 3"]
        assert loaded.load_checklist(5) == ["Screen intact", "Charger", "Item 3"]
        assert api.call_names == ["get_transfer_checklist"]

    def test_failure_notifies_once(self, loaded, api, notifier):
        api.errors["get_transfer_checklist"] = TransportError("boom")

        assert loaded.load_checklist(5) == []
        assert loaded.load_checklist(5) == []
        assert notifier.messages == [("error", "Failed to load checklist")]
        assert len(api.calls) == 1

    def test_missing_type(self, loaded, api):
        assert loaded.load_checklist(None) == []
        assert api.calls == []

    @pytest.mark.parametrize("entry,expected", [
        ("Keyboard", "Keyboard"),
        ({"title": "Battery health"}, "Battery health"),
        ({"description": "Bag included"}, "Bag included"),
        ({}, "Item 4"),
        (None, ""),
        (7, "7"),
    ])
    def test_checklist_label(self, entry, expected):
        assert checklist_label(entry, 3) == expected
