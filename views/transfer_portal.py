"""
Transfer approval and acceptance pages.
Renders pending transfers per batch with selection, remarks, evidence
upload and confirmation, all driven by ApprovalWorkflowCoordinator.
"""

import logging

import streamlit as st

from components.confirmation import render_confirmation_dialog
from components.empty_states import render_empty_state
from components.feedback import (
    StreamlitNotifier, render_action_button, render_error_state, render_inline_error,
    render_inline_warning,
)
from components.loading import render_loading_overlay, render_loading_skeleton
from config.constants import ACCEPTED_IMAGE_TYPES, EXCEL_MIME_TYPE, MODE_LABELS, NOTIFICATION_MESSAGES
from core.auth import render_login_form
from core.data import create_refresh_channel, paginate, safe_rerun
from core.models import TransferFilter, fmt_date, resolve_person
from services.attachment_service import from_uploaded_file
from services.export_service import export_filename, export_transfer_items_to_excel
from services.transfer_service import ApprovalWorkflowCoordinator
from views.context import AppContext

logger = logging.getLogger("TransferPortal")

CHANGE_FIELDS = [
    ("Owner", "current_owner", "new_owner"),
    ("Cost Center", "current_costcenter", "new_costcenter"),
    ("Department", "current_department", "new_department"),
    ("Location", "current_location", "new_location"),
]


def read_transfer_filter(params) -> TransferFilter:
    """Build the load filter from URL query params."""
    return TransferFilter(
        transfer_id=params.get("transfer") or None,
        new_owner=params.get("new_owner", ""),
        department=params.get("dept", ""),
        status=params.get("status", ""),
        authorize=params.get("authorize", ""),
    )


def get_coordinator(ctx: AppContext, mode: str) -> ApprovalWorkflowCoordinator:
    """One coordinator per mode per session, rebuilt when the filter changes."""
    state_key = f"coordinator_{mode}"
    coordinator = st.session_state.get(state_key)
    if coordinator is not None and coordinator.transfer_filter == ctx.transfer_filter:
        return coordinator

    if coordinator is not None:
        coordinator.detach_refresh_channel()
    coordinator = ApprovalWorkflowCoordinator(
        api=ctx.api,
        auth=ctx.auth,
        notifier=StreamlitNotifier(),
        mode=mode,
        transfer_filter=ctx.transfer_filter,
        refresh_channel=create_refresh_channel(),
    )
    st.session_state[state_key] = coordinator
    return coordinator


# ============================================
# WIDGET CALLBACKS
# ============================================
def _on_toggle(coordinator, key, widget_key):
    coordinator.toggle_selected(key, st.session_state[widget_key])


def _on_remark(coordinator, key, widget_key):
    coordinator.set_remark(key, st.session_state[widget_key])


def _on_upload(coordinator, key, widget_key, counter_key):
    uploaded = st.session_state.get(widget_key) or []
    if uploaded:
        coordinator.add_attachments(key, [from_uploaded_file(f) for f in uploaded])
    # New uploader key clears the widget for the next batch of files
    st.session_state[counter_key] = st.session_state.get(counter_key, 0) + 1


def _request(coordinator, kind, scope, key=None):
    coordinator.request_confirmation(kind, scope, key)


# ============================================
# RENDERING
# ============================================
def _render_filter_form(mode: str):
    with st.expander("Find transfers", expanded=True):
        with st.form(f"filter_form_{mode}"):
            col1, col2, col3 = st.columns(3)
            with col1:
                transfer_id = st.text_input("Transfer ID")
            with col2:
                department = st.text_input("Department")
            with col3:
                status = st.text_input("Status", value="pending")
            if st.form_submit_button("Load", type="primary"):
                if transfer_id.strip():
                    st.query_params["transfer"] = transfer_id.strip()
                if department.strip():
                    st.query_params["dept"] = department.strip()
                    st.query_params["status"] = status.strip() or "pending"
                safe_rerun()


def _render_change_rows(item):
    rows = []
    for label, old_field, new_field in CHANGE_FIELDS:
        old, new = resolve_person(getattr(item, old_field)), resolve_person(getattr(item, new_field))
        if not old and not new:
            continue
        rows.append(
            f'<div class="change-row">{label}: <span class="from">{old or "-"}</span> '
            f'→ <span class="to">{new or "-"}</span></div>'
        )
    if rows:
        st.markdown("".join(rows), unsafe_allow_html=True)


def _render_attachments(coordinator, mode, item):
    key = item.key
    attachments = coordinator.attachments.get(key, [])
    for idx, attachment in enumerate(attachments):
        col1, col2 = st.columns([4, 1])
        with col1:
            st.caption(f"📎 {attachment.filename} ({len(attachment.content) // 1024} KB)")
        with col2:
            if st.button("Remove", key=f"rm_{mode}_{key}_{idx}"):
                coordinator.remove_attachment(key, idx)
                safe_rerun()

    counter_key = f"upload_counter_{mode}_{key}"
    widget_key = f"upload_{mode}_{key}_{st.session_state.get(counter_key, 0)}"
    st.file_uploader(
        "Attach photos (max 2)",
        type=ACCEPTED_IMAGE_TYPES + ["pdf"],
        accept_multiple_files=True,
        key=widget_key,
        on_change=_on_upload,
        args=(coordinator, key, widget_key, counter_key),
        disabled=coordinator.is_busy,
    )
    if not attachments:
        st.caption("Attachments are required before accepting.")


def _render_checklist(coordinator, mode, item):
    if not item.asset.type_id:
        return
    with st.popover("Checklist"):
        entries = coordinator.load_checklist(item.asset.type_id)
        if not entries:
            st.caption("No checklist for this asset type.")
        for idx, entry in enumerate(entries):
            st.checkbox(entry, key=f"chk_{mode}_{item.key}_{idx}")


def _render_item(coordinator, mode, labels, item):
    key = item.key
    select_key = f"sel_{mode}_{key}"
    remark_key = f"remark_{mode}_{key}"
    st.session_state[select_key] = key in coordinator.selection
    st.session_state[remark_key] = coordinator.remarks.get(key, "")

    col1, col2, col3 = st.columns([0.4, 5, 2])
    with col1:
        st.checkbox(
            "Select",
            key=select_key,
            label_visibility="collapsed",
            on_change=_on_toggle,
            args=(coordinator, key, select_key),
            disabled=coordinator.is_busy,
        )
    with col2:
        asset = item.asset
        st.markdown(
            f"**{asset.register_number or '-'}** · {asset.type_name or '-'} "
            f"{('· ' + asset.brand) if asset.brand else ''} {asset.model}"
        )
        st.caption(f"Effective {fmt_date(item.effective_date)}" + (f" · {item.reason}" if item.reason else ""))
        _render_change_rows(item)
    with col3:
        loading = coordinator.action_loading is not None and coordinator.action_loading[0] == key
        if render_action_button(labels["label"], key=f"approve_{mode}_{key}", loading=loading,
                                loading_label=labels["progress"], disabled=coordinator.is_busy):
            _request(coordinator, "approve", "single", key)
            safe_rerun()
        if render_action_button("Reject", key=f"reject_{mode}_{key}", button_type="secondary",
                                disabled=coordinator.is_busy):
            _request(coordinator, "reject", "single", key)
            safe_rerun()

    st.text_area(
        "Remarks",
        key=remark_key,
        placeholder="Required when rejecting",
        height=68,
        on_change=_on_remark,
        args=(coordinator, key, remark_key),
        disabled=coordinator.is_busy,
    )
    if mode == "acceptance":
        _render_attachments(coordinator, mode, item)
        _render_checklist(coordinator, mode, item)


def _render_batch(coordinator, mode, labels, batch):
    with st.container(border=True):
        st.markdown(f"""
        <div class="batch-header">
            <span class="batch-title">Transfer #{batch.id}</span>
            <span class="status-badge">{batch.transfer_status or 'pending'}</span>
        </div>
        <div class="batch-meta">
            Requested by {batch.requested_by} on {fmt_date(batch.transfer_date)} · {batch.total_items} item(s)
        </div>
        """, unsafe_allow_html=True)
        for item in batch.items:
            st.markdown("---")
            _render_item(coordinator, mode, labels, item)


def _render_bulk_toolbar(coordinator, mode, labels):
    selected = len(coordinator.selection)
    col1, col2, col3, col4, col5 = st.columns([2, 1, 1, 1.5, 1.5])
    with col1:
        st.markdown(f"**{selected}** of {len(coordinator.flat_items())} selected")
    with col2:
        if st.button("Select all", key=f"select_all_{mode}", disabled=coordinator.is_busy):
            coordinator.select_all()
            safe_rerun()
    with col3:
        if st.button("Clear", key=f"clear_{mode}", disabled=coordinator.is_busy or not selected):
            coordinator.clear_selection()
            safe_rerun()
    with col4:
        if render_action_button(f"{labels['label']} selected", key=f"bulk_approve_{mode}",
                                loading=coordinator.bulk_loading == "approve",
                                loading_label=labels["progress"],
                                disabled=coordinator.is_busy or not selected):
            _request(coordinator, "approve", "bulk")
            safe_rerun()
    with col5:
        if render_action_button("Reject selected", key=f"bulk_reject_{mode}", button_type="secondary",
                                loading=coordinator.bulk_loading == "reject",
                                loading_label="Rejecting…",
                                disabled=coordinator.is_busy or not selected):
            _request(coordinator, "reject", "bulk")
            safe_rerun()

    if coordinator.last_validation_error is not None:
        render_inline_error(coordinator.last_validation_error.message)
    if coordinator.selected_missing_attachments:
        render_inline_warning("Some selected items have no attachments yet.")


def _render_pending_action(coordinator, labels):
    action = coordinator.pending_action
    item_label, remark = "", ""
    if action.scope == "single":
        found = coordinator.find_item(action.target_key)
        if found is not None:
            item_label = found[1].asset.register_number or f"item {found[1].item_id}"
        remark = coordinator.remarks.get(action.target_key, "")

    confirmed, cancelled = render_confirmation_dialog(action, labels, item_label, remark)
    if confirmed:
        render_loading_overlay(labels["progress"])
        result = coordinator.confirm_pending_action()
        logger.info(f"Confirmed {action.kind}/{action.scope}: {result!r}")
        safe_rerun()
    elif cancelled:
        coordinator.cancel_confirmation()
        safe_rerun()


def _export_rows(coordinator):
    rows = []
    for batch, item in coordinator.flat_items():
        row = dict(item.raw)
        row.setdefault("transfer_id", item.transfer_id)
        row.setdefault("transfer_by", batch.requested_by)
        if batch.transfer_date:
            row.setdefault("transfer_date", batch.transfer_date.isoformat())
        rows.append(row)
    return rows


def render(ctx: AppContext, mode: str):
    """Render the portal for 'approval' or 'acceptance'."""
    labels = MODE_LABELS[mode]
    st.markdown(f"## {labels['title']}")

    f = ctx.transfer_filter
    if f.mode == "transfer" and not f.transfer_id:
        render_empty_state("missing_transfer_link")
        _render_filter_form(mode)
        return

    coordinator = get_coordinator(ctx, mode)

    if coordinator.login_required:
        render_inline_warning(NOTIFICATION_MESSAGES["sign_in_required"])
        render_login_form(coordinator.sign_in, key=f"login_{mode}")
        return

    retry_key = f"retry_load_{mode}"
    if not coordinator.loaded or st.session_state.pop(retry_key, False):
        placeholder = st.empty()
        with placeholder.container():
            render_loading_skeleton()
        coordinator.load_batches()
        placeholder.empty()
        if coordinator.login_required:
            safe_rerun()
    else:
        coordinator.poll_refresh()

    if coordinator.pending_action is not None:
        _render_pending_action(coordinator, labels)

    if coordinator.load_error_id:
        render_error_state(NOTIFICATION_MESSAGES["load_failed"], error_type="connection",
                           retry_key=retry_key, error_id=coordinator.load_error_id)
        return

    if not coordinator.flat_items():
        state_key = "no_pending_acceptance" if mode == "acceptance" else "no_pending_transfers"
        render_empty_state(state_key, on_action=coordinator.load_batches)
        return

    col1, col2 = st.columns([4, 1])
    with col2:
        workbook = export_transfer_items_to_excel(_export_rows(coordinator))
        if workbook is not None:
            st.download_button(
                "Export",
                data=workbook,
                file_name=export_filename("transfer_items"),
                mime=EXCEL_MIME_TYPE,
                key=f"export_items_{mode}",
            )

    _render_bulk_toolbar(coordinator, mode, labels)

    for batch in paginate(coordinator.batches, key=f"batches_{mode}"):
        _render_batch(coordinator, mode, labels, batch)


def render_approval(ctx: AppContext):
    render(ctx, "approval")


def render_acceptance(ctx: AppContext):
    render(ctx, "acceptance")
