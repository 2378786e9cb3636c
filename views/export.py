"""
Export page.
Asset register by manager (with purchase summary) and transfer items by department.
"""

import logging
from datetime import datetime

import streamlit as st

from components.feedback import render_inline_warning
from config.constants import DEFAULT_TRANSFER_STATUS, EXCEL_MIME_TYPE
from core.errors import safe_execute
from services.export_service import (
    export_assets_by_manager, export_filename, export_transfer_items_to_excel,
)
from views.context import AppContext

logger = logging.getLogger("TransferPortal")


def _transfer_item_rows(batches):
    rows = []
    for batch in batches:
        for item in batch.get("items") or []:
            row = dict(item)
            row.setdefault("transfer_id", batch.get("id"))
            row.setdefault("transfer_by", batch.get("transfer_by_user") or batch.get("transfer_by"))
            row.setdefault("transfer_date", batch.get("transfer_date"))
            row.setdefault("transfer_status", batch.get("transfer_status"))
            rows.append(row)
    return rows


def _render_download(state_key: str, label: str):
    built = st.session_state.get(state_key)
    if not built:
        return
    st.download_button(
        label,
        data=built["data"],
        file_name=built["file_name"],
        mime=EXCEL_MIME_TYPE,
        key=f"dl_{state_key}",
    )
    st.caption(f"Generated {built['generated_at']}")


def render(ctx: AppContext):
    """Render the export page."""
    st.markdown("## Export")

    # ---------- Asset register ----------
    st.markdown("### Assets by Manager")
    st.caption("Active asset purchase summary plus one sheet per asset manager.")

    manager_id = st.number_input("Include manager ID (optional)", min_value=0, step=1, value=0,
                                 key="export_manager_id")

    if st.button("Build Asset Report", key="build_asset_report", type="primary"):
        @safe_execute(context="Building asset report", fallback=False)
        def build():
            types = ctx.api.get_asset_types()
            return export_assets_by_manager(ctx.api, types, manager_id or None)

        with st.spinner("Collecting assets..."):
            workbook = build()
        if workbook is None:
            render_inline_warning("No managers found to export.")
        elif workbook is not False:
            st.session_state.asset_report = {
                "data": workbook.getvalue(),
                "file_name": export_filename("assets_by_manager"),
                "generated_at": datetime.now().strftime("%d/%m/%Y %H:%M"),
            }
            logger.info("Asset report ready for download")

    _render_download("asset_report", "Download Asset Report")

    st.markdown("---")

    # ---------- Transfer items ----------
    st.markdown("### Transfer Items")
    col1, col2 = st.columns(2)
    with col1:
        department = st.text_input("Department", key="export_dept")
    with col2:
        status = st.text_input("Status", value=DEFAULT_TRANSFER_STATUS, key="export_status")

    if st.button("Build Transfer Export", key="build_transfer_export", type="primary"):
        if not department.strip():
            render_inline_warning("Enter a department to export its transfers.")
        else:
            @safe_execute(context="Building transfer items export", fallback=False)
            def build_items():
                batches = ctx.api.list_transfers(department.strip(), status.strip() or DEFAULT_TRANSFER_STATUS)
                return export_transfer_items_to_excel(_transfer_item_rows(batches))

            with st.spinner("Collecting transfer items..."):
                workbook = build_items()
            if workbook is None:
                st.info("No transfer items to export.")
            elif workbook is not False:
                st.session_state.transfer_export = {
                    "data": workbook.getvalue(),
                    "file_name": export_filename("transfer_items"),
                    "generated_at": datetime.now().strftime("%d/%m/%Y %H:%M"),
                }

    _render_download("transfer_export", "Download Transfer Items")
