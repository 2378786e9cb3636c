"""
Disposition confirmation dialog.
Shows the held PendingAction and returns the operator's answer.
"""

import streamlit as st

from core.models import PendingAction

ACTION_ICONS = {"approve": "✅", "reject": "⛔"}


def describe_action(action: PendingAction, labels: dict, item_label: str = "") -> str:
    """One-line summary, e.g. 'Accept 3 selected items'."""
    verb = labels["label"] if action.kind == "approve" else "Reject"
    if action.scope == "bulk":
        noun = "item" if action.count == 1 else "items"
        return f"{verb} {action.count} selected {noun}"
    return f"{verb} {item_label or 'this item'}"


def render_confirmation_dialog(action: PendingAction, labels: dict, item_label: str = "",
                               remark: str = ""):
    """
    Render the confirmation card for a held action.
    Returns: (confirmed: bool, cancelled: bool)
    """
    if action is None:
        return False, False

    icon = ACTION_ICONS.get(action.kind, "⚡")
    border = "#059669" if action.kind == "approve" else "#dc2626"
    summary = describe_action(action, labels, item_label)
    remark_html = (
        f'<div style="color: #cbd5e1; margin-top: 8px;">Remarks: {remark}</div>' if remark else ""
    )

    st.markdown("---")
    st.markdown(f"""
    <div style="background: #1e293b; border: 1px solid {border}; border-radius: 8px; padding: 15px; margin: 10px 0;">
        <div style="color: {border}; font-weight: bold; margin-bottom: 10px;">
            {icon} Confirm {summary}
        </div>
        <div style="color: white;">This action cannot be undone.</div>
        {remark_html}
    </div>
    """, unsafe_allow_html=True)

    col1, col2, col3 = st.columns([1, 1, 2])

    with col1:
        if st.button("Confirm", key="confirm_action_btn", type="primary"):
            return True, False

    with col2:
        if st.button("Cancel", key="cancel_action_btn"):
            return False, True

    return False, False
