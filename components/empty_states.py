"""
Empty state components for the transfer portal.
Consistent UI for when there is nothing to act on.
"""

import streamlit as st

from core.data import safe_rerun


EMPTY_STATES = {
    "no_pending_transfers": {
        "icon": "check",
        "title": "Nothing Awaiting Approval",
        "message": "There are no pending transfer requests for this filter.",
        "action": "Refresh",
        "color": "#10b981"
    },
    "no_pending_acceptance": {
        "icon": "check",
        "title": "Nothing Awaiting Acceptance",
        "message": "All transferred items have been accepted or rejected.",
        "action": "Refresh",
        "color": "#10b981"
    },
    "missing_transfer_link": {
        "icon": "link",
        "title": "No Transfer Selected",
        "message": "Open this page from the link in your transfer notification email, "
                   "or look a transfer up below.",
        "action": None,
        "color": "#f59e0b"
    },
    "no_data": {
        "icon": "folder",
        "title": "No Data Available",
        "message": "Nothing to show yet.",
        "action": None,
        "color": "#64748b"
    }
}

# Feather-style SVG paths
EMPTY_STATE_ICONS = {
    "check": '<path d="M22 11.08V12a10 10 0 1 1-5.93-9.14"></path><polyline points="22 4 12 14.01 9 11.01"></polyline>',
    "link": '<path d="M10 13a5 5 0 0 0 7.54.54l3-3a5 5 0 0 0-7.07-7.07l-1.72 1.71"></path><path d="M14 11a5 5 0 0 0-7.54-.54l-3 3a5 5 0 0 0 7.07 7.07l1.71-1.71"></path>',
    "folder": '<path d="M22 19a2 2 0 0 1-2 2H4a2 2 0 0 1-2-2V5a2 2 0 0 1 2-2h5l2 3h9a2 2 0 0 1 2 2z"></path>'
}


def render_empty_state(state_key: str, custom_message: str = None, on_action=None) -> None:
    """
    Render an empty state card.

    Args:
        state_key: Key from EMPTY_STATES config
        custom_message: Optional override for the message
        on_action: Callback for the action button (button hidden when None)
    """
    state = EMPTY_STATES.get(state_key, EMPTY_STATES["no_data"])
    icon_path = EMPTY_STATE_ICONS.get(state["icon"], EMPTY_STATE_ICONS["folder"])
    color = state["color"]

    st.markdown(f"""
    <div class="empty-state" style="background: {color}0d; border: 1px dashed {color}40;">
        <svg width="48" height="48" viewBox="0 0 24 24" fill="none" stroke="{color}" stroke-width="1.5"
             stroke-linecap="round" stroke-linejoin="round">{icon_path}</svg>
        <div class="empty-state-title">{state['title']}</div>
        <div class="empty-state-message">{custom_message or state['message']}</div>
    </div>
    """, unsafe_allow_html=True)

    if on_action is not None and state["action"]:
        _, center, _ = st.columns([1, 2, 1])
        with center:
            if st.button(state["action"], key=f"empty_action_{state_key}", width="stretch"):
                on_action()
                safe_rerun()
