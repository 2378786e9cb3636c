"""
Sidebar navigation & footer for the Asset Transfer Portal.
Renders the page list, the signed-in user card, and sign out.
"""
import logging

import streamlit as st

from core.auth import logout_user
from core.data import safe_rerun

logger = logging.getLogger("TransferPortal")

MENU_GROUPS = {
    "TRANSFERS": [
        {"name": "Transfer Approval", "icon": "✓", "key": "approval"},
        {"name": "Transfer Acceptance", "icon": "⇄", "key": "acceptance"},
    ],
    "REPORTS": [
        {"name": "Export", "icon": "▤", "key": "export"},
    ],
}

PAGE_NAMES = [item["name"] for items in MENU_GROUPS.values() for item in items]


def render_sidebar(backend_ok: bool) -> str:
    """
    Render the full sidebar: brand, nav buttons, user info, logout.
    Returns the current page name after navigation handling.
    """
    st.sidebar.markdown("""
    <div class="sidebar-brand">
        <p>Asset Transfer Portal</p>
    </div>
    """, unsafe_allow_html=True)

    nav_clicked = None
    for group_name, items in MENU_GROUPS.items():
        st.sidebar.markdown(f'<div class="nav-section-header">{group_name}</div>', unsafe_allow_html=True)
        for item in items:
            is_active = st.session_state.current_page == item["name"]
            if st.sidebar.button(
                f"{item['icon']}  {item['name']}",
                key=f"nav_{item['key']}",
                type="primary" if is_active else "secondary",
            ):
                nav_clicked = item["name"]

    st.sidebar.markdown('<div style="margin-top: 20px;"></div>', unsafe_allow_html=True)

    user = st.session_state.get('user') or {}
    display_name = user.get('name') or user.get('full_name') or st.session_state.username or "Link session"
    subtitle = user.get('ramco_id') or ("Signed in via link" if st.session_state.link_session else "")
    connection_html = "● Online" if backend_ok else "○ Backend not configured"

    st.sidebar.markdown(f"""
    <div class="user-info-card">
        <div class="user-name">{display_name}</div>
        <div class="user-role">{subtitle}</div>
        <div class="user-role">{connection_html}</div>
    </div>
    """, unsafe_allow_html=True)

    if st.sidebar.button("Sign Out", key="logout_btn", use_container_width=True):
        logout_user()
        st.query_params.clear()
        logger.info("Query params cleared on logout")
        safe_rerun()

    if nav_clicked and nav_clicked != st.session_state.current_page:
        st.session_state.current_page = nav_clicked

    if st.session_state.current_page not in PAGE_NAMES:
        st.session_state.current_page = PAGE_NAMES[0]

    return st.session_state.current_page


def render_footer():
    """Render the sidebar footer with version info."""
    st.sidebar.markdown("""
    <div class="sidebar-footer">
        <div class="version">Asset Transfer Portal v1.0</div>
        <div class="tech">Streamlit + REST API</div>
    </div>
    """, unsafe_allow_html=True)
