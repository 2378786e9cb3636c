"""
Data access and pagination utilities.
Per-session backend client, shared refresh channel, and list pagination.
"""
import streamlit as st

from backend import API_CONFIG, TransferApiClient
from config.constants import PAGINATION_CONFIG, REFRESH_TOPIC
from core.events import RefreshChannel, shared_signal_store


def safe_rerun():
    """Rerun the script from the top with current session state."""
    st.rerun()


# ============================================
# BACKEND ACCESS
# ============================================
def _session_token():
    return st.session_state.get('auth_token')


def get_api_client() -> TransferApiClient:
    """One client per browser session; the token is read at request time."""
    if 'api_client' not in st.session_state:
        st.session_state.api_client = TransferApiClient(
            base_url=API_CONFIG["base_url"],
            timeout=API_CONFIG["timeout"],
            token_provider=_session_token,
            verify=API_CONFIG["verify_ssl"],
        )
    return st.session_state.api_client


def create_refresh_channel() -> RefreshChannel:
    """A new reader of the process-wide refresh signal, one per workflow."""
    return RefreshChannel(REFRESH_TOPIC, shared_signal_store())


# ============================================
# PAGINATION
# ============================================
def get_pagination_state(key: str) -> dict:
    """Get or initialize pagination state for a specific list."""
    return st.session_state.setdefault(
        f"pagination_{key}",
        {"page": 0, "page_size": PAGINATION_CONFIG["default_page_size"]},
    )


def _page_count(total: int, page_size: int) -> int:
    return max(1, -(-total // page_size))


def paginate(records, key: str, show_controls: bool = True):
    """
    Current page of `records` (list or DataFrame).

    The page index is clamped whenever the list shrinks, e.g. after a
    disposition removed the last transfer on the final page.
    """
    total = len(records)
    if total == 0:
        return records

    state = get_pagination_state(key)
    pages = _page_count(total, state["page_size"])
    state["page"] = min(state["page"], pages - 1)

    if show_controls and total > state["page_size"]:
        render_pagination_controls(key, state, total)

    start = state["page"] * state["page_size"]
    return records[start:start + state["page_size"]]


def _go_to_page(key: str, page: int):
    get_pagination_state(key)["page"] = page


def _change_page_size(key: str, widget_key: str):
    state = get_pagination_state(key)
    state["page_size"] = st.session_state[widget_key]
    state["page"] = 0


def render_pagination_controls(key: str, state: dict, total: int):
    """Page size selector, range caption and prev/next buttons."""
    pages = _page_count(total, state["page_size"])
    first = state["page"] * state["page_size"] + 1
    last = min(first + state["page_size"] - 1, total)
    options = PAGINATION_CONFIG["page_size_options"]
    size_key = f"page_size_{key}"

    col1, col2, col3, col4 = st.columns([1, 3, 1, 1])
    with col1:
        st.selectbox(
            "Transfers per page",
            options=options,
            index=options.index(state["page_size"]) if state["page_size"] in options else 0,
            key=size_key,
            on_change=_change_page_size,
            args=(key, size_key),
            label_visibility="collapsed"
        )
    with col2:
        st.caption(f"Showing {first}-{last} of {total} transfers")
    with col3:
        st.button("◀ Prev", key=f"pg_prev_{key}", on_click=_go_to_page,
                  args=(key, state["page"] - 1), disabled=state["page"] == 0, width="stretch")
    with col4:
        st.button("Next ▶", key=f"pg_next_{key}", on_click=_go_to_page,
                  args=(key, state["page"] + 1), disabled=state["page"] >= pages - 1, width="stretch")
