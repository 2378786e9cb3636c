"""
Authentication & session management for the Asset Transfer Portal.
Handles login, logout, link tokens, timeout checks, and token refresh.
"""
import logging
from datetime import datetime, timedelta

import streamlit as st

from backend.auth import authenticate_user, decode_token_expiry, refresh_session_token
from config.constants import (
    INACTIVITY_TIMEOUT_MINUTES, SESSION_TIMEOUT_HOURS, TOKEN_REFRESH_BEFORE_SECONDS,
)
from config.styles import get_login_css
from core.data import safe_rerun
from core.models import ActionResult

logger = logging.getLogger("TransferPortal")
security_logger = logging.getLogger("TransferPortal.security")

# Query parameter carrying a pre-issued token in notification links
LINK_TOKEN_PARAM = "_cred"


def init_auth_session():
    """Initialize authentication session state with security defaults"""
    defaults = {
        'authenticated': False,
        'auth_token': None,
        'token_expires_at': None,
        'user': {},
        'usergroups': [],
        'username': None,
        'login_time': None,
        'last_activity': None,
        'login_error': None,
        'link_session': False,
    }
    for key, default_value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = default_value


def check_session_timeout():
    """
    Check if session has timed out (absolute or inactivity).
    Returns True if session was invalidated.
    """
    if not st.session_state.authenticated:
        return False

    now = datetime.now()

    if st.session_state.login_time:
        elapsed = now - st.session_state.login_time
        if elapsed.total_seconds() > (SESSION_TIMEOUT_HOURS * 3600):
            logout_user(reason="session_expired")
            return True

    if st.session_state.last_activity:
        inactive = now - st.session_state.last_activity
        if inactive.total_seconds() > (INACTIVITY_TIMEOUT_MINUTES * 60):
            logout_user(reason="inactivity")
            return True

    st.session_state.last_activity = now
    return False


def _store_token(token: str):
    st.session_state.auth_token = token
    st.session_state.token_expires_at = decode_token_expiry(token)


def login_user(user_data: dict):
    """Set session state after a successful credential login."""
    user = user_data.get('user') or {}
    _store_token(user_data['token'])
    st.session_state.authenticated = True
    st.session_state.user = user
    st.session_state.usergroups = user_data.get('usergroups') or []
    st.session_state.username = user.get('username') or user.get('ramco_id')
    st.session_state.login_time = datetime.now()
    st.session_state.last_activity = datetime.now()
    st.session_state.login_error = None
    st.session_state.link_session = False


def logout_user(reason: str = None):
    """
    Clear session state on logout.
    Note: Caller is responsible for clearing st.query_params separately.
    """
    security_logger.info(f"Session ended for '{st.session_state.get('username')}' reason={reason or 'logout'}")

    st.session_state.authenticated = False
    st.session_state.auth_token = None
    st.session_state.token_expires_at = None
    st.session_state.user = {}
    st.session_state.usergroups = []
    st.session_state.username = None
    st.session_state.login_time = None
    st.session_state.last_activity = None
    st.session_state.link_session = False

    if reason == "session_expired":
        st.session_state.login_error = "Your session has expired. Please sign in again."
    elif reason == "inactivity":
        st.session_state.login_error = "You were logged out due to inactivity."
    elif reason == "session_invalidated":
        st.session_state.login_error = "Your session is no longer valid. Please sign in again."


def adopt_link_token() -> bool:
    """
    Take the bearer token from a notification link and drop it from the URL.
    Returns True when a token was adopted.
    """
    token = st.query_params.get(LINK_TOKEN_PARAM)
    if not token:
        return False

    del st.query_params[LINK_TOKEN_PARAM]
    if st.session_state.authenticated and st.session_state.auth_token == token:
        return False

    _store_token(token)
    st.session_state.authenticated = True
    st.session_state.link_session = True
    st.session_state.login_time = datetime.now()
    st.session_state.last_activity = datetime.now()
    security_logger.info("Session started from link token")
    return True


def refresh_token_if_expiring(client) -> bool:
    """
    Renew the bearer token shortly before it expires.
    Returns False when the session had to be ended.
    """
    expires_at = st.session_state.get('token_expires_at')
    if not st.session_state.authenticated or expires_at is None:
        return True

    if expires_at - datetime.now() > timedelta(seconds=TOKEN_REFRESH_BEFORE_SECONDS):
        return True

    new_token = refresh_session_token(client)
    if new_token:
        _store_token(new_token)
        return True

    if expires_at <= datetime.now():
        logout_user(reason="session_expired")
        return False
    return True


class SessionAuthProvider:
    """Auth capability backed by st.session_state, handed to the workflow."""

    def __init__(self, client):
        self.client = client

    def get_token(self):
        return st.session_state.get('auth_token')

    def current_user(self) -> dict:
        return st.session_state.get('user') or {}

    def is_authenticated(self) -> bool:
        return bool(self.get_token())

    def reauthenticate(self, username: str, password: str):
        success, user_data, message = authenticate_user(self.client, (username or "").strip(), password)
        if success and user_data:
            login_user(user_data)
        return success, message

    def sign_in(self, username: str, password: str) -> ActionResult:
        success, message = self.reauthenticate(username, password)
        return ActionResult(success, message)


def render_login_form(on_submit, key: str = "inline_login"):
    """
    Sign-in form used by the login page and by portal pages whose link
    token was rejected. on_submit(username, password) returns an ActionResult.
    """
    with st.form(key, clear_on_submit=False):
        st.markdown('<div class="login-card-header"><h2>SIGN IN</h2></div>', unsafe_allow_html=True)
        username = st.text_input("Username", placeholder="Enter your username", key=f"{key}_username")
        password = st.text_input("Password", type="password", placeholder="Enter your password",
                                 key=f"{key}_password")
        submit = st.form_submit_button("Log In", use_container_width=True, type="primary")

    if submit:
        with st.spinner("Logging in..."):
            result = on_submit(username, password)
        if result:
            safe_rerun()
        else:
            st.error(result.message)


def render_login_page(auth: SessionAuthProvider):
    """Full-page login for sessions that did not arrive with a link token."""
    st.markdown(get_login_css(), unsafe_allow_html=True)
    st.markdown(
        "<div class='login-brand'><p class='login-brand-tagline'>Asset Transfer Portal</p></div>",
        unsafe_allow_html=True,
    )

    _, center, _ = st.columns([1, 2, 1])
    with center:
        notice = st.session_state.pop('login_error', None)
        if notice:
            st.markdown(f"<div class='session-warning'><p>{notice}</p></div>", unsafe_allow_html=True)
        render_login_form(auth.sign_in, key="login_form")
