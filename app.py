"""
Asset Transfer Portal
A Streamlit front end for approving and accepting asset transfers
against the asset management REST backend.
"""

import logging
import os

import streamlit as st
from dotenv import load_dotenv

from backend import validate_api_config
from config.styles import get_anti_flicker_css, get_portal_css
from core.auth import (
    SessionAuthProvider, adopt_link_token, check_session_timeout, init_auth_session,
    refresh_token_if_expiring, render_login_page,
)
from core.data import get_api_client, safe_rerun
from core.navigation import render_footer, render_sidebar
from views import PAGE_ALIASES, PAGE_REGISTRY
from views.context import AppContext
from views.transfer_portal import read_transfer_filter

# Load environment variables
load_dotenv()

# ============================================
# ERROR HANDLING & LOGGING
# ============================================
# Technical errors go to file, not UI
LOG_DIR = os.getenv("LOG_DIR", "logs")
os.makedirs(LOG_DIR, exist_ok=True)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
    handlers=[
        logging.FileHandler(os.path.join(LOG_DIR, "app.log"), encoding='utf-8'),
        logging.StreamHandler() if os.getenv("DEBUG", "false").lower() == "true" else logging.NullHandler()
    ]
)
logger = logging.getLogger("TransferPortal")

# ============================================
# PAGE SETUP
# ============================================
st.set_page_config(
    page_title="Asset Transfer Portal",
    page_icon="🔁",
    layout="wide",
    initial_sidebar_state="expanded"
)
st.markdown(get_anti_flicker_css(), unsafe_allow_html=True)

init_auth_session()
if 'current_page' not in st.session_state:
    st.session_state.current_page = "Transfer Approval"

page_param = st.query_params.get("page")
if page_param in PAGE_ALIASES:
    st.session_state.current_page = PAGE_ALIASES[page_param]

config_status = validate_api_config()
if not config_status["valid"]:
    logger.warning(f"Backend configuration issues ({config_status['environment']}): {config_status['issues']}")

api = get_api_client()
auth = SessionAuthProvider(api)

# ============================================
# SESSION CHECKS
# ============================================
adopt_link_token()

if check_session_timeout():
    safe_rerun()

if not refresh_token_if_expiring(api):
    safe_rerun()

transfer_filter = read_transfer_filter(st.query_params)
is_portal_link = bool(transfer_filter.transfer_id or transfer_filter.department)
on_portal_page = st.session_state.current_page != "Export"

# Portal links may load without a session; the page asks for sign-in itself
if not st.session_state.authenticated and not (is_portal_link and on_portal_page):
    render_login_page(auth)
    st.stop()

st.markdown(get_portal_css(), unsafe_allow_html=True)

if st.session_state.authenticated:
    page = render_sidebar(backend_ok=config_status["valid"])
    render_footer()
else:
    page = st.session_state.current_page

ctx = AppContext(
    api=api,
    auth=auth,
    transfer_filter=transfer_filter,
    backend_ok=config_status["valid"],
)

page_renderer = PAGE_REGISTRY.get(page)
if page_renderer:
    page_renderer(ctx)
else:
    st.error(f"Unknown page: {page}")
