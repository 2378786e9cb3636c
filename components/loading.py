"""
Loading placeholders for the transfer list and in-flight submissions.
"""

import streamlit as st

LOADING_KEYFRAMES = """
<style>
    @keyframes skeleton-pulse { 0% { background-position: 200% 0; } 100% { background-position: -200% 0; } }
    @keyframes spin { 0% { transform: rotate(0deg); } 100% { transform: rotate(360deg); } }
    .skeleton-bar {
        background: linear-gradient(90deg, #e2e8f0 25%, #f1f5f9 50%, #e2e8f0 75%);
        background-size: 200% 100%;
        animation: skeleton-pulse 1.5s ease-in-out infinite;
        border-radius: 4px;
        margin-bottom: 8px;
    }
    .loading-card {
        background: rgba(255, 255, 255, 0.9);
        border: 1px solid #e2e8f0;
        border-radius: 8px;
        padding: 30px;
        text-align: center;
        margin: 20px 0;
        color: #64748b;
    }
    .loading-spinner {
        width: 40px;
        height: 40px;
        border: 3px solid #e2e8f0;
        border-top: 3px solid #1e3a8a;
        border-radius: 50%;
        animation: spin 1s linear infinite;
        margin: 0 auto 15px auto;
    }
</style>
"""


def render_loading_skeleton(rows: int = 5) -> None:
    """Placeholder batch header plus `rows` item bars while transfers load."""
    bars = '<div class="skeleton-bar" style="height: 32px;"></div>'
    bars += '<div class="skeleton-bar" style="height: 44px;"></div>' * rows
    st.markdown(f'{LOADING_KEYFRAMES}<div style="padding: 16px;">{bars}</div>', unsafe_allow_html=True)


def render_loading_overlay(message: str = "Processing..."):
    """Spinner card shown while a confirmed disposition is submitted."""
    st.markdown(
        f'{LOADING_KEYFRAMES}<div class="loading-card"><div class="loading-spinner"></div>{message}</div>',
        unsafe_allow_html=True,
    )
