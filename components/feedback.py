"""
Error, warning, and action feedback components.
Toast notifier for workflow outcomes, error cards with retry, inline
messages and action buttons that lock while a request is in flight.
"""

import streamlit as st

from core.data import safe_rerun


class StreamlitNotifier:
    """Routes workflow notifications to Streamlit toasts."""

    ICONS = {"success": "✅", "error": "⚠️", "info": "ℹ️", "warning": "⏳"}

    def _toast(self, level: str, message: str):
        st.toast(message, icon=self.ICONS[level])

    def success(self, message: str):
        self._toast("success", message)

    def error(self, message: str):
        self._toast("error", message)

    def info(self, message: str):
        self._toast("info", message)

    def warning(self, message: str):
        self._toast("warning", message)


ERROR_STYLES = {
    "general": {"icon": "⚠️", "color": "#ef4444", "bg": "#fef2f2", "border": "#fecaca"},
    "connection": {"icon": "🔌", "color": "#f59e0b", "bg": "#fffbeb", "border": "#fde68a"},
}

INLINE_STYLES = {
    "error": {"icon": "⚠️", "bg": "#fef2f2", "border": "#fecaca", "text": "#991b1b"},
    "warning": {"icon": "⚡", "bg": "#fffbeb", "border": "#fde68a", "text": "#92400e"},
}


def render_error_state(error_message: str, error_type: str = "general",
                       retry_key: str = None, error_id: str = None):
    """
    Error card with the support reference instead of technical details.
    The retry button sets st.session_state[retry_key] and reruns; the page
    pops that flag to decide whether to reload.
    """
    style = ERROR_STYLES.get(error_type, ERROR_STYLES["general"])
    reference = f"<br><small style='color: #9ca3af;'>Reference: {error_id}</small>" if error_id else ""

    st.markdown(f"""
    <div class="error-card" style="background: {style['bg']}; border: 1px solid {style['border']};
         border-left: 4px solid {style['color']};">
        <span class="error-card-icon">{style['icon']}</span>
        <div>
            <div class="error-card-title" style="color: {style['color']};">Something went wrong</div>
            <div class="error-card-body">{error_message}{reference}</div>
        </div>
    </div>
    """, unsafe_allow_html=True)

    if retry_key:
        _, center, _ = st.columns([1, 2, 1])
        with center:
            if st.button("Try Again", key=f"btn_{retry_key}", width="stretch"):
                st.session_state[retry_key] = True
                safe_rerun()


def _render_inline(message: str, level: str, show_icon: bool):
    style = INLINE_STYLES[level]
    icon = f"{style['icon']} " if show_icon else ""
    st.markdown(
        f"<div class='inline-message' style='background: {style['bg']}; "
        f"border: 1px solid {style['border']}; color: {style['text']};'>{icon}{message}</div>",
        unsafe_allow_html=True,
    )


def render_inline_error(message: str, show_icon: bool = True):
    _render_inline(message, "error", show_icon)


def render_inline_warning(message: str, show_icon: bool = True):
    _render_inline(message, "warning", show_icon)


def render_action_button(
    label: str,
    key: str,
    loading: bool = False,
    loading_label: str = None,
    button_type: str = "primary",
    disabled: bool = False,
    width: str = 'stretch'
) -> bool:
    """
    Render an action button that disables during loading.

    Returns:
        True if button was clicked and not loading
    """
    if loading:
        st.button(
            f"⏳ {loading_label or label + '...'}",
            key=f"{key}_loading",
            disabled=True,
            width=width
        )
        return False

    return st.button(
        label,
        key=key,
        type=button_type,
        disabled=disabled,
        width=width
    )
