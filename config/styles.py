"""
CSS styles for the Asset Transfer Portal.
Pure string data, no runtime dependencies.
"""

def get_anti_flicker_css():
    """CSS that hides all UI until auth is resolved. Runs first to prevent flash."""
    return """
<style>
/* Hide entire app until auth decision (login CSS or portal CSS reveals it) */
.stApp { opacity: 0 !important; }

[data-testid="stSidebar"],
[data-testid="stSidebarNav"],
section[data-testid="stSidebar"] {
    display: none !important;
}
</style>
"""

def get_login_css():
    """Centered white sign-in card on a neutral background."""
    return """
    <style>
    #MainMenu, footer, header, [data-testid="stToolbar"], [data-testid="stDecoration"],
    [data-testid="stSidebar"], [data-testid="stSidebarNav"], section[data-testid="stSidebar"],
    [data-testid="collapsedControl"] {
        display: none !important;
        visibility: hidden !important;
    }

    .stApp {
        opacity: 1 !important;
        background: #f5f5f5 !important;
        min-height: 100vh;
    }

    .login-brand {
        text-align: center;
        margin-bottom: 24px;
    }
    .login-brand-tagline {
        color: #1e3a8a;
        font-size: 1.25rem;
        font-weight: 600;
        letter-spacing: 0.02em;
    }

    [data-testid="stForm"] {
        background: #ffffff;
        border: 1px solid #e5e7eb;
        border-radius: 8px;
        padding: 32px 28px;
        box-shadow: 0 1px 3px rgba(0, 0, 0, 0.08);
    }

    .session-warning {
        background: #fffbeb;
        border: 1px solid #fde68a;
        border-radius: 6px;
        padding: 10px 15px;
        margin-bottom: 12px;
    }
    .session-warning p { color: #92400e; margin: 0; font-size: 0.9rem; }
    </style>
    """

def get_portal_css():
    """Styles for the authenticated portal: sidebar, batch cards, badges."""
    return """
<style>
    .stApp { opacity: 1 !important; }

    [data-testid="stSidebar"],
    [data-testid="stSidebarNav"],
    section[data-testid="stSidebar"] {
        display: flex !important;
        visibility: visible !important;
    }

    :root {
        --color-brand-primary: #1e3a8a;
        --color-text-primary: #1e293b;
        --color-text-tertiary: #64748b;
        --color-border: #e2e8f0;
        --color-success: #059669;
        --color-danger: #dc2626;
    }

    /* Sidebar */
    [data-testid="stSidebar"] { background: #1a2332; }
    .sidebar-brand p {
        color: #ffffff;
        font-weight: 600;
        font-size: 1.05rem;
        margin: 8px 16px 16px 16px;
    }
    .nav-section-header {
        color: #94a3b8;
        font-size: 0.7rem;
        letter-spacing: 0.08em;
        margin: 14px 16px 4px 16px;
    }
    .user-info-card {
        background: #232f42;
        border: 1px solid #2d3748;
        border-radius: 8px;
        padding: 12px;
        margin: 0 8px 10px 8px;
    }
    .user-info-card .user-name { color: #ffffff; font-weight: 600; }
    .user-info-card .user-role { color: #94a3b8; font-size: 0.8rem; }
    .sidebar-footer { color: #64748b; font-size: 0.75rem; margin: 20px 16px; }

    /* Transfer batches */
    .batch-header {
        display: flex;
        justify-content: space-between;
        align-items: center;
        border-bottom: 1px solid var(--color-border);
        padding-bottom: 8px;
        margin-bottom: 8px;
    }
    .batch-title { color: var(--color-text-primary); font-weight: 600; }
    .batch-meta { color: var(--color-text-tertiary); font-size: 0.85rem; }
    .change-row { font-size: 0.9rem; color: var(--color-text-primary); }
    .change-row .from { color: var(--color-text-tertiary); text-decoration: line-through; }
    .change-row .to { color: var(--color-success); font-weight: 500; }

    .status-badge {
        display: inline-block;
        padding: 2px 8px;
        border-radius: 4px;
        font-size: 0.75rem;
        font-weight: 500;
        background: #eff6ff;
        color: var(--color-brand-primary);
    }

    /* Feedback */
    .error-card {
        display: flex;
        gap: 12px;
        align-items: flex-start;
        border-radius: 8px;
        padding: 20px;
        margin: 15px 0;
    }
    .error-card-icon { font-size: 1.5rem; }
    .error-card-title { font-weight: 600; margin-bottom: 5px; }
    .error-card-body { color: #374151; font-size: 0.95rem; }
    .inline-message {
        border-radius: 6px;
        padding: 10px 15px;
        font-size: 0.9rem;
        margin: 8px 0;
    }
    .empty-state {
        border-radius: 12px;
        padding: 40px 30px;
        text-align: center;
        margin: 20px 0;
    }
    .empty-state svg { opacity: 0.7; margin-bottom: 16px; }
    .empty-state-title { font-size: 1.1rem; font-weight: 600; color: var(--color-text-primary); margin-bottom: 8px; }
    .empty-state-message { font-size: 0.9rem; color: var(--color-text-tertiary); max-width: 400px; margin: 0 auto; }

    .login-card-header h2 {
        text-align: center;
        color: var(--color-brand-primary);
        font-size: 1.1rem;
        letter-spacing: 0.1em;
    }
</style>
"""
