"""
Centralized configuration constants for the Asset Transfer Portal.
Pure data, no runtime dependencies.
"""

# ============================================
# AUTHENTICATION & SESSION MANAGEMENT
# ============================================
SESSION_TIMEOUT_HOURS = 8  # Auto-logout after 8 hours
INACTIVITY_TIMEOUT_MINUTES = 30  # Auto-logout after 30 minutes of inactivity
TOKEN_REFRESH_BEFORE_SECONDS = 300  # Refresh bearer token 5 minutes before expiry

# ============================================
# BACKEND ENDPOINTS
# ============================================
ENDPOINTS = {
    "transfers": "/api/assets/transfers",
    "transfer": "/api/assets/transfers/{transfer_id}",
    "transfer_items": "/api/assets/transfers/{transfer_id}/items",
    "approval": "/api/assets/transfers/approval",
    "acceptance": "/api/assets/transfers/{transfer_id}/acceptance",
    "checklist": "/api/assets/transfer-checklist",
    "assets": "/api/assets",
    "managers": "/api/assets/managers",
    "types": "/api/assets/types",
    "login": "/api/auth/login",
    "refresh_token": "/api/auth/refresh-token",
}

# ============================================
# TRANSFER WORKFLOW
# ============================================
WORKFLOW_MODES = ["approval", "acceptance"]
DISPOSITION_KINDS = ["approve", "reject"]

DEFAULT_TRANSFER_STATUS = "pending"

# Acceptance endpoint only has two named attachment fields
MAX_ATTACHMENTS = 2
ATTACHMENT_FIELDS = ("attachment2", "attachment3")

# Backend expects local time, not UTC
BACKEND_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DISPLAY_DATE_FORMAT = "%d/%m/%Y"

# Status values sent to the backend per mode
DISPOSITION_STATUS = {
    "approval": {"approve": "approved", "reject": "rejected"},
    "acceptance": {"approve": "accepted", "reject": "rejected"},
}

# Wording per mode (buttons, dialogs, toasts)
MODE_LABELS = {
    "approval": {
        "title": "Asset Transfer Authorization Portal",
        "verb": "approve",
        "label": "Approve",
        "done": "Approved",
        "progress": "Approving…",
    },
    "acceptance": {
        "title": "Asset Transfer Acceptance Portal",
        "verb": "accept",
        "label": "Accept",
        "done": "Accepted",
        "progress": "Accepting…",
    },
}

# User-facing notification texts (no technical details)
NOTIFICATION_MESSAGES = {
    "load_failed": "Failed to load transfer details",
    "checklist_failed": "Failed to load checklist",
    "sign_in_required": "Please sign in to continue.",
    "signed_in": "Logged in",
    "remarks_required": "Remarks are required when rejecting.",
    "attachments_required": "Attachments are required to accept.",
    "no_selection": "No items selected.",
    "attachment_limit": "Only 2 attachments are allowed.",
    "busy": "Another action is still in progress.",
    "item_gone": "This item is no longer pending.",
    "missing_identity": "Your account has no staff ID to record this action.",
}

# Shared refresh signal topic (written by one session, observed by others)
REFRESH_TOPIC = "transfer-portal-reload"

# ============================================
# ATTACHMENT IMAGE COMPRESSION
# ============================================
IMAGE_MAX_DIMENSION = 1600
IMAGE_JPEG_QUALITY = 80
ACCEPTED_IMAGE_TYPES = ["png", "jpg", "jpeg", "webp", "heic"]

# ============================================
# EXPORT CONFIGURATION
# ============================================
MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
EXCEL_SHEET_NAME_LIMIT = 31
EXCEL_MIN_COLUMN_WIDTH = 12
EXCEL_MAX_COLUMN_WIDTH = 50
EXCEL_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# ============================================
# PERFORMANCE & PAGINATION CONFIGURATION
# ============================================
PAGINATION_CONFIG = {
    "default_page_size": 25,
    "page_size_options": [10, 25, 50, 100],
}
