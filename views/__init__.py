"""
Pages package for the Asset Transfer Portal.
Each module exposes a render(ctx: AppContext) function.
"""

from views.transfer_portal import render_approval, render_acceptance
from views.export import render as render_export

# Map page display names to their render functions
PAGE_REGISTRY = {
    "Transfer Approval": render_approval,
    "Transfer Acceptance": render_acceptance,
    "Export": render_export,
}

# Short names accepted in the ?page= query parameter of portal links
PAGE_ALIASES = {
    "approval": "Transfer Approval",
    "acceptance": "Transfer Acceptance",
    "export": "Export",
}
