"""Shared context object passed to all page renderers."""

from dataclasses import dataclass, field
from typing import Any

from core.models import TransferFilter


@dataclass
class AppContext:
    """Bundles shared state that page renderers need from app.py."""

    api: Any = None  # TransferApiClient for this session
    auth: Any = None  # SessionAuthProvider
    transfer_filter: TransferFilter = field(default_factory=TransferFilter)
    backend_ok: bool = True
