"""
Backend Package
Provides REST access to the asset transfer backend
"""
from .config import API_CONFIG, ENVIRONMENT, validate_api_config
from .client import TransferApiClient, unwrap, normalize_batch, format_backend_datetime
from .auth import authenticate_user, refresh_session_token, decode_token_expiry

__all__ = [
    'API_CONFIG',
    'ENVIRONMENT',
    'validate_api_config',
    'TransferApiClient',
    'unwrap',
    'normalize_batch',
    'format_backend_datetime',
    'authenticate_user',
    'refresh_session_token',
    'decode_token_expiry',
]
