"""
Backend API Configuration
Supports local development and production deployments
"""
import os

# ============================================
# ENVIRONMENT DETECTION
# ============================================
# Set ENVIRONMENT to 'production' on the server, defaults to 'development'
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

# ============================================
# LOCAL DEVELOPMENT CONFIGURATION
# ============================================
LOCAL_API_CONFIG = {
    "base_url": os.getenv("API_BASE_URL", "http://localhost:3030"),
    "timeout": float(os.getenv("API_TIMEOUT_SECONDS", "30")),
    "verify_ssl": os.getenv("API_VERIFY_SSL", "true").lower() == "true",
}

# ============================================
# PRODUCTION CONFIGURATION
# ============================================
# Base URL MUST be set via environment variables
PRODUCTION_API_CONFIG = {
    "base_url": os.getenv("API_BASE_URL", ""),
    "timeout": float(os.getenv("API_TIMEOUT_SECONDS", "30")),
    "verify_ssl": os.getenv("API_VERIFY_SSL", "true").lower() == "true",
}


def validate_api_config() -> dict:
    """Validate backend configuration for the active environment."""
    issues = []
    config = PRODUCTION_API_CONFIG if ENVIRONMENT == "production" else LOCAL_API_CONFIG

    if not config.get("base_url"):
        issues.append("API_BASE_URL not configured")
    elif not config["base_url"].startswith(("http://", "https://")):
        issues.append("API_BASE_URL must start with http:// or https://")
    if config.get("timeout", 0) <= 0:
        issues.append("API_TIMEOUT_SECONDS must be positive")

    return {"valid": len(issues) == 0, "issues": issues, "environment": ENVIRONMENT}

# ============================================
# ACTIVE CONFIGURATION
# ============================================
if ENVIRONMENT == "production":
    API_CONFIG = PRODUCTION_API_CONFIG
else:
    API_CONFIG = LOCAL_API_CONFIG
