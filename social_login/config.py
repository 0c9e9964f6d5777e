"""
Social login configuration. Provider registration values come from env; no secrets in this file.
"""
import os

# Identity provider (OIDC issuer). Facebook only supports the implicit flow (response_type=id_token).
FACEBOOK_ISSUER = os.environ.get("FACEBOOK_ISSUER", "https://www.facebook.com")
FACEBOOK_CLIENT_ID = os.environ.get("FACEBOOK_CLIENT_ID", "")

# Must be HTTPS and registered in the Facebook app settings
FACEBOOK_REDIRECT_URL = os.environ.get("FACEBOOK_REDIRECT_URL", "https://127.0.0.1:8000/callback")

# Prefix for user ids: "<provider>-<subject>"
PROVIDER_NAME = "facebook"

LOGIN_SCOPE = "openid"
LOGIN_RESPONSE_MODE = "fragment"

APP_HOST = os.environ.get("APP_HOST", "127.0.0.1")
APP_PORT = int(os.environ.get("APP_PORT", "8000"))

# Pending login (state -> nonce) lifetime: 15 minutes
STATE_TTL_SECONDS = int(os.environ.get("LOGIN_STATE_TTL_SECONDS", "900"))

# Opaque session token lifetime: 24 hours
SESSION_TTL_SECONDS = int(os.environ.get("LOGIN_SESSION_TTL_SECONDS", "86400"))

# Capacity at which a put sweeps expired entries (abandoned logins, sessions never used again)
STATE_STORE_MAX_ENTRIES = int(os.environ.get("LOGIN_STATE_STORE_MAX_ENTRIES", "10000"))
SESSION_STORE_MAX_ENTRIES = int(os.environ.get("LOGIN_SESSION_STORE_MAX_ENTRIES", "100000"))

# Users and audit log. In-memory SQLite by default (process lifetime).
DATABASE_URL = os.environ.get("LOGIN_DATABASE_URL", "sqlite:///:memory:")

# Per-IP requests per minute on /facebook/login (both legs). 0 disables.
RATE_LIMIT_LOGIN_PER_MINUTE = int(os.environ.get("LOGIN_RATE_LIMIT_PER_MINUTE", "30"))

# Discovery and JWKS fetch timeout
HTTP_TIMEOUT_SECONDS = float(os.environ.get("OIDC_HTTP_TIMEOUT_SECONDS", "10"))
