"""
Random values for the login handshake and sessions. All drawn from `secrets` (CSPRNG).
"""
import secrets

# 32 bytes -> 43 chars base64url
_TOKEN_BYTES = 32


def generate_state() -> str:
    """Opaque value for CSRF protection; returned by the browser after the provider redirect."""
    return secrets.token_urlsafe(_TOKEN_BYTES)


def generate_nonce() -> str:
    """Random value bound into the id_token; required when openid scope is requested."""
    return secrets.token_urlsafe(_TOKEN_BYTES)


def generate_session_token() -> str:
    """Opaque bearer credential. Carries no claims; only meaningful via the session store."""
    return secrets.token_urlsafe(_TOKEN_BYTES)
