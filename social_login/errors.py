"""
Error taxonomy for the login flow and session checks.

LoginError subclasses are client-input errors: rendered as `{"error": message}` with their
status code by the app's exception handler. None are retried. StoreError subclasses are
raised by the stores and translated by the controller/authenticator.
"""


class LoginError(Exception):
    status_code = 400
    code = "login_error"
    message = "login failed"

    def __init__(self, message: str | None = None, *, headers: dict[str, str] | None = None):
        if message is not None:
            self.message = message
        self.headers = headers
        super().__init__(self.message)


class MissingToken(LoginError):
    status_code = 412
    code = "missing_token"
    message = "id_token is required"


class InvalidState(LoginError):
    code = "invalid_state"
    message = "Invalid state"


class StateExpired(LoginError):
    code = "state_expired"
    message = "this state has expired"


class InvalidToken(LoginError):
    """Provider rejected the id_token or its claims could not be verified."""

    code = "invalid_token"
    message = "invalid id_token"


class Unauthorized(LoginError):
    status_code = 401
    code = "unauthorized"
    message = "unauthorized"

    def __init__(self, message: str | None = None, *, headers: dict[str, str] | None = None):
        super().__init__(message, headers=headers or {"WWW-Authenticate": "Bearer"})


class SessionExpired(Unauthorized):
    code = "session_expired"
    message = "session expired"


class RateLimited(LoginError):
    status_code = 429
    code = "rate_limited"
    message = "too many requests"


class StoreError(Exception):
    pass


class EntryNotFound(StoreError, KeyError):
    pass


class EntryExpired(StoreError):
    pass


class DuplicateKey(StoreError):
    pass
