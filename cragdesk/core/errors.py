"""Auth error taxonomy. Services raise these; the API layer renders them."""


class AuthError(Exception):
    """Base class: carries a client-safe message and the HTTP status it maps to."""

    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredentials(AuthError):
    """Bad username/password, or a missing, invalid or expired token. Always generic."""

    status_code = 401
    default_message = "Invalid credentials"


class Forbidden(AuthError):
    """Caller is authenticated but not allowed to act on the target."""

    status_code = 403
    default_message = "Forbidden"


class OriginRejected(AuthError):
    """State-changing request from an origin outside the allow-list."""

    status_code = 403
    default_message = "Cross-origin requests are not allowed"


class NotFound(AuthError):
    status_code = 404
    default_message = "Not found"


class UsernameTaken(AuthError):
    """Registration conflict. The one accepted exception to the no-enumeration rule."""

    status_code = 409
    default_message = "Username already exists"


class RecoveryDisabled(AuthError):
    """Recovery endpoint hit without an operator-configured RECOVERY_TOKEN."""

    status_code = 503
    default_message = "Recovery disabled: RECOVERY_TOKEN not configured"


class MalformedRequest(AuthError):
    status_code = 400
    default_message = "Malformed request"
