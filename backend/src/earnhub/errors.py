"""Error taxonomy shared by services and the HTTP layer.

Services raise these; ``earnhub.api.main`` maps them onto responses. Errors
flagged ``as_json`` become ``{"error": message}`` bodies, the rest render the
error page.
"""


class EarnHubError(Exception):
    """Base class for application errors."""

    status_code: int = 500
    as_json: bool = False
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(EarnHubError):
    """Raised when required input is missing or malformed."""

    status_code = 400
    as_json = True
    default_message = "Invalid input"


class EmailInUse(EarnHubError):
    """Raised when signing up with an email that already has an account."""

    status_code = 400
    as_json = True
    default_message = "Email is already in use"


class InvalidCredentials(EarnHubError):
    """Raised when email/password authentication fails."""

    status_code = 401
    as_json = True
    default_message = "Invalid email or password"


class InsufficientBalance(EarnHubError):
    """Raised when a withdrawal exceeds the user's balance."""

    status_code = 400
    as_json = True

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient balance: requested {requested}, available {available}")


class UserNotFound(EarnHubError):
    status_code = 404
    default_message = "User not found"


class WithdrawalNotFound(EarnHubError):
    status_code = 404
    default_message = "Withdrawal request not found"


class DatabaseError(EarnHubError):
    """Raised when a query fails. The cause is logged, never shown."""

    status_code = 500

    def __init__(self, message: str | None = None, as_json: bool = False):
        super().__init__(message)
        self.as_json = as_json


class InvalidToken(EarnHubError):
    """Raised when a session token is malformed, forged or expired."""

    status_code = 401
    default_message = "Invalid token"
