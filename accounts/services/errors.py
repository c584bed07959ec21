"""Errors raised by the account service and mapped to HTTP responses in main."""


class AccountServiceError(Exception):
    """Base for orchestration errors; message is safe to return to the client."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InputValidationError(AccountServiceError):
    """Malformed or missing input, including an undecodable avatar image."""

    status_code = 400


class AuthError(AccountServiceError):
    """Bad credentials or an account that may not authenticate.

    The message stays generic so callers cannot tell which check failed.
    """

    status_code = 401

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class ConflictError(AccountServiceError):
    """The requested username is already taken."""

    status_code = 409

    def __init__(self, message: str = "Username already exists") -> None:
        super().__init__(message)


class NotFoundError(AccountServiceError):
    status_code = 404


class ServerError(AccountServiceError):
    """Unexpected failure; details are logged, never returned."""

    status_code = 500

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
