class UserNotFoundError(Exception):
    """Raised when an operation targets a user id that does not exist."""

    pass


class UserAlreadyExistsError(Exception):
    """Raised when creating or updating a user would duplicate a username or email."""

    pass
