"""Auth exceptions."""


class TokenSigningError(RuntimeError):
    """Raised when a token cannot be signed, e.g. a missing secret or an unsupported algorithm.

    Treated as a fatal configuration error rather than a per-request failure.
    """

    pass
