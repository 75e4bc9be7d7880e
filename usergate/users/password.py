"""Password hashing with Argon2 via pwdlib."""

from pwdlib import PasswordHash


def get_password_hasher() -> PasswordHash:
    """Return the process-wide PasswordHash instance, creating it on first use."""
    if not hasattr(get_password_hasher, "cached_instance"):
        get_password_hasher.cached_instance = PasswordHash.recommended()
    return get_password_hasher.cached_instance


def hash_password(password: str) -> str:
    return get_password_hasher().hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check ``plain_password`` against a stored hash.

    Example:

            if not verify_password(payload.password, user.password_hash):
                raise HTTPException(status_code=401, detail="Invalid credentials")

    """
    return get_password_hasher().verify(plain_password, hashed_password)


__all__ = ["get_password_hasher", "hash_password", "verify_password"]
