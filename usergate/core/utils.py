from typing import Any, TypeVar

T = TypeVar("T")


def ifnone(val: T | None, default: T) -> T:
    """Return the given value if it is not None, else return the default."""
    return val if val is not None else default


def as_bool(value: Any) -> bool:
    """Coerce a (possibly stringified) config value into a bool."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "yes", "on", "1")


def as_int(value: Any, default: int = 0) -> int:
    """Coerce a (possibly stringified) config value into an int."""
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default
