"""Character acceptance rules for the numeric keypad."""

MAX_FIELD_LENGTH = 3
DECIMAL_POINT = "."


def is_accepted_key(key: str) -> bool:
    """Return True for a single ASCII digit or a decimal point.

    More than one decimal point per field is allowed.
    """
    if key == DECIMAL_POINT:
        return True
    return len(key) == 1 and "0" <= key <= "9"


def can_append(current: str, key: str) -> bool:
    """Check whether ``key`` may be appended to a field holding ``current``."""
    return len(current) < MAX_FIELD_LENGTH and is_accepted_key(key)
