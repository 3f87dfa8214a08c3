from typing import Any

from .errors import InvalidInput


def is_valid_id(value: Any) -> bool:
    # bool is an int subclass; True must not pass as id 1
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def parse_id(raw: str, label: str = "ID") -> int:
    """Parse a path parameter as a positive integer or raise InvalidInput."""
    text = (raw or "").strip()
    if not text.isdigit() or not text.isascii():
        raise InvalidInput(f"Invalid {label}")
    value = int(text)
    if value < 1:
        raise InvalidInput(f"Invalid {label}")
    return value
