"""
String to value conversion for bound handler parameters.

Every request value arrives as text; this module turns it into the type a
handler declares. Conversion failures raise ValueError, which the binder
turns into a rejected binding.
"""

import re
import uuid
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

TRUE_VALUES = frozenset({"true", "1", "t", "yes", "y", "on"})
FALSE_VALUES = frozenset({"false", "0", "f", "no", "n", "off"})

INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
FLOAT_PATTERN = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?(?:inf|infinity|nan)",
    re.IGNORECASE,
)

SCALAR_TYPES = (str, int, float, bool, Decimal, uuid.UUID, date, datetime, time)

# Types that receive a zero value when a parameter is absent
ZERO_VALUES = {str: "", int: 0, float: 0.0, bool: False}


def is_supported_type(target_type: Any) -> bool:
    """True if request text can be converted to ``target_type``."""
    if not isinstance(target_type, type):
        return False
    if issubclass(target_type, Enum):
        return True
    return target_type in SCALAR_TYPES


def zero_value(target_type: Any) -> Any:
    """Value bound when a request carries nothing for a parameter."""
    return ZERO_VALUES.get(target_type)


def convert_value(value: str, target_type: type) -> Any:
    """
    Convert a non-empty request string to ``target_type``.

    Raises:
        ValueError: If the text is not a valid representation.
        TypeError: If the type is not supported.
    """
    if target_type is str:
        return value
    # bool first: it is a subclass of int
    if target_type is bool:
        return _to_bool(value)
    if target_type is int:
        if not INTEGER_PATTERN.fullmatch(value):
            raise ValueError(f"Cannot convert '{value}' to int.")
        return int(value)
    if target_type is float:
        if not FLOAT_PATTERN.fullmatch(value):
            raise ValueError(f"Cannot convert '{value}' to float.")
        return float(value)
    if target_type is Decimal:
        try:
            return Decimal(value.strip())
        except InvalidOperation as e:
            raise ValueError(f"Cannot convert '{value}' to Decimal.") from e
    if target_type is uuid.UUID:
        return uuid.UUID(value.strip())
    # datetime first: it is a subclass of date
    if target_type is datetime:
        return datetime.fromisoformat(value.strip())
    if target_type is date:
        return date.fromisoformat(value.strip())
    if target_type is time:
        return time.fromisoformat(value.strip())
    if isinstance(target_type, type) and issubclass(target_type, Enum):
        return _to_enum(value, target_type)

    raise TypeError(f"Unsupported target type for conversion: {target_type}")


def _to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(f"Cannot convert '{value}' to boolean.")


def _to_enum(value: str, enum_type: type) -> Enum:
    """Match a member by name or value, exact case first, then ignoring case."""
    for member in enum_type:
        if member.name == value or str(member.value) == value:
            return member

    lowered = value.lower()
    for member in enum_type:
        if member.name.lower() == lowered or str(member.value).lower() == lowered:
            return member

    raise ValueError(f"'{value}' is not a valid {enum_type.__name__}.")
