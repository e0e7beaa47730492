"""Format patterns and predicates used by the type rule and value coercion."""

from __future__ import annotations

import ipaddress
import re
from datetime import date, datetime, time
from typing import Any
from urllib.parse import urlsplit

from formgate.definition.types import FieldType


# =============================================================================
# Patterns
# =============================================================================

INTEGER_PATTERN = re.compile(r"^\d+$")

# Numeric strings: optional surrounding whitespace, sign, decimals, exponent
NUMERIC_PATTERN = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")

# Same as above without whitespace, after the decimal separator was normalized
FLOAT_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")

EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)

URL_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*$")


# =============================================================================
# Predicates
# =============================================================================


def is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple, dict))


def is_temporal(value: Any) -> bool:
    return isinstance(value, (date, datetime, time))


def is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and INTEGER_PATTERN.match(value) is not None


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and NUMERIC_PATTERN.match(value) is not None


def parse_float(value: Any, decimal: str = ".") -> float | None:
    """Parse a decimal number written with the given decimal separator."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if decimal != ".":
        if "." in text:
            return None
        text = text.replace(decimal, ".")
    if not FLOAT_PATTERN.match(text):
        return None
    return float(text)


def to_number(value: Any, decimal: str = ".") -> float | None:
    """Numeric value for bound checks, or None if ``value`` is not a number."""
    if is_numeric(value):
        return float(value)
    return parse_float(value, decimal)


def is_email(value: Any) -> bool:
    return isinstance(value, str) and EMAIL_PATTERN.match(value) is not None


def is_ip(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def is_url(value: Any) -> bool:
    if not isinstance(value, str) or not value or any(c.isspace() for c in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(URL_SCHEME_PATTERN.match(parts.scheme)) and bool(parts.netloc)


def parse_temporal(value: Any, field_type: FieldType, pattern: str) -> date | datetime | time | None:
    """Parse a string with a strptime pattern into the type's temporal object."""
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.strptime(value.strip(), pattern)
    except ValueError:
        return None

    if field_type is FieldType.DATE:
        return parsed.date()
    if field_type is FieldType.TIME:
        return parsed.time()
    return parsed


def is_switch(value: Any) -> bool:
    if isinstance(value, (bool, int, float)):
        return value in (0, 1)
    return isinstance(value, str) and value.strip() in ("", "0", "1")
