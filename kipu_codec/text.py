"""Small text helpers shared by the records, parser and categorizer."""

import re
from typing import Any, Optional, Union

_HTML_TAG = re.compile(r"<[^>]+>")
_NUMERIC = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")


def strip_html(html: Any) -> str:
    """Remove HTML tags (entities are left as-is) and trim."""
    if html is None:
        return ""
    return _HTML_TAG.sub("", str(html)).strip()


def is_blank(value: Any) -> bool:
    """True for the values the codec treats as "no answer": None and the empty string."""
    return value is None or (isinstance(value, str) and value == "")


def is_numeric_like(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and bool(_NUMERIC.match(value.strip()))


def as_text(value: Any) -> Optional[str]:
    """Coerce a scalar to ``str``; containers and None degrade to None."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return None


def as_identifier(value: Any) -> Optional[Union[int, str]]:
    """Keep ints and strings, degrade everything else to None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, str)):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else str(value)
    return None


def as_scalar(value: Any) -> Optional[Union[int, float, str]]:
    """Keep numbers and strings, degrade containers and booleans to None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        return value
    return None


def stringify(value: Any) -> str:
    """Render a submission value the way KIPU expects it on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
