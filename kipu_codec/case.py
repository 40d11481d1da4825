"""
Key-case conversion between KIPU's snake_case wire format and the
application's camelCase shape.

Only mapping *keys* are converted; values (including strings that look like
keys, such as matrix column keys or field-type tokens) are left untouched.
"""

import re
from typing import Any, Mapping

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def to_camel(key: str) -> str:
    """Convert a single snake_case key to camelCase (``ciwa_ar_interval`` -> ``ciwaArInterval``)."""
    if not isinstance(key, str) or "_" not in key:
        return key

    head, *rest = key.split("_")
    if not head:
        # Leading underscores are kept as-is; they are not part of the KIPU schema
        return key
    return head + "".join(part[:1].upper() + part[1:] for part in rest if part)


def to_snake(key: str) -> str:
    """Convert a single camelCase key to snake_case (``evaluationItemId`` -> ``evaluation_item_id``)."""
    if not isinstance(key, str):
        return key
    return _CAMEL_BOUNDARY.sub(lambda m: "_" + m.group(1).lower(), key)


def snake_to_camel(data: Any) -> Any:
    """Recursively convert every mapping key in ``data`` to camelCase."""
    if isinstance(data, Mapping):
        return {to_camel(k): snake_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [snake_to_camel(v) for v in data]
    return data


def camel_to_snake(data: Any) -> Any:
    """Recursively convert every mapping key in ``data`` to snake_case."""
    if isinstance(data, Mapping):
        return {to_snake(k): camel_to_snake(v) for k, v in data.items()}
    if isinstance(data, list):
        return [camel_to_snake(v) for v in data]
    return data
