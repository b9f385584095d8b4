"""Reusable value transforms for field mappings."""

import re
import logging
from typing import Any, Callable, Dict, Optional
from datetime import datetime

import phpserialize
from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

_UMLAUTS = {
    "ä": "ae",
    "ö": "oe",
    "ü": "ue",
    "Ä": "ae",
    "Ö": "oe",
    "Ü": "ue",
    "ß": "ss",
}


def deserialize(value: Any, force_list: bool = False) -> Any:
    """
    Decode a legacy serialized array.

    Values that are not serialized are returned unchanged. PHP arrays with
    consecutive integer keys become lists, all other arrays become dicts.
    With ``force_list`` the result is always a list: empty values give ``[]``
    and scalars are wrapped.
    """
    result = value

    if isinstance(value, (str, bytes)) and value:
        raw = value.encode("utf-8") if isinstance(value, str) else value
        if raw[:2] == b"a:":
            try:
                result = _normalize(phpserialize.loads(raw, decode_strings=True))
            except ValueError:
                logger.debug(f"Could not deserialize value: {value!r}")
                result = value

    if not force_list:
        return result

    if isinstance(result, list):
        return result
    if isinstance(result, dict):
        return list(result.values())
    if result is None or result == "" or result == b"":
        return []
    return [result]


def _normalize(value: Any) -> Any:
    if isinstance(value, dict):
        items = {k: _normalize(v) for k, v in value.items()}
        try:
            return phpserialize.dict_to_list(items)
        except ValueError:
            return items
    return value


def serialize(value: Any) -> str:
    """Encode a list or dict in the legacy serialized array format."""
    return phpserialize.dumps(value).decode("utf-8")


def generate_alias(text: Any) -> str:
    """Build a lowercase, URL safe alias from a title."""
    text = str(text or "")
    for umlaut, replacement in _UMLAUTS.items():
        text = text.replace(umlaut, replacement)
    text = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return text.strip("-")


def is_numeric(value: Any) -> bool:
    """Check for ints, floats and numeric strings."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    try:
        float(str(value).strip())
        return True
    except ValueError:
        return False


def _transform_direct(value: Any) -> Any:
    return value


def _transform_to_int(value: Any) -> int:
    return int(float(str(value).strip()))


def _transform_non_negative_int(value: Any) -> int:
    """Numeric values clamped at zero, anything else becomes zero."""
    if not is_numeric(value):
        return 0
    return max(_transform_to_int(value), 0)


def _transform_boolean_flag(value: Any) -> str:
    return "1" if value else ""


def _transform_uppercase(value: Any) -> str:
    return str(value).upper()


def _transform_lowercase(value: Any) -> str:
    return str(value).lower()


def _transform_iso_to_unix(value: Any) -> int:
    """Convert an ISO datetime string to a Unix timestamp."""
    if isinstance(value, (int, float)):
        return int(value)  # Already a timestamp
    dt = date_parser.parse(str(value))
    return int(dt.timestamp())


def _transform_unix_to_iso(value: Any) -> str:
    """Convert a Unix timestamp to an ISO datetime string."""
    return datetime.fromtimestamp(float(value)).isoformat()


class TransformRegistry:
    """
    Named transforms addressable from mapping table files.

    Supports:
    - Built-in transforms (numbers, flags, case, dates, serialized arrays)
    - Custom transforms registered at runtime
    """

    def __init__(self):
        self._custom_transforms: Dict[str, Callable[[Any], Any]] = {}
        self._builtin_transforms = self._register_builtin_transforms()

    def _register_builtin_transforms(self) -> Dict[str, Callable[[Any], Any]]:
        """Register all built-in transformation functions."""
        return {
            "direct": _transform_direct,
            "to_int": _transform_to_int,
            "non_negative_int": _transform_non_negative_int,
            "boolean_flag": _transform_boolean_flag,
            "uppercase": _transform_uppercase,
            "lowercase": _transform_lowercase,
            "iso_to_unix": _transform_iso_to_unix,
            "unix_to_iso": _transform_unix_to_iso,
            "deserialize": deserialize,
            "serialize": serialize,
            "alias": generate_alias,
        }

    def register_transform(self, name: str, func: Callable[[Any], Any]) -> None:
        """Register a custom transformation function."""
        self._custom_transforms[name] = func

    def get(self, name: str) -> Optional[Callable[[Any], Any]]:
        return self._custom_transforms.get(name) or self._builtin_transforms.get(name)

    def as_dict(self) -> Dict[str, Callable[[Any], Any]]:
        """All transforms by name, custom ones shadowing built-ins."""
        return {**self._builtin_transforms, **self._custom_transforms}
