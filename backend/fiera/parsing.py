"""
Config value parsing shared by the YAML and admin payload readers
"""

from typing import Any

_TRUE = {"true", "yes", "on", "1", "si", "sì"}
_FALSE = {"false", "no", "off", "0"}


def parse_flag(value: Any, default: bool = True) -> bool:
    """
    Boolean from YAML / JSON / form input.

    Strings are read by value ("false", "no", "0" are False); None and
    unrecognised values fall back to `default`.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    return default
