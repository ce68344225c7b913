"""Shared validation helpers for frozen dataclass models.

Private module -- not part of the public API. Used by ``parse`` and
``__post_init__`` methods in sibling model modules to enforce runtime type
constraints on untrusted JSON input.
"""

from __future__ import annotations

from typing import Any


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_int(value: Any, name: str) -> None:
    """Raise if *value* is not a non-negative ``int`` (``bool`` excluded)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")


def validate_str(value: Any, name: str) -> None:
    """Raise unless *value* is a ``str`` that encodes to UTF-8.

    ``json.loads`` accepts lone surrogate escapes such as ``"\\ud800"``;
    those strings have no UTF-8 form and are rejected with ``ValueError``.
    """
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise ValueError(f"{name} must be valid UTF-8") from None


def validate_tags(value: Any, name: str) -> None:
    """Raise unless *value* is a list of lists of strings."""
    if not isinstance(value, list):
        raise TypeError(f"{name} must be a list, got {type(value).__name__}")
    for i, tag in enumerate(value):
        if not isinstance(tag, list):
            raise TypeError(f"{name}[{i}] must be a list, got {type(tag).__name__}")
        for j, item in enumerate(tag):
            validate_str(item, f"{name}[{i}][{j}]")
