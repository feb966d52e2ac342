"""
Field Validators

Character-class and length checks for untrusted report fields.

Character classes compose with `|`:
    validate_string("1.2 (beta)", CharacterClass.DIGITS | CharacterClass.PUNCTUATION)

A value is valid when every character belongs to the union of the
requested classes and the (nonzero) length bounds hold.
"""
from enum import Flag
from typing import Optional
import string

from ..errors import ValidationError


class CharacterClass(Flag):
    """Composable character sets used by validate_string()."""
    DIGITS = 1
    LOWER = 2
    UPPER = 4
    WHITESPACE = 8
    PUNCTUATION = 16

    ALPHA = LOWER | UPPER
    # Accepted for crashappversion before it reaches any catalog query
    VERSION = DIGITS | WHITESPACE | PUNCTUATION


_CLASS_CHARACTERS = {
    CharacterClass.DIGITS: frozenset(string.digits),
    CharacterClass.LOWER: frozenset(string.ascii_lowercase),
    CharacterClass.UPPER: frozenset(string.ascii_uppercase),
    CharacterClass.WHITESPACE: frozenset(" \t\n\r\f\v"),
    CharacterClass.PUNCTUATION: frozenset(".,;:&\"'?!()"),
}

# Longest crash app version accepted, matches the crash_records column width
MAX_VERSION_LENGTH = 255


def allowed_characters(classes: CharacterClass) -> frozenset:
    """Union of the characters in every requested class."""
    allowed = frozenset()
    for member, characters in _CLASS_CHARACTERS.items():
        if member & classes:
            allowed = allowed | characters
    return allowed


def validate_string(
    value: str,
    classes: Optional[CharacterClass] = None,
    min_length: int = 0,
    max_length: int = 0,
) -> bool:
    """
    Validate a string against character classes and length bounds.

    Args:
        value: String to validate
        classes: Allowed character classes, None for no restriction
        min_length: Minimum length, 0 for no minimum
        max_length: Maximum length, 0 for no maximum

    Returns:
        True if valid, False if not
    """
    if classes is not None:
        allowed = allowed_characters(classes)
        if any(ch not in allowed for ch in value):
            return False

    if min_length and len(value) < min_length:
        return False

    if max_length and len(value) > max_length:
        return False

    return True


def require_valid(
    field_name: str,
    value: str,
    classes: Optional[CharacterClass] = None,
    min_length: int = 0,
    max_length: int = 0,
) -> str:
    """validate_string() that raises ValidationError instead of returning False."""
    if not validate_string(value, classes, min_length, max_length):
        raise ValidationError(field_name, value)
    return value


def validate_crash_app_version(value: str) -> str:
    """Gate crashappversion to digits, whitespace and punctuation."""
    return require_valid(
        "crash_app_version",
        value,
        CharacterClass.VERSION,
        max_length=MAX_VERSION_LENGTH,
    )
