"""
String normalization utilities for group and address lookup.

Group names typed on the command line are matched against the display
names returned by the People API, and email addresses are matched
case-insensitively against the addresses stored on contacts.
"""

from __future__ import annotations

import re
import unicodedata


def normalize_string(
    value: str,
    remove_spaces: bool = True,
    strip_punctuation: bool = True,
) -> str:
    """
    Normalize a string for lookup key generation.

    Args:
        value: String to normalize
        remove_spaces: If True, remove all spaces from the result.
                      If False, multiple spaces are collapsed to single space.
        strip_punctuation: If True, remove non-alphanumeric characters.
                          If False, only normalize unicode and whitespace.

    Returns:
        Normalized lowercase string with accents removed
    """
    if not value:
        return ""

    # Normalize unicode (decompose accents, etc.)
    normalized = unicodedata.normalize("NFKD", value)

    # Remove combining characters (accents)
    normalized = "".join(c for c in normalized if not unicodedata.combining(c))

    normalized = normalized.lower()

    if strip_punctuation:
        normalized = re.sub(r"[^a-z0-9\s]", "", normalized)

    # Normalize whitespace
    normalized = re.sub(r"\s+", " ", normalized).strip()

    if remove_spaces:
        normalized = normalized.replace(" ", "")

    return normalized


def normalize_email(value: str) -> str:
    """
    Normalize an email address for comparison.

    Only surrounding whitespace and case are dropped; dots and plus tags
    are significant for addresses stored on contacts.
    """
    if not value:
        return ""
    return value.strip().lower()
