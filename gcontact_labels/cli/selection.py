"""
Resolution of command-line arguments to contacts, addresses and groups.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from gcontact_labels.membership.errors import UnknownGroupError
from gcontact_labels.membership.models import Contact, ContactEmail, Group
from gcontact_labels.utils import normalize_email, normalize_string


def select_emails(
    contacts: Iterable[Contact], addresses: Sequence[str]
) -> tuple[list[ContactEmail], list[str]]:
    """
    Find the contact email entries matching the given addresses.

    An address stored on several contacts selects each of them, and the
    same address given twice is selected once. Entries are returned in the
    order of the arguments.

    Returns:
        Tuple of (selected entries, addresses that matched no contact)
    """
    by_address: dict[str, list[ContactEmail]] = {}
    for contact in contacts:
        for email in contact.contact_emails():
            by_address.setdefault(normalize_email(email.address), []).append(email)

    selection: list[ContactEmail] = []
    seen: set[str] = set()
    missing: list[str] = []

    for address in addresses:
        key = normalize_email(address)
        if key in seen:
            continue
        seen.add(key)

        matches = by_address.get(key)
        if not matches:
            missing.append(address)
            continue
        selection.extend(matches)

    return selection, missing


def resolve_group(groups: Sequence[Group], name_or_id: str) -> Group:
    """
    Find a group by resource name or display name.

    Display names are compared after normalization (case and accents are
    ignored).

    Raises:
        UnknownGroupError: If no group, or more than one, matches
    """
    for group in groups:
        if group.id == name_or_id:
            return group

    key = normalize_string(name_or_id, strip_punctuation=False, remove_spaces=False)
    matches = [
        g
        for g in groups
        if normalize_string(g.name, strip_punctuation=False, remove_spaces=False)
        == key
    ]

    if not matches:
        raise UnknownGroupError(f"Contact group not found: {name_or_id}")
    if len(matches) > 1:
        ids = ", ".join(g.id for g in matches)
        raise UnknownGroupError(
            f"Contact group name '{name_or_id}' is ambiguous ({ids}); "
            f"use the resource name instead"
        )
    return matches[0]
