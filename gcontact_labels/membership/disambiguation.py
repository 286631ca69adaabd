"""
Resolution of contacts contributing several selected addresses.

Google stores group membership per contact, so labeling two addresses of
the same contact is the same as labeling the contact once, and labeling one
address silently labels the others. Before planning, the user is asked which
address(es) of such contacts should be acted upon.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence

from gcontact_labels.membership.errors import UnknownContactError
from gcontact_labels.membership.models import Contact, ContactEmail, ContactId

logger = logging.getLogger(__name__)

# Async collaborator asked to pick addresses for duplicate contacts. It
# receives those contacts and the current selection, and returns the
# replacement selection or raises DisambiguationCancelled.
DuplicateEmailResolver = Callable[
    [list[Contact], list[ContactEmail]], Awaitable[list[ContactEmail]]
]


def collect_duplicate_contacts(
    selection: Sequence[ContactEmail], contacts: Sequence[Contact]
) -> list[Contact]:
    """
    List the contacts that own more than one selected address.

    Each such contact appears once, at the position where its second
    address was seen, however many of its addresses are selected.

    Raises:
        UnknownContactError: If a duplicate contact is missing from contacts
    """
    contacts_by_id = {contact.id: contact for contact in contacts}
    counts: dict[ContactId, int] = {}
    duplicates: list[Contact] = []

    for email in selection:
        counts[email.contact_id] = counts.get(email.contact_id, 0) + 1

        if counts[email.contact_id] == 2:
            contact = contacts_by_id.get(email.contact_id)
            if contact is None:
                raise UnknownContactError(
                    f"Selected email {email.id} belongs to unknown contact "
                    f"{email.contact_id}"
                )
            duplicates.append(contact)

    return duplicates


async def disambiguate(
    selection: Sequence[ContactEmail],
    contacts: Sequence[Contact],
    resolver: DuplicateEmailResolver,
) -> list[ContactEmail]:
    """
    Determine the addresses the apply step should act upon.

    When no contact is duplicated the selection is returned as-is without
    suspending. Otherwise the resolver is awaited with the duplicate
    contacts and this selection, and whatever it returns becomes the
    active selection.

    Raises:
        DisambiguationCancelled: If the user dismissed the resolver prompt
        UnknownContactError: If a duplicate contact is missing from contacts
    """
    duplicates = collect_duplicate_contacts(selection, contacts)
    if not duplicates:
        return list(selection)

    logger.info(
        f"{len(duplicates)} contact(s) have several selected emails, "
        f"asking which to use"
    )
    resolved = await resolver(duplicates, list(selection))
    logger.debug(f"Resolved selection: {len(selection)} -> {len(resolved)} email(s)")
    return list(resolved)
