"""
Interactive and policy-based resolvers for contacts with several selected
addresses.

Each factory returns an async resolver suitable for MembershipSession: it
receives the contacts owning more than one selected address together with
the current selection, and returns the addresses to act upon.
"""

from __future__ import annotations

from collections.abc import Sequence

import click

from gcontact_labels.config.loader import (
    DUPLICATE_HANDLING_FIRST,
    DUPLICATE_HANDLING_KEEP_ALL,
    DUPLICATE_HANDLING_PROMPT,
)
from gcontact_labels.membership.disambiguation import DuplicateEmailResolver
from gcontact_labels.membership.errors import DisambiguationCancelled
from gcontact_labels.membership.models import Contact, ContactEmail

ALL_CHOICE = "a"


def parse_choice(answer: str, count: int) -> list[int]:
    """
    Parse a prompt answer into zero-based indexes.

    Accepts "a" for all entries or comma-separated 1-based numbers.

    Raises:
        click.BadParameter: If the answer is empty or out of range
    """
    answer = answer.strip().lower()
    if answer == ALL_CHOICE:
        return list(range(count))

    indexes: list[int] = []
    for part in answer.split(","):
        part = part.strip()
        if not part.isdigit() or not 1 <= int(part) <= count:
            raise click.BadParameter(
                f"Expected numbers between 1 and {count}, or '{ALL_CHOICE}'"
            )
        index = int(part) - 1
        if index not in indexes:
            indexes.append(index)

    if not indexes:
        raise click.BadParameter("Select at least one address")
    return indexes


def _emails_by_contact(
    selection: Sequence[ContactEmail], contacts: Sequence[Contact]
) -> dict[str, list[ContactEmail]]:
    wanted = {c.id for c in contacts}
    grouped: dict[str, list[ContactEmail]] = {}
    for email in selection:
        if email.contact_id in wanted:
            grouped.setdefault(email.contact_id, []).append(email)
    return grouped


def _replace_duplicates(
    selection: Sequence[ContactEmail],
    contacts: Sequence[Contact],
    chosen: dict[str, list[ContactEmail]],
) -> list[ContactEmail]:
    """Keep non-duplicate entries and the chosen ones, in selection order."""
    duplicate_ids = {c.id for c in contacts}
    kept = {e.id for emails in chosen.values() for e in emails}
    return [e for e in selection if e.contact_id not in duplicate_ids or e.id in kept]


def make_keep_all_resolver() -> DuplicateEmailResolver:
    """Resolver acting upon every selected address."""

    async def resolve(
        contacts: list[Contact], selection: list[ContactEmail]
    ) -> list[ContactEmail]:
        return list(selection)

    return resolve


def make_first_resolver() -> DuplicateEmailResolver:
    """Resolver acting upon the first selected address of each contact."""

    async def resolve(
        contacts: list[Contact], selection: list[ContactEmail]
    ) -> list[ContactEmail]:
        grouped = _emails_by_contact(selection, contacts)
        chosen = {contact_id: emails[:1] for contact_id, emails in grouped.items()}
        return _replace_duplicates(selection, contacts, chosen)

    return resolve


def make_prompt_resolver() -> DuplicateEmailResolver:
    """
    Resolver asking the user which address(es) of each contact to use.

    Aborting a prompt (Ctrl-C / EOF) cancels the whole apply.
    """

    async def resolve(
        contacts: list[Contact], selection: list[ContactEmail]
    ) -> list[ContactEmail]:
        grouped = _emails_by_contact(selection, contacts)
        chosen: dict[str, list[ContactEmail]] = {}

        click.echo(
            "\nSome contacts have several selected email addresses. "
            "Groups apply to the whole contact."
        )
        for contact in contacts:
            emails = grouped.get(contact.id, [])
            click.echo(f"\n{contact.display_name or contact.id}:")
            for number, email in enumerate(emails, start=1):
                click.echo(f"  {number}. {email.address}")

            try:
                answer = click.prompt(
                    "Use which address(es)? (numbers separated by commas, "
                    f"'{ALL_CHOICE}' for all)",
                    default=ALL_CHOICE,
                    value_proc=lambda value, n=len(emails): parse_choice(value, n),
                )
            except click.Abort as e:
                raise DisambiguationCancelled(
                    "Address selection was cancelled"
                ) from e

            chosen[contact.id] = [emails[i] for i in answer]

        return _replace_duplicates(selection, contacts, chosen)

    return resolve


def make_resolver(policy: str) -> DuplicateEmailResolver:
    """
    Build the resolver for a duplicate_handling policy.

    Raises:
        ValueError: If the policy is unknown
    """
    if policy == DUPLICATE_HANDLING_PROMPT:
        return make_prompt_resolver()
    if policy == DUPLICATE_HANDLING_KEEP_ALL:
        return make_keep_all_resolver()
    if policy == DUPLICATE_HANDLING_FIRST:
        return make_first_resolver()
    raise ValueError(f"Unknown duplicate handling policy: {policy}")
