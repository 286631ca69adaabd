"""CLI output formatting functions.

This module contains functions for displaying membership summaries, planned
label operations and apply notifications on the command line.
"""

from collections.abc import Mapping, Sequence

import click

from gcontact_labels.membership.models import (
    ContactEmail,
    Group,
    MembershipState,
    Operation,
    OperationKind,
    SelectionMap,
)

# Checkbox-like markers for each membership state
STATE_MARKERS = {
    MembershipState.CHECKED: "[x]",
    MembershipState.UNCHECKED: "[ ]",
    MembershipState.INDETERMINATE: "[-]",
}

# Maximum number of addresses listed per planned operation
MAX_LISTED_EMAILS = 10


def format_apply_notification(count: int) -> str:
    """Return the message shown after a successful apply."""
    noun = "contact group" if count == 1 else "contact groups"
    return f"{count} {noun} applied"


def show_membership_summary(
    groups: Sequence[Group],
    selection_map: SelectionMap,
    selection: Sequence[ContactEmail],
) -> None:
    """
    Display the tri-state membership of each group over the selection.

    Args:
        groups: Groups in display order
        selection_map: Membership map built for the selection
        selection: Selected addresses
    """
    click.echo(f"Selected email(s): {len(selection)}")
    for email in selection:
        click.echo(f"  {email.address}")
    click.echo()

    if not selection_map:
        click.echo("No contact groups to show.")
        return

    for group in sorted(groups, key=lambda g: g.name.lower()):
        state = selection_map.get(group.id)
        if state is None:
            continue
        click.echo(f"{STATE_MARKERS[state]} {group.name}")

    click.echo()
    click.echo("[x] all selected   [-] some selected   [ ] none selected")


def show_planned_operations(
    operations: Sequence[Operation],
    groups_by_id: Mapping[str, Group],
    emails_by_id: Mapping[str, ContactEmail],
) -> None:
    """
    Display the label operations that would be issued.

    Args:
        operations: Planned operations
        groups_by_id: Groups keyed by resource name, for display names
        emails_by_id: Selected addresses keyed by id, for display
    """
    click.echo("\n=== Planned Changes ===")

    if not operations:
        click.echo("\nNo changes needed.")
        return

    for operation in operations:
        group = groups_by_id.get(operation.group_id)
        group_name = group.name if group else operation.group_id

        if operation.kind is OperationKind.ADD:
            click.echo(f"\nAdd to '{group_name}':")
            marker = "+"
        else:
            click.echo(f"\nRemove from '{group_name}':")
            marker = "-"

        for email_id in operation.email_ids[:MAX_LISTED_EMAILS]:
            email = emails_by_id.get(email_id)
            click.echo(f"  {marker} {email.address if email else email_id}")
        if len(operation.email_ids) > MAX_LISTED_EMAILS:
            remaining = len(operation.email_ids) - MAX_LISTED_EMAILS
            click.echo(f"  ... and {remaining} more")
