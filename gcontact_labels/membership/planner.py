"""
Planning of the add/remove calls needed to reach the edited membership.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from gcontact_labels.membership.models import (
    ContactEmail,
    MembershipState,
    Operation,
    OperationKind,
    SelectionMap,
)

logger = logging.getLogger(__name__)


def plan_operations(
    selection_map: SelectionMap, active_selection: Sequence[ContactEmail]
) -> list[Operation]:
    """
    Compute the minimal batch of labeling operations.

    For every CHECKED group the addresses lacking the label are added; for
    every UNCHECKED group the addresses carrying it are removed. Groups left
    INDETERMINATE were not decided by the user and produce nothing, and no
    operation is produced when there is nothing to change.

    Args:
        selection_map: Edited membership map
        active_selection: Addresses to act upon, after disambiguation

    Returns:
        Operations in map order, each with a non-empty email id tuple
        ordered like active_selection
    """
    operations: list[Operation] = []

    for group_id, state in selection_map.items():
        if state is MembershipState.INDETERMINATE:
            continue

        if state is MembershipState.CHECKED:
            kind = OperationKind.ADD
            email_ids = tuple(
                e.id for e in active_selection if not e.has_label(group_id)
            )
        else:
            kind = OperationKind.REMOVE
            email_ids = tuple(e.id for e in active_selection if e.has_label(group_id))

        if not email_ids:
            continue

        operations.append(Operation(group_id=group_id, kind=kind, email_ids=email_ids))

    logger.debug(
        f"Planned {len(operations)} operation(s) for {len(selection_map)} group(s) "
        f"over {len(active_selection)} email(s)"
    )
    return operations
