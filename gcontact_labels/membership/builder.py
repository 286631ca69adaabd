"""
Derivation of the tri-state membership map from stored labels.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from gcontact_labels.membership.models import (
    ContactEmail,
    Group,
    MembershipState,
    SelectionMap,
)


def build_selection_map(
    groups: Sequence[Group], selection: Sequence[ContactEmail]
) -> SelectionMap:
    """
    Build the membership summary of every group over the selected addresses.

    A group is CHECKED when every selected address carries it, UNCHECKED when
    none does and INDETERMINATE otherwise.

    Args:
        groups: Known contact groups
        selection: Selected contact email addresses

    Returns:
        Mapping of group id to MembershipState; empty if either input is empty
    """
    if not groups or not selection:
        return {}

    label_counts = Counter(
        label_id for email in selection for label_id in email.label_ids
    )
    total = len(selection)

    selection_map: SelectionMap = {}
    for group in groups:
        count = label_counts[group.id]
        if count == 0:
            selection_map[group.id] = MembershipState.UNCHECKED
        elif count == total:
            selection_map[group.id] = MembershipState.CHECKED
        else:
            selection_map[group.id] = MembershipState.INDETERMINATE
    return selection_map
