"""
User edits of the membership map.
"""

from __future__ import annotations

from gcontact_labels.membership.models import GroupId, MembershipState, SelectionMap


def toggle(
    selection_map: SelectionMap, group_id: GroupId, checked: bool
) -> SelectionMap:
    """
    Return a copy of the map with one group explicitly checked or unchecked.

    The previous state is overwritten unconditionally, so a toggle always
    resolves INDETERMINATE to a definite choice.
    """
    state = MembershipState.CHECKED if checked else MembershipState.UNCHECKED
    return {**selection_map, group_id: state}
