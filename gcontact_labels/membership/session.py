"""
Membership editing session.

A MembershipSession holds the state of one "apply groups" view over a
selection of contact email addresses: it builds the tri-state map when the
view opens, records the user's toggles and runs the apply flow
(disambiguation, planning, execution) on demand.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from gcontact_labels.membership.builder import build_selection_map
from gcontact_labels.membership.disambiguation import (
    DuplicateEmailResolver,
    disambiguate,
)
from gcontact_labels.membership.editor import toggle
from gcontact_labels.membership.errors import ApplyInProgressError, UnknownGroupError
from gcontact_labels.membership.executor import (
    ApplyExecutor,
    NotifyCallback,
    RefreshCallback,
)
from gcontact_labels.membership.labeling import LabelingService
from gcontact_labels.membership.models import (
    Contact,
    ContactEmail,
    Group,
    GroupId,
    Operation,
    SelectionMap,
)
from gcontact_labels.membership.planner import plan_operations
from gcontact_labels.utils.logging import get_apply_logger

logger = logging.getLogger(__name__)


class MembershipSession:
    """
    Owns the membership map of one view over a selection of addresses.

    The map is only maintained while the session is open: opening builds it
    from scratch, input changes rebuild it (discarding toggles) and closing
    drops it. Input changes made while closed are stored and picked up by
    the next open().

    While an apply is in flight, toggles, input changes and a second apply
    are rejected with ApplyInProgressError.

    Usage:
        session = MembershipSession(
            groups, selection, contacts,
            labeling_service=service,
            resolver=ask_user,
            on_refresh=reload_contacts,
            on_notify=show_count,
        )
        session.open()
        session.toggle("contactGroups/work", True)
        await session.apply()
    """

    def __init__(
        self,
        groups: Sequence[Group],
        selection: Sequence[ContactEmail],
        contacts: Sequence[Contact],
        labeling_service: LabelingService,
        resolver: DuplicateEmailResolver,
        on_refresh: RefreshCallback | None = None,
        on_notify: NotifyCallback | None = None,
        on_create_group: Callable[[], None] | None = None,
        executor: ApplyExecutor | None = None,
    ):
        self.groups = list(groups)
        self.selection = list(selection)
        self.contacts = list(contacts)
        self.resolver = resolver
        self.on_create_group = on_create_group
        self.executor = executor or ApplyExecutor(
            labeling_service, on_refresh=on_refresh, on_notify=on_notify
        )
        self._selection_map: SelectionMap = {}
        self._is_open = False
        self._applying = False

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def applying(self) -> bool:
        """True from the start of apply() until it returns or raises."""
        return self._applying or self.executor.in_flight

    @property
    def selection_map(self) -> SelectionMap:
        """Copy of the current membership map."""
        return dict(self._selection_map)

    def _guard(self, action: str) -> None:
        if self.applying:
            raise ApplyInProgressError(f"Cannot {action} while an apply is in progress")

    def _rebuild(self) -> None:
        self._selection_map = build_selection_map(self.groups, self.selection)
        logger.debug(
            f"Built membership map: {len(self._selection_map)} group(s), "
            f"{len(self.selection)} selected email(s)"
        )

    def open(self) -> None:
        """Open the view and build the membership map from current inputs."""
        self._guard("open the session")
        self._is_open = True
        self._rebuild()

    def close(self) -> None:
        """Close the view and discard the membership map."""
        self._guard("close the session")
        self._is_open = False
        self._selection_map = {}

    def update_inputs(
        self,
        groups: Sequence[Group] | None = None,
        selection: Sequence[ContactEmail] | None = None,
        contacts: Sequence[Contact] | None = None,
    ) -> None:
        """
        Replace any of the session inputs.

        If the groups or the selection change while open, the map is rebuilt
        and pending toggles are lost.
        """
        self._guard("change the selection")

        if contacts is not None:
            self.contacts = list(contacts)

        changed = False
        if groups is not None:
            self.groups = list(groups)
            changed = True
        if selection is not None:
            self.selection = list(selection)
            changed = True

        if changed and self._is_open:
            self._rebuild()

    def toggle(self, group_id: GroupId, checked: bool) -> None:
        """
        Explicitly check or uncheck a group.

        Raises:
            UnknownGroupError: If the group is not part of the current map
            ApplyInProgressError: If an apply is in flight
        """
        self._guard("edit groups")
        if group_id not in self._selection_map:
            raise UnknownGroupError(f"Group not in current selection: {group_id}")
        self._selection_map = toggle(self._selection_map, group_id, checked)

    def request_create_group(self) -> None:
        """Hand over to the external group-creation flow and close the view."""
        if self.on_create_group is not None:
            self.on_create_group()
        self.close()

    async def preview(self) -> tuple[list[ContactEmail], list[Operation]]:
        """
        Disambiguate and plan without issuing any labeling call.

        Returns:
            Tuple of (active selection, planned operations)

        Raises:
            DisambiguationCancelled: If the user dismissed the resolver prompt
        """
        active_selection = await disambiguate(
            self.selection, self.contacts, self.resolver
        )
        return active_selection, plan_operations(self._selection_map, active_selection)

    async def apply(self) -> list[Operation]:
        """
        Run the apply flow: disambiguate, plan, execute.

        On success the session is closed. On failure it stays open with the
        user's toggles intact so that the caller can retry; a retry plans
        again from the current inputs.

        Returns:
            The operations that were issued

        Raises:
            ApplyInProgressError: If another apply is in flight
            DisambiguationCancelled: If the user dismissed the resolver prompt;
                no labeling call has been made
            LabelingServiceError: If a labeling call failed
        """
        self._guard("apply")
        self._applying = True
        try:
            active_selection, operations = await self.preview()

            apply_logger = get_apply_logger()
            for group_id, state in self._selection_map.items():
                apply_logger.debug(f"Group {group_id}: {state.value}")
            for operation in operations:
                apply_logger.info(f"Planned: {operation}")

            await self.executor.apply(
                operations, considered_count=len(self._selection_map)
            )
        finally:
            self._applying = False

        self.close()
        return operations
