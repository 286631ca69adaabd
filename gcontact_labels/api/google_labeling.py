"""
Labeling service backed by Google contact groups.

Google stores group membership per contact rather than per address, so
an add/remove on a set of email ids is turned into one
contactGroups.members.modify call per chunk of owning contacts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from gcontact_labels.api.people_api import (
    MAX_MODIFY_MEMBERS,
    PeopleAPI,
    PeopleAPIError,
)
from gcontact_labels.membership.labeling import LabelingService
from gcontact_labels.membership.models import (
    EmailId,
    GroupId,
    contact_id_from_email_id,
)

logger = logging.getLogger(__name__)


def contacts_for_emails(email_ids: Sequence[EmailId]) -> list[str]:
    """
    Map email ids to the distinct resource names of their contacts.

    Order of first appearance is preserved.

    Raises:
        ValueError: If an email id is malformed
    """
    return list(dict.fromkeys(contact_id_from_email_id(e) for e in email_ids))


def _chunks(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class GooglePeopleLabelingService(LabelingService):
    """Async labeling service delegating to the blocking PeopleAPI.

    Each People API call runs in a worker thread via ``asyncio.to_thread``
    so that the calls of one batch overlap.
    """

    def __init__(self, api: PeopleAPI):
        self.api = api

    async def add_label(self, group_id: GroupId, email_ids: Sequence[EmailId]) -> None:
        resource_names = contacts_for_emails(email_ids)
        for chunk in _chunks(resource_names, MAX_MODIFY_MEMBERS):
            response = await asyncio.to_thread(
                self.api.modify_group_members, group_id, add_resource_names=chunk
            )
            self._check_response(group_id, response)

    async def remove_label(
        self, group_id: GroupId, email_ids: Sequence[EmailId]
    ) -> None:
        resource_names = contacts_for_emails(email_ids)
        for chunk in _chunks(resource_names, MAX_MODIFY_MEMBERS):
            response = await asyncio.to_thread(
                self.api.modify_group_members, group_id, remove_resource_names=chunk
            )
            self._check_response(group_id, response)

    def _check_response(self, group_id: GroupId, response: dict[str, Any]) -> None:
        """
        Inspect a members.modify response.

        Raises:
            PeopleAPIError: If some contacts could not be removed because
                the group is their last one
        """
        not_found = response.get("notFoundResourceNames", [])
        if not_found:
            logger.warning(
                f"{len(not_found)} contact(s) not found while modifying "
                f"{group_id}: {', '.join(not_found)}"
            )

        kept = response.get("canNotRemoveLastContactGroupResourceNames", [])
        if kept:
            raise PeopleAPIError(
                f"Cannot remove {len(kept)} contact(s) from {group_id}: "
                f"it is their last contact group"
            )
