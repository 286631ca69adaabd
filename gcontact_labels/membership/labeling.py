"""
Contract of the external labeling service.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from gcontact_labels.membership.models import EmailId, GroupId


class LabelingService(ABC):
    """Abstract base class for backends that store group membership.

    Implementations raise any exception to signal a failed call; the apply
    executor reports it as LabelingServiceError. Idempotency and retries are
    the backend's concern.
    """

    @abstractmethod
    async def add_label(self, group_id: GroupId, email_ids: Sequence[EmailId]) -> None:
        """Add the given addresses to the group."""
        raise NotImplementedError()

    @abstractmethod
    async def remove_label(
        self, group_id: GroupId, email_ids: Sequence[EmailId]
    ) -> None:
        """Remove the given addresses from the group."""
        raise NotImplementedError()
