"""
Execution of planned label operations against the labeling service.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from gcontact_labels.membership.errors import (
    ApplyInProgressError,
    LabelingServiceError,
)
from gcontact_labels.membership.labeling import LabelingService
from gcontact_labels.membership.models import Operation, OperationKind
from gcontact_labels.utils.logging import get_apply_logger

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[], Awaitable[None]]
NotifyCallback = Callable[[int], None]


class ApplyExecutor:
    """
    Issues a batch of label operations concurrently.

    All calls are dispatched at once and awaited together. The first failure
    is reported immediately; calls already dispatched are neither awaited nor
    undone. On success the refresh collaborator runs, then the notify
    collaborator receives the number of groups that were considered.

    Attributes:
        labeling_service: Backend receiving add/remove calls
        on_refresh: Awaited after a successful batch to resync cached state
        on_notify: Called with the considered group count after refresh

    Usage:
        executor = ApplyExecutor(service, on_refresh=refresh, on_notify=notify)
        await executor.apply(operations, considered_count=len(selection_map))
    """

    def __init__(
        self,
        labeling_service: LabelingService,
        on_refresh: RefreshCallback | None = None,
        on_notify: NotifyCallback | None = None,
    ):
        self.labeling_service = labeling_service
        self.on_refresh = on_refresh
        self.on_notify = on_notify
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        """True while a batch is being applied."""
        return self._in_flight

    async def apply(
        self, operations: Sequence[Operation], considered_count: int
    ) -> None:
        """
        Apply every operation and trigger refresh and notification.

        Args:
            operations: Operations to issue; no ordering is enforced
            considered_count: Number of groups in the membership map,
                including those that produced no operation

        Raises:
            ApplyInProgressError: If another apply is still in flight
            LabelingServiceError: If any labeling call fails
        """
        if self._in_flight:
            raise ApplyInProgressError("An apply is already in progress")

        self._in_flight = True
        try:
            logger.info(f"Applying {len(operations)} label operation(s)")
            await asyncio.gather(*(self._issue(op) for op in operations))

            if self.on_refresh is not None:
                await self.on_refresh()
            if self.on_notify is not None:
                self.on_notify(considered_count)
        finally:
            self._in_flight = False

    async def _issue(self, operation: Operation) -> None:
        """Issue a single operation, converting failures to LabelingServiceError."""
        apply_logger = get_apply_logger()
        apply_logger.debug(f"Issuing: {operation} {list(operation.email_ids)}")

        try:
            if operation.kind is OperationKind.ADD:
                await self.labeling_service.add_label(
                    operation.group_id, operation.email_ids
                )
            else:
                await self.labeling_service.remove_label(
                    operation.group_id, operation.email_ids
                )
        except Exception as e:
            apply_logger.error(f"Failed: {operation}: {e}")
            logger.error(f"Label operation failed ({operation}): {e}")
            raise LabelingServiceError(operation, f"Failed to {operation}: {e}") from e

        apply_logger.info(f"Done: {operation}")
