"""
Exceptions raised by the membership engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gcontact_labels.membership.models import Operation


class MembershipError(Exception):
    """Base class for membership engine errors."""

    pass


class DisambiguationCancelled(MembershipError):
    """Raised when the user dismisses the duplicate-address prompt."""

    pass


class LabelingServiceError(MembershipError):
    """
    Raised when an add/remove call against the labeling service fails.

    Calls that already succeeded in the same batch are not rolled back.

    Attributes:
        operation: The operation whose call failed
    """

    def __init__(self, operation: Operation, message: str | None = None):
        self.operation = operation
        super().__init__(message or f"Failed to {operation}")


class ApplyInProgressError(MembershipError):
    """Raised when the session is modified or re-applied during an apply."""

    pass


class UnknownContactError(MembershipError):
    """Raised when a selected address references a contact that is not loaded."""

    pass


class UnknownGroupError(MembershipError):
    """Raised when a group cannot be found among the loaded groups."""

    pass
