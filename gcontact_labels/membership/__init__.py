"""
gcontact_labels.membership - Membership reconciliation engine

Builds the tri-state membership of contact groups over selected email
addresses, resolves contacts with several selected addresses and applies
the minimal batch of label additions and removals.
"""

from gcontact_labels.membership.builder import build_selection_map
from gcontact_labels.membership.disambiguation import (
    DuplicateEmailResolver,
    collect_duplicate_contacts,
    disambiguate,
)
from gcontact_labels.membership.editor import toggle
from gcontact_labels.membership.errors import (
    ApplyInProgressError,
    DisambiguationCancelled,
    LabelingServiceError,
    MembershipError,
    UnknownContactError,
    UnknownGroupError,
)
from gcontact_labels.membership.executor import ApplyExecutor
from gcontact_labels.membership.labeling import LabelingService
from gcontact_labels.membership.models import (
    Contact,
    ContactEmail,
    Group,
    MembershipState,
    Operation,
    OperationKind,
    SelectionMap,
)
from gcontact_labels.membership.planner import plan_operations
from gcontact_labels.membership.session import MembershipSession

__all__ = [
    "ApplyExecutor",
    "ApplyInProgressError",
    "Contact",
    "ContactEmail",
    "DisambiguationCancelled",
    "DuplicateEmailResolver",
    "Group",
    "LabelingService",
    "LabelingServiceError",
    "MembershipError",
    "MembershipSession",
    "MembershipState",
    "Operation",
    "OperationKind",
    "SelectionMap",
    "UnknownContactError",
    "UnknownGroupError",
    "build_selection_map",
    "collect_duplicate_contacts",
    "disambiguate",
    "plan_operations",
    "toggle",
]
