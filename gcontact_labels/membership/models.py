"""
Data model for contact group membership reconciliation.

Provides the value types shared by the membership engine:
- Group: a contact group (label) as listed by the People API
- Contact / ContactEmail: a contact and the individual addresses it owns
- MembershipState: tri-state aggregate membership of a group over a selection
- Operation: one add/remove call against the labeling service
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Group types as defined by Google People API
GROUP_TYPE_UNSPECIFIED = "GROUP_TYPE_UNSPECIFIED"
GROUP_TYPE_USER_CONTACT_GROUP = "USER_CONTACT_GROUP"
GROUP_TYPE_SYSTEM_CONTACT_GROUP = "SYSTEM_CONTACT_GROUP"

# System group resource names (membership is managed by Google)
SYSTEM_GROUP_NAMES = frozenset(
    {
        "contactGroups/myContacts",
        "contactGroups/starred",
        "contactGroups/all",
        "contactGroups/friends",
        "contactGroups/family",
        "contactGroups/coworkers",
    }
)

# Separator between a person resource name and the address index in email ids
EMAIL_ID_SEPARATOR = "#"

GroupId = str
EmailId = str
ContactId = str


class MembershipState(Enum):
    """Aggregate membership of one group over the selected addresses."""

    UNCHECKED = "unchecked"  # no selected address is in the group
    CHECKED = "checked"  # every selected address is in the group
    INDETERMINATE = "indeterminate"  # some, but not all


class OperationKind(str, Enum):
    """Kind of labeling call."""

    ADD = "add"
    REMOVE = "remove"


SelectionMap = dict[GroupId, MembershipState]


@dataclass(frozen=True)
class Group:
    """
    Contact group (label) as seen by the membership engine.

    Groups are owned by the People API; the engine never modifies them.

    Attributes:
        id: Group resource name (e.g., "contactGroups/123abc")
        name: Display name of the group
        color: Display color, if the backend provides one
        group_type: USER_CONTACT_GROUP or SYSTEM_CONTACT_GROUP
        member_count: Number of contacts in the group (from API)
    """

    id: GroupId
    name: str
    color: str | None = None
    group_type: str = GROUP_TYPE_USER_CONTACT_GROUP
    member_count: int = 0

    @classmethod
    def from_api_response(cls, group_data: dict[str, Any]) -> Group:
        """
        Create a Group from a Google People API contactGroups resource.

        Example API response structure::

            {
                'resourceName': 'contactGroups/123abc',
                'etag': 'xyz789',
                'name': 'My Custom Group',
                'formattedName': 'My Custom Group',
                'groupType': 'USER_CONTACT_GROUP',
                'memberCount': 5,
                'clientData': [{'key': 'color', 'value': '#7272a7'}]
            }
        """
        # formattedName is the localized name for system groups
        name = group_data.get("formattedName") or group_data.get("name", "")

        color = None
        for entry in group_data.get("clientData", []):
            if entry.get("key") == "color":
                color = entry.get("value")
                break

        return cls(
            id=group_data.get("resourceName", ""),
            name=name,
            color=color,
            group_type=group_data.get("groupType", GROUP_TYPE_UNSPECIFIED),
            member_count=group_data.get("memberCount", 0),
        )

    def is_user_group(self) -> bool:
        """Check if this is a user-created contact group."""
        return self.group_type == GROUP_TYPE_USER_CONTACT_GROUP

    def is_system_group(self) -> bool:
        """
        Check if this is a system contact group.

        System groups (myContacts, starred, etc.) are hidden from labeling
        unless explicitly requested.
        """
        return (
            self.group_type == GROUP_TYPE_SYSTEM_CONTACT_GROUP
            or self.id in SYSTEM_GROUP_NAMES
        )


@dataclass(frozen=True)
class ContactEmail:
    """
    One email address belonging to one contact.

    Attributes:
        id: Address identifier, "<person resource name>#<index>" for Google
        contact_id: Resource name of the owning contact
        address: The email address itself
        label_ids: Groups the address belonged to when it was loaded
    """

    id: EmailId
    contact_id: ContactId
    address: str = ""
    label_ids: frozenset[GroupId] = field(default_factory=frozenset)

    def has_label(self, group_id: GroupId) -> bool:
        """Check whether the address currently belongs to the group."""
        return group_id in self.label_ids


def make_email_id(contact_id: ContactId, index: int) -> EmailId:
    """Build the id of the index-th address of a contact."""
    return f"{contact_id}{EMAIL_ID_SEPARATOR}{index}"


def contact_id_from_email_id(email_id: EmailId) -> ContactId:
    """
    Recover the owning contact resource name from an email id.

    Raises:
        ValueError: If the id was not built by make_email_id()
    """
    contact_id, sep, index = email_id.rpartition(EMAIL_ID_SEPARATOR)
    if not sep or not contact_id or not index.isdigit():
        raise ValueError(f"Malformed contact email id: {email_id!r}")
    return contact_id


@dataclass
class Contact:
    """
    Contact record used to correlate addresses of the same person.

    Only ``id`` matters to the membership engine; the remaining fields are
    there to present the contact when asking the user to choose addresses.

    Attributes:
        id: Google's unique ID (e.g., "people/c12345")
        display_name: Full display name of the contact
        emails: Email addresses, in People API order
        group_ids: Resource names of the groups the contact belongs to
    """

    id: ContactId
    display_name: str = ""
    emails: list[str] = field(default_factory=list)
    group_ids: frozenset[GroupId] = field(default_factory=frozenset)

    @classmethod
    def from_api_response(cls, person: dict[str, Any]) -> Contact:
        """
        Create a Contact from a Google People API person resource.

        Example API response structure::

            {
                'resourceName': 'people/c12345',
                'names': [{'displayName': 'John Doe', ...}],
                'emailAddresses': [{'value': 'john@example.com'}],
                'memberships': [
                    {'contactGroupMembership': {
                        'contactGroupResourceName': 'contactGroups/abc'}}
                ]
            }
        """
        names = person.get("names", [{}])
        primary_name = names[0] if names else {}

        display_name = primary_name.get("displayName", "")
        if not display_name:
            parts = [
                p
                for p in (primary_name.get("givenName"), primary_name.get("familyName"))
                if p
            ]
            display_name = " ".join(parts)

        emails = [
            e.get("value", "")
            for e in person.get("emailAddresses", [])
            if e.get("value")
        ]

        group_ids = frozenset(
            m["contactGroupMembership"]["contactGroupResourceName"]
            for m in person.get("memberships", [])
            if m.get("contactGroupMembership", {}).get("contactGroupResourceName")
        )

        return cls(
            id=person.get("resourceName", ""),
            display_name=display_name,
            emails=emails,
            group_ids=group_ids,
        )

    def contact_emails(self) -> Iterator[ContactEmail]:
        """
        Yield one ContactEmail per address of this contact.

        Google stores group membership per contact, so every address carries
        the contact's full set of groups.
        """
        for index, address in enumerate(self.emails):
            yield ContactEmail(
                id=make_email_id(self.id, index),
                contact_id=self.id,
                address=address,
                label_ids=self.group_ids,
            )

    def __repr__(self) -> str:
        """Return a readable string representation."""
        return (
            f"Contact(id={self.id!r}, display_name={self.display_name!r}, "
            f"emails={len(self.emails)})"
        )


@dataclass(frozen=True)
class Operation:
    """
    A single labeling call: add or remove addresses to/from one group.

    Attributes:
        group_id: Target group resource name
        kind: OperationKind.ADD or OperationKind.REMOVE
        email_ids: Addresses affected; never empty
    """

    group_id: GroupId
    kind: OperationKind
    email_ids: tuple[EmailId, ...]

    def __post_init__(self) -> None:
        if not self.email_ids:
            raise ValueError(
                f"Operation on {self.group_id} must affect at least one email"
            )

    def __str__(self) -> str:
        verb = "add to" if self.kind is OperationKind.ADD else "remove from"
        return f"{verb} {self.group_id}: {len(self.email_ids)} email(s)"
