"""
Google People API wrapper for contact group labeling.

Provides a high-level interface to the Google People API for:
- Listing contacts with their email addresses and group memberships
- Listing and creating contact groups
- Adding and removing contact group members
- Exponential backoff retry logic for rate limits
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

import google_auth_httplib2
import httplib2
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from gcontact_labels.membership.models import Contact

# Person fields needed to build the membership model
PERSON_FIELDS = ",".join(
    [
        "names",
        "emailAddresses",
        "memberships",
    ]
)

# Group fields to request when listing groups
GROUP_FIELDS = "name,groupType,memberCount,clientData,metadata"

# Maximum number of items per page when listing
DEFAULT_PAGE_SIZE = 100

# Maximum resource names per contactGroups.members.modify call
MAX_MODIFY_MEMBERS = 1000

# Retry configuration defaults
DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_RETRY_DELAY = 1.0  # seconds
DEFAULT_MAX_RETRY_DELAY = 60.0  # seconds

logger = logging.getLogger(__name__)


class PeopleAPIError(Exception):
    """Raised when a People API operation fails."""

    pass


class RateLimitError(PeopleAPIError):
    """Raised when rate limit is exceeded and retries are exhausted."""

    pass


def _http_status(error: PeopleAPIError) -> int | None:
    """Return the HTTP status of the HttpError behind a PeopleAPIError, if any."""
    cause = error.__cause__
    if isinstance(cause, HttpError):
        return int(cause.resp.status)
    return None


class PeopleAPI:
    """
    Google People API wrapper for contact group operations.

    Attributes:
        credentials: Google OAuth2 credentials
        service: Google API service object

    Usage:
        api = PeopleAPI(credentials)

        # List contacts with their emails and memberships
        contacts = api.list_contacts()

        # List contact groups
        groups = api.list_contact_groups()

        # Add contacts to a group
        api.modify_group_members(
            "contactGroups/abc123", add_resource_names=["people/c1"]
        )
    """

    def __init__(
        self,
        credentials: Credentials,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_retry_delay: float = DEFAULT_INITIAL_RETRY_DELAY,
        max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
    ):
        """
        Initialize the People API wrapper.

        Args:
            credentials: Valid Google OAuth2 credentials with contacts scope
            page_size: Number of items per page when listing (default 100)
            max_retries: Maximum retry attempts for failed API calls (default 5)
            initial_retry_delay: Initial backoff delay in seconds (default 1.0)
            max_retry_delay: Maximum backoff delay in seconds (default 60.0)
        """
        self.credentials = credentials
        self.page_size = min(page_size, 1000)  # API max is 1000
        self.max_retries = max_retries
        self.initial_retry_delay = initial_retry_delay
        self.max_retry_delay = max_retry_delay
        self._service = None
        self._service_lock = threading.Lock()

    @property
    def service(self) -> Any:
        """
        Get or create the Google API service object.

        Raises:
            PeopleAPIError: If service cannot be created
        """
        with self._service_lock:
            if self._service is None:
                try:
                    self._service = build(
                        "people",
                        "v1",
                        credentials=self.credentials,
                        cache_discovery=False,
                    )
                    logger.debug("Created People API service")
                except Exception as e:
                    logger.error(f"Failed to create People API service: {e}")
                    raise PeopleAPIError(f"Failed to create API service: {e}") from e
            return self._service

    def _new_http(self) -> google_auth_httplib2.AuthorizedHttp:
        """
        Create an authorized transport for a single request.

        httplib2.Http must not be shared between threads, and requests run
        in worker threads.
        """
        return google_auth_httplib2.AuthorizedHttp(
            self.credentials, http=httplib2.Http()
        )

    def _retry_with_backoff(
        self, operation: Callable[[], Any], operation_name: str
    ) -> Any:
        """
        Execute an operation with exponential backoff retry.

        Args:
            operation: Callable to execute
            operation_name: Name for logging purposes

        Returns:
            Result of the operation

        Raises:
            RateLimitError: If retries are exhausted due to rate limits
            PeopleAPIError: For other API errors
        """
        delay = self.initial_retry_delay

        for attempt in range(self.max_retries):
            try:
                return operation()

            except HttpError as e:
                status_code = e.resp.status

                # Rate limit or quota exceeded - retry with backoff
                if status_code in (429, 403):
                    if attempt < self.max_retries - 1:
                        logger.warning(
                            f"{operation_name} rate limited, retrying in "
                            f"{delay:.1f}s (attempt {attempt + 1}/{self.max_retries})"
                        )
                        time.sleep(delay)
                        delay = min(delay * 2, self.max_retry_delay)
                        continue
                    raise RateLimitError(
                        f"Rate limit exceeded for {operation_name} "
                        f"after {self.max_retries} retries"
                    ) from e

                # Server error - retry with backoff
                if status_code >= 500 and attempt < self.max_retries - 1:
                    logger.warning(
                        f"{operation_name} server error ({status_code}), "
                        f"retrying in {delay:.1f}s"
                    )
                    time.sleep(delay)
                    delay = min(delay * 2, self.max_retry_delay)
                    continue

                logger.error(f"{operation_name} failed with status {status_code}: {e}")
                raise PeopleAPIError(f"{operation_name} failed: {e}") from e

        raise PeopleAPIError(f"{operation_name} failed after all retries")

    def list_contacts(self) -> list[Contact]:
        """
        List all contacts with their email addresses and group memberships.

        Returns:
            List of Contact objects

        Raises:
            PeopleAPIError: If listing fails
            RateLimitError: If rate limit exceeded
        """
        logger.debug("Listing contacts")

        contacts: list[Contact] = []
        page_token: str | None = None

        while True:
            params: dict[str, Any] = {
                "resourceName": "people/me",
                "personFields": PERSON_FIELDS,
                "pageSize": self.page_size,
            }

            if page_token:
                params["pageToken"] = page_token

            def execute_list(p: dict[str, Any] = params) -> Any:
                request = self.service.people().connections().list(**p)
                return request.execute(http=self._new_http())

            response = self._retry_with_backoff(execute_list, "list_contacts")

            for person in response.get("connections", []):
                try:
                    contacts.append(Contact.from_api_response(person))
                except (KeyError, TypeError, AttributeError) as e:
                    logger.warning(f"Failed to parse contact: {e}")
                    continue

            page_token = response.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"Listed {len(contacts)} contacts")
        return contacts

    def list_contact_groups(self) -> list[dict[str, Any]]:
        """
        List all contact groups for the authenticated user.

        Returns both user-created groups and system groups (myContacts,
        starred); system groups can be identified by their groupType field.

        Returns:
            List of contactGroup resource dicts

        Raises:
            PeopleAPIError: If listing fails
            RateLimitError: If rate limit exceeded
        """
        logger.debug("Listing contact groups")

        groups: list[dict[str, Any]] = []
        page_token: str | None = None

        while True:
            params: dict[str, Any] = {
                "pageSize": self.page_size,
                "groupFields": GROUP_FIELDS,
            }

            if page_token:
                params["pageToken"] = page_token

            def execute_list(p: dict[str, Any] = params) -> Any:
                request = self.service.contactGroups().list(**p)
                return request.execute(http=self._new_http())

            response = self._retry_with_backoff(execute_list, "list_contact_groups")

            groups.extend(
                g
                for g in response.get("contactGroups", [])
                if not g.get("metadata", {}).get("deleted", False)
            )

            page_token = response.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"Listed {len(groups)} contact groups")
        return groups

    def create_contact_group(self, name: str) -> dict[str, Any]:
        """
        Create a new contact group.

        Args:
            name: Name for the new contact group

        Returns:
            Created contact group dict from API

        Raises:
            PeopleAPIError: If creation fails (e.g., 409 if name already exists)
        """
        logger.debug(f"Creating contact group: {name}")

        body = {"contactGroup": {"name": name}}

        def execute_create() -> Any:
            request = self.service.contactGroups().create(body=body)
            return request.execute(http=self._new_http())

        try:
            response = self._retry_with_backoff(
                execute_create, f"create_contact_group({name})"
            )
        except PeopleAPIError as e:
            if _http_status(e) == 409:
                raise PeopleAPIError(
                    f"Contact group with name '{name}' already exists"
                ) from e
            raise

        logger.info(f"Created contact group: {response.get('resourceName')} ({name})")
        return dict(response)

    def modify_group_members(
        self,
        resource_name: str,
        add_resource_names: list[str] | None = None,
        remove_resource_names: list[str] | None = None,
    ) -> dict[str, Any]:
        """
        Modify the members of a contact group.

        Args:
            resource_name: Group's resource name (e.g., "contactGroups/abc123")
            add_resource_names: Contact resource names to add to the group
            remove_resource_names: Contact resource names to remove from the group

        Returns:
            Dict with 'canNotRemoveLastContactGroupResourceNames' and
            'notFoundResourceNames' lists, when the API reports them

        Raises:
            PeopleAPIError: If modification fails (e.g., 404 group not found)
            ValueError: If both lists are empty or either exceeds 1000 entries

        Note:
            System groups other than starred cannot be modified.
        """
        if not add_resource_names and not remove_resource_names:
            raise ValueError(
                "At least one of add_resource_names or remove_resource_names "
                "must be provided"
            )

        add_count = len(add_resource_names) if add_resource_names else 0
        remove_count = len(remove_resource_names) if remove_resource_names else 0
        if max(add_count, remove_count) > MAX_MODIFY_MEMBERS:
            raise ValueError(
                f"At most {MAX_MODIFY_MEMBERS} members can be modified per call"
            )

        logger.debug(
            f"Modifying group members for {resource_name}: "
            f"adding {add_count}, removing {remove_count}"
        )

        body: dict[str, Any] = {}
        if add_resource_names:
            body["resourceNamesToAdd"] = add_resource_names
        if remove_resource_names:
            body["resourceNamesToRemove"] = remove_resource_names

        def execute_modify() -> Any:
            return (
                self.service.contactGroups()
                .members()
                .modify(resourceName=resource_name, body=body)
                .execute(http=self._new_http())
            )

        try:
            response = self._retry_with_backoff(
                execute_modify, f"modify_group_members({resource_name})"
            )
        except PeopleAPIError as e:
            if _http_status(e) == 404:
                raise PeopleAPIError(f"Contact group not found: {resource_name}") from e
            raise

        logger.info(
            f"Modified group members for {resource_name}: "
            f"added {add_count}, removed {remove_count}"
        )
        return dict(response or {})
