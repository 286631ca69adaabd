"""
Unit tests for the People API module.

Tests the PeopleAPI class for contact and group operations with mocked
Google API responses.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest
from googleapiclient.errors import HttpError

from gcontact_labels.api.people_api import (
    DEFAULT_INITIAL_RETRY_DELAY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY,
    DEFAULT_PAGE_SIZE,
    GROUP_FIELDS,
    MAX_MODIFY_MEMBERS,
    PERSON_FIELDS,
    PeopleAPI,
    PeopleAPIError,
    RateLimitError,
)
from gcontact_labels.membership.models import Contact


def make_http_error(status):
    """Create an HttpError with the given status code."""
    mock_resp = MagicMock()
    mock_resp.status = status
    return HttpError(mock_resp, b"error")


@pytest.fixture
def api():
    """Create a PeopleAPI instance with mocked service."""
    mock_creds = MagicMock()
    api = PeopleAPI(mock_creds)
    api._service = MagicMock()
    return api


class TestPeopleAPIInitialization:
    """Tests for PeopleAPI initialization."""

    def test_init_with_credentials(self):
        """Test initialization with credentials."""
        mock_creds = MagicMock()
        api = PeopleAPI(mock_creds)

        assert api.credentials == mock_creds
        assert api.page_size == DEFAULT_PAGE_SIZE
        assert api.max_retries == DEFAULT_MAX_RETRIES
        assert api._service is None

    def test_init_page_size_capped_at_1000(self):
        """Test that page size is capped at 1000."""
        api = PeopleAPI(MagicMock(), page_size=2000)
        assert api.page_size == 1000

    def test_init_with_retry_options(self):
        """Test initialization with custom retry settings."""
        api = PeopleAPI(
            MagicMock(), max_retries=2, initial_retry_delay=0.5, max_retry_delay=4.0
        )

        assert api.max_retries == 2
        assert api.initial_retry_delay == 0.5
        assert api.max_retry_delay == 4.0


class TestPeopleAPIService:
    """Tests for the service property."""

    @patch("gcontact_labels.api.people_api.build")
    def test_service_creates_on_first_access(self, mock_build):
        """Test that service is created on first access."""
        mock_creds = MagicMock()
        mock_service = MagicMock()
        mock_build.return_value = mock_service

        api = PeopleAPI(mock_creds)
        service = api.service

        mock_build.assert_called_once_with(
            "people", "v1", credentials=mock_creds, cache_discovery=False
        )
        assert service == mock_service

    @patch("gcontact_labels.api.people_api.build")
    def test_service_cached(self, mock_build):
        """Test that service is cached after first access."""
        api = PeopleAPI(MagicMock())

        assert api.service is api.service
        mock_build.assert_called_once()

    @patch("gcontact_labels.api.people_api.build")
    def test_service_creation_failure_raises_error(self, mock_build):
        """Test that service creation failure raises PeopleAPIError."""
        mock_build.side_effect = Exception("Connection failed")
        api = PeopleAPI(MagicMock())

        with pytest.raises(PeopleAPIError, match="Failed to create API service"):
            _ = api.service

    @patch("gcontact_labels.api.people_api.build")
    def test_concurrent_access_builds_once(self, mock_build):
        """Test that threads racing on first access share one service."""

        def slow_build(*args, **kwargs):
            time.sleep(0.05)
            return MagicMock()

        mock_build.side_effect = slow_build
        api = PeopleAPI(MagicMock())

        with ThreadPoolExecutor(max_workers=4) as pool:
            services = list(pool.map(lambda _: api.service, range(4)))

        mock_build.assert_called_once()
        assert all(service is services[0] for service in services)


class TestRequestTransport:
    """Tests for the per-request HTTP transport."""

    @patch("gcontact_labels.api.people_api.google_auth_httplib2.AuthorizedHttp")
    def test_transport_wraps_credentials(self, mock_authorized_http, api):
        """Test that each transport is authorized with the API credentials."""
        api._new_http()

        assert mock_authorized_http.call_args.args == (api.credentials,)
        assert "http" in mock_authorized_http.call_args.kwargs

    @patch("gcontact_labels.api.people_api.google_auth_httplib2.AuthorizedHttp")
    def test_modify_calls_use_separate_transports(self, mock_authorized_http, api):
        """Test that two modify calls never execute on the same Http object."""
        mock_authorized_http.side_effect = lambda *args, **kwargs: MagicMock()
        execute = api._service.contactGroups().members().modify().execute
        execute.return_value = {}

        api.modify_group_members("contactGroups/g1", ["people/c1"])
        api.modify_group_members("contactGroups/g2", ["people/c2"])

        first, second = execute.call_args_list
        assert first.kwargs["http"] is not second.kwargs["http"]

    @patch("gcontact_labels.api.people_api.google_auth_httplib2.AuthorizedHttp")
    def test_list_calls_pass_transport(self, mock_authorized_http, api):
        """Test that listing requests are executed on a fresh transport."""
        execute = api._service.contactGroups().list().execute
        execute.return_value = {"contactGroups": []}

        api.list_contact_groups()

        assert execute.call_args.kwargs["http"] is mock_authorized_http.return_value


class TestRetryWithBackoff:
    """Tests for the retry with backoff mechanism."""

    def test_successful_operation_returns_result(self, api):
        """Test that successful operation returns result immediately."""
        result = api._retry_with_backoff(lambda: {"result": "success"}, "test")
        assert result == {"result": "success"}

    @patch("time.sleep")
    def test_rate_limit_retries_with_backoff(self, mock_sleep, api):
        """Test that rate limit errors trigger retries with backoff."""
        call_count = [0]

        def operation():
            call_count[0] += 1
            if call_count[0] < 3:
                raise make_http_error(429)
            return {"result": "success"}

        result = api._retry_with_backoff(operation, "test_operation")

        assert result == {"result": "success"}
        assert call_count[0] == 3
        assert mock_sleep.call_count == 2

    @patch("time.sleep")
    def test_rate_limit_exhausted_raises_error(self, mock_sleep, api):
        """Test that exhausted retries on rate limit raises RateLimitError."""

        def operation():
            raise make_http_error(429)

        with pytest.raises(RateLimitError, match="Rate limit exceeded"):
            api._retry_with_backoff(operation, "test_operation")

        assert mock_sleep.call_count == DEFAULT_MAX_RETRIES - 1

    @patch("time.sleep")
    def test_403_triggers_retry(self, mock_sleep, api):
        """Test that 403 errors trigger retries (quota exceeded)."""
        call_count = [0]

        def operation():
            call_count[0] += 1
            if call_count[0] < 2:
                raise make_http_error(403)
            return "ok"

        assert api._retry_with_backoff(operation, "test_operation") == "ok"

    @patch("time.sleep")
    def test_server_error_retries(self, mock_sleep, api):
        """Test that 5xx server errors trigger retries."""
        call_count = [0]

        def operation():
            call_count[0] += 1
            if call_count[0] < 2:
                raise make_http_error(503)
            return "ok"

        assert api._retry_with_backoff(operation, "test_operation") == "ok"
        assert call_count[0] == 2

    def test_client_error_does_not_retry(self, api):
        """Test that 4xx client errors (except 429, 403) don't retry."""
        call_count = [0]

        def operation():
            call_count[0] += 1
            raise make_http_error(400)

        with pytest.raises(PeopleAPIError, match="test_operation failed"):
            api._retry_with_backoff(operation, "test_operation")

        assert call_count[0] == 1

    @patch("time.sleep")
    def test_backoff_delay_doubles(self, mock_sleep, api):
        """Test that backoff delay doubles with each retry."""
        call_count = [0]

        def operation():
            call_count[0] += 1
            if call_count[0] < 4:
                raise make_http_error(429)
            return "ok"

        api._retry_with_backoff(operation, "test_operation")

        delays = [c[0][0] for c in mock_sleep.call_args_list]
        assert delays == [
            DEFAULT_INITIAL_RETRY_DELAY,
            DEFAULT_INITIAL_RETRY_DELAY * 2,
            DEFAULT_INITIAL_RETRY_DELAY * 4,
        ]

    @patch("time.sleep")
    def test_backoff_capped_at_max(self, mock_sleep):
        """Test that backoff delay is capped at the configured maximum."""
        api = PeopleAPI(
            MagicMock(), max_retries=6, initial_retry_delay=1.0, max_retry_delay=3.0
        )
        api._service = MagicMock()

        def operation():
            raise make_http_error(429)

        with pytest.raises(RateLimitError):
            api._retry_with_backoff(operation, "test_operation")

        delays = [c[0][0] for c in mock_sleep.call_args_list]
        assert delays == [1.0, 2.0, 3.0, 3.0, 3.0]
        assert max(delays) <= DEFAULT_MAX_RETRY_DELAY


class TestListContacts:
    """Tests for list_contacts method."""

    def test_list_contacts_empty_result(self, api):
        """Test list_contacts with empty response."""
        api._service.people().connections().list().execute.return_value = {}

        assert api.list_contacts() == []

    def test_list_contacts_returns_contacts(self, api):
        """Test list_contacts returns parsed Contact objects."""
        api._service.people().connections().list().execute.return_value = {
            "connections": [
                {
                    "resourceName": "people/c1",
                    "names": [{"displayName": "Ann"}],
                    "emailAddresses": [{"value": "ann@example.com"}],
                    "memberships": [
                        {
                            "contactGroupMembership": {
                                "contactGroupResourceName": "contactGroups/work"
                            }
                        }
                    ],
                }
            ]
        }

        contacts = api.list_contacts()

        assert len(contacts) == 1
        assert isinstance(contacts[0], Contact)
        assert contacts[0].emails == ["ann@example.com"]
        assert contacts[0].group_ids == frozenset({"contactGroups/work"})

    def test_list_contacts_requests_membership_fields(self, api):
        """Test that the request asks for emails and memberships."""
        list_mock = api._service.people().connections().list
        list_mock.return_value.execute.return_value = {}

        api.list_contacts()

        kwargs = list_mock.call_args.kwargs
        assert kwargs["resourceName"] == "people/me"
        assert kwargs["personFields"] == PERSON_FIELDS
        assert kwargs["pageSize"] == DEFAULT_PAGE_SIZE

    def test_list_contacts_with_pagination(self, api):
        """Test that every page is fetched."""
        api._service.people().connections().list().execute.side_effect = [
            {"connections": [{"resourceName": "people/c1"}], "nextPageToken": "p2"},
            {"connections": [{"resourceName": "people/c2"}]},
        ]

        contacts = api.list_contacts()

        assert [c.id for c in contacts] == ["people/c1", "people/c2"]
        last_kwargs = api._service.people().connections().list.call_args.kwargs
        assert last_kwargs["pageToken"] == "p2"

    def test_list_contacts_skips_invalid_contacts(self, api):
        """Test that unparseable entries are skipped."""
        api._service.people().connections().list().execute.return_value = {
            "connections": [
                {"resourceName": "people/c1", "names": "not-a-list"},
                {"resourceName": "people/c2"},
            ]
        }

        contacts = api.list_contacts()

        assert [c.id for c in contacts] == ["people/c2"]


class TestListContactGroups:
    """Tests for list_contact_groups method."""

    def test_returns_groups(self, api):
        """Test that group resources are returned as dicts."""
        api._service.contactGroups().list().execute.return_value = {
            "contactGroups": [
                {"resourceName": "contactGroups/a", "name": "A"},
                {"resourceName": "contactGroups/myContacts", "name": "myContacts"},
            ]
        }

        groups = api.list_contact_groups()

        assert [g["resourceName"] for g in groups] == [
            "contactGroups/a",
            "contactGroups/myContacts",
        ]

    def test_skips_deleted_groups(self, api):
        """Test that groups flagged deleted are dropped."""
        api._service.contactGroups().list().execute.return_value = {
            "contactGroups": [
                {"resourceName": "contactGroups/a", "metadata": {"deleted": True}},
                {"resourceName": "contactGroups/b", "metadata": {}},
            ]
        }

        groups = api.list_contact_groups()

        assert [g["resourceName"] for g in groups] == ["contactGroups/b"]

    def test_requests_group_fields(self, api):
        """Test that the request asks for the needed group fields."""
        list_mock = api._service.contactGroups().list
        list_mock.return_value.execute.return_value = {}

        api.list_contact_groups()

        assert list_mock.call_args.kwargs["groupFields"] == GROUP_FIELDS

    def test_pagination(self, api):
        """Test that every page of groups is fetched."""
        api._service.contactGroups().list().execute.side_effect = [
            {
                "contactGroups": [{"resourceName": "contactGroups/a"}],
                "nextPageToken": "t",
            },
            {"contactGroups": [{"resourceName": "contactGroups/b"}]},
        ]

        assert len(api.list_contact_groups()) == 2


class TestCreateContactGroup:
    """Tests for create_contact_group method."""

    def test_create_returns_group(self, api):
        """Test that the created group is returned."""
        api._service.contactGroups().create().execute.return_value = {
            "resourceName": "contactGroups/new",
            "name": "Work",
        }

        result = api.create_contact_group("Work")

        assert result["resourceName"] == "contactGroups/new"
        api._service.contactGroups().create.assert_called_with(
            body={"contactGroup": {"name": "Work"}}
        )

    def test_create_duplicate_name(self, api):
        """Test that a 409 conflict is reported as an existing group."""
        api._service.contactGroups().create().execute.side_effect = make_http_error(
            409
        )

        with pytest.raises(PeopleAPIError, match="already exists"):
            api.create_contact_group("Work")


class TestModifyGroupMembers:
    """Tests for modify_group_members method."""

    def _modify_mock(self, api):
        return api._service.contactGroups().members().modify

    def test_add_members(self, api):
        """Test that contacts to add are sent in the body."""
        self._modify_mock(api).return_value.execute.return_value = {}

        result = api.modify_group_members(
            "contactGroups/g1", add_resource_names=["people/c1"]
        )

        assert result == {}
        self._modify_mock(api).assert_called_with(
            resourceName="contactGroups/g1",
            body={"resourceNamesToAdd": ["people/c1"]},
        )

    def test_remove_members(self, api):
        """Test that contacts to remove are sent in the body."""
        self._modify_mock(api).return_value.execute.return_value = {
            "notFoundResourceNames": ["people/c9"]
        }

        result = api.modify_group_members(
            "contactGroups/g1", remove_resource_names=["people/c1", "people/c9"]
        )

        assert result == {"notFoundResourceNames": ["people/c9"]}
        self._modify_mock(api).assert_called_with(
            resourceName="contactGroups/g1",
            body={"resourceNamesToRemove": ["people/c1", "people/c9"]},
        )

    def test_empty_response_returns_empty_dict(self, api):
        """Test that a None body from the API becomes an empty dict."""
        self._modify_mock(api).return_value.execute.return_value = None

        assert api.modify_group_members("contactGroups/g1", ["people/c1"]) == {}

    def test_nothing_to_modify_raises(self, api):
        """Test that a call without members is rejected."""
        with pytest.raises(ValueError, match="At least one"):
            api.modify_group_members("contactGroups/g1")

    def test_too_many_members_raises(self, api):
        """Test that the per-call limit is enforced."""
        names = [f"people/c{i}" for i in range(MAX_MODIFY_MEMBERS + 1)]

        with pytest.raises(ValueError, match="At most"):
            api.modify_group_members("contactGroups/g1", add_resource_names=names)

    def test_group_not_found(self, api):
        """Test that a 404 is reported as a missing group."""
        self._modify_mock(api).return_value.execute.side_effect = make_http_error(404)

        with pytest.raises(PeopleAPIError, match="Contact group not found"):
            api.modify_group_members("contactGroups/gone", ["people/c1"])

    @patch("time.sleep")
    def test_rate_limit_exhausted(self, mock_sleep, api):
        """Test that exhausted retries surface as RateLimitError."""
        self._modify_mock(api).return_value.execute.side_effect = make_http_error(429)

        with pytest.raises(RateLimitError):
            api.modify_group_members("contactGroups/g1", ["people/c1"])


class TestExceptionClasses:
    """Tests for custom exception classes."""

    def test_rate_limit_error_is_people_api_error(self):
        """Test that RateLimitError inherits from PeopleAPIError."""
        assert issubclass(RateLimitError, PeopleAPIError)

    def test_people_api_error_with_message(self):
        """Test PeopleAPIError with custom message."""
        assert str(PeopleAPIError("Custom error")) == "Custom error"


class TestModuleConstants:
    """Tests for module-level constants."""

    def test_person_fields_includes_required_fields(self):
        """Test that PERSON_FIELDS includes what the membership model needs."""
        for field in ("names", "emailAddresses", "memberships"):
            assert field in PERSON_FIELDS

    def test_group_fields(self):
        """Test that GROUP_FIELDS includes type and metadata."""
        assert "groupType" in GROUP_FIELDS
        assert "metadata" in GROUP_FIELDS
