"""
Unit tests for the authentication module.

Tests the GoogleAuth class for OAuth2 authentication, credential management,
and named profile support.
"""

import json
import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from gcontact_labels.auth.google_auth import (
    DEFAULT_PROFILE,
    SCOPES,
    AuthenticationError,
    GoogleAuth,
)


@pytest.fixture
def auth(tmp_path):
    """Create a GoogleAuth instance with temp config dir."""
    return GoogleAuth(config_dir=tmp_path)


class TestGoogleAuthInitialization:
    """Tests for GoogleAuth initialization."""

    def test_custom_config_dir_via_argument(self, tmp_path):
        """Test that custom config dir can be passed as argument."""
        custom_dir = tmp_path / "custom_config"
        auth = GoogleAuth(config_dir=custom_dir)
        assert auth.config_dir == custom_dir

    def test_config_dir_from_environment_variable(self, tmp_path):
        """Test that config dir can be set via environment variable."""
        env_dir = str(tmp_path / "env_config")
        with patch.dict(os.environ, {"GCONTACT_LABELS_CONFIG_DIR": env_dir}):
            auth = GoogleAuth()
            assert auth.config_dir == Path(env_dir)

    def test_argument_takes_precedence_over_environment(self, tmp_path):
        """Test that explicit argument takes precedence over env variable."""
        arg_dir = tmp_path / "arg_config"
        env_dir = str(tmp_path / "env_config")
        with patch.dict(os.environ, {"GCONTACT_LABELS_CONFIG_DIR": env_dir}):
            auth = GoogleAuth(config_dir=arg_dir)
            assert auth.config_dir == arg_dir

    def test_credentials_path_is_set(self, tmp_path):
        """Test that credentials path is set correctly."""
        auth = GoogleAuth(config_dir=tmp_path)
        assert auth.credentials_path == tmp_path / "credentials.json"

    def test_scopes_allow_contact_writes(self):
        """Test that the full contacts scope is requested."""
        assert "https://www.googleapis.com/auth/contacts" in SCOPES


class TestProfileValidation:
    """Tests for profile name validation."""

    @pytest.mark.parametrize("profile", ["default", "work", "home-2", "a_b"])
    def test_valid_profiles(self, auth, tmp_path, profile):
        """Test that simple names map to token files."""
        assert auth._get_token_path(profile) == tmp_path / f"token_{profile}.json"

    @pytest.mark.parametrize("profile", ["", "../evil", "with space", "-lead", None])
    def test_invalid_profiles(self, auth, profile):
        """Test that unsafe names are rejected."""
        with pytest.raises(ValueError, match="Invalid profile"):
            auth._get_token_path(profile)

    def test_get_credentials_invalid_profile(self, auth):
        """Test get_credentials with invalid profile raises ValueError."""
        with pytest.raises(ValueError, match="Invalid profile"):
            auth.get_credentials("bad/name")


class TestConfigDirCreation:
    """Tests for configuration directory creation."""

    def test_ensure_config_dir_creates_directory(self, tmp_path):
        """Test that _ensure_config_dir creates the directory."""
        config_dir = tmp_path / "new_config"
        auth = GoogleAuth(config_dir=config_dir)

        auth._ensure_config_dir()

        assert config_dir.is_dir()

    def test_ensure_config_dir_sets_permissions(self, tmp_path):
        """Test that config directory has secure permissions."""
        config_dir = tmp_path / "secure_config"
        auth = GoogleAuth(config_dir=config_dir)

        auth._ensure_config_dir()

        assert config_dir.stat().st_mode & 0o777 == 0o700


class TestCredentialLoading:
    """Tests for credential loading from token files."""

    def test_load_credentials_no_file(self, auth):
        """Test loading credentials when token file doesn't exist."""
        assert auth._load_credentials(DEFAULT_PROFILE) is None

    @patch("gcontact_labels.auth.google_auth.Credentials")
    def test_load_credentials_from_file(self, mock_creds_class, auth, tmp_path):
        """Test loading credentials from existing token file."""
        token_path = tmp_path / "token_default.json"
        token_path.write_text(json.dumps({"token": "test_token"}))
        mock_creds = MagicMock()
        mock_creds_class.from_authorized_user_file.return_value = mock_creds

        result = auth._load_credentials(DEFAULT_PROFILE)

        mock_creds_class.from_authorized_user_file.assert_called_once_with(
            str(token_path), SCOPES
        )
        assert result == mock_creds

    def test_load_credentials_invalid_json(self, auth, tmp_path):
        """Test loading credentials from invalid JSON file."""
        (tmp_path / "token_default.json").write_text("invalid json {{{")

        assert auth._load_credentials(DEFAULT_PROFILE) is None


class TestCredentialSaving:
    """Tests for credential saving."""

    def test_save_credentials_creates_file(self, auth, tmp_path):
        """Test that saving credentials creates the profile's token file."""
        mock_creds = MagicMock()
        mock_creds.to_json.return_value = '{"token": "test"}'

        auth._save_credentials("work", mock_creds)

        token_path = tmp_path / "token_work.json"
        assert json.loads(token_path.read_text()) == {"token": "test"}

    def test_save_credentials_stores_email(self, auth, tmp_path):
        """Test that the account email is stored with the token."""
        mock_creds = MagicMock()
        mock_creds.to_json.return_value = '{"token": "test"}'

        auth._save_credentials("work", mock_creds, email="me@example.com")

        data = json.loads((tmp_path / "token_work.json").read_text())
        assert data["email"] == "me@example.com"

    def test_save_credentials_sets_permissions(self, auth, tmp_path):
        """Test that saved token file has secure permissions."""
        mock_creds = MagicMock()
        mock_creds.to_json.return_value = '{"token": "test"}'

        auth._save_credentials(DEFAULT_PROFILE, mock_creds)

        mode = (tmp_path / "token_default.json").stat().st_mode & 0o777
        assert mode == 0o600


class TestCredentialRefresh:
    """Tests for credential refresh."""

    def test_refresh_credentials_no_refresh_token(self, auth):
        """Test refresh returns False when no refresh token available."""
        mock_creds = MagicMock()
        mock_creds.refresh_token = None

        assert auth._refresh_credentials(mock_creds) is False

    @patch("gcontact_labels.auth.google_auth.Request")
    def test_refresh_credentials_success(self, mock_request_class, auth):
        """Test successful credential refresh."""
        mock_creds = MagicMock()
        mock_creds.refresh_token = "refresh_token"

        assert auth._refresh_credentials(mock_creds) is True
        mock_creds.refresh.assert_called_once()

    @patch("gcontact_labels.auth.google_auth.Request")
    def test_refresh_credentials_failure(self, mock_request_class, auth):
        """Test credential refresh failure."""
        from google.auth.exceptions import RefreshError

        mock_creds = MagicMock()
        mock_creds.refresh_token = "refresh_token"
        mock_creds.refresh.side_effect = RefreshError("Refresh failed")

        assert auth._refresh_credentials(mock_creds) is False


class TestGetCredentials:
    """Tests for get_credentials method."""

    def test_get_credentials_no_token_file(self, auth):
        """Test get_credentials returns None when no token file exists."""
        assert auth.get_credentials(DEFAULT_PROFILE) is None

    @patch("gcontact_labels.auth.google_auth.Credentials")
    def test_get_credentials_valid_credentials(self, mock_creds_class, auth, tmp_path):
        """Test get_credentials returns valid credentials."""
        (tmp_path / "token_default.json").write_text('{"token": "test"}')
        mock_creds = MagicMock()
        mock_creds.valid = True
        mock_creds_class.from_authorized_user_file.return_value = mock_creds

        assert auth.get_credentials() == mock_creds

    @patch("gcontact_labels.auth.google_auth.Request")
    @patch("gcontact_labels.auth.google_auth.Credentials")
    def test_get_credentials_expired_refreshes(
        self, mock_creds_class, mock_request, auth, tmp_path
    ):
        """Test get_credentials refreshes and saves expired credentials."""
        token_path = tmp_path / "token_default.json"
        token_path.write_text('{"token": "test"}')

        mock_creds = MagicMock()
        mock_creds.valid = False
        mock_creds.expired = True
        mock_creds.refresh_token = "refresh_token"
        mock_creds.to_json.return_value = '{"refreshed": true}'
        mock_creds_class.from_authorized_user_file.return_value = mock_creds

        result = auth.get_credentials()

        mock_creds.refresh.assert_called_once()
        assert result == mock_creds
        assert json.loads(token_path.read_text()) == {"refreshed": True}

    @patch("gcontact_labels.auth.google_auth.Request")
    @patch("gcontact_labels.auth.google_auth.Credentials")
    def test_get_credentials_refresh_failure_returns_none(
        self, mock_creds_class, mock_request, auth, tmp_path
    ):
        """Test get_credentials returns None when refresh fails."""
        from google.auth.exceptions import RefreshError

        (tmp_path / "token_default.json").write_text('{"token": "test"}')
        mock_creds = MagicMock()
        mock_creds.valid = False
        mock_creds.expired = True
        mock_creds.refresh_token = "refresh_token"
        mock_creds.refresh.side_effect = RefreshError("Failed")
        mock_creds_class.from_authorized_user_file.return_value = mock_creds

        assert auth.get_credentials() is None


class TestAuthenticate:
    """Tests for authenticate method."""

    @pytest.fixture
    def auth(self, tmp_path):
        """Create a GoogleAuth instance with a client secrets file."""
        auth = GoogleAuth(config_dir=tmp_path)
        (tmp_path / "credentials.json").write_text(
            json.dumps(
                {
                    "installed": {
                        "client_id": "test_client",
                        "client_secret": "test_secret",
                        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                        "token_uri": "https://oauth2.googleapis.com/token",
                    }
                }
            )
        )
        return auth

    def test_authenticate_missing_credentials_file(self, tmp_path):
        """Test authenticate raises FileNotFoundError when credentials missing."""
        auth = GoogleAuth(config_dir=tmp_path)

        with pytest.raises(FileNotFoundError, match="OAuth credentials file not found"):
            auth.authenticate()

    @patch("gcontact_labels.auth.google_auth.Credentials")
    def test_authenticate_uses_existing_credentials(
        self, mock_creds_class, auth, tmp_path
    ):
        """Test authenticate returns existing valid credentials."""
        (tmp_path / "token_default.json").write_text('{"token": "existing"}')
        mock_creds = MagicMock()
        mock_creds.valid = True
        mock_creds_class.from_authorized_user_file.return_value = mock_creds

        assert auth.authenticate() == mock_creds

    @patch("gcontact_labels.auth.google_auth.InstalledAppFlow")
    def test_authenticate_starts_oauth_flow(self, mock_flow_class, auth, tmp_path):
        """Test authenticate runs the OAuth flow and stores the token."""
        mock_flow = MagicMock()
        mock_new_creds = MagicMock()
        mock_new_creds.to_json.return_value = '{"new": true}'
        mock_flow.run_local_server.return_value = mock_new_creds
        mock_flow_class.from_client_secrets_file.return_value = mock_flow

        with patch.object(auth, "_fetch_user_email", return_value="me@example.com"):
            result = auth.authenticate("work")

        mock_flow.run_local_server.assert_called_once_with(port=0)
        assert result == mock_new_creds
        data = json.loads((tmp_path / "token_work.json").read_text())
        assert data == {"new": True, "email": "me@example.com"}

    @patch("gcontact_labels.auth.google_auth.InstalledAppFlow")
    @patch("gcontact_labels.auth.google_auth.Credentials")
    def test_authenticate_force_reauth(
        self, mock_creds_class, mock_flow_class, auth, tmp_path
    ):
        """Test authenticate with force_reauth ignores existing credentials."""
        (tmp_path / "token_default.json").write_text('{"token": "existing"}')
        mock_creds = MagicMock()
        mock_creds.valid = True
        mock_creds_class.from_authorized_user_file.return_value = mock_creds

        mock_flow = MagicMock()
        mock_new_creds = MagicMock()
        mock_new_creds.to_json.return_value = '{"new": true}'
        mock_flow.run_local_server.return_value = mock_new_creds
        mock_flow_class.from_client_secrets_file.return_value = mock_flow

        with patch.object(auth, "_fetch_user_email", return_value=None):
            result = auth.authenticate(force_reauth=True)

        mock_flow.run_local_server.assert_called_once()
        assert result == mock_new_creds

    @patch("gcontact_labels.auth.google_auth.InstalledAppFlow")
    def test_authenticate_oauth_flow_failure(self, mock_flow_class, auth):
        """Test authenticate raises AuthenticationError on OAuth failure."""
        mock_flow = MagicMock()
        mock_flow.run_local_server.side_effect = Exception("OAuth failed")
        mock_flow_class.from_client_secrets_file.return_value = mock_flow

        with pytest.raises(AuthenticationError, match="Failed to authenticate"):
            auth.authenticate(force_reauth=True)


class TestProfileManagement:
    """Tests for listing, clearing and inspecting profiles."""

    def test_list_profiles(self, auth, tmp_path):
        """Test that stored tokens are listed by profile name."""
        (tmp_path / "token_work.json").write_text("{}")
        (tmp_path / "token_default.json").write_text("{}")
        (tmp_path / "credentials.json").write_text("{}")

        assert auth.list_profiles() == ["default", "work"]

    def test_list_profiles_missing_dir(self, tmp_path):
        """Test that a missing config dir has no profiles."""
        assert GoogleAuth(config_dir=tmp_path / "nope").list_profiles() == []

    def test_clear_credentials_removes_file(self, auth, tmp_path):
        """Test that clearing removes the token file."""
        token_path = tmp_path / "token_work.json"
        token_path.write_text("{}")

        assert auth.clear_credentials("work") is True
        assert not token_path.exists()

    def test_clear_credentials_nonexistent_file(self, auth):
        """Test clearing a profile without token."""
        assert auth.clear_credentials("work") is False

    def test_is_authenticated_no_credentials(self, auth):
        """Test that a profile without token is not authenticated."""
        assert auth.is_authenticated() is False

    def test_get_auth_status(self, auth, tmp_path):
        """Test the status dictionary of an unauthenticated profile."""
        status = auth.get_auth_status("work")

        assert status["profile"] == "work"
        assert status["authenticated"] is False
        assert status["token_exists"] is False
        assert status["credentials_exist"] is False
        assert status["token_path"] == str(tmp_path / "token_work.json")
        assert status["config_dir"] == str(tmp_path)

    def test_get_account_email_from_token(self, auth, tmp_path):
        """Test that the stored email is returned without network access."""
        (tmp_path / "token_work.json").write_text(
            json.dumps({"token": "t", "email": "me@example.com"})
        )

        assert auth.get_account_email("work") == "me@example.com"

    def test_get_account_email_no_token(self, auth):
        """Test that a profile without token has no email."""
        assert auth.get_account_email("work") is None
