"""
OAuth2 authentication module for Google contact group labeling.

Provides OAuth 2.0 authentication with support for:
- Named profiles, one stored token per Google account
- Automatic token refresh
- Secure credential storage in user's home directory
- Graceful handling of expired tokens
"""

import json
import logging
import re
from pathlib import Path

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from gcontact_labels.utils.paths import (
    credentials_file_path,
    ensure_private_dir,
    profiles_with_tokens,
    resolve_config_dir,
    token_file_path,
)

# OAuth2 scopes required for Google Contacts access
SCOPES = [
    "https://www.googleapis.com/auth/contacts",
    "https://www.googleapis.com/auth/userinfo.email",
    "openid",  # Required by Google when requesting userinfo.email
]

# Profile used when none is given
DEFAULT_PROFILE = "default"

# Profile names end up in token file names
PROFILE_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,63}$")

# Default auth timeout for network requests (in seconds)
DEFAULT_AUTH_TIMEOUT = 10

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when authentication fails or credentials are invalid."""

    pass


class GoogleAuth:
    """
    OAuth2 authentication manager for named Google account profiles.

    Attributes:
        config_dir: Directory for storing credentials and tokens
        credentials_path: Path to OAuth client credentials file

    Usage:
        auth = GoogleAuth()

        # Authenticate the default profile
        creds = auth.authenticate()

        # Authenticate a second account
        creds = auth.authenticate('work')

        # Get credentials if already authenticated
        creds = auth.get_credentials('work')
    """

    def __init__(
        self,
        config_dir: Path | None = None,
        auth_timeout: int = DEFAULT_AUTH_TIMEOUT,
    ):
        """
        Initialize the authentication manager.

        Args:
            config_dir: Directory for storing credentials and tokens.
                       Defaults to ~/.gcontact-labels/ or $GCONTACT_LABELS_CONFIG_DIR
            auth_timeout: Timeout in seconds for network requests (default: 10)
        """
        self.config_dir = resolve_config_dir(config_dir)
        self.credentials_path = credentials_file_path(self.config_dir)
        self.auth_timeout = auth_timeout

    def _validate_profile(self, profile: str) -> None:
        """
        Validate a profile name.

        Raises:
            ValueError: If the profile name is not usable as a file name part
        """
        if not PROFILE_PATTERN.match(profile or ""):
            raise ValueError(
                f"Invalid profile '{profile}'. Use letters, digits, '-' or '_'."
            )

    def _get_token_path(self, profile: str) -> Path:
        """Get the token file path for a profile."""
        self._validate_profile(profile)
        return token_file_path(self.config_dir, profile)

    def _ensure_config_dir(self) -> None:
        """Create the configuration directory with mode 700 if missing."""
        if ensure_private_dir(self.config_dir):
            logger.debug(f"Created config directory: {self.config_dir}")

    def _load_credentials(self, profile: str) -> Credentials | None:
        """
        Load credentials from token file if it exists.

        Returns:
            Credentials object if token file exists and is valid, None otherwise
        """
        token_path = self._get_token_path(profile)

        if not token_path.exists():
            logger.debug(f"No token file found for {profile}")
            return None

        try:
            creds: Credentials = Credentials.from_authorized_user_file(
                str(token_path), SCOPES
            )
            logger.debug(f"Loaded credentials for {profile}")
            return creds
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Invalid token file for {profile}: {e}")
            return None

    def _save_credentials(
        self, profile: str, creds: Credentials, email: str | None = None
    ) -> None:
        """
        Save credentials to the profile's token file with mode 600.

        Args:
            profile: Profile name
            creds: Credentials object to save
            email: Optional email address to store with credentials
        """
        self._ensure_config_dir()
        token_path = self._get_token_path(profile)

        token_data = json.loads(creds.to_json())
        if email:
            token_data["email"] = email

        token_path.write_text(json.dumps(token_data))
        token_path.chmod(0o600)
        logger.debug(f"Saved credentials for {profile}")

    def _refresh_credentials(self, creds: Credentials) -> bool:
        """
        Attempt to refresh expired credentials.

        Returns:
            True if refresh succeeded, False otherwise
        """
        if not creds.refresh_token:
            logger.debug("No refresh token available")
            return False

        try:
            creds.refresh(Request())
            logger.debug("Successfully refreshed credentials")
            return True
        except RefreshError as e:
            logger.warning(f"Failed to refresh credentials: {e}")
            return False

    def _fetch_user_email(self, creds: Credentials) -> str | None:
        """
        Fetch the authenticated user's email address from Google.

        Returns:
            Email address if available, None otherwise
        """
        import urllib.request
        from urllib.error import HTTPError, URLError

        try:
            url = "https://www.googleapis.com/oauth2/v2/userinfo"
            req = urllib.request.Request(url)
            req.add_header("Authorization", f"Bearer {creds.token}")

            with urllib.request.urlopen(req, timeout=self.auth_timeout) as response:  # nosec B310
                data: dict[str, str] = json.loads(response.read().decode("utf-8"))
                return data.get("email")
        except HTTPError as e:
            if e.code == 401:
                logger.debug(
                    "Token missing email scope. Re-authentication required "
                    "to display email addresses."
                )
            else:
                logger.debug(f"Failed to fetch user email: {e}")
            return None
        except (URLError, OSError, ValueError) as e:
            logger.debug(f"Failed to fetch user email: {e}")
            return None

    def get_credentials(self, profile: str = DEFAULT_PROFILE) -> Credentials | None:
        """
        Get valid credentials for a profile if available.

        Attempts to load and refresh credentials without user interaction.

        Returns:
            Valid Credentials object, or None if not available

        Raises:
            ValueError: If the profile name is invalid
        """
        self._validate_profile(profile)

        creds = self._load_credentials(profile)
        if creds is None:
            return None

        if creds.valid:
            return creds

        if creds.expired and creds.refresh_token and self._refresh_credentials(creds):
            self._save_credentials(profile, creds)
            return creds

        return None

    def authenticate(
        self, profile: str = DEFAULT_PROFILE, force_reauth: bool = False
    ) -> Credentials:
        """
        Authenticate a Google account for a profile.

        If valid credentials exist and force_reauth is False, returns existing
        credentials. Otherwise, runs the installed-app OAuth flow.

        Raises:
            ValueError: If the profile name is invalid
            AuthenticationError: If authentication fails
            FileNotFoundError: If credentials.json is not found
        """
        self._validate_profile(profile)

        if not force_reauth:
            creds = self.get_credentials(profile)
            if creds is not None:
                logger.info(f"Using existing credentials for {profile}")
                return creds

        if not self.credentials_path.exists():
            raise FileNotFoundError(
                f"OAuth credentials file not found: {self.credentials_path}\n"
                "Please download your OAuth client credentials from "
                "Google Cloud Console and save them to this location."
            )

        logger.info(f"Starting OAuth flow for {profile}")

        try:
            flow = InstalledAppFlow.from_client_secrets_file(
                str(self.credentials_path), SCOPES
            )
            new_creds: Credentials = flow.run_local_server(port=0)

            email = self._fetch_user_email(new_creds)

            self._save_credentials(profile, new_creds, email=email)
            logger.info(f"Successfully authenticated {profile}")

            return new_creds

        except Exception as e:
            logger.error(f"Authentication failed for {profile}: {e}")
            raise AuthenticationError(f"Failed to authenticate {profile}: {e}") from e

    def is_authenticated(self, profile: str = DEFAULT_PROFILE) -> bool:
        """Check if a profile has valid credentials."""
        return self.get_credentials(profile) is not None

    def clear_credentials(self, profile: str = DEFAULT_PROFILE) -> bool:
        """
        Remove stored credentials for a profile.

        Returns:
            True if credentials were removed, False if they didn't exist
        """
        token_path = self._get_token_path(profile)

        if token_path.exists():
            token_path.unlink()
            logger.info(f"Cleared credentials for {profile}")
            return True

        return False

    def list_profiles(self) -> list[str]:
        """List profiles that have a stored token, sorted by name."""
        return profiles_with_tokens(self.config_dir)

    def get_auth_status(self, profile: str = DEFAULT_PROFILE) -> dict[str, object]:
        """
        Get authentication status for a profile.

        Returns:
            Dictionary with keys 'profile', 'authenticated', 'token_path',
            'token_exists', 'credentials_path', 'credentials_exist' and
            'config_dir'
        """
        token_path = self._get_token_path(profile)
        creds = self.get_credentials(profile)

        return {
            "profile": profile,
            "authenticated": creds is not None,
            "token_path": str(token_path),
            "token_exists": token_path.exists(),
            "credentials_path": str(self.credentials_path),
            "credentials_exist": self.credentials_path.exists(),
            "config_dir": str(self.config_dir),
        }

    def get_account_email(self, profile: str = DEFAULT_PROFILE) -> str | None:
        """
        Get the email address associated with an authenticated profile.

        Reads the email stored in the token file, fetching and storing it
        from Google's userinfo API when missing.

        Returns:
            Email address if available, None otherwise
        """
        token_path = self._get_token_path(profile)

        if not token_path.exists():
            return None

        try:
            token_data: dict[str, str] = json.loads(token_path.read_text())
            email: str | None = token_data.get("email")

            if not email:
                creds = self.get_credentials(profile)
                if creds:
                    email = self._fetch_user_email(creds)
                    if email:
                        token_data["email"] = email
                        token_path.write_text(json.dumps(token_data))
                        logger.debug(f"Updated stored email for {profile}")

            return email
        except (json.JSONDecodeError, OSError):
            return None
