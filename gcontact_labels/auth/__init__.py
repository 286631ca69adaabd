"""
gcontact_labels.auth - OAuth2 authentication

Stores and refreshes Google credentials per named profile.
"""

from gcontact_labels.auth.google_auth import (
    DEFAULT_PROFILE,
    SCOPES,
    AuthenticationError,
    GoogleAuth,
)

__all__ = ["DEFAULT_PROFILE", "SCOPES", "AuthenticationError", "GoogleAuth"]
