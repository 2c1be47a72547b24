"""Gmail IMAP authentication via OAuth 2.0 Installed Application Flow.

Gmail accepts OAuth 2.0 access tokens over IMAP through the XOAUTH2
SASL mechanism. We obtain the token with the loopback redirect flow:
the user's browser opens to Google's consent page and the authorization
code is captured by a local HTTP server.

Tokens are persisted to ~/.config/letterbox/credentials/gmail_token.json
and refreshed by google.oauth2.credentials when they expire.
"""

import json
import logging
import os

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from letterbox.config.paths import GMAIL_TOKEN_FILE, ensure_credentials_dir

logger = logging.getLogger(__name__)

# Full mailbox scope; the only Google scope that grants IMAP access.
SCOPES = ["https://mail.google.com/"]

# Environment variable for client secret.
CLIENT_SECRET_ENV = "LETTERBOX_GMAIL_CLIENT_SECRET"

REDIRECT_URI = "http://localhost:8080"


def _load_token() -> Credentials | None:
    """Load credentials from disk.

    Returns None if the token file doesn't exist or can't be read.
    """
    if not GMAIL_TOKEN_FILE.exists():
        return None

    try:
        return Credentials.from_authorized_user_file(str(GMAIL_TOKEN_FILE), SCOPES)
    except (ValueError, OSError) as e:
        logger.warning("Ignoring unreadable Gmail token file: %s", e)
        return None


def _save_token(creds: Credentials) -> None:
    """Persist credentials to disk with owner-only permissions."""
    ensure_credentials_dir()

    token_data = {
        "token": creds.token,
        "refresh_token": creds.refresh_token,
        "token_uri": creds.token_uri,
        "client_id": creds.client_id,
        "client_secret": creds.client_secret,
        "scopes": creds.scopes,
    }

    GMAIL_TOKEN_FILE.write_text(json.dumps(token_data, indent=2))
    GMAIL_TOKEN_FILE.chmod(0o600)


def get_client_secret(account_config: dict) -> str | None:
    """Get client secret from environment variable or config.

    The environment variable takes precedence over the config file.
    """
    return os.environ.get(CLIENT_SECRET_ENV) or account_config.get("client_secret")


def _build_client_config(client_id: str, client_secret: str) -> dict:
    """Build the client configuration dict InstalledAppFlow expects.

    Normally this JSON is downloaded from Cloud Console; we construct it
    from config values instead.
    """
    return {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": [REDIRECT_URI],
        }
    }


def _result(creds: Credentials) -> dict:
    return {
        "access_token": creds.token,
        "refresh_token": creds.refresh_token,
    }


def authenticate_loopback_flow(client_id: str, client_secret: str) -> dict:
    """Perform OAuth 2.0 loopback flow authentication.

    If valid cached tokens exist, returns them without prompting.

    Args:
        client_id: Google Cloud OAuth client ID.
        client_secret: Google Cloud OAuth client secret.

    Returns:
        Authentication result dict containing:
        - On success: 'access_token' and 'refresh_token'
        - On failure: 'error' and 'error_description'
    """
    creds = _load_token()

    if creds and creds.valid:
        return _result(creds)

    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
            _save_token(creds)
            return _result(creds)
        except GoogleAuthError as e:
            logger.info("Gmail token refresh failed, starting a new flow: %s", e)

    try:
        flow = InstalledAppFlow.from_client_config(
            _build_client_config(client_id, client_secret),
            scopes=SCOPES,
            redirect_uri=REDIRECT_URI,
        )

        # Opens the user's browser and waits for the redirect
        creds = flow.run_local_server(
            port=8080,
            success_message="Authentication successful! You can close this window.",
        )

        _save_token(creds)
        return _result(creds)

    except Exception as e:
        return {
            "error": "oauth_flow_failed",
            "error_description": f"OAuth 2.0 flow failed: {str(e)}",
        }


def get_access_token(client_id: str, client_secret: str) -> str | None:
    """Get a valid access token using cached credentials.

    Silently refreshes the token if expired. Does not prompt for login.

    Returns:
        Access token string, or None if not authenticated.
    """
    creds = _load_token()

    if not creds:
        return None

    if creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
            _save_token(creds)
        except GoogleAuthError as e:
            logger.warning("Gmail token refresh failed: %s", e)
            return None

    if creds.valid:
        return creds.token

    return None
