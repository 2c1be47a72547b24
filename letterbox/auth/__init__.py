"""Authentication for IMAP accounts.

Provides a provider-agnostic interface for logging in to the server.
Supports plain IMAP password login, and XOAUTH2 for Gmail and
Microsoft 365.

Usage:
    from letterbox.auth import authenticate, login

    # Perform OAuth flow (interactive, OAuth providers only)
    result = authenticate(account_config)

    # Log an IMAPClient in with cached credentials (non-interactive)
    login(client, account_config)
"""

import os

from imapclient import IMAPClient
from imapclient.exceptions import LoginError

from letterbox.config.schema import AccountConfig
from letterbox.errors import AuthenticationError

from .gmail import (
    authenticate_loopback_flow as _gmail_auth,
    get_access_token as _gmail_token,
    get_client_secret as _gmail_client_secret,
)
from .ms365 import (
    authenticate_device_flow as _ms365_auth,
    get_access_token as _ms365_token,
)

__all__ = [
    "authenticate",
    "get_access_token",
    "get_password",
    "is_authenticated",
    "login",
]

# Environment variable for the IMAP password.
PASSWORD_ENV = "LETTERBOX_IMAP_PASSWORD"

OAUTH_PROVIDERS = ("gmail", "ms365")


def get_password(account: AccountConfig) -> str | None:
    """Get the IMAP password from environment variable or config."""
    return os.environ.get(PASSWORD_ENV) or account.get("password")


def authenticate(account: AccountConfig) -> dict:
    """Obtain OAuth tokens for an account.

    For Microsoft 365, uses Device Code Flow. For Gmail, uses the OAuth
    2.0 loopback flow. Password accounts need no interactive step.

    Args:
        account: Account configuration from config.toml.

    Returns:
        Authentication result dict:
        - On success: contains 'access_token', plus provider-specific claims
        - On failure: contains 'error' and 'error_description'
    """
    provider = account.get("provider", "imap")

    if provider == "ms365":
        client_id = account.get("client_id")
        tenant_id = account.get("tenant_id")

        if not client_id or not tenant_id:
            return {
                "error": "missing_config",
                "error_description": "MS365 account must have 'client_id' and 'tenant_id' configured.",
            }

        return _ms365_auth(client_id, tenant_id)

    elif provider == "gmail":
        client_id = account.get("client_id")
        client_secret = _gmail_client_secret(account)

        if not client_id or not client_secret:
            return {
                "error": "missing_config",
                "error_description": "Gmail account must have 'client_id' configured and a client secret in LETTERBOX_GMAIL_CLIENT_SECRET or config.",
            }

        return _gmail_auth(client_id, client_secret)

    elif provider == "imap":
        return {
            "error": "not_oauth",
            "error_description": f"Provider 'imap' logs in with a password. Set {PASSWORD_ENV} or add 'password' to config.",
        }

    else:
        return {
            "error": "unsupported_provider",
            "error_description": f"Provider '{provider}' is not supported. Use 'imap', 'ms365' or 'gmail'.",
        }


def get_access_token(account: AccountConfig) -> str | None:
    """Get a cached OAuth access token for the account, refreshing if needed.

    Returns:
        Access token string, or None if not authenticated or the account
        doesn't use OAuth.
    """
    provider = account.get("provider", "imap")

    if provider == "ms365":
        client_id = account.get("client_id")
        tenant_id = account.get("tenant_id")
        if not client_id or not tenant_id:
            return None
        return _ms365_token(client_id, tenant_id)

    elif provider == "gmail":
        client_id = account.get("client_id")
        client_secret = _gmail_client_secret(account)
        if not client_id or not client_secret:
            return None
        return _gmail_token(client_id, client_secret)

    return None


def is_authenticated(account: AccountConfig) -> bool:
    """Check if the account has usable credentials.

    Password accounts count as authenticated when a password is set.
    """
    if account.get("provider", "imap") in OAUTH_PROVIDERS:
        return get_access_token(account) is not None
    return get_password(account) is not None


def login(client: IMAPClient, account: AccountConfig) -> None:
    """Log an IMAPClient in using the account's credentials.

    Raises:
        AuthenticationError: If credentials are missing or rejected.
    """
    username = account.get("username")
    if not username:
        raise AuthenticationError("Account must have 'username' configured.")

    try:
        if account.get("provider", "imap") in OAUTH_PROVIDERS:
            token = get_access_token(account)
            if token is None:
                raise AuthenticationError(
                    "Not authenticated. Run 'letterbox config auth' first."
                )
            client.oauth2_login(username, token)
        else:
            password = get_password(account)
            if password is None:
                raise AuthenticationError(
                    f"No password set. Use the {PASSWORD_ENV} environment variable."
                )
            client.login(username, password)
    except LoginError as e:
        raise AuthenticationError(f"Login failed for {username}: {e}") from e
