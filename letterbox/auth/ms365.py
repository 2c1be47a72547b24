"""Microsoft 365 IMAP authentication via MSAL Device Code Flow.

Exchange Online accepts OAuth 2.0 access tokens over IMAP through the
XOAUTH2 SASL mechanism. The user gets a code and URL, authenticates in
their browser, and the CLI receives tokens.

Token caching is handled by MSAL's SerializableTokenCache, which we
persist to ~/.config/letterbox/credentials/ms365_cache.json
"""

import logging
import sys

import msal

from letterbox.config.paths import MS365_CACHE_FILE, ensure_credentials_dir

logger = logging.getLogger(__name__)

# IMAP access for the signed-in user.
# offline_access is added by MSAL automatically.
SCOPES = ["https://outlook.office.com/IMAP.AccessAsUser.All"]


def _load_token_cache() -> msal.SerializableTokenCache:
    """Load the token cache from disk, or an empty cache if there is none."""
    cache = msal.SerializableTokenCache()

    if MS365_CACHE_FILE.exists():
        cache.deserialize(MS365_CACHE_FILE.read_text())

    return cache


def _save_token_cache(cache: msal.SerializableTokenCache) -> None:
    """Persist the token cache to disk with owner-only permissions."""
    ensure_credentials_dir()

    MS365_CACHE_FILE.write_text(cache.serialize())
    MS365_CACHE_FILE.chmod(0o600)


def _build_msal_app(
    client_id: str,
    tenant_id: str,
    cache: msal.SerializableTokenCache | None = None,
) -> msal.PublicClientApplication:
    """Build an MSAL PublicClientApplication for the tenant."""
    authority = f"https://login.microsoftonline.com/{tenant_id}"

    return msal.PublicClientApplication(
        client_id=client_id,
        authority=authority,
        token_cache=cache,
    )


def _acquire_silent(app: msal.PublicClientApplication) -> dict | None:
    accounts = app.get_accounts()
    if not accounts:
        return None

    result = app.acquire_token_silent(SCOPES, account=accounts[0])
    if result and "access_token" in result:
        return result

    return None


def authenticate_device_flow(client_id: str, tenant_id: str) -> dict:
    """Perform Device Code Flow authentication.

    Blocks until authentication completes or times out (typically 15
    minutes). If valid cached tokens exist, returns them without
    prompting.

    Args:
        client_id: Azure app registration client/application ID.
        tenant_id: Azure tenant/directory ID.

    Returns:
        Authentication result dict containing:
        - On success: 'access_token', 'id_token_claims', etc.
        - On failure: 'error' and 'error_description'
    """
    cache = _load_token_cache()
    app = _build_msal_app(client_id, tenant_id, cache)

    result = _acquire_silent(app)
    if result:
        if cache.has_state_changed:
            _save_token_cache(cache)
        return result

    flow = app.initiate_device_flow(scopes=SCOPES)

    if "user_code" not in flow:
        return {
            "error": "device_flow_failed",
            "error_description": flow.get(
                "error_description", "Failed to initiate device flow"
            ),
        }

    # MSAL's message contains the URL and the code to enter
    print(flow["message"])
    sys.stdout.flush()

    result = app.acquire_token_by_device_flow(flow)

    if cache.has_state_changed:
        _save_token_cache(cache)

    return result


def get_access_token(client_id: str, tenant_id: str) -> str | None:
    """Get a valid access token using cached credentials.

    Silently refreshes the token if expired. Does not prompt for login.

    Returns:
        Access token string, or None if not authenticated.
    """
    cache = _load_token_cache()
    app = _build_msal_app(client_id, tenant_id, cache)

    result = _acquire_silent(app)
    if result is None:
        logger.debug("No cached MS365 token for client %s", client_id)
        return None

    if cache.has_state_changed:
        _save_token_cache(cache)

    return result["access_token"]
