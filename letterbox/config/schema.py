"""Configuration schema definitions.

Uses TypedDict for type safety without runtime overhead.
These types match the structure of config.toml.
"""

from typing import TypedDict


class DefaultsConfig(TypedDict, total=False):
    """Default settings applied to all operations.

    Attributes:
        mailbox: Mailbox selected when none is given (e.g., "INBOX").
        charset: Charset message bodies are converted to.
    """

    mailbox: str
    charset: str


class AccountConfig(TypedDict, total=False):
    """Single IMAP account configuration.

    Attributes:
        provider: "imap" (password login), "gmail" or "ms365" (XOAUTH2).
        host: IMAP server hostname.
        port: IMAP server port (993 for implicit TLS).
        ssl: Connect with implicit TLS.
        username: Login name, usually the email address.
        password: Optional password (prefer env var).
        tenant_id: Microsoft 365 tenant/directory ID.
        client_id: OAuth client/application ID.
        client_secret: Optional OAuth client secret (prefer env var).
    """

    provider: str
    host: str
    port: int
    ssl: bool
    username: str
    password: str
    tenant_id: str
    client_id: str
    client_secret: str


class LetterboxConfig(TypedDict, total=False):
    """Root configuration structure.

    Attributes:
        defaults: Default settings for all operations.
        accounts: Dict mapping account names to their configurations.
    """

    defaults: DefaultsConfig
    accounts: dict[str, AccountConfig]
