"""Config command implementation.

Manages letterbox configuration and account credentials.
"""

import typer
from typing_extensions import Annotated

from letterbox.auth import OAUTH_PROVIDERS, PASSWORD_ENV, authenticate, get_password
from letterbox.config import (
    CONFIG_FILE,
    get_account,
    get_account_names,
    init_config,
    load_config,
    set_config_value,
)
from letterbox.config.paths import CONFIG_DIR
from letterbox.config.schema import AccountConfig

app = typer.Typer(help="Manage configuration and account credentials")

SECRET_KEYS = {"client_secret", "password"}


@app.command()
def init(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite existing config")
    ] = False,
):
    """Initialize configuration directory and template config file."""
    if not init_config(overwrite=force):
        typer.echo(f"Config already exists at {CONFIG_FILE}")
        typer.echo("Use --force to overwrite.")
        return

    typer.echo(f"Created config file: {CONFIG_FILE}")
    typer.echo(f"Credentials will be kept under {CONFIG_DIR / 'credentials'}")
    typer.echo()
    typer.echo("Add an [accounts.<name>] table with host and username to get started.")


@app.command()
def auth(
    account: Annotated[
        str | None, typer.Option("--account", "-a", help="Account name to authenticate")
    ] = None,
):
    """Authorize an account for IMAP access.

    Gmail and Microsoft 365 accounts go through the provider's OAuth
    flow; the resulting tokens are cached and used for XOAUTH2 logins.
    Password accounts only need a password to be available.
    """
    account_config = get_account(load_config(), account)
    if not account_config:
        typer.echo("No account configured.", err=True)
        typer.echo("Run 'letterbox config init' and add an account to config.toml")
        raise typer.Exit(1)

    provider = account_config.get("provider", "imap")
    if provider not in OAUTH_PROVIDERS:
        if get_password(account_config) is None:
            typer.echo(
                f"No password for {account_config.get('username', 'this account')}. "
                f"Set {PASSWORD_ENV} or add 'password' to the account.",
                err=True,
            )
            raise typer.Exit(1)
        typer.echo("Password login configured; nothing to authorize.")
        return

    typer.echo(f"Starting {provider} authorization...")
    result = authenticate(account_config)

    if "access_token" not in result:
        error_msg = result.get("error_description", result.get("error", "Unknown error"))
        typer.echo(f"Authentication failed: {error_msg}", err=True)
        raise typer.Exit(1)

    claims = result.get("id_token_claims", {})
    typer.echo("Authentication successful!")
    typer.echo(
        f"IMAP login will use: {claims.get('preferred_username', account_config.get('username', 'Unknown'))}"
    )


@app.command()
def accounts():
    """List configured accounts as name, provider and login."""
    config = load_config()

    names = get_account_names(config)
    if not names:
        typer.echo("No accounts configured.")
        return

    for name in names:
        acct = get_account(config, name)
        login = f"{acct.get('username', '?')}@{acct.get('host', '?')}"
        typer.echo(f"{name}\t{acct.get('provider', 'imap')}\t{login}")


@app.command()
def show(
    account: Annotated[
        str | None, typer.Option("--account", "-a", help="Show specific account")
    ] = None,
):
    """Display current configuration.

    Passwords and client secrets are redacted in output.
    """
    config = load_config()

    if not config:
        typer.echo("No configuration found.")
        typer.echo(f"Run 'letterbox config init' to create {CONFIG_FILE}")
        return

    if "defaults" in config:
        typer.echo("[defaults]")
        for key, value in config["defaults"].items():
            typer.echo(f"  {key} = {value}")
        typer.echo()

    configured = config.get("accounts", {})
    if account is not None:
        if account not in configured:
            typer.echo(f"Account '{account}' not found.", err=True)
            raise typer.Exit(1)
        configured = {account: configured[account]}

    for name, acct in configured.items():
        _display_account(name, acct)


def _display_account(name: str, account: AccountConfig) -> None:
    typer.echo(f"[accounts.{name}]")
    for key, value in account.items():
        if key in SECRET_KEYS:
            value = "***REDACTED***" if value else "(not set)"
        typer.echo(f"  {key} = {value}")
    typer.echo()


@app.command("set")
def set_value(
    key: Annotated[
        str,
        typer.Argument(help="Configuration key (dot notation, e.g., 'defaults.mailbox')"),
    ],
    value: Annotated[str, typer.Argument(help="Configuration value")],
):
    """Set a configuration value using dot notation.

    Examples:
        letterbox config set defaults.mailbox Archive
        letterbox config set accounts.work.port 143
    """
    try:
        set_config_value(key, value)
    except ValueError as e:
        typer.echo(f"Invalid value: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Set {key} = {value}")
