"""Configuration management module.

Handles loading, saving, and accessing the letterbox configuration.
Config is stored at ~/.config/letterbox/config.toml

Usage:
    from letterbox.config import load_config, get_account

    config = load_config()
    account = get_account(config, "work")
"""

import codecs
import tomllib

import tomli_w

from .paths import CONFIG_FILE, ensure_config_dir
from .schema import AccountConfig, LetterboxConfig
from .template import CONFIG_TEMPLATE

__all__ = [
    "load_config",
    "save_config",
    "init_config",
    "get_account",
    "get_account_names",
    "get_default",
    "set_config_value",
    "CONFIG_FILE",
]

PROVIDERS = ("imap", "gmail", "ms365")

DEFAULTS = {
    "mailbox": "INBOX",
    "charset": "utf-8",
}

# Module-level cache for loaded config.
# Avoids repeated disk reads during a single CLI invocation.
_cached_config: LetterboxConfig | None = None


def load_config(*, force_reload: bool = False) -> LetterboxConfig:
    """Load configuration from disk.

    Returns empty dict if config file doesn't exist.
    Uses module-level caching to avoid repeated disk reads.

    Args:
        force_reload: Bypass cache and read from disk (useful after saving).

    Returns:
        The configuration dictionary.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    if not CONFIG_FILE.exists():
        _cached_config = {}
        return _cached_config

    with open(CONFIG_FILE, "rb") as f:
        _cached_config = tomllib.load(f)

    return _cached_config


def save_config(config: LetterboxConfig) -> None:
    """Save configuration to disk and update the module cache."""
    global _cached_config

    ensure_config_dir()

    with open(CONFIG_FILE, "wb") as f:
        tomli_w.dump(config, f)

    _cached_config = config


def init_config(*, overwrite: bool = False) -> bool:
    """Initialize config directory and create template config file.

    Args:
        overwrite: If True, overwrite existing config file.

    Returns:
        True if config was created, False if it already existed.
    """
    ensure_config_dir()

    if CONFIG_FILE.exists() and not overwrite:
        return False

    CONFIG_FILE.write_text(CONFIG_TEMPLATE)
    return True


def get_account(
    config: LetterboxConfig, name: str | None = None
) -> AccountConfig | None:
    """Get account configuration by name.

    Args:
        config: The loaded configuration dictionary.
        name: Account name to retrieve. If None, returns the first account.

    Returns:
        The account configuration, or None if not found.
    """
    accounts = config.get("accounts", {})

    if not accounts:
        return None

    if name is None:
        return next(iter(accounts.values()))

    return accounts.get(name)


def get_account_names(config: LetterboxConfig) -> list[str]:
    """Get list of configured account names."""
    return list(config.get("accounts", {}).keys())


def get_default(config: LetterboxConfig, key: str) -> str:
    """Get a [defaults] value, falling back to the built-in default."""
    return config.get("defaults", {}).get(key, DEFAULTS[key])


def set_config_value(key: str, value: str) -> None:
    """Set a configuration value using dot notation.

    Only "defaults.<key>" and "accounts.<name>.<key>" paths with known keys
    are accepted.

    Examples:
        set_config_value("defaults.mailbox", "Archive")
        set_config_value("accounts.work.port", "143")

    Args:
        key: Dot-separated key path (e.g., "defaults.mailbox").
        value: Value to set (will be type-converted for known fields).

    Raises:
        ValueError: If the key is unknown or the value can't be converted.
    """
    parts = key.split(".")
    if parts[0] == "defaults" and len(parts) == 2:
        allowed = DEFAULTS.keys()
    elif parts[0] == "accounts" and len(parts) == 3:
        allowed = AccountConfig.__annotations__.keys()
    else:
        raise ValueError(f"{key!r} is not a defaults.<key> or accounts.<name>.<key> path")

    final_key = parts[-1]
    if final_key not in allowed:
        raise ValueError(f"unknown setting {final_key!r}")

    converted = _convert_value(final_key, value)

    config = load_config(force_reload=True)
    section: dict = config
    for part in parts[:-1]:
        section = section.setdefault(part, {})
    section[final_key] = converted

    save_config(config)


def _convert_value(key: str, value: str) -> str | int | bool:
    """Convert string value to appropriate type based on field name.

    Raises:
        ValueError: If value cannot be converted to expected type.
    """
    if key == "port":
        return int(value)

    if key == "ssl":
        lowered = value.lower()
        if lowered in ("true", "yes", "1", "on"):
            return True
        if lowered in ("false", "no", "0", "off"):
            return False
        raise ValueError(f"ssl must be true or false, got {value!r}")

    if key == "charset":
        try:
            codecs.lookup(value)
        except LookupError:
            raise ValueError(f"unknown charset {value!r}") from None

    if key == "provider" and value not in PROVIDERS:
        raise ValueError(f"provider must be one of {', '.join(PROVIDERS)}")

    return value
