"""Default configuration template.

This template is written to ~/.config/letterbox/config.toml
when running `letterbox config init`.
"""

CONFIG_TEMPLATE = """\
# Letterbox Configuration

[defaults]
mailbox = "INBOX"
charset = "utf-8"

# Add your IMAP accounts below.
# Example password account:
#
# [accounts.work]
# provider = "imap"
# host = "imap.example.com"
# port = 993
# ssl = true
# username = "me@example.com"
#
# For the password, use the LETTERBOX_IMAP_PASSWORD environment variable.
#
# Example Gmail account (XOAUTH2):
#
# [accounts.personal]
# provider = "gmail"
# host = "imap.gmail.com"
# username = "me@gmail.com"
# client_id = "xxxxxx.apps.googleusercontent.com"
#
# For client_secret, use the LETTERBOX_GMAIL_CLIENT_SECRET environment variable.
#
# Example Microsoft 365 account (XOAUTH2):
#
# [accounts.office]
# provider = "ms365"
# host = "outlook.office365.com"
# username = "me@company.com"
# tenant_id = "xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx"
# client_id = "xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx"
#
# After adding an OAuth account, authenticate with:
#   letterbox config auth --account personal
"""
