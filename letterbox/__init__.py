"""letterbox - read IMAP messages as plain text, HTML and attachments."""

__version__ = "0.1.0"
