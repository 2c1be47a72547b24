"""Exception hierarchy shared by the message model and the IMAP transport."""


class LetterboxError(Exception):
    """Base class for all letterbox errors."""


class MessageNotFoundError(LetterboxError, LookupError):
    """Raised when the server has no overview record for a message UID."""

    def __init__(self, uid):
        super().__init__(f"Message with ID {uid} not found.")
        self.uid = uid


class InvalidFlagError(LetterboxError, ValueError):
    """Raised when setting a flag that is unknown or read-only."""

    def __init__(self, flag: str):
        super().__init__(f'Unable to set invalid flag "{flag}"')
        self.flag = flag


class AttachmentError(LetterboxError):
    """Raised when an attachment descriptor can't be built from a part."""


class TransportError(LetterboxError):
    """Raised when a call against the mail server fails."""


class AuthenticationError(LetterboxError):
    """Raised when no usable credentials exist for an account."""
