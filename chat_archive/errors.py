"""Exceptions raised while loading a conversation archive."""


class ChatArchiveError(Exception):
    """Base class for archive errors."""


class ParseError(ChatArchiveError):
    """The top-level payload is not a JSON array of conversation objects."""


class ConversationSkipped(ChatArchiveError):
    """One conversation record was malformed and left out of the archive."""

    def __init__(self, reason: str, conv_id: str | None = None):
        super().__init__(reason)
        self.reason = reason
        self.conv_id = conv_id
