class ChatWireError(Exception):
    """Base class for errors raised by chatwire."""


class ContentEncodingError(ChatWireError):
    """A content part could not be turned into a wire entry."""
