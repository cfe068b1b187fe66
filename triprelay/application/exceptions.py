class StorageError(RuntimeError):
    """Raised when a state record cannot be read or written."""
    pass


class RecordCorruptError(StorageError):
    """Raised when a stored record exists but is not a valid JSON object."""
    pass


class ChatPlatformError(RuntimeError):
    """Raised when the chat gateway fails (network errors, unknown chat, bad response)."""
    pass
