class InvalidConfiguration(ValueError):
    """Raised when a caller-provided setting is outside its documented bounds."""


class MalformedNoteIdentifier(ValueError):
    """Raised when a note id such as "A#4" cannot be parsed.

    Audio input can never produce one of these; seeing it means a bug upstream.
    """


class BufferFrozenError(RuntimeError):
    """Raised when appending to a session buffer that has been frozen."""
