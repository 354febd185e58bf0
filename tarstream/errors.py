class TarError(Exception):
    """Base class for tarstream errors."""


# Stream/entry state
class NonSeekableIO(TarError):
    pass


class ClosedIO(TarError):
    pass


class UnexpectedEOF(TarError):
    pass


# Header validation
class BadChecksum(TarError):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Header checksum mismatch: stored {expected:06o}, computed {actual:06o}")


class MalformedHeader(TarError):
    def __init__(self, field: str, raw: bytes):
        self.field = field
        self.raw = raw
        super().__init__(f"Non-octal value in header field {field!r}: {raw!r}")


class TooLongFileName(TarError):
    pass


# Extraction
class UnsafePathError(TarError):
    pass
