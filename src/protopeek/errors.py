class DecodeError(ValueError):
    """Raised when a buffer is not a well-formed wire-format message."""

    def __init__(self, message, offset=None):
        super().__init__(message)
        self.offset = offset


class TruncatedInputError(DecodeError, EOFError):
    """A varint or fixed-size read ran past the end of the buffer."""


class UnsupportedWireTypeError(DecodeError):
    """Deprecated group wire types (SGROUP / EGROUP)."""

    def __init__(self, wire_type, offset=None):
        super().__init__(f'deprecated wire type "{wire_type.name}"', offset)
        self.wire_type = wire_type


class UnknownWireTypeError(DecodeError):
    def __init__(self, code, offset=None):
        super().__init__(f'unknown wire type "{code}"', offset)
        self.code = code


class LengthMismatchError(DecodeError):
    """Consumed byte count does not match the buffer length."""

    def __init__(self, consumed, length):
        super().__init__(f"invalid length: consumed {consumed} of {length} bytes", consumed)
        self.consumed = consumed
        self.length = length


class HydrationError(ValueError):
    """A record could not be interpreted as its declared field type."""


class VarintTooLongError(DecodeError):
    """A varint did not terminate within 10 bytes (64 bits)."""
