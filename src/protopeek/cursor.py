from protopeek.errors import TruncatedInputError, VarintTooLongError

# a 64-bit value never needs more than 10 groups of 7 bits
MAX_VARINT_BYTES = 10


class Cursor:
    """
    Sequential reader over an immutable byte buffer.
    Every read advances `pos`; reads past the end raise TruncatedInputError
    and leave `pos` where it was.
    """

    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.pos = 0

    @property
    def length(self) -> int:
        return len(self.data)

    def __len__(self):
        return len(self.data)

    def eof(self):
        return self.pos >= len(self.data)

    def remaining(self) -> int:
        return max(0, len(self.data) - self.pos)

    def read_varint(self) -> int:
        """Standard protobuf varint, at most MAX_VARINT_BYTES long."""
        result = 0
        shift = 0
        pos = self.pos
        while True:
            if pos - self.pos >= MAX_VARINT_BYTES:
                raise VarintTooLongError(
                    f"varint at offset {self.pos} is longer than {MAX_VARINT_BYTES} bytes", self.pos
                )
            if pos >= len(self.data):
                raise TruncatedInputError(
                    f"varint at offset {self.pos} runs past end of buffer", self.pos
                )
            b = self.data[pos]
            pos += 1
            result |= (b & 0x7F) << shift
            if not (b & 0x80):
                break
            shift += 7
        self.pos = pos
        return result

    def read_bytes(self, n: int) -> bytes:
        if n < 0:
            raise ValueError(f"cannot read a negative byte count: {n}")
        end = self.pos + n
        if end > len(self.data):
            raise TruncatedInputError(
                f"read of {n} bytes at offset {self.pos} exceeds buffer "
                f"({self.remaining()} left)",
                self.pos,
            )
        out = self.data[self.pos:end]
        self.pos = end
        return out
