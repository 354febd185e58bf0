# Block layout
BLOCK_SIZE = 512
SKIP_CHUNK_SIZE = 4096  # upper bound for discard reads on non-seekable streams

NAME_SIZE = 100
PREFIX_SIZE = 155
CHECKSUM_OFFSET = 148
CHECKSUM_SIZE = 8

# Type flags
TYPE_REGULAR = "0"
TYPE_DIRECTORY = "5"

# Header defaults
MAGIC = "ustar"
DEFAULT_VERSION = 0
DEFAULT_OWNER = "wheel"

ZERO_BLOCK = b"\x00" * BLOCK_SIZE


def padding_for(size: int) -> int:
    """Number of NUL bytes that follow ``size`` data bytes to reach a block boundary."""
    return (BLOCK_SIZE - size % BLOCK_SIZE) % BLOCK_SIZE
