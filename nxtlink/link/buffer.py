"""Fixed-capacity byte buffers for the buffered stream.

Both buffers are allocated once at their full capacity and never grow.
Bookkeeping is explicit: `count` valid bytes, and for input a read `cursor`.
Invariant: 0 <= cursor <= count <= capacity.
"""
import logging

logger = logging.getLogger(__name__)


class InputBuffer:
    """Bytes received from the device, consumed front to back.

    Consumed bytes are never re-delivered; they are overwritten by the next
    refill, which only happens once the buffer is exhausted.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.data = bytearray(capacity)
        self.count = 0
        self.cursor = 0

    @property
    def capacity(self) -> int:
        return len(self.data)

    @property
    def exhausted(self) -> bool:
        """True once every valid byte has been consumed."""
        return self.cursor >= self.count

    @property
    def available(self) -> int:
        """Number of valid bytes not yet consumed."""
        return self.count - self.cursor

    def reset(self) -> None:
        """Forget all contents ahead of a refill."""
        self.count = 0
        self.cursor = 0

    def fill(self, count: int) -> None:
        """Record that `count` fresh bytes were stored from index 0."""
        if not 0 <= count <= self.capacity:
            raise ValueError(f"fill count {count} outside 0..{self.capacity}")
        self.count = count
        self.cursor = 0

    def take(self) -> int:
        """Return the byte at the cursor and advance past it."""
        if self.exhausted:
            raise IndexError("take from exhausted input buffer")
        value = self.data[self.cursor]
        self.cursor += 1
        return value


class OutputBuffer:
    """Bytes queued for transmission, always flushed from index 0."""

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.data = bytearray(capacity)
        self.count = 0

    @property
    def capacity(self) -> int:
        return len(self.data)

    @property
    def full(self) -> bool:
        return self.count >= self.capacity

    @property
    def empty(self) -> bool:
        return self.count == 0

    def append(self, value: int) -> None:
        """Queue one byte."""
        if self.full:
            raise OverflowError("append to full output buffer")
        self.data[self.count] = value
        self.count += 1

    def consume(self, sent: int) -> None:
        """Drop `sent` transmitted bytes from the front.

        Whatever remains after a partial flush moves to index 0.
        """
        if not 0 <= sent <= self.count:
            raise ValueError(f"consume {sent} outside 0..{self.count}")
        remaining = self.count - sent
        if remaining and sent:
            self.data[0:remaining] = self.data[sent:self.count]
            logger.debug(f"Partial flush: {remaining} bytes still queued")
        self.count = remaining
