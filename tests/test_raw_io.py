"""Unit tests for raw chunked read/write accumulation."""

import unittest

from nxtlink.link.raw_io import raw_read, raw_write
from nxtlink.models import Outcome, Transfer

from fakes import FakeTransport


class RawIOTestCase(unittest.TestCase):

    def setUp(self):
        self.transport = FakeTransport()
        self.transport.open()
        self.buf = bytearray(512)


class TestRawReadPreconditions(RawIOTestCase):

    def test_not_open(self):
        """Reading from a closed transport fails NOT_OPEN without a chunk call."""
        self.transport.close()
        result = raw_read(self.transport, self.buf, 0, 10, True)
        self.assertEqual(result, Transfer(Outcome.NOT_OPEN, 0))
        self.assertEqual(self.transport.read_calls, [])

    def test_zero_length_is_no_effect(self):
        result = raw_read(self.transport, self.buf, 0, 0, True)
        self.assertEqual(result, Transfer(Outcome.NO_EFFECT, 0))
        self.assertEqual(self.transport.read_calls, [])

    def test_range_beyond_buffer(self):
        result = raw_read(self.transport, self.buf, 500, 64, True)
        self.assertIs(result.outcome, Outcome.ILLEGAL_ARGUMENT)


class TestRawRead(RawIOTestCase):

    def test_single_chunk(self):
        """A chunk that completes with data ends a bounded read."""
        self.transport.queue_read(b"\x02\xfe\xef")
        result = raw_read(self.transport, self.buf, 0, 512, True)
        self.assertEqual(result, Transfer(Outcome.SUCCESS, 3))
        self.assertEqual(bytes(self.buf[:3]), b"\x02\xfe\xef")

    def test_offset_respected(self):
        self.transport.queue_read(b"ab")
        raw_read(self.transport, self.buf, 10, 20, True)
        self.assertEqual(bytes(self.buf[10:12]), b"ab")
        self.assertEqual(self.transport.read_calls, [(10, 20, True)])

    def test_bare_timeout_with_timeout_enabled(self):
        self.transport.queue_read(outcome=Outcome.TIMEOUT)
        result = raw_read(self.transport, self.buf, 0, 512, True)
        self.assertEqual(result, Transfer(Outcome.TIMEOUT, 0))

    def test_bare_timeout_retried_with_timeout_disabled(self):
        """Without the timeout flag an empty timeout means 'no data yet'."""
        for _ in range(3):
            self.transport.queue_read(outcome=Outcome.TIMEOUT)
        self.transport.queue_read(b"hello")
        result = raw_read(self.transport, self.buf, 0, 512, False)
        self.assertEqual(result, Transfer(Outcome.SUCCESS, 5))
        self.assertEqual(len(self.transport.read_calls), 4)

    def test_empty_success_retried_with_timeout_disabled(self):
        self.transport.queue_read(b"")
        self.transport.queue_read(b"x")
        result = raw_read(self.transport, self.buf, 0, 512, False)
        self.assertEqual(result, Transfer(Outcome.SUCCESS, 1))

    def test_straddling_transfer_completes(self):
        """A timeout after partial data keeps reading until the rest arrives."""
        self.transport.queue_read(b"abc", Outcome.TIMEOUT)
        self.transport.queue_read(b"def")
        result = raw_read(self.transport, self.buf, 0, 512, True)
        self.assertEqual(result, Transfer(Outcome.SUCCESS, 6))
        self.assertEqual(bytes(self.buf[:6]), b"abcdef")
        self.assertEqual(self.transport.read_calls[1], (3, 509, True))

    def test_straddling_absorbs_one_empty_timeout(self):
        self.transport.queue_read(b"abc", Outcome.TIMEOUT)
        self.transport.queue_read(outcome=Outcome.TIMEOUT)
        self.transport.queue_read(b"de")
        result = raw_read(self.transport, self.buf, 0, 512, True)
        self.assertEqual(result, Transfer(Outcome.SUCCESS, 5))

    def test_partial_timeout_reports_partial_count(self):
        """A read that stalls after partial data reports TIMEOUT with that count."""
        self.transport.queue_read(b"abcd", Outcome.TIMEOUT)
        self.transport.queue_read(outcome=Outcome.TIMEOUT)
        self.transport.queue_read(outcome=Outcome.TIMEOUT)
        result = raw_read(self.transport, self.buf, 0, 512, True)
        self.assertEqual(result, Transfer(Outcome.TIMEOUT, 4))
        self.assertEqual(self.transport.pending_reads, 0)

    def test_partial_timeout_completes_with_timeout_disabled(self):
        """Without the timeout flag a stalled straddling read is complete, not failed."""
        self.transport.queue_read(b"ab", Outcome.TIMEOUT)
        self.transport.queue_read(outcome=Outcome.TIMEOUT)
        self.transport.queue_read(outcome=Outcome.TIMEOUT)
        result = raw_read(self.transport, self.buf, 0, 512, False)
        self.assertEqual(result, Transfer(Outcome.SUCCESS, 2))
        self.assertEqual(self.transport.pending_reads, 0)

    def test_straddling_pieces_accumulate_with_timeout_disabled(self):
        self.transport.queue_read(b"\x02\xfe", Outcome.TIMEOUT)
        self.transport.queue_read(b"\xef", Outcome.TIMEOUT)
        self.transport.queue_read(outcome=Outcome.TIMEOUT)
        self.transport.queue_read(outcome=Outcome.TIMEOUT)
        result = raw_read(self.transport, self.buf, 0, 512, False)
        self.assertEqual(result, Transfer(Outcome.SUCCESS, 3))
        self.assertEqual(bytes(self.buf[:3]), b"\x02\xfe\xef")

    def test_straddling_then_success_with_timeout_disabled(self):
        self.transport.queue_read(b"ab", Outcome.TIMEOUT)
        self.transport.queue_read(outcome=Outcome.TIMEOUT)
        self.transport.queue_read(b"cd")
        result = raw_read(self.transport, self.buf, 0, 512, False)
        self.assertEqual(result, Transfer(Outcome.SUCCESS, 4))

    def test_full_request_satisfied(self):
        self.transport.queue_read(b"abcd", Outcome.TIMEOUT)
        result = raw_read(self.transport, self.buf, 0, 4, True)
        self.assertEqual(result, Transfer(Outcome.SUCCESS, 4))

    def test_disconnect_mid_transfer(self):
        """Device loss surfaces DISCONNECTED regardless of bytes already moved."""
        self.transport.queue_read(b"abc", Outcome.TIMEOUT)
        self.transport.queue_read(outcome=Outcome.DISCONNECTED)
        result = raw_read(self.transport, self.buf, 0, 512, True)
        self.assertEqual(result, Transfer(Outcome.DISCONNECTED, 3))

    def test_io_error(self):
        self.transport.queue_read(outcome=Outcome.IO_ERROR)
        result = raw_read(self.transport, self.buf, 0, 512, False)
        self.assertEqual(result, Transfer(Outcome.IO_ERROR, 0))


class TestRawWrite(RawIOTestCase):

    def test_not_open(self):
        self.transport.close()
        result = raw_write(self.transport, b"abc", 0, 3, False)
        self.assertEqual(result, Transfer(Outcome.NOT_OPEN, 0))
        self.assertEqual(self.transport.write_calls, [])

    def test_zero_length_is_no_effect(self):
        result = raw_write(self.transport, b"abc", 0, 0, False)
        self.assertEqual(result, Transfer(Outcome.NO_EFFECT, 0))
        self.assertEqual(self.transport.write_calls, [])

    def test_full_write(self):
        result = raw_write(self.transport, b"hello", 0, 5, True)
        self.assertEqual(result, Transfer(Outcome.SUCCESS, 5))
        self.assertEqual(bytes(self.transport.written), b"hello")

    def test_partial_writes_accumulate(self):
        self.transport.queue_write(count=2)
        self.transport.queue_write(count=2)
        result = raw_write(self.transport, b"hello", 0, 5, True)
        self.assertEqual(result, Transfer(Outcome.SUCCESS, 5))
        self.assertEqual(bytes(self.transport.written), b"hello")
        self.assertEqual(
            [data for data, _ in self.transport.write_calls], [b"hello", b"llo", b"o"])

    def test_timeout_enabled_stops_with_partial_count(self):
        self.transport.queue_write(Outcome.TIMEOUT, count=3)
        result = raw_write(self.transport, b"hello", 0, 5, True)
        self.assertEqual(result, Transfer(Outcome.TIMEOUT, 3))

    def test_timeout_disabled_retries(self):
        self.transport.queue_write(Outcome.TIMEOUT, count=0)
        self.transport.queue_write(Outcome.TIMEOUT, count=1)
        result = raw_write(self.transport, b"hello", 0, 5, False)
        self.assertEqual(result, Transfer(Outcome.SUCCESS, 5))
        self.assertEqual(bytes(self.transport.written), b"hello")

    def test_disconnect_reports_moved_bytes(self):
        self.transport.queue_write(count=2)
        self.transport.queue_write(Outcome.DISCONNECTED, count=0)
        result = raw_write(self.transport, b"hello", 0, 5, False)
        self.assertEqual(result, Transfer(Outcome.DISCONNECTED, 2))


if __name__ == "__main__":
    unittest.main()
