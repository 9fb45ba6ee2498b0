"""
Tests for core/response_mapper.py - conditional write of the outbound buffer.
"""

import unittest

from dialhook.core.codec import KEY_SIZE, OUTBOUND_SIZE, VALUE_SIZE
from dialhook.core.errors import OutputBufferTooSmallError
from dialhook.core.response_mapper import map_response


class TestMapResponse(unittest.TestCase):
    def test_no_flag_leaves_buffer_untouched(self):
        out = bytearray(OUTBOUND_SIZE)
        self.assertFalse(map_response(False, b"Success!", out))
        self.assertEqual(out, bytearray(OUTBOUND_SIZE))

    def test_no_buffer_is_a_no_op(self):
        self.assertFalse(map_response(True, b"Success!", None))

    def test_small_buffer_ignored_when_not_writing(self):
        self.assertFalse(map_response(False, b"Success!", bytearray(10)))

    def test_writes_record(self):
        out = bytearray(OUTBOUND_SIZE)
        self.assertTrue(map_response(True, b"Success!", out))
        self.assertEqual(out[:2], b"01")
        self.assertEqual(bytes(out[2:2 + KEY_SIZE]).rstrip(b"\0"), b"CFResp")
        self.assertEqual(bytes(out[2 + KEY_SIZE:]).rstrip(b"\0"), b"Success!")

    def test_truncates_to_127_bytes(self):
        out = bytearray(OUTBOUND_SIZE)
        map_response(True, b"y" * 500, out)
        value = out[2 + KEY_SIZE:]
        self.assertEqual(len(value), VALUE_SIZE)
        self.assertEqual(bytes(value[:127]), b"y" * 127)
        self.assertEqual(value[127], 0)

    def test_overwrites_stale_content(self):
        out = bytearray(b"\xff" * OUTBOUND_SIZE)
        map_response(True, b"ok", out)
        self.assertEqual(bytes(out[2 + KEY_SIZE:]), b"ok".ljust(VALUE_SIZE, b"\0"))

    def test_larger_buffer_only_first_162_bytes_written(self):
        out = bytearray(b"\xee" * (OUTBOUND_SIZE + 8))
        map_response(True, b"ok", out)
        self.assertEqual(bytes(out[OUTBOUND_SIZE:]), b"\xee" * 8)

    def test_buffer_too_small(self):
        with self.assertRaises(OutputBufferTooSmallError):
            map_response(True, b"ok", bytearray(OUTBOUND_SIZE - 1))

    def test_memoryview_target(self):
        backing = bytearray(OUTBOUND_SIZE)
        map_response(True, b"ok", memoryview(backing))
        self.assertEqual(backing[:2], b"01")


if __name__ == "__main__":
    unittest.main()
