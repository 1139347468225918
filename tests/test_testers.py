import io
import struct
import uuid

import pytest

from magicprobe.enum import Operator
from magicprobe.exceptions import InvalidOperatorException, StreamException
from magicprobe.meta import Endianess, MiddleByteOrder, get_byte_order
from magicprobe.properties import ChainedOffset, IndirectOffset, Offset
from magicprobe.testers import (
    NO_MATCH,
    ByteTester,
    ShortTester,
    LongTester,
    QuadTester,
    FloatTester,
    DoubleTester,
    StringTester,
    RegexExtender,
    RegexTester,
    DateTester,
    QuadDateTester,
    WindowsDateTester,
    GuidTester,
    DefaultTester,
    UnsupportedTester,
    format_date,
)


INTEGER_TESTERS = [ByteTester, ShortTester, LongTester, QuadTester]


def encode(value, size, endianess):
    unsigned = value & ((1 << (size * 8)) - 1)
    if size == 1:
        return bytes([unsigned])

    return get_byte_order(endianess).put_uint(unsigned, size)


@pytest.mark.parametrize('cls', INTEGER_TESTERS)
@pytest.mark.parametrize('signed', [True, False])
@pytest.mark.parametrize('endianess', list(Endianess))
def test_integer_testers(cls, signed, endianess):
    """Encode a value, a tester with the same width and order must match it
    only for the exact value."""
    size = cls.size
    value = -0x12 if signed else (1 << (size * 8 - 1)) + 0x12
    data = b'\xaa' * 3 + encode(value, size, endianess) + b'\xbb'

    def tester(expected):
        return cls(3, expected, Operator.EQUAL, signed=signed, endianess=endianess)

    assert tester(value).evaluate(data) == (True, '')
    assert tester(value + 1).evaluate(data) == NO_MATCH
    assert tester(value - 1).evaluate(data) == NO_MATCH


@pytest.mark.parametrize('cls', INTEGER_TESTERS)
def test_integer_testers_short_read(cls):
    data = b'\x00' * cls.size

    assert cls(1, 0).evaluate(data) == (False, '')
    assert cls(0x1000, 0).evaluate(data) == (False, '')
    assert cls(0, 0).evaluate(data) == (True, '')


def test_integer_expected_is_wrapped():
    data = b'\x55\xaa'

    assert ShortTester(0, 0xaa55, endianess=Endianess.LITTLE_ENDIAN).evaluate(data).matched
    assert ShortTester(0, -0x55ab, endianess=Endianess.LITTLE_ENDIAN).evaluate(data).matched
    assert ShortTester(0, 0xaa55, signed=False, endianess=Endianess.LITTLE_ENDIAN).evaluate(data).matched


def test_integer_signedness_in_ordering():
    data = b'\xff\xff'

    signed = ShortTester(0, 0, Operator.GREATER_THAN, endianess=Endianess.BIG_ENDIAN)
    unsigned = ShortTester(0, 0, Operator.GREATER_THAN, signed=False, endianess=Endianess.BIG_ENDIAN)

    assert not signed.evaluate(data).matched
    assert unsigned.evaluate(data).matched


def test_integer_message_starts_after_the_value():
    data = b'\x01' + b'1.0\x00'

    assert ByteTester(0, 1).evaluate(data, 'version %s') == (True, 'version 1.0')


def test_integer_with_indirect_offset():
    data = bytearray(0x400)
    data[526:528] = b'\x00\x01'
    data[0x300:0x304] = b'5.4\x00'

    tester = ByteTester(ChainedOffset(IndirectOffset(526, size=2), Offset(0x200)), 0, Operator.GREATER_THAN)

    assert tester.evaluate(bytes(data), 'version %s') == (True, 'version .4')
    # the pointer itself is out of the stream
    assert tester.evaluate(bytes(data[:527])) == NO_MATCH


@pytest.mark.parametrize('endianess', list(Endianess))
def test_float(endianess):
    bits = struct.unpack('<I', struct.pack('<f', 0.1))[0]
    data = get_byte_order(endianess).put_uint32(bits)

    assert FloatTester(0, 0.1, endianess=endianess).evaluate(data).matched
    assert FloatTester(0, 0.2, endianess=endianess).evaluate(data) == NO_MATCH
    assert FloatTester(0, 0.0, Operator.GREATER_THAN, endianess=endianess).evaluate(data).matched
    assert FloatTester(1, 0.1, endianess=endianess).evaluate(data) == NO_MATCH


@pytest.mark.parametrize('endianess', list(Endianess))
def test_double(endianess):
    bits = struct.unpack('<Q', struct.pack('<d', -2.5))[0]
    data = get_byte_order(endianess).put_uint64(bits)

    assert DoubleTester(0, -2.5, endianess=endianess).evaluate(data).matched
    assert DoubleTester(0, -2.5, Operator.LESS_THAN, endianess=endianess).evaluate(data) == NO_MATCH
    assert DoubleTester(0, -2.5, endianess=endianess).evaluate(data[:7]) == NO_MATCH


def test_middle_endian_float():
    data = MiddleByteOrder().put_uint32(struct.unpack('<I', struct.pack('<f', 1.5))[0])

    assert FloatTester(0, 1.5, endianess=Endianess.MIDDLE_ENDIAN).evaluate(data).matched


def test_middle_endian_long():
    tester = LongTester(0, 0x00010002, signed=False, endianess=Endianess.MIDDLE_ENDIAN)

    assert tester.evaluate(b'\x01\x00\x02\x00').matched
    assert tester.evaluate(b'\x02\x00\x01\x00') == NO_MATCH


def test_float_out_of_range():
    with pytest.raises(ValueError):
        FloatTester(0, 1e300)

    assert DoubleTester(0, 1e300).expected == 1e300


def test_string():
    data = b'\x00' * 514 + b'HdrS'

    assert StringTester(514, 'HdrS').evaluate(data, 'Linux kernel') == (True, 'Linux kernel')
    assert StringTester(514, 'HdrZ').evaluate(data) == NO_MATCH


def test_string_truncated():
    data = b'\x00' * 514 + b'Hdr'

    assert StringTester(514, 'HdrS').evaluate(data) == (False, '')


def test_string_operators():
    data = b'kebab\x00'

    assert StringTester(0, 'kebap', Operator.NOT_EQUAL).evaluate(data).matched
    assert StringTester(0, 'x', Operator.ANY).evaluate(data, '%s') == (True, 'kebab')

    with pytest.raises(InvalidOperatorException):
        StringTester(0, 'kebab', Operator.GREATER_THAN).evaluate(data)


def test_regex_extender():
    assert RegexExtender.parse('80c') == RegexExtender.parse('c80')
    assert RegexExtender.parse('80c') == RegexExtender(count=80, case_insensitive=True, lines=False, start=False)
    assert RegexExtender.parse('') == RegexExtender(0, False, False, False)
    assert RegexExtender.parse('sl3') == RegexExtender(3, False, True, True)

    with pytest.raises(ValueError):
        RegexExtender.parse('80z')


def test_regex_whole_stream():
    data = b'prefix ' + b'.' * 1000 + b'needle: 1.0\x00'

    assert RegexTester(7, 'needle: ').evaluate(data, 'v%s') == (True, 'v1.0')
    assert RegexTester(7, 'haystack').evaluate(data) == NO_MATCH
    assert RegexTester(len(data) + 1, 'needle').evaluate(data) == NO_MATCH


def test_regex_window():
    data = b'..Hello world..'

    assert RegexTester(0, 'hello', extender='c7').evaluate(data).matched
    assert RegexTester(0, 'hello', extender='7').evaluate(data) == NO_MATCH
    assert RegexTester(0, 'world', extender='7c').evaluate(data) == NO_MATCH
    # the window can't be read completely
    assert RegexTester(0, 'Hello', extender='100').evaluate(data) == NO_MATCH


def test_regex_start_of_match():
    data = b'id=ABC\x00'

    assert RegexTester(0, 'id=').evaluate(data, '%s') == (True, 'ABC')
    assert RegexTester(0, 'id=', extender='s').evaluate(data, '%s') == (True, 'id=ABC')


def test_regex_lines():
    data = b'#!/bin/sh\necho python\n'

    assert RegexTester(2, 'python', extender='1l').evaluate(data) == NO_MATCH
    assert RegexTester(2, 'python', extender='2l').evaluate(data).matched
    assert RegexTester(2, r'sh\n', extender='1l').evaluate(data).matched


def test_regex_posix_classes():
    assert RegexTester(0, '^[[:space:]]*python').evaluate(b'  python').matched
    assert RegexTester(0, '^[[:alpha:]]+$').evaluate(b'kebab').matched
    assert RegexTester(0, '^[[:alpha:]]+$').evaluate(b'keb4b') == NO_MATCH
    assert RegexTester(0, '^[[:digit:]]+$').evaluate(b'1234').matched


def test_regex_operators():
    assert RegexTester(0, 'x', operator=Operator.ANY).evaluate(b'abc', '%s') == (True, 'abc')

    with pytest.raises(InvalidOperatorException):
        RegexTester(0, 'abc', operator=Operator.LESS_THAN).evaluate(b'abc')


def test_format_date():
    assert format_date(0) == 'Thu Jan  1 00:00:00 UTC 1970'
    assert format_date(1234567890) == 'Fri Feb 13 23:31:30 UTC 2009'
    assert format_date(1 << 62) == str(1 << 62)


def test_date():
    data = (1234567890).to_bytes(4, 'little')
    tester = DateTester(0, 1234567890, endianess=Endianess.LITTLE_ENDIAN)

    assert tester.evaluate(data, 'created %s') == (True, 'created Fri Feb 13 23:31:30 UTC 2009')
    assert tester.evaluate(data[:3], 'created %s') == NO_MATCH
    assert DateTester(0, 0, endianess=Endianess.BIG_ENDIAN).evaluate(data) == NO_MATCH


def test_local_date():
    data = (0).to_bytes(4, 'little')
    tester = DateTester(0, 0, endianess=Endianess.LITTLE_ENDIAN, local=True)

    assert tester.evaluate(data, '%s') == (True, format_date(0, local=True))


def test_quad_dates():
    data = (1234567890).to_bytes(8, 'big')

    assert QuadDateTester(0, 0, Operator.GREATER_THAN, endianess=Endianess.BIG_ENDIAN).evaluate(data, '%s') == \
        (True, 'Fri Feb 13 23:31:30 UTC 2009')

    filetime = (1234567890 + WindowsDateTester.EPOCH_DELTA) * 10 ** 7
    data = filetime.to_bytes(8, 'little')

    assert WindowsDateTester(0, None, Operator.ANY, endianess=Endianess.LITTLE_ENDIAN).evaluate(data, '%s') == \
        (True, 'Fri Feb 13 23:31:30 UTC 2009')


def test_guid():
    guid = uuid.UUID('6f5e4c3a-1b2d-4e8f-9a0b-1c2d3e4f5a6b')
    data = b'\xff' + guid.bytes

    literal = '6F5E4C3A-1B2D-4E8F-9A0B-1C2D3E4F5A6B'

    assert GuidTester(1, literal).evaluate(data).matched
    assert GuidTester(1, literal.lower()).evaluate(data).matched
    assert GuidTester(0, literal).evaluate(data) == NO_MATCH
    assert GuidTester(0, literal, Operator.NOT_EQUAL).evaluate(data).matched
    assert GuidTester(1, None, Operator.ANY).evaluate(data).matched
    assert GuidTester(2, literal).evaluate(data) == NO_MATCH


@pytest.mark.parametrize('operator', [
    Operator.GREATER_THAN,
    Operator.LESS_THAN,
    Operator.GREATER_OR_EQUAL,
    Operator.LESS_OR_EQUAL,
])
def test_guid_invalid_operator(operator):
    with pytest.raises(InvalidOperatorException):
        GuidTester(0, '6F5E4C3A-1B2D-4E8F-9A0B-1C2D3E4F5A6B', operator).evaluate(b'\x00' * 16)


def test_default():
    data = b'abc\x00'

    assert DefaultTester(0).evaluate(data, 'data %s') == (True, 'data abc')
    assert DefaultTester(100).evaluate(data, 'data') == (True, 'data')
    assert DefaultTester(IndirectOffset(100)).evaluate(data, 'data %s') == (True, 'data ')


def test_unsupported():
    assert UnsupportedTester('pstring', 0, 'kebab').evaluate(b'\x05kebab', 'text') == NO_MATCH


def test_invalid_operator_from_comparator():
    with pytest.raises(InvalidOperatorException):
        ByteTester(0, 0, 'kebab').evaluate(b'\x00')


def test_unreadable_stream_propagates():
    f = io.BytesIO(b'HdrS')
    f.close()

    with pytest.raises(StreamException):
        StringTester(0, 'HdrS').evaluate(f)
