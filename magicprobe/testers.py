"""
A Tester is the compiled form of the test of a rule: where to read, how to
decode what was read and what to compare it with.

All the testers follow the same steps

 1. resolve the offset
 2. read exactly the bytes the type needs: reading less is not an error,
    simply the test doesn't match
 3. decode the bytes
 4. compare with the expected value
 5. render the message starting just after the bytes consumed

They are built once and reused for any number of streams, nothing of the
stream is stored in them.
"""
import datetime
import logging
import struct
import uuid
from typing import NamedTuple, Optional

import regex

from .compare import compare
from .enum import Operator
from .exceptions import InvalidOperatorException
from .message import render
from .meta import Endianess, get_byte_order
from .properties import Offset
from .streams import Stream


class Outcome(NamedTuple):
    matched: bool
    message: str


NO_MATCH = Outcome(False, '')


class Tester(object):
    """Base class to subclass from"""

    size = 0
    kind = None
    operators = tuple(Operator)

    def __init__(self, offset, expected=None, operator=Operator.EQUAL):
        self.logger = logging.getLogger(__name__)
        self.offset = offset if isinstance(offset, Offset) else Offset(offset)
        self.expected = expected
        self.operator = operator

    def __repr__(self):
        return '<%s(%r, %s %r)>' % (
            self.__class__.__name__,
            self.offset,
            getattr(self.operator, 'name', self.operator),
            self.expected,
        )

    def _check_operator(self):
        if self.operator not in self.operators:
            raise InvalidOperatorException(self.operator, kind=self.kind)

    def _get_size(self):
        return self.size

    def decode(self, raw: bytes):
        raise NotImplementedError(f'method {self.__class__.__name__}.decode() not implemented')

    def matches(self, value) -> bool:
        return compare(value, self.expected, self.operator)

    def render(self, stream, position, template, value) -> str:
        return render(stream, position, template)

    def evaluate(self, stream, template: str = '') -> Outcome:
        self._check_operator()
        stream = Stream.wrap(stream)

        offset = self.offset.resolve(stream)
        if offset is None:
            return NO_MATCH

        size = self._get_size()
        raw = stream.read_at(offset, size)
        if len(raw) != size:
            return NO_MATCH

        value = self.decode(raw)
        if not self.matches(value):
            return NO_MATCH

        self.logger.debug('%r matched at offset %#x' % (self, offset))

        return Outcome(True, self.render(stream, offset + size, template, value))


class IntegerTester(Tester):
    """Integers of 1, 2, 4 or 8 bytes, signed or not, in any byte order.

    The expected value is wrapped to the width and signedness of the
    tester so that 0xaa55 and -0x55ab are the same signed short."""

    kind = 'integer'

    def __init__(self, offset, expected=None, operator=Operator.EQUAL, signed=True,
                 endianess=Endianess.NATIVE, size=None):
        if size is not None:
            self.size = size
        if self.size not in (1, 2, 4, 8):
            raise ValueError(f'integers can\'t be {self.size} bytes wide')
        self.signed = signed
        self.endianess = endianess
        self.byte_order = get_byte_order(endianess)
        super().__init__(offset, expected=self.wrap(expected), operator=operator)

    def wrap(self, value):
        if value is None:
            return None

        bits = self.size * 8
        value &= (1 << bits) - 1
        if self.signed and value & (1 << (bits - 1)):
            value -= 1 << bits

        return value

    def decode(self, raw):
        value = raw[0] if self.size == 1 else self.byte_order.uint(raw)
        return self.wrap(value)


class ByteTester(IntegerTester):
    size = 1


class ShortTester(IntegerTester):
    size = 2


class LongTester(IntegerTester):
    size = 4


class QuadTester(IntegerTester):
    size = 8


class FloatTester(Tester):
    """IEEE-754 single precision: the bits are decoded like an unsigned
    integer so that every byte order works, middle-endian included."""

    kind = 'float'
    size = 4
    format = 'f'
    bits_format = 'I'

    def __init__(self, offset, expected=None, operator=Operator.EQUAL, endianess=Endianess.NATIVE):
        self.endianess = endianess
        self.byte_order = get_byte_order(endianess)
        if expected is not None:
            # round to the precision of the type
            try:
                expected = struct.unpack('<' + self.format, struct.pack('<' + self.format, expected))[0]
            except OverflowError as e:
                raise ValueError(f'value {expected!r} doesn\'t fit in a {self.kind}') from e
        super().__init__(offset, expected=expected, operator=operator)

    def decode(self, raw):
        bits = self.byte_order.uint(raw)
        return struct.unpack('<' + self.format, struct.pack('<' + self.bits_format, bits))[0]


class DoubleTester(FloatTester):
    size = 8
    format = 'd'
    bits_format = 'Q'


class StringTester(Tester):
    """Byte-for-byte equality with a literal, as long as the literal is."""

    kind = 'string'
    operators = (Operator.EQUAL, Operator.NOT_EQUAL, Operator.ANY)

    def __init__(self, offset, expected=b'', operator=Operator.EQUAL):
        if isinstance(expected, str):
            expected = expected.encode('utf-8')
        if operator is Operator.ANY:
            expected = b''
        super().__init__(offset, expected=bytes(expected), operator=operator)

    def _get_size(self):
        return len(self.expected)

    def decode(self, raw):
        return raw


class RegexExtender(NamedTuple):
    count: int
    case_insensitive: bool
    lines: bool
    start: bool

    @classmethod
    def parse(cls, extender: str) -> "RegexExtender":
        '''Flags and count can be written in any order: "80c" and "c80" are the same.'''
        flags = set()
        digits = []
        for c in extender or '':
            if c in 'cls':
                flags.add(c)
            elif c.isdigit():
                digits.append(c)
            else:
                raise ValueError(f'invalid regex flag \'{c}\' in \'{extender}\'')

        return cls(
            count=int(''.join(digits)) if digits else 0,
            case_insensitive='c' in flags,
            lines='l' in flags,
            start='s' in flags,
        )


class RegexTester(Tester):
    """Search a pattern into a window of the stream. Patterns are extended
    regular expressions, POSIX classes like [[:space:]] included.

    Without a count in the extender the window is all the stream from the
    offset on, otherwise it's count bytes (or lines with the flag 'l').
    The message is rendered from the end of the match, or from its start
    with the flag 's'."""

    kind = 'regex'
    operators = (Operator.EQUAL, Operator.ANY)

    def __init__(self, offset, expected, extender='', operator=Operator.EQUAL):
        self.extender = RegexExtender.parse(extender)
        pattern = expected.encode('utf-8') if isinstance(expected, str) else expected
        self.regex = None
        if operator is not Operator.ANY:
            self.regex = regex.compile(pattern, regex.IGNORECASE if self.extender.case_insensitive else 0)
        super().__init__(offset, expected=expected, operator=operator)

    def _window(self, stream, offset):
        count = self.extender.count
        if not count:
            return stream.read_all(offset)

        if self.extender.lines:
            return stream.read_lines(offset, count)

        window = stream.read_at(offset, count)
        if len(window) != count:
            return b''

        return window

    def evaluate(self, stream, template=''):
        self._check_operator()
        stream = Stream.wrap(stream)

        offset = self.offset.resolve(stream)
        if offset is None:
            return NO_MATCH

        if self.operator is Operator.ANY:
            return Outcome(True, render(stream, offset, template))

        window = self._window(stream, offset)
        if not window:
            return NO_MATCH

        match = self.regex.search(window)
        if match is None:
            return NO_MATCH

        position = offset + (match.start() if self.extender.start else match.end())

        return Outcome(True, render(stream, position, template))


def format_date(seconds: int, local: bool = False) -> str:
    '''Represent a Unix timestamp like "Thu Jan  1 00:00:00 UTC 1970".'''
    try:
        if local:
            moment = datetime.datetime.fromtimestamp(seconds).astimezone()
        else:
            moment = datetime.datetime.fromtimestamp(seconds, tz=datetime.timezone.utc)
    except (OverflowError, OSError, ValueError):
        return str(seconds)

    return '%s %2d %s' % (moment.strftime('%a %b'), moment.day, moment.strftime('%H:%M:%S %Z %Y'))


class DateTester(IntegerTester):
    """Unsigned seconds since the epoch: on match '%s' in the message is the
    date in UTC, or in local time if local is True."""

    kind = 'date'
    size = 4

    def __init__(self, offset, expected=None, operator=Operator.EQUAL, endianess=Endianess.NATIVE, local=False):
        self.local = local
        super().__init__(offset, expected=expected, operator=operator, signed=False, endianess=endianess)

    def to_seconds(self, value):
        return value

    def render(self, stream, position, template, value):
        return render(stream, position, template,
                      converter=lambda: format_date(self.to_seconds(value), local=self.local))


class QuadDateTester(DateTester):
    size = 8


class WindowsDateTester(QuadDateTester):
    """Windows FILETIME: 100ns ticks from the first of January 1601."""

    EPOCH_DELTA = 11644473600

    def __init__(self, offset, expected=None, operator=Operator.EQUAL, endianess=Endianess.NATIVE):
        super().__init__(offset, expected=expected, operator=operator, endianess=endianess, local=False)

    def to_seconds(self, value):
        return value // 10 ** 7 - self.EPOCH_DELTA


class GuidTester(Tester):
    """16 bytes read as an UUID and compared, in its uppercase canonical
    form, with the literal."""

    kind = 'guid'
    size = 16
    operators = (Operator.EQUAL, Operator.NOT_EQUAL, Operator.ANY)

    def __init__(self, offset, expected='', operator=Operator.EQUAL):
        super().__init__(offset, expected=expected.upper() if expected else expected, operator=operator)

    def decode(self, raw):
        return str(uuid.UUID(bytes=raw)).upper()


class DefaultTester(Tester):
    """Always matches: the message is rendered from the offset."""

    kind = 'default'

    def __init__(self, offset):
        super().__init__(offset, operator=Operator.ANY)

    def evaluate(self, stream, template=''):
        stream = Stream.wrap(stream)
        offset = self.offset.resolve(stream)

        return Outcome(True, render(stream, offset, template))


class UnsupportedTester(Tester):
    """A keyword we recognize but don't evaluate: it never matches."""

    kind = 'unsupported'

    def __init__(self, keyword: str, offset=0, expected: Optional[str] = None):
        self.keyword = keyword
        super().__init__(offset, expected=expected, operator=Operator.ANY)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.keyword})>'

    def evaluate(self, stream, template=''):
        self.logger.debug('skipping unsupported test \'%s\'' % self.keyword)
        return NO_MATCH
