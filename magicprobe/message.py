"""
Render the message of a matching rule.

The message is a printf-like pattern whose conversions take their values
from the stream itself, starting where the test stopped reading: every
conversion moves the position forward by what it consumed.

Reference <https://man7.org/linux/man-pages/man3/printf.3.html>.
"""
import logging
import re

from .meta import LittleByteOrder


logger = logging.getLogger(__name__)


_CONVERSION = re.compile(
    r'%(?P<flags>[#+\- 0]*)(?P<width>\d*)(?:\.(?P<precision>\d+))?(?:hh|h|ll|l|q)?(?P<conversion>[sdiuxX%])'
)

_INTEGER_SIZE = 4
_byte_order = LittleByteOrder()


def _format(match):
    '''Rebuild the conversion without the length modifiers.'''
    precision = match.group('precision')
    return '%%%s%s%s%s' % (
        match.group('flags'),
        match.group('width'),
        '.' + precision if precision is not None else '',
        match.group('conversion'),
    )


def _read_string(stream, position):
    raw = stream.read_until(position)
    consumed = len(raw)
    # step over the terminator only if there is one
    if stream.read_at(position + consumed, 1):
        consumed += 1

    return raw.decode('utf-8', errors='replace'), consumed


def _read_integer(stream, position, signed):
    raw = stream.read_at(position, _INTEGER_SIZE)
    if len(raw) != _INTEGER_SIZE:
        return None, len(raw)

    value = _byte_order.uint32(raw)
    if signed and value & 0x80000000:
        value -= 1 << 32

    return value, _INTEGER_SIZE


def render(stream, position, template: str, converter=None) -> str:
    '''Substitute the conversions of template with data read from stream.

    position is where the first conversion reads; None means that there
    is nothing to read and all the conversions render as empty strings.
    converter is a callable returning the text to use for '%s' in place of
    reading the stream.

    A short read never aborts: the conversion is simply left empty.'''
    if not template or '%' not in template:
        return template or ''

    result = []
    last = 0

    for match in _CONVERSION.finditer(template):
        result.append(template[last:match.start()])
        last = match.end()

        conversion = match.group('conversion')

        if conversion == '%':
            result.append('%')
            continue

        if conversion == 's':
            if converter is not None:
                value = converter()
            elif position is None:
                value = ''
            else:
                value, consumed = _read_string(stream, position)
                position += consumed
            result.append(_format(match) % value)
            continue

        if position is None:
            continue

        value, consumed = _read_integer(stream, position, signed=conversion in 'di')
        position += consumed

        if value is None:
            logger.debug('short read rendering \'%s\' from \'%s\'' % (match.group(), template))
            continue

        result.append(_format(match) % value)

    result.append(template[last:])

    return ''.join(result)
