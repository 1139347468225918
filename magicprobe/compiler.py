"""
Compile the textual rules into Rule trees.

Each line (blank lines and lines starting with '#' are skipped) is

    [>...]<offset> <type>[/<extender>] [<rel>]<value> [message ...]

where the number of leading '>' is the depth of the rule: a rule is a child
of the nearest preceding rule one level up. For example

    514         string  HdrS    Linux kernel
    >510        uleshort 0xAA55 x86 boot executable
    >>529       byte    1       \\b, bzImage

The offset can be indirect, i.e. read from the stream, using the syntax
(<base>[.,]<type>[+-]<delta>) so that "(526.s+0x200)" means "the short
little-endian at 526 plus 0x200".
"""
import logging
import re
from typing import Iterable, List, Union

import regex

from .core import Rule
from .enum import Operator
from .exceptions import ParseException
from .meta import Endianess
from .properties import Offset, IndirectOffset, ChainedOffset
from . import testers


logger = logging.getLogger(__name__)


MATCH_ANY = 'x'

_ENDIANESS_PREFIXES = {
    'le': Endianess.LITTLE_ENDIAN,
    'be': Endianess.BIG_ENDIAN,
    'me': Endianess.MIDDLE_ENDIAN,
}

# base keyword -> (tester class, bits of the value)
_INTEGER_TYPES = {
    'byte': (testers.ByteTester, 8),
    'short': (testers.ShortTester, 16),
    'long': (testers.LongTester, 32),
    'quad': (testers.QuadTester, 64),
}

_FLOAT_TYPES = {
    'float': testers.FloatTester,
    'double': testers.DoubleTester,
}

# keyword -> (tester class, bits, local time)
_DATE_TYPES = {
    'date': (testers.DateTester, 32, False),
    'ldate': (testers.DateTester, 32, True),
    'qdate': (testers.QuadDateTester, 64, False),
    'qldate': (testers.QuadDateTester, 64, True),
    'qwdate': (testers.WindowsDateTester, 64, False),
}

UNSUPPORTED_TYPES = frozenset((
    'pstring', 'indirect', 'name', 'use', 'search', 'der', 'beid3', 'leid3', 'clear', 'offset',
))

_ENDIAN_TYPES = frozenset(('short', 'long', 'quad', 'float', 'double')) | frozenset(_DATE_TYPES)

_OTHER_TYPES = frozenset(('string', 'regex', 'default', 'guid'))

_KNOWN_TYPES = frozenset(_INTEGER_TYPES) | frozenset(_FLOAT_TYPES) | frozenset(_DATE_TYPES) | _OTHER_TYPES

# the only ones accepting the "u" prefix
_UNSIGNED_TYPES = frozenset(_INTEGER_TYPES) | frozenset(_DATE_TYPES)

# longest first so that '>=' wins over '>'
_RELATIONS = (
    ('>=', Operator.GREATER_OR_EQUAL),
    ('<=', Operator.LESS_OR_EQUAL),
    ('>', Operator.GREATER_THAN),
    ('<', Operator.LESS_THAN),
    ('=', Operator.EQUAL),
    ('!', Operator.NOT_EQUAL),
)

_INDIRECT_OFFSET = re.compile(
    r'^\((?P<base>[^.,+\-)]+)(?:(?P<sign>[.,])(?P<type>[bBcCsShHlLmqQ]))?(?:(?P<op>[+-])(?P<delta>[^)]+))?\)$'
)

# type of an indirect offset -> (size, endianess)
_INDIRECT_TYPES = {
    'b': (1, Endianess.LITTLE_ENDIAN),
    'c': (1, Endianess.LITTLE_ENDIAN),
    'B': (1, Endianess.LITTLE_ENDIAN),
    'C': (1, Endianess.LITTLE_ENDIAN),
    's': (2, Endianess.LITTLE_ENDIAN),
    'h': (2, Endianess.LITTLE_ENDIAN),
    'S': (2, Endianess.BIG_ENDIAN),
    'H': (2, Endianess.BIG_ENDIAN),
    'l': (4, Endianess.LITTLE_ENDIAN),
    'L': (4, Endianess.BIG_ENDIAN),
    'm': (4, Endianess.MIDDLE_ENDIAN),
    'q': (8, Endianess.LITTLE_ENDIAN),
    'Q': (8, Endianess.BIG_ENDIAN),
}


def parse_integer(text: str) -> int:
    '''Parse an integer detecting the base from the prefix: 0x is hex, 0o or
    a leading zero octal, 0b binary, otherwise decimal.'''
    body = text
    sign = 1
    if body[:1] in ('+', '-'):
        sign = -1 if body[0] == '-' else 1
        body = body[1:]

    lower = body.lower()
    if lower.startswith('0x'):
        base, body = 16, body[2:]
    elif lower.startswith('0b'):
        base, body = 2, body[2:]
    elif lower.startswith('0o'):
        base, body = 8, body[2:]
    elif len(body) > 1 and body.startswith('0'):
        base, body = 8, body[1:]
    else:
        base = 10

    if not body or body[0] in '+-':
        raise ValueError(f'invalid integer literal \'{text}\'')

    return sign * int(body, base)


def parse_offset(text: str) -> Offset:
    if text.startswith('&'):
        raise ValueError(f'relative offset \'{text}\' is not supported')

    if not text.startswith('('):
        return Offset(parse_integer(text))

    match = _INDIRECT_OFFSET.match(text)
    if not match:
        raise ValueError(f'invalid indirect offset \'{text}\'')

    size, endianess = _INDIRECT_TYPES[match.group('type') or 'l']
    pointer = IndirectOffset(
        parse_integer(match.group('base')),
        size=size,
        endianess=endianess,
        signed=match.group('sign') == ',',
    )

    if match.group('delta') is None:
        return pointer

    delta = parse_integer(match.group('delta'))
    if match.group('op') == '-':
        delta = -delta

    return ChainedOffset(pointer, Offset(delta))


def parse_type(token: str):
    '''Split a type like "ubelong/xyz" into (keyword, signed, endianess, extender).'''
    name, _, extender = token.partition('/')
    keyword = name

    if name in UNSUPPORTED_TYPES:
        return name, True, Endianess.NATIVE, extender

    signed = True
    if name.startswith('u'):
        signed = False
        name = name[1:]

    if name in UNSUPPORTED_TYPES:
        return name, signed, Endianess.NATIVE, extender

    endianess = Endianess.NATIVE
    prefix = name[:2]
    if prefix in _ENDIANESS_PREFIXES and name[2:] in _ENDIAN_TYPES:
        endianess = _ENDIANESS_PREFIXES[prefix]
        name = name[2:]

    if name not in _KNOWN_TYPES:
        raise ValueError(f'invalid read type \'{keyword}\'')

    if not signed and name not in _UNSIGNED_TYPES:
        raise ValueError(f'type \'{keyword}\' can\'t be unsigned')

    return name, signed, endianess, extender


def parse_test_value(text: str):
    '''Split the comparator from the value: "x" matches anything, no
    comparator means equality.'''
    if not text:
        raise ValueError('empty test value')

    if text == MATCH_ANY:
        return Operator.ANY, None

    operator = Operator.EQUAL
    for prefix, candidate in _RELATIONS:
        if text.startswith(prefix):
            operator = candidate
            text = text[len(prefix):]
            break

    if not text:
        raise ValueError('empty test value')

    return operator, text


def _integer_value(text, bits):
    value = parse_integer(text)
    if not -(1 << (bits - 1)) <= value < (1 << bits):
        raise ValueError(f'value \'{text}\' doesn\'t fit in {bits} bits')

    return value


def build_tester(offset: Offset, type_token: str, value_token: str):
    keyword, signed, endianess, extender = parse_type(type_token)

    if keyword in UNSUPPORTED_TYPES:
        if keyword == 'clear' and value_token != MATCH_ANY:
            raise ValueError(f'invalid clear test value \'{value_token}\'')
        return testers.UnsupportedTester(keyword, offset=offset, expected=value_token)

    if keyword == 'default':
        if value_token != MATCH_ANY:
            raise ValueError(f'invalid default test value \'{value_token}\'')
        return testers.DefaultTester(offset)

    operator, value = parse_test_value(value_token)

    if keyword in _INTEGER_TYPES:
        cls, bits = _INTEGER_TYPES[keyword]
        expected = _integer_value(value, bits) if value is not None else None
        return cls(offset, expected, operator, signed=signed, endianess=endianess)

    if keyword in _FLOAT_TYPES:
        expected = float(value) if value is not None else None
        return _FLOAT_TYPES[keyword](offset, expected, operator, endianess=endianess)

    if keyword in _DATE_TYPES:
        cls, bits, local = _DATE_TYPES[keyword]
        expected = _integer_value(value, bits) if value is not None else None
        if cls is testers.WindowsDateTester:
            return cls(offset, expected, operator, endianess=endianess)
        return cls(offset, expected, operator, endianess=endianess, local=local)

    if keyword == 'string':
        return testers.StringTester(offset, value or '', operator)

    if keyword == 'regex':
        return testers.RegexTester(offset, value or '', extender=extender, operator=operator)

    # only guid is left
    return testers.GuidTester(offset, value or '', operator)


def parse_line(line: str):
    '''Compile a single line returning (depth, rule).'''
    fields = line.split()
    if len(fields) < 3:
        raise ValueError('a rule needs an offset, a type and a test value')

    offset_token = fields[0]
    depth = len(offset_token) - len(offset_token.lstrip('>'))
    offset = parse_offset(offset_token[depth:])

    tester = build_tester(offset, fields[1], fields[2])

    return depth, Rule(tester, ' '.join(fields[3:]))


def parse_source(source: Union[str, Iterable[str]]) -> List[Rule]:
    '''Compile the rules in source, a string or an iterable of lines like an
    open file. The first error aborts the compilation with a ParseException.'''
    if isinstance(source, str):
        source = source.splitlines()

    rules: List[Rule] = []
    parents: List[Rule] = []  # the last rule seen at each depth

    for lineno, line in enumerate(source, start=1):
        line = line.rstrip('\r\n')
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue

        try:
            depth, rule = parse_line(stripped)
        except (ValueError, regex.error) as e:
            raise ParseException(line, str(e), lineno=lineno) from e

        if depth > len(parents):
            raise ParseException(line, f'no parent rule at depth {depth - 1}', lineno=lineno)

        if depth == 0:
            rules.append(rule)
        else:
            parents[depth - 1].add_child(rule)

        del parents[depth:]
        parents.append(rule)

        logger.debug('compiled line %d at depth %d: %r' % (lineno, depth, rule))

    return rules


def parse_file(path) -> List[Rule]:
    with open(path, 'r', encoding='utf-8') as f:
        return parse_source(f)
