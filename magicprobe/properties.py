import logging

from .meta import Endianess, get_byte_order


logger = logging.getLogger(__name__)


# NOTE: an offset is resolved with respect to a reference position,
#       zero for the first (or only) stage; a chain passes the result
#       of each stage as the reference of the following one.
class Offset(object):
    '''A fixed displacement from the reference.'''

    def __init__(self, value: int):
        self.value = value

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.value:#x})>'

    def __eq__(self, other):
        return type(self) is type(other) and self.__dict__ == other.__dict__

    def __hash__(self):
        return hash((type(self), self.value))

    def resolve(self, stream, reference=0):
        return reference + self.value


class IndirectOffset(Offset):
    '''The offset is an integer stored into the stream at (reference + value),
    eventually moved by delta.

    If the integer can't be read completely the offset is unresolvable and
    None is returned.'''

    def __init__(self, value: int, size=4, endianess=Endianess.LITTLE_ENDIAN, signed=False, delta=0):
        super().__init__(value)
        if size not in (1, 2, 4, 8):
            raise ValueError(f'an indirect offset can\'t be {size} bytes wide')
        self.size = size
        self.endianess = endianess
        self.signed = signed
        self.delta = delta

    def __repr__(self):
        return '<%s(%#x, size=%d, %s%s, delta=%#x)>' % (
            self.__class__.__name__,
            self.value,
            self.size,
            self.endianess.name,
            ', signed' if self.signed else '',
            self.delta,
        )

    def __hash__(self):
        return hash((type(self), self.value, self.size, self.endianess, self.signed, self.delta))

    def resolve(self, stream, reference=0):
        position = reference + self.value
        raw = stream.read_at(position, self.size)
        if len(raw) != self.size:
            logger.debug('cannot read the %d bytes of the pointer at %#x' % (self.size, position))
            return None

        value = raw[0] if self.size == 1 else get_byte_order(self.endianess).uint(raw)
        if self.signed and value & (1 << (self.size * 8 - 1)):
            value -= 1 << (self.size * 8)

        return value + self.delta


class ChainedOffset(Offset):
    '''Compose offsets left to right: something like "read a pointer at 526,
    the field is 0x200 bytes beyond it" becomes

        ChainedOffset(IndirectOffset(526, size=2), Offset(0x200))
    '''

    def __init__(self, *stages):
        if not stages:
            raise ValueError('a chained offset needs at least one stage')
        super().__init__(0)
        self.stages = tuple(stages)

    def __repr__(self):
        return f'<{self.__class__.__name__}({", ".join(repr(_) for _ in self.stages)})>'

    def __hash__(self):
        return hash((type(self), self.stages))

    def resolve(self, stream, reference=0):
        position = reference
        for stage in self.stages:
            position = stage.resolve(stream, position)
            if position is None:
                return None

        return position
