"""
Byte order providers.

Every provider decodes and encodes unsigned integers of 16, 32 and 64 bits;
signedness is handled by who asks for the value.
"""
import logging
import sys
from enum import Enum, auto

import bitstring


logger = logging.getLogger(__name__)


class Endianess(Enum):
    LITTLE_ENDIAN = auto()
    BIG_ENDIAN    = auto()
    NATIVE        = auto()
    MIDDLE_ENDIAN = auto()


class ByteOrder(object):
    """Base class for the providers: subclasses implement _decode()/_encode()
    for a buffer whose length is already validated."""

    sizes = (2, 4, 8)

    def __repr__(self):
        return f'<{self.__class__.__name__}>'

    def _check_size(self, size):
        if size not in self.sizes:
            raise ValueError(f'{self.__class__.__name__} can\'t handle integers of {size} bytes')

    def _decode(self, data: bytes) -> int:
        raise NotImplementedError(f'method {self.__class__.__name__}._decode() not implemented')

    def _encode(self, value: int, size: int) -> bytes:
        raise NotImplementedError(f'method {self.__class__.__name__}._encode() not implemented')

    def uint(self, data: bytes) -> int:
        self._check_size(len(data))
        return self._decode(bytes(data))

    def put_uint(self, value: int, size: int) -> bytes:
        self._check_size(size)
        if not 0 <= value < (1 << (size * 8)):
            raise ValueError(f'value {value:#x} doesn\'t fit in {size} bytes')
        return self._encode(value, size)

    def uint16(self, data: bytes) -> int:
        return self.uint(data[:2])

    def uint32(self, data: bytes) -> int:
        return self.uint(data[:4])

    def uint64(self, data: bytes) -> int:
        return self.uint(data[:8])

    def put_uint16(self, value: int) -> bytes:
        return self.put_uint(value, 2)

    def put_uint32(self, value: int) -> bytes:
        return self.put_uint(value, 4)

    def put_uint64(self, value: int) -> bytes:
        return self.put_uint(value, 8)


class LittleByteOrder(ByteOrder):

    def _decode(self, data):
        return bitstring.Bits(data).uintle

    def _encode(self, value, size):
        return bitstring.pack('uintle:%d' % (size * 8), value).bytes


class BigByteOrder(ByteOrder):

    def _decode(self, data):
        return bitstring.Bits(data).uintbe

    def _encode(self, value, size):
        return bitstring.pack('uintbe:%d' % (size * 8), value).bytes


class MiddleByteOrder(ByteOrder):
    """The PDP-11 word order: 16-bit words are little-endian but wider
    values are made of those words, most significant first.

    For example 0x00010002 is stored as 01 00 02 00.
    """

    _word = LittleByteOrder()

    def _decode(self, data):
        value = 0
        for idx in range(0, len(data), 2):
            value = (value << 16) | self._word.uint(data[idx:idx + 2])

        return value

    def _encode(self, value, size):
        words = []
        for shift in range((size - 2) * 8, -1, -16):
            words.append(self._word.put_uint((value >> shift) & 0xffff, 2))

        return b''.join(words)


# the host order is a property of the interpreter, no need to probe memory
NativeByteOrder = LittleByteOrder if sys.byteorder == 'little' else BigByteOrder


_BYTE_ORDERS = {
    Endianess.LITTLE_ENDIAN: LittleByteOrder(),
    Endianess.BIG_ENDIAN: BigByteOrder(),
    Endianess.NATIVE: NativeByteOrder(),
    Endianess.MIDDLE_ENDIAN: MiddleByteOrder(),
}


def get_byte_order(endianess: Endianess) -> ByteOrder:
    try:
        return _BYTE_ORDERS[endianess]
    except KeyError:
        raise ValueError(f'\'{endianess!r}\' is not a valid endianess') from None
