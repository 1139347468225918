import io
import logging

from .exceptions import StreamException


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a simple wrapper around bytes/path/file objects to
    uniform their access: every read is done at an absolute offset so
    that no test depends on the position left by another one.

    A short read (end of stream included) is never an error: the caller
    receives fewer bytes than requested. StreamException is raised only
    when the underlying object can't be read at all.'''

    CHUNK_SIZE = 0x100

    def __init__(self, obj):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        self._type = type(obj)
        self._owned = False
        self.obj = obj

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, self.init_file)

        init_method()

    @classmethod
    def wrap(cls, obj):
        return obj if isinstance(obj, cls) else cls(obj)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self._type.__name__})>'

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        '''Only what we opened is closed, the caller's handles are left alone.'''
        if self._owned:
            self.obj.close()
            self._owned = False

    def init_str(self):
        '''We think this is a path'''
        logger.debug('opening path \'%s\'' % self.obj)
        try:
            self.obj = open(self.obj, 'rb')
        except OSError as e:
            raise StreamException(f'cannot open \'{self.obj}\': {e}') from e
        self._owned = True

    def init_PosixPath(self):
        self.obj = str(self.obj)
        self.init_str()

    init_WindowsPath = init_PosixPath

    def init_bytes(self):
        '''We think these are raw bytes'''
        self.obj = io.BytesIO(self.obj)

    def init_bytearray(self):
        self.obj = io.BytesIO(bytes(self.obj))

    init_memoryview = init_bytearray

    def init_file(self):
        if not (hasattr(self.obj, 'read') and hasattr(self.obj, 'seek')):
            raise TypeError(f'\'{self._type.__name__}\' is the wrong kind of object to use as a stream')

    def read_at(self, offset: int, size: int) -> bytes:
        '''Read at most size bytes starting at offset.

        A negative offset can only come from a computed one and it's
        treated as something outside the stream.'''
        if offset is None or offset < 0 or size <= 0:
            return b''

        try:
            self.obj.seek(offset)
            data = self.obj.read(size)
        except (OSError, ValueError) as e:
            raise StreamException(f'cannot read {size} bytes at offset {offset:#x}: {e}') from e

        if data is None:  # non-blocking raw streams
            return b''

        if len(data) != size:
            logger.debug('short read at offset %#x: %d bytes instead of %d' % (offset, len(data), size))

        return bytes(data)

    def read_until(self, offset: int, terminator: bytes = b'\x00') -> bytes:
        '''Read from offset up to the terminator (excluded) or to the end of
        the stream. The terminator is a single byte.'''
        data = []
        position = offset
        while True:
            chunk = self.read_at(position, self.CHUNK_SIZE)
            idx = chunk.find(terminator)
            if idx >= 0:
                data.append(chunk[:idx])
                break
            data.append(chunk)
            if len(chunk) != self.CHUNK_SIZE:
                break
            position += len(chunk)

        return b''.join(data)

    def read_lines(self, offset: int, count: int) -> bytes:
        '''Read at most count lines starting at offset, newlines included.'''
        data = []
        position = offset
        for _ in range(count):
            line = self.read_until(position, terminator=b'\n')
            newline = self.read_at(position + len(line), 1)
            data.append(line + newline)
            position += len(line) + len(newline)
            if not newline:
                break

        return b''.join(data)

    def read_all(self, offset: int = 0) -> bytes:
        '''Here we return all the data from offset to the end of the stream.'''
        data = []
        position = offset
        while True:
            chunk = self.read_at(position, self.CHUNK_SIZE)
            data.append(chunk)
            if len(chunk) != self.CHUNK_SIZE:
                break
            position += len(chunk)

        return b''.join(data)
