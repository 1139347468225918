import io

import pytest

from magicprobe.exceptions import StreamException
from magicprobe.streams import Stream


def test_bytes_stream_read_at():
    stream = Stream(b'\x01\x02\x03\x04\x05')

    assert stream.read_at(1, 2) == b'\x02\x03'
    assert stream.read_at(0, 1) == b'\x01'
    # short reads are not errors
    assert stream.read_at(3, 10) == b'\x04\x05'
    assert stream.read_at(10, 1) == b''
    assert stream.read_at(-1, 1) == b''


def test_file_stream_read_at(tmp_path):
    path_data = tmp_path / 'auaua'
    path_data.write_bytes(b'\x01\x02\x03\x04\x05')

    with Stream(str(path_data)) as stream:
        assert stream.read_at(4, 1) == b'\x05'

    with Stream(path_data) as stream:
        assert stream.read_at(0, 2) == b'\x01\x02'


def test_caller_file_is_not_closed():
    f = io.BytesIO(b'kebab')

    with Stream(f) as stream:
        assert stream.read_at(0, 5) == b'kebab'

    assert not f.closed


def test_unreadable_stream():
    f = io.BytesIO(b'kebab')
    f.close()

    with pytest.raises(StreamException):
        Stream(f).read_at(0, 1)


def test_missing_path(tmp_path):
    with pytest.raises(StreamException):
        Stream(str(tmp_path / 'missing'))


def test_wrong_object():
    with pytest.raises(TypeError):
        Stream(42)


def test_read_until():
    data = b'A' * 0x180 + b'\x00tail'
    stream = Stream(data)

    assert stream.read_until(0) == b'A' * 0x180
    assert stream.read_until(0x181) == b'tail'
    assert stream.read_until(0x200) == b''


def test_read_lines():
    stream = Stream(b'first\nsecond\nthird')

    assert stream.read_lines(0, 1) == b'first\n'
    assert stream.read_lines(0, 2) == b'first\nsecond\n'
    assert stream.read_lines(6, 5) == b'second\nthird'


def test_read_all():
    data = bytes(range(256)) * 3
    stream = Stream(data)

    assert stream.read_all() == data
    assert stream.read_all(0x2ff) == b'\xff'
