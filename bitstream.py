"""
Побитовый ввод/вывод поверх байтовых файлов и буферов в памяти.
Биты читаются и пишутся начиная со старшего.
"""

import io
from typing import BinaryIO, Optional, Union


END_OF_INPUT = -1
MAX_WIDTH = 32
CHUNK_SIZE = 64 * 1024


def _check_width(width: int):
    if not 1 <= width <= MAX_WIDTH:
        raise ValueError(f"Bit width must be in 1..{MAX_WIDTH}, got {width}")


class BitInputStream:
    def __init__(self, source: Union[bytes, bytearray, BinaryIO]):
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(bytes(source))
        self.source = source
        self.bits_read = 0
        self._reset_buffer()

    def _reset_buffer(self):
        self._chunk = b''
        self._pos = 0
        self._acc = 0
        self._nbits = 0

    def _next_byte(self) -> int:
        if self._pos >= len(self._chunk):
            self._chunk = self.source.read(CHUNK_SIZE)
            self._pos = 0
            if not self._chunk:
                return END_OF_INPUT

        byte = self._chunk[self._pos]
        self._pos += 1
        return byte

    def read_bits(self, width: int) -> int:
        _check_width(width)

        while self._nbits < width:
            byte = self._next_byte()
            if byte == END_OF_INPUT:
                return END_OF_INPUT
            self._acc = (self._acc << 8) | byte
            self._nbits += 8

        self._nbits -= width
        value = self._acc >> self._nbits
        self._acc &= (1 << self._nbits) - 1
        self.bits_read += width
        return value

    def rewind(self):
        self.source.seek(0)
        self.bits_read = 0
        self._reset_buffer()

    def close(self):
        self.source.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class BitOutputStream:
    def __init__(self, sink: Optional[BinaryIO] = None):
        self.sink = sink
        self.bits_written = 0
        self.closed = False
        self._output = bytearray()
        self._written = bytearray()
        self._acc = 0
        self._nbits = 0

    def write_bits(self, width: int, value: int):
        _check_width(width)
        if self.closed:
            raise ValueError("write to a closed BitOutputStream")

        self._acc = (self._acc << width) | (value & ((1 << width) - 1))
        self._nbits += width
        self.bits_written += width

        while self._nbits >= 8:
            self._nbits -= 8
            self._output.append(self._acc >> self._nbits)
            self._acc &= (1 << self._nbits) - 1

        if len(self._output) >= CHUNK_SIZE:
            self._flush()

    def _flush(self):
        if self.sink is not None:
            self.sink.write(self._output)
        else:
            self._written.extend(self._output)
        self._output.clear()

    def getvalue(self) -> bytes:
        return bytes(self._written + self._output)

    def close(self):
        if self.closed:
            return
        self.closed = True

        if self._nbits > 0:
            self._output.append((self._acc << (8 - self._nbits)) & 0xff)
            self._acc = 0
            self._nbits = 0

        self._flush()
        if self.sink is not None:
            self.sink.flush()
            self.sink.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
