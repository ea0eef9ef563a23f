"""
Сжатие и распаковка потока байтов кодами Хаффмана.

Сжатие выполняется в два прохода: подсчёт частот, затем кодирование
после перемотки входного потока.
"""

from typing import Dict, Tuple

from bitstream import BitInputStream, BitOutputStream, END_OF_INPUT
from format import BITS_PER_INT, BITS_PER_WORD, HUFF_TREE, PSEUDO_EOF, BadMagicError, TruncatedStreamError
from huffman import (HuffmanNode, make_codings_from_tree, make_tree_from_counts,
                     read_for_counts, read_tree_header, write_header)


DEBUG_LOW = 1
DEBUG_HIGH = 4


class HuffProcessor:
    def __init__(self, debug: int = 0):
        self.debug = debug

    def compress(self, stream_in: BitInputStream, stream_out: BitOutputStream):
        try:
            counts = read_for_counts(stream_in)
            root = make_tree_from_counts(counts)
            codings = make_codings_from_tree(root)

            if self.debug >= DEBUG_HIGH:
                self._print_codings(codings)

            stream_out.write_bits(BITS_PER_INT, HUFF_TREE)
            write_header(root, stream_out)
            header_bits = stream_out.bits_written

            stream_in.rewind()
            self._write_compressed_bits(codings, stream_in, stream_out)

            if self.debug >= DEBUG_LOW:
                print(f"compress: header {header_bits} bits, "
                      f"read {stream_in.bits_read} bits, wrote {stream_out.bits_written} bits")
        finally:
            stream_in.close()
            stream_out.close()

    def decompress(self, stream_in: BitInputStream, stream_out: BitOutputStream):
        try:
            magic = stream_in.read_bits(BITS_PER_INT)
            if magic != HUFF_TREE:
                raise BadMagicError(magic)

            root = read_tree_header(stream_in)
            header_bits = stream_in.bits_read

            if self.debug >= DEBUG_HIGH:
                self._print_codings(make_codings_from_tree(root))

            self._read_compressed_bits(root, stream_in, stream_out)

            if self.debug >= DEBUG_LOW:
                print(f"decompress: header {header_bits} bits, "
                      f"read {stream_in.bits_read} bits, wrote {stream_out.bits_written} bits")
        finally:
            stream_in.close()
            stream_out.close()

    @staticmethod
    def _write_compressed_bits(codings: Dict[int, str], stream_in: BitInputStream,
                               stream_out: BitOutputStream):
        table: Dict[int, Tuple[int, int]] = {
            symbol: (len(code), int(code, 2)) for symbol, code in codings.items()
        }

        while True:
            value = stream_in.read_bits(BITS_PER_WORD)
            if value == END_OF_INPUT:
                break
            width, bits = table[value]
            stream_out.write_bits(width, bits)

        width, bits = table[PSEUDO_EOF]
        stream_out.write_bits(width, bits)

    @staticmethod
    def _read_compressed_bits(root: HuffmanNode, stream_in: BitInputStream,
                              stream_out: BitOutputStream):
        current = root

        while True:
            bit = stream_in.read_bits(1)
            if bit == END_OF_INPUT:
                raise TruncatedStreamError()

            current = current.left if bit == 0 else current.right

            if current.is_leaf():
                if current.value == PSEUDO_EOF:
                    break
                stream_out.write_bits(BITS_PER_WORD, current.value)
                current = root

    @staticmethod
    def _print_codings(codings: Dict[int, str]):
        print(f"{'Symbol':>8} Code")
        for symbol in sorted(codings):
            print(f"{symbol:>8} {codings[symbol]}")


def compress_bytes(data: bytes, debug: int = 0) -> bytes:
    stream_out = BitOutputStream()
    HuffProcessor(debug).compress(BitInputStream(data), stream_out)
    return stream_out.getvalue()


def decompress_bytes(data: bytes, debug: int = 0) -> bytes:
    stream_out = BitOutputStream()
    HuffProcessor(debug).decompress(BitInputStream(data), stream_out)
    return stream_out.getvalue()
