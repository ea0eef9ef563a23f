"""
Определяет константы формата сжатого потока и иерархию ошибок.

Сжатый поток: 32-битная сигнатура, заголовок с деревом Хаффмана
(обход в прямом порядке), затем коды символов, завершённые кодом PSEUDO_EOF.
"""


BITS_PER_WORD = 8
BITS_PER_INT = 32
SYMBOL_BITS = 9

ALPH_SIZE = 1 << BITS_PER_WORD
PSEUDO_EOF = ALPH_SIZE

HUFF_NUMBER = 0xface8200
HUFF_TREE = HUFF_NUMBER | 1

# Глубже этого дерево из ALPH_SIZE + 1 листьев быть не может
MAX_TREE_DEPTH = ALPH_SIZE


class HuffmanError(Exception):
    pass


class BadMagicError(HuffmanError):
    def __init__(self, found: int):
        if found < 0:
            message = "Input is shorter than the 32-bit magic"
        else:
            message = f"Illegal header starts with 0x{found:08x}, expected 0x{HUFF_TREE:08x}"
        super().__init__(message)
        self.found = found


class TruncatedHeaderError(HuffmanError):
    def __init__(self, message: str = "Input ended inside the tree header"):
        super().__init__(message)


class TruncatedStreamError(HuffmanError):
    def __init__(self, message: str = "No PSEUDO_EOF: input ended before the end-of-block code"):
        super().__init__(message)


class CorruptHeaderError(HuffmanError):
    pass


def is_valid_symbol(value: int) -> bool:
    return 0 <= value <= PSEUDO_EOF
