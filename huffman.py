"""
Реализует построение дерева Хаффмана и его запись в битовый поток.
Частые байты получают более короткие коды, PSEUDO_EOF всегда присутствует в дереве.
"""

import heapq
import itertools
from typing import Dict, List, Optional, Sequence

from bitstream import BitInputStream, BitOutputStream, END_OF_INPUT
from format import (ALPH_SIZE, BITS_PER_WORD, MAX_TREE_DEPTH, PSEUDO_EOF, SYMBOL_BITS,
                    CorruptHeaderError, TruncatedHeaderError, is_valid_symbol)


class HuffmanNode:
    def __init__(self, value: int, weight: int = 0,
                 left: Optional['HuffmanNode'] = None,
                 right: Optional['HuffmanNode'] = None,
                 order: int = 0):
        self.value = value
        self.weight = weight
        self.left = left
        self.right = right
        self.order = order

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def __lt__(self, other):
        return (self.weight, self.order) < (other.weight, other.order)

    def __repr__(self):
        if self.is_leaf():
            return f"Leaf({self.value}, weight={self.weight})"
        return f"Node(weight={self.weight}, {self.left!r}, {self.right!r})"


def read_for_counts(stream: BitInputStream) -> List[int]:
    counts = [0] * ALPH_SIZE

    while True:
        value = stream.read_bits(BITS_PER_WORD)
        if value == END_OF_INPUT:
            break
        counts[value] += 1

    return counts


def make_tree_from_counts(counts: Sequence[int]) -> HuffmanNode:
    """
    Строит дерево из таблицы частот. При равных весах раньше извлекается
    узел, добавленный в очередь раньше, поэтому результат детерминирован.
    """
    order = itertools.count()

    heap = [HuffmanNode(value, count, order=next(order))
            for value, count in enumerate(counts) if count > 0]
    heap.append(HuffmanNode(PSEUDO_EOF, 1, order=next(order)))
    heapq.heapify(heap)

    if len(heap) == 1:
        # Пустой вход: иначе корень был бы листом с кодом нулевой длины
        only = heapq.heappop(heap)
        twin = HuffmanNode(only.value, 0, order=next(order))
        return HuffmanNode(-1, only.weight, only, twin, order=next(order))

    while len(heap) > 1:
        left = heapq.heappop(heap)
        right = heapq.heappop(heap)

        parent = HuffmanNode(-1, left.weight + right.weight,
                             left, right, order=next(order))
        heapq.heappush(heap, parent)

    return heap[0]


def make_codings_from_tree(root: HuffmanNode) -> Dict[int, str]:
    codings: Dict[int, str] = {}

    def traverse(node: HuffmanNode, path: str):
        if node.is_leaf():
            codings.setdefault(node.value, path)
            return

        traverse(node.left, path + '0')
        traverse(node.right, path + '1')

    traverse(root, '')
    return codings


def leaf_paths(root: HuffmanNode) -> Dict[str, int]:
    """Отображение путь -> символ для всех листьев дерева."""
    paths: Dict[str, int] = {}
    stack = [(root, '')]

    while stack:
        node, path = stack.pop()
        if node.is_leaf():
            paths[path] = node.value
        else:
            stack.append((node.right, path + '1'))
            stack.append((node.left, path + '0'))

    return paths


def write_header(root: HuffmanNode, out: BitOutputStream):
    if root.is_leaf():
        out.write_bits(1, 1)
        out.write_bits(SYMBOL_BITS, root.value)
        return

    out.write_bits(1, 0)
    write_header(root.left, out)
    write_header(root.right, out)


def read_tree_header(stream: BitInputStream, depth: int = 0) -> HuffmanNode:
    if depth > MAX_TREE_DEPTH:
        raise CorruptHeaderError(f"Tree header nests deeper than {MAX_TREE_DEPTH} levels")

    bit = stream.read_bits(1)
    if bit == END_OF_INPUT:
        raise TruncatedHeaderError()

    if bit == 1:
        value = stream.read_bits(SYMBOL_BITS)
        if value == END_OF_INPUT:
            raise TruncatedHeaderError("Input ended inside a leaf symbol of the tree header")
        if not is_valid_symbol(value):
            raise CorruptHeaderError(f"Tree header holds invalid symbol {value}")
        if depth == 0:
            raise CorruptHeaderError("Tree header root is a leaf")
        return HuffmanNode(value)

    left = read_tree_header(stream, depth + 1)
    right = read_tree_header(stream, depth + 1)
    return HuffmanNode(-1, 0, left, right)
