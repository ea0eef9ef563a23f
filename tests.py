import unittest
import tempfile
import io
import os
import sys
import random
from contextlib import redirect_stdout, redirect_stderr
from unittest import mock

from bitstream import BitInputStream, BitOutputStream, END_OF_INPUT
from format import (ALPH_SIZE, HUFF_TREE, PSEUDO_EOF, BadMagicError, CorruptHeaderError,
                    HuffmanError, TruncatedHeaderError, TruncatedStreamError)
from huffman import (leaf_paths, make_codings_from_tree, make_tree_from_counts,
                     read_for_counts, read_tree_header, write_header)
from compressor import HuffProcessor, compress_bytes, decompress_bytes, DEBUG_HIGH
from archiver import Archiver, compressed_name, decompressed_name
import main as cli


MAGIC_BYTES = HUFF_TREE.to_bytes(4, 'big')


def counts_of(data: bytes):
    counts = [0] * ALPH_SIZE
    for byte in data:
        counts[byte] += 1
    return counts


class TestBitStreams(unittest.TestCase):
    def test_write_msb_first(self):
        out = BitOutputStream()
        out.write_bits(3, 0b101)
        out.write_bits(5, 0b00001)
        out.write_bits(4, 0xF)
        out.close()
        self.assertEqual(out.getvalue(), b'\xa1\xf0')
        self.assertEqual(out.bits_written, 12)

    def test_write_keeps_low_bits(self):
        out = BitOutputStream()
        out.write_bits(4, 0x1F)
        out.write_bits(4, 0)
        out.close()
        self.assertEqual(out.getvalue(), b'\xf0')

    def test_read_bits(self):
        stream = BitInputStream(b'\xa1\xf0')
        self.assertEqual(stream.read_bits(3), 5)
        self.assertEqual(stream.read_bits(5), 1)
        self.assertEqual(stream.read_bits(4), 15)
        self.assertEqual(stream.read_bits(8), END_OF_INPUT)
        self.assertEqual(stream.bits_read, 12)

    def test_read_int(self):
        stream = BitInputStream(MAGIC_BYTES)
        self.assertEqual(stream.read_bits(32), HUFF_TREE)
        self.assertEqual(stream.read_bits(1), END_OF_INPUT)

    def test_rewind(self):
        stream = BitInputStream(b'\xa1\xf0')
        stream.read_bits(8)
        stream.read_bits(3)
        stream.rewind()
        self.assertEqual(stream.bits_read, 0)
        self.assertEqual(stream.read_bits(8), 0xa1)

    def test_invalid_width(self):
        with self.assertRaises(ValueError):
            BitInputStream(b'\x00').read_bits(0)
        with self.assertRaises(ValueError):
            BitOutputStream().write_bits(33, 0)

    def test_close_is_idempotent(self):
        sink = io.BytesIO()
        out = BitOutputStream(sink)
        out.write_bits(1, 1)
        out.close()
        out.close()
        self.assertTrue(sink.closed)
        with self.assertRaises(ValueError):
            out.write_bits(1, 1)

    def test_context_managers(self):
        source = io.BytesIO(b'\x01')
        with BitInputStream(source) as stream:
            self.assertEqual(stream.read_bits(8), 1)
        self.assertTrue(source.closed)


class TestFrequencyCounter(unittest.TestCase):
    def test_counts(self):
        stream = BitInputStream(b'AABA')
        counts = read_for_counts(stream)
        self.assertEqual(len(counts), ALPH_SIZE)
        self.assertEqual(counts[65], 3)
        self.assertEqual(counts[66], 1)
        self.assertEqual(sum(counts), 4)
        self.assertEqual(stream.read_bits(8), END_OF_INPUT)

    def test_empty_input(self):
        self.assertEqual(read_for_counts(BitInputStream(b'')), [0] * ALPH_SIZE)


class TestTreeBuilder(unittest.TestCase):
    def test_aaba_tree(self):
        root = make_tree_from_counts(counts_of(b'AABA'))
        codings = make_codings_from_tree(root)
        self.assertEqual(codings, {66: '00', PSEUDO_EOF: '01', 65: '1'})
        self.assertEqual(root.weight, 5)

    def test_empty_input_is_guarded(self):
        root = make_tree_from_counts([0] * ALPH_SIZE)
        self.assertFalse(root.is_leaf())
        self.assertEqual(set(leaf_paths(root).values()), {PSEUDO_EOF})

        codings = make_codings_from_tree(root)
        self.assertEqual(list(codings), [PSEUDO_EOF])
        self.assertEqual(len(codings[PSEUDO_EOF]), 1)

    def test_single_repeated_byte(self):
        root = make_tree_from_counts(counts_of(b'z' * 10))
        codings = make_codings_from_tree(root)
        self.assertEqual(set(codings), {ord('z'), PSEUDO_EOF})
        self.assertEqual(len(codings[ord('z')]), 1)
        self.assertEqual(len(codings[PSEUDO_EOF]), 1)

    def test_no_code_is_empty(self):
        samples = [b'', b'a', b'ab', b'AABA', bytes(range(256)), b'abracadabra' * 7]
        for sample in samples:
            codings = make_codings_from_tree(make_tree_from_counts(counts_of(sample)))
            for symbol, code in codings.items():
                self.assertGreaterEqual(len(code), 1, f"{sample!r}: symbol {symbol}")

    def test_prefix_free(self):
        data = b'The quick brown fox jumps over the lazy dog'
        codes = list(make_codings_from_tree(make_tree_from_counts(counts_of(data))).values())
        for i, a in enumerate(codes):
            for j, b in enumerate(codes):
                if i != j:
                    self.assertFalse(b.startswith(a))

    def test_deterministic(self):
        counts = counts_of(b'mississippi river')
        first = leaf_paths(make_tree_from_counts(counts))
        second = leaf_paths(make_tree_from_counts(counts))
        self.assertEqual(first, second)

    def test_frequent_symbol_gets_shorter_code(self):
        counts = counts_of(b'e' * 100 + b'xyzw')
        codings = make_codings_from_tree(make_tree_from_counts(counts))
        self.assertLess(len(codings[ord('e')]), len(codings[ord('x')]))


class TestTreeCodec(unittest.TestCase):
    def roundtrip(self, root):
        out = BitOutputStream()
        write_header(root, out)
        out.close()
        return read_tree_header(BitInputStream(out.getvalue()))

    def test_header_self_description(self):
        for data in [b'', b'q', b'AABA', bytes(range(256)) * 3, b'Lorem ipsum dolor sit amet']:
            root = make_tree_from_counts(counts_of(data))
            self.assertEqual(leaf_paths(self.roundtrip(root)), leaf_paths(root))

    def test_header_bits(self):
        root = make_tree_from_counts(counts_of(b'z' * 3))
        out = BitOutputStream()
        write_header(root, out)
        self.assertEqual(out.bits_written, 1 + 2 * (1 + 9))

    def test_truncated_header(self):
        with self.assertRaises(TruncatedHeaderError):
            read_tree_header(BitInputStream(b''))
        with self.assertRaises(TruncatedHeaderError):
            read_tree_header(BitInputStream(b'\x40'))

    def test_invalid_symbol(self):
        # 1-бит листа и символ 300
        with self.assertRaises(CorruptHeaderError):
            read_tree_header(BitInputStream(b'\xcb\x00'))

    def test_leaf_root(self):
        # лист 65 без внутреннего узла над ним
        with self.assertRaises(CorruptHeaderError):
            read_tree_header(BitInputStream(b'\x90\x40'))

    def test_too_deep(self):
        with self.assertRaises(CorruptHeaderError):
            read_tree_header(BitInputStream(b'\x00' * 64))


class TestHuffProcessor(unittest.TestCase):
    def assertRoundtrip(self, data: bytes):
        compressed = compress_bytes(data)
        self.assertTrue(compressed.startswith(MAGIC_BYTES))
        self.assertEqual(decompress_bytes(compressed), data)

    def test_aaba(self):
        data = bytes([65, 65, 66, 65])
        compressed = compress_bytes(data)
        self.assertEqual(decompress_bytes(compressed), data)

    def test_empty(self):
        compressed = compress_bytes(b'')
        # сигнатура, заголовок 0 1 256 1 256 и код PSEUDO_EOF "0"
        self.assertEqual(compressed, MAGIC_BYTES + b'\x60\x18\x00')
        self.assertEqual(decompress_bytes(compressed), b'')

    def test_single_repeated_byte(self):
        compressed = compress_bytes(b'B' * 10)
        # 32 + 21 бит заголовка + 11 однобитовых кодов
        self.assertEqual(len(compressed), 8)
        self.assertEqual(decompress_bytes(compressed), b'B' * 10)

    def test_single_byte(self):
        self.assertRoundtrip(b'\x00')
        self.assertRoundtrip(b'\xff')

    def test_all_byte_values(self):
        self.assertRoundtrip(bytes(range(256)) * 4)

    def test_text(self):
        data = b'The quick brown fox jumps over the lazy dog' * 20
        compressed = compress_bytes(data)
        self.assertLess(len(compressed), len(data))
        self.assertEqual(decompress_bytes(compressed), data)

    def test_random_data(self):
        rng = random.Random(42)
        for size in (1, 7, 100, 5000):
            self.assertRoundtrip(bytes(rng.randint(0, 255) for _ in range(size)))

    def test_skewed_data(self):
        rng = random.Random(7)
        data = bytes(min(int(rng.expovariate(0.3)), 255) for _ in range(3000))
        self.assertRoundtrip(data)

    def test_bad_magic(self):
        source = io.BytesIO(b'not a huffman stream')
        out = BitOutputStream()
        with self.assertRaises(BadMagicError):
            HuffProcessor().decompress(BitInputStream(source), out)
        self.assertTrue(source.closed)
        self.assertTrue(out.closed)
        self.assertEqual(out.getvalue(), b'')

    def test_bad_magic_on_empty_input(self):
        with self.assertRaises(BadMagicError):
            decompress_bytes(b'')

    def test_bad_magic_on_short_input(self):
        with self.assertRaises(BadMagicError) as ctx:
            decompress_bytes(b'\x01\x02')
        self.assertEqual(ctx.exception.found, END_OF_INPUT)
        self.assertIn('shorter than the 32-bit magic', str(ctx.exception))

    def test_bad_magic_message(self):
        with self.assertRaises(BadMagicError) as ctx:
            decompress_bytes(b'\x00\x00\x00\x2a')
        self.assertIn('0x0000002a', str(ctx.exception))

    def test_leaf_root_header(self):
        with self.assertRaises(CorruptHeaderError):
            decompress_bytes(MAGIC_BYTES + b'\x90\x40\x00')

    def test_truncated_header(self):
        with self.assertRaises(TruncatedHeaderError):
            decompress_bytes(MAGIC_BYTES)

    def test_truncated_stream(self):
        compressed = compress_bytes(b'hello world')
        with self.assertRaises(TruncatedStreamError):
            decompress_bytes(compressed[:-1])

    def test_errors_share_base(self):
        for error in (BadMagicError, TruncatedHeaderError, TruncatedStreamError, CorruptHeaderError):
            self.assertTrue(issubclass(error, HuffmanError))

    def test_streams_closed_after_compress(self):
        source = io.BytesIO(b'abc')
        sink = io.BytesIO()
        HuffProcessor().compress(BitInputStream(source), BitOutputStream(sink))
        self.assertTrue(source.closed)
        self.assertTrue(sink.closed)

    def test_debug_output(self):
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            compressed = compress_bytes(b'AABA', debug=DEBUG_HIGH)
            decompress_bytes(compressed, debug=DEBUG_HIGH)
        output = buffer.getvalue()
        self.assertIn('Symbol', output)
        self.assertIn('compress: header', output)
        self.assertIn('decompress: header', output)


class TestArchiver(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.archiver = Archiver()

    def tearDown(self):
        import shutil
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def write(self, name: str, data: bytes) -> str:
        path = os.path.join(self.temp_dir, name)
        with open(path, 'wb') as f:
            f.write(data)
        return path

    def read(self, path: str) -> bytes:
        with open(path, 'rb') as f:
            return f.read()

    def test_names(self):
        self.assertEqual(compressed_name('a.txt'), 'a.txt.hf')
        self.assertEqual(decompressed_name('a.txt.hf'), 'a.txt')
        self.assertEqual(decompressed_name('a.bin'), 'a.bin.unhf')

    def test_compress_decompress_file(self):
        data = b'Hello World! ' * 100
        source = self.write('test.txt', data)

        compressed = self.archiver.compress_file(source)
        self.assertEqual(compressed, source + '.hf')
        self.assertLess(os.path.getsize(compressed), len(data))

        restored = self.archiver.decompress_file(compressed, os.path.join(self.temp_dir, 'out.txt'))
        self.assertEqual(self.read(restored), data)

    def test_empty_file(self):
        source = self.write('empty.bin', b'')
        compressed = self.archiver.compress_file(source)
        os.remove(source)
        restored = self.archiver.decompress_file(compressed)
        self.assertEqual(restored, source)
        self.assertEqual(self.read(restored), b'')

    def test_failed_decompress_removes_output(self):
        source = self.write('broken.hf', b'garbage garbage')
        output = os.path.join(self.temp_dir, 'broken')
        with self.assertRaises(BadMagicError):
            self.archiver.decompress_file(source)
        self.assertFalse(os.path.exists(output))

    def test_compress_files_reports_failures(self):
        good = self.write('good.txt', b'content\n' * 30)
        missing = os.path.join(self.temp_dir, 'missing.txt')
        bad = self.write('bad.hf', b'xx')

        with redirect_stdout(io.StringIO()):
            self.assertEqual(self.archiver.compress_files([good, missing]), 1)
            os.remove(good)
            self.assertEqual(self.archiver.decompress_files([good + '.hf', bad]), 1)

        self.assertEqual(self.read(good), b'content\n' * 30)
        self.assertFalse(os.path.exists(os.path.join(self.temp_dir, 'bad')))

    def test_batch_continues_after_leaf_root_header(self):
        leaf_root = self.write('leaf.hf', MAGIC_BYTES + b'\x90\x40\x00')
        good = self.write('good.txt', b'batch content\n' * 20)

        with redirect_stdout(io.StringIO()):
            self.archiver.compress_files([good])
            os.remove(good)
            self.assertEqual(self.archiver.decompress_files([leaf_root, good + '.hf']), 1)

        self.assertEqual(self.read(good), b'batch content\n' * 20)

    def test_decompress_does_not_overwrite_existing_file(self):
        source = self.write('keep.txt', b'original')
        compressed = self.archiver.compress_file(source)
        self.write('keep.txt', b'edited since compression')

        with self.assertRaises(FileExistsError):
            self.archiver.decompress_file(compressed)
        self.assertEqual(self.read(source), b'edited since compression')

        with redirect_stdout(io.StringIO()):
            self.assertEqual(self.archiver.decompress_files([compressed]), 1)
        self.assertEqual(self.read(source), b'edited since compression')

        self.archiver.decompress_file(compressed, source)
        self.assertEqual(self.read(source), b'original')


class TestCommandLine(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.source = os.path.join(self.temp_dir.name, 'file.txt')
        with open(self.source, 'wb') as f:
            f.write(b'command line test\n' * 40)

    def tearDown(self):
        self.temp_dir.cleanup()

    def run_main(self, *argv):
        with mock.patch.object(sys, 'argv', ['main.py', *argv]):
            with redirect_stdout(io.StringIO()), redirect_stderr(io.StringIO()):
                cli.main()

    def test_compress_and_decompress(self):
        restored = os.path.join(self.temp_dir.name, 'restored.txt')
        self.run_main('compress', self.source)
        self.run_main('decompress', self.source + '.hf', '-o', restored)

        with open(restored, 'rb') as f:
            self.assertEqual(f.read(), b'command line test\n' * 40)

    def test_failure_exit_code(self):
        with self.assertRaises(SystemExit) as ctx:
            self.run_main('decompress', self.source)
        self.assertEqual(ctx.exception.code, 1)

    def test_output_with_many_files(self):
        with self.assertRaises(SystemExit) as ctx:
            self.run_main('compress', self.source, self.source, '-o', 'x.hf')
        self.assertEqual(ctx.exception.code, 2)


def run_tests():
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    suite.addTests(loader.loadTestsFromTestCase(TestBitStreams))
    suite.addTests(loader.loadTestsFromTestCase(TestFrequencyCounter))
    suite.addTests(loader.loadTestsFromTestCase(TestTreeBuilder))
    suite.addTests(loader.loadTestsFromTestCase(TestTreeCodec))
    suite.addTests(loader.loadTestsFromTestCase(TestHuffProcessor))
    suite.addTests(loader.loadTestsFromTestCase(TestArchiver))
    suite.addTests(loader.loadTestsFromTestCase(TestCommandLine))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
    sys.exit(run_tests())
