"""
Командная строка для сжатия файлов кодами Хаффмана.
"""

import argparse
import sys
from archiver import Archiver


def main():
    parser = argparse.ArgumentParser(
        description='Huffman file compressor',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py compress file1.txt file2.txt
  python main.py compress file1.txt -o file1.bin
  python main.py decompress file1.txt.hf
  python main.py decompress file1.bin -o restored.txt --debug 4
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command')

    compress_parser = subparsers.add_parser('compress', help='Compress files')
    compress_parser.add_argument('files', nargs='+', help='Files to compress')
    compress_parser.add_argument('-o', '--output', help='Output path (single input only)')
    compress_parser.add_argument('--debug', type=int, default=0, help='Debug level (0, 1 or 4)')

    decompress_parser = subparsers.add_parser('decompress', help='Decompress files')
    decompress_parser.add_argument('files', nargs='+', help='Files to decompress')
    decompress_parser.add_argument('-o', '--output', help='Output path (single input only)')
    decompress_parser.add_argument('--debug', type=int, default=0, help='Debug level (0, 1 or 4)')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    if args.output and len(args.files) > 1:
        parser.error('-o/--output requires a single input file')

    archiver = Archiver(debug=args.debug)

    try:
        if args.command == 'compress':
            failures = archiver.compress_files(args.files, args.output)

        elif args.command == 'decompress':
            failures = archiver.decompress_files(args.files, args.output)

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if failures:
        print(f"Error: {failures} file(s) failed", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
