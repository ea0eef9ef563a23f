"""
Сжатие и распаковка файлов на диске.
"""

import os
from typing import List, Optional

from bitstream import BitInputStream, BitOutputStream
from compressor import HuffProcessor
from format import HuffmanError


COMPRESSED_SUFFIX = '.hf'
UNCOMPRESSED_SUFFIX = '.unhf'


def compressed_name(path: str) -> str:
    return path + COMPRESSED_SUFFIX


def decompressed_name(path: str) -> str:
    if path.endswith(COMPRESSED_SUFFIX) and len(path) > len(COMPRESSED_SUFFIX):
        return path[:-len(COMPRESSED_SUFFIX)]
    return path + UNCOMPRESSED_SUFFIX


class Archiver:
    def __init__(self, debug: int = 0):
        self.processor = HuffProcessor(debug)

    def compress_file(self, file_path: str, output_path: Optional[str] = None) -> str:
        output_path = output_path or compressed_name(file_path)
        self._run(self.processor.compress, file_path, output_path)
        return output_path

    def decompress_file(self, file_path: str, output_path: Optional[str] = None) -> str:
        if output_path is None:
            output_path = decompressed_name(file_path)
            # Явный output_path разрешает перезапись
            if os.path.exists(output_path):
                raise FileExistsError(f"{output_path} already exists, pass an output path to overwrite it")
        self._run(self.processor.decompress, file_path, output_path)
        return output_path

    @staticmethod
    def _run(action, file_path: str, output_path: str):
        stream_in = BitInputStream(open(file_path, 'rb'))
        try:
            stream_out = BitOutputStream(open(output_path, 'wb'))
        except OSError:
            stream_in.close()
            raise

        try:
            action(stream_in, stream_out)
        except Exception:
            # Процессор уже закрыл оба потока, остаётся убрать недописанный файл
            if os.path.exists(output_path):
                os.remove(output_path)
            raise

    def compress_files(self, file_paths: List[str], output_path: Optional[str] = None) -> int:
        failures = 0

        for file_path in file_paths:
            if not os.path.isfile(file_path):
                print(f"Warning: {file_path} not found, skipping")
                failures += 1
                continue

            print(f"Compressing {file_path}...", end=" ")
            try:
                result = self.compress_file(file_path, output_path)
            except (HuffmanError, OSError) as e:
                print(f"FAILED ({e})")
                failures += 1
                continue

            original_size = os.path.getsize(file_path)
            compressed_size = os.path.getsize(result)
            ratio = (compressed_size / original_size * 100) if original_size > 0 else 0
            print(f"OK ({ratio:.1f}%)")

        return failures

    def decompress_files(self, file_paths: List[str], output_path: Optional[str] = None) -> int:
        failures = 0

        for file_path in file_paths:
            if not os.path.isfile(file_path):
                print(f"Warning: {file_path} not found, skipping")
                failures += 1
                continue

            print(f"Decompressing {file_path}...", end=" ")
            try:
                self.decompress_file(file_path, output_path)
            except (HuffmanError, OSError) as e:
                print(f"FAILED ({e})")
                failures += 1
                continue

            print("OK")

        return failures
