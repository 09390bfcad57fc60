#!filepath: tests/base_test/test_filesystem.py
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from fmcoef.utils.filesystem import FileSystem
from fmcoef.utils.parquet_utils import ParquetAtomicWriter


def test_ensure_dir(tmp_path):
    new_dir = tmp_path / "a" / "b"
    assert not new_dir.exists()

    FileSystem.ensure_dir(new_dir)
    assert new_dir.is_dir()


def test_safe_write(tmp_path):
    """原子写入且不残留 tmp 文件"""
    file_path = tmp_path / "meta" / "part-00000"

    FileSystem.safe_write(file_path, b"{}\n")

    assert file_path.read_bytes() == b"{}\n"
    assert not file_path.with_name("part-00000.tmp").exists()


def test_scan_dir_sorted_with_prefix(tmp_path):
    (tmp_path / "part-00001").write_text("2")
    (tmp_path / "part-00000").write_text("1")
    (tmp_path / "_SUCCESS").write_text("")
    (tmp_path / "sub").mkdir()

    files = FileSystem.scan_dir(tmp_path, prefix="part-")

    assert files == [tmp_path / "part-00000", tmp_path / "part-00001"]
    assert FileSystem.scan_dir(tmp_path / "missing") == []


def test_remove_file_and_directory(tmp_path):
    f = tmp_path / "file.txt"
    f.write_text("hello")
    d = tmp_path / "folder"
    d.mkdir()
    (d / "a.txt").write_text("test")

    FileSystem.remove(f)
    FileSystem.remove(d)

    assert not f.exists()
    assert not d.exists()


def test_parquet_atomic_writer(tmp_path: Path):
    out = tmp_path / "w" / "part-00000.parquet"

    ParquetAtomicWriter.write_table(pa.table({"value": [1.0, 2.0]}), out)

    assert pq.read_table(out).column("value").to_pylist() == [1.0, 2.0]
    assert not out.with_suffix(".parquet.tmp").exists()
