from __future__ import annotations

import logging
from pathlib import Path

import aiofiles
import pytest

from recovery_persist.core.fileops import (
    compare_files,
    copy_file,
    read_bytes_or_empty,
    unlink_if_exists,
    write_bytes,
)


@pytest.mark.asyncio
async def test_compare_identical_files_is_symmetric(tmp_path: Path) -> None:
    a = tmp_path / "a"
    b = tmp_path / "b"
    a.write_bytes(b"kernel ring buffer\n" * 100)
    b.write_bytes(b"kernel ring buffer\n" * 100)

    assert await compare_files(a, b, chunk_size=7)
    assert await compare_files(b, a, chunk_size=7)


@pytest.mark.asyncio
async def test_compare_file_with_itself(tmp_path: Path) -> None:
    a = tmp_path / "a"
    a.write_bytes(b"x" * 5000)
    assert await compare_files(a, a)


@pytest.mark.asyncio
async def test_compare_empty_files(tmp_path: Path) -> None:
    a = tmp_path / "a"
    b = tmp_path / "b"
    a.write_bytes(b"")
    b.write_bytes(b"")
    assert await compare_files(a, b)


@pytest.mark.asyncio
async def test_compare_size_mismatch(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    a = tmp_path / "a"
    b = tmp_path / "b"
    a.write_bytes(b"abc")
    b.write_bytes(b"abcd")

    def _no_open(*args, **kwargs):
        raise AssertionError("content must not be read when sizes differ")

    monkeypatch.setattr(aiofiles, "open", _no_open)

    assert not await compare_files(a, b)
    assert not await compare_files(b, a)


@pytest.mark.asyncio
async def test_compare_detects_difference_in_last_chunk(tmp_path: Path) -> None:
    a = tmp_path / "a"
    b = tmp_path / "b"
    a.write_bytes(b"0123456789")
    b.write_bytes(b"012345678X")

    assert not await compare_files(a, b, chunk_size=4)
    assert not await compare_files(b, a, chunk_size=1)


@pytest.mark.asyncio
async def test_compare_missing_side(tmp_path: Path) -> None:
    a = tmp_path / "a"
    a.write_bytes(b"abc")
    missing = tmp_path / "missing"

    assert not await compare_files(a, missing)
    assert not await compare_files(missing, a)
    assert not await compare_files(missing, missing)


@pytest.mark.asyncio
async def test_copy_file_streams_all_bytes(tmp_path: Path) -> None:
    src = tmp_path / "console-ramoops-0"
    dst = tmp_path / "last_kmsg"
    data = bytes(range(256)) * 50
    src.write_bytes(data)
    dst.write_bytes(b"old content that is longer than nothing")

    await copy_file(src, dst, chunk_size=100)

    assert dst.read_bytes() == data


@pytest.mark.asyncio
async def test_copy_missing_source_leaves_empty_destination(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    dst = tmp_path / "last_kmsg"
    dst.write_bytes(b"previous")

    with caplog.at_level(logging.ERROR):
        await copy_file(tmp_path / "missing", dst)

    assert dst.exists()
    assert dst.read_bytes() == b""
    assert "missing" in caplog.text


@pytest.mark.asyncio
async def test_copy_unwritable_destination_does_not_touch_source(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    src = tmp_path / "src"
    src.write_bytes(b"data")
    dst = tmp_path / "no-such-dir" / "dst"

    with caplog.at_level(logging.ERROR):
        await copy_file(src, dst)

    assert not dst.exists()
    assert src.read_bytes() == b"data"
    assert "Can't open" in caplog.text


@pytest.mark.asyncio
async def test_read_missing_file_is_empty(tmp_path: Path) -> None:
    assert await read_bytes_or_empty(tmp_path / "missing") == b""


@pytest.mark.asyncio
async def test_write_bytes_replaces_content(tmp_path: Path) -> None:
    path = tmp_path / "last_log"
    path.write_bytes(b"a much longer previous content")

    assert await write_bytes(path, b"new") == 3
    assert path.read_bytes() == b"new"


@pytest.mark.asyncio
async def test_write_bytes_failure_returns_none(tmp_path: Path) -> None:
    assert await write_bytes(tmp_path / "no-such-dir" / "f", b"x") is None


@pytest.mark.asyncio
async def test_unlink_if_exists(tmp_path: Path) -> None:
    path = tmp_path / "last_install"
    path.write_text("x")

    assert await unlink_if_exists(path)
    assert not path.exists()
    assert not await unlink_if_exists(path)
