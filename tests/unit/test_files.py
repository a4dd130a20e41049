# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0
import base64
import hashlib
import io
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from tarolas import directory, files
from tarolas.errors import ErrorKind, StorageError
from tarolas.files import FileStream


def _body(data: bytes) -> io.BytesIO:
    return io.BytesIO(base64.b64encode(data))


def _read(root: Path, name: str, offset: int, size: int, **kwargs) -> bytes:
    stream = files.read(str(root), name, offset, size, **kwargs)
    return base64.b64decode(stream.read_all())


@pytest.fixture
def ten_bytes(root: Path) -> Path:
    (root / "ten.bin").write_bytes(b"0123456789")
    return root


class TestWrite:
    """Tests for writing and appending files."""

    def test_write_reports_final_size(self, root):
        result = files.write(str(root), "/f.txt", _body(b"hi"))
        assert result.to_payload() == {"name": "/f.txt", "size": 2}
        assert (root / "f.txt").read_bytes() == b"hi"

    def test_write_truncates_existing_content(self, root):
        (root / "f.txt").write_bytes(b"hello world")
        result = files.write(str(root), "/f.txt", _body(b"hi"))
        assert result.size == 2
        assert (root / "f.txt").read_bytes() == b"hi"

    def test_write_then_read_round_trip(self, root):
        data = bytes(range(256)) * 5
        files.write(str(root), "/data.bin", _body(data))
        assert _read(root, "/data.bin", 0, len(data)) == data

    def test_write_accepts_line_breaks(self, root):
        body = io.BytesIO(b"aGVs\r\nbG8g\nd29y\r\nbGQ=")
        result = files.write(str(root), "/f.txt", body)
        assert result.size == 11
        assert (root / "f.txt").read_bytes() == b"hello world"

    def test_write_invalid_base64(self, root):
        with pytest.raises(StorageError) as exc_info:
            files.write(str(root), "/f.txt", io.BytesIO(b"not base64!"))
        assert exc_info.value.kind is ErrorKind.WRITE_FAILED
        assert exc_info.value.detail == "/f.txt"

    def test_write_truncated_base64(self, root):
        with pytest.raises(StorageError) as exc_info:
            files.write(str(root), "/f.txt", io.BytesIO(b"aGk"))
        assert exc_info.value.kind is ErrorKind.WRITE_FAILED

    def test_write_missing_parent(self, root):
        with pytest.raises(StorageError) as exc_info:
            files.write(str(root), "/missing/f.txt", _body(b"hi"))
        assert exc_info.value.kind is ErrorKind.OPEN_FOR_WRITE_FAILED

    def test_write_onto_directory(self, root):
        (root / "d").mkdir()
        with pytest.raises(StorageError) as exc_info:
            files.write(str(root), "/d", _body(b"hi"))
        assert exc_info.value.kind is ErrorKind.OPEN_FOR_WRITE_FAILED

    def test_append_concatenates(self, root):
        first = files.append(str(root), "/log.txt", _body(b"abc"))
        second = files.append(str(root), "/log.txt", _body(b"defgh"))
        assert first.size == 3
        assert second.size == 8
        assert (root / "log.txt").read_bytes() == b"abcdefgh"

    def test_append_invalid_base64(self, root):
        (root / "log.txt").write_bytes(b"abc")
        with pytest.raises(StorageError) as exc_info:
            files.append(str(root), "/log.txt", io.BytesIO(b"@@@@"))
        assert exc_info.value.kind is ErrorKind.APPEND_FAILED

    def test_append_missing_parent(self, root):
        with pytest.raises(StorageError) as exc_info:
            files.append(str(root), "/missing/log.txt", _body(b"abc"))
        assert exc_info.value.kind is ErrorKind.OPEN_FOR_APPEND_FAILED


class TestDeleteAndExists:
    """Tests for deleting files and checking their existence."""

    def test_delete_returns_previous_size(self, ten_bytes):
        result = files.delete(str(ten_bytes), "/ten.bin")
        assert result.to_payload() == {"name": "/ten.bin", "size": 10}
        assert not (ten_bytes / "ten.bin").exists()

    def test_delete_missing(self, root):
        with pytest.raises(StorageError) as exc_info:
            files.delete(str(root), "/missing.txt")
        assert exc_info.value.kind is ErrorKind.FILE_NOT_FOUND

    def test_delete_directory(self, root):
        (root / "d").mkdir()
        with pytest.raises(StorageError) as exc_info:
            files.delete(str(root), "/d")
        assert exc_info.value.kind is ErrorKind.NOT_A_FILE
        assert (root / "d").is_dir()

    def test_exists_absent(self, root):
        result = files.exists(str(root), "/missing.txt")
        assert result.to_payload() == {"name": "/missing.txt", "exists": False}

    def test_exists_present(self, ten_bytes):
        result = files.exists(str(ten_bytes), "/ten.bin")
        assert result.to_payload() == {"name": "/ten.bin", "size": 10, "exists": True}

    def test_exists_empty_file_reports_zero_size(self, root):
        (root / "empty").write_bytes(b"")
        result = files.exists(str(root), "/empty")
        assert result.to_payload() == {"name": "/empty", "size": 0, "exists": True}

    def test_exists_directory(self, root):
        (root / "d").mkdir()
        with pytest.raises(StorageError) as exc_info:
            files.exists(str(root), "/d")
        assert exc_info.value.kind is ErrorKind.NOT_A_FILE


class TestChecksum:
    """Tests for the SHA-256 checksum."""

    def test_checksum_matches_sha256(self, ten_bytes):
        result = files.checksum(str(ten_bytes), "/ten.bin")
        assert result.size == 10
        assert result.checksum == hashlib.sha256(b"0123456789").hexdigest()

    def test_checksum_is_unchanged_by_reads(self, ten_bytes):
        before = files.checksum(str(ten_bytes), "/ten.bin")
        _read(ten_bytes, "/ten.bin", 2, 4)
        after = files.checksum(str(ten_bytes), "/ten.bin")
        assert before == after

    def test_checksum_missing(self, root):
        with pytest.raises(StorageError) as exc_info:
            files.checksum(str(root), "/missing")
        assert exc_info.value.kind is ErrorKind.FILE_NOT_FOUND

    def test_checksum_directory(self, root):
        (root / "d").mkdir()
        with pytest.raises(StorageError) as exc_info:
            files.checksum(str(root), "/d")
        assert exc_info.value.kind is ErrorKind.CHECKSUM_FAILED
        assert exc_info.value.detail == "/d"

    def test_scenario(self, root):
        directory.create(str(root), "/a/b", recursive=True)
        assert directory.list_directories(str(root), "/") == ["/", "/a", "/a/b"]
        written = files.write(str(root), "/a/b/f.txt", _body(b"hi"))
        assert written.to_payload() == {"name": "/a/b/f.txt", "size": 2}
        result = files.checksum(str(root), "/a/b/f.txt")
        assert result.checksum == hashlib.sha256(b"hi").hexdigest()


class TestRead:
    """Tests for bounded reads."""

    def test_read_window(self, ten_bytes):
        assert _read(ten_bytes, "/ten.bin", 2, 3) == b"234"

    def test_read_is_base64_text(self, ten_bytes):
        stream = files.read(str(ten_bytes), "/ten.bin", 0, 3)
        assert stream.content_type == "text/plain; charset=utf-8"
        assert stream.read_all() == b"MDEy"

    def test_window_past_end_is_clamped(self, ten_bytes):
        assert _read(ten_bytes, "/ten.bin", 5, 10) == b"56789"

    def test_offset_at_end_reads_nothing(self, ten_bytes):
        assert _read(ten_bytes, "/ten.bin", 10, 1) == b""

    @pytest.mark.parametrize(
        "offset, size, detail",
        [
            (-1, 1, "offset (-1)"),
            (11, 1, "offset (11)"),
            (0, 0, "size (0)"),
            (0, -3, "size (-3)"),
            (5, 1000, "size (1000)"),
        ],
    )
    def test_invalid_window(self, ten_bytes, offset, size, detail):
        with pytest.raises(StorageError) as exc_info:
            files.read(str(ten_bytes), "/ten.bin", offset, size)
        assert exc_info.value.kind is ErrorKind.INVALID_PARAMETER_VALUE
        assert exc_info.value.detail == detail

    def test_read_missing(self, root):
        with pytest.raises(StorageError) as exc_info:
            files.read(str(root), "/missing", 0, 1)
        assert exc_info.value.kind is ErrorKind.FILE_NOT_FOUND

    def test_read_directory(self, root):
        (root / "d").mkdir()
        with pytest.raises(StorageError) as exc_info:
            files.read(str(root), "/d", 0, 1)
        assert exc_info.value.kind is ErrorKind.NOT_A_FILE

    def test_large_window_is_streamed(self, ten_bytes):
        stream = files.read(str(ten_bytes), "/ten.bin", 1, 8, buffered_read_limit=4)
        assert base64.b64decode(stream.read_all()) == b"12345678"

    def test_streamed_window_releases_descriptor(self, ten_bytes, monkeypatch):
        opened = []
        real_open = open

        def tracking_open(*args, **kwargs):
            f = real_open(*args, **kwargs)
            opened.append(f)
            return f

        monkeypatch.setattr("builtins.open", tracking_open)
        stream = files.read(str(ten_bytes), "/ten.bin", 0, 10, buffered_read_limit=0)
        assert not opened[0].closed
        stream.read_all()
        assert opened[0].closed

    def test_buffered_window_releases_descriptor_early(self, ten_bytes, monkeypatch):
        opened = []
        real_open = open

        def tracking_open(*args, **kwargs):
            f = real_open(*args, **kwargs)
            opened.append(f)
            return f

        monkeypatch.setattr("builtins.open", tracking_open)
        stream = files.read(str(ten_bytes), "/ten.bin", 0, 10)
        assert opened[0].closed
        assert base64.b64decode(stream.read_all()) == b"0123456789"


class TestFileStream:
    """Tests for failures after a streamed response has started."""

    def test_read_error_truncates_body(self):
        fileobj = MagicMock()
        fileobj.read.side_effect = [b"abc", OSError("disk gone")]
        stream = FileStream(fileobj, 10, "application/octet-stream", "/f")
        assert stream.read_all() == b"abc"
        fileobj.close.assert_called()

    def test_short_file_truncates_body(self):
        fileobj = MagicMock()
        fileobj.read.side_effect = [b"abc", b""]
        stream = FileStream(fileobj, 10, "application/octet-stream", "/f")
        assert stream.read_all() == b"abc"
        fileobj.close.assert_called()

    def test_close_without_iteration(self):
        fileobj = MagicMock()
        stream = FileStream(fileobj, None, "application/octet-stream", "/f")
        stream.close()
        fileobj.close.assert_called_once()


class TestServedContent:
    """Tests for shared reads."""

    def test_png_is_sniffed(self, root):
        data = b"\x89PNG\r\n\x1a\n" + b"\x00" * 600
        (root / "image").write_bytes(data)
        stream = files.served_content(str(root), "/image")
        assert stream.content_type == "image/png"
        assert stream.read_all() == data

    def test_text_is_served_raw(self, root):
        (root / "notes.txt").write_bytes(b"plain notes")
        stream = files.served_content(str(root), "/notes.txt")
        assert stream.content_type == "text/plain; charset=utf-8"
        assert stream.read_all() == b"plain notes"

    def test_empty_file(self, root):
        (root / "empty").write_bytes(b"")
        stream = files.served_content(str(root), "/empty")
        assert stream.content_type == "text/plain; charset=utf-8"
        assert stream.read_all() == b""

    def test_directory(self, root):
        (root / "d").mkdir()
        with pytest.raises(StorageError) as exc_info:
            files.served_content(str(root), "/d")
        assert exc_info.value.kind is ErrorKind.NOT_A_FILE

    def test_missing(self, root):
        with pytest.raises(StorageError) as exc_info:
            files.served_content(str(root), "/missing")
        assert exc_info.value.kind is ErrorKind.FILE_NOT_FOUND


class TestInvalidNames:
    """Tests for names the filesystem cannot represent."""

    @pytest.mark.parametrize(
        "operation, kind",
        [
            (lambda root, name: files.exists(root, name), ErrorKind.STAT_FAILED),
            (lambda root, name: files.delete(root, name), ErrorKind.STAT_FAILED),
            (lambda root, name: files.read(root, name, 0, 1), ErrorKind.STAT_FAILED),
            (lambda root, name: files.checksum(root, name), ErrorKind.OPEN_FOR_READ_FAILED),
            (
                lambda root, name: files.write(root, name, _body(b"x")),
                ErrorKind.OPEN_FOR_WRITE_FAILED,
            ),
            (
                lambda root, name: files.append(root, name, _body(b"x")),
                ErrorKind.OPEN_FOR_APPEND_FAILED,
            ),
            (lambda root, name: files.served_content(root, name), ErrorKind.OPEN_FOR_READ_FAILED),
        ],
    )
    def test_embedded_null_byte_is_classified(self, root, operation, kind):
        with pytest.raises(StorageError) as exc_info:
            operation(str(root), "/a\x00b")
        assert exc_info.value.kind is kind
        assert exc_info.value.detail == "/a\x00b"
