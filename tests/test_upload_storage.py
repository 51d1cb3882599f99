import io

import pytest

from errors import UploadError
from upload_storage import UploadStorage, is_safe_name, upload_file_name


@pytest.mark.parametrize("value, expected", [
    ("clip.mp4", True),
    ("my clip (1).mp4", True),
    ("", False),
    (".", False),
    ("..", False),
    ("a/b.mp4", False),
    ("a\\b.mp4", False),
    ("a\x00b", False),
])
def test_is_safe_name(value, expected):
    assert is_safe_name(value) is expected


def test_upload_file_name():
    assert upload_file_name("abc", "clip.mp4") == "abc_clip.mp4"


def test_append_chunk_concatenates(tmp_path):
    storage = UploadStorage(str(tmp_path / "upload"))
    assert storage.size_of("xyz", "a.bin") == 0

    assert storage.append_chunk("xyz", "a.bin", io.BytesIO(b"1" * 10)) == 10
    assert storage.append_chunk("xyz", "a.bin", io.BytesIO(b"2" * 20)) == 20
    assert storage.append_chunk("xyz", "a.bin", io.BytesIO(b"")) == 0

    assert storage.size_of("xyz", "a.bin") == 30
    assert (tmp_path / "upload" / "xyz_a.bin").read_bytes() == b"1" * 10 + b"2" * 20


def test_append_chunk_open_failure(tmp_path):
    storage = UploadStorage(str(tmp_path / "upload"))
    storage.upload_dir = str(tmp_path / "gone")
    with pytest.raises(UploadError, match="Error creating or opening destination file"):
        storage.append_chunk("xyz", "a.bin", io.BytesIO(b"data"))
