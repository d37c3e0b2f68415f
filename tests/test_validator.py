from __future__ import annotations

import pytest

from photo_uploader.errors import DecodeFailed, FileTooLarge, InvalidFormat
from photo_uploader.validator import (
    CandidateFile,
    candidate_from_bytes,
    candidate_from_path,
    read_candidate_bytes,
    validate_selection,
)

MB = 1024 * 1024


def test_accepts_jpeg_and_png_under_limit():
    for mime in ("image/jpeg", "image/png"):
        c = CandidateFile("photo", mime, 5 * MB)
        assert validate_selection(c, max_size_mb=10) is c


def test_five_mb_png_accepted_fifteen_mb_rejected():
    assert validate_selection(CandidateFile("a.png", "image/png", 5 * MB), 10)
    with pytest.raises(FileTooLarge):
        validate_selection(CandidateFile("b.png", "image/png", 15 * MB), 10)


def test_size_limit_is_strict():
    with pytest.raises(FileTooLarge, match="10MB"):
        validate_selection(CandidateFile("a.png", "image/png", 10 * MB), 10)
    validate_selection(CandidateFile("a.png", "image/png", 10 * MB - 1), 10)


@pytest.mark.parametrize("mime", ["image/gif", "image/webp", "application/pdf", "application/octet-stream", ""])
def test_rejects_other_types(mime):
    with pytest.raises(InvalidFormat) as exc:
        validate_selection(CandidateFile("x", mime, 10), 10)
    assert "JPG/PNG" in exc.value.message


def test_type_checked_before_size():
    with pytest.raises(InvalidFormat):
        validate_selection(CandidateFile("huge.gif", "image/gif", 50 * MB), 10)


def test_custom_limit():
    with pytest.raises(FileTooLarge, match="2MB"):
        validate_selection(CandidateFile("a.jpg", "image/jpeg", 3 * MB), max_size_mb=2)


def test_candidate_from_path_guesses_mime_and_size(tmp_path):
    p = tmp_path / "me.JPG"
    p.write_bytes(b"\xff\xd8" + b"0" * 98)
    c = candidate_from_path(str(p))
    assert c.name == "me.JPG"
    assert c.mime_type == "image/jpeg"
    assert c.size_bytes == 100
    assert read_candidate_bytes(c) == p.read_bytes()


def test_candidate_from_path_unknown_extension(tmp_path):
    p = tmp_path / "notes.xyz123"
    p.write_bytes(b"abc")
    c = candidate_from_path(str(p))
    with pytest.raises(InvalidFormat):
        validate_selection(c)


def test_candidate_from_missing_path_fails(tmp_path):
    with pytest.raises(DecodeFailed):
        candidate_from_path(str(tmp_path / "missing.png"))


def test_candidate_from_bytes_uses_given_data():
    c = candidate_from_bytes("face.png", b"1234")
    assert c.mime_type == "image/png"
    assert c.size_bytes == 4
    assert read_candidate_bytes(c) == b"1234"


def test_read_candidate_without_source_fails():
    with pytest.raises(DecodeFailed):
        read_candidate_bytes(CandidateFile("x.png", "image/png", 1))
