"""
Media resolver and upload limit tests.
"""

import hashlib

import pytest

from trusttrack.core.errors import ValidationError
from trusttrack.core.media import (
    ContentAddressedMediaResolver,
    join_references,
    validate_media,
)
from trusttrack.core.schema import MediaBlob


def png(data=b"\x89PNG data", name="photo.png"):
    return MediaBlob(name, "image/png", data)


class TestContentAddressedMediaResolver:
    """Test the local content-addressed media store."""

    def test_reference_is_content_hash(self):
        """Test a reference is the sha256 of the blob content."""
        resolver = ContentAddressedMediaResolver()
        blob = png(b"hello")
        expected = "sha256-" + hashlib.sha256(b"hello").hexdigest()
        assert resolver.resolve([blob]) == [expected]

    def test_references_keep_input_order(self):
        """Test references come back in input order."""
        resolver = ContentAddressedMediaResolver()
        refs = resolver.resolve([png(b"one"), png(b"two")])
        assert refs[0] != refs[1]
        assert refs == [resolver.reference_for(png(b"one")), resolver.reference_for(png(b"two"))]

    def test_same_content_same_reference(self):
        """Test identical content maps to one reference regardless of name."""
        resolver = ContentAddressedMediaResolver()
        assert resolver.resolve([png(b"x", "a.png")]) == resolver.resolve([png(b"x", "b.png")])

    def test_stores_file_once(self, tmp_path):
        """Test a blob is written once and not rewritten on re-upload."""
        resolver = ContentAddressedMediaResolver(str(tmp_path / "uploads"))
        blob = png(b"stored")

        reference, = resolver.resolve([blob])
        path = tmp_path / "uploads" / f"{reference}.png"
        assert path.read_bytes() == b"stored"

        mtime = path.stat().st_mtime_ns
        resolver.resolve([blob])
        assert path.stat().st_mtime_ns == mtime

    def test_no_upload_dir_writes_nothing(self, tmp_path, monkeypatch):
        """Test only references are computed without an upload directory."""
        monkeypatch.chdir(tmp_path)
        ContentAddressedMediaResolver().resolve([png()])
        assert list(tmp_path.iterdir()) == []


class TestValidateMedia:
    """Test upload count, size and type limits."""

    def test_accepts_images_and_videos(self):
        """Test image and video uploads pass."""
        validate_media([
            png(),
            MediaBlob("clip.mp4", "video/mp4", b"v"),
            MediaBlob("pic.JPG", "image/jpeg", b"j"),
        ])

    def test_rejects_too_many_files(self):
        """Test more files than allowed are rejected."""
        with pytest.raises(ValidationError, match="Too many"):
            validate_media([png()] * 3, max_files=2)

    def test_rejects_oversized_file(self):
        """Test a file over the size cap is rejected."""
        with pytest.raises(ValidationError, match="File too large. Maximum size is 1MB."):
            validate_media([png(b"x" * (1024 * 1024 + 1))], max_bytes=1024 * 1024)

    def test_rejects_non_media_extension(self):
        """Test non-media extensions are rejected."""
        with pytest.raises(ValidationError, match="Only images and videos"):
            validate_media([MediaBlob("notes.txt", "text/plain", b"t")])

    def test_rejects_mismatched_content_type(self):
        """Test a media extension with a non-media content type is rejected."""
        with pytest.raises(ValidationError):
            validate_media([MediaBlob("photo.png", "application/pdf", b"p")])

    def test_empty_list_passes(self):
        """Test a submission without media passes."""
        validate_media([])


def test_join_references():
    """Test references are comma-joined and empty lists give an empty string."""
    assert join_references(["a", "b"]) == "a,b"
    assert join_references([]) == ""
