# =============================================================================
# Unit Tests — Local File Storage & Best-Effort Purge
# =============================================================================
#
# Uses pytest's tmp_path; nothing is written outside it.
# =============================================================================

import pytest

from app.services.storage import LocalFileStorage, purge_images


@pytest.fixture
def local_storage(tmp_path) -> LocalFileStorage:
    return LocalFileStorage(tmp_path / "uploads")


class TestLocalFileStorage:
    """Tests for LocalFileStorage."""

    def test_save_returns_prefixed_reference(self, local_storage, tmp_path):
        ref = local_storage.save("front.jpg", b"jpeg-bytes")
        assert ref.startswith("uploads/")
        assert ref.endswith("front.jpg")
        stored_name = ref.split("/", 1)[1]
        assert stored_name[: -len("front.jpg")].isdigit()
        assert (tmp_path / ref).read_bytes() == b"jpeg-bytes"

    def test_same_filename_gets_distinct_references(self, local_storage):
        first = local_storage.save("front.jpg", b"1")
        second = local_storage.save("front.jpg", b"2")
        assert first != second
        assert local_storage.exists(first)
        assert local_storage.exists(second)

    def test_client_directories_are_stripped(self, local_storage, tmp_path):
        ref = local_storage.save("../../etc/passwd", b"x")
        assert ref.startswith("uploads/")
        assert "/" not in ref.split("/", 1)[1]
        ref = local_storage.save("C:\\pics\\side.png", b"x")
        assert ref.endswith("side.png")
        assert (tmp_path / ref).is_file()

    def test_exists_and_delete(self, local_storage):
        ref = local_storage.save("a.jpg", b"x")
        assert local_storage.exists(ref)
        assert local_storage.delete(ref) is True
        assert not local_storage.exists(ref)

    def test_delete_missing_is_idempotent(self, local_storage):
        assert local_storage.delete("uploads/never-there.jpg") is False
        assert local_storage.delete("uploads/never-there.jpg") is False

    def test_reference_outside_upload_dir_rejected(self, local_storage, tmp_path):
        outside = tmp_path / "secret.txt"
        outside.write_text("keep me")
        assert local_storage.exists("secret.txt") is False
        with pytest.raises(ValueError):
            local_storage.delete("uploads/../secret.txt")
        assert outside.exists()


class TestPurgeImages:
    """Tests for purge_images()."""

    def test_removes_existing_and_skips_missing(self, local_storage):
        kept = local_storage.save("a.jpg", b"x")
        ref = local_storage.save("b.jpg", b"x")
        removed = purge_images(local_storage, [ref, "uploads/missing.jpg"])
        assert removed == [ref]
        assert local_storage.exists(kept)

    def test_errors_are_swallowed(self, local_storage):
        ref = local_storage.save("a.jpg", b"x")
        removed = purge_images(local_storage, ["uploads/../escape.jpg", ref])
        assert removed == [ref]

    def test_empty_input(self, local_storage):
        assert purge_images(local_storage, []) == []
