# =============================================================================
# Unit Tests — Image Reconciler
# =============================================================================
#
# Pure functions, no fixtures needed.
# =============================================================================

import pytest

from app.exceptions import LimitExceededError, ValidationError
from app.services.reconciler import check_image_limit, reconcile_images


class TestReconcileImages:
    """Tests for reconcile_images()."""

    def test_removes_deleted_and_appends_uploads(self):
        result = reconcile_images(["a", "b", "c"], ["d"], {"b"})
        assert result.next_images == ["a", "c", "d"]
        assert result.files_to_delete == ["b"]

    def test_no_changes_keeps_current(self):
        result = reconcile_images(["a", "b"], [], [])
        assert result.next_images == ["a", "b"]
        assert result.files_to_delete == []

    def test_unknown_deletions_are_ignored(self):
        result = reconcile_images(["a", "b", "c"], [], {"x", "y"})
        assert result.next_images == ["a", "b", "c"]
        assert result.files_to_delete == []

    def test_mixed_known_and_unknown_deletions(self):
        result = reconcile_images(["a", "b", "c"], [], ["c", "zzz", "a"])
        assert result.next_images == ["b"]
        # Ordered as on the car, not as requested
        assert result.files_to_delete == ["a", "c"]

    def test_uploads_keep_their_order(self):
        result = reconcile_images(["a"], ["u3", "u1", "u2"], [])
        assert result.next_images == ["a", "u3", "u1", "u2"]

    def test_delete_everything_and_replace(self):
        result = reconcile_images(["a", "b"], ["c"], ["a", "b"])
        assert result.next_images == ["c"]
        assert result.files_to_delete == ["a", "b"]

    def test_duplicate_deletions_count_once(self):
        # 9 uploads + 1 distinct deletion = 10, within the limit
        uploads = [f"u{i}" for i in range(9)]
        result = reconcile_images(["a"], uploads, ["a", "a", "a"])
        assert result.next_images == uploads
        assert result.files_to_delete == ["a"]

    def test_does_not_mutate_inputs(self):
        current = ["a", "b"]
        uploaded = ["c"]
        reconcile_images(current, uploaded, {"a"})
        assert current == ["a", "b"]
        assert uploaded == ["c"]


class TestImageLimit:
    """The limit is on uploads + deletions, not on the resulting total."""

    def test_eight_uploads_three_deletions_rejected(self):
        uploads = [f"u{i}" for i in range(8)]
        with pytest.raises(LimitExceededError) as exc_info:
            reconcile_images(["a", "b", "c"], uploads, {"a", "b", "c"})
        assert exc_info.value.count == 11
        assert exc_info.value.limit == 10

    def test_rejected_regardless_of_current_size(self):
        uploads = [f"u{i}" for i in range(8)]
        with pytest.raises(LimitExceededError):
            reconcile_images([], uploads, {"x", "y", "z"})

    def test_exactly_at_limit_passes(self):
        uploads = [f"u{i}" for i in range(7)]
        result = reconcile_images(["a", "b", "c"], uploads, {"a", "b", "c"})
        assert result.next_images == uploads

    def test_resulting_total_is_not_checked_here(self):
        # 5 current + 6 uploads = 11 at rest; the store rejects that, not this
        current = [f"c{i}" for i in range(5)]
        uploads = [f"u{i}" for i in range(6)]
        result = reconcile_images(current, uploads, [])
        assert len(result.next_images) == 11

    def test_custom_limit(self):
        with pytest.raises(LimitExceededError):
            reconcile_images([], ["u1", "u2", "u3"], [], limit=2)

    def test_check_image_limit_boundary(self):
        check_image_limit(10)
        check_image_limit(6, 4)
        with pytest.raises(LimitExceededError):
            check_image_limit(11)
        with pytest.raises(LimitExceededError):
            check_image_limit(6, 5)

    def test_limit_error_is_a_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            check_image_limit(11)
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "You can upload up to 10 images only."
