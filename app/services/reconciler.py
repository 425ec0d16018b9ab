# =============================================================================
# Image Reconciler — Next Image Set for a Car Update
# =============================================================================
#
# Pure functions, no I/O. Given the images a car currently has, the images
# just uploaded, and the images the client asked to delete, compute:
#   - next_images:     what the car's `images` list becomes
#   - files_to_delete: which stored files should be physically removed
#
#   current  = [a, b, c]
#   uploaded = [d]
#   delete   = {b, zzz}
#   ───────────────────────────────
#   next_images     = [a, c, d]      retained (current order) ++ uploaded
#   files_to_delete = [b]            delete ∩ current ("zzz" ignored)
#
# DESIGN DECISION: Deletion is set difference, not validated membership.
# Unknown or already-removed references are silently ignored, so a client
# retrying a request, or sending a stale deletion list, is harmless.
#
# DESIGN DECISION: The limit is checked on the raw request shape
# (len(uploaded) + len(deletion_requests)), not on len(next_images), and it
# runs before anything else is computed. This guards the endpoint against
# oversized requests regardless of how many images the car already holds.
# The resulting total is NOT re-checked here; CarStore.save() enforces the
# at-rest invariant.
# =============================================================================

from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass, field

from app.config import settings
from app.exceptions import LimitExceededError


@dataclass
class ImageReconciliation:
    """Result of reconciling a car's image set."""

    next_images: list[str]
    files_to_delete: list[str] = field(default_factory=list)


def check_image_limit(
    upload_count: int,
    deletion_count: int = 0,
    limit: int | None = None,
) -> None:
    """
    Reject a request whose uploads + deletions exceed the per-car limit.

    Raises:
        LimitExceededError: If upload_count + deletion_count > limit.
    """
    limit = settings.max_images_per_car if limit is None else limit
    total = upload_count + deletion_count
    if total > limit:
        raise LimitExceededError(limit=limit, count=total)


def reconcile_images(
    current_images: Sequence[str],
    uploaded_images: Sequence[str],
    deletion_requests: Collection[str],
    limit: int | None = None,
) -> ImageReconciliation:
    """
    Compute the next image list and the files to purge.

    Args:
        current_images: References on the car now, in order.
        uploaded_images: Freshly stored references, in upload order.
        deletion_requests: References the client asked to remove. Duplicates
            count once; references not on the car are ignored.
        limit: Max uploads + deletions per request. Defaults to
            settings.max_images_per_car.

    Returns:
        ImageReconciliation with next_images and files_to_delete (both
        ordered as they appear in current_images / uploaded_images).

    Raises:
        LimitExceededError: Before computing anything, when
            len(uploaded_images) + len(deletion_requests) > limit.
    """
    to_remove = set(deletion_requests)
    check_image_limit(len(uploaded_images), len(to_remove), limit)

    retained = [ref for ref in current_images if ref not in to_remove]
    files_to_delete = [ref for ref in current_images if ref in to_remove]

    return ImageReconciliation(
        next_images=retained + list(uploaded_images),
        files_to_delete=files_to_delete,
    )
