# =============================================================================
# Car Service — Create / Update / Delete Orchestration
# =============================================================================
#
# Ties the owner-scoped CarStore, the pure image reconciler, and the file
# storage collaborator together. Route handlers call into this module and
# never touch the store or the filesystem directly.
#
# UPDATE STATE MACHINE:
#
#   Loaded ──▶ Reconciled ──▶ Persisted ──▶ FilesPurged
#     │            │              │
#     ▼            ▼              ▼
#   NotFound   LimitExceeded   Validation/StorageFailure
#
#   Loaded:      find_owned(owner, id); missing or foreign → NotFoundError
#   Reconciled:  reconcile_images(); over the limit → LimitExceededError,
#                nothing changed yet
#   Persisted:   scalar fields "replace if provided, else keep", images set
#                to next_images, save + commit. This is the durability
#                boundary.
#   FilesPurged: best-effort unlink of files_to_delete; misses are logged.
#
# Uploads are stored before Loaded (the handler needs references to
# reconcile), so any failure up to and including Persisted purges the
# freshly stored uploads again. Nothing that happens in FilesPurged can
# roll back the saved record.
#
# KNOWN LIMITATION: concurrent updates of the same car are last-write-wins.
# There is no optimistic locking; one client's uploads can be dropped if
# another client saves in between.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from app.config import settings
from app.db.models import Car
from app.exceptions import CarServiceError, StorageFailureError, ValidationError
from app.models.requests import CarFields
from app.services.reconciler import check_image_limit, reconcile_images
from app.services.storage import FileStorage, purge_images
from app.services.store import CarStore

logger = logging.getLogger(__name__)


@dataclass
class ImageUpload:
    """An uploaded file as received from the client, not yet stored."""

    filename: str
    content: bytes


@dataclass
class DeletedCar:
    """Outcome of delete_car()."""

    car_id: int
    purged_images: list[str]


class CarService:
    """Car operations for a single request (one session, one storage)."""

    def __init__(self, store: CarStore, storage: FileStorage):
        self.store = store
        self.storage = storage

    # -------------------------------------------------------------------------
    # Uploads
    # -------------------------------------------------------------------------

    def store_uploads(self, uploads: Sequence[ImageUpload]) -> list[str]:
        """
        Validate every upload, then write them all and return references.

        Nothing is written if any upload is rejected. If a write fails
        partway, the files already written are purged again.

        Raises:
            ValidationError: An upload is empty or larger than max_upload_bytes.
            StorageFailureError: The storage backend could not write a file.
        """
        for upload in uploads:
            if not upload.content:
                raise ValidationError(
                    f"Uploaded file is empty: {upload.filename}",
                    details={"filename": upload.filename},
                )
            if len(upload.content) > settings.max_upload_bytes:
                raise ValidationError(
                    f"Uploaded file is too large: {upload.filename}",
                    code="FILE_TOO_LARGE",
                    details={
                        "filename": upload.filename,
                        "max_bytes": settings.max_upload_bytes,
                    },
                )

        refs: list[str] = []
        try:
            for upload in uploads:
                refs.append(self.storage.save(upload.filename, upload.content))
        except OSError as e:
            purge_images(self.storage, refs)
            raise StorageFailureError("store uploads", e) from e
        return refs

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_cars(self, owner_id: str) -> list[Car]:
        return await self.store.list_owned(owner_id)

    async def get_car(self, owner_id: str, car_id: int) -> Car:
        return await self.store.find_owned(owner_id, car_id)

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    async def create_car(
        self,
        owner_id: str,
        fields: CarFields,
        uploads: Sequence[ImageUpload] = (),
    ) -> Car:
        """
        Store the uploads and create the car.

        Raises:
            LimitExceededError: More uploads than max_images_per_car.
            ValidationError: An upload was rejected.
        """
        check_image_limit(len(uploads))
        refs = self.store_uploads(uploads)

        try:
            car = await self.store.create(
                owner_id, fields.model_dump(exclude_none=True), refs,
            )
            await self.store.commit()
            return car
        except CarServiceError:
            purge_images(self.storage, refs)
            raise

    # -------------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------------

    async def update_car(
        self,
        owner_id: str,
        car_id: int,
        fields: CarFields,
        uploads: Sequence[ImageUpload] = (),
        deletion_requests: Sequence[str] = (),
    ) -> Car:
        """
        Run the Loaded → Reconciled → Persisted → FilesPurged sequence.

        Raises:
            NotFoundError: Car missing or not owned by owner_id.
            LimitExceededError: uploads + deletions over the limit, or the
                resulting image list would exceed it at rest.
            ValidationError: An upload was rejected.
        """
        # Same rule the reconciler applies, checked before any bytes are
        # written so a rejected request leaves storage untouched.
        check_image_limit(len(uploads), len(set(deletion_requests)))
        uploaded = self.store_uploads(uploads)

        try:
            car = await self.store.find_owned(owner_id, car_id)
            plan = reconcile_images(car.images, uploaded, deletion_requests)

            apply_field_updates(car, fields)
            car.images = plan.next_images
            await self.store.save(car)
            await self.store.commit()
        except CarServiceError:
            purge_images(self.storage, uploaded)
            raise

        removed = purge_images(self.storage, plan.files_to_delete)
        logger.info(
            "Updated car id=%d owner=%s: +%d images, -%d images (%d files removed)",
            car_id, owner_id, len(uploaded), len(plan.files_to_delete), len(removed),
        )
        return car

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    async def delete_car(self, owner_id: str, car_id: int) -> DeletedCar:
        """
        Delete the car, then purge every image file it referenced.

        Raises:
            NotFoundError: Car missing or not owned by owner_id.
        """
        car = await self.store.delete(owner_id, car_id)
        images = list(car.images or [])
        await self.store.commit()

        removed = purge_images(self.storage, images)
        return DeletedCar(car_id=car_id, purged_images=removed)


def apply_field_updates(car: Car, fields: CarFields) -> Car:
    """
    Copy provided scalar fields onto the car.

    Omitted or empty values keep the existing value; they never clear it.
    """
    for name, value in fields.provided().items():
        setattr(car, name, value)
    return car
