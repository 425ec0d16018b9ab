# =============================================================================
# Car Store — Owner-Scoped Persistence for Car Records
# =============================================================================
#
# Thin repository over an AsyncSession. Every read, write, and delete takes
# the owner id explicitly and filters by it; there is no method that can
# reach a car without naming its owner.
#
# DESIGN DECISION: "Not yours" and "does not exist" are the same outcome.
# find_owned() and delete() query by (id, owner_id) together, so a car owned
# by someone else is simply not found. The caller cannot tell the difference.
#
# DESIGN DECISION: The store flushes, it does not commit. The session (and
# its transaction) belongs to the request dependency; the orchestration in
# app/services/cars.py decides when a change must be durable.
#
# DESIGN DECISION: SQLAlchemyError is wrapped as StorageFailureError so the
# API layer can log it with context and return a generic 500.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.models import MAX_INT_ID, Car
from app.exceptions import LimitExceededError, NotFoundError, StorageFailureError

logger = logging.getLogger(__name__)


class CarStore:
    """Owner-scoped create / find / list / save / delete for Car rows."""

    def __init__(self, session: AsyncSession, max_images: int | None = None):
        self.session = session
        self.max_images = (
            settings.max_images_per_car if max_images is None else max_images
        )

    def _check_invariants(self, images: Sequence[str]) -> None:
        if len(images) > self.max_images:
            raise LimitExceededError(limit=self.max_images, count=len(images))

    async def create(
        self,
        owner_id: str,
        fields: dict,
        images: Sequence[str],
    ) -> Car:
        """
        Insert a new car for owner_id and return it with its id assigned.

        Args:
            owner_id: Verified owner.
            fields: title / description / tags (missing keys use defaults).
            images: Stored image references, in upload order.

        Raises:
            LimitExceededError: More images than the per-car limit.
            StorageFailureError: The database rejected the insert.
        """
        self._check_invariants(images)

        car = Car(
            owner_id=owner_id,
            title=fields.get("title") or "",
            description=fields.get("description"),
            tags=list(fields.get("tags") or []),
            images=list(images),
        )
        try:
            self.session.add(car)
            await self.session.flush()  # Assigns car.id without committing
            await self.session.refresh(car)
        except SQLAlchemyError as e:
            raise StorageFailureError("create car", e) from e

        logger.info(
            "Created car id=%d owner=%s images=%d",
            car.id, owner_id, len(car.images),
        )
        return car

    async def find_owned(self, owner_id: str, car_id: int) -> Car:
        """
        Return the car only if it belongs to owner_id.

        Raises:
            NotFoundError: Car is missing or belongs to another owner.
            StorageFailureError: The query failed.
        """
        # Ids outside the column's range can never exist; the driver would
        # reject the bind parameter instead of returning no row.
        if not 0 < car_id <= MAX_INT_ID:
            raise NotFoundError(car_id)

        stmt = select(Car).where(Car.id == car_id, Car.owner_id == owner_id)
        try:
            result = await self.session.execute(stmt)
            car = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageFailureError("find car", e) from e

        if car is None:
            raise NotFoundError(car_id)
        return car

    async def list_owned(self, owner_id: str) -> list[Car]:
        """All cars owned by owner_id, oldest first."""
        stmt = (
            select(Car)
            .where(Car.owner_id == owner_id)
            .order_by(Car.created_at, Car.id)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageFailureError("list cars", e) from e
        return list(result.scalars().all())

    async def save(self, car: Car) -> Car:
        """
        Persist the full state of an already-loaded car.

        Raises:
            LimitExceededError: car.images breaks the per-car limit.
            StorageFailureError: The database rejected the update.
        """
        self._check_invariants(car.images)

        try:
            await self.session.flush()
            await self.session.refresh(car)
        except SQLAlchemyError as e:
            raise StorageFailureError("save car", e) from e
        return car

    async def delete(self, owner_id: str, car_id: int) -> Car:
        """
        Remove the car if owned and return the deleted row (for its images).

        Raises:
            NotFoundError: Car is missing or belongs to another owner.
            StorageFailureError: The database rejected the delete.
        """
        car = await self.find_owned(owner_id, car_id)
        try:
            await self.session.delete(car)
            await self.session.flush()
        except SQLAlchemyError as e:
            raise StorageFailureError("delete car", e) from e

        logger.info("Deleted car id=%d owner=%s", car_id, owner_id)
        return car

    async def commit(self) -> None:
        """Make pending changes durable."""
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            raise StorageFailureError("commit", e) from e
