# =============================================================================
# Pytest Configuration & Shared Fakes
# =============================================================================
#
# Sets environment variables BEFORE app.config is imported (the module-level
# Settings instance reads them once), and provides in-memory stand-ins for
# the database-backed store and the filesystem so that no test needs
# PostgreSQL, Redis, or a real upload directory.
# =============================================================================

from __future__ import annotations

import os

os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("AUTH_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("AUDIT_LOGGING_ENABLED", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")

import dataclasses
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from app.exceptions import NotFoundError
from app.services.cars import CarService
from app.services.store import CarStore


@dataclass
class FakeCar:
    """Lightweight stand-in for the Car ORM model."""

    id: int
    owner_id: str
    title: str = ""
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class InMemoryCarStore(CarStore):
    """
    CarStore over a dict instead of a session.

    Hands out copies, like rows loaded in a fresh transaction: changes to a
    loaded car only land when save() succeeds.
    """

    def __init__(self, max_images: int | None = None):
        super().__init__(session=None, max_images=max_images)
        self.rows: dict[int, FakeCar] = {}
        self.commits = 0
        self._next_id = 1

    @staticmethod
    def _copy(car: FakeCar) -> FakeCar:
        return dataclasses.replace(car, tags=list(car.tags), images=list(car.images))

    def seed(self, owner_id: str, **fields) -> FakeCar:
        car = FakeCar(id=self._next_id, owner_id=owner_id, **fields)
        self._next_id += 1
        self.rows[car.id] = car
        return self._copy(car)

    async def create(self, owner_id, fields, images):
        self._check_invariants(images)
        return self.seed(
            owner_id,
            title=fields.get("title") or "",
            description=fields.get("description"),
            tags=list(fields.get("tags") or []),
            images=list(images),
        )

    async def find_owned(self, owner_id, car_id):
        car = self.rows.get(car_id)
        if car is None or car.owner_id != owner_id:
            raise NotFoundError(car_id)
        return self._copy(car)

    async def list_owned(self, owner_id):
        return [self._copy(c) for c in self.rows.values() if c.owner_id == owner_id]

    async def save(self, car):
        self._check_invariants(car.images)
        car.updated_at = datetime.now(UTC)
        self.rows[car.id] = self._copy(car)
        return car

    async def delete(self, owner_id, car_id):
        car = await self.find_owned(owner_id, car_id)
        del self.rows[car_id]
        return car

    async def commit(self):
        self.commits += 1


class FakeFileStorage:
    """FileStorage over a set of references; records every call."""

    def __init__(self, existing: set[str] | None = None):
        self.files: set[str] = set(existing or ())
        self.saved: list[str] = []
        self.deleted: list[str] = []
        self._counter = 0

    def save(self, filename: str, content: bytes) -> str:
        self._counter += 1
        ref = f"uploads/{self._counter}{filename}"
        self.files.add(ref)
        self.saved.append(ref)
        return ref

    def exists(self, ref: str) -> bool:
        return ref in self.files

    def delete(self, ref: str) -> bool:
        self.deleted.append(ref)
        if ref not in self.files:
            return False
        self.files.remove(ref)
        return True


@pytest.fixture
def store() -> InMemoryCarStore:
    return InMemoryCarStore()


@pytest.fixture
def storage() -> FakeFileStorage:
    return FakeFileStorage()


@pytest.fixture
def service(store, storage) -> CarService:
    return CarService(store, storage)
