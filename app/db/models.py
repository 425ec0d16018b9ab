# =============================================================================
# Database Models — SQLAlchemy ORM
# =============================================================================
#
# SCHEMA OVERVIEW:
#
# ┌──────────────────────────┐       ┌──────────────────────────┐
# │  cars                    │       │  audit_logs              │
# ├──────────────────────────┤       ├──────────────────────────┤
# │ id (PK)                  │       │ id (PK)                  │
# │ owner_id (indexed)       │       │ owner_id                 │
# │ title                    │       │ car_id                   │
# │ description              │       │ endpoint / method / path │
# │ tags (json array)        │       │ client_ip                │
# │ images (json array)      │       │ status_code              │
# │ created_at               │       │ response_time_ms         │
# │ updated_at               │       │ created_at               │
# └──────────────────────────┘       └──────────────────────────┘
#
# DESIGN DECISIONS:
#
# 1. `owner_id` is a plain string, not a foreign key. Users live in the
#    external identity system; this service only ever sees a verified id.
#
# 2. `tags` and `images` are JSON arrays on the row (JSONB on PostgreSQL).
#    Both are small (images ≤ 10), always read with the car, and their order
#    matters. A child table would add joins without adding any query we need.
#
# 3. audit_logs has no FK to cars: the trail must outlive deleted cars.
# =============================================================================

from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, generic JSON elsewhere
JsonList = JSON().with_variant(JSONB(), "postgresql")

# Largest value an Integer (int4) id column can hold
MAX_INT_ID = 2**31 - 1


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class. All ORM models inherit from this."""

    pass


class Car(Base):
    """
    A user-owned car record with metadata and image references.

    Only ever read or written through CarStore, which filters every query
    by owner_id. `images` holds opaque storage references in upload order
    and never exceeds settings.max_images_per_car entries at rest.
    """

    __tablename__ = "cars"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Verified user id from the identity collaborator; immutable
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False)

    title: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Ordered labels, e.g. ["sedan", "toyota"]
    tags: Mapped[list] = mapped_column(JsonList, nullable=False, default=list)

    # Ordered storage references, e.g. ["uploads/1712345678901front.jpg"]
    images: Mapped[list] = mapped_column(JsonList, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<Car(id={self.id}, owner='{self.owner_id}', "
            f"title='{self.title}', images={len(self.images or [])})>"
        )


class AuditLog(Base):
    """
    Audit trail for requests against the cars API.

    Records who touched which car, when, and with what outcome.
    Written by AuditLoggingMiddleware with its own session.
    """

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True,
    )

    # Verified owner id (null when the request failed authentication)
    owner_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Car touched by the request (set by handlers on request.state)
    car_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    endpoint: Mapped[str] = mapped_column(String(200), nullable=False)
    method: Mapped[str] = mapped_column(String(10), nullable=False)
    path: Mapped[str] = mapped_column(String(500), nullable=False)

    # Client IP address (IPv6-safe: max 45 chars)
    client_ip: Mapped[str | None] = mapped_column(
        String(45), nullable=True,
    )

    status_code: Mapped[int | None] = mapped_column(
        Integer, nullable=True,
    )
    response_time_ms: Mapped[int | None] = mapped_column(
        Integer, nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


# Every store query filters by owner; list queries also order by created_at
car_owner_idx = Index(
    "idx_car_owner_created",
    Car.owner_id,
    Car.created_at,
)

audit_log_owner_idx = Index(
    "idx_audit_log_owner_created",
    AuditLog.owner_id,
    AuditLog.created_at,
)

audit_log_car_idx = Index(
    "idx_audit_log_car_created",
    AuditLog.car_id,
    AuditLog.created_at,
)
