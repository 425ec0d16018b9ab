# =============================================================================
# Audit Logging Middleware — Request/Response Lifecycle Logging
# =============================================================================
#
# Records every /api/cars request to the audit_logs table: who touched
# which car, when, and with what status.
#
# DESIGN DECISION: Starlette middleware (not a FastAPI dependency) because:
# 1. Middleware wraps the ENTIRE request lifecycle (captures status code)
# 2. Captures timing across the full request
# 3. Does not require every endpoint to explicitly opt-in
# 4. Audit writes use their own DB session to avoid lifecycle conflicts
#
# DESIGN DECISION: The audit row is written after the response is
# generated. Failures are logged but never affect the actual request.
# =============================================================================

from __future__ import annotations

import logging
import time

from starlette.middleware.base import (
    BaseHTTPMiddleware,
    RequestResponseEndpoint,
)
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings
from app.db.engine import async_session_factory
from app.db.models import MAX_INT_ID, AuditLog

logger = logging.getLogger(__name__)

_AUDITED_PREFIX = "/api/cars"


class AuditLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs car API requests to the audit_logs table.

    Reads owner_id from request.state (set by get_current_owner) and
    audit_car_id (set by the car handlers).
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if not settings.audit_logging_enabled:
            return await call_next(request)

        if not request.url.path.startswith(_AUDITED_PREFIX):
            return await call_next(request)

        start_time = time.monotonic()
        response = await call_next(request)
        elapsed_ms = int((time.monotonic() - start_time) * 1000)

        owner_id = getattr(request.state, "owner_id", None)
        car_id = getattr(request.state, "audit_car_id", None)
        if car_id is not None and not 0 < car_id <= MAX_INT_ID:
            car_id = None
        client_ip = request.client.host if request.client else None

        try:
            async with async_session_factory() as session:
                session.add(AuditLog(
                    owner_id=owner_id,
                    car_id=car_id,
                    endpoint="cars",
                    method=request.method,
                    path=str(request.url.path),
                    client_ip=client_ip,
                    status_code=response.status_code,
                    response_time_ms=elapsed_ms,
                ))
                await session.commit()
        except Exception as e:
            logger.warning("Failed to write audit log: %s", e)

        return response
