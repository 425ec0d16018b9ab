# =============================================================================
# Services Package — Business Logic
# =============================================================================
# Contains the core business logic, separated from API handlers:
#   - reconciler.py: Pure image-set reconciliation (keep / drop / append)
#   - store.py: Owner-scoped persistence for car records
#   - storage.py: Image file storage and best-effort purge
#   - cars.py: Create / update / delete orchestration
#   - rate_limiter.py: Per-owner Redis sliding-window rate limit
# =============================================================================
