# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
#   - cars.py: Owner-scoped car CRUD with image uploads
#   - deps.py: Identity (JWT verification), store and storage dependencies
#   - audit.py: Request audit logging middleware
# =============================================================================
