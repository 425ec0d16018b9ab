# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
# Defines request parsing and response schemas for the API.
# These are SEPARATE from the database models (app/db/models.py).
# =============================================================================
