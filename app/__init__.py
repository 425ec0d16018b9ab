# =============================================================================
# Car Garage API
# =============================================================================
# A CRUD service for user-owned car records with attached images. Every
# operation is scoped to the verified owner; updates reconcile the image set
# (keep, drop, append) and purge removed files from disk.
#
# Package structure:
#   app/
#   ├── api/          → FastAPI route handlers, auth dependencies, audit
#   │                    middleware
#   ├── db/           → Database engine, session, and ORM models
#   ├── models/       → Pydantic V2 request parsing and response schemas
#   └── services/     → Business logic (image reconciliation, record store,
#                        file storage, car orchestration, rate limiting)
# =============================================================================
