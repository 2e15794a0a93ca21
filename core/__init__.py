# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the domain logic behind the API:
# - models/: Pydantic schemas for request bodies and enums
# - services/: Access guard plus one service class per resource
#
# Services take the database handle and the resolved caller explicitly and
# raise the typed errors from app/exceptions.py; they never touch requests.
# =============================================================================
