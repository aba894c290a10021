"""
Core Application - Infrastructure & Base Classes

Generic, reusable building blocks shared by the domain apps
(authentication, gyms, chat). No domain-specific logic lives here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError: Input validation failures
    - NotFoundError: Resource not found
    - ConflictError: State conflicts (duplicates, etc.)
    - PersistenceError: Storage failures

Views (import from core.views):
    - health_check: Liveness/readiness endpoint
"""
