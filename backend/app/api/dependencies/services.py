# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected. Services share one
database session and one ConflictChecker per request.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.capabilities import SchemaCapabilities
from ...services.availability_service import AvailabilityService
from ...services.conflict_checker import ConflictChecker
from ...services.session_service import SessionService
from ...services.variant_service import VariantService
from .database import get_capabilities, get_db


def get_conflict_checker(
    db: Session = Depends(get_db),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
) -> ConflictChecker:
    """Get conflict checker service instance for dependency injection."""
    return ConflictChecker(db, capabilities)


def get_session_service(
    db: Session = Depends(get_db),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
) -> SessionService:
    """Get session service instance for dependency injection."""
    return SessionService(
        db,
        capabilities,
        conflict_checker=conflict_checker,
        session_repository=conflict_checker.session_repository,
        catalog=conflict_checker.catalog,
    )


def get_variant_service(
    db: Session = Depends(get_db),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
) -> VariantService:
    """Get variant service instance for dependency injection."""
    return VariantService(
        db,
        capabilities,
        conflict_checker=conflict_checker,
        variant_repository=conflict_checker.variant_repository,
        catalog=conflict_checker.catalog,
    )


def get_availability_service(
    db: Session = Depends(get_db),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
) -> AvailabilityService:
    """Get availability service instance for dependency injection."""
    return AvailabilityService(
        db, capabilities, conflict_checker=conflict_checker, catalog=conflict_checker.catalog
    )
