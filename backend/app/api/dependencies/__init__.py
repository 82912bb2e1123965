# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .database import get_capabilities, get_db
from .services import (
    get_availability_service,
    get_conflict_checker,
    get_session_service,
    get_variant_service,
)

__all__ = [
    # Database
    "get_db",
    "get_capabilities",
    # Services
    "get_conflict_checker",
    "get_session_service",
    "get_variant_service",
    "get_availability_service",
]
