# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the training scheduler.

This package provides the repository layer for data access,
separating business logic from database queries.

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- RepositoryFactory: Factory for creating repository instances
- ResourceRepository: Trainers, rooms, mobile units and trainer day overrides
- DealRepository: Deals, deal line items and catalog products
- SessionRepository: Session bookings and their resource links
- VariantRepository: Variant bookings with capability-gated resource columns

Usage:
    from app.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_session_repository(db)
    sessions = repository.find_in_range(start, end)
"""

from .base_repository import BaseRepository
from .deal_repository import DealRepository
from .factory import RepositoryFactory
from .resource_repository import ResourceRepository
from .session_repository import SessionRepository
from .variant_repository import VariantBookingRow, VariantRepository, VariantResources

__all__ = [
    "BaseRepository",
    "DealRepository",
    "RepositoryFactory",
    "ResourceRepository",
    "SessionRepository",
    "VariantBookingRow",
    "VariantRepository",
    "VariantResources",
]
