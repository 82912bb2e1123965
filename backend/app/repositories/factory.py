# backend/app/repositories/factory.py
"""
Repository Factory for the training scheduler.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from ..core.capabilities import SchemaCapabilities
    from .deal_repository import DealRepository
    from .resource_repository import ResourceRepository
    from .session_repository import SessionRepository
    from .variant_repository import VariantRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_resource_repository(db: Session) -> "ResourceRepository":
        """Create repository for the trainer/room/unit catalog."""
        from .resource_repository import ResourceRepository

        return ResourceRepository(db)

    @staticmethod
    def create_deal_repository(db: Session) -> "DealRepository":
        """Create repository for deals and products."""
        from .deal_repository import DealRepository

        return DealRepository(db)

    @staticmethod
    def create_session_repository(db: Session) -> "SessionRepository":
        """Create repository for session bookings."""
        from .session_repository import SessionRepository

        return SessionRepository(db)

    @staticmethod
    def create_variant_repository(
        db: Session, capabilities: "SchemaCapabilities"
    ) -> "VariantRepository":
        """Create repository for variant bookings; staged columns are gated by ``capabilities``."""
        from .variant_repository import VariantRepository

        return VariantRepository(db, capabilities)
