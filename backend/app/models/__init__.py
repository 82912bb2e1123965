"""
Database models for the training scheduler.

This module exports all SQLAlchemy models used in the application.
The models are organized by functionality:
- Resource catalog (trainers, rooms, mobile units, trainer day overrides)
- Commercial records read by the scheduler (deals, deal line items, catalog products)
- Bookable events (sessions and variants) and their resource link tables
"""

from .deal import Deal, DealProduct, Product
from .resource import MobileUnit, Room, Trainer, TrainerAvailability
from .session import TrainingSession, session_mobile_units, session_trainers
from .variant import Variant, variant_mobile_units, variant_trainers

__all__ = [
    "Deal",
    "DealProduct",
    "MobileUnit",
    "Product",
    "Room",
    "Trainer",
    "TrainerAvailability",
    "TrainingSession",
    "Variant",
    "session_mobile_units",
    "session_trainers",
    "variant_mobile_units",
    "variant_trainers",
]
