# backend/app/repositories/deal_repository.py
"""Read access to deals, deal line items and catalog products."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models.deal import Deal, DealProduct, Product
from .base_repository import BaseRepository


class DealRepository(BaseRepository[Deal]):
    def __init__(self, db: Session):
        super().__init__(db, Deal)
        self.logger = logging.getLogger(__name__)

    def get_deal(self, deal_id: str) -> Optional[Deal]:
        return self.get_by_id(deal_id)

    def get_deal_product(self, deal_product_id: str) -> Optional[DealProduct]:
        return BaseRepository(self.db, DealProduct).get_by_id(deal_product_id)

    def get_product(self, product_id: str) -> Optional[Product]:
        return BaseRepository(self.db, Product).get_by_id(product_id)
