# backend/app/services/resource_catalog.py
"""
Resource Catalog Service for the training scheduler.

Read-only view of trainers, rooms and mobile units: which sites each one
serves, which units are exempt from scheduling, and referential checks for
ids arriving in write requests.
"""

from dataclasses import dataclass, field
import logging
from typing import Dict, FrozenSet, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import ResourceKind, Site
from ..core.exceptions import NotFoundException
from ..domain.sites import extract_sites, normalize_site
from ..models.resource import MobileUnit, Room, Trainer
from ..repositories import RepositoryFactory
from ..repositories.resource_repository import ResourceRepository
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class RequestedResources:
    room: Optional[Room] = None
    trainers: List[Trainer] = field(default_factory=list)
    units: List[MobileUnit] = field(default_factory=list)


@dataclass
class SiteIndex:
    """Site membership of every countable resource."""

    room_sites: Dict[str, Site] = field(default_factory=dict)
    trainer_sites: Dict[str, List[Site]] = field(default_factory=dict)
    unit_sites: Dict[str, List[Site]] = field(default_factory=dict)


class ResourceCatalogService(BaseService):
    """Resource lookups shared by the conflict checker, availability and writes."""

    def __init__(
        self,
        db: Session,
        repository: Optional[ResourceRepository] = None,
        exempt_unit_ids: Optional[Iterable[str]] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_resource_repository(db)
        ids = settings.always_available_unit_ids if exempt_unit_ids is None else exempt_unit_ids
        self.exempt_unit_ids: FrozenSet[str] = frozenset(i for i in ids if i)

    def is_exempt_unit(self, unit_id: Optional[str]) -> bool:
        return bool(unit_id) and unit_id in self.exempt_unit_ids

    def require_resources(
        self,
        room_id: Optional[str] = None,
        trainer_ids: Iterable[str] = (),
        unit_ids: Iterable[str] = (),
    ) -> RequestedResources:
        """
        Load every requested resource.

        Raises:
            NotFoundException: If any id does not exist
        """
        trainer_list = list(dict.fromkeys(trainer_ids))
        unit_list = list(dict.fromkeys(unit_ids))
        result = RequestedResources()

        if room_id:
            rooms = self.repository.get_rooms([room_id])
            if not rooms:
                raise self._missing(ResourceKind.ROOM, [room_id])
            result.room = rooms[0]

        if trainer_list:
            found = {t.id: t for t in self.repository.get_trainers(trainer_list)}
            missing = [i for i in trainer_list if i not in found]
            if missing:
                raise self._missing(ResourceKind.TRAINER, missing)
            result.trainers = [found[i] for i in trainer_list]

        if unit_list:
            found_units = {u.id: u for u in self.repository.get_units(unit_list)}
            missing = [i for i in unit_list if i not in found_units]
            if missing:
                raise self._missing(ResourceKind.UNIT, missing)
            result.units = [found_units[i] for i in unit_list]

        return result

    @staticmethod
    def _missing(kind: ResourceKind, ids: List[str]) -> NotFoundException:
        return NotFoundException(
            f"Unknown {kind.value} id",
            details={"resource_kind": kind.value, "missing_ids": ids},
        )

    def build_site_index(self) -> SiteIndex:
        """
        Site membership of rooms, active trainers and non-exempt units.

        Resources without a recognised site are left out.
        """
        index = SiteIndex()
        for room in self.repository.list_rooms():
            site = normalize_site(room.site)
            if site is not None:
                index.room_sites[room.id] = site
        for trainer in self.repository.list_trainers(active_only=True):
            sites = extract_sites(trainer.sites)
            if sites:
                index.trainer_sites[trainer.id] = sites
        for unit in self.repository.list_units():
            if self.is_exempt_unit(unit.id):
                continue
            sites = extract_sites(unit.sites)
            if sites:
                index.unit_sites[unit.id] = sites
        return index

    def active_trainer_ids(self) -> List[str]:
        return [t.id for t in self.repository.list_trainers(active_only=True)]
