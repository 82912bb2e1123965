# backend/app/core/capabilities.py
"""
Runtime detection of staged schema features.

Variant resource columns and variant link tables arrive through migrations
that may not have run yet in a given deployment. ``SchemaCapabilities`` keeps
one flag per feature for the life of the process: queries that need a feature
run through ``run()``, and a schema-mismatch error flips the flag so that
later calls take the reduced query shape directly.
"""

import logging
import re
import threading
from typing import Callable, Dict, Iterable, Optional, TypeVar, Union

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..monitoring.prometheus_metrics import prometheus_metrics
from .enums import Capability

logger = logging.getLogger(__name__)

T = TypeVar("T")

VARIANT_RESOURCE_COLUMNS = ("trainer_id", "room_id", "unit_id")
VARIANT_LINK_TABLES = ("variant_trainers", "variant_mobile_units")

# Identifiers whose absence means a capability is missing.
CAPABILITY_IDENTIFIERS: Dict[str, tuple] = {
    Capability.VARIANT_RESOURCE_COLUMNS.value: VARIANT_RESOURCE_COLUMNS,
    Capability.VARIANT_RESOURCE_LINKS.value: VARIANT_LINK_TABLES,
}

_SCHEMA_MISMATCH_PATTERNS = (
    re.compile(r"no such (column|table)", re.IGNORECASE),
    re.compile(r"(column|relation|table) .* does not exist", re.IGNORECASE),
    re.compile(r"unknown column", re.IGNORECASE),
    re.compile(r"undefined(column|table)", re.IGNORECASE),
    re.compile(r"has no column named", re.IGNORECASE),
)

CapabilityName = Union[Capability, str]


def _key(name: CapabilityName) -> str:
    return name.value if isinstance(name, Capability) else str(name)


class SchemaCapabilities:
    """
    Process-wide record of which staged schema features are usable.

    A capability starts as unknown and is treated as supported until proven
    otherwise. Build one at startup and share it; tests build their own.
    """

    def __init__(self, initial: Optional[Dict[CapabilityName, bool]] = None):
        self._flags: Dict[str, Optional[bool]] = {_key(c): None for c in Capability}
        self._lock = threading.Lock()
        for name, value in (initial or {}).items():
            self._flags[_key(name)] = value

    def supports(self, name: CapabilityName) -> bool:
        return self._flags.get(_key(name)) is not False

    def is_known(self, name: CapabilityName) -> bool:
        return self._flags.get(_key(name)) is not None

    def snapshot(self) -> Dict[str, Optional[bool]]:
        return dict(self._flags)

    def mark_supported(self, name: CapabilityName) -> None:
        key = _key(name)
        with self._lock:
            if self._flags.get(key) is True:
                return
            self._flags[key] = True
        prometheus_metrics.set_capability(key, True)
        logger.info("Schema capability %s is supported", key)

    def mark_unsupported(self, name: CapabilityName, reason: Optional[str] = None) -> None:
        key = _key(name)
        with self._lock:
            if self._flags.get(key) is False:
                return
            self._flags[key] = False
        prometheus_metrics.set_capability(key, False)
        logger.warning(
            "Schema capability %s is not available, falling back to reduced queries: %s",
            key,
            reason or "schema probe",
        )

    def probe(self, db: Session, names: Optional[Iterable[CapabilityName]] = None) -> Dict[str, bool]:
        """
        Inspect the live schema once for every capability still unknown.

        Returns:
            Mapping of capability name to its resolved support flag
        """
        pending = [_key(n) for n in (names or list(Capability)) if not self.is_known(n)]
        if pending:
            inspector = inspect(db.connection())
            tables = set(inspector.get_table_names())
            for key in pending:
                if key == Capability.VARIANT_RESOURCE_COLUMNS.value:
                    columns = (
                        {column["name"] for column in inspector.get_columns("variants")}
                        if "variants" in tables
                        else set()
                    )
                    missing = [c for c in VARIANT_RESOURCE_COLUMNS if c not in columns]
                    if missing:
                        self.mark_unsupported(key, f"variants is missing {', '.join(missing)}")
                    else:
                        self.mark_supported(key)
                elif key == Capability.VARIANT_RESOURCE_LINKS.value:
                    missing = [t for t in VARIANT_LINK_TABLES if t not in tables]
                    if missing:
                        self.mark_unsupported(key, f"missing tables {', '.join(missing)}")
                    else:
                        self.mark_supported(key)
        return {key: self.supports(key) for key in self._flags}

    @staticmethod
    def is_schema_mismatch(error: BaseException, name: Optional[CapabilityName] = None) -> bool:
        """
        True when ``error`` says a column or table does not exist.

        With ``name``, the message must also mention one of that capability's
        identifiers.
        """
        message = str(getattr(error, "orig", None) or error)
        if not any(pattern.search(message) for pattern in _SCHEMA_MISMATCH_PATTERNS):
            return False
        if name is None:
            return True
        identifiers = CAPABILITY_IDENTIFIERS.get(_key(name), ())
        lowered = message.lower()
        return any(identifier in lowered for identifier in identifiers)

    def run(
        self,
        name: CapabilityName,
        db: Session,
        operation: Callable[[], T],
        fallback: Callable[[], T],
    ) -> T:
        """
        Run ``operation`` if the capability may be used, else ``fallback``.

        The operation runs inside a savepoint so a schema-mismatch error does
        not poison the surrounding transaction. Any other database error
        propagates.
        """
        if not self.supports(name):
            return fallback()
        try:
            with db.begin_nested():
                result = operation()
        except SQLAlchemyError as exc:
            if not self.is_schema_mismatch(exc, name):
                raise
            self.mark_unsupported(name, str(getattr(exc, "orig", None) or exc))
            return fallback()
        if not self.is_known(name):
            self.mark_supported(name)
        return result
