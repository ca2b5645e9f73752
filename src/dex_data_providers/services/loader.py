"""
Adaptee registry consulted by the data provider service.

Readers never take a lock: the loader publishes an immutable mapping and a
reload swaps the whole mapping in one assignment, so every lookup sees either
the old or the new configuration in full.
"""

from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

import httpx

from ..config import SecretsBundle
from ..core.logging import get_logger
from ..core.registry import DataSourceRegistry, RegistryLoadError, normalise_guid
from ..providers.base import DataSourceAdaptee
from ..providers.factory import build_adaptees


class DataProviderLoader:
    """Holds the configured adaptees for the lifetime of the process."""

    def __init__(self, adaptees: Iterable[DataSourceAdaptee] = ()) -> None:
        self._lock = threading.Lock()
        self._logger = get_logger(f"{__name__}.{self.__class__.__name__}")
        self._by_guid: Mapping[str, DataSourceAdaptee] = self._freeze(adaptees)

    @classmethod
    def from_registry(
        cls,
        registry: DataSourceRegistry,
        secrets: SecretsBundle,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "DataProviderLoader":
        """Build adaptees for every descriptor in ``registry``."""

        return cls(build_adaptees(registry, secrets, transport=transport))

    @staticmethod
    def _freeze(adaptees: Iterable[DataSourceAdaptee]) -> Mapping[str, DataSourceAdaptee]:
        entries = {}
        for adaptee in adaptees:
            if adaptee.guid in entries:
                raise RegistryLoadError(f"Data source guid '{adaptee.guid}' is configured twice.")
            entries[adaptee.guid] = adaptee
        return MappingProxyType(entries)

    def get_data_source_by_guid(self, guid: str) -> Optional[DataSourceAdaptee]:
        """Return the adaptee registered under ``guid``, if any."""

        canonical = normalise_guid(guid)
        if canonical is None:
            return None
        return self._by_guid.get(canonical)

    def get_data_source_by_name(self, name: str) -> Optional[DataSourceAdaptee]:
        """Case-insensitive lookup by display name or descriptor key."""

        wanted = name.strip().lower()
        for adaptee in self._by_guid.values():
            if wanted in (adaptee.descriptor.name.lower(), adaptee.descriptor.key.lower()):
                return adaptee
        return None

    def get_all_data_sources(self) -> Tuple[DataSourceAdaptee, ...]:
        """Return a snapshot of every configured adaptee."""

        return tuple(self._by_guid.values())

    def reload(self, adaptees: Iterable[DataSourceAdaptee]) -> None:
        """Replace the configured adaptees."""

        with self._lock:
            frozen = self._freeze(adaptees)
            self._by_guid = frozen
        self._logger.info("Data sources reloaded", extra={"count": len(frozen)})

    def __len__(self) -> int:
        return len(self._by_guid)
