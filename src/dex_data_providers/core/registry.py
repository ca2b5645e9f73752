"""
Data source descriptor catalogue.

Each descriptor holds the configuration of one external project-hosting
source: its stable guid, the provider family implementing it, whether it is
reached through OAuth, and the endpoints used for API calls and the OAuth
flow. Descriptors are loaded from YAML so operators can add a self-hosted
GitLab or Gitea instance without touching code. Client credentials are kept
out of this file and resolved through :mod:`dex_data_providers.config`.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, MutableMapping, Optional, Sequence

import yaml


class RegistryLoadError(RuntimeError):
    """Raised when a registry YAML file cannot be parsed or validated."""


class DataSourceKind(str, Enum):
    """Capability tier of a data source."""

    PUBLIC = "public"
    AUTHORIZED = "authorized"


class AuthFilter(str, Enum):
    """Selection used when listing data sources by capability tier."""

    ALL = "all"
    AUTHORIZED_ONLY = "authorized"
    PUBLIC_ONLY = "public"

    @classmethod
    def from_needs_auth(cls, needs_auth: Optional[bool]) -> "AuthFilter":
        """Map the nullable ``needsAuth`` flag used by HTTP callers."""

        if needs_auth is None:
            return cls.ALL
        return cls.AUTHORIZED_ONLY if needs_auth else cls.PUBLIC_ONLY


def normalise_guid(value: object) -> Optional[str]:
    """Return the canonical lower-case form of ``value`` or ``None`` if it is not a guid."""

    if isinstance(value, uuid.UUID):
        return str(value)
    if not isinstance(value, str):
        return None
    try:
        return str(uuid.UUID(value.strip()))
    except ValueError:
        return None


@dataclass(slots=True, frozen=True)
class DataSourceDescriptor:
    """
    Configuration for a single external data source.

    Parameters
    ----------
    guid:
        Stable identifier used by callers to address the source.
    key:
        Short slug naming the credential section in the secrets file.
    name:
        Human-friendly display name.
    provider:
        Provider family implementing the source (``github``, ``gitlab``,
        ``gitea``).
    kind:
        Capability tier. Authorized sources expose the OAuth flow.
    description:
        Short summary shown to end users when picking a source.
    api_url:
        Root of the provider's REST API.
    web_url:
        Root of the provider's web interface; used to validate project URLs.
    authorization_url / token_url:
        OAuth endpoints. Mandatory for authorized sources.
    scopes:
        OAuth scopes requested in the authorization URL.
    is_visible:
        Whether the source is offered to end users.
    icon:
        Optional icon file name for front-ends.
    """

    guid: str
    key: str
    name: str
    provider: str
    kind: DataSourceKind
    api_url: str
    web_url: str
    description: str = ""
    authorization_url: Optional[str] = None
    token_url: Optional[str] = None
    scopes: Sequence[str] = field(default_factory=tuple)
    is_visible: bool = True
    icon: Optional[str] = None

    def validate(self) -> None:
        """Validate internal consistency of the descriptor."""

        if normalise_guid(self.guid) != self.guid:
            raise RegistryLoadError(f"Data source '{self.name}' has an invalid guid '{self.guid}'.")
        if not self.key or not self.key.isidentifier():
            raise RegistryLoadError(f"Data source '{self.guid}' must have a key made of letters, digits or underscores.")
        if not self.api_url or not self.web_url:
            raise RegistryLoadError(f"Data source '{self.key}' must declare api_url and web_url.")
        if self.kind == DataSourceKind.AUTHORIZED and not (self.authorization_url and self.token_url):
            raise RegistryLoadError(f"Authorized data source '{self.key}' must declare authorization_url and token_url.")

    def to_json(self) -> str:
        """Return a JSON representation useful for CLI output."""

        payload = {
            "guid": self.guid,
            "key": self.key,
            "name": self.name,
            "provider": self.provider,
            "kind": self.kind.value,
            "description": self.description,
            "api_url": self.api_url,
            "web_url": self.web_url,
            "authorization_url": self.authorization_url,
            "token_url": self.token_url,
            "scopes": list(self.scopes),
            "is_visible": self.is_visible,
            "icon": self.icon,
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)


class DataSourceRegistry:
    """In-memory catalogue of :class:`DataSourceDescriptor` entries keyed by guid."""

    def __init__(self) -> None:
        self._entries: MutableMapping[str, DataSourceDescriptor] = {}

    def register(self, descriptor: DataSourceDescriptor) -> None:
        """Register a descriptor. Guids and keys must be unique."""

        descriptor.validate()
        if descriptor.guid in self._entries:
            raise RegistryLoadError(f"Data source guid '{descriptor.guid}' is registered twice.")
        if any(entry.key == descriptor.key for entry in self._entries.values()):
            raise RegistryLoadError(f"Data source key '{descriptor.key}' is registered twice.")
        self._entries[descriptor.guid] = descriptor

    def get(self, guid: str) -> Optional[DataSourceDescriptor]:
        """Retrieve a descriptor if present."""

        canonical = normalise_guid(guid)
        if canonical is None:
            return None
        return self._entries.get(canonical)

    def list(self, *, kind: Optional[DataSourceKind] = None) -> List[DataSourceDescriptor]:
        """Return registered descriptors optionally filtered by kind."""

        items = self._entries.values()
        if kind:
            return [item for item in items if item.kind == kind]
        return list(items)

    def __len__(self) -> int:
        return len(self._entries)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "DataSourceRegistry":
        """Load descriptors from a YAML document."""

        location = Path(path)
        if not location.exists():
            raise RegistryLoadError(f"Registry file '{location}' does not exist.")

        try:
            with location.open("r", encoding="utf-8") as handle:
                payload = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise RegistryLoadError(f"Failed to parse '{location}': {exc}") from exc

        if not isinstance(payload, list):
            raise RegistryLoadError(f"Registry file '{location}' must contain a list of data sources.")

        registry = cls()
        for entry in payload:
            registry.register(cls._descriptor_from_payload(entry, origin=location))
        return registry

    @staticmethod
    def _descriptor_from_payload(entry: Dict[str, object], *, origin: Path) -> DataSourceDescriptor:
        """Convert a YAML mapping into a descriptor instance."""

        if not isinstance(entry, dict):
            raise RegistryLoadError(f"Invalid entry in '{origin}': expected mapping, got {type(entry)!r}")

        guid = normalise_guid(str(entry.get("guid", "")))
        if guid is None:
            raise RegistryLoadError(f"Entry in '{origin}' has a missing or malformed guid: {entry.get('guid')!r}")

        try:
            descriptor = DataSourceDescriptor(
                guid=guid,
                key=str(entry["key"]),
                name=str(entry.get("name", entry["key"])),
                provider=str(entry["provider"]).lower(),
                kind=DataSourceKind(str(entry.get("kind", DataSourceKind.PUBLIC.value)).lower()),
                api_url=str(entry["api_url"]).rstrip("/"),
                web_url=str(entry["web_url"]).rstrip("/"),
                description=str(entry.get("description", "")).strip(),
                authorization_url=_optional_str(entry.get("authorization_url")),
                token_url=_optional_str(entry.get("token_url")),
                scopes=tuple(_ensure_list(entry.get("scopes"))),
                is_visible=bool(entry.get("is_visible", True)),
                icon=_optional_str(entry.get("icon")),
            )
        except KeyError as exc:
            raise RegistryLoadError(f"Missing required key {exc!s} in '{origin}'.") from exc
        except ValueError as exc:
            raise RegistryLoadError(f"Invalid field in '{origin}': {exc}") from exc

        return descriptor


def _ensure_list(value: object | None) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(item) for item in value]
    return [str(value)]


def _optional_str(value: object | None) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
