"""
Canonical, provider-independent shapes returned by the data-provider layer.

Provider payloads never leave :mod:`dex_data_providers.services.adapter`;
callers only ever see :class:`Project` and :class:`OauthTokens`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

SHORT_DESCRIPTION_LIMIT = 255


@dataclass(slots=True)
class Project:
    """
    Normalised representation of an external repository.

    Attributes
    ----------
    id:
        Identifier of the project on its source provider.
    name:
        Display name of the repository.
    short_description:
        Description truncated to :data:`SHORT_DESCRIPTION_LIMIT` characters.
    description:
        Full description as published by the provider.
    uri:
        Public web address of the project.
    owner:
        User or namespace owning the project.
    source_guid:
        Guid of the data source the project was fetched from.
    created / updated:
        Provider timestamps, when available.
    tags:
        Topics attached to the repository.
    """

    id: int = 0
    name: str = ""
    short_description: str = ""
    description: str = ""
    uri: str = ""
    owner: str = ""
    source_guid: str = ""
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    tags: Sequence[str] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "short_description": self.short_description,
            "description": self.description,
            "uri": self.uri,
            "owner": self.owner,
            "source_guid": self.source_guid,
            "created": self.created.isoformat() if self.created else None,
            "updated": self.updated.isoformat() if self.updated else None,
            "tags": list(self.tags),
        }


@dataclass(slots=True)
class OauthTokens:
    """Result of a successful authorization-code exchange."""

    access_token: str
    token_type: str = "bearer"
    refresh_token: Optional[str] = None
    scope: Optional[str] = None
    expires_in: Optional[int] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "refresh_token": self.refresh_token,
            "scope": self.scope,
            "expires_in": self.expires_in,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
