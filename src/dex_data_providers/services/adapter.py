"""
Adapter between one data source adaptee and the canonical models.

This module is the only place that reads provider payloads. Adding a provider
means adding an adaptee plus one translator in :data:`_PROJECT_TRANSLATORS`.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence
from urllib.parse import urlsplit

from ..core.logging import ProviderLogger, bind_tags, get_logger
from ..core.models import SHORT_DESCRIPTION_LIMIT, OauthTokens, Project
from ..providers.base import (
    AuthenticationRequiredError,
    AuthorizedDataSourceAdaptee,
    CapabilityMismatchError,
    DataSourceAdaptee,
    ExternalProviderError,
    InvalidRequestError,
    NativeRecord,
    ProjectNotFoundError,
)


def _as_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return 0


def _as_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=UTC)
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _as_tags(value: Any) -> Sequence[str]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(item for item in (_as_str(entry) for entry in value) if item)


def _nested(record: NativeRecord, *path: str) -> Any:
    current: Any = record
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _project(
    source_guid: str,
    *,
    id: Any,
    name: Any,
    description: Any,
    uri: Any,
    owner: Any,
    created: Any,
    updated: Any,
    tags: Any,
) -> Project:
    text = _as_str(description)
    return Project(
        id=_as_int(id),
        name=_as_str(name),
        short_description=text[:SHORT_DESCRIPTION_LIMIT],
        description=text,
        uri=_as_str(uri),
        owner=_as_str(owner),
        source_guid=source_guid,
        created=_as_datetime(created),
        updated=_as_datetime(updated),
        tags=_as_tags(tags),
    )


def _project_from_github(record: NativeRecord, source_guid: str) -> Project:
    return _project(
        source_guid,
        id=record.get("id"),
        name=record.get("name"),
        description=record.get("description"),
        uri=record.get("html_url"),
        owner=_nested(record, "owner", "login"),
        created=record.get("created_at"),
        updated=record.get("updated_at") or record.get("pushed_at"),
        tags=record.get("topics"),
    )


def _project_from_gitlab(record: NativeRecord, source_guid: str) -> Project:
    return _project(
        source_guid,
        id=record.get("id"),
        name=record.get("name"),
        description=record.get("description"),
        uri=record.get("web_url"),
        owner=_nested(record, "namespace", "full_path") or _nested(record, "owner", "username"),
        created=record.get("created_at"),
        updated=record.get("last_activity_at"),
        tags=record.get("topics") or record.get("tag_list"),
    )


def _project_from_gitea(record: NativeRecord, source_guid: str) -> Project:
    return _project(
        source_guid,
        id=record.get("id"),
        name=record.get("name"),
        description=record.get("description"),
        uri=record.get("html_url"),
        owner=_nested(record, "owner", "login") or _nested(record, "owner", "username"),
        created=record.get("created_at"),
        updated=record.get("updated_at"),
        tags=record.get("topics"),
    )


_PROJECT_TRANSLATORS: Dict[str, Callable[[NativeRecord, str], Project]] = {
    "github": _project_from_github,
    "gitlab": _project_from_gitlab,
    "gitea": _project_from_gitea,
}


def _tokens_from_payload(payload: NativeRecord) -> OauthTokens:
    access_token = _as_str(payload.get("access_token"))
    if not access_token:
        raise ExternalProviderError("Token endpoint response did not contain an access_token.")
    expires_in = payload.get("expires_in")
    return OauthTokens(
        access_token=access_token,
        token_type=_as_str(payload.get("token_type")) or "bearer",
        refresh_token=_as_str(payload.get("refresh_token")) or None,
        scope=_as_str(payload.get("scope")) or None,
        expires_in=_as_int(expires_in) if expires_in is not None else None,
        created_at=_as_datetime(payload.get("created_at")),
    )


class DataProviderAdapter:
    """
    Exposes one adaptee through the canonical contract.

    Instances are cheap and hold nothing but the adaptee; build one per call.
    """

    __slots__ = ("adaptee", "logger")

    def __init__(self, adaptee: DataSourceAdaptee) -> None:
        self.adaptee = adaptee
        self.logger: ProviderLogger = bind_tags(
            get_logger(__name__, extra={"source": adaptee.guid, "provider": adaptee.provider}),
            [f"source:{adaptee.descriptor.key}"],
        )

    def _translate(self, record: NativeRecord) -> Project:
        translator = _PROJECT_TRANSLATORS.get(self.adaptee.provider)
        if translator is None:
            raise ExternalProviderError(f"No project translator for provider '{self.adaptee.provider}'.")
        if not isinstance(record, Mapping):
            raise ExternalProviderError(f"Unexpected project payload from '{self.adaptee.name}': {type(record).__name__}.")
        return translator(record, self.adaptee.guid)

    @staticmethod
    def _resolve_token(token: Optional[str], needs_auth: bool) -> Optional[str]:
        if not needs_auth:
            return None
        if not token or not token.strip():
            raise AuthenticationRequiredError("This data source requires an access token.")
        return token.strip()

    def _require_authorized(self, operation: str) -> AuthorizedDataSourceAdaptee:
        if not isinstance(self.adaptee, AuthorizedDataSourceAdaptee):
            raise CapabilityMismatchError(f"Data source '{self.adaptee.name}' is public and does not support {operation}.")
        return self.adaptee

    async def get_all_projects(self, token: Optional[str], needs_auth: bool, *, owner: Optional[str] = None) -> List[Project]:
        """
        List projects from the data source.

        ``token`` is only sent when ``needs_auth`` is true. Public listings
        need ``owner``, the user or namespace whose projects are listed.
        """

        access_token = self._resolve_token(token, needs_auth)
        owner = (owner or "").strip() or None
        if owner is None and self.adaptee.requires_owner(authenticated=access_token is not None):
            raise InvalidRequestError(f"Listing public projects from '{self.adaptee.name}' requires an owner.")

        records = await self.adaptee.fetch_all_projects(access_token=access_token, owner=owner)
        projects = [self._translate(record) for record in records]
        self.logger.debug("Projects listed", extra={"count": len(projects), "authenticated": access_token is not None})
        return projects

    async def get_project_by_guid(self, token: Optional[str], project_id: str, needs_auth: bool) -> Project:
        """Fetch one project by its provider id."""

        access_token = self._resolve_token(token, needs_auth)
        project_id = str(project_id).strip()
        if not project_id:
            raise InvalidRequestError("A project id is required.")

        record = await self.adaptee.fetch_project(project_id, access_token=access_token)
        if record is None:
            raise ProjectNotFoundError(f"Project '{project_id}' does not exist on '{self.adaptee.name}'.")
        return self._translate(record)

    async def get_project_from_uri(self, uri: str, token: Optional[str] = None) -> Project:
        """Fetch a project from its web address on this data source."""

        path = self._project_path(uri)
        access_token = token.strip() if token and token.strip() else None
        record = await self.adaptee.fetch_project_by_path(path, access_token=access_token)
        if record is None:
            raise ProjectNotFoundError(f"Project '{path}' does not exist on '{self.adaptee.name}'.")
        return self._translate(record)

    def _project_path(self, uri: str) -> str:
        parts = urlsplit(uri.strip())
        expected_host = urlsplit(self.adaptee.descriptor.web_url).netloc.lower()
        if parts.scheme not in ("http", "https") or parts.netloc.lower() != expected_host:
            raise InvalidRequestError(f"'{uri}' is not a project address on {expected_host}.")

        path = parts.path.split("/-/", 1)[0].strip("/")
        if path.endswith(".git"):
            path = path[: -len(".git")]
        segments = [segment for segment in path.split("/") if segment]
        if not self.adaptee.nested_namespaces:
            segments = segments[:2]
        if len(segments) < 2:
            raise InvalidRequestError(f"'{uri}' does not point to a project.")
        return "/".join(segments)

    def get_oauth_url(self) -> str:
        """Return the provider authorization URL to redirect the user to."""

        return self._require_authorized("OAuth authorization").build_oauth_url()

    async def get_tokens(self, code: str) -> OauthTokens:
        """Exchange an authorization code for tokens. Codes are single use; no retry."""

        adaptee = self._require_authorized("OAuth token exchange")
        if not code or not code.strip():
            raise InvalidRequestError("An authorization code is required.")
        payload = await adaptee.exchange_code(code.strip())
        tokens = _tokens_from_payload(payload)
        self.logger.info("Authorization code exchanged", extra={"scope": tokens.scope})
        return tokens
