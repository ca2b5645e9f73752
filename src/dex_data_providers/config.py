"""
Secret management for data source credentials.

Secrets are loaded from ``.secrets/secret.toml`` by default. The lookup order is:

1. Explicit ``DEX_SECRETS_PATH`` environment variable.
2. Project-relative ``.secrets/secret.toml`` (both from CWD and the package root).
3. Project-relative ``.secrets/secrets.toml``.
4. Fallback to ``.secrets/secrets.example.toml`` for scaffolding values.

Each data source reads the section named after its descriptor key::

    [github]
    client_id = "..."
    client_secret = "..."
    redirect_uri = "https://dex.example.org/oauth/github"

Environment variables ``DEX_<KEY>_CLIENT_ID``, ``DEX_<KEY>_CLIENT_SECRET`` and
``DEX_<KEY>_REDIRECT_URI`` take precedence over the file.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional

ENV_SECRETS_PATH = "DEX_SECRETS_PATH"


@dataclass(slots=True, frozen=True)
class OAuthCredentials:
    """Client registration of this application with one OAuth provider."""

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    redirect_uri: Optional[str] = None

    @property
    def can_authorize(self) -> bool:
        return bool(self.client_id and self.redirect_uri)

    @property
    def can_exchange(self) -> bool:
        return self.can_authorize and bool(self.client_secret)


@dataclass(slots=True)
class SecretsBundle:
    """Lightweight container for parsed secret values."""

    source_path: Optional[Path]
    data: Dict[str, Dict[str, object]]

    def oauth_credentials(self, key: str) -> OAuthCredentials:
        """Resolve client credentials for the data source named ``key``."""

        section = self.data.get(key, {})
        if not isinstance(section, dict):
            section = {}
        prefix = f"DEX_{key.upper()}_"

        def _extract(name: str) -> Optional[str]:
            env_value = os.getenv(prefix + name.upper())
            if env_value:
                return env_value
            value = section.get(name)
            return value if isinstance(value, str) and value else None

        return OAuthCredentials(
            client_id=_extract("client_id"),
            client_secret=_extract("client_secret"),
            redirect_uri=_extract("redirect_uri"),
        )


def _discover_project_root() -> Optional[Path]:
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / "pyproject.toml").is_file():
            return parent
    return None


def _candidate_paths() -> Iterable[Path]:
    env_override = os.getenv(ENV_SECRETS_PATH)
    if env_override:
        yield Path(env_override).expanduser()

    search_roots = [Path.cwd()]
    package_root = _discover_project_root()
    if package_root and package_root not in search_roots:
        search_roots.append(package_root)

    seen: set[Path] = set()
    for base in search_roots:
        secrets_dir = base / ".secrets"
        for filename in ("secret.toml", "secrets.toml", "secrets.example.toml"):
            candidate = secrets_dir / filename
            if candidate not in seen:
                seen.add(candidate)
                yield candidate


def _load_toml(path: Path) -> Dict[str, Dict[str, object]]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def load_secrets(strict: bool = False) -> SecretsBundle:
    """
    Attempt to load secrets from the configured locations.

    Parameters
    ----------
    strict:
        When ``True`` the function raises ``FileNotFoundError`` if no secrets file is
        discovered. Defaults to ``False`` so environment variables alone are enough.
    """

    for path in _candidate_paths():
        if path.is_file():
            return SecretsBundle(source_path=path, data=_load_toml(path))

    if strict:
        raise FileNotFoundError(f"No secrets file found. Configure {ENV_SECRETS_PATH} or .secrets/secret.toml.")

    return SecretsBundle(source_path=None, data={})
